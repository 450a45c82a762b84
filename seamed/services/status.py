"""Stock and expiry status of inventory items.

The predicates overlap: an expired item is also critical, and a low-stock
item may be expiring soon. :func:`item_status` picks one label per item for
display, while :func:`matches_status` answers a filter query.
"""

from datetime import date, timedelta
from typing import Optional, Protocol

from ..domain import ItemStatus

EXPIRING_SOON_DAYS = 30


class Stocked(Protocol):
    quantity: int
    min_quantity: int
    expiration_date: Optional[date]


def is_expired(item: Stocked, today: date) -> bool:
    return item.expiration_date is not None and item.expiration_date < today


def is_expiring_soon(item: Stocked, today: date,
                     days: int = EXPIRING_SOON_DAYS) -> bool:
    if item.expiration_date is None:
        return False
    return today <= item.expiration_date <= today + timedelta(days=days)


def is_low(item: Stocked) -> bool:
    return item.quantity <= item.min_quantity


def matches_status(item: Stocked, status: ItemStatus, today: date) -> bool:
    if status is ItemStatus.EXPIRED:
        return is_expired(item, today)
    if status is ItemStatus.EXPIRING_SOON:
        return is_expiring_soon(item, today)
    if status is ItemStatus.LOW_STOCK:
        return is_low(item) and item.quantity > 0
    if status is ItemStatus.CRITICAL:
        return item.quantity == 0 or is_expired(item, today)
    return not is_expired(item, today) and not is_low(item)


def item_status(item: Stocked, today: date) -> ItemStatus:
    """The single most urgent status of ``item``."""
    for status in (ItemStatus.CRITICAL, ItemStatus.EXPIRING_SOON,
                   ItemStatus.LOW_STOCK):
        if matches_status(item, status, today):
            return status
    return ItemStatus.OK
