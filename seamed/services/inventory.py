"""Ownership-scoped access to inventory items.

Every function takes the owner's subject id and only ever reads or writes rows
with that ``user_id``. Looking up an item that does not exist and looking up
another user's item fail the same way, with :class:`.AuthorizationDenied`.
"""

from datetime import date, datetime, timezone
from enum import Enum
from logging import getLogger
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..domain import InventoryItemCreate, InventoryItemRead, InventoryStats, \
    ItemCategory, ItemStatus, StorageLocation
from ..exceptions import AuthorizationDenied
from ..tables import InventoryItem
from .status import is_expired, is_expiring_soon, is_low, item_status, \
    matches_status

log = getLogger(__name__)

SERVER_MANAGED = frozenset({'id', 'user_id', 'created_at', 'updated_at'})


def today() -> date:
    return datetime.now(timezone.utc).date()


def to_read(item: InventoryItem, on: Optional[date] = None) -> InventoryItemRead:
    """Wire representation of ``item``, with its status as of ``on``."""
    read = InventoryItemRead.model_validate(item)
    return read.model_copy(update={'status': item_status(item, on or today())})


def _column_values(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value.value if isinstance(value, Enum) else value
            for key, value in data.items() if key not in SERVER_MANAGED}


def list_items(db: Session, owner_id: str,
               category: Optional[ItemCategory] = None,
               location: Optional[StorageLocation] = None,
               barcode: Optional[str] = None,
               status: Optional[ItemStatus] = None,
               on: Optional[date] = None) -> List[InventoryItem]:
    """Items owned by ``owner_id``, optionally narrowed by the filters."""
    query = select(InventoryItem).where(InventoryItem.user_id == owner_id)
    if category is not None:
        query = query.where(InventoryItem.category == category.value)
    if location is not None:
        query = query.where(InventoryItem.location == location.value)
    if barcode is not None:
        query = query.where(InventoryItem.barcode == barcode)
    query = query.order_by(InventoryItem.created_at, InventoryItem.id)

    items = list(db.scalars(query))
    if status is not None:
        on = on or today()
        items = [item for item in items if matches_status(item, status, on)]
    return items


def get_item(db: Session, owner_id: str, item_id: str) -> InventoryItem:
    """The item ``item_id``, if ``owner_id`` owns it."""
    item = db.get(InventoryItem, item_id)
    if item is None or item.user_id != owner_id:
        log.info('Denied access to item %s for %s', item_id, owner_id)
        raise AuthorizationDenied('Not authorized')
    return item


def create_item(db: Session, owner_id: str,
                payload: InventoryItemCreate) -> InventoryItem:
    """Store a new item owned by ``owner_id``."""
    item = InventoryItem(**_column_values(payload.model_dump()))
    item.user_id = owner_id
    db.add(item)
    db.commit()
    db.refresh(item)
    log.debug('Created item %s for %s', item.id, owner_id)
    return item


def update_item(db: Session, owner_id: str, item_id: str,
                changes: Dict[str, Any]) -> InventoryItem:
    """Apply ``changes`` to an item owned by ``owner_id``.

    Only the given fields are written; server-managed fields are ignored.
    """
    item = get_item(db, owner_id, item_id)
    for key, value in _column_values(changes).items():
        setattr(item, key, value)
    item.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(item)
    return item


def delete_item(db: Session, owner_id: str, item_id: str) -> None:
    item = get_item(db, owner_id, item_id)
    db.delete(item)
    db.commit()
    log.debug('Deleted item %s for %s', item_id, owner_id)


def summarize(db: Session, owner_id: str,
              on: Optional[date] = None) -> InventoryStats:
    """Counts over the items owned by ``owner_id``."""
    on = on or today()
    items = list_items(db, owner_id)
    counts = {category.value: 0 for category in ItemCategory}
    for item in items:
        try:
            counts[ItemCategory(item.category).value] += 1
        except ValueError:
            counts[ItemCategory.OTHER.value] += 1
    return InventoryStats(
        total_items=len(items),
        low_stock_count=sum(1 for item in items if is_low(item)),
        expiring_soon_count=sum(1 for item in items
                                if is_expiring_soon(item, on)),
        expired_count=sum(1 for item in items if is_expired(item, on)),
        category_counts=counts,
    )
