"""Database tables for users, their settings, and inventory items."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, Date, DateTime, ForeignKey, Integer, \
    String, Text
from sqlalchemy.orm import declarative_base, relationship

from .domain import DEFAULT_EXPIRATION_WARNING_DAYS, \
    DEFAULT_LOW_STOCK_THRESHOLD, DEFAULT_SUBSCRIPTION_TIER, DEFAULT_THEME, \
    DEFAULT_USER_ROLE

Base = declarative_base()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    """
    A crew member known to the API.

    ``id`` is the identity provider's subject identifier. Rows are created by
    the provisioner on the first authenticated request and never deleted here.
    """

    __tablename__ = 'users'

    id = Column(String(255), primary_key=True)
    email = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now,
                        onupdate=_now)

    settings = relationship('UserSettings', uselist=False,
                            back_populates='user')


class UserSettings(Base):
    """One row per user, created in the same transaction as the user."""

    __tablename__ = 'settings'

    user_id = Column(ForeignKey('users.id', ondelete='CASCADE'),
                     primary_key=True)
    vessel_id = Column(String(255))
    vessel_name = Column(String(255))
    low_stock_threshold = Column(Integer, nullable=False,
                                 default=DEFAULT_LOW_STOCK_THRESHOLD)
    expiration_warning_days = Column(
        JSON, nullable=False,
        default=lambda: list(DEFAULT_EXPIRATION_WARNING_DAYS))
    theme = Column(String(16), nullable=False, default=DEFAULT_THEME.value)
    user_role = Column(String(16), nullable=False,
                       default=DEFAULT_USER_ROLE.value)
    subscription_tier = Column(String(16), nullable=False,
                               default=DEFAULT_SUBSCRIPTION_TIER.value)

    user = relationship('User', back_populates='settings')


class InventoryItem(Base):
    """A medical supply item, owned by exactly one user."""

    __tablename__ = 'inventory_items'

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(ForeignKey('users.id', ondelete='CASCADE'),
                     nullable=False, index=True)

    nickname = Column(String(255))
    name = Column(String(255), nullable=False)
    chemical_name = Column(String(255))
    brand = Column(String(255))
    category = Column(String(32), nullable=False, default='other', index=True)
    vessel = Column(String(255))

    strength = Column(String(64))
    unit_type = Column(String(64))
    unit_size = Column(String(64))
    container = Column(String(128))
    script_name = Column(String(255))

    quantity = Column(Integer, nullable=False, default=0)
    remaining = Column(String(64))
    doses_left = Column(Integer)
    min_quantity = Column(Integer, nullable=False, default=0)

    expiration_date = Column(Date)
    location = Column(String(64), nullable=False, default='other')
    barcode = Column(String(128), index=True)

    photos = Column(JSON, nullable=False, default=list)
    notes = Column(Text)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now,
                        onupdate=_now)
