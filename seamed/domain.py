"""Core concepts of the SeaMed inventory API.

Wire models use camelCase aliases so they match the web client, while Python
code works with snake_case attributes.
"""

from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Literal, Optional

import dateutil.parser
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class UserRole(str, Enum):
    CAPTAIN = 'captain'
    MEDIC = 'medic'
    CREW = 'crew'


class SubscriptionTier(str, Enum):
    FREE = 'free'
    PRO = 'pro'
    FLEET = 'fleet'


class Theme(str, Enum):
    LIGHT = 'light'
    DARK = 'dark'
    SYSTEM = 'system'


class ItemCategory(str, Enum):
    FIRST_AID = 'first-aid'
    MEDICATIONS = 'medications'
    TOOLS = 'tools'
    EMERGENCY = 'emergency'
    HYGIENE = 'hygiene'
    DIAGNOSTIC = 'diagnostic'
    PPE = 'ppe'
    OTHER = 'other'


class StorageLocation(str, Enum):
    HEAD_FORE = 'head-fore'
    HEAD_AFT = 'head-aft'
    STBD_CABINET_SETTEE_FORE = 'stbd-cabinet-settee-fore'
    STBD_CABINET_SETTEE_AFT = 'stbd-cabinet-settee-aft'
    GALLEY = 'galley'
    # Legacy locations, still accepted for older records.
    MAIN_CABIN = 'main-cabin'
    COCKPIT = 'cockpit'
    NAV_STATION = 'nav-station'
    FOREPEAK = 'forepeak'
    LAZARETTE = 'lazarette'
    DECK_LOCKER = 'deck-locker'
    OTHER = 'other'


class ItemStatus(str, Enum):
    OK = 'ok'
    LOW_STOCK = 'low-stock'
    EXPIRING_SOON = 'expiring-soon'
    EXPIRED = 'expired'
    CRITICAL = 'critical'


DEFAULT_LOW_STOCK_THRESHOLD = 25
DEFAULT_EXPIRATION_WARNING_DAYS = (30, 60, 90)
DEFAULT_THEME = Theme.SYSTEM
DEFAULT_USER_ROLE = UserRole.CAPTAIN
DEFAULT_SUBSCRIPTION_TIER = SubscriptionTier.FREE

PLACEHOLDER_FIRST_NAME = 'New'
PLACEHOLDER_LAST_NAME = 'Sailor'


def placeholder_email(subject_id: str) -> str:
    """Stand-in address for subjects whose token carries no email claim."""
    return f'{subject_id}@users.seamed.invalid'


class Identity(BaseModel):
    """A caller identity established from a bearer credential."""

    model_config = ConfigDict(frozen=True)

    subject_id: str
    """Stable identifier of the end user, from the ``sub`` claim."""

    email: Optional[str] = None
    """Best-effort ``email`` claim."""

    via: Literal['token', 'dev-bypass'] = 'token'
    """How the identity was established."""


class RequestContext(Identity):
    """The resolved caller, handed by the auth gateway to every handler.

    Only built for an identity whose user row is known to exist.
    """


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True,
                              from_attributes=True)


def parse_expiration(value):
    """Accept ISO dates or datetimes; store only the calendar date."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        if not value.strip():
            return None
        try:
            return dateutil.parser.isoparse(value.strip()).date()
        except (ValueError, OverflowError) as e:
            raise ValueError(f'not an ISO 8601 date: {value!r}') from e
    raise ValueError('expected an ISO 8601 date string')


class InventoryItemFields(WireModel):
    """Fields a client may write on an inventory item."""

    nickname: Optional[str] = None
    name: str = Field(min_length=1)
    chemical_name: Optional[str] = None
    brand: Optional[str] = None
    category: ItemCategory = ItemCategory.OTHER
    vessel: Optional[str] = None
    strength: Optional[str] = None
    unit_type: Optional[str] = None
    unit_size: Optional[str] = None
    container: Optional[str] = None
    script_name: Optional[str] = None
    quantity: int = Field(default=0, ge=0)
    remaining: Optional[str] = None
    doses_left: Optional[int] = Field(default=None, ge=0)
    min_quantity: int = Field(default=0, ge=0)
    expiration_date: Optional[date] = None
    location: StorageLocation = StorageLocation.OTHER
    barcode: Optional[str] = None
    photos: List[str] = Field(default_factory=list)
    notes: Optional[str] = None

    @field_validator('expiration_date', mode='before')
    @classmethod
    def parse_expiration_date(cls, value):
        return parse_expiration(value)


class InventoryItemCreate(InventoryItemFields):
    """Payload of ``POST /api/inventory``.

    ``id``, ``userId``, ``createdAt`` and ``updatedAt`` are not fields, so
    any client-supplied values are dropped during validation.
    """


class InventoryItemUpdate(WireModel):
    """Payload of ``PUT /api/inventory/{id}``; only sent fields are applied."""

    nickname: Optional[str] = None
    name: Optional[str] = Field(default=None, min_length=1)
    chemical_name: Optional[str] = None
    brand: Optional[str] = None
    category: Optional[ItemCategory] = None
    vessel: Optional[str] = None
    strength: Optional[str] = None
    unit_type: Optional[str] = None
    unit_size: Optional[str] = None
    container: Optional[str] = None
    script_name: Optional[str] = None
    quantity: Optional[int] = Field(default=None, ge=0)
    remaining: Optional[str] = None
    doses_left: Optional[int] = Field(default=None, ge=0)
    min_quantity: Optional[int] = Field(default=None, ge=0)
    expiration_date: Optional[date] = None
    location: Optional[StorageLocation] = None
    barcode: Optional[str] = None
    photos: Optional[List[str]] = None
    notes: Optional[str] = None

    @field_validator('expiration_date', mode='before')
    @classmethod
    def parse_expiration_date(cls, value):
        return parse_expiration(value)

    @field_validator('name', 'category', 'quantity', 'min_quantity',
                     'location', 'photos')
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError('may not be null')
        return value

    def changes(self) -> dict:
        """The fields the client actually sent, by attribute name."""
        return self.model_dump(exclude_unset=True)


class InventoryItemRead(InventoryItemFields):
    """An inventory item as returned to its owner."""

    id: str
    user_id: str
    status: ItemStatus = ItemStatus.OK
    created_at: datetime
    updated_at: datetime


class InventoryStats(WireModel):
    total_items: int = 0
    low_stock_count: int = 0
    expiring_soon_count: int = 0
    expired_count: int = 0
    category_counts: Dict[str, int] = Field(default_factory=dict)


class SettingsRead(WireModel):
    """A user's application settings."""

    vessel_id: Optional[str] = None
    vessel_name: Optional[str] = None
    low_stock_threshold: int
    expiration_warning_days: List[int]
    theme: Theme
    user_role: UserRole
    subscription_tier: SubscriptionTier


class SettingsUpdate(WireModel):
    """Payload of ``PUT /api/settings``.

    ``subscriptionTier`` is managed by the server and is not accepted here.
    """

    vessel_id: Optional[str] = None
    vessel_name: Optional[str] = None
    low_stock_threshold: Optional[int] = Field(default=None, ge=0, le=100)
    expiration_warning_days: Optional[List[int]] = None
    theme: Optional[Theme] = None
    user_role: Optional[UserRole] = None

    @field_validator('expiration_warning_days')
    @classmethod
    def normalise_days(cls, value):
        if value is None:
            return value
        if any(day <= 0 for day in value):
            raise ValueError('warning days must be positive')
        return sorted(set(value))

    @field_validator('low_stock_threshold', 'expiration_warning_days',
                     'theme', 'user_role')
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError('may not be null')
        return value

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)
