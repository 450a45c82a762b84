"""Per-user application settings."""

from enum import Enum
from logging import getLogger
from typing import Any, Dict

from sqlalchemy.orm import Session

from ..exceptions import StorageError
from ..tables import UserSettings

log = getLogger(__name__)


def get_settings(db: Session, owner_id: str) -> UserSettings:
    """The settings row of ``owner_id``.

    The row is written together with the user at provisioning time, so a
    missing row means the store is inconsistent.
    """
    settings = db.get(UserSettings, owner_id)
    if settings is None:
        log.error('User %s has no settings row', owner_id)
        raise StorageError('Failed to load settings')
    return settings


def update_settings(db: Session, owner_id: str,
                    changes: Dict[str, Any]) -> UserSettings:
    """Apply ``changes`` to the settings of ``owner_id``."""
    settings = get_settings(db, owner_id)
    for key, value in changes.items():
        if key in ('user_id', 'subscription_tier'):
            continue
        setattr(settings, key, value.value if isinstance(value, Enum) else value)
    db.commit()
    return settings
