"""Settings API routes."""

from typing import Annotated, Dict

from fastapi import APIRouter, Depends

from ..auth import CurrentContext, require_context
from ..db import Database
from ..domain import SettingsRead, SettingsUpdate, SubscriptionTier
from ..features import get_features
from ..services import settings as user_settings
from ..services import storage_failure
from .payload import json_body

router = APIRouter(prefix='/api/settings', tags=['settings'],
                   dependencies=[Depends(require_context)])


@router.get('', response_model=SettingsRead)
def read_settings(ctx: CurrentContext, db: Database):
    with storage_failure('Failed to load settings'):
        return user_settings.get_settings(db, ctx.subject_id)


@router.put('', response_model=SettingsRead)
def update_settings(payload: Annotated[SettingsUpdate,
                                       Depends(json_body(SettingsUpdate))],
                    ctx: CurrentContext, db: Database):
    """Update the settings present in the body.

    The subscription tier cannot be changed through this route.
    """
    with storage_failure('Failed to update settings'):
        return user_settings.update_settings(db, ctx.subject_id,
                                             payload.changes())


@router.get('/features', response_model=Dict[str, bool])
def read_features(ctx: CurrentContext, db: Database):
    """Features available on the caller's subscription tier."""
    with storage_failure('Failed to load settings'):
        row = user_settings.get_settings(db, ctx.subject_id)
        return get_features(SubscriptionTier(row.subscription_tier))
