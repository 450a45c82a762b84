"""Inventory API routes. Every route requires an authenticated caller."""

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from ..auth import CurrentContext, require_context
from ..db import Database
from ..domain import InventoryItemCreate, InventoryItemRead, \
    InventoryItemUpdate, InventoryStats, ItemCategory, ItemStatus, \
    StorageLocation
from ..services import inventory, storage_failure
from .payload import json_body

router = APIRouter(prefix='/api/inventory', tags=['inventory'],
                   dependencies=[Depends(require_context)])


@router.get('', response_model=List[InventoryItemRead])
def list_inventory(ctx: CurrentContext, db: Database,
                   category: Optional[ItemCategory] = None,
                   location: Optional[StorageLocation] = None,
                   barcode: Optional[str] = None,
                   item_status: Annotated[Optional[ItemStatus],
                                          Query(alias='status')] = None):
    """All items for the logged-in user."""
    with storage_failure('Failed to fetch inventory'):
        on = inventory.today()
        items = inventory.list_items(db, ctx.subject_id, category=category,
                                     location=location, barcode=barcode,
                                     status=item_status, on=on)
        return [inventory.to_read(item, on) for item in items]


@router.get('/ping')
def ping(ctx: CurrentContext):
    return {'status': 'ok', 'userId': ctx.subject_id}


@router.get('/stats', response_model=InventoryStats)
def inventory_stats(ctx: CurrentContext, db: Database):
    with storage_failure('Failed to fetch inventory'):
        return inventory.summarize(db, ctx.subject_id)


@router.get('/{item_id}', response_model=InventoryItemRead)
def get_item(item_id: str, ctx: CurrentContext, db: Database):
    with storage_failure('Failed to fetch item'):
        return inventory.to_read(inventory.get_item(db, ctx.subject_id, item_id))


@router.post('', response_model=InventoryItemRead,
             status_code=status.HTTP_201_CREATED)
def create_item(payload: Annotated[InventoryItemCreate,
                                   Depends(json_body(InventoryItemCreate))],
                ctx: CurrentContext, db: Database):
    """Create an item owned by the caller, whatever ``userId`` was sent."""
    with storage_failure('Failed to create item'):
        item = inventory.create_item(db, ctx.subject_id, payload)
        return inventory.to_read(item)


@router.put('/{item_id}', response_model=InventoryItemRead)
def update_item(item_id: str,
                payload: Annotated[InventoryItemUpdate,
                                   Depends(json_body(InventoryItemUpdate))],
                ctx: CurrentContext, db: Database):
    """Update the fields present in the body, if the caller owns the item."""
    with storage_failure('Failed to update item'):
        item = inventory.update_item(db, ctx.subject_id, item_id,
                                     payload.changes())
        return inventory.to_read(item)


@router.delete('/{item_id}', status_code=status.HTTP_204_NO_CONTENT,
               response_class=Response)
def delete_item(item_id: str, ctx: CurrentContext, db: Database):
    with storage_failure('Failed to delete item'):
        inventory.delete_item(db, ctx.subject_id, item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
