from __future__ import annotations

from typing import List

from fastapi import APIRouter, Response, status

from .. import schemas
from .dependencies import Services
from .serializers import inventory_item as serialize_item

router = APIRouter(prefix="/inventory", tags=["Inventory"])


@router.post("", response_model=schemas.InventoryItemOut, status_code=status.HTTP_201_CREATED)
def add_ingredient(payload: schemas.InventoryItemCreate, services: Services):
    item = services.inventory.add_ingredient(
        payload.name,
        payload.quantity,
        payload.unit,
        ingredient_id=payload.ingredient_id,
        min_threshold=payload.min_threshold,
    )
    return serialize_item(item)


@router.get("", response_model=List[schemas.InventoryItemOut])
def list_ingredients(services: Services):
    return [serialize_item(item) for item in services.inventory.list_ingredients()]


@router.get("/low-stock", response_model=List[schemas.InventoryItemOut])
def low_stock(services: Services):
    return [serialize_item(item) for item in services.inventory.low_stock()]


@router.get("/{ingredient_id}", response_model=schemas.InventoryItemOut)
def get_ingredient(ingredient_id: str, services: Services):
    return serialize_item(services.inventory.get_ingredient(ingredient_id))


@router.patch("/{ingredient_id}", response_model=schemas.InventoryItemOut)
def patch_ingredient(ingredient_id: str, payload: schemas.InventoryItemUpdate, services: Services):
    item = services.inventory.update_ingredient(ingredient_id, **payload.model_dump(exclude_unset=True))
    return serialize_item(item)


@router.post("/{ingredient_id}/restock", response_model=schemas.InventoryItemOut)
def restock(ingredient_id: str, payload: schemas.RestockRequest, services: Services):
    return serialize_item(services.inventory.restock(ingredient_id, payload.amount))


@router.delete("/{ingredient_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_ingredient(ingredient_id: str, services: Services):
    services.inventory.delete_ingredient(ingredient_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
