from __future__ import annotations

from typing import List

from fastapi import APIRouter, Response, status

from .. import schemas
from ..services.menu import requirements
from .dependencies import Services
from .serializers import menu_item as serialize_menu_item

router = APIRouter(prefix="/menu", tags=["Menu"])


@router.post("", response_model=schemas.MenuItemOut, status_code=status.HTTP_201_CREATED)
def create_menu_item(payload: schemas.MenuItemCreate, services: Services):
    item = services.menu.create_menu_item(
        payload.name,
        payload.price,
        requirements((ing.ingredient_id, ing.quantity) for ing in payload.ingredients),
        description=payload.description,
        category=payload.category,
        available=payload.available,
    )
    return serialize_menu_item(item)


@router.get("", response_model=List[schemas.MenuItemOut])
def list_menu_items(services: Services):
    return [serialize_menu_item(item) for item in services.menu.list_menu_items()]


@router.get("/{menu_item_id}", response_model=schemas.MenuItemOut)
def get_menu_item(menu_item_id: str, services: Services):
    return serialize_menu_item(services.menu.get_menu_item(menu_item_id))


@router.patch("/{menu_item_id}", response_model=schemas.MenuItemOut)
def patch_menu_item(menu_item_id: str, payload: schemas.MenuItemUpdate, services: Services):
    changes = payload.model_dump(exclude_unset=True)
    if payload.ingredients is not None:
        changes["ingredients"] = requirements((ing.ingredient_id, ing.quantity) for ing in payload.ingredients)
    item = services.menu.update_menu_item(menu_item_id, **changes)
    return serialize_menu_item(item)


@router.delete("/{menu_item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_menu_item(menu_item_id: str, services: Services):
    services.menu.delete_menu_item(menu_item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
