from __future__ import annotations

import logging
from decimal import Decimal
from typing import List, Optional

from ..domain import ZERO, InventoryItem, to_decimal
from ..errors import IngredientNotFound, InUseError, ValidationError
from ..ids import slugify
from ..repositories import InventoryStore, MenuCatalog
from .ledger import InventoryLedger

logger = logging.getLogger(__name__)


class InventoryService:
    """Ingredient records. Quantities after creation only move through the ledger."""

    def __init__(self, store: InventoryStore, ledger: InventoryLedger, catalog: MenuCatalog) -> None:
        self._store = store
        self._ledger = ledger
        self._catalog = catalog

    def list_ingredients(self) -> List[InventoryItem]:
        return self._store.list()

    def get_ingredient(self, ingredient_id: str) -> InventoryItem:
        return self._ledger.get(ingredient_id)

    def low_stock(self) -> List[InventoryItem]:
        return self._ledger.low_stock()

    def add_ingredient(
        self,
        name: str,
        quantity: Decimal,
        unit: str,
        *,
        ingredient_id: Optional[str] = None,
        min_threshold: Decimal = ZERO,
    ) -> InventoryItem:
        item = InventoryItem(
            id=ingredient_id or slugify(name or "", fallback="ingredient"),
            name=(name or "").strip(),
            quantity=to_decimal(quantity),
            unit=(unit or "").strip(),
            min_threshold=to_decimal(min_threshold),
        )
        self._validate(item)
        if item.quantity < 0:
            raise ValidationError("quantity cannot be negative")
        if self._store.get(item.id) is not None:
            raise ValidationError(f"ingredient '{item.id}' already exists", ingredient_id=item.id)
        self._store.add(item)
        logger.info("Ingredient %s added with %s %s", item.id, item.quantity, item.unit)
        return item

    def update_ingredient(
        self,
        ingredient_id: str,
        *,
        name: Optional[str] = None,
        unit: Optional[str] = None,
        min_threshold: Optional[Decimal] = None,
    ) -> InventoryItem:
        item = self.get_ingredient(ingredient_id)
        if name is not None:
            item.name = name.strip()
        if unit is not None:
            item.unit = unit.strip()
        if min_threshold is not None:
            item.min_threshold = to_decimal(min_threshold)
        self._validate(item)
        self._store.update_metadata(item)
        logger.info("Ingredient %s updated", ingredient_id)
        return self.get_ingredient(ingredient_id)

    def restock(self, ingredient_id: str, amount: Decimal) -> InventoryItem:
        amount = to_decimal(amount)
        if amount <= 0:
            raise ValidationError("restock amount must be positive")
        item = self._ledger.restore({ingredient_id: amount})[ingredient_id]
        logger.info("Ingredient %s restocked by %s, now %s", ingredient_id, amount, item.quantity)
        return item

    def delete_ingredient(self, ingredient_id: str) -> None:
        if self._store.get(ingredient_id) is None:
            raise IngredientNotFound(ingredient_id)
        used_by = self._catalog.uses_ingredient(ingredient_id)
        if used_by:
            raise InUseError(
                f"ingredient '{ingredient_id}' is used by menu items: {', '.join(used_by)}",
                ingredient_id=ingredient_id,
                menu_items=used_by,
            )
        with self._ledger.locked([ingredient_id]):
            self._store.delete(ingredient_id)
        logger.info("Ingredient %s deleted", ingredient_id)

    @staticmethod
    def _validate(item: InventoryItem) -> None:
        if not item.id:
            raise ValidationError("ingredient ID is required")
        if not item.name:
            raise ValidationError("ingredient name cannot be empty")
        if not item.unit:
            raise ValidationError("unit cannot be empty")
        if item.min_threshold < 0:
            raise ValidationError("min_threshold cannot be negative")
