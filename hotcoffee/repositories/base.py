from __future__ import annotations

from decimal import Decimal
from typing import List, Optional, Sequence

from ..domain import InventoryItem, MenuItem, Order, OrderStatus


class MenuCatalog:
    """
    Menu items and their recipes. Backed by SQL or in-memory storage.
    """

    def get(self, menu_item_id: str) -> Optional[MenuItem]:
        raise NotImplementedError

    def list(self) -> List[MenuItem]:
        raise NotImplementedError

    def add(self, item: MenuItem) -> None:
        raise NotImplementedError

    def update(self, item: MenuItem) -> None:
        raise NotImplementedError

    def delete(self, menu_item_id: str) -> None:
        raise NotImplementedError

    def uses_ingredient(self, ingredient_id: str) -> List[str]:
        """Ids of menu items whose recipe references ``ingredient_id``."""
        return [
            item.id
            for item in self.list()
            if any(req.ingredient_id == ingredient_id for req in item.ingredients)
        ]


class InventoryStore:
    """
    Ingredient stock. Quantities only change through ``conditional_adjust``.
    """

    def get(self, ingredient_id: str) -> Optional[InventoryItem]:
        raise NotImplementedError

    def list(self) -> List[InventoryItem]:
        raise NotImplementedError

    def add(self, item: InventoryItem) -> None:
        raise NotImplementedError

    def update_metadata(self, item: InventoryItem) -> None:
        """Persist name, unit and min_threshold; the stored quantity is left alone."""
        raise NotImplementedError

    def delete(self, ingredient_id: str) -> None:
        raise NotImplementedError

    def conditional_adjust(self, ingredient_id: str, delta: Decimal) -> Decimal:
        """Apply ``quantity += delta`` only if the result stays non-negative.

        Returns the new quantity. Raises ``AdjustConflict`` when refused and
        ``IngredientNotFound`` for an unknown id.
        """
        raise NotImplementedError


class OrderStore:
    def insert(self, order: Order) -> None:
        raise NotImplementedError

    def insert_many(self, orders: Sequence[Order]) -> None:
        """Insert every order or none of them."""
        raise NotImplementedError

    def update(self, order: Order) -> None:
        raise NotImplementedError

    def delete(self, order_id: str) -> None:
        raise NotImplementedError

    def delete_many(self, order_ids: Sequence[str]) -> None:
        raise NotImplementedError

    def get(self, order_id: str) -> Optional[Order]:
        raise NotImplementedError

    def list(self, status: Optional[OrderStatus] = None) -> List[Order]:
        raise NotImplementedError
