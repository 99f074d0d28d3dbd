from __future__ import annotations

import copy
import threading
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from ..domain import InventoryItem, MenuItem, Order, OrderStatus
from ..errors import AdjustConflict, IngredientNotFound, OrderNotFound, PersistenceError, RecipeNotFound
from .base import InventoryStore, MenuCatalog, OrderStore


class InMemoryMenuCatalog(MenuCatalog):
    def __init__(self) -> None:
        self._items: Dict[str, MenuItem] = {}
        self._lock = threading.RLock()

    def get(self, menu_item_id: str) -> Optional[MenuItem]:
        with self._lock:
            item = self._items.get(menu_item_id)
            return copy.deepcopy(item) if item else None

    def list(self) -> List[MenuItem]:
        with self._lock:
            return [copy.deepcopy(item) for _, item in sorted(self._items.items())]

    def add(self, item: MenuItem) -> None:
        with self._lock:
            if item.id in self._items:
                raise PersistenceError(f"menu item '{item.id}' already exists", menu_item_id=item.id)
            self._items[item.id] = copy.deepcopy(item)

    def update(self, item: MenuItem) -> None:
        with self._lock:
            if item.id not in self._items:
                raise RecipeNotFound(item.id)
            self._items[item.id] = copy.deepcopy(item)

    def delete(self, menu_item_id: str) -> None:
        with self._lock:
            if self._items.pop(menu_item_id, None) is None:
                raise RecipeNotFound(menu_item_id)


class InMemoryInventoryStore(InventoryStore):
    def __init__(self) -> None:
        self._items: Dict[str, InventoryItem] = {}
        self._lock = threading.RLock()

    def get(self, ingredient_id: str) -> Optional[InventoryItem]:
        with self._lock:
            item = self._items.get(ingredient_id)
            return copy.deepcopy(item) if item else None

    def list(self) -> List[InventoryItem]:
        with self._lock:
            return [copy.deepcopy(item) for _, item in sorted(self._items.items())]

    def add(self, item: InventoryItem) -> None:
        with self._lock:
            if item.id in self._items:
                raise PersistenceError(f"ingredient '{item.id}' already exists", ingredient_id=item.id)
            self._items[item.id] = copy.deepcopy(item)

    def update_metadata(self, item: InventoryItem) -> None:
        with self._lock:
            current = self._items.get(item.id)
            if current is None:
                raise IngredientNotFound(item.id)
            current.name = item.name
            current.unit = item.unit
            current.min_threshold = item.min_threshold

    def delete(self, ingredient_id: str) -> None:
        with self._lock:
            if self._items.pop(ingredient_id, None) is None:
                raise IngredientNotFound(ingredient_id)

    def conditional_adjust(self, ingredient_id: str, delta: Decimal) -> Decimal:
        with self._lock:
            current = self._items.get(ingredient_id)
            if current is None:
                raise IngredientNotFound(ingredient_id)
            new_quantity = current.quantity + delta
            if new_quantity < 0:
                raise AdjustConflict(ingredient_id, delta)
            current.quantity = new_quantity
            return new_quantity


class InMemoryOrderStore(OrderStore):
    def __init__(self) -> None:
        self._orders: Dict[str, Order] = {}
        self._lock = threading.RLock()

    def insert(self, order: Order) -> None:
        self.insert_many([order])

    def insert_many(self, orders: Sequence[Order]) -> None:
        with self._lock:
            for order in orders:
                if order.id in self._orders:
                    raise PersistenceError(f"order '{order.id}' already exists", order_id=order.id)
            for order in orders:
                self._orders[order.id] = copy.deepcopy(order)

    def update(self, order: Order) -> None:
        with self._lock:
            if order.id not in self._orders:
                raise OrderNotFound(order.id)
            self._orders[order.id] = copy.deepcopy(order)

    def delete(self, order_id: str) -> None:
        self.delete_many([order_id])

    def delete_many(self, order_ids: Sequence[str]) -> None:
        with self._lock:
            for order_id in order_ids:
                if order_id not in self._orders:
                    raise OrderNotFound(order_id)
            for order_id in order_ids:
                del self._orders[order_id]

    def get(self, order_id: str) -> Optional[Order]:
        with self._lock:
            order = self._orders.get(order_id)
            return copy.deepcopy(order) if order else None

    def list(self, status: Optional[OrderStatus] = None) -> List[Order]:
        with self._lock:
            orders = [
                copy.deepcopy(order)
                for order in self._orders.values()
                if status is None or order.status == status
            ]
        orders.sort(key=lambda order: order.created_at, reverse=True)
        return orders
