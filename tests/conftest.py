from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Sequence

import pytest
from fastapi.testclient import TestClient

from hotcoffee.container import Container, build_container, memory_container, sql_container
from hotcoffee.core.config import Settings
from hotcoffee.domain import InventoryItem, Order, OrderStatus
from hotcoffee.errors import PersistenceError, StoreTimeout
from hotcoffee.main import create_app
from hotcoffee.repositories import (
    InMemoryInventoryStore,
    InMemoryMenuCatalog,
    InMemoryOrderStore,
    InventoryStore,
    OrderStore,
)
from hotcoffee.services.menu import requirements


def stock_shop(container: Container, milk: str = "500", espresso: str = "10") -> Container:
    """Milk and espresso in stock, a latte (1 shot + 200 ml) and an espresso on the menu."""
    container.inventory.add_ingredient(
        "Milk", Decimal(milk), "ml", ingredient_id="milk", min_threshold=Decimal("100")
    )
    container.inventory.add_ingredient("Espresso Shot", Decimal(espresso), "shots", ingredient_id="espresso_shot")
    container.menu.create_menu_item(
        "Latte", Decimal("3.50"), requirements([("espresso_shot", "1"), ("milk", "200")])
    )
    container.menu.create_menu_item("Espresso", Decimal("2.50"), requirements([("espresso_shot", "1")]))
    return container


class FlakyInventoryStore(InventoryStore):
    """Delegates to a real store, failing scripted ``conditional_adjust`` calls.

    Modes: ``error`` (not applied), ``timeout_applied`` (applied, then times
    out) and ``timeout_lost`` (times out without applying).
    """

    def __init__(self, inner: InventoryStore) -> None:
        self.inner = inner
        self._script: Dict[str, List[Optional[str]]] = {}
        # Called with (ingredient_id, delta) after every applied adjust.
        self.after_adjust: Optional[Callable[[str, Decimal], None]] = None

    def fail_next(self, ingredient_id: str, mode: str = "error", *, skip: int = 0) -> None:
        self._script.setdefault(ingredient_id, []).extend([None] * skip + [mode])

    def get(self, ingredient_id: str) -> Optional[InventoryItem]:
        return self.inner.get(ingredient_id)

    def list(self) -> List[InventoryItem]:
        return self.inner.list()

    def add(self, item: InventoryItem) -> None:
        self.inner.add(item)

    def update_metadata(self, item: InventoryItem) -> None:
        self.inner.update_metadata(item)

    def delete(self, ingredient_id: str) -> None:
        self.inner.delete(ingredient_id)

    def conditional_adjust(self, ingredient_id: str, delta: Decimal) -> Decimal:
        queue = self._script.get(ingredient_id)
        mode = queue.pop(0) if queue else None
        if mode == "error":
            raise PersistenceError(f"adjust of {ingredient_id} failed")
        if mode == "timeout_lost":
            raise StoreTimeout(f"adjust of {ingredient_id} timed out")
        quantity = self.inner.conditional_adjust(ingredient_id, delta)
        if self.after_adjust is not None:
            self.after_adjust(ingredient_id, delta)
        if mode == "timeout_applied":
            raise StoreTimeout(f"adjust of {ingredient_id} timed out")
        return quantity


class FlakyOrderStore(OrderStore):
    """Delegates to a real store; ``fail[op]`` holds modes for the next calls of ``op``."""

    def __init__(self, inner: OrderStore) -> None:
        self.inner = inner
        self.fail: Dict[str, List[str]] = {}
        # One-shot callbacks run just before the next write of ``op``.
        self.before: Dict[str, Callable[[], None]] = {}

    def _run(self, op: str, call):
        hook = self.before.pop(op, None)
        if hook is not None:
            hook()
        queue = self.fail.get(op)
        mode = queue.pop(0) if queue else None
        if mode == "error":
            raise PersistenceError(f"{op} failed")
        if mode == "timeout_lost":
            raise StoreTimeout(f"{op} timed out")
        call()
        if mode == "timeout_applied":
            raise StoreTimeout(f"{op} timed out")

    def insert(self, order: Order) -> None:
        self._run("insert", lambda: self.inner.insert(order))

    def insert_many(self, orders: Sequence[Order]) -> None:
        self._run("insert_many", lambda: self.inner.insert_many(orders))

    def update(self, order: Order) -> None:
        self._run("update", lambda: self.inner.update(order))

    def delete(self, order_id: str) -> None:
        self._run("delete", lambda: self.inner.delete(order_id))

    def delete_many(self, order_ids: Sequence[str]) -> None:
        self._run("delete_many", lambda: self.inner.delete_many(order_ids))

    def get(self, order_id: str) -> Optional[Order]:
        return self.inner.get(order_id)

    def list(self, status: Optional[OrderStatus] = None) -> List[Order]:
        return self.inner.list(status=status)


@dataclass
class FlakyShop:
    container: Container
    inventory: FlakyInventoryStore
    orders: FlakyOrderStore

    def stock(self, ingredient_id: str) -> Decimal:
        return self.container.inventory.get_ingredient(ingredient_id).quantity


@pytest.fixture()
def container() -> Container:
    return memory_container()


@pytest.fixture()
def shop(container: Container) -> Container:
    return stock_shop(container)


@pytest.fixture()
def sql_shop() -> Container:
    return stock_shop(sql_container("sqlite://"))


@pytest.fixture()
def flaky_shop() -> FlakyShop:
    inventory = FlakyInventoryStore(InMemoryInventoryStore())
    orders = FlakyOrderStore(InMemoryOrderStore())
    container = build_container(InMemoryMenuCatalog(), inventory, orders)
    stock_shop(container)
    return FlakyShop(container=container, inventory=inventory, orders=orders)


@pytest.fixture()
def client(shop: Container) -> TestClient:
    settings = Settings(STORAGE_BACKEND="memory", SEED_ON_STARTUP=False, LOG_LEVEL="WARNING")
    return TestClient(create_app(container=shop, settings=settings))
