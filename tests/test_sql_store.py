from __future__ import annotations

from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from hotcoffee.container import Container
from hotcoffee.domain import LineItemRequest, OrderRequest, OrderStatus
from hotcoffee.errors import (
    AdjustConflict,
    IngredientNotFound,
    InsufficientInventory,
    PersistenceError,
    StoreTimeout,
)
from hotcoffee.repositories.sql import _store_errors


def test_conditional_adjust_applies_and_refuses(sql_shop: Container) -> None:
    store = sql_shop.inventory_store
    assert store.conditional_adjust("milk", Decimal("-200")) == Decimal("300")
    assert store.conditional_adjust("milk", Decimal("-300")) == Decimal("0")

    with pytest.raises(AdjustConflict):
        store.conditional_adjust("milk", Decimal("-0.001"))
    assert store.get("milk").quantity == Decimal("0")


def test_conditional_adjust_fractional_quantities(sql_shop: Container) -> None:
    store = sql_shop.inventory_store
    for _ in range(3):
        store.conditional_adjust("milk", Decimal("-0.1"))
    assert store.get("milk").quantity == Decimal("499.7")


def test_conditional_adjust_unknown_ingredient(sql_shop: Container) -> None:
    with pytest.raises(IngredientNotFound):
        sql_shop.inventory_store.conditional_adjust("cocoa", Decimal("1"))


def test_order_lifecycle_on_sql(sql_shop: Container) -> None:
    order = sql_shop.orders.create_order(
        OrderRequest("Ada", [LineItemRequest("latte", 1), LineItemRequest("espresso", 2)])
    )
    stored = sql_shop.orders.get_order(order.id)
    assert stored.total_amount == Decimal("8.50")
    assert [(line.product_id, line.quantity) for line in stored.items] == [("latte", 1), ("espresso", 2)]
    assert sql_shop.inventory.get_ingredient("espresso_shot").quantity == Decimal("7")

    sql_shop.orders.update_order(order.id, OrderRequest("Ada", [LineItemRequest("latte", 2)]))
    assert sql_shop.inventory.get_ingredient("milk").quantity == Decimal("100")

    with pytest.raises(InsufficientInventory):
        sql_shop.orders.create_order(OrderRequest("Grace", [LineItemRequest("latte", 1)]))

    sql_shop.orders.close_order(order.id)
    assert sql_shop.orders.list_orders(OrderStatus.closed)[0].id == order.id


def test_menu_recipe_round_trip(sql_shop: Container) -> None:
    latte = sql_shop.menu.get_menu_item("latte")
    assert latte.price == Decimal("3.50")
    assert [(r.ingredient_id, r.quantity_per_unit) for r in latte.ingredients] == [
        ("espresso_shot", Decimal("1")),
        ("milk", Decimal("200")),
    ]
    assert sql_shop.catalog.uses_ingredient("milk") == ["latte"]


def test_batch_on_sql_is_all_or_nothing(sql_shop: Container) -> None:
    requests = [OrderRequest(name, [LineItemRequest("latte", 1)]) for name in ("Ada", "Grace", "Linus")]
    result = sql_shop.batch.process_batch(requests)
    assert result.summary.accepted == 0
    assert sql_shop.orders.list_orders() == []

    result = sql_shop.batch.process_batch(requests[:2])
    assert result.summary.accepted == 2
    assert sql_shop.inventory.get_ingredient("milk").quantity == Decimal("100")


def test_locked_database_maps_to_store_timeout() -> None:
    with pytest.raises(StoreTimeout):
        with _store_errors("adjust ingredient"):
            raise OperationalError("UPDATE inventory_items", {}, Exception("database is locked"))


def test_other_operational_errors_map_to_persistence_error() -> None:
    with pytest.raises(PersistenceError) as excinfo:
        with _store_errors("insert orders"):
            raise OperationalError("INSERT INTO orders", {}, Exception("disk I/O error"))
    assert not isinstance(excinfo.value, StoreTimeout)
