from __future__ import annotations

from decimal import Decimal

import pytest

from hotcoffee.container import Container
from hotcoffee.domain import LineItemRequest, OrderRequest, OrderStatus
from hotcoffee.errors import CompensationFailure, RecipeNotFound, ValidationError


def _latte(customer: str, quantity: int = 1) -> OrderRequest:
    return OrderRequest(customer_name=customer, items=[LineItemRequest("latte", quantity)])


def test_batch_accepts_every_order_when_combined_stock_suffices(shop: Container) -> None:
    result = shop.batch.process_batch([_latte("Ada"), _latte("Grace")])

    assert [r.status for r in result.processed_orders] == ["accepted", "accepted"]
    assert all(r.order_id for r in result.processed_orders)
    assert result.summary.accepted == 2
    assert result.summary.rejected == 0
    assert result.summary.total_revenue == Decimal("7.00")

    updates = {u.ingredient_id: u for u in result.summary.inventory_updates}
    assert updates["milk"].quantity_used == Decimal("400")
    assert updates["milk"].remaining == Decimal("100")
    assert updates["milk"].name == "Milk"
    assert updates["espresso_shot"].remaining == Decimal("8")
    assert len(shop.orders.list_orders(OrderStatus.pending)) == 2


def test_batch_rejects_all_when_combined_demand_exceeds_stock(shop: Container) -> None:
    # Each order fits on its own; together they need 600 ml.
    result = shop.batch.process_batch([_latte("Ada"), _latte("Grace"), _latte("Linus")])

    assert {r.status for r in result.processed_orders} == {"rejected"}
    assert {r.reason for r in result.processed_orders} == {"insufficient_inventory"}
    assert all(r.order_id is None for r in result.processed_orders)
    assert result.summary.accepted == 0
    assert result.summary.rejected == 3
    assert result.summary.total_revenue == Decimal("0")
    assert shop.orders.list_orders() == []
    assert shop.inventory.get_ingredient("milk").quantity == Decimal("500")


def test_batch_validation_error_reports_order_index(shop: Container) -> None:
    with pytest.raises(ValidationError) as excinfo:
        shop.batch.process_batch([_latte("Ada"), _latte("")])
    assert excinfo.value.order_index == 1
    assert excinfo.value.message == "order 1: customer name is required"
    assert shop.orders.list_orders() == []


def test_batch_unknown_product_reports_order_index(shop: Container) -> None:
    bad = OrderRequest("Grace", [LineItemRequest("mocha", 1)])
    with pytest.raises(RecipeNotFound) as excinfo:
        shop.batch.process_batch([_latte("Ada"), bad])
    assert excinfo.value.detail["order_index"] == 1
    assert shop.inventory.get_ingredient("milk").quantity == Decimal("500")


def test_empty_batch_is_rejected(shop: Container) -> None:
    with pytest.raises(ValidationError, match="no orders provided"):
        shop.batch.process_batch([])


def test_batch_persist_failure_rejects_with_processing_error(flaky_shop) -> None:
    flaky_shop.orders.fail["insert_many"] = ["error"]
    result = flaky_shop.container.batch.process_batch([_latte("Ada"), _latte("Grace")])

    assert {r.reason for r in result.processed_orders} == {"processing_error"}
    assert result.summary.rejected == 2
    assert flaky_shop.stock("milk") == Decimal("500")


def test_batch_consume_failure_removes_persisted_orders(flaky_shop) -> None:
    flaky_shop.inventory.fail_next("milk", "error")
    result = flaky_shop.container.batch.process_batch([_latte("Ada"), _latte("Grace")])

    assert {r.reason for r in result.processed_orders} == {"processing_error"}
    assert flaky_shop.container.orders.list_orders() == []
    assert flaky_shop.stock("milk") == Decimal("500")
    assert flaky_shop.stock("espresso_shot") == Decimal("10")


def test_batch_failed_order_removal_is_reported(flaky_shop) -> None:
    flaky_shop.inventory.fail_next("milk", "error")
    flaky_shop.orders.fail["delete_many"] = ["error"]

    with pytest.raises(CompensationFailure) as excinfo:
        flaky_shop.container.batch.process_batch([_latte("Ada"), _latte("Grace")])

    failure = excinfo.value
    assert failure.operation == "batch admission"
    assert len(failure.state["order_ids"]) == 2
    assert failure.state["failed_step"] == "consume ingredients"
    assert flaky_shop.stock("milk") == Decimal("500")
