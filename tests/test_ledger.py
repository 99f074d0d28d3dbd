from __future__ import annotations

import logging
from decimal import Decimal

import pytest

from hotcoffee.container import Container
from hotcoffee.errors import (
    CompensationFailure,
    IngredientNotFound,
    InsufficientInventory,
    PersistenceError,
)


def test_consume_then_restore_returns_to_start(shop: Container) -> None:
    plan = {"espresso_shot": Decimal("2"), "milk": Decimal("400")}
    consumed = shop.ledger.consume(plan)
    assert consumed["milk"].quantity == Decimal("100")
    assert consumed["espresso_shot"].quantity == Decimal("8")

    shop.ledger.restore(plan)
    assert shop.ledger.snapshot(["milk", "espresso_shot"]) == {
        "milk": Decimal("500"),
        "espresso_shot": Decimal("10"),
    }


def test_consume_is_all_or_nothing(shop: Container) -> None:
    plan = {"espresso_shot": Decimal("1"), "milk": Decimal("600")}
    with pytest.raises(InsufficientInventory) as excinfo:
        shop.ledger.consume(plan)

    [shortfall] = excinfo.value.shortfalls
    assert shortfall.ingredient_id == "milk"
    assert shortfall.needed == Decimal("600")
    assert shortfall.available == Decimal("500")
    assert shop.ledger.get("espresso_shot").quantity == Decimal("10")


def test_check_availability_lists_every_shortfall(shop: Container) -> None:
    plan = {"espresso_shot": Decimal("11"), "milk": Decimal("501")}
    with pytest.raises(InsufficientInventory) as excinfo:
        shop.ledger.check_availability(plan)
    assert [s.ingredient_id for s in excinfo.value.shortfalls] == ["espresso_shot", "milk"]


def test_reserve_unknown_ingredient(shop: Container) -> None:
    with pytest.raises(IngredientNotFound):
        shop.ledger.reserve({"cocoa": Decimal("1")})


def test_consume_to_exactly_zero_is_allowed(shop: Container) -> None:
    shop.ledger.reserve({"milk": Decimal("500")})
    assert shop.ledger.get("milk").quantity == Decimal("0")


def test_low_stock_warning_logged(shop: Container, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="hotcoffee"):
        shop.ledger.consume({"milk": Decimal("450")})
    assert "at or below its minimum" in caplog.text
    assert [item.id for item in shop.ledger.low_stock()] == ["milk"]


def test_timeout_after_apply_counts_as_applied(flaky_shop) -> None:
    flaky_shop.inventory.fail_next("milk", "timeout_applied")
    result = flaky_shop.container.ledger.consume({"milk": Decimal("200")})
    assert result["milk"].quantity == Decimal("300")
    assert flaky_shop.stock("milk") == Decimal("300")


def test_timeout_without_apply_rolls_back_and_fails(flaky_shop) -> None:
    flaky_shop.inventory.fail_next("milk", "timeout_lost")
    with pytest.raises(PersistenceError):
        flaky_shop.container.ledger.consume({"espresso_shot": Decimal("1"), "milk": Decimal("200")})
    assert flaky_shop.stock("milk") == Decimal("500")
    assert flaky_shop.stock("espresso_shot") == Decimal("10")


def test_failed_rollback_of_partial_consume(flaky_shop) -> None:
    # espresso_shot is consumed, milk is refused, then undoing espresso_shot fails.
    flaky_shop.inventory.fail_next("espresso_shot", "error", skip=1)
    with pytest.raises(CompensationFailure) as excinfo:
        flaky_shop.container.ledger.consume({"espresso_shot": Decimal("1"), "milk": Decimal("900")})
    failure = excinfo.value
    assert failure.state["applied_not_undone"] == {"espresso_shot": "1"}
    assert isinstance(failure.original, Exception)
