"""Error kinds raised by the services.

The HTTP adapter maps each kind to a status code; everything else about
transport lives outside the services.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from .domain import Plan, Shortfall


class HotCoffeeError(Exception):
    def __init__(self, message: str, **detail: Any) -> None:
        super().__init__(message)
        self.message = message
        self.detail: Dict[str, Any] = detail


class ValidationError(HotCoffeeError):
    """Malformed request; raised before any side effect."""

    def __init__(self, message: str, *, order_index: Optional[int] = None, **detail: Any) -> None:
        if order_index is not None:
            detail["order_index"] = order_index
        super().__init__(message, **detail)
        self.order_index = order_index


class NotFound(HotCoffeeError):
    pass


class RecipeNotFound(NotFound):
    def __init__(self, menu_item_id: str, **detail: Any) -> None:
        super().__init__(f"menu item '{menu_item_id}' not found", menu_item_id=menu_item_id, **detail)
        self.menu_item_id = menu_item_id


class IngredientNotFound(NotFound):
    def __init__(self, ingredient_id: str) -> None:
        super().__init__(f"ingredient '{ingredient_id}' not found", ingredient_id=ingredient_id)
        self.ingredient_id = ingredient_id


class OrderNotFound(NotFound):
    def __init__(self, order_id: str) -> None:
        super().__init__(f"order '{order_id}' not found", order_id=order_id)
        self.order_id = order_id


class InsufficientInventory(HotCoffeeError):
    def __init__(self, shortfalls: Sequence[Shortfall]) -> None:
        self.shortfalls: List[Shortfall] = list(shortfalls)
        parts = ", ".join(
            f"'{s.ingredient_id}' (need {s.needed}, have {s.available})" for s in self.shortfalls
        )
        super().__init__(
            f"insufficient inventory for {parts}",
            shortfalls=[
                {"ingredient_id": s.ingredient_id, "needed": str(s.needed), "available": str(s.available)}
                for s in self.shortfalls
            ],
        )


class ClosedOrderImmutable(HotCoffeeError):
    def __init__(self, order_id: str) -> None:
        super().__init__(f"order '{order_id}' is closed and cannot be modified", order_id=order_id)


class AlreadyClosed(HotCoffeeError):
    def __init__(self, order_id: str) -> None:
        super().__init__(f"order '{order_id}' is already closed", order_id=order_id)


class InUseError(HotCoffeeError):
    pass


class PersistenceError(HotCoffeeError):
    """Storage I/O failure."""


class StoreTimeout(PersistenceError):
    """The store did not answer in time; the write may or may not have happened."""


class AdjustConflict(HotCoffeeError):
    """A conditional adjust was refused because it would drive stock negative."""

    def __init__(self, ingredient_id: str, delta: Any) -> None:
        super().__init__(
            f"conditional adjust of '{ingredient_id}' by {delta} refused",
            ingredient_id=ingredient_id,
            delta=str(delta),
        )
        self.ingredient_id = ingredient_id


class CompensationFailure(HotCoffeeError):
    """A rollback step failed; the ledger may be inconsistent and needs an operator."""

    def __init__(
        self,
        operation: str,
        *,
        original: Optional[BaseException],
        errors: Sequence[BaseException],
        plan: Optional[Plan] = None,
        state: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.operation = operation
        self.original = original
        self.errors = list(errors)
        self.plan = dict(plan or {})
        self.state = dict(state or {})
        super().__init__(
            f"compensation failed during {operation}",
            operation=operation,
            original_error=str(original) if original else None,
            compensation_errors=[str(err) for err in self.errors],
            plan={key: str(value) for key, value in self.plan.items()},
            state=self.state,
        )


class LedgerInvariantError(RuntimeError):
    """A committed adjust left an ingredient below zero."""
