"""Ingredient stock ledger.

The ledger is the only writer of inventory quantities. Every change goes
through the store's conditional adjust while the ingredient's lock is held,
so a check followed by a consume cannot be interleaved by another caller
in this process, and the store refuses to go negative across processes.
"""

from __future__ import annotations

import dataclasses
import logging
from contextlib import AbstractContextManager
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from ..core.locks import KeyedLock
from ..domain import InventoryItem, Plan, Shortfall
from ..errors import (
    AdjustConflict,
    CompensationFailure,
    HotCoffeeError,
    IngredientNotFound,
    InsufficientInventory,
    LedgerInvariantError,
    PersistenceError,
    StoreTimeout,
)
from ..repositories import InventoryStore

logger = logging.getLogger(__name__)


class InventoryLedger:
    def __init__(self, store: InventoryStore, locks: Optional[KeyedLock] = None) -> None:
        self._store = store
        self._locks = locks or KeyedLock()

    def locked(self, ingredient_ids: Iterable[str]) -> AbstractContextManager[None]:
        """Hold the given ingredients exclusively; re-entrant for the holding thread."""
        return self._locks.hold(ingredient_ids)

    def get(self, ingredient_id: str) -> InventoryItem:
        item = self._store.get(ingredient_id)
        if item is None:
            raise IngredientNotFound(ingredient_id)
        return item

    def snapshot(self, ingredient_ids: Optional[Iterable[str]] = None) -> Dict[str, Decimal]:
        if ingredient_ids is None:
            return {item.id: item.quantity for item in self._store.list()}
        return {ingredient_id: self.get(ingredient_id).quantity for ingredient_id in ingredient_ids}

    def low_stock(self) -> List[InventoryItem]:
        return [item for item in self._store.list() if item.is_low_stock]

    def shortfalls(self, plan: Plan) -> List[Shortfall]:
        missing: List[Shortfall] = []
        for ingredient_id, needed in plan.items():
            available = self.get(ingredient_id).quantity
            if available < needed:
                missing.append(Shortfall(ingredient_id=ingredient_id, needed=needed, available=available))
        return missing

    def check_availability(self, plan: Plan) -> None:
        missing = self.shortfalls(plan)
        if missing:
            raise InsufficientInventory(missing)

    def reserve(self, plan: Plan) -> Dict[str, InventoryItem]:
        """Check and consume under one hold of the plan's ingredient locks."""
        with self.locked(plan):
            self.check_availability(plan)
            return self.consume(plan)

    def consume(self, plan: Plan) -> Dict[str, InventoryItem]:
        """Decrement every planned ingredient, or none of them."""
        with self.locked(plan):
            applied: Dict[str, Decimal] = {}
            updated: Dict[str, InventoryItem] = {}
            for ingredient_id, amount in plan.items():
                try:
                    item = self._adjust(ingredient_id, -amount)
                except AdjustConflict as exc:
                    self._undo("consume", applied, sign=1, original=exc, plan=plan)
                    missing = self.shortfalls(plan) or [
                        Shortfall(ingredient_id, amount, self.get(ingredient_id).quantity)
                    ]
                    raise InsufficientInventory(missing) from exc
                except HotCoffeeError as exc:
                    self._undo("consume", applied, sign=1, original=exc, plan=plan)
                    raise
                if item.quantity < 0:
                    raise LedgerInvariantError(
                        f"ingredient '{ingredient_id}' went negative ({item.quantity}) after consume"
                    )
                applied[ingredient_id] = amount
                updated[ingredient_id] = item
                logger.debug("Consumed %s of %s, remaining %s", amount, ingredient_id, item.quantity)
                if item.is_low_stock:
                    logger.warning(
                        "Ingredient %s at %s %s is at or below its minimum of %s",
                        ingredient_id,
                        item.quantity,
                        item.unit,
                        item.min_threshold,
                    )
            return updated

    def restore(self, plan: Plan) -> Dict[str, InventoryItem]:
        """Increment every planned ingredient, or none of them."""
        with self.locked(plan):
            applied: Dict[str, Decimal] = {}
            updated: Dict[str, InventoryItem] = {}
            for ingredient_id, amount in plan.items():
                try:
                    item = self._adjust(ingredient_id, amount)
                except HotCoffeeError as exc:
                    self._undo("restore", applied, sign=-1, original=exc, plan=plan)
                    raise
                applied[ingredient_id] = amount
                updated[ingredient_id] = item
                logger.debug("Restored %s of %s, now %s", amount, ingredient_id, item.quantity)
            return updated

    def _adjust(self, ingredient_id: str, delta: Decimal) -> InventoryItem:
        before = self.get(ingredient_id)
        try:
            quantity = self._store.conditional_adjust(ingredient_id, delta)
        except StoreTimeout as exc:
            quantity = self._verify_after_timeout(before, delta, exc)
        return dataclasses.replace(before, quantity=quantity)

    def _verify_after_timeout(self, before: InventoryItem, delta: Decimal, exc: StoreTimeout) -> Decimal:
        logger.warning("Adjust of %s by %s timed out; re-reading stock", before.id, delta)
        try:
            current = self.get(before.id).quantity
        except HotCoffeeError as read_exc:
            raise CompensationFailure(
                "verify inventory adjust",
                original=exc,
                errors=[read_exc],
                plan={before.id: delta},
                state={"outcome": "unknown", "quantity_before": str(before.quantity)},
            ) from exc
        if current == before.quantity + delta:
            logger.warning("Adjust of %s by %s was applied despite the timeout", before.id, delta)
            return current
        if current == before.quantity:
            raise PersistenceError(
                f"adjust of '{before.id}' by {delta} was not applied",
                ingredient_id=before.id,
            ) from exc
        raise CompensationFailure(
            "verify inventory adjust",
            original=exc,
            errors=[],
            plan={before.id: delta},
            state={
                "outcome": "unexpected quantity",
                "quantity_before": str(before.quantity),
                "quantity_now": str(current),
            },
        ) from exc

    def _undo(
        self,
        operation: str,
        applied: Dict[str, Decimal],
        *,
        sign: int,
        original: BaseException,
        plan: Plan,
    ) -> None:
        errors: List[BaseException] = []
        not_undone: Dict[str, str] = {}
        for ingredient_id, amount in reversed(list(applied.items())):
            try:
                self._store.conditional_adjust(ingredient_id, amount * sign)
            except HotCoffeeError as exc:
                errors.append(exc)
                not_undone[ingredient_id] = str(amount)
        if errors:
            logger.critical("Rolling back partial %s failed for %s", operation, sorted(not_undone))
            raise CompensationFailure(
                operation,
                original=original,
                errors=errors,
                plan=plan,
                state={"applied_not_undone": not_undone},
            ) from original
