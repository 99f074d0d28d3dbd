"""Order lifecycle with ingredient reservation.

Every path that touches stock runs as a saga while holding, in this order,
the order's lock (when the order already exists), the recipe locks of every
menu item involved, and the locks of every ingredient it touches.
"""

from __future__ import annotations

import dataclasses
import logging
from contextlib import AbstractContextManager
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from ..core.locks import KeyedLock
from ..domain import (
    ZERO,
    LineItemRequest,
    Order,
    OrderLineItem,
    OrderRequest,
    OrderStatus,
)
from ..errors import (
    AlreadyClosed,
    ClosedOrderImmutable,
    InsufficientInventory,
    OrderNotFound,
    PersistenceError,
    StoreTimeout,
    ValidationError,
)
from ..ids import generate_order_id
from ..repositories import OrderStore
from .ledger import InventoryLedger
from .planner import ReservationPlanner
from .recipes import RecipeResolver
from .saga import Saga

logger = logging.getLogger(__name__)


class OrderFulfillmentCoordinator:
    def __init__(
        self,
        recipes: RecipeResolver,
        planner: ReservationPlanner,
        ledger: InventoryLedger,
        orders: OrderStore,
        *,
        clock: Callable[[], datetime] = datetime.utcnow,
        id_factory: Callable[[], str] = generate_order_id,
    ) -> None:
        self._recipes = recipes
        self._planner = planner
        self._ledger = ledger
        self._orders = orders
        self._clock = clock
        self._id_factory = id_factory
        self._order_locks = KeyedLock()

    # Queries ----------------------------------------------------------------

    def get_order(self, order_id: str) -> Order:
        if not order_id:
            raise ValidationError("order ID is required")
        order = self._orders.get(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        return order

    def list_orders(self, status: Optional[OrderStatus] = None) -> List[Order]:
        orders = self._orders.list(status=status)
        logger.debug("Fetched %s orders", len(orders))
        return orders

    # Commands ---------------------------------------------------------------

    def create_order(self, request: OrderRequest) -> Order:
        try:
            self.validate_request(request)
            with self._recipes.locked(item.product_id for item in request.items):
                order = self.draft_order(request)
                plan = self._planner.plan(order.items)
                with self._ledger.locked(plan):
                    self._ledger.check_availability(plan)
                    saga = Saga("create order", plan=plan, order_id=order.id)
                    saga.step(
                        "consume ingredients", lambda: self._ledger.consume(plan), lambda: self._ledger.restore(plan)
                    )
                    saga.step("persist order", lambda: self._insert(order))
                    saga.run()
        except (ValidationError, InsufficientInventory) as exc:
            logger.warning("Create order rejected: %s", exc)
            raise
        logger.info("Order %s created for %s, total %s", order.id, order.customer_name, order.total_amount)
        return order

    def update_order(self, order_id: str, request: OrderRequest) -> Order:
        try:
            self.validate_request(request)
            with self._order_locks.hold([order_id]):
                existing = self.get_order(order_id)
                if existing.is_closed:
                    raise ClosedOrderImmutable(order_id)
                product_ids = [line.product_id for line in existing.items]
                product_ids += [item.product_id for item in request.items]
                with self._recipes.locked(product_ids):
                    lines, total = self._price(request.items)
                    old_plan = self._planner.plan(existing.items)
                    new_plan = self._planner.plan(lines)
                    updated = dataclasses.replace(
                        existing,
                        customer_name=request.customer_name.strip(),
                        items=lines,
                        total_amount=total,
                        updated_at=self._clock(),
                    )
                    with self._ledger.locked([*old_plan, *new_plan]):
                        saga = Saga(
                            "update order",
                            plan=new_plan,
                            order_id=order_id,
                            previous_plan={key: str(value) for key, value in old_plan.items()},
                        )
                        saga.step(
                            "release previous reservation",
                            lambda: self._ledger.restore(old_plan),
                            lambda: self._ledger.consume(old_plan),
                        )
                        saga.step(
                            "reserve new items",
                            lambda: self._ledger.reserve(new_plan),
                            lambda: self._ledger.restore(new_plan),
                        )
                        saga.step("persist order", lambda: self._update(updated))
                        saga.run()
        except (ValidationError, InsufficientInventory, ClosedOrderImmutable) as exc:
            logger.warning("Update of order %s rejected: %s", order_id, exc)
            raise
        logger.info("Order %s updated, total %s", order_id, updated.total_amount)
        return updated

    def delete_order(self, order_id: str) -> None:
        with self._order_locks.hold([order_id]):
            existing = self.get_order(order_id)
            if existing.is_closed:
                logger.warning("Attempted to delete closed order %s", order_id)
                raise ClosedOrderImmutable(order_id)
            with self._recipes.locked(line.product_id for line in existing.items):
                plan = self._planner.plan(existing.items)
                with self._ledger.locked(plan):
                    saga = Saga("delete order", plan=plan, order_id=order_id)
                    saga.step(
                        "release reservation", lambda: self._ledger.restore(plan), lambda: self._ledger.consume(plan)
                    )
                    saga.step("delete order", lambda: self._delete(order_id))
                    saga.run()
        logger.info("Order %s deleted and its ingredients restored", order_id)

    def close_order(self, order_id: str) -> Order:
        with self._order_locks.hold([order_id]):
            existing = self.get_order(order_id)
            if existing.status != OrderStatus.pending:
                logger.warning("Order %s is already closed", order_id)
                raise AlreadyClosed(order_id)
            closed = dataclasses.replace(existing, status=OrderStatus.closed, updated_at=self._clock())
            self._update(closed)
        logger.info("Order %s closed", order_id)
        return closed

    # Shared with batch admission --------------------------------------------

    def recipes_locked(self, product_ids: Iterable[str]) -> AbstractContextManager[None]:
        """Keep the recipes of ``product_ids`` fixed while reservations are planned from them."""
        return self._recipes.locked(product_ids)

    def validate_request(self, request: OrderRequest, *, order_index: Optional[int] = None) -> None:
        prefix = f"order {order_index}: " if order_index is not None else ""
        if not request.customer_name or not request.customer_name.strip():
            raise ValidationError(f"{prefix}customer name is required", order_index=order_index)
        if not request.items:
            raise ValidationError(f"{prefix}order must have at least one item", order_index=order_index)
        for position, item in enumerate(request.items, start=1):
            if not item.product_id:
                raise ValidationError(
                    f"{prefix}item {position}: product ID is required", order_index=order_index
                )
            if isinstance(item.quantity, bool) or not isinstance(item.quantity, int) or item.quantity <= 0:
                raise ValidationError(
                    f"{prefix}item {position}: quantity must be a positive integer", order_index=order_index
                )

    def draft_order(self, request: OrderRequest) -> Order:
        """Price a validated request into a pending order that is not stored yet."""
        lines, total = self._price(request.items)
        now = self._clock()
        return Order(
            id=self._id_factory(),
            customer_name=request.customer_name.strip(),
            items=lines,
            status=OrderStatus.pending,
            total_amount=total,
            created_at=now,
            updated_at=now,
        )

    def insert_many(self, orders: Sequence[Order]) -> None:
        self._write_verified(
            "insert orders",
            lambda: self._orders.insert_many(orders),
            lambda: all(self._orders.get(order.id) is not None for order in orders),
        )

    def remove_many(self, order_ids: Sequence[str]) -> None:
        self._write_verified(
            "remove orders",
            lambda: self._orders.delete_many(order_ids),
            lambda: all(self._orders.get(order_id) is None for order_id in order_ids),
        )

    # Internals --------------------------------------------------------------

    def _price(self, items: Sequence[LineItemRequest]) -> Tuple[List[OrderLineItem], Decimal]:
        lines: List[OrderLineItem] = []
        total = ZERO
        for position, item in enumerate(items, start=1):
            menu_item = self._recipes.menu_item(item.product_id)
            if not menu_item.available:
                raise ValidationError(
                    f"item {position}: '{item.product_id}' is not available", product_id=item.product_id
                )
            lines.append(
                OrderLineItem(product_id=item.product_id, quantity=item.quantity, price_at_time=menu_item.price)
            )
            total += menu_item.price * item.quantity
        return lines, total

    def _insert(self, order: Order) -> None:
        self._write_verified(
            f"insert order {order.id}",
            lambda: self._orders.insert(order),
            lambda: self._orders.get(order.id) is not None,
        )

    def _update(self, order: Order) -> None:
        def applied() -> bool:
            stored = self._orders.get(order.id)
            return stored is not None and (stored.status, stored.items, stored.customer_name) == (
                order.status,
                order.items,
                order.customer_name,
            )

        self._write_verified(f"update order {order.id}", lambda: self._orders.update(order), applied)

    def _delete(self, order_id: str) -> None:
        self._write_verified(
            f"delete order {order_id}",
            lambda: self._orders.delete(order_id),
            lambda: self._orders.get(order_id) is None,
        )

    def _write_verified(self, operation: str, write: Callable[[], None], applied: Callable[[], bool]) -> None:
        try:
            write()
        except StoreTimeout as exc:
            logger.warning("%s timed out; re-reading order state", operation)
            if applied():
                logger.warning("%s was applied despite the timeout", operation)
                return
            raise PersistenceError(f"{operation} was not applied", operation=operation) from exc
        except PersistenceError:
            logger.error("%s failed", operation, exc_info=True)
            raise
