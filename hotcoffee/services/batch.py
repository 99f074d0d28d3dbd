from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, List, Sequence

from ..domain import (
    ZERO,
    BatchOrderResult,
    BatchResult,
    BatchSummary,
    InventoryItem,
    InventoryUpdate,
    Order,
    OrderRequest,
    Plan,
)
from ..errors import InsufficientInventory, PersistenceError, RecipeNotFound, ValidationError
from .ledger import InventoryLedger
from .orders import OrderFulfillmentCoordinator
from .planner import ReservationPlanner
from .saga import Saga

logger = logging.getLogger(__name__)

REJECTED_INSUFFICIENT = "insufficient_inventory"
REJECTED_PROCESSING = "processing_error"


class BatchAdmissionController:
    """Admits a group of orders all-or-nothing against one combined plan."""

    def __init__(
        self,
        coordinator: OrderFulfillmentCoordinator,
        planner: ReservationPlanner,
        ledger: InventoryLedger,
    ) -> None:
        self._coordinator = coordinator
        self._planner = planner
        self._ledger = ledger

    def process_batch(self, requests: Sequence[OrderRequest]) -> BatchResult:
        logger.info("Starting batch order processing for %s orders", len(requests))
        if not requests:
            raise ValidationError("no orders provided for processing")

        product_ids = {item.product_id for request in requests for item in request.items}
        with self._coordinator.recipes_locked(product_ids):
            drafts = self._draft_all(requests)
            plan = self._planner.plan_many(order.items for order in drafts)

            with self._ledger.locked(plan):
                shortfalls = self._ledger.shortfalls(plan)
                if shortfalls:
                    logger.warning("Batch rejected, insufficient inventory: %s", InsufficientInventory(shortfalls))
                    return self._rejected(drafts, REJECTED_INSUFFICIENT)

                saga = Saga("batch admission", plan=plan, order_ids=[order.id for order in drafts])
                saga.step(
                    "persist orders",
                    lambda: self._coordinator.insert_many(drafts),
                    lambda: self._coordinator.remove_many([order.id for order in drafts]),
                )
                saga.step("consume ingredients", lambda: self._ledger.consume(plan))
                try:
                    results = saga.run()
                except InsufficientInventory:
                    logger.warning("Batch rejected, stock changed underneath the combined check")
                    return self._rejected(drafts, REJECTED_INSUFFICIENT)
                except PersistenceError:
                    logger.error("Batch rejected after %s failed", saga.failed_step)
                    return self._rejected(drafts, REJECTED_PROCESSING)

        result = self._accepted(drafts, plan, results["consume ingredients"])
        logger.info(
            "Completed batch order processing: %s accepted, revenue %s",
            result.summary.accepted,
            result.summary.total_revenue,
        )
        return result

    def _draft_all(self, requests: Sequence[OrderRequest]) -> List[Order]:
        drafts: List[Order] = []
        for index, request in enumerate(requests):
            self._coordinator.validate_request(request, order_index=index)
            try:
                drafts.append(self._coordinator.draft_order(request))
            except RecipeNotFound as exc:
                logger.warning("Batch order %s references unknown menu item %s", index, exc.menu_item_id)
                raise RecipeNotFound(exc.menu_item_id, order_index=index) from exc
            except ValidationError as exc:
                raise ValidationError(f"order {index}: {exc.message}", order_index=index) from exc
        return drafts

    def _rejected(self, drafts: Sequence[Order], reason: str) -> BatchResult:
        processed = [
            BatchOrderResult(customer_name=order.customer_name, status="rejected", reason=reason)
            for order in drafts
        ]
        summary = BatchSummary(
            total_orders=len(drafts),
            accepted=0,
            rejected=len(drafts),
            total_revenue=ZERO,
        )
        return BatchResult(processed_orders=processed, summary=summary)

    def _accepted(
        self,
        drafts: Sequence[Order],
        plan: Plan,
        remaining: Dict[str, InventoryItem],
    ) -> BatchResult:
        processed = [
            BatchOrderResult(
                customer_name=order.customer_name,
                status="accepted",
                order_id=order.id,
                total=order.total_amount,
            )
            for order in drafts
        ]
        revenue: Decimal = sum((order.total_amount for order in drafts), ZERO)
        updates = [
            InventoryUpdate(
                ingredient_id=ingredient_id,
                name=remaining[ingredient_id].name,
                quantity_used=used,
                remaining=remaining[ingredient_id].quantity,
            )
            for ingredient_id, used in plan.items()
        ]
        summary = BatchSummary(
            total_orders=len(drafts),
            accepted=len(drafts),
            rejected=0,
            total_revenue=revenue,
            inventory_updates=updates,
        )
        return BatchResult(processed_orders=processed, summary=summary)
