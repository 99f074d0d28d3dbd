from __future__ import annotations

from decimal import Decimal
from typing import Dict, Iterable, Union

from ..domain import ZERO, LineItemRequest, OrderLineItem, Plan
from .recipes import RecipeResolver

LineItem = Union[LineItemRequest, OrderLineItem]


class ReservationPlanner:
    """Turns order lines into total ingredient demand."""

    def __init__(self, recipes: RecipeResolver) -> None:
        self._recipes = recipes

    def plan(self, line_items: Iterable[LineItem]) -> Plan:
        totals: Dict[str, Decimal] = {}
        for line in line_items:
            for requirement in self._recipes.resolve(line.product_id):
                needed = requirement.quantity_per_unit * line.quantity
                totals[requirement.ingredient_id] = totals.get(requirement.ingredient_id, ZERO) + needed
        # Sorted keys keep the plan, and the order stock is touched in, deterministic.
        return {ingredient_id: totals[ingredient_id] for ingredient_id in sorted(totals)}

    def plan_many(self, groups: Iterable[Iterable[LineItem]]) -> Plan:
        """One combined plan across several orders' lines."""
        return self.plan(line for lines in groups for line in lines)
