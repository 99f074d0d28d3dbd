"""Plain domain records exchanged between the services and the stores.

Stores hand out copies of these objects; mutating one never changes
persisted state.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

# Aggregated ingredient demand: ingredient id -> total quantity.
Plan = Dict[str, Decimal]

ZERO = Decimal("0")


def to_decimal(value: object) -> Decimal:
    """Coerce ints, floats and strings without binary float artefacts."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class OrderStatus(str, enum.Enum):
    pending = "pending"
    closed = "closed"


class MenuCategory(str, enum.Enum):
    coffee = "coffee"
    tea = "tea"
    pastry = "pastry"
    sandwich = "sandwich"
    drink = "drink"


@dataclass(frozen=True)
class IngredientRequirement:
    ingredient_id: str
    quantity_per_unit: Decimal


@dataclass
class MenuItem:
    id: str
    name: str
    price: Decimal
    ingredients: List[IngredientRequirement] = field(default_factory=list)
    description: str = ""
    category: MenuCategory = MenuCategory.coffee
    available: bool = True


@dataclass
class InventoryItem:
    id: str
    name: str
    quantity: Decimal
    unit: str
    min_threshold: Decimal = ZERO

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.min_threshold


@dataclass(frozen=True)
class OrderLineItem:
    product_id: str
    quantity: int
    price_at_time: Decimal


@dataclass
class Order:
    id: str
    customer_name: str
    items: List[OrderLineItem]
    status: OrderStatus
    total_amount: Decimal
    created_at: datetime
    updated_at: datetime

    @property
    def is_closed(self) -> bool:
        return self.status == OrderStatus.closed


@dataclass(frozen=True)
class LineItemRequest:
    product_id: str
    quantity: int


@dataclass
class OrderRequest:
    customer_name: str
    items: List[LineItemRequest] = field(default_factory=list)


@dataclass(frozen=True)
class Shortfall:
    ingredient_id: str
    needed: Decimal
    available: Decimal


@dataclass
class BatchOrderResult:
    customer_name: str
    status: str
    order_id: Optional[str] = None
    total: Decimal = ZERO
    reason: Optional[str] = None


@dataclass
class InventoryUpdate:
    ingredient_id: str
    name: str
    quantity_used: Decimal
    remaining: Decimal


@dataclass
class BatchSummary:
    total_orders: int
    accepted: int
    rejected: int
    total_revenue: Decimal
    inventory_updates: List[InventoryUpdate] = field(default_factory=list)


@dataclass
class BatchResult:
    processed_orders: List[BatchOrderResult]
    summary: BatchSummary
