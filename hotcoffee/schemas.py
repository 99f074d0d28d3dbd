from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .domain import MenuCategory, OrderStatus


class IngredientRequirementIn(BaseModel):
    ingredient_id: str = Field(..., max_length=64)
    quantity: Decimal = Field(..., description="Quantity of the ingredient used per unit sold.")


class IngredientRequirementOut(IngredientRequirementIn):
    pass


class MenuItemCreate(BaseModel):
    name: str = Field(..., max_length=255)
    description: str = ""
    category: str = MenuCategory.coffee.value
    price: Decimal
    available: bool = True
    ingredients: List[IngredientRequirementIn] = Field(default_factory=list)


class MenuItemUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = None
    price: Optional[Decimal] = None
    available: Optional[bool] = None
    ingredients: Optional[List[IngredientRequirementIn]] = None


class MenuItemOut(BaseModel):
    product_id: str
    name: str
    description: str
    category: MenuCategory
    price: Decimal
    available: bool
    ingredients: List[IngredientRequirementOut]


class InventoryItemCreate(BaseModel):
    ingredient_id: Optional[str] = Field(None, max_length=64)
    name: str = Field(..., max_length=255)
    quantity: Decimal
    unit: str = Field(..., max_length=32)
    min_threshold: Decimal = Decimal("0")


class InventoryItemUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    unit: Optional[str] = Field(None, max_length=32)
    min_threshold: Optional[Decimal] = None


class RestockRequest(BaseModel):
    amount: Decimal


class InventoryItemOut(BaseModel):
    ingredient_id: str
    name: str
    quantity: Decimal
    unit: str
    min_threshold: Decimal
    is_low_stock: bool = Field(False, description="True when quantity is at or below min_threshold.")


# Orders: only JSON types are enforced here; the order rules live in the services.
class OrderItemIn(BaseModel):
    product_id: str = ""
    quantity: int = 0


class OrderCreate(BaseModel):
    customer_name: str = ""
    items: List[OrderItemIn] = Field(default_factory=list)


class OrderUpdate(OrderCreate):
    pass


class OrderItemOut(BaseModel):
    product_id: str
    quantity: int
    price_at_time: Decimal

    class Config:
        from_attributes = True


class OrderOut(BaseModel):
    order_id: str
    customer_name: str
    items: List[OrderItemOut]
    status: OrderStatus
    total_amount: Decimal
    created_at: datetime
    updated_at: datetime


class BatchOrderRequest(BaseModel):
    orders: List[OrderCreate] = Field(default_factory=list)


class BatchOrderResultOut(BaseModel):
    order_id: Optional[str] = None
    customer_name: str
    status: str
    total: Decimal = Decimal("0")
    reason: Optional[str] = None

    class Config:
        from_attributes = True


class InventoryUpdateOut(BaseModel):
    ingredient_id: str
    name: str
    quantity_used: Decimal
    remaining: Decimal

    class Config:
        from_attributes = True


class BatchSummaryOut(BaseModel):
    total_orders: int
    accepted: int
    rejected: int
    total_revenue: Decimal
    inventory_updates: List[InventoryUpdateOut] = Field(default_factory=list)

    class Config:
        from_attributes = True


class BatchResultOut(BaseModel):
    processed_orders: List[BatchOrderResultOut]
    summary: BatchSummaryOut

    class Config:
        from_attributes = True


class ErrorOut(BaseModel):
    error: str
    detail: Dict[str, Any] = Field(default_factory=dict)
