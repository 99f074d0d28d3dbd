from __future__ import annotations

from .. import domain, schemas


def menu_item(item: domain.MenuItem) -> schemas.MenuItemOut:
    return schemas.MenuItemOut(
        product_id=item.id,
        name=item.name,
        description=item.description,
        category=item.category,
        price=item.price,
        available=item.available,
        ingredients=[
            schemas.IngredientRequirementOut(ingredient_id=req.ingredient_id, quantity=req.quantity_per_unit)
            for req in item.ingredients
        ],
    )


def inventory_item(item: domain.InventoryItem) -> schemas.InventoryItemOut:
    return schemas.InventoryItemOut(
        ingredient_id=item.id,
        name=item.name,
        quantity=item.quantity,
        unit=item.unit,
        min_threshold=item.min_threshold,
        is_low_stock=item.is_low_stock,
    )


def order(order: domain.Order) -> schemas.OrderOut:
    return schemas.OrderOut(
        order_id=order.id,
        customer_name=order.customer_name,
        items=[schemas.OrderItemOut.model_validate(line, from_attributes=True) for line in order.items],
        status=order.status,
        total_amount=order.total_amount,
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


def order_request(payload: schemas.OrderCreate) -> domain.OrderRequest:
    return domain.OrderRequest(
        customer_name=payload.customer_name,
        items=[domain.LineItemRequest(product_id=item.product_id, quantity=item.quantity) for item in payload.items],
    )


def batch_result(result: domain.BatchResult) -> schemas.BatchResultOut:
    return schemas.BatchResultOut.model_validate(result, from_attributes=True)
