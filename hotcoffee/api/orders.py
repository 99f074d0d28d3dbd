from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Query, Response, status

from .. import schemas
from ..domain import OrderStatus
from .dependencies import Services
from .serializers import batch_result as serialize_batch
from .serializers import order as serialize_order
from .serializers import order_request

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.post("", response_model=schemas.OrderOut, status_code=status.HTTP_201_CREATED)
def create_order(payload: schemas.OrderCreate, services: Services):
    order = services.orders.create_order(order_request(payload))
    return serialize_order(order)


@router.get("", response_model=List[schemas.OrderOut])
def list_orders(
    services: Services,
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
):
    return [serialize_order(order) for order in services.orders.list_orders(status=status_filter)]


@router.post("/batch-process", response_model=schemas.BatchResultOut)
def batch_process(payload: schemas.BatchOrderRequest, services: Services):
    result = services.batch.process_batch([order_request(order) for order in payload.orders])
    return serialize_batch(result)


@router.get("/{order_id}", response_model=schemas.OrderOut)
def get_order(order_id: str, services: Services):
    return serialize_order(services.orders.get_order(order_id))


@router.put("/{order_id}", response_model=schemas.OrderOut)
def update_order(order_id: str, payload: schemas.OrderUpdate, services: Services):
    order = services.orders.update_order(order_id, order_request(payload))
    return serialize_order(order)


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_order(order_id: str, services: Services):
    services.orders.delete_order(order_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{order_id}/close", response_model=schemas.OrderOut)
def close_order(order_id: str, services: Services):
    return serialize_order(services.orders.close_order(order_id))
