from __future__ import annotations

from fastapi import FastAPI

from . import inventory, menu, orders
from .errors import register_error_handlers


def register_routers(app: FastAPI) -> None:
    app.include_router(orders.router)
    app.include_router(menu.router)
    app.include_router(inventory.router)
    register_error_handlers(app)
