"""Builds one set of stores and services that share a single ledger."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .core.config import Settings, get_settings
from .database import init_db, make_engine, make_session_factory
from .repositories import (
    InMemoryInventoryStore,
    InMemoryMenuCatalog,
    InMemoryOrderStore,
    InventoryStore,
    MenuCatalog,
    OrderStore,
    SqlInventoryStore,
    SqlMenuCatalog,
    SqlOrderStore,
)
from .services.batch import BatchAdmissionController
from .services.inventory import InventoryService
from .services.ledger import InventoryLedger
from .services.menu import MenuService
from .services.orders import OrderFulfillmentCoordinator
from .services.planner import ReservationPlanner
from .services.recipes import RecipeResolver


@dataclass
class Container:
    catalog: MenuCatalog
    inventory_store: InventoryStore
    order_store: OrderStore
    recipes: RecipeResolver
    planner: ReservationPlanner
    ledger: InventoryLedger
    orders: OrderFulfillmentCoordinator
    batch: BatchAdmissionController
    menu: MenuService
    inventory: InventoryService


def build_container(catalog: MenuCatalog, inventory_store: InventoryStore, order_store: OrderStore) -> Container:
    recipes = RecipeResolver(catalog)
    planner = ReservationPlanner(recipes)
    ledger = InventoryLedger(inventory_store)
    coordinator = OrderFulfillmentCoordinator(recipes, planner, ledger, order_store)
    return Container(
        catalog=catalog,
        inventory_store=inventory_store,
        order_store=order_store,
        recipes=recipes,
        planner=planner,
        ledger=ledger,
        orders=coordinator,
        batch=BatchAdmissionController(coordinator, planner, ledger),
        menu=MenuService(catalog, inventory_store, order_store, recipes),
        inventory=InventoryService(inventory_store, ledger, catalog),
    )


def memory_container() -> Container:
    return build_container(InMemoryMenuCatalog(), InMemoryInventoryStore(), InMemoryOrderStore())


def sql_container(database_url: str, *, timeout_seconds: float = 5.0) -> Container:
    engine = make_engine(database_url, timeout_seconds=timeout_seconds)
    init_db(engine)
    sessions = make_session_factory(engine)
    return build_container(SqlMenuCatalog(sessions), SqlInventoryStore(sessions), SqlOrderStore(sessions))


def container_from_settings(settings: Optional[Settings] = None) -> Container:
    settings = settings or get_settings()
    if settings.STORAGE_BACKEND == "memory":
        return memory_container()
    return sql_container(settings.DATABASE_URL, timeout_seconds=settings.STORE_TIMEOUT_SECONDS)
