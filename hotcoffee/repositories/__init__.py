"""Storage ports and their in-memory and relational implementations."""

from .base import InventoryStore, MenuCatalog, OrderStore
from .memory import InMemoryInventoryStore, InMemoryMenuCatalog, InMemoryOrderStore
from .sql import SqlInventoryStore, SqlMenuCatalog, SqlOrderStore

__all__ = [
    "InventoryStore",
    "MenuCatalog",
    "OrderStore",
    "InMemoryInventoryStore",
    "InMemoryMenuCatalog",
    "InMemoryOrderStore",
    "SqlInventoryStore",
    "SqlMenuCatalog",
    "SqlOrderStore",
]
