"""Domain services for the HotCoffee API."""

from . import batch, inventory, ledger, menu, orders, planner, recipes, saga

__all__ = [
    "batch",
    "inventory",
    "ledger",
    "menu",
    "orders",
    "planner",
    "recipes",
    "saga",
]
