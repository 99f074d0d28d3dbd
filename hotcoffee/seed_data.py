from __future__ import annotations

import logging
from decimal import Decimal

from .container import Container, container_from_settings
from .core.logging import configure_logging
from .domain import MenuCategory
from .services.menu import requirements

logger = logging.getLogger(__name__)

INGREDIENTS = [
    # id, name, quantity, unit, min_threshold
    ("espresso_shot", "Espresso Shot", "500", "shots", "50"),
    ("milk", "Milk", "5000", "ml", "500"),
    ("flour", "Flour", "10000", "g", "1000"),
    ("blueberries", "Blueberries", "2000", "g", "200"),
    ("sugar", "Sugar", "5000", "g", "500"),
    ("tea_leaves", "Black Tea Leaves", "1000", "g", "100"),
]

MENU = [
    ("Caffe Latte", "3.50", MenuCategory.coffee, "Espresso with steamed milk",
     [("espresso_shot", "1"), ("milk", "200")]),
    ("Espresso", "2.50", MenuCategory.coffee, "Strong and bold coffee", [("espresso_shot", "1")]),
    ("Blueberry Muffin", "2.00", MenuCategory.pastry, "Freshly baked muffin with blueberries",
     [("flour", "100"), ("blueberries", "20"), ("sugar", "30")]),
    ("Black Tea", "2.00", MenuCategory.tea, "Loose leaf black tea", [("tea_leaves", "5")]),
]


def seed(container: Container) -> bool:
    """Load the starter menu and stock; returns False if data already exists."""
    if container.inventory.list_ingredients():
        logger.info("Database already seeded; skipping.")
        return False
    for ingredient_id, name, quantity, unit, threshold in INGREDIENTS:
        container.inventory.add_ingredient(
            name, Decimal(quantity), unit, ingredient_id=ingredient_id, min_threshold=Decimal(threshold)
        )
    for name, price, category, description, recipe in MENU:
        container.menu.create_menu_item(
            name, Decimal(price), requirements(recipe), description=description, category=category
        )
    logger.info("Seeded %s ingredients and %s menu items", len(INGREDIENTS), len(MENU))
    return True


def main() -> None:
    configure_logging()
    seed(container_from_settings())


if __name__ == "__main__":
    main()
