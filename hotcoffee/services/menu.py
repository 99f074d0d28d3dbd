from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from ..domain import IngredientRequirement, MenuCategory, MenuItem, OrderStatus, to_decimal
from ..errors import IngredientNotFound, InUseError, RecipeNotFound, ValidationError
from ..ids import slugify
from ..repositories import InventoryStore, MenuCatalog, OrderStore
from .recipes import RecipeResolver

logger = logging.getLogger(__name__)


class MenuService:
    def __init__(
        self,
        catalog: MenuCatalog,
        inventory: InventoryStore,
        orders: OrderStore,
        recipes: RecipeResolver,
    ) -> None:
        self._catalog = catalog
        self._inventory = inventory
        self._orders = orders
        self._recipes = recipes

    def list_menu_items(self) -> List[MenuItem]:
        return self._catalog.list()

    def get_menu_item(self, menu_item_id: str) -> MenuItem:
        item = self._catalog.get(menu_item_id)
        if item is None:
            raise RecipeNotFound(menu_item_id)
        return item

    def create_menu_item(
        self,
        name: str,
        price: Decimal,
        ingredients: Sequence[IngredientRequirement],
        *,
        description: str = "",
        category: MenuCategory | str = MenuCategory.coffee,
        available: bool = True,
    ) -> MenuItem:
        item = MenuItem(
            id=self._unique_id(name),
            name=(name or "").strip(),
            price=to_decimal(price),
            ingredients=list(ingredients),
            description=description or "",
            category=self._category(category),
            available=available,
        )
        self._validate(item)
        self._catalog.add(item)
        logger.info("Menu item %s created", item.id)
        return item

    def update_menu_item(
        self,
        menu_item_id: str,
        *,
        name: Optional[str] = None,
        price: Optional[Decimal] = None,
        ingredients: Optional[Sequence[IngredientRequirement]] = None,
        description: Optional[str] = None,
        category: MenuCategory | str | None = None,
        available: Optional[bool] = None,
    ) -> MenuItem:
        with self._recipes.locked([menu_item_id]):
            item = self.get_menu_item(menu_item_id)
            if name is not None:
                item.name = name.strip()
            if price is not None:
                item.price = to_decimal(price)
            if description is not None:
                item.description = description
            if category is not None:
                item.category = self._category(category)
            if available is not None:
                item.available = available
            if ingredients is not None:
                new_recipe = list(ingredients)
                if new_recipe != item.ingredients:
                    # Pending orders derive their reservation from the current recipe.
                    self._ensure_not_in_pending_orders(menu_item_id)
                item.ingredients = new_recipe
            self._validate(item)
            self._catalog.update(item)
        logger.info("Menu item %s updated", menu_item_id)
        return item

    def delete_menu_item(self, menu_item_id: str) -> None:
        with self._recipes.locked([menu_item_id]):
            self.get_menu_item(menu_item_id)
            self._ensure_not_in_pending_orders(menu_item_id)
            self._catalog.delete(menu_item_id)
        logger.info("Menu item %s deleted", menu_item_id)

    def _validate(self, item: MenuItem) -> None:
        if not item.name:
            raise ValidationError("name is required")
        if item.price < 0:
            raise ValidationError("price must be non-negative")
        if not item.ingredients:
            raise ValidationError("menu item must have at least 1 ingredient")
        for position, requirement in enumerate(item.ingredients, start=1):
            if not requirement.ingredient_id:
                raise ValidationError(f"ingredient {position}: ID is required")
            if requirement.quantity_per_unit <= 0:
                raise ValidationError(f"ingredient {position}: quantity must be positive")
            if self._inventory.get(requirement.ingredient_id) is None:
                logger.warning("Recipe for %s references unknown ingredient %s", item.id, requirement.ingredient_id)
                raise IngredientNotFound(requirement.ingredient_id)

    def _ensure_not_in_pending_orders(self, menu_item_id: str) -> None:
        for order in self._orders.list(status=OrderStatus.pending):
            if any(line.product_id == menu_item_id for line in order.items):
                raise InUseError(
                    f"menu item '{menu_item_id}' is used in open order '{order.id}'",
                    menu_item_id=menu_item_id,
                    order_id=order.id,
                )

    def _unique_id(self, name: str) -> str:
        base = slugify(name or "")
        candidate, suffix = base, 2
        while self._catalog.get(candidate) is not None:
            candidate = f"{base}_{suffix}"
            suffix += 1
        return candidate

    @staticmethod
    def _category(value: MenuCategory | str) -> MenuCategory:
        try:
            return MenuCategory(value)
        except ValueError as exc:
            allowed = ", ".join(category.value for category in MenuCategory)
            raise ValidationError(f"invalid category '{value}', expected one of: {allowed}") from exc


def requirements(pairs: Iterable[tuple[str, object]]) -> List[IngredientRequirement]:
    """Build a recipe from (ingredient_id, quantity_per_unit) pairs."""
    return [
        IngredientRequirement(ingredient_id=ingredient_id, quantity_per_unit=to_decimal(quantity))
        for ingredient_id, quantity in pairs
    ]
