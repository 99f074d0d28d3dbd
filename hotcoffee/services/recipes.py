from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Iterable, List, Optional

from ..core.locks import KeyedLock
from ..domain import IngredientRequirement, MenuItem
from ..errors import RecipeNotFound
from ..repositories import MenuCatalog


class RecipeResolver:
    """Read-only view of the menu catalog used by pricing and planning.

    Recipe edits and reservations built from a recipe share one lock per
    menu item, so the recipe a reservation was planned from cannot change
    until that reservation is stored with its order.
    """

    def __init__(self, catalog: MenuCatalog, locks: Optional[KeyedLock] = None) -> None:
        self._catalog = catalog
        self._locks = locks or KeyedLock()

    def locked(self, menu_item_ids: Iterable[str]) -> AbstractContextManager[None]:
        return self._locks.hold(menu_item_ids)

    def menu_item(self, menu_item_id: str) -> MenuItem:
        item = self._catalog.get(menu_item_id)
        if item is None:
            raise RecipeNotFound(menu_item_id)
        return item

    def resolve(self, menu_item_id: str) -> List[IngredientRequirement]:
        return list(self.menu_item(menu_item_id).ingredients)
