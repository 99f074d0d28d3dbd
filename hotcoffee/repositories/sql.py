from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import Iterator, List, Optional, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload, sessionmaker

from .. import domain, models
from ..errors import (
    AdjustConflict,
    HotCoffeeError,
    IngredientNotFound,
    OrderNotFound,
    PersistenceError,
    RecipeNotFound,
    StoreTimeout,
)
from .base import InventoryStore, MenuCatalog, OrderStore

_TIMEOUT_MARKERS = ("timeout", "timed out", "database is locked", "canceling statement")


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except HotCoffeeError:
        raise
    except OperationalError as exc:
        message = str(exc.orig or exc).lower()
        if any(marker in message for marker in _TIMEOUT_MARKERS):
            raise StoreTimeout(f"{operation} timed out", operation=operation) from exc
        raise PersistenceError(f"{operation} failed: {exc.orig}", operation=operation) from exc
    except SQLAlchemyError as exc:
        raise PersistenceError(f"{operation} failed: {exc}", operation=operation) from exc


def _menu_item(row: models.MenuItem) -> domain.MenuItem:
    return domain.MenuItem(
        id=row.id,
        name=row.name,
        price=row.price,
        ingredients=[
            domain.IngredientRequirement(ingredient_id=ing.ingredient_id, quantity_per_unit=ing.quantity)
            for ing in row.ingredients
        ],
        description=row.description or "",
        category=row.category,
        available=row.available,
    )


def _inventory_item(row: models.InventoryItem) -> domain.InventoryItem:
    return domain.InventoryItem(
        id=row.id,
        name=row.name,
        quantity=row.quantity,
        unit=row.unit,
        min_threshold=row.min_threshold,
    )


def _order(row: models.Order) -> domain.Order:
    return domain.Order(
        id=row.id,
        customer_name=row.customer_name,
        items=[
            domain.OrderLineItem(product_id=item.product_id, quantity=item.quantity, price_at_time=item.price_at_time)
            for item in row.items
        ],
        status=row.status,
        total_amount=row.total_amount,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _recipe_rows(item: domain.MenuItem) -> list[models.MenuItemIngredient]:
    return [
        models.MenuItemIngredient(ingredient_id=req.ingredient_id, quantity=req.quantity_per_unit, position=pos)
        for pos, req in enumerate(item.ingredients)
    ]


def _order_item_rows(order: domain.Order) -> list[models.OrderItem]:
    return [
        models.OrderItem(
            product_id=line.product_id,
            quantity=line.quantity,
            price_at_time=line.price_at_time,
            position=pos,
        )
        for pos, line in enumerate(order.items)
    ]


class SqlMenuCatalog(MenuCatalog):
    def __init__(self, sessions: sessionmaker[Session]) -> None:
        self._sessions = sessions

    def get(self, menu_item_id: str) -> Optional[domain.MenuItem]:
        with _store_errors("load menu item"), self._sessions() as db:
            row = db.get(models.MenuItem, menu_item_id)
            return _menu_item(row) if row else None

    def list(self) -> List[domain.MenuItem]:
        with _store_errors("list menu items"), self._sessions() as db:
            stmt = select(models.MenuItem).options(selectinload(models.MenuItem.ingredients)).order_by(models.MenuItem.id)
            return [_menu_item(row) for row in db.scalars(stmt).all()]

    def add(self, item: domain.MenuItem) -> None:
        with _store_errors("insert menu item"), self._sessions.begin() as db:
            row = models.MenuItem(
                id=item.id,
                name=item.name,
                description=item.description,
                category=item.category,
                price=item.price,
                available=item.available,
            )
            row.ingredients = _recipe_rows(item)
            db.add(row)

    def update(self, item: domain.MenuItem) -> None:
        with _store_errors("update menu item"), self._sessions.begin() as db:
            row = db.get(models.MenuItem, item.id)
            if row is None:
                raise RecipeNotFound(item.id)
            row.name = item.name
            row.description = item.description
            row.category = item.category
            row.price = item.price
            row.available = item.available
            row.ingredients = _recipe_rows(item)

    def delete(self, menu_item_id: str) -> None:
        with _store_errors("delete menu item"), self._sessions.begin() as db:
            row = db.get(models.MenuItem, menu_item_id)
            if row is None:
                raise RecipeNotFound(menu_item_id)
            db.delete(row)

    def uses_ingredient(self, ingredient_id: str) -> List[str]:
        with _store_errors("find recipes using ingredient"), self._sessions() as db:
            stmt = (
                select(models.MenuItemIngredient.menu_item_id)
                .where(models.MenuItemIngredient.ingredient_id == ingredient_id)
                .distinct()
                .order_by(models.MenuItemIngredient.menu_item_id)
            )
            return list(db.scalars(stmt).all())


class SqlInventoryStore(InventoryStore):
    def __init__(self, sessions: sessionmaker[Session]) -> None:
        self._sessions = sessions

    def get(self, ingredient_id: str) -> Optional[domain.InventoryItem]:
        with _store_errors("load ingredient"), self._sessions() as db:
            row = db.get(models.InventoryItem, ingredient_id)
            return _inventory_item(row) if row else None

    def list(self) -> List[domain.InventoryItem]:
        with _store_errors("list ingredients"), self._sessions() as db:
            stmt = select(models.InventoryItem).order_by(models.InventoryItem.id)
            return [_inventory_item(row) for row in db.scalars(stmt).all()]

    def add(self, item: domain.InventoryItem) -> None:
        with _store_errors("insert ingredient"), self._sessions.begin() as db:
            db.add(
                models.InventoryItem(
                    id=item.id,
                    name=item.name,
                    quantity=item.quantity,
                    unit=item.unit,
                    min_threshold=item.min_threshold,
                )
            )

    def update_metadata(self, item: domain.InventoryItem) -> None:
        with _store_errors("update ingredient"), self._sessions.begin() as db:
            row = db.get(models.InventoryItem, item.id)
            if row is None:
                raise IngredientNotFound(item.id)
            row.name = item.name
            row.unit = item.unit
            row.min_threshold = item.min_threshold

    def delete(self, ingredient_id: str) -> None:
        with _store_errors("delete ingredient"), self._sessions.begin() as db:
            row = db.get(models.InventoryItem, ingredient_id)
            if row is None:
                raise IngredientNotFound(ingredient_id)
            db.delete(row)

    def conditional_adjust(self, ingredient_id: str, delta: Decimal) -> Decimal:
        table = models.InventoryItem.__table__
        # Rounded to the column scale so float-backed engines cannot dip just below zero.
        new_quantity = func.round(table.c.quantity + delta, 3)
        with _store_errors("adjust ingredient"), self._sessions.begin() as db:
            result = db.execute(
                update(table)
                .where(table.c.id == ingredient_id, new_quantity >= 0)
                .values(quantity=new_quantity, updated_at=datetime.utcnow())
            )
            if result.rowcount == 0:
                if db.get(models.InventoryItem, ingredient_id) is None:
                    raise IngredientNotFound(ingredient_id)
                raise AdjustConflict(ingredient_id, delta)
            return db.scalar(
                select(models.InventoryItem.quantity).where(models.InventoryItem.id == ingredient_id)
            )


class SqlOrderStore(OrderStore):
    def __init__(self, sessions: sessionmaker[Session]) -> None:
        self._sessions = sessions

    def insert(self, order: domain.Order) -> None:
        self.insert_many([order])

    def insert_many(self, orders: Sequence[domain.Order]) -> None:
        with _store_errors("insert orders"), self._sessions.begin() as db:
            for order in orders:
                row = models.Order(
                    id=order.id,
                    customer_name=order.customer_name,
                    status=order.status,
                    total_amount=order.total_amount,
                    created_at=order.created_at,
                    updated_at=order.updated_at,
                )
                row.items = _order_item_rows(order)
                db.add(row)

    def update(self, order: domain.Order) -> None:
        with _store_errors("update order"), self._sessions.begin() as db:
            row = db.get(models.Order, order.id)
            if row is None:
                raise OrderNotFound(order.id)
            row.customer_name = order.customer_name
            row.status = order.status
            row.total_amount = order.total_amount
            row.updated_at = order.updated_at
            row.items = _order_item_rows(order)

    def delete(self, order_id: str) -> None:
        self.delete_many([order_id])

    def delete_many(self, order_ids: Sequence[str]) -> None:
        with _store_errors("delete orders"), self._sessions.begin() as db:
            for order_id in order_ids:
                row = db.get(models.Order, order_id)
                if row is None:
                    raise OrderNotFound(order_id)
                db.delete(row)

    def get(self, order_id: str) -> Optional[domain.Order]:
        with _store_errors("load order"), self._sessions() as db:
            row = db.get(models.Order, order_id, options=[selectinload(models.Order.items)])
            return _order(row) if row else None

    def list(self, status: Optional[domain.OrderStatus] = None) -> List[domain.Order]:
        with _store_errors("list orders"), self._sessions() as db:
            stmt = (
                select(models.Order)
                .options(selectinload(models.Order.items))
                .order_by(models.Order.created_at.desc())
            )
            if status:
                stmt = stmt.where(models.Order.status == status)
            return [_order(row) for row in db.scalars(stmt).all()]
