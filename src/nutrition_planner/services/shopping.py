"""Shopping list aggregation and maintenance."""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from nutrition_planner.domain.errors import NotFoundError
from nutrition_planner.domain.meals import Ingredient
from nutrition_planner.domain.plans import DayPlan
from nutrition_planner.domain.shopping import ShoppingItem, ShoppingList
from nutrition_planner.services.catalog import MealCatalogRepository
from nutrition_planner.services.ingredients import (
    coerce_ingredient,
    format_amounts,
    normalize_ingredient_key,
    parse_amount,
)

_logger = logging.getLogger(__name__)


class ShoppingListRepository(Protocol):
    """Persistence interface for shopping lists."""

    def get_by_plan(self, plan_id: UUID) -> ShoppingList | None:
        """Return the list derived from a plan, if present."""

    def save(self, shopping_list: ShoppingList) -> ShoppingList:
        """Create or replace the list for its user and plan."""

    def delete_by_plan(self, plan_id: UUID) -> None:
        """Delete the list derived from a plan."""


@dataclass
class _Row:
    name: str
    category: str | None
    amounts: dict[str, float] = field(default_factory=dict)


def aggregate_ingredients(weekly_plan: Mapping[str, DayPlan]) -> list[ShoppingItem]:
    """Merge every ingredient of the week into one row per normalized name."""
    rows: dict[str, _Row] = {}
    for date_key in sorted(weekly_plan):
        for meal in weekly_plan[date_key].meals():
            for ingredient in meal.ingredients:
                _accumulate(rows, ingredient)
    return [
        ShoppingItem(
            key=key,
            name=row.name,
            amount=format_amounts(row.amounts),
            category=row.category,
        )
        for key, row in rows.items()
    ]


def _accumulate(rows: dict[str, _Row], raw: object) -> None:
    ingredient = coerce_ingredient(raw)
    if ingredient is None:
        return
    key = normalize_ingredient_key(ingredient.name)
    if not key:
        return
    row = rows.setdefault(key, _Row(name=ingredient.name, category=ingredient.category))
    if row.category is None and ingredient.category:
        row.category = ingredient.category
    amount = parse_amount(ingredient.amount)
    if amount is not None:
        row.amounts[amount.unit] = row.amounts.get(amount.unit, 0) + amount.value


@dataclass
class ShoppingListService:
    """Keeps shopping lists in step with plans."""

    repository: ShoppingListRepository
    catalog: MealCatalogRepository

    def sync(
        self, user_id: UUID, plan_id: UUID, weekly_plan: Mapping[str, DayPlan]
    ) -> ShoppingList:
        """Rebuild a list from the plan, keeping purchased flags by key."""
        existing = self.repository.get_by_plan(plan_id)
        done_by_key = (
            {item.key: item.done for item in existing.items} if existing else {}
        )
        items = [
            replace(item, done=done_by_key.get(item.key, False))
            for item in aggregate_ingredients(weekly_plan)
        ]
        saved = self.repository.save(
            ShoppingList(
                id=existing.id if existing else None,
                user_id=user_id,
                plan_id=plan_id,
                items=items,
                updated_at=datetime.now(tz=UTC),
            )
        )
        _logger.info("Shopping list synced: plan_id=%s items=%s", plan_id, len(items))
        return saved

    def regenerate(
        self, user_id: UUID, plan_id: UUID, weekly_plan: Mapping[str, DayPlan]
    ) -> ShoppingList:
        """Drop the stored list and rebuild it with nothing purchased."""
        self.repository.delete_by_plan(plan_id)
        return self.sync(user_id, plan_id, weekly_plan)

    def get_list(self, plan_id: UUID) -> ShoppingList:
        """Return the list for a plan."""
        shopping_list = self.repository.get_by_plan(plan_id)
        if shopping_list is None:
            raise NotFoundError("Shopping list not found")
        return shopping_list

    def set_item_done(self, plan_id: UUID, name: str, done: bool) -> ShoppingList:
        """Mark a row purchased or not purchased."""
        shopping_list = self.get_list(plan_id)
        index = _find_item(shopping_list, name)
        shopping_list.items[index] = replace(shopping_list.items[index], done=done)
        return self._touch(shopping_list)

    def add_products(
        self, plan_id: UUID, products: Iterable[Ingredient]
    ) -> ShoppingList:
        """Merge manual products into unpurchased rows or append new rows."""
        shopping_list = self.get_list(plan_id)
        for product in products:
            key = normalize_ingredient_key(product.name)
            if not key:
                continue
            index = next(
                (
                    position
                    for position, item in enumerate(shopping_list.items)
                    if item.key == key and not item.done
                ),
                None,
            )
            if index is None:
                shopping_list.items.append(
                    ShoppingItem(
                        key=key,
                        name=product.name.strip(),
                        amount=product.amount,
                        category=product.category,
                    )
                )
                continue
            current = shopping_list.items[index]
            shopping_list.items[index] = replace(
                current,
                amount=_merge_amounts(current.amount, product.amount),
                category=current.category or product.category,
            )
        return self._touch(shopping_list)

    def add_meal(self, plan_id: UUID, meal_id: UUID) -> ShoppingList:
        """Add every ingredient of a catalog meal to the list."""
        meal = self.catalog.get_meal(meal_id)
        if meal is None:
            raise NotFoundError("Meal not found")
        return self.add_products(plan_id, meal.ingredients)

    def delete_product(self, plan_id: UUID, name: str) -> ShoppingList:
        """Remove a row by key or display name."""
        shopping_list = self.get_list(plan_id)
        del shopping_list.items[_find_item(shopping_list, name)]
        return self._touch(shopping_list)

    def _touch(self, shopping_list: ShoppingList) -> ShoppingList:
        shopping_list.updated_at = datetime.now(tz=UTC)
        return self.repository.save(shopping_list)


def _find_item(shopping_list: ShoppingList, name: str) -> int:
    key = normalize_ingredient_key(name)
    for index, item in enumerate(shopping_list.items):
        if item.key == key or item.name == name:
            return index
    raise NotFoundError(f"Shopping item not found: {name}")


def _merge_amounts(current: str, added: str) -> str:
    """Sum same-unit amounts, otherwise keep both parts."""
    if not current:
        return added
    if not added:
        return current
    current_amount = parse_amount(current)
    added_amount = parse_amount(added)
    if (
        current_amount is not None
        and added_amount is not None
        and current_amount.unit == added_amount.unit
    ):
        return format_amounts(
            {current_amount.unit: current_amount.value + added_amount.value}
        )
    return f"{current} + {added}"
