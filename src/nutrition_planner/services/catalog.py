"""Shared meal catalog with signature and fuzzy deduplication."""

import hashlib
import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import Protocol
from uuid import UUID, uuid4

from nutrition_planner.domain.meals import (
    DEFAULT_PREP_TIME,
    CatalogMeal,
    Ingredient,
    Macros,
    MealCandidate,
)
from nutrition_planner.domain.users import UserProfile
from nutrition_planner.services.generation import MealGenerationService
from nutrition_planner.services.ingredients import from_generated_ingredients

SIMILAR_CALORIES_TOLERANCE = 50
CATEGORY_DEFAULT_CALORIES = {
    "breakfast": 400,
    "lunch": 600,
    "dinner": 600,
    "snack": 200,
}
DEFAULT_TARGET_CALORIES = 500

_logger = logging.getLogger(__name__)


class MealCatalogRepository(Protocol):
    """Persistence interface for the shared meal catalog."""

    def find_by_signature(self, signature: str) -> CatalogMeal | None:
        """Return the meal with an exact content signature."""

    def find_similar(
        self, name: str, category: str, calories: float, tolerance: float
    ) -> CatalogMeal | None:
        """Return a same-name, same-category meal within a calorie window."""

    def find_by_name(self, name: str, category: str | None) -> CatalogMeal | None:
        """Return a meal by case-insensitive exact name."""

    def get_meal(self, meal_id: UUID) -> CatalogMeal | None:
        """Return a meal by id, if present."""

    def create_meal(self, meal: CatalogMeal) -> CatalogMeal:
        """Insert a catalog entry and return it."""

    def increment_usage(self, meal_id: UUID) -> None:
        """Increase the usage counter of a meal by one."""

    def add_variation(self, meal_id: UUID, variation_id: UUID) -> None:
        """Record a variation id on a parent meal."""


def compute_meal_signature(
    category: str,
    calories: float,
    protein: float | None,
    ingredient_names: Iterable[str],
) -> str:
    """Return an order-independent content hash for a meal.

    Ingredient names are sorted as given, so case is significant and rows
    written by earlier catalog versions keep matching.
    """
    names = sorted(ingredient_names)
    raw = f"{category}_{round(calories)}_{round(protein or 0)}_{'_'.join(names)}"
    return hashlib.md5(raw.encode("utf-8")).hexdigest()  # noqa: S324


@dataclass
class MealCatalogService:
    """Resolves candidate meals to canonical catalog entries."""

    repository: MealCatalogRepository
    generation: MealGenerationService

    def resolve(
        self, candidate: MealCandidate, *, apply_overrides: bool = True
    ) -> CatalogMeal:
        """Return the canonical entry for a candidate, creating it when new."""
        calories = candidate.calories or 0
        macros = candidate.macros or Macros()
        signature = compute_meal_signature(
            candidate.category,
            calories,
            macros.protein,
            (item.name for item in candidate.ingredients),
        )
        existing = self.repository.find_by_signature(signature)
        if existing is None:
            existing = self.repository.find_similar(
                candidate.name,
                candidate.category,
                calories,
                SIMILAR_CALORIES_TOLERANCE,
            )
        if existing is not None:
            self.repository.increment_usage(existing.id)
            _logger.info("Catalog hit: meal_id=%s name=%s", existing.id, existing.name)
            resolved = replace(existing, use_count=existing.use_count + 1)
            if apply_overrides:
                return _apply_overrides(resolved, candidate)
            return resolved

        created = self.repository.create_meal(
            CatalogMeal(
                id=uuid4(),
                name=candidate.name,
                category=candidate.category,
                calories=calories,
                macros=macros,
                ingredients=candidate.ingredients,
                signature=signature,
                prep_time=candidate.prep_time or DEFAULT_PREP_TIME,
                use_count=1,
            )
        )
        _logger.info("Catalog insert: meal_id=%s name=%s", created.id, created.name)
        return created

    def find_by_name(
        self, name: str, category: str | None = None
    ) -> CatalogMeal | None:
        """Return a catalog meal by case-insensitive exact name."""
        return self.repository.find_by_name(name, category)

    async def get_or_generate(  # noqa: PLR0913
        self,
        name: str,
        category: str,
        profile: UserProfile,
        *,
        target_calories: float | None = None,
        language: str = "en",
        rules: str | None = None,
        parent_meal_id: UUID | None = None,
    ) -> CatalogMeal:
        """Return a catalog meal by name or draft and store a new one."""
        existing = self.repository.find_by_name(name, category)
        if existing is not None:
            self.repository.increment_usage(existing.id)
            return replace(existing, use_count=existing.use_count + 1)

        generated = await self.generation.generate_meal(
            name=name,
            category=category,
            target_calories=target_calories
            or CATEGORY_DEFAULT_CALORIES.get(category, DEFAULT_TARGET_CALORIES),
            profile=profile,
            language=language,
            rules=rules,
        )
        ingredients = from_generated_ingredients(generated.ingredients)
        macros = Macros(
            protein=generated.macros.protein,
            carbs=generated.macros.carbs,
            fat=generated.macros.fat,
        )
        created = self.repository.create_meal(
            CatalogMeal(
                id=uuid4(),
                name=generated.name,
                category=category,
                calories=generated.calories,
                macros=macros,
                ingredients=ingredients,
                signature=compute_meal_signature(
                    category,
                    generated.calories,
                    macros.protein,
                    (item.name for item in ingredients),
                ),
                prep_time=generated.prep_time or DEFAULT_PREP_TIME,
                use_count=1,
                ai_generated=True,
                parent_meal_id=parent_meal_id,
            )
        )
        if parent_meal_id is not None:
            self.repository.add_variation(parent_meal_id, created.id)
        _logger.info("Generated meal stored: meal_id=%s name=%s", created.id, name)
        return created

    def list_variations(self, meal_id: UUID) -> list[CatalogMeal]:
        """Return the variations of a meal that still exist."""
        meal = self.repository.get_meal(meal_id)
        if meal is None:
            return []
        variations = (self.repository.get_meal(item) for item in meal.variations)
        return [item for item in variations if item is not None]


def _apply_overrides(meal: CatalogMeal, candidate: MealCandidate) -> CatalogMeal:
    """Layer client-supplied values on top of a catalog entry."""
    ingredients: tuple[Ingredient, ...] = candidate.ingredients or meal.ingredients
    return replace(
        meal,
        name=candidate.name or meal.name,
        calories=candidate.calories or meal.calories,
        macros=candidate.macros or meal.macros,
        ingredients=ingredients,
        prep_time=candidate.prep_time or meal.prep_time,
    )
