"""Domain models for catalog and planned meals."""

from dataclasses import dataclass, field
from uuid import UUID

DEFAULT_PREP_TIME = 30


@dataclass(frozen=True)
class Macros:
    """Macronutrient grams for a meal or a day."""

    protein: float = 0
    carbs: float = 0
    fat: float = 0

    def rounded(self) -> "Macros":
        """Return macros rounded to whole grams."""
        return Macros(
            protein=round(self.protein),
            carbs=round(self.carbs),
            fat=round(self.fat),
        )


@dataclass(frozen=True)
class Ingredient:
    """Ingredient line as stored on a meal."""

    name: str
    amount: str = ""
    category: str | None = None


@dataclass(frozen=True)
class CatalogMeal:
    """Canonical meal entry shared across users."""

    id: UUID
    name: str
    category: str
    calories: float
    macros: Macros
    ingredients: tuple[Ingredient, ...]
    signature: str
    prep_time: int = DEFAULT_PREP_TIME
    use_count: int = 1
    ai_generated: bool = False
    parent_meal_id: UUID | None = None
    variations: tuple[UUID, ...] = ()


@dataclass(frozen=True)
class MealCandidate:
    """Meal description supplied by a client or drafted by generation."""

    name: str
    category: str = ""
    calories: float | None = None
    macros: Macros | None = None
    ingredients: tuple[Ingredient, ...] = ()
    prep_time: int | None = None

    def is_complete(self) -> bool:
        """Return True when calories, macros and ingredients are all supplied."""
        return (
            bool(self.calories)
            and self.macros is not None
            and bool(self.ingredients)
        )


@dataclass(frozen=True)
class PlannedMeal:
    """Copy of a meal embedded in a plan day slot."""

    name: str
    category: str
    calories: int
    macros: Macros
    ingredients: tuple[Ingredient, ...] = field(default_factory=tuple)
    prep_time: int = DEFAULT_PREP_TIME
    meal_id: UUID | None = None

    @classmethod
    def from_catalog(cls, meal: CatalogMeal) -> "PlannedMeal":
        """Build a planned copy with whole-unit nutrition values."""
        return cls(
            name=meal.name,
            category=meal.category,
            calories=round(meal.calories),
            macros=meal.macros.rounded(),
            ingredients=meal.ingredients,
            prep_time=meal.prep_time or DEFAULT_PREP_TIME,
            meal_id=meal.id,
        )
