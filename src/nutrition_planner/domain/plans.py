"""Domain models for weekly plans."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from nutrition_planner.domain.meals import Macros, PlannedMeal

MAIN_MEAL_TYPES = ("breakfast", "lunch", "dinner")


@dataclass(frozen=True)
class Workout:
    """Scheduled workout inside a day entry."""

    name: str
    category: str
    duration: int
    calories_burned: int
    time: str | None = None


@dataclass(frozen=True)
class UserMetrics:
    """Metabolic targets computed once when a plan is created."""

    bmr: int
    tdee: int
    target_calories: int
    ideal_weight_min: float
    ideal_weight_max: float
    daily_macros: Macros
    water_goal: int
    workouts_goal: int


@dataclass
class NutrientTotals:
    """Running calorie and macro counters."""

    calories: float = 0
    protein: float = 0
    carbs: float = 0
    fat: float = 0


@dataclass
class DayPlan:
    """Meals, workouts and hydration planned for one date key."""

    breakfast: PlannedMeal | None = None
    lunch: PlannedMeal | None = None
    dinner: PlannedMeal | None = None
    snacks: list[PlannedMeal] = field(default_factory=list)
    workouts: list[Workout] = field(default_factory=list)
    water_intake: int | None = None
    total_calories: int | None = None
    total_protein: int | None = None
    total_carbs: int | None = None
    total_fat: int | None = None

    def meals(self) -> list[PlannedMeal]:
        """Return every filled meal slot in display order."""
        main = [getattr(self, slot) for slot in MAIN_MEAL_TYPES]
        return [meal for meal in main if meal is not None] + list(self.snacks)

    def recompute_totals(self) -> None:
        """Set totals to the sum of the filled slots."""
        meals = self.meals()
        self.total_calories = round(sum(meal.calories for meal in meals))
        self.total_protein = round(sum(meal.macros.protein for meal in meals))
        self.total_carbs = round(sum(meal.macros.carbs for meal in meals))
        self.total_fat = round(sum(meal.macros.fat for meal in meals))


@dataclass
class Plan:
    """A user's weekly meal and workout plan."""

    id: UUID
    user_id: UUID
    language: str = "en"
    path: str | None = None
    user_metrics: UserMetrics | None = None
    weekly_plan: dict[str, DayPlan] = field(default_factory=dict)
    weekly_consumed: NutrientTotals = field(default_factory=NutrientTotals)
    generated_at: datetime | None = None
