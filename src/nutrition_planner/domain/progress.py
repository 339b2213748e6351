"""Domain models for the daily progress ledger."""

from dataclasses import dataclass, field, replace
from uuid import UUID

from nutrition_planner.domain.meals import Macros, PlannedMeal
from nutrition_planner.domain.plans import MAIN_MEAL_TYPES, Workout


@dataclass(frozen=True)
class MealSnapshot:
    """Value copy of a planned meal plus its completion flag."""

    name: str
    category: str
    calories: int
    macros: Macros
    meal_id: UUID | None = None
    done: bool = False

    @classmethod
    def from_meal(cls, meal: PlannedMeal, done: bool = False) -> "MealSnapshot":
        """Copy the nutrition values of a planned meal."""
        return cls(
            name=meal.name,
            category=meal.category,
            calories=meal.calories,
            macros=meal.macros,
            meal_id=meal.meal_id,
            done=done,
        )

    def with_done(self, done: bool) -> "MealSnapshot":
        """Return a copy with a different completion flag."""
        return replace(self, done=done)


@dataclass(frozen=True)
class WorkoutEntry:
    """Value copy of a planned workout plus its completion flag."""

    name: str
    category: str
    duration: int
    calories_burned: int
    time: str | None = None
    done: bool = False

    @classmethod
    def from_workout(cls, workout: Workout, done: bool = False) -> "WorkoutEntry":
        """Copy a planned workout into the ledger."""
        return cls(
            name=workout.name,
            category=workout.category,
            duration=workout.duration,
            calories_burned=workout.calories_burned,
            time=workout.time,
            done=done,
        )


@dataclass
class Counter:
    """Consumed amount tracked against a goal."""

    consumed: float = 0
    goal: float = 0


@dataclass
class DailyProgress:
    """Per-date ledger of completed meals, workouts and counters."""

    user_id: UUID
    date_key: str
    breakfast: MealSnapshot | None = None
    lunch: MealSnapshot | None = None
    dinner: MealSnapshot | None = None
    snacks: list[MealSnapshot] = field(default_factory=list)
    workouts: list[WorkoutEntry] = field(default_factory=list)
    calories_consumed: float = 0
    calories_goal: float = 0
    protein: Counter = field(default_factory=Counter)
    carbs: Counter = field(default_factory=Counter)
    fat: Counter = field(default_factory=Counter)
    water: Counter = field(default_factory=Counter)
    id: UUID | None = None

    def snapshots(self) -> list[MealSnapshot]:
        """Return every filled snapshot slot."""
        main = [getattr(self, slot) for slot in MAIN_MEAL_TYPES]
        return [snap for snap in main if snap is not None] + list(self.snacks)

    def is_active(self) -> bool:
        """Return True when any main meal or snack is marked done."""
        return any(snapshot.done for snapshot in self.snapshots())

    def add_consumed(self, calories: float, macros: Macros, sign: int = 1) -> None:
        """Add (or with sign=-1 remove) a meal's values from consumed counters."""
        self.calories_consumed = round(self.calories_consumed + sign * calories)
        self.protein.consumed = round(self.protein.consumed + sign * macros.protein)
        self.carbs.consumed = round(self.carbs.consumed + sign * macros.carbs)
        self.fat.consumed = round(self.fat.consumed + sign * macros.fat)
