"""Daily progress ledger seeded from plans."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Protocol
from uuid import UUID

from nutrition_planner.domain.errors import NotFoundError, ValidationError
from nutrition_planner.domain.meals import Macros
from nutrition_planner.domain.plans import MAIN_MEAL_TYPES, DayPlan, Plan
from nutrition_planner.domain.progress import (
    Counter,
    DailyProgress,
    MealSnapshot,
    WorkoutEntry,
)
from nutrition_planner.services.dates import to_date_key
from nutrition_planner.services.hydration import MIN_WATER_GLASSES

DEFAULT_CALORIES_GOAL = 2000
ANALYTICS_PERIODS = {"week": 7, "month": 30}

_logger = logging.getLogger(__name__)


class ProgressRepository(Protocol):
    """Persistence interface for daily progress rows."""

    def get(self, user_id: UUID, date_key: str) -> DailyProgress | None:
        """Return the row for a user and date key, if present."""

    def save(self, progress: DailyProgress) -> DailyProgress:
        """Create or replace the row for its user and date key."""

    def list_range(
        self, user_id: UUID, start_key: str, end_key: str
    ) -> list[DailyProgress]:
        """Return rows with start_key <= date_key <= end_key."""

    def list_for_user(self, user_id: UUID) -> list[DailyProgress]:
        """Return every row of a user."""


class PlanLookup(Protocol):
    """Subset of plan persistence needed by the ledger."""

    def get_by_user(self, user_id: UUID) -> Plan | None:
        """Return the plan of a user, if present."""

    def save(self, plan: Plan) -> Plan:
        """Persist a plan and return it."""


@dataclass(frozen=True)
class ProgressSummary:
    """Totals, averages and goal ratios over a period."""

    start_key: str
    end_key: str
    days_tracked: int
    total_calories: float
    total_protein: float
    total_carbs: float
    total_fat: float
    total_water: float
    avg_calories: float
    avg_protein: float
    avg_carbs: float
    avg_fat: float
    avg_water: float
    calories_goal_percent: int
    water_goal_percent: int
    daily: list[DailyProgress]


def progress_from_day(
    user_id: UUID, date_key: str, day: DayPlan | None, plan: Plan | None
) -> DailyProgress:
    """Seed a progress row with snapshots and goals from a plan day."""
    metrics = plan.user_metrics if plan else None
    calories_goal = DEFAULT_CALORIES_GOAL
    macros_goal = Macros()
    if metrics is not None:
        calories_goal = metrics.target_calories or metrics.tdee or DEFAULT_CALORIES_GOAL
        macros_goal = metrics.daily_macros
    progress = DailyProgress(
        user_id=user_id,
        date_key=date_key,
        calories_goal=round(calories_goal),
        protein=Counter(goal=round(macros_goal.protein)),
        carbs=Counter(goal=round(macros_goal.carbs)),
        fat=Counter(goal=round(macros_goal.fat)),
        water=Counter(goal=MIN_WATER_GLASSES),
    )
    if day is None:
        return progress
    for slot in MAIN_MEAL_TYPES:
        meal = getattr(day, slot)
        setattr(progress, slot, MealSnapshot.from_meal(meal) if meal else None)
    progress.snacks = [MealSnapshot.from_meal(snack) for snack in day.snacks]
    progress.workouts = [WorkoutEntry.from_workout(item) for item in day.workouts]
    progress.water.goal = day.water_intake or MIN_WATER_GLASSES
    return progress


@dataclass
class ProgressService:
    """Application service for the daily progress ledger."""

    repository: ProgressRepository
    plans: PlanLookup
    clock: Callable[[], date]

    def get_today(self, user_id: UUID) -> DailyProgress:
        """Return today's row, seeding it from the plan when missing."""
        date_key = to_date_key(self.clock())
        plan = self.plans.get_by_user(user_id)
        day = plan.weekly_plan.get(date_key) if plan else None
        progress = self.repository.get(user_id, date_key)
        if progress is None:
            _logger.info("Seeding progress: user_id=%s date=%s", user_id, date_key)
            return self.repository.save(progress_from_day(user_id, date_key, day, plan))
        water_goal = (day.water_intake if day else None) or MIN_WATER_GLASSES
        if progress.water.goal != water_goal:
            progress.water.goal = water_goal
            progress = self.repository.save(progress)
        return progress

    def get_by_date(self, user_id: UUID, date_key: str) -> DailyProgress:
        """Return the row for a date key."""
        progress = self.repository.get(user_id, date_key)
        if progress is None:
            raise NotFoundError(f"No progress for {date_key}")
        return progress

    def list_range(
        self, user_id: UUID, start_key: str, end_key: str
    ) -> list[DailyProgress]:
        """Return rows between two date keys, inclusive."""
        return self.repository.list_range(user_id, start_key, end_key)

    def toggle_meal(
        self, user_id: UUID, meal_type: str, snack_index: int | None = None
    ) -> DailyProgress:
        """Flip a meal's done flag and move its values in or out of consumed."""
        progress = self.get_today(user_id)
        if meal_type in {"snack", "snacks"}:
            if snack_index is None or not 0 <= snack_index < len(progress.snacks):
                raise NotFoundError("Snack not found in today's progress")
            snapshot = progress.snacks[snack_index]
            progress.snacks[snack_index] = snapshot.with_done(not snapshot.done)
        elif meal_type in {"breakfast", "lunch", "dinner"}:
            snapshot = getattr(progress, meal_type)
            if snapshot is None:
                raise NotFoundError(f"No {meal_type} in today's progress")
            setattr(progress, meal_type, snapshot.with_done(not snapshot.done))
        else:
            raise ValidationError(f"Invalid meal type: {meal_type}")

        sign = -1 if snapshot.done else 1
        progress.add_consumed(snapshot.calories, snapshot.macros, sign)
        _floor_consumed(progress)
        self._update_weekly_consumed(user_id, snapshot.calories, snapshot.macros, sign)
        return self.repository.save(progress)

    def toggle_workout(self, user_id: UUID, name: str) -> DailyProgress:
        """Flip a workout's done flag; burned calories offset consumed."""
        progress = self.get_today(user_id)
        index = next(
            (i for i, item in enumerate(progress.workouts) if item.name == name), None
        )
        if index is None:
            raise NotFoundError(f"Workout not found: {name}")
        workout = progress.workouts[index]
        done = not workout.done
        progress.workouts[index] = replace(workout, done=done)
        if done:
            progress.calories_consumed = max(
                0, round(progress.calories_consumed - workout.calories_burned)
            )
        else:
            progress.calories_consumed = round(
                progress.calories_consumed + workout.calories_burned
            )
        return self.repository.save(progress)

    def add_water_glass(self, user_id: UUID) -> DailyProgress:
        """Add one glass of water to today's counter."""
        progress = self.get_today(user_id)
        progress.water.consumed += 1
        return self.repository.save(progress)

    def set_water(self, user_id: UUID, glasses: int) -> DailyProgress:
        """Set today's water counter."""
        if glasses < 0:
            raise ValidationError("Water glasses cannot be negative")
        progress = self.get_today(user_id)
        progress.water.consumed = glasses
        return self.repository.save(progress)

    def add_custom_calories(
        self, user_id: UUID, calories: float, macros: Macros | None = None
    ) -> DailyProgress:
        """Record food eaten outside the plan."""
        if calories < 0:
            raise ValidationError("Calories cannot be negative")
        progress = self.get_today(user_id)
        progress.add_consumed(calories, macros or Macros())
        self._update_weekly_consumed(user_id, calories, macros or Macros(), 1)
        return self.repository.save(progress)

    def reset_today(self, user_id: UUID) -> DailyProgress:
        """Zero today's consumed counters and clear every done flag."""
        date_key = to_date_key(self.clock())
        progress = self.repository.get(user_id, date_key)
        if progress is None:
            raise NotFoundError(f"No progress for {date_key}")
        progress.calories_consumed = 0
        for counter in (progress.protein, progress.carbs, progress.fat, progress.water):
            counter.consumed = 0
        progress.breakfast = progress.breakfast and progress.breakfast.with_done(False)
        progress.lunch = progress.lunch and progress.lunch.with_done(False)
        progress.dinner = progress.dinner and progress.dinner.with_done(False)
        progress.snacks = [snack.with_done(False) for snack in progress.snacks]
        progress.workouts = [replace(item, done=False) for item in progress.workouts]
        return self.repository.save(progress)

    def analytics(self, user_id: UUID, period: str = "week") -> ProgressSummary:
        """Summarize the last week or month of tracked days."""
        days = ANALYTICS_PERIODS.get(period)
        if days is None:
            raise ValidationError(f"Invalid period: {period}")
        end = self.clock()
        start = end - timedelta(days=days - 1)
        rows = self.repository.list_range(
            user_id, to_date_key(start), to_date_key(end)
        )
        return summarize_progress(to_date_key(start), to_date_key(end), rows)

    def _update_weekly_consumed(
        self, user_id: UUID, calories: float, macros: Macros, sign: int
    ) -> None:
        plan = self.plans.get_by_user(user_id)
        if plan is None:
            return
        consumed = plan.weekly_consumed
        consumed.calories = max(0, round(consumed.calories + sign * calories))
        consumed.protein = max(0, round(consumed.protein + sign * macros.protein))
        consumed.carbs = max(0, round(consumed.carbs + sign * macros.carbs))
        consumed.fat = max(0, round(consumed.fat + sign * macros.fat))
        self.plans.save(plan)


def _floor_consumed(progress: DailyProgress) -> None:
    progress.calories_consumed = max(0, progress.calories_consumed)
    for counter in (progress.protein, progress.carbs, progress.fat):
        counter.consumed = max(0, counter.consumed)


def summarize_progress(
    start_key: str, end_key: str, rows: list[DailyProgress]
) -> ProgressSummary:
    """Aggregate a list of progress rows."""
    count = max(len(rows), 1)
    total_calories = sum(row.calories_consumed for row in rows)
    total_water = sum(row.water.consumed for row in rows)
    goal_calories = sum(row.calories_goal for row in rows)
    goal_water = sum(row.water.goal for row in rows)
    total_protein = sum(row.protein.consumed for row in rows)
    total_carbs = sum(row.carbs.consumed for row in rows)
    total_fat = sum(row.fat.consumed for row in rows)
    return ProgressSummary(
        start_key=start_key,
        end_key=end_key,
        days_tracked=len(rows),
        total_calories=total_calories,
        total_protein=total_protein,
        total_carbs=total_carbs,
        total_fat=total_fat,
        total_water=total_water,
        avg_calories=round(total_calories / count, 1),
        avg_protein=round(total_protein / count, 1),
        avg_carbs=round(total_carbs / count, 1),
        avg_fat=round(total_fat / count, 1),
        avg_water=round(total_water / count, 1),
        calories_goal_percent=_percent(total_calories, goal_calories),
        water_goal_percent=_percent(total_water, goal_water),
        daily=sorted(rows, key=lambda row: row.date_key),
    )


def _percent(value: float, goal: float) -> int:
    if goal <= 0:
        return 0
    return round(value / goal * 100)
