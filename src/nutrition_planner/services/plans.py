"""Plan synchronization engine.

Every operation here edits one day entry of a weekly plan and then pushes the
consequences to the other two documents: the per-date progress ledger and the
plan's shopping list. Writes are sequential and not transactional; the shopping
list resync is best-effort and heals on the next successful edit.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import UTC, date, datetime, timedelta
from typing import Protocol
from uuid import UUID, uuid4

from nutrition_planner.domain.errors import (
    GenerationError,
    NotFoundError,
    ValidationError,
)
from nutrition_planner.domain.generation import GeneratedDay, GeneratedMeal
from nutrition_planner.domain.meals import Macros, MealCandidate, PlannedMeal
from nutrition_planner.domain.plans import (
    MAIN_MEAL_TYPES,
    DayPlan,
    NutrientTotals,
    Plan,
    Workout,
)
from nutrition_planner.domain.progress import DailyProgress, MealSnapshot, WorkoutEntry
from nutrition_planner.domain.shopping import ShoppingList
from nutrition_planner.domain.users import UserProfile
from nutrition_planner.services.catalog import MealCatalogService
from nutrition_planner.services.dates import (
    DATE_KEY_PATTERN,
    parse_date_key,
    to_date_key,
    week_dates_from,
    weekday_index,
)
from nutrition_planner.services.generation import MealGenerationService
from nutrition_planner.services.health import build_user_metrics
from nutrition_planner.services.hydration import (
    MIN_WATER_GLASSES,
    calculate_base_water_glasses,
    calculate_day_workout_water,
    calculate_workout_water_glasses,
    clamp_water_goal,
)
from nutrition_planner.services.ingredients import (
    from_generated_ingredients,
    parse_numeric_value,
)
from nutrition_planner.services.progress import ProgressRepository
from nutrition_planner.services.shopping import ShoppingListService

MEAL_TYPES = (*MAIN_MEAL_TYPES, "snack", "snacks")

_logger = logging.getLogger(__name__)


class PlanRepository(Protocol):
    """Persistence interface for weekly plans."""

    def get(self, plan_id: UUID) -> Plan | None:
        """Return a plan by id, if present."""

    def get_by_user(self, user_id: UUID) -> Plan | None:
        """Return the plan of a user, if present."""

    def create(self, plan: Plan) -> Plan:
        """Insert a plan and return it."""

    def save(self, plan: Plan) -> Plan:
        """Replace a stored plan and return it."""

    def delete_for_user(self, user_id: UUID) -> None:
        """Delete every plan of a user."""


class ProfileRepository(Protocol):
    """Read access to user profiles."""

    def get_profile(self, user_id: UUID) -> UserProfile | None:
        """Return the profile of a user, if present."""


@dataclass(frozen=True)
class ReplacedMeal:
    """Old and new occupant of a meal slot."""

    old: PlannedMeal | None
    new: PlannedMeal


@dataclass(frozen=True)
class MealReplacement:
    """Result of a meal replacement."""

    plan: Plan
    replaced_meal: ReplacedMeal
    date_key: str
    meal_type: str
    snack_index: int | None
    meal_source: str


@dataclass(frozen=True)
class SnackChange:
    """Result of adding or removing a snack."""

    plan: Plan
    date_key: str
    snack: PlannedMeal


@dataclass(frozen=True)
class GoalAdjustments:
    """Deltas applied to the calorie and water goals."""

    calories_goal_change: int
    water_goal_change: int


@dataclass(frozen=True)
class WorkoutChange:
    """Result of a workout operation."""

    plan: Plan
    date_key: str
    workout: Workout
    adjustments: GoalAdjustments


@dataclass(frozen=True)
class WorkoutUpdate:
    """Partial workout fields; None keeps the stored value."""

    name: str | None = None
    category: str | None = None
    duration: int | str | None = None
    calories_burned: float | str | None = None
    time: str | None = None


def normalize_meal_type(meal_type: str) -> str:
    """Validate a meal type and fold "snacks" into "snack"."""
    if meal_type not in MEAL_TYPES:
        raise ValidationError(f"Invalid meal type: {meal_type}")
    return "snack" if meal_type == "snacks" else meal_type


def resolve_date_key(plan: Plan, date_or_day: str, today: date) -> str:
    """Map a YYYY-MM-DD key or weekday name to a plan date key."""
    token = date_or_day.strip()
    if DATE_KEY_PATTERN.match(token):
        parse_date_key(token)
        return token
    weekday = weekday_index(token)
    if weekday is None:
        raise ValidationError(f"Invalid date or day name: {date_or_day}")
    for key in sorted(plan.weekly_plan):
        if parse_date_key(key).weekday() == weekday:
            return key
    reference = plan.generated_at.date() if plan.generated_at else today
    offset = (weekday - reference.weekday() + 3) % 7 - 3
    return to_date_key(reference + timedelta(days=offset))


@dataclass
class PlanService:
    """Keeps plans, progress rows and shopping lists consistent."""

    plans: PlanRepository
    progress: ProgressRepository
    profiles: ProfileRepository
    catalog: MealCatalogService
    shopping: ShoppingListService
    generation: MealGenerationService
    clock: Callable[[], date]

    def create_initial_plan(
        self, user_id: UUID, profile: UserProfile, language: str = "en"
    ) -> Plan:
        """Create the single plan of a user with freshly computed targets."""
        self.plans.delete_for_user(user_id)
        plan = self.plans.create(
            Plan(
                id=uuid4(),
                user_id=user_id,
                language=language,
                path=profile.path,
                user_metrics=build_user_metrics(profile),
            )
        )
        _logger.info("Plan created: user_id=%s plan_id=%s", user_id, plan.id)
        return plan

    async def get_current_weekly_plan(
        self, user_id: UUID, language: str | None = None
    ) -> Plan:
        """Return the plan, drafting a new week when today is not covered."""
        today = self.clock()
        plan = self.plans.get_by_user(user_id)
        if plan is not None and to_date_key(today) in plan.weekly_plan:
            return plan

        profile = self.profiles.get_profile(user_id)
        if profile is None:
            raise NotFoundError("User profile not found")
        if plan is None:
            plan = self.create_initial_plan(
                user_id, profile, language or profile.language
            )

        dates = week_dates_from(today)
        week = await self.generation.generate_week(
            dates=dates,
            profile=profile,
            metrics=plan.user_metrics,
            language=language or plan.language,
        )
        wanted = {to_date_key(day) for day in dates}
        drafted = {day.date: day for day in week.days if day.date in wanted}
        if to_date_key(today) not in drafted:
            raise GenerationError("Generated plan does not cover today")

        water_goal = plan.user_metrics.water_goal if plan.user_metrics else None
        plan.weekly_plan = {
            key: self._build_day(drafted[key], water_goal) for key in sorted(drafted)
        }
        plan.weekly_consumed = NutrientTotals()
        plan.generated_at = datetime.now(tz=UTC)
        plan = self.plans.save(plan)
        _logger.info("Week drafted: plan_id=%s days=%s", plan.id, len(drafted))
        self._resync_shopping_list(plan)
        return plan

    def get_day_plan(self, user_id: UUID, date_or_day: str) -> tuple[str, DayPlan]:
        """Return the date key and day entry of the user's plan."""
        plan = self._get_user_plan(user_id)
        date_key = resolve_date_key(plan, date_or_day, self.clock())
        return date_key, self._get_day(plan, date_key)

    def update_water_intake(
        self, user_id: UUID, date_or_day: str, glasses: int
    ) -> Plan:
        """Set the informational water intake of a day."""
        if glasses < 0:
            raise ValidationError("Water glasses cannot be negative")
        plan = self._get_user_plan(user_id)
        date_key = resolve_date_key(plan, date_or_day, self.clock())
        self._get_day(plan, date_key).water_intake = glasses
        return self.plans.save(plan)

    async def replace_meal(  # noqa: PLR0913
        self,
        user_id: UUID,
        plan_id: UUID,
        date_or_day: str,
        meal_type: str,
        new_meal: MealCandidate,
        *,
        snack_index: int | None = None,
        language: str = "en",
        rules: str | None = None,
    ) -> MealReplacement:
        """Swap the occupant of one slot and propagate the change."""
        slot = normalize_meal_type(meal_type)
        if slot == "snack" and (snack_index is None or snack_index < 0):
            raise ValidationError("snack_index must be a non-negative integer")
        plan = self._get_plan(plan_id)
        if plan.user_id != user_id:
            raise NotFoundError("Plan not found")
        date_key = resolve_date_key(plan, date_or_day, self.clock())
        day = self._get_day(plan, date_key)
        if slot == "snack":
            if snack_index >= len(day.snacks):
                raise NotFoundError(f"Snack {snack_index} not found on {date_key}")
            old_meal = day.snacks[snack_index]
        else:
            old_meal = getattr(day, slot)

        candidate = replace(new_meal, category=slot)
        if candidate.is_complete():
            resolved = self.catalog.resolve(candidate)
            source = "provided"
        else:
            resolved = await self.catalog.get_or_generate(
                candidate.name,
                slot,
                self._get_profile(user_id),
                target_calories=candidate.calories,
                language=language,
                rules=rules,
            )
            source = "generated"
        planned = PlannedMeal.from_catalog(resolved)

        if slot == "snack":
            day.snacks[snack_index] = planned
        else:
            setattr(day, slot, planned)
        _shift_totals(day, removed=old_meal, added=planned)
        progress = self.progress.get(user_id, date_key)
        released = (
            _reseed_progress_meal(progress, slot, snack_index, planned)
            if progress is not None
            else None
        )
        if released is not None:
            _release_weekly_consumed(plan, released)
        plan = self.plans.save(plan)
        _logger.info(
            "Meal replaced: plan_id=%s date=%s slot=%s source=%s",
            plan.id,
            date_key,
            slot,
            source,
        )

        if progress is not None:
            self.progress.save(progress)
        self._resync_shopping_list(plan)
        return MealReplacement(
            plan=plan,
            replaced_meal=ReplacedMeal(old=old_meal, new=planned),
            date_key=date_key,
            meal_type=slot,
            snack_index=snack_index if slot == "snack" else None,
            meal_source=source,
        )

    async def add_snack(
        self, plan_id: UUID, date_or_day: str, name: str, language: str = "en"
    ) -> SnackChange:
        """Append a snack drafted or looked up by name."""
        if not name.strip():
            raise ValidationError("Snack name is required")
        plan = self._get_plan(plan_id)
        date_key = resolve_date_key(plan, date_or_day, self.clock())
        day = self._get_day(plan, date_key)
        resolved = await self.catalog.get_or_generate(
            name.strip(),
            "snack",
            self._get_profile(plan.user_id),
            language=language,
        )
        snack = PlannedMeal.from_catalog(resolved)
        day.snacks.append(snack)
        _shift_totals(day, removed=None, added=snack)
        plan = self.plans.save(plan)

        progress = self.progress.get(plan.user_id, date_key)
        if progress is not None:
            progress.snacks.append(MealSnapshot.from_meal(snack))
            self.progress.save(progress)
        self._resync_shopping_list(plan)
        return SnackChange(plan=plan, date_key=date_key, snack=snack)

    def delete_snack(
        self, user_id: UUID, date_or_day: str, snack_index: int
    ) -> SnackChange:
        """Remove a snack from a day and its progress row."""
        if snack_index < 0:
            raise ValidationError("snack_index must be a non-negative integer")
        plan = self._get_user_plan(user_id)
        date_key = resolve_date_key(plan, date_or_day, self.clock())
        day = self._get_day(plan, date_key)
        if snack_index >= len(day.snacks):
            raise NotFoundError(f"Snack {snack_index} not found on {date_key}")
        snack = day.snacks.pop(snack_index)
        _shift_totals(day, removed=snack, added=None)
        progress = self.progress.get(user_id, date_key)
        if progress is not None and snack_index >= len(progress.snacks):
            progress = None
        if progress is not None:
            snapshot = progress.snacks.pop(snack_index)
            if snapshot.done:
                progress.add_consumed(snapshot.calories, snapshot.macros, -1)
                _release_weekly_consumed(plan, snapshot)
        plan = self.plans.save(plan)

        if progress is not None:
            self.progress.save(progress)
        self._resync_shopping_list(plan)
        return SnackChange(plan=plan, date_key=date_key, snack=snack)

    def add_workout(  # noqa: PLR0913
        self,
        user_id: UUID,
        date_or_day: str,
        name: str,
        *,
        category: str = "cardio",
        duration: int | str = 0,
        calories_burned: float | str = 0,
        time: str | None = None,
    ) -> WorkoutChange:
        """Schedule a workout and raise the day's water and calorie goals."""
        if not name.strip():
            raise ValidationError("Workout name is required")
        plan = self._get_user_plan(user_id)
        date_key = resolve_date_key(plan, date_or_day, self.clock())
        day = self._get_day(plan, date_key)
        workout = Workout(
            name=name.strip(),
            category=category,
            duration=parse_numeric_value(duration),
            calories_burned=parse_numeric_value(calories_burned),
            time=time,
        )
        extra_water = calculate_workout_water_glasses(workout.calories_burned, time)
        day.workouts.append(workout)
        day.water_intake = clamp_water_goal(
            (day.water_intake or MIN_WATER_GLASSES) + extra_water
        )
        plan = self.plans.save(plan)

        progress = self._today_progress(user_id, date_key)
        if progress is not None:
            progress.workouts.append(WorkoutEntry.from_workout(workout))
            progress.calories_goal = round(
                progress.calories_goal + workout.calories_burned
            )
            progress.water.goal = clamp_water_goal(progress.water.goal + extra_water)
            self.progress.save(progress)
        return WorkoutChange(
            plan=plan,
            date_key=date_key,
            workout=workout,
            adjustments=GoalAdjustments(
                calories_goal_change=workout.calories_burned,
                water_goal_change=extra_water,
            ),
        )

    def update_workout_in_plan(
        self,
        user_id: UUID,
        date_or_day: str,
        workout_index: int,
        changes: WorkoutUpdate,
    ) -> WorkoutChange:
        """Edit a workout and apply the calorie and water differences."""
        plan = self._get_user_plan(user_id)
        date_key = resolve_date_key(plan, date_or_day, self.clock())
        day = self._get_day(plan, date_key)
        if not 0 <= workout_index < len(day.workouts):
            raise NotFoundError(f"Workout {workout_index} not found on {date_key}")
        old = day.workouts[workout_index]
        new = Workout(
            name=changes.name or old.name,
            category=changes.category or old.category,
            duration=(
                parse_numeric_value(changes.duration)
                if changes.duration is not None
                else old.duration
            ),
            calories_burned=(
                parse_numeric_value(changes.calories_burned)
                if changes.calories_burned is not None
                else old.calories_burned
            ),
            time=changes.time if changes.time is not None else old.time,
        )
        calories_diff = new.calories_burned - old.calories_burned
        water_diff = calculate_workout_water_glasses(
            new.calories_burned, new.time
        ) - calculate_workout_water_glasses(old.calories_burned, old.time)
        day.workouts[workout_index] = new
        if water_diff:
            day.water_intake = clamp_water_goal(
                (day.water_intake or MIN_WATER_GLASSES) + water_diff
            )
        plan = self.plans.save(plan)

        progress = self._today_progress(user_id, date_key)
        index = _find_workout(progress, old.name) if progress else None
        if progress is not None and index is not None:
            progress.workouts[index] = WorkoutEntry.from_workout(
                new, done=progress.workouts[index].done
            )
            progress.calories_goal = max(
                0, round(progress.calories_goal + calories_diff)
            )
            progress.water.goal = clamp_water_goal(progress.water.goal + water_diff)
            self.progress.save(progress)
        return WorkoutChange(
            plan=plan,
            date_key=date_key,
            workout=new,
            adjustments=GoalAdjustments(
                calories_goal_change=calories_diff, water_goal_change=water_diff
            ),
        )

    def delete_workout(
        self, user_id: UUID, date_or_day: str, workout_name: str
    ) -> WorkoutChange:
        """Remove a workout and lower the goals it had raised."""
        plan = self._get_user_plan(user_id)
        date_key = resolve_date_key(plan, date_or_day, self.clock())
        day = self._get_day(plan, date_key)
        position = next(
            (i for i, item in enumerate(day.workouts) if item.name == workout_name),
            None,
        )
        if position is None:
            raise NotFoundError(f"Workout not found: {workout_name}")
        workout = day.workouts.pop(position)
        glasses = calculate_workout_water_glasses(workout.calories_burned, workout.time)
        day.water_intake = clamp_water_goal(
            (day.water_intake or MIN_WATER_GLASSES) - glasses
        )
        plan = self.plans.save(plan)

        progress = self._today_progress(user_id, date_key)
        index = _find_workout(progress, workout_name) if progress else None
        if progress is not None and index is not None:
            entry = progress.workouts.pop(index)
            if entry.done:
                progress.calories_consumed = round(
                    progress.calories_consumed + entry.calories_burned
                )
            progress.calories_goal = max(
                0, round(progress.calories_goal - workout.calories_burned)
            )
            progress.water.goal = clamp_water_goal(progress.water.goal - glasses)
            self.progress.save(progress)
        return WorkoutChange(
            plan=plan,
            date_key=date_key,
            workout=workout,
            adjustments=GoalAdjustments(
                calories_goal_change=-workout.calories_burned,
                water_goal_change=-glasses,
            ),
        )

    def regenerate_shopping_list(self, user_id: UUID) -> ShoppingList:
        """Rebuild the plan's shopping list from scratch."""
        plan = self._get_user_plan(user_id)
        return self.shopping.regenerate(plan.user_id, plan.id, plan.weekly_plan)

    def _build_day(self, draft: GeneratedDay, water_goal: int | None) -> DayPlan:
        day = DayPlan(
            breakfast=self._resolve_drafted(draft.breakfast, "breakfast"),
            lunch=self._resolve_drafted(draft.lunch, "lunch"),
            dinner=self._resolve_drafted(draft.dinner, "dinner"),
            snacks=[self._resolve_drafted(item, "snack") for item in draft.snacks],
            workouts=[
                Workout(
                    name=item.name,
                    category=item.category,
                    duration=item.duration,
                    calories_burned=item.calories_burned,
                    time=item.time,
                )
                for item in draft.workouts
            ],
        )
        day.water_intake = calculate_base_water_glasses(
            water_goal
        ) + calculate_day_workout_water(day.workouts)
        day.recompute_totals()
        return day

    def _resolve_drafted(self, meal: GeneratedMeal, category: str) -> PlannedMeal:
        candidate = MealCandidate(
            name=meal.name,
            category=category,
            calories=meal.calories,
            macros=Macros(
                protein=meal.macros.protein,
                carbs=meal.macros.carbs,
                fat=meal.macros.fat,
            ),
            ingredients=from_generated_ingredients(meal.ingredients),
            prep_time=meal.prep_time,
        )
        return PlannedMeal.from_catalog(
            self.catalog.resolve(candidate, apply_overrides=False)
        )

    def _resync_shopping_list(self, plan: Plan) -> None:
        try:
            self.shopping.sync(plan.user_id, plan.id, plan.weekly_plan)
        except Exception:
            _logger.exception("Shopping list resync failed: plan_id=%s", plan.id)

    def _today_progress(self, user_id: UUID, date_key: str) -> DailyProgress | None:
        if date_key != to_date_key(self.clock()):
            return None
        return self.progress.get(user_id, date_key)

    def _get_plan(self, plan_id: UUID) -> Plan:
        plan = self.plans.get(plan_id)
        if plan is None:
            raise NotFoundError("Plan not found")
        return plan

    def _get_user_plan(self, user_id: UUID) -> Plan:
        plan = self.plans.get_by_user(user_id)
        if plan is None:
            raise NotFoundError("Plan not found")
        return plan

    def _get_profile(self, user_id: UUID) -> UserProfile:
        return self.profiles.get_profile(user_id) or UserProfile(id=user_id)

    @staticmethod
    def _get_day(plan: Plan, date_key: str) -> DayPlan:
        day = plan.weekly_plan.get(date_key)
        if day is None:
            raise NotFoundError(f"No plan for {date_key}")
        return day


def _shift_totals(
    day: DayPlan, *, removed: PlannedMeal | None, added: PlannedMeal | None
) -> None:
    """Apply a slot change to each total the day tracks."""
    old_macros = removed.macros if removed else Macros()
    new_macros = added.macros if added else Macros()
    old_calories = removed.calories if removed else 0
    new_calories = added.calories if added else 0
    if day.total_calories is not None:
        day.total_calories = round(day.total_calories + new_calories - old_calories)
    if day.total_protein is not None:
        day.total_protein = round(
            day.total_protein + new_macros.protein - old_macros.protein
        )
    if day.total_carbs is not None:
        day.total_carbs = round(day.total_carbs + new_macros.carbs - old_macros.carbs)
    if day.total_fat is not None:
        day.total_fat = round(day.total_fat + new_macros.fat - old_macros.fat)


def _reseed_progress_meal(
    progress: DailyProgress,
    slot: str,
    snack_index: int | None,
    meal: PlannedMeal,
) -> MealSnapshot | None:
    """Swap in a fresh snapshot; return the old one when it had been eaten."""
    if slot == "snack":
        if snack_index is None or snack_index >= len(progress.snacks):
            return None
        old_snapshot = progress.snacks[snack_index]
        progress.snacks[snack_index] = MealSnapshot.from_meal(meal)
    else:
        old_snapshot = getattr(progress, slot)
        setattr(progress, slot, MealSnapshot.from_meal(meal))
    if old_snapshot is None or not old_snapshot.done:
        return None
    progress.add_consumed(old_snapshot.calories, old_snapshot.macros, -1)
    return old_snapshot


def _release_weekly_consumed(plan: Plan, snapshot: MealSnapshot) -> None:
    consumed = plan.weekly_consumed
    consumed.calories = max(0, round(consumed.calories - snapshot.calories))
    consumed.protein = max(0, round(consumed.protein - snapshot.macros.protein))
    consumed.carbs = max(0, round(consumed.carbs - snapshot.macros.carbs))
    consumed.fat = max(0, round(consumed.fat - snapshot.macros.fat))


def _find_workout(progress: DailyProgress, name: str) -> int | None:
    return next(
        (i for i, item in enumerate(progress.workouts) if item.name == name), None
    )
