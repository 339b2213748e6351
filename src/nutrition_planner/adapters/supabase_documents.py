"""JSON column converters shared by the Supabase repositories."""

from datetime import date, datetime
from uuid import UUID

from nutrition_planner.domain.meals import Ingredient, Macros, PlannedMeal
from nutrition_planner.domain.plans import DayPlan, NutrientTotals, UserMetrics, Workout
from nutrition_planner.domain.progress import Counter, MealSnapshot, WorkoutEntry
from nutrition_planner.services.ingredients import coerce_ingredients


def dump_macros(macros: Macros) -> dict[str, float]:
    """Serialize macros."""
    return {"protein": macros.protein, "carbs": macros.carbs, "fat": macros.fat}


def parse_macros(raw: object) -> Macros:
    """Parse a macros object, treating missing values as zero."""
    if not isinstance(raw, dict):
        return Macros()
    return Macros(
        protein=float(raw.get("protein") or 0),
        carbs=float(raw.get("carbs") or 0),
        fat=float(raw.get("fat") or 0),
    )


def dump_ingredients(ingredients: tuple[Ingredient, ...]) -> list[list[str]]:
    """Serialize ingredients as [name, amount] or [name, amount, category]."""
    rows = []
    for item in ingredients:
        row = [item.name, item.amount]
        if item.category:
            row.append(item.category)
        rows.append(row)
    return rows


def dump_planned_meal(meal: PlannedMeal | None) -> dict[str, object] | None:
    """Serialize a planned meal slot."""
    if meal is None:
        return None
    return {
        "meal_id": str(meal.meal_id) if meal.meal_id else None,
        "name": meal.name,
        "category": meal.category,
        "calories": meal.calories,
        "macros": dump_macros(meal.macros),
        "ingredients": dump_ingredients(meal.ingredients),
        "prep_time": meal.prep_time,
    }


def parse_planned_meal(raw: object) -> PlannedMeal | None:
    """Parse a planned meal slot."""
    if not isinstance(raw, dict):
        return None
    return PlannedMeal(
        name=str(raw.get("name", "")),
        category=str(raw.get("category", "")),
        calories=round(float(raw.get("calories") or 0)),
        macros=parse_macros(raw.get("macros")),
        ingredients=coerce_ingredients(raw.get("ingredients") or []),
        prep_time=int(raw.get("prep_time") or 30),
        meal_id=_parse_uuid(raw.get("meal_id")),
    )


def dump_workout(workout: Workout | WorkoutEntry) -> dict[str, object]:
    """Serialize a planned workout or a ledger workout entry."""
    payload: dict[str, object] = {
        "name": workout.name,
        "category": workout.category,
        "duration": workout.duration,
        "calories_burned": workout.calories_burned,
        "time": workout.time,
    }
    if isinstance(workout, WorkoutEntry):
        payload["done"] = workout.done
    return payload


def parse_workout(raw: dict[str, object]) -> Workout:
    """Parse a planned workout."""
    return Workout(
        name=str(raw.get("name", "")),
        category=str(raw.get("category", "")),
        duration=int(raw.get("duration") or 0),
        calories_burned=int(raw.get("calories_burned") or 0),
        time=raw.get("time"),
    )


def parse_workout_entry(raw: dict[str, object]) -> WorkoutEntry:
    """Parse a ledger workout entry."""
    return WorkoutEntry.from_workout(parse_workout(raw), done=bool(raw.get("done")))


def dump_day(day: DayPlan) -> dict[str, object]:
    """Serialize a day entry."""
    return {
        "breakfast": dump_planned_meal(day.breakfast),
        "lunch": dump_planned_meal(day.lunch),
        "dinner": dump_planned_meal(day.dinner),
        "snacks": [dump_planned_meal(snack) for snack in day.snacks],
        "workouts": [dump_workout(workout) for workout in day.workouts],
        "water_intake": day.water_intake,
        "total_calories": day.total_calories,
        "total_protein": day.total_protein,
        "total_carbs": day.total_carbs,
        "total_fat": day.total_fat,
    }


def parse_day(raw: dict[str, object]) -> DayPlan:
    """Parse a day entry."""
    snacks = (parse_planned_meal(item) for item in raw.get("snacks") or [])
    return DayPlan(
        breakfast=parse_planned_meal(raw.get("breakfast")),
        lunch=parse_planned_meal(raw.get("lunch")),
        dinner=parse_planned_meal(raw.get("dinner")),
        snacks=[snack for snack in snacks if snack is not None],
        workouts=[parse_workout(item) for item in raw.get("workouts") or []],
        water_intake=raw.get("water_intake"),
        total_calories=raw.get("total_calories"),
        total_protein=raw.get("total_protein"),
        total_carbs=raw.get("total_carbs"),
        total_fat=raw.get("total_fat"),
    )


def dump_metrics(metrics: UserMetrics | None) -> dict[str, object] | None:
    """Serialize plan metrics."""
    if metrics is None:
        return None
    return {
        "bmr": metrics.bmr,
        "tdee": metrics.tdee,
        "target_calories": metrics.target_calories,
        "ideal_weight_min": metrics.ideal_weight_min,
        "ideal_weight_max": metrics.ideal_weight_max,
        "daily_macros": dump_macros(metrics.daily_macros),
        "water_goal": metrics.water_goal,
        "workouts_goal": metrics.workouts_goal,
    }


def parse_metrics(raw: object) -> UserMetrics | None:
    """Parse plan metrics."""
    if not isinstance(raw, dict):
        return None
    return UserMetrics(
        bmr=int(raw.get("bmr") or 0),
        tdee=int(raw.get("tdee") or 0),
        target_calories=int(raw.get("target_calories") or 0),
        ideal_weight_min=float(raw.get("ideal_weight_min") or 0),
        ideal_weight_max=float(raw.get("ideal_weight_max") or 0),
        daily_macros=parse_macros(raw.get("daily_macros")),
        water_goal=int(raw.get("water_goal") or 8),
        workouts_goal=int(raw.get("workouts_goal") or 0),
    )


def dump_totals(totals: NutrientTotals) -> dict[str, float]:
    """Serialize running nutrient totals."""
    return {
        "calories": totals.calories,
        "protein": totals.protein,
        "carbs": totals.carbs,
        "fat": totals.fat,
    }


def parse_totals(raw: object) -> NutrientTotals:
    """Parse running nutrient totals."""
    if not isinstance(raw, dict):
        return NutrientTotals()
    return NutrientTotals(
        calories=float(raw.get("calories") or 0),
        protein=float(raw.get("protein") or 0),
        carbs=float(raw.get("carbs") or 0),
        fat=float(raw.get("fat") or 0),
    )


def dump_snapshot(snapshot: MealSnapshot | None) -> dict[str, object] | None:
    """Serialize a progress meal snapshot."""
    if snapshot is None:
        return None
    return {
        "meal_id": str(snapshot.meal_id) if snapshot.meal_id else None,
        "name": snapshot.name,
        "category": snapshot.category,
        "calories": snapshot.calories,
        "macros": dump_macros(snapshot.macros),
        "done": snapshot.done,
    }


def parse_snapshot(raw: object) -> MealSnapshot | None:
    """Parse a progress meal snapshot."""
    if not isinstance(raw, dict):
        return None
    return MealSnapshot(
        name=str(raw.get("name", "")),
        category=str(raw.get("category", "")),
        calories=round(float(raw.get("calories") or 0)),
        macros=parse_macros(raw.get("macros")),
        meal_id=_parse_uuid(raw.get("meal_id")),
        done=bool(raw.get("done")),
    )


def dump_counter(counter: Counter) -> dict[str, float]:
    """Serialize a consumed/goal counter."""
    return {"consumed": counter.consumed, "goal": counter.goal}


def parse_counter(raw: object) -> Counter:
    """Parse a consumed/goal counter."""
    if not isinstance(raw, dict):
        return Counter()
    return Counter(
        consumed=float(raw.get("consumed") or 0), goal=float(raw.get("goal") or 0)
    )


def parse_datetime(raw: object) -> datetime | None:
    """Parse an ISO timestamp column."""
    if isinstance(raw, str) and raw:
        return datetime.fromisoformat(raw)
    return None


def parse_date(raw: object) -> date | None:
    """Parse an ISO date column."""
    if isinstance(raw, str) and raw:
        return date.fromisoformat(raw[:10])
    return None


def _parse_uuid(raw: object) -> UUID | None:
    if isinstance(raw, str) and raw:
        return UUID(raw)
    return None
