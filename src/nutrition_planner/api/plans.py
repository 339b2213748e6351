"""Plan, meal and workout endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Request

from nutrition_planner.api.schemas import (  # noqa: TC001
    AddSnackRequest,
    ProfileRequest,
    ReplaceMealRequest,
    WaterRequest,
    WorkoutPatchRequest,
    WorkoutRequest,
)
from nutrition_planner.services.plans import WorkoutUpdate

if TYPE_CHECKING:
    from nutrition_planner.containers import AppContainer

router = APIRouter(tags=["plans"])


def _container(request: Request) -> AppContainer:
    return request.app.state.container


@router.post("/users/{user_id}/plan")
async def create_plan(
    user_id: UUID, body: ProfileRequest, request: Request
) -> dict[str, object]:
    """Create the user's plan with fresh metabolic targets."""
    plan = _container(request).plan_service.create_initial_plan(
        user_id, body.to_profile(user_id), body.language
    )
    return {"plan": plan}


@router.get("/users/{user_id}/plan")
async def current_plan(user_id: UUID, request: Request) -> dict[str, object]:
    """Return the current weekly plan, drafting a new week when needed."""
    plan = await _container(request).plan_service.get_current_weekly_plan(user_id)
    return {"plan": plan}


@router.get("/users/{user_id}/plan/days/{day}")
async def day_plan(user_id: UUID, day: str, request: Request) -> dict[str, object]:
    """Return one day entry."""
    date_key, entry = _container(request).plan_service.get_day_plan(user_id, day)
    return {"date_key": date_key, "day": entry}


@router.put("/users/{user_id}/plan/days/{day}/water")
async def update_water(
    user_id: UUID, day: str, body: WaterRequest, request: Request
) -> dict[str, object]:
    """Set a day's planned water intake."""
    plan = _container(request).plan_service.update_water_intake(
        user_id, day, body.glasses
    )
    return {"plan": plan}


@router.post("/plans/{plan_id}/replace-meal")
async def replace_meal(
    plan_id: UUID, body: ReplaceMealRequest, request: Request
) -> dict[str, object]:
    """Replace a meal slot and propagate to progress and shopping."""
    result = await _container(request).plan_service.replace_meal(
        body.user_id,
        plan_id,
        body.date,
        body.meal_type,
        body.new_meal.to_candidate(),
        snack_index=body.snack_index,
        language=body.language,
        rules=body.rules,
    )
    return {
        "plan": result.plan,
        "replaced_meal": result.replaced_meal,
        "date_key": result.date_key,
        "meal_type": result.meal_type,
        "snack_index": result.snack_index,
        "meal_source": result.meal_source,
    }


@router.post("/plans/{plan_id}/snacks")
async def add_snack(
    plan_id: UUID, body: AddSnackRequest, request: Request
) -> dict[str, object]:
    """Append a snack to a day."""
    result = await _container(request).plan_service.add_snack(
        plan_id, body.date, body.name, body.language
    )
    return {"plan": result.plan, "date_key": result.date_key, "snack": result.snack}


@router.delete("/users/{user_id}/plan/days/{day}/snacks/{snack_index}")
async def delete_snack(
    user_id: UUID, day: str, snack_index: int, request: Request
) -> dict[str, object]:
    """Remove a snack from a day."""
    result = _container(request).plan_service.delete_snack(user_id, day, snack_index)
    return {"plan": result.plan, "date_key": result.date_key, "snack": result.snack}


@router.post("/users/{user_id}/plan/days/{day}/workouts")
async def add_workout(
    user_id: UUID, day: str, body: WorkoutRequest, request: Request
) -> dict[str, object]:
    """Schedule a workout."""
    result = _container(request).plan_service.add_workout(
        user_id,
        day,
        body.name,
        category=body.category,
        duration=body.duration,
        calories_burned=body.calories_burned,
        time=body.time,
    )
    return {
        "plan": result.plan,
        "workout": result.workout,
        "adjustments": result.adjustments,
    }


@router.patch("/users/{user_id}/plan/days/{day}/workouts/{workout_index}")
async def update_workout(
    user_id: UUID,
    day: str,
    workout_index: int,
    body: WorkoutPatchRequest,
    request: Request,
) -> dict[str, object]:
    """Edit a scheduled workout."""
    result = _container(request).plan_service.update_workout_in_plan(
        user_id, day, workout_index, WorkoutUpdate(**body.model_dump())
    )
    return {
        "plan": result.plan,
        "workout": result.workout,
        "adjustments": result.adjustments,
    }


@router.delete("/users/{user_id}/plan/days/{day}/workouts/{workout_name}")
async def delete_workout(
    user_id: UUID, day: str, workout_name: str, request: Request
) -> dict[str, object]:
    """Remove a scheduled workout."""
    result = _container(request).plan_service.delete_workout(
        user_id, day, workout_name
    )
    return {
        "plan": result.plan,
        "workout": result.workout,
        "adjustments": result.adjustments,
    }
