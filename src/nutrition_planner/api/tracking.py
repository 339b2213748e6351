"""Progress ledger and engagement endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Request

from nutrition_planner.api.schemas import (  # noqa: TC001
    CustomCaloriesRequest,
    WaterRequest,
)

if TYPE_CHECKING:
    from nutrition_planner.containers import AppContainer

router = APIRouter(prefix="/users/{user_id}", tags=["tracking"])


def _container(request: Request) -> AppContainer:
    return request.app.state.container


@router.get("/progress/today")
async def today_progress(user_id: UUID, request: Request) -> dict[str, object]:
    """Return today's progress, seeding it from the plan when missing."""
    return {"progress": _container(request).progress_service.get_today(user_id)}


@router.get("/progress/{date_key}")
async def progress_by_date(
    user_id: UUID, date_key: str, request: Request
) -> dict[str, object]:
    """Return the progress row for a date."""
    progress = _container(request).progress_service.get_by_date(user_id, date_key)
    return {"progress": progress}


@router.post("/progress/today/meals/{meal_type}/toggle")
async def toggle_meal(
    user_id: UUID,
    meal_type: str,
    request: Request,
    snack_index: int | None = None,
) -> dict[str, object]:
    """Toggle a meal's done flag and update engagement."""
    container = _container(request)
    progress = container.progress_service.toggle_meal(user_id, meal_type, snack_index)
    snapshot = (
        progress.snacks[snack_index]
        if snack_index is not None and meal_type in {"snack", "snacks"}
        else getattr(progress, meal_type)
    )
    engagement = (
        container.engagement_service.on_meal_completed(user_id)
        if snapshot.done
        else container.engagement_service.refresh(user_id)
    )
    return {"progress": progress, "engagement": engagement}


@router.post("/progress/today/workouts/{workout_name}/toggle")
async def toggle_workout(
    user_id: UUID, workout_name: str, request: Request
) -> dict[str, object]:
    """Toggle a workout's done flag."""
    container = _container(request)
    progress = container.progress_service.toggle_workout(user_id, workout_name)
    done = any(item.done for item in progress.workouts if item.name == workout_name)
    engagement = (
        container.engagement_service.on_workout_completed(user_id) if done else None
    )
    return {"progress": progress, "engagement": engagement}


@router.post("/progress/today/water")
async def add_water_glass(user_id: UUID, request: Request) -> dict[str, object]:
    """Add one glass of water."""
    return {"progress": _container(request).progress_service.add_water_glass(user_id)}


@router.put("/progress/today/water")
async def set_water(
    user_id: UUID, body: WaterRequest, request: Request
) -> dict[str, object]:
    """Set today's water count."""
    progress = _container(request).progress_service.set_water(user_id, body.glasses)
    return {"progress": progress}


@router.post("/progress/today/custom-calories")
async def add_custom_calories(
    user_id: UUID, body: CustomCaloriesRequest, request: Request
) -> dict[str, object]:
    """Record food eaten outside the plan."""
    macros = body.macros.to_macros() if body.macros else None
    progress = _container(request).progress_service.add_custom_calories(
        user_id, body.calories, macros
    )
    return {"progress": progress}


@router.post("/progress/today/reset")
async def reset_today(user_id: UUID, request: Request) -> dict[str, object]:
    """Clear today's consumed counters and done flags."""
    return {"progress": _container(request).progress_service.reset_today(user_id)}


@router.get("/analytics")
async def analytics(
    user_id: UUID, request: Request, period: str = "week"
) -> dict[str, object]:
    """Return totals and averages for the last week or month."""
    summary = _container(request).progress_service.analytics(user_id, period)
    return {"analytics": summary}


@router.get("/engagement")
async def engagement(user_id: UUID, request: Request) -> dict[str, object]:
    """Recompute and return the engagement record."""
    update = _container(request).engagement_service.refresh(user_id)
    return {"engagement": update.state, "new_badges": update.new_badges}


@router.post("/engagement/streak-freeze")
async def use_streak_freeze(user_id: UUID, request: Request) -> dict[str, object]:
    """Consume this month's streak freeze."""
    state = _container(request).engagement_service.use_streak_freeze(user_id)
    return {"engagement": state}
