"""Supabase implementation for daily progress rows."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from nutrition_planner.adapters.supabase_documents import (
    dump_counter,
    dump_snapshot,
    dump_workout,
    parse_counter,
    parse_snapshot,
    parse_workout_entry,
)
from nutrition_planner.domain.progress import DailyProgress
from nutrition_planner.services.progress import ProgressRepository


@dataclass
class SupabaseProgressRepository(ProgressRepository):
    """Supabase-backed repository keyed by user and date key."""

    client: Client

    def get(self, user_id: UUID, date_key: str) -> DailyProgress | None:
        """Return the row for a user and date key, if present."""
        response = (
            self.client.table("daily_progress")
            .select("*")
            .eq("user_id", str(user_id))
            .eq("date_key", date_key)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_progress(response.data[0])

    def save(self, progress: DailyProgress) -> DailyProgress:
        """Create or replace the row for its user and date key."""
        payload = _progress_row(progress)
        if progress.id is None:
            response = self.client.table("daily_progress").insert(payload).execute()
        else:
            response = (
                self.client.table("daily_progress")
                .update(payload)
                .eq("id", str(progress.id))
                .execute()
            )
        if not response.data:
            raise RuntimeError("Failed to save progress")
        return _parse_progress(response.data[0])

    def list_range(
        self, user_id: UUID, start_key: str, end_key: str
    ) -> list[DailyProgress]:
        """Return rows with start_key <= date_key <= end_key."""
        response = (
            self.client.table("daily_progress")
            .select("*")
            .eq("user_id", str(user_id))
            .gte("date_key", start_key)
            .lte("date_key", end_key)
            .order("date_key")
            .execute()
        )
        return [_parse_progress(row) for row in response.data or []]

    def list_for_user(self, user_id: UUID) -> list[DailyProgress]:
        """Return every row of a user."""
        response = (
            self.client.table("daily_progress")
            .select("*")
            .eq("user_id", str(user_id))
            .order("date_key", desc=True)
            .execute()
        )
        return [_parse_progress(row) for row in response.data or []]


def _progress_row(progress: DailyProgress) -> dict[str, object]:
    return {
        "user_id": str(progress.user_id),
        "date_key": progress.date_key,
        "meals": {
            "breakfast": dump_snapshot(progress.breakfast),
            "lunch": dump_snapshot(progress.lunch),
            "dinner": dump_snapshot(progress.dinner),
            "snacks": [dump_snapshot(snack) for snack in progress.snacks],
        },
        "workouts": [dump_workout(workout) for workout in progress.workouts],
        "calories_consumed": progress.calories_consumed,
        "calories_goal": progress.calories_goal,
        "protein": dump_counter(progress.protein),
        "carbs": dump_counter(progress.carbs),
        "fat": dump_counter(progress.fat),
        "water": dump_counter(progress.water),
    }


def _parse_progress(row: dict[str, object]) -> DailyProgress:
    """Parse a progress row into a domain model."""
    meals = row.get("meals") or {}
    snacks = (parse_snapshot(item) for item in meals.get("snacks") or [])
    return DailyProgress(
        id=UUID(row["id"]),
        user_id=UUID(row["user_id"]),
        date_key=str(row["date_key"]),
        breakfast=parse_snapshot(meals.get("breakfast")),
        lunch=parse_snapshot(meals.get("lunch")),
        dinner=parse_snapshot(meals.get("dinner")),
        snacks=[snack for snack in snacks if snack is not None],
        workouts=[parse_workout_entry(item) for item in row.get("workouts") or []],
        calories_consumed=float(row.get("calories_consumed") or 0),
        calories_goal=float(row.get("calories_goal") or 0),
        protein=parse_counter(row.get("protein")),
        carbs=parse_counter(row.get("carbs")),
        fat=parse_counter(row.get("fat")),
        water=parse_counter(row.get("water")),
    )
