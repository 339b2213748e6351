"""Supabase implementation for engagement records."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from nutrition_planner.adapters.supabase_documents import parse_date, parse_datetime
from nutrition_planner.domain.engagement import Badge, EngagementState
from nutrition_planner.services.engagement import EngagementRepository


@dataclass
class SupabaseEngagementRepository(EngagementRepository):
    """Supabase-backed repository with one engagement row per user."""

    client: Client

    def get_state(self, user_id: UUID) -> EngagementState | None:
        """Return the engagement record of a user, if present."""
        response = (
            self.client.table("user_engagement")
            .select("*")
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_state(response.data[0])

    def save_state(self, user_id: UUID, state: EngagementState) -> EngagementState:
        """Create or replace the engagement record of a user."""
        payload = {"user_id": str(user_id), **_state_row(state)}
        existing = (
            self.client.table("user_engagement")
            .select("user_id")
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if existing.data:
            response = (
                self.client.table("user_engagement")
                .update(payload)
                .eq("user_id", str(user_id))
                .execute()
            )
        else:
            response = self.client.table("user_engagement").insert(payload).execute()
        if not response.data:
            raise RuntimeError("Failed to save engagement")
        return _parse_state(response.data[0])

    def reset_streak_freezes(self) -> int:
        """Make the streak freeze available for every user that used it."""
        response = (
            self.client.table("user_engagement")
            .update({"streak_freeze_available": True})
            .eq("streak_freeze_available", False)
            .execute()
        )
        return len(response.data or [])


def _state_row(state: EngagementState) -> dict[str, object]:
    return {
        "xp": state.xp,
        "level": state.level,
        "habit_score": state.habit_score,
        "streak_days": state.streak_days,
        "longest_streak": state.longest_streak,
        "last_active_date": (
            state.last_active_date.isoformat() if state.last_active_date else None
        ),
        "weekly_consistency": state.weekly_consistency,
        "total_meals_logged": state.total_meals_logged,
        "total_days_tracked": state.total_days_tracked,
        "badges": [
            {
                "id": badge.id,
                "name": badge.name,
                "icon": badge.icon,
                "category": badge.category,
                "earned_at": badge.earned_at.isoformat(),
            }
            for badge in state.badges
        ],
        "streak_freeze_available": state.streak_freeze_available,
        "streak_freeze_used_at": (
            state.streak_freeze_used_at.isoformat()
            if state.streak_freeze_used_at
            else None
        ),
    }


def _parse_state(row: dict[str, object]) -> EngagementState:
    """Parse an engagement row into a domain model."""
    badges = []
    for item in row.get("badges") or []:
        earned_at = parse_datetime(item.get("earned_at"))
        if earned_at is None:
            continue
        badges.append(
            Badge(
                id=str(item.get("id", "")),
                name=str(item.get("name", "")),
                icon=str(item.get("icon", "")),
                category=str(item.get("category", "")),
                earned_at=earned_at,
            )
        )
    return EngagementState(
        xp=int(row.get("xp") or 0),
        level=int(row.get("level") or 1),
        habit_score=int(row.get("habit_score") or 0),
        streak_days=int(row.get("streak_days") or 0),
        longest_streak=int(row.get("longest_streak") or 0),
        last_active_date=parse_date(row.get("last_active_date")),
        weekly_consistency=int(row.get("weekly_consistency") or 0),
        total_meals_logged=int(row.get("total_meals_logged") or 0),
        total_days_tracked=int(row.get("total_days_tracked") or 0),
        badges=badges,
        streak_freeze_available=bool(row.get("streak_freeze_available", True)),
        streak_freeze_used_at=parse_datetime(row.get("streak_freeze_used_at")),
    )
