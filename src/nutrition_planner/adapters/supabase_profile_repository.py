"""Supabase implementation for user profiles."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from nutrition_planner.domain.users import UserProfile
from nutrition_planner.services.plans import ProfileRepository


@dataclass
class SupabaseProfileRepository(ProfileRepository):
    """Supabase-backed read access to user profiles."""

    client: Client

    def get_profile(self, user_id: UUID) -> UserProfile | None:
        """Return the profile of a user, if present."""
        response = (
            self.client.table("user_profiles")
            .select("*")
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_profile(response.data[0])


def _parse_profile(row: dict[str, object]) -> UserProfile:
    """Parse a profile row into a domain model."""
    return UserProfile(
        id=UUID(row["user_id"]),
        gender=str(row.get("gender") or "male"),
        age=int(row.get("age") or 30),
        height_cm=float(row.get("height_cm") or 175),
        weight_kg=float(row.get("weight_kg") or 75),
        workout_frequency=int(row.get("workout_frequency") or 3),
        path=str(row.get("path") or "healthy"),
        dietary_restrictions=tuple(row.get("dietary_restrictions") or ()),
        preferences=tuple(row.get("preferences") or ()),
        dislikes=tuple(row.get("dislikes") or ()),
        language=str(row.get("language") or "en"),
    )
