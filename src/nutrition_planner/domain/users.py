"""Domain models for user profiles used by planning."""

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class UserProfile:
    """Body metrics and food preferences of a user."""

    id: UUID
    gender: str = "male"
    age: int = 30
    height_cm: float = 175
    weight_kg: float = 75
    workout_frequency: int = 3
    path: str = "healthy"
    dietary_restrictions: tuple[str, ...] = ()
    preferences: tuple[str, ...] = ()
    dislikes: tuple[str, ...] = ()
    language: str = "en"
