"""Domain models for streaks, habit scores and badges."""

from dataclasses import dataclass, field
from datetime import date, datetime


@dataclass(frozen=True)
class BadgeDefinition:
    """Static description of an earnable badge."""

    id: str
    name: str
    description: str
    icon: str
    category: str


@dataclass(frozen=True)
class Badge:
    """Badge earned by a user."""

    id: str
    name: str
    icon: str
    category: str
    earned_at: datetime


_BADGES = (
    ("first_meal", "First Step", "Logged your first meal", "🍽️", "milestone"),
    ("streak_7", "Week Warrior", "7-day streak", "🔥", "streak"),
    ("streak_30", "Monthly Master", "30-day streak", "💪", "streak"),
    ("streak_100", "Century Club", "100-day streak", "🏆", "streak"),
    ("meals_50", "Consistent Eater", "Logged 50 meals", "🥗", "meals"),
    ("meals_100", "Meal Pro", "Logged 100 meals", "⭐", "meals"),
    ("meals_500", "Nutrition Legend", "Logged 500 meals", "👑", "meals"),
    ("perfect_week", "Perfect Week", "Tracked all 7 days", "📅", "nutrition"),
    ("hydration_hero", "Hydration Hero", "Water goal hit 7 days", "💧", "nutrition"),
)

BADGE_DEFINITIONS: dict[str, BadgeDefinition] = {
    badge_id: BadgeDefinition(badge_id, name, description, icon, category)
    for badge_id, name, description, icon, category in _BADGES
}


@dataclass(frozen=True)
class HabitScore:
    """Habit score with its weighted components."""

    total: int
    consistency: float
    streak: float
    goals: float
    mindfulness: float


@dataclass(frozen=True)
class StreakSummary:
    """Current and longest streak derived from the progress ledger."""

    current: int
    longest: int
    last_active_date: date | None


@dataclass
class EngagementState:
    """Stored engagement record for a user."""

    xp: int
    level: int
    habit_score: int
    streak_days: int
    longest_streak: int
    last_active_date: date | None
    weekly_consistency: int
    total_meals_logged: int
    total_days_tracked: int
    badges: list[Badge] = field(default_factory=list)
    streak_freeze_available: bool = True
    streak_freeze_used_at: datetime | None = None

    def has_badge(self, badge_id: str) -> bool:
        """Return True when the badge was already earned."""
        return any(badge.id == badge_id for badge in self.badges)


def default_engagement() -> EngagementState:
    """Return the initial engagement record for a new user."""
    return EngagementState(
        xp=0,
        level=1,
        habit_score=0,
        streak_days=0,
        longest_streak=0,
        last_active_date=None,
        weekly_consistency=0,
        total_meals_logged=0,
        total_days_tracked=0,
        badges=[],
        streak_freeze_available=True,
        streak_freeze_used_at=None,
    )
