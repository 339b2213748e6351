"""Streaks, habit scores, XP and badges derived from the progress ledger."""

import logging
import math
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from typing import Protocol
from uuid import UUID

from nutrition_planner.domain.engagement import (
    BADGE_DEFINITIONS,
    Badge,
    EngagementState,
    HabitScore,
    StreakSummary,
    default_engagement,
)
from nutrition_planner.domain.errors import ValidationError
from nutrition_planner.domain.progress import DailyProgress
from nutrition_planner.services.dates import parse_date_key, to_date_key
from nutrition_planner.services.progress import ProgressRepository

XP_REWARDS = {
    "MEAL_LOGGED": 10,
    "WORKOUT_COMPLETED": 25,
    "FIRST_MEAL": 50,
    "STREAK_7": 100,
    "STREAK_30": 500,
    "STREAK_100": 2000,
}
STREAK_BADGES = (
    (7, "streak_7", "STREAK_7"),
    (30, "streak_30", "STREAK_30"),
    (100, "streak_100", "STREAK_100"),
)
MEAL_BADGES = ((50, "meals_50"), (100, "meals_100"), (500, "meals_500"))
MINDFULNESS_POINTS = {
    "first_meal": 5,
    "meals_50": 5,
    "perfect_week": 10,
    "hydration_hero": 10,
}

_WINDOW_DAYS = 7
_MAX_MISSED_DAYS = 2
_STREAK_CAP = 30
_GOAL_LOW = 0.85
_GOAL_HIGH = 1.15
_CONSISTENCY_WEIGHT = 30
_STREAK_WEIGHT = 25
_GOALS_WEIGHT = 25
_MINDFULNESS_CAP = 20

_logger = logging.getLogger(__name__)


class EngagementRepository(Protocol):
    """Persistence interface for engagement records."""

    def get_state(self, user_id: UUID) -> EngagementState | None:
        """Return the engagement record of a user, if present."""

    def save_state(self, user_id: UUID, state: EngagementState) -> EngagementState:
        """Create or replace the engagement record of a user."""

    def reset_streak_freezes(self) -> int:
        """Make the streak freeze available for every user that used it."""


@dataclass(frozen=True)
class EngagementUpdate:
    """Engagement record after an event, with what it earned."""

    state: EngagementState
    xp_gained: int
    new_badges: list[Badge]


def calculate_level(xp: int) -> int:
    """Return the level reached with the given XP."""
    return math.floor(math.sqrt(max(xp, 0) / 100)) + 1


def xp_for_level(level: int) -> int:
    """Return the XP needed to reach a level."""
    return (level - 1) ** 2 * 100


def compute_streak(active_days: Iterable[date], today: date) -> StreakSummary:
    """Apply the freeze-then-decay streak policy to a set of active days.

    The run ending at the most recent active day is counted walking backwards,
    tolerating single missed days and stopping at two consecutive misses. One
    day without activity since then freezes the run; two or more decay it by
    exactly one, never below zero.
    """
    days = {day for day in active_days if day <= today}
    if not days:
        return StreakSummary(current=0, longest=0, last_active_date=None)
    last_active = max(days)
    prior = _run_length(days, last_active)
    days_since = (today - last_active).days
    current = prior if days_since <= 1 else max(0, prior - 1)
    return StreakSummary(
        current=current,
        longest=max(current, _longest_consecutive_run(days)),
        last_active_date=last_active,
    )


def compute_habit_score(
    rows: Iterable[DailyProgress],
    streak: int,
    badges: Iterable[Badge],
    today: date,
) -> HabitScore:
    """Blend recent activity, streak, goal hits and badges into 0-100."""
    recent = _recent_rows(rows, today)
    active = sum(1 for row in recent if row.is_active())
    goal_hits = sum(1 for row in recent if _calorie_goal_hit(row))
    consistency = _CONSISTENCY_WEIGHT * active / _WINDOW_DAYS
    streak_part = _STREAK_WEIGHT * min(streak, _STREAK_CAP) / _STREAK_CAP
    goals = _GOALS_WEIGHT * goal_hits / _WINDOW_DAYS
    mindfulness = min(
        _MINDFULNESS_CAP,
        sum(MINDFULNESS_POINTS.get(badge.id, 0) for badge in badges),
    )
    total = round(consistency + streak_part + goals + mindfulness)
    return HabitScore(
        total=max(0, min(100, total)),
        consistency=round(consistency, 1),
        streak=round(streak_part, 1),
        goals=round(goals, 1),
        mindfulness=mindfulness,
    )


@dataclass
class EngagementService:
    """Maintains engagement records from progress activity."""

    repository: EngagementRepository
    progress: ProgressRepository
    clock: Callable[[], date]

    def get_state(self, user_id: UUID) -> EngagementState:
        """Return the engagement record, creating the default one when missing."""
        state = self.repository.get_state(user_id)
        if state is None:
            state = self.repository.save_state(user_id, default_engagement())
            _logger.info("Engagement created: user_id=%s", user_id)
        return state

    def calculate_streak(self, user_id: UUID) -> StreakSummary:
        """Return the current and longest streak for a user."""
        rows = self.progress.list_for_user(user_id)
        return compute_streak(_active_days(rows), self.clock())

    def refresh(self, user_id: UUID) -> EngagementUpdate:
        """Recompute streak, habit score and ledger-derived badges."""
        state = self.get_state(user_id)
        xp_gained, badges = self._apply_ledger(user_id, state)
        state = self.repository.save_state(user_id, state)
        return EngagementUpdate(state=state, xp_gained=xp_gained, new_badges=badges)

    def on_meal_completed(self, user_id: UUID) -> EngagementUpdate:
        """Award XP and milestone badges for a completed meal."""
        state = self.get_state(user_id)
        state.total_meals_logged += 1
        xp_gained = XP_REWARDS["MEAL_LOGGED"]
        new_badges: list[Badge] = []
        if state.total_meals_logged == 1 and _award(state, "first_meal", new_badges):
            xp_gained += XP_REWARDS["FIRST_MEAL"]
        for threshold, badge_id in MEAL_BADGES:
            if state.total_meals_logged >= threshold:
                _award(state, badge_id, new_badges)
        state.xp += xp_gained
        ledger_xp, ledger_badges = self._apply_ledger(user_id, state)
        state = self.repository.save_state(user_id, state)
        return EngagementUpdate(
            state=state,
            xp_gained=xp_gained + ledger_xp,
            new_badges=new_badges + ledger_badges,
        )

    def on_workout_completed(self, user_id: UUID) -> EngagementUpdate:
        """Award XP for a completed workout."""
        state = self.get_state(user_id)
        xp_gained = XP_REWARDS["WORKOUT_COMPLETED"]
        state.xp += xp_gained
        state.level = calculate_level(state.xp)
        state = self.repository.save_state(user_id, state)
        return EngagementUpdate(state=state, xp_gained=xp_gained, new_badges=[])

    def use_streak_freeze(self, user_id: UUID) -> EngagementState:
        """Consume the monthly streak freeze."""
        state = self.get_state(user_id)
        if not state.streak_freeze_available:
            raise ValidationError("Streak freeze already used this month")
        state.streak_freeze_available = False
        state.streak_freeze_used_at = datetime.now(tz=UTC)
        return self.repository.save_state(user_id, state)

    def reset_streak_freezes(self) -> int:
        """Restore the streak freeze for every user; safe to rerun."""
        count = self.repository.reset_streak_freezes()
        _logger.info("Streak freezes reset: users=%s", count)
        return count

    def _apply_ledger(
        self, user_id: UUID, state: EngagementState
    ) -> tuple[int, list[Badge]]:
        today = self.clock()
        rows = self.progress.list_for_user(user_id)
        active_days = _active_days(rows)
        streak = compute_streak(active_days, today)
        recent = _recent_rows(rows, today)

        xp_gained = 0
        new_badges: list[Badge] = []
        for threshold, badge_id, reward in STREAK_BADGES:
            if streak.current >= threshold and _award(state, badge_id, new_badges):
                xp_gained += XP_REWARDS[reward]
        if len(recent) == _WINDOW_DAYS and all(row.is_active() for row in recent):
            _award(state, "perfect_week", new_badges)
        if len(recent) == _WINDOW_DAYS and all(_water_goal_hit(row) for row in recent):
            _award(state, "hydration_hero", new_badges)

        state.xp += xp_gained
        state.level = calculate_level(state.xp)
        state.streak_days = streak.current
        state.longest_streak = max(state.longest_streak, streak.longest)
        state.last_active_date = streak.last_active_date
        state.total_days_tracked = len(active_days)
        active_recent = sum(1 for row in recent if row.is_active())
        state.weekly_consistency = round(active_recent / _WINDOW_DAYS * 100)
        state.habit_score = compute_habit_score(
            rows, streak.current, state.badges, today
        ).total
        return xp_gained, new_badges


def _award(state: EngagementState, badge_id: str, earned: list[Badge]) -> bool:
    if state.has_badge(badge_id):
        return False
    definition = BADGE_DEFINITIONS[badge_id]
    badge = Badge(
        id=definition.id,
        name=definition.name,
        icon=definition.icon,
        category=definition.category,
        earned_at=datetime.now(tz=UTC),
    )
    state.badges.append(badge)
    earned.append(badge)
    return True


def _active_days(rows: Iterable[DailyProgress]) -> set[date]:
    return {parse_date_key(row.date_key) for row in rows if row.is_active()}


def _recent_rows(rows: Iterable[DailyProgress], today: date) -> list[DailyProgress]:
    window = {
        to_date_key(today - timedelta(days=offset)) for offset in range(_WINDOW_DAYS)
    }
    return [row for row in rows if row.date_key in window]


def _calorie_goal_hit(row: DailyProgress) -> bool:
    if row.calories_goal <= 0:
        return False
    ratio = row.calories_consumed / row.calories_goal
    return _GOAL_LOW <= ratio <= _GOAL_HIGH


def _water_goal_hit(row: DailyProgress) -> bool:
    return row.water.goal > 0 and row.water.consumed >= row.water.goal


def _run_length(days: set[date], end: date) -> int:
    earliest = min(days)
    streak = 0
    missed = 0
    cursor = end
    while missed < _MAX_MISSED_DAYS and cursor >= earliest:
        if cursor in days:
            streak += 1
            missed = 0
        else:
            missed += 1
        cursor -= timedelta(days=1)
    return streak


def _longest_consecutive_run(days: set[date]) -> int:
    longest = 0
    for day in days:
        if day - timedelta(days=1) in days:
            continue
        length = 1
        while day + timedelta(days=length) in days:
            length += 1
        longest = max(longest, length)
    return longest
