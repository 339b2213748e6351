"""Date-key helpers shared by plan, progress and engagement services."""

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from nutrition_planner.domain.errors import ValidationError

DATE_KEY_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
WEEKDAY_NAMES = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)
SUNDAY = 6


def to_date_key(day: date) -> str:
    """Format a date as a YYYY-MM-DD key."""
    return day.isoformat()


def parse_date_key(key: str) -> date:
    """Parse a YYYY-MM-DD key, rejecting impossible dates."""
    if not DATE_KEY_PATTERN.match(key):
        raise ValidationError(f"Invalid date key: {key}")
    try:
        return date.fromisoformat(key)
    except ValueError as exc:
        raise ValidationError(f"Invalid date key: {key}") from exc


def weekday_index(name: str) -> int | None:
    """Return the Monday-based index of a weekday name."""
    try:
        return WEEKDAY_NAMES.index(name.strip().lower())
    except ValueError:
        return None


def week_dates_from(today: date) -> list[date]:
    """Return dates from today through the following Sunday."""
    days_until_sunday = SUNDAY - today.weekday()
    return [today + timedelta(days=offset) for offset in range(days_until_sunday + 1)]


@dataclass(frozen=True)
class TimezoneClock:
    """Clock returning the current date in a configured timezone."""

    timezone_name: str = "UTC"

    def today(self) -> date:
        """Return today's date in the configured timezone."""
        return datetime.now(tz=ZoneInfo(self.timezone_name)).date()
