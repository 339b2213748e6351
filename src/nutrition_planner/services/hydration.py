"""Workout hydration model and water goal helpers."""

import math
import re
from collections.abc import Iterable

from nutrition_planner.domain.plans import Workout

MIN_WATER_GLASSES = 8
CALORIES_PER_GLASS = 150
GLASS_ML = 250
_MIN_BASE_GLASSES = 6
_MAX_BASE_GLASSES = 12

_TIME_PATTERN = re.compile(r"^\s*(\d{1,2})(?::(\d{2}))?")
_TARGET_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*([a-z]*)")

# (hour upper bound, multiplier); early sessions need more water over the day.
_TIME_MULTIPLIERS = ((9, 1.5), (12, 1.25), (17, 1.0), (21, 0.75))
_LATE_MULTIPLIER = 0.5


def calculate_workout_water_glasses(
    calories_burned: float, time: str | None = None
) -> int:
    """Return extra water glasses for a workout at an optional HH:MM time."""
    base = max(1, math.ceil(calories_burned / CALORIES_PER_GLASS))
    hour = _parse_hour(time)
    if hour is None:
        return base
    return max(1, math.ceil(base * _time_multiplier(hour)))


def calculate_day_workout_water(workouts: Iterable[Workout]) -> int:
    """Return extra glasses for every workout of a day."""
    return sum(
        calculate_workout_water_glasses(workout.calories_burned, workout.time)
        for workout in workouts
    )


def clamp_water_goal(glasses: float) -> int:
    """Apply the minimum daily water goal."""
    return max(MIN_WATER_GLASSES, round(glasses))


def calculate_base_water_glasses(target: str | int | None) -> int:
    """Convert a water target in glasses, litres or ml to a glass count."""
    if target is None or isinstance(target, bool):
        return MIN_WATER_GLASSES
    if isinstance(target, int):
        glasses = target
    else:
        match = _TARGET_PATTERN.search(target.strip().lower())
        if match is None:
            return MIN_WATER_GLASSES
        value = float(match.group(1))
        unit = match.group(2)
        if unit == "ml":
            glasses = round(value / GLASS_ML)
        elif unit in {"l", "liter", "liters", "litre", "litres"}:
            glasses = round(value * 1000 / GLASS_ML)
        else:
            glasses = round(value)
    if glasses <= 0:
        return MIN_WATER_GLASSES
    return min(_MAX_BASE_GLASSES, max(_MIN_BASE_GLASSES, glasses))


def _parse_hour(time: str | None) -> int | None:
    if not time:
        return None
    match = _TIME_PATTERN.match(time)
    if match is None:
        return None
    hour = int(match.group(1))
    if hour > 23:  # noqa: PLR2004
        return None
    return hour


def _time_multiplier(hour: int) -> float:
    for upper_bound, multiplier in _TIME_MULTIPLIERS:
        if hour < upper_bound:
            return multiplier
    return _LATE_MULTIPLIER
