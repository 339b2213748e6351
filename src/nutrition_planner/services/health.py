"""Metabolic target calculations used when creating plans."""

from nutrition_planner.domain.meals import Macros
from nutrition_planner.domain.plans import UserMetrics
from nutrition_planner.domain.users import UserProfile

ACTIVITY_MULTIPLIERS = {1: 1.2, 2: 1.375, 3: 1.55, 4: 1.725, 5: 1.9}
DEFAULT_ACTIVITY_MULTIPLIER = 1.55

PATH_CALORIE_ADJUSTMENTS = {
    "healthy": 0,
    "running": 0,
    "lose": -500,
    "lose-weight": -500,
    "muscle": 300,
    "gain-muscle": 300,
    "keto": -200,
    "fasting": -300,
    "custom": 0,
}

PATH_WATER_INTAKE = {
    "healthy": 8,
    "running": 8,
    "lose": 10,
    "lose-weight": 10,
    "muscle": 12,
    "gain-muscle": 12,
    "keto": 12,
    "fasting": 10,
    "custom": 8,
}

PATH_WORKOUTS_GOAL = {
    "healthy": 3,
    "running": 4,
    "lose": 5,
    "lose-weight": 5,
    "muscle": 5,
    "gain-muscle": 5,
    "keto": 4,
    "fasting": 3,
    "custom": 1,
}

# Protein, carbs, fat shares of daily calories.
_MACRO_SPLITS = {
    "muscle": (0.30, 0.40, 0.30),
    "gain-muscle": (0.30, 0.40, 0.30),
    "keto": (0.25, 0.05, 0.70),
    "lose": (0.35, 0.30, 0.35),
    "lose-weight": (0.35, 0.30, 0.35),
    "fasting": (0.30, 0.35, 0.35),
}
_DEFAULT_MACRO_SPLIT = (0.25, 0.45, 0.30)

_MIN_BMI = 18.5
_MAX_BMI = 24.9


def calculate_bmr(profile: UserProfile) -> float:
    """Return basal metabolic rate using the revised Harris-Benedict equation."""
    if profile.gender.lower() == "female":
        return (
            447.593
            + 9.247 * profile.weight_kg
            + 3.098 * profile.height_cm
            - 4.33 * profile.age
        )
    return (
        88.362
        + 13.397 * profile.weight_kg
        + 4.799 * profile.height_cm
        - 5.677 * profile.age
    )


def calculate_tdee(bmr: float, workout_frequency: int) -> float:
    """Scale BMR by the activity multiplier for the workout frequency."""
    multiplier = ACTIVITY_MULTIPLIERS.get(
        workout_frequency, DEFAULT_ACTIVITY_MULTIPLIER
    )
    return bmr * multiplier


def calculate_target_calories(tdee: float, path: str) -> int:
    """Apply the path calorie adjustment to TDEE."""
    return round(tdee + PATH_CALORIE_ADJUSTMENTS.get(path, 0))


def calculate_ideal_weight(height_cm: float) -> tuple[float, float]:
    """Return the healthy BMI weight range for a height."""
    height_m = height_cm / 100
    return (
        round(_MIN_BMI * height_m**2, 1),
        round(_MAX_BMI * height_m**2, 1),
    )


def calculate_macros(target_calories: float, path: str) -> Macros:
    """Split daily calories into protein, carb and fat grams."""
    protein, carbs, fat = _MACRO_SPLITS.get(path, _DEFAULT_MACRO_SPLIT)
    return Macros(
        protein=round(target_calories * protein / 4),
        carbs=round(target_calories * carbs / 4),
        fat=round(target_calories * fat / 9),
    )


def build_user_metrics(profile: UserProfile) -> UserMetrics:
    """Compute the metabolic targets stored on a new plan."""
    bmr = calculate_bmr(profile)
    tdee = calculate_tdee(bmr, profile.workout_frequency)
    target = calculate_target_calories(tdee, profile.path)
    ideal_min, ideal_max = calculate_ideal_weight(profile.height_cm)
    return UserMetrics(
        bmr=round(bmr),
        tdee=round(tdee),
        target_calories=target,
        ideal_weight_min=ideal_min,
        ideal_weight_max=ideal_max,
        daily_macros=calculate_macros(target, profile.path),
        water_goal=PATH_WATER_INTAKE.get(profile.path, 8),
        workouts_goal=PATH_WORKOUTS_GOAL.get(profile.path, 3),
    )
