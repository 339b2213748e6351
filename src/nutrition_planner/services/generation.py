"""Meal and week drafting through a structured-output LLM client."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from typing import Protocol

import pydantic

from nutrition_planner.domain.errors import GenerationError
from nutrition_planner.domain.generation import GeneratedMeal, GeneratedWeek
from nutrition_planner.domain.plans import UserMetrics
from nutrition_planner.domain.users import UserProfile

_logger = logging.getLogger(__name__)

_MEAL_PROPERTIES: dict[str, object] = {
    "name": {"type": "string"},
    "calories": {"type": "number", "minimum": 0},
    "macros": {
        "type": "object",
        "properties": {
            "protein": {"type": "number", "minimum": 0},
            "carbs": {"type": "number", "minimum": 0},
            "fat": {"type": "number", "minimum": 0},
        },
        "required": ["protein", "carbs", "fat"],
        "additionalProperties": False,
    },
    "ingredients": {
        "type": "array",
        "items": {
            "type": "object",
            "properties": {
                "name": {"type": "string"},
                "amount": {"type": "number", "minimum": 0},
                "unit": {"type": "string"},
            },
            "required": ["name", "amount", "unit"],
            "additionalProperties": False,
        },
    },
    "prep_time": {"anyOf": [{"type": "integer", "minimum": 0}, {"type": "null"}]},
}

MEAL_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": _MEAL_PROPERTIES,
    "required": list(_MEAL_PROPERTIES),
    "additionalProperties": False,
}

_WORKOUT_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "category": {"type": "string"},
        "duration": {"type": "integer", "minimum": 0},
        "calories_burned": {"type": "integer", "minimum": 0},
        "time": {"anyOf": [{"type": "string"}, {"type": "null"}]},
    },
    "required": ["name", "category", "duration", "calories_burned", "time"],
    "additionalProperties": False,
}

WEEK_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "days": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "date": {"type": "string"},
                    "breakfast": MEAL_SCHEMA,
                    "lunch": MEAL_SCHEMA,
                    "dinner": MEAL_SCHEMA,
                    "snacks": {"type": "array", "items": MEAL_SCHEMA},
                    "workouts": {"type": "array", "items": _WORKOUT_SCHEMA},
                },
                "required": [
                    "date",
                    "breakfast",
                    "lunch",
                    "dinner",
                    "snacks",
                    "workouts",
                ],
                "additionalProperties": False,
            },
        }
    },
    "required": ["days"],
    "additionalProperties": False,
}


class GenerationClient(Protocol):
    """Interface for structured-output text generation."""

    async def generate(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        schema_name: str,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        """Return structured data matching the schema."""


@dataclass
class MealGenerationService:
    """Builds drafting prompts and validates generated meals."""

    client: GenerationClient
    model: str
    reasoning_effort: str | None
    store: bool

    async def generate_meal(  # noqa: PLR0913
        self,
        *,
        name: str,
        category: str,
        target_calories: float,
        profile: UserProfile,
        language: str = "en",
        rules: str | None = None,
    ) -> GeneratedMeal:
        """Draft a single meal close to the requested name and calories."""
        prompt = _meal_prompt(name, category, target_calories, profile, language, rules)
        raw = await self._generate("meal", MEAL_SCHEMA, prompt)
        try:
            return GeneratedMeal.model_validate(raw)
        except pydantic.ValidationError as exc:
            raise GenerationError(f"Generated meal is invalid: {name}") from exc

    async def generate_week(
        self,
        *,
        dates: Sequence[date],
        profile: UserProfile,
        metrics: UserMetrics | None,
        language: str = "en",
    ) -> GeneratedWeek:
        """Draft meals and workouts for the given dates."""
        prompt = _week_prompt(dates, profile, metrics, language)
        raw = await self._generate("week_plan", WEEK_SCHEMA, prompt)
        try:
            return GeneratedWeek.model_validate(raw)
        except pydantic.ValidationError as exc:
            raise GenerationError("Generated week plan is invalid") from exc

    async def _generate(
        self, schema_name: str, schema: dict[str, object], prompt: str
    ) -> dict[str, object]:
        try:
            return await self.client.generate(
                model=self.model,
                reasoning_effort=self.reasoning_effort,
                store=self.store,
                schema_name=schema_name,
                schema=schema,
                prompt=prompt,
            )
        except Exception as exc:
            _logger.exception("Generation failed: schema=%s", schema_name)
            raise GenerationError(f"Failed to generate {schema_name}") from exc


def _profile_lines(profile: UserProfile) -> list[str]:
    lines = []
    if profile.dietary_restrictions:
        restrictions = ", ".join(profile.dietary_restrictions)
        lines.append(f"Dietary restrictions: {restrictions}.")
    if profile.preferences:
        lines.append(f"Preferred foods: {', '.join(profile.preferences)}.")
    if profile.dislikes:
        lines.append(f"Never use: {', '.join(profile.dislikes)}.")
    return lines


def _meal_prompt(  # noqa: PLR0913
    name: str,
    category: str,
    target_calories: float,
    profile: UserProfile,
    language: str,
    rules: str | None,
) -> str:
    lines = [
        f"Create a {category} recipe called '{name}'.",
        f"Target about {round(target_calories)} kcal.",
        "List every ingredient with a numeric amount and a unit (g, ml, pcs).",
        *_profile_lines(profile),
        f"Write names in language '{language}'.",
    ]
    if rules:
        lines.append(f"Additional rules: {rules}")
    return "\n".join(lines)


def _week_prompt(
    dates: Sequence[date],
    profile: UserProfile,
    metrics: UserMetrics | None,
    language: str,
) -> str:
    lines = [
        "Create a meal and workout plan for these dates: "
        + ", ".join(day.isoformat() for day in dates)
        + ".",
        "Each day needs breakfast, lunch, dinner, snacks and workouts.",
        f"Goal path: {profile.path}.",
        *_profile_lines(profile),
        f"Write names in language '{language}'.",
    ]
    if metrics is not None:
        lines.append(
            f"Daily target: {metrics.target_calories} kcal, "
            f"protein {round(metrics.daily_macros.protein)} g, "
            f"carbs {round(metrics.daily_macros.carbs)} g, "
            f"fat {round(metrics.daily_macros.fat)} g."
        )
        lines.append(f"Plan {metrics.workouts_goal} workouts per week.")
    return "\n".join(lines)
