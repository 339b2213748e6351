"""Ingredient normalization and amount arithmetic."""

import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from nutrition_planner.domain.generation import GeneratedIngredient
from nutrition_planner.domain.meals import Ingredient

_AMOUNT_PATTERN = re.compile(r"^(\d+(?:\.\d+)?)\s*(.*)$")
_WHITESPACE_PATTERN = re.compile(r"\s+")
_KEY_INVALID_PATTERN = re.compile(r"[^a-z0-9_]")
_INTEGER_PATTERN = re.compile(r"\d+")


@dataclass(frozen=True)
class Amount:
    """Numeric quantity with a normalized unit."""

    value: float
    unit: str


def normalize_ingredient_key(name: str) -> str:
    """Return the aggregation key for an ingredient name."""
    key = _WHITESPACE_PATTERN.sub("_", name.strip().lower())
    return _KEY_INVALID_PATTERN.sub("", key)


def parse_amount(amount: str | None) -> Amount | None:
    """Parse "200 g" style strings into a value and unit."""
    if not amount:
        return None
    match = _AMOUNT_PATTERN.match(amount.strip())
    if match is None:
        return None
    return Amount(value=float(match.group(1)), unit=match.group(2).strip().lower())


def format_value(value: float) -> str:
    """Format whole numbers without decimals and others with one decimal."""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.1f}"


def format_amounts(amounts: Mapping[str, float]) -> str:
    """Join per-unit totals into a single display string."""
    parts = [f"{format_value(value)} {unit}".strip() for unit, value in amounts.items()]
    return " + ".join(parts)


def coerce_ingredient(raw: object) -> Ingredient | None:
    """Accept tuple, string or mapping ingredient shapes."""
    if isinstance(raw, Ingredient):
        ingredient = raw
    elif isinstance(raw, str):
        ingredient = Ingredient(name=raw)
    elif isinstance(raw, Mapping):
        category = raw.get("category")
        ingredient = Ingredient(
            name=str(raw.get("name") or ""),
            amount=str(raw.get("amount") or ""),
            category=str(category) if category else None,
        )
    elif isinstance(raw, Sequence) and raw:
        category = raw[2] if len(raw) > 2 and raw[2] else None  # noqa: PLR2004
        ingredient = Ingredient(
            name=str(raw[0] or ""),
            amount=str(raw[1] or "") if len(raw) > 1 else "",
            category=str(category) if category else None,
        )
    else:
        return None
    name = ingredient.name.strip()
    if not name:
        return None
    return Ingredient(
        name=name, amount=ingredient.amount.strip(), category=ingredient.category
    )


def coerce_ingredients(items: Iterable[object]) -> tuple[Ingredient, ...]:
    """Coerce a sequence of raw ingredients, dropping unnamed entries."""
    coerced = (coerce_ingredient(item) for item in items)
    return tuple(item for item in coerced if item is not None)


def from_generated_ingredients(
    items: Iterable[GeneratedIngredient],
) -> tuple[Ingredient, ...]:
    """Convert generator name/amount/unit triples into stored ingredients."""
    return coerce_ingredients(
        Ingredient(name=item.name, amount=f"{format_value(item.amount)} {item.unit}")
        for item in items
    )


def parse_numeric_value(value: object, default: int = 0) -> int:
    """Return a whole number from numbers or strings like "30 minutes"."""
    if isinstance(value, bool):
        return default
    if isinstance(value, int | float):
        return round(value)
    if isinstance(value, str):
        match = _INTEGER_PATTERN.search(value)
        if match:
            return int(match.group(0))
    return default
