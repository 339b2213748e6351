"""Supabase implementation for the shared meal catalog."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from nutrition_planner.adapters.supabase_documents import (
    dump_ingredients,
    dump_macros,
    parse_macros,
)
from nutrition_planner.domain.meals import CatalogMeal
from nutrition_planner.services.catalog import MealCatalogRepository
from nutrition_planner.services.ingredients import coerce_ingredients


@dataclass
class SupabaseMealCatalogRepository(MealCatalogRepository):
    """Supabase-backed repository for catalog meals."""

    client: Client

    def find_by_signature(self, signature: str) -> CatalogMeal | None:
        """Return the meal with an exact content signature."""
        response = (
            self.client.table("meals")
            .select("*")
            .eq("signature", signature)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_meal(response.data[0])

    def find_similar(
        self, name: str, category: str, calories: float, tolerance: float
    ) -> CatalogMeal | None:
        """Return a same-name, same-category meal within a calorie window."""
        response = (
            self.client.table("meals")
            .select("*")
            .ilike("name", _escape_like(name))
            .eq("category", category)
            .gte("calories", calories - tolerance)
            .lte("calories", calories + tolerance)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_meal(response.data[0])

    def find_by_name(self, name: str, category: str | None) -> CatalogMeal | None:
        """Return a meal by case-insensitive exact name."""
        query = self.client.table("meals").select("*").ilike("name", _escape_like(name))
        if category:
            query = query.eq("category", category)
        response = query.order("use_count", desc=True).limit(1).execute()
        if not response.data:
            return None
        return _parse_meal(response.data[0])

    def get_meal(self, meal_id: UUID) -> CatalogMeal | None:
        """Return a meal by id, if present."""
        response = (
            self.client.table("meals")
            .select("*")
            .eq("id", str(meal_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_meal(response.data[0])

    def create_meal(self, meal: CatalogMeal) -> CatalogMeal:
        """Insert a catalog entry and return it."""
        response = (
            self.client.table("meals")
            .insert(
                {
                    "id": str(meal.id),
                    "name": meal.name,
                    "category": meal.category,
                    "calories": meal.calories,
                    "macros": dump_macros(meal.macros),
                    "ingredients": dump_ingredients(meal.ingredients),
                    "prep_time": meal.prep_time,
                    "signature": meal.signature,
                    "use_count": meal.use_count,
                    "ai_generated": meal.ai_generated,
                    "parent_meal_id": (
                        str(meal.parent_meal_id) if meal.parent_meal_id else None
                    ),
                    "variations": [str(item) for item in meal.variations],
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create catalog meal")
        return _parse_meal(response.data[0])

    def increment_usage(self, meal_id: UUID) -> None:
        """Increase the usage counter of a meal by one."""
        response = (
            self.client.table("meals")
            .select("use_count")
            .eq("id", str(meal_id))
            .limit(1)
            .execute()
        )
        current = 0
        if response.data:
            current = int(response.data[0].get("use_count", 0))
        self.client.table("meals").update({"use_count": current + 1}).eq(
            "id", str(meal_id)
        ).execute()

    def add_variation(self, meal_id: UUID, variation_id: UUID) -> None:
        """Record a variation id on a parent meal."""
        response = (
            self.client.table("meals")
            .select("variations")
            .eq("id", str(meal_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return
        variations = list(response.data[0].get("variations") or [])
        if str(variation_id) in variations:
            return
        variations.append(str(variation_id))
        self.client.table("meals").update({"variations": variations}).eq(
            "id", str(meal_id)
        ).execute()


def _escape_like(value: str) -> str:
    """Escape LIKE wildcards so ilike performs a case-insensitive equality."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _parse_meal(row: dict[str, object]) -> CatalogMeal:
    """Parse a catalog row into a domain model."""
    parent = row.get("parent_meal_id")
    return CatalogMeal(
        id=UUID(row["id"]),
        name=str(row.get("name", "")),
        category=str(row.get("category", "")),
        calories=float(row.get("calories") or 0),
        macros=parse_macros(row.get("macros")),
        ingredients=coerce_ingredients(row.get("ingredients") or []),
        signature=str(row.get("signature", "")),
        prep_time=int(row.get("prep_time") or 30),
        use_count=int(row.get("use_count") or 0),
        ai_generated=bool(row.get("ai_generated")),
        parent_meal_id=UUID(parent) if isinstance(parent, str) and parent else None,
        variations=tuple(UUID(item) for item in row.get("variations") or []),
    )
