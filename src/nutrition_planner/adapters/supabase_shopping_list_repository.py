"""Supabase implementation for shopping lists."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from nutrition_planner.adapters.supabase_documents import parse_datetime
from nutrition_planner.domain.shopping import ShoppingItem, ShoppingList
from nutrition_planner.services.shopping import ShoppingListRepository


@dataclass
class SupabaseShoppingListRepository(ShoppingListRepository):
    """Supabase-backed repository with one row per user and plan."""

    client: Client

    def get_by_plan(self, plan_id: UUID) -> ShoppingList | None:
        """Return the list derived from a plan, if present."""
        response = (
            self.client.table("shopping_lists")
            .select("*")
            .eq("plan_id", str(plan_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_list(response.data[0])

    def save(self, shopping_list: ShoppingList) -> ShoppingList:
        """Create or replace the list for its user and plan."""
        payload = {
            "user_id": str(shopping_list.user_id),
            "plan_id": str(shopping_list.plan_id),
            "items": [
                {
                    "key": item.key,
                    "name": item.name,
                    "amount": item.amount,
                    "category": item.category,
                    "done": item.done,
                }
                for item in shopping_list.items
            ],
            "updated_at": (
                shopping_list.updated_at.isoformat()
                if shopping_list.updated_at
                else None
            ),
        }
        if shopping_list.id is None:
            response = self.client.table("shopping_lists").insert(payload).execute()
        else:
            response = (
                self.client.table("shopping_lists")
                .update(payload)
                .eq("id", str(shopping_list.id))
                .execute()
            )
        if not response.data:
            raise RuntimeError("Failed to save shopping list")
        return _parse_list(response.data[0])

    def delete_by_plan(self, plan_id: UUID) -> None:
        """Delete the list derived from a plan."""
        self.client.table("shopping_lists").delete().eq(
            "plan_id", str(plan_id)
        ).execute()


def _parse_list(row: dict[str, object]) -> ShoppingList:
    """Parse a shopping list row into a domain model."""
    return ShoppingList(
        id=UUID(row["id"]),
        user_id=UUID(row["user_id"]),
        plan_id=UUID(row["plan_id"]),
        items=[
            ShoppingItem(
                key=str(item.get("key", "")),
                name=str(item.get("name", "")),
                amount=str(item.get("amount") or ""),
                category=item.get("category"),
                done=bool(item.get("done")),
            )
            for item in row.get("items") or []
        ],
        updated_at=parse_datetime(row.get("updated_at")),
    )
