"""Supabase implementation for weekly plans."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from nutrition_planner.adapters.supabase_documents import (
    dump_day,
    dump_metrics,
    dump_totals,
    parse_datetime,
    parse_day,
    parse_metrics,
    parse_totals,
)
from nutrition_planner.domain.plans import Plan
from nutrition_planner.services.plans import PlanRepository


@dataclass
class SupabasePlanRepository(PlanRepository):
    """Supabase-backed repository storing each plan as one row."""

    client: Client

    def get(self, plan_id: UUID) -> Plan | None:
        """Return a plan by id, if present."""
        response = (
            self.client.table("plans")
            .select("*")
            .eq("id", str(plan_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_plan(response.data[0])

    def get_by_user(self, user_id: UUID) -> Plan | None:
        """Return the plan of a user, if present."""
        response = (
            self.client.table("plans")
            .select("*")
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_plan(response.data[0])

    def create(self, plan: Plan) -> Plan:
        """Insert a plan and return it."""
        response = self.client.table("plans").insert(_plan_row(plan)).execute()
        if not response.data:
            raise RuntimeError("Failed to create plan")
        return _parse_plan(response.data[0])

    def save(self, plan: Plan) -> Plan:
        """Replace a stored plan and return it."""
        response = (
            self.client.table("plans")
            .update(_plan_row(plan))
            .eq("id", str(plan.id))
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to update plan")
        return _parse_plan(response.data[0])

    def delete_for_user(self, user_id: UUID) -> None:
        """Delete every plan of a user."""
        self.client.table("plans").delete().eq("user_id", str(user_id)).execute()


def _plan_row(plan: Plan) -> dict[str, object]:
    return {
        "id": str(plan.id),
        "user_id": str(plan.user_id),
        "language": plan.language,
        "path": plan.path,
        "user_metrics": dump_metrics(plan.user_metrics),
        "weekly_plan": {key: dump_day(day) for key, day in plan.weekly_plan.items()},
        "weekly_consumed": dump_totals(plan.weekly_consumed),
        "generated_at": plan.generated_at.isoformat() if plan.generated_at else None,
    }


def _parse_plan(row: dict[str, object]) -> Plan:
    """Parse a plan row into a domain model."""
    weekly = row.get("weekly_plan") or {}
    return Plan(
        id=UUID(row["id"]),
        user_id=UUID(row["user_id"]),
        language=str(row.get("language") or "en"),
        path=row.get("path"),
        user_metrics=parse_metrics(row.get("user_metrics")),
        weekly_plan={key: parse_day(day) for key, day in weekly.items()},
        weekly_consumed=parse_totals(row.get("weekly_consumed")),
        generated_at=parse_datetime(row.get("generated_at")),
    )
