"""Domain models for aggregated shopping lists."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class ShoppingItem:
    """Aggregated ingredient row."""

    key: str
    name: str
    amount: str
    category: str | None = None
    done: bool = False


@dataclass
class ShoppingList:
    """Shopping list derived from one plan."""

    user_id: UUID
    plan_id: UUID
    items: list[ShoppingItem] = field(default_factory=list)
    id: UUID | None = None
    updated_at: datetime | None = None
