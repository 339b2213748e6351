"""Shopping list endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Request

from nutrition_planner.api.schemas import (  # noqa: TC001
    ItemDoneRequest,
    ProductsRequest,
)

if TYPE_CHECKING:
    from nutrition_planner.containers import AppContainer

router = APIRouter(tags=["shopping"])


def _container(request: Request) -> AppContainer:
    return request.app.state.container


@router.get("/plans/{plan_id}/shopping-list")
async def get_shopping_list(plan_id: UUID, request: Request) -> dict[str, object]:
    """Return the plan's shopping list."""
    return {"shopping_list": _container(request).shopping_service.get_list(plan_id)}


@router.put("/plans/{plan_id}/shopping-list/items/{name}")
async def set_item_done(
    plan_id: UUID, name: str, body: ItemDoneRequest, request: Request
) -> dict[str, object]:
    """Mark a row purchased or not purchased."""
    shopping_list = _container(request).shopping_service.set_item_done(
        plan_id, name, body.done
    )
    return {"shopping_list": shopping_list}


@router.delete("/plans/{plan_id}/shopping-list/items/{name}")
async def delete_item(plan_id: UUID, name: str, request: Request) -> dict[str, object]:
    """Remove a row."""
    shopping_list = _container(request).shopping_service.delete_product(plan_id, name)
    return {"shopping_list": shopping_list}


@router.post("/plans/{plan_id}/shopping-list/products")
async def add_products(
    plan_id: UUID, body: ProductsRequest, request: Request
) -> dict[str, object]:
    """Merge manual products into the list."""
    shopping_list = _container(request).shopping_service.add_products(
        plan_id, body.to_ingredients()
    )
    return {"shopping_list": shopping_list}


@router.post("/plans/{plan_id}/shopping-list/meals/{meal_id}")
async def add_meal(
    plan_id: UUID, meal_id: UUID, request: Request
) -> dict[str, object]:
    """Add every ingredient of a catalog meal."""
    shopping_list = _container(request).shopping_service.add_meal(plan_id, meal_id)
    return {"shopping_list": shopping_list}


@router.post("/users/{user_id}/shopping-list/regenerate")
async def regenerate(user_id: UUID, request: Request) -> dict[str, object]:
    """Rebuild the user's shopping list with nothing purchased."""
    shopping_list = _container(request).plan_service.regenerate_shopping_list(user_id)
    return {"shopping_list": shopping_list}
