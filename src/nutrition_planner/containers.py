"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from nutrition_planner.adapters.openai_generation_client import OpenAIGenerationClient
from nutrition_planner.adapters.supabase_engagement_repository import (
    SupabaseEngagementRepository,
)
from nutrition_planner.adapters.supabase_meal_catalog_repository import (
    SupabaseMealCatalogRepository,
)
from nutrition_planner.adapters.supabase_plan_repository import SupabasePlanRepository
from nutrition_planner.adapters.supabase_profile_repository import (
    SupabaseProfileRepository,
)
from nutrition_planner.adapters.supabase_progress_repository import (
    SupabaseProgressRepository,
)
from nutrition_planner.adapters.supabase_shopping_list_repository import (
    SupabaseShoppingListRepository,
)
from nutrition_planner.config import Settings
from nutrition_planner.services.catalog import MealCatalogService
from nutrition_planner.services.dates import TimezoneClock
from nutrition_planner.services.engagement import EngagementService
from nutrition_planner.services.generation import MealGenerationService
from nutrition_planner.services.plans import PlanService
from nutrition_planner.services.progress import ProgressService
from nutrition_planner.services.shopping import ShoppingListService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    catalog_service: MealCatalogService
    shopping_service: ShoppingListService
    plan_service: PlanService
    progress_service: ProgressService
    engagement_service: EngagementService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    clock = TimezoneClock(resolved_settings.timezone).today
    catalog_repository = SupabaseMealCatalogRepository(supabase_client)
    plan_repository = SupabasePlanRepository(supabase_client)
    progress_repository = SupabaseProgressRepository(supabase_client)
    shopping_repository = SupabaseShoppingListRepository(supabase_client)
    engagement_repository = SupabaseEngagementRepository(supabase_client)
    profile_repository = SupabaseProfileRepository(supabase_client)

    openai_client = OpenAIGenerationClient.create(resolved_settings.openai_api_key)
    generation_service = MealGenerationService(
        client=openai_client,
        model=resolved_settings.openai_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
    )
    catalog_service = MealCatalogService(
        repository=catalog_repository, generation=generation_service
    )
    shopping_service = ShoppingListService(
        repository=shopping_repository, catalog=catalog_repository
    )
    plan_service = PlanService(
        plans=plan_repository,
        progress=progress_repository,
        profiles=profile_repository,
        catalog=catalog_service,
        shopping=shopping_service,
        generation=generation_service,
        clock=clock,
    )
    progress_service = ProgressService(
        repository=progress_repository, plans=plan_repository, clock=clock
    )
    engagement_service = EngagementService(
        repository=engagement_repository, progress=progress_repository, clock=clock
    )

    async def close_resources() -> None:
        await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        catalog_service=catalog_service,
        shopping_service=shopping_service,
        plan_service=plan_service,
        progress_service=progress_service,
        engagement_service=engagement_service,
        close_resources=close_resources,
    )
