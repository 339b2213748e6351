"""Shared test fixtures."""

import re
from collections.abc import Callable
from copy import deepcopy
from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from uuid import UUID, uuid4

import pytest

from nutrition_planner.config import Settings
from nutrition_planner.containers import AppContainer
from nutrition_planner.domain.engagement import EngagementState
from nutrition_planner.domain.meals import CatalogMeal, Ingredient, Macros, PlannedMeal
from nutrition_planner.domain.plans import DayPlan, Plan, UserMetrics
from nutrition_planner.domain.progress import DailyProgress
from nutrition_planner.domain.shopping import ShoppingList
from nutrition_planner.domain.users import UserProfile
from nutrition_planner.services.catalog import MealCatalogRepository, MealCatalogService
from nutrition_planner.services.engagement import (
    EngagementRepository,
    EngagementService,
)
from nutrition_planner.services.generation import (
    GenerationClient,
    MealGenerationService,
)
from nutrition_planner.services.plans import (
    PlanRepository,
    PlanService,
    ProfileRepository,
)
from nutrition_planner.services.progress import ProgressRepository, ProgressService
from nutrition_planner.services.shopping import (
    ShoppingListRepository,
    ShoppingListService,
)

# A Monday.
TODAY = date(2026, 10, 19)


@dataclass
class InMemoryPlanRepository(PlanRepository):
    """In-memory plan repository for tests."""

    plans: dict[UUID, Plan] = field(default_factory=dict)
    saves: int = 0

    def get(self, plan_id: UUID) -> Plan | None:
        plan = self.plans.get(plan_id)
        return deepcopy(plan) if plan else None

    def get_by_user(self, user_id: UUID) -> Plan | None:
        for plan in self.plans.values():
            if plan.user_id == user_id:
                return deepcopy(plan)
        return None

    def create(self, plan: Plan) -> Plan:
        self.plans[plan.id] = deepcopy(plan)
        return deepcopy(plan)

    def save(self, plan: Plan) -> Plan:
        self.saves += 1
        self.plans[plan.id] = deepcopy(plan)
        return deepcopy(plan)

    def delete_for_user(self, user_id: UUID) -> None:
        self.plans = {
            key: plan for key, plan in self.plans.items() if plan.user_id != user_id
        }


@dataclass
class InMemoryProgressRepository(ProgressRepository):
    """In-memory progress repository for tests."""

    rows: dict[tuple[UUID, str], DailyProgress] = field(default_factory=dict)

    def get(self, user_id: UUID, date_key: str) -> DailyProgress | None:
        row = self.rows.get((user_id, date_key))
        return deepcopy(row) if row else None

    def save(self, progress: DailyProgress) -> DailyProgress:
        stored = deepcopy(progress)
        if stored.id is None:
            stored.id = uuid4()
        self.rows[(stored.user_id, stored.date_key)] = stored
        return deepcopy(stored)

    def list_range(
        self, user_id: UUID, start_key: str, end_key: str
    ) -> list[DailyProgress]:
        return [
            deepcopy(row)
            for (owner, key), row in sorted(self.rows.items(), key=lambda i: i[0][1])
            if owner == user_id and start_key <= key <= end_key
        ]

    def list_for_user(self, user_id: UUID) -> list[DailyProgress]:
        return [
            deepcopy(row) for (owner, _), row in self.rows.items() if owner == user_id
        ]


@dataclass
class InMemoryMealCatalogRepository(MealCatalogRepository):
    """In-memory catalog repository for tests."""

    meals: dict[UUID, CatalogMeal] = field(default_factory=dict)

    def find_by_signature(self, signature: str) -> CatalogMeal | None:
        return next(
            (meal for meal in self.meals.values() if meal.signature == signature), None
        )

    def find_similar(
        self, name: str, category: str, calories: float, tolerance: float
    ) -> CatalogMeal | None:
        return next(
            (
                meal
                for meal in self.meals.values()
                if meal.name.lower() == name.lower()
                and meal.category == category
                and abs(meal.calories - calories) <= tolerance
            ),
            None,
        )

    def find_by_name(self, name: str, category: str | None) -> CatalogMeal | None:
        return next(
            (
                meal
                for meal in self.meals.values()
                if meal.name.lower() == name.lower()
                and (category is None or meal.category == category)
            ),
            None,
        )

    def get_meal(self, meal_id: UUID) -> CatalogMeal | None:
        return self.meals.get(meal_id)

    def create_meal(self, meal: CatalogMeal) -> CatalogMeal:
        self.meals[meal.id] = meal
        return meal

    def increment_usage(self, meal_id: UUID) -> None:
        meal = self.meals[meal_id]
        self.meals[meal_id] = replace(meal, use_count=meal.use_count + 1)

    def add_variation(self, meal_id: UUID, variation_id: UUID) -> None:
        meal = self.meals.get(meal_id)
        if meal is None:
            return
        self.meals[meal_id] = replace(meal, variations=(*meal.variations, variation_id))


@dataclass
class InMemoryShoppingListRepository(ShoppingListRepository):
    """In-memory shopping list repository for tests."""

    lists: dict[UUID, ShoppingList] = field(default_factory=dict)
    fail_on_save: bool = False

    def get_by_plan(self, plan_id: UUID) -> ShoppingList | None:
        shopping_list = self.lists.get(plan_id)
        return deepcopy(shopping_list) if shopping_list else None

    def save(self, shopping_list: ShoppingList) -> ShoppingList:
        if self.fail_on_save:
            raise RuntimeError("Failed to save shopping list")
        stored = deepcopy(shopping_list)
        if stored.id is None:
            stored.id = uuid4()
        self.lists[stored.plan_id] = stored
        return deepcopy(stored)

    def delete_by_plan(self, plan_id: UUID) -> None:
        self.lists.pop(plan_id, None)


@dataclass
class InMemoryEngagementRepository(EngagementRepository):
    """In-memory engagement repository for tests."""

    states: dict[UUID, EngagementState] = field(default_factory=dict)

    def get_state(self, user_id: UUID) -> EngagementState | None:
        state = self.states.get(user_id)
        return deepcopy(state) if state else None

    def save_state(self, user_id: UUID, state: EngagementState) -> EngagementState:
        self.states[user_id] = deepcopy(state)
        return deepcopy(state)

    def reset_streak_freezes(self) -> int:
        count = 0
        for state in self.states.values():
            if not state.streak_freeze_available:
                state.streak_freeze_available = True
                count += 1
        return count


@dataclass
class InMemoryProfileRepository(ProfileRepository):
    """In-memory profile repository for tests."""

    profiles: dict[UUID, UserProfile] = field(default_factory=dict)

    def get_profile(self, user_id: UUID) -> UserProfile | None:
        return self.profiles.get(user_id)


def generated_meal_payload(name: str, calories: float = 250) -> dict[str, object]:
    return {
        "name": name,
        "calories": calories,
        "macros": {"protein": 12, "carbs": 30, "fat": 8},
        "ingredients": [
            {"name": "Greek yogurt", "amount": 150, "unit": "g"},
            {"name": "Honey", "amount": 1, "unit": "tbsp"},
        ],
        "prep_time": 5,
    }


@dataclass
class FakeGenerationClient(GenerationClient):
    """Fake structured-output client echoing the requested meal name."""

    week_payload: dict[str, object] | None = None
    error: Exception | None = None
    prompts: list[tuple[str, str]] = field(default_factory=list)

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
        self.prompts.append((schema_name, prompt))
        if self.error is not None:
            raise self.error
        if schema_name == "week_plan":
            return self.week_payload or {"days": []}
        match = re.search(r"called '(.+?)'", prompt)
        return generated_meal_payload(match.group(1) if match else "Snack")


def planned_meal(  # noqa: PLR0913
    name: str,
    category: str,
    calories: int,
    protein: int = 20,
    carbs: int = 40,
    fat: int = 10,
    ingredients: tuple[Ingredient, ...] = (),
) -> PlannedMeal:
    return PlannedMeal(
        name=name,
        category=category,
        calories=calories,
        macros=Macros(protein=protein, carbs=carbs, fat=fat),
        ingredients=ingredients,
        meal_id=uuid4(),
    )


def sample_day() -> DayPlan:
    day = DayPlan(
        breakfast=planned_meal(
            "Oatmeal",
            "breakfast",
            350,
            ingredients=(Ingredient("Oats", "80 g"), Ingredient("Milk", "200 ml")),
        ),
        lunch=planned_meal(
            "Chicken Salad",
            "lunch",
            550,
            protein=40,
            ingredients=(
                Ingredient("Chicken breast", "150 g"),
                Ingredient("Eggs", "1"),
            ),
        ),
        dinner=planned_meal(
            "Salmon Rice",
            "dinner",
            650,
            protein=35,
            ingredients=(Ingredient("Salmon", "180 g"), Ingredient("Rice", "100 g")),
        ),
        snacks=[
            planned_meal("Apple", "snack", 95, 0, 25, 0, (Ingredient("Apple", "1"),)),
            planned_meal(
                "Almonds", "snack", 160, 6, 6, 14, (Ingredient("Almonds", "28 g"),)
            ),
        ],
        water_intake=8,
    )
    day.recompute_totals()
    return day


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        admin_token="admin-token",
        openai_api_key="openai-key",
    )


@pytest.fixture
def clock() -> Callable[[], date]:
    return lambda: TODAY


@pytest.fixture
def user_id() -> UUID:
    return uuid4()


@pytest.fixture
def plan_repository() -> InMemoryPlanRepository:
    return InMemoryPlanRepository()


@pytest.fixture
def progress_repository() -> InMemoryProgressRepository:
    return InMemoryProgressRepository()


@pytest.fixture
def catalog_repository() -> InMemoryMealCatalogRepository:
    return InMemoryMealCatalogRepository()


@pytest.fixture
def shopping_repository() -> InMemoryShoppingListRepository:
    return InMemoryShoppingListRepository()


@pytest.fixture
def engagement_repository() -> InMemoryEngagementRepository:
    return InMemoryEngagementRepository()


@pytest.fixture
def profile_repository(user_id: UUID) -> InMemoryProfileRepository:
    return InMemoryProfileRepository(
        profiles={
            user_id: UserProfile(
                id=user_id, dietary_restrictions=("vegetarian",), dislikes=("olives",)
            )
        }
    )


@pytest.fixture
def generation_client() -> FakeGenerationClient:
    return FakeGenerationClient()


@pytest.fixture
def generation_service(
    settings: Settings, generation_client: FakeGenerationClient
) -> MealGenerationService:
    return MealGenerationService(
        client=generation_client,
        model=settings.openai_model,
        reasoning_effort=settings.openai_reasoning_effort,
        store=settings.openai_store,
    )


@pytest.fixture
def catalog_service(
    catalog_repository: InMemoryMealCatalogRepository,
    generation_service: MealGenerationService,
) -> MealCatalogService:
    return MealCatalogService(
        repository=catalog_repository, generation=generation_service
    )


@pytest.fixture
def shopping_service(
    shopping_repository: InMemoryShoppingListRepository,
    catalog_repository: InMemoryMealCatalogRepository,
) -> ShoppingListService:
    return ShoppingListService(
        repository=shopping_repository, catalog=catalog_repository
    )


@pytest.fixture
def plan_service(  # noqa: PLR0913
    plan_repository: InMemoryPlanRepository,
    progress_repository: InMemoryProgressRepository,
    profile_repository: InMemoryProfileRepository,
    catalog_service: MealCatalogService,
    shopping_service: ShoppingListService,
    generation_service: MealGenerationService,
    clock: Callable[[], date],
) -> PlanService:
    return PlanService(
        plans=plan_repository,
        progress=progress_repository,
        profiles=profile_repository,
        catalog=catalog_service,
        shopping=shopping_service,
        generation=generation_service,
        clock=clock,
    )


@pytest.fixture
def progress_service(
    progress_repository: InMemoryProgressRepository,
    plan_repository: InMemoryPlanRepository,
    clock: Callable[[], date],
) -> ProgressService:
    return ProgressService(
        repository=progress_repository, plans=plan_repository, clock=clock
    )


@pytest.fixture
def engagement_service(
    engagement_repository: InMemoryEngagementRepository,
    progress_repository: InMemoryProgressRepository,
    clock: Callable[[], date],
) -> EngagementService:
    return EngagementService(
        repository=engagement_repository, progress=progress_repository, clock=clock
    )


@pytest.fixture
def plan(plan_repository: InMemoryPlanRepository, user_id: UUID) -> Plan:
    """Plan covering today and tomorrow with tracked totals."""
    stored = Plan(
        id=uuid4(),
        user_id=user_id,
        user_metrics=UserMetrics(
            bmr=1700,
            tdee=2600,
            target_calories=2100,
            ideal_weight_min=56.7,
            ideal_weight_max=76.3,
            daily_macros=Macros(protein=130, carbs=240, fat=70),
            water_goal=8,
            workouts_goal=3,
        ),
        weekly_plan={
            TODAY.isoformat(): sample_day(),
            (TODAY + timedelta(days=1)).isoformat(): sample_day(),
        },
    )
    return plan_repository.create(stored)


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    catalog_service: MealCatalogService,
    shopping_service: ShoppingListService,
    plan_service: PlanService,
    progress_service: ProgressService,
    engagement_service: EngagementService,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        catalog_service=catalog_service,
        shopping_service=shopping_service,
        plan_service=plan_service,
        progress_service=progress_service,
        engagement_service=engagement_service,
        close_resources=close_resources,
    )
