"""Tests for meal synchronization across plan, progress and shopping list."""

import asyncio
import logging
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from nutrition_planner.domain.errors import (
    GenerationError,
    NotFoundError,
    ValidationError,
)
from nutrition_planner.domain.meals import Ingredient, Macros, MealCandidate
from nutrition_planner.domain.plans import DayPlan, Plan
from nutrition_planner.domain.users import UserProfile
from nutrition_planner.services.plans import (
    PlanService,
    normalize_meal_type,
    resolve_date_key,
)
from nutrition_planner.services.progress import ProgressService
from tests.conftest import TODAY, generated_meal_payload, planned_meal

TODAY_KEY = TODAY.isoformat()
TOMORROW_KEY = (TODAY + timedelta(days=1)).isoformat()

OMELETTE = MealCandidate(
    name="Omelette",
    calories=420,
    macros=Macros(protein=28, carbs=4, fat=32),
    ingredients=(Ingredient("Eggs", "3"), Ingredient("Cheese", "30 g")),
)


def _week_payload(days: int = 7, start_offset: int = 0) -> dict[str, object]:
    return {
        "days": [
            {
                "date": (TODAY + timedelta(days=start_offset + offset)).isoformat(),
                "breakfast": generated_meal_payload("Yogurt Bowl", 300),
                "lunch": generated_meal_payload("Lentil Soup", 550),
                "dinner": generated_meal_payload("Veggie Curry", 650),
                "snacks": [generated_meal_payload("Fruit Cup", 120)],
                "workouts": [
                    {
                        "name": "Morning Run",
                        "category": "cardio",
                        "duration": 30,
                        "calories_burned": 300,
                        "time": "07:00",
                    }
                ]
                if offset == 0
                else [],
            }
            for offset in range(days)
        ]
    }


def test_normalize_meal_type() -> None:
    assert normalize_meal_type("snacks") == "snack"
    assert normalize_meal_type("dinner") == "dinner"
    with pytest.raises(ValidationError):
        normalize_meal_type("brunch")


def test_resolve_date_key_accepts_keys_and_weekday_names(plan: Plan) -> None:
    assert resolve_date_key(plan, TODAY_KEY, TODAY) == TODAY_KEY
    assert resolve_date_key(plan, "Monday", TODAY) == TODAY_KEY
    assert resolve_date_key(plan, "tuesday", TODAY) == TOMORROW_KEY
    assert resolve_date_key(plan, "thursday", TODAY) == "2026-10-22"
    assert resolve_date_key(plan, "friday", TODAY) == "2026-10-16"


def test_resolve_date_key_uses_generation_date(plan: Plan) -> None:
    plan.weekly_plan = {}
    plan.generated_at = datetime(2026, 10, 25, 9, tzinfo=UTC)

    assert resolve_date_key(plan, "sunday", TODAY) == "2026-10-25"
    assert resolve_date_key(plan, "monday", TODAY) == "2026-10-26"


def test_resolve_date_key_rejects_bad_input(plan: Plan) -> None:
    with pytest.raises(ValidationError):
        resolve_date_key(plan, "someday", TODAY)
    with pytest.raises(ValidationError):
        resolve_date_key(plan, "2026-02-30", TODAY)


def test_replace_meal_with_complete_meal_syncs_every_document(
    plan_service: PlanService,
    progress_service: ProgressService,
    plan: Plan,
    user_id: UUID,
    shopping_service,
    catalog_repository,
    generation_client,
) -> None:
    progress_service.get_today(user_id)
    progress_service.toggle_meal(user_id, "breakfast")

    result = asyncio.run(
        plan_service.replace_meal(user_id, plan.id, TODAY_KEY, "breakfast", OMELETTE)
    )

    assert result.meal_source == "provided"
    assert result.replaced_meal.old.name == "Oatmeal"
    assert result.replaced_meal.new.name == "Omelette"
    assert result.replaced_meal.new.category == "breakfast"
    assert result.replaced_meal.new.meal_id in catalog_repository.meals
    assert generation_client.prompts == []

    day = plan_service.plans.get(plan.id).weekly_plan[TODAY_KEY]
    assert day.breakfast.name == "Omelette"
    assert (day.total_calories, day.total_protein) == (1875, 109)
    assert (day.total_carbs, day.total_fat) == (115, 66)

    progress = progress_service.get_today(user_id)
    assert progress.breakfast.name == "Omelette"
    assert progress.breakfast.done is False
    assert progress.calories_consumed == 0
    assert progress.protein.consumed == 0

    items = {item.key: item for item in shopping_service.get_list(plan.id).items}
    assert items["eggs"].amount == "5"
    assert items["cheese"].amount == "30 g"
    assert items["oats"].amount == "80 g"


def test_replace_meal_leaves_other_days_untouched(
    plan_service: PlanService, plan: Plan, user_id: UUID
) -> None:
    asyncio.run(
        plan_service.replace_meal(user_id, plan.id, "monday", "lunch", OMELETTE)
    )

    stored = plan_service.plans.get(plan.id)
    assert stored.weekly_plan[TOMORROW_KEY] == plan.weekly_plan[TOMORROW_KEY]
    assert stored.weekly_plan[TODAY_KEY].lunch.category == "lunch"


def test_replace_meal_generates_incomplete_meal(
    plan_service: PlanService, plan: Plan, user_id: UUID, generation_client
) -> None:
    result = asyncio.run(
        plan_service.replace_meal(
            user_id,
            plan.id,
            TOMORROW_KEY,
            "dinner",
            MealCandidate(name="Banana Bread", calories=480),
            rules="No nuts",
        )
    )

    assert result.meal_source == "generated"
    assert result.replaced_meal.new.name == "Banana Bread"
    assert result.replaced_meal.new.calories == 250
    _, prompt = generation_client.prompts[0]
    assert "Target about 480 kcal." in prompt
    assert "Dietary restrictions: vegetarian." in prompt
    assert "Additional rules: No nuts" in prompt
    day = plan_service.plans.get(plan.id).weekly_plan[TOMORROW_KEY]
    assert day.total_calories == 1805 - 650 + 250


def test_replace_snack_by_index(
    plan_service: PlanService,
    progress_service: ProgressService,
    plan: Plan,
    user_id: UUID,
) -> None:
    progress_service.get_today(user_id)
    progress_service.toggle_meal(user_id, "snack", snack_index=1)

    result = asyncio.run(
        plan_service.replace_meal(
            user_id, plan.id, TODAY_KEY, "snacks", OMELETTE, snack_index=1
        )
    )

    assert result.meal_type == "snack"
    assert result.snack_index == 1
    assert result.replaced_meal.old.name == "Almonds"
    progress = progress_service.get_today(user_id)
    assert [snack.name for snack in progress.snacks] == ["Apple", "Omelette"]
    assert progress.calories_consumed == 0
    day = plan_service.plans.get(plan.id).weekly_plan[TODAY_KEY]
    assert day.snacks[1].category == "snack"
    assert day.total_calories == 1805 - 160 + 420


def test_replace_meal_validates_input(
    plan_service: PlanService, plan: Plan, user_id: UUID
) -> None:
    with pytest.raises(ValidationError):
        asyncio.run(
            plan_service.replace_meal(user_id, plan.id, TODAY_KEY, "brunch", OMELETTE)
        )
    with pytest.raises(ValidationError):
        asyncio.run(
            plan_service.replace_meal(user_id, plan.id, TODAY_KEY, "snack", OMELETTE)
        )
    with pytest.raises(NotFoundError):
        asyncio.run(
            plan_service.replace_meal(
                user_id, plan.id, TODAY_KEY, "snack", OMELETTE, snack_index=5
            )
        )
    with pytest.raises(NotFoundError):
        asyncio.run(
            plan_service.replace_meal(uuid4(), plan.id, TODAY_KEY, "lunch", OMELETTE)
        )
    with pytest.raises(NotFoundError):
        asyncio.run(
            plan_service.replace_meal(user_id, plan.id, "friday", "lunch", OMELETTE)
        )
    assert plan_service.plans.get(plan.id) == plan


def test_replace_meal_keeps_untracked_totals(
    plan_service: PlanService, plan_repository, plan: Plan, user_id: UUID
) -> None:
    plan.weekly_plan[TODAY_KEY] = DayPlan(
        lunch=planned_meal("Pasta", "lunch", 700),
    )
    plan_repository.save(plan)

    asyncio.run(
        plan_service.replace_meal(user_id, plan.id, TODAY_KEY, "lunch", OMELETTE)
    )

    day = plan_service.plans.get(plan.id).weekly_plan[TODAY_KEY]
    assert day.lunch.name == "Omelette"
    assert day.total_calories is None


def test_replace_meal_shifts_each_tracked_total(
    plan_service: PlanService, plan_repository, plan: Plan, user_id: UUID
) -> None:
    plan.weekly_plan[TODAY_KEY] = DayPlan(
        lunch=planned_meal("Pasta", "lunch", 700, protein=25),
        total_protein=25,
    )
    plan_repository.save(plan)

    asyncio.run(
        plan_service.replace_meal(user_id, plan.id, TODAY_KEY, "lunch", OMELETTE)
    )

    day = plan_service.plans.get(plan.id).weekly_plan[TODAY_KEY]
    assert day.total_protein == 28
    assert day.total_calories is None
    assert day.total_carbs is None


def test_replace_done_meal_releases_weekly_consumed(
    plan_service: PlanService,
    progress_service: ProgressService,
    plan: Plan,
    user_id: UUID,
) -> None:
    progress_service.get_today(user_id)
    progress_service.toggle_meal(user_id, "breakfast")
    progress_service.toggle_meal(user_id, "lunch")

    asyncio.run(
        plan_service.replace_meal(user_id, plan.id, TODAY_KEY, "breakfast", OMELETTE)
    )

    consumed = plan_service.plans.get(plan.id).weekly_consumed
    assert (consumed.calories, consumed.protein) == (550, 40)
    assert (consumed.carbs, consumed.fat) == (40, 10)
    assert progress_service.get_today(user_id).calories_consumed == 550

    progress_service.toggle_meal(user_id, "breakfast")

    assert plan_service.plans.get(plan.id).weekly_consumed.calories == 550 + 420


def test_swapping_oatmeal_for_omelette_updates_every_document(
    plan_service: PlanService,
    progress_service: ProgressService,
    shopping_service,
    plan_repository,
    plan: Plan,
    user_id: UUID,
) -> None:
    day = DayPlan(
        breakfast=planned_meal(
            "Oatmeal", "breakfast", 300, ingredients=(Ingredient("Oats", "80 g"),)
        ),
        lunch=planned_meal(
            "Green Salad",
            "lunch",
            400,
            ingredients=(Ingredient("Lettuce", "100 g"), Ingredient("Tomato", "2")),
        ),
    )
    day.recompute_totals()
    plan.weekly_plan = {TODAY_KEY: day}
    plan_repository.save(plan)
    shopping_service.sync(user_id, plan.id, plan.weekly_plan)
    shopping_service.set_item_done(plan.id, "oats", True)
    shopping_service.set_item_done(plan.id, "lettuce", True)
    progress_service.get_today(user_id)
    progress_service.toggle_meal(user_id, "breakfast")
    omelette = MealCandidate(
        name="Omelette",
        calories=450,
        macros=Macros(protein=30, carbs=4, fat=34),
        ingredients=(Ingredient("Eggs", "3"),),
    )

    asyncio.run(
        plan_service.replace_meal(user_id, plan.id, "monday", "breakfast", omelette)
    )

    stored = plan_service.plans.get(plan.id).weekly_plan[TODAY_KEY]
    assert stored.breakfast.name == "Omelette"
    assert stored.total_calories == 700 + 150
    progress = progress_service.get_today(user_id)
    assert progress.breakfast.done is False
    assert progress.calories_consumed == 0
    items = {item.key: item for item in shopping_service.get_list(plan.id).items}
    assert "oats" not in items
    assert items["eggs"].done is False
    assert items["lettuce"].done is True
    assert items["tomato"].done is False


def test_replace_meal_survives_shopping_list_failure(
    plan_service: PlanService,
    plan: Plan,
    user_id: UUID,
    shopping_repository,
    caplog: pytest.LogCaptureFixture,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    shopping_repository.fail_on_save = True
    monkeypatch.setattr(logging.getLogger("nutrition_planner"), "propagate", True)

    with caplog.at_level(logging.ERROR, logger="nutrition_planner"):
        result = asyncio.run(
            plan_service.replace_meal(user_id, plan.id, TODAY_KEY, "dinner", OMELETTE)
        )

    assert result.replaced_meal.new.name == "Omelette"
    assert plan_service.plans.get(plan.id).weekly_plan[TODAY_KEY].dinner.name == (
        "Omelette"
    )
    assert "Shopping list resync failed" in caplog.text


def test_add_snack_updates_plan_progress_and_list(
    plan_service: PlanService,
    progress_service: ProgressService,
    shopping_service,
    plan: Plan,
    user_id: UUID,
) -> None:
    progress_service.get_today(user_id)

    change = asyncio.run(plan_service.add_snack(plan.id, "monday", "Yogurt Cup"))

    assert change.snack.name == "Yogurt Cup"
    assert change.snack.category == "snack"
    day = plan_service.plans.get(plan.id).weekly_plan[TODAY_KEY]
    assert [snack.name for snack in day.snacks] == ["Apple", "Almonds", "Yogurt Cup"]
    assert day.total_calories == 1805 + 250
    progress = progress_service.get_today(user_id)
    assert progress.snacks[-1].name == "Yogurt Cup"
    assert progress.snacks[-1].done is False
    keys = {item.key for item in shopping_service.get_list(plan.id).items}
    assert "greek_yogurt" in keys
    with pytest.raises(ValidationError):
        asyncio.run(plan_service.add_snack(plan.id, "monday", "  "))


def test_delete_snack_removes_consumed_values(
    plan_service: PlanService,
    progress_service: ProgressService,
    plan: Plan,
    user_id: UUID,
) -> None:
    progress_service.get_today(user_id)
    progress_service.toggle_meal(user_id, "snack", snack_index=0)

    change = plan_service.delete_snack(user_id, TODAY_KEY, 0)

    assert change.snack.name == "Apple"
    day = plan_service.plans.get(plan.id).weekly_plan[TODAY_KEY]
    assert [snack.name for snack in day.snacks] == ["Almonds"]
    assert day.total_calories == 1805 - 95
    progress = progress_service.get_today(user_id)
    assert [snack.name for snack in progress.snacks] == ["Almonds"]
    assert progress.calories_consumed == 0
    assert plan_service.plans.get(plan.id).weekly_consumed.calories == 0
    with pytest.raises(NotFoundError):
        plan_service.delete_snack(user_id, TODAY_KEY, 3)
    with pytest.raises(ValidationError):
        plan_service.delete_snack(user_id, TODAY_KEY, -1)


def test_get_current_weekly_plan_returns_covering_plan(
    plan_service: PlanService, plan: Plan, user_id: UUID, generation_client
) -> None:
    current = asyncio.run(plan_service.get_current_weekly_plan(user_id))

    assert current == plan
    assert generation_client.prompts == []


def test_get_current_weekly_plan_drafts_new_week(
    plan_service: PlanService,
    shopping_service,
    catalog_repository,
    generation_client,
    user_id: UUID,
) -> None:
    generation_client.week_payload = _week_payload()

    plan = asyncio.run(plan_service.get_current_weekly_plan(user_id))

    assert sorted(plan.weekly_plan) == [
        (TODAY + timedelta(days=offset)).isoformat() for offset in range(7)
    ]
    today = plan.weekly_plan[TODAY_KEY]
    assert today.breakfast.name == "Yogurt Bowl"
    assert today.total_calories == 300 + 550 + 650 + 120
    assert today.water_intake == 8 + 3
    assert plan.weekly_plan[TOMORROW_KEY].water_intake == 8
    assert plan.user_metrics.target_calories == 2732
    assert plan.generated_at is not None
    breakfasts = [
        meal
        for meal in catalog_repository.meals.values()
        if meal.category == "breakfast"
    ]
    assert len(breakfasts) == 1
    assert breakfasts[0].use_count == 7
    assert shopping_service.get_list(plan.id).items
    schema_name, prompt = generation_client.prompts[0]
    assert schema_name == "week_plan"
    assert TODAY_KEY in prompt


def test_get_current_weekly_plan_replaces_stale_week(
    plan_service: PlanService,
    plan_repository,
    plan: Plan,
    user_id: UUID,
    generation_client,
) -> None:
    plan.weekly_plan = {"2026-10-12": plan.weekly_plan[TODAY_KEY]}
    plan_repository.save(plan)
    generation_client.week_payload = _week_payload()

    refreshed = asyncio.run(plan_service.get_current_weekly_plan(user_id))

    assert refreshed.id == plan.id
    assert "2026-10-12" not in refreshed.weekly_plan
    assert TODAY_KEY in refreshed.weekly_plan


def test_get_current_weekly_plan_rejects_week_missing_today(
    plan_service: PlanService, user_id: UUID, generation_client
) -> None:
    generation_client.week_payload = _week_payload(days=3, start_offset=1)

    with pytest.raises(GenerationError):
        asyncio.run(plan_service.get_current_weekly_plan(user_id))


def test_get_current_weekly_plan_requires_profile(plan_service: PlanService) -> None:
    with pytest.raises(NotFoundError):
        asyncio.run(plan_service.get_current_weekly_plan(uuid4()))


def test_create_initial_plan_replaces_existing_plan(
    plan_service: PlanService, plan_repository, plan: Plan, user_id: UUID
) -> None:
    profile = UserProfile(id=user_id, path="lose-weight")

    created = plan_service.create_initial_plan(user_id, profile, language="fr")

    assert list(plan_repository.plans) == [created.id]
    assert created.language == "fr"
    assert created.path == "lose-weight"
    assert created.user_metrics.target_calories == 2232
    assert created.weekly_plan == {}


def test_day_plan_and_water_intake(
    plan_service: PlanService, plan: Plan, user_id: UUID
) -> None:
    updated = plan_service.update_water_intake(user_id, "tuesday", 10)
    date_key, day = plan_service.get_day_plan(user_id, "tuesday")

    assert date_key == TOMORROW_KEY
    assert day.water_intake == 10
    assert updated.weekly_plan[TOMORROW_KEY].water_intake == 10
    with pytest.raises(ValidationError):
        plan_service.update_water_intake(user_id, "tuesday", -1)
    with pytest.raises(NotFoundError):
        plan_service.get_day_plan(uuid4(), "tuesday")


def test_regenerate_shopping_list(
    plan_service: PlanService, shopping_service, plan: Plan, user_id: UUID
) -> None:
    regenerated = plan_service.regenerate_shopping_list(user_id)

    assert regenerated.plan_id == plan.id
    assert {item.key: item.amount for item in regenerated.items}["oats"] == "160 g"
    assert shopping_service.get_list(plan.id) == regenerated
