"""Pydantic request models for the planner API."""

from uuid import UUID

from pydantic import BaseModel, Field

from nutrition_planner.domain.meals import Ingredient, Macros, MealCandidate
from nutrition_planner.domain.users import UserProfile
from nutrition_planner.services.ingredients import coerce_ingredients


class MacrosPayload(BaseModel):
    """Macro grams supplied by a client."""

    protein: float = Field(ge=0)
    carbs: float = Field(default=0, ge=0)
    fat: float = Field(default=0, ge=0)

    def to_macros(self) -> Macros:
        """Convert to domain macros."""
        return Macros(protein=self.protein, carbs=self.carbs, fat=self.fat)


class IngredientPayload(BaseModel):
    """Ingredient object supplied by a client."""

    name: str
    amount: str = ""
    category: str | None = None


class MealPayload(BaseModel):
    """Meal supplied by a client; complete meals skip generation."""

    name: str = Field(min_length=1)
    calories: float | None = Field(default=None, ge=0)
    macros: MacrosPayload | None = None
    ingredients: list[IngredientPayload | list[str] | str] = Field(default_factory=list)
    prep_time: int | None = Field(default=None, ge=0)

    def to_candidate(self) -> MealCandidate:
        """Convert to a domain candidate."""
        raw = [
            item.model_dump() if isinstance(item, IngredientPayload) else item
            for item in self.ingredients
        ]
        return MealCandidate(
            name=self.name.strip(),
            calories=self.calories,
            macros=self.macros.to_macros() if self.macros else None,
            ingredients=coerce_ingredients(raw),
            prep_time=self.prep_time,
        )


class ReplaceMealRequest(BaseModel):
    """Body for replacing a meal slot."""

    user_id: UUID
    date: str
    meal_type: str
    new_meal: MealPayload
    snack_index: int | None = None
    language: str = "en"
    rules: str | None = None


class AddSnackRequest(BaseModel):
    """Body for adding a snack by name."""

    date: str
    name: str = Field(min_length=1)
    language: str = "en"


class WorkoutRequest(BaseModel):
    """Body for scheduling a workout."""

    name: str = Field(min_length=1)
    category: str = "cardio"
    duration: int | str = 0
    calories_burned: float | str = 0
    time: str | None = None


class WorkoutPatchRequest(BaseModel):
    """Body for editing a workout."""

    name: str | None = None
    category: str | None = None
    duration: int | str | None = None
    calories_burned: float | str | None = None
    time: str | None = None


class WaterRequest(BaseModel):
    """Body carrying a glass count."""

    glasses: int = Field(ge=0)


class CustomCaloriesRequest(BaseModel):
    """Body for food eaten outside the plan."""

    calories: float = Field(ge=0)
    macros: MacrosPayload | None = None


class ItemDoneRequest(BaseModel):
    """Body for marking a shopping row purchased."""

    done: bool


class ProductsRequest(BaseModel):
    """Body for adding manual products to a shopping list."""

    products: list[IngredientPayload]

    def to_ingredients(self) -> list[Ingredient]:
        """Convert to domain ingredients."""
        return [
            Ingredient(name=item.name, amount=item.amount, category=item.category)
            for item in self.products
        ]


class ProfileRequest(BaseModel):
    """Body for creating a plan from body metrics."""

    gender: str = "male"
    age: int = Field(default=30, gt=0)
    height_cm: float = Field(default=175, gt=0)
    weight_kg: float = Field(default=75, gt=0)
    workout_frequency: int = Field(default=3, ge=1, le=5)
    path: str = "healthy"
    dietary_restrictions: list[str] = Field(default_factory=list)
    preferences: list[str] = Field(default_factory=list)
    dislikes: list[str] = Field(default_factory=list)
    language: str = "en"

    def to_profile(self, user_id: UUID) -> UserProfile:
        """Convert to a domain profile."""
        return UserProfile(
            id=user_id,
            gender=self.gender,
            age=self.age,
            height_cm=self.height_cm,
            weight_kg=self.weight_kg,
            workout_frequency=self.workout_frequency,
            path=self.path,
            dietary_restrictions=tuple(self.dietary_restrictions),
            preferences=tuple(self.preferences),
            dislikes=tuple(self.dislikes),
            language=self.language,
        )
