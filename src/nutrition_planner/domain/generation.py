"""Models for structured meal and week generation output."""

from pydantic import BaseModel, Field


class GeneratedIngredient(BaseModel):
    """Ingredient line drafted by the generator."""

    name: str
    amount: float = Field(ge=0)
    unit: str


class GeneratedMacros(BaseModel):
    """Macro grams drafted by the generator."""

    protein: float = Field(ge=0)
    carbs: float = Field(ge=0)
    fat: float = Field(ge=0)


class GeneratedMeal(BaseModel):
    """Single drafted meal."""

    name: str = Field(min_length=1)
    calories: float = Field(gt=0)
    macros: GeneratedMacros
    ingredients: list[GeneratedIngredient] = Field(min_length=1)
    prep_time: int | None = Field(default=None, ge=0)


class GeneratedWorkout(BaseModel):
    """Workout drafted for a day."""

    name: str
    category: str
    duration: int = Field(ge=0)
    calories_burned: int = Field(ge=0)
    time: str | None = None


class GeneratedDay(BaseModel):
    """Meals and workouts drafted for one date."""

    date: str
    breakfast: GeneratedMeal
    lunch: GeneratedMeal
    dinner: GeneratedMeal
    snacks: list[GeneratedMeal]
    workouts: list[GeneratedWorkout]


class GeneratedWeek(BaseModel):
    """Structured output for a drafted week."""

    days: list[GeneratedDay]
