"""
Pydantic models for saved recipes, meal plans and grocery lists.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional, List

from pydantic import BaseModel, Field


GROCERY_CATEGORIES = (
    "protein",
    "carbohydrate",
    "vegetable",
    "fruit",
    "dairy",
    "grain",
    "fat",
    "beverage",
    "other",
)


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class RecipeStep(BaseModel):
    number: int
    instruction: str
    duration: Optional[int] = Field(default=None, description="minutes")
    temperature: Optional[str] = None


class Recipe(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    description: str = ""
    ingredients: List[str] = Field(default_factory=list)
    steps: List[RecipeStep] = Field(default_factory=list)
    prepTime: Optional[int] = None
    cookTime: Optional[int] = None
    servings: Optional[int] = None
    calories: Optional[int] = None
    protein: Optional[float] = None
    carbs: Optional[float] = None
    fat: Optional[float] = None

    @property
    def total_time(self) -> int:
        return (self.prepTime or 0) + (self.cookTime or 0)


class MealPlanMeal(BaseModel):
    """One meal inside a Genie meal plan."""
    mealType: str
    name: str
    calories: Optional[float] = None
    protein: Optional[float] = None
    carbs: Optional[float] = None
    fat: Optional[float] = None


class SavedMealPlanMeal(BaseModel):
    date: str
    mealType: str
    recipeId: Optional[str] = None
    recipeName: str
    calories: float = 0
    protein: float = 0
    carbs: float = 0
    fat: float = 0
    isCompleted: bool = False


class SavedMealPlan(BaseModel):
    """
    A meal plan kept on the device, shaped like a nutrition-table item
    with entryType "meal_plan".
    """
    nutritionId: str = Field(default_factory=_new_id)
    entryType: str = "meal_plan"
    consumedAt: str
    createdAt: str
    source: str = "genie"
    planName: str
    startDate: str
    endDate: str
    meals: List[SavedMealPlanMeal] = Field(default_factory=list)
    totalCalories: float = 0
    totalProtein: float = 0
    totalCarbs: float = 0
    totalFat: float = 0
    planText: str = ""


class GroceryIngredient(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    amount: float = 0
    unit: str = ""
    category: str = "other"
    notes: Optional[str] = None
    isOptional: bool = False

    @property
    def display_text(self) -> str:
        amount = "" if self.amount == 0 else f"{self.amount:.2f}".replace(".00", "")
        unit = f" {self.unit}" if self.unit else ""
        return f"{amount}{unit} {self.name}".strip()


class GroceryListItem(BaseModel):
    id: str = Field(default_factory=_new_id)
    ingredient: GroceryIngredient
    isChecked: bool = False
    notes: Optional[str] = None
    estimatedPrice: Optional[float] = None


class GroceryList(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    createdAt: datetime = Field(default_factory=_now)
    items: List[GroceryListItem] = Field(default_factory=list)
    estimatedCost: Optional[float] = None
    storeSuggestions: Optional[List[str]] = None

    @property
    def checked_items(self) -> int:
        return sum(1 for item in self.items if item.isChecked)

    @property
    def progress(self) -> float:
        if not self.items:
            return 0.0
        return self.checked_items / len(self.items)
