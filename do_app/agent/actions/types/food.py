"""
Food action handlers: nutrition estimates, meal plans, meal
suggestions, grocery lists, restaurants and food preferences.
"""

import logging
import re
from typing import Optional, Dict, Any

from do_app.schemas.actions import (
    CookbookAction,
    Macros,
    MealPlanAction,
    MealSuggestionsAction,
    NutritionAction,
    PreferencesUpdatedAction,
    RestaurantSearchAction,
)
from do_app.schemas.recipes import (
    GROCERY_CATEGORIES,
    GroceryIngredient,
    GroceryList,
    GroceryListItem,
    MealPlanMeal,
)
from do_app.services.genie.user_learning_service import GenieUserLearningService
from do_app.services.recipes.recipe_storage_service import (
    RecipeStorageService,
    recipes_from_suggestions,
)
from ..base import (
    ActionHandler,
    bool_value,
    dict_list,
    float_value,
    int_value,
    str_value,
    string_list,
)

logger = logging.getLogger(__name__)


_SUGGESTION_HEADER = re.compile(r"^\d+\.|^\*\*")


class NutritionDataHandler(ActionHandler):
    """Calorie and macro estimate for a described or photographed meal."""

    @property
    def action_type(self) -> str:
        """Return action type identifier."""
        return "nutrition_data"

    async def handle(self, data: Dict[str, Any]) -> NutritionAction:
        calories = data.get("calories")
        macros = data.get("macros")
        if not isinstance(calories, int) or isinstance(calories, bool) or not isinstance(macros, dict):
            raise self.reject(data, ["calories", "macros"])

        return NutritionAction(
            calories=calories,
            macros=Macros(
                protein=float_value(macros.get("protein")) or 0,
                carbs=float_value(macros.get("carbs")) or 0,
                fat=float_value(macros.get("fat")) or 0,
            ),
            foods=string_list(data.get("foods")),
            analysis=str_value(data.get("analysis")) or "",
        )


class MealPlanHandler(ActionHandler):
    """
    Multi-day meal plan.

    Meals are read from `plan.meals`; a meal without a type or name is
    dropped and missing macros count as 0.
    """

    @property
    def action_type(self) -> str:
        """Return action type identifier."""
        return "meal_plan"

    async def handle(self, data: Dict[str, Any]) -> MealPlanAction:
        duration = int_value(data.get("duration"))
        if duration is None:
            raise self.reject(data, ["duration"])

        meals = None
        plan = data.get("plan")
        if isinstance(plan, dict) and isinstance(plan.get("meals"), list):
            meals = []
            for raw in dict_list(plan["meals"]):
                meal_type = str_value(raw.get("mealType"))
                name = str_value(raw.get("name"))
                if meal_type is None or name is None:
                    continue
                meals.append(MealPlanMeal(
                    mealType=meal_type,
                    name=name,
                    calories=float_value(raw.get("calories")) or 0,
                    protein=float_value(raw.get("protein")) or 0,
                    carbs=float_value(raw.get("carbs")) or 0,
                    fat=float_value(raw.get("fat")) or 0,
                ))

        return MealPlanAction(
            duration=duration,
            meals=meals,
            planText=str_value(data.get("planText")) or "",
        )


class MealSuggestionsHandler(ActionHandler):
    """
    Meal ideas from Genie.

    Suggestions are de-duplicated ignoring case and list header lines
    are dropped. Recipes parsed from the suggestions go into the
    cookbook when a RecipeStorageService is given.
    """

    def __init__(self, recipe_storage: Optional[RecipeStorageService] = None):
        self._recipe_storage = recipe_storage

    @property
    def action_type(self) -> str:
        """Return action type identifier."""
        return "meal_suggestions"

    async def handle(self, data: Dict[str, Any]) -> MealSuggestionsAction:
        suggestions = string_list(data.get("suggestions"))
        analysis = str_value(data.get("analysis")) or ""

        recipes = recipes_from_suggestions(suggestions, analysis)

        unique = []
        seen = set()
        for suggestion in suggestions:
            trimmed = suggestion.strip()
            key = trimmed.lower()
            if key and key not in seen and not _SUGGESTION_HEADER.match(key):
                seen.add(key)
                unique.append(trimmed)

        if self._recipe_storage is not None and recipes:
            for recipe in recipes:
                self._recipe_storage.save_recipe(recipe)
            logger.info(f"Saved {len(recipes)} suggested recipes to cookbook")

        return MealSuggestionsAction(suggestions=unique, recipes=recipes, analysis=analysis)


class GroceryListHandler(ActionHandler):
    """
    Grocery list written by Genie.

    Items need a name, a numeric amount and a unit; others are dropped.
    """

    @property
    def action_type(self) -> str:
        """Return action type identifier."""
        return "grocery_list"

    async def handle(self, data: Dict[str, Any]) -> GroceryList:
        items = []
        for raw in dict_list(data.get("items")):
            name = str_value(raw.get("name"))
            amount = float_value(raw.get("amount"))
            unit = str_value(raw.get("unit"))
            if name is None or amount is None or unit is None:
                continue

            category = (str_value(raw.get("category")) or "other").lower()
            if category not in GROCERY_CATEGORIES:
                category = "other"

            notes = str_value(raw.get("notes"))
            items.append(GroceryListItem(
                ingredient=GroceryIngredient(
                    name=name,
                    amount=amount,
                    unit=unit,
                    category=category,
                    notes=notes,
                    isOptional=bool_value(raw.get("isOptional"), False),
                ),
                notes=notes,
                estimatedPrice=float_value(raw.get("estimatedPrice")),
            ))

        suggestions = data.get("storeSuggestions")
        return GroceryList(
            name=str_value(data.get("name")) or "Grocery List",
            items=items,
            estimatedCost=float_value(data.get("estimatedCost")),
            storeSuggestions=string_list(suggestions) if isinstance(suggestions, list) else None,
        )


class RestaurantSearchHandler(ActionHandler):

    @property
    def action_type(self) -> str:
        """Return action type identifier."""
        return "restaurant_search"

    async def handle(self, data: Dict[str, Any]) -> RestaurantSearchAction:
        return RestaurantSearchAction(
            requiresLocation=bool_value(data.get("requiresLocation"), False),
            query=str_value(data.get("query")) or "",
            suggestions=string_list(data.get("suggestions")),
        )


class PreferencesUpdatedHandler(ActionHandler):
    """Food likes, dislikes, allergies and restrictions Genie picked up."""

    def __init__(self, learning: Optional[GenieUserLearningService] = None):
        self._learning = learning

    @property
    def action_type(self) -> str:
        """Return action type identifier."""
        return "preferences_updated"

    async def handle(self, data: Dict[str, Any]) -> PreferencesUpdatedAction:
        preferences = data.get("preferences")
        if not isinstance(preferences, dict):
            preferences = {}

        payload = PreferencesUpdatedAction(
            message=str_value(data.get("message")) or "",
            likes=string_list(preferences.get("likes")),
            dislikes=string_list(preferences.get("dislikes")),
            allergies=string_list(preferences.get("allergies")),
            restrictions=string_list(preferences.get("restrictions")),
        )

        if self._learning is not None:
            self._learning.update_user_learning(
                "preferences",
                payload.model_dump(exclude={"message"}),
            )

        return payload


class CookbookHandler(ActionHandler):

    @property
    def action_type(self) -> str:
        """Return action type identifier."""
        return "cookbook"

    async def handle(self, data: Dict[str, Any]) -> CookbookAction:
        return CookbookAction()
