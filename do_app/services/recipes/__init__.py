"""Cookbook, grocery list and meal plan services."""

from do_app.services.recipes.recipe_storage_service import RecipeStorageService, recipes_from_suggestions
from do_app.services.recipes.grocery_list_service import GroceryListService
from do_app.services.recipes.meal_plan_tracking_service import MealPlanTrackingService

__all__ = [
    "RecipeStorageService",
    "recipes_from_suggestions",
    "GroceryListService",
    "MealPlanTrackingService",
]
