"""Nutrition lookup, food, restaurant and water tracking services."""

from do_app.services.nutrition.nutrition_service import NutritionService
from do_app.services.nutrition.barcode_service import BarcodeService
from do_app.services.nutrition.food_tracking_service import FoodTrackingService
from do_app.services.nutrition.restaurant_tracking_service import RestaurantTrackingService
from do_app.services.nutrition.water_intake_service import WaterIntakeService

__all__ = [
    "NutritionService",
    "BarcodeService",
    "FoodTrackingService",
    "RestaurantTrackingService",
    "WaterIntakeService",
]
