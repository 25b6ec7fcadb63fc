"""
Pydantic models for food logging, restaurant meals, nutrition lookups and
barcode scans.
"""

from datetime import datetime
from typing import Optional, List, Dict, Tuple

from pydantic import BaseModel, Field, field_validator

from do_common.utils.dates import as_utc


MEAL_TYPES = ("Breakfast", "Lunch", "Dinner", "Snack")
FOOD_SOURCES = ("manual", "ai", "barcode")


def normalize_meal_type(value: str) -> Optional[str]:
    """Return the canonical meal type ("Dinner") for any casing, or None."""
    candidate = value.strip().capitalize()
    return candidate if candidate in MEAL_TYPES else None


# =============================================================================
# Food log
# =============================================================================

class FoodEntry(BaseModel):
    """A logged food item."""
    id: str
    userId: str = ""
    name: str
    mealType: str = Field(..., description="Breakfast | Lunch | Dinner | Snack")
    calories: float
    protein: float = 0
    carbs: float = 0
    fat: float = 0
    servingSize: Optional[str] = None
    notes: Optional[str] = None
    timestamp: datetime
    source: str = Field(default="manual", description="manual | ai | barcode")

    @field_validator("timestamp")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class FavoriteFood(BaseModel):
    id: str
    name: str
    calories: float
    protein: float = 0
    carbs: float = 0
    fat: float = 0
    servingSize: Optional[str] = None
    timestamp: datetime


class DailyNutritionSummary(BaseModel):
    date: datetime
    totalCalories: float
    totalProtein: float
    totalCarbs: float
    totalFat: float
    calorieGoal: float = 2000
    proteinGoal: float = 150
    carbsGoal: float = 200
    fatGoal: float = 65
    mealsLogged: int = 0

    @property
    def calorie_progress(self) -> float:
        return self.totalCalories / self.calorieGoal

    @property
    def protein_progress(self) -> float:
        return self.totalProtein / self.proteinGoal


class NutritionTrends(BaseModel):
    averageCalories: float
    averageProtein: float
    averageCarbs: float
    averageFat: float
    dailyCalories: List[Tuple[str, float]] = Field(default_factory=list)
    consistency: float


class MealPatterns(BaseModel):
    mealTypeDistribution: Dict[str, int] = Field(default_factory=dict)
    commonFoods: List[Tuple[str, int]] = Field(default_factory=list)
    averageMealsPerDay: float = 0
    averageDailyCalories: float = 0
    mostSkippedMeal: Optional[str] = None


class ParsedFoodAnalysis(BaseModel):
    """Nutrition values pulled out of a free-text AI analysis."""
    name: str = "Food Item"
    calories: float = 0
    protein: float = 0
    carbs: float = 0
    fat: float = 0
    servingSize: Optional[str] = None


# =============================================================================
# Lookups
# =============================================================================

class NutritionInfo(BaseModel):
    """Nutrition estimate for a food search."""
    calories: float
    protein: float
    carbs: float
    fat: float
    portion: str = "100g"
    source: str = Field(default="usda", description="usda | estimate")


class ProductNutrition(BaseModel):
    """Per-100g nutrition of a packaged product."""
    calories: float
    protein: float = 0
    carbs: float = 0
    fat: float = 0
    sugars: Optional[float] = None
    fiber: Optional[float] = None
    sodium: Optional[float] = Field(default=None, description="milligrams")
    saturatedFat: Optional[float] = None


class BarcodeProduct(BaseModel):
    barcode: str
    productName: Optional[str] = None
    brand: Optional[str] = None
    categories: Optional[List[str]] = None
    nutrition: Optional[ProductNutrition] = Field(default=None, description="per 100g")
    nutritionPerServing: Optional[ProductNutrition] = None
    servingSize: Optional[str] = None
    imageUrl: Optional[str] = None
    ingredients: Optional[List[str]] = None
    additives: Optional[List[str]] = None
    nutriScore: Optional[str] = None


class ProductAnalysis(BaseModel):
    insights: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    healthScore: float
    isHealthy: bool


# =============================================================================
# Restaurant meals
# =============================================================================

RESTAURANT_TYPES = (
    "fast_food", "casual_dining", "fine_dining", "cafe", "pizza",
    "asian", "mexican", "italian", "other",
)


class RestaurantLocation(BaseModel):
    address: str
    latitude: float
    longitude: float
    city: Optional[str] = None
    state: Optional[str] = None
    zipCode: Optional[str] = None


class HealthierAlternative(BaseModel):
    name: str
    calories: float
    protein: float = 0
    carbs: float = 0
    fat: float = 0
    savings: float = Field(default=0, description="calories saved")
    reason: str = ""


class RestaurantEntry(BaseModel):
    """A meal eaten out, logged against the restaurant it came from."""
    id: str
    restaurantName: str
    restaurantId: Optional[str] = None
    restaurantType: Optional[str] = Field(default=None, description="one of RESTAURANT_TYPES")
    location: Optional[RestaurantLocation] = None
    menuItemName: str
    menuItemId: Optional[str] = None
    mealType: str
    calories: float
    protein: float = 0
    carbs: float = 0
    fat: float = 0
    servingSize: Optional[str] = None
    price: Optional[float] = None
    rating: Optional[int] = None
    notes: Optional[str] = None
    timestamp: datetime
    alternatives: Optional[List[HealthierAlternative]] = None

    @field_validator("timestamp")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class RestaurantAnalyticsPeriod(BaseModel):
    days: int = 30
    startDate: Optional[str] = None
    endDate: Optional[str] = None


class RestaurantAnalyticsSummary(BaseModel):
    totalRestaurantMeals: int = 0
    totalCalories: float = 0
    averageCaloriesPerMeal: float = 0
    totalSpent: float = 0
    averageSpentPerMeal: float = 0
    averageRating: Optional[float] = None


class TopRestaurant(BaseModel):
    name: str
    count: int = 0
    percentage: float = 0


class RestaurantAnalytics(BaseModel):
    """Eating-out summary computed by the backend over a window of days."""
    period: RestaurantAnalyticsPeriod = Field(default_factory=RestaurantAnalyticsPeriod)
    summary: RestaurantAnalyticsSummary = Field(default_factory=RestaurantAnalyticsSummary)
    topRestaurants: List[TopRestaurant] = Field(default_factory=list)
    mealTypeDistribution: Dict[str, int] = Field(default_factory=dict)


# =============================================================================
# Water intake
# =============================================================================

WATER_UNITS = ("fl oz", "cups", "ml", "L")


class WaterEntry(BaseModel):
    id: str
    amount: float = Field(..., description="fluid ounces")
    timestamp: datetime
    unit: str = "fl oz"

    @field_validator("timestamp")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)
