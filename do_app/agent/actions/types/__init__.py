"""
Action type handlers.

Each handler parses the data of one Genie action type.
"""

from .wellness import (
    MeditationHandler,
    BedtimeStoryHandler,
    MotivationHandler,
    VisionBoardHandler,
    ManifestationHandler,
    AffirmationHandler,
)
from .workout import (
    EquipmentHandler,
    VideoResultsHandler,
    FormFeedbackHandler,
    CreateMovementHandler,
    CreateSessionHandler,
    CreatePlanHandler,
)
from .food import (
    NutritionDataHandler,
    MealPlanHandler,
    MealSuggestionsHandler,
    GroceryListHandler,
    RestaurantSearchHandler,
    PreferencesUpdatedHandler,
    CookbookHandler,
)

__all__ = [
    "MeditationHandler",
    "BedtimeStoryHandler",
    "MotivationHandler",
    "VisionBoardHandler",
    "ManifestationHandler",
    "AffirmationHandler",
    "EquipmentHandler",
    "VideoResultsHandler",
    "FormFeedbackHandler",
    "CreateMovementHandler",
    "CreateSessionHandler",
    "CreatePlanHandler",
    "NutritionDataHandler",
    "MealPlanHandler",
    "MealSuggestionsHandler",
    "GroceryListHandler",
    "RestaurantSearchHandler",
    "PreferencesUpdatedHandler",
    "CookbookHandler",
]
