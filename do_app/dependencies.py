"""
Service wiring for the Do client.

Creates one instance of every service at startup and exposes getters.
"""

from typing import Optional

import httpx

from do_app.config import Settings, get_settings
from do_common.config import setup_logging
from do_common.storage import JSONStore

# Feed services
from do_app.services.feed.feed_api_service import FeedAPIService
from do_app.services.feed.interaction_service import InteractionAPIService
from do_app.services.feed.profile_api_service import ProfileAPIService
from do_app.services.feed.feed_cache import FeedCacheManager
from do_app.services.feed.follow_graph import FollowGraphManager
from do_app.services.feed.feed_view_model import FeedViewModel

# Workout services
from do_app.services.workout.workout_cache import WorkoutCacheManager
from do_app.services.workout.aws_workout_service import AWSWorkoutService
from do_app.services.workout.workout_tracking_service import WorkoutTrackingService

# Genie services
from do_app.services.genie.genie_api_service import GenieAPIService
from do_app.services.genie.conversation_store_service import GenieConversationStoreService
from do_app.services.genie.user_learning_service import GenieUserLearningService
from do_app.agent.actions import GenieActionHandler, default_registry

# Nutrition services
from do_app.services.nutrition.nutrition_service import NutritionService
from do_app.services.nutrition.barcode_service import BarcodeService
from do_app.services.nutrition.food_tracking_service import FoodTrackingService
from do_app.services.nutrition.restaurant_tracking_service import RestaurantTrackingService
from do_app.services.nutrition.water_intake_service import WaterIntakeService

# Recipe services
from do_app.services.recipes.recipe_storage_service import RecipeStorageService
from do_app.services.recipes.grocery_list_service import GroceryListService
from do_app.services.recipes.meal_plan_tracking_service import MealPlanTrackingService

# Meditation and media services
from do_app.services.meditation.meditation_tracking_service import MeditationTrackingService
from do_app.services.media.youtube_service import YouTubeService
from do_app.services.media.media_cache import MediaCache


# ─────────────────────────────────────────────────────────────────
# Global service instances
# ─────────────────────────────────────────────────────────────────

_store: Optional[JSONStore] = None

# Feed
_feed_api_service: Optional[FeedAPIService] = None
_interaction_api_service: Optional[InteractionAPIService] = None
_profile_api_service: Optional[ProfileAPIService] = None
_feed_cache: Optional[FeedCacheManager] = None
_follow_graph: Optional[FollowGraphManager] = None
_feed_view_model: Optional[FeedViewModel] = None

# Workouts
_workout_service: Optional[AWSWorkoutService] = None
_workout_tracking_service: Optional[WorkoutTrackingService] = None

# Genie
_genie_api_service: Optional[GenieAPIService] = None
_conversation_store_service: Optional[GenieConversationStoreService] = None
_user_learning_service: Optional[GenieUserLearningService] = None
_action_handler: Optional[GenieActionHandler] = None

# Nutrition
_nutrition_service: Optional[NutritionService] = None
_barcode_service: Optional[BarcodeService] = None
_food_tracking_service: Optional[FoodTrackingService] = None
_restaurant_tracking_service: Optional[RestaurantTrackingService] = None
_water_intake_service: Optional[WaterIntakeService] = None

# Recipes
_recipe_storage_service: Optional[RecipeStorageService] = None
_grocery_list_service: Optional[GroceryListService] = None
_meal_plan_tracking_service: Optional[MealPlanTrackingService] = None

# Meditation & media
_meditation_tracking_service: Optional[MeditationTrackingService] = None
_youtube_service: Optional[YouTubeService] = None
_media_cache: Optional[MediaCache] = None


# ─────────────────────────────────────────────────────────────────
# Initialization
# ─────────────────────────────────────────────────────────────────

def init_feed_services(
    settings: Settings,
    store: JSONStore,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> None:
    """Initialize feed services."""
    global _feed_api_service, _interaction_api_service, _profile_api_service
    global _feed_cache, _follow_graph, _feed_view_model

    _feed_api_service = FeedAPIService(settings=settings, transport=transport)
    _interaction_api_service = InteractionAPIService(settings=settings, transport=transport)
    _profile_api_service = ProfileAPIService(settings=settings, transport=transport)
    _feed_cache = FeedCacheManager(
        store,
        memory_limit=settings.FEED_CACHE_MEMORY_LIMIT,
        disk_limit=settings.FEED_CACHE_DISK_LIMIT,
        expiry_hours=settings.FEED_CACHE_EXPIRY_HOURS,
    )
    _follow_graph = FollowGraphManager(
        _profile_api_service,
        store,
        cache_hours=settings.FOLLOW_GRAPH_CACHE_HOURS,
    )
    _feed_view_model = FeedViewModel(
        feed_api=_feed_api_service,
        interaction_api=_interaction_api_service,
        follow_graph=_follow_graph,
        cache=_feed_cache,
    )


def init_workout_services(
    settings: Settings,
    store: JSONStore,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> None:
    """Initialize workout library and tracking services."""
    global _workout_service, _workout_tracking_service

    _workout_service = AWSWorkoutService(
        cache=WorkoutCacheManager(ttl_seconds=settings.WORKOUT_CACHE_TTL_SECONDS),
        settings=settings,
        transport=transport,
    )
    _workout_tracking_service = WorkoutTrackingService(
        store,
        settings=settings,
        transport=transport,
        user_id=settings.USER_ID or "",
        history_limit=settings.WORKOUT_HISTORY_LIMIT,
    )


def init_genie_services(
    settings: Settings,
    store: JSONStore,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> None:
    """Initialize Genie, recipe and tracking services."""
    global _genie_api_service, _conversation_store_service, _user_learning_service
    global _action_handler, _recipe_storage_service, _grocery_list_service
    global _food_tracking_service, _meditation_tracking_service
    global _restaurant_tracking_service, _water_intake_service, _meal_plan_tracking_service

    _genie_api_service = GenieAPIService(settings=settings, transport=transport)
    _conversation_store_service = GenieConversationStoreService(settings=settings, transport=transport)
    _user_learning_service = GenieUserLearningService(
        store,
        history_limit=settings.LEARNING_HISTORY_LIMIT,
    )

    _recipe_storage_service = RecipeStorageService(store)
    _grocery_list_service = GroceryListService(store)
    _action_handler = GenieActionHandler(
        default_registry(
            recipe_storage=_recipe_storage_service,
            learning=_user_learning_service,
        )
    )

    _food_tracking_service = FoodTrackingService(
        _genie_api_service,
        store,
        learning=_user_learning_service,
        user_id=settings.USER_ID or "",
        history_limit=settings.FOOD_HISTORY_LIMIT,
    )
    _meditation_tracking_service = MeditationTrackingService(
        _genie_api_service,
        store,
        learning=_user_learning_service,
        user_id=settings.USER_ID or "",
        history_limit=settings.MEDITATION_HISTORY_LIMIT,
    )
    _restaurant_tracking_service = RestaurantTrackingService(
        _genie_api_service,
        store,
        history_limit=settings.RESTAURANT_HISTORY_LIMIT,
    )
    _water_intake_service = WaterIntakeService(store)
    _meal_plan_tracking_service = MealPlanTrackingService(_food_tracking_service, store)


def init_lookup_services(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> None:
    """Initialize food lookup and media services."""
    global _nutrition_service, _barcode_service, _youtube_service, _media_cache

    _nutrition_service = NutritionService(settings=settings, transport=transport)
    _barcode_service = BarcodeService(settings=settings, transport=transport)
    _youtube_service = YouTubeService(settings=settings, transport=transport)
    _media_cache = MediaCache(
        limit=settings.MEDIA_CACHE_LIMIT,
        max_bytes=settings.MEDIA_CACHE_MAX_BYTES,
        transport=transport,
    )


def init_all_services(
    settings: Optional[Settings] = None,
    store: Optional[JSONStore] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> None:
    """
    Initialize all services at application startup.

    Args:
        settings: Settings to use (defaults to get_settings())
        store: Local store (defaults to a JSONStore in STORAGE_DIR)
        transport: Shared httpx transport, used by tests
    """
    global _store

    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL)

    _store = store or JSONStore(settings.STORAGE_DIR)

    init_feed_services(settings, _store, transport)
    init_workout_services(settings, _store, transport)
    init_genie_services(settings, _store, transport)
    init_lookup_services(settings, transport)


def reset_dependencies() -> None:
    """Drop every service instance (used by tests)."""
    global _store
    global _feed_api_service, _interaction_api_service, _profile_api_service
    global _feed_cache, _follow_graph, _feed_view_model, _workout_service
    global _genie_api_service, _conversation_store_service, _user_learning_service
    global _action_handler, _nutrition_service, _barcode_service, _food_tracking_service
    global _recipe_storage_service, _grocery_list_service, _meal_plan_tracking_service
    global _meditation_tracking_service, _youtube_service, _media_cache
    global _workout_tracking_service, _restaurant_tracking_service, _water_intake_service

    _store = None
    _feed_api_service = _interaction_api_service = _profile_api_service = None
    _feed_cache = _follow_graph = _feed_view_model = _workout_service = None
    _genie_api_service = _conversation_store_service = _user_learning_service = None
    _action_handler = _nutrition_service = _barcode_service = _food_tracking_service = None
    _recipe_storage_service = _grocery_list_service = _meal_plan_tracking_service = None
    _meditation_tracking_service = _youtube_service = _media_cache = None
    _workout_tracking_service = _restaurant_tracking_service = _water_intake_service = None


def _require(service, group: str):
    if service is None:
        raise RuntimeError(f"{group} services not initialized.")
    return service


# ─────────────────────────────────────────────────────────────────
# Feed getters
# ─────────────────────────────────────────────────────────────────

def get_store() -> JSONStore:
    """Get the local store."""
    return _require(_store, "Storage")


def get_feed_api_service() -> FeedAPIService:
    """Get feed API client."""
    return _require(_feed_api_service, "Feed")


def get_interaction_api_service() -> InteractionAPIService:
    """Get interaction API client."""
    return _require(_interaction_api_service, "Feed")


def get_profile_api_service() -> ProfileAPIService:
    """Get profile API client."""
    return _require(_profile_api_service, "Feed")


def get_feed_cache() -> FeedCacheManager:
    """Get feed cache instance."""
    return _require(_feed_cache, "Feed")


def get_follow_graph() -> FollowGraphManager:
    """Get follow graph instance."""
    return _require(_follow_graph, "Feed")


def get_feed_view_model() -> FeedViewModel:
    """Get feed view model instance."""
    return _require(_feed_view_model, "Feed")


# ─────────────────────────────────────────────────────────────────
# Workout getters
# ─────────────────────────────────────────────────────────────────

def get_workout_service() -> AWSWorkoutService:
    """Get workout library client."""
    return _require(_workout_service, "Workout")


def get_workout_tracking_service() -> WorkoutTrackingService:
    """Get workout tracking instance."""
    return _require(_workout_tracking_service, "Workout")


# ─────────────────────────────────────────────────────────────────
# Genie getters
# ─────────────────────────────────────────────────────────────────

def get_genie_api_service() -> GenieAPIService:
    """Get Genie API client."""
    return _require(_genie_api_service, "Genie")


def get_conversation_store_service() -> GenieConversationStoreService:
    """Get conversation store client."""
    return _require(_conversation_store_service, "Genie")


def get_user_learning_service() -> GenieUserLearningService:
    """Get user learning instance."""
    return _require(_user_learning_service, "Genie")


def get_action_handler() -> GenieActionHandler:
    """Get Genie action dispatcher."""
    return _require(_action_handler, "Genie")


def get_recipe_storage_service() -> RecipeStorageService:
    """Get cookbook instance."""
    return _require(_recipe_storage_service, "Genie")


def get_grocery_list_service() -> GroceryListService:
    """Get grocery list instance."""
    return _require(_grocery_list_service, "Genie")


def get_food_tracking_service() -> FoodTrackingService:
    """Get food tracking instance."""
    return _require(_food_tracking_service, "Genie")


def get_meditation_tracking_service() -> MeditationTrackingService:
    """Get meditation tracking instance."""
    return _require(_meditation_tracking_service, "Genie")


def get_restaurant_tracking_service() -> RestaurantTrackingService:
    """Get restaurant meal tracking instance."""
    return _require(_restaurant_tracking_service, "Genie")


def get_water_intake_service() -> WaterIntakeService:
    """Get water intake instance."""
    return _require(_water_intake_service, "Genie")


def get_meal_plan_tracking_service() -> MealPlanTrackingService:
    """Get meal plan tracking instance."""
    return _require(_meal_plan_tracking_service, "Genie")


# ─────────────────────────────────────────────────────────────────
# Lookup & media getters
# ─────────────────────────────────────────────────────────────────

def get_nutrition_service() -> NutritionService:
    """Get USDA nutrition lookup client."""
    return _require(_nutrition_service, "Lookup")


def get_barcode_service() -> BarcodeService:
    """Get barcode lookup client."""
    return _require(_barcode_service, "Lookup")


def get_youtube_service() -> YouTubeService:
    """Get YouTube search client."""
    return _require(_youtube_service, "Lookup")


def get_media_cache() -> MediaCache:
    """Get image cache instance."""
    return _require(_media_cache, "Lookup")
