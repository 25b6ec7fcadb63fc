"""
Do Services.

All service classes organized by feature.
"""

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

# Genie services
from do_app.services.genie.genie_api_service import GenieAPIService
from do_app.services.genie.conversation_store_service import GenieConversationStoreService
from do_app.services.genie.user_learning_service import GenieUserLearningService

# Nutrition services
from do_app.services.nutrition.nutrition_service import NutritionService
from do_app.services.nutrition.barcode_service import BarcodeService
from do_app.services.nutrition.food_tracking_service import FoodTrackingService

# Recipe services
from do_app.services.recipes.recipe_storage_service import RecipeStorageService
from do_app.services.recipes.grocery_list_service import GroceryListService

# Meditation services
from do_app.services.meditation.meditation_tracking_service import MeditationTrackingService

# Media services
from do_app.services.media.youtube_service import YouTubeService
from do_app.services.media.media_cache import MediaCache
