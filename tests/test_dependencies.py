"""Unit tests for service wiring."""

import pytest

from do_app import dependencies
from do_app.agent.actions import GenieActionHandler
from do_app.services.feed.feed_view_model import FeedViewModel
from do_app.services.media.media_cache import MediaCache
from do_app.services.nutrition import RestaurantTrackingService, WaterIntakeService
from do_app.services.recipes import MealPlanTrackingService
from do_app.services.workout import WorkoutTrackingService


@pytest.fixture(autouse=True)
def clean_dependencies():
    dependencies.reset_dependencies()
    yield
    dependencies.reset_dependencies()


class TestDependencies:
    def test_getters_fail_before_init(self):
        with pytest.raises(RuntimeError, match="Feed services not initialized"):
            dependencies.get_feed_view_model()

        with pytest.raises(RuntimeError, match="Lookup services not initialized"):
            dependencies.get_media_cache()

        with pytest.raises(RuntimeError, match="Workout services not initialized"):
            dependencies.get_workout_tracking_service()

    def test_init_all_services(self, settings, store, make_transport):
        dependencies.init_all_services(settings, store, make_transport(lambda r: (200, {})))

        assert dependencies.get_store() is store
        assert isinstance(dependencies.get_feed_view_model(), FeedViewModel)
        assert isinstance(dependencies.get_action_handler(), GenieActionHandler)
        assert isinstance(dependencies.get_media_cache(), MediaCache)
        assert dependencies.get_food_tracking_service() is not None
        assert dependencies.get_workout_service() is not None
        assert isinstance(dependencies.get_workout_tracking_service(), WorkoutTrackingService)
        assert isinstance(dependencies.get_restaurant_tracking_service(), RestaurantTrackingService)
        assert isinstance(dependencies.get_water_intake_service(), WaterIntakeService)
        assert isinstance(dependencies.get_meal_plan_tracking_service(), MealPlanTrackingService)

    def test_naive_meditation_on_disk_does_not_break_startup(self, settings, store):
        store.set("meditationSessions", [
            {"id": "legacy", "plannedDuration": 600, "startTime": "2026-10-19T09:00:00"},
        ])

        dependencies.init_all_services(settings, store)

        assert len(dependencies.get_meditation_tracking_service().load_sessions()) == 1

    def test_shared_learning_store(self, settings, store):
        dependencies.init_all_services(settings, store)

        learning = dependencies.get_user_learning_service()
        learning.update_user_learning("food", {"name": "Apple"})

        assert store.get("userLearning_food")[0]["name"] == "Apple"

    def test_reset(self, settings, store):
        dependencies.init_all_services(settings, store)

        dependencies.reset_dependencies()

        with pytest.raises(RuntimeError):
            dependencies.get_genie_api_service()
