"""Workout library and tracking services."""

from do_app.services.workout.workout_cache import WorkoutCacheManager
from do_app.services.workout.aws_workout_service import AWSWorkoutService
from do_app.services.workout.workout_tracking_service import WorkoutTrackingService

__all__ = [
    "WorkoutCacheManager",
    "AWSWorkoutService",
    "WorkoutTrackingService",
]
