"""
Meditation services.
"""

from do_app.services.meditation.meditation_tracking_service import MeditationTrackingService

__all__ = [
    "MeditationTrackingService",
]
