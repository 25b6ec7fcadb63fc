"""
Media services: exercise video search and the image cache.
"""

from do_app.services.media.youtube_service import YouTubeService
from do_app.services.media.media_cache import MediaCache

__all__ = [
    "YouTubeService",
    "MediaCache",
]
