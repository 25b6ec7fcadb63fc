"""Feed services."""

from do_app.services.feed.feed_mixer import feed_ratio_for_following_count, mix_feeds
from do_app.services.feed.feed_api_service import FeedAPIService
from do_app.services.feed.interaction_service import InteractionAPIService
from do_app.services.feed.profile_api_service import ProfileAPIService
from do_app.services.feed.feed_cache import FeedCacheManager
from do_app.services.feed.follow_graph import FollowGraphManager
from do_app.services.feed.feed_view_model import FeedViewModel, FEED_FOR_YOU, FEED_HYBRID

__all__ = [
    "feed_ratio_for_following_count",
    "mix_feeds",
    "FeedAPIService",
    "InteractionAPIService",
    "ProfileAPIService",
    "FeedCacheManager",
    "FollowGraphManager",
    "FeedViewModel",
    "FEED_FOR_YOU",
    "FEED_HYBRID",
]
