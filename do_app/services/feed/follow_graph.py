"""
Follow graph cache.

Keeps the signed-in user's following and follower IDs as sets so the
feed can answer "do I follow this author?" without a network call.
"""

import logging
import time
from typing import Optional, List, Set

from do_app.services.feed.profile_api_service import ProfileAPIService
from do_common.storage import JSONStore
from do_common.utils import ClientException

logger = logging.getLogger(__name__)


CACHE_KEY = "follow_graph_cache"
FOLLOW_LIST_LIMIT = 1000


class FollowGraphManager:
    """
    Cached follow relationships for one user.

    The graph is refreshed from the profile API at most once per cache
    window. A failed refresh keeps whatever was cached before.
    """

    def __init__(
        self,
        profile_api: ProfileAPIService,
        store: JSONStore,
        cache_hours: int = 1,
    ):
        """
        Initialize FollowGraphManager.

        Args:
            profile_api: Profile API client
            store: Local JSON store for the persisted graph
            cache_hours: How long a refreshed graph stays fresh
        """
        self._profile_api = profile_api
        self._store = store
        self._cache_seconds = cache_hours * 3600

        self._following: Set[str] = set()
        self._followers: Set[str] = set()
        self._mutual: Set[str] = set()
        self._following_count = 0
        self._followers_count = 0
        self._last_update: Optional[float] = None

        self._load_from_cache()

    # =========================================================================
    # Lookups
    # =========================================================================

    def is_following(self, user_id: str) -> bool:
        return user_id in self._following

    def is_followed_by(self, user_id: str) -> bool:
        return user_id in self._followers

    def is_mutual(self, user_id: str) -> bool:
        return user_id in self._mutual

    def filter_following(self, user_ids: List[str]) -> Set[str]:
        """Return the subset of user_ids the user follows."""
        return set(user_ids) & self._following

    async def get_following_count(self, user_id: str) -> int:
        """
        Number of accounts the user follows, refreshed when stale.

        Args:
            user_id: Signed-in user

        Returns:
            Following count (0 when nothing could be loaded)
        """
        if self._is_expired():
            await self.update_follow_graph(user_id)
        return self._following_count

    async def get_followers_count(self, user_id: str) -> int:
        if self._is_expired():
            await self.update_follow_graph(user_id)
        return self._followers_count

    # =========================================================================
    # Updates
    # =========================================================================

    async def update_follow_graph(self, user_id: str) -> None:
        """
        Reload counts and follow lists from the profile API.

        Counts come from the profile; the ID sets come from the
        following/followers lists. If the lists fail the counts are still
        updated and the previous sets are kept.

        Args:
            user_id: Signed-in user
        """
        try:
            profile = await self._profile_api.get_user_profile(user_id, current_user_id=user_id)
        except ClientException as e:
            logger.warning(f"Follow graph refresh failed for {user_id}, keeping cached data: {e}")
            return

        self._following_count = profile.followingCount
        self._followers_count = profile.followerCount

        try:
            following = await self._profile_api.get_following(user_id, user_id, limit=FOLLOW_LIST_LIMIT)
            followers = await self._profile_api.get_followers(user_id, user_id, limit=FOLLOW_LIST_LIMIT)
        except ClientException as e:
            logger.warning(f"Follow lists unavailable for {user_id}, keeping cached sets: {e}")
        else:
            self._following = {user.userId for user in following.users}
            self._followers = {user.userId for user in followers.users}
            self._mutual = self._following & self._followers

        self._last_update = time.time()
        self._save_to_cache()

    def add_following(self, user_id: str) -> None:
        """Record a new follow before the backend confirms it."""
        self._following.add(user_id)
        self._following_count += 1
        if user_id in self._followers:
            self._mutual.add(user_id)
        self._save_to_cache()

    def remove_following(self, user_id: str) -> None:
        self._following.discard(user_id)
        self._following_count = max(0, self._following_count - 1)
        self._mutual.discard(user_id)
        self._save_to_cache()

    def clear_cache(self) -> None:
        self._following.clear()
        self._followers.clear()
        self._mutual.clear()
        self._following_count = 0
        self._followers_count = 0
        self._last_update = None
        self._store.remove(CACHE_KEY)

    # =========================================================================
    # Private helpers
    # =========================================================================

    def _is_expired(self) -> bool:
        if self._last_update is None:
            return True
        return time.time() - self._last_update > self._cache_seconds

    def _save_to_cache(self) -> None:
        self._store.set(CACHE_KEY, {
            "following": sorted(self._following),
            "followers": sorted(self._followers),
            "mutual": sorted(self._mutual),
            "followingCount": self._following_count,
            "followersCount": self._followers_count,
            "timestamp": self._last_update or time.time(),
        })

    def _load_from_cache(self) -> None:
        cache = self._store.get(CACHE_KEY)
        if not isinstance(cache, dict):
            return

        self._following = set(cache.get("following") or [])
        self._followers = set(cache.get("followers") or [])
        self._mutual = set(cache.get("mutual") or [])
        self._following_count = int(cache.get("followingCount") or 0)
        self._followers_count = int(cache.get("followersCount") or 0)
        timestamp = cache.get("timestamp")
        self._last_update = float(timestamp) if timestamp else None
