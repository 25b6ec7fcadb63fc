"""
Feed cache with a memory layer and a disk layer.

Recent posts are kept in an in-memory LRU for single-post lookups; the
latest feed is also written to the JSON store so it can be shown
immediately on the next launch.
"""

import logging
from collections import OrderedDict
from datetime import datetime, timezone, timedelta
from typing import Optional, List, Dict

from do_app.schemas.feed import Post
from do_common.storage import JSONStore

logger = logging.getLogger(__name__)


POSTS_KEY = "feed_posts_cache"
INTERACTIONS_KEY = "feed_interactions_cache"
TIMESTAMP_KEY = "feed_cache_timestamp"
VERSION_KEY = "feed_cache_version"
CACHE_VERSION = 4


class FeedCacheManager:
    """
    Two-level post cache.

    Stored data written by an older cache version is discarded on
    startup, as is anything older than the expiry window.
    """

    def __init__(
        self,
        store: JSONStore,
        memory_limit: int = 50,
        disk_limit: int = 200,
        expiry_hours: int = 24,
    ):
        """
        Initialize FeedCacheManager.

        Args:
            store: Local JSON store
            memory_limit: Max posts kept in memory
            disk_limit: Max posts written to disk
            expiry_hours: Age after which the disk cache is ignored
        """
        self._store = store
        self._memory_limit = memory_limit
        self._disk_limit = disk_limit
        self._expiry = timedelta(hours=expiry_hours)
        self._memory: "OrderedDict[str, Post]" = OrderedDict()

        self._migrate_if_needed()
        if self._is_expired():
            self.clear_cache()

    # =========================================================================
    # Posts
    # =========================================================================

    def save_posts(self, posts: List[Post]) -> None:
        """
        Cache posts in memory and replace the disk copy.

        Args:
            posts: Posts in feed order
        """
        for post in posts:
            self._memory[post.postId] = post
            self._memory.move_to_end(post.postId)
            if len(self._memory) > self._memory_limit:
                self._memory.popitem(last=False)

        to_disk = [post.model_dump(mode="json") for post in posts[: self._disk_limit]]
        self._store.set(POSTS_KEY, to_disk)
        self._store.set(TIMESTAMP_KEY, self._now().isoformat())

    def load_posts(self) -> Optional[List[Post]]:
        """
        Load the cached feed.

        Returns:
            Cached posts, or None when missing or expired
        """
        if self._is_expired():
            self.clear_cache()
            return None
        return self._load_from_disk()

    def get_post(self, post_id: str) -> Optional[Post]:
        """Find one post, checking memory before disk."""
        post = self._memory.get(post_id)
        if post is not None:
            self._memory.move_to_end(post_id)
            return post

        for cached in self._load_from_disk() or []:
            if cached.postId == post_id:
                return cached
        return None

    @property
    def memory_size(self) -> int:
        return len(self._memory)

    # =========================================================================
    # Interactions
    # =========================================================================

    def save_interactions(self, interactions: Dict[str, str]) -> None:
        """
        Persist the viewer's reactions.

        Args:
            interactions: postId -> reaction type
        """
        self._store.set(INTERACTIONS_KEY, interactions)

    def load_interactions(self) -> Optional[Dict[str, str]]:
        data = self._store.get(INTERACTIONS_KEY)
        if not isinstance(data, dict):
            return None
        return {str(k): str(v) for k, v in data.items()}

    # =========================================================================
    # Management
    # =========================================================================

    def clear_cache(self) -> None:
        """Drop everything and stamp the current cache version."""
        self._memory.clear()
        self._store.remove(POSTS_KEY)
        self._store.remove(INTERACTIONS_KEY)
        self._store.remove(TIMESTAMP_KEY)
        self._store.set(VERSION_KEY, CACHE_VERSION)

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _is_expired(self) -> bool:
        raw = self._store.get(TIMESTAMP_KEY)
        if not raw:
            return True
        try:
            saved_at = datetime.fromisoformat(raw)
        except (TypeError, ValueError):
            return True
        return self._now() - saved_at > self._expiry

    def _migrate_if_needed(self) -> None:
        stored = self._store.get(VERSION_KEY, 0)
        if stored != CACHE_VERSION:
            logger.info(f"Feed cache version {stored} != {CACHE_VERSION}, clearing")
            self.clear_cache()

    def _load_from_disk(self) -> Optional[List[Post]]:
        raw = self._store.get(POSTS_KEY)
        if not isinstance(raw, list):
            return None
        try:
            return [Post.model_validate(item) for item in raw]
        except ValueError as e:
            logger.warning(f"Discarding unreadable feed cache: {e}")
            return None
