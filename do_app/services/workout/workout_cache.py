"""
Short-lived per-user cache for workout library pages.
"""

import logging
import time
from typing import Optional, List, Dict, Tuple

from do_app.schemas.workout import WorkoutItem

logger = logging.getLogger(__name__)


WORKOUT_KINDS = ("movements", "sessions", "plans")


class WorkoutCacheManager:
    """
    In-memory cache of the first page of movements, sessions and plans.

    Entries are keyed by (kind, user_id) and expire after ttl_seconds.
    """

    def __init__(self, ttl_seconds: int = 300):
        self._ttl = ttl_seconds
        self._entries: Dict[Tuple[str, str], Tuple[float, List[WorkoutItem]]] = {}

    def get(self, kind: str, user_id: str) -> Optional[List[WorkoutItem]]:
        """
        Get cached items.

        Args:
            kind: "movements", "sessions" or "plans"
            user_id: Owner

        Returns:
            Cached items, or None when missing or expired
        """
        entry = self._entries.get((kind, user_id))
        if entry is None:
            return None

        cached_at, items = entry
        if time.monotonic() - cached_at >= self._ttl:
            return None

        logger.debug(f"Workout cache hit: {kind} for {user_id}")
        return items

    def put(self, kind: str, user_id: str, items: List[WorkoutItem]) -> None:
        if kind not in WORKOUT_KINDS:
            raise ValueError(f"Unknown workout kind: {kind}")
        self._entries[(kind, user_id)] = (time.monotonic(), list(items))

    def clear_cache(self, user_id: str) -> None:
        """Drop every cached list for one user."""
        for kind in WORKOUT_KINDS:
            self._entries.pop((kind, user_id), None)

    def clear_all(self) -> None:
        self._entries.clear()
