"""
Feed view model.

Owns the state behind the social feed screen: which posts are shown,
pagination tokens for each source, loading flags and the viewer's own
reactions. Posts are drawn from the following and for-you Lambdas and
mixed according to how many accounts the viewer follows.
"""

import asyncio
import logging
from typing import Optional, List, Dict

from do_app.schemas.feed import Post, FeedPage, normalize_reaction_type
from do_app.services.feed.feed_api_service import FeedAPIService
from do_app.services.feed.feed_cache import FeedCacheManager
from do_app.services.feed.feed_mixer import feed_ratio_for_following_count, mix_feeds
from do_app.services.feed.follow_graph import FollowGraphManager
from do_app.services.feed.interaction_service import InteractionAPIService
from do_common.utils import ClientException

logger = logging.getLogger(__name__)


FEED_FOR_YOU = "for_you"
FEED_HYBRID = "hybrid"


class FeedViewModel:
    """
    State and pagination for the hybrid feed.

    Attributes:
        posts: Posts currently shown, in display order
        is_loading: A full load is in progress
        is_loading_more: A pagination step is in progress
        error: Message from the last failed load, if any
        has_more_pages: Either source still has a continuation token
        feed_type: FEED_FOR_YOU or FEED_HYBRID
        user_interactions: postId -> the viewer's reaction type
    """

    INITIAL_LOAD_COUNT = 20
    PAGINATION_COUNT = 10
    PREFETCH_THRESHOLD = 5

    def __init__(
        self,
        feed_api: FeedAPIService,
        interaction_api: InteractionAPIService,
        follow_graph: FollowGraphManager,
        cache: FeedCacheManager,
    ):
        """
        Initialize FeedViewModel and restore any cached feed.

        Args:
            feed_api: Feed Lambda client
            interaction_api: Reaction Lambda client
            follow_graph: Source of the viewer's following count
            cache: Feed cache
        """
        self._feed_api = feed_api
        self._interaction_api = interaction_api
        self._follow_graph = follow_graph
        self._cache = cache

        self.posts: List[Post] = []
        self.is_loading = False
        self.is_loading_more = False
        self.error: Optional[str] = None
        self.has_more_pages = True
        self.feed_type = FEED_HYBRID
        self.following_ratio = 0.7
        self.user_interactions: Dict[str, str] = {}

        self._following_last_key: Optional[str] = None
        self._for_you_last_key: Optional[str] = None
        self._following_posts: List[Post] = []
        self._for_you_posts: List[Post] = []

        self.load_cached_data()

    # =========================================================================
    # Loading
    # =========================================================================

    async def load_feed(self, user_id: str) -> None:
        """
        Load the first page of the feed.

        Picks the feed strategy from the viewer's following count, fetches
        the first page(s), restores the viewer's reactions and caches the
        result. Does nothing if a load is already running.

        Args:
            user_id: Viewing user

        Raises:
            ClientException: If any feed request fails; error is set first
        """
        if self.is_loading:
            return

        self.is_loading = True
        self.error = None
        try:
            following_count = await self._follow_graph.get_following_count(user_id)
            self._choose_strategy(following_count)

            if self.feed_type == FEED_FOR_YOU:
                await self._load_for_you(user_id, initial=True)
            else:
                await self._load_hybrid(user_id, initial=True)

            self.load_user_interactions(user_id)
            self._cache.save_posts(self.posts)
        except ClientException as e:
            self.error = f"Failed to load feed: {e.message}"
            logger.error(f"Feed load failed for {user_id}: {e.message}")
            raise
        finally:
            self.is_loading = False

    async def load_more(self, user_id: str) -> None:
        """
        Append the next page.

        No-op while another load runs or when neither source has more
        pages. Posts already shown are never appended twice.

        Args:
            user_id: Viewing user

        Raises:
            ClientException: If any feed request fails; error is set first
        """
        if self.is_loading or self.is_loading_more or not self.has_more_pages:
            return

        self.is_loading_more = True
        try:
            before = len(self.posts)
            if self.feed_type == FEED_FOR_YOU:
                await self._load_for_you(user_id, initial=False)
            else:
                await self._load_hybrid(user_id, initial=False)

            logger.debug(f"Loaded {len(self.posts) - before} more posts")
            self.load_user_interactions(user_id)
        except ClientException as e:
            self.error = f"Failed to load more posts: {e.message}"
            logger.error(f"Feed pagination failed for {user_id}: {e.message}")
            raise
        finally:
            self.is_loading_more = False

    async def refresh(self, user_id: str) -> None:
        """Drop all state and cached data, then load from scratch."""
        self._following_last_key = None
        self._for_you_last_key = None
        self.posts = []
        self._following_posts = []
        self._for_you_posts = []
        self.has_more_pages = True
        self._cache.clear_cache()
        await self.load_feed(user_id)

    def should_prefetch(self, post: Post) -> bool:
        """
        Whether displaying this post should trigger load_more.

        True once the post is within the last PREFETCH_THRESHOLD posts and
        another page can be loaded right now.
        """
        if not self.has_more_pages or self.is_loading or self.is_loading_more:
            return False

        try:
            index = self.posts.index(post)
        except ValueError:
            return False

        return index >= len(self.posts) - self.PREFETCH_THRESHOLD

    # =========================================================================
    # Interactions
    # =========================================================================

    async def handle_interaction(
        self,
        post_id: str,
        user_id: str,
        reaction: Optional[str],
    ) -> Optional[str]:
        """
        React to a post, or remove the reaction when it is tapped again.

        The change is applied locally first and rolled back if the
        backend call fails.

        Args:
            post_id: Target post
            user_id: Reacting user
            reaction: Reaction as sent by the UI (any alias)

        Returns:
            The reaction now in effect, or None if it was removed

        Raises:
            ClientException: If the backend call fails (after rollback)
        """
        previous = self.user_interactions.get(post_id)
        new = normalize_reaction_type(reaction) if reaction else None
        current = normalize_reaction_type(previous) if previous else None
        final = None if new == current else new

        self.update_interaction(post_id, final)

        try:
            if final is not None:
                await self._interaction_api.create_interaction(user_id, post_id, final)
            else:
                await self._interaction_api.delete_interaction(user_id, post_id)
        except ClientException as e:
            logger.warning(f"Reaction on {post_id} failed, rolling back: {e.message}")
            self.update_interaction(post_id, previous)
            raise

        return final

    def update_interaction(self, post_id: str, reaction: Optional[str]) -> None:
        """Set or clear the viewer's reaction locally and persist it."""
        if reaction is None:
            self.user_interactions.pop(post_id, None)
        else:
            self.user_interactions[post_id] = reaction

        for post in self.posts:
            if post.postId == post_id:
                post.update_reaction(reaction)
                break

        self._cache.save_interactions(self.user_interactions)

    def get_interaction(self, post_id: str) -> Optional[str]:
        return self.user_interactions.get(post_id)

    def load_user_interactions(self, user_id: str) -> None:
        """Pick up the viewer's reactions from interactions embedded in posts."""
        for post in self.posts:
            for interaction in post.interactions:
                if interaction.userId == user_id:
                    self.user_interactions[post.postId] = interaction.interactionType
                    break

        self._cache.save_interactions(self.user_interactions)

    def load_cached_data(self) -> None:
        cached = self._cache.load_posts()
        if cached:
            self.posts = cached

        interactions = self._cache.load_interactions()
        if interactions:
            self.user_interactions = interactions

    # =========================================================================
    # Private helpers
    # =========================================================================

    def _choose_strategy(self, following_count: int) -> None:
        self.following_ratio = feed_ratio_for_following_count(following_count)
        self.feed_type = FEED_FOR_YOU if self.following_ratio == 0.0 else FEED_HYBRID
        logger.info(
            f"Feed strategy: {self.feed_type} (following={following_count}, ratio={self.following_ratio})"
        )

    async def _load_for_you(self, user_id: str, initial: bool) -> None:
        page = await self._feed_api.get_for_you_feed(
            user_id,
            limit=self.INITIAL_LOAD_COUNT,
            last_key=None if initial else self._for_you_last_key,
        )

        if initial:
            self.posts = list(page.posts)
        else:
            self._append_new(page.posts)

        self._for_you_last_key = page.lastEvaluatedKey
        self.has_more_pages = page.lastEvaluatedKey is not None

    async def _load_hybrid(self, user_id: str, initial: bool) -> None:
        fetch_following = initial or self._following_last_key is not None
        fetch_for_you = initial or self._for_you_last_key is not None

        following_page, for_you_page = await asyncio.gather(
            self._fetch_following(user_id, initial) if fetch_following else _empty_page(),
            self._fetch_for_you(user_id, initial) if fetch_for_you else _empty_page(),
        )

        # Tokens only advance once both fetches succeeded
        if fetch_following:
            self._following_last_key = following_page.lastEvaluatedKey
        if fetch_for_you:
            self._for_you_last_key = for_you_page.lastEvaluatedKey

        if initial:
            self._following_posts = list(following_page.posts)
            self._for_you_posts = list(for_you_page.posts)
        else:
            self._following_posts.extend(following_page.posts)
            self._for_you_posts.extend(for_you_page.posts)

        mixed = mix_feeds(self._following_posts, self._for_you_posts, self.following_ratio)

        if initial:
            self.posts = mixed
        else:
            self._append_new(mixed)

        self.has_more_pages = self._following_last_key is not None or self._for_you_last_key is not None

    async def _fetch_following(self, user_id: str, initial: bool) -> FeedPage:
        return await self._feed_api.get_following_feed(
            user_id,
            limit=self.PAGINATION_COUNT,
            last_key=None if initial else self._following_last_key,
        )

    async def _fetch_for_you(self, user_id: str, initial: bool) -> FeedPage:
        return await self._feed_api.get_for_you_feed(
            user_id,
            limit=self.PAGINATION_COUNT,
            last_key=None if initial else self._for_you_last_key,
        )

    def _append_new(self, candidates: List[Post]) -> None:
        existing = {post.postId for post in self.posts}
        new_posts = [post for post in candidates if post.postId not in existing]
        self.posts.extend(new_posts)


async def _empty_page() -> FeedPage:
    return FeedPage()
