"""
Feed API service.

Talks to the feed Lambdas: following and for-you pages, a user's own
posts, post moderation (delete, hide, archive, report) and signed share
links.
"""

import logging
from typing import Optional, List, Tuple, Dict, Any

import httpx

from do_app.config import Settings, get_settings
from do_app.schemas.feed import Post, FeedPage
from do_common.utils import (
    ClientException,
    DecodingException,
    build_headers,
    parse_json,
    raise_for_status,
    send_request,
)

logger = logging.getLogger(__name__)


class FeedAPIService:
    """
    Client for the feed Lambda Function URLs.
    """

    SLOW_FEED_THRESHOLD_MS = 2000

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize FeedAPIService.

        Args:
            settings: App settings (defaults to get_settings())
            transport: Optional httpx transport, used by tests
        """
        self._settings = settings or get_settings()
        self._transport = transport
        self._timeout = self._settings.REQUEST_TIMEOUT_SECONDS

    # =========================================================================
    # Feeds
    # =========================================================================

    async def get_following_feed(
        self,
        user_id: str,
        limit: int = 20,
        last_key: Optional[str] = None,
    ) -> FeedPage:
        """
        Fetch a page of posts from accounts the user follows.

        Args:
            user_id: Viewing user
            limit: Page size
            last_key: Continuation token from the previous page

        Returns:
            FeedPage with posts and the next continuation token
        """
        params: Dict[str, Any] = {
            "userId": user_id,
            "visibility": "public",
            "limit": limit,
        }
        if last_key:
            params["lastKey"] = last_key

        body = await self._get(self._settings.FEED_FOLLOWING_URL, params, "Following feed")
        return self._to_page(body)

    async def get_for_you_feed(
        self,
        user_id: str,
        limit: int = 20,
        last_key: Optional[str] = None,
    ) -> FeedPage:
        """
        Fetch a page of recommended posts.

        Args:
            user_id: Viewing user
            limit: Page size
            last_key: Continuation token from the previous page

        Returns:
            FeedPage with posts and the next continuation token
        """
        params: Dict[str, Any] = {"userId": user_id, "limit": limit}
        if last_key:
            params["lastKey"] = last_key

        body = await self._get(self._settings.FEED_FOR_YOU_URL, params, "For-you feed")

        metadata = body.get("metadata") or {}
        performance_ms = metadata.get("performanceMs")
        if isinstance(performance_ms, (int, float)) and performance_ms > self.SLOW_FEED_THRESHOLD_MS:
            logger.warning(f"For-you feed was slow: {performance_ms}ms for user {user_id}")

        return self._to_page(body)

    async def get_user_posts(
        self,
        user_id: str,
        limit: int = 30,
        next_token: Optional[str] = None,
    ) -> Tuple[List[Post], Optional[str]]:
        """
        Fetch posts shown on a user's profile.

        Args:
            user_id: Profile owner
            limit: Page size
            next_token: Continuation token from the previous page

        Returns:
            Tuple of (posts, next token or None)
        """
        params: Dict[str, Any] = {"userId": user_id, "limit": limit}
        if next_token:
            params["nextToken"] = next_token

        body = await self._get(self._settings.FEED_USER_POSTS_URL, params, "User posts")
        posts = self._parse_posts(body.get("data") or [])
        return posts, body.get("nextKey")

    # =========================================================================
    # Moderation
    # =========================================================================

    async def delete_post(self, post_id: str, user_id: str) -> bool:
        """Delete one of the user's own posts."""
        return await self._post_action(self._settings.FEED_DELETE_POST_URL, post_id, user_id, "Delete post")

    async def hide_post(self, post_id: str, user_id: str) -> bool:
        """Hide a post from the user's feed without deleting it."""
        return await self._post_action(self._settings.FEED_HIDE_POST_URL, post_id, user_id, "Hide post")

    async def archive_post(self, post_id: str, user_id: str) -> bool:
        return await self._post_action(self._settings.FEED_ARCHIVE_POST_URL, post_id, user_id, "Archive post")

    async def report_post(self, post_id: str, user_id: str, reason: Optional[str] = None) -> bool:
        """
        Report a post for review.

        Args:
            post_id: Post being reported
            user_id: Reporting user
            reason: Optional free-text reason, omitted when empty

        Returns:
            The backend's success flag, or True when it sends none
        """
        extra = {"reason": reason} if reason else None
        return await self._post_action(
            self._settings.FEED_REPORT_POST_URL, post_id, user_id, "Report post", extra
        )

    # =========================================================================
    # Sharing
    # =========================================================================

    async def generate_share_link(self, post_id: str, user_id: Optional[str] = None) -> str:
        """
        Get a signed deep link for sharing a post.

        Falls back to the plain web link whenever the link Lambda cannot
        produce one.

        Args:
            post_id: Post to share
            user_id: Sharing user, if known

        Returns:
            Deep link URL
        """
        fallback = f"{self._settings.SHARE_LINK_FALLBACK_BASE}?id={post_id}"
        user_id = user_id or self._settings.USER_ID

        params = {"postId": post_id}
        if user_id:
            params["userId"] = user_id

        try:
            response = await send_request(
                "GET",
                self._settings.FEED_DEEP_LINK_URL,
                transport=self._transport,
                timeout=self._timeout,
                params=params,
                headers=build_headers(self._settings.AUTH_TOKEN, user_id),
            )
            raise_for_status(response, "Deep link")
            body = parse_json(response)
        except ClientException as e:
            logger.warning(f"Share link generation failed for post {post_id}, using fallback: {e}")
            return fallback

        if not isinstance(body, dict):
            return fallback

        data = body.get("data")
        if not body.get("success") or not isinstance(data, dict) or not data.get("deepLink"):
            return fallback

        return data["deepLink"]

    # =========================================================================
    # Private helpers
    # =========================================================================

    async def _get(self, url: str, params: Dict[str, Any], service: str) -> Dict[str, Any]:
        response = await send_request(
            "GET",
            url,
            transport=self._transport,
            timeout=self._timeout,
            params=params,
            headers=build_headers(self._settings.AUTH_TOKEN),
        )
        raise_for_status(response, service)

        body = parse_json(response)
        if not isinstance(body, dict):
            raise DecodingException(f"{service} response is not an object")
        return body

    async def _post_action(
        self,
        url: str,
        post_id: str,
        user_id: str,
        service: str,
        extra: Optional[Dict[str, Any]] = None,
    ) -> bool:
        payload: Dict[str, Any] = {"postId": post_id, "userId": user_id}
        if extra:
            payload.update(extra)

        response = await send_request(
            "POST",
            url,
            transport=self._transport,
            timeout=self._timeout,
            json=payload,
            headers=build_headers(self._settings.AUTH_TOKEN, user_id),
        )
        raise_for_status(response, service)

        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict) and isinstance(body.get("success"), bool):
            return body["success"]

        logger.info(f"{service} for {post_id} returned {response.status_code} without a success flag")
        return True

    def _to_page(self, body: Dict[str, Any]) -> FeedPage:
        posts = self._parse_posts(body.get("data") or [])
        return FeedPage(
            posts=posts,
            lastEvaluatedKey=body.get("lastEvaluatedKey"),
            count=body.get("count", len(posts)),
        )

    def _parse_posts(self, raw_posts: List[Any]) -> List[Post]:
        posts = []
        for raw in raw_posts:
            try:
                posts.append(Post.model_validate(raw))
            except ValueError as e:
                logger.warning(f"Skipping undecodable post: {e}")
        return posts
