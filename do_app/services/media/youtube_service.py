"""
Exercise video search against the YouTube Data API v3.
"""

import logging
from typing import Optional, List, Dict, Any
from urllib.parse import quote_plus

import httpx

from do_app.config import Settings, get_settings
from do_app.schemas.actions import VideoResult
from do_common.utils import (
    HTTPStatusException,
    InvalidResponseException,
    UnauthorizedException,
    error_message,
    parse_json,
    send_request,
)

logger = logging.getLogger(__name__)


def search_placeholder(query: str) -> List[VideoResult]:
    """Single result linking to the YouTube search page for the query."""
    return [VideoResult(
        videoId="placeholder",
        title=f"Search YouTube for: {query}",
        thumbnail=None,
        channel="YouTube",
        url=f"https://www.youtube.com/results?search_query={quote_plus(query)}",
    )]


def parse_video(item: Dict[str, Any]) -> Optional[VideoResult]:
    """VideoResult from one search item, or None if fields are missing."""
    video_id = (item.get("id") or {}).get("videoId")
    snippet = item.get("snippet") or {}
    title = snippet.get("title")
    channel = snippet.get("channelTitle")
    if not video_id or title is None or channel is None:
        return None

    thumbnails = snippet.get("thumbnails") or {}
    best = thumbnails.get("high") or thumbnails.get("default") or {}

    return VideoResult(
        videoId=video_id,
        title=title,
        thumbnail=best.get("url") or f"https://img.youtube.com/vi/{video_id}/hqdefault.jpg",
        channel=channel,
        url=f"https://www.youtube.com/watch?v={video_id}",
    )


class YouTubeService:
    """
    YouTube video search.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._settings = settings or get_settings()
        self._transport = transport

    async def search_videos(self, query: str, limit: int = 5) -> List[VideoResult]:
        """
        Search for videos, most relevant first.

        Without a configured GOOGLE_API_KEY, or when nothing matches, the
        result is a single placeholder that opens YouTube search.

        Args:
            query: Search text
            limit: Maximum number of results

        Returns:
            List of VideoResult

        Raises:
            UnauthorizedException: API key rejected or quota exceeded (403)
            HTTPStatusException: Any other non-200 status
            InvalidResponseException: Body has no items list
        """
        api_key = self._settings.GOOGLE_API_KEY
        if not api_key:
            logger.warning("GOOGLE_API_KEY not configured, returning YouTube search link")
            return search_placeholder(query)

        response = await send_request(
            "GET",
            self._settings.YOUTUBE_SEARCH_URL,
            transport=self._transport,
            timeout=self._settings.REQUEST_TIMEOUT_SECONDS,
            params={
                "part": "snippet",
                "maxResults": limit,
                "q": query,
                "type": "video",
                "key": api_key,
                "order": "relevance",
            },
        )

        if response.status_code == 403:
            logger.error("YouTube API key invalid or quota exceeded")
            raise UnauthorizedException(
                message="YouTube API key is invalid or quota exceeded",
                status_code=403,
            )
        if response.status_code != 200:
            logger.error(f"YouTube search failed: {response.status_code}")
            raise HTTPStatusException(
                status_code=response.status_code,
                message=error_message(response),
            )

        body = parse_json(response)
        items = body.get("items") if isinstance(body, dict) else None
        if not isinstance(items, list):
            raise InvalidResponseException("YouTube response has no items")

        videos = [video for video in (parse_video(i) for i in items if isinstance(i, dict)) if video]
        logger.info(f"Found {len(videos)} YouTube videos for '{query}'")

        if not videos:
            return search_placeholder(query)
        return videos
