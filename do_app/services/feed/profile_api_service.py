"""
Profile API service.

Profile lookups plus the follow graph endpoints (status, follow,
unfollow, followers and following lists).
"""

import logging
from typing import Optional, Dict, Any

import httpx

from do_app.config import Settings, get_settings
from do_app.schemas.profile import FollowStatus, UserPage, UserProfile
from do_common.utils import (
    APIErrorException,
    DecodingException,
    build_headers,
    parse_json,
    raise_for_status,
    send_request,
)

logger = logging.getLogger(__name__)


class ProfileAPIService:
    """
    Client for the profile Lambdas.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._settings = settings or get_settings()
        self._transport = transport

    async def get_user_profile(
        self,
        user_id: str,
        current_user_id: Optional[str] = None,
    ) -> UserProfile:
        """
        Fetch a user's profile with follower and following counts.

        Args:
            user_id: Profile to load
            current_user_id: Viewer, so the backend can include follow status

        Returns:
            UserProfile
        """
        params: Dict[str, Any] = {
            "userId": user_id,
            "includeFollowers": "false",
            "includeFollowing": "false",
        }
        if current_user_id:
            params["currentUserId"] = current_user_id

        body = await self._request("GET", self._settings.PROFILE_GET_URL, "Get profile", params=params)

        data = body.get("data")
        if not isinstance(data, dict):
            raise DecodingException("Profile response has no data")
        return UserProfile.model_validate(data)

    async def check_follow_status(self, user_id: str, target_user_id: str) -> FollowStatus:
        body = await self._request(
            "GET",
            self._settings.PROFILE_FOLLOW_STATUS_URL,
            "Follow status",
            params={"userId": user_id, "targetUserId": target_user_id},
        )
        return FollowStatus.model_validate(body.get("data") or {})

    async def follow_user(self, follower_id: str, following_id: str) -> Dict[str, Any]:
        """
        Follow another user.

        Returns:
            The follow record from the backend
        """
        body = await self._request(
            "POST",
            self._settings.PROFILE_FOLLOW_URL,
            "Follow user",
            json={"followerId": follower_id, "followingId": following_id},
        )
        return body.get("data") or {}

    async def unfollow_user(self, follower_id: str, following_id: str) -> None:
        await self._request(
            "POST",
            self._settings.PROFILE_UNFOLLOW_URL,
            "Unfollow user",
            json={"followerId": follower_id, "followingId": following_id},
        )

    async def get_followers(
        self,
        user_id: str,
        current_user_id: str,
        limit: int = 50,
        next_token: Optional[str] = None,
    ) -> UserPage:
        """
        Fetch one page of a user's followers.

        Args:
            user_id: Whose followers to list
            current_user_id: Viewer
            limit: Page size
            next_token: Continuation token

        Returns:
            UserPage
        """
        return await self._user_page(
            self._settings.PROFILE_FOLLOWERS_URL, "Followers", user_id, current_user_id, limit, next_token
        )

    async def get_following(
        self,
        user_id: str,
        current_user_id: str,
        limit: int = 50,
        next_token: Optional[str] = None,
    ) -> UserPage:
        """Fetch one page of the accounts a user follows."""
        return await self._user_page(
            self._settings.PROFILE_FOLLOWING_URL, "Following", user_id, current_user_id, limit, next_token
        )

    async def _user_page(
        self,
        url: str,
        service: str,
        user_id: str,
        current_user_id: str,
        limit: int,
        next_token: Optional[str],
    ) -> UserPage:
        params: Dict[str, Any] = {
            "userId": user_id,
            "currentUserId": current_user_id,
            "limit": limit,
        }
        if next_token:
            params["nextToken"] = next_token

        body = await self._request("GET", url, service, params=params)
        return UserPage(
            users=body.get("data") or [],
            nextToken=body.get("nextToken"),
            hasMore=bool(body.get("hasMore")),
        )

    async def _request(self, method: str, url: str, service: str, **kwargs: Any) -> Dict[str, Any]:
        response = await send_request(
            method,
            url,
            transport=self._transport,
            timeout=self._settings.REQUEST_TIMEOUT_SECONDS,
            headers=build_headers(self._settings.AUTH_TOKEN),
            **kwargs,
        )
        raise_for_status(response, service)

        body = parse_json(response)
        if not isinstance(body, dict):
            raise DecodingException(f"{service} response is not an object")

        if not body.get("success"):
            message = body.get("error") or f"{service} failed"
            logger.error(f"{service} rejected: {message}")
            raise APIErrorException(message=message)

        return body
