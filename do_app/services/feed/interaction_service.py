"""
Interaction API service.

Reads and writes the viewer's reactions on posts.
"""

import logging
from typing import Optional, List, Dict, Any

import httpx

from do_app.config import Settings, get_settings
from do_app.schemas.feed import ReactionRecord
from do_common.utils import (
    APIErrorException,
    DecodingException,
    build_headers,
    parse_json,
    raise_for_status,
    send_request,
)

logger = logging.getLogger(__name__)


class InteractionAPIService:
    """
    Client for the interaction Lambdas (batch get, create, delete).
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize InteractionAPIService.

        Args:
            settings: App settings (defaults to get_settings())
            transport: Optional httpx transport, used by tests
        """
        self._settings = settings or get_settings()
        self._transport = transport

    async def batch_get_interactions(
        self,
        user_id: str,
        post_ids: List[str],
    ) -> Dict[str, ReactionRecord]:
        """
        Look up the user's reaction on each of several posts.

        Args:
            user_id: Viewing user
            post_ids: Posts to check

        Returns:
            Dict of postId -> ReactionRecord, only for posts the user reacted to
        """
        if not post_ids:
            return {}

        body = await self._post(
            self._settings.INTERACTIONS_BATCH_GET_URL,
            {"userId": user_id, "postIds": post_ids},
            "Batch interactions",
        )

        raw = body.get("interactions") or {}
        if not isinstance(raw, dict):
            raise DecodingException("interactions must be an object keyed by postId")

        return {post_id: ReactionRecord.model_validate(item) for post_id, item in raw.items()}

    async def create_interaction(
        self,
        user_id: str,
        post_id: str,
        reaction_type: str,
    ) -> ReactionRecord:
        """
        Create or replace the user's reaction on a post.

        Args:
            user_id: Reacting user
            post_id: Target post
            reaction_type: Canonical reaction type

        Returns:
            The stored reaction
        """
        body = await self._post(
            self._settings.INTERACTIONS_CREATE_URL,
            {"userId": user_id, "postId": post_id, "reactionType": reaction_type},
            "Create interaction",
        )

        interaction = body.get("interaction")
        if not isinstance(interaction, dict):
            raise DecodingException("Create interaction response has no interaction")
        return ReactionRecord.model_validate(interaction)

    async def delete_interaction(self, user_id: str, post_id: str) -> None:
        """Remove the user's reaction from a post."""
        await self._post(
            self._settings.INTERACTIONS_DELETE_URL,
            {"userId": user_id, "postId": post_id},
            "Delete interaction",
        )

    async def _post(self, url: str, payload: Dict[str, Any], service: str) -> Dict[str, Any]:
        response = await send_request(
            "POST",
            url,
            transport=self._transport,
            timeout=self._settings.INTERACTION_TIMEOUT_SECONDS,
            json=payload,
            headers=build_headers(self._settings.AUTH_TOKEN),
        )
        raise_for_status(response, service)

        body = parse_json(response)
        if not isinstance(body, dict):
            raise DecodingException(f"{service} response is not an object")

        if not body.get("success"):
            message = body.get("error") or "Unknown error"
            logger.error(f"{service} rejected: {message}")
            raise APIErrorException(message=message)

        return body
