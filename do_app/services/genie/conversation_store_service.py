"""
Genie conversation store.

Persists chat conversations and their messages through the conversation
Lambdas. The Lambdas accept unauthenticated calls; the bearer token is
attached when one is configured so requests can be attributed.
"""

import logging
from typing import Optional, List, Any, Dict

import httpx

from do_app.config import Settings, get_settings
from do_app.schemas.genie import Conversation, StoredMessage
from do_common.utils import (
    DecodingException,
    HTTPStatusException,
    build_headers,
    parse_json,
    send_request,
)

logger = logging.getLogger(__name__)


class GenieConversationStoreService:
    """
    Client for the conversation Lambdas.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._settings = settings or get_settings()
        self._transport = transport

    # =========================================================================
    # Conversations
    # =========================================================================

    async def list_conversations(self, owner_id: str, limit: int = 50) -> List[Conversation]:
        """
        List a user's conversations.

        Args:
            owner_id: Conversation owner
            limit: Maximum number returned

        Returns:
            List of Conversation
        """
        response = await self._send(
            "GET",
            self._settings.CONVERSATION_LIST_URL,
            params={"ownerId": owner_id, "limit": limit},
        )
        self._check(response, "List conversations")

        body = self._object(response, "List conversations")
        return [Conversation.model_validate(item) for item in body.get("conversations") or []]

    async def create_conversation(self, title: str, owner_id: str) -> Conversation:
        """Create an empty conversation and return it."""
        response = await self._send(
            "POST",
            self._settings.CONVERSATION_CREATE_URL,
            json={"title": title, "ownerId": owner_id},
        )
        self._check(response, "Create conversation")

        conversation = Conversation.model_validate(self._object(response, "Create conversation"))
        logger.info(f"Created conversation {conversation.conversationId} for {owner_id}")
        return conversation

    async def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        """
        Fetch one conversation.

        Returns:
            The Conversation, or None when it does not exist
        """
        response = await self._send(
            "GET",
            self._settings.CONVERSATION_GET_URL,
            params={"conversationId": conversation_id},
        )
        if response.status_code == 404:
            return None

        self._check(response, "Get conversation")
        return Conversation.model_validate(self._object(response, "Get conversation"))

    async def delete_conversation(self, conversation_id: str) -> None:
        response = await self._send(
            "DELETE",
            self._settings.CONVERSATION_DELETE_URL,
            json={"conversationId": conversation_id},
        )
        self._check(response, "Delete conversation", accepted=(200, 204))

    # =========================================================================
    # Messages
    # =========================================================================

    async def fetch_messages(self, conversation_id: str, limit: int = 100) -> List[StoredMessage]:
        response = await self._send(
            "GET",
            self._settings.CONVERSATION_MESSAGES_URL,
            params={"conversationId": conversation_id, "limit": limit},
        )
        self._check(response, "Fetch messages")

        body = self._object(response, "Fetch messages")
        return [StoredMessage.model_validate(item) for item in body.get("messages") or []]

    async def append_message(
        self,
        conversation_id: str,
        role: str,
        text: str,
        usage_json: Optional[str] = None,
        model: Optional[str] = None,
    ) -> StoredMessage:
        """
        Append a message to a conversation.

        Args:
            conversation_id: Target conversation
            role: "user", "assistant" or "system"
            text: Message text
            usage_json: Token usage as a JSON string
            model: Model that produced an assistant message

        Returns:
            The stored message
        """
        body: Dict[str, Any] = {"conversationId": conversation_id, "role": role, "text": text}
        if usage_json is not None:
            body["usageJSON"] = usage_json
        if model is not None:
            body["model"] = model

        response = await self._send("POST", self._settings.CONVERSATION_APPEND_URL, json=body)
        self._check(response, "Append message")
        return StoredMessage.model_validate(self._object(response, "Append message"))

    # =========================================================================
    # Private helpers
    # =========================================================================

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        return await send_request(
            method,
            url,
            transport=self._transport,
            timeout=self._settings.REQUEST_TIMEOUT_SECONDS,
            headers=build_headers(self._settings.AUTH_TOKEN),
            **kwargs,
        )

    def _check(self, response: httpx.Response, service: str, accepted: tuple = (200,)) -> None:
        if response.status_code in accepted:
            return

        message = f"HTTP {response.status_code}"
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and isinstance(body.get("error"), str):
            message = body["error"]

        logger.error(f"{service} failed: {response.status_code} {message}")
        raise HTTPStatusException(status_code=response.status_code, message=message)

    def _object(self, response: httpx.Response, service: str) -> Dict[str, Any]:
        body = parse_json(response)
        if not isinstance(body, dict):
            raise DecodingException(f"{service} response is not an object")
        return body
