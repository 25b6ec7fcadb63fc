"""Shared test fixtures for Do client tests."""

import json

import httpx
import pytest

from do_app.config import Settings
from do_common.storage import JSONStore


@pytest.fixture
def sample_user_id():
    return "user-1"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        AUTH_TOKEN="test-token",
        USER_ID="user-1",
        STORAGE_DIR=str(tmp_path),
        GOOGLE_API_KEY=None,
        USDA_API_KEY="test-usda-key",
    )


@pytest.fixture
def store(tmp_path):
    return JSONStore(str(tmp_path / "store"))


@pytest.fixture
def recorded_requests():
    """Requests seen by transports built with make_transport."""
    return []


@pytest.fixture
def make_transport(recorded_requests):
    """
    Build an httpx.MockTransport from a handler returning (status, body).

    The body is JSON-encoded unless it is already bytes.
    """

    def _make(handler):
        def _dispatch(request: httpx.Request) -> httpx.Response:
            recorded_requests.append(request)
            status, body = handler(request)
            if isinstance(body, bytes):
                return httpx.Response(status, content=body)
            return httpx.Response(status, content=json.dumps(body).encode())

        return httpx.MockTransport(_dispatch)

    return _make


@pytest.fixture
def sample_post_wire():
    return {
        "postId": "p1",
        "userId": "author-1",
        "postType": "workout",
        "caption": "Leg day",
        "createdAt": "2025-03-01T10:00:00.000Z",
        "heartCount": 2,
        "user": {"userId": "author-1", "username": "anna", "profilePictureUrlThumb": "https://img/thumb.jpg"},
        "interactions": [
            {"interactionId": "i1", "postId": "p1", "userId": "user-1", "reactionType": "heart",
             "createdAt": "2025-03-01T11:00:00Z"},
            {"interactionId": "i2", "postId": "p1", "userId": "user-2", "reactionType": "heart",
             "createdAt": "2025-03-01T12:00:00Z"},
        ],
    }
