"""
HTTP helpers shared by the API clients.

Wraps httpx so every service maps transport failures and status codes
onto the same exception hierarchy.
"""

import logging
from typing import Optional, Dict, Any

import httpx

from do_common.utils.exceptions import (
    HTTPStatusException,
    InvalidResponseException,
    InvalidURLException,
    NoDataException,
    NotFoundException,
    RequestFailedException,
    ServerException,
    UnauthorizedException,
)

logger = logging.getLogger(__name__)


def build_headers(
    auth_token: Optional[str] = None,
    user_id: Optional[str] = None,
    extra: Optional[Dict[str, str]] = None,
) -> Dict[str, str]:
    """
    Build request headers for the Do backend.

    Args:
        auth_token: Bearer token, omitted when None
        user_id: Sent as X-User-Id when given
        extra: Additional headers

    Returns:
        Header dict
    """
    headers = {"Content-Type": "application/json", "Accept": "application/json"}

    if auth_token:
        headers["Authorization"] = f"Bearer {auth_token}"

    if user_id:
        headers["X-User-Id"] = user_id

    if extra:
        headers.update(extra)

    return headers


async def send_request(
    method: str,
    url: str,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    timeout: float = 30.0,
    **kwargs: Any,
) -> httpx.Response:
    """
    Send a single request with a short-lived AsyncClient.

    Args:
        method: HTTP method
        url: Absolute URL
        transport: Optional transport (tests inject httpx.MockTransport)
        timeout: Request timeout in seconds
        **kwargs: Passed to client.request (params, json, headers, ...)

    Returns:
        The httpx.Response, whatever its status

    Raises:
        InvalidURLException: If the URL is empty or malformed
        RequestFailedException: On any transport failure
    """
    if not url:
        raise InvalidURLException("Endpoint URL is not configured")

    try:
        async with httpx.AsyncClient(transport=transport, timeout=timeout) as client:
            return await client.request(method, url, **kwargs)
    except httpx.InvalidURL as e:
        raise InvalidURLException(f"Invalid URL: {url}") from e
    except httpx.HTTPError as e:
        logger.error(f"{method} {url} failed: {e}")
        raise RequestFailedException(f"Request failed: {e}") from e


def error_message(response: httpx.Response) -> str:
    """Extract the backend's error message from a response body."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"

    if isinstance(body, dict):
        for key in ("error", "message"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value

    return response.text or f"HTTP {response.status_code}"


def raise_for_status(response: httpx.Response, service: str = "API") -> None:
    """
    Raise the matching client exception for a non-2xx response.

    Args:
        response: Response to check
        service: Name used in log messages

    Raises:
        UnauthorizedException: 401 or 403
        NotFoundException: 404
        ServerException: 5xx
        HTTPStatusException: Any other non-2xx status
    """
    status = response.status_code
    if 200 <= status < 300:
        return

    message = error_message(response)
    logger.error(f"{service} request failed: {status} {message[:200]}")

    if status in (401, 403):
        raise UnauthorizedException(message=message, status_code=status)
    if status == 404:
        raise NotFoundException(message=message)
    if status >= 500:
        raise ServerException(status_code=status, message=message)
    raise HTTPStatusException(status_code=status, message=message)


def parse_json(response: httpx.Response) -> Any:
    """
    Decode a JSON response body.

    Raises:
        NoDataException: If the body is empty
        InvalidResponseException: If the body is not JSON
    """
    if not response.content:
        raise NoDataException()

    try:
        return response.json()
    except ValueError as e:
        raise InvalidResponseException(
            f"Response is not valid JSON: {response.text[:200]}"
        ) from e
