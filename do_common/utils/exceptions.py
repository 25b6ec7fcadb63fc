"""
Client exceptions with error codes.

Every service raises from this one hierarchy so callers can handle
network, HTTP and payload failures the same way regardless of which
backend endpoint produced them.

Example:
    from do_common.utils import NotFoundException

    try:
        product = await barcode_service.lookup_barcode(code)
    except NotFoundException:
        product = None
"""

from typing import Optional, Any, Dict


class ClientException(Exception):
    """
    Base client exception with error code support.

    Mirrors the shape of backend error responses so they can be
    surfaced to the user without translation.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Any] = None,
    ):
        """
        Create a client exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code
            status_code: HTTP status code, when one was received
            details: Additional error details
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        detail: Dict[str, Any] = {"message": self.message}

        if self.code:
            detail["code"] = self.code

        if self.status_code is not None:
            detail["statusCode"] = self.status_code

        if self.details is not None:
            detail["details"] = self.details

        return detail


class InvalidURLException(ClientException):
    """Endpoint URL is missing or malformed."""

    def __init__(
        self,
        message: str = "Invalid URL",
        code: str = "INVALID_URL",
        details: Optional[Any] = None,
    ):
        super().__init__(message, code, None, details)


class InvalidResponseException(ClientException):
    """Response could not be interpreted (not JSON, wrong shape)."""

    def __init__(
        self,
        message: str = "Invalid response from server",
        code: str = "INVALID_RESPONSE",
        details: Optional[Any] = None,
    ):
        super().__init__(message, code, None, details)


class DecodingException(ClientException):
    """Response JSON did not match the expected model."""

    def __init__(
        self,
        message: str = "Failed to decode response",
        code: str = "DECODING_ERROR",
        details: Optional[Any] = None,
    ):
        super().__init__(message, code, None, details)


class NoDataException(ClientException):
    """Response body was empty."""

    def __init__(
        self,
        message: str = "No data received",
        code: str = "NO_DATA",
        details: Optional[Any] = None,
    ):
        super().__init__(message, code, None, details)


class RequestFailedException(ClientException):
    """Transport-level failure (DNS, connection, timeout)."""

    def __init__(
        self,
        message: str = "Request failed",
        code: str = "REQUEST_FAILED",
        details: Optional[Any] = None,
    ):
        super().__init__(message, code, None, details)


class HTTPStatusException(ClientException):
    """Non-2xx HTTP response."""

    def __init__(
        self,
        status_code: int,
        message: str = "HTTP error",
        code: str = "HTTP_ERROR",
        details: Optional[Any] = None,
    ):
        super().__init__(message, code, status_code, details)


class UnauthorizedException(HTTPStatusException):
    """401/403 - Missing or invalid authentication."""

    def __init__(
        self,
        message: str = "Not authenticated",
        code: str = "UNAUTHORIZED",
        status_code: int = 401,
        details: Optional[Any] = None,
    ):
        super().__init__(status_code, message, code, details)


class NotFoundException(HTTPStatusException):
    """404 Not Found - Resource doesn't exist."""

    def __init__(
        self,
        message: str = "Not found",
        code: str = "NOT_FOUND",
        details: Optional[Any] = None,
    ):
        super().__init__(404, message, code, details)


class ServerException(HTTPStatusException):
    """5xx - Backend failure."""

    def __init__(
        self,
        status_code: int = 500,
        message: str = "Server error",
        code: str = "SERVER_ERROR",
        details: Optional[Any] = None,
    ):
        super().__init__(status_code, message, code, details)


class InsufficientTokensException(HTTPStatusException):
    """402 Payment Required - Genie token balance too low."""

    def __init__(
        self,
        message: str = "Insufficient tokens",
        code: str = "INSUFFICIENT_TOKENS",
        upsell: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(402, message, code, upsell)
        self.upsell = upsell or {}


class APIErrorException(ClientException):
    """2xx response whose body reports success: false."""

    def __init__(
        self,
        message: str = "API error",
        code: str = "API_ERROR",
        details: Optional[Any] = None,
    ):
        super().__init__(message, code, None, details)


class ValidationException(ClientException):
    """Client-side validation of arguments or payloads failed."""

    def __init__(
        self,
        message: str = "Validation error",
        code: str = "VALIDATION_ERROR",
        details: Optional[Any] = None,
        errors: Optional[list] = None,
    ):
        detail_info = details
        if errors:
            detail_info = {"errors": errors, **(details or {})}
        super().__init__(message, code, None, detail_info)
