"""
Utilities module - Common exceptions and HTTP helpers.
"""

from do_common.utils.exceptions import (
    ClientException,
    InvalidURLException,
    InvalidResponseException,
    DecodingException,
    NoDataException,
    RequestFailedException,
    HTTPStatusException,
    UnauthorizedException,
    NotFoundException,
    ServerException,
    InsufficientTokensException,
    APIErrorException,
    ValidationException,
)
from do_common.utils.dates import as_utc
from do_common.utils.http import (
    build_headers,
    send_request,
    raise_for_status,
    parse_json,
    error_message,
)

__all__ = [
    "ClientException",
    "InvalidURLException",
    "InvalidResponseException",
    "DecodingException",
    "NoDataException",
    "RequestFailedException",
    "HTTPStatusException",
    "UnauthorizedException",
    "NotFoundException",
    "ServerException",
    "InsufficientTokensException",
    "APIErrorException",
    "ValidationException",
    "as_utc",
    "build_headers",
    "send_request",
    "raise_for_status",
    "parse_json",
    "error_message",
]
