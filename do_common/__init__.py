"""
Common library for reusable client infrastructure components.

This package provides generic modules shared by every feature service:

- config: Base settings class and logging setup
- storage: Local JSON key/value store
- utils: Client exceptions and HTTP helpers
"""

from do_common.config import BaseAppSettings, setup_logging
from do_common.storage import JSONStore
from do_common.utils import (
    ClientException,
    HTTPStatusException,
    UnauthorizedException,
    NotFoundException,
    ServerException,
    APIErrorException,
    ValidationException,
)

__all__ = [
    # Config
    "BaseAppSettings",
    "setup_logging",
    # Storage
    "JSONStore",
    # Utils
    "ClientException",
    "HTTPStatusException",
    "UnauthorizedException",
    "NotFoundException",
    "ServerException",
    "APIErrorException",
    "ValidationException",
]
