"""
Actions module for the Genie agent.

Provides pluggable handlers that parse the actions Genie attaches to
its replies.
"""

from .base import ActionHandler
from .registry import ActionRegistry
from .handler import GenieActionHandler, default_registry

__all__ = [
    "ActionHandler",
    "ActionRegistry",
    "GenieActionHandler",
    "default_registry",
]
