"""
Base classes for the actions system.

Defines the ActionHandler abstract base class and the value coercion
helpers handlers use on the untyped action data.
"""

import math
from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any

from pydantic import BaseModel

from do_common.utils import ValidationException


class ActionHandler(ABC):
    """
    Abstract base class for action type handlers.

    Each handler validates the data of one action type and turns it
    into a typed payload. Handlers are registered with ActionRegistry
    and called by GenieActionHandler.
    """

    @property
    @abstractmethod
    def action_type(self) -> str:
        """
        Unique identifier for this action type.

        Returns:
            Type string (e.g., 'meditation', 'meal_plan')
        """
        pass

    @abstractmethod
    async def handle(self, data: Dict[str, Any]) -> BaseModel:
        """
        Parse the data of an action of this type.

        Args:
            data: Untyped action data from the Genie reply

        Returns:
            Typed payload model

        Raises:
            ValidationException: Required fields are missing or invalid
        """
        pass

    def reject(self, data: Dict[str, Any], missing: List[str]) -> ValidationException:
        """Build the exception for a payload missing required fields."""
        return ValidationException(
            message=f"Invalid {self.action_type} action: missing or invalid {', '.join(missing)}",
            code="INVALID_ACTION",
            details={"actionType": self.action_type, "receivedKeys": sorted(data.keys())},
        )


# =============================================================================
# Coercion helpers
# =============================================================================

def int_value(value: Any) -> Optional[int]:
    """Integer from an int or finite float; None for anything else."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return int(value)
    return None


def float_value(value: Any) -> Optional[float]:
    """Float from an int or float; None for NaN, infinities and non-numbers."""
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, int):
        try:
            return float(value)
        except OverflowError:
            return None
    return None


def str_value(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def bool_value(value: Any, default: Optional[bool] = None) -> Optional[bool]:
    return value if isinstance(value, bool) else default


def string_list(value: Any) -> List[str]:
    """The string items of a list; [] when not a list."""
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def dict_list(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]
