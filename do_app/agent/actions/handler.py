"""
Genie action dispatcher.

Routes each action returned with a Genie reply to its registered
handler and keeps the latest payload of every type for the UI.
"""

import logging
from typing import Optional, List, Dict

from pydantic import BaseModel

from do_app.schemas.genie import GenieAction
from do_app.services.genie.user_learning_service import GenieUserLearningService
from do_app.services.recipes.recipe_storage_service import RecipeStorageService
from do_common.utils import ValidationException
from .registry import ActionRegistry
from .types import (
    AffirmationHandler,
    BedtimeStoryHandler,
    CookbookHandler,
    CreateMovementHandler,
    CreatePlanHandler,
    CreateSessionHandler,
    EquipmentHandler,
    FormFeedbackHandler,
    GroceryListHandler,
    ManifestationHandler,
    MealPlanHandler,
    MealSuggestionsHandler,
    MeditationHandler,
    MotivationHandler,
    NutritionDataHandler,
    PreferencesUpdatedHandler,
    RestaurantSearchHandler,
    VideoResultsHandler,
    VisionBoardHandler,
)

logger = logging.getLogger(__name__)


def default_registry(
    recipe_storage: Optional[RecipeStorageService] = None,
    learning: Optional[GenieUserLearningService] = None,
) -> ActionRegistry:
    """
    Registry with every built-in action handler.

    Args:
        recipe_storage: Cookbook that receives suggested recipes
        learning: Learning store that receives food preferences

    Returns:
        Populated ActionRegistry
    """
    registry = ActionRegistry()
    for handler in (
        MeditationHandler(),
        BedtimeStoryHandler(),
        MotivationHandler(),
        VisionBoardHandler(),
        ManifestationHandler(),
        AffirmationHandler(),
        EquipmentHandler(),
        VideoResultsHandler(),
        FormFeedbackHandler(),
        CreateMovementHandler(),
        CreateSessionHandler(),
        CreatePlanHandler(),
        NutritionDataHandler(),
        MealPlanHandler(),
        MealSuggestionsHandler(recipe_storage),
        GroceryListHandler(),
        RestaurantSearchHandler(),
        PreferencesUpdatedHandler(learning),
        CookbookHandler(),
    ):
        registry.register(handler)
    return registry


class GenieActionHandler:
    """
    Dispatches Genie actions to registered handlers.

    Attributes:
        current: Latest parsed payload per action type
    """

    def __init__(self, registry: Optional[ActionRegistry] = None):
        """
        Initialize GenieActionHandler.

        Args:
            registry: Handlers to dispatch to (defaults to all built-ins)
        """
        self._registry = registry or default_registry()
        self.current: Dict[str, BaseModel] = {}

    async def handle_action(self, action: GenieAction) -> Optional[BaseModel]:
        """
        Parse one action.

        Unknown types and payloads their handler rejects are logged and
        skipped.

        Args:
            action: Action from a Genie reply

        Returns:
            Parsed payload, or None if the action was skipped
        """
        handler = self._registry.get(action.type)
        if handler is None:
            logger.warning(f"Unknown Genie action type: {action.type}")
            return None

        try:
            payload = await handler.handle(action.data)
        except ValidationException as e:
            logger.warning(f"Skipping {action.type} action: {e.message}")
            return None

        self.current[action.type] = payload
        logger.info(f"Handled Genie action: {action.type}")
        return payload

    async def handle_actions(self, actions: Optional[List[GenieAction]]) -> List[BaseModel]:
        """
        Parse the actions of a reply in order.

        Returns:
            Payloads of the actions that were handled
        """
        payloads = []
        for action in actions or []:
            payload = await self.handle_action(action)
            if payload is not None:
                payloads.append(payload)
        return payloads

    def clear(self) -> None:
        self.current.clear()
