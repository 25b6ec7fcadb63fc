"""
Food nutrition lookup against USDA FoodData Central.
"""

import logging
from typing import Optional, Dict, Any

import httpx

from do_app.config import Settings, get_settings
from do_app.schemas.nutrition import NutritionInfo
from do_common.utils import ClientException, parse_json, raise_for_status, send_request

logger = logging.getLogger(__name__)


NUTRIENT_CALORIES = 1008
NUTRIENT_PROTEIN = 1003
NUTRIENT_CARBS = 1005
NUTRIENT_FAT = 1004

LOOKUP_TIMEOUT_SECONDS = 10.0


def default_nutrition() -> NutritionInfo:
    """Estimate used whenever the lookup yields nothing."""
    return NutritionInfo(calories=200, protein=5, carbs=25, fat=8, portion="100g", source="estimate")


def parse_food(food: Dict[str, Any]) -> NutritionInfo:
    """
    Build NutritionInfo from one FDC search result.

    Args:
        food: Entry of the "foods" array

    Returns:
        NutritionInfo with 0 for any nutrient the entry lacks
    """
    values = {}
    for nutrient in food.get("foodNutrients") or []:
        if isinstance(nutrient, dict) and isinstance(nutrient.get("value"), (int, float)):
            values[nutrient.get("nutrientId")] = float(nutrient["value"])

    size = food.get("servingSize")
    unit = food.get("servingSizeUnit")
    portion = f"{size:g} {unit}" if isinstance(size, (int, float)) and unit else "100g"

    return NutritionInfo(
        calories=values.get(NUTRIENT_CALORIES, 0),
        protein=values.get(NUTRIENT_PROTEIN, 0),
        carbs=values.get(NUTRIENT_CARBS, 0),
        fat=values.get(NUTRIENT_FAT, 0),
        portion=portion,
        source="usda",
    )


class NutritionService:
    """
    USDA FoodData Central client.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._settings = settings or get_settings()
        self._transport = transport

    async def lookup_food(self, query: str) -> NutritionInfo:
        """
        Look up nutrition for a food name.

        Never raises for lookup failures: network errors, bad responses
        and empty results all return default_nutrition().

        Args:
            query: Food name as typed or recognised

        Returns:
            NutritionInfo for the best match
        """
        try:
            response = await send_request(
                "GET",
                self._settings.USDA_SEARCH_URL,
                transport=self._transport,
                timeout=LOOKUP_TIMEOUT_SECONDS,
                params={
                    "query": query,
                    "api_key": self._settings.USDA_API_KEY or "DEMO_KEY",
                    "pageSize": 1,
                },
                headers={"Accept": "application/json"},
            )
            raise_for_status(response, "USDA search")
            body = parse_json(response)
        except ClientException as e:
            logger.warning(f"Using default nutrition for '{query}': {e.message}")
            return default_nutrition()

        foods = body.get("foods") if isinstance(body, dict) else None
        if not foods or not isinstance(foods[0], dict):
            logger.warning(f"No USDA match for '{query}', using default nutrition")
            return default_nutrition()

        return parse_food(foods[0])
