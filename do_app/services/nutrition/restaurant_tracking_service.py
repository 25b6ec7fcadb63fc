"""
Restaurant meal tracking.

Logs meals eaten out to the restaurant backend, keeps a local copy and
caches the backend's eating-out analytics.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, List, Dict, Any

from do_app.schemas.nutrition import (
    RESTAURANT_TYPES,
    HealthierAlternative,
    RestaurantAnalytics,
    RestaurantEntry,
    RestaurantLocation,
    normalize_meal_type,
)
from do_app.services.genie.genie_api_service import GenieAPIService
from do_common.storage import JSONStore
from do_common.utils import ClientException, ValidationException

logger = logging.getLogger(__name__)


MEALS_KEY = "restaurantMeals"


def _iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def restaurant_payload(entry: RestaurantEntry) -> Dict[str, Any]:
    """Wire body for POST /restaurant/save; unset optional fields are left out."""
    body: Dict[str, Any] = {
        "id": entry.id,
        "restaurantName": entry.restaurantName,
        "menuItemName": entry.menuItemName,
        "mealType": entry.mealType,
        "calories": entry.calories,
        "protein": entry.protein,
        "carbs": entry.carbs,
        "fat": entry.fat,
        "timestamp": _iso(entry.timestamp),
    }
    optional = {
        "restaurantId": entry.restaurantId,
        "restaurantType": entry.restaurantType,
        "menuItemId": entry.menuItemId,
        "servingSize": entry.servingSize,
        "price": entry.price,
        "rating": entry.rating,
        "notes": entry.notes,
    }
    body.update({key: value for key, value in optional.items() if value is not None})

    if entry.location is not None:
        location = entry.location
        body["location"] = {
            "address": location.address,
            "latitude": location.latitude,
            "longitude": location.longitude,
            "city": location.city or "",
            "state": location.state or "",
            "zipCode": location.zipCode or "",
        }
    if entry.alternatives:
        body["alternatives"] = [alt.model_dump() for alt in entry.alternatives]

    return body


class RestaurantTrackingService:
    """
    Restaurant meal log.

    Attributes:
        analytics: Last analytics fetched from the backend, if any
    """

    def __init__(self, genie_api: GenieAPIService, store: JSONStore, history_limit: int = 500):
        self._genie_api = genie_api
        self._store = store
        self._history_limit = history_limit
        self.analytics: Optional[RestaurantAnalytics] = None

    async def log_restaurant_meal(
        self,
        restaurant_name: str,
        menu_item_name: str,
        meal_type: str,
        calories: float,
        protein: float = 0,
        carbs: float = 0,
        fat: float = 0,
        restaurant_id: Optional[str] = None,
        restaurant_type: Optional[str] = None,
        location: Optional[RestaurantLocation] = None,
        menu_item_id: Optional[str] = None,
        serving_size: Optional[str] = None,
        price: Optional[float] = None,
        rating: Optional[int] = None,
        notes: Optional[str] = None,
        alternatives: Optional[List[HealthierAlternative]] = None,
    ) -> RestaurantEntry:
        """
        Log a meal eaten at a restaurant.

        The backend save comes first; the entry is only kept locally once
        it succeeded. Analytics are refreshed afterwards.

        Raises:
            ValidationException: Unknown meal or restaurant type
            ClientException: Backend save failed
        """
        canonical = normalize_meal_type(meal_type)
        if canonical is None:
            raise ValidationException(f"Unknown meal type: {meal_type}")
        if restaurant_type is not None and restaurant_type not in RESTAURANT_TYPES:
            raise ValidationException(f"Unknown restaurant type: {restaurant_type}")

        entry = RestaurantEntry(
            id=str(uuid.uuid4()),
            restaurantName=restaurant_name,
            restaurantId=restaurant_id,
            restaurantType=restaurant_type,
            location=location,
            menuItemName=menu_item_name,
            menuItemId=menu_item_id,
            mealType=canonical,
            calories=calories,
            protein=protein,
            carbs=carbs,
            fat=fat,
            servingSize=serving_size,
            price=price,
            rating=rating,
            notes=notes,
            timestamp=self._now(),
            alternatives=alternatives,
        )

        await self._genie_api.save_restaurant_visit(restaurant_payload(entry))

        meals = self.load_meals()
        meals.insert(0, entry)
        self._store.set(MEALS_KEY, [meal.model_dump(mode="json") for meal in meals[:self._history_limit]])

        await self.refresh_analytics()

        logger.info(f"Logged restaurant meal: {menu_item_name} from {restaurant_name} ({calories:.0f} cal)")
        return entry

    async def refresh_analytics(self, days: int = 30) -> Optional[RestaurantAnalytics]:
        """
        Fetch eating-out analytics for the last `days` days.

        Failures are logged and leave the previous analytics in place.
        """
        try:
            data = await self._genie_api.get_restaurant_analytics(days)
        except ClientException as e:
            logger.error(f"Error fetching restaurant analytics: {e.message}")
            return self.analytics

        try:
            self.analytics = RestaurantAnalytics.model_validate(data)
        except ValueError:
            logger.warning("Restaurant analytics response could not be decoded")

        return self.analytics

    def get_meals(self, days: Optional[int] = None) -> List[RestaurantEntry]:
        """Locally logged meals, newest first, optionally limited to recent days."""
        meals = self.load_meals()
        if days is None:
            return meals
        start = self._now() - timedelta(days=days)
        return [meal for meal in meals if meal.timestamp >= start]

    def load_meals(self) -> List[RestaurantEntry]:
        meals = []
        for raw in self._store.get(MEALS_KEY, []) or []:
            try:
                meals.append(RestaurantEntry.model_validate(raw))
            except ValueError:
                logger.warning("Skipping unreadable local restaurant meal")
        return meals

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)
