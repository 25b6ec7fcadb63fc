"""Unit tests for RestaurantTrackingService and WaterIntakeService."""

from datetime import date, datetime, timedelta, timezone

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from do_app.schemas.nutrition import HealthierAlternative, RestaurantEntry, RestaurantLocation
from do_app.services.nutrition.restaurant_tracking_service import (
    MEALS_KEY,
    RestaurantTrackingService,
    restaurant_payload,
)
from do_app.services.nutrition.water_intake_service import (
    LAST_UPDATE_KEY,
    TODAY_INTAKE_KEY,
    WaterIntakeService,
    day_key,
)
from do_common.utils import ServerException, ValidationException


ANALYTICS = {
    "period": {"days": 30, "startDate": "2026-09-19", "endDate": "2026-10-19"},
    "summary": {
        "totalRestaurantMeals": 4,
        "totalCalories": 3200,
        "averageCaloriesPerMeal": 800,
        "totalSpent": 62.5,
        "averageSpentPerMeal": 15.6,
    },
    "topRestaurants": [{"name": "Chipotle", "count": 3, "percentage": 75}],
    "mealTypeDistribution": {"Lunch": 3, "Dinner": 1},
}


# ─────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────


@pytest.fixture
def genie_api():
    api = MagicMock()
    api.save_restaurant_visit = AsyncMock()
    api.get_restaurant_analytics = AsyncMock(return_value=ANALYTICS)
    return api


@pytest.fixture
def restaurants(genie_api, store):
    return RestaurantTrackingService(genie_api, store)


# ─────────────────────────────────────────────────────────────────
# Restaurant meals
# ─────────────────────────────────────────────────────────────────


class TestLogRestaurantMeal:
    @pytest.mark.asyncio
    async def test_saves_then_refreshes_analytics(self, restaurants, genie_api, store):
        entry = await restaurants.log_restaurant_meal(
            "Chipotle", "Chicken Bowl", "lunch", 780,
            protein=52, carbs=70, fat=28, restaurant_type="fast_food", price=12.5,
        )

        assert entry.mealType == "Lunch"
        payload = genie_api.save_restaurant_visit.call_args[0][0]
        assert payload["restaurantName"] == "Chipotle"
        assert payload["restaurantType"] == "fast_food"
        assert payload["price"] == 12.5
        assert payload["timestamp"].endswith("Z")
        assert "rating" not in payload

        assert store.get(MEALS_KEY)[0]["id"] == entry.id
        assert restaurants.analytics.summary.totalRestaurantMeals == 4
        assert restaurants.analytics.topRestaurants[0].name == "Chipotle"

    @pytest.mark.asyncio
    async def test_backend_failure_keeps_nothing(self, restaurants, genie_api, store):
        genie_api.save_restaurant_visit.side_effect = ServerException()

        with pytest.raises(ServerException):
            await restaurants.log_restaurant_meal("Chipotle", "Bowl", "Lunch", 700)

        assert store.get(MEALS_KEY) is None
        genie_api.get_restaurant_analytics.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("meal_type, restaurant_type", [("Brunch", None), ("Lunch", "food_truck")])
    async def test_rejects_unknown_types(self, restaurants, genie_api, meal_type, restaurant_type):
        with pytest.raises(ValidationException):
            await restaurants.log_restaurant_meal(
                "Cart", "Taco", meal_type, 300, restaurant_type=restaurant_type,
            )

        genie_api.save_restaurant_visit.assert_not_called()

    @pytest.mark.asyncio
    async def test_analytics_failure_is_logged(self, restaurants, genie_api):
        genie_api.get_restaurant_analytics.side_effect = ServerException()

        entry = await restaurants.log_restaurant_meal("Chipotle", "Bowl", "Dinner", 700)

        assert entry.menuItemName == "Bowl"
        assert restaurants.analytics is None

    @pytest.mark.asyncio
    async def test_get_meals_window(self, restaurants, store):
        old = RestaurantEntry(
            id="old", restaurantName="Diner", menuItemName="Pie", mealType="Dinner", calories=500,
            timestamp=datetime.now(timezone.utc) - timedelta(days=40),
        )
        store.set(MEALS_KEY, [old.model_dump(mode="json")])
        await restaurants.log_restaurant_meal("Chipotle", "Bowl", "Lunch", 700)

        assert [m.id for m in restaurants.get_meals()][1] == "old"
        assert len(restaurants.get_meals(days=30)) == 1


class TestRestaurantPayload:
    def test_location_and_alternatives(self):
        entry = RestaurantEntry(
            id="r1", restaurantName="Sweetgreen", menuItemName="Harvest Bowl", mealType="Lunch",
            calories=705, timestamp=datetime(2026, 10, 19, 12, tzinfo=timezone.utc),
            location=RestaurantLocation(address="1 Main St", latitude=40.7, longitude=-74.0),
            alternatives=[HealthierAlternative(name="Kale Caesar", calories=430, savings=275, reason="Lighter")],
        )

        payload = restaurant_payload(entry)

        assert payload["location"]["city"] == ""
        assert payload["alternatives"][0]["savings"] == 275
        assert payload["timestamp"] == "2026-10-19T12:00:00Z"


# ─────────────────────────────────────────────────────────────────
# Water intake
# ─────────────────────────────────────────────────────────────────


class TestWaterIntake:
    def test_add_and_remove(self, store):
        water = WaterIntakeService(store)

        first = water.add_water(16)
        water.add_water(8)
        assert water.today_intake == 24
        assert water.get_progress() == pytest.approx(24 / 64)
        assert water.get_remaining_amount() == 40

        assert water.remove_water_entry(first.id) is True
        assert water.remove_water_entry("missing") is False
        assert water.today_intake == 8

    def test_intake_survives_restart(self, store):
        WaterIntakeService(store).add_water(12)

        water = WaterIntakeService(store)

        assert water.today_intake == 12
        assert len(water.water_log) == 1

    def test_new_day_resets(self, store):
        store.set(TODAY_INTAKE_KEY, 40)
        store.set(LAST_UPDATE_KEY, (datetime.now(timezone.utc).date() - timedelta(days=1)).isoformat())

        water = WaterIntakeService(store)

        assert water.today_intake == 0
        assert store.get(TODAY_INTAKE_KEY) == 0

    def test_progress_is_capped(self, store):
        water = WaterIntakeService(store)
        water.update_daily_goal(32)

        water.add_water(40)

        assert water.get_progress() == 1.0
        assert water.get_remaining_amount() == 0
        assert WaterIntakeService(store).daily_goal == 32

    def test_rejects_non_positive(self, store):
        water = WaterIntakeService(store)

        with pytest.raises(ValidationException):
            water.add_water(0)
        with pytest.raises(ValidationException):
            water.update_daily_goal(-1)

    def test_weekly_data(self, store):
        wednesday = date(2026, 10, 21)
        store.set(day_key(date(2026, 10, 19)), 48)
        store.set(day_key(date(2026, 10, 21)), 64)

        weekly = WaterIntakeService(store).load_weekly_data(today=wednesday)

        assert list(weekly)[0] == date(2026, 10, 19)
        assert len(weekly) == 7
        assert weekly[date(2026, 10, 19)] == 48
        assert weekly[date(2026, 10, 20)] == 0
        assert weekly[wednesday] == 64

    def test_day_total_is_recorded(self, store):
        water = WaterIntakeService(store)
        fixed = datetime(2026, 10, 19, 8, tzinfo=timezone.utc)

        with patch.object(WaterIntakeService, "_now", return_value=fixed):
            water.add_water(20)

        assert store.get(day_key(date(2026, 10, 19))) == 20
