"""Unit tests for FoodTrackingService."""

from datetime import datetime, timedelta, timezone

import pytest
from unittest.mock import AsyncMock, MagicMock

from do_app.schemas.nutrition import FoodEntry
from do_app.services.nutrition.food_tracking_service import (
    ENTRIES_KEY,
    FoodTrackingService,
    analyze_meal_patterns,
    calculate_trends,
    entry_from_backend,
    parse_ai_analysis,
)
from do_common.utils import RequestFailedException, ServerException, ValidationException


def _iso(value):
    return value.isoformat().replace("+00:00", "Z")


def _entry(entry_id, name="Oatmeal", meal_type="Breakfast", calories=300.0, when=None, **extra):
    return FoodEntry(
        id=entry_id, userId="user-1", name=name, mealType=meal_type, calories=calories,
        timestamp=when or datetime.now(timezone.utc), **extra,
    )


# ─────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────


@pytest.fixture
def genie_api():
    api = MagicMock()
    api.save_nutrition_entry = AsyncMock()
    api.delete_nutrition_entry = AsyncMock()
    api.get_nutrition_history = AsyncMock(return_value=[])
    return api


@pytest.fixture
def learning():
    return MagicMock()


@pytest.fixture
def service(genie_api, store, learning):
    return FoodTrackingService(genie_api, store, learning=learning, user_id="user-1")


# ─────────────────────────────────────────────────────────────────
# log_food / delete_food
# ─────────────────────────────────────────────────────────────────


class TestLogFood:
    @pytest.mark.asyncio
    async def test_stores_locally_and_saves_remotely(self, service, genie_api, learning, store):
        entry = await service.log_food("Oatmeal", "breakfast", 300, protein=10, recipe_id="r1")

        assert entry.mealType == "Breakfast"
        assert store.get(ENTRIES_KEY)[0]["id"] == entry.id
        genie_api.save_nutrition_entry.assert_awaited_once()
        assert genie_api.save_nutrition_entry.call_args.kwargs["recipe_id"] == "r1"
        learning.update_user_learning.assert_called_once()
        assert learning.update_user_learning.call_args[0][0] == "food"

    @pytest.mark.asyncio
    async def test_updates_todays_summary(self, service):
        await service.log_food("Oatmeal", "Breakfast", 300, protein=10)
        await service.log_food("Salad", "Lunch", 450, protein=20)

        assert [f.name for f in service.todays_foods] == ["Salad", "Oatmeal"]
        assert service.nutrition_summary.totalCalories == 750
        assert service.nutrition_summary.mealsLogged == 2
        assert service.nutrition_summary.calorieGoal == 2000

    @pytest.mark.asyncio
    async def test_local_entry_kept_when_backend_fails(self, service, genie_api, store):
        genie_api.save_nutrition_entry.side_effect = ServerException()

        with pytest.raises(ServerException):
            await service.log_food("Apple", "Snack", 95)

        assert store.get(ENTRIES_KEY)[0]["name"] == "Apple"

    @pytest.mark.asyncio
    async def test_unknown_meal_type_rejected(self, service, genie_api):
        with pytest.raises(ValidationException):
            await service.log_food("Cake", "brunch", 500)

        genie_api.save_nutrition_entry.assert_not_called()

    @pytest.mark.asyncio
    async def test_local_history_is_capped(self, genie_api, store):
        service = FoodTrackingService(genie_api, store, history_limit=2)

        for name in ("A", "B", "C"):
            await service.log_food(name, "Snack", 100)

        assert [raw["name"] for raw in store.get(ENTRIES_KEY)] == ["C", "B"]

    @pytest.mark.asyncio
    async def test_log_from_ai_analysis(self, service, genie_api):
        entry = await service.log_food_from_ai(
            "Grilled chicken salad\nCalories: 420 kcal\nProtein: 35g\nCarbs: 12g\nFat: 18g\nSaturated fat: 4g",
            "Dinner",
        )

        assert entry.name == "Grilled chicken salad"
        assert (entry.calories, entry.protein, entry.carbs, entry.fat) == (420, 35, 12, 18)
        assert entry.source == "ai"
        assert entry.notes.startswith("Grilled chicken salad")

    @pytest.mark.asyncio
    async def test_delete_removes_locally_and_remotely(self, service, genie_api, store):
        entry = await service.log_food("Oatmeal", "Breakfast", 300)

        await service.delete_food(entry.id)

        assert store.get(ENTRIES_KEY) == []
        genie_api.delete_nutrition_entry.assert_awaited_once_with(entry.id)
        assert service.todays_foods == []


# ─────────────────────────────────────────────────────────────────
# get_food_history
# ─────────────────────────────────────────────────────────────────


class TestFoodHistory:
    @pytest.mark.asyncio
    async def test_merges_remote_with_local_only_entries(self, service, genie_api, store):
        now = datetime.now(timezone.utc)
        store.set(ENTRIES_KEY, [
            _entry("shared", name="Old name", when=now - timedelta(hours=2)).model_dump(mode="json"),
            _entry("local-only", name="Banana", when=now - timedelta(hours=1)).model_dump(mode="json"),
        ])
        genie_api.get_nutrition_history.return_value = [
            {"nutritionId": "shared", "name": "New name", "mealType": "lunch",
             "calories": 500, "consumedAt": _iso(now - timedelta(hours=2))},
            {"mealId": "remote-2", "name": "Rice", "mealType": "Dinner",
             "calories": 250, "createdAt": _iso(now - timedelta(days=1)), "source": "barcode"},
            {"nutritionId": "water-1", "entryType": "water", "name": "Water", "mealType": "Snack",
             "calories": 0, "consumedAt": _iso(now)},
        ]

        history = await service.get_food_history(days=30)

        assert [e.id for e in history] == ["shared", "remote-2", "local-only"]
        assert history[0].name == "New name"
        assert history[0].mealType == "Lunch"
        assert history[1].source == "barcode"
        assert [raw["id"] for raw in store.get(ENTRIES_KEY)] == ["shared", "remote-2", "local-only"]

    @pytest.mark.asyncio
    async def test_local_only_entries_outside_window_are_excluded(self, service, genie_api, store):
        old = datetime.now(timezone.utc) - timedelta(days=40)
        store.set(ENTRIES_KEY, [_entry("ancient", when=old).model_dump(mode="json")])

        history = await service.get_food_history(days=30)

        assert history == []

    @pytest.mark.asyncio
    async def test_falls_back_to_local_when_offline(self, service, genie_api, store):
        store.set(ENTRIES_KEY, [_entry("local-1").model_dump(mode="json")])
        genie_api.get_nutrition_history.side_effect = RequestFailedException("offline")

        history = await service.get_food_history(days=7)

        assert [e.id for e in history] == ["local-1"]


class TestEntryFromBackend:
    def test_incomplete_items_are_skipped(self):
        assert entry_from_backend({"name": "No id", "mealType": "Lunch", "calories": 1,
                                   "consumedAt": "2025-01-01T00:00:00Z"}) is None
        assert entry_from_backend({"nutritionId": "x", "name": "Bad meal", "mealType": "brunch",
                                   "calories": 1, "consumedAt": "2025-01-01T00:00:00Z"}) is None

    def test_unknown_source_becomes_manual(self):
        entry = entry_from_backend({"nutritionId": "x", "name": "Egg", "mealType": "breakfast",
                                    "calories": 78, "consumedAt": "2025-01-01T08:00:00Z", "source": "voice"})

        assert entry.source == "manual"


# ─────────────────────────────────────────────────────────────────
# Analytics
# ─────────────────────────────────────────────────────────────────


class TestAnalytics:
    def test_daily_summary_for_other_day(self, service, store):
        yesterday = datetime.now(timezone.utc) - timedelta(days=1)
        store.set(ENTRIES_KEY, [
            _entry("a", calories=400, when=yesterday, protein=20).model_dump(mode="json"),
            _entry("b", calories=100).model_dump(mode="json"),
        ])

        summary = service.get_daily_summary(yesterday.date())

        assert summary.totalCalories == 400
        assert summary.totalProtein == 20
        assert summary.mealsLogged == 1

    def test_trends_average_per_logged_day(self):
        day1 = datetime(2025, 3, 1, 8, tzinfo=timezone.utc)
        day2 = datetime(2025, 3, 2, 8, tzinfo=timezone.utc)
        history = [
            _entry("a", calories=1000, when=day1, protein=30),
            _entry("b", calories=1000, when=day1, protein=10),
            _entry("c", calories=1600, when=day2, protein=20),
        ]

        trends = calculate_trends(history)

        assert trends.averageCalories == 1800
        assert trends.averageProtein == 20
        assert trends.consistency == pytest.approx(2 / 7)
        assert trends.dailyCalories == [("2025-03-01", 2000), ("2025-03-02", 1600)]

    def test_trends_of_empty_history(self):
        trends = calculate_trends([])

        assert trends.averageCalories == 0
        assert trends.consistency == 0

    def test_meal_patterns(self):
        history = [
            _entry("a", name="Oatmeal", meal_type="Breakfast", calories=300),
            _entry("b", name="Oatmeal", meal_type="Breakfast", calories=300),
            _entry("c", name="Salad", meal_type="Lunch", calories=600),
        ]

        patterns = analyze_meal_patterns(history)

        assert patterns.mealTypeDistribution == {"Breakfast": 2, "Lunch": 1}
        assert patterns.commonFoods[0] == ("Oatmeal", 2)
        assert patterns.averageDailyCalories == pytest.approx(1200 / 30)
        assert patterns.mostSkippedMeal == "Lunch"

    def test_parse_ai_analysis_defaults(self):
        parsed = parse_ai_analysis("Let me analyze this photo")

        assert parsed.name == "Food Item"
        assert parsed.calories == 0


# ─────────────────────────────────────────────────────────────────
# Favorites
# ─────────────────────────────────────────────────────────────────


class TestFavorites:
    def test_toggle_and_dedupe_by_name(self, service, genie_api, store):
        entry = _entry("a", name="Greek Yogurt")

        assert service.toggle_favorite(entry) is True
        service.add_favorite(_entry("b", name="greek yogurt"))
        assert len(service.favorite_foods) == 1

        reloaded = FoodTrackingService(genie_api, store)
        assert reloaded.is_favorite(entry)

        assert service.toggle_favorite(entry) is False
        assert service.favorite_foods == []
