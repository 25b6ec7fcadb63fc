"""
Food tracking service.

Logs food locally and to the nutrition backend, merges backend history
with entries that only exist on this device, and derives daily summaries,
trends and meal patterns. Favorites are kept locally only.
"""

import logging
import re
import uuid
from collections import Counter, defaultdict
from datetime import datetime, timedelta, timezone, date
from typing import Optional, List, Dict, Any

from do_app.schemas.nutrition import (
    DailyNutritionSummary,
    FavoriteFood,
    FoodEntry,
    MealPatterns,
    NutritionTrends,
    ParsedFoodAnalysis,
    FOOD_SOURCES,
    normalize_meal_type,
)
from do_app.services.genie.genie_api_service import GenieAPIService
from do_app.services.genie.user_learning_service import GenieUserLearningService
from do_common.storage import JSONStore
from do_common.utils import ClientException, ValidationException

logger = logging.getLogger(__name__)


ENTRIES_KEY = "foodEntries"
FAVORITES_KEY = "favoriteFoods"
TREND_WINDOW_DAYS = 7
PATTERN_WINDOW_DAYS = 30

_NUMBER = re.compile(r"(\d+\.?\d*)")


def _parse_time(value: Any) -> Optional[datetime]:
    if not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _number(value: Any) -> Optional[float]:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    return None


def entry_from_backend(item: Dict[str, Any], user_id: str = "") -> Optional[FoodEntry]:
    """
    Convert a nutrition-table item into a FoodEntry.

    Items of another entryType (water, restaurant, ...) and items missing
    an id, name, valid meal type, calories or timestamp yield None.
    """
    entry_type = item.get("entryType")
    if entry_type is not None and entry_type != "food":
        return None

    entry_id = item.get("nutritionId") or item.get("mealId")
    name = item.get("name")
    meal_type = normalize_meal_type(item["mealType"]) if isinstance(item.get("mealType"), str) else None
    calories = _number(item.get("calories"))
    timestamp = _parse_time(item.get("consumedAt") or item.get("createdAt"))

    if not entry_id or not isinstance(name, str) or meal_type is None or calories is None or timestamp is None:
        return None

    source = item.get("source") if item.get("source") in FOOD_SOURCES else "manual"
    return FoodEntry(
        id=entry_id,
        userId=user_id,
        name=name,
        mealType=meal_type,
        calories=calories,
        protein=_number(item.get("protein")) or 0,
        carbs=_number(item.get("carbs")) or 0,
        fat=_number(item.get("fat")) or 0,
        servingSize=item.get("servingSize") if isinstance(item.get("servingSize"), str) else None,
        notes=item.get("notes") if isinstance(item.get("notes"), str) else None,
        timestamp=timestamp,
        source=source,
    )


def parse_ai_analysis(text: str) -> ParsedFoodAnalysis:
    """
    Pull a food name and macros out of a free-text analysis.

    The first number on a line mentioning calories/kcal, protein, carb or
    fat (but not saturated fat) becomes that value. The first non-empty
    line that doesn't mention "analyze" becomes the name.

    Args:
        text: AI analysis text

    Returns:
        ParsedFoodAnalysis with zeros for anything not found
    """
    result = ParsedFoodAnalysis()
    named = False

    for line in text.splitlines():
        lower = line.lower()
        match = _NUMBER.search(line)
        value = float(match.group(1)) if match else None

        if value is not None:
            if "calories" in lower or "kcal" in lower:
                result.calories = value
            if "protein" in lower:
                result.protein = value
            if "carb" in lower:
                result.carbs = value
            if "fat" in lower and "saturated" not in lower:
                result.fat = value

        if not named and line.strip() and "analyze" not in lower:
            result.name = line.strip()
            named = True

    return result


class FoodTrackingService:
    """
    Food log with local persistence and backend sync.

    Attributes:
        todays_foods: Entries logged today, refreshed on every change
        nutrition_summary: Summary of today's entries
    """

    CALORIE_GOAL = 2000
    PROTEIN_GOAL = 150
    CARBS_GOAL = 200
    FAT_GOAL = 65

    def __init__(
        self,
        genie_api: GenieAPIService,
        store: JSONStore,
        learning: Optional[GenieUserLearningService] = None,
        user_id: str = "",
        history_limit: int = 500,
    ):
        """
        Initialize FoodTrackingService.

        Args:
            genie_api: Nutrition backend client
            store: Local JSON store
            learning: Receives a "food" event for every logged entry
            user_id: Signed-in user
            history_limit: Local entries kept, newest first
        """
        self._genie_api = genie_api
        self._store = store
        self._learning = learning
        self._user_id = user_id
        self._history_limit = history_limit

        self.todays_foods: List[FoodEntry] = []
        self.nutrition_summary: Optional[DailyNutritionSummary] = None
        self.favorite_foods: List[FavoriteFood] = self._load_favorites()

        self._refresh_today()

    # =========================================================================
    # Logging
    # =========================================================================

    async def log_food(
        self,
        name: str,
        meal_type: str,
        calories: float,
        protein: float = 0,
        carbs: float = 0,
        fat: float = 0,
        serving_size: Optional[str] = None,
        notes: Optional[str] = None,
        source: str = "manual",
        recipe_id: Optional[str] = None,
        meal_plan_id: Optional[str] = None,
        meal_plan_meal_id: Optional[str] = None,
    ) -> FoodEntry:
        """
        Log a food entry.

        The entry is stored locally first, then saved to the backend with
        any recipe or meal plan references.

        Returns:
            The logged entry

        Raises:
            ValidationException: Unknown meal type or source
            ClientException: Backend save failed (the local entry is kept)
        """
        canonical = normalize_meal_type(meal_type)
        if canonical is None:
            raise ValidationException(f"Unknown meal type: {meal_type}")
        if source not in FOOD_SOURCES:
            raise ValidationException(f"Unknown food source: {source}")

        entry = FoodEntry(
            id=str(uuid.uuid4()),
            userId=self._user_id,
            name=name,
            mealType=canonical,
            calories=calories,
            protein=protein,
            carbs=carbs,
            fat=fat,
            servingSize=serving_size,
            notes=notes,
            timestamp=self._now(),
            source=source,
        )

        self._insert_local(entry)
        self._refresh_today()

        await self._genie_api.save_nutrition_entry(
            entry,
            recipe_id=recipe_id,
            meal_plan_id=meal_plan_id,
            meal_plan_meal_id=meal_plan_meal_id,
        )

        if self._learning is not None:
            self._learning.update_user_learning("food", entry.model_dump(mode="json"))

        logger.info(f"Logged food: {name} - {calories} cal")
        return entry

    async def log_food_from_ai(self, analysis: str, meal_type: str) -> FoodEntry:
        """Log the food described by an AI analysis; the analysis becomes the notes."""
        parsed = parse_ai_analysis(analysis)
        return await self.log_food(
            name=parsed.name,
            meal_type=meal_type,
            calories=parsed.calories,
            protein=parsed.protein,
            carbs=parsed.carbs,
            fat=parsed.fat,
            serving_size=parsed.servingSize,
            notes=analysis,
            source="ai",
        )

    async def delete_food(self, entry_id: str) -> None:
        """
        Delete an entry locally and on the backend.

        Raises:
            ClientException: Backend delete failed (local entry already removed)
        """
        entries = [entry for entry in self._load_local() if entry.id != entry_id]
        self._save_local(entries)
        self._refresh_today()

        await self._genie_api.delete_nutrition_entry(entry_id)
        logger.info(f"Deleted food entry {entry_id}")

    # =========================================================================
    # History & analytics
    # =========================================================================

    async def get_food_history(self, days: int = 30) -> List[FoodEntry]:
        """
        Food entries from the last `days` days.

        Backend entries replace local copies with the same ID; entries that
        only exist locally are kept after them. When the backend can't be
        reached the local history is returned instead.
        """
        start = self._now() - timedelta(days=days)

        try:
            items = await self._genie_api.get_nutrition_history(days=days, limit=200)
        except ClientException as e:
            logger.warning(f"Food history unavailable, using local entries: {e.message}")
            return [entry for entry in self._load_local() if entry.timestamp >= start]

        remote = []
        for item in items:
            entry = entry_from_backend(item, self._user_id)
            if entry is not None and entry.timestamp >= start:
                remote.append(entry)

        remote_ids = {entry.id for entry in remote}
        local_only = [entry for entry in self._load_local() if entry.id not in remote_ids]
        self._save_local(remote + local_only)
        self._refresh_today()

        logger.debug(f"Fetched {len(remote)} food entries from backend")
        return remote + [entry for entry in local_only if entry.timestamp >= start]

    def get_daily_summary(self, day: Optional[date] = None) -> DailyNutritionSummary:
        """Totals for one day (today by default) against the default goals."""
        day = day or self._now().date()
        entries = [entry for entry in self._load_local() if entry.timestamp.date() == day]

        return DailyNutritionSummary(
            date=datetime.combine(day, datetime.min.time(), tzinfo=timezone.utc),
            totalCalories=sum(entry.calories for entry in entries),
            totalProtein=sum(entry.protein for entry in entries),
            totalCarbs=sum(entry.carbs for entry in entries),
            totalFat=sum(entry.fat for entry in entries),
            calorieGoal=self.CALORIE_GOAL,
            proteinGoal=self.PROTEIN_GOAL,
            carbsGoal=self.CARBS_GOAL,
            fatGoal=self.FAT_GOAL,
            mealsLogged=len(entries),
        )

    async def get_trends(self, days: int = TREND_WINDOW_DAYS) -> NutritionTrends:
        return calculate_trends(await self.get_food_history(days))

    async def get_meal_patterns(self) -> MealPatterns:
        return analyze_meal_patterns(await self.get_food_history(PATTERN_WINDOW_DAYS))

    # =========================================================================
    # Favorites
    # =========================================================================

    def is_favorite(self, entry: FoodEntry) -> bool:
        name = entry.name.lower()
        return any(favorite.name.lower() == name for favorite in self.favorite_foods)

    def add_favorite(self, entry: FoodEntry) -> None:
        if self.is_favorite(entry):
            return

        self.favorite_foods.append(FavoriteFood(
            id=str(uuid.uuid4()),
            name=entry.name,
            calories=entry.calories,
            protein=entry.protein,
            carbs=entry.carbs,
            fat=entry.fat,
            servingSize=entry.servingSize,
            timestamp=self._now(),
        ))
        self._save_favorites()

    def remove_favorite(self, entry: FoodEntry) -> None:
        name = entry.name.lower()
        self.favorite_foods = [f for f in self.favorite_foods if f.name.lower() != name]
        self._save_favorites()

    def toggle_favorite(self, entry: FoodEntry) -> bool:
        """Flip the favorite state; returns True if the food is now a favorite."""
        if self.is_favorite(entry):
            self.remove_favorite(entry)
            return False
        self.add_favorite(entry)
        return True

    # =========================================================================
    # Private helpers
    # =========================================================================

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _load_local(self) -> List[FoodEntry]:
        entries = []
        for raw in self._store.get(ENTRIES_KEY, []) or []:
            try:
                entries.append(FoodEntry.model_validate(raw))
            except ValueError:
                logger.warning("Skipping unreadable local food entry")
        return entries

    def _save_local(self, entries: List[FoodEntry]) -> None:
        self._store.set(ENTRIES_KEY, [entry.model_dump(mode="json") for entry in entries[:self._history_limit]])

    def _insert_local(self, entry: FoodEntry) -> None:
        entries = self._load_local()
        entries.insert(0, entry)
        self._save_local(entries)

    def _refresh_today(self) -> None:
        today = self._now().date()
        self.todays_foods = [entry for entry in self._load_local() if entry.timestamp.date() == today]
        self.nutrition_summary = self.get_daily_summary(today)

    def _load_favorites(self) -> List[FavoriteFood]:
        favorites = []
        for raw in self._store.get(FAVORITES_KEY, []) or []:
            try:
                favorites.append(FavoriteFood.model_validate(raw))
            except ValueError:
                logger.warning("Skipping unreadable favorite food")
        return favorites

    def _save_favorites(self) -> None:
        self._store.set(FAVORITES_KEY, [f.model_dump(mode="json") for f in self.favorite_foods])


# =============================================================================
# Analytics
# =============================================================================

def calculate_trends(history: List[FoodEntry]) -> NutritionTrends:
    """
    Averages over a window of entries.

    Average calories are per logged day; macros are per entry.
    Consistency is the number of logged days out of 7.
    """
    per_day: Dict[date, float] = defaultdict(float)
    for entry in history:
        per_day[entry.timestamp.date()] += entry.calories

    daily = sorted(per_day.items())
    count = max(len(history), 1)

    return NutritionTrends(
        averageCalories=sum(total for _, total in daily) / len(daily) if daily else 0,
        averageProtein=sum(entry.protein for entry in history) / count,
        averageCarbs=sum(entry.carbs for entry in history) / count,
        averageFat=sum(entry.fat for entry in history) / count,
        dailyCalories=[(day.isoformat(), total) for day, total in daily],
        consistency=len(per_day) / TREND_WINDOW_DAYS,
    )


def analyze_meal_patterns(history: List[FoodEntry]) -> MealPatterns:
    meal_counts = Counter(entry.mealType for entry in history)
    food_counts = Counter(entry.name for entry in history)

    return MealPatterns(
        mealTypeDistribution=dict(meal_counts),
        commonFoods=food_counts.most_common(10),
        averageMealsPerDay=len(history) / PATTERN_WINDOW_DAYS,
        averageDailyCalories=sum(entry.calories for entry in history) / PATTERN_WINDOW_DAYS,
        mostSkippedMeal=min(meal_counts, key=meal_counts.get) if meal_counts else None,
    )
