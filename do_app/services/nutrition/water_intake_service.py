"""
Daily water intake tracking.

Intake is kept in fluid ounces. The running total resets on the first
use of a new day and every day's final total is kept under its own key
for the weekly chart.
"""

import logging
import uuid
from datetime import date, datetime, timedelta, timezone
from typing import Optional, List, Dict

from do_app.schemas.nutrition import WaterEntry
from do_common.storage import JSONStore
from do_common.utils import ValidationException

logger = logging.getLogger(__name__)


DAILY_GOAL_KEY = "waterDailyGoal"
TODAY_INTAKE_KEY = "waterTodayIntake"
LAST_UPDATE_KEY = "waterLastUpdateDate"
TODAY_LOG_KEY = "waterLog"
DAY_KEY_PREFIX = "waterIntake_"

DEFAULT_DAILY_GOAL = 64.0


def day_key(day: date) -> str:
    return f"{DAY_KEY_PREFIX}{day.isoformat()}"


class WaterIntakeService:
    """
    Today's water intake against a daily goal.

    Attributes:
        today_intake: Fluid ounces logged today
        daily_goal: Target in fluid ounces (64 oz, 8 cups, by default)
        water_log: Today's entries, newest first
    """

    def __init__(self, store: JSONStore):
        self._store = store
        self.daily_goal: float = self._store.get(DAILY_GOAL_KEY) or DEFAULT_DAILY_GOAL
        self.today_intake: float = 0.0
        self.water_log: List[WaterEntry] = []

        self._load_today()

    def add_water(self, amount: float) -> WaterEntry:
        """
        Log a drink.

        Raises:
            ValidationException: amount is not positive
        """
        if amount <= 0:
            raise ValidationException(f"Water amount must be positive: {amount}")

        self.check_day_change()

        entry = WaterEntry(id=str(uuid.uuid4()), amount=amount, timestamp=self._now())
        self.water_log.insert(0, entry)
        self.today_intake += amount
        self._save_today()

        logger.debug(f"Added {amount} oz water, {self.today_intake} oz today")
        return entry

    def remove_water_entry(self, entry_id: str) -> bool:
        """Remove one of today's entries; False if it isn't in today's log."""
        for index, entry in enumerate(self.water_log):
            if entry.id == entry_id:
                del self.water_log[index]
                self.today_intake = max(self.today_intake - entry.amount, 0.0)
                self._save_today()
                return True
        return False

    def update_daily_goal(self, goal: float) -> None:
        if goal <= 0:
            raise ValidationException(f"Daily water goal must be positive: {goal}")
        self.daily_goal = goal
        self._store.set(DAILY_GOAL_KEY, goal)

    def get_progress(self) -> float:
        """Fraction of the goal reached, capped at 1.0."""
        if self.daily_goal <= 0:
            return 0.0
        return min(self.today_intake / self.daily_goal, 1.0)

    def get_remaining_amount(self) -> float:
        return max(self.daily_goal - self.today_intake, 0.0)

    def load_weekly_data(self, today: Optional[date] = None) -> Dict[date, float]:
        """Intake per day for the Monday-to-Sunday week containing today."""
        today = today or self._now().date()
        start_of_week = today - timedelta(days=today.weekday())

        weekly = {}
        for offset in range(7):
            day = start_of_week + timedelta(days=offset)
            weekly[day] = float(self._store.get(day_key(day)) or 0)
        return weekly

    def check_day_change(self) -> None:
        """Reset the running total when the last update was on an earlier day."""
        if self._last_update_day() != self._now().date():
            self._reset_today()

    # =========================================================================
    # Private helpers
    # =========================================================================

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _last_update_day(self) -> Optional[date]:
        raw = self._store.get(LAST_UPDATE_KEY)
        if not isinstance(raw, str):
            return None
        try:
            return date.fromisoformat(raw)
        except ValueError:
            return None

    def _load_today(self) -> None:
        if self._last_update_day() != self._now().date():
            self._reset_today()
            return

        self.today_intake = float(self._store.get(TODAY_INTAKE_KEY) or 0)
        self.water_log = []
        for raw in self._store.get(TODAY_LOG_KEY, []) or []:
            try:
                self.water_log.append(WaterEntry.model_validate(raw))
            except ValueError:
                logger.warning("Skipping unreadable water entry")

    def _save_today(self) -> None:
        today = self._now().date()
        self._store.set(TODAY_INTAKE_KEY, self.today_intake)
        self._store.set(LAST_UPDATE_KEY, today.isoformat())
        self._store.set(TODAY_LOG_KEY, [entry.model_dump(mode="json") for entry in self.water_log])
        self._store.set(day_key(today), self.today_intake)

    def _reset_today(self) -> None:
        self.today_intake = 0.0
        self.water_log = []
        self._store.set(TODAY_INTAKE_KEY, 0.0)
        self._store.set(LAST_UPDATE_KEY, self._now().date().isoformat())
        self._store.set(TODAY_LOG_KEY, [])
