"""
Meditation tracking service.

Records AI-generated and library meditations locally and on the
meditation backend, and derives streaks, achievements, trends and
insights from the local history.
"""

import logging
import uuid
from collections import Counter, defaultdict
from datetime import datetime, timedelta, timezone, date
from typing import Optional, List, Dict, Any

from do_app.schemas.meditation import (
    MeditationInsights,
    MeditationSession,
    MeditationTrends,
    WeeklyMeditationStats,
)
from do_app.services.genie.genie_api_service import GenieAPIService
from do_app.services.genie.user_learning_service import GenieUserLearningService
from do_common.storage import JSONStore
from do_common.utils import as_utc

logger = logging.getLogger(__name__)


SESSIONS_KEY = "meditationSessions"
TREND_WINDOW_DAYS = 7
INSIGHT_WINDOW_DAYS = 90

_FOCUS_TYPES = {
    "stress": "stress",
    "anxiety": "stress",
    "sleep": "sleep",
    "focus": "focus",
    "energy": "focus",
    "breathing": "breathing",
}

# (title, minimum) pairs, checked in order
_SESSION_ACHIEVEMENTS = (
    ("First Session", 1),
    ("Week Warrior", 7),
    ("Month Master", 30),
    ("Centurion", 100),
)
_STREAK_ACHIEVEMENTS = (
    ("3-Day Streak", 3),
    ("Week Streak", 7),
    ("Month Streak", 30),
)
_MINUTE_ACHIEVEMENTS = (
    ("Hour of Peace", 60),
    ("10 Hours", 600),
)


def focus_to_type(focus: str) -> str:
    """Session type for a meditation focus; unlisted foci are mindfulness."""
    return _FOCUS_TYPES.get(focus.lower(), "mindfulness")


def session_notes(label: str, duration_seconds: float) -> str:
    return f"{label} • {int(duration_seconds // 60)} min"


def _iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def session_payload(session: MeditationSession) -> Dict[str, Any]:
    """Wire body for POST /meditation/save."""
    return {
        "sessionId": session.id,
        "type": session.type,
        "focus": session.focus,
        "duration": int(session.plannedDuration),
        "actualDuration": int(session.actualDuration),
        "guided": session.guided,
        "completed": session.completed,
        "rating": session.rating,
        "notes": session.notes,
        "aiGenerated": session.aiGenerated,
        "scriptId": session.scriptId,
        "startTime": _iso(session.startTime),
        "endTime": _iso(session.endTime) if session.endTime else None,
    }


def _minutes(sessions: List[MeditationSession]) -> int:
    return sum(session.actual_minutes for session in sessions)


class MeditationTrackingService:
    """
    Meditation history with local persistence and backend sync.

    Attributes:
        todays_sessions: Sessions started today
        todays_minutes: Minutes meditated today
        current_streak: Consecutive days with a session, ending today
        weekly_stats: Stats for the last 7 days
    """

    def __init__(
        self,
        genie_api: GenieAPIService,
        store: JSONStore,
        learning: Optional[GenieUserLearningService] = None,
        user_id: str = "",
        history_limit: int = 500,
    ):
        self._genie_api = genie_api
        self._store = store
        self._learning = learning
        self._user_id = user_id
        self._history_limit = history_limit

        self.todays_sessions: List[MeditationSession] = []
        self.todays_minutes = 0
        self.current_streak = 0
        self.weekly_stats: Optional[WeeklyMeditationStats] = None

        self._update_stats()

    # =========================================================================
    # Logging
    # =========================================================================

    async def log_ai_meditation(
        self,
        focus: str,
        duration_seconds: float,
        completed: bool,
        rating: Optional[int] = None,
    ) -> MeditationSession:
        """
        Record a meditation Genie generated.

        Args:
            focus: Meditation focus (e.g., "stress", "sleep")
            duration_seconds: Planned length
            completed: Whether the user finished it
            rating: Optional 1-5 rating

        Returns:
            The recorded session

        Raises:
            ClientException: Backend save failed (the local session is kept)
        """
        start = self._now()
        session = MeditationSession(
            id=str(uuid.uuid4()),
            userId=self._user_id,
            type=focus_to_type(focus),
            plannedDuration=duration_seconds,
            actualDuration=duration_seconds if completed else 0,
            guided=True,
            notes=session_notes(focus.title(), duration_seconds),
            startTime=start,
            endTime=start + timedelta(seconds=duration_seconds) if completed else None,
            completed=completed,
            rating=rating,
            source="ai",
            aiGenerated=True,
            scriptId=str(uuid.uuid4()),
        )
        await self._record(session)
        return session

    async def log_library_meditation(
        self,
        library_meditation_id: str,
        category: str,
        focus: str,
        duration_seconds: float,
        start_time: datetime,
        end_time: Optional[datetime],
        completed: bool,
    ) -> MeditationSession:
        """
        Record a pre-recorded library meditation.

        The actual duration is the elapsed time between start and end when
        both are known. The library id is stored as the script id. Naive
        times are taken as UTC.
        """
        start_time = as_utc(start_time)
        end_time = as_utc(end_time)

        if completed:
            actual = (end_time - start_time).total_seconds() if end_time else duration_seconds
        else:
            actual = 0

        session = MeditationSession(
            id=str(uuid.uuid4()),
            userId=self._user_id,
            type=focus_to_type(focus),
            plannedDuration=duration_seconds,
            actualDuration=actual,
            guided=True,
            notes=session_notes(category, duration_seconds),
            startTime=start_time,
            endTime=end_time,
            completed=completed,
            source="guided",
            aiGenerated=True,
            scriptId=library_meditation_id,
        )
        await self._record(session)
        return session

    async def _record(self, session: MeditationSession) -> None:
        sessions = self.load_sessions()
        sessions.insert(0, session)
        self._save(sessions)

        await self._genie_api.save_meditation_session(session_payload(session))
        self._update_stats()

        if self._learning is not None:
            data = session.model_dump(mode="json")
            data["focus"] = session.focus
            data["duration"] = session.plannedDuration / 60
            self._learning.update_user_learning("meditation", data)

        logger.info(f"Logged meditation: {session.notes}")

    # =========================================================================
    # History & analytics
    # =========================================================================

    def get_session_history(self, days: int = 30) -> List[MeditationSession]:
        start = self._now() - timedelta(days=days)
        return [session for session in self.load_sessions() if session.startTime >= start]

    def get_trends(self, days: int = TREND_WINDOW_DAYS) -> MeditationTrends:
        """
        Daily minutes, completion rate and type mix over a window.

        Consistency is the number of days with a session out of 7.
        """
        history = self.get_session_history(days)

        per_day: Dict[date, int] = defaultdict(int)
        for session in history:
            per_day[session.startTime.date()] += session.actual_minutes
        daily = sorted(per_day.items())

        return MeditationTrends(
            averageMinutesPerDay=sum(m for _, m in daily) // len(daily) if daily else 0,
            totalSessions=len(history),
            completionRate=sum(1 for s in history if s.completed) / max(len(history), 1),
            dailyMinutes=[(day.isoformat(), minutes) for day, minutes in daily],
            typeDistribution=dict(Counter(session.type for session in history)),
            consistency=len(per_day) / TREND_WINDOW_DAYS,
        )

    def get_insights(self) -> MeditationInsights:
        """Summary of the last 90 days."""
        history = self.get_session_history(INSIGHT_WINDOW_DAYS)
        type_counts = Counter(session.type for session in history)
        ratings = [session.rating for session in history if session.rating is not None]

        return MeditationInsights(
            totalMinutes=_minutes(history),
            totalSessions=len(history),
            completedSessions=sum(1 for s in history if s.completed),
            favoriteType=type_counts.most_common(1)[0][0] if type_counts else None,
            bestTimeOfDay=best_time_of_day(history),
            averageRating=sum(ratings) // max(len(ratings), 1),
            longestStreak=longest_streak(history),
            currentStreak=self.current_streak,
        )

    def calculate_streak(self, today: Optional[date] = None) -> int:
        """
        Consecutive days with at least one session, counting back from today.

        A day without a session today means a streak of 0.
        """
        days = {session.startTime.date() for session in self.load_sessions()}
        current = today or self._now().date()

        streak = 0
        while current in days:
            streak += 1
            current -= timedelta(days=1)

        self.current_streak = streak
        return streak

    def get_achievements(self) -> List[str]:
        """Titles of every achievement earned so far."""
        sessions = self.load_sessions()
        total_minutes = _minutes(sessions)

        earned = [title for title, needed in _SESSION_ACHIEVEMENTS if len(sessions) >= needed]
        earned += [title for title, needed in _STREAK_ACHIEVEMENTS if self.current_streak >= needed]
        earned += [title for title, needed in _MINUTE_ACHIEVEMENTS if total_minutes >= needed]
        return earned

    # =========================================================================
    # Private helpers
    # =========================================================================

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def load_sessions(self) -> List[MeditationSession]:
        """All locally stored sessions, newest first."""
        sessions = []
        for raw in self._store.get(SESSIONS_KEY, []) or []:
            try:
                sessions.append(MeditationSession.model_validate(raw))
            except ValueError:
                logger.warning("Skipping unreadable local meditation session")
        return sessions

    def _save(self, sessions: List[MeditationSession]) -> None:
        self._store.set(
            SESSIONS_KEY,
            [session.model_dump(mode="json") for session in sessions[:self._history_limit]],
        )

    def _update_stats(self) -> None:
        now = self._now()
        today = now.date()

        self.todays_sessions = [s for s in self.load_sessions() if s.startTime.date() == today]
        self.todays_minutes = _minutes(self.todays_sessions)
        self.calculate_streak(today)

        week = self.get_session_history(TREND_WINDOW_DAYS)
        total_minutes = _minutes(week)
        completed = sum(1 for s in week if s.completed)
        self.weekly_stats = WeeklyMeditationStats(
            totalSessions=len(week),
            completedSessions=completed,
            totalMinutes=total_minutes,
            averageMinutesPerDay=total_minutes / TREND_WINDOW_DAYS,
            consistency=completed / max(len(week), 1),
        )


# =============================================================================
# Analytics
# =============================================================================

def best_time_of_day(history: List[MeditationSession]) -> str:
    """Morning (before 12), Afternoon (before 17) or Evening; Morning when empty."""
    def bucket(session: MeditationSession) -> str:
        hour = session.startTime.hour
        if hour < 12:
            return "Morning"
        if hour < 17:
            return "Afternoon"
        return "Evening"

    counts = Counter(bucket(session) for session in history)
    return counts.most_common(1)[0][0] if counts else "Morning"


def longest_streak(history: List[MeditationSession]) -> int:
    """Longest run of consecutive days with a session."""
    days = sorted({session.startTime.date() for session in history})
    longest = 0
    run = 0
    previous = None

    for day in days:
        run = run + 1 if previous is not None and (day - previous).days == 1 else 1
        longest = max(longest, run)
        previous = day

    return longest
