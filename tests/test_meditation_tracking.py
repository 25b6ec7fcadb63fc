"""Unit tests for MeditationTrackingService."""

from datetime import date, datetime, timedelta, timezone

import pytest
from unittest.mock import AsyncMock, MagicMock

from do_app.schemas.meditation import MeditationSession
from do_app.services.meditation.meditation_tracking_service import (
    SESSIONS_KEY,
    MeditationTrackingService,
    best_time_of_day,
    focus_to_type,
    longest_streak,
)
from do_common.utils import ServerException


def _session(session_id, start, seconds=600, completed=True, session_type="stress", rating=None):
    return MeditationSession(
        id=session_id,
        userId="user-1",
        type=session_type,
        plannedDuration=seconds,
        actualDuration=seconds,
        startTime=start,
        completed=completed,
        rating=rating,
    )


def _seed(store, sessions):
    store.set(SESSIONS_KEY, [s.model_dump(mode="json") for s in sessions])


# ─────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────


@pytest.fixture
def genie_api():
    api = MagicMock()
    api.save_meditation_session = AsyncMock()
    return api


@pytest.fixture
def learning():
    return MagicMock()


@pytest.fixture
def service(genie_api, store, learning):
    return MeditationTrackingService(genie_api, store, learning=learning, user_id="user-1")


# ─────────────────────────────────────────────────────────────────
# Logging
# ─────────────────────────────────────────────────────────────────


class TestLogAIMeditation:
    @pytest.mark.asyncio
    async def test_completed_session(self, service, genie_api, store):
        session = await service.log_ai_meditation("Anxiety", 600, completed=True, rating=5)

        assert session.type == "stress"
        assert session.notes == "Anxiety • 10 min"
        assert session.actualDuration == 600
        assert session.endTime == session.startTime + timedelta(minutes=10)
        assert session.source == "ai"
        assert store.get(SESSIONS_KEY)[0]["id"] == session.id

        payload = genie_api.save_meditation_session.call_args[0][0]
        assert payload["sessionId"] == session.id
        assert payload["focus"] == "Anxiety"
        assert payload["duration"] == 600
        assert payload["startTime"].endswith("Z")

    @pytest.mark.asyncio
    async def test_updates_today_stats(self, service):
        await service.log_ai_meditation("sleep", 600, completed=True)

        assert service.todays_minutes == 10
        assert service.current_streak == 1
        assert service.weekly_stats.totalSessions == 1
        assert service.weekly_stats.averageMinutesPerDay == pytest.approx(10 / 7)

    @pytest.mark.asyncio
    async def test_abandoned_session(self, service, genie_api):
        session = await service.log_ai_meditation("focus", 900, completed=False)

        assert session.actualDuration == 0
        assert session.endTime is None
        assert genie_api.save_meditation_session.call_args[0][0]["endTime"] is None

    @pytest.mark.asyncio
    async def test_feeds_learning(self, service, learning):
        await service.log_ai_meditation("Sleep", 600, completed=True)

        activity, data = learning.update_user_learning.call_args[0]
        assert activity == "meditation"
        assert data["focus"] == "Sleep"
        assert data["duration"] == 10
        assert data["completed"] is True

    @pytest.mark.asyncio
    async def test_local_session_kept_when_backend_fails(self, service, genie_api, store):
        genie_api.save_meditation_session.side_effect = ServerException()

        with pytest.raises(ServerException):
            await service.log_ai_meditation("stress", 300, completed=True)

        assert len(store.get(SESSIONS_KEY)) == 1


class TestLogLibraryMeditation:
    @pytest.mark.asyncio
    async def test_elapsed_time_is_actual_duration(self, service):
        start = datetime.now(timezone.utc) - timedelta(minutes=6)

        session = await service.log_library_meditation(
            "lib-42", "Sleep", "sleep", 600, start, start + timedelta(minutes=5), completed=True,
        )

        assert session.actualDuration == 300
        assert session.scriptId == "lib-42"
        assert session.source == "guided"
        assert session.notes == "Sleep • 10 min"

    @pytest.mark.asyncio
    async def test_completed_without_end_uses_planned(self, service):
        start = datetime.now(timezone.utc)

        session = await service.log_library_meditation("lib-1", "Calm", "gratitude", 480, start, None, True)

        assert session.actualDuration == 480
        assert session.type == "mindfulness"

    @pytest.mark.asyncio
    async def test_naive_start_time_stored_as_utc(self, service, genie_api, store):
        session = await service.log_library_meditation(
            "lib-1", "Sleep", "sleep", 600, datetime(2026, 10, 19, 9, 0), None, False,
        )

        assert session.startTime == datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)
        assert genie_api.save_meditation_session.call_args[0][0]["startTime"] == "2026-10-19T09:00:00Z"

        reloaded = MeditationTrackingService(genie_api, store, user_id="user-1")
        assert reloaded.load_sessions()[0].startTime.tzinfo is not None
        assert len(reloaded.get_session_history(days=36500)) == 1

    @pytest.mark.asyncio
    async def test_mixed_naive_and_aware_times(self, service):
        start = datetime(2026, 10, 19, 9, 0)

        session = await service.log_library_meditation(
            "lib-1", "Calm", "stress", 600, start, datetime(2026, 10, 19, 9, 8, tzinfo=timezone.utc), True,
        )

        assert session.actualDuration == 480

    def test_naive_session_on_disk_does_not_break_startup(self, genie_api, store):
        store.set(SESSIONS_KEY, [{
            "id": "legacy",
            "plannedDuration": 600,
            "startTime": "2026-10-19T09:00:00",
        }])

        service = MeditationTrackingService(genie_api, store)

        assert service.load_sessions()[0].startTime.tzinfo is not None
        assert service.get_insights().totalSessions <= 1


# ─────────────────────────────────────────────────────────────────
# Streaks & achievements
# ─────────────────────────────────────────────────────────────────


class TestStreaks:
    def test_streak_counts_back_from_today(self, genie_api, store):
        days = [date(2025, 3, 10), date(2025, 3, 9), date(2025, 3, 8), date(2025, 3, 6)]
        _seed(store, [
            _session(f"s{i}", datetime(d.year, d.month, d.day, 8, tzinfo=timezone.utc))
            for i, d in enumerate(days)
        ])
        service = MeditationTrackingService(genie_api, store)

        assert service.calculate_streak(date(2025, 3, 10)) == 3
        assert service.calculate_streak(date(2025, 3, 7)) == 0

    def test_longest_streak(self):
        history = [
            _session(str(day), datetime(2025, 3, day, 8, tzinfo=timezone.utc))
            for day in (1, 2, 3, 3, 7, 8)
        ]

        assert longest_streak(history) == 3
        assert longest_streak([]) == 0

    def test_achievements(self, genie_api, store):
        now = datetime.now(timezone.utc)
        _seed(store, [_session(f"s{i}", now - timedelta(days=i)) for i in range(7)])

        service = MeditationTrackingService(genie_api, store)

        assert service.current_streak == 7
        assert service.get_achievements() == [
            "First Session", "Week Warrior", "3-Day Streak", "Week Streak", "Hour of Peace",
        ]

    def test_no_achievements_without_sessions(self, service):
        assert service.get_achievements() == []


# ─────────────────────────────────────────────────────────────────
# Trends & insights
# ─────────────────────────────────────────────────────────────────


class TestTrendsAndInsights:
    def test_trends(self, genie_api, store):
        now = datetime.now(timezone.utc)
        _seed(store, [
            _session("a", now, 600, session_type="stress"),
            _session("b", now, 300, session_type="sleep"),
            _session("c", now - timedelta(days=1), 1200, completed=False, session_type="focus"),
            _session("old", now - timedelta(days=20), 600),
        ])
        service = MeditationTrackingService(genie_api, store)

        trends = service.get_trends()

        assert trends.totalSessions == 3
        assert trends.averageMinutesPerDay == 17
        assert trends.completionRate == pytest.approx(2 / 3)
        assert trends.typeDistribution == {"stress": 1, "sleep": 1, "focus": 1}
        assert trends.consistency == pytest.approx(2 / 7)

    def test_insights(self, genie_api, store):
        now = datetime.now(timezone.utc)
        _seed(store, [
            _session("a", now, 600, session_type="sleep", rating=4),
            _session("b", now - timedelta(days=1), 600, session_type="sleep", rating=5),
            _session("c", now - timedelta(days=2), 600, session_type="stress", completed=False),
        ])
        service = MeditationTrackingService(genie_api, store)

        insights = service.get_insights()

        assert insights.totalMinutes == 30
        assert insights.completedSessions == 2
        assert insights.favoriteType == "sleep"
        assert insights.averageRating == 4
        assert insights.longestStreak == 3
        assert insights.currentStreak == 3

    def test_history_window(self, genie_api, store):
        now = datetime.now(timezone.utc)
        _seed(store, [_session("new", now), _session("old", now - timedelta(days=45))])
        service = MeditationTrackingService(genie_api, store)

        assert [s.id for s in service.get_session_history(30)] == ["new"]


class TestHelpers:
    @pytest.mark.parametrize(
        "focus, expected",
        [("Anxiety", "stress"), ("sleep", "sleep"), ("energy", "focus"), ("gratitude", "mindfulness")],
    )
    def test_focus_to_type(self, focus, expected):
        assert focus_to_type(focus) == expected

    def test_best_time_of_day(self):
        history = [
            _session("a", datetime(2025, 3, 1, 13, tzinfo=timezone.utc)),
            _session("b", datetime(2025, 3, 2, 15, tzinfo=timezone.utc)),
            _session("c", datetime(2025, 3, 3, 7, tzinfo=timezone.utc)),
        ]

        assert best_time_of_day(history) == "Afternoon"
        assert best_time_of_day([]) == "Morning"
