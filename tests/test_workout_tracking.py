"""Unit tests for WorkoutTrackingService."""

import json
from datetime import datetime, timedelta, timezone

import pytest

from do_app.schemas.workout import EquipmentWorkout, TrackedWorkout, WorkoutSet
from do_app.services.workout.workout_tracking_service import (
    HISTORY_KEY,
    WorkoutTrackingService,
    determine_category,
    table_for_category,
    total_volume,
    workout_item,
)


BENCH = EquipmentWorkout(
    name="Bench Press",
    sets=4,
    reps="8-10",
    difficulty="intermediate",
    instructions=["Lower to chest", "Press up"],
    muscleGroups=["Chest", "Triceps"],
)


def _set(number, reps, weight=None):
    return WorkoutSet(setNumber=number, reps=reps, weight=weight, timestamp=datetime(2026, 10, 19, 9, tzinfo=timezone.utc))


# ─────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────


@pytest.fixture
def service(settings, store):
    return WorkoutTrackingService(store, settings=settings, user_id="user-1")


@pytest.fixture
def mirrored(settings, store, make_transport):
    settings.WORKOUT_TRACKING_SAVE_URL = "https://workouts.test/save"
    transport = make_transport(lambda r: (200, {"success": True}))
    return WorkoutTrackingService(store, settings=settings, transport=transport, user_id="user-1")


# ─────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────


class TestDetermineCategory:
    @pytest.mark.parametrize(
        "name, muscles, expected",
        [
            ("Treadmill Intervals", [], "run"),
            ("Indoor Cycling", ["Legs"], "bike"),
            ("Swim Drills", [], "swim"),
            ("Incline Walk", [], "hike"),
            ("Goblet Squat", ["Quads", "Glutes"], "legs"),
            ("Bench Press", ["Chest", "Triceps"], "chest"),
            ("Curl", ["Biceps"], "arms"),
            ("Plank", ["Abs"], "core"),
            ("Deadlift", ["Glutes"], "strength"),
        ],
    )
    def test_name_then_muscles(self, name, muscles, expected):
        assert determine_category(name, muscles) == expected

    def test_tables(self):
        assert table_for_category("run") == "prod-runs"
        assert table_for_category("bike") == "prod-bike-workouts"
        assert table_for_category("chest") == "prod-strength-workouts"

    def test_total_volume_only_counts_weighted_sets(self):
        assert total_volume([_set(1, 10, 100), _set(2, 8, 110), _set(3, 12)]) == 1880
        assert total_volume([_set(1, 20)]) is None


# ─────────────────────────────────────────────────────────────────
# Tracking
# ─────────────────────────────────────────────────────────────────


class TestTracking:
    def test_create_from_equipment(self, service):
        workout = service.create_workout_from_equipment("Flat Bench", BENCH)

        assert workout.category == "chest"
        assert workout.equipment == "Flat Bench"
        assert workout.targetSets == 4
        assert workout.targetReps == "8-10"
        assert workout.startTime is None
        assert workout.sets == []

    def test_log_set_without_active_workout(self, service):
        assert service.log_set(10) is None

    def test_sets_are_numbered(self, service):
        service.start_workout(service.create_workout_from_equipment("Flat Bench", BENCH))

        first = service.log_set(10, weight=60)
        second = service.log_set(8, weight=65, notes="tough")

        assert (first.setNumber, second.setNumber) == (1, 2)
        assert second.notes == "tough"
        assert service.is_tracking is True
        assert service.active_workout.startTime is not None

    @pytest.mark.asyncio
    async def test_complete_saves_history(self, service, store):
        service.start_workout(service.create_workout_from_equipment("Flat Bench", BENCH))
        service.log_set(10, weight=60)
        service.log_set(8, weight=65)
        service.log_set(12)

        workout = await service.complete_workout(notes="Felt strong")

        assert workout.totalVolume == 1120
        assert len(workout.sets) == 3
        assert workout.endTime >= workout.startTime
        assert workout.notes == "Felt strong"
        assert store.get(HISTORY_KEY)[0]["id"] == workout.id
        assert service.active_workout is None
        assert service.is_tracking is False

    @pytest.mark.asyncio
    async def test_complete_without_active_workout(self, service):
        assert await service.complete_workout() is None

    def test_cancel(self, service, store):
        service.start_workout(service.create_workout_from_equipment("Flat Bench", BENCH))
        service.log_set(5)

        service.cancel_workout()

        assert service.active_workout is None
        assert store.get(HISTORY_KEY) is None

    @pytest.mark.asyncio
    async def test_history_is_capped(self, settings, store):
        service = WorkoutTrackingService(store, settings=settings, history_limit=2)

        for name in ("A", "B", "C"):
            service.start_workout(TrackedWorkout(id=name, name=name))
            await service.complete_workout()

        assert [w.name for w in service.get_workout_history()] == ["C", "B"]


# ─────────────────────────────────────────────────────────────────
# Mirror to backend
# ─────────────────────────────────────────────────────────────────


class TestMirror:
    @pytest.mark.asyncio
    async def test_posts_item_to_category_table(self, mirrored, recorded_requests):
        mirrored.start_workout(TrackedWorkout(id="w1", name="Easy Run", category="run", equipment="Treadmill"))
        mirrored.log_set(1, duration=1800)

        await mirrored.complete_workout()

        body = json.loads(recorded_requests[0].content)
        assert body["table"] == "prod-runs"
        assert body["item"]["workoutId"] == "w1"
        assert body["item"]["userId"] == "user-1"
        assert body["item"]["equipment"] == "Treadmill"
        assert body["item"]["sets"] == [{"setNumber": 1, "reps": 1, "duration": 1800}]
        assert "totalVolume" not in body["item"]
        assert recorded_requests[0].headers["Authorization"] == "Bearer test-token"

    @pytest.mark.asyncio
    async def test_no_url_stays_local(self, service, store, recorded_requests):
        service.start_workout(TrackedWorkout(id="w1", name="Row"))

        await service.complete_workout()

        assert recorded_requests == []
        assert len(store.get(HISTORY_KEY)) == 1

    @pytest.mark.asyncio
    async def test_failed_mirror_keeps_local_copy(self, settings, store, make_transport):
        settings.WORKOUT_TRACKING_SAVE_URL = "https://workouts.test/save"
        service = WorkoutTrackingService(
            store, settings=settings, transport=make_transport(lambda r: (500, {"error": "down"})),
        )
        service.start_workout(TrackedWorkout(id="w1", name="Row"))

        workout = await service.complete_workout()

        assert workout.id == "w1"
        assert store.get(HISTORY_KEY)[0]["id"] == "w1"

    def test_item_duration_from_times(self):
        start = datetime(2026, 10, 19, 9, tzinfo=timezone.utc)
        workout = TrackedWorkout(id="w1", name="Row", startTime=start, endTime=start + timedelta(minutes=30))

        item = workout_item(workout, "user-1")

        assert item["duration"] == 1800
        assert item["createdAt"] == "2026-10-19T09:00:00Z"
        assert item["endTime"] == "2026-10-19T09:30:00Z"


# ─────────────────────────────────────────────────────────────────
# History & stats
# ─────────────────────────────────────────────────────────────────


class TestStats:
    def _seed(self, store):
        start = datetime(2026, 10, 18, 9, tzinfo=timezone.utc)
        workouts = [
            TrackedWorkout(
                id="w2", name="Bench", category="chest",
                startTime=start + timedelta(days=1), endTime=start + timedelta(days=1, minutes=40),
                sets=[_set(1, 10, 50), _set(2, 10, 50)], totalVolume=1000,
            ),
            TrackedWorkout(
                id="w1", name="Run", category="run",
                startTime=start, endTime=start + timedelta(minutes=20),
                sets=[_set(1, 1)],
            ),
            TrackedWorkout(id="w0", name="Unfinished", category="chest"),
        ]
        store.set(HISTORY_KEY, [w.model_dump(mode="json") for w in workouts])

    def test_history_by_category(self, service, store):
        self._seed(store)

        assert [w.id for w in service.get_workout_history("chest")] == ["w2", "w0"]
        assert [w.id for w in service.get_workout_history(limit=1)] == ["w2"]

    def test_stats(self, service, store):
        self._seed(store)

        stats = service.get_workout_stats()

        assert stats.totalWorkouts == 3
        assert stats.totalSets == 3
        assert stats.totalReps == 21
        assert stats.totalVolume == 1000
        assert stats.averageDuration == 30 * 60
        assert stats.lastWorkout == datetime(2026, 10, 19, 9, 40, tzinfo=timezone.utc)

    def test_stats_for_empty_category(self, service, store):
        self._seed(store)

        stats = service.get_workout_stats("swim")

        assert stats.totalWorkouts == 0
        assert stats.averageDuration is None
        assert stats.lastWorkout is None
