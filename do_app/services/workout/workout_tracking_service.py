"""
Workout tracking service.

Tracks a workout set by set while Genie coaches it, keeps finished
workouts in local history and mirrors them to the per-category workout
table when a save URL is configured.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

import httpx

from do_app.config import Settings, get_settings
from do_app.schemas.workout import (
    EquipmentWorkout,
    TrackedWorkout,
    TrackedWorkoutStats,
    WorkoutSet,
)
from do_common.storage import JSONStore
from do_common.utils import ClientException, build_headers, raise_for_status, send_request

logger = logging.getLogger(__name__)


HISTORY_KEY = "genieWorkoutHistory"
DEFAULT_TABLE = "prod-strength-workouts"

# Checked in order; the first keyword found in the name wins
_NAME_CATEGORIES = (
    (("run", "treadmill"), "run"),
    (("bike", "cycling"), "bike"),
    (("swim",), "swim"),
    (("hike", "walk"), "hike"),
)
_MUSCLE_CATEGORIES = (
    (("legs", "quads", "hamstrings"), "legs"),
    (("chest",), "chest"),
    (("back",), "back"),
    (("shoulders",), "shoulders"),
    (("arms", "biceps", "triceps"), "arms"),
    (("core", "abs"), "core"),
)

_CATEGORY_TABLES = {
    "run": "prod-runs",
    "bike": "prod-bike-workouts",
    "swim": "prod-swim-workouts",
    "hike": "prod-hike-workouts",
}


def determine_category(name: str, muscle_groups: List[str]) -> str:
    """
    Category for a workout from its name, then its muscle groups.

    Falls back to strength.
    """
    lowered = name.lower()
    for keywords, category in _NAME_CATEGORIES:
        if any(keyword in lowered for keyword in keywords):
            return category

    muscles = {muscle.lower() for muscle in muscle_groups}
    for keywords, category in _MUSCLE_CATEGORIES:
        if muscles.intersection(keywords):
            return category

    return "strength"


def table_for_category(category: str) -> str:
    return _CATEGORY_TABLES.get(category, DEFAULT_TABLE)


def total_volume(sets: List[WorkoutSet]) -> Optional[float]:
    """Sum of weight x reps over weighted sets; None when no set has a weight."""
    weighted = [s for s in sets if s.weight is not None]
    if not weighted:
        return None
    return sum(s.weight * s.reps for s in weighted)


def _iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def workout_item(workout: TrackedWorkout, user_id: str) -> Dict[str, Any]:
    """Table item for a finished workout. Optional fields are left out when unset."""
    item: Dict[str, Any] = {
        "workoutId": workout.id,
        "userId": user_id,
        "name": workout.name,
        "category": workout.category,
        "createdAt": _iso(workout.startTime or datetime.now(timezone.utc)),
        "duration": workout.duration_seconds or 0,
        "sets": [],
        "muscleGroups": workout.muscleGroups,
    }

    for workout_set in workout.sets:
        set_item: Dict[str, Any] = {"setNumber": workout_set.setNumber, "reps": workout_set.reps}
        if workout_set.weight is not None:
            set_item["weight"] = workout_set.weight
        if workout_set.duration is not None:
            set_item["duration"] = workout_set.duration
        item["sets"].append(set_item)

    if workout.equipment:
        item["equipment"] = workout.equipment
    if workout.startTime:
        item["startTime"] = _iso(workout.startTime)
    if workout.endTime:
        item["endTime"] = _iso(workout.endTime)
    if workout.totalVolume is not None:
        item["totalVolume"] = workout.totalVolume

    return item


class WorkoutTrackingService:
    """
    Set-by-set workout tracking with local history.

    Attributes:
        active_workout: Workout being tracked, if any
        is_tracking: True between start_workout and complete/cancel
    """

    def __init__(
        self,
        store: JSONStore,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        user_id: str = "",
        history_limit: int = 200,
    ):
        self._store = store
        self._settings = settings or get_settings()
        self._transport = transport
        self._user_id = user_id
        self._history_limit = history_limit

        self.active_workout: Optional[TrackedWorkout] = None
        self.is_tracking = False
        self._sets: List[WorkoutSet] = []

    # =========================================================================
    # Tracking
    # =========================================================================

    def create_workout_from_equipment(self, equipment: str, workout: EquipmentWorkout) -> TrackedWorkout:
        """Untracked workout built from an exercise suggested for a piece of equipment."""
        return TrackedWorkout(
            id=str(uuid.uuid4()),
            name=workout.name,
            category=determine_category(workout.name, workout.muscleGroups),
            equipment=equipment,
            muscleGroups=workout.muscleGroups,
            targetSets=workout.sets,
            targetReps=workout.reps,
            instructions=workout.instructions,
            difficulty=workout.difficulty,
        )

    def start_workout(self, workout: TrackedWorkout) -> TrackedWorkout:
        """Begin tracking; any workout already in progress is dropped."""
        if self.is_tracking:
            logger.warning(f"Replacing active workout {self.active_workout.name}")

        self.active_workout = workout.model_copy(update={"startTime": self._now(), "sets": []})
        self._sets = []
        self.is_tracking = True

        logger.info(f"Started workout: {workout.name}")
        return self.active_workout

    def log_set(
        self,
        reps: int,
        weight: Optional[float] = None,
        duration: Optional[float] = None,
        notes: Optional[str] = None,
    ) -> Optional[WorkoutSet]:
        """
        Record a set for the active workout.

        Returns:
            The set, or None when no workout is being tracked
        """
        if self.active_workout is None:
            logger.warning("Cannot log set without an active workout")
            return None

        workout_set = WorkoutSet(
            setNumber=len(self._sets) + 1,
            reps=reps,
            weight=weight,
            duration=duration,
            timestamp=self._now(),
            notes=notes,
        )
        self._sets.append(workout_set)

        logger.debug(f"Logged set {workout_set.setNumber}: {reps} reps")
        return workout_set

    async def complete_workout(self, notes: Optional[str] = None) -> Optional[TrackedWorkout]:
        """
        Finish the active workout, save it to history and mirror it.

        A failed mirror is logged; the local history entry is kept.

        Returns:
            The finished workout, or None when nothing was being tracked
        """
        if self.active_workout is None:
            return None

        workout = self.active_workout.model_copy(update={
            "endTime": self._now(),
            "sets": list(self._sets),
            "notes": notes,
            "totalVolume": total_volume(self._sets),
        })

        history = self.load_history()
        history.insert(0, workout)
        self._save(history)
        self._reset()

        try:
            await self._mirror(workout)
        except ClientException as e:
            logger.error(f"Failed to mirror workout {workout.id}: {e.message}")

        logger.info(f"Completed workout: {workout.name} ({len(workout.sets)} sets)")
        return workout

    def cancel_workout(self) -> None:
        if self.active_workout is not None:
            logger.info(f"Cancelled workout: {self.active_workout.name}")
        self._reset()

    # =========================================================================
    # History & stats
    # =========================================================================

    def get_workout_history(self, category: Optional[str] = None, limit: int = 50) -> List[TrackedWorkout]:
        """Newest-first history, optionally for one category."""
        history = self.load_history()
        if category is not None:
            history = [workout for workout in history if workout.category == category]
        return history[:limit]

    def get_workout_stats(self, category: Optional[str] = None) -> TrackedWorkoutStats:
        """
        Totals over the whole history, optionally for one category.

        Average duration only counts workouts with both a start and end.
        """
        history = self.get_workout_history(category, limit=self._history_limit)
        all_sets = [s for workout in history for s in workout.sets]
        durations = [w.duration_seconds for w in history if w.duration_seconds is not None]

        return TrackedWorkoutStats(
            totalWorkouts=len(history),
            totalSets=len(all_sets),
            totalReps=sum(s.reps for s in all_sets),
            totalVolume=sum(w.totalVolume or 0 for w in history),
            averageDuration=sum(durations) / len(durations) if durations else None,
            lastWorkout=history[0].endTime if history else None,
        )

    def load_history(self) -> List[TrackedWorkout]:
        workouts = []
        for raw in self._store.get(HISTORY_KEY, []) or []:
            try:
                workouts.append(TrackedWorkout.model_validate(raw))
            except ValueError:
                logger.warning("Skipping unreadable local workout")
        return workouts

    # =========================================================================
    # Private helpers
    # =========================================================================

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _reset(self) -> None:
        self.active_workout = None
        self.is_tracking = False
        self._sets = []

    def _save(self, history: List[TrackedWorkout]) -> None:
        self._store.set(
            HISTORY_KEY,
            [workout.model_dump(mode="json") for workout in history[:self._history_limit]],
        )

    async def _mirror(self, workout: TrackedWorkout) -> None:
        url = self._settings.WORKOUT_TRACKING_SAVE_URL
        if not url:
            logger.debug(f"No workout save URL configured, kept {workout.id} locally")
            return

        response = await send_request(
            "POST",
            url,
            transport=self._transport,
            timeout=self._settings.REQUEST_TIMEOUT_SECONDS,
            headers=build_headers(self._settings.AUTH_TOKEN, self._user_id or self._settings.USER_ID),
            json={
                "table": table_for_category(workout.category),
                "item": workout_item(workout, self._user_id),
            },
        )
        raise_for_status(response, "Save workout")
