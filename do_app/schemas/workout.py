"""
Pydantic models for workout library items and tracked workouts.

A WorkoutItem is a movement, a session or a plan depending on which ID
field is present. Records come straight out of DynamoDB via Lambda and
carry years of schema drift, so decoding is lenient: a field with an
unexpected type is treated as absent instead of failing the whole item.
"""

import logging
from datetime import datetime
from typing import Optional, List, Dict, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from do_common.utils.dates import as_utc

logger = logging.getLogger(__name__)


ITEM_TYPE_MOVEMENT = "movement"
ITEM_TYPE_SESSION = "session"
ITEM_TYPE_PLAN = "plan"
ITEM_TYPE_UNKNOWN = "unknown"

_STRING_FIELDS = (
    "sessionId", "movementId", "planId", "userId", "name", "createdAt",
    "updatedAt", "category", "movement1Name", "movement2Name", "description",
    "difficulty", "duration", "imageURL", "originalSessionId",
    "originalPlanId", "originalCreatorId", "sharedAt", "creatorType",
)
_BOOL_FIELDS = (
    "isPublic", "isDayOfTheWeekPlan", "equipmentNeeded", "isTemplate",
    "isSingle", "isTimed", "isShared", "isPremium",
)
_NUMBER_FIELDS = ("estimatedDuration", "price", "ratingValue")
_INT_FIELDS = ("ratingCount", "shareCount", "useCount")
_DICT_LIST_FIELDS = (
    "templateSets", "firstSectionSets", "secondSectionSets", "weavedSets",
    "movements", "movementsInSession", "movementsInPlan",
)


def normalize_sessions(raw: Any) -> Optional[Dict[str, str]]:
    """
    Normalise a plan's sessions field to a day -> session map.

    Accepted wire shapes:
        - map: {"Monday": "s1"} (non-string values are stringified)
        - empty list: no sessions
        - list of objects: [{"day": "Monday", "sessionId": "s1"}]
          ("Day"/"id" accepted as key aliases)
        - list of IDs: ["s1", "s2"] -> {"Day 1": "s1", "Day 2": "s2"}

    Values may be session IDs, rest markers ("Rest Session") or activity
    descriptors; they are passed through untouched.

    Args:
        raw: Value of the sessions field as decoded from JSON

    Returns:
        Day -> value map, or None when nothing usable is present
    """
    if isinstance(raw, dict):
        return {str(k): v if isinstance(v, str) else str(v) for k, v in raw.items() if v is not None}

    if not isinstance(raw, list) or not raw:
        return None

    sessions: Dict[str, str] = {}
    for index, item in enumerate(raw):
        if isinstance(item, dict):
            day = item.get("day") or item.get("Day")
            session_id = item.get("sessionId") or item.get("id")
            if isinstance(day, str) and isinstance(session_id, str):
                sessions[day] = session_id
        elif isinstance(item, str):
            sessions[f"Day {index + 1}"] = item

    return sessions or None


def _dict_list(value: Any) -> Optional[List[Dict[str, Any]]]:
    if isinstance(value, list) and all(isinstance(v, dict) for v in value):
        return value
    return None


class WorkoutItem(BaseModel):
    """Unified movement/session/plan record."""

    model_config = ConfigDict(extra="ignore")

    sessionId: Optional[str] = None
    movementId: Optional[str] = None
    planId: Optional[str] = None
    userId: Optional[str] = None
    name: Optional[str] = None
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None
    isPublic: Optional[bool] = None
    category: Optional[str] = None

    movement1Name: Optional[str] = None
    movement2Name: Optional[str] = None
    description: Optional[str] = None
    difficulty: Optional[str] = None
    duration: Optional[str] = None
    isDayOfTheWeekPlan: Optional[bool] = None
    equipmentNeeded: Optional[bool] = None
    tags: Optional[List[str]] = None
    sessions: Optional[Dict[str, str]] = None

    estimatedDuration: Optional[float] = None
    imageURL: Optional[str] = None
    price: Optional[float] = None
    ratingValue: Optional[float] = None
    ratingCount: Optional[int] = None
    shareCount: Optional[int] = None
    useCount: Optional[int] = None
    isTemplate: Optional[bool] = None
    isSingle: Optional[bool] = None
    isTimed: Optional[bool] = None

    templateSets: Optional[List[Dict[str, Any]]] = None
    firstSectionSets: Optional[List[Dict[str, Any]]] = None
    secondSectionSets: Optional[List[Dict[str, Any]]] = None
    weavedSets: Optional[List[Dict[str, Any]]] = None
    movements: Optional[List[Dict[str, Any]]] = None
    movementsInSession: Optional[List[Dict[str, Any]]] = None
    movementsInPlan: Optional[List[Dict[str, Any]]] = None

    originalSessionId: Optional[str] = None
    originalPlanId: Optional[str] = None
    originalCreatorId: Optional[str] = None
    isShared: Optional[bool] = None
    sharedAt: Optional[str] = None
    creatorType: Optional[str] = None
    isPremium: Optional[bool] = None

    @model_validator(mode="before")
    @classmethod
    def _lenient_decode(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        cleaned: Dict[str, Any] = {}
        for key in _STRING_FIELDS:
            if isinstance(data.get(key), str):
                cleaned[key] = data[key]
        for key in _BOOL_FIELDS:
            if isinstance(data.get(key), bool):
                cleaned[key] = data[key]
        for key in _NUMBER_FIELDS:
            value = data.get(key)
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                cleaned[key] = float(value)
        for key in _INT_FIELDS:
            value = data.get(key)
            if isinstance(value, int) and not isinstance(value, bool):
                cleaned[key] = value
        for key in _DICT_LIST_FIELDS:
            cleaned[key] = _dict_list(data.get(key))

        tags = data.get("tags")
        if isinstance(tags, list) and all(isinstance(t, str) for t in tags):
            cleaned["tags"] = tags

        if "sessions" in data:
            cleaned["sessions"] = normalize_sessions(data["sessions"])
            if cleaned["sessions"] is None and data.get("planId") and data["sessions"]:
                logger.warning(f"Plan {data['planId']} has unreadable sessions field")

        return cleaned

    @property
    def item_type(self) -> str:
        if self.movementId is not None:
            return ITEM_TYPE_MOVEMENT
        if self.sessionId is not None:
            return ITEM_TYPE_SESSION
        if self.planId is not None:
            return ITEM_TYPE_PLAN
        return ITEM_TYPE_UNKNOWN

    def as_movement(self) -> Optional["TypedMovement"]:
        return TypedMovement(self) if self.movementId is not None else None

    def as_session(self) -> Optional["TypedSession"]:
        return TypedSession(self) if self.sessionId is not None else None

    def as_plan(self) -> Optional["TypedPlan"]:
        return TypedPlan(self) if self.planId is not None else None


class _TypedView:
    """Read-only view that falls through to the wrapped item."""

    def __init__(self, item: WorkoutItem):
        self.item = item

    def __getattr__(self, name: str) -> Any:
        return getattr(self.item, name)


class TypedMovement(_TypedView):
    @property
    def movementId(self) -> str:
        return self.item.movementId or ""

    @property
    def name(self) -> str:
        return self.item.movement1Name or self.item.name or ""

    @property
    def movement1Name(self) -> str:
        return self.name


class TypedSession(_TypedView):
    @property
    def sessionId(self) -> str:
        return self.item.sessionId or ""

    @property
    def name(self) -> str:
        return self.item.name or ""

    @property
    def movements(self) -> Optional[List[Dict[str, Any]]]:
        return self.item.movements if self.item.movements is not None else self.item.movementsInSession


class TypedPlan(_TypedView):
    @property
    def planId(self) -> str:
        return self.item.planId or ""

    @property
    def name(self) -> str:
        return self.item.name or ""


class WorkoutListResponse(BaseModel):
    """Response of the get-movements/sessions/plans Lambdas."""
    success: bool = False
    data: Optional[List[WorkoutItem]] = None
    count: Optional[int] = None
    error: Optional[str] = None
    lastEvaluatedKey: Optional[str] = None


# =============================================================================
# Tracked workouts
# =============================================================================

WORKOUT_CATEGORIES = (
    "run", "bike", "swim", "hike", "walk", "strength", "legs", "chest",
    "back", "shoulders", "arms", "core", "cardio", "flexibility", "sports",
)


class EquipmentWorkout(BaseModel):
    """An exercise Genie suggested for a piece of recognised equipment."""
    id: str = ""
    name: str
    description: str = ""
    sets: int = 3
    reps: str = "10"
    difficulty: str = "beginner"
    instructions: List[str] = Field(default_factory=list)
    videoURL: Optional[str] = None
    muscleGroups: List[str] = Field(default_factory=list)


class WorkoutSet(BaseModel):
    setNumber: int
    reps: int
    weight: Optional[float] = None
    duration: Optional[float] = Field(default=None, description="seconds")
    timestamp: datetime
    notes: Optional[str] = None

    @field_validator("timestamp")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class TrackedWorkout(BaseModel):
    """
    A workout logged set by set while Genie coaches it.

    startTime is set when tracking starts; endTime, sets and totalVolume
    when it completes.
    """
    id: str
    name: str
    category: str = "strength"
    equipment: Optional[str] = None
    muscleGroups: List[str] = Field(default_factory=list)
    targetSets: int = 0
    targetReps: str = ""
    instructions: List[str] = Field(default_factory=list)
    difficulty: str = ""
    startTime: Optional[datetime] = None
    endTime: Optional[datetime] = None
    sets: List[WorkoutSet] = Field(default_factory=list)
    totalVolume: Optional[float] = None
    notes: Optional[str] = None

    @field_validator("startTime", "endTime")
    @classmethod
    def _utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.startTime is None or self.endTime is None:
            return None
        return (self.endTime - self.startTime).total_seconds()


class TrackedWorkoutStats(BaseModel):
    totalWorkouts: int = 0
    totalSets: int = 0
    totalReps: int = 0
    totalVolume: float = 0
    averageDuration: Optional[float] = Field(default=None, description="seconds")
    lastWorkout: Optional[datetime] = None
