"""
Workout action handlers: equipment recognition, exercise videos, form
feedback and movement/session/plan creation.
"""

from typing import Optional, List, Dict, Any

from do_app.schemas.actions import (
    WORKOUT_CREATION_MOVEMENT,
    WORKOUT_CREATION_PLAN,
    WORKOUT_CREATION_SESSION,
    EquipmentAction,
    FormFeedbackAction,
    VideoResult,
    VideoResultsAction,
    WorkoutCreationAction,
)
from ..base import ActionHandler, bool_value, dict_list, str_value, string_list


class EquipmentHandler(ActionHandler):
    """Equipment Genie recognised in a photo."""

    @property
    def action_type(self) -> str:
        """Return action type identifier."""
        return "equipment_identified"

    async def handle(self, data: Dict[str, Any]) -> EquipmentAction:
        name = str_value(data.get("name"))
        description = str_value(data.get("description"))
        if name is None or description is None:
            raise self.reject(data, ["name", "description"])

        return EquipmentAction(
            name=name,
            description=description,
            category=str_value(data.get("category")) or "other",
        )


class VideoResultsHandler(ActionHandler):
    """
    Exercise videos found for a query.

    Videos without an id or title are dropped.
    """

    @property
    def action_type(self) -> str:
        """Return action type identifier."""
        return "video_results"

    async def handle(self, data: Dict[str, Any]) -> VideoResultsAction:
        query = str_value(data.get("query"))
        if query is None or not isinstance(data.get("videos"), list):
            raise self.reject(data, ["query", "videos"])

        videos = []
        for raw in dict_list(data["videos"]):
            video_id = str_value(raw.get("videoId"))
            title = str_value(raw.get("title"))
            if not video_id or title is None:
                continue
            videos.append(VideoResult(
                videoId=video_id,
                title=title,
                thumbnail=str_value(raw.get("thumbnail")),
                channel=str_value(raw.get("channel")) or "YouTube",
                url=str_value(raw.get("url")) or f"https://www.youtube.com/watch?v={video_id}",
            ))

        return VideoResultsAction(query=query, videos=videos)


class FormFeedbackHandler(ActionHandler):

    @property
    def action_type(self) -> str:
        """Return action type identifier."""
        return "form_feedback"

    async def handle(self, data: Dict[str, Any]) -> FormFeedbackAction:
        return FormFeedbackAction(
            analysis=str_value(data.get("analysis")) or "",
            recommendations=string_list(data.get("recommendations")),
        )


# =============================================================================
# Workout creation
# =============================================================================

def _sets(value: Any) -> Optional[List[Dict[str, Any]]]:
    if not isinstance(value, list):
        return None
    return dict_list(value)


def _equipment_needed(data: Dict[str, Any]) -> bool:
    needed = bool_value(data.get("equipmentNeeded"))
    if needed is None:
        needed = bool_value(data.get("equipmentsNeeded"), False)
    return needed


def parse_movement(data: Dict[str, Any]) -> Optional[WorkoutCreationAction]:
    """
    Movement from action data, or None without a name.

    The name comes from `name` or `movement1Name`. A movement with no
    second movement is single unless `isSingle` says otherwise.
    """
    name = str_value(data.get("name")) or str_value(data.get("movement1Name"))
    if not name:
        return None

    movement2_name = str_value(data.get("movement2Name"))

    return WorkoutCreationAction(
        type=WORKOUT_CREATION_MOVEMENT,
        name=name,
        description=str_value(data.get("description")),
        category=str_value(data.get("category")),
        difficulty=str_value(data.get("difficulty")),
        equipmentNeeded=_equipment_needed(data),
        tags=string_list(data.get("tags")),
        movement1Name=name,
        movement2Name=movement2_name,
        isSingle=bool_value(data.get("isSingle"), movement2_name is None),
        isTimed=bool_value(data.get("isTimed"), False),
        firstSectionSets=_sets(data.get("firstSectionSets")),
        secondSectionSets=_sets(data.get("secondSectionSets")),
        weavedSets=_sets(data.get("weavedSets")),
        templateSets=_sets(data.get("templateSets")),
    )


class CreateMovementHandler(ActionHandler):

    @property
    def action_type(self) -> str:
        """Return action type identifier."""
        return "create_movement"

    async def handle(self, data: Dict[str, Any]) -> WorkoutCreationAction:
        movement = parse_movement(data)
        if movement is None:
            raise self.reject(data, ["name or movement1Name"])
        return movement


class CreateSessionHandler(ActionHandler):
    """Session proposal. Unnamed movements inside it are dropped."""

    @property
    def action_type(self) -> str:
        """Return action type identifier."""
        return "create_session"

    async def handle(self, data: Dict[str, Any]) -> WorkoutCreationAction:
        name = str_value(data.get("name"))
        if not name:
            raise self.reject(data, ["name"])

        movements = []
        for raw in dict_list(data.get("movements")):
            movement = parse_movement(raw)
            if movement is not None:
                movements.append(movement)

        return WorkoutCreationAction(
            type=WORKOUT_CREATION_SESSION,
            name=name,
            description=str_value(data.get("description")),
            difficulty=str_value(data.get("difficulty")),
            equipmentNeeded=bool_value(data.get("equipmentNeeded"), False),
            tags=string_list(data.get("tags")),
            movements=movements or None,
        )


class CreatePlanHandler(ActionHandler):
    """Plan proposal with an optional day or week schedule of sessions."""

    @property
    def action_type(self) -> str:
        """Return action type identifier."""
        return "create_plan"

    async def handle(self, data: Dict[str, Any]) -> WorkoutCreationAction:
        name = str_value(data.get("name"))
        if not name:
            raise self.reject(data, ["name"])

        sessions: Dict[str, str] = {}
        raw_sessions = data.get("sessions")
        if isinstance(raw_sessions, dict):
            for key, value in raw_sessions.items():
                if value is not None:
                    sessions[str(key)] = str(value)

        return WorkoutCreationAction(
            type=WORKOUT_CREATION_PLAN,
            name=name,
            description=str_value(data.get("description")),
            difficulty=str_value(data.get("difficulty")),
            equipmentNeeded=bool_value(data.get("equipmentNeeded"), False),
            tags=string_list(data.get("tags")),
            isDayOfTheWeekPlan=bool_value(data.get("isDayOfTheWeekPlan"), False),
            sessions=sessions or None,
        )
