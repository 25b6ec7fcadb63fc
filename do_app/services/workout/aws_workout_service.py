"""
Workout library service.

Reads and writes movements, sessions and plans through the workout
Lambdas. First pages of a user's own library are cached briefly; a cache
hit is returned immediately and refreshed in the background.
"""

import asyncio
import logging
import uuid
from typing import Optional, List, Dict, Any, Set

import httpx

from do_app.config import Settings, get_settings
from do_app.schemas.workout import WorkoutItem, WorkoutListResponse
from do_app.services.workout.workout_cache import WorkoutCacheManager
from do_common.utils import (
    APIErrorException,
    ClientException,
    DecodingException,
    build_headers,
    parse_json,
    raise_for_status,
    send_request,
)

logger = logging.getLogger(__name__)


def _flag(value: bool) -> str:
    return "true" if value else "false"


class AWSWorkoutService:
    """
    Client for the workout Lambdas.
    """

    def __init__(
        self,
        cache: Optional[WorkoutCacheManager] = None,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize AWSWorkoutService.

        Args:
            cache: Workout cache (a fresh one is created when omitted)
            settings: App settings (defaults to get_settings())
            transport: Optional httpx transport, used by tests
        """
        self._settings = settings or get_settings()
        self._cache = cache or WorkoutCacheManager(self._settings.WORKOUT_CACHE_TTL_SECONDS)
        self._transport = transport
        self._background: Set[asyncio.Task] = set()

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_movements(
        self,
        user_id: Optional[str] = None,
        is_public: Optional[bool] = None,
        is_template: Optional[bool] = None,
        category: Optional[str] = None,
        limit: int = 100,
        last_evaluated_key: Optional[str] = None,
    ) -> WorkoutListResponse:
        """
        List movements.

        Args:
            user_id: Restrict to one user's movements
            is_public: Filter on public flag
            is_template: Filter on template flag
            category: Filter on category
            limit: Page size
            last_evaluated_key: Continuation token

        Returns:
            WorkoutListResponse with items and the next token
        """
        params = self._list_params(user_id, is_public, category, limit, last_evaluated_key)
        if is_template is not None:
            params["isTemplate"] = _flag(is_template)
        return await self._list("movements", self._settings.WORKOUT_GET_MOVEMENTS_URL, params, user_id, last_evaluated_key)

    async def get_sessions(
        self,
        user_id: Optional[str] = None,
        is_public: Optional[bool] = None,
        category: Optional[str] = None,
        limit: int = 100,
        last_evaluated_key: Optional[str] = None,
    ) -> WorkoutListResponse:
        """List sessions. Arguments as for get_movements."""
        params = self._list_params(user_id, is_public, category, limit, last_evaluated_key)
        return await self._list("sessions", self._settings.WORKOUT_GET_SESSIONS_URL, params, user_id, last_evaluated_key)

    async def get_plans(
        self,
        user_id: Optional[str] = None,
        is_public: Optional[bool] = None,
        limit: int = 100,
        last_evaluated_key: Optional[str] = None,
    ) -> WorkoutListResponse:
        """List plans. Arguments as for get_movements."""
        params = self._list_params(user_id, is_public, None, limit, last_evaluated_key)
        return await self._list("plans", self._settings.WORKOUT_GET_PLANS_URL, params, user_id, last_evaluated_key)

    async def wait_for_background_refreshes(self) -> None:
        """Wait until every scheduled cache refresh has finished."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # =========================================================================
    # Writes
    # =========================================================================

    async def create_movement(
        self,
        user_id: str,
        movement1_name: str,
        movement_id: Optional[str] = None,
        movement2_name: Optional[str] = None,
        is_single: bool = True,
        is_timed: bool = False,
        category: Optional[str] = None,
        difficulty: Optional[str] = None,
        equipments_needed: bool = False,
        description: Optional[str] = None,
        tags: Optional[List[str]] = None,
        template_sets: Optional[List[Dict[str, Any]]] = None,
        first_section_sets: Optional[List[Dict[str, Any]]] = None,
        second_section_sets: Optional[List[Dict[str, Any]]] = None,
        weaved_sets: Optional[List[Dict[str, Any]]] = None,
    ) -> WorkoutItem:
        """
        Create a movement.

        A new UUID is used when movement_id is not given. Optional text
        fields are only sent when set and tags only when non-empty.

        Returns:
            The stored movement
        """
        body: Dict[str, Any] = {
            "userId": user_id,
            "movementId": movement_id or str(uuid.uuid4()),
            "movement1Name": movement1_name,
            "isSingle": is_single,
            "isTimed": is_timed,
            "equipmentsNeeded": equipments_needed,
            "templateSets": template_sets or [],
            "firstSectionSets": first_section_sets or [],
            "secondSectionSets": second_section_sets or [],
            "weavedSets": weaved_sets or [],
        }
        _add_optional(body, movement2Name=movement2_name, category=category,
                      difficulty=difficulty, description=description)
        if tags:
            body["tags"] = tags

        return await self._save(self._settings.WORKOUT_CREATE_MOVEMENT_URL, body, user_id, "Create movement")

    async def create_session(
        self,
        user_id: str,
        name: str,
        session_id: Optional[str] = None,
        description: Optional[str] = None,
        movements: Optional[List[Dict[str, Any]]] = None,
        difficulty: Optional[str] = None,
        equipment_needed: bool = False,
        tags: Optional[List[str]] = None,
        estimated_duration: Optional[float] = None,
    ) -> WorkoutItem:
        """Create a session from a list of movement dicts."""
        body: Dict[str, Any] = {
            "userId": user_id,
            "sessionId": session_id or str(uuid.uuid4()),
            "name": name,
            "movements": movements or [],
            "equipmentNeeded": equipment_needed,
        }
        _add_optional(body, description=description, difficulty=difficulty,
                      estimatedDuration=estimated_duration)
        if tags:
            body["tags"] = tags

        return await self._save(self._settings.WORKOUT_CREATE_SESSION_URL, body, user_id, "Create session")

    async def create_plan(
        self,
        user_id: str,
        name: str,
        plan_id: Optional[str] = None,
        description: Optional[str] = None,
        sessions: Optional[Dict[str, str]] = None,
        is_day_of_the_week_plan: bool = False,
        difficulty: Optional[str] = None,
        equipment_needed: bool = False,
        tags: Optional[List[str]] = None,
        duration: Optional[str] = None,
    ) -> WorkoutItem:
        """
        Create a plan.

        Args:
            sessions: Day label ("Monday" or "Day 1") -> sessionId
            is_day_of_the_week_plan: Whether day labels are weekdays
        """
        body: Dict[str, Any] = {
            "userId": user_id,
            "planId": plan_id or str(uuid.uuid4()),
            "name": name,
            "sessions": sessions or {},
            "isDayOfTheWeekPlan": is_day_of_the_week_plan,
            "equipmentNeeded": equipment_needed,
        }
        _add_optional(body, description=description, difficulty=difficulty, duration=duration)
        if tags:
            body["tags"] = tags

        return await self._save(self._settings.WORKOUT_CREATE_PLAN_URL, body, user_id, "Create plan")

    async def update_movement(self, user_id: str, movement_id: str, updates: Dict[str, Any]) -> WorkoutItem:
        """
        Update a movement in place.

        Args:
            user_id: Owner
            movement_id: Movement to update
            updates: Wire-named fields to change; None values are skipped

        Returns:
            The stored movement
        """
        body = self._update_body(user_id, "movementId", movement_id, updates)
        return await self._save(self._settings.WORKOUT_CREATE_MOVEMENT_URL, body, user_id, "Update movement")

    async def update_session(self, user_id: str, session_id: str, updates: Dict[str, Any]) -> WorkoutItem:
        body = self._update_body(user_id, "sessionId", session_id, updates)
        return await self._save(self._settings.WORKOUT_CREATE_SESSION_URL, body, user_id, "Update session")

    async def update_plan(self, user_id: str, plan_id: str, updates: Dict[str, Any]) -> WorkoutItem:
        body = self._update_body(user_id, "planId", plan_id, updates)
        return await self._save(self._settings.WORKOUT_CREATE_PLAN_URL, body, user_id, "Update plan")

    # =========================================================================
    # Private helpers
    # =========================================================================

    def _list_params(
        self,
        user_id: Optional[str],
        is_public: Optional[bool],
        category: Optional[str],
        limit: int,
        last_evaluated_key: Optional[str],
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {"limit": limit}
        if user_id:
            params["userId"] = user_id
        if is_public is not None:
            params["isPublic"] = _flag(is_public)
        if category:
            params["category"] = category
        if last_evaluated_key:
            params["lastEvaluatedKey"] = last_evaluated_key
        return params

    async def _list(
        self,
        kind: str,
        url: str,
        params: Dict[str, Any],
        user_id: Optional[str],
        last_evaluated_key: Optional[str],
    ) -> WorkoutListResponse:
        first_page = user_id is not None and last_evaluated_key is None

        if first_page:
            cached = self._cache.get(kind, user_id)
            if cached is not None:
                self._schedule_refresh(kind, url, params, user_id)
                return WorkoutListResponse(success=True, data=cached, count=len(cached))

        result = await self._fetch_list(url, params, kind)
        if first_page and result.data is not None:
            self._cache.put(kind, user_id, result.data)
        return result

    async def _fetch_list(self, url: str, params: Dict[str, Any], kind: str) -> WorkoutListResponse:
        service = f"Get {kind}"
        response = await send_request(
            "GET",
            url,
            transport=self._transport,
            timeout=self._settings.REQUEST_TIMEOUT_SECONDS,
            params=params,
            headers=build_headers(self._settings.AUTH_TOKEN),
        )
        raise_for_status(response, service)

        try:
            result = WorkoutListResponse.model_validate(parse_json(response))
        except ValueError as e:
            raise DecodingException(f"{service} response could not be decoded") from e

        if not result.success:
            raise APIErrorException(message=result.error or "Unknown error")

        logger.debug(f"{service}: {len(result.data or [])} items, more={result.lastEvaluatedKey is not None}")
        return result

    def _schedule_refresh(self, kind: str, url: str, params: Dict[str, Any], user_id: str) -> None:
        async def refresh() -> None:
            try:
                result = await self._fetch_list(url, params, kind)
            except ClientException as e:
                logger.warning(f"Background refresh of {kind} for {user_id} failed: {e.message}")
                return
            if result.data is not None:
                self._cache.put(kind, user_id, result.data)

        task = asyncio.create_task(refresh())
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    def _update_body(self, user_id: str, id_field: str, item_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        body: Dict[str, Any] = {"userId": user_id, id_field: item_id}
        body.update({key: value for key, value in updates.items() if value is not None})
        return body

    async def _save(self, url: str, body: Dict[str, Any], user_id: str, service: str) -> WorkoutItem:
        response = await send_request(
            "POST",
            url,
            transport=self._transport,
            timeout=self._settings.REQUEST_TIMEOUT_SECONDS,
            json=body,
            headers=build_headers(self._settings.AUTH_TOKEN),
        )
        raise_for_status(response, service)

        payload = parse_json(response)
        if not isinstance(payload, dict):
            raise DecodingException(f"{service} response is not an object")

        data = payload.get("data")
        if not payload.get("success") or not isinstance(data, dict):
            raise APIErrorException(message=payload.get("error") or "Unknown error")

        self._cache.clear_cache(user_id)
        return WorkoutItem.model_validate(data)


def _add_optional(body: Dict[str, Any], **fields: Any) -> None:
    for key, value in fields.items():
        if value is not None:
            body[key] = value
