"""
Genie API service.

Client for the Genie REST API: assistant queries (text, image, video),
token balance and purchases, subscriptions, the meditation library, and
the nutrition/meditation/restaurant logs the assistant reads from.
"""

import json
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Tuple

import httpx

from do_app.config import Settings, get_settings
from do_app.schemas.genie import (
    ConversationMessage,
    GenieQueryResponse,
    PaymentIntentResponse,
    StructuredAnalysis,
    SubscriptionTierPrice,
    TokenBalanceResponse,
)
from do_app.schemas.meditation import LibraryMeditation, MeditationLibrary
from do_app.schemas.nutrition import FoodEntry
from do_common.utils import (
    DecodingException,
    InsufficientTokensException,
    InvalidResponseException,
    UnauthorizedException,
    build_headers,
    parse_json,
    raise_for_status,
    send_request,
)

logger = logging.getLogger(__name__)


RESTAURANT_KEYWORDS = ("restaurant", "food nearby", "where to eat", "nearby food")

_MEAL_WORDS = ("dinner", "breakfast", "lunch", "meal", "recipe", "cook", "make", "prepare")
_OPTION_WORDS = (
    "idea", "option", "suggestion", "recommendation",
    "what can i", "what should i", "give me", "show me",
)
_SPECIFIC_WORDS = ("how do i", "how to", "how can i", "recipe for")
_COUNT_WORDS = ("multiple", "several", "few", " 2 ", " 3 ", " 4 ", " 5 ")

MULTIPLE_OPTIONS_SUFFIX = " Please provide multiple options (at least 2-3 different recipes or meal ideas)."
CONTEXT_POLICY = "policy: only use this user's data; do not invent values"


# =============================================================================
# Query enrichment
# =============================================================================

def enhance_query_text(text: str) -> str:
    """
    Rephrase a query so the backend routes it to the right handler.

    - Story requests without "bedtime" get a bedtime story prefix.
    - Relaxation or mindful breathing requests that don't already say
      "meditate" get a meditation prefix.
    - Open-ended meal questions ask for several options.

    Args:
        text: Raw user text

    Returns:
        The text, possibly with a prefix or suffix
    """
    lowered = text.lower()
    enhanced = text

    if ("story" in lowered or "tale" in lowered) and any(w in lowered for w in ("tell", "read", "give")):
        if "bedtime" not in lowered:
            enhanced = f"Tell me a bedtime story. {text}"

    wants_calm = ("help" in lowered and "relax" in lowered) or ("mindful" in lowered and "breath" in lowered)
    if wants_calm and "meditation" not in lowered and "meditate" not in lowered:
        enhanced = f"Help me meditate. {text}"

    is_meal = any(w in lowered for w in _MEAL_WORDS)
    wants_options = any(w in lowered for w in _OPTION_WORDS)
    is_specific = any(w in lowered for w in _SPECIFIC_WORDS) or (
        "make " in lowered and ("this" in lowered or "that" in lowered)
    )
    if is_meal and wants_options and not is_specific and not any(w in lowered for w in _COUNT_WORDS):
        enhanced = f"{text}{MULTIPLE_OPTIONS_SUFFIX}"

    return enhanced


def enrich_query(text: str, units: str = "imperial", user_name: Optional[str] = None) -> str:
    """
    Wrap a query in the context block the backend expects.

    Text that already carries a [CONTEXT] block is returned unchanged.

    Args:
        text: Raw user text
        units: "metric" or "imperial"
        user_name: Display name, omitted when empty

    Returns:
        "[CONTEXT]\\n...\\n\\n[QUESTION]\\n..." string
    """
    if "[CONTEXT]" in text:
        return text

    lines = [f"units: {units}"]
    if user_name:
        lines.append(f"user name: {user_name}")
    lines.append(CONTEXT_POLICY)

    return "[CONTEXT]\n" + "\n".join(lines) + "\n\n[QUESTION]\n" + enhance_query_text(text)


def is_restaurant_query(text: str) -> bool:
    lowered = text.lower()
    return any(keyword in lowered for keyword in RESTAURANT_KEYWORDS)


def extract_structured_analysis(text: str) -> Optional[StructuredAnalysis]:
    """Parse a StructuredAnalysis from reply text that is (or contains) a JSON object."""
    candidates = [text]
    start, end = text.find("{"), text.rfind("}")
    if 0 < start < end:
        candidates.append(text[start:end + 1])

    for candidate in candidates:
        try:
            return StructuredAnalysis.model_validate(json.loads(candidate))
        except ValueError:
            continue
    return None


# =============================================================================
# Service
# =============================================================================

class GenieAPIService:
    """
    Client for the Genie API Gateway.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize GenieAPIService.

        Args:
            settings: App settings (defaults to get_settings())
            transport: Optional httpx transport, used by tests
        """
        self._settings = settings or get_settings()
        self._transport = transport
        self._base_url = self._settings.GENIE_API_BASE_URL.rstrip("/")
        self._balance_cache: Optional[Tuple[int, float]] = None

    # =========================================================================
    # Queries
    # =========================================================================

    async def query(
        self,
        text: str,
        session_id: Optional[str] = None,
        is_voice_input: bool = False,
        conversation_history: Optional[List[ConversationMessage]] = None,
        location: Optional[Tuple[float, float]] = None,
        user_name: Optional[str] = None,
    ) -> GenieQueryResponse:
        """
        Ask Genie a question.

        Args:
            text: User text
            session_id: Chat session (a new UUID when omitted)
            is_voice_input: Whether the text came from speech
            conversation_history: Earlier turns of this conversation
            location: (latitude, longitude), only sent for restaurant queries
            user_name: Display name for the context block

        Returns:
            GenieQueryResponse

        Raises:
            InsufficientTokensException: 402, carries the upsell payload
            HTTPStatusException: Any other non-2xx response
        """
        body = self._query_body(text, session_id, user_name, location)
        body["isVoiceInput"] = is_voice_input
        if conversation_history:
            body["conversationHistory"] = [m.model_dump() for m in conversation_history]

        return await self._send_query(body, self._settings.REQUEST_TIMEOUT_SECONDS)

    async def query_with_image(
        self,
        text: str,
        image_base64: str,
        session_id: Optional[str] = None,
        location: Optional[Tuple[float, float]] = None,
        user_name: Optional[str] = None,
    ) -> GenieQueryResponse:
        """Ask Genie about a photo (base64 JPEG)."""
        body = self._query_body(text, session_id, user_name, location)
        body["image"] = image_base64
        body["isVoiceInput"] = False
        return await self._send_query(body, self._settings.GENIE_MEDIA_TIMEOUT_SECONDS)

    async def query_with_video(
        self,
        text: str,
        frames: List[str],
        session_id: Optional[str] = None,
        user_name: Optional[str] = None,
    ) -> GenieQueryResponse:
        """Ask Genie about a video, sent as base64 frames."""
        body = self._query_body(text, session_id, user_name, None)
        body["frames"] = frames
        body["isVoiceInput"] = False
        return await self._send_query(body, self._settings.GENIE_VIDEO_TIMEOUT_SECONDS)

    # =========================================================================
    # Tokens
    # =========================================================================

    async def get_token_balance(self, use_cache: bool = True) -> TokenBalanceResponse:
        """
        Get the user's token balance.

        A balance fetched within the cache TTL is returned without a
        request; cached results carry only the balance.

        Raises:
            UnauthorizedException: 401/403
        """
        if use_cache and self._balance_cache is not None:
            balance, fetched_at = self._balance_cache
            if time.monotonic() - fetched_at < self._settings.TOKEN_BALANCE_CACHE_TTL_SECONDS:
                return TokenBalanceResponse(balance=balance)

        body = await self._request(
            "GET", "/tokens/balance", "Token balance",
            timeout=self._settings.TOKEN_BALANCE_TIMEOUT_SECONDS,
        )
        result = _validate(TokenBalanceResponse, body, "Token balance")
        self._balance_cache = (result.balance, time.monotonic())
        return result

    def clear_token_balance_cache(self) -> None:
        self._balance_cache = None

    async def initialize_tokens(self) -> None:
        """Create the token record for a new user."""
        await self._request("POST", "/tokens/initialize", "Initialize tokens")

    async def purchase_tokens(self, package_id: str) -> PaymentIntentResponse:
        """
        Start a token pack purchase.

        Args:
            package_id: Token package identifier

        Returns:
            Stripe payment intent details
        """
        body = await self._request("POST", "/tokens/purchase", "Purchase tokens", json={"packageId": package_id})
        try:
            return PaymentIntentResponse.model_validate(body)
        except ValueError as e:
            raise InvalidResponseException("Purchase response is missing payment details") from e

    # =========================================================================
    # Subscriptions
    # =========================================================================

    async def get_subscription_status(self) -> Dict[str, Any]:
        return await self._request("GET", "/subscription/status", "Subscription status")

    async def get_subscription_prices(self) -> List[SubscriptionTierPrice]:
        """
        Price table for the subscription tiers.

        Returns an empty list when the backend has no price endpoint.
        """
        response = await self._send("GET", "/subscriptions/prices")
        if response.status_code != 200:
            logger.info(f"Subscription prices unavailable ({response.status_code})")
            return []

        body = parse_json(response)
        if not isinstance(body, list):
            raise DecodingException("Subscription prices must be a list")
        return [SubscriptionTierPrice.model_validate(item) for item in body]

    async def create_setup_intent(self) -> Dict[str, Any]:
        return await self._request("POST", "/subscriptions/setup-intent", "Setup intent")

    async def create_subscription(self, tier: str, price_id: str, payment_method_id: str) -> Dict[str, Any]:
        """
        Subscribe to a tier with a confirmed payment method.

        Args:
            tier: Tier name
            price_id: Stripe price ID
            payment_method_id: Stripe payment method from the payment sheet
        """
        return await self._request(
            "POST", "/subscriptions/create", "Create subscription",
            json={"tier": tier, "priceId": price_id, "paymentMethodId": payment_method_id},
        )

    async def update_subscription(self, tier: str) -> None:
        await self._request("POST", "/subscription/update", "Update subscription", json={"tier": tier})

    async def cancel_subscription(self) -> Dict[str, Any]:
        return await self._request("POST", "/subscriptions/cancel", "Cancel subscription")

    # =========================================================================
    # Meditation
    # =========================================================================

    async def save_meditation_session(self, session: Dict[str, Any]) -> None:
        """POST a finished meditation session (already in wire format)."""
        await self._request("POST", "/meditation/save", "Save meditation", json=session)

    async def get_meditation_library(
        self,
        category: Optional[str] = None,
        duration: Optional[int] = None,
        technique: Optional[str] = None,
        limit: int = 50,
    ) -> MeditationLibrary:
        """
        Browse the pre-recorded meditation library.

        The library Lambda is public, so no auth headers are sent.
        """
        params: Dict[str, Any] = {"limit": limit}
        if category:
            params["category"] = category
        if duration is not None:
            params["duration"] = duration
        if technique:
            params["technique"] = technique

        response = await send_request(
            "GET",
            self._settings.MEDITATION_LIBRARY_URL,
            transport=self._transport,
            timeout=self._settings.REQUEST_TIMEOUT_SECONDS,
            params=params,
        )
        raise_for_status(response, "Meditation library")
        body = parse_json(response)
        return _validate(MeditationLibrary, body.get("data") if isinstance(body, dict) else None, "Meditation library")

    async def get_library_meditation(self, meditation_id: str) -> LibraryMeditation:
        body = await self._request("GET", f"/meditation-library/{meditation_id}", "Library meditation")
        return _validate(LibraryMeditation, body.get("data"), "Library meditation")

    # =========================================================================
    # Nutrition
    # =========================================================================

    async def save_nutrition_entry(
        self,
        entry: FoodEntry,
        recipe_id: Optional[str] = None,
        meal_plan_id: Optional[str] = None,
        meal_plan_meal_id: Optional[str] = None,
    ) -> None:
        """
        Save a food log entry to the nutrition table.

        Args:
            entry: Logged food
            recipe_id: Recipe the food was cooked from
            meal_plan_id: Meal plan the food belongs to
            meal_plan_meal_id: Meal inside that plan
        """
        body: Dict[str, Any] = {
            "nutritionId": entry.id,
            "entryType": "food",
            "name": entry.name,
            "mealType": entry.mealType,
            "calories": entry.calories,
            "protein": entry.protein,
            "carbs": entry.carbs,
            "fat": entry.fat,
            "consumedAt": _iso(entry.timestamp),
            "source": entry.source,
        }
        optional = {
            "servingSize": entry.servingSize,
            "notes": entry.notes,
            "recipeId": recipe_id,
            "mealPlanId": meal_plan_id,
            "mealPlanMealId": meal_plan_meal_id,
        }
        body.update({key: value for key, value in optional.items() if value is not None})

        await self._request("POST", "/nutrition/save", "Save nutrition", json=body)

    async def get_nutrition_history(self, days: int = 30, limit: int = 200) -> List[Dict[str, Any]]:
        """
        Raw food entries from the backend.

        Items may arrive under "items", "data" or "entries", or as a bare
        list; anything else yields an empty list.
        """
        body = await self._request(
            "GET", "/nutrition/history", "Nutrition history",
            params={"days": days, "limit": limit, "entryType": "food"},
            allow_list=True,
        )
        if isinstance(body, list):
            return [item for item in body if isinstance(item, dict)]

        for key in ("items", "data", "entries"):
            items = body.get(key)
            if isinstance(items, list):
                return [item for item in items if isinstance(item, dict)]
        return []

    async def delete_nutrition_entry(self, entry_id: str) -> None:
        response = await self._send("DELETE", f"/nutrition/{entry_id}")
        raise_for_status(response, "Delete nutrition")

    # =========================================================================
    # Restaurants
    # =========================================================================

    async def save_restaurant_visit(self, entry: Dict[str, Any]) -> None:
        await self._request("POST", "/restaurant/save", "Save restaurant", json=entry)

    async def get_restaurant_analytics(self, days: int = 30) -> Dict[str, Any]:
        body = await self._request("GET", "/restaurant/analytics", "Restaurant analytics", params={"days": days})
        data = body.get("data")
        return data if isinstance(data, dict) else body

    # =========================================================================
    # Private helpers
    # =========================================================================

    def _headers(self) -> Dict[str, str]:
        if not self._settings.AUTH_TOKEN:
            raise UnauthorizedException(message="Sign in to use Genie")
        return build_headers(self._settings.AUTH_TOKEN, self._settings.USER_ID)

    def _query_body(
        self,
        text: str,
        session_id: Optional[str],
        user_name: Optional[str],
        location: Optional[Tuple[float, float]],
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "query": enrich_query(text, self._settings.UNITS.lower(), user_name),
            "sessionId": session_id or str(uuid.uuid4()),
            "timestamp": _iso(datetime.now(timezone.utc)),
            "locale": self._settings.DEFAULT_LOCALE,
        }
        if location is not None and is_restaurant_query(text):
            body["latitude"], body["longitude"] = location
        return body

    async def _send_query(self, body: Dict[str, Any], timeout: float) -> GenieQueryResponse:
        response = await self._send("POST", "/query", json=body, timeout=timeout)

        if response.status_code == 402:
            payload = parse_json(response)
            payload = payload if isinstance(payload, dict) else {}
            logger.info(
                f"Genie query needs {payload.get('required')} tokens, balance {payload.get('balance')}"
            )
            raise InsufficientTokensException(
                message=payload.get("error") or "Insufficient tokens",
                upsell=payload,
            )

        raise_for_status(response, "Genie query")
        result = _validate(GenieQueryResponse, parse_json(response), "Genie query")

        if result.structuredAnalysis is None:
            result.structuredAnalysis = extract_structured_analysis(result.response)

        return result

    async def _send(self, method: str, path: str, timeout: Optional[float] = None, **kwargs: Any) -> httpx.Response:
        return await send_request(
            method,
            f"{self._base_url}{path}",
            transport=self._transport,
            timeout=timeout or self._settings.REQUEST_TIMEOUT_SECONDS,
            headers=self._headers(),
            **kwargs,
        )

    async def _request(
        self,
        method: str,
        path: str,
        service: str,
        timeout: Optional[float] = None,
        allow_list: bool = False,
        **kwargs: Any,
    ) -> Any:
        response = await self._send(method, path, timeout=timeout, **kwargs)
        raise_for_status(response, service)

        if not response.content:
            return {}

        body = parse_json(response)
        if isinstance(body, dict) or (allow_list and isinstance(body, list)):
            return body
        raise DecodingException(f"{service} response is not an object")


def _validate(model: Any, data: Any, service: str) -> Any:
    try:
        return model.model_validate(data)
    except ValueError as e:
        raise DecodingException(f"{service} response could not be decoded") from e


def _iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat().replace("+00:00", "Z")
