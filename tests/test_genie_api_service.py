"""Unit tests for GenieAPIService and GenieConversationStoreService."""

import json
from datetime import datetime, timezone

import pytest

from do_app.schemas.genie import ConversationMessage
from do_app.schemas.nutrition import FoodEntry
from do_app.services.genie.conversation_store_service import GenieConversationStoreService
from do_app.services.genie.genie_api_service import (
    MULTIPLE_OPTIONS_SUFFIX,
    GenieAPIService,
    enhance_query_text,
    enrich_query,
    extract_structured_analysis,
)
from do_common.utils import (
    HTTPStatusException,
    InsufficientTokensException,
    ServerException,
    UnauthorizedException,
)


QUERY_REPLY = {
    "response": "Try a 20 minute tempo run.",
    "tokensUsed": 12,
    "tokensRemaining": 488,
    "tier": 1,
    "actions": [{"type": "meditation", "data": {"duration": 5}}],
}


# ─────────────────────────────────────────────────────────────────
# Query enrichment
# ─────────────────────────────────────────────────────────────────


class TestEnrichQuery:
    def test_wraps_text_in_context_block(self):
        enriched = enrich_query("How far did I run?", units="metric", user_name="Sam")

        assert enriched == (
            "[CONTEXT]\n"
            "units: metric\n"
            "user name: Sam\n"
            "policy: only use this user's data; do not invent values\n"
            "\n[QUESTION]\n"
            "How far did I run?"
        )

    def test_omits_empty_user_name(self):
        assert "user name" not in enrich_query("hi", user_name="")

    def test_existing_context_is_left_alone(self):
        text = "[CONTEXT]\nunits: metric\n\n[QUESTION]\nhello"

        assert enrich_query(text) == text


class TestEnhanceQueryText:
    def test_story_request_becomes_bedtime_story(self):
        assert enhance_query_text("tell me a story about dragons") == (
            "Tell me a bedtime story. tell me a story about dragons"
        )

    def test_relaxation_request_becomes_meditation(self):
        assert enhance_query_text("help me relax").startswith("Help me meditate.")

    def test_open_meal_question_asks_for_options(self):
        assert enhance_query_text("give me dinner ideas").endswith(MULTIPLE_OPTIONS_SUFFIX)

    def test_specific_recipe_question_is_unchanged(self):
        assert enhance_query_text("how do i make this recipe") == "how do i make this recipe"


class TestExtractStructuredAnalysis:
    def test_embedded_json(self):
        text = 'Here you go: {"summary": "Solid week", "analysis": {"performance": "up"}} Enjoy.'

        analysis = extract_structured_analysis(text)

        assert analysis.summary == "Solid week"
        assert analysis.analysis.performance == "up"

    def test_plain_text(self):
        assert extract_structured_analysis("No JSON here") is None


# ─────────────────────────────────────────────────────────────────
# query
# ─────────────────────────────────────────────────────────────────


class TestQuery:
    @pytest.mark.asyncio
    async def test_posts_enriched_body(self, settings, make_transport, recorded_requests):
        transport = make_transport(lambda request: (200, QUERY_REPLY))
        service = GenieAPIService(settings=settings, transport=transport)

        result = await service.query(
            "How was my week?",
            session_id="s-1",
            conversation_history=[ConversationMessage(role="user", text="hi")],
            location=(59.3, 18.0),
        )

        request = recorded_requests[0]
        body = json.loads(request.content)
        assert str(request.url) == f"{settings.GENIE_API_BASE_URL}/query"
        assert request.headers["X-User-Id"] == "user-1"
        assert body["sessionId"] == "s-1"
        assert body["query"].startswith("[CONTEXT]\nunits: imperial")
        assert body["conversationHistory"] == [{"role": "user", "text": "hi"}]
        assert body["isVoiceInput"] is False
        assert "latitude" not in body

        assert result.tokensRemaining == 488
        assert result.actions[0].type == "meditation"

    @pytest.mark.asyncio
    async def test_restaurant_query_sends_location(self, settings, make_transport, recorded_requests):
        transport = make_transport(lambda request: (200, QUERY_REPLY))
        service = GenieAPIService(settings=settings, transport=transport)

        await service.query("Find a restaurant near me", location=(59.3, 18.0))

        body = json.loads(recorded_requests[0].content)
        assert (body["latitude"], body["longitude"]) == (59.3, 18.0)

    @pytest.mark.asyncio
    async def test_402_raises_insufficient_tokens_with_upsell(self, settings, make_transport):
        upsell = {"error": "Not enough tokens", "required": 50, "balance": 3, "suggestedPack": "small"}
        transport = make_transport(lambda request: (402, upsell))
        service = GenieAPIService(settings=settings, transport=transport)

        with pytest.raises(InsufficientTokensException) as exc_info:
            await service.query("Plan my week")

        assert exc_info.value.status_code == 402
        assert exc_info.value.message == "Not enough tokens"
        assert exc_info.value.upsell["suggestedPack"] == "small"

    @pytest.mark.asyncio
    async def test_other_errors_raise_http_status(self, settings, make_transport):
        transport = make_transport(lambda request: (502, {"message": "bad gateway"}))
        service = GenieAPIService(settings=settings, transport=transport)

        with pytest.raises(ServerException):
            await service.query("hello")

    @pytest.mark.asyncio
    async def test_structured_analysis_parsed_from_reply(self, settings, make_transport):
        reply = dict(QUERY_REPLY, response='{"summary": "Good", "analysis": {"recovery": "rest"}}')
        transport = make_transport(lambda request: (200, reply))
        service = GenieAPIService(settings=settings, transport=transport)

        result = await service.query("Analyse my training")

        assert result.structuredAnalysis.analysis.recovery == "rest"

    @pytest.mark.asyncio
    async def test_requires_auth_token(self, settings, make_transport):
        settings.AUTH_TOKEN = None
        service = GenieAPIService(settings=settings, transport=make_transport(lambda r: (200, QUERY_REPLY)))

        with pytest.raises(UnauthorizedException):
            await service.query("hello")


# ─────────────────────────────────────────────────────────────────
# Tokens & subscriptions
# ─────────────────────────────────────────────────────────────────


class TestTokenBalance:
    @pytest.mark.asyncio
    async def test_balance_is_cached(self, settings, make_transport, recorded_requests):
        transport = make_transport(lambda request: (200, {"balance": 120}))
        service = GenieAPIService(settings=settings, transport=transport)

        first = await service.get_token_balance()
        second = await service.get_token_balance()

        assert first.balance == second.balance == 120
        assert len(recorded_requests) == 1

    @pytest.mark.asyncio
    async def test_clear_cache_forces_refetch(self, settings, make_transport, recorded_requests):
        transport = make_transport(lambda request: (200, {"balance": 120}))
        service = GenieAPIService(settings=settings, transport=transport)

        await service.get_token_balance()
        service.clear_token_balance_cache()
        await service.get_token_balance()

        assert len(recorded_requests) == 2

    @pytest.mark.asyncio
    async def test_forbidden_raises_unauthorized(self, settings, make_transport):
        transport = make_transport(lambda request: (403, {"error": "forbidden"}))
        service = GenieAPIService(settings=settings, transport=transport)

        with pytest.raises(UnauthorizedException) as exc_info:
            await service.get_token_balance()

        assert exc_info.value.status_code == 403


class TestSubscriptions:
    @pytest.mark.asyncio
    async def test_prices_empty_when_endpoint_missing(self, settings, make_transport):
        transport = make_transport(lambda request: (404, {"error": "not found"}))
        service = GenieAPIService(settings=settings, transport=transport)

        assert await service.get_subscription_prices() == []

    @pytest.mark.asyncio
    async def test_prices_decoded(self, settings, make_transport):
        transport = make_transport(lambda request: (200, [{
            "tier": "pro", "monthlyPrice": 9.99, "annualPrice": 99.0,
            "monthlyPriceId": "price_m", "annualPriceId": "price_a",
        }]))
        service = GenieAPIService(settings=settings, transport=transport)

        prices = await service.get_subscription_prices()

        assert prices[0].monthlyPriceId == "price_m"

    @pytest.mark.asyncio
    async def test_create_subscription_body(self, settings, make_transport, recorded_requests):
        transport = make_transport(lambda request: (200, {"status": "active"}))
        service = GenieAPIService(settings=settings, transport=transport)

        result = await service.create_subscription("pro", "price_m", "pm_1")

        assert json.loads(recorded_requests[0].content) == {
            "tier": "pro", "priceId": "price_m", "paymentMethodId": "pm_1",
        }
        assert result == {"status": "active"}


# ─────────────────────────────────────────────────────────────────
# Nutrition log
# ─────────────────────────────────────────────────────────────────


class TestNutritionLog:
    @pytest.mark.asyncio
    async def test_save_entry_body(self, settings, make_transport, recorded_requests):
        transport = make_transport(lambda request: (200, {"success": True}))
        service = GenieAPIService(settings=settings, transport=transport)
        entry = FoodEntry(
            id="food-1", userId="user-1", name="Oatmeal", mealType="breakfast",
            calories=300, protein=10, carbs=50, fat=6, servingSize="1 bowl",
            timestamp=datetime(2025, 3, 1, 8, 0, tzinfo=timezone.utc),
        )

        await service.save_nutrition_entry(entry)

        body = json.loads(recorded_requests[0].content)
        assert body["nutritionId"] == "food-1"
        assert body["entryType"] == "food"
        assert body["consumedAt"] == "2025-03-01T08:00:00Z"
        assert body["servingSize"] == "1 bowl"
        assert "notes" not in body
        assert "recipeId" not in body

    @pytest.mark.parametrize("payload", [
        {"items": [{"nutritionId": "a"}]},
        {"data": [{"nutritionId": "a"}]},
        {"entries": [{"nutritionId": "a"}]},
        [{"nutritionId": "a"}],
    ])
    @pytest.mark.asyncio
    async def test_history_accepts_every_envelope(self, settings, make_transport, payload):
        transport = make_transport(lambda request: (200, payload))
        service = GenieAPIService(settings=settings, transport=transport)

        assert await service.get_nutrition_history() == [{"nutritionId": "a"}]

    @pytest.mark.asyncio
    async def test_delete_accepts_no_content(self, settings, make_transport, recorded_requests):
        transport = make_transport(lambda request: (204, b""))
        service = GenieAPIService(settings=settings, transport=transport)

        await service.delete_nutrition_entry("food-1")

        assert recorded_requests[0].method == "DELETE"
        assert recorded_requests[0].url.path == "/nutrition/food-1"


# ─────────────────────────────────────────────────────────────────
# Conversation store
# ─────────────────────────────────────────────────────────────────


class TestConversationStore:
    @pytest.mark.asyncio
    async def test_list_conversations(self, settings, make_transport, recorded_requests):
        transport = make_transport(lambda request: (200, {"conversations": [
            {"conversationId": "c1", "title": "Marathon prep"},
        ]}))
        service = GenieConversationStoreService(settings=settings, transport=transport)

        conversations = await service.list_conversations("user-1")

        assert recorded_requests[0].url.params["ownerId"] == "user-1"
        assert recorded_requests[0].url.params["limit"] == "50"
        assert conversations[0].title == "Marathon prep"

    @pytest.mark.asyncio
    async def test_missing_conversation_is_none(self, settings, make_transport):
        transport = make_transport(lambda request: (404, {"error": "not found"}))
        service = GenieConversationStoreService(settings=settings, transport=transport)

        assert await service.get_conversation("c404") is None

    @pytest.mark.asyncio
    async def test_delete_accepts_204(self, settings, make_transport):
        transport = make_transport(lambda request: (204, b""))
        service = GenieConversationStoreService(settings=settings, transport=transport)

        await service.delete_conversation("c1")

    @pytest.mark.asyncio
    async def test_append_message_sends_optional_fields(self, settings, make_transport, recorded_requests):
        transport = make_transport(lambda request: (200, {
            "messageId": "m1", "conversationId": "c1", "role": "assistant", "text": "Hi!",
        }))
        service = GenieConversationStoreService(settings=settings, transport=transport)

        message = await service.append_message("c1", "assistant", "Hi!", model="genie-large")

        assert json.loads(recorded_requests[0].content) == {
            "conversationId": "c1", "role": "assistant", "text": "Hi!", "model": "genie-large",
        }
        assert message.messageId == "m1"

    @pytest.mark.asyncio
    async def test_error_message_from_body(self, settings, make_transport):
        transport = make_transport(lambda request: (400, {"error": "title required"}))
        service = GenieConversationStoreService(settings=settings, transport=transport)

        with pytest.raises(HTTPStatusException) as exc_info:
            await service.create_conversation("", "user-1")

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "title required"
