"""
Genie user learning.

Keeps a short per-activity history of what the user does (meditations,
food logs, conversation insights) in the local store and condenses it
into preferences the assistant can use as context.
"""

import logging
import time
from collections import Counter
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

from do_app.schemas.genie import ConversationMessage
from do_common.storage import JSONStore

logger = logging.getLogger(__name__)


KEY_PREFIX = "userLearning_"
INSIGHTS_ACTIVITY = "conversation_insights"
INSIGHTS_CACHE_SECONDS = 300
SUMMARY_MAX_LENGTH = 200

_TOPIC_RULES = (
    ("meditation", ("meditat", "stress", "anxiety", "relax")),
    ("fitness", ("workout", "exercise", "train", "gym")),
    ("nutrition", ("food", "meal", "nutrition", "calorie", "diet")),
)
_GOAL_RULES = (
    ("weight_loss", ("lose", "weight", "slim")),
    ("muscle_gain", ("gain", "muscle", "bulk")),
    ("running", ("run", "marathon", "endurance")),
    ("flexibility", ("flexible", "stretch")),
    ("better_sleep", ("sleep", "rest")),
    ("more_energy", ("energy", "energetic")),
)
_GOAL_TRIGGERS = ("goal", "want to", "looking to", "trying to")


def _top(counter: Counter, n: int) -> List[str]:
    return [key for key, _ in counter.most_common(n)]


class GenieUserLearningService:
    """
    Local learning history and derived preferences.
    """

    def __init__(self, store: JSONStore, history_limit: int = 200):
        """
        Initialize GenieUserLearningService.

        Args:
            store: Local JSON store
            history_limit: Entries kept per activity, newest first
        """
        self._store = store
        self._history_limit = history_limit
        self._cached_insights: Optional[Dict[str, Any]] = None
        self._cache_time: Optional[float] = None

    # =========================================================================
    # History
    # =========================================================================

    def update_user_learning(self, activity: str, data: Dict[str, Any]) -> None:
        """
        Record one activity event.

        Args:
            activity: Activity name ("meditation", "food", ...)
            data: JSON-serialisable event payload
        """
        history = self.get_history(activity)
        history.insert(0, data)
        del history[self._history_limit:]

        self._store.set(f"{KEY_PREFIX}{activity}", history)
        logger.debug(f"Saved {activity} learning data (count: {len(history)})")

    def get_history(self, activity: str) -> List[Dict[str, Any]]:
        history = self._store.get(f"{KEY_PREFIX}{activity}")
        if not isinstance(history, list):
            return []
        return [entry for entry in history if isinstance(entry, dict)]

    def get_user_preferences(self) -> Dict[str, Any]:
        """
        Preferences derived from the meditation and food histories.

        Returns:
            {"meditation": {...}, "food": {...}}, each key present only
            when that history exists
        """
        preferences: Dict[str, Any] = {}

        meditation = self.get_history("meditation")
        if meditation:
            preferences["meditation"] = _meditation_preferences(meditation)

        food = self.get_history("food")
        if food:
            preferences["food"] = _food_preferences(food)

        return preferences

    # =========================================================================
    # Conversation insights
    # =========================================================================

    def extract_conversation_insights(
        self,
        conversation_id: str,
        messages: List[ConversationMessage],
    ) -> Dict[str, Any]:
        """
        Derive topics, goals and style from the user's messages and record them.

        Args:
            conversation_id: Conversation analysed
            messages: Whole conversation; only user turns are read

        Returns:
            The recorded insight entry
        """
        topics: Counter = Counter()
        goals: Counter = Counter()
        interests: Counter = Counter()
        features: Counter = Counter()
        preferences: List[str] = []
        questions = 0
        lengths: List[int] = []

        for message in messages:
            if message.role != "user":
                continue

            text = message.text.lower()
            lengths.append(len(message.text))

            if any(w in text for w in ("prefer", "usually", "typically")):
                preferences.append(message.text)
            if any(w in text for w in ("don't like", "don't want", "avoid")):
                preferences.append(f"dislikes: {message.text}")

            for topic, words in _TOPIC_RULES:
                if any(w in text for w in words):
                    topics[topic] += 1
                    features[topic] += 1

            if any(w in text for w in _TOPIC_RULES[0][1]):
                if "stress" in text or "anxiety" in text:
                    interests["stress_relief"] += 1
                if "sleep" in text or "bedtime" in text:
                    interests["sleep_improvement"] += 1

            if "equipment" in text or "scanner" in text:
                features["equipment_scanner"] += 1
            if "story" in text or "bedtime" in text:
                features["bedtime_story"] += 1

            if any(w in text for w in _GOAL_TRIGGERS):
                for goal, words in _GOAL_RULES:
                    if any(w in text for w in words):
                        goals[goal] += 1

            if "?" in text or any(w in text for w in ("how", "what", "why", "when")):
                questions += 1

        insight = {
            "conversationId": conversation_id,
            "messageCount": len(messages),
            "topics": _top(topics, 3),
            "interests": _top(interests, 3),
            "goals": _top(goals, 3),
            "questionCount": questions,
            "communicationStyle": _communication_style(lengths),
            "preferences": preferences[:5],
            "featureUsage": _top(features, 3),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

        self.update_user_learning(INSIGHTS_ACTIVITY, insight)
        self.clear_cache()
        logger.info(
            f"Conversation insights: topics={insight['topics']}, goals={insight['goals']}, "
            f"style={insight['communicationStyle']}"
        )
        return insight

    def get_conversation_insights(self) -> Dict[str, Any]:
        """Aggregate every recorded conversation insight (cached for 5 minutes)."""
        if (
            self._cached_insights is not None
            and self._cache_time is not None
            and time.monotonic() - self._cache_time < INSIGHTS_CACHE_SECONDS
        ):
            return self._cached_insights

        history = self.get_history(INSIGHTS_ACTIVITY)
        if not history:
            return {}

        topics: Counter = Counter()
        interests: Counter = Counter()
        goals: Counter = Counter()
        styles: Counter = Counter()
        features: Counter = Counter()
        preferences: List[str] = []

        for insight in history:
            topics.update(insight.get("topics") or [])
            interests.update(insight.get("interests") or [])
            goals.update(insight.get("goals") or [])
            features.update(insight.get("featureUsage") or [])
            preferences.extend(insight.get("preferences") or [])
            if insight.get("communicationStyle"):
                styles[insight["communicationStyle"]] += 1

        aggregated = {
            "topTopics": _top(topics, 5),
            "topInterests": _top(interests, 5),
            "topGoals": _top(goals, 5),
            "communicationStyle": styles.most_common(1)[0][0] if styles else "balanced",
            "preferences": preferences[:3],
            "featureUsage": _top(features, 3),
            "totalConversations": len(history),
        }

        self._cached_insights = aggregated
        self._cache_time = time.monotonic()
        return aggregated

    def get_insight_summary(self) -> str:
        """Short "Interests: ... Goals: ... Prefers: ..." line for query context."""
        insights = self.get_conversation_insights()
        parts = []

        if insights.get("topTopics"):
            parts.append(f"Interests: {', '.join(insights['topTopics'])}")
        if insights.get("topGoals"):
            parts.append(f"Goals: {', '.join(insights['topGoals'])}")
        if insights.get("communicationStyle"):
            parts.append(f"Prefers: {insights['communicationStyle']} responses")

        summary = ". ".join(parts)
        if len(summary) > SUMMARY_MAX_LENGTH:
            return summary[:SUMMARY_MAX_LENGTH - 3] + "..."
        return summary

    def clear_cache(self) -> None:
        self._cached_insights = None
        self._cache_time = None


# =============================================================================
# Preference extraction
# =============================================================================

def _meditation_preferences(history: List[Dict[str, Any]]) -> Dict[str, Any]:
    focus_counts = Counter(e["focus"] for e in history if isinstance(e.get("focus"), str))
    durations = [e["duration"] for e in history if isinstance(e.get("duration"), (int, float))]
    completed = sum(1 for e in history if e.get("completed") is True)

    return {
        "favoriteFocus": focus_counts.most_common(1)[0][0] if focus_counts else "stress",
        "averageDuration": int(sum(durations) / len(history)) if history else 10,
        "completedSessions": completed,
        "totalSessions": len(history),
    }


def _food_preferences(history: List[Dict[str, Any]]) -> Dict[str, Any]:
    meal_counts = Counter(e["mealType"] for e in history if isinstance(e.get("mealType"), str))
    food_counts = Counter(e["name"].lower() for e in history if isinstance(e.get("name"), str))
    calories = [e["calories"] for e in history if isinstance(e.get("calories"), (int, float))]

    return {
        "mostLoggedMeal": meal_counts.most_common(1)[0][0] if meal_counts else "breakfast",
        "topFoods": _top(food_counts, 5),
        "averageCalories": round(sum(calories) / len(calories)) if calories else 0,
        "totalLogs": len(history),
        "loggingFrequency": "regular" if history else "new",
    }


def _communication_style(lengths: List[int]) -> str:
    if not lengths:
        return "balanced"
    average = sum(lengths) // len(lengths)
    if average < 30:
        return "brief"
    if average > 80:
        return "detailed"
    return "balanced"
