"""Genie assistant services."""

from do_app.services.genie.genie_api_service import GenieAPIService
from do_app.services.genie.conversation_store_service import GenieConversationStoreService
from do_app.services.genie.user_learning_service import GenieUserLearningService

__all__ = [
    "GenieAPIService",
    "GenieConversationStoreService",
    "GenieUserLearningService",
]
