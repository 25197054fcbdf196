"""Process-wide singletons handed to routers through FastAPI dependencies.

Tests swap them with ``app.dependency_overrides``.
"""

from datetime import timedelta

from app.config import settings
from app.services.conversation_store import InMemoryConversationStore, RecentMessageIds
from app.services.dialogue_engine import DialogueEngine
from app.services.flow import DEFAULT_FLOW

_store = InMemoryConversationStore(
    idle_timeout=timedelta(minutes=settings.conversation_idle_minutes)
    if settings.conversation_idle_minutes > 0
    else None
)
_engine = DialogueEngine(DEFAULT_FLOW.with_business_name(settings.business_name))
_recent_message_ids = RecentMessageIds(ttl_seconds=settings.dedup_ttl_seconds)


def get_store() -> InMemoryConversationStore:
    return _store


def get_engine() -> DialogueEngine:
    return _engine


def get_recent_message_ids() -> RecentMessageIds:
    return _recent_message_ids
