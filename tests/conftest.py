from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from app.dependencies import get_engine, get_recent_message_ids, get_store
from app.main import app
from app.services.conversation_store import InMemoryConversationStore, RecentMessageIds
from app.services.dialogue_engine import DialogueEngine
from app.services.flow import DEFAULT_FLOW
from factories import NOW


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def store():
    return InMemoryConversationStore(idle_timeout=timedelta(minutes=30))


@pytest.fixture
def engine():
    return DialogueEngine(DEFAULT_FLOW)


@pytest.fixture
def recent_ids():
    return RecentMessageIds(ttl_seconds=3600)


@pytest.fixture
def client(store, engine, recent_ids):
    """TestClient wired to per-test store/engine instances."""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_engine] = lambda: engine
    app.dependency_overrides[get_recent_message_ids] = lambda: recent_ids
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
