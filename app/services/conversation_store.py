"""In-memory conversation store.

One ``ConversationState`` per sender id, process lifetime only. Callers that
read, transition and write back a sender's state must hold ``lock(sender_id)``
for the whole sequence; different senders never contend for the same lock.
"""

import threading
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Iterator, Optional

from app.logging_config import get_logger
from app.models.conversation import ConversationState

logger = get_logger("conversation_store")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryConversationStore:
    def __init__(self, idle_timeout: Optional[timedelta] = None):
        self.idle_timeout = idle_timeout
        self._states: dict[str, ConversationState] = {}
        self._names: dict[str, str] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    @contextmanager
    def lock(self, sender_id: str) -> Iterator[None]:
        with self._guard:
            sender_lock = self._locks.setdefault(sender_id, threading.Lock())
        with sender_lock:
            yield

    def get(self, sender_id: str, now: Optional[datetime] = None) -> ConversationState:
        """Get or create. An idle state is silently replaced by a fresh one."""
        now = now or _utcnow()
        with self._guard:
            state = self._states.get(sender_id)
            if state is not None and state.is_idle(now, self.idle_timeout):
                logger.info(
                    "Discarding idle conversation",
                    extra={"context": {"sender_id": sender_id, "step": state.step.value}},
                )
                state = None
            if state is None:
                state = ConversationState.fresh(sender_id, now)
                self._states[sender_id] = state
            return state

    def put(self, sender_id: str, state: ConversationState) -> None:
        with self._guard:
            self._states[sender_id] = state

    def remove(self, sender_id: str) -> None:
        with self._guard:
            self._states.pop(sender_id, None)

    def remember_name(self, sender_id: str, name: Optional[str]) -> None:
        if not name or not name.strip():
            return
        with self._guard:
            self._names[sender_id] = name.strip()

    def known_name(self, sender_id: str) -> Optional[str]:
        with self._guard:
            return self._names.get(sender_id)

    def evict_idle(self, now: Optional[datetime] = None) -> list[str]:
        """Drop every state idle longer than the timeout; return evicted sender ids."""
        if not self.idle_timeout:
            return []
        now = now or _utcnow()
        with self._guard:
            expired = [sid for sid, state in self._states.items() if state.is_idle(now, self.idle_timeout)]
            for sender_id in expired:
                del self._states[sender_id]
        return expired

    def snapshot(self) -> list[ConversationState]:
        with self._guard:
            return list(self._states.values())

    def __contains__(self, sender_id: object) -> bool:
        with self._guard:
            return sender_id in self._states

    def __len__(self) -> int:
        with self._guard:
            return len(self._states)


class RecentMessageIds:
    """Remembers provider message ids for a while to drop redelivered webhooks."""

    def __init__(self, ttl_seconds: float = 3600):
        self.ttl = timedelta(seconds=ttl_seconds)
        self._seen: dict[str, datetime] = {}
        self._guard = threading.Lock()

    def seen(self, message_id: Optional[str], now: Optional[datetime] = None) -> bool:
        """Record ``message_id``; True if it was already recorded within the TTL."""
        if not message_id:
            return False
        now = now or _utcnow()
        with self._guard:
            self._purge(now)
            if message_id in self._seen:
                return True
            self._seen[message_id] = now
            return False

    def _purge(self, now: datetime) -> None:
        cutoff = now - self.ttl
        stale = [mid for mid, seen_at in self._seen.items() if seen_at < cutoff]
        for message_id in stale:
            del self._seen[message_id]
