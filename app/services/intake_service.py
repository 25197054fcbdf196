from datetime import datetime, timezone
from typing import Optional

from app.logging_config import LoggerAdapter, get_logger
from app.models.message import InboundMessage
from app.services import sheets_service, whatsapp_service
from app.services.conversation_store import InMemoryConversationStore
from app.services.dialogue_engine import DialogueEngine, Turn

logger = get_logger("intake_service")


def process_message(
    store: InMemoryConversationStore,
    engine: DialogueEngine,
    message: InboundMessage,
    now: Optional[datetime] = None,
) -> Turn:
    """Run one inbound message through the engine and write the result back.

    get -> advance -> put/remove happens under the sender's lock, so two
    messages from the same sender are applied one after the other.
    """
    now = now or datetime.now(timezone.utc)
    log = LoggerAdapter(logger, {"sender_id": message.sender_id})
    log.info(
        f"New message from {message.display_name or 'unknown'}: {message.body[:100]}",
        context={"kind": message.kind.value, "message_id": message.message_id},
    )

    store.remember_name(message.sender_id, message.display_name)

    with store.lock(message.sender_id):
        state = store.get(message.sender_id, now=now)
        previous_step = state.step
        turn = engine.advance(state, message, now=now, known_name=store.known_name(message.sender_id))
        if turn.finished:
            store.remove(message.sender_id)
        else:
            store.put(message.sender_id, turn.state)

    log.info(
        "Conversation advanced",
        context={
            "from_step": previous_step.value,
            "to_step": turn.state.step.value if turn.state else "finished",
            "reset": turn.reset,
            "finalized": turn.record is not None,
        },
    )
    return turn


def deliver_turn(turn: Turn) -> dict:
    """Send the turn's replies and persist its record. Failures are logged, not raised."""
    sent = 0
    failed = 0
    for reply in turn.replies:
        if whatsapp_service.send_text_message(reply.recipient, reply.text):
            sent += 1
        else:
            failed += 1
            logger.warning("Reply not delivered", extra={"context": {"to": reply.recipient}})

    persisted = None
    if turn.record is not None:
        persisted = sheets_service.append_record(turn.record)

    return {"sent": sent, "failed": failed, "persisted": persisted}
