from typing import Any, Optional

from pydantic import ValidationError

from app.logging_config import get_logger
from app.models.message import InboundMessage, MessageKind
from app.schemas.webhook import WhatsAppContact, WhatsAppMessage, WhatsAppWebhookPayload

logger = get_logger("normalizer")


def _coerce_timestamp(value: Optional[str]) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _contact_name(contacts: list[WhatsAppContact], sender_id: str) -> Optional[str]:
    """Profile name of the contact matching the sender, else of the first contact."""
    matched = next((c for c in contacts if c.wa_id == sender_id), None)
    contact = matched or (contacts[0] if contacts else None)
    if contact and contact.profile and contact.profile.name:
        return contact.profile.name.strip() or None
    return None


def _message_text(message: WhatsAppMessage) -> Optional[str]:
    """Text body for kinds we can read, None for everything else."""
    if message.type == "text":
        return message.text.body if message.text and message.text.body is not None else ""
    if message.type == "interactive" and message.interactive:
        reply = message.interactive.button_reply or message.interactive.list_reply
        if reply:
            return reply.title or reply.id or ""
    if message.type == "button" and message.button:
        return message.button.text or message.button.payload or ""
    return None


def _to_inbound(message: WhatsAppMessage, contacts: list[WhatsAppContact]) -> Optional[InboundMessage]:
    sender_id = (message.from_number or "").strip()
    if not sender_id:
        return None

    text = _message_text(message)
    return InboundMessage(
        sender_id=sender_id,
        body=text if text is not None else "",
        kind=MessageKind.TEXT if text is not None else MessageKind.OTHER,
        display_name=_contact_name(contacts, sender_id),
        message_id=message.id,
        timestamp=_coerce_timestamp(message.timestamp),
    )


def extract_messages(payload: Any) -> list[InboundMessage]:
    """Every user message carried by a webhook payload, in delivery order.

    Status callbacks, unknown shapes and invalid payloads yield an empty list.
    """
    if not isinstance(payload, dict):
        return []
    try:
        parsed = WhatsAppWebhookPayload.model_validate(payload)
    except ValidationError as e:
        logger.warning(f"Unparseable webhook payload: {e.error_count()} validation errors")
        return []

    messages: list[InboundMessage] = []
    for entry in parsed.entry or []:
        for change in entry.changes or []:
            value = change.value
            if value is None or not value.messages:
                continue
            contacts = value.contacts or []
            for raw in value.messages:
                inbound = _to_inbound(raw, contacts)
                if inbound is not None:
                    messages.append(inbound)
    return messages


def normalize_payload(payload: Any) -> Optional[InboundMessage]:
    """First user message of the payload, or None when it carries none."""
    messages = extract_messages(payload)
    return messages[0] if messages else None
