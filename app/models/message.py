from dataclasses import dataclass
from enum import Enum
from typing import Optional


class MessageKind(str, Enum):
    TEXT = "text"
    OTHER = "other"  # image, audio, location, sticker, ...


@dataclass(frozen=True)
class InboundMessage:
    """Provider-independent view of one message a sender wrote to us."""

    sender_id: str
    body: str = ""
    kind: MessageKind = MessageKind.TEXT
    display_name: Optional[str] = None
    message_id: Optional[str] = None
    timestamp: Optional[int] = None

    @property
    def is_text(self) -> bool:
        return self.kind == MessageKind.TEXT


@dataclass(frozen=True)
class OutboundMessage:
    recipient: str
    text: str
