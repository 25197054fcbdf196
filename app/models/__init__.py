from app.models.conversation import ConversationState, StepId
from app.models.message import InboundMessage, MessageKind, OutboundMessage
from app.models.record import FinalizedRecord

__all__ = [
    "ConversationState",
    "StepId",
    "InboundMessage",
    "MessageKind",
    "OutboundMessage",
    "FinalizedRecord",
]
