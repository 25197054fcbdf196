from app.schemas.admin import ConversationListResponse, ConversationResetResponse, ConversationSummary
from app.schemas.webhook import WebhookResponse, WhatsAppWebhookPayload

__all__ = [
    "WhatsAppWebhookPayload",
    "WebhookResponse",
    "ConversationSummary",
    "ConversationListResponse",
    "ConversationResetResponse",
]
