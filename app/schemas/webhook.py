"""WhatsApp Cloud API webhook payload.

Every field is optional: status callbacks, test pings and partially formed
payloads must validate and simply yield no messages.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class WhatsAppProfile(BaseModel):
    name: Optional[str] = None


class WhatsAppContact(BaseModel):
    wa_id: Optional[str] = None
    profile: Optional[WhatsAppProfile] = None


class WhatsAppText(BaseModel):
    body: Optional[str] = None


class WhatsAppReply(BaseModel):
    id: Optional[str] = None
    title: Optional[str] = None


class WhatsAppInteractive(BaseModel):
    type: Optional[str] = None  # button_reply, list_reply
    button_reply: Optional[WhatsAppReply] = None
    list_reply: Optional[WhatsAppReply] = None


class WhatsAppButton(BaseModel):
    text: Optional[str] = None
    payload: Optional[str] = None


class WhatsAppMessage(BaseModel):
    id: Optional[str] = None
    from_number: Optional[str] = Field(default=None, alias="from")  # "from" is reserved in Python
    timestamp: Optional[str] = None
    type: Optional[str] = None  # text, image, audio, interactive, button, ...
    text: Optional[WhatsAppText] = None
    interactive: Optional[WhatsAppInteractive] = None
    button: Optional[WhatsAppButton] = None

    model_config = ConfigDict(populate_by_name=True)


class WhatsAppStatus(BaseModel):
    id: Optional[str] = None
    status: Optional[str] = None  # sent, delivered, read, failed
    recipient_id: Optional[str] = None


class WhatsAppValue(BaseModel):
    messaging_product: Optional[str] = None
    metadata: Optional[dict] = None
    contacts: Optional[list[WhatsAppContact]] = None
    messages: Optional[list[WhatsAppMessage]] = None
    statuses: Optional[list[WhatsAppStatus]] = None


class WhatsAppChange(BaseModel):
    field: Optional[str] = None
    value: Optional[WhatsAppValue] = None


class WhatsAppEntry(BaseModel):
    id: Optional[str] = None
    changes: Optional[list[WhatsAppChange]] = None


class WhatsAppWebhookPayload(BaseModel):
    object: Optional[str] = None
    entry: Optional[list[WhatsAppEntry]] = None


class WebhookResponse(BaseModel):
    success: bool
    message: str
    processed: int = 0
