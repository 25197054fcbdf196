from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ConversationSummary(BaseModel):
    sender_id: str
    step: str
    category: Optional[str] = None
    collected_fields: list[str]
    updated_at: datetime


class ConversationListResponse(BaseModel):
    count: int
    conversations: list[ConversationSummary]


class ConversationResetResponse(BaseModel):
    success: bool
    sender_id: str
    existed: bool
