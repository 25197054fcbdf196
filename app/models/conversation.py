from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional


class StepId(str, Enum):
    START = "start"  # category menu shown, waiting for "1".."4"
    AWAITING_NAME = "awaiting_name"
    AWAITING_PRODUCT_CATEGORY = "awaiting_product_category"
    AWAITING_SALESMAN = "awaiting_salesman"
    AWAITING_SHOP = "awaiting_shop"
    AWAITING_ADDRESS = "awaiting_address"
    AWAITING_COMPLAINT_DETAIL = "awaiting_complaint_detail"
    AWAITING_ORDER_DETAIL = "awaiting_order_detail"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ConversationState:
    sender_id: str
    step: StepId = StepId.START
    category: Optional[str] = None  # Category.key once chosen
    collected: dict[str, str] = field(default_factory=dict)
    updated_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def fresh(cls, sender_id: str, now: Optional[datetime] = None) -> "ConversationState":
        return cls(sender_id=sender_id, updated_at=now or _utcnow())

    def is_idle(self, now: datetime, timeout: Optional[timedelta]) -> bool:
        if not timeout:
            return False
        return now - self.updated_at > timeout
