"""Admin endpoints for inspecting and resetting live conversations."""

from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status

from app.config import settings
from app.dependencies import get_store
from app.logging_config import get_logger
from app.schemas.admin import ConversationListResponse, ConversationResetResponse, ConversationSummary
from app.services.conversation_store import InMemoryConversationStore

logger = get_logger("admin")

router = APIRouter(prefix="/admin", tags=["admin"])

ADMIN_TOKEN = settings.admin_token


def _require_admin_token(provided: Optional[str]) -> None:
    if not ADMIN_TOKEN:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="ADMIN_TOKEN not configured",
        )
    if not provided or provided != ADMIN_TOKEN:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid admin token")


@router.get("/conversations", response_model=ConversationListResponse)
def list_conversations(
    x_admin_token: Optional[str] = Header(default=None, alias="X-Admin-Token"),
    store: InMemoryConversationStore = Depends(get_store),
):
    _require_admin_token(x_admin_token)
    states = sorted(store.snapshot(), key=lambda s: s.updated_at, reverse=True)
    return ConversationListResponse(
        count=len(states),
        conversations=[
            ConversationSummary(
                sender_id=s.sender_id,
                step=s.step.value,
                category=s.category,
                collected_fields=sorted(s.collected),
                updated_at=s.updated_at,
            )
            for s in states
        ],
    )


@router.delete("/conversations/{sender_id}", response_model=ConversationResetResponse)
def reset_conversation(
    sender_id: str,
    x_admin_token: Optional[str] = Header(default=None, alias="X-Admin-Token"),
    store: InMemoryConversationStore = Depends(get_store),
):
    _require_admin_token(x_admin_token)
    with store.lock(sender_id):
        existed = sender_id in store
        store.remove(sender_id)
    logger.info(f"Admin reset conversation for {sender_id}", extra={"context": {"existed": existed}})
    return ConversationResetResponse(success=True, sender_id=sender_id, existed=existed)
