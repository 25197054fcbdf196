import json
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from fastapi.responses import PlainTextResponse

from app.config import settings
from app.dependencies import get_engine, get_recent_message_ids, get_store
from app.logging_config import get_logger
from app.schemas.webhook import WebhookResponse
from app.services.conversation_store import InMemoryConversationStore, RecentMessageIds
from app.services.dialogue_engine import DialogueEngine
from app.services.intake_service import deliver_turn, process_message
from app.services.normalizer import extract_messages

logger = get_logger("webhook")

router = APIRouter()

VERIFY_TOKEN = settings.verify_token


async def parse_webhook_body(request: Request) -> Optional[dict]:
    """
    Parse the provider payload with tolerant decoding.
    Returns dict or None.
    """
    try:
        return await request.json()
    except Exception as e:
        logger.warning(f"Standard request.json() failed: {e}, fallback decoding")

    raw = await request.body()
    for enc in ("utf-8", "latin-1"):
        try:
            return json.loads(raw.decode(enc, errors="replace"))
        except ValueError:
            continue

    logger.error("Failed to decode webhook payload after fallbacks")
    return None


def is_valid_subscription(mode: Optional[str], token: Optional[str]) -> bool:
    return mode == "subscribe" and bool(VERIFY_TOKEN) and token == VERIFY_TOKEN


@router.get("/webhook", response_class=PlainTextResponse)
async def verify_webhook(
    hub_mode: Optional[str] = Query(default=None, alias="hub.mode"),
    hub_verify_token: Optional[str] = Query(default=None, alias="hub.verify_token"),
    hub_challenge: Optional[str] = Query(default=None, alias="hub.challenge"),
):
    """Subscription handshake: echo the challenge when the token matches."""
    if is_valid_subscription(hub_mode, hub_verify_token):
        logger.info("Webhook verified")
        return PlainTextResponse(hub_challenge or "", status_code=200)
    logger.warning(f"Webhook verification failed: mode={hub_mode}")
    return PlainTextResponse("", status_code=403)


@router.post("/webhook", response_model=WebhookResponse)
async def receive_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    store: InMemoryConversationStore = Depends(get_store),
    engine: DialogueEngine = Depends(get_engine),
    recent_ids: RecentMessageIds = Depends(get_recent_message_ids),
):
    """
    Handle provider events:
    - user messages -> dialogue engine, replies/record delivered in background
    - status callbacks and malformed payloads -> acknowledged, nothing else
    Always answers 200 so the provider doesn't redeliver.
    """
    body = await parse_webhook_body(request)
    if body is None:
        return WebhookResponse(success=False, message="Invalid payload")

    messages = extract_messages(body)
    if not messages:
        logger.debug("Webhook without user messages")
        return WebhookResponse(success=True, message="No user message")

    processed = 0
    for message in messages:
        if recent_ids.seen(message.message_id):
            logger.info(
                "Duplicate delivery skipped",
                extra={"context": {"sender_id": message.sender_id, "message_id": message.message_id}},
            )
            continue
        try:
            turn = process_message(store, engine, message)
        except Exception as e:
            logger.error(
                f"Failed to process message: {e}",
                exc_info=True,
                extra={"context": {"sender_id": message.sender_id}},
            )
            continue
        background_tasks.add_task(deliver_turn, turn)
        processed += 1

    return WebhookResponse(success=True, message=f"Processed {processed} message(s)", processed=processed)


# Root path kept for apps whose callback URL was registered without /webhook
@router.get("/", response_class=PlainTextResponse, include_in_schema=False)
async def verify_webhook_root(
    hub_mode: Optional[str] = Query(default=None, alias="hub.mode"),
    hub_verify_token: Optional[str] = Query(default=None, alias="hub.verify_token"),
    hub_challenge: Optional[str] = Query(default=None, alias="hub.challenge"),
):
    return await verify_webhook(hub_mode, hub_verify_token, hub_challenge)


@router.post("/", response_model=WebhookResponse, include_in_schema=False)
async def receive_webhook_root(
    request: Request,
    background_tasks: BackgroundTasks,
    store: InMemoryConversationStore = Depends(get_store),
    engine: DialogueEngine = Depends(get_engine),
    recent_ids: RecentMessageIds = Depends(get_recent_message_ids),
):
    return await receive_webhook(request, background_tasks, store, engine, recent_ids)
