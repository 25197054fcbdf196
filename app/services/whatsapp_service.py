from typing import Optional

import httpx

from app.config import settings
from app.logging_config import get_logger
from app.services.alert_service import alert_critical

logger = get_logger("whatsapp_service")

WHATSAPP_TOKEN = settings.whatsapp_token
WHATSAPP_PHONE_NUMBER_ID = settings.whatsapp_phone_number_id
WHATSAPP_API_VERSION = settings.whatsapp_api_version
WHATSAPP_API_BASE_URL = settings.whatsapp_api_base_url


def build_messages_url(phone_number_id: Optional[str] = None) -> str:
    phone_number_id = phone_number_id or WHATSAPP_PHONE_NUMBER_ID
    return f"{WHATSAPP_API_BASE_URL.rstrip('/')}/{WHATSAPP_API_VERSION}/{phone_number_id}/messages"


def build_text_payload(recipient: str, text: str) -> dict:
    return {
        "messaging_product": "whatsapp",
        "recipient_type": "individual",
        "to": recipient,
        "type": "text",
        "text": {"preview_url": False, "body": text},
    }


def send_text_message(recipient: str, text: str) -> bool:
    """Send a text message via the WhatsApp Cloud API. Best effort, never raises."""
    if not WHATSAPP_TOKEN or not WHATSAPP_PHONE_NUMBER_ID:
        logger.error("WhatsApp credentials missing (WHATSAPP_TOKEN / WHATSAPP_PHONE_NUMBER_ID not set)")
        alert_critical("WhatsApp send failed", {"to": recipient, "error": "missing_whatsapp_credentials"})
        return False

    if not recipient or not text:
        logger.warning(f"send_text_message: missing recipient={recipient!r} or text")
        return False

    try:
        with httpx.Client(timeout=30.0) as client:
            response = client.post(
                build_messages_url(),
                headers={"Authorization": f"Bearer {WHATSAPP_TOKEN}"},
                json=build_text_payload(recipient, text),
            )
        logger.info(
            f"WhatsApp response: status={response.status_code}, to={recipient}, body={response.text[:200]}"
        )
        if response.is_success:
            return True
        alert_critical(
            "WhatsApp send rejected",
            {"to": recipient, "status": response.status_code, "body": response.text[:200]},
        )
        return False
    except Exception as e:
        logger.error(f"Error sending WhatsApp message: {e}")
        alert_critical("WhatsApp send failed", {"to": recipient, "error": str(e)})
        return False
