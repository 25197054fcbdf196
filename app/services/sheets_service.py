"""Append finalized records to a Google Sheet (one row per record)."""

import threading
from typing import Optional
from urllib.parse import quote

import httpx
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2 import service_account

from app.config import settings
from app.logging_config import get_logger
from app.models.record import FinalizedRecord
from app.services.alert_service import alert_error
from app.services.finalizer import record_to_row

logger = get_logger("sheets_service")

SHEET_ID = settings.sheet_id
SHEET_RANGE = settings.sheet_range
SHEET_TIMEZONE = settings.timezone
GOOGLE_CLIENT_EMAIL = settings.google_client_email
GOOGLE_PRIVATE_KEY = settings.google_private_key

SHEETS_API_URL = "https://sheets.googleapis.com/v4/spreadsheets"
SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"

_credentials: Optional[service_account.Credentials] = None
_credentials_lock = threading.Lock()


def _build_credentials() -> service_account.Credentials:
    # env files usually carry the PEM key with literal "\n" sequences
    private_key = (GOOGLE_PRIVATE_KEY or "").replace("\\n", "\n")
    info = {
        "type": "service_account",
        "client_email": GOOGLE_CLIENT_EMAIL,
        "private_key": private_key,
        "token_uri": GOOGLE_TOKEN_URI,
    }
    return service_account.Credentials.from_service_account_info(info, scopes=SHEETS_SCOPES)


def get_access_token() -> str:
    """OAuth access token for the service account, refreshed when expired."""
    global _credentials
    with _credentials_lock:
        if _credentials is None:
            _credentials = _build_credentials()
        if not _credentials.valid:
            _credentials.refresh(GoogleAuthRequest())
        return _credentials.token


def build_append_url(sheet_id: str, sheet_range: str) -> str:
    return f"{SHEETS_API_URL}/{sheet_id}/values/{quote(sheet_range, safe='!:')}:append"


def append_row(values: list[str]) -> bool:
    """Append one row after the last filled row of ``SHEET_RANGE``. Never raises."""
    if not SHEET_ID or not GOOGLE_CLIENT_EMAIL or not GOOGLE_PRIVATE_KEY:
        logger.error("Google Sheets not configured (SHEET_ID / GOOGLE_CLIENT_EMAIL / GOOGLE_PRIVATE_KEY)")
        alert_error("Sheet append skipped", {"error": "missing_sheets_config"})
        return False

    try:
        token = get_access_token()
        with httpx.Client(timeout=30.0) as client:
            response = client.post(
                build_append_url(SHEET_ID, SHEET_RANGE),
                params={"valueInputOption": "USER_ENTERED", "insertDataOption": "INSERT_ROWS"},
                headers={"Authorization": f"Bearer {token}"},
                json={"values": [values]},
            )
        if response.is_success:
            logger.info("Row added to sheet")
            return True
        logger.error(f"Sheets API error: status={response.status_code}, body={response.text[:200]}")
        alert_error("Sheet append rejected", {"status": response.status_code, "body": response.text[:200]})
        return False
    except Exception as e:
        logger.error(f"Sheet append failed: {e}", exc_info=True)
        alert_error("Sheet append failed", {"error": str(e)})
        return False


def append_record(record: FinalizedRecord) -> bool:
    ok = append_row(record_to_row(record, SHEET_TIMEZONE))
    if not ok:
        logger.error(
            "Finalized record not persisted",
            extra={"context": {"sender_id": record.sender_id, "category": record.category}},
        )
    return ok
