from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.logging_config import get_logger
from app.models.conversation import ConversationState
from app.models.record import FinalizedRecord
from app.services.flow import Category

logger = get_logger("finalizer")

UNKNOWN_NAME = "Unknown"

SHEET_COLUMNS = (
    "Time",
    "Name",
    "Phone",
    "Profile Name",
    "Category",
    "Salesman",
    "Shop",
    "Address",
    "Product Category",
    "Detail",
)

# sheet column -> FinalizedRecord.fields key
_BRANCH_COLUMNS = {
    "Salesman": "salesman",
    "Shop": "shop",
    "Address": "address",
    "Product Category": "product_category",
}


def resolve_display_name(display_name: Optional[str], known_name: Optional[str]) -> str:
    for candidate in (display_name, known_name):
        if candidate and candidate.strip():
            return candidate.strip()
    return UNKNOWN_NAME


def finalize(
    state: ConversationState,
    category: Category,
    *,
    display_name: Optional[str] = None,
    known_name: Optional[str] = None,
    now: Optional[datetime] = None,
) -> FinalizedRecord:
    """Build the record for a conversation that just answered its last step.

    Only the chosen category's fields are copied, so complaint fields never
    leak into an order record and vice versa.
    """
    collected = state.collected
    return FinalizedRecord(
        timestamp=now or datetime.now(timezone.utc),
        sender_id=state.sender_id,
        display_name=resolve_display_name(display_name, known_name),
        customer_name=collected.get("name", "") or resolve_display_name(display_name, known_name),
        category=category.title,
        fields={name: collected.get(name, "") for name in category.field_names},
        detail=collected.get(category.detail.name, ""),
    )


def closing_summary(record: FinalizedRecord, category: Category) -> str:
    lines = [
        f"Thank you, {record.customer_name}! Your *{category.title}* has been recorded.",
        "",
    ]
    for step in category.fields:
        lines.append(f"{step.label}: {record.fields.get(step.name, '')}")
    lines.append(f"{category.detail.label}: {record.detail}")
    lines.extend(["", category.footer])
    return "\n".join(lines)


def _resolve_timezone(name: str):
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone {name!r}, using UTC for sheet timestamps")
        return timezone.utc


def record_to_row(record: FinalizedRecord, tz_name: str = "UTC") -> list[str]:
    """Flatten a record into the sheet's column order."""
    timestamp = record.timestamp
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    local_time = timestamp.astimezone(_resolve_timezone(tz_name))

    values = {
        "Time": local_time.strftime("%Y-%m-%d %H:%M:%S"),
        "Name": record.customer_name,
        "Phone": record.sender_id,
        "Profile Name": record.display_name,
        "Category": record.category,
        "Detail": record.detail,
    }
    for column, field_name in _BRANCH_COLUMNS.items():
        values[column] = record.fields.get(field_name, "")
    return [values[column] for column in SHEET_COLUMNS]
