import asyncio
import os

from fastapi import FastAPI

from app.config import settings
from app.dependencies import get_store
from app.logging_config import get_logger, setup_logging
from app.routers import admin, webhook

setup_logging(settings.log_level)

app = FastAPI(
    title="Intake API",
    description="WhatsApp complaint and stock-order intake bot",
    version="0.1.0",
    debug=settings.debug,
)

app.include_router(webhook.router)
app.include_router(admin.router)

sweeper_logger = get_logger("idle_sweeper")
_idle_sweeper_task: asyncio.Task | None = None


def _is_idle_sweeper_enabled() -> bool:
    if os.environ.get("PYTEST_CURRENT_TEST"):
        return False
    return settings.idle_sweeper_enabled and settings.conversation_idle_minutes > 0


async def _idle_sweeper_loop() -> None:
    interval_seconds = max(settings.idle_sweep_interval_seconds, 1.0)
    while True:
        try:
            await asyncio.sleep(interval_seconds)
            evicted = get_store().evict_idle()
            if evicted:
                sweeper_logger.info(
                    "Idle conversations evicted",
                    extra={"context": {"count": len(evicted), "sender_ids": evicted}},
                )
        except asyncio.CancelledError:
            break
        except Exception as exc:
            sweeper_logger.error(
                "Idle sweeper loop failed",
                extra={"context": {"error": str(exc)}},
            )


@app.on_event("startup")
async def start_idle_sweeper() -> None:
    global _idle_sweeper_task
    if not _is_idle_sweeper_enabled():
        return
    if _idle_sweeper_task is None or _idle_sweeper_task.done():
        _idle_sweeper_task = asyncio.create_task(_idle_sweeper_loop())
        sweeper_logger.info("Idle sweeper started")


@app.on_event("shutdown")
async def stop_idle_sweeper() -> None:
    global _idle_sweeper_task
    if _idle_sweeper_task is None:
        return
    _idle_sweeper_task.cancel()
    try:
        await _idle_sweeper_task
    except asyncio.CancelledError:
        pass
    _idle_sweeper_task = None


@app.get("/health")
async def health():
    return {"status": "ok", "active_conversations": len(get_store())}
