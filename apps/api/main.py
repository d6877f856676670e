from __future__ import annotations

import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from apps.api.routes.auth import router as auth_router
from apps.api.routes.reminders import router as reminders_router
from apps.api.routes.subscriptions import router as subscriptions_router
from apps.api.reminders_scheduler import build_scanner, start_scheduler
from apps.api.storage import default_store
from apps.api.observability import init_observability
from packages.core.logging_config import configure_logging


configure_logging()

init_observability()
app = FastAPI(title="Usoul Reminders API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
FastAPIInstrumentor.instrument_app(app)
app.include_router(auth_router)
app.include_router(subscriptions_router)
app.include_router(reminders_router)

logger = logging.getLogger("usoul.api")

_SCHEDULER = None
_SCANNER = None


def _scheduler_enabled() -> bool:
    return os.getenv("REMINDERS_SCHEDULER_ENABLED", "true").lower() == "true"


@app.on_event("startup")
def _start_reminder_scheduler() -> None:
    global _SCHEDULER, _SCANNER
    if not _scheduler_enabled():
        logger.info("reminder_scheduler_disabled")
        return
    if _SCHEDULER is not None:
        return
    _SCANNER = build_scanner(default_store())
    _SCHEDULER = start_scheduler(_SCANNER)


@app.on_event("shutdown")
def _stop_reminder_scheduler() -> None:
    global _SCHEDULER, _SCANNER
    if _SCHEDULER is not None:
        _SCHEDULER.shutdown(wait=True)
        _SCHEDULER = None
    if _SCANNER is not None:
        _SCANNER.dispatcher.shutdown(wait=False)
        _SCANNER = None
