from __future__ import annotations

import datetime as dt
import logging
import os
from typing import Optional, Union

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.blocking import BlockingScheduler

from apps.api.notifications import WebPushTransport
from packages.core.reminders.dispatcher import NotificationDispatcher
from packages.core.reminders.models import DEFAULT_TITLE
from packages.core.reminders.scanner import DueReminderScanner
from packages.core.storage.sqlite import SQLiteReminderStore


logger = logging.getLogger("usoul.reminders")

JOB_ID = "due_reminders"


def _positive_int(name: str, default: str) -> int:
    value = int(os.getenv(name, default))
    if value <= 0:
        raise ValueError(f"{name} must be a positive integer, got {value}")
    return value


def scan_interval_seconds() -> int:
    return _positive_int("REMINDERS_SCAN_INTERVAL_SECONDS", "15")


def max_overlapping_scans() -> int:
    return _positive_int("REMINDERS_MAX_INSTANCES", "3")


def push_max_workers() -> int:
    return _positive_int("PUSH_MAX_WORKERS", "8")


def push_title() -> str:
    return os.getenv("REMINDER_PUSH_TITLE", DEFAULT_TITLE)


def build_scanner(store: SQLiteReminderStore) -> DueReminderScanner:
    dispatcher = NotificationDispatcher(
        directory=store,
        transport=WebPushTransport.from_env(),
        detached=True,
        max_workers=push_max_workers(),
    )
    return DueReminderScanner(
        store=store,
        directory=store,
        dispatcher=dispatcher,
        title=push_title(),
    )


def run_scan(scanner: DueReminderScanner) -> None:
    result = scanner.scan()
    if result.aborted:
        logger.warning("reminder_tick_aborted")
    elif result.due:
        logger.info(
            "reminder_tick due=%s dispatched=%s no_subscription=%s marked=%s "
            "dispatch_failures=%s already_notified=%s mark_failures=%s",
            result.due,
            result.dispatched,
            result.skipped_no_subscription,
            result.marked,
            result.dispatch_failures,
            result.already_notified,
            result.mark_failures,
        )


def schedule_scans(
    scheduler: Union[BackgroundScheduler, BlockingScheduler],
    scanner: DueReminderScanner,
    interval_seconds: Optional[int] = None,
    max_instances: Optional[int] = None,
) -> None:
    interval_seconds = interval_seconds or scan_interval_seconds()
    scheduler.add_job(
        run_scan,
        "interval",
        seconds=interval_seconds,
        args=[scanner],
        id=JOB_ID,
        replace_existing=True,
        next_run_time=dt.datetime.now(dt.timezone.utc),
        coalesce=False,
        max_instances=max_instances or max_overlapping_scans(),
    )
    logger.info("reminder_scheduler_configured interval_seconds=%s", interval_seconds)


def start_scheduler(
    scanner: DueReminderScanner,
    interval_seconds: Optional[int] = None,
    max_instances: Optional[int] = None,
) -> BackgroundScheduler:
    scheduler = BackgroundScheduler(timezone=dt.timezone.utc)
    schedule_scans(scheduler, scanner, interval_seconds, max_instances)
    scheduler.start()
    return scheduler
