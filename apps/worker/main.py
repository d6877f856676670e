"""Standalone due-reminder worker.

Runs the same scan job as the API's in-process scheduler, for deployments that
keep delivery out of the web process. Run one or the other, not both: set
REMINDERS_SCHEDULER_ENABLED=false on the API when this worker is used.
"""
from __future__ import annotations

import datetime as dt
import logging

from apscheduler.schedulers.blocking import BlockingScheduler

from apps.api.reminders_scheduler import build_scanner, scan_interval_seconds, schedule_scans
from apps.api.storage import db_path, default_store
from packages.core.logging_config import configure_logging


logger = logging.getLogger("usoul.worker")


def main() -> None:
    configure_logging()
    scanner = build_scanner(default_store())
    scheduler = BlockingScheduler(timezone=dt.timezone.utc)
    schedule_scans(scheduler, scanner)
    logger.info(
        "reminder_worker_started db_path=%s interval_seconds=%s",
        db_path(),
        scan_interval_seconds(),
    )
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("reminder_worker_stopping")
    finally:
        if scheduler.running:
            scheduler.shutdown(wait=True)
        scanner.dispatcher.shutdown(wait=True)


if __name__ == "__main__":
    main()
