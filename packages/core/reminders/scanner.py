from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from typing import Callable

from opentelemetry import trace

from ..storage.base import ReminderStore, SubscriptionDirectory
from .dispatcher import NotificationDispatcher
from .models import DEFAULT_TITLE, NotificationPayload
from .service import to_store_timestamp, utc_now


logger = logging.getLogger("usoul.reminders.scanner")
tracer = trace.get_tracer("usoul.reminders")


@dataclass
class ScanResult:
    due: int = 0
    dispatched: int = 0
    skipped_no_subscription: int = 0
    subscription_failures: int = 0
    dispatch_failures: int = 0
    marked: int = 0
    already_notified: int = 0
    mark_failures: int = 0
    aborted: bool = False


class DueReminderScanner:
    def __init__(
        self,
        store: ReminderStore,
        directory: SubscriptionDirectory,
        dispatcher: NotificationDispatcher,
        clock: Callable[[], dt.datetime] = utc_now,
        title: str = DEFAULT_TITLE,
    ) -> None:
        self._store = store
        self._directory = directory
        self._dispatcher = dispatcher
        self._clock = clock
        self._title = title

    @property
    def dispatcher(self) -> NotificationDispatcher:
        return self._dispatcher

    def scan(self) -> ScanResult:
        with tracer.start_as_current_span("reminders.scan") as span:
            result = self._scan()
            span.set_attribute("reminders.due", result.due)
            span.set_attribute("reminders.marked", result.marked)
            span.set_attribute("reminders.aborted", result.aborted)
            return result

    def _scan(self) -> ScanResult:
        result = ScanResult()
        now_iso = to_store_timestamp(self._clock())
        try:
            due = self._store.list_due_reminders(now_iso)
        except Exception:
            logger.exception("reminder_scan_read_failed now=%s", now_iso)
            result.aborted = True
            return result

        if not due:
            logger.debug("reminder_scan_idle now=%s", now_iso)
            return result

        result.due = len(due)
        logger.info("reminder_scan_due count=%s now=%s", len(due), now_iso)

        for reminder in due:
            try:
                subscriptions = self._directory.list_subscriptions(reminder.owner_id)
            except Exception:
                logger.exception(
                    "reminder_subscriptions_failed id=%s owner_id=%s",
                    reminder.id,
                    reminder.owner_id,
                )
                result.subscription_failures += 1
                continue

            if not subscriptions:
                logger.warning(
                    "reminder_no_subscription id=%s owner_id=%s",
                    reminder.id,
                    reminder.owner_id,
                )
                result.skipped_no_subscription += 1
            else:
                payload = NotificationPayload(
                    title=self._title,
                    message=reminder.message,
                    reminder_id=reminder.id,
                )
                try:
                    self._dispatcher.dispatch(reminder.owner_id, payload, subscriptions)
                    result.dispatched += 1
                except Exception:
                    logger.exception("reminder_dispatch_failed id=%s", reminder.id)
                    result.dispatch_failures += 1
                    continue

            try:
                committed = self._store.mark_notified(reminder.id)
            except Exception:
                logger.exception("reminder_mark_notified_failed id=%s", reminder.id)
                result.mark_failures += 1
                continue
            if committed:
                result.marked += 1
            else:
                logger.info("reminder_already_notified id=%s", reminder.id)
                result.already_notified += 1

        return result
