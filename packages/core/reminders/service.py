from __future__ import annotations

import datetime as dt
from dataclasses import replace
from typing import List, Optional

from ..storage.base import ReminderState, ReminderStore


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def to_store_timestamp(value: dt.datetime) -> str:
    """Normalise to the UTC, second-precision ISO form used for due comparisons."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc).replace(microsecond=0).isoformat()


def create_reminder(
    store: ReminderStore,
    owner_id: int,
    message: str,
    notify_at: dt.datetime,
    timezone: Optional[str] = None,
) -> ReminderState:
    message = message.strip()
    if not message:
        raise ValueError("Reminder message is required.")
    return store.create_reminder(
        owner_id=owner_id,
        message=message,
        notify_at=to_store_timestamp(notify_at),
        timezone=timezone or "UTC",
    )


def update_reminder(
    store: ReminderStore,
    reminder: ReminderState,
    message: Optional[str] = None,
    notify_at: Optional[dt.datetime] = None,
) -> ReminderState:
    changes = {}
    if message is not None:
        message = message.strip()
        if not message:
            raise ValueError("Reminder message is required.")
        changes["message"] = message
    rearm = False
    if notify_at is not None:
        new_notify_at = to_store_timestamp(notify_at)
        if new_notify_at != reminder.notify_at:
            # Rescheduling re-arms a reminder that already fired.
            changes["notify_at"] = new_notify_at
            rearm = True
    if not changes:
        return reminder
    store.update_reminder(replace(reminder, **changes), rearm=rearm)
    # notified may have been committed by a scan since the reminder was read.
    return store.get_reminder(reminder.id) or replace(reminder, **changes)


def list_reminders(store: ReminderStore, owner_id: int) -> List[ReminderState]:
    return store.list_reminders(owner_id)


def get_owned_reminder(
    store: ReminderStore, owner_id: int, reminder_id: int
) -> Optional[ReminderState]:
    reminder = store.get_reminder(reminder_id)
    if reminder is None or reminder.owner_id != owner_id:
        return None
    return reminder


def delete_reminder(store: ReminderStore, owner_id: int, reminder_id: int) -> bool:
    if get_owned_reminder(store, owner_id, reminder_id) is None:
        return False
    return store.delete_reminder(reminder_id)
