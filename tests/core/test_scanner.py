import datetime as dt
import json
import threading

from packages.core.reminders.dispatcher import DeliveryError, NotificationDispatcher
from packages.core.reminders.scanner import DueReminderScanner
from packages.core.storage.sqlite import SQLiteReminderStore


NOW = dt.datetime(2026, 1, 1, 12, 0, 0, tzinfo=dt.timezone.utc)
NOW_ISO = "2026-01-01T12:00:00+00:00"
VALID_KEYS = json.dumps({"p256dh": "BPk", "auth": "aut"})


class RecordingTransport:
    def __init__(self, events=None, fail=False):
        self.calls = []
        self.events = events if events is not None else []
        self.fail = fail

    def deliver(self, subscription_info, payload):
        self.calls.append((subscription_info["endpoint"], json.loads(payload)))
        self.events.append(("deliver", subscription_info["endpoint"]))
        if self.fail:
            raise DeliveryError("expired endpoint")


class RecordingStore:
    """Wraps the SQLite store and records reads and writes."""

    def __init__(self, inner, events=None, failing_marks=(), fail_reads=False):
        self.inner = inner
        self.events = events if events is not None else []
        self.failing_marks = set(failing_marks)
        self.fail_reads = fail_reads
        self.writes = []

    def list_due_reminders(self, now_iso):
        self.events.append(("list_due", now_iso))
        if self.fail_reads:
            raise RuntimeError("database is locked")
        return self.inner.list_due_reminders(now_iso)

    def mark_notified(self, reminder_id):
        self.writes.append(reminder_id)
        self.events.append(("mark_notified", reminder_id))
        if reminder_id in self.failing_marks:
            raise RuntimeError("disk I/O error")
        return self.inner.mark_notified(reminder_id)


def _setup(tmp_path, events=None, transport=None, **store_kwargs):
    store = SQLiteReminderStore(db_path=str(tmp_path / "usoul.db"))
    recording = RecordingStore(store, events=events, **store_kwargs)
    transport = transport or RecordingTransport(events=events)
    dispatcher = NotificationDispatcher(store, transport, detached=False)
    scanner = DueReminderScanner(recording, store, dispatcher, clock=lambda: NOW)
    return store, recording, transport, scanner


def test_due_reminder_delivered_then_marked(tmp_path):
    events = []
    store, recording, transport, scanner = _setup(tmp_path, events=events)
    store.add_subscription(1, "https://push.example.com/phone", VALID_KEYS)
    reminder = store.create_reminder(1, "Dhuhr", "2026-01-01T11:59:59+00:00", "UTC")

    result = scanner.scan()

    assert transport.calls == [
        (
            "https://push.example.com/phone",
            {"title": "Usoul Reminder", "message": "Dhuhr", "reminder_id": reminder.id},
        )
    ]
    assert events == [
        ("list_due", NOW_ISO),
        ("deliver", "https://push.example.com/phone"),
        ("mark_notified", reminder.id),
    ]
    assert result.due == 1
    assert result.marked == 1
    assert store.list_due_reminders(NOW_ISO) == []


def test_future_reminder_untouched(tmp_path):
    store, recording, transport, scanner = _setup(tmp_path)
    store.add_subscription(1, "https://push.example.com/phone", VALID_KEYS)
    store.create_reminder(1, "Asr", "2026-01-01T13:00:00+00:00", "UTC")

    result = scanner.scan()

    assert result.due == 0
    assert transport.calls == []
    assert recording.writes == []


def test_idle_tick_performs_no_writes(tmp_path):
    store, recording, transport, scanner = _setup(tmp_path)

    result = scanner.scan()

    assert result.due == 0
    assert result.aborted is False
    assert recording.writes == []


def test_owner_without_subscription_is_still_marked(tmp_path):
    store, recording, transport, scanner = _setup(tmp_path)
    reminder = store.create_reminder(5, "Maghrib", "2026-01-01T11:00:00+00:00", "UTC")

    result = scanner.scan()

    assert transport.calls == []
    assert result.skipped_no_subscription == 1
    assert recording.writes == [reminder.id]
    assert store.get_reminder(reminder.id).notified is True


def test_undecodable_keys_skip_delivery_but_mark(tmp_path):
    store, recording, transport, scanner = _setup(tmp_path)
    store.add_subscription(3, "https://push.example.com/broken", "{not-json")
    reminder = store.create_reminder(3, "Isha", "2026-01-01T11:00:00+00:00", "UTC")

    result = scanner.scan()

    assert transport.calls == []
    assert result.marked == 1
    assert store.get_reminder(reminder.id).notified is True


def test_delivery_failure_still_marks(tmp_path):
    transport = RecordingTransport(fail=True)
    store, recording, transport, scanner = _setup(tmp_path, transport=transport)
    store.add_subscription(1, "https://push.example.com/gone", VALID_KEYS)
    reminder = store.create_reminder(1, "Fajr", "2026-01-01T04:00:00+00:00", "UTC")

    result = scanner.scan()

    assert len(transport.calls) == 1
    assert result.marked == 1
    assert store.get_reminder(reminder.id).notified is True


def test_read_failure_aborts_tick(tmp_path):
    store, recording, transport, scanner = _setup(tmp_path, fail_reads=True)
    store.add_subscription(1, "https://push.example.com/phone", VALID_KEYS)
    store.create_reminder(1, "Dhuhr", "2026-01-01T11:00:00+00:00", "UTC")

    result = scanner.scan()

    assert result.aborted is True
    assert transport.calls == []
    assert recording.writes == []


def test_mark_failure_does_not_block_other_reminders(tmp_path):
    store = SQLiteReminderStore(db_path=str(tmp_path / "usoul.db"))
    first = store.create_reminder(1, "one", "2026-01-01T10:00:00+00:00", "UTC")
    second = store.create_reminder(1, "two", "2026-01-01T11:00:00+00:00", "UTC")
    store.add_subscription(1, "https://push.example.com/phone", VALID_KEYS)
    recording = RecordingStore(store, failing_marks={first.id})
    transport = RecordingTransport()
    dispatcher = NotificationDispatcher(store, transport, detached=False)
    scanner = DueReminderScanner(recording, store, dispatcher, clock=lambda: NOW)

    result = scanner.scan()

    assert recording.writes == [first.id, second.id]
    assert result.mark_failures == 1
    assert result.marked == 1
    assert [r.id for r in store.list_due_reminders(NOW_ISO)] == [first.id]

    # The unmarked reminder is re-selected and delivered again next tick.
    recording.failing_marks.clear()
    again = scanner.scan()
    assert again.marked == 1
    assert [call[1]["reminder_id"] for call in transport.calls] == [
        first.id,
        second.id,
        first.id,
    ]


def test_reminder_committed_by_another_tick_is_reported(tmp_path):
    store = SQLiteReminderStore(db_path=str(tmp_path / "usoul.db"))
    reminder = store.create_reminder(1, "one", "2026-01-01T10:00:00+00:00", "UTC")

    class RacingStore(RecordingStore):
        def list_due_reminders(self, now_iso):
            due = self.inner.list_due_reminders(now_iso)
            # Another tick commits between this read and our write.
            self.inner.mark_notified(reminder.id)
            return due

    dispatcher = NotificationDispatcher(store, RecordingTransport(), detached=False)
    scanner = DueReminderScanner(RacingStore(store), store, dispatcher, clock=lambda: NOW)

    result = scanner.scan()

    assert result.marked == 0
    assert result.already_notified == 1


def test_subscription_lookup_failure_leaves_reminder_eligible(tmp_path):
    store = SQLiteReminderStore(db_path=str(tmp_path / "usoul.db"))
    reminder = store.create_reminder(1, "one", "2026-01-01T10:00:00+00:00", "UTC")

    class BrokenDirectory:
        def list_subscriptions(self, owner_id):
            raise RuntimeError("directory unavailable")

    dispatcher = NotificationDispatcher(BrokenDirectory(), RecordingTransport(), detached=False)
    scanner = DueReminderScanner(store, BrokenDirectory(), dispatcher, clock=lambda: NOW)

    result = scanner.scan()

    assert result.subscription_failures == 1
    assert [r.id for r in store.list_due_reminders(NOW_ISO)] == [reminder.id]


def test_detached_dispatch_marks_before_delivery_finishes(tmp_path):
    release = threading.Event()
    delivered = []

    class SlowTransport:
        def deliver(self, subscription_info, payload):
            release.wait(timeout=5)
            delivered.append(json.loads(payload)["reminder_id"])

    store = SQLiteReminderStore(db_path=str(tmp_path / "usoul.db"))
    store.add_subscription(1, "https://push.example.com/phone", VALID_KEYS)
    reminder = store.create_reminder(1, "one", "2026-01-01T10:00:00+00:00", "UTC")
    dispatcher = NotificationDispatcher(store, SlowTransport(), detached=True)
    scanner = DueReminderScanner(store, store, dispatcher, clock=lambda: NOW)

    try:
        result = scanner.scan()
        assert result.marked == 1
        assert store.get_reminder(reminder.id).notified is True
        assert delivered == []
    finally:
        release.set()
        dispatcher.shutdown(wait=True)

    assert delivered == [reminder.id]


def test_dispatch_after_shutdown_leaves_reminder_eligible(tmp_path):
    store = SQLiteReminderStore(db_path=str(tmp_path / "usoul.db"))
    store.add_subscription(1, "https://push.example.com/phone", VALID_KEYS)
    reminder = store.create_reminder(1, "Dhuhr", "2026-01-01T11:00:00+00:00", "UTC")
    transport = RecordingTransport()
    dispatcher = NotificationDispatcher(store, transport, detached=True)
    dispatcher.shutdown(wait=True)
    recording = RecordingStore(store)
    scanner = DueReminderScanner(recording, store, dispatcher, clock=lambda: NOW)

    result = scanner.scan()

    assert transport.calls == []
    assert result.dispatch_failures == 1
    assert result.marked == 0
    assert recording.writes == []
    assert [r.id for r in store.list_due_reminders(NOW_ISO)] == [reminder.id]
    assert store.get_reminder(reminder.id).notified is False


def test_dispatch_error_does_not_block_other_reminders(tmp_path):
    store = SQLiteReminderStore(db_path=str(tmp_path / "usoul.db"))
    first = store.create_reminder(1, "one", "2026-01-01T10:00:00+00:00", "UTC")
    second = store.create_reminder(2, "two", "2026-01-01T11:00:00+00:00", "UTC")
    store.add_subscription(1, "https://push.example.com/one", VALID_KEYS)
    store.add_subscription(2, "https://push.example.com/two", VALID_KEYS)
    transport = RecordingTransport()

    class FlakyDispatcher(NotificationDispatcher):
        def dispatch(self, owner_id, payload, subscriptions=None):
            if owner_id == 1:
                raise RuntimeError("cannot schedule new futures after shutdown")
            return super().dispatch(owner_id, payload, subscriptions)

    dispatcher = FlakyDispatcher(store, transport, detached=False)
    scanner = DueReminderScanner(store, store, dispatcher, clock=lambda: NOW)

    result = scanner.scan()

    assert result.dispatch_failures == 1
    assert result.marked == 1
    assert [call[1]["reminder_id"] for call in transport.calls] == [second.id]
    assert [r.id for r in store.list_due_reminders(NOW_ISO)] == [first.id]
