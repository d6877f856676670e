from .dispatcher import DeliveryError, DispatchReport, NotificationDispatcher, PushTransport
from .models import NotificationPayload
from .scanner import DueReminderScanner, ScanResult
from .service import (
    create_reminder,
    delete_reminder,
    get_owned_reminder,
    list_reminders,
    update_reminder,
)

__all__ = [
    "DeliveryError",
    "DispatchReport",
    "DueReminderScanner",
    "NotificationDispatcher",
    "NotificationPayload",
    "PushTransport",
    "ScanResult",
    "create_reminder",
    "delete_reminder",
    "get_owned_reminder",
    "list_reminders",
    "update_reminder",
]
