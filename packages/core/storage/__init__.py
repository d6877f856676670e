from .base import (
    ReminderState,
    ReminderStore,
    SubscriptionDirectory,
    SubscriptionState,
    UserState,
    UserStore,
)
from .sqlite import SQLiteReminderStore

__all__ = [
    "ReminderState",
    "ReminderStore",
    "SubscriptionDirectory",
    "SubscriptionState",
    "UserState",
    "UserStore",
    "SQLiteReminderStore",
]
