from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Protocol, runtime_checkable


@dataclass(frozen=True)
class UserState:
    id: int
    username: str
    password_hash: str
    created_at: str


@runtime_checkable
class UserStore(Protocol):
    def create_user(self, username: str, password_hash: str) -> UserState:
        """Persist a new user. Raises ValueError if the username exists."""

    def get_user(self, user_id: int) -> Optional[UserState]:
        """Return user by id."""

    def get_user_by_username(self, username: str) -> Optional[UserState]:
        """Return user by username."""


@dataclass(frozen=True)
class SubscriptionState:
    id: int
    owner_id: int
    endpoint: str
    keys_json: Optional[str]
    created_at: str


@runtime_checkable
class SubscriptionDirectory(Protocol):
    def add_subscription(
        self, owner_id: int, endpoint: str, keys_json: Optional[str]
    ) -> SubscriptionState:
        """Register a push endpoint for a user."""

    def list_subscriptions(self, owner_id: int) -> List[SubscriptionState]:
        """Return every push endpoint registered for a user."""


@dataclass(frozen=True)
class ReminderState:
    id: int
    owner_id: int
    message: str
    notify_at: str
    timezone: str
    notified: bool
    created_at: str


@runtime_checkable
class ReminderStore(Protocol):
    def create_reminder(
        self, owner_id: int, message: str, notify_at: str, timezone: str
    ) -> ReminderState:
        """Persist a new, unnotified reminder."""

    def get_reminder(self, reminder_id: int) -> Optional[ReminderState]:
        """Return reminder by id."""

    def list_reminders(self, owner_id: int) -> List[ReminderState]:
        """List a user's reminders ordered by notify_at."""

    def update_reminder(self, reminder: ReminderState, rearm: bool = False) -> None:
        """Update message, notify_at and timezone. rearm clears notified."""

    def delete_reminder(self, reminder_id: int) -> bool:
        """Delete a reminder. Returns True if deleted."""

    def list_due_reminders(self, now_iso: str) -> List[ReminderState]:
        """List unnotified reminders with notify_at <= now_iso."""

    def mark_notified(self, reminder_id: int) -> bool:
        """Set notified. Returns False if it was already set."""
