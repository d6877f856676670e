from __future__ import annotations

import json
from dataclasses import dataclass


DEFAULT_TITLE = "Usoul Reminder"


@dataclass(frozen=True)
class NotificationPayload:
    title: str
    message: str
    reminder_id: int

    def to_bytes(self) -> bytes:
        """Encode as the JSON document the service worker expects."""
        return json.dumps(
            {
                "title": self.title,
                "message": self.message,
                "reminder_id": self.reminder_id,
            }
        ).encode("utf-8")
