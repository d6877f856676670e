from __future__ import annotations

import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, Field


class ReminderCreateRequest(BaseModel):
    message: str = Field(..., min_length=1)
    notify_at: dt.datetime
    timezone: Optional[str] = None


class ReminderUpdateRequest(BaseModel):
    message: Optional[str] = None
    notify_at: Optional[dt.datetime] = None


class ReminderCreatedResponse(BaseModel):
    id: int


class ReminderResponse(BaseModel):
    id: int
    user_id: int
    message: str
    notify_at: str
    timezone: str
    notified: bool
    created_at: str


class ReminderListResponse(BaseModel):
    reminders: List[ReminderResponse]
