from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from apps.api.auth import current_user
from apps.api.schemas.auth import UserResponse
from apps.api.schemas.reminders import (
    ReminderCreateRequest,
    ReminderCreatedResponse,
    ReminderListResponse,
    ReminderResponse,
    ReminderUpdateRequest,
)
from apps.api.storage import default_store
from packages.core.reminders.service import (
    create_reminder,
    delete_reminder,
    get_owned_reminder,
    list_reminders,
    update_reminder,
)


router = APIRouter(prefix="/api/reminders", tags=["reminders"])


def _store():
    return default_store()


def _to_response(reminder) -> ReminderResponse:
    return ReminderResponse(
        id=reminder.id,
        user_id=reminder.owner_id,
        message=reminder.message,
        notify_at=reminder.notify_at,
        timezone=reminder.timezone,
        notified=reminder.notified,
        created_at=reminder.created_at,
    )


@router.post("", response_model=ReminderCreatedResponse)
def create(
    payload: ReminderCreateRequest, user: UserResponse = Depends(current_user)
) -> ReminderCreatedResponse:
    try:
        reminder = create_reminder(
            _store(),
            owner_id=user.id,
            message=payload.message,
            notify_at=payload.notify_at,
            timezone=payload.timezone,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="missing") from exc
    return ReminderCreatedResponse(id=reminder.id)


@router.get("", response_model=ReminderListResponse)
def list_all(user: UserResponse = Depends(current_user)) -> ReminderListResponse:
    reminders = list_reminders(_store(), user.id)
    return ReminderListResponse(reminders=[_to_response(reminder) for reminder in reminders])


@router.put("/{reminder_id}")
def update(
    reminder_id: int,
    payload: ReminderUpdateRequest,
    user: UserResponse = Depends(current_user),
) -> Dict[str, Any]:
    store = _store()
    reminder = get_owned_reminder(store, user.id, reminder_id)
    if reminder is None:
        raise HTTPException(status_code=404, detail="not found")
    try:
        update_reminder(store, reminder, message=payload.message, notify_at=payload.notify_at)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="missing") from exc
    return {"ok": True}


@router.delete("/{reminder_id}")
def delete(reminder_id: int, user: UserResponse = Depends(current_user)) -> Dict[str, Any]:
    if not delete_reminder(_store(), user.id, reminder_id):
        raise HTTPException(status_code=404, detail="not found")
    return {"ok": True}
