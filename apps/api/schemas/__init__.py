from .auth import AuthResponse, CredentialsRequest, UserResponse
from .reminders import (
    ReminderCreateRequest,
    ReminderCreatedResponse,
    ReminderListResponse,
    ReminderResponse,
    ReminderUpdateRequest,
)
from .subscriptions import PushSubscriptionBody, SubscribeRequest, VapidKeyResponse

__all__ = [
    "AuthResponse",
    "CredentialsRequest",
    "PushSubscriptionBody",
    "ReminderCreateRequest",
    "ReminderCreatedResponse",
    "ReminderListResponse",
    "ReminderResponse",
    "ReminderUpdateRequest",
    "SubscribeRequest",
    "UserResponse",
    "VapidKeyResponse",
]
