from .auth import router as auth_router
from .reminders import router as reminders_router
from .subscriptions import router as subscriptions_router

__all__ = [
    "auth_router",
    "reminders_router",
    "subscriptions_router",
]
