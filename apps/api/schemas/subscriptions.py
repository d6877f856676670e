from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel


class PushSubscriptionBody(BaseModel):
    endpoint: Optional[str] = None
    keys: Optional[Dict[str, Any]] = None


class SubscribeRequest(BaseModel):
    subscription: Optional[PushSubscriptionBody] = None


class VapidKeyResponse(BaseModel):
    publicKey: str
