from __future__ import annotations

import json
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from apps.api.auth import current_user
from apps.api.notifications import vapid_public_key
from apps.api.schemas.auth import UserResponse
from apps.api.schemas.subscriptions import SubscribeRequest, VapidKeyResponse
from apps.api.storage import default_store


router = APIRouter(prefix="/api", tags=["subscriptions"])
logger = logging.getLogger("usoul.api")


def _store():
    return default_store()


@router.post("/subscribe")
def subscribe(
    payload: SubscribeRequest, user: UserResponse = Depends(current_user)
) -> Dict[str, Any]:
    subscription = payload.subscription
    if subscription is None or not subscription.endpoint:
        raise HTTPException(status_code=400, detail="invalid subscription")
    stored = _store().add_subscription(
        owner_id=user.id,
        endpoint=subscription.endpoint,
        keys_json=json.dumps(subscription.keys or {}),
    )
    logger.info("push_subscribed user_id=%s subscription_id=%s", user.id, stored.id)
    return {"ok": True}


@router.get("/vapidPublicKey", response_model=VapidKeyResponse)
def get_vapid_public_key() -> VapidKeyResponse:
    return VapidKeyResponse(publicKey=vapid_public_key())
