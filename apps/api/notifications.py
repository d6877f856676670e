from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict

from pywebpush import WebPushException, webpush

from packages.core.reminders.dispatcher import DeliveryError


logger = logging.getLogger("usoul.push")

PUSH_TTL_SECONDS = 60 * 60


def _vapid_config() -> dict:
    return {
        "public_key": os.getenv("VAPID_PUBLIC", ""),
        "private_key": os.getenv("VAPID_PRIVATE", ""),
        "subject": os.getenv("VAPID_SUBJECT", "mailto:dev@example.com"),
    }


def vapid_public_key() -> str:
    return _vapid_config()["public_key"]


class WebPushTransport:
    def __init__(self, private_key: str, subject: str, ttl: int = PUSH_TTL_SECONDS) -> None:
        self._private_key = private_key
        self._subject = subject
        self._ttl = ttl

    @classmethod
    def from_env(cls) -> "WebPushTransport":
        config = _vapid_config()
        return cls(private_key=config["private_key"], subject=config["subject"])

    def deliver(self, subscription_info: Dict[str, Any], payload: bytes) -> None:
        if not self._private_key:
            raise DeliveryError("VAPID is not configured. Set VAPID_PUBLIC and VAPID_PRIVATE.")
        try:
            webpush(
                subscription_info=subscription_info,
                data=payload,
                vapid_private_key=self._private_key,
                vapid_claims={"sub": self._subject},
                ttl=self._ttl,
            )
        except WebPushException as exc:
            status = exc.response.status_code if exc.response is not None else None
            logger.debug(
                "webpush_rejected endpoint=%s status=%s body=%s",
                subscription_info.get("endpoint"),
                status,
                _response_body(exc),
            )
            raise DeliveryError(f"push rejected status={status}: {exc.message}") from exc


def _response_body(exc: WebPushException) -> str:
    if exc.response is None:
        return ""
    try:
        return json.dumps(exc.response.json())
    except ValueError:
        return exc.response.text or ""
