from __future__ import annotations

import json
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Tuple

from ..storage.base import SubscriptionDirectory, SubscriptionState
from .models import NotificationPayload


logger = logging.getLogger("usoul.reminders.dispatcher")


class DeliveryError(RuntimeError):
    """Raised by a transport when an endpoint rejects or cannot take a push."""


class PushTransport(Protocol):
    def deliver(self, subscription_info: Dict[str, Any], payload: bytes) -> None:
        """Send payload to one endpoint. Raises on failure."""


@dataclass
class DispatchReport:
    owner_id: int
    reminder_id: int
    submitted: int = 0
    skipped: List[Tuple[int, str]] = field(default_factory=list)
    futures: List[Future] = field(default_factory=list)


def subscription_info(subscription: SubscriptionState) -> Optional[Dict[str, Any]]:
    """Build the transport address for a subscription.

    Returns None when the stored keys are absent or empty. Raises ValueError
    when they cannot be decoded.
    """
    raw = (subscription.keys_json or "").strip()
    if not raw:
        return None
    try:
        keys = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"undecodable keys: {exc.msg}") from exc
    if not isinstance(keys, dict):
        raise ValueError("keys must be a JSON object")
    if not keys:
        return None
    return {"endpoint": subscription.endpoint, "keys": keys}


class NotificationDispatcher:
    """Fans a payload out to every push endpoint of a user.

    In detached mode deliveries run on a worker pool and ``dispatch`` returns
    as soon as they are submitted. Inline mode delivers before returning.
    """

    def __init__(
        self,
        directory: SubscriptionDirectory,
        transport: PushTransport,
        detached: bool = True,
        max_workers: int = 8,
    ) -> None:
        self._directory = directory
        self._transport = transport
        self.detached = detached
        self._executor: Optional[ThreadPoolExecutor] = None
        if detached:
            self._executor = ThreadPoolExecutor(
                max_workers=max_workers, thread_name_prefix="push-delivery"
            )

    def dispatch(
        self,
        owner_id: int,
        payload: NotificationPayload,
        subscriptions: Optional[List[SubscriptionState]] = None,
    ) -> DispatchReport:
        if subscriptions is None:
            subscriptions = self._directory.list_subscriptions(owner_id)
        report = DispatchReport(owner_id=owner_id, reminder_id=payload.reminder_id)
        body = payload.to_bytes()
        for subscription in subscriptions:
            try:
                info = subscription_info(subscription)
            except ValueError as exc:
                logger.warning(
                    "push_subscription_malformed owner_id=%s subscription_id=%s error=%s",
                    owner_id,
                    subscription.id,
                    exc,
                )
                report.skipped.append((subscription.id, "malformed"))
                continue
            if info is None:
                logger.warning(
                    "push_subscription_missing_keys owner_id=%s subscription_id=%s",
                    owner_id,
                    subscription.id,
                )
                report.skipped.append((subscription.id, "missing_keys"))
                continue
            report.submitted += 1
            if self._executor is not None:
                report.futures.append(
                    self._executor.submit(self._deliver, subscription, info, body)
                )
            else:
                self._deliver(subscription, info, body)
        return report

    def _deliver(
        self, subscription: SubscriptionState, info: Dict[str, Any], body: bytes
    ) -> bool:
        try:
            self._transport.deliver(info, body)
        except Exception as exc:
            logger.warning(
                "push_delivery_failed owner_id=%s subscription_id=%s endpoint=%s error=%s",
                subscription.owner_id,
                subscription.id,
                subscription.endpoint,
                exc,
            )
            return False
        logger.info(
            "push_delivered owner_id=%s subscription_id=%s",
            subscription.owner_id,
            subscription.id,
        )
        return True

    def shutdown(self, wait: bool = True) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
