#!/usr/bin/env python3
"""
Web push notification service.

Stores browser subscriptions and broadcasts the daily newsletter to every
subscriber with VAPID-signed web-push messages. Subscriptions whose push
service reports them gone (404/410) are pruned.
"""

import json
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import requests
from pywebpush import webpush, WebPushException

from core.exceptions import ConfigurationError, NewsPipelineError, ValidationError
from core.models.news import Category, NewsRecord, PushSubscription
from .notification_formatter import NotificationFormatter

logger = logging.getLogger(__name__)

GONE_STATUSES = (404, 410)


def _short_endpoint(endpoint: str) -> str:
    if len(endpoint) > 32:
        return f"{endpoint[:16]}…{endpoint[-8:]}"
    return endpoint


def parse_subscription(body: Any) -> PushSubscription:
    """
    Validate a `{subscription: {endpoint, keys}, userAgent}` request body.

    Raises:
        ValidationError: If the endpoint is missing
    """
    if not isinstance(body, dict):
        raise ValidationError("subscription", "an object with an endpoint")
    subscription = body.get('subscription')
    if not isinstance(subscription, dict) or not subscription.get('endpoint'):
        raise ValidationError("subscription", "an object with an endpoint")

    keys = subscription.get('keys')
    return PushSubscription(
        endpoint=str(subscription['endpoint']),
        keys=keys if isinstance(keys, dict) else {},
        user_agent=body.get('userAgent') or None,
        created_at=datetime.now(timezone.utc),
    )


@dataclass
class DeliveryResult:
    """Outcome of one push delivery."""
    endpoint: str
    ok: bool
    status: Optional[int] = None
    error: Optional[str] = None


@dataclass
class BroadcastResult:
    """Outcome of a newsletter broadcast."""
    deliveries: List[DeliveryResult] = field(default_factory=list)
    pruned: int = 0
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def sent(self) -> int:
        return sum(1 for delivery in self.deliveries if delivery.ok)

    @property
    def failed(self) -> int:
        return len(self.deliveries) - self.sent

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": "Push notifications sent",
            "sent": self.sent,
            "failed": self.failed,
            "timestamp": self.timestamp.isoformat(),
        }


class PushNotifier:
    """Sends VAPID web-push notifications."""

    def __init__(self, vapid_public_key: Optional[str], vapid_private_key: Optional[str],
                 vapid_subject: str = "mailto:admin@example.com",
                 ttl: int = 3600, urgency: str = "high",
                 sender: Callable[..., Any] = webpush):
        """
        Initialize push notifier.

        Args:
            vapid_public_key: Application server public key
            vapid_private_key: Application server private key
            vapid_subject: Contact URI placed in the VAPID claims
            ttl: Seconds the push service keeps an undelivered message
            urgency: Web-push Urgency header value
            sender: Function performing one delivery (pywebpush.webpush signature)
        """
        if not vapid_public_key or not vapid_private_key:
            raise ConfigurationError("VAPID keys")

        self.vapid_public_key = vapid_public_key
        self.vapid_private_key = vapid_private_key
        self.vapid_subject = vapid_subject
        self.ttl = ttl
        self.urgency = urgency
        self.sender = sender
        self.formatter = NotificationFormatter()

    def _send_one(self, subscription: PushSubscription, data: str,
                  session: requests.Session) -> DeliveryResult:
        """Deliver one message; blocking, run in a worker thread."""
        try:
            self.sender(
                subscription_info=subscription.to_subscription_info(),
                data=data,
                vapid_private_key=self.vapid_private_key,
                vapid_claims={"sub": self.vapid_subject},
                ttl=self.ttl,
                headers={"Urgency": self.urgency},
                requests_session=session,
            )
            logger.info(f"Push OK endpoint={_short_endpoint(subscription.endpoint)}")
            return DeliveryResult(endpoint=subscription.endpoint, ok=True)
        except WebPushException as e:
            response = getattr(e, 'response', None)
            status = getattr(response, 'status_code', None)
            logger.warning(
                f"Push FAIL endpoint={_short_endpoint(subscription.endpoint)} status={status} error={e}"
            )
            return DeliveryResult(endpoint=subscription.endpoint, ok=False, status=status, error=str(e))
        except requests.RequestException as e:
            logger.warning(f"Push FAIL endpoint={_short_endpoint(subscription.endpoint)} error={e}")
            return DeliveryResult(endpoint=subscription.endpoint, ok=False, error=str(e))
        except Exception as e:
            # Malformed subscription keys surface as ValueError from the encryption layer
            logger.warning(
                f"Push FAIL endpoint={_short_endpoint(subscription.endpoint)} "
                f"{type(e).__name__}: {e}"
            )
            return DeliveryResult(endpoint=subscription.endpoint, ok=False, error=str(e) or type(e).__name__)

    async def broadcast(self, store, payload: Dict[str, Any]) -> BroadcastResult:
        """
        Send a payload to every stored subscription and prune gone ones.

        Raises:
            StorageError: If the subscriptions cannot be listed
        """
        subscriptions = await store.list_subscriptions()
        logger.info(f"Sending push to {len(subscriptions)} subscriptions")

        data = json.dumps(payload, ensure_ascii=False)
        result = BroadcastResult()

        with requests.Session() as session:
            for subscription in subscriptions:
                delivery = await asyncio.to_thread(self._send_one, subscription, data, session)
                result.deliveries.append(delivery)

                if delivery.status in GONE_STATUSES:
                    try:
                        await store.delete_subscription(subscription.endpoint)
                        result.pruned += 1
                    except NewsPipelineError as e:
                        logger.error(f"Failed to prune subscription: {e.message}")

        logger.info(f"Push summary: sent={result.sent} failed={result.failed} pruned={result.pruned}")
        return result

    async def send_newsletter(self, store) -> BroadcastResult:
        """Compose the newsletter from the latest item per category and broadcast it."""
        top_stories = await get_top_stories(store)
        payload = self.formatter.format_push_payload(top_stories)
        return await self.broadcast(store, payload)


async def get_top_stories(store) -> Dict[Category, Optional[NewsRecord]]:
    """Latest record of each category; a failing category contributes nothing."""
    stories: Dict[Category, Optional[NewsRecord]] = {}
    for category in Category:
        try:
            latest = await store.latest(category, 1)
        except NewsPipelineError as e:
            logger.warning(f"Could not load top story for {category.value}: {e.message}")
            latest = []
        stories[category] = latest[0] if latest else None
    return stories
