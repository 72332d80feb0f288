"""No-op notification provider (logs only)."""
from __future__ import annotations

import logging
from typing import List
from uuid import uuid4

from app.services.notifications.base import (
    BatchDeliveryResult,
    DeliveryResult,
    NotificationService,
    PushMessage,
)


logger = logging.getLogger(__name__)


def _noop_message_id() -> str:
    return f"noop-{uuid4().hex[:12]}"


class NoopNotificationService(NotificationService):
    provider = "noop"

    async def send_to_token(self, token: str, message: PushMessage) -> DeliveryResult:
        logger.info("Notification queued (noop) token=%s... title=%s", token[:8], message.title)
        return DeliveryResult(success=True, message_id=_noop_message_id(), token=token)

    async def send_to_topic(self, topic: str, message: PushMessage) -> DeliveryResult:
        logger.info("Notification queued (noop) topic=%s title=%s", topic, message.title)
        return DeliveryResult(success=True, message_id=_noop_message_id())

    async def send_to_tokens(self, tokens: List[str], message: PushMessage) -> BatchDeliveryResult:
        logger.info("Notification queued (noop) multicast tokens=%s title=%s", len(tokens), message.title)
        results = [DeliveryResult(success=True, message_id=_noop_message_id(), token=token) for token in tokens]
        return BatchDeliveryResult(success_count=len(results), failure_count=0, results=results)
