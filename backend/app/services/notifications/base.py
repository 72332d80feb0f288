"""Notification service interface."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class NotificationOptions:
    channel_id: str = "default"
    priority: str = "high"
    sound: str = "default"
    click_action: str = "FLUTTER_NOTIFICATION_CLICK"
    badge: int = 1


@dataclass
class PushMessage:
    title: str
    body: str
    data: Dict[str, str] = field(default_factory=dict)
    options: NotificationOptions = field(default_factory=NotificationOptions)


@dataclass
class DeliveryResult:
    success: bool
    message_id: Optional[str] = None
    token: Optional[str] = None
    error: Optional[str] = None


@dataclass
class BatchDeliveryResult:
    success_count: int
    failure_count: int
    results: List[DeliveryResult] = field(default_factory=list)


def stringify_data(data: Optional[Dict[str, object]]) -> Dict[str, str]:
    """FCM data payloads only carry string values."""
    if not data:
        return {}
    return {str(key): "" if value is None else str(value) for key, value in data.items()}


class NotificationService:
    """Base interface for push-notification providers.

    Single sends raise MessagingError when the provider rejects the message.
    Multicast sends report failures per token instead of raising, unless the
    whole batch call fails.
    """

    provider = "base"

    async def send_to_token(self, token: str, message: PushMessage) -> DeliveryResult:
        raise NotImplementedError

    async def send_to_topic(self, topic: str, message: PushMessage) -> DeliveryResult:
        raise NotImplementedError

    async def send_to_tokens(self, tokens: List[str], message: PushMessage) -> BatchDeliveryResult:
        raise NotImplementedError
