"""Firebase Cloud Messaging provider."""
from __future__ import annotations

import logging
from threading import Lock
from typing import List, Optional

import firebase_admin
from firebase_admin import credentials, messaging
from starlette.concurrency import run_in_threadpool

from app.core.errors import MessagingError
from app.observability.metrics import log_metric
from app.observability.tracing import trace
from app.services.notifications.base import (
    BatchDeliveryResult,
    DeliveryResult,
    NotificationService,
    PushMessage,
)

logger = logging.getLogger(__name__)

HIGH_ANDROID_PRIORITIES = {"high", "max"}


def _android_config(message: PushMessage, *, include_click_data: bool) -> messaging.AndroidConfig:
    options = message.options
    data = None
    if include_click_data:
        data = {"click_action": options.click_action, **message.data}
    return messaging.AndroidConfig(
        priority="high" if options.priority in HIGH_ANDROID_PRIORITIES else "normal",
        notification=messaging.AndroidNotification(
            channel_id=options.channel_id,
            priority=options.priority,
            sound=options.sound,
            click_action=options.click_action,
        ),
        data=data,
    )


def _apns_config(message: PushMessage) -> messaging.APNSConfig:
    options = message.options
    return messaging.APNSConfig(
        headers={"apns-priority": "10" if options.priority in HIGH_ANDROID_PRIORITIES else "5"},
        payload=messaging.APNSPayload(
            aps=messaging.Aps(
                alert=messaging.ApsAlert(title=message.title, body=message.body),
                badge=options.badge,
                sound=options.sound,
            )
        ),
    )


def build_message(
    message: PushMessage,
    *,
    token: Optional[str] = None,
    topic: Optional[str] = None,
) -> messaging.Message:
    return messaging.Message(
        token=token,
        topic=topic,
        notification=messaging.Notification(title=message.title, body=message.body),
        data=message.data,
        android=_android_config(message, include_click_data=token is not None),
        apns=_apns_config(message),
    )


def build_multicast_message(tokens: List[str], message: PushMessage) -> messaging.MulticastMessage:
    return messaging.MulticastMessage(
        tokens=tokens,
        notification=messaging.Notification(title=message.title, body=message.body),
        data=message.data,
        android=_android_config(message, include_click_data=False),
        apns=_apns_config(message),
    )


class FcmNotificationService(NotificationService):
    """Sends through the Firebase Admin SDK.

    The Firebase app is initialised on first send, from a service-account file
    when one is configured and from application default credentials otherwise.
    SDK calls are blocking and run in the thread pool.
    """

    provider = "fcm"

    def __init__(self, credentials_path: Optional[str] = None) -> None:
        self.credentials_path = credentials_path
        self._app: Optional[firebase_admin.App] = None
        self._lock = Lock()

    def _get_app(self) -> firebase_admin.App:
        with self._lock:
            if self._app is not None:
                return self._app
            try:
                self._app = firebase_admin.get_app()
            except ValueError:
                cred = (
                    credentials.Certificate(self.credentials_path)
                    if self.credentials_path
                    else credentials.ApplicationDefault()
                )
                self._app = firebase_admin.initialize_app(cred)
                logger.info("Firebase Admin initialised (service_account=%s)", bool(self.credentials_path))
            return self._app

    def _send(self, fcm_message: messaging.Message) -> str:
        return messaging.send(fcm_message, app=self._get_app())

    def _send_multicast(self, fcm_message: messaging.MulticastMessage) -> messaging.BatchResponse:
        return messaging.send_each_for_multicast(fcm_message, app=self._get_app())

    async def send_to_token(self, token: str, message: PushMessage) -> DeliveryResult:
        with trace("fcm.send", metadata={"target": "token"}):
            try:
                message_id = await run_in_threadpool(self._send, build_message(message, token=token))
            except Exception as exc:
                log_metric("notifications.send.failed", 1, {"target": "token"})
                raise MessagingError(f"Failed to send push notification: {exc}") from exc
        logger.info("Push notification sent (token=%s..., message_id=%s)", token[:8], message_id)
        return DeliveryResult(success=True, message_id=message_id, token=token)

    async def send_to_topic(self, topic: str, message: PushMessage) -> DeliveryResult:
        with trace("fcm.send", metadata={"target": "topic", "topic": topic}):
            try:
                message_id = await run_in_threadpool(self._send, build_message(message, topic=topic))
            except Exception as exc:
                log_metric("notifications.send.failed", 1, {"target": "topic"})
                raise MessagingError(f"Failed to send topic notification: {exc}") from exc
        logger.info("Topic notification sent (topic=%s, message_id=%s)", topic, message_id)
        return DeliveryResult(success=True, message_id=message_id)

    async def send_to_tokens(self, tokens: List[str], message: PushMessage) -> BatchDeliveryResult:
        with trace("fcm.send_multicast", metadata={"token_count": len(tokens)}):
            try:
                response = await run_in_threadpool(self._send_multicast, build_multicast_message(tokens, message))
            except Exception as exc:
                log_metric("notifications.send.failed", 1, {"target": "multicast"})
                raise MessagingError(f"Failed to send multicast notification: {exc}") from exc

        results = [
            DeliveryResult(
                success=item.success,
                message_id=item.message_id,
                token=token,
                error=str(item.exception) if item.exception else None,
            )
            for token, item in zip(tokens, response.responses)
        ]
        logger.info(
            "Multicast notification sent (success=%s, failure=%s)",
            response.success_count,
            response.failure_count,
        )
        return BatchDeliveryResult(
            success_count=response.success_count,
            failure_count=response.failure_count,
            results=results,
        )
