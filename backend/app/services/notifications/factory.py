"""Notification service factory."""
from __future__ import annotations

import logging
from functools import lru_cache

from app.core.config import settings
from app.services.notifications.base import NotificationService
from app.services.notifications.fcm import FcmNotificationService
from app.services.notifications.noop import NoopNotificationService

logger = logging.getLogger(__name__)


@lru_cache
def get_notification_service() -> NotificationService:
    provider = settings.notifications_provider.lower()
    if provider == "noop":
        return NoopNotificationService()
    if provider != "fcm":
        logger.warning("Unknown notifications provider %r; using noop", provider)
        return NoopNotificationService()
    return FcmNotificationService(credentials_path=settings.firebase_credentials_path)
