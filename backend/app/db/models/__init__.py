"""ORM models exposed for metadata discovery."""
from app.db.models.device_token import DeviceToken
from app.db.models.notification_history import NotificationRecord

__all__ = [
    "DeviceToken",
    "NotificationRecord",
]
