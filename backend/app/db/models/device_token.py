"""Push-notification device token ORM model."""
from __future__ import annotations

from sqlalchemy import Column, DateTime, Text, func

from app.db.base import Base


class DeviceToken(Base):
    """Latest FCM token registered for a user; one row per user."""

    __tablename__ = "device_tokens"

    user_id = Column(Text, primary_key=True)
    fcm_token = Column(Text, nullable=False)
    platform = Column(Text, nullable=False, default="unknown")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
