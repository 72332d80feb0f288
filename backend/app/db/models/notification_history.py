"""Notification history ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import JSON, Column, DateTime, Index, Integer, String, Text

from app.db.base import Base


def _new_id() -> str:
    return uuid4().hex


class NotificationRecord(Base):
    __tablename__ = "notification_history"
    __table_args__ = (Index("ix_notification_history_user_sent", "user_id", "sent_at"),)

    id = Column(String(32), primary_key=True, default=_new_id)
    kind = Column(String(32), nullable=False)
    user_id = Column(Text, nullable=True)
    recipient_token = Column(Text, nullable=True)
    topic = Column(Text, nullable=True)
    title = Column(Text, nullable=False)
    body = Column(Text, nullable=False)
    data = Column(JSON, nullable=False, default=dict)
    status = Column(String(16), nullable=False)
    message_id = Column(Text, nullable=True)
    error = Column(Text, nullable=True)
    success_count = Column(Integer, nullable=True)
    failure_count = Column(Integer, nullable=True)
    results = Column(JSON, nullable=True)
    sent_at = Column(DateTime(timezone=True), nullable=False)
