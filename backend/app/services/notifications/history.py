"""Device token registry and notification history persistence."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError
from app.db.models.device_token import DeviceToken
from app.db.models.notification_history import NotificationRecord

logger = logging.getLogger(__name__)


def register_device_token(db: Session, user_id: str, fcm_token: str, platform: Optional[str] = None) -> DeviceToken:
    """Insert or update the user's token; a user has at most one row."""
    record = db.get(DeviceToken, user_id)
    if record is None:
        record = DeviceToken(user_id=user_id, fcm_token=fcm_token, platform=platform or "unknown")
        db.add(record)
    else:
        record.fcm_token = fcm_token
        record.platform = platform or "unknown"
        record.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(record)
    logger.info("FCM token registered (user=%s, platform=%s)", user_id, record.platform)
    return record


def get_device_token(db: Session, user_id: str) -> DeviceToken:
    record = db.get(DeviceToken, user_id)
    if record is None:
        raise NotFoundError(f"No FCM token registered for user {user_id}", code="DEVICE_TOKEN_NOT_FOUND")
    return record


def find_token_owner(db: Session, fcm_token: str) -> Optional[str]:
    stmt = select(DeviceToken.user_id).where(DeviceToken.fcm_token == fcm_token).limit(1)
    return db.execute(stmt).scalar_one_or_none()


def record_notification(
    db: Session,
    *,
    kind: str,
    title: str,
    body: str,
    status: str,
    data: Optional[Dict[str, Any]] = None,
    user_id: Optional[str] = None,
    recipient_token: Optional[str] = None,
    topic: Optional[str] = None,
    message_id: Optional[str] = None,
    error: Optional[str] = None,
    success_count: Optional[int] = None,
    failure_count: Optional[int] = None,
    results: Optional[List[Dict[str, Any]]] = None,
) -> Optional[NotificationRecord]:
    """Persist one history row. Storage failures are logged, not raised."""
    record = NotificationRecord(
        kind=kind,
        user_id=user_id,
        recipient_token=recipient_token,
        topic=topic,
        title=title,
        body=body,
        data=data or {},
        status=status,
        message_id=message_id,
        error=error,
        success_count=success_count,
        failure_count=failure_count,
        results=results,
        sent_at=datetime.now(timezone.utc),
    )
    try:
        db.add(record)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to save notification history (kind=%s, status=%s)", kind, status)
        return None
    return record


def list_history(
    db: Session,
    user_id: str,
    *,
    limit: int = 50,
    start_after: Optional[str] = None,
) -> Tuple[List[NotificationRecord], bool]:
    """Newest-first page of a user's history and whether more rows follow."""
    stmt = select(NotificationRecord).where(NotificationRecord.user_id == user_id)

    if start_after:
        cursor = db.get(NotificationRecord, start_after)
        if cursor is None or cursor.user_id != user_id:
            raise NotFoundError(f"History entry {start_after} not found", code="HISTORY_CURSOR_NOT_FOUND")
        stmt = stmt.where(
            or_(
                NotificationRecord.sent_at < cursor.sent_at,
                and_(NotificationRecord.sent_at == cursor.sent_at, NotificationRecord.id < cursor.id),
            )
        )

    stmt = stmt.order_by(NotificationRecord.sent_at.desc(), NotificationRecord.id.desc()).limit(limit + 1)
    rows = list(db.execute(stmt).scalars())
    return rows[:limit], len(rows) > limit
