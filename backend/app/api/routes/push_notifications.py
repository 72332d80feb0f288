"""Push notification routes: sends, token registration, history."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, Request
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.api.deps import get_notification_service
from app.api.schemas.common import ErrorResponse
from app.api.schemas.notifications import (
    AiReportRequest,
    DeliveryResultModel,
    HabitReminderRequest,
    HistoryEntry,
    HistoryResponse,
    MulticastResponse,
    RegisterTokenRequest,
    RegisterTokenResponse,
    SendResponse,
    SendToTokenRequest,
    SendToTokensRequest,
    SendToTopicRequest,
    TaskDeadlineRequest,
)
from app.core.config import settings
from app.core.errors import MessagingError
from app.db.deps import get_db
from app.observability.metrics import log_metric
from app.observability.tracing import trace
from app.services.execution_report import utc_now_iso
from app.services.notifications import templates
from app.services.notifications.base import NotificationService, PushMessage
from app.services.notifications.history import (
    find_token_owner,
    get_device_token,
    list_history,
    record_notification,
    register_device_token,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/push-notifications",
    tags=["push-notifications"],
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)


async def _send_and_record(
    db: Session,
    service: NotificationService,
    *,
    kind: str,
    message: PushMessage,
    token: Optional[str] = None,
    topic: Optional[str] = None,
    user_id: Optional[str] = None,
) -> Optional[str]:
    """Send to one token or topic and write the outcome to history."""
    history_fields = dict(
        kind=kind,
        title=message.title,
        body=message.body,
        data=message.data,
        user_id=user_id,
        recipient_token=token,
        topic=topic,
    )
    try:
        if topic is not None:
            result = await service.send_to_topic(topic, message)
        else:
            result = await service.send_to_token(token or "", message)
    except MessagingError as exc:
        logger.error("Push notification failed (kind=%s): %s", kind, exc)
        await run_in_threadpool(record_notification, db, status="failed", error=str(exc), **history_fields)
        raise

    await run_in_threadpool(record_notification, db, status="sent", message_id=result.message_id, **history_fields)
    log_metric("notifications.sent", 1, {"kind": kind, "provider": service.provider})
    return result.message_id


@router.post("/send", response_model=SendResponse)
async def send_to_token(
    payload: SendToTokenRequest,
    request: Request,
    db: Session = Depends(get_db),
    service: NotificationService = Depends(get_notification_service),
) -> SendResponse:
    with trace("push.send", metadata={"kind": "token"}, request_id=getattr(request.state, "request_id", None)):
        owner = await run_in_threadpool(find_token_owner, db, payload.token)
        message_id = await _send_and_record(
            db, service, kind="token", message=payload.to_message(), token=payload.token, user_id=owner
        )
    return SendResponse(message_id=message_id, message="Push notification sent", timestamp=utc_now_iso())


@router.post("/send-topic", response_model=SendResponse)
async def send_to_topic(
    payload: SendToTopicRequest,
    request: Request,
    db: Session = Depends(get_db),
    service: NotificationService = Depends(get_notification_service),
) -> SendResponse:
    with trace("push.send", metadata={"kind": "topic"}, request_id=getattr(request.state, "request_id", None)):
        message_id = await _send_and_record(
            db, service, kind="topic", message=payload.to_message(), topic=payload.topic
        )
    return SendResponse(
        message_id=message_id,
        message=f"Push notification sent to topic '{payload.topic}'",
        timestamp=utc_now_iso(),
    )


@router.post("/send-multiple", response_model=MulticastResponse)
async def send_to_tokens(
    payload: SendToTokensRequest,
    request: Request,
    db: Session = Depends(get_db),
    service: NotificationService = Depends(get_notification_service),
) -> MulticastResponse:
    message = payload.to_message()
    history_fields = dict(kind="multicast", title=message.title, body=message.body, data=message.data)

    with trace(
        "push.send_multiple",
        metadata={"token_count": len(payload.tokens)},
        request_id=getattr(request.state, "request_id", None),
    ):
        try:
            batch = await service.send_to_tokens(payload.tokens, message)
        except MessagingError as exc:
            await run_in_threadpool(record_notification, db, status="failed", error=str(exc), **history_fields)
            raise

    results = [
        DeliveryResultModel(token=item.token, success=item.success, message_id=item.message_id, error=item.error)
        for item in batch.results
    ]
    if batch.failure_count == 0:
        status = "sent"
    elif batch.success_count == 0:
        status = "failed"
    else:
        status = "partial"
    await run_in_threadpool(
        record_notification,
        db,
        status=status,
        success_count=batch.success_count,
        failure_count=batch.failure_count,
        results=[item.model_dump(by_alias=True) for item in results],
        **history_fields,
    )
    log_metric("notifications.multicast.failures", batch.failure_count, {"provider": service.provider})
    return MulticastResponse(
        success_count=batch.success_count,
        failure_count=batch.failure_count,
        results=results,
        message=f"Sent {batch.success_count} notification(s)",
        timestamp=utc_now_iso(),
    )


async def _send_to_user(
    db: Session,
    service: NotificationService,
    *,
    kind: str,
    user_id: str,
    message: PushMessage,
) -> Optional[str]:
    device = await run_in_threadpool(get_device_token, db, user_id)
    return await _send_and_record(db, service, kind=kind, message=message, token=device.fcm_token, user_id=user_id)


@router.post("/habit-reminder", response_model=SendResponse, responses={404: {"model": ErrorResponse}})
async def habit_reminder(
    payload: HabitReminderRequest,
    db: Session = Depends(get_db),
    service: NotificationService = Depends(get_notification_service),
) -> SendResponse:
    message = templates.habit_reminder(
        payload.user_id, payload.habit_name, payload.reminder_time, payload.custom_message
    )
    message_id = await _send_to_user(db, service, kind="habit_reminder", user_id=payload.user_id, message=message)
    return SendResponse(
        message_id=message_id,
        message=f"Habit reminder '{payload.habit_name}' sent",
        timestamp=utc_now_iso(),
    )


@router.post("/task-deadline", response_model=SendResponse, responses={404: {"model": ErrorResponse}})
async def task_deadline(
    payload: TaskDeadlineRequest,
    db: Session = Depends(get_db),
    service: NotificationService = Depends(get_notification_service),
) -> SendResponse:
    message = templates.task_deadline(
        payload.user_id, payload.task_name, payload.due_date, payload.priority, payload.before_minutes
    )
    message_id = await _send_to_user(db, service, kind="task_deadline", user_id=payload.user_id, message=message)
    return SendResponse(
        message_id=message_id,
        message=f"Task deadline alert '{payload.task_name}' sent",
        timestamp=utc_now_iso(),
    )


@router.post("/ai-report", response_model=SendResponse, responses={404: {"model": ErrorResponse}})
async def ai_report(
    payload: AiReportRequest,
    db: Session = Depends(get_db),
    service: NotificationService = Depends(get_notification_service),
) -> SendResponse:
    message = templates.ai_report(payload.user_id, payload.report_type, payload.summary, payload.report_data)
    message_id = await _send_to_user(db, service, kind="ai_report", user_id=payload.user_id, message=message)
    return SendResponse(
        message_id=message_id,
        message=f"AI report ({payload.report_type}) sent",
        timestamp=utc_now_iso(),
    )


@router.post("/register-token", response_model=RegisterTokenResponse)
async def register_token(
    payload: RegisterTokenRequest,
    db: Session = Depends(get_db),
) -> RegisterTokenResponse:
    await run_in_threadpool(register_device_token, db, payload.user_id, payload.fcm_token, payload.platform)
    return RegisterTokenResponse(message="FCM token registered", timestamp=utc_now_iso())


@router.get("/history/{user_id}", response_model=HistoryResponse)
async def notification_history(
    user_id: str = Path(..., min_length=1),
    limit: Optional[int] = Query(default=None, ge=1, le=100),
    start_after: Optional[str] = Query(default=None, alias="startAfter"),
    db: Session = Depends(get_db),
) -> HistoryResponse:
    page_size = limit or settings.notification_history_page_size
    records, has_more = await run_in_threadpool(
        lambda: list_history(db, user_id, limit=page_size, start_after=start_after)
    )
    return HistoryResponse(
        history=[HistoryEntry.model_validate(record, from_attributes=True) for record in records],
        has_more=has_more,
        timestamp=utc_now_iso(),
    )
