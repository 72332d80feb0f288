"""Schemas for push notifications."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field

from app.api.schemas.common import ApiModel
from app.services.notifications.base import NotificationOptions, PushMessage, stringify_data


class NotificationOptionsModel(ApiModel):
    channel_id: str = "default"
    priority: Literal["min", "low", "default", "high", "max"] = "high"
    sound: str = "default"
    click_action: str = "FLUTTER_NOTIFICATION_CLICK"
    badge: int = Field(default=1, ge=0)

    def to_options(self) -> NotificationOptions:
        return NotificationOptions(
            channel_id=self.channel_id,
            priority=self.priority,
            sound=self.sound,
            click_action=self.click_action,
            badge=self.badge,
        )


class _MessageFields(ApiModel):
    title: str = Field(..., min_length=1)
    body: str = Field(..., min_length=1)
    data: Dict[str, Any] = Field(default_factory=dict)
    options: Optional[NotificationOptionsModel] = None

    def to_message(self) -> PushMessage:
        options = (self.options or NotificationOptionsModel()).to_options()
        return PushMessage(title=self.title, body=self.body, data=stringify_data(self.data), options=options)


class SendToTokenRequest(_MessageFields):
    token: str = Field(..., min_length=1)


class SendToTopicRequest(_MessageFields):
    topic: str = Field(..., min_length=1)


class SendToTokensRequest(_MessageFields):
    tokens: List[str] = Field(..., min_length=1, max_length=500)


class HabitReminderRequest(ApiModel):
    user_id: str = Field(..., min_length=1)
    habit_name: str = Field(..., min_length=1)
    reminder_time: Optional[str] = None
    custom_message: Optional[str] = None


class TaskDeadlineRequest(ApiModel):
    user_id: str = Field(..., min_length=1)
    task_name: str = Field(..., min_length=1)
    due_date: str = Field(..., min_length=1)
    priority: Optional[str] = None
    before_minutes: int = Field(default=0, ge=0)


class AiReportRequest(ApiModel):
    user_id: str = Field(..., min_length=1)
    report_type: str = Field(..., min_length=1)
    summary: str = Field(..., min_length=1)
    report_data: Optional[Dict[str, Any]] = None


class RegisterTokenRequest(ApiModel):
    user_id: str = Field(..., min_length=1)
    fcm_token: str = Field(..., min_length=1)
    platform: Optional[str] = None


class SendResponse(ApiModel):
    success: bool = True
    message_id: Optional[str] = None
    message: str
    timestamp: str


class DeliveryResultModel(ApiModel):
    token: Optional[str] = None
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class MulticastResponse(ApiModel):
    success: bool = True
    success_count: int
    failure_count: int
    results: List[DeliveryResultModel]
    message: str
    timestamp: str


class RegisterTokenResponse(ApiModel):
    success: bool = True
    message: str
    timestamp: str


class HistoryEntry(ApiModel):
    id: str
    kind: str
    user_id: Optional[str] = None
    recipient_token: Optional[str] = None
    topic: Optional[str] = None
    title: str
    body: str
    data: Dict[str, Any] = Field(default_factory=dict)
    status: str
    message_id: Optional[str] = None
    error: Optional[str] = None
    success_count: Optional[int] = None
    failure_count: Optional[int] = None
    results: Optional[List[Dict[str, Any]]] = None
    sent_at: datetime


class HistoryResponse(ApiModel):
    success: bool = True
    history: List[HistoryEntry]
    has_more: bool
    timestamp: str
