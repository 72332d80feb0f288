"""Push message templates for app-specific notifications."""
from __future__ import annotations

import json
from typing import Any, Dict, Optional

from app.services.notifications.base import NotificationOptions, PushMessage


def format_lead_time(minutes: int) -> str:
    """``90`` -> ``1h 30m``; under an hour stays in minutes."""
    if minutes > 60:
        return f"{minutes // 60}h {minutes % 60}m"
    return f"{minutes}m"


def habit_reminder(
    user_id: str,
    habit_name: str,
    reminder_time: Optional[str] = None,
    custom_message: Optional[str] = None,
) -> PushMessage:
    return PushMessage(
        title="🌟 Habit reminder",
        body=custom_message or f"Time for {habit_name}! Keep the streak going today.",
        data={
            "type": "habit_reminder",
            "habitName": habit_name,
            "userId": user_id,
            "reminderTime": reminder_time or "",
        },
        options=NotificationOptions(channel_id="habit_reminders", priority="high"),
    )


def task_deadline(
    user_id: str,
    task_name: str,
    due_date: str,
    priority: Optional[str] = None,
    before_minutes: int = 0,
) -> PushMessage:
    urgent = priority == "high"
    return PushMessage(
        title="🚨 Urgent task deadline" if urgent else "⏰ Task deadline",
        body=f"\"{task_name}\" is due in {format_lead_time(before_minutes)}",
        data={
            "type": "task_deadline",
            "taskName": task_name,
            "userId": user_id,
            "dueDate": due_date,
            "priority": priority or "medium",
            "beforeMinutes": str(before_minutes),
        },
        options=NotificationOptions(channel_id="task_deadlines", priority="max" if urgent else "high"),
    )


def ai_report(
    user_id: str,
    report_type: str,
    summary: str,
    report_data: Optional[Dict[str, Any]] = None,
) -> PushMessage:
    return PushMessage(
        title="🤖 AI weekly report" if report_type == "weekly" else "📊 AI analysis report",
        body=summary,
        data={
            "type": "ai_report",
            "reportType": report_type,
            "userId": user_id,
            "summary": summary,
            "reportData": json.dumps(report_data or {}, ensure_ascii=False),
        },
        options=NotificationOptions(channel_id="ai_reports", priority="default"),
    )
