"""Rule-based results used when the model cannot answer.

Nothing here calls out of process and nothing here raises on bad input: these
functions are the availability backstop for schedule optimization and
recommendations.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, time as dt_time, timezone, tzinfo
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.core.config import Settings, settings as default_settings
from app.services.execution_report import generate_id

logger = logging.getLogger(__name__)

PRIORITY_VALUES = {"low": 1, "medium": 3, "high": 4, "urgent": 5}
DEFAULT_PRIORITY_VALUE = 3


def priority_value(priority: Any) -> int:
    """Numeric weight of a priority; numbers are clamped to 1-5, unknown values are 3."""
    if isinstance(priority, bool):
        return DEFAULT_PRIORITY_VALUE
    if isinstance(priority, (int, float)):
        return int(min(max(priority, 1), 5))
    if isinstance(priority, str):
        return PRIORITY_VALUES.get(priority.strip().lower(), DEFAULT_PRIORITY_VALUE)
    return DEFAULT_PRIORITY_VALUE


def resolve_timezone(name: str) -> tzinfo:
    if name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown schedule timezone %r; using UTC", name)
        return timezone.utc


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 date or instant; None when absent or unparseable."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, dt_time())
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def analyze_productivity_pattern(task_history: Optional[List[Dict[str, Any]]]) -> Dict[int, float]:
    """Completion rate per hour of day (0-23) from completed-task history."""
    totals = {hour: 0 for hour in range(24)}
    completed = {hour: 0 for hour in range(24)}
    for entry in task_history or []:
        if not isinstance(entry, dict):
            continue
        completed_at = parse_datetime(entry.get("completedAt"))
        if completed_at is None:
            continue
        totals[completed_at.hour] += 1
        if entry.get("completed"):
            completed[completed_at.hour] += 1
    return {hour: (completed[hour] / totals[hour] if totals[hour] else 0.0) for hour in range(24)}


def find_optimal_hour(
    priority: Any,
    pattern: Dict[int, float],
    *,
    earliest: int = 6,
    latest: int = 22,
    default_hour: int = 9,
) -> int:
    """Hour in [earliest, latest] with the best rate x priority weight; ties keep the earlier hour."""
    weight = priority_value(priority) / 5
    best_hour = default_hour
    best_score = 0.0
    for hour in range(earliest, latest + 1):
        score = pattern.get(hour, 0.0) * weight
        if score > best_score:
            best_score = score
            best_hour = hour
    return best_hour


def calculate_optimal_time(scheduled_date: Any, hour: int, tz: tzinfo) -> datetime:
    """The given hour on the task's date, or today when the date is missing or invalid."""
    parsed = parse_datetime(scheduled_date)
    if parsed is None:
        day = datetime.now(tz).date()
    elif parsed.tzinfo is not None:
        try:
            day = parsed.astimezone(tz).date()
        except OverflowError:
            day = parsed.date()
    else:
        day = parsed.date()
    return datetime.combine(day, dt_time(hour=hour), tzinfo=tz)


def fallback_optimize_schedule(
    tasks: List[Dict[str, Any]],
    task_history: Optional[List[Dict[str, Any]]] = None,
    config: Optional[Settings] = None,
) -> List[Dict[str, Any]]:
    """Stamp each task with a scheduled time from the productivity histogram."""
    cfg = config or default_settings
    tz = resolve_timezone(cfg.schedule_timezone)
    pattern = analyze_productivity_pattern(task_history)

    scheduled: List[Dict[str, Any]] = []
    for task in tasks:
        hour = find_optimal_hour(
            task.get("priority"),
            pattern,
            earliest=cfg.fallback_earliest_hour,
            latest=cfg.fallback_latest_hour,
            default_hour=cfg.default_schedule_hour,
        )
        start = calculate_optimal_time(task.get("scheduledDate"), hour, tz)
        scheduled.append(
            {
                **task,
                "id": task.get("id") or generate_id("task"),
                "scheduledTime": start.isoformat(),
                "optimizationScore": pattern.get(hour, 0.0) * (priority_value(task.get("priority")) / 5),
            }
        )
    logger.info("Fallback schedule built for %s task(s)", len(scheduled))
    return scheduled


def fallback_recommendations() -> List[Dict[str, Any]]:
    """Fixed generic suggestions, independent of the request."""
    return [
        {
            "type": "productivity",
            "title": "Productivity tip",
            "description": (
                "Focus tends to peak in the morning, so place your most important tasks before noon."
            ),
            "priority": "medium",
            "category": "productivity",
            "estimatedImpact": "medium",
            "implementationSteps": [
                "Pick the single most important task the evening before",
                "Block the first 90 minutes of the morning for it",
            ],
        },
        {
            "type": "habit",
            "title": "Habit-building advice",
            "description": (
                "Start with a very small habit and stack new ones on top of it gradually; "
                "small wins are easier to keep going."
            ),
            "priority": "high",
            "category": "habits",
            "estimatedImpact": "medium",
            "implementationSteps": [
                "Choose one habit that takes under two minutes",
                "Attach it to something you already do every day",
            ],
        },
    ]
