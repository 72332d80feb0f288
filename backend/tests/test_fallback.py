from __future__ import annotations

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from app.core.config import Settings
from app.services.fallback import (
    analyze_productivity_pattern,
    calculate_optimal_time,
    fallback_optimize_schedule,
    fallback_recommendations,
    find_optimal_hour,
    parse_datetime,
    priority_value,
    resolve_timezone,
)

UTC_SETTINGS = Settings(schedule_timezone="UTC")


@pytest.mark.parametrize(
    ("priority", "expected"),
    [("low", 1), ("medium", 3), ("high", 4), ("urgent", 5), ("URGENT", 5), (7, 5), (0, 1), (2.7, 2), (None, 3), ("?", 3)],
)
def test_priority_value(priority, expected) -> None:
    assert priority_value(priority) == expected


def test_single_task_without_history_gets_default_hour() -> None:
    scheduled = fallback_optimize_schedule(
        [{"title": "Write report", "priority": "high", "scheduledDate": "2025-03-10"}],
        [],
        UTC_SETTINGS,
    )

    assert len(scheduled) == 1
    assert scheduled[0]["scheduledTime"] == "2025-03-10T09:00:00+00:00"
    assert scheduled[0]["optimizationScore"] == 0.0
    assert scheduled[0]["id"].startswith("task_")
    assert scheduled[0]["title"] == "Write report"


def test_missing_or_invalid_date_uses_today() -> None:
    scheduled = fallback_optimize_schedule(
        [{"title": "a", "priority": "low"}, {"title": "b", "priority": "low", "scheduledDate": "not-a-date"}],
        None,
        UTC_SETTINGS,
    )

    today = datetime.now(timezone.utc).date()
    for task in scheduled:
        start = datetime.fromisoformat(task["scheduledTime"])
        assert start.hour == 9
        assert abs((start.date() - today).days) <= 1


def test_history_moves_tasks_to_productive_hour() -> None:
    history = [
        {"completedAt": "2025-03-01T14:10:00Z", "completed": True},
        {"completedAt": "2025-03-02T14:40:00Z", "completed": True},
        {"completedAt": "2025-03-03T10:00:00Z", "completed": False},
        {"completedAt": "2025-03-03T03:00:00Z", "completed": True},
        {"completed": True},
        "garbage",
    ]

    scheduled = fallback_optimize_schedule(
        [{"id": "t1", "title": "Focus", "priority": "urgent", "scheduledDate": "2025-03-10"}],
        history,
        UTC_SETTINGS,
    )

    assert scheduled[0]["id"] == "t1"
    assert scheduled[0]["scheduledTime"] == "2025-03-10T14:00:00+00:00"
    assert scheduled[0]["optimizationScore"] == 1.0


def test_productivity_pattern_rates() -> None:
    pattern = analyze_productivity_pattern(
        [
            {"completedAt": "2025-03-01T10:00:00+00:00", "completed": True},
            {"completedAt": "2025-03-02T10:30:00+00:00", "completed": False},
        ]
    )

    assert pattern[10] == 0.5
    assert pattern[11] == 0.0
    assert len(pattern) == 24


def test_optimal_hour_ignores_hours_outside_window_and_prefers_earliest_tie() -> None:
    pattern = {hour: 0.0 for hour in range(24)}
    pattern[3] = 1.0
    assert find_optimal_hour("high", pattern) == 9

    pattern[8] = 0.5
    pattern[16] = 0.5
    assert find_optimal_hour("high", pattern) == 8


def test_calculate_optimal_time_in_local_zone() -> None:
    tz = ZoneInfo("Asia/Tokyo")

    start = calculate_optimal_time("2025-03-10T23:30:00Z", 9, tz)

    assert start.isoformat() == "2025-03-11T09:00:00+09:00"


def test_unknown_timezone_falls_back_to_utc() -> None:
    assert resolve_timezone("Mars/Olympus") is timezone.utc
    assert resolve_timezone("utc") is timezone.utc


def test_parse_datetime() -> None:
    assert parse_datetime("2025-03-10T09:00:00Z") == datetime(2025, 3, 10, 9, tzinfo=timezone.utc)
    assert parse_datetime("2025-03-10") == datetime(2025, 3, 10)
    assert parse_datetime("") is None
    assert parse_datetime(12345) is None


def test_fallback_tolerates_odd_values() -> None:
    scheduled = fallback_optimize_schedule([{"title": "x", "priority": {"nested": 1}, "scheduledDate": 42}], None, UTC_SETTINGS)

    assert datetime.fromisoformat(scheduled[0]["scheduledTime"]).hour == 9


def test_fallback_recommendations_are_fixed() -> None:
    first = fallback_recommendations()

    assert [item["type"] for item in first] == ["productivity", "habit"]
    assert [item["priority"] for item in first] == ["medium", "high"]
    assert first == fallback_recommendations()
