from __future__ import annotations

import re

import pytest

from app.services.execution_report import ExecutionReport, elapsed_seconds, generate_id, round_half_up


def test_generate_id_format_and_uniqueness() -> None:
    ids = {generate_id("task") for _ in range(50)}

    assert len(ids) == 50
    assert all(re.fullmatch(r"task_\d{13}_[0-9a-f]{9}", value) for value in ids)


@pytest.mark.parametrize(
    ("value", "digits", "expected"),
    [(0.125, 2, 0.13), (2.5, 0, 3.0), (1.4, 0, 1.0), (33.333, 0, 33.0), (0.35, 2, 0.35)],
)
def test_round_half_up(value, digits, expected) -> None:
    assert round_half_up(value, digits) == expected


def test_elapsed_seconds_never_negative() -> None:
    assert elapsed_seconds(10.0, now=11.25) == 1.25
    assert elapsed_seconds(10.0, now=9.0) == 0.0


def test_report_collects_actions_and_notes() -> None:
    report = ExecutionReport()
    report.add_action("task_created", "Created", taskId="task_1")
    report.add_note("note")

    assert report.status == "completed"
    assert report.action_types() == ["task_created"]
    assert report.actions[0].details == {"taskId": "task_1"}
    assert report.notes == ["note"]
