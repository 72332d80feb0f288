from __future__ import annotations

import asyncio

import pytest

from app.core.config import Settings
from app.core.errors import IncompleteAnalysis
from app.services.task_analysis import (
    SUBTASK_TEMPLATES,
    analyze_task,
    build_analysis_report,
    extract_title,
    generate_subtasks,
    generate_suggestions,
    generate_tags,
    map_complexity,
    map_priority,
    normalize_analysis,
)
from conftest import FakeGateway


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (1, "low"),
        (0, "low"),
        (2, "medium"),
        (3, "high"),
        (4, "high"),
        (5, "urgent"),
        (9, "urgent"),
        ("HIGH", "high"),
        (" urgent ", "urgent"),
        ("critical", "medium"),
        (None, "medium"),
        (True, "medium"),
    ],
)
def test_map_priority(value, expected) -> None:
    assert map_priority(value) == expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [(1, "easy"), (2, "easy"), (3, "medium"), (4, "medium"), (5, "hard"), ("3", "medium"), (None, "medium")],
)
def test_map_complexity(value, expected) -> None:
    assert map_complexity(value) == expected


def test_extract_title() -> None:
    assert extract_title("資料作成: 月次レポート") == "資料作成"
    assert extract_title(":leading colon") == ":leading colon"
    assert extract_title("a" * 60) == "a" * 50 + "..."
    assert extract_title("short") == "short"


def test_generate_subtasks_templates() -> None:
    assert generate_subtasks("プロジェクト計画") == SUBTASK_TEMPLATES["planning"]
    assert generate_subtasks("Quarterly report") == SUBTASK_TEMPLATES["report"]
    assert generate_subtasks("Clean the garage") == SUBTASK_TEMPLATES["generic"]


def test_generate_tags() -> None:
    assert generate_tags("週次ミーティングの資料") == ["meeting", "documentation"]
    assert generate_tags("Study for the exam") == ["learning"]
    assert generate_tags("buy milk") == ["general"]


def test_generate_suggestions() -> None:
    long_urgent = generate_suggestions(priority="urgent", estimated_duration=180, skippable=False)
    assert len(long_urgent) == 2

    quick_skippable = generate_suggestions(priority="low", estimated_duration=15, skippable=True)
    assert len(quick_skippable) == 2
    assert any("postponed" in item for item in quick_skippable)


def test_normalize_analysis_defaults() -> None:
    analysis = normalize_analysis(
        {"title": "Write blog post", "description": "Draft and publish", "estimatedDuration": -5},
        "Write blog post about the review",
        config=Settings(default_task_duration_min=45),
    )

    assert analysis.estimated_duration == 45
    assert analysis.priority == "medium"
    assert analysis.complexity == "medium"
    assert analysis.category == "general"
    assert analysis.tags == ["review"]


@pytest.mark.parametrize("duration", [float("inf"), float("-inf"), float("nan")])
def test_normalize_analysis_non_finite_duration_uses_default(duration) -> None:
    analysis = normalize_analysis(
        {"title": "Write blog post", "description": "Draft and publish", "estimatedDuration": duration},
        "Write blog post",
    )

    assert analysis.estimated_duration == 60


@pytest.mark.parametrize(
    "parsed",
    [{"description": "only description"}, {"title": " ", "description": "x"}, {"title": "t", "description": ""}],
)
def test_normalize_analysis_requires_title_and_description(parsed) -> None:
    with pytest.raises(IncompleteAnalysis):
        normalize_analysis(parsed, "input")


def test_analysis_report_notes() -> None:
    analysis = normalize_analysis(
        {"title": "Plan", "description": "Plan it", "priority": 5, "estimatedDuration": 100},
        "Plan",
    )

    report = build_analysis_report("task_1", analysis, model="gemini-test")

    assert report.action_types() == ["task_created"]
    assert report.actions[0].details["aiModel"] == "gemini-test"
    assert len(report.notes) == 2
    assert "two-hour block" in report.notes[1]


def test_analyze_task_uses_gateway() -> None:
    gateway = FakeGateway(
        response={"title": "会議準備", "description": "週次会議の準備", "priority": 2, "estimatedDuration": 30}
    )

    outcome = asyncio.run(analyze_task(gateway, "会議準備をする", scheduled_date="2025-03-10"))

    assert outcome.task_id.startswith("task_")
    assert outcome.analysis.priority == "medium"
    assert outcome.analysis.tags == ["meeting"]
    assert outcome.raw["title"] == "会議準備"
    assert gateway.calls[0][0] == "task_analysis"
