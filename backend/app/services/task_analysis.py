"""Task analysis: prompt the model, then normalize its answer."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from app.core.config import Settings, settings as default_settings
from app.core.errors import IncompleteAnalysis
from app.services.execution_report import ExecutionReport, generate_id
from app.services.model_gateway import ModelGateway
from app.services.prompt_builder import build_task_analysis_prompt

logger = logging.getLogger(__name__)

PRIORITIES = ("low", "medium", "high", "urgent")
TITLE_PREVIEW_CHARS = 50

PLANNING_KEYWORDS = ("計画", "プロジェクト", "plan", "project")
REPORT_KEYWORDS = ("資料", "レポート", "report", "document", "slides")

SUBTASK_TEMPLATES = {
    "planning": [
        "Define requirements and confirm scope",
        "Break down the work and draft a schedule",
        "Analyse risks and plan mitigations",
    ],
    "report": [
        "Gather information and research",
        "Outline the structure",
        "Write, edit and proofread",
    ],
    "generic": [
        "Prepare and organize information",
        "Do the work",
        "Review and wrap up",
    ],
}

TAG_KEYWORDS = [
    ("meeting", ("会議", "ミーティング", "meeting")),
    ("documentation", ("資料", "文書", "document", "report")),
    ("project-management", ("計画", "プロジェクト", "project", "plan")),
    ("review", ("レビュー", "確認", "review")),
    ("learning", ("学習", "勉強", "study", "learn")),
    ("development", ("開発", "プログラム", "develop", "code", "program")),
]
DEFAULT_TAG = "general"


@dataclass
class TaskAnalysis:
    title: str
    description: str
    category: str
    priority: str
    estimated_duration: int
    complexity: str
    tags: List[str]
    suggestions: List[str] = field(default_factory=list)


@dataclass
class AnalysisOutcome:
    task_id: str
    analysis: TaskAnalysis
    report: ExecutionReport
    raw: Dict[str, Any]


def map_priority(value: Any) -> str:
    """Bucket a 1-5 number or keep a recognised string; everything else is medium."""
    if isinstance(value, bool):
        return "medium"
    if isinstance(value, (int, float)):
        if value <= 1:
            return "low"
        if value <= 2:
            return "medium"
        if value <= 4:
            return "high"
        return "urgent"
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in PRIORITIES:
            return lowered
    return "medium"


def map_complexity(value: Any) -> str:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return "medium"
    if value <= 2:
        return "easy"
    if value <= 4:
        return "medium"
    return "hard"


def extract_title(user_input: str) -> str:
    colon = user_input.find(":")
    if colon > 0:
        return user_input[:colon].strip()
    if len(user_input) > TITLE_PREVIEW_CHARS:
        return user_input[:TITLE_PREVIEW_CHARS] + "..."
    return user_input


def generate_subtasks(title: str) -> List[str]:
    lowered = title.lower()
    if any(keyword in lowered for keyword in PLANNING_KEYWORDS):
        return list(SUBTASK_TEMPLATES["planning"])
    if any(keyword in lowered for keyword in REPORT_KEYWORDS):
        return list(SUBTASK_TEMPLATES["report"])
    return list(SUBTASK_TEMPLATES["generic"])


def generate_tags(user_input: str) -> List[str]:
    lowered = user_input.lower()
    tags = [tag for tag, keywords in TAG_KEYWORDS if any(keyword in lowered for keyword in keywords)]
    return tags or [DEFAULT_TAG]


def generate_suggestions(
    *,
    priority: str,
    estimated_duration: int,
    skippable: bool,
    split_threshold: int = 120,
) -> List[str]:
    suggestions: List[str] = []
    if estimated_duration > split_threshold:
        suggestions.append("This is a large task; consider splitting it into smaller subtasks.")
    if priority in ("high", "urgent"):
        suggestions.append("This is a high-priority task; tackle it before your other tasks.")
    if skippable:
        suggestions.append("This task could probably be postponed if needed.")
    if estimated_duration <= 30:
        suggestions.append("This can be finished quickly, so use a spare moment for it.")
    return suggestions


def _positive_minutes(value: Any, default: int) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        return default
    minutes = int(round(value))
    return minutes if minutes > 0 else default


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def normalize_analysis(
    parsed: Dict[str, Any],
    user_input: str,
    declared_priority: Any = None,
    config: Optional[Settings] = None,
) -> TaskAnalysis:
    cfg = config or default_settings
    if _is_blank(parsed.get("title")) or _is_blank(parsed.get("description")):
        raise IncompleteAnalysis("Invalid analysis result: missing required fields (title, description)")

    title = str(parsed["title"]).strip() or extract_title(user_input)
    priority = map_priority(declared_priority if declared_priority is not None else parsed.get("priority"))
    duration = _positive_minutes(parsed.get("estimatedDuration"), cfg.default_task_duration_min)

    model_tags = parsed.get("tags")
    if isinstance(model_tags, list) and model_tags:
        tags = [str(tag) for tag in model_tags]
    else:
        tags = generate_tags(user_input)

    category = parsed.get("category")
    return TaskAnalysis(
        title=title,
        description=str(parsed["description"]),
        category=category if isinstance(category, str) and category.strip() else "general",
        priority=priority,
        estimated_duration=duration,
        complexity=map_complexity(parsed.get("difficulty")),
        tags=tags,
        suggestions=generate_suggestions(
            priority=priority,
            estimated_duration=duration,
            skippable=parsed.get("isSkippable") is True,
            split_threshold=cfg.subtask_threshold_min,
        ),
    )


def build_analysis_report(
    task_id: str,
    analysis: TaskAnalysis,
    *,
    model: str,
    split_threshold: int = 120,
) -> ExecutionReport:
    report = ExecutionReport()
    report.add_action(
        "task_created",
        "Created a task from the AI analysis",
        taskId=task_id,
        title=analysis.title,
        priority=analysis.priority,
        category=analysis.category,
        aiModel=model,
    )
    if analysis.estimated_duration > split_threshold:
        subtasks = generate_subtasks(analysis.title)
        report.add_action(
            "subtasks_generated",
            f"Generated {len(subtasks)} subtasks for a complex task",
            count=len(subtasks),
            subtasks=subtasks,
        )

    if analysis.priority in ("high", "urgent"):
        report.add_note("High-priority task: start on it first thing tomorrow morning.")
    if analysis.estimated_duration > 90:
        report.add_note("Reserve an uninterrupted two-hour block for this task.")
    else:
        report.add_note("Short task: it fits into spare time between other work.")
    return report


async def analyze_task(
    gateway: ModelGateway,
    user_input: str,
    *,
    scheduled_date: Optional[str] = None,
    declared_priority: Any = None,
    config: Optional[Settings] = None,
) -> AnalysisOutcome:
    """Analyse free text with the model. Provider errors propagate to the caller."""
    cfg = config or default_settings
    prompt = build_task_analysis_prompt(user_input, scheduled_date)
    parsed = await gateway.invoke(prompt, "task_analysis")
    analysis = normalize_analysis(parsed, user_input, declared_priority, cfg)

    task_id = generate_id("task")
    report = build_analysis_report(task_id, analysis, model=gateway.model, split_threshold=cfg.subtask_threshold_min)
    logger.info(
        "Task analysis normalized (task_id=%s, priority=%s, complexity=%s, duration=%s, actions=%s)",
        task_id,
        analysis.priority,
        analysis.complexity,
        analysis.estimated_duration,
        report.action_types(),
    )
    return AnalysisOutcome(task_id=task_id, analysis=analysis, report=report, raw=parsed)
