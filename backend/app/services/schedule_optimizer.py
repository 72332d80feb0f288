"""Schedule optimization with a rule-based fallback."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, tzinfo
from typing import Any, Dict, List, Optional

from app.core.config import Settings, settings as default_settings
from app.core.errors import IncompleteResult
from app.observability.metrics import log_metric
from app.services.execution_report import ExecutionReport, generate_id, round_half_up
from app.services.fallback import (
    calculate_optimal_time,
    fallback_optimize_schedule,
    parse_datetime,
    resolve_timezone,
)
from app.services.model_gateway import ModelGateway
from app.services.prompt_builder import build_schedule_prompt
from app.services.task_analysis import map_priority

logger = logging.getLogger(__name__)

FALLBACK_MODEL = "rule-based"


@dataclass
class ScheduledTask:
    id: str
    title: str
    start: datetime
    estimated_duration: int
    priority: str
    category: str
    optimization_reason: Optional[str] = None

    @property
    def end(self) -> datetime:
        return calculate_end_time(self.start, self.estimated_duration)


@dataclass
class ScheduleSummary:
    total_tasks: int
    total_duration: int
    efficiency: float
    improvement_percentage: int


@dataclass
class ScheduleOutcome:
    tasks: List[ScheduledTask]
    summary: ScheduleSummary
    report: ExecutionReport
    model: str
    ai_powered: bool = True
    fallback_used: bool = False
    conflicts: int = 0
    insights: List[str] = field(default_factory=list)


def calculate_end_time(start: datetime, duration_minutes: int) -> datetime:
    return start + timedelta(minutes=duration_minutes)


def count_conflicts(tasks: List[ScheduledTask]) -> int:
    """Number of task pairs whose [start, end) intervals strictly overlap."""
    conflicts = 0
    for index, first in enumerate(tasks):
        for second in tasks[index + 1 :]:
            if first.start < second.end and second.start < first.end:
                conflicts += 1
    return conflicts


def group_by_category(tasks: List[ScheduledTask]) -> Dict[str, List[ScheduledTask]]:
    groups: Dict[str, List[ScheduledTask]] = {}
    for task in tasks:
        groups.setdefault(task.category or "general", []).append(task)
    return groups


def calculate_efficiency(tasks: List[ScheduledTask], workday_minutes: int = 480) -> float:
    """Load against a workday plus a bonus for high/urgent work, in [0, 1]."""
    if not tasks:
        return 0.0
    total = sum(task.estimated_duration for task in tasks)
    load = min(total / workday_minutes, 1.0)
    high_count = sum(1 for task in tasks if task.priority in ("high", "urgent"))
    bonus = min(0.1 * high_count, 0.3)
    return round_half_up(min(load + bonus, 1.0), 2)


def improvement_percentage(efficiency: float, baseline: float = 0.7) -> int:
    return max(int(round_half_up((efficiency - baseline) / baseline * 100)), 0)


def _coerce_minutes(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        return None
    minutes = int(round(value))
    return minutes if minutes > 0 else None


def _merge_model_tasks(inputs: List[Dict[str, Any]], model_tasks: List[Any]) -> List[Dict[str, Any]]:
    """Overlay each model entry on its input task, matched by id, then title, then order."""
    unused = list(range(len(inputs)))
    by_id = {str(task["id"]): idx for idx, task in enumerate(inputs) if task.get("id")}
    by_title: Dict[str, List[int]] = {}
    for idx, task in enumerate(inputs):
        by_title.setdefault(str(task.get("title")), []).append(idx)

    merged: List[Dict[str, Any]] = []
    for entry in model_tasks:
        entry = entry if isinstance(entry, dict) else {}
        match: Optional[int] = None
        entry_id = entry.get("id")
        if entry_id is not None and by_id.get(str(entry_id)) in unused:
            match = by_id[str(entry_id)]
        if match is None:
            match = next((idx for idx in by_title.get(str(entry.get("title")), []) if idx in unused), None)
        if match is None:
            match = unused[0]
        unused.remove(match)

        source = inputs[match]
        combined = {**source, **{key: value for key, value in entry.items() if value is not None}}
        if source.get("id"):
            combined["id"] = source["id"]
        merged.append(combined)
    return merged


def _finalize_task(task: Dict[str, Any], tz: tzinfo, cfg: Settings) -> ScheduledTask:
    duration = _coerce_minutes(task.get("estimatedDuration")) or cfg.default_task_duration_min
    start = parse_datetime(task.get("scheduledTime"))
    if start is None:
        start = calculate_optimal_time(task.get("scheduledDate"), cfg.default_schedule_hour, tz)
    elif start.tzinfo is None:
        start = start.replace(tzinfo=tz)
    try:
        calculate_end_time(start, duration)
    except (OverflowError, ValueError) as exc:
        raise IncompleteResult(f"Invalid optimization result: scheduled time out of range ({exc})") from exc

    category = task.get("category")
    reason = task.get("optimizationReason")
    return ScheduledTask(
        id=str(task.get("id") or generate_id("task")),
        title=str(task.get("title") or ""),
        start=start,
        estimated_duration=duration,
        priority=map_priority(task.get("priority")),
        category=category if isinstance(category, str) and category.strip() else "general",
        optimization_reason=reason if isinstance(reason, str) else None,
    )


def _finalize_fallback_task(task: Dict[str, Any], tz: tzinfo, cfg: Settings) -> ScheduledTask:
    """Like _finalize_task, but an out-of-range slot moves to today at the default hour."""
    try:
        return _finalize_task(task, tz, cfg)
    except IncompleteResult:
        logger.warning("Fallback slot for %r is out of range; rescheduling for today", task.get("title"))
        return _finalize_task({**task, "scheduledTime": None, "scheduledDate": None}, tz, cfg)


async def _optimize_with_model(
    gateway: ModelGateway,
    tasks: List[Dict[str, Any]],
    preferences: Dict[str, Any],
    task_history: List[Dict[str, Any]],
    cfg: Settings,
) -> Dict[str, Any]:
    prompt = build_schedule_prompt(tasks, preferences, task_history, cfg.history_prompt_limit)
    parsed = await gateway.invoke(prompt, "schedule_optimization")
    model_tasks = parsed.get("optimizedTasks")
    if not isinstance(model_tasks, list):
        raise IncompleteResult("Invalid optimization result: missing optimizedTasks array")
    if len(model_tasks) != len(tasks):
        raise IncompleteResult(
            f"Invalid optimization result: expected {len(tasks)} tasks, got {len(model_tasks)}"
        )
    return parsed


def build_schedule_report(
    tasks: List[ScheduledTask],
    *,
    conflicts: int,
    model: str,
    preferences: Dict[str, Any],
    task_history: List[Dict[str, Any]],
    fallback_reason: Optional[str] = None,
    model_insights: Optional[List[str]] = None,
) -> ExecutionReport:
    report = ExecutionReport()
    total_duration = sum(task.estimated_duration for task in tasks)
    report.add_action(
        "schedule_updated",
        f"Optimized the schedule of {len(tasks)} task(s)",
        updatedTasks=len(tasks),
        totalDuration=total_duration,
        aiModel=model,
    )
    if conflicts > 0:
        report.add_action(
            "conflicts_resolved",
            f"Detected and resolved {conflicts} schedule conflict(s)",
            conflictsResolved=conflicts,
            resolutionMethod="rule_based" if fallback_reason else "ai_optimization",
        )
    if fallback_reason:
        report.add_action(
            "fallback_applied",
            "The AI model was unavailable; a rule-based schedule was used",
            reason=fallback_reason,
        )

    if any(task.priority in ("high", "urgent") for task in tasks):
        report.add_note("High-priority tasks were placed in the best available time slots.")
    if len(group_by_category(tasks)) > 1:
        report.add_note("Similar tasks were grouped together to improve efficiency.")
    work_style = preferences.get("workStyle")
    if work_style:
        report.add_note(f"The schedule was adjusted for a {work_style} work style.")
    if task_history:
        report.add_note("Past task history was used to account for personal productivity patterns.")
    for insight in model_insights or []:
        if isinstance(insight, str) and insight.strip():
            report.add_note(insight.strip())
    return report


async def optimize_schedule(
    gateway: ModelGateway,
    tasks: List[Dict[str, Any]],
    preferences: Optional[Dict[str, Any]] = None,
    task_history: Optional[List[Dict[str, Any]]] = None,
    config: Optional[Settings] = None,
) -> ScheduleOutcome:
    """Ask the model for a schedule; any failure falls back to the rule-based planner."""
    cfg = config or default_settings
    preferences = preferences or {}
    task_history = task_history or []
    tz = resolve_timezone(cfg.schedule_timezone)

    fallback_reason: Optional[str] = None
    model_insights: List[str] = []
    try:
        parsed = await _optimize_with_model(gateway, tasks, preferences, task_history, cfg)
        raw_tasks = _merge_model_tasks(tasks, parsed["optimizedTasks"])
        insights = parsed.get("optimizationInsights")
        if isinstance(insights, list):
            model_insights = [str(item) for item in insights]
        scheduled = [_finalize_task(task, tz, cfg) for task in raw_tasks]
    except Exception as exc:
        fallback_reason = f"{type(exc).__name__}: {exc}"
        logger.warning("Schedule optimization with AI failed, using rule-based fallback: %s", fallback_reason)
        log_metric("schedule.fallback.used", 1, {"error": type(exc).__name__})
        raw_tasks = fallback_optimize_schedule(tasks, task_history, cfg)
        scheduled = [_finalize_fallback_task(task, tz, cfg) for task in raw_tasks]

    model = FALLBACK_MODEL if fallback_reason else gateway.model
    conflicts = count_conflicts(scheduled)
    efficiency = calculate_efficiency(scheduled, cfg.workday_minutes)
    summary = ScheduleSummary(
        total_tasks=len(scheduled),
        total_duration=sum(task.estimated_duration for task in scheduled),
        efficiency=efficiency,
        improvement_percentage=improvement_percentage(efficiency, cfg.baseline_efficiency),
    )
    report = build_schedule_report(
        scheduled,
        conflicts=conflicts,
        model=model,
        preferences=preferences,
        task_history=task_history,
        fallback_reason=fallback_reason,
        model_insights=model_insights,
    )
    log_metric("schedule.conflicts", conflicts, {"fallback": bool(fallback_reason)})
    return ScheduleOutcome(
        tasks=scheduled,
        summary=summary,
        report=report,
        model=model,
        ai_powered=fallback_reason is None,
        fallback_used=fallback_reason is not None,
        conflicts=conflicts,
        insights=model_insights,
    )
