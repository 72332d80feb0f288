"""Personalised recommendations with a fixed fallback pair."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from app.core.config import Settings, settings as default_settings
from app.core.errors import IncompleteResult
from app.observability.metrics import log_metric
from app.services.execution_report import ExecutionReport, generate_id, round_half_up
from app.services.fallback import fallback_recommendations
from app.services.model_gateway import ModelGateway
from app.services.prompt_builder import build_recommendations_prompt

logger = logging.getLogger(__name__)

RECOMMENDATION_TYPES = ("productivity", "habit", "schedule", "goal")
RECOMMENDATION_PRIORITIES = ("high", "medium", "low")
IMPACT_LEVELS = ("low", "medium", "high")
FALLBACK_MODEL = "rule-based"


@dataclass
class Recommendation:
    id: str
    type: str
    title: str
    description: str
    priority: str
    category: str
    actionable: bool
    estimated_impact: str
    implementation_steps: List[str]
    timeframe: str


@dataclass
class RecommendationAnalytics:
    total_recommendations: int
    by_type: Dict[str, int]
    by_priority: Dict[str, int]
    improvement_percentage: int


@dataclass
class RecommendationOutcome:
    recommendations: List[Recommendation]
    analytics: RecommendationAnalytics
    report: ExecutionReport
    model: str
    guidance: Dict[str, Any] = field(default_factory=dict)
    ai_powered: bool = True
    fallback_used: bool = False


def default_profile(config: Optional[Settings] = None) -> Dict[str, Any]:
    cfg = config or default_settings
    return {"preferences": {"workStyle": cfg.default_work_style}, "goals": [], "habits": []}


def default_context(config: Optional[Settings] = None) -> Dict[str, Any]:
    cfg = config or default_settings
    return {
        "recentTasks": [],
        "completionRate": cfg.default_completion_rate,
        "activeGoals": [],
        "currentHabits": [],
    }


def normalize_type(value: Any) -> str:
    """Bucket ``habit_suggestion``, ``Goal`` etc. by prefix; default productivity."""
    if isinstance(value, str):
        lowered = value.strip().lower()
        for bucket in RECOMMENDATION_TYPES:
            if lowered.startswith(bucket):
                return bucket
    return "productivity"


def normalize_priority(value: Any) -> str:
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == "urgent":
            return "high"
        if lowered in RECOMMENDATION_PRIORITIES:
            return lowered
    return "medium"


def normalize_impact(value: Any) -> str:
    if isinstance(value, str) and value.strip().lower() in IMPACT_LEVELS:
        return value.strip().lower()
    return "medium"


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None and str(item).strip()]


def normalize_recommendation(raw: Any, default_timeframe: str = "1 week") -> Recommendation:
    item = raw if isinstance(raw, dict) else {}
    timeframe = item.get("timeframe")
    category = item.get("category")
    return Recommendation(
        id=str(item.get("id") or generate_id("rec")),
        type=normalize_type(item.get("type")),
        title=str(item.get("title") or ""),
        description=str(item.get("description") or ""),
        priority=normalize_priority(item.get("priority")),
        category=category if isinstance(category, str) and category.strip() else "general",
        actionable=item.get("actionable") is not False,
        estimated_impact=normalize_impact(item.get("estimatedImpact")),
        implementation_steps=_string_list(item.get("implementationSteps")),
        timeframe=timeframe if isinstance(timeframe, str) and timeframe.strip() else default_timeframe,
    )


def build_analytics(recommendations: List[Recommendation], floor: int = 15) -> RecommendationAnalytics:
    by_type = {bucket: 0 for bucket in RECOMMENDATION_TYPES}
    by_priority = {bucket: 0 for bucket in RECOMMENDATION_PRIORITIES}
    for rec in recommendations:
        by_type[rec.type] += 1
        by_priority[rec.priority] += 1

    total = len(recommendations)
    if total:
        improvement = max(int(round_half_up(100 * by_priority["high"] / total)), floor)
    else:
        improvement = floor
    return RecommendationAnalytics(
        total_recommendations=total,
        by_type=by_type,
        by_priority=by_priority,
        improvement_percentage=improvement,
    )


def _distinct(values: List[str]) -> List[str]:
    seen: List[str] = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
    return seen


def build_recommendation_report(
    recommendations: List[Recommendation],
    profile: Dict[str, Any],
    context: Dict[str, Any],
    *,
    model: str,
    fallback_reason: Optional[str] = None,
) -> ExecutionReport:
    report = ExecutionReport()
    habits = [rec for rec in recommendations if rec.type == "habit"]
    schedules = [rec for rec in recommendations if rec.type == "schedule"]
    goals = [rec for rec in recommendations if rec.type == "goal"]

    if habits:
        report.add_action(
            "habits_created",
            f"Proposed {len(habits)} new habit(s)",
            habitsProposed=len(habits),
            categories=_distinct([rec.category for rec in habits]),
            aiModel=model,
        )
    if schedules:
        report.add_action(
            "schedule_adjusted",
            f"Generated {len(schedules)} schedule improvement(s)",
            adjustmentsProposed=len(schedules),
            focus="productivity_optimization",
            aiModel=model,
        )
    if goals:
        report.add_action(
            "goals_suggested",
            f"Suggested {len(goals)} new goal(s)",
            goalsProposed=len(goals),
            timeframes=_distinct([rec.timeframe for rec in goals]),
            aiModel=model,
        )
    if fallback_reason:
        report.add_action(
            "fallback_applied",
            "The AI model was unavailable; generic recommendations were returned",
            reason=fallback_reason,
        )

    completion_rate = context.get("completionRate")
    if isinstance(completion_rate, (int, float)) and not isinstance(completion_rate, bool):
        if completion_rate > 0.8:
            report.add_note("High task completion rate detected; there is room for further efficiency gains.")
        elif completion_rate < 0.6:
            report.add_note("Task completion rate has room to improve; supportive steps were suggested.")

    preferences = profile.get("preferences")
    work_style = preferences.get("workStyle") if isinstance(preferences, dict) else None
    if work_style:
        report.add_note(f"Recommendations were tailored to a {work_style} work style.")

    recent_tasks = context.get("recentTasks")
    if isinstance(recent_tasks, list) and len(recent_tasks) > 5:
        report.add_note("A rich task history was analysed to personalise the recommendations.")

    high_impact = sum(1 for rec in recommendations if rec.estimated_impact == "high")
    if high_impact:
        report.add_note(f"Identified {high_impact} high-impact recommendation(s).")
    return report


def _guidance(parsed: Dict[str, Any]) -> Dict[str, Any]:
    insights = parsed.get("insights") if isinstance(parsed.get("insights"), dict) else {}
    return {
        "insights": {
            "strengths": _string_list(insights.get("strengths")),
            "improvementAreas": _string_list(insights.get("improvementAreas")),
            "riskFactors": _string_list(insights.get("riskFactors")),
        },
        "personalizedTips": _string_list(parsed.get("personalizedTips")),
        "nextActions": _string_list(parsed.get("nextActions")),
    }


async def generate_recommendations(
    gateway: ModelGateway,
    profile: Optional[Dict[str, Any]] = None,
    context: Optional[Dict[str, Any]] = None,
    config: Optional[Settings] = None,
) -> RecommendationOutcome:
    """Ask the model for recommendations; any failure returns the fixed fallback pair."""
    cfg = config or default_settings
    profile = profile if profile is not None else default_profile(cfg)
    context = context if context is not None else default_context(cfg)

    fallback_reason: Optional[str] = None
    guidance: Dict[str, Any] = {}
    try:
        parsed = await gateway.invoke(build_recommendations_prompt(profile, context), "recommendations")
        raw_items = parsed.get("recommendations")
        if not isinstance(raw_items, list):
            raise IncompleteResult("Invalid recommendations result: missing recommendations array")
        guidance = _guidance(parsed)
    except Exception as exc:
        fallback_reason = f"{type(exc).__name__}: {exc}"
        logger.warning("Recommendation generation with AI failed, using fallback: %s", fallback_reason)
        log_metric("recommendations.fallback.used", 1, {"error": type(exc).__name__})
        raw_items = fallback_recommendations()

    recommendations = [
        normalize_recommendation(item, cfg.default_recommendation_timeframe) for item in raw_items
    ]
    model = FALLBACK_MODEL if fallback_reason else gateway.model
    analytics = build_analytics(recommendations, cfg.recommendation_improvement_floor)
    report = build_recommendation_report(
        recommendations,
        profile,
        context,
        model=model,
        fallback_reason=fallback_reason,
    )
    return RecommendationOutcome(
        recommendations=recommendations,
        analytics=analytics,
        report=report,
        model=model,
        guidance=guidance,
        ai_powered=fallback_reason is None,
        fallback_used=fallback_reason is not None,
    )
