"""Task analysis route."""
from __future__ import annotations

import logging
from time import perf_counter

from fastapi import APIRouter, Depends, Request

from app.api.deps import get_model_gateway
from app.api.schemas.analysis import (
    AnalysisExecution,
    AnalysisMetadata,
    AnalyzeTaskRequest,
    AnalyzeTaskResponse,
    TaskAnalysisModel,
)
from app.api.schemas.common import ErrorResponse, actions_payload
from app.core.errors import InternalError
from app.observability.metrics import log_metric
from app.observability.tracing import trace
from app.services.execution_report import elapsed_seconds, utc_now_iso
from app.services.model_gateway import ModelGateway
from app.services.task_analysis import analyze_task

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/analyze-task",
    response_model=AnalyzeTaskResponse,
    tags=["ai"],
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def analyze_task_route(
    payload: AnalyzeTaskRequest,
    request: Request,
    gateway: ModelGateway = Depends(get_model_gateway),
) -> AnalyzeTaskResponse:
    """Turn free-text input into a structured task."""
    started = perf_counter()
    request_id = getattr(request.state, "request_id", None)
    logger.info(
        "AI-powered task analysis requested (input_length=%s, scheduled_date=%s)",
        len(payload.user_input),
        payload.scheduled_date,
    )

    with trace("analyze_task", metadata={"route": "/analyze-task"}, request_id=request_id):
        try:
            outcome = await analyze_task(
                gateway,
                payload.user_input,
                scheduled_date=payload.scheduled_date,
                declared_priority=payload.priority,
            )
        except Exception as exc:
            execution_time = elapsed_seconds(started)
            logger.error(
                "AI-powered task analysis failed (execution_time=%ss): %s",
                execution_time,
                exc,
                exc_info=True,
            )
            log_metric("analyze_task.failed", 1, {"error": type(exc).__name__})
            raise InternalError(str(exc), code="ANALYSIS_FAILED") from exc

    execution_time = elapsed_seconds(started)
    analysis = outcome.analysis
    logger.info(
        "AI-powered task analysis completed (task_id=%s, execution_time=%ss, actions=%s)",
        outcome.task_id,
        execution_time,
        len(outcome.report.actions),
    )
    log_metric("analyze_task.execution_time", execution_time)
    return AnalyzeTaskResponse(
        analysis=TaskAnalysisModel(
            title=analysis.title,
            description=analysis.description,
            category=analysis.category,
            priority=analysis.priority,
            estimated_duration=analysis.estimated_duration,
            complexity=analysis.complexity,
            tags=analysis.tags,
            suggestions=analysis.suggestions,
        ),
        execution=AnalysisExecution(
            status=outcome.report.status,
            actions=actions_payload(outcome.report.actions),
            recommendations=outcome.report.notes,
        ),
        metadata=AnalysisMetadata(
            analyzed_at=utc_now_iso(),
            model=gateway.model,
            execution_time=execution_time,
            ai_powered=True,
            fallback_used=False,
        ),
        timestamp=utc_now_iso(),
    )
