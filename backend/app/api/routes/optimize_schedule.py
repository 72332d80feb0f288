"""Schedule optimization route."""
from __future__ import annotations

import logging
from time import perf_counter

from fastapi import APIRouter, Depends, Request

from app.api.deps import get_model_gateway
from app.api.schemas.common import ErrorResponse, actions_payload
from app.api.schemas.schedule import (
    OptimizeScheduleRequest,
    OptimizeScheduleResponse,
    ScheduledTaskModel,
    ScheduleExecution,
    ScheduleMetadata,
    ScheduleSummaryModel,
)
from app.core.errors import InternalError
from app.observability.metrics import log_metric
from app.observability.tracing import trace
from app.services.execution_report import elapsed_seconds, utc_now_iso
from app.services.model_gateway import ModelGateway
from app.services.schedule_optimizer import optimize_schedule

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/optimize-schedule",
    response_model=OptimizeScheduleResponse,
    tags=["ai"],
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def optimize_schedule_route(
    payload: OptimizeScheduleRequest,
    request: Request,
    gateway: ModelGateway = Depends(get_model_gateway),
) -> OptimizeScheduleResponse:
    """Schedule the submitted tasks; degrades to a rule-based plan when the model fails."""
    started = perf_counter()
    request_id = getattr(request.state, "request_id", None)
    tasks = [task.to_payload() for task in payload.input_tasks()]
    logger.info(
        "Schedule optimization requested (input_tasks=%s, existing_tasks=%s, has_preferences=%s)",
        len(tasks),
        len(payload.existing_tasks),
        bool(payload.preferences),
    )

    with trace(
        "optimize_schedule",
        metadata={"route": "/optimize-schedule", "task_count": len(tasks)},
        request_id=request_id,
    ):
        try:
            # Task history lives on the client, so the server always plans without it.
            outcome = await optimize_schedule(gateway, tasks, payload.preferences, task_history=[])
        except Exception as exc:
            logger.error(
                "Schedule optimization failed (execution_time=%ss): %s",
                elapsed_seconds(started),
                exc,
                exc_info=True,
            )
            raise InternalError(str(exc), code="OPTIMIZATION_FAILED") from exc

    execution_time = elapsed_seconds(started)
    logger.info(
        "Schedule optimization completed (tasks=%s, conflicts=%s, fallback=%s, execution_time=%ss)",
        len(outcome.tasks),
        outcome.conflicts,
        outcome.fallback_used,
        execution_time,
    )
    log_metric("optimize_schedule.execution_time", execution_time, {"fallback": outcome.fallback_used})
    return OptimizeScheduleResponse(
        optimized_schedule=[
            ScheduledTaskModel(
                id=task.id,
                title=task.title,
                start_time=task.start.isoformat(),
                end_time=task.end.isoformat(),
                estimated_duration=task.estimated_duration,
                priority=task.priority,
                category=task.category,
                optimization_reason=task.optimization_reason,
            )
            for task in outcome.tasks
        ],
        execution=ScheduleExecution(
            status=outcome.report.status,
            actions=actions_payload(outcome.report.actions),
            optimizations=outcome.report.notes,
        ),
        summary=ScheduleSummaryModel(
            total_tasks=outcome.summary.total_tasks,
            total_duration=outcome.summary.total_duration,
            efficiency=outcome.summary.efficiency,
            improvement_percentage=outcome.summary.improvement_percentage,
        ),
        metadata=ScheduleMetadata(
            optimized_at=utc_now_iso(),
            model=outcome.model,
            execution_time=execution_time,
            ai_powered=outcome.ai_powered,
            fallback_used=outcome.fallback_used,
        ),
        timestamp=utc_now_iso(),
    )
