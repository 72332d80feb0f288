"""Personalised recommendations route."""
from __future__ import annotations

import logging
from time import perf_counter

from fastapi import APIRouter, Depends, Request

from app.api.deps import get_model_gateway
from app.api.schemas.common import ErrorResponse, actions_payload
from app.api.schemas.recommendations import (
    GuidanceModel,
    RecommendationAnalyticsModel,
    RecommendationExecution,
    RecommendationMetadata,
    RecommendationModel,
    RecommendationsRequest,
    RecommendationsResponse,
)
from app.core.errors import InternalError
from app.observability.metrics import log_metric
from app.observability.tracing import trace
from app.services.execution_report import elapsed_seconds, utc_now_iso
from app.services.model_gateway import ModelGateway
from app.services.recommendation_engine import generate_recommendations

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/recommendations",
    response_model=RecommendationsResponse,
    tags=["ai"],
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def recommendations_route(
    payload: RecommendationsRequest,
    request: Request,
    gateway: ModelGateway = Depends(get_model_gateway),
) -> RecommendationsResponse:
    started = perf_counter()
    request_id = getattr(request.state, "request_id", None)
    logger.info(
        "AI-powered recommendations requested (has_user_profile=%s, has_context=%s)",
        payload.user_profile is not None,
        payload.context is not None,
    )

    with trace("recommendations", metadata={"route": "/recommendations"}, request_id=request_id):
        try:
            outcome = await generate_recommendations(gateway, payload.user_profile, payload.context)
        except Exception as exc:
            logger.error(
                "Recommendation generation failed (execution_time=%ss): %s",
                elapsed_seconds(started),
                exc,
                exc_info=True,
            )
            raise InternalError(str(exc), code="RECOMMENDATIONS_FAILED") from exc

    execution_time = elapsed_seconds(started)
    analytics = outcome.analytics
    logger.info(
        "AI-powered recommendations completed (count=%s, by_type=%s, fallback=%s, execution_time=%ss)",
        analytics.total_recommendations,
        analytics.by_type,
        outcome.fallback_used,
        execution_time,
    )
    log_metric("recommendations.execution_time", execution_time, {"fallback": outcome.fallback_used})
    return RecommendationsResponse(
        recommendations=[
            RecommendationModel(
                id=rec.id,
                type=rec.type,
                title=rec.title,
                description=rec.description,
                priority=rec.priority,
                category=rec.category,
                actionable=rec.actionable,
                estimated_impact=rec.estimated_impact,
                implementation_steps=rec.implementation_steps,
                timeframe=rec.timeframe,
            )
            for rec in outcome.recommendations
        ],
        execution=RecommendationExecution(
            status=outcome.report.status,
            actions=actions_payload(outcome.report.actions),
            insights=outcome.report.notes,
        ),
        analytics=RecommendationAnalyticsModel(
            total_recommendations=analytics.total_recommendations,
            by_type=analytics.by_type,
            by_priority=analytics.by_priority,
            improvement_percentage=analytics.improvement_percentage,
        ),
        guidance=GuidanceModel.model_validate(outcome.guidance),
        metadata=RecommendationMetadata(
            generated_at=utc_now_iso(),
            model=outcome.model,
            execution_time=execution_time,
            ai_powered=outcome.ai_powered,
            fallback_used=outcome.fallback_used,
        ),
        timestamp=utc_now_iso(),
    )
