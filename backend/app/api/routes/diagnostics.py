"""Unauthenticated service description and provider connectivity probes."""
from __future__ import annotations

import logging
import os
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
import google.auth
from google.auth.exceptions import DefaultCredentialsError
from starlette.concurrency import run_in_threadpool

from app.api.deps import get_model_gateway
from app.core.config import settings
from app.observability.tracing import trace
from app.services.execution_report import utc_now_iso
from app.services.model_gateway import ModelGateway

logger = logging.getLogger(__name__)

router = APIRouter()
vertex_router = APIRouter()

NOT_SET = "NOT_SET"

TROUBLESHOOTING_STEPS = [
    "Check that the Vertex AI API is enabled for the project",
    "Verify the service account has the Vertex AI User role",
    "Ensure the Cloud Run service runs as the intended service account",
    "Check the GOOGLE_CLOUD_PROJECT and VERTEX_AI_LOCATION configuration",
]


@router.get("/", tags=["diagnostics"], summary="Service description")
async def root() -> Dict[str, Any]:
    prefix = settings.api_prefix
    return {
        "message": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "endpoints": {
            "health": "/health",
            "testAI": "/test-ai",
            "vertexAITest": f"{prefix}/vertex-ai-test",
            "analyzeTask": f"{prefix}/analyze-task",
            "optimizeSchedule": f"{prefix}/optimize-schedule",
            "recommendations": f"{prefix}/recommendations",
            "pushNotifications": f"{prefix}/push-notifications",
        },
        "timestamp": utc_now_iso(),
    }


@router.get("/test-ai", tags=["diagnostics"], summary="Model connectivity probe")
async def test_ai(request: Request, gateway: ModelGateway = Depends(get_model_gateway)) -> Dict[str, Any]:
    with trace("diagnostics.test_ai", request_id=getattr(request.state, "request_id", None)):
        result = await gateway.check_connection()
    return {**result, "service": settings.app_name, "timestamp": utc_now_iso()}


def environment_info() -> Dict[str, Any]:
    credentials_path = settings.google_application_credentials or os.environ.get("GOOGLE_APPLICATION_CREDENTIALS")
    return {
        "PROJECT_ID": settings.google_cloud_project or NOT_SET,
        "VERTEX_AI_LOCATION": settings.vertex_ai_location or NOT_SET,
        "ENVIRONMENT": settings.environment or NOT_SET,
        "GEMINI_MODEL": settings.gemini_model,
        "HAS_GOOGLE_CREDENTIALS": bool(credentials_path),
        "GOOGLE_CREDENTIALS_PATH": credentials_path or NOT_SET,
    }


def describe_default_credentials() -> Dict[str, Any]:
    """Resolve application default credentials without making a model call."""
    try:
        credentials, project_id = google.auth.default()
    except DefaultCredentialsError as exc:
        return {"error": str(exc), "authTestFailed": True}
    return {
        "projectId": project_id,
        "clientEmail": getattr(credentials, "service_account_email", None) or "UNKNOWN",
        "authType": type(credentials).__name__,
        "hasCredentials": credentials is not None,
    }


@vertex_router.get("/vertex-ai-test", tags=["diagnostics"], summary="Vertex AI authentication diagnostics")
async def vertex_ai_test(request: Request, gateway: ModelGateway = Depends(get_model_gateway)) -> JSONResponse:
    logger.info("Vertex AI authentication test requested")
    env_info = environment_info()
    with trace("diagnostics.vertex_ai_test", request_id=getattr(request.state, "request_id", None)):
        account_info = await run_in_threadpool(describe_default_credentials)
        probe = await gateway.check_connection()

    logger.info(
        "Vertex AI test completed (success=%s, auth_type=%s)",
        probe.get("success"),
        account_info.get("authType"),
    )
    body = {
        "timestamp": utc_now_iso(),
        "environment": env_info,
        "serviceAccount": account_info,
        "vertexAITest": probe,
        "status": "SUCCESS" if probe.get("success") else "FAILED",
        "recommendations": [] if probe.get("success") else TROUBLESHOOTING_STEPS,
    }
    return JSONResponse(status_code=200 if probe.get("success") else 500, content=body)
