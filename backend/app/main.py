"""Main FastAPI application for the WellFin AI Agent API."""
from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes.analyze_task import router as analyze_task_router
from app.api.routes.diagnostics import router as diagnostics_router
from app.api.routes.diagnostics import vertex_router
from app.api.routes.optimize_schedule import router as optimize_schedule_router
from app.api.routes.push_notifications import router as push_notifications_router
from app.api.routes.recommendations import router as recommendations_router
from app.api.schemas.common import AuthErrorResponse, HealthResponse
from app.core.config import settings
from app.core.handlers import register_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import RequestIDMiddleware, SecurityHeadersMiddleware
from app.core.security import require_api_key
from app.observability.client import init_opik
from app.observability.tracing import trace
from app.services.execution_report import utc_now_iso
from app.services.model_gateway import build_model_gateway
from app.services.notifications.factory import get_notification_service

configure_logging(log_level=settings.log_level, log_format=settings.log_format)

app = FastAPI(title=settings.app_name, version=settings.app_version)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)

api_router = APIRouter(
    prefix=settings.api_prefix,
    dependencies=[Depends(require_api_key)],
    responses={401: {"model": AuthErrorResponse}},
)
api_router.include_router(analyze_task_router)
api_router.include_router(optimize_schedule_router)
api_router.include_router(recommendations_router)
api_router.include_router(push_notifications_router)

app.include_router(diagnostics_router)
app.include_router(vertex_router, prefix=settings.api_prefix)
app.include_router(api_router)


@app.on_event("startup")
async def startup_providers() -> None:
    """Build provider clients once the event loop is running."""
    init_opik()
    app.state.model_gateway = build_model_gateway(settings)
    app.state.notification_service = get_notification_service()
    if settings.database_create_tables:
        from app.db import Base
        from app.db.session import engine

        Base.metadata.create_all(bind=engine)


@app.get("/health", response_model=HealthResponse, tags=["health"], summary="Readiness probe")
async def health_check(request: Request) -> HealthResponse:
    """Return a simple status payload so automation can probe the API."""
    with trace("http.health_check", metadata={"route": "/health"}, request_id=request.state.request_id):
        return HealthResponse(
            status="healthy",
            version=settings.app_version,
            environment=settings.environment,
            service=settings.app_name,
            timestamp=utc_now_iso(),
        )


def run() -> None:
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
