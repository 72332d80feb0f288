"""FastAPI dependencies for provider clients owned by the application."""
from __future__ import annotations

from fastapi import Request

from app.core.errors import InternalError
from app.services.model_gateway import ModelGateway
from app.services.notifications.base import NotificationService
from app.services.notifications.factory import get_notification_service as build_notification_service


def get_model_gateway(request: Request) -> ModelGateway:
    gateway = getattr(request.app.state, "model_gateway", None)
    if gateway is None:
        raise InternalError("Model gateway is not initialised")
    return gateway


def get_notification_service(request: Request) -> NotificationService:
    service = getattr(request.app.state, "notification_service", None)
    return service if service is not None else build_notification_service()
