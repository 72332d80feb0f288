"""Shared schema pieces: camelCase base model, envelopes, error bodies."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ExecutionActionModel(ApiModel):
    type: str
    description: str
    details: Dict[str, Any] = Field(default_factory=dict)


class ResponseMetadata(ApiModel):
    model: str
    execution_time: float = Field(..., description="Seconds, rounded to 2 decimals.")
    ai_powered: bool
    fallback_used: bool = False


class ErrorResponse(ApiModel):
    error: str
    code: Optional[str] = None
    timestamp: str


class AuthErrorResponse(ApiModel):
    error: str
    message: str


class HealthResponse(ApiModel):
    status: str
    version: str
    environment: str
    service: str
    timestamp: str


def actions_payload(actions: List[Any]) -> List[ExecutionActionModel]:
    return [
        ExecutionActionModel(type=action.type, description=action.description, details=action.details)
        for action in actions
    ]
