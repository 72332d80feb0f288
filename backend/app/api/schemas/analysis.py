"""Schemas for task analysis."""
from __future__ import annotations

from typing import Any, List, Optional, Union

from pydantic import field_validator, model_validator
from pydantic_core import PydanticCustomError

from app.api.schemas.common import ApiModel, ExecutionActionModel, ResponseMetadata

PRIORITY_NAMES = ("low", "medium", "high", "urgent")


def check_priority(value: Any, error_type: str = "invalid_field_format") -> Any:
    """Accept a priority name or a number from 1 to 5."""
    if value is None:
        return value
    if isinstance(value, str) and value.strip().lower() in PRIORITY_NAMES:
        return value.strip().lower()
    if isinstance(value, (int, float)) and not isinstance(value, bool) and 1 <= value <= 5:
        return value
    raise PydanticCustomError(
        error_type,
        "priority must be one of low, medium, high, urgent or a number from 1 to 5",
    )


class AnalyzeTaskRequest(ApiModel):
    user_input: str
    scheduled_date: Optional[str] = None
    priority: Optional[Union[str, float]] = None

    @model_validator(mode="before")
    @classmethod
    def _require_user_input(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            raise PydanticCustomError("missing_required_field", "userInput is required")
        user_input = data.get("userInput", data.get("user_input"))
        if not isinstance(user_input, str) or not user_input.strip():
            raise PydanticCustomError("missing_required_field", "userInput is required")
        return data

    @field_validator("priority", mode="before")
    @classmethod
    def _check_priority(cls, value: Any) -> Any:
        return check_priority(value)


class TaskAnalysisModel(ApiModel):
    title: str
    description: str
    category: str
    priority: str
    estimated_duration: int
    complexity: str
    tags: List[str]
    suggestions: List[str]


class AnalysisExecution(ApiModel):
    status: str
    actions: List[ExecutionActionModel]
    recommendations: List[str]


class AnalysisMetadata(ResponseMetadata):
    analyzed_at: str


class AnalyzeTaskResponse(ApiModel):
    success: bool = True
    analysis: TaskAnalysisModel
    execution: AnalysisExecution
    metadata: AnalysisMetadata
    timestamp: str
