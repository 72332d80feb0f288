"""Schemas for schedule optimization."""
from __future__ import annotations

import math
from typing import Any, Dict, List, Optional, Union

from pydantic import ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from app.api.schemas.analysis import check_priority
from app.api.schemas.common import ApiModel, ExecutionActionModel, ResponseMetadata
from app.services.execution_report import round_half_up


# One week; anything longer cannot be placed on a calendar slot.
MAX_TASK_MINUTES = 10080


def _positive(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
        and value > 0
    )


def _too_long(value: Any, minutes_per_unit: int) -> bool:
    """True for a present duration that is non-finite or longer than a week."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not math.isfinite(value) or value * minutes_per_unit > MAX_TASK_MINUTES


class TaskDescriptor(ApiModel):
    """A task to schedule. Unknown fields are kept and forwarded to the model."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: Optional[str] = None
    title: str
    priority: Union[str, float]
    estimated_duration: Optional[float] = None
    estimated_hours: Optional[float] = None
    category: Optional[str] = None
    scheduled_time: Optional[str] = None
    scheduled_date: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _require_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict) or not data.get("title") or not data.get("priority"):
            raise PydanticCustomError("invalid_task_format", "Each task must have title and priority")
        if not _positive(data.get("estimatedDuration")) and not _positive(data.get("estimatedHours")):
            raise PydanticCustomError(
                "invalid_task_format",
                "Each task must have estimatedDuration (minutes) or estimatedHours",
            )
        if _too_long(data.get("estimatedDuration"), 1) or _too_long(data.get("estimatedHours"), 60):
            raise PydanticCustomError(
                "invalid_task_format",
                "estimatedDuration must be at most {max_minutes} minutes (estimatedHours at most {max_hours})",
                {"max_minutes": MAX_TASK_MINUTES, "max_hours": MAX_TASK_MINUTES // 60},
            )
        if data.get("id") is not None:
            data = {**data, "id": str(data["id"])}
        return data

    @field_validator("priority", mode="before")
    @classmethod
    def _check_priority(cls, value: Any) -> Any:
        return check_priority(value, "invalid_task_format")

    def duration_minutes(self) -> int:
        if self.estimated_duration and self.estimated_duration > 0:
            return int(round_half_up(self.estimated_duration))
        return int(round_half_up((self.estimated_hours or 1) * 60))

    def to_payload(self) -> Dict[str, Any]:
        """camelCase dict with the duration normalized to minutes."""
        payload = self.model_dump(by_alias=True, exclude_none=True)
        payload["estimatedDuration"] = self.duration_minutes()
        return payload


class OptimizeScheduleRequest(ApiModel):
    tasks: Optional[List[TaskDescriptor]] = None
    new_tasks: Optional[List[TaskDescriptor]] = Field(default=None, description="Legacy alias of tasks.")
    existing_tasks: List[Dict[str, Any]] = Field(default_factory=list)
    preferences: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _require_tasks(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            raise PydanticCustomError("missing_required_field", "tasks array is required")
        tasks = data.get("tasks") if data.get("tasks") is not None else data.get("newTasks")
        if not isinstance(tasks, list) or not tasks:
            raise PydanticCustomError("missing_required_field", "tasks array is required")
        return data

    def input_tasks(self) -> List[TaskDescriptor]:
        return self.tasks if self.tasks is not None else (self.new_tasks or [])


class ScheduledTaskModel(ApiModel):
    id: str
    title: str
    start_time: str
    end_time: str
    estimated_duration: int
    priority: str
    category: str
    status: str = "scheduled"
    optimization_reason: Optional[str] = None


class ScheduleExecution(ApiModel):
    status: str
    actions: List[ExecutionActionModel]
    optimizations: List[str]


class ScheduleSummaryModel(ApiModel):
    total_tasks: int
    total_duration: int
    efficiency: float
    improvement_percentage: int


class ScheduleMetadata(ResponseMetadata):
    optimized_at: str


class OptimizeScheduleResponse(ApiModel):
    success: bool = True
    optimized_schedule: List[ScheduledTaskModel]
    execution: ScheduleExecution
    summary: ScheduleSummaryModel
    metadata: ScheduleMetadata
    timestamp: str
