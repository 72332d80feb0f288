"""Schemas for personalised recommendations."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import Field, model_validator
from pydantic_core import PydanticCustomError

from app.api.schemas.common import ApiModel, ExecutionActionModel, ResponseMetadata


class RecommendationsRequest(ApiModel):
    user_profile: Optional[Dict[str, Any]] = None
    context: Optional[Dict[str, Any]] = None

    @model_validator(mode="before")
    @classmethod
    def _require_profile_or_context(cls, data: Any) -> Any:
        if not isinstance(data, dict) or (data.get("userProfile") is None and data.get("context") is None):
            raise PydanticCustomError("missing_required_field", "Either userProfile or context is required")
        return data


class RecommendationModel(ApiModel):
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


class RecommendationExecution(ApiModel):
    status: str
    actions: List[ExecutionActionModel]
    insights: List[str]


class RecommendationAnalyticsModel(ApiModel):
    total_recommendations: int
    by_type: Dict[str, int]
    by_priority: Dict[str, int]
    improvement_percentage: int


class InsightsModel(ApiModel):
    strengths: List[str] = Field(default_factory=list)
    improvement_areas: List[str] = Field(default_factory=list)
    risk_factors: List[str] = Field(default_factory=list)


class GuidanceModel(ApiModel):
    insights: InsightsModel = Field(default_factory=InsightsModel)
    personalized_tips: List[str] = Field(default_factory=list)
    next_actions: List[str] = Field(default_factory=list)


class RecommendationMetadata(ResponseMetadata):
    generated_at: str
    personalized: bool = True


class RecommendationsResponse(ApiModel):
    success: bool = True
    recommendations: List[RecommendationModel]
    execution: RecommendationExecution
    analytics: RecommendationAnalyticsModel
    guidance: GuidanceModel
    metadata: RecommendationMetadata
    timestamp: str
