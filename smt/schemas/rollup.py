"""Rollup result schemas. Computed on request, never persisted."""

from pydantic import BaseModel, Field


class ServiceResult(BaseModel):
    service_id: str
    service_name: str | None = None
    maturity_level: int
    percentage: float


class ActivityResult(BaseModel):
    """Activity level is the minimum of its services' levels."""

    activity_id: str
    activity_name: str | None = None
    maturity_level: int
    service_results: list[ServiceResult] = Field(default_factory=list)


class JourneyResult(BaseModel):
    """Journey level is the minimum of its activities' levels."""

    journey_id: str
    journey_name: str | None = None
    maturity_level: int
    activity_results: list[ActivityResult] = Field(default_factory=list)


class CampaignResults(BaseModel):
    """GET /v1/campaigns/{id}/results response."""

    journey_results: list[JourneyResult] = Field(default_factory=list)
    activity_results: list[ActivityResult] = Field(default_factory=list)
    service_results: list[ServiceResult] = Field(default_factory=list)
    overall_level: int
    overall_percentage: float


class LevelCount(BaseModel):
    level: str
    count: int


class ModelMaturitySummary(BaseModel):
    """Flat maturity of one activity/journey under one maturity model."""

    maturity_model_id: str
    maturity_model_name: str | None = None
    maturity_level: int
    percentage: float
