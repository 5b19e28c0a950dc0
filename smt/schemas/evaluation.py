"""Evaluation request/response schemas."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from smt.engine.status import EvaluationStatus


class ValidationCheck(BaseModel):
    """Outcome of a single evidence check."""

    name: str
    valid: bool
    message: str


class ValidationReport(BaseModel):
    """Structured output of the evidence validator (wire + storage format)."""

    valid: bool
    message: str
    checks: list[ValidationCheck] = Field(default_factory=list)

    def serialize(self) -> str:
        return self.model_dump_json()

    @classmethod
    def deserialize(cls, raw: str | None) -> "ValidationReport | None":
        if not raw:
            return None
        return cls.model_validate_json(raw)


class EvaluationKeyIn(BaseModel):
    """Identifies an evaluation by its (service, measurement, campaign) triple."""

    service_id: str = Field(min_length=1)
    measurement_id: str = Field(min_length=1)
    campaign_id: str = Field(min_length=1)


class SubmitEvidenceRequest(EvaluationKeyIn):
    """POST /v1/evaluations/evidence request."""

    evidence_location: str | None = None
    notes: str | None = None


class SetStatusRequest(EvaluationKeyIn):
    """PUT /v1/evaluations/status request. Status is checked by the lifecycle."""

    status: str
    change_reason: str | None = None


class AssignStatusRequest(SetStatusRequest):
    """POST /v1/evaluations request - create or update."""

    evidence_location: str | None = None
    notes: str | None = None


class EvaluationOut(BaseModel):
    """Evaluation as returned to callers."""

    model_config = {"from_attributes": True}

    evaluation_id: str
    service_id: str
    measurement_id: str
    campaign_id: str
    status: EvaluationStatus
    evidence_location: str | None = None
    notes: str | None = None
    validation_report: ValidationReport | None = None
    created_at: datetime
    updated_at: datetime

    @field_validator("validation_report", mode="before")
    @classmethod
    def parse_report(cls, v):
        if isinstance(v, str):
            return ValidationReport.deserialize(v)
        return v


class EvaluationHistoryOut(BaseModel):
    """One audit entry."""

    model_config = {"from_attributes": True}

    history_id: str
    evaluation_id: str
    change_type: str
    previous_status: str | None = None
    new_status: str | None = None
    previous_value: str | None = None
    new_value: str | None = None
    change_reason: str | None = None
    validation_results: ValidationReport | None = None
    changed_by: str | None = None
    created_at: datetime

    @field_validator("validation_results", mode="before")
    @classmethod
    def parse_results(cls, v):
        if isinstance(v, str):
            return ValidationReport.deserialize(v)
        return v
