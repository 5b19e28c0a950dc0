"""Evaluation endpoints - evidence, status changes, audit history."""

from fastapi import APIRouter, status

from smt.api.deps import LifecycleDep, ReporterDep
from smt.auth.middleware import ActorDep
from smt.models import EvaluationKey
from smt.schemas.evaluation import (
    AssignStatusRequest,
    EvaluationHistoryOut,
    EvaluationKeyIn,
    EvaluationOut,
    SetStatusRequest,
    SubmitEvidenceRequest,
)
from smt.schemas.rollup import LevelCount

router = APIRouter()


def _key(body: EvaluationKeyIn) -> EvaluationKey:
    return EvaluationKey(
        service_id=body.service_id,
        measurement_id=body.measurement_id,
        campaign_id=body.campaign_id,
    )


@router.post("/evaluations/evidence", response_model=EvaluationOut)
async def submit_evidence(
    body: SubmitEvidenceRequest,
    actor: ActorDep,
    lifecycle: LifecycleDep,
):
    """Submit evidence; the evaluation moves to evidence_submitted."""
    evaluation = await lifecycle.submit_evidence(
        _key(body), body.evidence_location, body.notes, actor=actor
    )
    return EvaluationOut.model_validate(evaluation)


@router.put("/evaluations/status", response_model=EvaluationOut)
async def set_status(
    body: SetStatusRequest,
    actor: ActorDep,
    lifecycle: LifecycleDep,
):
    """
    Change the status of an existing evaluation.
    Setting validating_evidence starts a background validation.
    """
    evaluation = await lifecycle.set_status(
        _key(body), body.status, body.change_reason, actor=actor
    )
    return EvaluationOut.model_validate(evaluation)


@router.post("/evaluations", response_model=EvaluationOut, status_code=status.HTTP_200_OK)
async def assign_status(
    body: AssignStatusRequest,
    actor: ActorDep,
    lifecycle: LifecycleDep,
):
    """Create or update an evaluation for a service in a campaign."""
    evaluation = await lifecycle.assign_status(
        _key(body),
        body.status,
        evidence_location=body.evidence_location,
        notes=body.notes,
        change_reason=body.change_reason,
        actor=actor,
    )
    return EvaluationOut.model_validate(evaluation)


@router.get("/evaluations/distribution", response_model=list[LevelCount])
async def maturity_level_distribution(reporter: ReporterDep):
    """Number of services at each maturity level."""
    return await reporter.level_distribution()


@router.get("/evaluations/{evaluation_id}", response_model=EvaluationOut)
async def get_evaluation(evaluation_id: str, lifecycle: LifecycleDep):
    evaluation = await lifecycle.get(evaluation_id)
    return EvaluationOut.model_validate(evaluation)


@router.get("/evaluations/{evaluation_id}/history", response_model=list[EvaluationHistoryOut])
async def get_evaluation_history(evaluation_id: str, lifecycle: LifecycleDep):
    """Audit trail, newest first."""
    entries = await lifecycle.list_history(evaluation_id)
    return [EvaluationHistoryOut.model_validate(e) for e in entries]
