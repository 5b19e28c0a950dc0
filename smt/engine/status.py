"""Evaluation status states and the transition function."""

from enum import Enum

from smt.errors import ValidationError


class EvaluationStatus(str, Enum):
    NOT_IMPLEMENTED = "not_implemented"
    EVIDENCE_SUBMITTED = "evidence_submitted"
    VALIDATING_EVIDENCE = "validating_evidence"
    EVIDENCE_REJECTED = "evidence_rejected"
    IMPLEMENTED = "implemented"


class ChangeType(str, Enum):
    STATUS_CHANGE = "status_change"
    EVIDENCE_UPDATE = "evidence_update"
    NOTES_UPDATE = "notes_update"
    VALIDATION_RESULT = "validation_result"


INITIAL_STATUS = EvaluationStatus.NOT_IMPLEMENTED


def parse_status(value: str | EvaluationStatus | None) -> EvaluationStatus:
    """Coerce a caller-supplied value to a status, rejecting anything unknown."""
    if isinstance(value, EvaluationStatus):
        return value
    try:
        return EvaluationStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in EvaluationStatus)
        raise ValidationError(f"Valid status is required (one of: {allowed})") from None


def transition(current: EvaluationStatus, requested: EvaluationStatus) -> EvaluationStatus:
    """
    Resolve a requested status change.

    Operators may move an evaluation between any two states, so every pair
    is legal and the requested state always wins.
    """
    return requested


def status_after_validation(valid: bool) -> EvaluationStatus:
    """Terminal status recommended by a validation report."""
    return EvaluationStatus.IMPLEMENTED if valid else EvaluationStatus.EVIDENCE_REJECTED
