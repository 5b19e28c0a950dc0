"""Evaluation lifecycle - the status state machine and its audit trail.

Every observable change to an evaluation goes through this module and
leaves one append-only history entry per change. Each operation is one
unit of work: the evaluation row is loaded under lock, mutated, the
history entries are appended, and the store is committed.
"""

import logging
from uuid import uuid4

from smt.engine.dispatch import ValidationDispatcher
from smt.engine.status import (
    ChangeType,
    EvaluationStatus,
    parse_status,
    status_after_validation,
    transition,
)
from smt.engine.validator import EvidenceValidator
from smt.errors import NotFoundError, ValidationError
from smt.models import EvaluationHistory, EvaluationKey, MeasurementEvaluation
from smt.models.evaluation import utcnow
from smt.schemas.evaluation import ValidationReport
from smt.storage.interfaces import CatalogStore, EvaluationStore, HistoryStore

logger = logging.getLogger(__name__)

AUTOMATED_VALIDATION_REASON = "Automated validation process"


class EvaluationLifecycle:
    """Applies evidence submissions, status changes and validation results."""

    def __init__(
        self,
        evaluations: EvaluationStore,
        history: HistoryStore,
        catalog: CatalogStore,
        dispatcher: ValidationDispatcher,
    ):
        self.evaluations = evaluations
        self.history = history
        self.catalog = catalog
        self.dispatcher = dispatcher

    async def get(self, evaluation_id: str) -> MeasurementEvaluation:
        evaluation = await self.evaluations.get_by_id(evaluation_id)
        if evaluation is None:
            raise NotFoundError("Evaluation not found")
        return evaluation

    async def list_history(self, evaluation_id: str) -> list[EvaluationHistory]:
        """Audit trail of one evaluation, newest first."""
        await self.get(evaluation_id)
        return await self.history.list_for_evaluation(evaluation_id)

    async def submit_evidence(
        self,
        key: EvaluationKey,
        evidence_location: str | None,
        notes: str | None = None,
        actor: str | None = None,
    ) -> MeasurementEvaluation:
        """
        Attach evidence and move the evaluation to evidence_submitted.

        The record is created on first submission. History is written in a
        fixed order: evidence_update, notes_update, status_change, each only
        when that part actually changed.
        """
        _require_key(key)
        if not evidence_location or not evidence_location.strip():
            raise ValidationError("Evidence location is required")
        await self._require_catalog(key)

        evaluation = await self.evaluations.get_or_create(key)
        previous_status = evaluation.status

        previous = self._update_evidence(evaluation, evidence_location, notes)
        evaluation.status = transition(
            EvaluationStatus(previous_status), EvaluationStatus.EVIDENCE_SUBMITTED
        ).value
        await self.evaluations.save(evaluation)

        await self._record_evidence_changes(evaluation, previous, actor)
        await self._record_status_change(evaluation, previous_status, None, actor)
        await self.evaluations.commit()
        return evaluation

    async def set_status(
        self,
        key: EvaluationKey,
        status: str | EvaluationStatus,
        change_reason: str | None = None,
        actor: str | None = None,
    ) -> MeasurementEvaluation:
        """
        Manual override to any status. Always writes one status_change entry.

        Moving to validating_evidence queues a background validation; the
        caller does not wait for it.
        """
        _require_key(key)
        new_status = parse_status(status)

        evaluation = await self.evaluations.get(key, for_update=True)
        if evaluation is None:
            raise NotFoundError("Evaluation not found")

        previous_status = evaluation.status
        evaluation.status = transition(EvaluationStatus(previous_status), new_status).value
        await self.evaluations.save(evaluation)
        await self._append(
            evaluation,
            ChangeType.STATUS_CHANGE,
            actor,
            previous_status=previous_status,
            new_status=evaluation.status,
            change_reason=change_reason,
        )
        await self.evaluations.commit()
        self._log_status(evaluation, previous_status, actor)

        self._schedule_validation_if_requested(evaluation)
        return evaluation

    async def assign_status(
        self,
        key: EvaluationKey,
        status: str | EvaluationStatus,
        evidence_location: str | None = None,
        notes: str | None = None,
        change_reason: str | None = None,
        actor: str | None = None,
    ) -> MeasurementEvaluation:
        """Create-or-update: set evidence/notes when given, then the status."""
        _require_key(key)
        new_status = parse_status(status)
        await self._require_catalog(key)

        evaluation = await self.evaluations.get_or_create(key)
        previous_status = evaluation.status

        previous = self._update_evidence(evaluation, evidence_location, notes)
        evaluation.status = transition(EvaluationStatus(previous_status), new_status).value
        await self.evaluations.save(evaluation)

        await self._record_evidence_changes(evaluation, previous, actor)
        await self._record_status_change(evaluation, previous_status, change_reason, actor)
        await self.evaluations.commit()

        self._schedule_validation_if_requested(evaluation)
        return evaluation

    async def apply_validation_result(
        self, evaluation: MeasurementEvaluation, report: ValidationReport
    ) -> bool:
        """
        Store a validation report and, while still validating, act on it.

        The report is always kept on the evaluation. The status moves to
        implemented / evidence_rejected (with a validation_result history
        entry) only if the evaluation is still in validating_evidence;
        otherwise the status and history are left alone. Returns whether the
        status was changed.
        """
        serialized = report.serialize()
        evaluation.validation_report = serialized

        if evaluation.status != EvaluationStatus.VALIDATING_EVIDENCE.value:
            await self.evaluations.save(evaluation)
            logger.info(
                "Stale validation result for evaluation %s kept, status %s left unchanged",
                evaluation.evaluation_id,
                evaluation.status,
            )
            return False

        previous_status = evaluation.status
        evaluation.status = status_after_validation(report.valid).value
        await self.evaluations.save(evaluation)
        await self._append(
            evaluation,
            ChangeType.VALIDATION_RESULT,
            None,
            previous_status=previous_status,
            new_status=evaluation.status,
            change_reason=AUTOMATED_VALIDATION_REASON,
            validation_results=serialized,
        )
        self._log_status(evaluation, previous_status, None)
        return True

    async def validate(
        self, evaluation_id: str, validator: EvidenceValidator
    ) -> ValidationReport | None:
        """
        Background validation job body.

        State is re-read after the network probes, under lock, so a manual
        status change made while the probes ran always wins. A report on
        evidence or notes that have been replaced in the meantime is dropped
        without touching the evaluation; a newer job covers the new evidence.
        """
        snapshot = await self.evaluations.get_by_id(evaluation_id)
        if snapshot is None:
            logger.info("Evaluation %s vanished before validation, skipping", evaluation_id)
            return None
        if snapshot.status != EvaluationStatus.VALIDATING_EVIDENCE.value:
            logger.info(
                "Evaluation %s left validating_evidence before validation started, skipping",
                evaluation_id,
            )
            return None
        evidence = (snapshot.evidence_location, snapshot.notes)
        # No transaction stays open across the probes
        await self.evaluations.commit()

        report = await validator.validate(*evidence)

        current = await self.evaluations.get_by_id(evaluation_id, for_update=True)
        if current is None:
            logger.info("Evaluation %s vanished during validation, dropping report", evaluation_id)
            return report
        if (current.evidence_location, current.notes) != evidence:
            logger.info(
                "Evidence of evaluation %s changed during validation, dropping report",
                evaluation_id,
            )
            await self.evaluations.commit()
            return report
        await self.apply_validation_result(current, report)
        await self.evaluations.commit()
        logger.info(
            "Validation finished for evaluation %s: %s", evaluation_id, report.message
        )
        return report

    async def _require_catalog(self, key: EvaluationKey) -> None:
        if await self.catalog.get_service(key.service_id) is None:
            raise NotFoundError("Service not found")
        if not await self.catalog.measurement_exists(key.measurement_id):
            raise NotFoundError("Measurement not found")
        if await self.catalog.get_campaign(key.campaign_id) is None:
            raise NotFoundError("Campaign not found")

    def _update_evidence(
        self,
        evaluation: MeasurementEvaluation,
        evidence_location: str | None,
        notes: str | None,
    ) -> tuple[str | None, str | None]:
        previous = (evaluation.evidence_location, evaluation.notes)
        if evidence_location:
            evaluation.evidence_location = evidence_location
        if notes:
            evaluation.notes = notes
        return previous

    async def _record_evidence_changes(
        self,
        evaluation: MeasurementEvaluation,
        previous: tuple[str | None, str | None],
        actor: str | None,
    ) -> None:
        previous_evidence, previous_notes = previous
        if evaluation.evidence_location != previous_evidence:
            await self._append(
                evaluation,
                ChangeType.EVIDENCE_UPDATE,
                actor,
                previous_value=previous_evidence,
                new_value=evaluation.evidence_location,
            )
        if evaluation.notes and evaluation.notes != previous_notes:
            await self._append(
                evaluation,
                ChangeType.NOTES_UPDATE,
                actor,
                previous_value=previous_notes,
                new_value=evaluation.notes,
            )

    async def _record_status_change(
        self,
        evaluation: MeasurementEvaluation,
        previous_status: str,
        change_reason: str | None,
        actor: str | None,
    ) -> None:
        if evaluation.status == previous_status:
            return
        await self._append(
            evaluation,
            ChangeType.STATUS_CHANGE,
            actor,
            previous_status=previous_status,
            new_status=evaluation.status,
            change_reason=change_reason,
        )
        self._log_status(evaluation, previous_status, actor)

    async def _append(
        self,
        evaluation: MeasurementEvaluation,
        change_type: ChangeType,
        actor: str | None,
        **fields,
    ) -> EvaluationHistory:
        entry = EvaluationHistory(
            history_id=str(uuid4()),
            evaluation_id=evaluation.evaluation_id,
            change_type=change_type.value,
            changed_by=actor,
            created_at=utcnow(),
            **fields,
        )
        return await self.history.append(entry)

    def _schedule_validation_if_requested(self, evaluation: MeasurementEvaluation) -> None:
        if evaluation.status == EvaluationStatus.VALIDATING_EVIDENCE.value:
            self.dispatcher.enqueue(evaluation.evaluation_id)

    @staticmethod
    def _log_status(evaluation: MeasurementEvaluation, previous_status: str, actor: str | None):
        logger.info(
            "Evaluation %s status %s -> %s (by %s)",
            evaluation.evaluation_id,
            previous_status,
            evaluation.status,
            actor or "system",
        )


def _require_key(key: EvaluationKey) -> None:
    if not (key.service_id and key.measurement_id and key.campaign_id):
        raise ValidationError("ServiceId, measurementId and campaignId are required")
