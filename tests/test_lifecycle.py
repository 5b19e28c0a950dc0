"""Unit tests for the evaluation lifecycle and its audit trail."""

import pytest

from conftest import GOOD_NOTES, mock_client, serve_page
from smt.engine.status import EvaluationStatus
from smt.engine.validator import EvidenceValidator
from smt.errors import NotFoundError, ValidationError
from smt.models import EvaluationKey
from smt.schemas.evaluation import ValidationCheck, ValidationReport

URL = "https://example.com/doc"

PASSING = ValidationReport(
    valid=True,
    message="All checks passed",
    checks=[ValidationCheck(name="notes_quality", valid=True, message="Notes are of good quality")],
)
FAILING = ValidationReport(
    valid=False,
    message="Some checks failed",
    checks=[ValidationCheck(name="notes_quality", valid=False, message="No notes provided")],
)


def _chronological(history_store, evaluation_id):
    return [
        e.change_type
        for e in sorted(history_store.entries, key=lambda e: e.sequence)
        if e.evaluation_id == evaluation_id
    ]


class TestSubmitEvidence:
    @pytest.mark.asyncio()
    @pytest.mark.parametrize("location", ["", "   ", None])
    async def test_empty_evidence_rejected_without_side_effects(
        self, lifecycle, key, evaluation_store, history_store, location
    ):
        with pytest.raises(ValidationError):
            await lifecycle.submit_evidence(key, location, GOOD_NOTES, actor="alice")
        assert evaluation_store.records == {}
        assert history_store.entries == []

    @pytest.mark.asyncio()
    async def test_first_submission_creates_record_and_three_entries(
        self, lifecycle, key, history_store
    ):
        evaluation = await lifecycle.submit_evidence(key, URL, GOOD_NOTES, actor="alice")

        assert evaluation.status == EvaluationStatus.EVIDENCE_SUBMITTED.value
        assert evaluation.evidence_location == URL
        assert evaluation.notes == GOOD_NOTES
        assert _chronological(history_store, evaluation.evaluation_id) == [
            "evidence_update",
            "notes_update",
            "status_change",
        ]
        status_entry = history_store.entries[-1]
        assert status_entry.previous_status == "not_implemented"
        assert status_entry.new_status == "evidence_submitted"
        assert all(e.changed_by == "alice" for e in history_store.entries)

    @pytest.mark.asyncio()
    @pytest.mark.parametrize("prior", list(EvaluationStatus))
    async def test_always_ends_in_evidence_submitted(self, lifecycle, evaluation_store, prior):
        seeded = evaluation_store.add("svc-1", "m-1", "camp-1", status=prior.value)
        evaluation = await lifecycle.submit_evidence(seeded.key, URL, actor="alice")
        assert evaluation.status == EvaluationStatus.EVIDENCE_SUBMITTED.value

    @pytest.mark.asyncio()
    async def test_unchanged_submission_writes_no_history(self, lifecycle, key, history_store):
        evaluation = await lifecycle.submit_evidence(key, URL, GOOD_NOTES, actor="alice")
        before = len(history_store.entries)

        await lifecycle.submit_evidence(key, URL, GOOD_NOTES, actor="alice")

        assert len(history_store.entries) == before
        assert evaluation.status == EvaluationStatus.EVIDENCE_SUBMITTED.value

    @pytest.mark.asyncio()
    async def test_missing_notes_keep_previous_notes(self, lifecycle, key, history_store):
        await lifecycle.submit_evidence(key, URL, GOOD_NOTES, actor="alice")
        evaluation = await lifecycle.submit_evidence(key, URL + "/v2", None, actor="bob")

        assert evaluation.notes == GOOD_NOTES
        last = history_store.entries[-1]
        assert last.change_type == "evidence_update"
        assert last.previous_value == URL
        assert last.new_value == URL + "/v2"
        assert last.changed_by == "bob"

    @pytest.mark.asyncio()
    async def test_unknown_catalog_entity(self, lifecycle):
        with pytest.raises(NotFoundError):
            await lifecycle.submit_evidence(
                EvaluationKey("nope", "m-1", "camp-1"), URL, actor="alice"
            )

    @pytest.mark.asyncio()
    async def test_missing_identifier(self, lifecycle):
        with pytest.raises(ValidationError):
            await lifecycle.submit_evidence(EvaluationKey("svc-1", "", "camp-1"), URL)

    @pytest.mark.asyncio()
    async def test_one_record_per_triple(self, lifecycle, key, evaluation_store):
        first = await lifecycle.submit_evidence(key, URL, actor="alice")
        second = await lifecycle.submit_evidence(key, URL + "/other", actor="alice")
        assert first.evaluation_id == second.evaluation_id
        assert len(evaluation_store.records) == 1


class TestSetStatus:
    @pytest.mark.asyncio()
    async def test_rejects_unknown_status(self, lifecycle, key, evaluation_store, history_store):
        evaluation_store.add("svc-1", "m-1", "camp-1")
        with pytest.raises(ValidationError):
            await lifecycle.set_status(key, "done", actor="alice")
        assert history_store.entries == []

    @pytest.mark.asyncio()
    async def test_missing_evaluation(self, lifecycle, key):
        with pytest.raises(NotFoundError):
            await lifecycle.set_status(key, "implemented", actor="alice")

    @pytest.mark.asyncio()
    async def test_manual_revert_writes_one_entry(
        self, lifecycle, key, evaluation_store, history_store
    ):
        seeded = evaluation_store.add("svc-1", "m-1", "camp-1", status="implemented")
        evaluation = await lifecycle.set_status(
            key, "not_implemented", "Marked by mistake", actor="admin"
        )
        assert evaluation.status == "not_implemented"
        assert len(history_store.entries) == 1
        entry = history_store.entries[0]
        assert entry.evaluation_id == seeded.evaluation_id
        assert entry.change_type == "status_change"
        assert (entry.previous_status, entry.new_status) == ("implemented", "not_implemented")
        assert entry.change_reason == "Marked by mistake"

    @pytest.mark.asyncio()
    async def test_same_status_still_recorded(self, lifecycle, key, evaluation_store, history_store):
        evaluation_store.add("svc-1", "m-1", "camp-1", status="implemented")
        await lifecycle.set_status(key, "implemented", actor="admin")
        assert len(history_store.entries) == 1

    @pytest.mark.asyncio()
    async def test_validating_schedules_validation(
        self, lifecycle, key, evaluation_store, dispatcher
    ):
        seeded = evaluation_store.add("svc-1", "m-1", "camp-1", status="evidence_submitted")
        await lifecycle.set_status(key, "validating_evidence", actor="admin")
        assert dispatcher.enqueued == [seeded.evaluation_id]

    @pytest.mark.asyncio()
    async def test_other_statuses_do_not_schedule(
        self, lifecycle, key, evaluation_store, dispatcher
    ):
        evaluation_store.add("svc-1", "m-1", "camp-1", status="evidence_submitted")
        await lifecycle.set_status(key, "implemented", actor="admin")
        assert dispatcher.enqueued == []


class TestAssignStatus:
    @pytest.mark.asyncio()
    async def test_creates_record(self, lifecycle, key, history_store):
        evaluation = await lifecycle.assign_status(key, "implemented", actor="admin")
        assert evaluation.status == "implemented"
        assert [e.change_type for e in history_store.entries] == ["status_change"]

    @pytest.mark.asyncio()
    async def test_with_evidence_and_validation(self, lifecycle, key, history_store, dispatcher):
        evaluation = await lifecycle.assign_status(
            key,
            "validating_evidence",
            evidence_location=URL,
            notes=GOOD_NOTES,
            change_reason="bulk import",
            actor="admin",
        )
        assert _chronological(history_store, evaluation.evaluation_id) == [
            "evidence_update",
            "notes_update",
            "status_change",
        ]
        assert history_store.entries[-1].change_reason == "bulk import"
        assert dispatcher.enqueued == [evaluation.evaluation_id]

    @pytest.mark.asyncio()
    async def test_unknown_campaign(self, lifecycle):
        with pytest.raises(NotFoundError, match="Campaign"):
            await lifecycle.assign_status(
                EvaluationKey("svc-1", "m-1", "camp-404"), "implemented", actor="admin"
            )


class TestValidationResults:
    @pytest.mark.asyncio()
    async def test_passing_report_implements(self, lifecycle, evaluation_store, history_store):
        evaluation = evaluation_store.add(
            "svc-1", "m-1", "camp-1", status="validating_evidence", evidence_location=URL
        )
        applied = await lifecycle.apply_validation_result(evaluation, PASSING)

        assert applied is True
        assert evaluation.status == "implemented"
        assert ValidationReport.deserialize(evaluation.validation_report) == PASSING
        entry = history_store.entries[0]
        assert entry.change_type == "validation_result"
        assert (entry.previous_status, entry.new_status) == ("validating_evidence", "implemented")
        assert entry.changed_by is None
        assert ValidationReport.deserialize(entry.validation_results) == PASSING

    @pytest.mark.asyncio()
    async def test_failing_report_rejects(self, lifecycle, evaluation_store):
        evaluation = evaluation_store.add("svc-1", "m-1", "camp-1", status="validating_evidence")
        await lifecycle.apply_validation_result(evaluation, FAILING)
        assert evaluation.status == "evidence_rejected"

    @pytest.mark.asyncio()
    @pytest.mark.parametrize(
        "status",
        [s.value for s in EvaluationStatus if s is not EvaluationStatus.VALIDATING_EVIDENCE],
    )
    async def test_stale_result_keeps_status_and_stores_report(
        self, lifecycle, evaluation_store, history_store, status
    ):
        evaluation = evaluation_store.add("svc-1", "m-1", "camp-1", status=status)
        applied = await lifecycle.apply_validation_result(evaluation, PASSING)
        assert applied is False
        assert evaluation.status == status
        assert ValidationReport.deserialize(evaluation.validation_report) == PASSING
        assert history_store.entries == []


class TestValidateJob:
    @pytest.mark.asyncio()
    async def test_scenario_valid_evidence_is_implemented(self, lifecycle, key, evaluation_store):
        await lifecycle.submit_evidence(key, URL, "Looks good, fully rolled out", actor="alice")
        evaluation = await lifecycle.set_status(key, "validating_evidence", actor="alice")

        validator = EvidenceValidator(mock_client(serve_page()), timeout=1.0)
        report = await lifecycle.validate(evaluation.evaluation_id, validator)

        assert report.valid is True
        assert evaluation.status == "implemented"

    @pytest.mark.asyncio()
    async def test_scenario_placeholder_notes_are_rejected(self, lifecycle, key):
        await lifecycle.submit_evidence(key, URL, "TODO: fill in later", actor="alice")
        evaluation = await lifecycle.set_status(key, "validating_evidence", actor="alice")

        validator = EvidenceValidator(mock_client(serve_page()), timeout=1.0)
        report = await lifecycle.validate(evaluation.evaluation_id, validator)

        assert report.valid is False
        notes_check = [c for c in report.checks if c.name == "notes_quality"][0]
        assert notes_check.valid is False
        assert evaluation.status == "evidence_rejected"

    @pytest.mark.asyncio()
    async def test_override_during_probe_wins(self, lifecycle, key, history_store):
        await lifecycle.submit_evidence(key, URL, GOOD_NOTES, actor="alice")
        evaluation = await lifecycle.set_status(key, "validating_evidence", actor="alice")

        class OverridingValidator:
            async def validate(self, evidence_location, notes):
                # Operator steps in while the probes are still running
                await lifecycle.set_status(key, "not_implemented", "reverted", actor="admin")
                return PASSING

        await lifecycle.validate(evaluation.evaluation_id, OverridingValidator())

        assert evaluation.status == "not_implemented"
        assert ValidationReport.deserialize(evaluation.validation_report) == PASSING
        assert "validation_result" not in [e.change_type for e in history_store.entries]

    @pytest.mark.asyncio()
    async def test_verdict_on_replaced_evidence_is_dropped(
        self, lifecycle, key, history_store, dispatcher
    ):
        old_url, new_url = "https://example.com/old", "https://example.com/new"
        await lifecycle.submit_evidence(key, old_url, GOOD_NOTES, actor="alice")
        evaluation = await lifecycle.set_status(key, "validating_evidence", actor="alice")
        probed = []

        class ResubmittingValidator:
            async def validate(self, evidence_location, notes):
                probed.append(evidence_location)
                if evidence_location == old_url:
                    # New evidence arrives and is sent for validation mid-probe
                    await lifecycle.submit_evidence(key, new_url, GOOD_NOTES, actor="alice")
                    await lifecycle.set_status(key, "validating_evidence", actor="alice")
                    return PASSING
                return FAILING

        validator = ResubmittingValidator()
        await lifecycle.validate(evaluation.evaluation_id, validator)

        assert evaluation.evidence_location == new_url
        assert evaluation.status == "validating_evidence"
        assert evaluation.validation_report is None
        assert "validation_result" not in [e.change_type for e in history_store.entries]
        assert dispatcher.enqueued == [evaluation.evaluation_id] * 2

        report = await lifecycle.validate(evaluation.evaluation_id, validator)

        assert probed == [old_url, new_url]
        assert report == FAILING
        assert evaluation.status == "evidence_rejected"
        assert ValidationReport.deserialize(evaluation.validation_report) == FAILING

    @pytest.mark.asyncio()
    async def test_skips_when_no_longer_validating(self, lifecycle, key, evaluation_store):
        seeded = evaluation_store.add("svc-1", "m-1", "camp-1", status="implemented")

        class ExplodingValidator:
            async def validate(self, evidence_location, notes):
                raise AssertionError("validator must not run")

        assert await lifecycle.validate(seeded.evaluation_id, ExplodingValidator()) is None
        assert seeded.status == "implemented"

    @pytest.mark.asyncio()
    async def test_missing_evaluation_is_noop(self, lifecycle):
        validator = EvidenceValidator(mock_client(serve_page()), timeout=1.0)
        assert await lifecycle.validate("gone", validator) is None


class TestHistory:
    @pytest.mark.asyncio()
    async def test_newest_first(self, lifecycle, key):
        evaluation = await lifecycle.submit_evidence(key, URL, GOOD_NOTES, actor="alice")
        await lifecycle.set_status(key, "validating_evidence", actor="admin")

        entries = await lifecycle.list_history(evaluation.evaluation_id)

        assert [e.change_type for e in entries] == [
            "status_change",
            "status_change",
            "notes_update",
            "evidence_update",
        ]
        assert entries[0].new_status == "validating_evidence"

    @pytest.mark.asyncio()
    async def test_unknown_evaluation(self, lifecycle):
        with pytest.raises(NotFoundError):
            await lifecycle.list_history("missing")
