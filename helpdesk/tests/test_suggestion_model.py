"""
Unit tests for the AgentSuggestion lifecycle
"""
import pytest
from pydantic import ValidationError

from helpdesk.exceptions import CapabilityFailureError, InvalidStatusTransitionError
from helpdesk.models.schemas import AgentSuggestion, ProcessingResult, SuggestionStatus
from helpdesk.tests.conftest import make_result, make_ticket


@pytest.fixture
def suggestion():
    return AgentSuggestion.for_ticket(make_ticket("T7", attachments=["log.txt"]), trace_id="trace-1")


class TestForTicket:

    def test_snapshot_and_defaults(self, suggestion):
        assert suggestion.status == SuggestionStatus.PROCESSING
        assert suggestion.ticket_id == "T7"
        assert suggestion.trace_id == "trace-1"
        assert suggestion.original_data.attachments == ["log.txt"]
        assert suggestion.audit_trail == []


class TestTransitions:

    @pytest.mark.parametrize("path", [
        [SuggestionStatus.COMPLETED, SuggestionStatus.AUTO_APPLIED],
        [SuggestionStatus.COMPLETED, SuggestionStatus.FAILED],
        [SuggestionStatus.FAILED],
    ])
    def test_forward_paths(self, suggestion, path):
        for status in path:
            suggestion.transition_to(status)
        assert suggestion.status == path[-1]
        assert suggestion.is_terminal == (path[-1] in {SuggestionStatus.FAILED, SuggestionStatus.AUTO_APPLIED})

    @pytest.mark.parametrize("target", list(SuggestionStatus))
    def test_terminal_states_reject_everything(self, suggestion, target):
        suggestion.transition_to(SuggestionStatus.FAILED)

        with pytest.raises(InvalidStatusTransitionError):
            suggestion.transition_to(target)

    def test_processing_cannot_jump_to_auto_applied(self, suggestion):
        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            suggestion.transition_to(SuggestionStatus.AUTO_APPLIED)

        assert exc_info.value.detail["from"] == "processing"

    def test_direct_assignment_cannot_regress_status(self, suggestion):
        suggestion.transition_to(SuggestionStatus.FAILED)

        with pytest.raises(ValidationError):
            suggestion.status = SuggestionStatus.PROCESSING

        assert suggestion.status == SuggestionStatus.FAILED

    def test_status_survives_copy(self, suggestion):
        suggestion.transition_to(SuggestionStatus.COMPLETED)

        copied = suggestion.model_copy(deep=True)

        assert copied.status == SuggestionStatus.COMPLETED
        assert copied.can_transition_to(SuggestionStatus.AUTO_APPLIED)


class TestApplyResults:

    def test_copies_result_and_completes(self, suggestion):
        suggestion.apply_results(make_result("auto_resolve", 0.92))

        assert suggestion.status == SuggestionStatus.COMPLETED
        assert suggestion.confidence.calibrated == 0.92
        assert suggestion.auto_resolve_reason == "High confidence (0.92) auto-resolution"
        assert suggestion.processing_time_ms == 420

    def test_no_reason_without_auto_resolve(self, suggestion):
        suggestion.apply_results(make_result("agent_review", 0.7))

        assert suggestion.auto_resolve is False
        assert suggestion.auto_resolve_reason is None

    def test_rejected_once_completed(self, suggestion):
        suggestion.apply_results(make_result())

        with pytest.raises(InvalidStatusTransitionError):
            suggestion.apply_results(make_result())

    def test_accepts_camel_case_payload(self, suggestion):
        result = ProcessingResult.model_validate({
            "knowledgeMatches": [{"id": "kb-1", "title": "Reset password", "score": 0.8}],
            "suggestedResponse": {"content": "Try again", "type": "llm", "confidence": 0.7},
            "confidence": {"overall": 0.7, "calibrated": 0.72, "recommendation": "agent_review"},
            "autoResolve": False,
            "processingTime": 1200,
        })

        suggestion.apply_results(result)

        assert suggestion.knowledge_matches[0].title == "Reset password"
        assert suggestion.suggested_response.type == "llm"
        assert suggestion.processing_time_ms == 1200


class TestRecordError:

    def test_open_record_fails(self, suggestion):
        suggestion.record_error("wait_for_completion", CapabilityFailureError("job died"))

        assert suggestion.status == SuggestionStatus.FAILED
        assert suggestion.errors[0].kind == "capability_failure"
        assert suggestion.audit_trail[-1].action == "Processing failed"
        assert suggestion.audit_trail[-1].details["step"] == "wait_for_completion"

    def test_terminal_record_only_gets_audit_entry(self, suggestion):
        suggestion.transition_to(SuggestionStatus.COMPLETED)
        suggestion.transition_to(SuggestionStatus.AUTO_APPLIED)

        suggestion.record_error("record_audit", ValueError("sink down"))

        assert suggestion.status == SuggestionStatus.AUTO_APPLIED
        assert suggestion.errors == []
        assert suggestion.audit_trail[-1].details["kind"] == "ValueError"
