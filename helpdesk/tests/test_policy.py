"""
Unit tests for the decision policy
"""
import pytest
from pydantic import ValidationError

from helpdesk.models.actions import (
    AgentReviewAction,
    AutoResolveAction,
    EscalateAction,
    HumanReviewAction,
)
from helpdesk.models.schemas import ConfidenceScore, Priority, SuggestedResponse
from helpdesk.workflow.policy import determine_next_action

DRAFT = SuggestedResponse(content="Restart the sync from Settings > Accounts.")


def score(recommendation, calibrated=0.9, overall=0.5):
    return ConfidenceScore(overall=overall, calibrated=calibrated, recommendation=recommendation)


class TestDetermineNextAction:

    def test_auto_resolve_carries_draft(self):
        action = determine_next_action(score("auto_resolve", 0.93), DRAFT)

        assert isinstance(action, AutoResolveAction)
        assert action.response_content == DRAFT.content
        assert action.close_ticket is True
        assert action.notify_customer is True
        assert action.confidence == 0.93

    def test_auto_resolve_without_draft_goes_to_human_review(self):
        action = determine_next_action(score("auto_resolve"), None)

        assert isinstance(action, HumanReviewAction)
        assert action.reasoning == ["No drafted response available - defaulting to human review"]

    def test_agent_review(self):
        action = determine_next_action(score("agent_review", 0.7), DRAFT)

        assert isinstance(action, AgentReviewAction)
        assert action.queue == "ai_review"
        assert action.priority == "normal"

    def test_human_review(self):
        action = determine_next_action(score("human_review", 0.4), DRAFT)

        assert isinstance(action, HumanReviewAction)
        assert action.priority == Priority.HIGH

    def test_escalate(self):
        action = determine_next_action(score("escalate", 0.1), DRAFT)

        assert isinstance(action, EscalateAction)
        assert action.escalation_level == "senior"
        assert action.priority == Priority.URGENT

    @pytest.mark.parametrize("recommendation", [None, "", "maybe", "AUTO_RESOLVE"])
    def test_unknown_recommendation_defaults_to_human_review(self, recommendation):
        action = determine_next_action(score(recommendation), DRAFT)

        assert isinstance(action, HumanReviewAction)
        assert action.reasoning == ["Unknown recommendation - defaulting to human review"]

    def test_missing_confidence_defaults_to_human_review(self):
        action = determine_next_action(None)

        assert isinstance(action, HumanReviewAction)
        assert action.confidence == 0.0

    def test_raw_score_used_when_uncalibrated(self):
        confidence = ConfidenceScore(overall=0.66, recommendation="agent_review")

        assert determine_next_action(confidence).confidence == 0.66


class TestActionModels:

    def test_auto_resolve_requires_content(self):
        with pytest.raises(ValidationError):
            AutoResolveAction(response_content="")

    def test_unexpected_parameters_rejected(self):
        with pytest.raises(ValidationError):
            EscalateAction(queue="ai_review")
