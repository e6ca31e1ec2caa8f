"""
Decision policy - maps a confidence recommendation to an action
"""
from typing import Optional

from helpdesk.models.actions import (
    Action,
    AgentReviewAction,
    AutoResolveAction,
    EscalateAction,
    HumanReviewAction,
)
from helpdesk.models.schemas import ConfidenceScore, Recommendation, SuggestedResponse


def determine_next_action(
    confidence: Optional[ConfidenceScore],
    suggested_response: Optional[SuggestedResponse] = None
) -> Action:
    """
    Choose the disposition for a processed ticket.

    Total over every input: an unrecognized or missing recommendation, or an
    auto-resolve recommendation without drafted content, maps to human review.
    Never touches a store.

    Args:
        confidence: Confidence assessment from the capability
        suggested_response: Drafted response used for auto-resolution

    Returns:
        The action to execute, with its reasoning
    """
    score = confidence.effective if confidence else 0.0
    recommendation = confidence.recommendation if confidence else None

    if recommendation == Recommendation.AUTO_RESOLVE.value:
        content = suggested_response.content.strip() if suggested_response else ""
        if not content:
            return HumanReviewAction(
                confidence=score,
                reasoning=["No drafted response available - defaulting to human review"],
            )
        return AutoResolveAction(
            confidence=score,
            reasoning=["High confidence AI resolution"],
            response_content=content,
            close_ticket=True,
            notify_customer=True,
        )

    if recommendation == Recommendation.AGENT_REVIEW.value:
        return AgentReviewAction(
            confidence=score,
            reasoning=["Medium confidence - requires agent review"],
            queue="ai_review",
            priority="normal",
        )

    if recommendation == Recommendation.HUMAN_REVIEW.value:
        return HumanReviewAction(
            confidence=score,
            reasoning=["Low confidence - requires human review"],
            queue="human_review",
            priority="high",
        )

    if recommendation == Recommendation.ESCALATE.value:
        return EscalateAction(
            confidence=score,
            reasoning=["Very low confidence - escalate to senior agent"],
            escalation_level="senior",
            priority="urgent",
        )

    return HumanReviewAction(
        confidence=score,
        reasoning=["Unknown recommendation - defaulting to human review"],
        queue="human_review",
        priority="high",
    )
