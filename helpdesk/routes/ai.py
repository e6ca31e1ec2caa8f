"""
AI processing API routes

- POST /api/ai/process-ticket - run the auto-resolution pipeline for a ticket
- GET  /api/ai/processing-status/{ticket_id} - latest processing attempt
- GET  /api/ai/suggestions - suggestion history for a ticket
- POST /api/ai/confidence/feedback - fold an outcome into calibration
- GET  /api/ai/suggestions/{suggestion_id} - one suggestion record
- POST /api/ai/suggestions/{suggestion_id}/review - human review of a suggestion
"""
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from helpdesk.dependencies import (
    get_confidence_engine,
    get_suggestion_repository,
    get_workflow,
)
from helpdesk.exceptions import SuggestionNotFoundError, WorkflowError
from helpdesk.models.schemas import AgentSuggestion, SuggestionStatus
from helpdesk.repositories.suggestion_repository import SuggestionRepository
from helpdesk.services.auto_resolution import AutoResolutionWorkflow
from helpdesk.services.confidence import ConfidenceEngine
from helpdesk.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/ai", tags=["ai"])

ERROR_STATUS = {
    "not_found": status.HTTP_404_NOT_FOUND,
    "timeout": status.HTTP_504_GATEWAY_TIMEOUT,
    "capability_failure": status.HTTP_502_BAD_GATEWAY,
    "workflow_closed": status.HTTP_503_SERVICE_UNAVAILABLE,
}


# ============================================================================
# Request/Response Models
# ============================================================================

class ProcessTicketRequest(BaseModel):
    """Request model for ticket processing"""
    ticket_id: str = Field(..., min_length=1)
    priority: Literal["low", "normal", "high", "urgent"] = "normal"


class ProcessTicketData(BaseModel):
    trace_id: str
    processing_time_ms: Optional[int] = None
    action: Optional[str] = None
    auto_resolved: bool = False


class ProcessTicketResponse(BaseModel):
    status: str = "success"
    data: ProcessTicketData


class ConfidenceFeedbackRequest(BaseModel):
    """Agent verdict on a past prediction"""
    ticket_id: str = Field(..., min_length=1)
    predicted_confidence: float = Field(..., ge=0.0, le=1.0)
    correct: bool


class SuggestionReviewRequest(BaseModel):
    """Human verdict on a stored suggestion"""
    decision: Literal["approve", "modify", "reject", "escalate"]
    classification_accuracy: Optional[Literal["correct", "incorrect", "partial"]] = None
    response_quality: Optional[Literal["excellent", "good", "fair", "poor"]] = None
    comments: Optional[str] = None
    modified_response: Optional[str] = None
    reviewer_id: Optional[str] = None


def _error_response(error: Exception) -> HTTPException:
    if isinstance(error, WorkflowError):
        code = ERROR_STATUS.get(error.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
        return HTTPException(status_code=code, detail=error.to_dict())
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"kind": "internal_error", "message": str(error)},
    )


# ============================================================================
# Routes
# ============================================================================

@router.post("/process-ticket", response_model=ProcessTicketResponse)
async def process_ticket(
    request: ProcessTicketRequest,
    workflow: AutoResolutionWorkflow = Depends(get_workflow)
):
    """
    Run the auto-resolution pipeline for a ticket.

    Blocks until the run finishes. A ticket already being processed joins the
    in-flight run and returns its result.
    """
    try:
        result = await workflow.process_ticket(request.ticket_id, request.priority)
    except Exception as e:
        logger.error(f"Processing ticket {request.ticket_id} failed: {e}")
        raise _error_response(e) from e

    return ProcessTicketResponse(
        data=ProcessTicketData(
            trace_id=result.trace_id,
            processing_time_ms=result.total_time_ms,
            action=result.action.type if result.action else None,
            auto_resolved=result.auto_resolved,
        )
    )


@router.get("/processing-status/{ticket_id}")
async def get_processing_status(
    ticket_id: str,
    workflow: AutoResolutionWorkflow = Depends(get_workflow)
) -> Dict[str, Any]:
    """Latest processing attempt for a ticket"""
    try:
        data = await workflow.get_processing_status(ticket_id)
    except Exception as e:
        logger.error(f"Status lookup for ticket {ticket_id} failed: {e}")
        raise _error_response(e) from e

    return {"status": "success", "data": data}


@router.get("/suggestions", response_model=List[AgentSuggestion])
async def list_suggestions(
    ticket_id: str = Query(..., min_length=1),
    status_filter: Optional[SuggestionStatus] = Query(None, alias="status"),
    limit: int = Query(20, ge=1, le=100),
    suggestions: SuggestionRepository = Depends(get_suggestion_repository)
):
    """Suggestion history for a ticket, newest first"""
    try:
        return await suggestions.get_by_ticket(ticket_id, status=status_filter, limit=limit)
    except Exception as e:
        logger.error(f"Listing suggestions for ticket {ticket_id} failed: {e}")
        raise _error_response(e) from e


@router.post("/confidence/feedback")
async def record_confidence_feedback(
    request: ConfidenceFeedbackRequest,
    engine: ConfidenceEngine = Depends(get_confidence_engine)
) -> Dict[str, Any]:
    """Record whether a prediction turned out correct; returns calibration stats"""
    updated_bin = engine.record_feedback(
        request.ticket_id,
        request.predicted_confidence,
        request.correct,
    )
    return {"status": "success", "data": {"bin": updated_bin, "stats": engine.stats()}}


@router.get("/suggestions/{suggestion_id}", response_model=AgentSuggestion)
async def get_suggestion(
    suggestion_id: str,
    suggestions: SuggestionRepository = Depends(get_suggestion_repository)
):
    try:
        suggestion = await suggestions.get_by_id(suggestion_id)
        if suggestion is None:
            raise SuggestionNotFoundError(suggestion_id)
    except Exception as e:
        logger.error(f"Fetching suggestion {suggestion_id} failed: {e}")
        raise _error_response(e) from e
    return suggestion


@router.post("/suggestions/{suggestion_id}/review")
async def review_suggestion(
    suggestion_id: str,
    request: SuggestionReviewRequest,
    suggestions: SuggestionRepository = Depends(get_suggestion_repository),
    engine: ConfidenceEngine = Depends(get_confidence_engine)
) -> Dict[str, Any]:
    """
    Record a human review on a suggestion.

    The review is appended to the audit trail; the record's status is left
    alone. When the reviewer judged the classification, the suggestion's
    stored confidence is fed back into calibration ("partial" counts as
    incorrect).
    """
    try:
        suggestion = await suggestions.get_by_id(suggestion_id)
        if suggestion is None:
            raise SuggestionNotFoundError(suggestion_id)

        await suggestions.append_audit_entry(
            suggestion,
            "Human review recorded",
            request.reviewer_id,
            request.model_dump(exclude={"reviewer_id"}, exclude_none=True),
        )
    except Exception as e:
        logger.error(f"Recording review for suggestion {suggestion_id} failed: {e}")
        raise _error_response(e) from e

    updated_bin = None
    if request.classification_accuracy is not None and suggestion.confidence is not None:
        updated_bin = engine.record_feedback(
            suggestion.ticket_id,
            suggestion.confidence.effective,
            request.classification_accuracy == "correct",
        )

    logger.info(f"Review '{request.decision}' recorded on suggestion {suggestion_id}")
    return {
        "status": "success",
        "data": {
            "suggestion_id": suggestion_id,
            "decision": request.decision,
            "bin": updated_bin,
        },
    }
