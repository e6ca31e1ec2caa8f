"""
Workflow error taxonomy

Every error raised out of the auto-resolution pipeline carries a stable
``kind`` so callers (the HTTP trigger surface, audit consumers) can branch on
it without parsing messages.
"""
from typing import Any, Dict, Optional


class WorkflowError(RuntimeError):
    """Base class for auto-resolution workflow failures."""

    kind = "workflow_error"

    def __init__(self, message: str, detail: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.detail = detail or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "message": str(self), **self.detail}


class TicketNotFoundError(WorkflowError):
    """Raised when the ticket to process does not exist."""

    kind = "not_found"

    def __init__(self, ticket_id: str):
        super().__init__(f"Ticket {ticket_id} not found", {"ticket_id": ticket_id})
        self.ticket_id = ticket_id


class SuggestionNotFoundError(WorkflowError):
    """Raised when a suggestion record does not exist."""

    kind = "not_found"

    def __init__(self, suggestion_id: str):
        super().__init__(f"Suggestion {suggestion_id} not found", {"suggestion_id": suggestion_id})
        self.suggestion_id = suggestion_id


class CapabilityFailureError(WorkflowError):
    """Raised when the classification capability reports a failed job."""

    kind = "capability_failure"


class ProcessingTimeoutError(WorkflowError):
    """Raised when the classification capability does not finish in time."""

    kind = "timeout"


class ActionExecutionError(WorkflowError):
    """Raised when an action executor fails part-way through."""

    kind = "action_execution_failure"


class InvalidStatusTransitionError(WorkflowError):
    """Raised on an illegal suggestion status change."""

    kind = "invalid_transition"


class WorkflowClosedError(WorkflowError):
    """Raised when a ticket is submitted after the workflow shut down."""

    kind = "workflow_closed"
