"""
Pydantic models for the helpdesk auto-resolution service
"""

from helpdesk.models.schemas import (
    # Enums
    TicketStatus,
    Priority,
    SuggestionStatus,
    SuggestionType,
    Recommendation,
    JobState,

    # Tickets & Agents
    AuditEntry,
    Resolution,
    Ticket,
    Agent,

    # Capability payloads
    Classification,
    KnowledgeMatch,
    SuggestedResponse,
    ConfidenceScore,
    ProcessingResult,
    JobHandle,
    JobStatus,

    # Suggestion record
    OriginalTicketData,
    SuggestionError,
    AgentSuggestion,
)
from helpdesk.models.actions import (
    ActionType,
    Action,
    AutoResolveAction,
    AgentReviewAction,
    HumanReviewAction,
    EscalateAction,
    ActionResult,
)
from helpdesk.models.pipeline import PipelineStep, PipelineResult

__all__ = [
    # Enums
    "TicketStatus",
    "Priority",
    "SuggestionStatus",
    "SuggestionType",
    "Recommendation",
    "JobState",

    # Tickets & Agents
    "AuditEntry",
    "Resolution",
    "Ticket",
    "Agent",

    # Capability payloads
    "Classification",
    "KnowledgeMatch",
    "SuggestedResponse",
    "ConfidenceScore",
    "ProcessingResult",
    "JobHandle",
    "JobStatus",

    # Suggestion record
    "OriginalTicketData",
    "SuggestionError",
    "AgentSuggestion",

    # Actions
    "ActionType",
    "Action",
    "AutoResolveAction",
    "AgentReviewAction",
    "HumanReviewAction",
    "EscalateAction",
    "ActionResult",

    # Pipeline
    "PipelineStep",
    "PipelineResult",
]
