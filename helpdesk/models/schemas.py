"""
Pydantic models for the helpdesk auto-resolution service

This module contains the ticket, agent, classification and suggestion schemas
shared by the repositories, the classification client and the workflow.

Capability payloads arrive from the external AI service in camelCase; those
models accept either spelling and always dump snake_case for Supabase.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any, List
from uuid import uuid4

from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel

from helpdesk.exceptions import InvalidStatusTransitionError


def utcnow() -> datetime:
    """Timezone-aware current UTC time"""
    return datetime.now(timezone.utc)


# ============================================================================
# Enums
# ============================================================================

class TicketStatus(str, Enum):
    """Valid ticket statuses"""
    OPEN = "open"
    TRIAGED = "triaged"
    WAITING_HUMAN = "waiting_human"
    IN_PROGRESS = "in_progress"
    WAITING_CUSTOMER = "waiting_customer"
    RESOLVED = "resolved"
    CLOSED = "closed"
    ESCALATED = "escalated"


class Priority(str, Enum):
    """Valid ticket priorities, lowest first"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class SuggestionStatus(str, Enum):
    """Lifecycle of one processing attempt"""
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    AUTO_APPLIED = "auto_applied"


class SuggestionType(str, Enum):
    """Kind of processing a suggestion record covers"""
    CLASSIFICATION = "classification"
    RESPONSE = "response"
    RESOLUTION = "resolution"
    ESCALATION = "escalation"
    FULL_PROCESSING = "full_processing"


class Recommendation(str, Enum):
    """Dispositions the confidence engine can recommend"""
    AUTO_RESOLVE = "auto_resolve"
    AGENT_REVIEW = "agent_review"
    HUMAN_REVIEW = "human_review"
    ESCALATE = "escalate"


class JobState(str, Enum):
    """Normalized classification job states"""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


# Forward-only suggestion lifecycle. Terminal states map to an empty set.
SUGGESTION_TRANSITIONS: Dict[SuggestionStatus, frozenset] = {
    SuggestionStatus.PROCESSING: frozenset({SuggestionStatus.COMPLETED, SuggestionStatus.FAILED}),
    SuggestionStatus.COMPLETED: frozenset({SuggestionStatus.AUTO_APPLIED, SuggestionStatus.FAILED}),
    SuggestionStatus.FAILED: frozenset(),
    SuggestionStatus.AUTO_APPLIED: frozenset(),
}


# ============================================================================
# Shared
# ============================================================================

class AuditEntry(BaseModel):
    """Single timestamped audit trail entry"""
    timestamp: datetime = Field(default_factory=utcnow)
    action: str = Field(..., min_length=1)
    actor: Optional[str] = Field(None, description="User id, None for system/AI")
    details: Dict[str, Any] = Field(default_factory=dict)


# ============================================================================
# Tickets & Agents
# ============================================================================

class Resolution(BaseModel):
    """How a ticket was resolved"""
    type: str
    content: str
    resolved_by: Optional[str] = None  # None for AI resolution
    resolved_at: datetime = Field(default_factory=utcnow)


class Ticket(BaseModel):
    """
    Ticket as held by the ticket store.

    The workflow only changes status, priority, assignee, resolution and
    history, and only through an executed action.
    """
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., min_length=1)
    subject: str
    description: str
    category: Optional[str] = "general"
    priority: Priority = Priority.MEDIUM
    status: TicketStatus = TicketStatus.OPEN
    assignee_id: Optional[str] = None
    attachments: List[str] = Field(default_factory=list)
    resolution: Optional[Resolution] = None
    resolved_at: Optional[datetime] = None
    history: List[AuditEntry] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def add_history(
        self,
        action: str,
        actor: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> AuditEntry:
        entry = AuditEntry(action=action, actor=actor, details=details or {})
        self.history.append(entry)
        return entry


class Agent(BaseModel):
    """Human support agent available for assignment"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    first_name: str = ""
    last_name: str = ""
    email: Optional[str] = None
    role: str = "agent"
    workload: int = 0
    is_active: bool = True

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


# ============================================================================
# Classification capability payloads
# ============================================================================

class CapabilityModel(BaseModel):
    """Base for payloads exchanged with the classification service"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


class CategoryPrediction(CapabilityModel):
    category: Optional[str] = None
    confidence: float = 0.0
    matches: List[str] = Field(default_factory=list)


class PriorityPrediction(CapabilityModel):
    priority: Optional[str] = None
    confidence: float = 0.0
    reasoning: List[str] = Field(default_factory=list)
    urgency_score: Optional[float] = None
    sentiment: Optional[float] = None


class Classification(CapabilityModel):
    """Category + priority classification of a ticket"""
    category: Optional[CategoryPrediction] = None
    priority: Optional[PriorityPrediction] = None
    routing: Dict[str, Any] = Field(default_factory=dict)
    duplicates: List[Dict[str, Any]] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class KnowledgeMatch(CapabilityModel):
    """Ranked knowledge-base article match"""
    id: str
    title: str
    summary: Optional[str] = None
    category: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    score: float = 0.0
    source: Optional[str] = None
    url: Optional[str] = None


class SuggestedResponse(CapabilityModel):
    """Drafted customer response"""
    content: str = ""
    type: str = "template"  # template | llm | hybrid | fallback
    confidence: float = 0.0
    source: Optional[str] = None


class ConfidenceScore(CapabilityModel):
    """
    Confidence assessment for a processing result.

    ``overall`` is the raw model confidence; ``calibrated`` is the
    feedback-adjusted score. ``recommendation`` is kept as free text so an
    unrecognized value survives to the decision policy instead of failing
    validation.
    """
    overall: float = Field(0.0, ge=0.0, le=1.0)
    calibrated: Optional[float] = Field(None, ge=0.0, le=1.0)
    recommendation: Optional[str] = None
    components: Dict[str, float] = Field(default_factory=dict)
    factors: Dict[str, float] = Field(default_factory=dict)

    @property
    def effective(self) -> float:
        """Calibrated score when present, otherwise the raw one"""
        return self.calibrated if self.calibrated is not None else self.overall


class ProcessingResult(CapabilityModel):
    """Result returned by a completed classification job"""
    classification: Optional[Classification] = None
    knowledge_matches: List[KnowledgeMatch] = Field(default_factory=list)
    suggested_response: Optional[SuggestedResponse] = None
    confidence: ConfidenceScore = Field(default_factory=ConfidenceScore)
    auto_resolve: bool = False
    processing_time: Optional[int] = Field(None, description="Capability-side processing time (ms)")


class JobHandle(BaseModel):
    """Handle to a submitted classification job"""
    id: str
    queue: str


class JobStatus(BaseModel):
    """Poll result for a classification job"""
    id: Optional[str] = None
    state: JobState = JobState.PENDING
    result: Optional[ProcessingResult] = None
    failure_reason: Optional[str] = None


# ============================================================================
# Suggestion record
# ============================================================================

class OriginalTicketData(BaseModel):
    """Snapshot of the ticket content that was processed"""
    subject: str
    description: str
    category: Optional[str] = None
    attachments: List[str] = Field(default_factory=list)


class SuggestionError(BaseModel):
    """Error recorded against a suggestion"""
    step: str
    error: str
    kind: str = "error"
    timestamp: datetime = Field(default_factory=utcnow)


class AgentSuggestion(BaseModel):
    """
    Durable record of one AI processing attempt for a ticket.

    This model matches the `agent_suggestions` table in Supabase.

    ``status`` is frozen and only changes through ``transition_to``, which
    enforces the forward-only lifecycle in ``SUGGESTION_TRANSITIONS``. Once
    terminal, the only permitted change is appending audit entries.

    Attributes:
        id: Unique identifier (UUID string)
        ticket_id: Ticket this attempt belongs to
        trace_id: Correlation token unique to one pipeline run
        status: processing | completed | failed | auto_applied
        audit_trail: Ordered audit entries
        errors: Errors recorded during the run
        processing_time_ms: Capability-side processing time
    """
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    ticket_id: str = Field(..., min_length=1)
    trace_id: str = Field(..., min_length=1)
    type: SuggestionType = SuggestionType.FULL_PROCESSING
    status: SuggestionStatus = Field(SuggestionStatus.PROCESSING, frozen=True)
    ai_provider: str = "hybrid"
    original_data: OriginalTicketData

    classification: Optional[Classification] = None
    knowledge_matches: List[KnowledgeMatch] = Field(default_factory=list)
    suggested_response: Optional[SuggestedResponse] = None
    confidence: Optional[ConfidenceScore] = None
    auto_resolve: bool = False
    auto_resolve_reason: Optional[str] = None

    audit_trail: List[AuditEntry] = Field(default_factory=list)
    errors: List[SuggestionError] = Field(default_factory=list)
    processing_time_ms: Optional[int] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None

    @classmethod
    def for_ticket(cls, ticket: Ticket, trace_id: str) -> "AgentSuggestion":
        """Start a new `processing` record with a snapshot of the ticket"""
        return cls(
            ticket_id=ticket.id,
            trace_id=trace_id,
            original_data=OriginalTicketData(
                subject=ticket.subject,
                description=ticket.description,
                category=ticket.category,
                attachments=list(ticket.attachments),
            ),
        )

    @property
    def is_terminal(self) -> bool:
        return not SUGGESTION_TRANSITIONS[self.status]

    def can_transition_to(self, status: SuggestionStatus) -> bool:
        return status in SUGGESTION_TRANSITIONS[self.status]

    def transition_to(self, status: SuggestionStatus) -> None:
        if not self.can_transition_to(status):
            raise InvalidStatusTransitionError(
                f"Suggestion {self.id} cannot move from {self.status.value} to {status.value}",
                {"suggestion_id": self.id, "from": self.status.value, "to": status.value},
            )
        self.__dict__["status"] = status
        self.updated_at = utcnow()

    def add_audit_entry(
        self,
        action: str,
        actor: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> AuditEntry:
        entry = AuditEntry(action=action, actor=actor, details=details or {})
        self.audit_trail.append(entry)
        return entry

    def apply_results(self, result: ProcessingResult) -> None:
        """Copy a capability result onto the record and mark it completed"""
        if self.status != SuggestionStatus.PROCESSING:
            raise InvalidStatusTransitionError(
                f"Suggestion {self.id} is {self.status.value}; results can only be applied while processing",
                {"suggestion_id": self.id, "status": self.status.value},
            )

        self.classification = result.classification
        self.knowledge_matches = list(result.knowledge_matches)
        self.suggested_response = result.suggested_response
        self.confidence = result.confidence
        self.auto_resolve = result.auto_resolve
        self.auto_resolve_reason = (
            f"High confidence ({result.confidence.effective:.2f}) auto-resolution"
            if result.auto_resolve else None
        )
        self.processing_time_ms = result.processing_time
        self.transition_to(SuggestionStatus.COMPLETED)

    def record_error(self, step: str, error: Exception) -> SuggestionError:
        """
        Record a failure against this attempt.

        The error list and status only change while the record is still
        open; a terminal record keeps its state and gets an audit entry only.
        """
        kind = getattr(error, "kind", type(error).__name__)
        failure = SuggestionError(step=step, error=str(error), kind=kind)

        if self.can_transition_to(SuggestionStatus.FAILED):
            self.errors.append(failure)
            self.transition_to(SuggestionStatus.FAILED)

        self.add_audit_entry("Processing failed", None, {
            "step": step,
            "error": str(error),
            "kind": kind,
        })
        return failure
