"""
Collaborator interfaces for the auto-resolution workflow

The Supabase repositories, the classification HTTP client and the webhook
notifier satisfy these structurally; tests substitute in-memory fakes.
"""
from typing import Any, Dict, List, Optional, Protocol

from helpdesk.models.schemas import (
    Agent,
    AgentSuggestion,
    AuditEntry,
    JobHandle,
    JobStatus,
    SuggestionStatus,
    Ticket,
)


class TicketStore(Protocol):
    async def get_by_id(self, ticket_id: str) -> Optional[Ticket]: ...

    async def save(self, ticket: Ticket) -> Ticket: ...


class SuggestionStore(Protocol):
    async def create(self, suggestion: AgentSuggestion) -> AgentSuggestion: ...

    async def update(self, suggestion: AgentSuggestion) -> AgentSuggestion: ...

    async def append_audit_entry(
        self,
        suggestion: AgentSuggestion,
        action: str,
        actor: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> AuditEntry: ...

    async def get_by_id(self, suggestion_id: str) -> Optional[AgentSuggestion]: ...

    async def get_by_ticket(
        self,
        ticket_id: str,
        status: Optional[SuggestionStatus] = None,
        limit: Optional[int] = None,
    ) -> List[AgentSuggestion]: ...

    async def get_latest_for_ticket(self, ticket_id: str) -> Optional[AgentSuggestion]: ...


class AgentPool(Protocol):
    async def find_available_agents(self, role: str, limit: int) -> List[Agent]: ...


class ClassificationCapability(Protocol):
    async def submit(self, ticket: Ticket, priority_hint: str = "normal") -> JobHandle: ...

    async def poll_status(self, queue_name: str, job_id: str) -> JobStatus: ...


class Notifier(Protocol):
    def notify(self, ticket_id: str, content: str) -> None: ...

    async def wait_pending(self) -> None: ...


class AuditSink(Protocol):
    async def record(self, entry: Dict[str, Any]) -> Any: ...
