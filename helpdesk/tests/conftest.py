"""
pytest configuration and shared fixtures

In-memory stand-ins for the Supabase repositories and the classification
service, plus factories for tickets, capability results and workflows.
"""
import asyncio
from typing import Dict, List, Optional

import pytest

from helpdesk.config import Settings
from helpdesk.models.schemas import (
    Agent,
    AgentSuggestion,
    AuditEntry,
    Classification,
    ConfidenceScore,
    JobHandle,
    JobState,
    JobStatus,
    ProcessingResult,
    SuggestedResponse,
    Ticket,
)
from helpdesk.services.auto_resolution import AutoResolutionWorkflow


# ============================================================================
# Fakes
# ============================================================================

class FakeTicketStore:
    def __init__(self, tickets: Optional[List[Ticket]] = None):
        self.tickets: Dict[str, Ticket] = {t.id: t for t in tickets or []}
        self.saves: List[Ticket] = []
        self.fail_on_save: Optional[Exception] = None

    async def get_by_id(self, ticket_id: str) -> Optional[Ticket]:
        ticket = self.tickets.get(ticket_id)
        return ticket.model_copy(deep=True) if ticket else None

    async def save(self, ticket: Ticket) -> Ticket:
        if self.fail_on_save is not None:
            raise self.fail_on_save
        stored = ticket.model_copy(deep=True)
        self.tickets[ticket.id] = stored
        self.saves.append(stored)
        return stored.model_copy(deep=True)


class FakeSuggestionStore:
    def __init__(self):
        self.records: Dict[str, AgentSuggestion] = {}
        self.created: List[AgentSuggestion] = []

    def _store(self, suggestion: AgentSuggestion) -> AgentSuggestion:
        stored = suggestion.model_copy(deep=True)
        self.records[suggestion.id] = stored
        return stored

    async def create(self, suggestion: AgentSuggestion) -> AgentSuggestion:
        stored = self._store(suggestion)
        self.created.append(stored)
        return suggestion

    async def update(self, suggestion: AgentSuggestion) -> AgentSuggestion:
        self._store(suggestion)
        return suggestion

    async def append_audit_entry(self, suggestion, action, actor=None, details=None) -> AuditEntry:
        entry = suggestion.add_audit_entry(action, actor, details)
        stored = self.records[suggestion.id]
        stored.audit_trail.append(entry.model_copy(deep=True))
        return entry

    async def get_by_id(self, suggestion_id: str) -> Optional[AgentSuggestion]:
        stored = self.records.get(suggestion_id)
        return stored.model_copy(deep=True) if stored else None

    async def get_by_ticket(self, ticket_id, status=None, limit=None) -> List[AgentSuggestion]:
        rows = [s for s in self.records.values() if s.ticket_id == ticket_id]
        if status is not None:
            rows = [s for s in rows if s.status == status]
        rows.sort(key=lambda s: s.created_at, reverse=True)
        return rows[:limit] if limit else rows

    async def get_latest_for_ticket(self, ticket_id: str) -> Optional[AgentSuggestion]:
        rows = await self.get_by_ticket(ticket_id, limit=1)
        return rows[0] if rows else None

    def for_ticket(self, ticket_id: str) -> List[AgentSuggestion]:
        return [s for s in self.records.values() if s.ticket_id == ticket_id]


class DetachedAuditStore(FakeSuggestionStore):
    """Trail writes outlive a cancelled caller, as a worker-thread write does"""

    def __init__(self, write_delay: float = 0.3):
        super().__init__()
        self.write_delay = write_delay

    async def append_audit_entry(self, suggestion, action, actor=None, details=None) -> AuditEntry:
        entry = suggestion.add_audit_entry(action, actor, details)
        trail = [e.model_copy(deep=True) for e in suggestion.audit_trail]
        await asyncio.shield(self._write_trail(suggestion.id, trail))
        return entry

    async def _write_trail(self, suggestion_id: str, trail: List[AuditEntry]) -> None:
        await asyncio.sleep(self.write_delay)
        self.records[suggestion_id].audit_trail = trail


class FakeAgentPool:
    def __init__(self, agents: Optional[List[Agent]] = None):
        self.agents = agents or []
        self.calls = []

    async def find_available_agents(self, role: str, limit: int) -> List[Agent]:
        self.calls.append((role, limit))
        return sorted(self.agents, key=lambda a: a.workload)[:limit]


class FakeCapability:
    """
    Scripted classification service.

    ``statuses`` are returned in order, the last one repeating. ``gate``
    holds every poll until set.
    """

    def __init__(self, statuses: Optional[List[JobStatus]] = None, queue: str = "ticket-processing"):
        self.statuses = statuses or []
        self.queue = queue
        self.submitted = []
        self.polls = 0
        self.gate: Optional[asyncio.Event] = None
        self.closed = False

    async def submit(self, ticket: Ticket, priority_hint: str = "normal") -> JobHandle:
        self.submitted.append((ticket.id, priority_hint))
        return JobHandle(id=f"job-{len(self.submitted)}", queue=self.queue)

    async def poll_status(self, queue_name: str, job_id: str) -> JobStatus:
        if self.gate is not None:
            await self.gate.wait()
        index = min(self.polls, len(self.statuses) - 1)
        self.polls += 1
        status = self.statuses[index]
        return status.model_copy(update={"id": job_id})

    async def aclose(self) -> None:
        self.closed = True


class FakeNotifier:
    def __init__(self):
        self.sent = []
        self.waited = False

    def notify(self, ticket_id: str, content: str) -> None:
        self.sent.append((ticket_id, content))

    async def wait_pending(self) -> None:
        self.waited = True


class FakeAuditSink:
    def __init__(self):
        self.entries = []

    async def record(self, entry):
        self.entries.append(entry)
        return entry


# ============================================================================
# Factories
# ============================================================================

def make_ticket(ticket_id: str = "T1", **overrides) -> Ticket:
    data = {
        "id": ticket_id,
        "subject": "Cannot reset my password",
        "description": "The reset link in the email says it has expired every time I click it.",
        "category": "account",
    }
    data.update(overrides)
    return Ticket(**data)


def make_result(
    recommendation: Optional[str] = "auto_resolve",
    calibrated: float = 0.92,
    content: str = "Please request a new reset link; links expire after 15 minutes.",
    category: str = "account",
    priority: str = "low",
) -> ProcessingResult:
    return ProcessingResult(
        classification=Classification.model_validate({
            "category": {"category": category, "confidence": 0.9},
            "priority": {"priority": priority, "confidence": 0.8},
        }),
        suggested_response=SuggestedResponse(content=content, type="template", confidence=0.9),
        confidence=ConfidenceScore(overall=calibrated, calibrated=calibrated, recommendation=recommendation),
        auto_resolve=recommendation == "auto_resolve",
        processing_time=420,
    )


def completed(result: ProcessingResult) -> JobStatus:
    return JobStatus(state=JobState.COMPLETED, result=result)


def pending() -> JobStatus:
    return JobStatus(state=JobState.PENDING)


def failed(reason: str = "model crashed") -> JobStatus:
    return JobStatus(state=JobState.FAILED, failure_reason=reason)


def make_agent(agent_id: str = "agent-1", workload: int = 0) -> Agent:
    return Agent(id=agent_id, first_name="Dana", last_name="Reyes", email=f"{agent_id}@example.com", workload=workload)


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def test_settings():
    return Settings(
        workflow_poll_interval_seconds=0.001,
        workflow_max_wait_seconds=0.5,
        workflow_progress_audit_every=2,
    )


@pytest.fixture
def tickets():
    return FakeTicketStore([make_ticket("T1")])


@pytest.fixture
def suggestions():
    return FakeSuggestionStore()


@pytest.fixture
def agents():
    return FakeAgentPool()


@pytest.fixture
def capability():
    return FakeCapability([pending(), completed(make_result())])


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def audit_sink():
    return FakeAuditSink()


@pytest.fixture
def workflow(tickets, suggestions, agents, capability, notifier, audit_sink, test_settings):
    return AutoResolutionWorkflow(
        tickets=tickets,
        suggestions=suggestions,
        agents=agents,
        capability=capability,
        notifier=notifier,
        audit_sink=audit_sink,
        settings=test_settings,
    )

