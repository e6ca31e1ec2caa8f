"""
FastAPI dependency providers

One workflow per process, wired to the Supabase repositories and the HTTP
clients. Tests replace these through ``app.dependency_overrides``.
"""
from functools import lru_cache

from helpdesk.repositories import (
    AgentRepository,
    AuditLogRepository,
    SuggestionRepository,
    TicketRepository,
)
from helpdesk.services.auto_resolution import AutoResolutionWorkflow
from helpdesk.services.classification import ClassificationClient
from helpdesk.services.confidence import ConfidenceEngine
from helpdesk.services.notifier import CustomerNotifier


@lru_cache()
def get_confidence_engine() -> ConfidenceEngine:
    return ConfidenceEngine()


@lru_cache()
def get_suggestion_repository() -> SuggestionRepository:
    return SuggestionRepository()


@lru_cache()
def get_workflow() -> AutoResolutionWorkflow:
    """Build the process-wide auto-resolution workflow"""
    return AutoResolutionWorkflow(
        tickets=TicketRepository(),
        suggestions=get_suggestion_repository(),
        agents=AgentRepository(),
        capability=ClassificationClient(confidence_engine=get_confidence_engine()),
        notifier=CustomerNotifier(),
        audit_sink=AuditLogRepository(),
    )
