"""
Repositories package for database operations

Provides repository classes for Supabase tables:
- tickets table (TicketRepository)
- agent_suggestions table (SuggestionRepository)
- users table (AgentRepository)
- audit_logs table (AuditLogRepository)
"""
from helpdesk.repositories.ticket_repository import TicketRepository
from helpdesk.repositories.suggestion_repository import SuggestionRepository
from helpdesk.repositories.agent_repository import AgentRepository
from helpdesk.repositories.audit_log_repository import AuditLogRepository

__all__ = [
    "TicketRepository",
    "SuggestionRepository",
    "AgentRepository",
    "AuditLogRepository",
]
