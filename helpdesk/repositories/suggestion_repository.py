"""
Suggestion Repository

Persists AI processing attempts (`agent_suggestions` table). Records are
never deleted; they are the audit history of every pipeline run.
"""
from typing import Any, Dict, List, Optional

from helpdesk.models.schemas import (
    AgentSuggestion,
    AuditEntry,
    SuggestionStatus,
    utcnow,
)
from helpdesk.repositories.base_repository import BaseRepository
from helpdesk.utils.logger import get_logger

logger = get_logger(__name__)

# Set once at creation
IMMUTABLE_FIELDS = {"id", "ticket_id", "trace_id", "type", "original_data", "created_at"}


class SuggestionRepository(BaseRepository):
    """
    Repository for agent suggestion records.

    Handles:
    - Record creation at pipeline start
    - Full-record updates as the pipeline progresses
    - Audit trail appends (allowed even on terminal records)
    - Per-ticket history and latest-attempt queries
    """

    table_name = "agent_suggestions"

    @staticmethod
    def _deserialize(row: Dict[str, Any]) -> AgentSuggestion:
        return AgentSuggestion.model_validate(row)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------
    def _insert(self, suggestion: AgentSuggestion) -> AgentSuggestion:
        payload = suggestion.model_dump(mode="json")

        response = self._table() \
            .insert(payload) \
            .execute()

        if not response.data:
            raise ValueError("Supabase insert returned no data")

        return self._deserialize(response.data[0])

    async def create(self, suggestion: AgentSuggestion) -> AgentSuggestion:
        """Insert a new suggestion record."""
        created = await self._run("create_suggestion", self._insert, suggestion)
        logger.info(f"Created suggestion {created.id} for ticket {created.ticket_id}")
        return created

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------
    def _update_columns(self, suggestion_id: str, updates: Dict[str, Any]) -> AgentSuggestion:
        response = self._table() \
            .update(updates) \
            .eq("id", suggestion_id) \
            .execute()

        if not response.data:
            raise ValueError(f"Suggestion {suggestion_id} not found")

        return self._deserialize(response.data[0])

    async def update(self, suggestion: AgentSuggestion) -> AgentSuggestion:
        """Write every mutable field of the suggestion."""
        suggestion.updated_at = utcnow()
        updates = suggestion.model_dump(mode="json", exclude=IMMUTABLE_FIELDS)
        return await self._run(
            f"update({suggestion.id})", self._update_columns, suggestion.id, updates
        )

    async def append_audit_entry(
        self,
        suggestion: AgentSuggestion,
        action: str,
        actor: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> AuditEntry:
        """
        Append an audit entry to the record and persist only the trail.

        Returns:
            The appended AuditEntry
        """
        entry = suggestion.add_audit_entry(action, actor, details)
        updates = {
            "audit_trail": [e.model_dump(mode="json") for e in suggestion.audit_trail],
            "updated_at": utcnow().isoformat(),
        }
        await self._run(
            f"append_audit_entry({suggestion.id})", self._update_columns, suggestion.id, updates
        )
        return entry

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------
    def _select_by_id(self, suggestion_id: str) -> Optional[AgentSuggestion]:
        response = self._table() \
            .select("*") \
            .eq("id", suggestion_id) \
            .execute()

        rows = response.data or []
        return self._deserialize(rows[0]) if rows else None

    async def get_by_id(self, suggestion_id: str) -> Optional[AgentSuggestion]:
        return await self._run(f"get_by_id({suggestion_id})", self._select_by_id, suggestion_id)

    def _select_by_ticket(
        self,
        ticket_id: str,
        status: Optional[SuggestionStatus],
        limit: Optional[int]
    ) -> List[AgentSuggestion]:
        query = self._table() \
            .select("*") \
            .eq("ticket_id", ticket_id)

        if status is not None:
            query = query.eq("status", status.value)

        query = query.order("created_at", desc=True)
        if limit is not None:
            query = query.limit(limit)

        response = query.execute()
        return [self._deserialize(row) for row in response.data or []]

    async def get_by_ticket(
        self,
        ticket_id: str,
        status: Optional[SuggestionStatus] = None,
        limit: Optional[int] = None
    ) -> List[AgentSuggestion]:
        """
        Get suggestions for a ticket, newest first.

        Args:
            ticket_id: Ticket identifier
            status: Optional status filter
            limit: Optional maximum number of rows
        """
        return await self._run(
            f"get_by_ticket({ticket_id})", self._select_by_ticket, ticket_id, status, limit
        )

    async def get_latest_for_ticket(self, ticket_id: str) -> Optional[AgentSuggestion]:
        """Most recent suggestion for a ticket, or None."""
        suggestions = await self.get_by_ticket(ticket_id, limit=1)
        return suggestions[0] if suggestions else None
