"""
Ticket Repository

Reads tickets from the `tickets` table and writes back the fields the
auto-resolution workflow is allowed to change.
"""
from typing import Any, Dict, Optional

from helpdesk.models.schemas import Ticket, utcnow
from helpdesk.repositories.base_repository import BaseRepository
from helpdesk.utils.logger import get_logger

logger = get_logger(__name__)

# Columns owned by the workflow; everything else belongs to other services
WRITABLE_FIELDS = {"status", "priority", "assignee_id", "resolution", "resolved_at", "history"}


class TicketRepository(BaseRepository):
    """Repository for tickets table operations."""

    table_name = "tickets"

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------
    def _select_by_id(self, ticket_id: str) -> Optional[Ticket]:
        response = self._table() \
            .select("*") \
            .eq("id", ticket_id) \
            .limit(1) \
            .execute()

        rows = response.data or []
        return Ticket.model_validate(rows[0]) if rows else None

    async def get_by_id(self, ticket_id: str) -> Optional[Ticket]:
        """
        Fetch ticket by ID.

        Returns:
            Ticket or None if not found
        """
        return await self._run(f"get_by_id({ticket_id})", self._select_by_id, ticket_id)

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------
    @staticmethod
    def _serialize(ticket: Ticket) -> Dict[str, Any]:
        payload = ticket.model_dump(mode="json", include=WRITABLE_FIELDS)
        payload["updated_at"] = utcnow().isoformat()
        return payload

    def _update(self, ticket: Ticket) -> Ticket:
        response = self._table() \
            .update(self._serialize(ticket)) \
            .eq("id", ticket.id) \
            .execute()

        if not response.data:
            raise ValueError(f"Ticket {ticket.id} not found")

        logger.debug("Saved ticket %s (status=%s)", ticket.id, ticket.status.value)
        return Ticket.model_validate(response.data[0])

    async def save(self, ticket: Ticket) -> Ticket:
        """Persist workflow-owned fields of a ticket and return the stored row."""
        return await self._run(f"save({ticket.id})", self._update, ticket)
