"""
Audit Log Repository

Stores the consolidated record of each pipeline run in `audit_logs`.
"""
from typing import Any, Dict

from helpdesk.repositories.base_repository import BaseRepository
from helpdesk.utils.logger import get_logger

logger = get_logger(__name__)


class AuditLogRepository(BaseRepository):
    """Append-only audit sink."""

    table_name = "audit_logs"

    def _insert(self, entry: Dict[str, Any]) -> Dict[str, Any]:
        response = self._table() \
            .insert(entry) \
            .execute()

        if not response.data:
            raise ValueError("Supabase insert returned no data")

        return response.data[0]

    async def record(self, entry: Dict[str, Any]) -> Dict[str, Any]:
        """Insert one audit record (JSON-serializable dict)."""
        row = await self._run("record_audit", self._insert, entry)
        logger.debug("Audit record stored for trace %s", entry.get("trace_id"))
        return row
