"""
Agent Repository

Selects human agents from the `users` table for ticket assignment.
"""
from typing import List

from helpdesk.models.schemas import Agent
from helpdesk.repositories.base_repository import BaseRepository

AGENT_COLUMNS = "id,first_name,last_name,email,role,workload,is_active"


class AgentRepository(BaseRepository):
    """Read-only access to the agent pool."""

    table_name = "users"

    def _select_available(self, role: str, limit: int) -> List[Agent]:
        response = self._table() \
            .select(AGENT_COLUMNS) \
            .eq("role", role) \
            .eq("is_active", True) \
            .order("workload", desc=False) \
            .limit(limit) \
            .execute()

        return [Agent.model_validate(row) for row in response.data or []]

    async def find_available_agents(self, role: str, limit: int) -> List[Agent]:
        """
        Active agents with the given role, least loaded first.

        Args:
            role: User role to select (e.g. "agent")
            limit: Maximum number of agents to return
        """
        return await self._run(
            f"find_available_agents({role})", self._select_available, role, limit
        )
