"""
Base Repository

Shared Supabase plumbing for the table repositories. The Supabase Python
client is synchronous, so every query runs in a worker thread through
``asyncio.to_thread`` to keep the event loop free while the workflow waits on
storage.
"""

import asyncio
from typing import Any, Callable, TypeVar

from helpdesk.config import get_settings
from helpdesk.utils.logger import get_logger

logger = get_logger(__name__)
settings = get_settings()

T = TypeVar("T")


class BaseRepository:
    """
    Base repository class for a single Supabase table.

    Subclasses set ``table_name`` and implement their queries as synchronous
    helpers, exposing them as coroutines through ``_run``.
    """

    table_name: str = ""

    def __init__(self, supabase_client=None) -> None:
        if supabase_client is None:
            from supabase import create_client  # Lazy import for tests

            self.client = create_client(
                settings.supabase_url,
                settings.supabase_service_role_key or settings.supabase_key
            )
        else:
            self.client = supabase_client

        logger.info("%s initialized for table: %s", type(self).__name__, self.table_name)

    def _table(self):
        return self.client.table(self.table_name)

    async def _run(self, operation: str, func: Callable[..., T], *args: Any) -> T:
        """
        Run a blocking query in a worker thread.

        Args:
            operation: Description used in error logs
            func: Synchronous query helper
            *args: Arguments for ``func``

        Raises:
            Re-raises whatever the query raised, after logging
        """
        try:
            return await asyncio.to_thread(func, *args)
        except Exception as e:
            self._handle_error(operation, e)

    def _handle_error(self, operation: str, error: Exception):
        """
        Centralized error handling for repository operations.

        Args:
            operation: Description of failed operation
            error: Exception that occurred

        Raises:
            Re-raises exception after logging
        """
        logger.error(f"Repository error during {operation} on {self.table_name}: {error}")
        raise
