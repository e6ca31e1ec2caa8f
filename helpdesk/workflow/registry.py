"""
Processing Registry - at most one in-flight pipeline run per ticket
"""
import asyncio
from typing import Awaitable, Callable, Dict, TypeVar

from helpdesk.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class ProcessingRegistry:
    """
    Keyed single-slot guard for concurrent work.

    ``submit`` either starts ``work`` as a task registered under the key, or,
    when a task for that key is already running, joins it. Every caller for a
    key gets the same return value or the same exception. The entry is
    removed in a ``finally`` when the task ends, so a later submit always
    starts fresh work.

    Lookup and insert happen with no ``await`` in between, which makes the
    insert-if-absent atomic on a single event loop. A registry is bound to
    the loop its first task runs on.
    """

    def __init__(self) -> None:
        self._in_flight: Dict[str, asyncio.Task] = {}

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    def is_processing(self, key: str) -> bool:
        return key in self._in_flight

    async def submit(self, key: str, work: Callable[[], Awaitable[T]]) -> T:
        """
        Run ``work`` for ``key`` unless a run is already in flight.

        Args:
            key: Deduplication key (ticket id)
            work: Zero-argument coroutine factory, only called for a new run

        Returns:
            The outcome of the single in-flight run
        """
        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._run(key, work))
            task.add_done_callback(self._consume_result)
            self._in_flight[key] = task
        else:
            logger.warning(f"Ticket {key} is already being processed, joining in-flight run")

        # Shielded so one caller's cancellation leaves the shared run alive
        return await asyncio.shield(task)

    async def _run(self, key: str, work: Callable[[], Awaitable[T]]) -> T:
        try:
            return await work()
        finally:
            if self._in_flight.get(key) is asyncio.current_task():
                del self._in_flight[key]

    @staticmethod
    def _consume_result(task: asyncio.Task) -> None:
        # Marks the exception retrieved when every caller was cancelled
        if not task.cancelled():
            task.exception()

    async def drain(self) -> None:
        """Wait for every in-flight run to settle."""
        tasks = list(self._in_flight.values())
        if tasks:
            logger.info(f"Draining {len(tasks)} in-flight run(s)")
            await asyncio.gather(*tasks, return_exceptions=True)
