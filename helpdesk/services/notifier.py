"""
Customer notification via webhook

Delivery is fire-and-forget: ``notify`` schedules the POST on the running
loop and returns. Failed deliveries are logged, never raised to the caller.
"""
import asyncio
from typing import Optional, Set

import httpx

from helpdesk.config import get_settings
from helpdesk.utils.logger import get_logger

logger = get_logger(__name__)


class CustomerNotifier:
    """Posts resolution notices to the configured webhook"""

    def __init__(self, webhook_url: Optional[str] = None, timeout: Optional[float] = None):
        settings = get_settings()
        self.webhook_url = webhook_url if webhook_url is not None else settings.notification_webhook_url
        self.timeout = timeout or settings.notification_timeout
        self._pending: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def notify(self, ticket_id: str, content: str) -> None:
        if not self.webhook_url:
            logger.info(f"Notification for ticket {ticket_id} (no webhook configured): {content[:80]}")
            return

        task = asyncio.get_running_loop().create_task(self._deliver(ticket_id, content))
        self._pending.add(task)
        task.add_done_callback(self._on_done)

    async def _deliver(self, ticket_id: str, content: str) -> None:
        payload = {"ticket_id": ticket_id, "type": "ticket_resolved", "content": content}
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(self.webhook_url, json=payload)
            response.raise_for_status()
        logger.info(f"Customer notified for ticket {ticket_id}")

    def _on_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Customer notification failed: {error}")

    async def wait_pending(self) -> None:
        """Wait for scheduled deliveries to finish"""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
