"""
Unit tests for CustomerNotifier
"""
import pytest
from unittest.mock import AsyncMock, MagicMock, patch
import httpx

from helpdesk.services.notifier import CustomerNotifier


class TestCustomerNotifier:

    @pytest.mark.asyncio
    async def test_posts_to_webhook_in_background(self):
        notifier = CustomerNotifier(webhook_url="http://hooks.test/notify")
        response = MagicMock()
        response.raise_for_status = MagicMock()

        with patch("httpx.AsyncClient") as mock_client:
            post = AsyncMock(return_value=response)
            mock_client.return_value.__aenter__.return_value.post = post

            assert notifier.notify("T1", "Your ticket is resolved") is None
            await notifier.wait_pending()

        post.assert_awaited_once()
        assert post.call_args.kwargs["json"] == {
            "ticket_id": "T1",
            "type": "ticket_resolved",
            "content": "Your ticket is resolved",
        }
        assert notifier.pending == 0

    @pytest.mark.asyncio
    async def test_delivery_failure_is_logged_not_raised(self):
        notifier = CustomerNotifier(webhook_url="http://hooks.test/notify")

        with patch("httpx.AsyncClient") as mock_client, \
                patch("helpdesk.services.notifier.logger") as mock_logger:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(
                side_effect=httpx.ConnectError("refused")
            )

            notifier.notify("T1", "Resolved")
            await notifier.wait_pending()

        mock_logger.error.assert_called_once()
        assert notifier.pending == 0

    def test_without_webhook_only_logs(self):
        notifier = CustomerNotifier(webhook_url="")

        with patch("httpx.AsyncClient") as mock_client:
            notifier.notify("T1", "Resolved")

        mock_client.assert_not_called()
        assert notifier.pending == 0
