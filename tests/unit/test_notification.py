"""Tests for the notification service."""

import json

import httpx
import pytest

from leaveflow.core.exceptions import NotificationError
from leaveflow.services.notification import NotificationService
from leaveflow.services.notification.schemas import NotificationChannel, NotificationStatus
from leaveflow.services.workflow.schemas import NotificationPayload

PAYLOAD = NotificationPayload(
    title="Leave request awaiting your approval",
    message="5 day(s) of ANNUAL leave needs your decision.",
    link="/leaves/LR-1",
)


class TestNotificationService:
    """Tests for NotificationService."""

    def setup_method(self):
        """Set up test fixtures."""
        self.requests = []

    def client(self, status_code=200):
        def handler(request):
            self.requests.append(request)
            return httpx.Response(status_code)

        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    @pytest.mark.asyncio
    async def test_log_only_without_webhook(self):
        """Test notifications are only logged when no webhook is configured."""
        service = NotificationService()

        await service.notify("SUP1", PAYLOAD)

        assert len(service.records) == 1
        assert service.records[0].channel == NotificationChannel.LOG
        assert service.records[0].status == NotificationStatus.SENT

    @pytest.mark.asyncio
    async def test_webhook_delivery(self):
        service = NotificationService("https://hooks.example.org/leave", http_client=self.client())

        await service.notify("SUP1", PAYLOAD)

        assert len(self.requests) == 1
        body = json.loads(self.requests[0].content)
        assert body == {
            "recipient": "SUP1",
            "title": PAYLOAD.title,
            "message": PAYLOAD.message,
            "link": "/leaves/LR-1",
        }
        webhook = service.records[-1]
        assert webhook.channel == NotificationChannel.WEBHOOK
        assert webhook.status == NotificationStatus.SENT
        assert webhook.sent_at is not None

    @pytest.mark.asyncio
    async def test_webhook_failure(self):
        """Test a failing webhook raises and marks the record failed."""
        service = NotificationService(
            "https://hooks.example.org/leave", http_client=self.client(status_code=500)
        )

        with pytest.raises(NotificationError):
            await service.notify("SUP1", PAYLOAD)

        webhook = service.records[-1]
        assert webhook.status == NotificationStatus.FAILED
        assert webhook.error

    @pytest.mark.asyncio
    async def test_history_is_bounded(self):
        service = NotificationService(max_history=2)

        for user in ["A", "B", "C"]:
            await service.notify(user, PAYLOAD)

        assert [r.user_id for r in service.records] == ["B", "C"]
