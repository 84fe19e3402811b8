"""Notification service for approval events."""

import logging
import uuid
from datetime import datetime, timezone

import httpx

from leaveflow.core.exceptions import NotificationError
from leaveflow.services.notification.schemas import (
    NotificationChannel,
    NotificationRecord,
    NotificationStatus,
)
from leaveflow.services.workflow.schemas import NotificationPayload

logger = logging.getLogger(__name__)


class NotificationService:
    """Sends approval notifications.

    Every notification is written to the log. When a webhook URL is
    configured it is also POSTed there as JSON; the receiving system owns the
    actual email/SMS/push transport.
    """

    def __init__(
        self,
        webhook_url: str | None = None,
        *,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
        max_history: int = 1000,
    ):
        self._webhook_url = webhook_url
        self._timeout = timeout
        self._http_client = http_client
        self._records: list[NotificationRecord] = []
        self._max_history = max_history

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
        return self._http_client

    @property
    def records(self) -> list[NotificationRecord]:
        return list(self._records)

    async def notify(self, user_id: str, payload: NotificationPayload) -> None:
        """Deliver a notification to a staff member.

        Raises:
            NotificationError: If the webhook rejects or cannot be reached.
        """
        logger.info(
            f"[NOTIFY] {user_id}: {payload.title} - {payload.message}",
            extra={"recipient": user_id, "link": payload.link},
        )
        self._remember(
            NotificationRecord(
                record_id=f"NTF-{uuid.uuid4().hex[:8].upper()}",
                user_id=user_id,
                title=payload.title,
                channel=NotificationChannel.LOG,
                status=NotificationStatus.SENT,
                sent_at=datetime.now(timezone.utc),
            )
        )

        if not self._webhook_url:
            return

        record = NotificationRecord(
            record_id=f"NTF-{uuid.uuid4().hex[:8].upper()}",
            user_id=user_id,
            title=payload.title,
            channel=NotificationChannel.WEBHOOK,
        )
        self._remember(record)
        try:
            client = await self._get_http_client()
            response = await client.post(
                self._webhook_url,
                json={
                    "recipient": user_id,
                    "title": payload.title,
                    "message": payload.message,
                    "link": payload.link,
                },
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            record.status = NotificationStatus.FAILED
            record.error = str(e)
            logger.error(f"Failed to send notification to {user_id}: {e}")
            raise NotificationError(f"Webhook delivery to {user_id} failed: {e}") from e

        record.status = NotificationStatus.SENT
        record.sent_at = datetime.now(timezone.utc)

    def _remember(self, record: NotificationRecord) -> None:
        self._records.append(record)
        if len(self._records) > self._max_history:
            self._records = self._records[-self._max_history:]

    async def close(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
