"""Notification schemas."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class NotificationChannel(str, Enum):
    """Delivery channels."""

    LOG = "LOG"
    WEBHOOK = "WEBHOOK"


class NotificationStatus(str, Enum):
    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"


class NotificationRecord(BaseModel):
    """Record of a notification delivery attempt."""

    record_id: str = Field(..., description="Record ID")
    user_id: str = Field(..., description="Recipient staff ID")
    title: str = Field(..., description="Notification title")
    channel: NotificationChannel = Field(..., description="Delivery channel")
    status: NotificationStatus = Field(default=NotificationStatus.PENDING)
    sent_at: datetime | None = Field(None, description="Delivery timestamp")
    error: str | None = Field(None, description="Failure reason")
