"""Notification service module."""

from leaveflow.services.notification.schemas import (
    NotificationChannel,
    NotificationRecord,
    NotificationStatus,
)
from leaveflow.services.notification.service import NotificationService

__all__ = [
    "NotificationChannel",
    "NotificationRecord",
    "NotificationStatus",
    "NotificationService",
]
