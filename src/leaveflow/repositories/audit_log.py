"""Repository for audit log operations."""

from typing import Any

from leaveflow.models.audit import AuditLog
from leaveflow.repositories.base import BaseRepository


class AuditLogRepository(BaseRepository[AuditLog]):
    """Repository for AuditLog database operations."""

    model = AuditLog

    async def log_action(
        self,
        *,
        action: str,
        subject_id: str,
        actor_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> AuditLog:
        """Create audit log entry.

        @param action - Action performed
        @param subject_id - Request or delegation affected
        @param actor_id - Person or "system"
        @param details - Action details
        @returns Created audit log
        """
        return await self.create(
            {
                "action": action,
                "subject_id": subject_id,
                "actor_id": actor_id,
                "details": details,
            }
        )
