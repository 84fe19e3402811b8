"""Audit recorders for workflow transitions."""

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from leaveflow.repositories import AuditLogRepository
from leaveflow.services.audit.schemas import AuditEntry

logger = logging.getLogger(__name__)


def _action_name(action: Any) -> str:
    return action.value if hasattr(action, "value") else str(action)


class AuditLogger:
    """Keeps audit entries in memory and mirrors them to the application log."""

    def __init__(self, max_entries: int = 100000):
        self._entries: list[AuditEntry] = []
        self._max_entries = max_entries

    async def record(
        self,
        action: str,
        actor_id: str | None,
        subject_id: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Record an audit event.

        Args:
            action: Action performed
            actor_id: Person or "system"
            subject_id: Request or delegation affected
            details: Additional event details
        """
        entry = AuditEntry(
            entry_id=str(uuid4()),
            timestamp=datetime.now(timezone.utc),
            action=_action_name(action),
            actor_id=actor_id,
            subject_id=subject_id,
            details=details or {},
        )
        self._entries.append(entry)
        if len(self._entries) > self._max_entries:
            self._entries = self._entries[-self._max_entries:]

        logger.info(
            f"[AUDIT] {entry.action}: {subject_id} by {actor_id or 'unknown'}",
            extra={
                "audit_entry_id": entry.entry_id,
                "actor_id": actor_id,
                "subject_id": subject_id,
            },
        )

    def get_entries(
        self, *, subject_id: str | None = None, action: str | None = None
    ) -> list[AuditEntry]:
        """Query recorded entries, oldest first.

        Args:
            subject_id: Filter by subject
            action: Filter by action

        Returns:
            Matching entries
        """
        return [
            e
            for e in self._entries
            if (subject_id is None or e.subject_id == subject_id)
            and (action is None or e.action == _action_name(action))
        ]


class DatabaseAuditor:
    """Writes audit entries to the ``audit_logs`` table in their own transaction."""

    def __init__(self, session_factory: Callable[[], AsyncSession]):
        self._session_factory = session_factory

    async def record(
        self,
        action: str,
        actor_id: str | None,
        subject_id: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        async with self._session_factory() as session:
            repo = AuditLogRepository(session)
            await repo.log_action(
                action=_action_name(action),
                subject_id=subject_id,
                actor_id=actor_id,
                details=details,
            )
            await session.commit()
        logger.debug(f"[AUDIT] {_action_name(action)} persisted for {subject_id}")
