"""Delegation lifecycle management.

A delegation hands one person's approval authority to another for an
inclusive date range, optionally limited to some leave types. A delegator
may hold at most one active delegation covering any given day; the check
runs under a per-delegator lock so concurrent creations cannot both pass.
"""

import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from leaveflow.core.exceptions import (
    ApproverNotAuthorizedError,
    DelegationConflictError,
    DelegationNotFoundError,
    InvalidTransitionError,
    StaffProfileNotFoundError,
    ValidationFailedError,
)
from leaveflow.services.audit.schemas import AuditAction
from leaveflow.services.delegation.schemas import DelegationCreate
from leaveflow.services.workflow.ports import Auditor, RecordStore
from leaveflow.services.workflow.schemas import ApprovalDelegation, DelegationStatus

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DelegationService:
    """Creates, revokes and expires approval delegations."""

    def __init__(
        self,
        store: RecordStore,
        auditor: Auditor,
        *,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._store = store
        self._auditor = auditor
        self._clock = clock

    async def create_delegation(
        self, delegator_id: str, data: DelegationCreate
    ) -> ApprovalDelegation:
        """Create a delegation from ``delegator_id`` to ``data.delegatee_id``.

        Args:
            delegator_id: Person handing over authority
            data: Delegatee, date range and scope

        Returns:
            The stored delegation

        Raises:
            ValidationFailedError: Self-delegation or invalid dates
            StaffProfileNotFoundError: Unknown delegatee
            DelegationConflictError: Overlaps an active delegation
        """
        now = self._clock()
        if data.delegatee_id == delegator_id:
            raise ValidationFailedError(
                f"{delegator_id} attempted to delegate to themselves",
                code="SELF_DELEGATION_NOT_ALLOWED",
                message="You cannot delegate approval authority to yourself.",
            )
        if data.end_date < data.start_date:
            raise ValidationFailedError(
                f"end_date {data.end_date} before start_date {data.start_date}",
                code="INVALID_DATE_RANGE",
                message="The end date cannot be before the start date.",
            )
        if data.end_date < now.date():
            raise ValidationFailedError(
                f"end_date {data.end_date} is in the past",
                code="END_DATE_IN_PAST",
                message="The end date cannot be in the past.",
            )

        async with self._store.transaction() as uow:
            if await uow.load_org_profile(data.delegatee_id) is None:
                raise StaffProfileNotFoundError(f"No org profile for {data.delegatee_id}")

            active = await uow.list_delegations_for(
                delegator_id, status=DelegationStatus.ACTIVE, for_update=True
            )
            for existing in active:
                if existing.overlaps(data.start_date, data.end_date):
                    raise DelegationConflictError(
                        f"{delegator_id} already delegates to {existing.delegatee_id} "
                        f"from {existing.start_date} to {existing.end_date} ({existing.id})"
                    )

            delegation = ApprovalDelegation(
                id=f"DLG-{uuid.uuid4().hex[:12].upper()}",
                delegator_id=delegator_id,
                delegatee_id=data.delegatee_id,
                start_date=data.start_date,
                end_date=data.end_date,
                leave_types=data.leave_types,
                notes=data.notes,
                created_at=now,
            )
            await uow.save_delegation(delegation)

        logger.info(
            f"Delegation {delegation.id} created: {delegator_id} -> {data.delegatee_id}",
            extra={"delegation_id": delegation.id},
        )
        await self._audit(
            AuditAction.DELEGATION_CREATED,
            delegator_id,
            delegation.id,
            delegatee_id=delegation.delegatee_id,
            start_date=delegation.start_date.isoformat(),
            end_date=delegation.end_date.isoformat(),
            leave_types=delegation.leave_types,
        )
        return delegation

    async def revoke_delegation(
        self, delegation_id: str, actor_id: str, reason: str | None = None
    ) -> ApprovalDelegation:
        """Revoke an active delegation. Only the delegator may revoke it."""
        now = self._clock()
        async with self._store.transaction() as uow:
            delegation = await uow.load_delegation(delegation_id, for_update=True)
            if delegation is None:
                raise DelegationNotFoundError(f"Delegation {delegation_id} not found")
            if delegation.delegator_id != actor_id:
                raise ApproverNotAuthorizedError(
                    f"{actor_id} is not the delegator of {delegation_id}",
                    code="NOT_DELEGATOR",
                    message="Only the delegator can revoke this delegation.",
                )
            if delegation.status != DelegationStatus.ACTIVE:
                raise InvalidTransitionError(
                    f"Delegation {delegation_id} is {delegation.status.value}",
                    code="DELEGATION_NOT_ACTIVE",
                    message="Only active delegations can be revoked.",
                )
            delegation.status = DelegationStatus.REVOKED
            delegation.revoked_at = now
            await uow.save_delegation(delegation)

        logger.info(f"Delegation {delegation_id} revoked by {actor_id}")
        await self._audit(AuditAction.DELEGATION_REVOKED, actor_id, delegation_id, reason=reason)
        return delegation

    async def expire_elapsed_delegations(self) -> list[str]:
        """Mark active delegations whose end date has passed as expired.

        Returns:
            IDs of the delegations expired by this call
        """
        today = self._clock().date()
        async with self._store.transaction() as uow:
            candidates = await uow.list_elapsed_delegations(today)

        expired = []
        for candidate in candidates:
            async with self._store.transaction() as uow:
                delegation = await uow.load_delegation(candidate.id, for_update=True)
                if (
                    delegation is None
                    or delegation.status != DelegationStatus.ACTIVE
                    or delegation.end_date >= today
                ):
                    continue
                delegation.status = DelegationStatus.EXPIRED
                await uow.save_delegation(delegation)
            expired.append(delegation.id)
            await self._audit(
                AuditAction.DELEGATION_EXPIRED,
                "system",
                delegation.id,
                end_date=delegation.end_date.isoformat(),
            )

        if expired:
            logger.info(f"Expired {len(expired)} delegations")
        return expired

    async def list_delegations(
        self, delegator_id: str, status: DelegationStatus | None = None
    ) -> list[ApprovalDelegation]:
        async with self._store.transaction() as uow:
            return await uow.list_delegations_for(delegator_id, status=status)

    async def _audit(
        self, action: AuditAction, actor_id: str, subject_id: str, **details: Any
    ) -> None:
        try:
            await self._auditor.record(action, actor_id, subject_id, details)
        except Exception as e:
            logger.warning(f"Audit record {action.value} for {subject_id} failed: {e}")


# Singleton instance
_delegation_service: DelegationService | None = None


def get_delegation_service() -> DelegationService:
    """Get or create the delegation service wired to PostgreSQL."""
    global _delegation_service
    if _delegation_service is None:
        from leaveflow.infrastructure.database.session import AsyncSessionLocal
        from leaveflow.services.audit import DatabaseAuditor
        from leaveflow.services.workflow.sql_store import SqlAlchemyRecordStore

        _delegation_service = DelegationService(
            SqlAlchemyRecordStore(AsyncSessionLocal),
            DatabaseAuditor(AsyncSessionLocal),
        )
    return _delegation_service


def reset_delegation_service() -> None:
    """Reset the delegation service singleton (for testing)."""
    global _delegation_service
    _delegation_service = None
