"""SQLAlchemy record store backed by the repositories."""

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import date
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from leaveflow.core.exceptions import StorageError
from leaveflow.models.delegation import DelegationRecord
from leaveflow.models.leave import ApprovalStepRecord, LeaveRequestRecord
from leaveflow.repositories import (
    ActingAppointmentRepository,
    DelegationRepository,
    LeaveRequestRepository,
    RoleAssignmentRepository,
    StaffProfileRepository,
)
from leaveflow.services.workflow.schemas import (
    ActingAppointment,
    ApprovalDelegation,
    ApproverRole,
    DelegationStatus,
    LeaveRequest,
    StaffOrgProfile,
)

logger = logging.getLogger(__name__)

_STEP_FIELDS = (
    "approver_role",
    "approver_id",
    "approver_name",
    "status",
    "comments",
    "approval_date",
    "decided_by",
    "auto_approved",
    "resolution_source",
    "original_approver_id",
    "activated_at",
    "escalated",
    "escalated_to",
    "escalated_to_name",
    "escalation_date",
)


def _plain(value: Any) -> Any:
    return value.value if hasattr(value, "value") else value


class SqlAlchemyRecordStore:
    """Record store over PostgreSQL.

    One transaction per ``transaction()`` block. SQLAlchemy failures surface
    as ``StorageError`` so callers can retry.
    """

    def __init__(self, session_factory: Callable[[], AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["SqlAlchemyUnitOfWork"]:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield SqlAlchemyUnitOfWork(session)
        except SQLAlchemyError as e:
            logger.exception("Record store transaction failed")
            raise StorageError(str(e)) from e


class SqlAlchemyUnitOfWork:
    """Unit of work bound to one session and transaction."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.requests = LeaveRequestRepository(session)
        self.profiles = StaffProfileRepository(session)
        self.roles = RoleAssignmentRepository(session)
        self.acting = ActingAppointmentRepository(session)
        self.delegations = DelegationRepository(session)

    # Requests

    async def load_request(
        self, request_id: str, *, for_update: bool = False
    ) -> LeaveRequest | None:
        record = await self.requests.get_with_steps(request_id, for_update=for_update)
        return LeaveRequest.model_validate(record, from_attributes=True) if record else None

    async def save_request(self, request: LeaveRequest) -> None:
        record = await self.requests.get_with_steps(request.id)
        if record is None:
            record = LeaveRequestRecord(id=request.id, created_at=request.created_at, steps=[])
            self.session.add(record)

        data = request.model_dump(exclude={"id", "steps", "created_at"})
        for key, value in data.items():
            setattr(record, key, _plain(value))

        by_level = {s.level: s for s in record.steps}
        for step in request.steps:
            step_record = by_level.get(step.level)
            if step_record is None:
                step_record = ApprovalStepRecord(level=step.level)
                record.steps.append(step_record)
            for field in _STEP_FIELDS:
                setattr(step_record, field, _plain(getattr(step, field)))

        await self.session.flush()

    async def find_request_by_idempotency_key(self, key: str) -> LeaveRequest | None:
        record = await self.requests.get_by_idempotency_key(key)
        return LeaveRequest.model_validate(record, from_attributes=True) if record else None

    async def list_pending_request_ids(self) -> list[str]:
        return list(await self.requests.get_pending_ids())

    # Organisation

    async def load_org_profile(self, staff_id: str) -> StaffOrgProfile | None:
        record = await self.profiles.get_by_id(staff_id)
        return StaffOrgProfile.model_validate(record, from_attributes=True) if record else None

    async def load_display_name(self, user_id: str) -> str | None:
        record = await self.profiles.get_by_id(user_id)
        return record.display_name if record else None

    async def load_roles_for(self, staff_id: str) -> set[ApproverRole]:
        return {ApproverRole(r) for r in await self.roles.get_roles_for(staff_id)}

    async def find_role_holders(
        self,
        role: ApproverRole,
        *,
        unit: str | None = None,
        directorate: str | None = None,
    ) -> list[str]:
        return list(await self.roles.get_holders(role.value, unit=unit, directorate=directorate))

    async def load_active_acting_appointments(
        self, role: ApproverRole, on: date
    ) -> list[ActingAppointment]:
        return [
            ActingAppointment.model_validate(r, from_attributes=True)
            for r in await self.acting.get_active(role.value, on)
        ]

    # Delegations

    async def load_active_delegations(
        self, person_id: str, on: date
    ) -> list[ApprovalDelegation]:
        return [
            ApprovalDelegation.model_validate(r, from_attributes=True)
            for r in await self.delegations.get_active_for(person_id, on)
        ]

    async def load_delegation(
        self, delegation_id: str, *, for_update: bool = False
    ) -> ApprovalDelegation | None:
        record = await self.delegations.get_by_id(delegation_id, for_update=for_update)
        return ApprovalDelegation.model_validate(record, from_attributes=True) if record else None

    async def list_delegations_for(
        self,
        delegator_id: str,
        *,
        status: DelegationStatus | None = None,
        for_update: bool = False,
    ) -> list[ApprovalDelegation]:
        records = await self.delegations.get_for_delegator(
            delegator_id, status=status.value if status else None, lock=for_update
        )
        return [ApprovalDelegation.model_validate(r, from_attributes=True) for r in records]

    async def list_elapsed_delegations(self, on: date) -> list[ApprovalDelegation]:
        return [
            ApprovalDelegation.model_validate(r, from_attributes=True)
            for r in await self.delegations.get_elapsed(on)
        ]

    async def save_delegation(self, delegation: ApprovalDelegation) -> None:
        record = await self.delegations.get_by_id(delegation.id)
        if record is None:
            record = DelegationRecord(id=delegation.id)
            self.session.add(record)
        data = delegation.model_dump(exclude={"id"})
        if data.get("created_at") is None:
            data.pop("created_at", None)
        for key, value in data.items():
            setattr(record, key, _plain(value))
        await self.session.flush()
