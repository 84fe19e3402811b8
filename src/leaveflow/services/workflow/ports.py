"""Interfaces the workflow engine depends on."""

from contextlib import AbstractAsyncContextManager
from datetime import date
from typing import Any, Protocol

from leaveflow.services.workflow.schemas import (
    ActingAppointment,
    ApprovalDelegation,
    ApproverRole,
    DelegationStatus,
    EligibilityResult,
    LeaveRequest,
    NotificationPayload,
    StaffOrgProfile,
)


class UnitOfWork(Protocol):
    """Reads and writes inside one atomic transaction.

    ``for_update=True`` locks the loaded record until the transaction ends.
    Every method may raise ``StorageError``.
    """

    async def load_request(
        self, request_id: str, *, for_update: bool = False
    ) -> LeaveRequest | None: ...

    async def save_request(self, request: LeaveRequest) -> None: ...

    async def find_request_by_idempotency_key(self, key: str) -> LeaveRequest | None: ...

    async def list_pending_request_ids(self) -> list[str]: ...

    async def load_org_profile(self, staff_id: str) -> StaffOrgProfile | None: ...

    async def load_display_name(self, user_id: str) -> str | None: ...

    async def load_roles_for(self, staff_id: str) -> set[ApproverRole]: ...

    async def find_role_holders(
        self,
        role: ApproverRole,
        *,
        unit: str | None = None,
        directorate: str | None = None,
    ) -> list[str]: ...

    async def load_active_acting_appointments(
        self, role: ApproverRole, on: date
    ) -> list[ActingAppointment]: ...

    async def load_active_delegations(
        self, person_id: str, on: date
    ) -> list[ApprovalDelegation]: ...

    async def load_delegation(
        self, delegation_id: str, *, for_update: bool = False
    ) -> ApprovalDelegation | None: ...

    async def list_delegations_for(
        self,
        delegator_id: str,
        *,
        status: DelegationStatus | None = None,
        for_update: bool = False,
    ) -> list[ApprovalDelegation]: ...

    async def list_elapsed_delegations(self, on: date) -> list[ApprovalDelegation]: ...

    async def save_delegation(self, delegation: ApprovalDelegation) -> None: ...


class RecordStore(Protocol):
    def transaction(self) -> AbstractAsyncContextManager[UnitOfWork]: ...


class Notifier(Protocol):
    async def notify(self, user_id: str, payload: NotificationPayload) -> None: ...


class Auditor(Protocol):
    async def record(
        self,
        action: str,
        actor_id: str | None,
        subject_id: str,
        details: dict[str, Any] | None = None,
    ) -> None: ...


class ComplianceChecker(Protocol):
    async def is_eligible(
        self, staff_id: str, leave_type: str, day_count: int
    ) -> EligibilityResult: ...
