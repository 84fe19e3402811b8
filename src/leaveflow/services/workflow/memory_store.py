"""In-memory record store for development and tests.

Each transaction works on deep copies and publishes its writes only when
it exits cleanly. ``for_update`` loads take a per-record ``asyncio.Lock``
held until the transaction ends, which gives the same serialisation as a
row lock in the database.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date

from leaveflow.core.exceptions import StorageError
from leaveflow.services.workflow.schemas import (
    ActingAppointment,
    ApprovalDelegation,
    ApproverRole,
    DelegationStatus,
    LeaveRequest,
    LeaveStatus,
    StaffOrgProfile,
)


class InMemoryRecordStore:
    """Record store kept in process memory."""

    def __init__(self) -> None:
        self.requests: dict[str, LeaveRequest] = {}
        self.profiles: dict[str, StaffOrgProfile] = {}
        self.role_assignments: list[tuple[str, ApproverRole, str | None, str | None]] = []
        self.acting_appointments: list[ActingAppointment] = []
        self.delegations: dict[str, ApprovalDelegation] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    # Seeding helpers

    def add_profile(self, profile: StaffOrgProfile) -> None:
        self.profiles[profile.staff_id] = profile

    def assign_role(
        self,
        staff_id: str,
        role: ApproverRole,
        *,
        unit: str | None = None,
        directorate: str | None = None,
    ) -> None:
        self.role_assignments.append((staff_id, role, unit, directorate))

    def add_acting_appointment(self, appointment: ActingAppointment) -> None:
        self.acting_appointments.append(appointment)

    def add_delegation(self, delegation: ApprovalDelegation) -> None:
        self.delegations[delegation.id] = delegation

    async def _acquire_lock(self, key: str) -> None:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            await lock.acquire()
        except BaseException:
            self._drop_lock_user(key)
            raise

    def _release_lock(self, key: str) -> None:
        self._locks[key].release()
        self._drop_lock_user(key)

    def _drop_lock_user(self, key: str) -> None:
        # The lock is discarded once nobody holds or waits on it
        self._lock_users[key] -= 1
        if not self._lock_users[key]:
            del self._lock_users[key]
            del self._locks[key]

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["InMemoryUnitOfWork"]:
        uow = InMemoryUnitOfWork(self)
        try:
            yield uow
            uow.commit()
        finally:
            uow.release()


class InMemoryUnitOfWork:
    """Unit of work over an ``InMemoryRecordStore``."""

    def __init__(self, store: InMemoryRecordStore):
        self._store = store
        self._held: list[str] = []
        self._requests: dict[str, LeaveRequest] = {}
        self._delegations: dict[str, ApprovalDelegation] = {}

    async def _acquire(self, key: str) -> None:
        if key in self._held:
            return
        await self._store._acquire_lock(key)
        self._held.append(key)

    def release(self) -> None:
        while self._held:
            self._store._release_lock(self._held.pop())

    def commit(self) -> None:
        for request in self._requests.values():
            key = request.idempotency_key
            if key and any(
                other.idempotency_key == key and other.id != request.id
                for other in self._store.requests.values()
            ):
                raise StorageError(f"Duplicate idempotency key {key}")
        for request in self._requests.values():
            self._store.requests[request.id] = request.model_copy(deep=True)
        for delegation in self._delegations.values():
            self._store.delegations[delegation.id] = delegation.model_copy(deep=True)

    # Requests

    async def load_request(
        self, request_id: str, *, for_update: bool = False
    ) -> LeaveRequest | None:
        if for_update:
            await self._acquire(f"request:{request_id}")
        request = self._requests.get(request_id) or self._store.requests.get(request_id)
        return request.model_copy(deep=True) if request else None

    async def save_request(self, request: LeaveRequest) -> None:
        self._requests[request.id] = request.model_copy(deep=True)

    async def find_request_by_idempotency_key(self, key: str) -> LeaveRequest | None:
        for request in self._store.requests.values():
            if request.idempotency_key == key:
                return request.model_copy(deep=True)
        return None

    async def list_pending_request_ids(self) -> list[str]:
        return [
            r.id
            for r in sorted(self._store.requests.values(), key=lambda r: r.created_at)
            if r.status == LeaveStatus.PENDING
        ]

    # Organisation

    async def load_org_profile(self, staff_id: str) -> StaffOrgProfile | None:
        return self._store.profiles.get(staff_id)

    async def load_display_name(self, user_id: str) -> str | None:
        profile = self._store.profiles.get(user_id)
        return profile.display_name if profile else None

    async def load_roles_for(self, staff_id: str) -> set[ApproverRole]:
        return {role for sid, role, _, _ in self._store.role_assignments if sid == staff_id}

    async def find_role_holders(
        self,
        role: ApproverRole,
        *,
        unit: str | None = None,
        directorate: str | None = None,
    ) -> list[str]:
        holders = []
        for staff_id, held_role, held_unit, held_directorate in self._store.role_assignments:
            if held_role != role:
                continue
            if unit is not None and held_unit != unit:
                continue
            if directorate is not None and held_directorate != directorate:
                continue
            profile = self._store.profiles.get(staff_id)
            if profile is not None and not profile.active:
                continue
            holders.append(staff_id)
        return holders

    async def load_active_acting_appointments(
        self, role: ApproverRole, on: date
    ) -> list[ActingAppointment]:
        return [
            a for a in self._store.acting_appointments if a.role == role and a.is_active_on(on)
        ]

    # Delegations

    def _all_delegations(self) -> list[ApprovalDelegation]:
        merged = {**self._store.delegations, **self._delegations}
        return list(merged.values())

    async def load_active_delegations(
        self, person_id: str, on: date
    ) -> list[ApprovalDelegation]:
        return [
            d.model_copy(deep=True)
            for d in self._all_delegations()
            if d.delegator_id == person_id and d.covers(on)
        ]

    async def load_delegation(
        self, delegation_id: str, *, for_update: bool = False
    ) -> ApprovalDelegation | None:
        if for_update:
            await self._acquire(f"delegation:{delegation_id}")
        delegation = self._delegations.get(delegation_id) or self._store.delegations.get(
            delegation_id
        )
        return delegation.model_copy(deep=True) if delegation else None

    async def list_delegations_for(
        self,
        delegator_id: str,
        *,
        status: DelegationStatus | None = None,
        for_update: bool = False,
    ) -> list[ApprovalDelegation]:
        if for_update:
            await self._acquire(f"delegator:{delegator_id}")
        return [
            d.model_copy(deep=True)
            for d in sorted(self._all_delegations(), key=lambda d: d.start_date)
            if d.delegator_id == delegator_id and (status is None or d.status == status)
        ]

    async def list_elapsed_delegations(self, on: date) -> list[ApprovalDelegation]:
        return [
            d.model_copy(deep=True)
            for d in self._all_delegations()
            if d.status == DelegationStatus.ACTIVE and d.end_date < on
        ]

    async def save_delegation(self, delegation: ApprovalDelegation) -> None:
        self._delegations[delegation.id] = delegation.model_copy(deep=True)
