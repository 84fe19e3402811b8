"""Tests for the delegation service."""

import asyncio
from datetime import timedelta

import pytest

from leaveflow.core.exceptions import (
    ApproverNotAuthorizedError,
    DelegationConflictError,
    DelegationNotFoundError,
    InvalidTransitionError,
    StaffProfileNotFoundError,
    ValidationFailedError,
)
from leaveflow.services.delegation import DelegationCreate, DelegationService
from leaveflow.services.workflow import DelegationStatus

from workflow_support import TODAY, FrozenClock, RecordingAuditor, build_org_store


def window(start_offset=0, days=7, **fields):
    start = TODAY + timedelta(days=start_offset)
    return DelegationCreate(
        delegatee_id=fields.pop("delegatee_id", "DEP1"),
        start_date=start,
        end_date=start + timedelta(days=days),
        **fields,
    )


class TestDelegationService:
    """Tests for DelegationService."""

    def setup_method(self):
        """Set up test fixtures."""
        self.store = build_org_store()
        self.clock = FrozenClock()
        self.auditor = RecordingAuditor()
        self.service = DelegationService(self.store, self.auditor, clock=self.clock)

    @pytest.mark.asyncio
    async def test_create_delegation(self):
        """Test creating a delegation stores and audits it."""
        delegation = await self.service.create_delegation(
            "UH1", window(leave_types=["annual"], notes="Conference week")
        )

        assert delegation.id.startswith("DLG-")
        assert delegation.status == DelegationStatus.ACTIVE
        assert delegation.leave_types == ["ANNUAL"]
        assert delegation.created_at == self.clock.now
        assert self.store.delegations[delegation.id].delegatee_id == "DEP1"
        assert self.auditor.actions() == ["delegation.created"]

    @pytest.mark.asyncio
    async def test_self_delegation(self):
        with pytest.raises(ValidationFailedError) as exc:
            await self.service.create_delegation("UH1", window(delegatee_id="UH1"))
        assert exc.value.code == "SELF_DELEGATION_NOT_ALLOWED"

    @pytest.mark.asyncio
    async def test_invalid_date_range(self):
        data = DelegationCreate(
            delegatee_id="DEP1", start_date=TODAY, end_date=TODAY - timedelta(days=1)
        )

        with pytest.raises(ValidationFailedError) as exc:
            await self.service.create_delegation("UH1", data)
        assert exc.value.code == "INVALID_DATE_RANGE"

    @pytest.mark.asyncio
    async def test_end_date_in_past(self):
        with pytest.raises(ValidationFailedError) as exc:
            await self.service.create_delegation("UH1", window(start_offset=-10, days=3))
        assert exc.value.code == "END_DATE_IN_PAST"

    @pytest.mark.asyncio
    async def test_unknown_delegatee(self):
        with pytest.raises(StaffProfileNotFoundError):
            await self.service.create_delegation("UH1", window(delegatee_id="NOBODY"))

    @pytest.mark.asyncio
    async def test_overlapping_delegation(self):
        """Test a delegator cannot hold two overlapping active delegations."""
        await self.service.create_delegation("UH1", window())

        with pytest.raises(DelegationConflictError):
            await self.service.create_delegation("UH1", window(start_offset=7, delegatee_id="SUP1"))

        # Back-to-back periods do not overlap
        await self.service.create_delegation("UH1", window(start_offset=8, delegatee_id="SUP1"))

    @pytest.mark.asyncio
    async def test_concurrent_overlapping_creations(self):
        """Test only one of two concurrent overlapping creations succeeds."""
        outcomes = await asyncio.gather(
            self.service.create_delegation("UH1", window()),
            self.service.create_delegation("UH1", window(start_offset=2, delegatee_id="SUP1")),
            return_exceptions=True,
        )

        assert sum(isinstance(o, DelegationConflictError) for o in outcomes) == 1
        assert len(self.store.delegations) == 1

    @pytest.mark.asyncio
    async def test_revoke(self):
        delegation = await self.service.create_delegation("UH1", window())

        revoked = await self.service.revoke_delegation(delegation.id, "UH1", "Back early")

        assert revoked.status == DelegationStatus.REVOKED
        assert revoked.revoked_at == self.clock.now
        assert self.auditor.entries[-1][3] == {"reason": "Back early"}

        # A revoked period is free again
        await self.service.create_delegation("UH1", window())

    @pytest.mark.asyncio
    async def test_revoke_checks(self):
        """Test revocation needs an existing active delegation owned by the actor."""
        delegation = await self.service.create_delegation("UH1", window())

        with pytest.raises(DelegationNotFoundError):
            await self.service.revoke_delegation("DLG-MISSING", "UH1")
        with pytest.raises(ApproverNotAuthorizedError) as exc:
            await self.service.revoke_delegation(delegation.id, "DEP1")
        assert exc.value.code == "NOT_DELEGATOR"

        await self.service.revoke_delegation(delegation.id, "UH1")
        with pytest.raises(InvalidTransitionError) as exc:
            await self.service.revoke_delegation(delegation.id, "UH1")
        assert exc.value.code == "DELEGATION_NOT_ACTIVE"

    @pytest.mark.asyncio
    async def test_expire_elapsed(self):
        """Test delegations past their end date are expired once."""
        delegation = await self.service.create_delegation("UH1", window(days=2))
        later = await self.service.create_delegation(
            "HOD1", window(days=30, delegatee_id="UH1")
        )

        assert await self.service.expire_elapsed_delegations() == []

        self.clock.advance(days=3)
        assert await self.service.expire_elapsed_delegations() == [delegation.id]
        assert self.store.delegations[delegation.id].status == DelegationStatus.EXPIRED
        assert self.store.delegations[later.id].status == DelegationStatus.ACTIVE
        assert self.auditor.entries[-1][:2] == ("delegation.expired", "system")

        assert await self.service.expire_elapsed_delegations() == []

    @pytest.mark.asyncio
    async def test_list_delegations(self):
        first = await self.service.create_delegation("UH1", window())
        second = await self.service.create_delegation("UH1", window(start_offset=10))
        await self.service.revoke_delegation(first.id, "UH1")

        assert [d.id for d in await self.service.list_delegations("UH1")] == [first.id, second.id]
        active = await self.service.list_delegations("UH1", DelegationStatus.ACTIVE)
        assert [d.id for d in active] == [second.id]
        assert await self.service.list_delegations("HOD1") == []
