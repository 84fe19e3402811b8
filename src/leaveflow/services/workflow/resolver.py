"""Approver resolution: abstract role to the person who acts on it today."""

import logging
from datetime import date

from leaveflow.core.exceptions import ApproverNotFoundError
from leaveflow.services.workflow.org import OrganizationResolver
from leaveflow.services.workflow.ports import UnitOfWork
from leaveflow.services.workflow.schemas import (
    ROLE_RESOLUTION_STRATEGY,
    ApproverRole,
    ResolutionSource,
    ResolutionStrategy,
    ResolvedApprover,
    StaffOrgProfile,
)

logger = logging.getLogger(__name__)


class ApproverResolver:
    """Resolves approver roles to people.

    Resolution order:
    1. An acting appointment to the role that is in force today and scoped
       to the requester's unit or directorate (latest effective date wins).
    2. Otherwise the nominal holder, found by the role's resolution strategy.
    3. Finally a single-hop delegation from whoever was found, if one is in
       force today and covers the leave type.

    The requester is never returned as their own approver.
    """

    def __init__(self, org: OrganizationResolver | None = None):
        self._org = org or OrganizationResolver()

    async def resolve(
        self,
        uow: UnitOfWork,
        role: ApproverRole,
        profile: StaffOrgProfile,
        leave_type: str,
        *,
        on: date,
    ) -> ResolvedApprover:
        """Resolve a role for a request.

        @param uow - Open unit of work used for lookups
        @param role - Role to resolve
        @param profile - Requester's org profile
        @param leave_type - Leave type, used for delegation scope
        @param on - Day the resolution applies to
        @returns ResolvedApprover
        @throws ApproverNotFoundError if nobody can act
        """
        requester = profile.staff_id
        nominal_id = await self._nominal_holder(uow, role, profile)

        user_id = nominal_id
        source = ResolutionSource.NOMINAL
        substituted: str | None = None

        acting = await self._acting_holder(uow, role, profile, on)
        if acting is not None and acting != nominal_id:
            user_id = acting
            source = ResolutionSource.ACTING
            substituted = nominal_id

        if user_id is None:
            logger.warning(
                f"No approver for {role.value} (requester {requester}, unit {profile.unit})",
                extra={"role": role.value, "staff_id": requester},
            )
            raise ApproverNotFoundError(
                f"No holder for role {role.value} for staff {requester}"
            )

        delegatee = await self._delegatee(uow, user_id, requester, leave_type, on)
        if delegatee is not None:
            substituted = user_id
            user_id = delegatee
            source = ResolutionSource.DELEGATION

        display_name = await uow.load_display_name(user_id) or user_id
        logger.debug(f"Resolved {role.value} to {user_id} ({source.value})")
        return ResolvedApprover(
            user_id=user_id,
            display_name=display_name,
            source=source,
            nominal_id=substituted,
        )

    async def _acting_holder(
        self,
        uow: UnitOfWork,
        role: ApproverRole,
        profile: StaffOrgProfile,
        on: date,
    ) -> str | None:
        directorate = self._org.directorate_of(profile)
        appointments = [
            a
            for a in await uow.load_active_acting_appointments(role, on)
            if a.is_active_on(on)
            and a.applies_to(profile.unit, directorate)
            and a.staff_id != profile.staff_id
        ]
        if not appointments:
            return None
        appointments.sort(key=lambda a: a.effective_date, reverse=True)
        return appointments[0].staff_id

    async def _nominal_holder(
        self, uow: UnitOfWork, role: ApproverRole, profile: StaffOrgProfile
    ) -> str | None:
        strategy = ROLE_RESOLUTION_STRATEGY[role]

        if strategy == ResolutionStrategy.DIRECT_SUPERVISOR:
            supervisor = profile.supervisor_id
            return supervisor if supervisor != profile.staff_id else None

        if strategy == ResolutionStrategy.UNIT_SCOPED:
            if not profile.unit:
                return None
            holders = await uow.find_role_holders(role, unit=profile.unit)
        elif strategy == ResolutionStrategy.DIRECTORATE_SCOPED:
            directorate = self._org.directorate_of(profile)
            if not directorate:
                return None
            holders = await uow.find_role_holders(role, directorate=directorate)
        else:
            holders = await uow.find_role_holders(role)

        for holder in holders:
            if holder != profile.staff_id:
                return holder
        return None

    async def _delegatee(
        self,
        uow: UnitOfWork,
        person_id: str,
        requester: str,
        leave_type: str,
        on: date,
    ) -> str | None:
        delegations = [
            d
            for d in await uow.load_active_delegations(person_id, on)
            if d.delegator_id == person_id
            and d.covers(on, leave_type)
            and d.delegatee_id != requester
        ]
        if not delegations:
            return None
        delegations.sort(key=lambda d: d.start_date, reverse=True)
        return delegations[0].delegatee_id
