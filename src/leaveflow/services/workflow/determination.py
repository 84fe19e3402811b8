"""Workflow determination: which approval levels a leave request needs."""

import logging
from collections.abc import Iterable

from leaveflow.services.workflow.clearance import ExternalClearanceGate
from leaveflow.services.workflow.org import OrganizationResolver
from leaveflow.services.workflow.schemas import (
    ApprovalLevelSpec,
    ApproverRole,
    StaffOrgProfile,
    WorkflowPlan,
)

logger = logging.getLogger(__name__)


class WorkflowDeterminer:
    """Builds the ordered approval chain for a staff member.

    Walks upward through the tiers that exist for the staff member:
    supervisor, unit head, directorate head, HR validation and the final
    authority. Tiers whose organisation data is missing are left out and
    reported in ``WorkflowPlan.omitted_tiers``. Roles the applicant holds are
    skipped so nobody approves their own leave, except the HR validation
    level of clearance leave, which another holder of the role takes.
    """

    def __init__(
        self,
        org: OrganizationResolver,
        clearance_gate: ExternalClearanceGate,
        *,
        hr_exempt_grades: Iterable[str] = (),
        hr_exempt_day_threshold: int = 0,
    ):
        self._org = org
        self._clearance_gate = clearance_gate
        self._hr_exempt_grades = {g.upper() for g in hr_exempt_grades}
        self._hr_exempt_day_threshold = hr_exempt_day_threshold

    def determine(
        self,
        profile: StaffOrgProfile,
        leave_type: str,
        day_count: int,
        applicant_roles: Iterable[ApproverRole] = (),
    ) -> WorkflowPlan:
        """Determine the approval levels for a request.

        @param profile - Requesting staff member's org profile
        @param leave_type - Leave type
        @param day_count - Working days requested
        @param applicant_roles - Roles held by the requester
        @returns WorkflowPlan with contiguous levels from 1
        """
        held = set(applicant_roles)
        requires_clearance = self._clearance_gate.requires_clearance(leave_type)
        omitted: list[str] = []
        roles: list[ApproverRole] = []

        if self._org.supervisor_of(profile) is None:
            # Top of the hierarchy
            if requires_clearance:
                roles.append(ApproverRole.HR_OFFICER)
        else:
            roles.append(ApproverRole.SUPERVISOR)
            roles.extend(self._unit_tier(profile, omitted))
            roles.extend(self._directorate_tier(profile, omitted))
            if self._needs_hr_validation(profile, day_count, requires_clearance):
                roles.append(ApproverRole.HR_OFFICER)

        roles.append(
            ApproverRole.HR_DIRECTOR
            if ApproverRole.CHIEF_DIRECTOR in held
            else ApproverRole.CHIEF_DIRECTOR
        )

        mandatory = {ApproverRole.HR_OFFICER} if requires_clearance else set()
        chain: list[ApproverRole] = []
        final = len(roles) - 1
        for i, role in enumerate(roles):
            if role in chain:
                continue
            if role in held and role not in mandatory and i != final:
                logger.debug(f"Skipping {role.value} for {profile.staff_id}: applicant holds role")
                continue
            chain.append(role)

        if omitted:
            logger.warning(
                f"Workflow for {profile.staff_id} omits tiers with missing org data: "
                f"{', '.join(omitted)}",
                extra={"staff_id": profile.staff_id, "omitted_tiers": omitted},
            )

        return WorkflowPlan(
            levels=[
                ApprovalLevelSpec(level=i, approver_role=role)
                for i, role in enumerate(chain, start=1)
            ],
            requires_external_clearance=requires_clearance,
            omitted_tiers=omitted,
        )

    def _unit_tier(self, profile: StaffOrgProfile, omitted: list[str]) -> list[ApproverRole]:
        if not profile.unit:
            omitted.append("unit")
            return []
        if self._org.is_audit_unit(profile):
            return [ApproverRole.AUDITOR]
        if self._org.is_independent_unit(profile):
            return [ApproverRole.HEAD_OF_INDEPENDENT_UNIT]
        return [ApproverRole.UNIT_HEAD]

    def _directorate_tier(
        self, profile: StaffOrgProfile, omitted: list[str]
    ) -> list[ApproverRole]:
        if self._org.is_hr_unit(profile):
            return [ApproverRole.HR_DIRECTOR]
        if self._org.reports_to_top(profile):
            return []
        if not self._org.directorate_of(profile):
            omitted.append("directorate")
            return []
        return [ApproverRole.HEAD_OF_DEPARTMENT]

    def _needs_hr_validation(
        self, profile: StaffOrgProfile, day_count: int, requires_clearance: bool
    ) -> bool:
        if self._org.is_hr_unit(profile):
            # HR_DIRECTOR already validates for HR-unit staff
            return False
        if requires_clearance:
            return True
        exempt = (
            profile.grade is not None
            and profile.grade.upper() in self._hr_exempt_grades
            and day_count <= self._hr_exempt_day_threshold
        )
        return not exempt
