"""Leave workflow schemas."""

import json
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from leaveflow.core.exceptions import ErrorResponse


class ApproverRole(str, Enum):
    """Approver roles that can appear in a leave workflow."""

    SUPERVISOR = "SUPERVISOR"
    UNIT_HEAD = "UNIT_HEAD"
    HEAD_OF_INDEPENDENT_UNIT = "HEAD_OF_INDEPENDENT_UNIT"
    AUDITOR = "AUDITOR"  # Head of the internal audit unit
    HEAD_OF_DEPARTMENT = "HEAD_OF_DEPARTMENT"  # Directorate head
    HR_OFFICER = "HR_OFFICER"
    HR_DIRECTOR = "HR_DIRECTOR"
    CHIEF_DIRECTOR = "CHIEF_DIRECTOR"  # Final authority


class ResolutionStrategy(str, Enum):
    """How the nominal holder of a role is found."""

    DIRECT_SUPERVISOR = "DIRECT_SUPERVISOR"
    UNIT_SCOPED = "UNIT_SCOPED"
    DIRECTORATE_SCOPED = "DIRECTORATE_SCOPED"
    ORGANIZATION_WIDE = "ORGANIZATION_WIDE"


ROLE_RESOLUTION_STRATEGY: dict[ApproverRole, ResolutionStrategy] = {
    ApproverRole.SUPERVISOR: ResolutionStrategy.DIRECT_SUPERVISOR,
    ApproverRole.UNIT_HEAD: ResolutionStrategy.UNIT_SCOPED,
    ApproverRole.HEAD_OF_INDEPENDENT_UNIT: ResolutionStrategy.UNIT_SCOPED,
    ApproverRole.AUDITOR: ResolutionStrategy.UNIT_SCOPED,
    ApproverRole.HEAD_OF_DEPARTMENT: ResolutionStrategy.DIRECTORATE_SCOPED,
    ApproverRole.HR_OFFICER: ResolutionStrategy.ORGANIZATION_WIDE,
    ApproverRole.HR_DIRECTOR: ResolutionStrategy.ORGANIZATION_WIDE,
    ApproverRole.CHIEF_DIRECTOR: ResolutionStrategy.ORGANIZATION_WIDE,
}

HR_VALIDATION_ROLES = frozenset({ApproverRole.HR_OFFICER, ApproverRole.HR_DIRECTOR})


class StepStatus(str, Enum):
    """Status of a single approval step."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class LeaveStatus(str, Enum):
    """Overall leave request status, derived from its steps."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class ExternalClearanceStatus(str, Enum):
    PENDING = "PENDING"
    CLEARED = "CLEARED"
    REJECTED = "REJECTED"


class Decision(str, Enum):
    """Decision an approver records on a step."""

    APPROVE = "APPROVE"
    REJECT = "REJECT"


class OverrideAction(str, Enum):
    """Administrative override actions."""

    APPROVE = "APPROVE"
    REJECT = "REJECT"
    REVERSE = "REVERSE"  # Cancels the request


class ResolutionSource(str, Enum):
    """Where a resolved approver came from."""

    NOMINAL = "NOMINAL"
    ACTING = "ACTING"
    DELEGATION = "DELEGATION"
    ESCALATION = "ESCALATION"


class DelegationStatus(str, Enum):
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    REVOKED = "REVOKED"


def normalize_leave_type(value: str) -> str:
    """Normalise leave type labels, e.g. ``"Study with pay"`` -> ``"STUDY_WITH_PAY"``."""
    return "_".join(value.strip().replace("-", " ").split()).upper()


# =============================================================================
# Organisation read models
# =============================================================================


class StaffOrgProfile(BaseModel):
    """Position attributes of a staff member."""

    staff_id: str = Field(..., description="Staff ID")
    display_name: str | None = Field(None, description="Display name")
    duty_station: str | None = Field(None, description="Duty station")
    directorate: str | None = Field(None, description="Directorate")
    division: str | None = Field(None, description="Division")
    unit: str | None = Field(None, description="Unit")
    grade: str | None = Field(None, description="Grade")
    position: str | None = Field(None, description="Position title")
    manager_id: str | None = Field(None, description="Line manager staff ID")
    immediate_supervisor_id: str | None = Field(
        None, description="Immediate supervisor staff ID"
    )
    active: bool = Field(default=True, description="Whether the staff member is active")

    @property
    def supervisor_id(self) -> str | None:
        return self.immediate_supervisor_id or self.manager_id


class ActingAppointment(BaseModel):
    """Temporary appointment of a staff member to a role."""

    id: str = Field(..., description="Appointment ID")
    role: ApproverRole = Field(..., description="Role being acted in")
    staff_id: str = Field(..., description="Acting staff member")
    effective_date: date = Field(..., description="First day of the appointment")
    end_date: date | None = Field(None, description="Last day, open-ended if empty")
    authority_source: str | None = Field(None, description="Appointing authority")
    unit: str | None = Field(None, description="Unit scope, any unit if empty")
    directorate: str | None = Field(
        None, description="Directorate scope, any directorate if empty"
    )

    def is_active_on(self, day: date) -> bool:
        return self.effective_date <= day and (self.end_date is None or day <= self.end_date)

    def applies_to(self, unit: str | None, directorate: str | None) -> bool:
        """Whether the appointment covers a requester in this unit and directorate."""
        if self.unit is not None and self.unit != unit:
            return False
        if self.directorate is not None and self.directorate != directorate:
            return False
        return True


class ApprovalDelegation(BaseModel):
    """Temporary hand-over of approval authority from one person to another."""

    id: str = Field(..., description="Delegation ID")
    delegator_id: str = Field(..., description="Person handing over authority")
    delegatee_id: str = Field(..., description="Person receiving authority")
    start_date: date = Field(..., description="First day of the delegation")
    end_date: date = Field(..., description="Last day of the delegation")
    leave_types: list[str] = Field(
        default_factory=list, description="Leave types in scope, all if empty"
    )
    status: DelegationStatus = Field(default=DelegationStatus.ACTIVE)
    notes: str | None = Field(None, max_length=1000, description="Notes")
    created_at: datetime | None = Field(None, description="Created timestamp")
    revoked_at: datetime | None = Field(None, description="Revocation timestamp")

    @field_validator("leave_types")
    @classmethod
    def _normalize_leave_types(cls, value: list[str]) -> list[str]:
        return [normalize_leave_type(v) for v in value]

    @model_validator(mode="after")
    def _check_parties_and_dates(self) -> "ApprovalDelegation":
        if self.delegator_id == self.delegatee_id:
            raise ValueError("delegatee must differ from delegator")
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

    def covers(self, day: date, leave_type: str | None = None) -> bool:
        """Whether this delegation is in force on ``day`` for ``leave_type``."""
        if self.status != DelegationStatus.ACTIVE:
            return False
        if not (self.start_date <= day <= self.end_date):
            return False
        if self.leave_types and leave_type is not None:
            return normalize_leave_type(leave_type) in self.leave_types
        return True

    def overlaps(self, start_date: date, end_date: date) -> bool:
        return self.start_date <= end_date and start_date <= self.end_date


# =============================================================================
# Unit routing
# =============================================================================


class UnitRouting(BaseModel):
    """Routing rule for a single organisational unit."""

    unit: str = Field(..., description="Unit name")
    directorate: str | None = Field(
        None, description="Parent directorate, empty for independent units"
    )
    reports_to_chief_director: bool = Field(
        default=False, description="Unit head reports directly to the final authority"
    )
    independent: bool = Field(default=False, description="Unit is outside any directorate")
    special_workflow: Literal["HRMD", "AUDIT"] | None = Field(
        None, description="Special routing for the HR-managing or audit unit"
    )


class OrgRoutingConfig(BaseModel):
    """Unit routing table injected into workflow determination."""

    units: dict[str, UnitRouting] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _accept_unit_list(cls, data):
        # Allow {"units": [{...}, ...]} as well as a mapping keyed by unit name
        if isinstance(data, dict) and isinstance(data.get("units"), list):
            data = {**data, "units": {u["unit"]: u for u in data["units"]}}
        return data

    @classmethod
    def from_file(cls, path: str | Path) -> "OrgRoutingConfig":
        return cls.model_validate(json.loads(Path(path).read_text(encoding="utf-8")))

    def get(self, unit: str | None) -> UnitRouting | None:
        if unit is None:
            return None
        return self.units.get(unit)


class EscalationPolicy(BaseModel):
    """When a pending step escalates and what happens then."""

    threshold_hours: float | None = Field(
        None, gt=0, description="Elapsed hours before the step escalates"
    )
    threshold_working_days: int | None = Field(
        None, ge=1, description="Elapsed working days (Mon-Fri) before escalation"
    )
    auto_approve: bool = Field(
        default=False, description="Approve the step instead of escalating it"
    )
    escalate_to_role: ApproverRole | None = Field(None, description="Escalation role")
    escalate_to_user_id: str | None = Field(None, description="Escalation person")

    @model_validator(mode="after")
    def _check_threshold(self) -> "EscalationPolicy":
        if (self.threshold_hours is None) == (self.threshold_working_days is None):
            raise ValueError("set exactly one of threshold_hours or threshold_working_days")
        return self


# =============================================================================
# Requests and steps
# =============================================================================


class ApprovalLevelSpec(BaseModel):
    """One required level of a determined workflow."""

    level: int = Field(..., ge=1, description="1-based level")
    approver_role: ApproverRole = Field(..., description="Role that approves this level")


class WorkflowPlan(BaseModel):
    """Result of workflow determination."""

    levels: list[ApprovalLevelSpec] = Field(..., min_length=1)
    requires_external_clearance: bool = Field(default=False)
    omitted_tiers: list[str] = Field(
        default_factory=list, description="Tiers left out because org data was missing"
    )


class ResolvedApprover(BaseModel):
    """Concrete person resolved for a role."""

    user_id: str
    display_name: str
    source: ResolutionSource = ResolutionSource.NOMINAL
    nominal_id: str | None = Field(
        None, description="Person substituted by an acting appointment or delegation"
    )


class ApprovalStep(BaseModel):
    """A single level of a leave request's approval chain."""

    level: int = Field(..., ge=1, description="1-based level")
    approver_role: ApproverRole = Field(..., description="Role for this level")
    approver_id: str = Field(..., description="Resolved approver staff ID")
    approver_name: str | None = Field(None, description="Resolved approver name")
    status: StepStatus = Field(default=StepStatus.PENDING)
    comments: str | None = Field(None, description="Approver comments")
    approval_date: datetime | None = Field(None, description="Decision timestamp")
    decided_by: str | None = Field(None, description="Who recorded the decision")
    auto_approved: bool = Field(default=False)

    # Resolution
    resolution_source: ResolutionSource = Field(default=ResolutionSource.NOMINAL)
    original_approver_id: str | None = Field(
        None, description="Nominal holder when the approver is a substitute"
    )
    activated_at: datetime | None = Field(
        None, description="When this step became the current step"
    )

    # Escalation
    escalated: bool = Field(default=False)
    escalated_to: str | None = Field(None, description="Escalation target staff ID")
    escalated_to_name: str | None = Field(None, description="Escalation target name")
    escalation_date: datetime | None = Field(None, description="Escalation timestamp")

    @property
    def is_pending(self) -> bool:
        return self.status == StepStatus.PENDING

    def can_be_decided_by(self, actor_id: str) -> bool:
        return actor_id == self.approver_id or (
            self.escalated_to is not None and actor_id == self.escalated_to
        )


class LeaveRequest(BaseModel):
    """A leave request and its approval chain."""

    id: str = Field(..., description="Request ID")
    staff_id: str = Field(..., description="Requesting staff ID")
    leave_type: str = Field(..., description="Leave type")
    start_date: date = Field(..., description="First day of leave")
    end_date: date = Field(..., description="Last day of leave")
    day_count: int = Field(..., ge=1, description="Working days requested")
    reason: str | None = Field(None, description="Reason given by the requester")

    # Status
    status: LeaveStatus = Field(default=LeaveStatus.PENDING)
    steps: list[ApprovalStep] = Field(..., min_length=1)
    hr_validated: bool | None = Field(None, description="Outcome of HR validation")

    # Resubmission
    resubmitted_from_id: str | None = Field(None, description="Rejected predecessor")
    resubmission_count: int = Field(default=0, ge=0)

    # External clearance
    requires_external_clearance: bool = Field(default=False)
    external_clearance_status: ExternalClearanceStatus | None = Field(None)
    psc_reference: str | None = Field(None, description="Public Services Commission ref")
    ohcs_reference: str | None = Field(None, description="Head of Civil Service ref")
    external_clearance_date: datetime | None = Field(None)

    # Bookkeeping
    idempotency_key: str | None = Field(None, max_length=100)
    override_reason: str | None = Field(None)
    created_at: datetime = Field(..., description="Created timestamp")
    updated_at: datetime = Field(..., description="Updated timestamp")
    resolved_at: datetime | None = Field(None, description="Resolution timestamp")

    @field_validator("leave_type")
    @classmethod
    def _normalize_leave_type(cls, value: str) -> str:
        return normalize_leave_type(value)

    @model_validator(mode="after")
    def _check_levels(self) -> "LeaveRequest":
        self.steps.sort(key=lambda s: s.level)
        levels = [s.level for s in self.steps]
        if levels != list(range(1, len(levels) + 1)):
            raise ValueError(f"approval levels must be contiguous from 1, got {levels}")
        return self

    def get_step(self, level: int) -> ApprovalStep | None:
        if 1 <= level <= len(self.steps):
            return self.steps[level - 1]
        return None

    @property
    def current_step(self) -> ApprovalStep | None:
        """The lowest pending step, if the request is still in progress."""
        if self.status != LeaveStatus.PENDING:
            return None
        for step in self.steps:
            if step.status == StepStatus.REJECTED:
                return None
            if step.is_pending:
                return step
        return None

    @property
    def is_closed(self) -> bool:
        return self.status != LeaveStatus.PENDING


# =============================================================================
# Operation inputs and results
# =============================================================================


class LeaveSubmission(BaseModel):
    """Submit a new leave request."""

    staff_id: str = Field(..., min_length=1, description="Requesting staff ID")
    leave_type: str = Field(..., min_length=1, description="Leave type")
    start_date: date = Field(..., description="First day of leave")
    end_date: date = Field(..., description="Last day of leave")
    day_count: int = Field(..., ge=1, description="Working days requested")
    reason: str | None = Field(None, max_length=2000, description="Reason")
    idempotency_key: str | None = Field(
        None, max_length=100, description="Client key making submission retry-safe"
    )

    @field_validator("leave_type")
    @classmethod
    def _normalize_leave_type(cls, value: str) -> str:
        return normalize_leave_type(value)

    @model_validator(mode="after")
    def _check_dates(self) -> "LeaveSubmission":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class SubmissionResult(BaseModel):
    request_id: str
    first_approver_id: str
    status: LeaveStatus
    requires_external_clearance: bool
    level_count: int


class DecisionRequest(BaseModel):
    """Approve or reject a step."""

    decision: Decision = Field(..., description="Decision")
    comments: str | None = Field(None, max_length=2000, description="Comments")


class DecisionResult(BaseModel):
    request_id: str
    level: int
    decision: Decision
    status: LeaveStatus
    next_approver_id: str | None = None
    awaiting_external_clearance: bool = False
    notice: ErrorResponse | None = Field(
        None, description="Informational notice, set while awaiting external clearance"
    )


class EscalationRequest(BaseModel):
    """Manual escalation of a pending step."""

    target_user_id: str | None = Field(None, description="Explicit escalation target")
    target_role: ApproverRole | None = Field(None, description="Role to escalate to")


class ExternalClearanceUpdate(BaseModel):
    status: ExternalClearanceStatus = Field(..., description="New clearance status")
    psc_reference: str | None = Field(None, max_length=100)
    ohcs_reference: str | None = Field(None, max_length=100)


class OverrideRequest(BaseModel):
    """Administrative override."""

    action: OverrideAction = Field(..., description="Override action")
    level: int | None = Field(None, ge=1, description="Step to force, all if empty")
    reason: str = Field(..., min_length=1, max_length=2000, description="Reason")


class ResubmissionResult(BaseModel):
    request_id: str
    resubmitted_from_id: str
    resubmission_count: int
    first_approver_id: str


class EscalationOutcome(BaseModel):
    """What the escalation sweep did to one step."""

    request_id: str
    level: int
    action: Literal["ESCALATED", "AUTO_APPROVED"]
    target_id: str | None = None


class NotificationPayload(BaseModel):
    title: str
    message: str
    link: str | None = None


class EligibilityResult(BaseModel):
    eligible: bool
    reasons: list[str] = Field(default_factory=list)
