"""Approval state machine.

Pure transitions over a ``LeaveRequest``. Callers load the request under a
row lock, apply a transition here and save the result in the same
transaction. The request status is always recomputed from the full step set.
"""

from datetime import datetime

from leaveflow.core.exceptions import (
    ApproverNotAuthorizedError,
    InvalidTransitionError,
    ValidationFailedError,
)
from leaveflow.services.workflow.schemas import (
    HR_VALIDATION_ROLES,
    ApprovalStep,
    Decision,
    ExternalClearanceStatus,
    LeaveRequest,
    LeaveStatus,
    OverrideAction,
    StepStatus,
)

SYSTEM_ACTOR = "system"
AUTO_APPROVAL_NOTE = "Auto-approved by escalation policy"


def derive_request_status(request: LeaveRequest) -> LeaveStatus:
    """Compute the overall status from the steps and the clearance state.

    Cancelled is sticky. Any rejected step, or a rejected external clearance,
    makes the request rejected. All steps approved makes it approved unless
    external clearance is still outstanding.
    """
    if request.status == LeaveStatus.CANCELLED:
        return LeaveStatus.CANCELLED
    if any(s.status == StepStatus.REJECTED for s in request.steps):
        return LeaveStatus.REJECTED
    if (
        request.requires_external_clearance
        and request.external_clearance_status == ExternalClearanceStatus.REJECTED
    ):
        return LeaveStatus.REJECTED
    if all(s.status == StepStatus.APPROVED for s in request.steps):
        if (
            request.requires_external_clearance
            and request.external_clearance_status != ExternalClearanceStatus.CLEARED
        ):
            return LeaveStatus.PENDING
        return LeaveStatus.APPROVED
    return LeaveStatus.PENDING


def refresh_status(request: LeaveRequest, now: datetime) -> LeaveStatus:
    """Recompute the status, stamp timestamps and activate the next step."""
    previous = request.status
    request.status = derive_request_status(request)
    request.updated_at = now
    if request.is_closed and previous == LeaveStatus.PENDING:
        request.resolved_at = now
    current = request.current_step
    if current is not None and current.activated_at is None:
        current.activated_at = now
    return request.status


def ensure_open(request: LeaveRequest) -> None:
    if request.is_closed:
        raise InvalidTransitionError(
            f"Request {request.id} is {request.status.value}",
            code="REQUEST_CLOSED",
            message="The leave request is already closed.",
        )


def get_step_or_raise(request: LeaveRequest, level: int) -> ApprovalStep:
    step = request.get_step(level)
    if step is None:
        raise InvalidTransitionError(
            f"Request {request.id} has no level {level}",
            code="STEP_NOT_FOUND",
            message="The approval level does not exist on this request.",
        )
    return step


def _record_hr_outcome(request: LeaveRequest, step: ApprovalStep) -> None:
    if step.approver_role in HR_VALIDATION_ROLES:
        request.hr_validated = step.status == StepStatus.APPROVED


def apply_decision(
    request: LeaveRequest,
    level: int,
    decision: Decision,
    actor_id: str,
    *,
    now: datetime,
    comments: str | None = None,
    min_rejection_comment_length: int = 0,
) -> ApprovalStep:
    """Record an approver's decision on one step.

    @param request - Request loaded under lock
    @param level - Level being decided
    @param decision - APPROVE or REJECT
    @param actor_id - Person deciding
    @param now - Decision time
    @param comments - Approver comments
    @param min_rejection_comment_length - Required comment length on rejection
    @returns The decided step
    """
    ensure_open(request)
    step = get_step_or_raise(request, level)
    if not step.is_pending:
        raise InvalidTransitionError(
            f"Level {level} of {request.id} already {step.status.value}",
            code="STEP_ALREADY_PROCESSED",
            message="This approval step has already been processed.",
        )
    if actor_id == request.staff_id:
        raise ApproverNotAuthorizedError(
            f"{actor_id} attempted to decide own request {request.id}",
            code="SELF_APPROVAL_NOT_ALLOWED",
            message="You cannot approve or reject your own leave request.",
        )
    if not step.can_be_decided_by(actor_id):
        raise ApproverNotAuthorizedError(
            f"{actor_id} is not assigned to level {level} of {request.id}"
        )
    blocking = [s.level for s in request.steps[: level - 1] if s.status != StepStatus.APPROVED]
    if blocking:
        raise InvalidTransitionError(
            f"Levels {blocking} of {request.id} must be approved first",
            code="SEQUENTIAL_APPROVAL_REQUIRED",
            message="Earlier approval levels must be completed first.",
        )
    if decision == Decision.REJECT and len((comments or "").strip()) < min_rejection_comment_length:
        raise ValidationFailedError(
            f"Rejection comment shorter than {min_rejection_comment_length} characters",
            code="REJECTION_COMMENTS_REQUIRED",
            message=(
                f"Please give a reason of at least {min_rejection_comment_length} "
                "characters when rejecting."
            ),
        )

    step.status = StepStatus.APPROVED if decision == Decision.APPROVE else StepStatus.REJECTED
    step.comments = comments
    step.approval_date = now
    step.decided_by = actor_id
    _record_hr_outcome(request, step)
    refresh_status(request, now)
    return step


def apply_auto_approval(request: LeaveRequest, level: int, *, now: datetime) -> ApprovalStep:
    """Approve a stalled step on behalf of the escalation policy."""
    ensure_open(request)
    step = get_step_or_raise(request, level)
    if not step.is_pending:
        raise InvalidTransitionError(
            f"Level {level} of {request.id} already {step.status.value}",
            code="STEP_ALREADY_PROCESSED",
            message="This approval step has already been processed.",
        )
    step.status = StepStatus.APPROVED
    step.comments = AUTO_APPROVAL_NOTE
    step.approval_date = now
    step.decided_by = SYSTEM_ACTOR
    step.auto_approved = True
    _record_hr_outcome(request, step)
    refresh_status(request, now)
    return step


def apply_override(
    request: LeaveRequest,
    action: OverrideAction,
    actor_id: str,
    reason: str,
    *,
    now: datetime,
    level: int | None = None,
) -> list[ApprovalStep]:
    """Administrative override outside the normal sequence.

    APPROVE and REJECT force one step, or every step when ``level`` is None,
    regardless of its current status. REVERSE cancels the request.

    @returns The steps that were forced
    """
    if request.status == LeaveStatus.CANCELLED:
        raise InvalidTransitionError(
            f"Request {request.id} is cancelled",
            code="REQUEST_CANCELLED",
            message="A cancelled leave request cannot be changed.",
        )
    if not reason or not reason.strip():
        raise ValidationFailedError(
            "Override without a reason",
            code="OVERRIDE_REASON_REQUIRED",
            message="An override needs a reason.",
        )

    request.override_reason = reason
    if action == OverrideAction.REVERSE:
        request.status = LeaveStatus.CANCELLED
        request.updated_at = now
        request.resolved_at = now
        return []

    target = StepStatus.APPROVED if action == OverrideAction.APPROVE else StepStatus.REJECTED
    steps = [get_step_or_raise(request, level)] if level is not None else list(request.steps)
    for step in steps:
        step.status = target
        step.comments = f"Administrative override: {reason}"
        step.approval_date = now
        step.decided_by = actor_id
        _record_hr_outcome(request, step)

    # A forced approval can reopen a rejected request
    request.status = LeaveStatus.PENDING
    request.resolved_at = None
    refresh_status(request, now)
    return steps
