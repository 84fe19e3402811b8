"""Escalation policy evaluation for stalled approval steps."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from leaveflow.services.workflow.schemas import (
    ApprovalStep,
    ApproverRole,
    EscalationPolicy,
    LeaveRequest,
)


class EscalationAction(str, Enum):
    ESCALATE = "ESCALATE"
    AUTO_APPROVE = "AUTO_APPROVE"


@dataclass(frozen=True)
class EscalationDecision:
    action: EscalationAction
    level: int
    target_user_id: str | None = None
    target_role: ApproverRole | None = None


def add_working_days(start: datetime, days: int) -> datetime:
    """Move ``start`` forward by ``days`` working days, skipping weekends."""
    current = start
    remaining = days
    while remaining > 0:
        current += timedelta(days=1)
        if current.weekday() < 5:
            remaining -= 1
    return current


class EscalationPolicyEvaluator:
    """Decides whether a pending step has breached its escalation policy.

    Policies are looked up by the step's approver role, falling back to the
    default policy. Elapsed time runs from when the step became current, or
    from request creation when that is not recorded. A step is escalated at
    most once by policy; auto-approval is tracked separately and can still
    fire on an escalated step.
    """

    def __init__(
        self,
        default_policy: EscalationPolicy,
        policies: dict[ApproverRole, EscalationPolicy] | None = None,
    ):
        self._default = default_policy
        self._policies = dict(policies or {})

    def policy_for(self, role: ApproverRole) -> EscalationPolicy:
        return self._policies.get(role, self._default)

    def deadline(self, request: LeaveRequest, step: ApprovalStep) -> datetime:
        policy = self.policy_for(step.approver_role)
        started = step.activated_at or request.created_at
        if policy.threshold_working_days is not None:
            return add_working_days(started, policy.threshold_working_days)
        return started + timedelta(hours=policy.threshold_hours or 0)

    def is_breached(self, request: LeaveRequest, step: ApprovalStep, now: datetime) -> bool:
        return step.is_pending and now > self.deadline(request, step)

    def evaluate(
        self, request: LeaveRequest, step: ApprovalStep, now: datetime
    ) -> EscalationDecision | None:
        """Return what should happen to ``step`` at ``now``, if anything."""
        if request.is_closed or not self.is_breached(request, step, now):
            return None

        policy = self.policy_for(step.approver_role)
        if policy.auto_approve:
            return EscalationDecision(action=EscalationAction.AUTO_APPROVE, level=step.level)
        if step.escalated:
            return None
        return EscalationDecision(
            action=EscalationAction.ESCALATE,
            level=step.level,
            target_user_id=policy.escalate_to_user_id,
            target_role=policy.escalate_to_role,
        )
