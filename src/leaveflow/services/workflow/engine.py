"""Leave approval workflow engine.

Composes workflow determination, approver resolution, the approval state
machine, escalation, external clearance and resubmission over a record
store. Every mutating operation runs in one store transaction with the
request row locked; notifications and audit records are sent after commit
and never undo a transition.
"""

import logging
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from leaveflow.core.config import Settings, get_settings
from leaveflow.core.exceptions import (
    ApproverNotAuthorizedError,
    InvalidTransitionError,
    LeaveNotEligibleError,
    RequestNotFoundError,
    StaffProfileNotFoundError,
    ValidationFailedError,
    WorkflowError,
)
from leaveflow.services.audit.schemas import AuditAction
from leaveflow.services.workflow import state_machine
from leaveflow.services.workflow.clearance import ExternalClearanceGate
from leaveflow.services.workflow.determination import WorkflowDeterminer
from leaveflow.services.workflow.escalation import (
    EscalationAction,
    EscalationPolicyEvaluator,
)
from leaveflow.services.workflow.org import OrganizationResolver
from leaveflow.services.workflow.ports import (
    Auditor,
    ComplianceChecker,
    Notifier,
    RecordStore,
    UnitOfWork,
)
from leaveflow.services.workflow.resolver import ApproverResolver
from leaveflow.services.workflow.resubmission import ResubmissionController
from leaveflow.services.workflow.schemas import (
    ApprovalStep,
    ApproverRole,
    Decision,
    DecisionResult,
    EscalationOutcome,
    EscalationPolicy,
    ExternalClearanceStatus,
    LeaveRequest,
    LeaveStatus,
    LeaveSubmission,
    NotificationPayload,
    OrgRoutingConfig,
    OverrideAction,
    ResubmissionResult,
    SubmissionResult,
    WorkflowPlan,
)

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class _SideEffects:
    """Notifications and audit records queued until the transaction commits."""

    audits: list[tuple[AuditAction, str | None, str, dict[str, Any]]] = field(
        default_factory=list
    )
    notifications: list[tuple[str, NotificationPayload]] = field(default_factory=list)

    def audit(
        self, action: AuditAction, actor_id: str | None, subject_id: str, /, **details: Any
    ) -> None:
        self.audits.append((action, actor_id, subject_id, details))

    def notify(self, user_id: str, title: str, message: str, request_id: str) -> None:
        self.notifications.append(
            (user_id, NotificationPayload(title=title, message=message, link=f"/leaves/{request_id}"))
        )


class LeaveApprovalEngine:
    """Leave approval workflow engine."""

    def __init__(
        self,
        store: RecordStore,
        *,
        notifier: Notifier,
        auditor: Auditor,
        compliance: ComplianceChecker,
        determiner: WorkflowDeterminer,
        clearance_gate: ExternalClearanceGate,
        escalation: EscalationPolicyEvaluator,
        resolver: ApproverResolver | None = None,
        resubmission: ResubmissionController | None = None,
        default_escalation_role: ApproverRole = ApproverRole.HR_DIRECTOR,
        rejection_comment_min_length: int = 10,
        override_roles: Iterable[ApproverRole] = (
            ApproverRole.HR_DIRECTOR,
            ApproverRole.CHIEF_DIRECTOR,
        ),
        clearance_roles: Iterable[ApproverRole] = (
            ApproverRole.HR_OFFICER,
            ApproverRole.HR_DIRECTOR,
            ApproverRole.CHIEF_DIRECTOR,
        ),
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize the engine.

        Args:
            store: Record store providing transactions
            notifier: Best-effort notification sender
            auditor: Audit trail recorder
            compliance: Leave eligibility checker
            determiner: Workflow determination
            clearance_gate: External clearance gate
            escalation: Escalation policy evaluator
            resolver: Approver resolver
            resubmission: Resubmission controller
            default_escalation_role: Role escalated to when no target is given
            rejection_comment_min_length: Minimum rejection comment length
            override_roles: Roles allowed to override a request
            clearance_roles: Roles allowed to record external clearance
            clock: Source of the current time
        """
        self._store = store
        self._notifier = notifier
        self._auditor = auditor
        self._compliance = compliance
        self._determiner = determiner
        self._clearance_gate = clearance_gate
        self._escalation = escalation
        self._resolver = resolver or ApproverResolver()
        self._resubmission = resubmission or ResubmissionController()
        self._default_escalation_role = default_escalation_role
        self._rejection_comment_min_length = rejection_comment_min_length
        self._override_roles = set(override_roles)
        self._clearance_roles = set(clearance_roles)
        self._clock = clock

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        store: RecordStore,
        *,
        notifier: Notifier,
        auditor: Auditor,
        compliance: ComplianceChecker,
        routing: OrgRoutingConfig | None = None,
        escalation_policies: dict[ApproverRole, EscalationPolicy] | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> "LeaveApprovalEngine":
        """Build an engine with policy taken from settings."""
        if routing is None and settings.org_routing_file:
            routing = OrgRoutingConfig.from_file(settings.org_routing_file)
        org = OrganizationResolver(routing)
        default_role = ApproverRole(settings.default_escalation_role)
        clearance_gate = ExternalClearanceGate(settings.external_clearance_leave_types)
        return cls(
            store,
            notifier=notifier,
            auditor=auditor,
            compliance=compliance,
            determiner=WorkflowDeterminer(
                org,
                clearance_gate,
                hr_exempt_grades=settings.hr_validation_exempt_grades,
                hr_exempt_day_threshold=settings.hr_validation_day_threshold,
            ),
            clearance_gate=clearance_gate,
            escalation=EscalationPolicyEvaluator(
                EscalationPolicy(
                    threshold_working_days=settings.default_escalation_working_days,
                    escalate_to_role=default_role,
                ),
                escalation_policies,
            ),
            resolver=ApproverResolver(org),
            resubmission=ResubmissionController(settings.max_resubmissions),
            default_escalation_role=default_role,
            rejection_comment_min_length=settings.rejection_comment_min_length,
            override_roles=[ApproverRole(r) for r in settings.override_roles],
            clearance_roles=[ApproverRole(r) for r in settings.clearance_roles],
            clock=clock,
        )

    # =========================================================================
    # Submission
    # =========================================================================

    async def submit(self, submission: LeaveSubmission) -> SubmissionResult:
        """Submit a leave request.

        Checks eligibility, determines the approval chain, resolves an
        approver for every level and stores the request. A repeated
        ``idempotency_key`` returns the request created the first time.

        Raises:
            LeaveNotEligibleError: Compliance check failed
            StaffProfileNotFoundError: Requester has no org profile
            ApproverNotFoundError: A level has nobody to approve it
            StorageError: The record store failed
        """
        if submission.idempotency_key:
            async with self._store.transaction() as uow:
                existing = await uow.find_request_by_idempotency_key(submission.idempotency_key)
            if existing is not None:
                logger.info(
                    f"Idempotent replay of {submission.idempotency_key} -> {existing.id}"
                )
                return self._submission_result(existing)

        eligibility = await self._compliance.is_eligible(
            submission.staff_id, submission.leave_type, submission.day_count
        )
        if not eligibility.eligible:
            raise LeaveNotEligibleError(eligibility.reasons)

        now = self._clock()
        effects = _SideEffects()
        async with self._store.transaction() as uow:
            if submission.idempotency_key:
                existing = await uow.find_request_by_idempotency_key(submission.idempotency_key)
                if existing is not None:
                    return self._submission_result(existing)
            request, plan = await self._build_request(uow, submission, now=now)
            await uow.save_request(request)

        effects.audit(
            AuditAction.LEAVE_SUBMITTED,
            request.staff_id,
            request.id,
            leave_type=request.leave_type,
            day_count=request.day_count,
            levels=[s.approver_role.value for s in request.steps],
            requires_external_clearance=request.requires_external_clearance,
            omitted_tiers=plan.omitted_tiers,
        )
        self._notify_current_approver(request, effects)
        await self._dispatch(effects)

        logger.info(
            f"Leave request {request.id} submitted by {request.staff_id} "
            f"with {len(request.steps)} levels"
        )
        return self._submission_result(request)

    async def _build_request(
        self,
        uow: UnitOfWork,
        submission: LeaveSubmission,
        *,
        now: datetime,
        resubmitted_from: LeaveRequest | None = None,
    ) -> tuple[LeaveRequest, WorkflowPlan]:
        profile = await uow.load_org_profile(submission.staff_id)
        if profile is None:
            raise StaffProfileNotFoundError(f"No org profile for {submission.staff_id}")

        plan = self._determiner.determine(
            profile,
            submission.leave_type,
            submission.day_count,
            await uow.load_roles_for(submission.staff_id),
        )

        steps = []
        for level in plan.levels:
            approver = await self._resolver.resolve(
                uow, level.approver_role, profile, submission.leave_type, on=now.date()
            )
            steps.append(
                ApprovalStep(
                    level=level.level,
                    approver_role=level.approver_role,
                    approver_id=approver.user_id,
                    approver_name=approver.display_name,
                    resolution_source=approver.source,
                    original_approver_id=approver.nominal_id,
                )
            )
        steps[0].activated_at = now

        request = LeaveRequest(
            id=f"LR-{uuid.uuid4().hex[:12].upper()}",
            staff_id=submission.staff_id,
            leave_type=submission.leave_type,
            start_date=submission.start_date,
            end_date=submission.end_date,
            day_count=submission.day_count,
            reason=submission.reason,
            steps=steps,
            idempotency_key=submission.idempotency_key,
            resubmitted_from_id=resubmitted_from.id if resubmitted_from else None,
            resubmission_count=(
                resubmitted_from.resubmission_count + 1 if resubmitted_from else 0
            ),
            created_at=now,
            updated_at=now,
        )
        self._clearance_gate.initialise(request)
        return request, plan

    @staticmethod
    def _submission_result(request: LeaveRequest) -> SubmissionResult:
        return SubmissionResult(
            request_id=request.id,
            first_approver_id=request.steps[0].approver_id,
            status=request.status,
            requires_external_clearance=request.requires_external_clearance,
            level_count=len(request.steps),
        )

    # =========================================================================
    # Decisions
    # =========================================================================

    async def decide(
        self,
        request_id: str,
        level: int,
        decision: Decision,
        actor_id: str,
        comments: str | None = None,
    ) -> DecisionResult:
        """Approve or reject one level of a request.

        The precondition checks and the write happen under the same row lock,
        so of two concurrent decisions on a step exactly one succeeds.

        Raises:
            RequestNotFoundError: Unknown request
            InvalidTransitionError: Request closed, step processed or out of order
            ApproverNotAuthorizedError: Actor is the requester or not assigned
            ValidationFailedError: Rejection comment too short
        """
        now = self._clock()
        effects = _SideEffects()
        async with self._store.transaction() as uow:
            request = await self._load_for_update(uow, request_id)
            step = state_machine.apply_decision(
                request,
                level,
                decision,
                actor_id,
                now=now,
                comments=comments,
                min_rejection_comment_length=self._rejection_comment_min_length,
            )
            await uow.save_request(request)

        effects.audit(
            AuditAction.LEAVE_APPROVED if decision == Decision.APPROVE else AuditAction.LEAVE_REJECTED,
            actor_id,
            request.id,
            level=level,
            role=step.approver_role.value,
            comments=comments,
            request_status=request.status.value,
        )
        self._progress_effects(request, effects)
        await self._dispatch(effects)

        logger.info(f"Level {level} of {request_id} {step.status.value.lower()} by {actor_id}")
        current = request.current_step
        notice = self._clearance_gate.blocking_error(request)
        return DecisionResult(
            request_id=request.id,
            level=level,
            decision=decision,
            status=request.status,
            next_approver_id=current.approver_id if current else None,
            awaiting_external_clearance=notice is not None,
            notice=notice.to_response() if notice else None,
        )

    # =========================================================================
    # Escalation
    # =========================================================================

    async def escalate(
        self,
        request_id: str,
        level: int,
        *,
        actor_id: str | None = None,
        target_user_id: str | None = None,
        target_role: ApproverRole | None = None,
    ) -> ApprovalStep:
        """Escalate a pending step.

        Without an explicit target the step's escalation policy must be
        breached; the policy then decides between escalation and
        auto-approval. An explicit target re-points an already escalated step.

        Raises:
            InvalidTransitionError: Conditions not met or step not pending
        """
        now = self._clock()
        effects = _SideEffects()
        async with self._store.transaction() as uow:
            request = await self._load_for_update(uow, request_id)
            state_machine.ensure_open(request)
            step = state_machine.get_step_or_raise(request, level)
            if not step.is_pending:
                raise InvalidTransitionError(
                    f"Level {level} of {request_id} already {step.status.value}",
                    code="STEP_ALREADY_PROCESSED",
                    message="This approval step has already been processed.",
                )

            if target_user_id or target_role:
                await self._mark_escalated(
                    uow, request, step, now=now, target_user_id=target_user_id, target_role=target_role
                )
                action = EscalationAction.ESCALATE
            else:
                if not self._escalation.is_breached(request, step, now):
                    raise InvalidTransitionError(
                        f"Level {level} of {request_id} is within its escalation window",
                        code="ESCALATION_CONDITIONS_NOT_MET",
                        message="Escalation conditions not met.",
                    )
                verdict = self._escalation.evaluate(request, step, now)
                if verdict is None:
                    raise InvalidTransitionError(
                        f"Level {level} of {request_id} already escalated",
                        code="ALREADY_ESCALATED",
                        message="This step has already been escalated.",
                    )
                action = verdict.action
                if action == EscalationAction.AUTO_APPROVE:
                    state_machine.apply_auto_approval(request, level, now=now)
                else:
                    await self._mark_escalated(
                        uow,
                        request,
                        step,
                        now=now,
                        target_user_id=verdict.target_user_id,
                        target_role=verdict.target_role,
                    )
            await uow.save_request(request)

        self._escalation_effects(request, step, action, actor_id, effects)
        await self._dispatch(effects)
        return step

    async def sweep_escalations(self) -> list[EscalationOutcome]:
        """Apply escalation policy to the current step of every pending request.

        Requests that cannot be escalated (no target resolvable, missing
        profile, concurrently closed) are logged and skipped. Storage
        failures propagate so the caller can retry.
        """
        async with self._store.transaction() as uow:
            request_ids = await uow.list_pending_request_ids()

        outcomes = []
        for request_id in request_ids:
            try:
                outcome = await self._sweep_one(request_id)
            except WorkflowError as e:
                if e.retryable:
                    raise
                logger.warning(f"Escalation sweep skipped {request_id}: {e.code} {e.detail}")
                continue
            if outcome is not None:
                outcomes.append(outcome)

        logger.info(
            f"Escalation sweep checked {len(request_ids)} requests, acted on {len(outcomes)}"
        )
        return outcomes

    async def _sweep_one(self, request_id: str) -> EscalationOutcome | None:
        now = self._clock()
        effects = _SideEffects()
        async with self._store.transaction() as uow:
            request = await uow.load_request(request_id, for_update=True)
            if request is None or request.is_closed:
                return None
            step = request.current_step
            if step is None:
                return None
            verdict = self._escalation.evaluate(request, step, now)
            if verdict is None:
                return None
            if verdict.action == EscalationAction.AUTO_APPROVE:
                state_machine.apply_auto_approval(request, step.level, now=now)
            else:
                await self._mark_escalated(
                    uow,
                    request,
                    step,
                    now=now,
                    target_user_id=verdict.target_user_id,
                    target_role=verdict.target_role,
                )
            await uow.save_request(request)

        self._escalation_effects(request, step, verdict.action, None, effects)
        await self._dispatch(effects)
        return EscalationOutcome(
            request_id=request.id,
            level=step.level,
            action="AUTO_APPROVED" if verdict.action == EscalationAction.AUTO_APPROVE else "ESCALATED",
            target_id=step.escalated_to if verdict.action == EscalationAction.ESCALATE else None,
        )

    async def _mark_escalated(
        self,
        uow: UnitOfWork,
        request: LeaveRequest,
        step: ApprovalStep,
        *,
        now: datetime,
        target_user_id: str | None,
        target_role: ApproverRole | None,
    ) -> None:
        if target_user_id:
            target = target_user_id
            target_name = await uow.load_display_name(target) or target
        else:
            profile = await uow.load_org_profile(request.staff_id)
            if profile is None:
                raise StaffProfileNotFoundError(f"No org profile for {request.staff_id}")
            resolved = await self._resolver.resolve(
                uow,
                target_role or self._default_escalation_role,
                profile,
                request.leave_type,
                on=now.date(),
            )
            target, target_name = resolved.user_id, resolved.display_name

        if target == request.staff_id:
            raise ValidationFailedError(
                f"Escalation target {target} is the requester of {request.id}",
                code="INVALID_ESCALATION_TARGET",
                message="A request cannot be escalated to its own requester.",
            )

        step.escalated = True
        step.escalated_to = target
        step.escalated_to_name = target_name
        step.escalation_date = now
        request.updated_at = now
        logger.info(f"Level {step.level} of {request.id} escalated to {target}")

    def _escalation_effects(
        self,
        request: LeaveRequest,
        step: ApprovalStep,
        action: EscalationAction,
        actor_id: str | None,
        effects: _SideEffects,
    ) -> None:
        if action == EscalationAction.AUTO_APPROVE:
            effects.audit(
                AuditAction.LEAVE_AUTO_APPROVED,
                state_machine.SYSTEM_ACTOR,
                request.id,
                level=step.level,
                role=step.approver_role.value,
                request_status=request.status.value,
            )
            self._progress_effects(request, effects)
            return

        effects.audit(
            AuditAction.LEAVE_ESCALATED,
            actor_id or state_machine.SYSTEM_ACTOR,
            request.id,
            level=step.level,
            original_approver=step.approver_id,
            escalated_to=step.escalated_to,
        )
        effects.notify(
            step.escalated_to,
            "Escalated leave approval",
            f"Level {step.level} of leave request {request.id} has been escalated to you.",
            request.id,
        )
        effects.notify(
            step.approver_id,
            "Leave approval escalated",
            f"Your pending approval on {request.id} was escalated to {step.escalated_to_name}.",
            request.id,
        )

    # =========================================================================
    # External clearance, resubmission, override
    # =========================================================================

    async def set_external_clearance(
        self,
        request_id: str,
        status: ExternalClearanceStatus,
        *,
        actor_id: str,
        psc_reference: str | None = None,
        ohcs_reference: str | None = None,
    ) -> LeaveRequest:
        """Record the external authority's clearance decision.

        Raises:
            ApproverNotAuthorizedError: Actor is the requester or holds no clearance role
            InvalidTransitionError: Request needs no clearance or is closed
        """
        now = self._clock()
        effects = _SideEffects()
        async with self._store.transaction() as uow:
            request = await self._load_for_update(uow, request_id)
            await self._require_authority(
                uow, request, actor_id, self._clearance_roles, "record clearance for"
            )
            self._clearance_gate.record(
                request,
                status,
                now=now,
                psc_reference=psc_reference,
                ohcs_reference=ohcs_reference,
            )
            state_machine.refresh_status(request, now)
            await uow.save_request(request)

        effects.audit(
            AuditAction.EXTERNAL_CLEARANCE_RECORDED,
            actor_id,
            request.id,
            clearance_status=status.value,
            psc_reference=psc_reference,
            ohcs_reference=ohcs_reference,
            request_status=request.status.value,
        )
        self._progress_effects(request, effects)
        await self._dispatch(effects)
        return request

    async def resubmit(self, request_id: str, requester_id: str) -> ResubmissionResult:
        """Create a new request from a rejected one.

        Raises:
            InvalidTransitionError: Original not rejected
            ApproverNotAuthorizedError: Requester does not own the original
            ResubmissionLimitExceededError: Resubmission limit reached
        """
        now = self._clock()
        effects = _SideEffects()
        async with self._store.transaction() as uow:
            original = await self._load_for_update(uow, request_id)
            self._resubmission.check(original, requester_id)

            request, _ = await self._build_request(
                uow,
                self._resubmission.build_submission(original),
                now=now,
                resubmitted_from=original,
            )
            await uow.save_request(request)

        effects.audit(
            AuditAction.LEAVE_RESUBMITTED,
            requester_id,
            request.id,
            resubmitted_from=original.id,
            resubmission_count=request.resubmission_count,
            rejection_comments=self._resubmission.rejection_comments(original),
        )
        self._notify_current_approver(request, effects)
        await self._dispatch(effects)

        logger.info(
            f"Request {original.id} resubmitted as {request.id} "
            f"(attempt {request.resubmission_count})"
        )
        return ResubmissionResult(
            request_id=request.id,
            resubmitted_from_id=original.id,
            resubmission_count=request.resubmission_count,
            first_approver_id=request.steps[0].approver_id,
        )

    async def override(
        self,
        request_id: str,
        action: OverrideAction,
        actor_id: str,
        reason: str,
        *,
        level: int | None = None,
    ) -> LeaveRequest:
        """Administrative override of one step, every step, or the whole request.

        Raises:
            ApproverNotAuthorizedError: Actor is the requester or holds no override role
            InvalidTransitionError: Request cancelled or level not found
        """
        now = self._clock()
        effects = _SideEffects()
        async with self._store.transaction() as uow:
            request = await self._load_for_update(uow, request_id)
            await self._require_authority(
                uow, request, actor_id, self._override_roles, "override"
            )
            forced = state_machine.apply_override(
                request, action, actor_id, reason, now=now, level=level
            )
            await uow.save_request(request)

        effects.audit(
            AuditAction.LEAVE_OVERRIDE,
            actor_id,
            request.id,
            override_action=action.value,
            level=level,
            forced_levels=[s.level for s in forced],
            reason=reason,
            request_status=request.status.value,
        )
        self._progress_effects(request, effects)
        await self._dispatch(effects)

        logger.warning(
            f"Override {action.value} on {request_id} by {actor_id}: {request.status.value}",
            extra={"request_id": request_id, "actor_id": actor_id},
        )
        return request

    # =========================================================================
    # Queries
    # =========================================================================

    async def get_request(self, request_id: str) -> LeaveRequest:
        async with self._store.transaction() as uow:
            request = await uow.load_request(request_id)
        if request is None:
            raise RequestNotFoundError(f"Leave request {request_id} not found")
        return request

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _load_for_update(self, uow: UnitOfWork, request_id: str) -> LeaveRequest:
        request = await uow.load_request(request_id, for_update=True)
        if request is None:
            raise RequestNotFoundError(f"Leave request {request_id} not found")
        return request

    async def _require_authority(
        self,
        uow: UnitOfWork,
        request: LeaveRequest,
        actor_id: str,
        roles: set[ApproverRole],
        operation: str,
    ) -> None:
        if actor_id == request.staff_id:
            raise ApproverNotAuthorizedError(
                f"{actor_id} attempted to {operation} own request {request.id}",
                code="SELF_APPROVAL_NOT_ALLOWED",
                message="You cannot act on your own leave request.",
            )
        if not roles & await uow.load_roles_for(actor_id):
            raise ApproverNotAuthorizedError(
                f"{actor_id} holds none of {sorted(r.value for r in roles)}",
                code="NOT_AUTHORIZED",
                message="You are not authorized to perform this action.",
            )

    def _notify_current_approver(self, request: LeaveRequest, effects: _SideEffects) -> None:
        step = request.current_step
        if step is None:
            return
        effects.notify(
            step.approver_id,
            "Leave request awaiting your approval",
            f"{request.day_count} day(s) of {request.leave_type} leave from {request.staff_id} "
            f"({request.start_date} to {request.end_date}) needs your decision at level {step.level}.",
            request.id,
        )

    def _progress_effects(self, request: LeaveRequest, effects: _SideEffects) -> None:
        """Queue the notifications that follow a transition."""
        if request.status == LeaveStatus.PENDING:
            if self._clearance_gate.is_blocking(request):
                effects.notify(
                    request.staff_id,
                    "Leave request awaiting external clearance",
                    f"All internal approvals for {request.id} are complete. "
                    "It will be finalised once external clearance is recorded.",
                    request.id,
                )
            else:
                self._notify_current_approver(request, effects)
            return

        effects.notify(
            request.staff_id,
            f"Leave request {request.status.value.lower()}",
            f"Your {request.leave_type} leave request {request.id} was {request.status.value.lower()}.",
            request.id,
        )

    async def _dispatch(self, effects: _SideEffects) -> None:
        for action, actor_id, subject_id, details in effects.audits:
            try:
                await self._auditor.record(action, actor_id, subject_id, details)
            except Exception as e:
                logger.warning(f"Audit record {action.value} for {subject_id} failed: {e}")
        for user_id, payload in effects.notifications:
            try:
                await self._notifier.notify(user_id, payload)
            except Exception as e:
                logger.warning(f"Notification '{payload.title}' to {user_id} failed: {e}")


# Singleton instance
_engine: LeaveApprovalEngine | None = None


def get_leave_approval_engine() -> LeaveApprovalEngine:
    """Get or create the engine wired to PostgreSQL, the webhook and the compliance service."""
    global _engine
    if _engine is None:
        from leaveflow.infrastructure.database.session import AsyncSessionLocal
        from leaveflow.services.audit import DatabaseAuditor
        from leaveflow.services.compliance import ComplianceClient
        from leaveflow.services.notification import NotificationService
        from leaveflow.services.workflow.sql_store import SqlAlchemyRecordStore

        settings = get_settings()
        _engine = LeaveApprovalEngine.from_settings(
            settings,
            SqlAlchemyRecordStore(AsyncSessionLocal),
            notifier=NotificationService(
                settings.notification_webhook_url,
                timeout=settings.notification_timeout_seconds,
            ),
            auditor=DatabaseAuditor(AsyncSessionLocal),
            compliance=ComplianceClient(
                settings.compliance_service_url,
                timeout=settings.compliance_timeout_seconds,
            ),
        )
    return _engine


def reset_leave_approval_engine() -> None:
    """Reset the engine singleton (for testing)."""
    global _engine
    _engine = None
