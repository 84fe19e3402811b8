"""Leave request API endpoints."""

import logging

from fastapi import APIRouter, Body, status
from fastapi.responses import JSONResponse

from leaveflow.api.deps import ActorId, Engine
from leaveflow.core.exceptions import ApproverNotAuthorizedError
from leaveflow.services.workflow.schemas import (
    ApprovalStep,
    DecisionRequest,
    DecisionResult,
    EscalationOutcome,
    EscalationRequest,
    ExternalClearanceUpdate,
    LeaveRequest,
    LeaveSubmission,
    OverrideRequest,
    ResubmissionResult,
    SubmissionResult,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/leaves", tags=["Leave Requests"])


@router.post("", response_model=SubmissionResult, status_code=status.HTTP_201_CREATED)
async def submit_leave_request(
    submission: LeaveSubmission,
    actor_id: ActorId,
    engine: Engine,
) -> SubmissionResult:
    """Submit a leave request for the acting staff member.

    Determines the approval chain and notifies the first approver. Repeating
    a request with the same ``idempotency_key`` returns the original result.
    """
    if submission.staff_id != actor_id:
        raise ApproverNotAuthorizedError(
            f"{actor_id} attempted to submit leave for {submission.staff_id}",
            code="NOT_REQUEST_OWNER",
            message="You can only submit leave requests for yourself.",
        )
    return await engine.submit(submission)


@router.post("/escalations/sweep", response_model=list[EscalationOutcome])
async def sweep_escalations(actor_id: ActorId, engine: Engine) -> list[EscalationOutcome]:
    """Run the escalation sweep immediately instead of waiting for the scheduler."""
    logger.info(f"Manual escalation sweep triggered by {actor_id}")
    return await engine.sweep_escalations()


@router.get("/{request_id}", response_model=LeaveRequest)
async def get_leave_request(request_id: str, actor_id: ActorId, engine: Engine) -> LeaveRequest:
    return await engine.get_request(request_id)


@router.post(
    "/{request_id}/steps/{level}/decision",
    response_model=DecisionResult,
    responses={202: {"model": DecisionResult, "description": "Awaiting external clearance"}},
)
async def decide_step(
    request_id: str,
    level: int,
    body: DecisionRequest,
    actor_id: ActorId,
    engine: Engine,
):
    """Approve or reject one level of a leave request.

    Returns 202 with an informational notice when every internal level is
    approved but the request still waits for external clearance.
    """
    result = await engine.decide(request_id, level, body.decision, actor_id, body.comments)
    if result.notice is not None:
        return JSONResponse(
            status_code=status.HTTP_202_ACCEPTED,
            content=result.model_dump(mode="json"),
        )
    return result


@router.post("/{request_id}/steps/{level}/escalation", response_model=ApprovalStep)
async def escalate_step(
    request_id: str,
    level: int,
    actor_id: ActorId,
    engine: Engine,
    body: EscalationRequest | None = Body(None),
) -> ApprovalStep:
    """Escalate a pending step, by policy or to an explicit target."""
    body = body or EscalationRequest()
    return await engine.escalate(
        request_id,
        level,
        actor_id=actor_id,
        target_user_id=body.target_user_id,
        target_role=body.target_role,
    )


@router.post("/{request_id}/external-clearance", response_model=LeaveRequest)
async def record_external_clearance(
    request_id: str,
    body: ExternalClearanceUpdate,
    actor_id: ActorId,
    engine: Engine,
) -> LeaveRequest:
    """Record the external authority's clearance decision."""
    return await engine.set_external_clearance(
        request_id,
        body.status,
        actor_id=actor_id,
        psc_reference=body.psc_reference,
        ohcs_reference=body.ohcs_reference,
    )


@router.post(
    "/{request_id}/resubmission",
    response_model=ResubmissionResult,
    status_code=status.HTTP_201_CREATED,
)
async def resubmit_leave_request(
    request_id: str, actor_id: ActorId, engine: Engine
) -> ResubmissionResult:
    """Resubmit a rejected leave request as a new request."""
    return await engine.resubmit(request_id, actor_id)


@router.post("/{request_id}/override", response_model=LeaveRequest)
async def override_leave_request(
    request_id: str,
    body: OverrideRequest,
    actor_id: ActorId,
    engine: Engine,
) -> LeaveRequest:
    """Administrative override: force a step, force every step, or cancel."""
    return await engine.override(
        request_id, body.action, actor_id, body.reason, level=body.level
    )
