"""Delegation API endpoints."""

from fastapi import APIRouter, Body, Query, status

from leaveflow.api.deps import ActorId, Delegations
from leaveflow.services.delegation import DelegationCreate, DelegationRevoke
from leaveflow.services.workflow.schemas import ApprovalDelegation, DelegationStatus

router = APIRouter(prefix="/delegations", tags=["Delegations"])


@router.post("", response_model=ApprovalDelegation, status_code=status.HTTP_201_CREATED)
async def create_delegation(
    body: DelegationCreate,
    actor_id: ActorId,
    service: Delegations,
) -> ApprovalDelegation:
    """Delegate the acting user's approval authority for a date range."""
    return await service.create_delegation(actor_id, body)


@router.get("", response_model=list[ApprovalDelegation])
async def list_my_delegations(
    actor_id: ActorId,
    service: Delegations,
    status: DelegationStatus | None = Query(None, description="Filter by status"),
) -> list[ApprovalDelegation]:
    return await service.list_delegations(actor_id, status)


@router.post("/{delegation_id}/revoke", response_model=ApprovalDelegation)
async def revoke_delegation(
    delegation_id: str,
    actor_id: ActorId,
    service: Delegations,
    body: DelegationRevoke | None = Body(None),
) -> ApprovalDelegation:
    """Revoke an active delegation. Only its delegator may do this."""
    return await service.revoke_delegation(
        delegation_id, actor_id, body.reason if body else None
    )
