"""Shared API dependencies."""

from typing import Annotated

from fastapi import Depends, Header

from leaveflow.services.delegation import DelegationService, get_delegation_service
from leaveflow.services.workflow import LeaveApprovalEngine, get_leave_approval_engine

# Authentication is handled upstream; the gateway forwards the caller's staff ID.
ActorId = Annotated[
    str,
    Header(alias="X-Actor-Id", min_length=1, description="Staff ID of the acting user"),
]

Engine = Annotated[LeaveApprovalEngine, Depends(get_leave_approval_engine)]

Delegations = Annotated[DelegationService, Depends(get_delegation_service)]
