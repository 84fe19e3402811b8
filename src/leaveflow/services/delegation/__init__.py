"""Approval delegation management."""

from leaveflow.services.delegation.schemas import DelegationCreate, DelegationRevoke
from leaveflow.services.delegation.service import (
    DelegationService,
    get_delegation_service,
    reset_delegation_service,
)

__all__ = [
    "DelegationCreate",
    "DelegationRevoke",
    "DelegationService",
    "get_delegation_service",
    "reset_delegation_service",
]
