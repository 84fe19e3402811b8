"""Schemas for audit logging service."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class AuditAction(str, Enum):
    """Audited workflow actions."""

    # Leave requests
    LEAVE_SUBMITTED = "leave.submitted"
    LEAVE_APPROVED = "leave.step_approved"
    LEAVE_REJECTED = "leave.step_rejected"
    LEAVE_AUTO_APPROVED = "leave.step_auto_approved"
    LEAVE_ESCALATED = "leave.escalated"
    LEAVE_RESUBMITTED = "leave.resubmitted"
    LEAVE_OVERRIDE = "leave.override"
    EXTERNAL_CLEARANCE_RECORDED = "leave.external_clearance"

    # Delegations
    DELEGATION_CREATED = "delegation.created"
    DELEGATION_REVOKED = "delegation.revoked"
    DELEGATION_EXPIRED = "delegation.expired"


class AuditEntry(BaseModel):
    """Single audit log entry."""

    entry_id: str = Field(..., description="Unique entry ID")
    timestamp: datetime = Field(..., description="When the event occurred")
    action: str = Field(..., description="Action performed")
    actor_id: str | None = Field(None, description="Person or system that acted")
    subject_id: str = Field(..., description="Request or delegation affected")
    details: dict[str, Any] = Field(default_factory=dict, description="Event details")
