"""Database models for the leave workflow."""

from leaveflow.models.audit import AuditLog
from leaveflow.models.base import Base, TimestampMixin
from leaveflow.models.delegation import ActingAppointmentRecord, DelegationRecord
from leaveflow.models.leave import ApprovalStepRecord, LeaveRequestRecord
from leaveflow.models.staff import RoleAssignment, StaffProfile

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    # Workflow models
    "LeaveRequestRecord",
    "ApprovalStepRecord",
    "DelegationRecord",
    "ActingAppointmentRecord",
    # Organisation models
    "StaffProfile",
    "RoleAssignment",
    # Monitoring models
    "AuditLog",
]
