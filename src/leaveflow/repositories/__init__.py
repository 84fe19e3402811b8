"""Repository layer for database operations.

This module provides async repository implementations using SQLAlchemy 2.x.
All repositories follow the Repository pattern with consistent CRUD operations.
"""

from leaveflow.repositories.audit_log import AuditLogRepository
from leaveflow.repositories.base import BaseRepository
from leaveflow.repositories.delegation import DelegationRepository
from leaveflow.repositories.leave import LeaveRequestRepository
from leaveflow.repositories.staff import (
    ActingAppointmentRepository,
    RoleAssignmentRepository,
    StaffProfileRepository,
)

__all__ = [
    "BaseRepository",
    "LeaveRequestRepository",
    "DelegationRepository",
    "StaffProfileRepository",
    "RoleAssignmentRepository",
    "ActingAppointmentRepository",
    "AuditLogRepository",
]
