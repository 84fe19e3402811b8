"""Audit logging service module."""

from leaveflow.services.audit.logger import AuditLogger, DatabaseAuditor
from leaveflow.services.audit.schemas import AuditAction, AuditEntry

__all__ = [
    "AuditAction",
    "AuditEntry",
    "AuditLogger",
    "DatabaseAuditor",
]
