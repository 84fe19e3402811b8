"""Leave eligibility checks."""

from leaveflow.services.compliance.client import ComplianceClient

__all__ = ["ComplianceClient"]
