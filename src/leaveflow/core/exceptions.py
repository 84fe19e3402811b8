"""Workflow error taxonomy and FastAPI exception handlers.

Every error carries a stable ``code`` for clients, a plain-language
``message`` safe to show to users, and an optional ``detail`` that is logged
but never returned over HTTP.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str
    code: str
    message: str
    status_code: int


class WorkflowError(Exception):
    """Base class for all leave workflow errors."""

    code: str = "WORKFLOW_ERROR"
    message: str = "The leave workflow could not complete the operation."
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    retryable: bool = False

    def __init__(
        self,
        detail: str | None = None,
        *,
        code: str | None = None,
        message: str | None = None,
    ) -> None:
        if code is not None:
            self.code = code
        if message is not None:
            self.message = message
        self.detail = detail
        super().__init__(detail or self.message)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(
            error=type(self).__name__,
            code=self.code,
            message=self.message,
            status_code=self.status_code,
        )


class ApproverNotFoundError(WorkflowError):
    """No concrete person could be resolved for a required approver role."""

    code = "APPROVER_NOT_FOUND"
    message = "No approver could be found for one of the required approval levels."
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class InvalidTransitionError(WorkflowError):
    """The requested state change is not allowed from the current state."""

    code = "INVALID_TRANSITION"
    message = "This action is not allowed in the request's current state."
    status_code = status.HTTP_409_CONFLICT


class ResubmissionLimitExceededError(WorkflowError):
    code = "RESUBMISSION_LIMIT_EXCEEDED"
    message = (
        "Maximum resubmission attempts reached. Please create a new leave request."
    )
    status_code = status.HTTP_409_CONFLICT


class ExternalClearanceRequiredError(WorkflowError):
    """Informational: internal approvals are complete, external clearance is not."""

    code = "EXTERNAL_CLEARANCE_REQUIRED"
    message = "All approvals are complete. The request is awaiting external clearance."
    status_code = status.HTTP_202_ACCEPTED


class StorageError(WorkflowError):
    code = "STORAGE_UNAVAILABLE"
    message = "The record store is temporarily unavailable. Please try again."
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    retryable = True


class NotificationError(WorkflowError):
    code = "NOTIFICATION_FAILED"
    message = "A notification could not be delivered."


class ComplianceUnavailableError(WorkflowError):
    code = "COMPLIANCE_UNAVAILABLE"
    message = "Leave eligibility could not be checked. Please try again."
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    retryable = True


class RequestNotFoundError(WorkflowError):
    code = "REQUEST_NOT_FOUND"
    message = "The leave request does not exist."
    status_code = status.HTTP_404_NOT_FOUND


class StaffProfileNotFoundError(WorkflowError):
    code = "STAFF_PROFILE_NOT_FOUND"
    message = "No organisation profile exists for this staff member."
    status_code = status.HTTP_404_NOT_FOUND


class DelegationNotFoundError(WorkflowError):
    code = "DELEGATION_NOT_FOUND"
    message = "The delegation does not exist."
    status_code = status.HTTP_404_NOT_FOUND


class ApproverNotAuthorizedError(WorkflowError):
    """The actor may not act on this request or step."""

    code = "NOT_ASSIGNED_APPROVER"
    message = "You are not the assigned approver for this step."
    status_code = status.HTTP_403_FORBIDDEN


class LeaveNotEligibleError(WorkflowError):
    code = "LEAVE_NOT_ELIGIBLE"
    message = "The staff member is not eligible for this leave."
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, reasons: list[str] | None = None, **kwargs: Any) -> None:
        self.reasons = reasons or []
        super().__init__("; ".join(self.reasons) or None, **kwargs)


class ValidationFailedError(WorkflowError):
    code = "VALIDATION_FAILED"
    message = "The request failed validation."
    status_code = status.HTTP_400_BAD_REQUEST


class DelegationConflictError(WorkflowError):
    code = "OVERLAPPING_DELEGATION"
    message = "An active delegation already covers part of this period."
    status_code = status.HTTP_409_CONFLICT


async def _workflow_exception_handler(request: Request, exc: WorkflowError) -> JSONResponse:
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        f"{type(exc).__name__} [{exc.code}] on {request.method} {request.url.path}",
        extra={"error_code": exc.code, "detail": exc.detail},
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_response().model_dump())


async def _validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.info(
        f"Request validation failed on {request.method} {request.url.path}",
        extra={"errors": str(exc.errors())},
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=ErrorResponse(
            error="RequestValidationError",
            code="INVALID_INPUT",
            message="The request body or parameters are invalid.",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        ).model_dump(),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application."""
    app.add_exception_handler(WorkflowError, _workflow_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)  # type: ignore[arg-type]
