"""External clearance gate for leave types approved outside the organisation."""

import logging
from collections.abc import Iterable
from datetime import datetime

from leaveflow.core.exceptions import ExternalClearanceRequiredError, InvalidTransitionError
from leaveflow.services.workflow.schemas import (
    ExternalClearanceStatus,
    LeaveRequest,
    StepStatus,
    normalize_leave_type,
)

logger = logging.getLogger(__name__)


class ExternalClearanceGate:
    """Blocks final approval of designated leave types until clearance is recorded.

    Study leave, leave of absence and secondment need clearance from the
    Public Services Commission or the Office of the Head of Civil Service in
    addition to the internal chain.
    """

    def __init__(self, leave_types: Iterable[str]):
        self._leave_types = frozenset(normalize_leave_type(t) for t in leave_types)

    @property
    def leave_types(self) -> frozenset[str]:
        return self._leave_types

    def requires_clearance(self, leave_type: str) -> bool:
        return normalize_leave_type(leave_type) in self._leave_types

    def initialise(self, request: LeaveRequest) -> None:
        """Set the clearance flags on a freshly built request."""
        request.requires_external_clearance = self.requires_clearance(request.leave_type)
        request.external_clearance_status = (
            ExternalClearanceStatus.PENDING if request.requires_external_clearance else None
        )

    def is_blocking(self, request: LeaveRequest) -> bool:
        """Whether internal approval is complete but clearance is still outstanding."""
        return (
            request.requires_external_clearance
            and request.external_clearance_status == ExternalClearanceStatus.PENDING
            and all(s.status == StepStatus.APPROVED for s in request.steps)
        )

    def blocking_error(self, request: LeaveRequest) -> ExternalClearanceRequiredError | None:
        if not self.is_blocking(request):
            return None
        return ExternalClearanceRequiredError(
            f"Request {request.id} ({request.leave_type}) awaits external clearance"
        )

    def record(
        self,
        request: LeaveRequest,
        status: ExternalClearanceStatus,
        *,
        now: datetime,
        psc_reference: str | None = None,
        ohcs_reference: str | None = None,
    ) -> None:
        """Record the external authority's decision on the request.

        Raises:
            InvalidTransitionError: If the request does not need clearance,
                is closed, or clearance was already decided.
        """
        if not request.requires_external_clearance:
            raise InvalidTransitionError(
                f"Request {request.id} does not require external clearance",
                code="CLEARANCE_NOT_REQUIRED",
                message="This leave type does not require external clearance.",
            )
        if request.is_closed:
            raise InvalidTransitionError(
                f"Request {request.id} is {request.status.value}",
                code="REQUEST_CLOSED",
                message="The leave request is already closed.",
            )
        if status == ExternalClearanceStatus.PENDING:
            raise InvalidTransitionError(
                "Clearance can only be set to CLEARED or REJECTED",
                code="INVALID_CLEARANCE_STATUS",
            )
        if request.external_clearance_status != ExternalClearanceStatus.PENDING:
            raise InvalidTransitionError(
                f"Clearance for {request.id} already {request.external_clearance_status.value}",
                code="CLEARANCE_ALREADY_RECORDED",
                message="External clearance has already been recorded.",
            )

        request.external_clearance_status = status
        request.external_clearance_date = now
        if psc_reference:
            request.psc_reference = psc_reference
        if ohcs_reference:
            request.ohcs_reference = ohcs_reference
        logger.info(f"External clearance for {request.id} recorded as {status.value}")
