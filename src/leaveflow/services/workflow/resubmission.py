"""Bounded resubmission of rejected leave requests."""

from leaveflow.core.exceptions import (
    ApproverNotAuthorizedError,
    InvalidTransitionError,
    ResubmissionLimitExceededError,
)
from leaveflow.services.workflow.schemas import (
    LeaveRequest,
    LeaveStatus,
    LeaveSubmission,
    StepStatus,
)


class ResubmissionController:
    """Checks resubmission preconditions and carries the original payload forward."""

    def __init__(self, max_resubmissions: int = 3):
        self.max_resubmissions = max_resubmissions

    def check(self, original: LeaveRequest, requester_id: str) -> None:
        """Raise unless ``requester_id`` may resubmit ``original``.

        The limit is checked first so an exhausted request always reports
        the limit, whatever its status or owner.
        """
        if original.resubmission_count >= self.max_resubmissions:
            raise ResubmissionLimitExceededError(
                f"Request {original.id} already resubmitted {original.resubmission_count} times",
                message=(
                    f"Maximum resubmission attempts ({self.max_resubmissions}) reached. "
                    "Please create a new leave request."
                ),
            )
        if original.status != LeaveStatus.REJECTED:
            raise InvalidTransitionError(
                f"Request {original.id} is {original.status.value}",
                code="NOT_REJECTED",
                message="Only rejected leave requests can be resubmitted.",
            )
        if original.staff_id != requester_id:
            raise ApproverNotAuthorizedError(
                f"{requester_id} does not own {original.id}",
                code="NOT_REQUEST_OWNER",
                message="You can only resubmit your own leave requests.",
            )

    def build_submission(self, original: LeaveRequest) -> LeaveSubmission:
        return LeaveSubmission(
            staff_id=original.staff_id,
            leave_type=original.leave_type,
            start_date=original.start_date,
            end_date=original.end_date,
            day_count=original.day_count,
            reason=original.reason,
        )

    @staticmethod
    def rejection_comments(original: LeaveRequest) -> list[str]:
        return [
            s.comments
            for s in original.steps
            if s.status == StepStatus.REJECTED and s.comments
        ]
