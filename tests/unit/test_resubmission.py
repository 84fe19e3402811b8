"""Tests for the resubmission controller."""

import pytest

from leaveflow.core.exceptions import (
    ApproverNotAuthorizedError,
    InvalidTransitionError,
    ResubmissionLimitExceededError,
)
from leaveflow.services.workflow import LeaveStatus, ResubmissionController, StepStatus

from workflow_support import make_request


def rejected_request(**fields):
    request = make_request(**fields)
    request.steps[0].status = StepStatus.REJECTED
    request.steps[0].comments = "Clashes with the audit"
    request.status = LeaveStatus.REJECTED
    return request


class TestResubmissionController:
    """Tests for ResubmissionController."""

    def setup_method(self):
        """Set up test fixtures."""
        self.controller = ResubmissionController(max_resubmissions=3)

    def test_rejected_request_can_be_resubmitted(self):
        self.controller.check(rejected_request(resubmission_count=2), "S001")

    def test_only_rejected_requests(self):
        """Test pending requests cannot be resubmitted."""
        with pytest.raises(InvalidTransitionError) as exc:
            self.controller.check(make_request(), "S001")
        assert exc.value.code == "NOT_REJECTED"

    def test_only_the_owner(self):
        with pytest.raises(ApproverNotAuthorizedError) as exc:
            self.controller.check(rejected_request(), "S002")
        assert exc.value.code == "NOT_REQUEST_OWNER"

    def test_limit(self):
        """Test the third resubmission is the last one allowed."""
        with pytest.raises(ResubmissionLimitExceededError) as exc:
            self.controller.check(rejected_request(resubmission_count=3), "S001")

        assert exc.value.code == "RESUBMISSION_LIMIT_EXCEEDED"
        assert exc.value.message == (
            "Maximum resubmission attempts (3) reached. Please create a new leave request."
        )

    def test_limit_reported_before_other_checks(self):
        """Test an exhausted request reports the limit whatever its status or owner."""
        with pytest.raises(ResubmissionLimitExceededError):
            self.controller.check(make_request(resubmission_count=3), "S001")
        with pytest.raises(ResubmissionLimitExceededError):
            self.controller.check(rejected_request(resubmission_count=3), "S002")

    def test_configurable_limit(self):
        controller = ResubmissionController(max_resubmissions=1)

        with pytest.raises(ResubmissionLimitExceededError):
            controller.check(rejected_request(resubmission_count=1), "S001")

    def test_build_submission_copies_payload(self):
        """Test the new submission carries the original leave details."""
        original = rejected_request(reason="Wedding")

        submission = self.controller.build_submission(original)

        assert submission.staff_id == original.staff_id
        assert submission.leave_type == original.leave_type
        assert submission.start_date == original.start_date
        assert submission.end_date == original.end_date
        assert submission.day_count == original.day_count
        assert submission.reason == "Wedding"
        assert submission.idempotency_key is None

    def test_rejection_comments(self):
        assert ResubmissionController.rejection_comments(rejected_request()) == [
            "Clashes with the audit"
        ]
