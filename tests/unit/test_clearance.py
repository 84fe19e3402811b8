"""Tests for the external clearance gate."""

import pytest

from leaveflow.core.exceptions import InvalidTransitionError
from leaveflow.services.workflow import (
    ExternalClearanceGate,
    ExternalClearanceStatus,
    StepStatus,
)

from workflow_support import NOW, make_request


class TestExternalClearanceGate:
    """Tests for ExternalClearanceGate."""

    def setup_method(self):
        """Set up test fixtures."""
        self.gate = ExternalClearanceGate(["STUDY", "Study with pay", "secondment"])
        self.request = make_request(leave_type="STUDY_WITH_PAY")
        self.gate.initialise(self.request)

    def approve_all(self):
        for step in self.request.steps:
            step.status = StepStatus.APPROVED

    def test_requires_clearance_normalises(self):
        """Test leave type labels are compared in normalised form."""
        assert self.gate.requires_clearance("study with pay")
        assert self.gate.requires_clearance("SECONDMENT")
        assert not self.gate.requires_clearance("ANNUAL")

    def test_initialise(self):
        assert self.request.requires_external_clearance is True
        assert self.request.external_clearance_status == ExternalClearanceStatus.PENDING

        annual = make_request()
        self.gate.initialise(annual)
        assert annual.requires_external_clearance is False
        assert annual.external_clearance_status is None

    def test_blocking_only_after_internal_approval(self):
        """Test the gate blocks only once every internal level is approved."""
        assert not self.gate.is_blocking(self.request)
        assert self.gate.blocking_error(self.request) is None

        self.approve_all()

        assert self.gate.is_blocking(self.request)
        error = self.gate.blocking_error(self.request)
        assert error.code == "EXTERNAL_CLEARANCE_REQUIRED"
        assert error.status_code == 202

    def test_record_clearance(self):
        """Test recording clearance with references."""
        self.gate.record(
            self.request,
            ExternalClearanceStatus.CLEARED,
            now=NOW,
            psc_reference="PSC/2026/114",
            ohcs_reference="OHCS/88",
        )

        assert self.request.external_clearance_status == ExternalClearanceStatus.CLEARED
        assert self.request.external_clearance_date == NOW
        assert self.request.psc_reference == "PSC/2026/114"
        assert self.request.ohcs_reference == "OHCS/88"

    def test_record_on_type_without_clearance(self):
        annual = make_request()
        self.gate.initialise(annual)

        with pytest.raises(InvalidTransitionError) as exc:
            self.gate.record(annual, ExternalClearanceStatus.CLEARED, now=NOW)
        assert exc.value.code == "CLEARANCE_NOT_REQUIRED"

    def test_record_pending_is_refused(self):
        with pytest.raises(InvalidTransitionError) as exc:
            self.gate.record(self.request, ExternalClearanceStatus.PENDING, now=NOW)
        assert exc.value.code == "INVALID_CLEARANCE_STATUS"

    def test_record_twice_is_refused(self):
        """Test clearance can only be recorded once."""
        self.gate.record(self.request, ExternalClearanceStatus.REJECTED, now=NOW)

        with pytest.raises(InvalidTransitionError) as exc:
            self.gate.record(self.request, ExternalClearanceStatus.CLEARED, now=NOW)
        assert exc.value.code == "CLEARANCE_ALREADY_RECORDED"
