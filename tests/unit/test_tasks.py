"""Tests for the periodic maintenance tasks."""

import asyncio
from datetime import timedelta
from unittest.mock import patch

from leaveflow.services.delegation import DelegationService
from leaveflow.services.workflow import ApprovalDelegation
from leaveflow.tasks.escalation_tasks import expire_delegations, sweep_escalations

from workflow_support import (
    TODAY,
    FrozenClock,
    RecordingAuditor,
    build_engine,
    build_org_store,
    submission,
)


class TestMaintenanceTasks:
    """Tests for the escalation sweep and delegation expiry tasks."""

    def setup_method(self):
        """Set up test fixtures."""
        self.loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self.loop)
        self.store = build_org_store()
        self.clock = FrozenClock()
        self.engine = build_engine(self.store, clock=self.clock)

    def teardown_method(self):
        asyncio.set_event_loop(None)
        self.loop.close()

    def test_sweep_escalations(self):
        """Test the sweep task reports escalated requests."""
        result = self.loop.run_until_complete(self.engine.submit(submission()))
        self.clock.advance(days=15)

        with patch(
            "leaveflow.tasks.escalation_tasks.get_leave_approval_engine",
            return_value=self.engine,
        ):
            summary = sweep_escalations.apply().get()

        assert summary == {
            "status": "success",
            "escalated": 1,
            "auto_approved": 0,
            "requests": [result.request_id],
        }

    def test_expire_delegations(self):
        self.store.add_delegation(
            ApprovalDelegation(
                id="DLG-OLD",
                delegator_id="UH1",
                delegatee_id="DEP1",
                start_date=TODAY - timedelta(days=10),
                end_date=TODAY - timedelta(days=1),
            )
        )
        service = DelegationService(self.store, RecordingAuditor(), clock=self.clock)

        with patch(
            "leaveflow.tasks.escalation_tasks.get_delegation_service", return_value=service
        ):
            summary = expire_delegations.apply().get()

        assert summary == {"status": "success", "expired": 1, "delegations": ["DLG-OLD"]}
