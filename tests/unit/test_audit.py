"""Tests for the in-memory audit logger."""

import pytest

from leaveflow.services.audit import AuditAction, AuditLogger


class TestAuditLogger:
    """Tests for AuditLogger."""

    def setup_method(self):
        """Set up test fixtures."""
        self.audit = AuditLogger(max_entries=3)

    @pytest.mark.asyncio
    async def test_record_and_query(self):
        await self.audit.record(AuditAction.LEAVE_SUBMITTED, "S001", "LR-1", {"day_count": 5})
        await self.audit.record(AuditAction.LEAVE_APPROVED, "SUP1", "LR-1", {"level": 1})
        await self.audit.record(AuditAction.LEAVE_SUBMITTED, "S002", "LR-2")

        entries = self.audit.get_entries(subject_id="LR-1")
        assert [e.action for e in entries] == ["leave.submitted", "leave.step_approved"]
        assert entries[1].details == {"level": 1}

        submitted = self.audit.get_entries(action=AuditAction.LEAVE_SUBMITTED)
        assert [e.subject_id for e in submitted] == ["LR-1", "LR-2"]
        assert submitted[1].details == {}

    @pytest.mark.asyncio
    async def test_bounded_history(self):
        """Test only the newest entries are kept."""
        for i in range(5):
            await self.audit.record(AuditAction.DELEGATION_CREATED, "UH1", f"DLG-{i}")

        assert [e.subject_id for e in self.audit.get_entries()] == ["DLG-2", "DLG-3", "DLG-4"]
