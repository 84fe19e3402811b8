"""Test cases for configuration management."""

import json
import os
from unittest.mock import patch

from leaveflow.core.config import Settings
from leaveflow.services.workflow import ApproverRole, LeaveApprovalEngine, OrgRoutingConfig

from workflow_support import RecordingAuditor, RecordingNotifier, StubCompliance, build_org_store


class TestSettings:
    """Test Settings class configuration loading."""

    def test_settings_loads_defaults(self):
        """Test that settings loads with default values."""
        settings = Settings()

        assert settings.app_name == "leaveflow"
        assert settings.api_v1_prefix == "/api/v1"
        assert settings.max_resubmissions == 3
        assert settings.rejection_comment_min_length == 10
        assert settings.default_escalation_working_days == 10
        assert settings.default_escalation_role == "HR_DIRECTOR"
        assert "STUDY_WITH_PAY" in settings.external_clearance_leave_types

    def test_settings_environment_override(self):
        """Test that environment variables override defaults."""
        with patch.dict(
            os.environ,
            {"MAX_RESUBMISSIONS": "5", "HR_VALIDATION_EXEMPT_GRADES": '["GRADE_1", "GRADE_2"]'},
        ):
            settings = Settings()

        assert settings.max_resubmissions == 5
        assert settings.hr_validation_exempt_grades == ["GRADE_1", "GRADE_2"]

    def test_database_url_construction(self):
        """Test database URL is properly constructed."""
        settings = Settings(
            db_host="db", db_port=5433, db_user="leave", db_password="secret", db_name="hr"
        )

        assert settings.database_url == "postgresql+asyncpg://leave:secret@db:5433/hr"

    def test_redis_url_construction(self):
        settings = Settings(redis_host="cache", redis_port=6380, redis_db=2, redis_password="pw")

        assert settings.redis_url == "redis://:pw@cache:6380/2"


class TestRoutingFile:
    """Test loading unit routing from the configured file."""

    def test_engine_loads_routing_file(self, tmp_path):
        """Test the engine reads unit routing from org_routing_file."""
        path = tmp_path / "routing.json"
        path.write_text(
            json.dumps({"units": [{"unit": "Legal", "independent": True}]}), encoding="utf-8"
        )

        routing = OrgRoutingConfig.from_file(path)
        assert routing.get("Legal").independent is True
        assert routing.get("Accounts") is None

        engine = LeaveApprovalEngine.from_settings(
            Settings(org_routing_file=str(path), default_escalation_role="CHIEF_DIRECTOR"),
            build_org_store(),
            notifier=RecordingNotifier(),
            auditor=RecordingAuditor(),
            compliance=StubCompliance(),
        )
        assert engine._default_escalation_role == ApproverRole.CHIEF_DIRECTOR
