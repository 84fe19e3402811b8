"""Tests for logging setup."""

import json
import logging

from pythonjsonlogger.json import JsonFormatter

from leaveflow.core.config import Settings
from leaveflow.core.logging import setup_logging


class TestSetupLogging:
    """Tests for setup_logging."""

    def setup_method(self):
        """Set up test fixtures."""
        root = logging.getLogger()
        self.saved = (list(root.handlers), root.level)

    def teardown_method(self):
        root = logging.getLogger()
        root.handlers, level = self.saved[0], self.saved[1]
        root.setLevel(level)

    def test_json_format(self):
        """Test JSON output with renamed fields."""
        setup_logging(Settings(log_format="json", log_level="debug"))

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        formatter = root.handlers[0].formatter
        assert isinstance(formatter, JsonFormatter)

        record = logging.LogRecord("leaveflow.test", logging.INFO, __file__, 1, "hello", None, None)
        output = json.loads(formatter.format(record))
        assert output["message"] == "hello"
        assert output["level"] == "INFO"
        assert "timestamp" in output

    def test_console_format(self):
        setup_logging(Settings(log_format="console", log_level="WARNING"))

        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert not isinstance(root.handlers[0].formatter, JsonFormatter)
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
