"""Logging configuration.

JSON output through python-json-logger for deployed environments, a plain
console format for local work. Selected by ``Settings.log_format``.
"""

import logging
import sys

from pythonjsonlogger.json import JsonFormatter

from leaveflow.core.config import Settings, get_settings

CONSOLE_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def setup_logging(settings: Settings | None = None) -> None:
    """Configure the root logger from settings."""
    settings = settings or get_settings()

    handler = logging.StreamHandler(sys.stdout)
    if settings.log_format == "json":
        handler.setFormatter(
            JsonFormatter(
                "%(asctime)s %(name)s %(levelname)s %(message)s",
                rename_fields={"asctime": "timestamp", "levelname": "level"},
            )
        )
    else:
        handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(settings.log_level.upper())

    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
