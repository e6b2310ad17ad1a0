"""
Logging setup.

Production writes one JSON object per line; development and tests get a
short readable line.  Permission-change events carry
``event_type="permissions_changed"`` so they can be filtered downstream.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

# ``extra={...}`` keys carried into the output
LOG_FIELDS = (
    "event_type",
    "request_id",
    "user_id",
    "congress_id",
    "method",
    "path",
    "status",
    "duration_ms",
    "remote_addr",
)


def _extras(record: logging.LogRecord) -> dict:
    return {k: getattr(record, k) for k in LOG_FIELDS if getattr(record, k, None) is not None}


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_extras(record),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ReadableFormatter(logging.Formatter):
    """``12:00:01 INFO  advocacy.services.admin_actions <permissions_changed> message``"""

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        event = getattr(record, "event_type", None)
        tag = f" <{event}>" if event else ""
        line = f"{ts} {record.levelname:<5} {record.name}{tag} {record.getMessage()}"
        duration = getattr(record, "duration_ms", None)
        if duration is not None:
            line += f" [{duration:.0f}ms]"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(app):
    """Install one stderr handler on the root logger; JSON unless DEBUG or TESTING."""
    readable = app.config.get("DEBUG", False) or app.config.get("TESTING", False)
    level_name = (app.config.get("LOG_LEVEL") or os.getenv("LOG_LEVEL")
                  or ("DEBUG" if readable else "INFO"))
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(ReadableFormatter() if readable else JSONFormatter())

    root = logging.getLogger()
    root.handlers.clear()  # app factory runs more than once under tests
    root.addHandler(handler)
    root.setLevel(level)
    for name in ("werkzeug", "sqlalchemy.engine"):
        logging.getLogger(name).setLevel(logging.WARNING)
    app.logger.setLevel(level)
