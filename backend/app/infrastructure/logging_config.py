"""
JSON logging for the API process.

One JSON object per line on stdout. Anything passed through ``extra=`` is
copied into the object, and the current request's trace id is attached
automatically while TraceIDMiddleware has it set.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

trace_id_context: ContextVar[Optional[str]] = ContextVar("trace_id", default=None)

# Attributes every LogRecord carries; the rest came from extra=
_BUILTIN_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}

# Libraries whose INFO output duplicates our request log
_QUIETED_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "httpx")


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (key, value) for key, value in vars(record).items() if key not in _BUILTIN_ATTRS
        )

        trace_id = trace_id_context.get()
        if trace_id:
            entry["trace_id"] = trace_id

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        # default=str renders Decimal amounts and datetimes
        return json.dumps(entry, default=str)


def setup_logging(log_level: str = "INFO") -> None:
    """Install the JSON handler on the root logger. Safe to call more than once."""
    root = logging.getLogger()
    level = logging.getLevelName(log_level.upper())
    root.setLevel(level if isinstance(level, int) else logging.INFO)

    for handler in list(root.handlers):
        if isinstance(handler.formatter, JSONFormatter):
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    root.addHandler(handler)

    for name in _QUIETED_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
