"""
Log formatters.

- JsonFormatter: one JSON object per line for log collectors. Carries
  service/env/version/request_id plus whatever the call site passed in `extra`
  (`operation`, `school_id`, `duration_ms`, ...).
- ColorFormatter: compact ANSI-coloured lines for a developer terminal.

Both are wired by `builder.make_dict_config`.
"""

import json
import logging
from logging import LogRecord
from typing import Any

from appletree.utils.project import get_project_version

PROJECT_VERSION = get_project_version()

# Attributes every LogRecord has; anything else on the record came from `extra=`.
_STANDARD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime", "request_id", "color_message"}


class JsonFormatter(logging.Formatter):
    """
    Structured JSON formatter.

    Non-serializable extras are rendered with `str()`; `format` never raises.
    """

    def __init__(self, *, env: str | None = None, service: str = "appletree", datefmt: str | None = None):
        super().__init__(datefmt=datefmt)
        self.env = env
        self.service = service

    def format(self, record: LogRecord) -> str:
        log_record: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "pathname": record.pathname,
            "lineno": record.lineno,
            "request_id": getattr(record, "request_id", "-"),
            "service": self.service,
            "env": self.env,
            "version": PROJECT_VERSION,
        }

        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            log_record["stack_info"] = self.formatStack(record.stack_info)

        for key, value in record.__dict__.items():
            if key in _STANDARD_ATTRS or key in log_record or key.startswith("_"):
                continue
            try:
                json.dumps(value)
                log_record[key] = value
            except (TypeError, ValueError):
                log_record[key] = str(value)

        return json.dumps(log_record, ensure_ascii=False, default=str)


class ColorFormatter(logging.Formatter):
    """TIMESTAMP | LEVEL | LOGGER | REQUEST_ID | MESSAGE, with the level coloured."""

    COLOR_CODES = {
        "DEBUG": "\033[36m",      # cyan
        "INFO": "\033[32m",       # green
        "WARNING": "\033[33m",    # yellow
        "ERROR": "\033[31m",      # red
        "CRITICAL": "\033[1;41m", # bold on red
        "RESET": "\033[0m",
    }

    def format(self, record: LogRecord) -> str:
        color = self.COLOR_CODES.get(record.levelname, "")
        reset = self.COLOR_CODES["RESET"]

        line = (
            f"{self.formatTime(record, self.datefmt)} | "
            f"{color}{record.levelname:<8}{reset} | "
            f"{record.name:<32} | "
            f"{getattr(record, 'request_id', '-'):<10} | "
            f"{record.getMessage()}"
        )

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)

        return line
