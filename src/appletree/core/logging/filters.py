"""
Logging filters.

`RequestIdFilter` stamps every record with the current request id, read from a
contextvar so the value follows a request across awaits. `RedactFilter` masks
sensitive attributes passed through `extra=`.

Usage:
    token = set_request_id("4f1c...")
    try:
        ...
    finally:
        reset_request_id(token)
"""

import contextvars
import logging
from logging import LogRecord

_request_id_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)


def set_request_id(request_id: str | None) -> contextvars.Token:
    """Set the request id for the current context; keep the token for `reset_request_id`."""
    return _request_id_ctx.set(request_id)


def reset_request_id(token: contextvars.Token) -> None:
    _request_id_ctx.reset(token)


def get_request_id() -> str | None:
    return _request_id_ctx.get()


class RequestIdFilter(logging.Filter):
    """
    Guarantees `record.request_id` exists so `%(request_id)s` never KeyErrors.

    Precedence: an explicit `extra={"request_id": ...}`, then the contextvar,
    then the sentinel "-". Never drops a record.
    """

    def filter(self, record: LogRecord) -> bool:
        record.request_id = (
            getattr(record, "request_id", None) or get_request_id() or "-"
        )
        return True


class RedactFilter(logging.Filter):
    # school contact details are not secrets, but credentials can still end up in extras
    SENSITIVE = frozenset({
        "password", "secret", "token", "access_token", "refresh_token",
        "authorization", "database_url", "postgres_password",
    })
    MASK = "***REDACTED***"

    def filter(self, record: LogRecord) -> bool:
        for key in list(record.__dict__):
            if key.lower() in self.SENSITIVE:
                record.__dict__[key] = self.MASK
        return True
