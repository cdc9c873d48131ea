"""
Request ID middleware for FastAPI / Starlette.

Reuses an incoming `X-Request-ID` when it looks sane, otherwise generates a
UUID4; the id is stored in the logging contextvar for the duration of the
request and echoed back on the response.
"""

import re
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from .filters import reset_request_id, set_request_id

REQUEST_ID_HEADER = "X-Request-ID"

# letters, digits, '-', '_', '.'; bounded so a header can't flood log lines
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,128}$")


def _resolve_request_id(raw: str | None) -> str:
    if raw and _VALID_REQUEST_ID.match(raw):
        return raw
    return str(uuid.uuid4())


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        rid = _resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        token = set_request_id(rid)
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = rid
            return response
        finally:
            reset_request_id(token)
