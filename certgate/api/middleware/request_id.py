"""
Request correlation middleware.

The request id ends up in three places: the X-Request-ID response header,
every log line emitted while serving the request, and the request_id column
of any audit entry the request produces.
"""

import re
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from certgate.logging_config import get_logger, request_id_var

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
# Same width as validation_audit_entries.request_id
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:\-]{1,64}$")
SLOW_REQUEST_MS = 1000


def resolve_request_id(incoming: str | None) -> str:
    """Caller-supplied id if it is safe to store, otherwise a fresh uuid4."""
    if incoming and _VALID_REQUEST_ID.match(incoming):
        return incoming
    return str(uuid.uuid4())


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind a request id for the lifetime of each request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            elapsed_ms = (time.perf_counter() - started) * 1000
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = request_id
        if elapsed_ms > SLOW_REQUEST_MS:
            logger.warning(
                "Slow %s %s",
                request.method,
                request.url.path,
                extra={"status_code": response.status_code, "elapsed_ms": round(elapsed_ms, 1)},
            )
        return response
