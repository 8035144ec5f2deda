"""
Per-client rate limiting for the certification API.

Progression requests (POST) get a tighter budget than reads; repeated
level-skip probing is the abuse this is meant to slow down. Limits are per
process: run behind a shared limiter when deploying more than one worker.
"""

import time
from collections import deque
from typing import Callable, Deque, Dict, Optional

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from certgate.config import get_settings
from certgate.logging_config import get_logger
from certgate.schemas.common import ErrorResponse

logger = get_logger(__name__)

WINDOW_SECONDS = 60


def client_key(request: Request) -> str:
    """First X-Forwarded-For hop when behind a proxy, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded.split(",")[0].strip()
    if first_hop:
        return first_hop
    return request.client.host if request.client else "unknown"


class InMemoryRateLimitStore:
    """Sliding-window log: key -> timestamps of accepted requests."""

    def __init__(self):
        self._hits: Dict[str, Deque[float]] = {}

    def check_and_incr(self, key: str, limit: int, window_seconds: int) -> bool:
        """Record a hit and return True, or return False if key is at its limit."""
        now = time.monotonic()
        hits = self._hits.setdefault(key, deque())
        while hits and now - hits[0] >= window_seconds:
            hits.popleft()
        if len(hits) >= limit:
            return False
        hits.append(now)
        return True

    def cleanup_old(self, max_age_seconds: int) -> None:
        """Forget keys with no hit in the last max_age_seconds."""
        now = time.monotonic()
        for key in [k for k, hits in self._hits.items() if not hits or now - hits[-1] > max_age_seconds]:
            del self._hits[key]

    def reset(self) -> None:
        self._hits.clear()


_store: Optional[InMemoryRateLimitStore] = None


def get_store() -> InMemoryRateLimitStore:
    global _store
    if _store is None:
        _store = InMemoryRateLimitStore()
    return _store


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Two budgets per client under the API prefix:
    - write: POST, rate_limit_write_per_minute
    - api: all other methods, rate_limit_api_per_minute
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        settings = get_settings()
        if not settings.rate_limit_enabled or not request.url.path.startswith(settings.api_v1_prefix):
            return await call_next(request)

        if request.method == "POST":
            scope, limit = "write", settings.rate_limit_write_per_minute
        else:
            scope, limit = "api", settings.rate_limit_api_per_minute

        store = get_store()
        store.cleanup_old(max_age_seconds=WINDOW_SECONDS * 2)
        client = client_key(request)
        if store.check_and_incr(f"{scope}:{client}", limit, WINDOW_SECONDS):
            return await call_next(request)

        logger.warning("Rate limit exceeded", extra={"scope": scope, "client": client})
        body = ErrorResponse(
            detail="Too many requests. Please try again later.",
            code="RATE_LIMITED",
            request_id=getattr(request.state, "request_id", None),
        )
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content=body.model_dump(exclude_none=True),
            headers={"Retry-After": str(WINDOW_SECONDS)},
        )
