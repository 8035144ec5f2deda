"""HTTP middleware."""

from certgate.api.middleware.rate_limit import RateLimitMiddleware
from certgate.api.middleware.request_id import RequestIdMiddleware

__all__ = ["RateLimitMiddleware", "RequestIdMiddleware"]
