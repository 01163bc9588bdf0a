"""Redis-backed fixed window rate limiting.

Credential endpoints (login, register, Google sign-in) draw from their own,
smaller budget so password guessing is throttled well before browsing is.
"""

import time
from typing import Any

import structlog
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from pickmypit.redis_client import get_redis

logger = structlog.get_logger()

EXEMPT_PATHS = frozenset({"/health", "/ready"})
CREDENTIAL_PATHS = frozenset(
    {"/api/auth/login", "/api/auth/register", "/api/auth/google-auth", "/api/auth/admin/login"}
)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Count requests per client IP and bucket; 429 once a bucket is spent.

    Requests pass through unthrottled when the app has no Redis client
    or Redis is unreachable.
    """

    def __init__(
        self,
        app: Any,  # noqa: ANN401
        requests_per_window: int = 100,
        auth_requests_per_window: int = 10,
        window_seconds: int = 60,
    ) -> None:
        super().__init__(app)
        self.requests_per_window = requests_per_window
        self.auth_requests_per_window = auth_requests_per_window
        self.window_seconds = window_seconds

    def budget(self, path: str) -> tuple[str, int]:
        """(bucket name, requests allowed per window) for a request path."""
        if path in CREDENTIAL_PATHS:
            return "auth", self.auth_requests_per_window
        return "api", self.requests_per_window

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if request.method == "OPTIONS" or path in EXEMPT_PATHS:
            return await call_next(request)

        bucket, limit = self.budget(path)
        client_ip = request.client.host if request.client else "unknown"
        window = int(time.time()) // self.window_seconds
        rate_key = f"ratelimit:{bucket}:{client_ip}:{window}"

        try:
            redis = get_redis(request)
            pipe = redis.pipeline()
            pipe.incr(rate_key)
            pipe.expire(rate_key, self.window_seconds + 1)
            results: list[Any] = await pipe.execute()
        except RuntimeError:
            return await call_next(request)
        except RedisError as exc:
            logger.warning("rate_limit_unavailable", error=str(exc))
            return await call_next(request)

        count: int = results[0]
        headers = {"X-RateLimit-Limit": str(limit), "X-RateLimit-Remaining": str(max(0, limit - count))}
        if count > limit:
            logger.warning("rate_limited", bucket=bucket, client_ip=client_ip, count=count)
            return JSONResponse(
                status_code=429,
                content={"success": False, "message": "Too many requests. Please try again later."},
                headers={**headers, "Retry-After": str(self.window_seconds)},
            )

        response = await call_next(request)
        response.headers.update(headers)
        return response
