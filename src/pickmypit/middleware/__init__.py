"""Middleware registration."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pickmypit.config import Settings
from pickmypit.middleware.error_handler import setup_error_handlers
from pickmypit.middleware.logging import setup_logging
from pickmypit.middleware.rate_limit import RateLimitMiddleware
from pickmypit.middleware.request_id import RequestContextMiddleware

EXPOSED_HEADERS = ["X-Request-Id", "X-RateLimit-Remaining", "X-RateLimit-Limit", "Retry-After"]


def allowed_origins(settings: Settings) -> list[str]:
    """Storefront origins plus the admin UI, deduplicated in order."""
    return list(dict.fromkeys([*settings.cors_origins, settings.admin_ui_url]))


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register all middleware in the correct order.

    Starlette runs middleware in reverse-add order (last added = outermost).
    CORS is added last so it also wraps 429 responses from the rate limiter;
    credentials are allowed because sessions travel in cookies.
    """
    setup_logging(settings)
    setup_error_handlers(app, debug=settings.debug)
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_window=settings.rate_limit_requests,
        auth_requests_per_window=settings.auth_rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins(settings),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-Id"],
        expose_headers=EXPOSED_HEADERS,
    )
