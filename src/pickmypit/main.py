"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from pickmypit.addresses.router import router as addresses_router
from pickmypit.admin.router import router as admin_router
from pickmypit.auth.router import router as auth_router
from pickmypit.blogs.router import router as blogs_router
from pickmypit.config import Settings, get_settings
from pickmypit.database import Database
from pickmypit.health.router import router as health_router
from pickmypit.middleware import setup_middleware
from pickmypit.posts.router import router as posts_router
from pickmypit.redis_client import close_redis, create_redis
from pickmypit.taxonomy.router import breeds_router, species_router
from pickmypit.users.router import router as users_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings: Settings = app.state.settings
    if settings.redis_url and app.state.redis is None:
        app.state.redis = create_redis(settings.redis_url)
    logger.info("app_started", environment=settings.environment, version=settings.app_version)

    yield

    await close_redis(app.state.redis)
    app.state.redis = None
    await app.state.db.dispose()
    logger.info("app_stopped")


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    ``database`` lets callers (tests, scripts) supply an engine of their own;
    otherwise one is built from ``settings.database_url``.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Pick My Pit API",
        description="Backend API for Pick My Pit, a pet adoption and sale marketplace",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.db = database or Database(settings.database_url, echo=settings.debug)
    app.state.redis = None

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(addresses_router)
    app.include_router(posts_router)
    app.include_router(species_router)
    app.include_router(breeds_router)
    app.include_router(blogs_router)
    app.include_router(admin_router)

    return app


app = create_app()
