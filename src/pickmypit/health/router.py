"""Health, readiness, and version endpoints."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError

from pickmypit.config import Settings
from pickmypit.database import get_database

router = APIRouter()

SERVICE_NAME = "pickmypit-api"


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe: returns 200 if the process is alive."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(request: Request) -> JSONResponse:
    """Readiness probe: 200 when the database (and Redis, if configured) answer, else 503."""
    checks: dict[str, str] = {}

    try:
        await get_database(request).ping()
        checks["database"] = "ok"
    except (SQLAlchemyError, OSError) as exc:
        checks["database"] = f"error: {exc}"

    redis = getattr(request.app.state, "redis", None)
    if redis is None:
        checks["redis"] = "disabled"
    else:
        try:
            await redis.ping()
            checks["redis"] = "ok"
        except (RedisError, OSError) as exc:
            checks["redis"] = f"error: {exc}"

    ready = all(v in ("ok", "disabled") for v in checks.values())
    return JSONResponse(
        status_code=200 if ready else 503,
        content={"status": "ready" if ready else "degraded", "checks": checks},
    )


@router.get("/version")
async def version(request: Request) -> dict[str, str]:
    settings: Settings = request.app.state.settings
    return {
        "service": SERVICE_NAME,
        "version": settings.app_version,
        "environment": settings.environment,
    }
