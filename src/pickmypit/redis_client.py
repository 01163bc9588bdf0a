"""Redis client used for rate-limit counters."""

import redis.asyncio as redis
from starlette.requests import Request


def create_redis(url: str) -> redis.Redis:
    """Build a Redis client backed by a connection pool (connects lazily)."""
    return redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=50,
    )


async def close_redis(client: redis.Redis | None) -> None:
    """Close the Redis client if one was created."""
    if client is not None:
        await client.aclose()


def get_redis(request: Request) -> redis.Redis:
    """Return the application's Redis client.

    Raises RuntimeError when the application runs without Redis.
    """
    client: redis.Redis | None = getattr(request.app.state, "redis", None)
    if client is None:
        msg = "Redis not initialized."
        raise RuntimeError(msg)
    return client
