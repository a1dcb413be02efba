"""Redis connection pool."""

import redis.asyncio as redis
from fastapi import Request


def create_redis(url: str, max_connections: int = 50) -> redis.Redis:
    """Create a Redis client backed by a connection pool."""
    return redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=max_connections,
    )


async def close_redis(client: redis.Redis | None) -> None:
    """Close the Redis connection pool."""
    if client is not None:
        await client.aclose()


def get_redis(request: Request) -> redis.Redis | None:
    """Get the app's Redis client, or None when Redis is not configured (FastAPI dependency)."""
    return getattr(request.app.state, "redis", None)
