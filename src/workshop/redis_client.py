"""Redis client shared by the rate limiter and the readiness probe."""

import redis.asyncio as redis

_client: redis.Redis | None = None


async def init_redis(url: str, max_connections: int = 20) -> None:
    """Create the pooled client. Connections open lazily on first command."""
    global _client  # noqa: PLW0603
    _client = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=max_connections,
    )


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None


def get_redis() -> redis.Redis:
    """Return the client; RuntimeError when Redis is not configured."""
    if _client is None:
        msg = "Redis not initialized. Set WORKSHOP_REDIS_URL."
        raise RuntimeError(msg)
    return _client
