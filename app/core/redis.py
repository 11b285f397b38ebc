from __future__ import annotations

from redis.asyncio import Redis

from app.core.config import get_settings

_redis_client: Redis | None = None


def get_redis() -> Redis:
    global _redis_client

    if _redis_client is None:
        _redis_client = Redis.from_url(
            get_settings().redis_url,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            health_check_interval=30,
        )
    return _redis_client


async def close_redis() -> None:
    global _redis_client

    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
