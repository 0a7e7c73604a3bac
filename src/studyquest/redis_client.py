"""Redis connection pool and pub/sub helpers for progression events."""

import json
from typing import Any

import redis.asyncio as redis

ACHIEVEMENT_UNLOCKED_CHANNEL = "pubsub:achievement_unlocked"
LEVEL_UP_CHANNEL = "pubsub:level_up"

_pool: redis.Redis | None = None


async def init_redis(url: str) -> None:
    """Initialize the Redis connection pool."""
    global _pool  # noqa: PLW0603
    _pool = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=50,
    )


async def close_redis() -> None:
    global _pool  # noqa: PLW0603
    if _pool:
        await _pool.aclose()
        _pool = None


def get_redis_or_none() -> redis.Redis | None:
    """Redis client if configured. Callers skip event publishing on None."""
    return _pool


async def publish_event(client: Any, channel: str, payload: dict[str, Any]) -> None:  # noqa: ANN401
    """Publish a JSON payload on a pub/sub channel."""
    await client.publish(channel, json.dumps(payload))
