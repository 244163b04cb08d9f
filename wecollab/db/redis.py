# wecollab/db/redis.py
# Shared async Redis client for cache, realtime feed and health checks

from typing import Optional

import redis.asyncio as aioredis

from wecollab.config import settings

_client: Optional[aioredis.Redis] = None


def get_redis() -> aioredis.Redis:
    """Get or create the process-wide Redis client (connection pool inside)."""
    global _client
    if _client is None:
        _client = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    return _client


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
