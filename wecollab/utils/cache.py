# wecollab/utils/cache.py
# JSON cache on Redis with TTL and prefix invalidation

import hashlib
import json
from typing import Any, Optional

import redis.asyncio as aioredis

from wecollab.db.redis import get_redis

DEFAULT_TTL_SECONDS = 60


class Cache:
    def __init__(self, ttl_seconds: int = DEFAULT_TTL_SECONDS, client: Optional[aioredis.Redis] = None):
        self.ttl = ttl_seconds
        self._client = client

    @property
    def client(self) -> aioredis.Redis:
        return self._client or get_redis()

    @staticmethod
    def build_key(prefix: str, payload: dict) -> str:
        raw = json.dumps(payload, sort_keys=True, default=str)
        digest = hashlib.sha256(raw.encode()).hexdigest()
        return f"{prefix}:{digest}"

    async def get_json(self, key: str) -> Optional[Any]:
        data = await self.client.get(key)
        if not data:
            return None
        return json.loads(data)

    async def set_json(self, key: str, value: Any) -> None:
        await self.client.setex(key, self.ttl, json.dumps(value, default=str))

    async def invalidate_prefix(self, prefix: str) -> int:
        """Delete every key under prefix using SCAN (never KEYS)."""
        cursor = 0
        total = 0
        pattern = f"{prefix}:*"
        while True:
            cursor, keys = await self.client.scan(cursor=cursor, match=pattern, count=500)
            if keys:
                total += len(keys)
                await self.client.delete(*keys)
            if cursor == 0:
                break
        return total
