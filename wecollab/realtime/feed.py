# wecollab/realtime/feed.py
# Row-change notifications over Redis pub/sub.
# Services publish after commit; the websocket router relays to subscribers.

from __future__ import annotations

import json
from typing import Any, AsyncIterator, Mapping, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from wecollab.db.redis import get_redis
from wecollab.utils.logger import log_exception, log_info
from wecollab.utils.timers import utc_now

CHANNEL_PREFIX = "realtime"

INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"


def timer_channel(widget_id) -> str:
    return f"timer_states:{widget_id}"


def chat_channel(dashboard_id) -> str:
    return f"chat:{dashboard_id}"


def dashboard_channel(dashboard_id) -> str:
    return f"dashboard:{dashboard_id}"


def invites_channel(email: str) -> str:
    return f"invites:{email.strip().lower()}"


def build_event(event: str, table: str, record: Mapping[str, Any]) -> dict:
    return {
        "event": event,
        "table": table,
        "record": dict(record),
        "at": utc_now().isoformat(),
    }


class RealtimeFeed:
    """Publishes change events; broker failures never fail the caller's mutation."""

    def __init__(self, client: Optional[aioredis.Redis] = None):
        self._client = client

    @property
    def client(self) -> aioredis.Redis:
        return self._client or get_redis()

    async def publish(self, channel: str, event: str, table: str, record: Mapping[str, Any]) -> bool:
        payload = json.dumps(build_event(event, table, record), default=str)
        try:
            receivers = await self.client.publish(f"{CHANNEL_PREFIX}:{channel}", payload)
        except (RedisError, OSError) as e:
            log_exception(e, f"RealtimeFeed.publish {channel}")
            return False
        log_info(f"realtime {event} {table} -> {channel} ({receivers} receivers)")
        return True

    async def listen(self, channel: str) -> AsyncIterator[str]:
        """Yield raw JSON payloads published on channel until cancelled."""
        pubsub = self.client.pubsub()
        await pubsub.subscribe(f"{CHANNEL_PREFIX}:{channel}")
        try:
            async for message in pubsub.listen():
                if message.get("type") == "message":
                    yield message["data"]
        finally:
            await pubsub.unsubscribe()
            await pubsub.aclose()


def get_feed() -> RealtimeFeed:
    return RealtimeFeed()
