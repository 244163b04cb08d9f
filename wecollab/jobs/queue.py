# wecollab/jobs/queue.py
# Producer side of the arq queue used by the API process

from __future__ import annotations

from typing import Any, Mapping, Optional

from arq.connections import ArqRedis, RedisSettings, create_pool
from redis.exceptions import RedisError

from wecollab.config import settings
from wecollab.utils.logger import log_exception, log_info

# Module-level connection pool (lazy init)
_arq_pool: Optional[ArqRedis] = None


async def get_arq() -> ArqRedis:
    """Get or create shared ArqRedis connection pool."""
    global _arq_pool
    if _arq_pool is None:
        _arq_pool = await create_pool(RedisSettings.from_dsn(settings.REDIS_URL))
    return _arq_pool


async def close_arq() -> None:
    global _arq_pool
    if _arq_pool is not None:
        await _arq_pool.aclose()
        _arq_pool = None


async def enqueue_invite_notification(invite: Mapping[str, Any]) -> Optional[str]:
    """Queue the email-invite notification; a queue outage is logged, not raised."""
    try:
        arq = await get_arq()
        job = await arq.enqueue_job("notify_invite", str(invite["id"]))
    except (RedisError, OSError) as e:
        log_exception(e, f"enqueue notify_invite {invite['id']}")
        return None
    job_id = job.job_id if job else None
    log_info(f"Queued notify_invite for invite {invite['id']} as {job_id}")
    return job_id
