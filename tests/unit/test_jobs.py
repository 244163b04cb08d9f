# tests/unit/test_jobs.py
# Queue producer and worker wiring (no Redis needed)

import uuid
from types import SimpleNamespace

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from wecollab.jobs import queue


class RecordingPool:
    def __init__(self):
        self.jobs = []

    async def enqueue_job(self, name, *args):
        self.jobs.append((name, args))
        return SimpleNamespace(job_id=f"job-{len(self.jobs)}")


@pytest.mark.asyncio
async def test_enqueue_invite_notification(monkeypatch):
    pool = RecordingPool()

    async def fake_get_arq():
        return pool

    monkeypatch.setattr(queue, "get_arq", fake_get_arq)
    invite_id = uuid.uuid4()

    assert await queue.enqueue_invite_notification({"id": invite_id}) == "job-1"
    assert pool.jobs == [("notify_invite", (str(invite_id),))]


@pytest.mark.asyncio
async def test_enqueue_survives_queue_outage(monkeypatch):
    async def broken_get_arq():
        raise RedisConnectionError("down")

    monkeypatch.setattr(queue, "get_arq", broken_get_arq)
    assert await queue.enqueue_invite_notification({"id": uuid.uuid4()}) is None


def test_worker_registers_jobs():
    from wecollab.jobs.worker import WorkerSettings, expire_invites, notify_invite

    assert notify_invite in WorkerSettings.functions
    assert [job.coroutine for job in WorkerSettings.cron_jobs] == [expire_invites]
