# tests/integration/test_containers_smoke.py
# Smoke tests: the container-backed Postgres is migrated and Redis answers.

import asyncpg
import pytest  # type: ignore[import-not-found]
from sqlalchemy import text

from wecollab.db.base import get_session

pytestmark = pytest.mark.integration


@pytest.mark.asyncio
async def test_postgres_container_connect(postgres_url: str):
    conn = await asyncpg.connect(dsn=postgres_url)
    try:
        assert await conn.fetchval("SELECT 1") == 1
    finally:
        await conn.close()


@pytest.mark.asyncio
async def test_schema_is_migrated(database):
    async with get_session() as session:
        result = await session.execute(text(
            "SELECT table_name FROM information_schema.tables WHERE table_schema = 'public'"
        ))
        tables = {row[0] for row in result}
    assert {"profiles", "dashboards", "dashboard_members", "widgets", "dashboard_invites",
            "timer_states", "timer_sessions", "chat_messages", "alembic_version"} <= tables


@pytest.mark.asyncio
async def test_redis_container_connect(redis_client):
    assert await redis_client.ping() is True
