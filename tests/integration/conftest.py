# tests/integration/conftest.py
# Pytest fixtures to start PostgreSQL & Redis via TestContainers.
# - Rebinds the application engine to the container and migrates it with Alembic.
# - Cleans up containers after the test session.

import os
import pathlib
from typing import Iterator

import pytest  # type: ignore[import-not-found]
import pytest_asyncio
import redis.asyncio as aioredis
from alembic import command as alembic_command  # type: ignore
from alembic.config import Config as AlembicConfig  # type: ignore
from docker.errors import DockerException  # type: ignore
from sqlalchemy import text
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from testcontainers.postgres import PostgresContainer  # type: ignore
from testcontainers.redis import RedisContainer  # type: ignore

from wecollab.db import base

REPO_ROOT = pathlib.Path(__file__).resolve().parents[2]

TABLES = (
    "chat_messages", "timer_sessions", "timer_states", "dashboard_invites",
    "widgets", "dashboard_members", "dashboards", "profiles",
)


@pytest.fixture(scope="session")
def postgres_url() -> Iterator[str]:
    try:
        # driver=None gives a plain postgresql:// URL
        with PostgresContainer("postgres:16-alpine", driver=None) as pg:
            yield pg.get_connection_url()
    except DockerException as e:
        pytest.skip(f"Docker unavailable: {e}")


@pytest.fixture(scope="session")
def redis_url() -> Iterator[str]:
    try:
        with RedisContainer("redis:7-alpine") as rc:
            host = rc.get_container_host_ip()
            port = rc.get_exposed_port(6379)
            yield f"redis://{host}:{port}/0"
    except DockerException as e:
        pytest.skip(f"Docker unavailable: {e}")


@pytest.fixture(scope="session", autouse=True)
def database(postgres_url: str) -> Iterator[str]:
    """Point the application at the container and migrate it to head."""
    old_db = os.environ.get("DB_URL")
    os.environ["DB_URL"] = postgres_url

    # NullPool: every test runs on its own event loop, so connections are never reused
    url = base._to_asyncpg_url(postgres_url)
    original = (base.ASYNC_DATABASE_URL, base.async_engine, base.AsyncSessionFactory)
    base.ASYNC_DATABASE_URL = url
    base.async_engine = create_async_engine(url, poolclass=NullPool)
    base.AsyncSessionFactory = async_sessionmaker(bind=base.async_engine, expire_on_commit=False, autoflush=False)

    cfg = AlembicConfig(str(REPO_ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(REPO_ROOT / "alembic"))
    alembic_command.upgrade(cfg, "head")
    yield url

    base.ASYNC_DATABASE_URL, base.async_engine, base.AsyncSessionFactory = original
    if old_db is None:
        os.environ.pop("DB_URL", None)
    else:
        os.environ["DB_URL"] = old_db


@pytest_asyncio.fixture
async def clean_db(database):
    yield
    async with base.transaction() as session:
        await session.execute(text(f"TRUNCATE {', '.join('public.' + t for t in TABLES)} CASCADE"))


@pytest_asyncio.fixture
async def redis_client(redis_url: str):
    client = aioredis.from_url(redis_url, decode_responses=True)
    yield client
    await client.flushdb()
    await client.aclose()
