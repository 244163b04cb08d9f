# wecollab/routers/health.py
# Health check endpoints for monitoring and load balancers
# Provides liveness and readiness probes

import asyncio
import logging
import time
from typing import Any, Dict

from fastapi import APIRouter, Response, status
from pydantic import BaseModel
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from wecollab.db.base import async_engine, get_session
from wecollab.db.redis import get_redis

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

CHECK_TIMEOUT_SECONDS = 2.0


class HealthStatus(BaseModel):
    """Health check response model."""
    status: str  # "healthy", "degraded", "unhealthy"
    timestamp: float
    version: str = "1.0.0"
    checks: Dict[str, Dict[str, Any]] = {}


class ComponentHealth(BaseModel):
    """Individual component health."""
    status: str
    latency_ms: float = 0.0
    message: str = ""


async def _select_one() -> int:
    async with get_session() as session:
        result = await session.execute(text("SELECT 1"))
        return result.scalar_one()


async def check_database_health() -> ComponentHealth:
    """Run SELECT 1 through the engine and report pool usage."""
    start = time.time()
    try:
        value = await asyncio.wait_for(_select_one(), timeout=CHECK_TIMEOUT_SECONDS)
    except asyncio.TimeoutError:
        return ComponentHealth(
            status="unhealthy",
            latency_ms=(time.time() - start) * 1000,
            message="Database connection timeout"
        )
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"Database health check failed: {e}")
        return ComponentHealth(
            status="unhealthy",
            latency_ms=(time.time() - start) * 1000,
            message=f"Database error: {type(e).__name__}"
        )

    latency_ms = (time.time() - start) * 1000
    if value != 1:
        return ComponentHealth(
            status="unhealthy",
            latency_ms=latency_ms,
            message="Database query returned unexpected result"
        )
    return ComponentHealth(status="healthy", latency_ms=latency_ms, message=async_engine.pool.status())


async def check_redis_health() -> ComponentHealth:
    """Redis backs the cache, realtime feed and job queue; losing it degrades the API."""
    start = time.time()
    try:
        await asyncio.wait_for(get_redis().ping(), timeout=CHECK_TIMEOUT_SECONDS)
    except asyncio.TimeoutError:
        return ComponentHealth(
            status="degraded",
            latency_ms=(time.time() - start) * 1000,
            message="Redis ping timeout"
        )
    except (RedisError, OSError) as e:
        logger.error(f"Redis health check failed: {e}")
        return ComponentHealth(
            status="degraded",
            latency_ms=(time.time() - start) * 1000,
            message=f"Redis error: {type(e).__name__}"
        )
    return ComponentHealth(status="healthy", latency_ms=(time.time() - start) * 1000)


@router.get("/health", response_model=HealthStatus)
async def health_check(response: Response):
    """
    Full health check endpoint.
    Returns status of all components.
    """
    checks = {}
    for name, component in (
        ("database", await check_database_health()),
        ("redis", await check_redis_health()),
    ):
        checks[name] = {
            "status": component.status,
            "latency_ms": round(component.latency_ms, 2),
            "message": component.message,
        }

    statuses = [c["status"] for c in checks.values()]
    if "unhealthy" in statuses:
        overall_status = "unhealthy"
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    elif "degraded" in statuses:
        overall_status = "degraded"
    else:
        overall_status = "healthy"

    return HealthStatus(status=overall_status, timestamp=time.time(), checks=checks)


@router.get("/health/live")
async def liveness_probe():
    """
    Liveness probe.
    Returns 200 if the application is running; no dependency checks.
    """
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness_probe(response: Response):
    """Readiness probe; only the database is critical."""
    db_health = await check_database_health()

    if db_health.status == "unhealthy":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {
            "status": "not_ready",
            "reason": db_health.message
        }

    return {"status": "ready"}
