# wecollab/observability/metrics.py
# minimal prometheus instrumentation for the ASGI app

from __future__ import annotations

import os
import time
from typing import Optional

from fastapi import APIRouter, Request, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)
from prometheus_client.multiprocess import MultiProcessCollector
from starlette.middleware.base import BaseHTTPMiddleware

# PROMETHEUS_MULTIPROC_DIR must be set before this module is imported
PROM_MP_DIR = os.environ.get("PROMETHEUS_MULTIPROC_DIR")
HAVE_MP = bool(PROM_MP_DIR and os.path.isdir(PROM_MP_DIR))

REGISTRY: Optional[CollectorRegistry] = None
if HAVE_MP:
    REGISTRY = CollectorRegistry()
    MultiProcessCollector(REGISTRY)

REQUEST_COUNT = Counter(
    "request_count",
    "Total request count",
    labelnames=("method", "path", "status"),
    registry=REGISTRY,
)
REQUEST_LATENCY = Histogram(
    "request_latency_seconds",
    "Request latency in seconds",
    labelnames=("method", "path"),
    registry=REGISTRY,
)
REQUEST_IN_PROGRESS = Gauge(
    "request_in_progress",
    "Requests currently in progress",
    ("method",),
    registry=REGISTRY,
    **({"multiprocess_mode": "livesum"} if HAVE_MP else {}),
)
ERROR_COUNT = Counter(
    "error_count",
    "Total error count",
    labelnames=("method", "path", "status"),
    registry=REGISTRY,
)

router = APIRouter(tags=["Metrics"])


def _route_path(request: Request) -> str:
    """Route template (e.g. /api/widgets/{widget_id}/timer) to keep label cardinality bounded."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class PrometheusMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        if request.url.path == "/metrics":
            return await call_next(request)

        method = request.method
        REQUEST_IN_PROGRESS.labels(method).inc()
        start = time.perf_counter()
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            path = _route_path(request)
            REQUEST_LATENCY.labels(method, path).observe(time.perf_counter() - start)
            REQUEST_COUNT.labels(method, path, str(status)).inc()
            if status >= 500:
                ERROR_COUNT.labels(method, path, str(status)).inc()
            REQUEST_IN_PROGRESS.labels(method).dec()


@router.get("/metrics", include_in_schema=False)
async def prometheus_metrics() -> Response:
    data = generate_latest(REGISTRY) if REGISTRY is not None else generate_latest()
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)
