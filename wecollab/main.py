# wecollab/main.py

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from wecollab import config
from wecollab.db.base import async_engine
from wecollab.db.redis import close_redis
from wecollab.jobs.queue import close_arq
from wecollab.middleware.error_handler import ErrorHandlerMiddleware, setup_exception_handlers
from wecollab.middleware.rate_limiter import RateLimitMiddleware
from wecollab.observability.logger import configure_logging
from wecollab.observability.metrics import PrometheusMiddleware
from wecollab.observability.metrics import router as prometheus_router
from wecollab.routers.chat import router as chat_router
from wecollab.routers.dashboards import router as dashboards_router
from wecollab.routers.health import router as health_router
from wecollab.routers.invites import router as invites_router
from wecollab.routers.profiles import router as profiles_router
from wecollab.routers.realtime import router as realtime_router
from wecollab.routers.timers import router as timers_router
from wecollab.utils.logger import log_info
from wecollab.utils.telemetry import init_otel


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(config)
    log_info(f"{config.SERVICE_NAME} starting on {config.HOST}:{config.PORT}")
    yield
    await close_arq()
    await close_redis()
    await async_engine.dispose()


app = FastAPI(
    title="WeCollab API",
    description="Shared dashboards, focus timers, leaderboards and team chat",
    version="1.0.0",
    lifespan=lifespan,
)

# Add middleware (order matters: last added = outermost)
app.add_middleware(PrometheusMiddleware)
app.add_middleware(
    RateLimitMiddleware,
    api_limit=config.settings.RATE_LIMIT_API,
    general_limit=config.settings.RATE_LIMIT_GENERAL,
)
app.add_middleware(ErrorHandlerMiddleware, debug=config.DEBUG)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register exception handlers
setup_exception_handlers(app)

# Include routers
app.include_router(health_router)  # Health checks at root level
app.include_router(prometheus_router)
app.include_router(profiles_router, prefix="/api")
app.include_router(dashboards_router, prefix="/api")
app.include_router(invites_router, prefix="/api")
app.include_router(timers_router, prefix="/api")
app.include_router(chat_router, prefix="/api")
app.include_router(realtime_router, prefix="/api")

# Initialize OpenTelemetry after app is constructed
if config.settings.TRACING_ENABLED:
    init_otel(app=app, engine=async_engine, service_name=config.SERVICE_NAME)


def get_app() -> FastAPI:
    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("wecollab.main:app", host=config.HOST, port=config.PORT, reload=config.DEBUG)
