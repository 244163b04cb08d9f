# wecollab/jobs/worker.py
# arq worker: invite notifications and periodic invite expiry.
# Run with: arq wecollab.jobs.worker.WorkerSettings

from uuid import UUID

from arq import cron
from arq.connections import RedisSettings
from opentelemetry import trace

from wecollab.config import settings
from wecollab.jobs.queue import enqueue_invite_notification
from wecollab.realtime.feed import INSERT, RealtimeFeed, invites_channel
from wecollab.repositories.dashboard_repository import DashboardRepository
from wecollab.repositories.invite_repository import InviteRepository
from wecollab.services.dashboard_service import DashboardService
from wecollab.services.invite_service import InviteService
from wecollab.utils.logger import log_info, log_warning
from wecollab.utils.telemetry import init_otel
from wecollab.utils.timers import utc_now


async def notify_invite(ctx, invite_id: str) -> dict:
    """Announce a new email invite to its recipient's realtime channel."""
    r = ctx["redis"]
    tracer = trace.get_tracer("worker")
    await r.incr("jobs:started")
    try:
        with tracer.start_as_current_span("notify_invite"):
            invite = await InviteRepository().get(UUID(invite_id))
            if invite is None:
                log_warning(f"notify_invite: invite {invite_id} no longer exists")
                await r.incr("jobs:finished")
                return {"invite_id": invite_id, "status": "missing"}

            dashboard = await DashboardRepository().get(invite["dashboard_id"])
            record = {
                **invite,
                "dashboard_name": dashboard["name"] if dashboard else None,
            }
            feed = RealtimeFeed(client=r)
            delivered = await feed.publish(invites_channel(invite["email"]), INSERT, "invite_notifications", record)
            log_info(f"notify_invite {invite_id} -> {invite['email']} delivered={delivered}")
            await r.incr("jobs:finished")
            return {"invite_id": invite_id, "status": "sent" if delivered else "undelivered"}
    except Exception:
        await r.incr("jobs:failed")
        raise


async def expire_invites(ctx) -> dict:
    """Periodic: mark pending invites past expires_at as expired."""
    dashboards = DashboardRepository()
    invites = InviteRepository()
    feed = RealtimeFeed(client=ctx["redis"])
    service = InviteService(
        repository=invites,
        dashboards=dashboards,
        memberships=DashboardService(repository=dashboards, invites=invites, feed=feed),
        feed=feed,
        notify=enqueue_invite_notification,
        ttl_days=settings.INVITE_TTL_DAYS,
    )
    return {"expired": await service.expire_invites(utc_now())}


class WorkerSettings:
    functions = [notify_invite, expire_invites]
    redis_settings = RedisSettings.from_dsn(settings.REDIS_URL)
    cron_jobs = [
        cron(expire_invites, minute={0, 15, 30, 45}),
    ]

    @staticmethod
    async def startup(ctx):
        # Initialize telemetry on worker start (console exporter)
        if settings.TRACING_ENABLED:
            init_otel(service_name=f"{settings.SERVICE_NAME}-worker")
