# wecollab/services/access.py
# Membership checks shared by the workflows

from typing import Any, Dict, Optional
from uuid import UUID

from wecollab.middleware.error_handler import NotFoundError, PermissionDeniedError
from wecollab.repositories.dashboard_repository import DashboardRepository


async def require_dashboard(repo: DashboardRepository, dashboard_id: UUID) -> Dict[str, Any]:
    dashboard = await repo.get(dashboard_id)
    if dashboard is None:
        raise NotFoundError("Dashboard not found")
    return dashboard


async def require_member(repo: DashboardRepository, dashboard_id: UUID, user_id: UUID) -> Dict[str, Any]:
    """Return the caller's membership or raise 403 (404 if the dashboard is gone)."""
    membership = await repo.get_membership(dashboard_id, user_id)
    if membership is None:
        await require_dashboard(repo, dashboard_id)
        raise PermissionDeniedError("You are not a member of this dashboard")
    return membership


async def require_owner(repo: DashboardRepository, dashboard_id: UUID, user_id: UUID,
                        message: str) -> Dict[str, Any]:
    dashboard = await require_dashboard(repo, dashboard_id)
    if dashboard["owner_id"] != user_id:
        raise PermissionDeniedError(message)
    return dashboard


async def require_widget_member(repo: DashboardRepository, widget_id: UUID, user_id: UUID) -> Dict[str, Any]:
    """Resolve widget -> dashboard and check the caller belongs to it."""
    widget = await repo.get_widget(widget_id)
    if widget is None:
        raise NotFoundError("Widget not found")
    await require_member(repo, widget["dashboard_id"], user_id)
    return widget


async def authorize_channel(repo: DashboardRepository, user_id: UUID, email: Optional[str],
                            channel: str) -> Optional[UUID]:
    """
    Check the caller may subscribe to a realtime channel.

    Returns the dashboard the channel belongs to, or None for invite channels.
    """
    kind, _, ident = channel.partition(":")
    if kind == "invites":
        if not email or ident.strip().lower() != email.strip().lower():
            raise PermissionDeniedError("You can only follow your own invites")
        return None
    try:
        target = UUID(ident)
    except ValueError:
        raise NotFoundError("Unknown channel")
    if kind == "timer_states":
        widget = await require_widget_member(repo, target, user_id)
        return widget["dashboard_id"]
    if kind in ("chat", "dashboard"):
        await require_member(repo, target, user_id)
        return target
    raise NotFoundError("Unknown channel")
