# wecollab/services/invite_service.py

from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional
from uuid import UUID

from email_validator import EmailNotValidError, validate_email

from wecollab.auth import AuthUser
from wecollab.constants import INVITE_DECLINED, INVITE_EXPIRED, INVITE_PENDING
from wecollab.middleware.error_handler import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from wecollab.realtime.feed import DELETE, INSERT, UPDATE, RealtimeFeed, invites_channel
from wecollab.repositories.dashboard_repository import DashboardRepository
from wecollab.repositories.invite_repository import INVITE_CONFLICTS, InviteRepository
from wecollab.services.access import require_dashboard, require_member
from wecollab.services.dashboard_service import DashboardService
from wecollab.utils.logger import log_info
from wecollab.utils.timers import utc_now

Notifier = Callable[[Mapping[str, Any]], Awaitable[Optional[str]]]

DUPLICATE_INVITE = INVITE_CONFLICTS["uq_dashboard_invites_dashboard_email"]


def normalize_email(email: Optional[str]) -> str:
    """Lower-case, trimmed and syntactically valid address."""
    cleaned = (email or "").strip().lower()
    if not cleaned:
        raise ValidationError("Email is required")
    try:
        validate_email(cleaned, check_deliverability=False)
    except EmailNotValidError as e:
        raise ValidationError("Invalid email address", details={"reason": str(e)})
    return cleaned


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class InviteService:
    """Email invites: send, list, cancel, accept, decline and expiry."""

    def __init__(
        self,
        repository: InviteRepository,
        dashboards: DashboardRepository,
        memberships: DashboardService,
        feed: RealtimeFeed,
        notify: Notifier,
        ttl_days: int = 7,
    ):
        self._repo = repository
        self._dashboards = dashboards
        self._memberships = memberships
        self._feed = feed
        self._notify = notify
        self._ttl = timedelta(days=ttl_days)

    async def send_email_invite(self, caller: AuthUser, dashboard_id: UUID, email: str) -> Dict[str, Any]:
        await require_member(self._dashboards, dashboard_id, caller.id)
        dashboard = await require_dashboard(self._dashboards, dashboard_id)
        address = normalize_email(email)

        members = await self._dashboards.list_members([dashboard_id])
        if any((m.get("email") or "").lower() == address for m in members):
            raise ConflictError("This user is already a member of this dashboard")
        if len(members) >= dashboard["max_users"]:
            raise ConflictError(f"Dashboard is full (maximum {dashboard['max_users']} members)")

        existing = await self._repo.find(dashboard_id, address)
        if existing is not None:
            if existing["status"] == INVITE_PENDING:
                raise ConflictError(DUPLICATE_INVITE)
            # a declined or expired invite may be re-sent
            await self._repo.delete(existing["id"])

        now = utc_now()
        invite = await self._repo.create(dashboard_id, address, caller.id, now + self._ttl)
        log_info(f"Invite {invite['id']} sent to {address} for dashboard {dashboard_id}")

        await self._feed.publish(invites_channel(address), INSERT, "dashboard_invites", invite)
        await self._notify(invite)
        return invite

    async def list_pending_invites(self, caller: AuthUser, dashboard_id: UUID) -> List[Dict[str, Any]]:
        await require_member(self._dashboards, dashboard_id, caller.id)
        return await self._repo.list_pending_for_dashboard(dashboard_id)

    async def cancel_invite(self, caller: AuthUser, invite_id: UUID) -> None:
        invite = await self._get(invite_id)
        if invite["invited_by"] != caller.id:
            dashboard = await require_dashboard(self._dashboards, invite["dashboard_id"])
            if dashboard["owner_id"] != caller.id:
                raise PermissionDeniedError("Only the inviter or the dashboard owner can cancel this invite")
        await self._repo.delete(invite_id)
        await self._feed.publish(invites_channel(invite["email"]), DELETE, "dashboard_invites", {"id": invite_id})

    async def list_invites_for_user(self, caller: AuthUser) -> List[Dict[str, Any]]:
        if not caller.normalized_email:
            return []
        return await self._repo.list_pending_for_email(caller.normalized_email, utc_now())

    async def accept_invite(self, caller: AuthUser, invite_id: UUID) -> Dict[str, Any]:
        """Join the invite's dashboard; returns the dashboard."""
        invite = await self._get_addressed(caller, invite_id)
        await self._ensure_open(invite)
        dashboard = await require_dashboard(self._dashboards, invite["dashboard_id"])
        # marks the invite accepted
        await self._memberships.admit_member(caller, dashboard)
        return dashboard

    async def decline_invite(self, caller: AuthUser, invite_id: UUID) -> Dict[str, Any]:
        invite = await self._get_addressed(caller, invite_id)
        await self._ensure_open(invite)
        updated = await self._repo.set_status(invite_id, INVITE_DECLINED)
        if updated is None:
            raise NotFoundError("Invite not found")
        await self._feed.publish(invites_channel(invite["email"]), UPDATE, "dashboard_invites", updated)
        return updated

    async def expire_invites(self, now: Optional[datetime] = None) -> int:
        count = await self._repo.expire_due(now or utc_now())
        if count:
            log_info(f"Expired {count} pending invites")
        return count

    async def _get(self, invite_id: UUID) -> Dict[str, Any]:
        invite = await self._repo.get(invite_id)
        if invite is None:
            raise NotFoundError("Invite not found")
        return invite

    async def _get_addressed(self, caller: AuthUser, invite_id: UUID) -> Dict[str, Any]:
        invite = await self._get(invite_id)
        if not caller.normalized_email or invite["email"] != caller.normalized_email:
            raise PermissionDeniedError("This invite is not addressed to you")
        return invite

    async def _ensure_open(self, invite: Dict[str, Any]) -> None:
        if invite["status"] != INVITE_PENDING:
            raise ConflictError(f"Invite is already {invite['status']}")
        if _as_utc(invite["expires_at"]) <= utc_now():
            await self._repo.set_status(invite["id"], INVITE_EXPIRED)
            raise ConflictError("Invite has expired")
