# wecollab/services/dashboard_service.py

from typing import Any, Dict, List, Optional
from uuid import UUID

from wecollab.auth import AuthUser
from wecollab.constants import DASHBOARD_NAME_MAX, DEFAULT_WIDGETS, MAX_DASHBOARD_MEMBERS, ROLE_MEMBER, ROLE_OWNER
from wecollab.middleware.error_handler import ConflictError, NotFoundError, ValidationError
from wecollab.realtime.feed import DELETE, INSERT, UPDATE, RealtimeFeed, dashboard_channel
from wecollab.repositories.dashboard_repository import DashboardRepository
from wecollab.repositories.invite_repository import InviteRepository
from wecollab.services.access import require_dashboard, require_member, require_owner
from wecollab.utils.codes import generate_invite_code, generate_otp, normalize_invite_code, otp_matches
from wecollab.utils.logger import log_info

# attempts at drawing an unused invite code before giving up
CODE_ATTEMPTS = 5


def _is_code_collision(e: ConflictError) -> bool:
    return e.details.get("constraint") == "uq_dashboards_invite_code"


def clean_dashboard_name(name: Optional[str]) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Dashboard name is required")
    if len(cleaned) > DASHBOARD_NAME_MAX:
        raise ValidationError(f"Dashboard name must be at most {DASHBOARD_NAME_MAX} characters")
    return cleaned


class DashboardService:
    """Dashboard lifecycle and membership: create, join, leave, rename, delete."""

    def __init__(self, repository: DashboardRepository, invites: InviteRepository, feed: RealtimeFeed):
        self._repo = repository
        self._invites = invites
        self._feed = feed

    async def create_dashboard(self, caller: AuthUser, name: str) -> Dict[str, Any]:
        """Create a dashboard owned by the caller, with the four default widgets."""
        cleaned = clean_dashboard_name(name)
        for attempt in range(CODE_ATTEMPTS):
            invite_code = generate_invite_code()
            otp = generate_otp()
            try:
                dashboard = await self._repo.create_with_owner(
                    name=cleaned,
                    owner_id=caller.id,
                    invite_code=invite_code,
                    otp=otp,
                    max_users=MAX_DASHBOARD_MEMBERS,
                    default_widgets=DEFAULT_WIDGETS,
                )
            except ConflictError as e:
                if _is_code_collision(e) and attempt < CODE_ATTEMPTS - 1:
                    continue
                raise
            log_info(f"Dashboard {dashboard['id']} created by {caller.id}")
            return {"dashboard": dashboard, "invite_code": invite_code, "otp": otp}
        raise ConflictError("Could not allocate an invite code")

    async def list_user_dashboards(self, caller: AuthUser) -> List[Dict[str, Any]]:
        """Every membership of the caller with its dashboard and member list."""
        memberships = await self._repo.list_memberships_for_user(caller.id)
        ids = [m["dashboard_id"] for m in memberships]
        by_id = {d["id"]: d for d in await self._repo.list_by_ids(ids)}
        members: Dict[UUID, List[Dict[str, Any]]] = {}
        for row in await self._repo.list_members(ids):
            members.setdefault(row["dashboard_id"], []).append(row)

        result = []
        for m in memberships:
            dashboard = by_id.get(m["dashboard_id"])
            if dashboard is None:
                continue
            result.append({
                "dashboard_id": m["dashboard_id"],
                "role": m["role"],
                "dashboard": {**dashboard, "members": members.get(m["dashboard_id"], [])},
            })
        return result

    async def get_dashboard(self, caller: AuthUser, dashboard_id: UUID) -> Dict[str, Any]:
        await require_member(self._repo, dashboard_id, caller.id)
        dashboard = await require_dashboard(self._repo, dashboard_id)
        return {
            **dashboard,
            "members": await self._repo.list_members([dashboard_id]),
            "widgets": await self._repo.list_widgets(dashboard_id),
        }

    async def join_dashboard(self, caller: AuthUser, invite_code: str, otp: str) -> Dict[str, Any]:
        dashboard = await self._repo.get_by_invite_code(normalize_invite_code(invite_code))
        if dashboard is None:
            raise NotFoundError("Invalid invite code")
        if not otp_matches(dashboard["one_time_password"], otp):
            raise ValidationError("Invalid one-time password")
        await self.admit_member(caller, dashboard)
        return dashboard

    async def admit_member(self, caller: AuthUser, dashboard: Dict[str, Any]) -> Dict[str, Any]:
        """Add the caller as a member, honouring the capacity limit."""
        dashboard_id = dashboard["id"]
        if await self._repo.get_membership(dashboard_id, caller.id) is not None:
            raise ConflictError("You are already a member of this dashboard")

        membership = await self._repo.add_member_if_capacity(dashboard_id, caller.id, ROLE_MEMBER)
        if membership is None:
            raise ConflictError(f"Dashboard is full (maximum {dashboard['max_users']} members)")

        if caller.normalized_email:
            await self._invites.mark_accepted(dashboard_id, caller.normalized_email)

        log_info(f"User {caller.id} joined dashboard {dashboard_id}")
        await self._feed.publish(dashboard_channel(dashboard_id), INSERT, "dashboard_members", membership)
        return membership

    async def rename_dashboard(self, caller: AuthUser, dashboard_id: UUID, name: str) -> Dict[str, Any]:
        await require_owner(self._repo, dashboard_id, caller.id, "Only the owner can update the dashboard name")
        updated = await self._repo.update(dashboard_id, {"name": clean_dashboard_name(name)})
        if updated is None:
            raise NotFoundError("Dashboard not found")
        await self._feed.publish(dashboard_channel(dashboard_id), UPDATE, "dashboards", updated)
        return updated

    async def delete_dashboard(self, caller: AuthUser, dashboard_id: UUID) -> None:
        await require_owner(self._repo, dashboard_id, caller.id, "Only the owner can delete the dashboard")
        if not await self._repo.delete(dashboard_id):
            raise NotFoundError("Dashboard not found")
        log_info(f"Dashboard {dashboard_id} deleted by {caller.id}")
        await self._feed.publish(dashboard_channel(dashboard_id), DELETE, "dashboards", {"id": dashboard_id})

    async def leave_dashboard(self, caller: AuthUser, dashboard_id: UUID) -> None:
        membership = await require_member(self._repo, dashboard_id, caller.id)
        if membership["role"] == ROLE_OWNER:
            raise ConflictError("The owner cannot leave the dashboard; delete it instead")
        await self._repo.remove_member(dashboard_id, caller.id)
        await self._feed.publish(
            dashboard_channel(dashboard_id), DELETE, "dashboard_members",
            {"dashboard_id": dashboard_id, "user_id": caller.id},
        )

    async def remove_member(self, caller: AuthUser, dashboard_id: UUID, user_id: UUID) -> None:
        dashboard = await require_owner(self._repo, dashboard_id, caller.id, "Only the owner can remove members")
        if user_id == dashboard["owner_id"]:
            raise ConflictError("The owner cannot be removed from the dashboard")
        if not await self._repo.remove_member(dashboard_id, user_id):
            raise NotFoundError("Member not found")
        log_info(f"User {user_id} removed from dashboard {dashboard_id}")
        await self._feed.publish(
            dashboard_channel(dashboard_id), DELETE, "dashboard_members",
            {"dashboard_id": dashboard_id, "user_id": user_id},
        )

    async def regenerate_credentials(self, caller: AuthUser, dashboard_id: UUID) -> Dict[str, str]:
        """Issue a fresh invite code and OTP; the old pair stops working."""
        await require_owner(self._repo, dashboard_id, caller.id, "Only the owner can regenerate invite credentials")
        for attempt in range(CODE_ATTEMPTS):
            invite_code = generate_invite_code()
            otp = generate_otp()
            try:
                await self._repo.update(dashboard_id, {"invite_code": invite_code, "one_time_password": otp})
            except ConflictError as e:
                if _is_code_collision(e) and attempt < CODE_ATTEMPTS - 1:
                    continue
                raise
            return {"invite_code": invite_code, "otp": otp}
        raise ConflictError("Could not allocate an invite code")

    async def list_widgets(self, caller: AuthUser, dashboard_id: UUID) -> List[Dict[str, Any]]:
        await require_member(self._repo, dashboard_id, caller.id)
        return await self._repo.list_widgets(dashboard_id)
