# wecollab/repositories/dashboard_repository.py

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import delete, func, insert, select, update

from wecollab.db.base import get_session, transaction
from wecollab.models.dashboards_table import dashboard_members, dashboards, widgets
from wecollab.models.profiles_table import profiles
from wecollab.repositories.base import row_to_dict, translate_db_errors

DASHBOARD_CONFLICTS = {
    "uq_dashboards_invite_code": "Invite code already in use",
    "uq_dashboard_members_dashboard_user": "You are already a member of this dashboard",
}


class DashboardRepository:
    """Data access for dashboards, memberships and widgets."""

    # --- dashboards ---

    async def create_with_owner(
        self,
        name: str,
        owner_id: UUID,
        invite_code: str,
        otp: str,
        max_users: int,
        default_widgets: Iterable[Tuple[str, int]],
    ) -> Dict[str, Any]:
        """Insert dashboard, owner membership and default widgets in one transaction."""
        with translate_db_errors(DASHBOARD_CONFLICTS):
            async with transaction() as session:
                result = await session.execute(
                    insert(dashboards)
                    .values(
                        name=name,
                        owner_id=owner_id,
                        invite_code=invite_code,
                        one_time_password=otp,
                        max_users=max_users,
                    )
                    .returning(*dashboards.c)
                )
                dashboard = dict(result.mappings().one())
                await session.execute(
                    insert(dashboard_members).values(
                        dashboard_id=dashboard["id"], user_id=owner_id, role="owner"
                    )
                )
                await session.execute(
                    insert(widgets),
                    [
                        {
                            "dashboard_id": dashboard["id"],
                            "title": title,
                            "position": position,
                            "is_default": True,
                        }
                        for title, position in default_widgets
                    ],
                )
        return dashboard

    async def get(self, dashboard_id: UUID) -> Optional[Dict[str, Any]]:
        async with get_session() as session:
            result = await session.execute(select(dashboards).where(dashboards.c.id == dashboard_id))
            return row_to_dict(result.mappings().first())

    async def get_by_invite_code(self, invite_code: str) -> Optional[Dict[str, Any]]:
        async with get_session() as session:
            result = await session.execute(
                select(dashboards).where(dashboards.c.invite_code == invite_code)
            )
            return row_to_dict(result.mappings().first())

    async def list_by_ids(self, dashboard_ids: List[UUID]) -> List[Dict[str, Any]]:
        if not dashboard_ids:
            return []
        async with get_session() as session:
            result = await session.execute(
                select(dashboards).where(dashboards.c.id.in_(dashboard_ids))
            )
            return [dict(r) for r in result.mappings().all()]

    async def update(self, dashboard_id: UUID, values: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        with translate_db_errors(DASHBOARD_CONFLICTS):
            async with get_session() as session:
                result = await session.execute(
                    update(dashboards)
                    .where(dashboards.c.id == dashboard_id)
                    .values(**values, updated_at=func.now())
                    .returning(*dashboards.c)
                )
                row = result.mappings().first()
                await session.commit()
        return row_to_dict(row)

    async def delete(self, dashboard_id: UUID) -> bool:
        """Delete dashboard; memberships, widgets, timers, invites and chat cascade."""
        async with get_session() as session:
            result = await session.execute(delete(dashboards).where(dashboards.c.id == dashboard_id))
            await session.commit()
            return result.rowcount > 0

    # --- memberships ---

    async def get_membership(self, dashboard_id: UUID, user_id: UUID) -> Optional[Dict[str, Any]]:
        async with get_session() as session:
            result = await session.execute(
                select(dashboard_members).where(
                    dashboard_members.c.dashboard_id == dashboard_id,
                    dashboard_members.c.user_id == user_id,
                )
            )
            return row_to_dict(result.mappings().first())

    async def add_member_if_capacity(
        self, dashboard_id: UUID, user_id: UUID, role: str = "member"
    ) -> Optional[Dict[str, Any]]:
        """
        Insert a membership unless the dashboard is full.

        The dashboard row is locked so concurrent joins cannot exceed max_users.
        Returns None when the dashboard is full or gone.
        """
        with translate_db_errors(DASHBOARD_CONFLICTS):
            async with transaction() as session:
                locked = await session.execute(
                    select(dashboards.c.max_users)
                    .where(dashboards.c.id == dashboard_id)
                    .with_for_update()
                )
                max_users = locked.scalar_one_or_none()
                if max_users is None:
                    return None
                count = await session.execute(
                    select(func.count())
                    .select_from(dashboard_members)
                    .where(dashboard_members.c.dashboard_id == dashboard_id)
                )
                if int(count.scalar_one()) >= max_users:
                    return None
                result = await session.execute(
                    insert(dashboard_members)
                    .values(dashboard_id=dashboard_id, user_id=user_id, role=role)
                    .returning(*dashboard_members.c)
                )
                return dict(result.mappings().one())

    async def remove_member(self, dashboard_id: UUID, user_id: UUID) -> bool:
        async with get_session() as session:
            result = await session.execute(
                delete(dashboard_members).where(
                    dashboard_members.c.dashboard_id == dashboard_id,
                    dashboard_members.c.user_id == user_id,
                )
            )
            await session.commit()
            return result.rowcount > 0

    async def list_memberships_for_user(self, user_id: UUID) -> List[Dict[str, Any]]:
        async with get_session() as session:
            result = await session.execute(
                select(dashboard_members.c.dashboard_id, dashboard_members.c.role)
                .where(dashboard_members.c.user_id == user_id)
                .order_by(dashboard_members.c.joined_at.asc())
            )
            return [dict(r) for r in result.mappings().all()]

    async def list_members(self, dashboard_ids: List[UUID]) -> List[Dict[str, Any]]:
        """Members of the given dashboards with their profile fields."""
        if not dashboard_ids:
            return []
        stmt = (
            select(
                dashboard_members.c.dashboard_id,
                dashboard_members.c.user_id,
                dashboard_members.c.role,
                dashboard_members.c.joined_at,
                profiles.c.display_name,
                profiles.c.email,
                profiles.c.avatar_url,
            )
            .select_from(
                dashboard_members.outerjoin(profiles, profiles.c.id == dashboard_members.c.user_id)
            )
            .where(dashboard_members.c.dashboard_id.in_(dashboard_ids))
            .order_by(dashboard_members.c.joined_at.asc())
        )
        async with get_session() as session:
            result = await session.execute(stmt)
            return [dict(r) for r in result.mappings().all()]

    # --- widgets ---

    async def list_widgets(self, dashboard_id: UUID) -> List[Dict[str, Any]]:
        async with get_session() as session:
            result = await session.execute(
                select(widgets)
                .where(widgets.c.dashboard_id == dashboard_id)
                .order_by(widgets.c.position.asc())
            )
            return [dict(r) for r in result.mappings().all()]

    async def get_widget(self, widget_id: UUID) -> Optional[Dict[str, Any]]:
        async with get_session() as session:
            result = await session.execute(select(widgets).where(widgets.c.id == widget_id))
            return row_to_dict(result.mappings().first())
