# wecollab/repositories/invite_repository.py

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import delete, insert, select, update

from wecollab.constants import INVITE_ACCEPTED, INVITE_EXPIRED, INVITE_PENDING
from wecollab.db.base import get_session
from wecollab.models.dashboards_table import dashboards
from wecollab.models.invites_table import dashboard_invites
from wecollab.repositories.base import row_to_dict, translate_db_errors

INVITE_CONFLICTS = {
    "uq_dashboard_invites_dashboard_email": "An invite for this email already exists for this dashboard",
}


class InviteRepository:
    """Data access for email invites."""

    async def create(self, dashboard_id: UUID, email: str, invited_by: UUID,
                     expires_at: datetime) -> Dict[str, Any]:
        with translate_db_errors(INVITE_CONFLICTS):
            async with get_session() as session:
                result = await session.execute(
                    insert(dashboard_invites)
                    .values(
                        dashboard_id=dashboard_id,
                        email=email,
                        invited_by=invited_by,
                        status=INVITE_PENDING,
                        expires_at=expires_at,
                    )
                    .returning(*dashboard_invites.c)
                )
                row = result.mappings().one()
                await session.commit()
        return dict(row)

    async def get(self, invite_id: UUID) -> Optional[Dict[str, Any]]:
        async with get_session() as session:
            result = await session.execute(
                select(dashboard_invites).where(dashboard_invites.c.id == invite_id)
            )
            return row_to_dict(result.mappings().first())

    async def find(self, dashboard_id: UUID, email: str) -> Optional[Dict[str, Any]]:
        async with get_session() as session:
            result = await session.execute(
                select(dashboard_invites).where(
                    dashboard_invites.c.dashboard_id == dashboard_id,
                    dashboard_invites.c.email == email,
                )
            )
            return row_to_dict(result.mappings().first())

    async def list_pending_for_dashboard(self, dashboard_id: UUID) -> List[Dict[str, Any]]:
        async with get_session() as session:
            result = await session.execute(
                select(dashboard_invites)
                .where(
                    dashboard_invites.c.dashboard_id == dashboard_id,
                    dashboard_invites.c.status == INVITE_PENDING,
                )
                .order_by(dashboard_invites.c.created_at.desc())
            )
            return [dict(r) for r in result.mappings().all()]

    async def list_pending_for_email(self, email: str, now: datetime) -> List[Dict[str, Any]]:
        """Pending, unexpired invites for an address, with the dashboard's join credentials."""
        stmt = (
            select(
                *dashboard_invites.c,
                dashboards.c.name.label("dashboard_name"),
                dashboards.c.invite_code,
                dashboards.c.one_time_password,
            )
            .select_from(dashboard_invites.join(dashboards, dashboards.c.id == dashboard_invites.c.dashboard_id))
            .where(
                dashboard_invites.c.email == email,
                dashboard_invites.c.status == INVITE_PENDING,
                dashboard_invites.c.expires_at > now,
            )
            .order_by(dashboard_invites.c.created_at.desc())
        )
        async with get_session() as session:
            result = await session.execute(stmt)
            return [dict(r) for r in result.mappings().all()]

    async def delete(self, invite_id: UUID) -> bool:
        async with get_session() as session:
            result = await session.execute(
                delete(dashboard_invites).where(dashboard_invites.c.id == invite_id)
            )
            await session.commit()
            return result.rowcount > 0

    async def set_status(self, invite_id: UUID, status: str) -> Optional[Dict[str, Any]]:
        async with get_session() as session:
            result = await session.execute(
                update(dashboard_invites)
                .where(dashboard_invites.c.id == invite_id)
                .values(status=status)
                .returning(*dashboard_invites.c)
            )
            row = result.mappings().first()
            await session.commit()
        return row_to_dict(row)

    async def mark_accepted(self, dashboard_id: UUID, email: str) -> int:
        """Accept any pending invite for this address once its owner has joined."""
        async with get_session() as session:
            result = await session.execute(
                update(dashboard_invites)
                .where(
                    dashboard_invites.c.dashboard_id == dashboard_id,
                    dashboard_invites.c.email == email,
                    dashboard_invites.c.status == INVITE_PENDING,
                )
                .values(status=INVITE_ACCEPTED)
            )
            await session.commit()
            return result.rowcount

    async def expire_due(self, now: datetime) -> int:
        async with get_session() as session:
            result = await session.execute(
                update(dashboard_invites)
                .where(
                    dashboard_invites.c.status == INVITE_PENDING,
                    dashboard_invites.c.expires_at <= now,
                )
                .values(status=INVITE_EXPIRED)
            )
            await session.commit()
            return result.rowcount
