# wecollab/repositories/profile_repository.py

from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import desc, func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert

from wecollab.db.base import get_session
from wecollab.models.dashboards_table import dashboards, widgets
from wecollab.models.profiles_table import profiles
from wecollab.models.timers_table import timer_sessions
from wecollab.repositories.base import row_to_dict, translate_db_errors


class ProfileRepository:
    """Data access for user profiles and per-user session history."""

    async def get(self, user_id: UUID) -> Optional[Dict[str, Any]]:
        async with get_session() as session:
            result = await session.execute(select(profiles).where(profiles.c.id == user_id))
            return row_to_dict(result.mappings().first())

    async def upsert(self, user_id: UUID, email: Optional[str], display_name: str,
                     avatar_url: Optional[str]) -> Dict[str, Any]:
        stmt = pg_insert(profiles).values(
            id=user_id,
            email=email,
            display_name=display_name,
            avatar_url=avatar_url,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[profiles.c.id],
            set_={
                "display_name": stmt.excluded.display_name,
                "avatar_url": stmt.excluded.avatar_url,
                "email": func.coalesce(stmt.excluded.email, profiles.c.email),
                "updated_at": func.now(),
            },
        ).returning(*profiles.c)

        with translate_db_errors():
            async with get_session() as session:
                result = await session.execute(stmt)
                row = result.mappings().one()
                await session.commit()
        return dict(row)

    async def update(self, user_id: UUID, values: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        stmt = (
            update(profiles)
            .where(profiles.c.id == user_id)
            .values(**values, updated_at=func.now())
            .returning(*profiles.c)
        )
        with translate_db_errors():
            async with get_session() as session:
                result = await session.execute(stmt)
                row = result.mappings().first()
                await session.commit()
        return row_to_dict(row)

    async def list_sessions(self, user_id: UUID) -> List[Dict[str, Any]]:
        """All daily session rows of a user with the widget title (null if widget gone)."""
        stmt = (
            select(
                timer_sessions.c.total_seconds,
                timer_sessions.c.date,
                widgets.c.title.label("widget_title"),
            )
            .select_from(timer_sessions.outerjoin(widgets, widgets.c.id == timer_sessions.c.widget_id))
            .where(timer_sessions.c.user_id == user_id)
        )
        async with get_session() as session:
            result = await session.execute(stmt)
            return [dict(r) for r in result.mappings().all()]

    async def recent_activity(self, user_id: UUID, limit: int) -> List[Dict[str, Any]]:
        stmt = (
            select(
                timer_sessions.c.id,
                timer_sessions.c.widget_id,
                timer_sessions.c.date,
                timer_sessions.c.total_seconds,
                timer_sessions.c.session_count,
                timer_sessions.c.note,
                widgets.c.title.label("widget_title"),
                dashboards.c.id.label("dashboard_id"),
                dashboards.c.name.label("dashboard_name"),
            )
            .select_from(
                timer_sessions
                .join(widgets, widgets.c.id == timer_sessions.c.widget_id)
                .join(dashboards, dashboards.c.id == widgets.c.dashboard_id)
            )
            .where(timer_sessions.c.user_id == user_id)
            .order_by(desc(timer_sessions.c.date), desc(timer_sessions.c.updated_at))
            .limit(limit)
        )
        async with get_session() as session:
            result = await session.execute(stmt)
            return [dict(r) for r in result.mappings().all()]
