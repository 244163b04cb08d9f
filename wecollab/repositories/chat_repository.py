# wecollab/repositories/chat_repository.py

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, insert, select, update

from wecollab.db.base import get_session
from wecollab.models.chat_table import chat_messages
from wecollab.models.profiles_table import profiles
from wecollab.repositories.base import row_to_dict, translate_db_errors


def _with_author():
    return (
        select(
            *chat_messages.c,
            profiles.c.display_name,
            profiles.c.email,
            profiles.c.avatar_url,
        )
        .select_from(chat_messages.outerjoin(profiles, profiles.c.id == chat_messages.c.user_id))
    )


class ChatRepository:
    """Data access for dashboard chat messages."""

    async def list_recent(self, dashboard_id: UUID, limit: int) -> List[Dict[str, Any]]:
        """Latest `limit` visible messages, returned oldest first."""
        stmt = (
            _with_author()
            .where(chat_messages.c.dashboard_id == dashboard_id, chat_messages.c.deleted_at.is_(None))
            .order_by(chat_messages.c.created_at.desc())
            .limit(limit)
        )
        async with get_session() as session:
            result = await session.execute(stmt)
            rows = [dict(r) for r in result.mappings().all()]
        rows.reverse()
        return rows

    async def insert(self, dashboard_id: UUID, user_id: UUID, message: str) -> Dict[str, Any]:
        with translate_db_errors():
            async with get_session() as session:
                result = await session.execute(
                    insert(chat_messages)
                    .values(dashboard_id=dashboard_id, user_id=user_id, message=message)
                    .returning(chat_messages.c.id)
                )
                message_id = result.scalar_one()
                await session.commit()
                result = await session.execute(_with_author().where(chat_messages.c.id == message_id))
                return dict(result.mappings().one())

    async def get(self, message_id: UUID) -> Optional[Dict[str, Any]]:
        async with get_session() as session:
            result = await session.execute(select(chat_messages).where(chat_messages.c.id == message_id))
            return row_to_dict(result.mappings().first())

    async def soft_delete(self, message_id: UUID, now: datetime) -> Optional[Dict[str, Any]]:
        async with get_session() as session:
            result = await session.execute(
                update(chat_messages)
                .where(chat_messages.c.id == message_id, chat_messages.c.deleted_at.is_(None))
                .values(deleted_at=now, updated_at=now)
                .returning(*chat_messages.c)
            )
            row = result.mappings().first()
            await session.commit()
        return row_to_dict(row)

    async def count_unread(self, dashboard_id: UUID, user_id: UUID, since: Optional[datetime]) -> int:
        conditions = [
            chat_messages.c.dashboard_id == dashboard_id,
            chat_messages.c.user_id != user_id,
            chat_messages.c.deleted_at.is_(None),
        ]
        if since is not None:
            conditions.append(chat_messages.c.created_at > since)
        async with get_session() as session:
            result = await session.execute(
                select(func.count()).select_from(chat_messages).where(*conditions)
            )
            return int(result.scalar_one())
