# wecollab/repositories/timer_repository.py

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from wecollab.constants import TIMER_PAUSED, TIMER_RUNNING
from wecollab.db.base import get_session, transaction
from wecollab.models.profiles_table import profiles
from wecollab.models.timers_table import timer_sessions, timer_states
from wecollab.repositories.base import row_to_dict, translate_db_errors
from wecollab.utils.timers import elapsed_seconds, idle_values, paused_values, started_values


def _upsert_state_stmt(widget_id: UUID, user_id: UUID, values: Dict[str, Any]):
    stmt = pg_insert(timer_states).values(widget_id=widget_id, user_id=user_id, **values)
    return stmt.on_conflict_do_update(
        constraint="uq_timer_states_widget_user",
        set_={k: stmt.excluded[k] for k in values},
    ).returning(*timer_states.c)


async def _lock_user_states(session: AsyncSession, user_id: UUID) -> Dict[UUID, Dict[str, Any]]:
    """Lock the user's profile row, then read all of their timer states keyed by widget."""
    await session.execute(select(profiles.c.id).where(profiles.c.id == user_id).with_for_update())
    result = await session.execute(select(timer_states).where(timer_states.c.user_id == user_id))
    return {r["widget_id"]: dict(r) for r in result.mappings().all()}


class TimerRepository:
    """Data access for live timer states and daily timer sessions."""

    # --- states ---

    async def get_state(self, widget_id: UUID, user_id: UUID) -> Optional[Dict[str, Any]]:
        async with get_session() as session:
            result = await session.execute(
                select(timer_states).where(
                    timer_states.c.widget_id == widget_id,
                    timer_states.c.user_id == user_id,
                )
            )
            return row_to_dict(result.mappings().first())

    async def list_states(self, widget_id: UUID) -> List[Dict[str, Any]]:
        """Every member's state on a widget with display fields."""
        stmt = (
            select(*timer_states.c, profiles.c.display_name, profiles.c.avatar_url)
            .select_from(timer_states.outerjoin(profiles, profiles.c.id == timer_states.c.user_id))
            .where(timer_states.c.widget_id == widget_id)
            .order_by(timer_states.c.last_updated.desc())
        )
        async with get_session() as session:
            result = await session.execute(stmt)
            return [dict(r) for r in result.mappings().all()]

    # --- transitions ---
    # Each transition locks the user's profile row first; transitions of one
    # user are serialized and see the state committed by the previous one.

    async def start(self, widget_id: UUID, user_id: UUID, now: datetime) -> Tuple[List[Dict[str, Any]], bool]:
        """
        Run the user's timer on widget_id and pause their other running timers.

        Returns (rows, changed); the started row is last. A timer that is
        already running is returned unchanged with changed=False.
        """
        with translate_db_errors():
            async with transaction() as session:
                states = await _lock_user_states(session, user_id)
                current = states.get(widget_id)
                if current is not None and current["status"] == TIMER_RUNNING:
                    return [current], False

                writes = [
                    (other, paused_values(state, now))
                    for other, state in states.items()
                    if other != widget_id and state["status"] == TIMER_RUNNING
                ]
                writes.append((widget_id, started_values(current, now)))
                saved = []
                for target, values in writes:
                    result = await session.execute(_upsert_state_stmt(target, user_id, values))
                    saved.append(dict(result.mappings().one()))
        return saved, True

    async def pause(self, widget_id: UUID, user_id: UUID, now: datetime) -> Optional[Dict[str, Any]]:
        """Fold the running delta into storage; None when the timer is not running."""
        with translate_db_errors():
            async with transaction() as session:
                current = (await _lock_user_states(session, user_id)).get(widget_id)
                if current is None or current["status"] != TIMER_RUNNING:
                    return None
                result = await session.execute(
                    _upsert_state_stmt(widget_id, user_id, paused_values(current, now))
                )
                return dict(result.mappings().one())

    async def stop(
        self,
        widget_id: UUID,
        user_id: UUID,
        day: date,
        note: Optional[str],
        now: datetime,
    ) -> Optional[Tuple[Dict[str, Any], Dict[str, Any], int]]:
        """
        Fold a finished run into the day's aggregate and reset the live state.

        Returns (session, state, recorded_seconds), or None when the timer is
        neither running nor paused. The note is replaced only when given.
        """
        with translate_db_errors():
            async with transaction() as session:
                current = (await _lock_user_states(session, user_id)).get(widget_id)
                if current is None or current["status"] not in (TIMER_RUNNING, TIMER_PAUSED):
                    return None
                recorded = elapsed_seconds(current, now)

                ins = pg_insert(timer_sessions).values(
                    widget_id=widget_id,
                    user_id=user_id,
                    date=day,
                    total_seconds=recorded,
                    session_count=1,
                    note=note,
                )
                upsert_session = ins.on_conflict_do_update(
                    constraint="uq_timer_sessions_widget_user_date",
                    set_={
                        "total_seconds": timer_sessions.c.total_seconds + ins.excluded.total_seconds,
                        "session_count": timer_sessions.c.session_count + 1,
                        "note": func.coalesce(ins.excluded.note, timer_sessions.c.note),
                        "updated_at": func.now(),
                    },
                ).returning(*timer_sessions.c)

                result = await session.execute(upsert_session)
                session_row = dict(result.mappings().one())
                result = await session.execute(_upsert_state_stmt(widget_id, user_id, idle_values(now)))
                state_row = dict(result.mappings().one())
        return session_row, state_row, recorded

    # --- daily sessions ---

    async def get_daily_session(self, widget_id: UUID, user_id: UUID, day: date) -> Optional[Dict[str, Any]]:
        async with get_session() as session:
            result = await session.execute(
                select(timer_sessions).where(
                    timer_sessions.c.widget_id == widget_id,
                    timer_sessions.c.user_id == user_id,
                    timer_sessions.c.date == day,
                )
            )
            return row_to_dict(result.mappings().first())

    async def upsert_note(self, widget_id: UUID, user_id: UUID, day: date, note: Optional[str]) -> Dict[str, Any]:
        """Set the day's note; a new row starts with zero totals, an existing one keeps them."""
        ins = pg_insert(timer_sessions).values(
            widget_id=widget_id,
            user_id=user_id,
            date=day,
            total_seconds=0,
            session_count=0,
            note=note,
        )
        stmt = ins.on_conflict_do_update(
            constraint="uq_timer_sessions_widget_user_date",
            set_={"note": ins.excluded.note, "updated_at": func.now()},
        ).returning(*timer_sessions.c)

        with translate_db_errors():
            async with get_session() as session:
                result = await session.execute(stmt)
                row = result.mappings().one()
                await session.commit()
        return dict(row)

    async def sessions_since(self, widget_id: UUID, start: date) -> List[Dict[str, Any]]:
        stmt = (
            select(
                timer_sessions.c.user_id,
                timer_sessions.c.total_seconds,
                timer_sessions.c.date,
                profiles.c.display_name,
                profiles.c.avatar_url,
            )
            .select_from(timer_sessions.outerjoin(profiles, profiles.c.id == timer_sessions.c.user_id))
            .where(timer_sessions.c.widget_id == widget_id, timer_sessions.c.date >= start)
        )
        async with get_session() as session:
            result = await session.execute(stmt)
            return [dict(r) for r in result.mappings().all()]

    async def sessions_on(self, widget_id: UUID, day: date) -> List[Dict[str, Any]]:
        stmt = (
            select(
                timer_sessions.c.user_id,
                timer_sessions.c.note,
                timer_sessions.c.total_seconds,
                timer_sessions.c.updated_at,
                profiles.c.display_name,
            )
            .select_from(timer_sessions.outerjoin(profiles, profiles.c.id == timer_sessions.c.user_id))
            .where(timer_sessions.c.widget_id == widget_id, timer_sessions.c.date == day)
            .order_by(timer_sessions.c.updated_at.desc())
        )
        async with get_session() as session:
            result = await session.execute(stmt)
            return [dict(r) for r in result.mappings().all()]
