# wecollab/services/timer_service.py

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
from uuid import UUID

from redis.exceptions import RedisError

from wecollab.auth import AuthUser
from wecollab.constants import LEADERBOARD_PERIODS, TIMER_IDLE
from wecollab.middleware.error_handler import ConflictError, ValidationError
from wecollab.realtime.feed import UPDATE, RealtimeFeed, timer_channel
from wecollab.repositories.dashboard_repository import DashboardRepository
from wecollab.repositories.timer_repository import TimerRepository
from wecollab.services.access import require_widget_member
from wecollab.utils.cache import Cache
from wecollab.utils.logger import log_info, log_warning
from wecollab.utils.timers import (
    aggregate_leaderboard,
    elapsed_seconds,
    leaderboard_start,
    utc_now,
    utc_today,
)


def leaderboard_prefix(widget_id: UUID) -> str:
    return f"leaderboard:{widget_id}"


def present_state(state: Optional[Dict[str, Any]], widget_id: UUID, user_id: UUID,
                  now: datetime) -> Dict[str, Any]:
    """Timer state with derived elapsed_seconds; a missing row reads as idle."""
    if state is None:
        state = {
            "widget_id": widget_id,
            "user_id": user_id,
            "status": TIMER_IDLE,
            "current_seconds": 0,
            "started_at": None,
            "last_updated": None,
        }
    return {**state, "elapsed_seconds": elapsed_seconds(state, now)}


class TimerService:
    """Per-user timers on shared widgets, daily sessions and leaderboards."""

    def __init__(
        self,
        repository: TimerRepository,
        dashboards: DashboardRepository,
        feed: RealtimeFeed,
        cache: Cache,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._repo = repository
        self._dashboards = dashboards
        self._feed = feed
        self._cache = cache
        self._clock = clock

    # --- state machine ---

    async def get_timer_state(self, caller: AuthUser, widget_id: UUID) -> Dict[str, Any]:
        await require_widget_member(self._dashboards, widget_id, caller.id)
        state = await self._repo.get_state(widget_id, caller.id)
        return present_state(state, widget_id, caller.id, self._clock())

    async def list_timer_states(self, caller: AuthUser, widget_id: UUID) -> List[Dict[str, Any]]:
        """Every member's timer on the widget ("who is working now")."""
        await require_widget_member(self._dashboards, widget_id, caller.id)
        now = self._clock()
        return [present_state(s, widget_id, s["user_id"], now) for s in await self._repo.list_states(widget_id)]

    async def start_timer(self, caller: AuthUser, widget_id: UUID) -> Dict[str, Any]:
        """
        Start (or resume) the caller's timer.

        Any other running timer of the caller is paused in the same transaction,
        with its elapsed time folded into its stored seconds.
        """
        await require_widget_member(self._dashboards, widget_id, caller.id)
        now = self._clock()
        saved, changed = await self._repo.start(widget_id, caller.id, now)
        if changed:
            for row in saved:
                await self._feed.publish(timer_channel(row["widget_id"]), UPDATE, "timer_states", row)
            if len(saved) > 1:
                log_info(f"Paused {len(saved) - 1} other timers of {caller.id} on start")
        return present_state(saved[-1], widget_id, caller.id, now)

    async def pause_timer(self, caller: AuthUser, widget_id: UUID) -> Dict[str, Any]:
        await require_widget_member(self._dashboards, widget_id, caller.id)
        now = self._clock()
        saved = await self._repo.pause(widget_id, caller.id, now)
        if saved is None:
            raise ConflictError("Timer is not running")

        await self._feed.publish(timer_channel(widget_id), UPDATE, "timer_states", saved)
        return present_state(saved, widget_id, caller.id, now)

    async def stop_timer(self, caller: AuthUser, widget_id: UUID, note: Optional[str] = None) -> Dict[str, Any]:
        """Record the derived elapsed time into today's session and reset to idle."""
        await require_widget_member(self._dashboards, widget_id, caller.id)
        now = self._clock()
        stopped = await self._repo.stop(widget_id, caller.id, utc_today(now), (note or "").strip() or None, now)
        if stopped is None:
            raise ConflictError("Timer is not active")

        session, saved, recorded = stopped
        log_info(f"Timer stopped: widget={widget_id} user={caller.id} seconds={recorded}")

        await self._invalidate_leaderboard(widget_id)
        await self._feed.publish(timer_channel(widget_id), UPDATE, "timer_states", saved)
        return {
            "state": present_state(saved, widget_id, caller.id, now),
            "session": session,
            "recorded_seconds": recorded,
        }

    # --- daily sessions ---

    async def get_today_session(self, caller: AuthUser, widget_id: UUID) -> Dict[str, Any]:
        await require_widget_member(self._dashboards, widget_id, caller.id)
        today = utc_today(self._clock())
        session = await self._repo.get_daily_session(widget_id, caller.id, today)
        if session is None:
            return {
                "widget_id": widget_id,
                "user_id": caller.id,
                "date": today,
                "total_seconds": 0,
                "session_count": 0,
                "note": None,
            }
        return session

    async def update_timer_note(self, caller: AuthUser, widget_id: UUID, note: str) -> Dict[str, Any]:
        await require_widget_member(self._dashboards, widget_id, caller.id)
        today = utc_today(self._clock())
        return await self._repo.upsert_note(widget_id, caller.id, today, (note or "").strip() or None)

    async def get_team_notes(self, caller: AuthUser, widget_id: UUID) -> List[Dict[str, Any]]:
        await require_widget_member(self._dashboards, widget_id, caller.id)
        rows = await self._repo.sessions_on(widget_id, utc_today(self._clock()))
        return [
            {
                "user_id": r["user_id"],
                "display_name": r.get("display_name"),
                "note": r["note"].strip(),
                "total_seconds": r["total_seconds"],
            }
            for r in rows
            if r.get("note") and r["note"].strip()
        ]

    # --- leaderboard ---

    async def get_leaderboard(self, caller: AuthUser, widget_id: UUID, period: str = "day") -> List[Dict[str, Any]]:
        if period not in LEADERBOARD_PERIODS:
            raise ValidationError(
                f"Unsupported period: {period}", details={"allowed": list(LEADERBOARD_PERIODS)}
            )
        await require_widget_member(self._dashboards, widget_id, caller.id)
        today = utc_today(self._clock())
        key = Cache.build_key(leaderboard_prefix(widget_id), {"period": period, "day": today})

        try:
            cached = await self._cache.get_json(key)
        except (RedisError, OSError) as e:
            log_warning(f"Leaderboard cache read failed: {e}")
            cached = None
        if cached is not None:
            return cached

        rows = await self._repo.sessions_since(widget_id, leaderboard_start(period, today))
        board = aggregate_leaderboard(rows)
        try:
            await self._cache.set_json(key, board)
        except (RedisError, OSError) as e:
            log_warning(f"Leaderboard cache write failed: {e}")
        return board

    async def _invalidate_leaderboard(self, widget_id: UUID) -> None:
        try:
            await self._cache.invalidate_prefix(leaderboard_prefix(widget_id))
        except (RedisError, OSError) as e:
            log_warning(f"Leaderboard cache invalidation failed: {e}")
