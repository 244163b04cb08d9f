from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query

from wecollab.auth import AuthUser, get_current_user
from wecollab.config import settings
from wecollab.realtime.feed import get_feed
from wecollab.repositories.dashboard_repository import DashboardRepository
from wecollab.repositories.timer_repository import TimerRepository
from wecollab.schemas.timers import (
    LeaderboardEntryOut,
    LeaderboardPeriod,
    MemberTimerOut,
    TeamNoteOut,
    TimerNoteIn,
    TimerSessionOut,
    TimerStateOut,
    TimerStopIn,
    TimerStopOut,
)
from wecollab.services.timer_service import TimerService
from wecollab.utils.cache import Cache

router = APIRouter(prefix="/widgets", tags=["Timers"])

_cache = Cache(ttl_seconds=settings.LEADERBOARD_CACHE_TTL)


def get_service() -> TimerService:
    return TimerService(
        repository=TimerRepository(),
        dashboards=DashboardRepository(),
        feed=get_feed(),
        cache=_cache,
    )


@router.get("/{widget_id}/timer", response_model=TimerStateOut)
async def get_timer_state(
    widget_id: UUID,
    user: AuthUser = Depends(get_current_user),
    service: TimerService = Depends(get_service),
) -> TimerStateOut:
    return TimerStateOut(**await service.get_timer_state(user, widget_id))


@router.get("/{widget_id}/timers", response_model=List[MemberTimerOut])
async def list_timer_states(
    widget_id: UUID,
    user: AuthUser = Depends(get_current_user),
    service: TimerService = Depends(get_service),
) -> List[MemberTimerOut]:
    return [MemberTimerOut(**s) for s in await service.list_timer_states(user, widget_id)]


@router.post("/{widget_id}/timer/start", response_model=TimerStateOut)
async def start_timer(
    widget_id: UUID,
    user: AuthUser = Depends(get_current_user),
    service: TimerService = Depends(get_service),
) -> TimerStateOut:
    return TimerStateOut(**await service.start_timer(user, widget_id))


@router.post("/{widget_id}/timer/pause", response_model=TimerStateOut)
async def pause_timer(
    widget_id: UUID,
    user: AuthUser = Depends(get_current_user),
    service: TimerService = Depends(get_service),
) -> TimerStateOut:
    return TimerStateOut(**await service.pause_timer(user, widget_id))


@router.post("/{widget_id}/timer/stop", response_model=TimerStopOut)
async def stop_timer(
    widget_id: UUID,
    payload: Optional[TimerStopIn] = Body(None),
    user: AuthUser = Depends(get_current_user),
    service: TimerService = Depends(get_service),
) -> TimerStopOut:
    note = payload.note if payload else None
    return TimerStopOut(**await service.stop_timer(user, widget_id, note))


@router.get("/{widget_id}/sessions/today", response_model=TimerSessionOut)
async def get_today_session(
    widget_id: UUID,
    user: AuthUser = Depends(get_current_user),
    service: TimerService = Depends(get_service),
) -> TimerSessionOut:
    return TimerSessionOut(**await service.get_today_session(user, widget_id))


@router.put("/{widget_id}/sessions/today/note", response_model=TimerSessionOut)
async def update_timer_note(
    widget_id: UUID,
    payload: TimerNoteIn,
    user: AuthUser = Depends(get_current_user),
    service: TimerService = Depends(get_service),
) -> TimerSessionOut:
    return TimerSessionOut(**await service.update_timer_note(user, widget_id, payload.note))


@router.get("/{widget_id}/notes", response_model=List[TeamNoteOut])
async def get_team_notes(
    widget_id: UUID,
    user: AuthUser = Depends(get_current_user),
    service: TimerService = Depends(get_service),
) -> List[TeamNoteOut]:
    return [TeamNoteOut(**n) for n in await service.get_team_notes(user, widget_id)]


@router.get("/{widget_id}/leaderboard", response_model=List[LeaderboardEntryOut])
async def get_leaderboard(
    widget_id: UUID,
    period: LeaderboardPeriod = Query("day"),
    user: AuthUser = Depends(get_current_user),
    service: TimerService = Depends(get_service),
) -> List[LeaderboardEntryOut]:
    return [LeaderboardEntryOut(**e) for e in await service.get_leaderboard(user, widget_id, period)]
