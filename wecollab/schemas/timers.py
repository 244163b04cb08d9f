from __future__ import annotations

from datetime import date, datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

LeaderboardPeriod = Literal["day", "week", "month"]


class TimerStateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    widget_id: UUID
    user_id: UUID
    status: str
    current_seconds: int
    started_at: Optional[datetime] = None
    last_updated: Optional[datetime] = None
    # derived at read time, never stored
    elapsed_seconds: int


class MemberTimerOut(TimerStateOut):
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None


class TimerSessionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    widget_id: UUID
    user_id: UUID
    date: date
    total_seconds: int
    session_count: int
    note: Optional[str] = None


class TimerStopIn(BaseModel):
    note: Optional[str] = Field(None, max_length=2000)


class TimerStopOut(BaseModel):
    state: TimerStateOut
    session: TimerSessionOut
    recorded_seconds: int


class TimerNoteIn(BaseModel):
    note: str = Field(..., max_length=2000)


class LeaderboardEntryOut(BaseModel):
    rank: int
    user_id: UUID
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    total_seconds: int


class TeamNoteOut(BaseModel):
    user_id: UUID
    display_name: Optional[str] = None
    note: str
    total_seconds: int
