from __future__ import annotations

from datetime import date, datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

ThemeMode = Literal["light", "dark", "system"]


class ProfileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    display_name: str
    email: Optional[str] = None
    avatar_url: Optional[str] = None
    phone: Optional[str] = None
    theme_mode: str = "system"
    theme_color: str = "theme-zinc"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProfileSetupIn(BaseModel):
    display_name: str = Field(..., min_length=1, max_length=80)
    avatar_url: Optional[str] = Field(None, max_length=2048)


class ProfileUpdateIn(BaseModel):
    display_name: Optional[str] = Field(None, max_length=80)
    # empty string clears the avatar (initials are shown instead)
    avatar_url: Optional[str] = Field(None, max_length=2048)


class ThemeUpdateIn(BaseModel):
    theme_mode: ThemeMode
    theme_color: str


class TimerStatsOut(BaseModel):
    total_seconds: int
    session_count: int
    avg_seconds: int
    most_used_widget: str


class ActivityOut(BaseModel):
    id: UUID
    widget_id: UUID
    date: date
    total_seconds: int
    session_count: int
    note: Optional[str] = None
    widget_title: Optional[str] = None
    dashboard_id: Optional[UUID] = None
    dashboard_name: Optional[str] = None
