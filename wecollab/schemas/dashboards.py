from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from wecollab.constants import DASHBOARD_NAME_MAX


class DashboardCreateIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=DASHBOARD_NAME_MAX)


class DashboardRenameIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=DASHBOARD_NAME_MAX)


class DashboardJoinIn(BaseModel):
    invite_code: str = Field(..., min_length=1, max_length=32)
    otp: str = Field(..., min_length=1, max_length=16)


class MemberOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    role: str
    display_name: Optional[str] = None
    email: Optional[str] = None
    avatar_url: Optional[str] = None
    joined_at: Optional[datetime] = None


class WidgetOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    dashboard_id: UUID
    title: str
    position: int
    is_default: bool = False
    created_at: Optional[datetime] = None


class DashboardOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    owner_id: UUID
    invite_code: str
    one_time_password: str
    max_users: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    members: List[MemberOut] = []


class DashboardDetailOut(DashboardOut):
    widgets: List[WidgetOut] = []


class MembershipOut(BaseModel):
    dashboard_id: UUID
    role: str
    dashboard: DashboardOut


class DashboardCreatedOut(BaseModel):
    dashboard: DashboardOut
    invite_code: str
    otp: str


class CredentialsOut(BaseModel):
    invite_code: str
    otp: str
