from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr


class InviteCreateIn(BaseModel):
    email: EmailStr


class InviteOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    dashboard_id: UUID
    email: str
    invited_by: UUID
    status: str
    created_at: Optional[datetime] = None
    expires_at: datetime


class UserInviteOut(InviteOut):
    """Invite as seen by its recipient, with what is needed to join."""

    dashboard_name: str
    invite_code: str
    one_time_password: str
