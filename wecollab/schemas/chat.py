from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from wecollab.constants import CHAT_MESSAGE_MAX


class MessageIn(BaseModel):
    message: str = Field(..., min_length=1, max_length=CHAT_MESSAGE_MAX)


class MessageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    dashboard_id: UUID
    user_id: UUID
    message: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    display_name: Optional[str] = None
    email: Optional[str] = None
    avatar_url: Optional[str] = None


class UnreadOut(BaseModel):
    dashboard_id: UUID
    unread: int
    since: Optional[datetime] = None
