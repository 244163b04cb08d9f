from __future__ import annotations

from pydantic import BaseModel


class StatusResponse(BaseModel):
    success: bool
    message: str
