from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from wecollab.auth import AuthUser, get_current_user
from wecollab.constants import CHAT_PAGE_DEFAULT
from wecollab.realtime.feed import get_feed
from wecollab.repositories.chat_repository import ChatRepository
from wecollab.repositories.dashboard_repository import DashboardRepository
from wecollab.schemas.chat import MessageIn, MessageOut, UnreadOut
from wecollab.schemas.common import StatusResponse
from wecollab.services.chat_service import ChatService

router = APIRouter(tags=["Chat"])


def get_service() -> ChatService:
    return ChatService(repository=ChatRepository(), dashboards=DashboardRepository(), feed=get_feed())


@router.get("/dashboards/{dashboard_id}/messages", response_model=List[MessageOut])
async def list_messages(
    dashboard_id: UUID,
    limit: int = Query(CHAT_PAGE_DEFAULT, ge=1, le=200),
    user: AuthUser = Depends(get_current_user),
    service: ChatService = Depends(get_service),
) -> List[MessageOut]:
    return [MessageOut(**m) for m in await service.list_messages(user, dashboard_id, limit)]


@router.post("/dashboards/{dashboard_id}/messages", response_model=MessageOut,
             status_code=status.HTTP_201_CREATED)
async def send_message(
    dashboard_id: UUID,
    payload: MessageIn,
    user: AuthUser = Depends(get_current_user),
    service: ChatService = Depends(get_service),
) -> MessageOut:
    return MessageOut(**await service.send_message(user, dashboard_id, payload.message))


@router.get("/dashboards/{dashboard_id}/messages/unread", response_model=UnreadOut)
async def unread_count(
    dashboard_id: UUID,
    since: Optional[datetime] = Query(None, description="Client's last visit to the chat"),
    user: AuthUser = Depends(get_current_user),
    service: ChatService = Depends(get_service),
) -> UnreadOut:
    count = await service.unread_count(user, dashboard_id, since)
    return UnreadOut(dashboard_id=dashboard_id, unread=count, since=since)


@router.delete("/messages/{message_id}", response_model=StatusResponse)
async def delete_message(
    message_id: UUID,
    user: AuthUser = Depends(get_current_user),
    service: ChatService = Depends(get_service),
) -> StatusResponse:
    await service.delete_message(user, message_id)
    return StatusResponse(success=True, message="deleted")
