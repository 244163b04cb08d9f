from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status

from wecollab.auth import AuthUser, get_current_user
from wecollab.config import settings
from wecollab.jobs.queue import enqueue_invite_notification
from wecollab.realtime.feed import get_feed
from wecollab.repositories.dashboard_repository import DashboardRepository
from wecollab.repositories.invite_repository import InviteRepository
from wecollab.schemas.common import StatusResponse
from wecollab.schemas.dashboards import DashboardOut
from wecollab.schemas.invites import InviteCreateIn, InviteOut, UserInviteOut
from wecollab.services.dashboard_service import DashboardService
from wecollab.services.invite_service import InviteService

router = APIRouter(tags=["Invites"])


def get_service() -> InviteService:
    dashboards = DashboardRepository()
    invites = InviteRepository()
    feed = get_feed()
    return InviteService(
        repository=invites,
        dashboards=dashboards,
        memberships=DashboardService(repository=dashboards, invites=invites, feed=feed),
        feed=feed,
        notify=enqueue_invite_notification,
        ttl_days=settings.INVITE_TTL_DAYS,
    )


@router.post("/dashboards/{dashboard_id}/invites", response_model=InviteOut,
             status_code=status.HTTP_201_CREATED)
async def send_invite(
    dashboard_id: UUID,
    payload: InviteCreateIn,
    user: AuthUser = Depends(get_current_user),
    service: InviteService = Depends(get_service),
) -> InviteOut:
    return InviteOut(**await service.send_email_invite(user, dashboard_id, payload.email))


@router.get("/dashboards/{dashboard_id}/invites", response_model=List[InviteOut])
async def list_pending_invites(
    dashboard_id: UUID,
    user: AuthUser = Depends(get_current_user),
    service: InviteService = Depends(get_service),
) -> List[InviteOut]:
    return [InviteOut(**i) for i in await service.list_pending_invites(user, dashboard_id)]


@router.get("/invites", response_model=List[UserInviteOut])
async def list_my_invites(
    user: AuthUser = Depends(get_current_user),
    service: InviteService = Depends(get_service),
) -> List[UserInviteOut]:
    return [UserInviteOut(**i) for i in await service.list_invites_for_user(user)]


@router.delete("/invites/{invite_id}", response_model=StatusResponse)
async def cancel_invite(
    invite_id: UUID,
    user: AuthUser = Depends(get_current_user),
    service: InviteService = Depends(get_service),
) -> StatusResponse:
    await service.cancel_invite(user, invite_id)
    return StatusResponse(success=True, message="cancelled")


@router.post("/invites/{invite_id}/accept", response_model=DashboardOut)
async def accept_invite(
    invite_id: UUID,
    user: AuthUser = Depends(get_current_user),
    service: InviteService = Depends(get_service),
) -> DashboardOut:
    return DashboardOut(**await service.accept_invite(user, invite_id))


@router.post("/invites/{invite_id}/decline", response_model=InviteOut)
async def decline_invite(
    invite_id: UUID,
    user: AuthUser = Depends(get_current_user),
    service: InviteService = Depends(get_service),
) -> InviteOut:
    return InviteOut(**await service.decline_invite(user, invite_id))
