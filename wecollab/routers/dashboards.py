from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status

from wecollab.auth import AuthUser, get_current_user
from wecollab.realtime.feed import get_feed
from wecollab.repositories.dashboard_repository import DashboardRepository
from wecollab.repositories.invite_repository import InviteRepository
from wecollab.schemas.common import StatusResponse
from wecollab.schemas.dashboards import (
    CredentialsOut,
    DashboardCreatedOut,
    DashboardCreateIn,
    DashboardDetailOut,
    DashboardJoinIn,
    DashboardOut,
    DashboardRenameIn,
    MembershipOut,
    WidgetOut,
)
from wecollab.services.dashboard_service import DashboardService

router = APIRouter(prefix="/dashboards", tags=["Dashboards"])


def get_service() -> DashboardService:
    """Provide service with DI so handlers stay thin."""
    return DashboardService(
        repository=DashboardRepository(),
        invites=InviteRepository(),
        feed=get_feed(),
    )


@router.post("", response_model=DashboardCreatedOut, status_code=status.HTTP_201_CREATED)
async def create_dashboard(
    payload: DashboardCreateIn,
    user: AuthUser = Depends(get_current_user),
    service: DashboardService = Depends(get_service),
) -> DashboardCreatedOut:
    data = await service.create_dashboard(user, payload.name)
    return DashboardCreatedOut(**data)


@router.get("", response_model=List[MembershipOut])
async def list_dashboards(
    user: AuthUser = Depends(get_current_user),
    service: DashboardService = Depends(get_service),
) -> List[MembershipOut]:
    return [MembershipOut(**m) for m in await service.list_user_dashboards(user)]


@router.post("/join", response_model=DashboardOut)
async def join_dashboard(
    payload: DashboardJoinIn,
    user: AuthUser = Depends(get_current_user),
    service: DashboardService = Depends(get_service),
) -> DashboardOut:
    dashboard = await service.join_dashboard(user, payload.invite_code, payload.otp)
    return DashboardOut(**dashboard)


@router.get("/{dashboard_id}", response_model=DashboardDetailOut)
async def get_dashboard(
    dashboard_id: UUID,
    user: AuthUser = Depends(get_current_user),
    service: DashboardService = Depends(get_service),
) -> DashboardDetailOut:
    return DashboardDetailOut(**await service.get_dashboard(user, dashboard_id))


@router.patch("/{dashboard_id}", response_model=DashboardOut)
async def rename_dashboard(
    dashboard_id: UUID,
    payload: DashboardRenameIn,
    user: AuthUser = Depends(get_current_user),
    service: DashboardService = Depends(get_service),
) -> DashboardOut:
    return DashboardOut(**await service.rename_dashboard(user, dashboard_id, payload.name))


@router.delete("/{dashboard_id}", response_model=StatusResponse)
async def delete_dashboard(
    dashboard_id: UUID,
    user: AuthUser = Depends(get_current_user),
    service: DashboardService = Depends(get_service),
) -> StatusResponse:
    await service.delete_dashboard(user, dashboard_id)
    return StatusResponse(success=True, message="deleted")


@router.post("/{dashboard_id}/leave", response_model=StatusResponse)
async def leave_dashboard(
    dashboard_id: UUID,
    user: AuthUser = Depends(get_current_user),
    service: DashboardService = Depends(get_service),
) -> StatusResponse:
    await service.leave_dashboard(user, dashboard_id)
    return StatusResponse(success=True, message="left")


@router.post("/{dashboard_id}/credentials", response_model=CredentialsOut)
async def regenerate_credentials(
    dashboard_id: UUID,
    user: AuthUser = Depends(get_current_user),
    service: DashboardService = Depends(get_service),
) -> CredentialsOut:
    return CredentialsOut(**await service.regenerate_credentials(user, dashboard_id))


@router.get("/{dashboard_id}/widgets", response_model=List[WidgetOut])
async def list_widgets(
    dashboard_id: UUID,
    user: AuthUser = Depends(get_current_user),
    service: DashboardService = Depends(get_service),
) -> List[WidgetOut]:
    return [WidgetOut(**w) for w in await service.list_widgets(user, dashboard_id)]


@router.delete("/{dashboard_id}/members/{user_id}", response_model=StatusResponse)
async def remove_member(
    dashboard_id: UUID,
    user_id: UUID,
    user: AuthUser = Depends(get_current_user),
    service: DashboardService = Depends(get_service),
) -> StatusResponse:
    await service.remove_member(user, dashboard_id, user_id)
    return StatusResponse(success=True, message="removed")
