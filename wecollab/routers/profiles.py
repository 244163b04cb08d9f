from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from wecollab.auth import AuthUser, get_current_user
from wecollab.constants import RECENT_ACTIVITY_DEFAULT
from wecollab.repositories.profile_repository import ProfileRepository
from wecollab.schemas.profiles import (
    ActivityOut,
    ProfileOut,
    ProfileSetupIn,
    ProfileUpdateIn,
    ThemeUpdateIn,
    TimerStatsOut,
)
from wecollab.services.profile_service import ProfileService

router = APIRouter(prefix="/profiles", tags=["Profiles"])


def get_service() -> ProfileService:
    return ProfileService(repository=ProfileRepository())


@router.get("/me", response_model=ProfileOut)
async def get_my_profile(
    user: AuthUser = Depends(get_current_user),
    service: ProfileService = Depends(get_service),
) -> ProfileOut:
    return ProfileOut(**await service.get_profile(user.id))


@router.put("/me", response_model=ProfileOut)
async def setup_profile(
    payload: ProfileSetupIn,
    user: AuthUser = Depends(get_current_user),
    service: ProfileService = Depends(get_service),
) -> ProfileOut:
    """Create or refresh the caller's profile after sign-in."""
    data = await service.setup_profile(user, payload.display_name, payload.avatar_url)
    return ProfileOut(**data)


@router.patch("/me", response_model=ProfileOut)
async def update_profile(
    payload: ProfileUpdateIn,
    user: AuthUser = Depends(get_current_user),
    service: ProfileService = Depends(get_service),
) -> ProfileOut:
    data = await service.update_profile(user, payload.display_name, payload.avatar_url)
    return ProfileOut(**data)


@router.put("/me/theme", response_model=ProfileOut)
async def update_theme(
    payload: ThemeUpdateIn,
    user: AuthUser = Depends(get_current_user),
    service: ProfileService = Depends(get_service),
) -> ProfileOut:
    data = await service.update_theme_preferences(user, payload.theme_mode, payload.theme_color)
    return ProfileOut(**data)


@router.get("/me/stats", response_model=TimerStatsOut)
async def get_timer_stats(
    user: AuthUser = Depends(get_current_user),
    service: ProfileService = Depends(get_service),
) -> TimerStatsOut:
    return TimerStatsOut(**await service.get_timer_stats(user))


@router.get("/me/activity", response_model=List[ActivityOut])
async def get_recent_activity(
    limit: int = Query(RECENT_ACTIVITY_DEFAULT, ge=1, le=100),
    user: AuthUser = Depends(get_current_user),
    service: ProfileService = Depends(get_service),
) -> List[ActivityOut]:
    rows = await service.get_recent_activity(user, limit)
    return [ActivityOut(**r) for r in rows]


@router.get("/{user_id}", response_model=ProfileOut)
async def get_profile(
    user_id: UUID,
    _: AuthUser = Depends(get_current_user),
    service: ProfileService = Depends(get_service),
) -> ProfileOut:
    return ProfileOut(**await service.get_profile(user_id))
