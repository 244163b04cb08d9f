# wecollab/services/profile_service.py

from typing import Any, Dict, List, Optional
from uuid import UUID

from wecollab.auth import AuthUser
from wecollab.constants import RECENT_ACTIVITY_DEFAULT, THEME_COLORS, THEME_MODES
from wecollab.middleware.error_handler import NotFoundError, ValidationError
from wecollab.repositories.profile_repository import ProfileRepository
from wecollab.utils.logger import log_info
from wecollab.utils.timers import summarize_sessions


class ProfileService:
    """Profile setup, preferences and personal timer statistics."""

    def __init__(self, repository: ProfileRepository):
        self._repo = repository

    async def get_profile(self, user_id: UUID) -> Dict[str, Any]:
        profile = await self._repo.get(user_id)
        if profile is None:
            raise NotFoundError("Profile not found")
        return profile

    async def setup_profile(self, caller: AuthUser, display_name: str,
                            avatar_url: Optional[str] = None) -> Dict[str, Any]:
        name = (display_name or "").strip()
        if not name:
            raise ValidationError("Display name is required")
        profile = await self._repo.upsert(
            caller.id, caller.normalized_email, name, (avatar_url or "").strip() or None
        )
        log_info(f"Profile set up for {caller.id}")
        return profile

    async def update_profile(self, caller: AuthUser, display_name: Optional[str] = None,
                             avatar_url: Optional[str] = None) -> Dict[str, Any]:
        values: Dict[str, Any] = {}
        if display_name is not None:
            name = display_name.strip()
            if not name:
                raise ValidationError("Display name cannot be empty")
            values["display_name"] = name
        if avatar_url is not None:
            # empty string means "use initials"
            values["avatar_url"] = avatar_url.strip() or None
        if not values:
            return await self.get_profile(caller.id)

        profile = await self._repo.update(caller.id, values)
        if profile is None:
            raise NotFoundError("Profile not found")
        return profile

    async def update_theme_preferences(self, caller: AuthUser, theme_mode: str,
                                       theme_color: str) -> Dict[str, Any]:
        if theme_mode not in THEME_MODES:
            raise ValidationError("Invalid theme mode", details={"allowed": sorted(THEME_MODES)})
        if theme_color not in THEME_COLORS:
            raise ValidationError("Invalid theme color", details={"allowed": sorted(THEME_COLORS)})
        profile = await self._repo.update(caller.id, {"theme_mode": theme_mode, "theme_color": theme_color})
        if profile is None:
            raise NotFoundError("Profile not found")
        return profile

    async def get_timer_stats(self, caller: AuthUser) -> Dict[str, Any]:
        rows = await self._repo.list_sessions(caller.id)
        return summarize_sessions(rows)

    async def get_recent_activity(self, caller: AuthUser,
                                  limit: int = RECENT_ACTIVITY_DEFAULT) -> List[Dict[str, Any]]:
        if limit < 1:
            raise ValidationError("limit must be positive")
        return await self._repo.recent_activity(caller.id, limit)
