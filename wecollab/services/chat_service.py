# wecollab/services/chat_service.py

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
from uuid import UUID

from wecollab.auth import AuthUser
from wecollab.constants import CHAT_MESSAGE_MAX, CHAT_PAGE_DEFAULT
from wecollab.middleware.error_handler import NotFoundError, PermissionDeniedError, ValidationError
from wecollab.realtime.feed import INSERT, UPDATE, RealtimeFeed, chat_channel
from wecollab.repositories.chat_repository import ChatRepository
from wecollab.repositories.dashboard_repository import DashboardRepository
from wecollab.services.access import require_member
from wecollab.utils.timers import utc_now


class ChatService:
    """Dashboard chat: history, send, soft delete and unread counts."""

    def __init__(
        self,
        repository: ChatRepository,
        dashboards: DashboardRepository,
        feed: RealtimeFeed,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._repo = repository
        self._dashboards = dashboards
        self._feed = feed
        self._clock = clock

    async def list_messages(self, caller: AuthUser, dashboard_id: UUID,
                            limit: int = CHAT_PAGE_DEFAULT) -> List[Dict[str, Any]]:
        if limit < 1:
            raise ValidationError("limit must be positive")
        await require_member(self._dashboards, dashboard_id, caller.id)
        return await self._repo.list_recent(dashboard_id, limit)

    async def send_message(self, caller: AuthUser, dashboard_id: UUID, text: str) -> Dict[str, Any]:
        message = (text or "").strip()
        if not message:
            raise ValidationError("Message cannot be empty")
        if len(message) > CHAT_MESSAGE_MAX:
            raise ValidationError(f"Message must be at most {CHAT_MESSAGE_MAX} characters")
        await require_member(self._dashboards, dashboard_id, caller.id)

        row = await self._repo.insert(dashboard_id, caller.id, message)
        await self._feed.publish(chat_channel(dashboard_id), INSERT, "chat_messages", row)
        return row

    async def delete_message(self, caller: AuthUser, message_id: UUID) -> None:
        """Soft delete; only the author may remove a message."""
        message = await self._repo.get(message_id)
        if message is None or message.get("deleted_at") is not None:
            raise NotFoundError("Message not found")
        if message["user_id"] != caller.id:
            raise PermissionDeniedError("You can only delete your own messages")

        deleted = await self._repo.soft_delete(message_id, self._clock())
        if deleted is None:
            raise NotFoundError("Message not found")
        await self._feed.publish(chat_channel(message["dashboard_id"]), UPDATE, "chat_messages", deleted)

    async def unread_count(self, caller: AuthUser, dashboard_id: UUID,
                           since: Optional[datetime] = None) -> int:
        await require_member(self._dashboards, dashboard_id, caller.id)
        return await self._repo.count_unread(dashboard_id, caller.id, since)
