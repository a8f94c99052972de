# app/services/notification_store.py
"""
In-memory inbox of the signed-in user, kept consistent with the backend
through an initial fetch plus the live feed of inserted notifications.
"""

import logging
from typing import Any, Dict, List, Optional, Set

from app.config import settings
from app.errors import NotFoundError
from app.schemas.notification import NotificationOut
from app.schemas.profile import CurrentUser
from app.services.live_state import LiveState
from app.services.realtime import INSERT, ChangeEvent

logger = logging.getLogger(__name__)


class NotificationStore(LiveState):
    """Notifications of one user, newest first"""

    def __init__(self, gateway, user: CurrentUser, page_size: Optional[int] = None, loading_timeout: Optional[float] = None):
        super().__init__(loading_timeout)
        self.gateway = gateway
        self.user = user
        self.page_size = page_size or settings.NOTIFICATION_PAGE_SIZE
        self.notifications: List[NotificationOut] = []
        # Ids deleted locally; a late insert event for one of them is ignored
        self._deleted_ids: Set[int] = set()

    @property
    def channel_name(self) -> str:
        return f"notifications:{self.user.id}"

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self.notifications if not n.is_read)

    def _index(self, notification_id: int) -> int:
        for i, n in enumerate(self.notifications):
            if n.id == notification_id:
                return i
        return -1

    async def fetch(self) -> List[NotificationOut]:
        rows = self._check(await self.gateway.select(
            "notifications",
            {"user_id": self.user.id},
            order_by=("-created_at", "-id"),
            limit=self.page_size,
        ))
        self.notifications = [NotificationOut.model_validate(row) for row in rows]
        return self.notifications

    async def initialize(self) -> List[NotificationOut]:
        notifications = await self._load(self.fetch())
        await self._emit()
        return notifications

    def subscribe(self) -> None:
        """Attach to the user's live feed; calling it again is a no-op"""
        if self._unsubscribe is not None or self._disposed:
            return
        self._unsubscribe = self.gateway.subscribe(
            self.channel_name,
            "notifications",
            {"user_id": self.user.id},
            self._on_event,
            events=(INSERT,),
        )

    async def _on_event(self, event: ChangeEvent) -> None:
        if self._disposed or event.event_type != INSERT:
            return
        if self.apply_insert(NotificationOut.model_validate(event.new)):
            await self._emit()

    def apply_insert(self, notification: NotificationOut) -> bool:
        """Merge a pushed notification; returns False when it was already known"""
        if notification.user_id != self.user.id:
            return False
        if notification.id in self._deleted_ids or self._index(notification.id) >= 0:
            return False
        self.notifications.insert(0, notification)
        return True

    async def mark_as_read(self, notification_id: int) -> NotificationOut:
        rows = self._check(await self.gateway.update(
            "notifications",
            {"id": notification_id, "user_id": self.user.id},
            {"is_read": True},
        ))
        if not rows:
            raise NotFoundError("Notification not found")

        updated = NotificationOut.model_validate(rows[0])
        i = self._index(notification_id)
        if i >= 0:
            self.notifications[i] = self.notifications[i].model_copy(update={"is_read": True})
        await self._emit()
        return updated

    async def mark_all_as_read(self) -> int:
        rows = self._check(await self.gateway.update(
            "notifications",
            {"user_id": self.user.id, "is_read": False},
            {"is_read": True},
        ))
        self.notifications = [n.model_copy(update={"is_read": True}) for n in self.notifications]
        await self._emit()
        return len(rows)

    async def delete(self, notification_id: int) -> None:
        rows = self._check(await self.gateway.delete(
            "notifications",
            {"id": notification_id, "user_id": self.user.id},
        ))
        if not rows:
            raise NotFoundError("Notification not found")

        self._deleted_ids.add(notification_id)
        self.notifications = [n for n in self.notifications if n.id != notification_id]
        await self._emit()

    async def clear_all(self) -> int:
        rows = self._check(await self.gateway.delete("notifications", {"user_id": self.user.id}))
        self._deleted_ids.update(row["id"] for row in rows)
        self.notifications = []
        await self._emit()
        return len(rows)

    def snapshot(self) -> Dict[str, Any]:
        return {
            "notifications": [n.model_dump(mode="json") for n in self.notifications],
            "unread_count": self.unread_count,
            "is_loading": self.is_loading,
            "error": self.error,
        }
