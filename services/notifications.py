"""
Per-user notification outbox. Entries are immutable apart from the read flag.
"""
from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from schemas.notification import NotificationItem, NotificationType
from services.errors import NotFoundError
from services.store import KeyValueStore, StorageKeys
from utils.stamps import new_id, utc_now


class NotificationOutbox:
    def __init__(self, store: KeyValueStore, clock: Callable[[], datetime] = utc_now):
        self._store = store
        self._clock = clock

    def new_notification(
        self,
        user_id: str,
        title: str,
        message: str,
        type: NotificationType,
        related_application_id: Optional[str] = None,
    ) -> NotificationItem:
        return NotificationItem(
            id=new_id("ntf"),
            user_id=user_id,
            title=title,
            message=message,
            type=type,
            read=False,
            created_at=self._clock(),
            related_application_id=related_application_id,
        )

    async def create(
        self,
        user_id: str,
        title: str,
        message: str,
        type: NotificationType,
        related_application_id: Optional[str] = None,
    ) -> NotificationItem:
        item = self.new_notification(user_id, title, message, type, related_application_id)
        async with self._store.collections(StorageKeys.NOTIFICATIONS) as data:
            data[StorageKeys.NOTIFICATIONS].append(item.to_storage())
        return item

    async def get_notifications(self, user_id: str) -> list[NotificationItem]:
        rows = await self._store.get_list(StorageKeys.NOTIFICATIONS)
        items = [NotificationItem.model_validate(r) for r in rows if r.get("userId") == user_id]
        items.reverse()
        return sorted(items, key=lambda n: n.created_at, reverse=True)

    async def get_notification(self, notification_id: str) -> NotificationItem:
        rows = await self._store.get_list(StorageKeys.NOTIFICATIONS)
        for row in rows:
            if row.get("id") == notification_id:
                return NotificationItem.model_validate(row)
        raise NotFoundError("Notification not found")

    async def unread_count(self, user_id: str) -> int:
        return sum(1 for n in await self.get_notifications(user_id) if not n.read)

    async def mark_read(self, notification_id: str) -> NotificationItem:
        async with self._store.collections(StorageKeys.NOTIFICATIONS) as data:
            for row in data[StorageKeys.NOTIFICATIONS]:
                if row.get("id") == notification_id:
                    row["read"] = True
                    return NotificationItem.model_validate(row)
            raise NotFoundError("Notification not found")

    async def mark_all_read(self, user_id: str) -> int:
        """Mark every notification of the user read; returns how many changed."""
        changed = 0
        async with self._store.collections(StorageKeys.NOTIFICATIONS) as data:
            for row in data[StorageKeys.NOTIFICATIONS]:
                if row.get("userId") == user_id and not row.get("read"):
                    row["read"] = True
                    changed += 1
        return changed
