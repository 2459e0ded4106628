"""The current user's latest notifications and their unread count."""

import time
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from sellexa.data.cache_keys import TTL, StateKeys
from sellexa.data.models.notification import NewNotification, Notification
from sellexa.data.repositories.base import NotificationRepository
from sellexa.data.request_cache import CacheEntry
from sellexa.stores.base import BaseStore, LoadingFlags, entry_from_dict, entry_to_dict
from sellexa.stores.persistence import StatePersistence
from sellexa.stores.user_store import UserStore
from sellexa.utils.logger import get_current_logger

NOTIFICATIONS_LIMIT = 50
NOTIFICATIONS = "notifications"


def count_unread(notifications: list[Notification]) -> int:
    return sum(1 for n in notifications if not n.read)


class NotificationsStore(BaseStore):
    state_name = StateKeys.NOTIFICATIONS
    ttl = TTL.NOTIFICATIONS

    def __init__(
        self,
        user_store: UserStore,
        repository: NotificationRepository,
        persistence: Optional[StatePersistence] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(persistence, clock)
        self.user_store = user_store
        self.repository = repository

        self.notifications: Optional[CacheEntry[list[Notification]]] = None
        self.unread_count = 0
        self.error: Optional[str] = None
        self.loading = LoadingFlags()

    @property
    def is_loading(self) -> bool:
        return self.loading.is_loading(NOTIFICATIONS)

    def _replace(self, notifications: list[Notification]) -> None:
        timestamp = self.notifications.timestamp if self.notifications else None
        self.notifications = CacheEntry(data=notifications, timestamp=timestamp)
        self.unread_count = count_unread(notifications)

    async def fetch_notifications(self) -> None:
        user_id = self.user_store.get_user_id()
        if not user_id:
            return

        if self.entry_is_fresh(self.notifications) or not self.loading.try_acquire(NOTIFICATIONS):
            return

        self.error = None
        try:
            notifications = await self.repository.list_notifications(user_id, limit=NOTIFICATIONS_LIMIT)
            self.notifications = self.refreshed(notifications)
            self.unread_count = count_unread(notifications)
        except Exception as e:
            get_current_logger().error(f"Error fetching notifications: {e}")
            self.error = str(e) or "Failed to fetch notifications"
            return
        finally:
            self.loading.release(NOTIFICATIONS)

        await self.save_state()

    async def mark_as_read(self, notification_id: str) -> bool:
        user_id = self.user_store.get_user_id()
        if not user_id:
            return False

        try:
            await self.repository.mark_read(notification_id, user_id)
        except Exception as e:
            get_current_logger().error(f"Error marking notification {notification_id} as read: {e}")
            return False

        self._replace([
            n.model_copy(update={"read": True}) if n.id == notification_id else n
            for n in self.get_notifications()
        ])
        await self.save_state()
        return True

    async def mark_all_as_read(self) -> bool:
        user_id = self.user_store.get_user_id()
        if not user_id:
            return False

        try:
            await self.repository.mark_all_read(user_id)
        except Exception as e:
            get_current_logger().error(f"Error marking all notifications as read: {e}")
            return False

        self._replace([n.model_copy(update={"read": True}) for n in self.get_notifications()])
        await self.save_state()
        return True

    async def delete_notification(self, notification_id: str) -> bool:
        user_id = self.user_store.get_user_id()
        if not user_id:
            return False

        try:
            await self.repository.delete(notification_id, user_id)
        except Exception as e:
            get_current_logger().error(f"Error deleting notification {notification_id}: {e}")
            return False

        self._replace([n for n in self.get_notifications() if n.id != notification_id])
        await self.save_state()
        return True

    def add_notification(self, notification: NewNotification) -> Notification:
        """Prepend a locally synthesised notification with a ``temp-`` id."""
        now = self.clock()
        created = Notification(
            **notification.model_dump(),
            id=f"temp-{int(now * 1000)}",
            created_at=datetime.fromtimestamp(now, tz=timezone.utc).isoformat(),
        )
        self._replace([created, *self.get_notifications()])
        return created

    def clear_notifications(self) -> None:
        self.notifications = None
        self.unread_count = 0
        self.error = None

    def get_notifications(self) -> list[Notification]:
        return list(self.notifications.data) if self.notifications else []

    def get_unread_notifications(self) -> list[Notification]:
        return [n for n in self.get_notifications() if not n.read]

    def get_read_notifications(self) -> list[Notification]:
        return [n for n in self.get_notifications() if n.read]

    def get_unread_count(self) -> int:
        return self.unread_count

    def is_stale(self) -> bool:
        return self.entry_is_stale(self.notifications)

    def snapshot(self) -> dict[str, Any]:
        return {
            "notifications": entry_to_dict(
                self.notifications, lambda items: [n.model_dump(mode="json") for n in items]
            ),
            "unread_count": self.unread_count,
        }

    def restore_snapshot(self, state: dict[str, Any]) -> None:
        self.notifications = entry_from_dict(
            state.get("notifications"), lambda items: [Notification.model_validate(n) for n in items]
        )
        self.unread_count = count_unread(self.get_notifications())
