"""Backend operations for the ``notifications`` table."""

from sellexa.data.models.notification import Notification
from sellexa.data.supabase.client import SupabaseClient


class SupabaseNotificationRepository:

    def __init__(self, client: SupabaseClient) -> None:
        self._client = client

    async def list_notifications(self, user_id: str, limit: int = 50) -> list[Notification]:
        rows = await (
            self._client.table("notifications")
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", ascending=False)
            .limit(limit)
            .fetch()
        )
        return [Notification.model_validate(row) for row in rows]

    async def mark_read(self, notification_id: str, user_id: str) -> None:
        await (
            self._client.table("notifications")
            .eq("id", notification_id)
            .eq("user_id", user_id)
            .update({"read": True})
        )

    async def mark_all_read(self, user_id: str) -> None:
        await (
            self._client.table("notifications")
            .eq("user_id", user_id)
            .eq("read", False)
            .update({"read": True})
        )

    async def delete(self, notification_id: str, user_id: str) -> None:
        await self._client.table("notifications").eq("id", notification_id).eq("user_id", user_id).delete()
