"""Backend operations for the ``profiles`` table."""

from typing import Any, Optional

from sellexa.data.models.profile import PUBLIC_PROFILE_COLUMNS, Profile
from sellexa.data.supabase.client import SupabaseClient
from sellexa.utils.logger import get_current_logger


class SupabaseProfileRepository:

    def __init__(self, client: SupabaseClient) -> None:
        self._client = client

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        row = await self._client.table("profiles").select("*").eq("id", user_id).fetch_maybe_one()
        return Profile.model_validate(row) if row else None

    async def get_public_profile(self, user_id: str) -> Optional[Profile]:
        row = await (
            self._client.table("profiles")
            .select(PUBLIC_PROFILE_COLUMNS)
            .eq("id", user_id)
            .fetch_maybe_one()
        )
        return Profile.model_validate(row) if row else None

    async def update_profile(self, user_id: str, updates: dict[str, Any]) -> None:
        await self._client.table("profiles").eq("id", user_id).update(updates)
        get_current_logger().info(f"Updated profile {user_id}: {sorted(updates)}")
