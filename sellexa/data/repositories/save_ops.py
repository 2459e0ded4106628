"""Backend operations for the ``saves`` join table."""

from sellexa.data.models.save import SAVED_PRODUCT_COLUMNS, SavedProduct
from sellexa.data.supabase.client import SupabaseClient


class SupabaseSaveRepository:

    def __init__(self, client: SupabaseClient) -> None:
        self._client = client

    async def add_save(self, product_id: str, user_id: str) -> None:
        await self._client.table("saves").insert(
            {"product_id": product_id, "user_id": user_id}, returning=False
        )

    async def remove_save(self, product_id: str, user_id: str) -> None:
        await self._client.table("saves").eq("product_id", product_id).eq("user_id", user_id).delete()

    async def count_saves(self, product_id: str) -> int:
        count = await self._client.rpc("get_product_save_count", {"product_uuid": product_id})
        return int(count or 0)

    async def is_saved(self, product_id: str, user_id: str) -> bool:
        saved = await self._client.rpc(
            "is_product_saved_by_user", {"product_uuid": product_id, "user_uuid": user_id}
        )
        return bool(saved)

    async def list_saved_products(self, user_id: str) -> list[SavedProduct]:
        rows = await (
            self._client.table("saves")
            .select(SAVED_PRODUCT_COLUMNS)
            .eq("user_id", user_id)
            .order("created_at", ascending=False)
            .fetch()
        )
        return [SavedProduct.model_validate(row) for row in rows]
