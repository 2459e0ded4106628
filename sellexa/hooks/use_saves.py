"""Save/unsave helpers bound to a mount lifecycle."""

import asyncio
from typing import Literal, Optional

from sellexa.data.models.save import SavedProduct
from sellexa.stores.app_state import AppState
from sellexa.utils.logger import AppLogger, set_app_context
from sellexa.utils.response_format import ApiResult, create_api_error, create_api_result
from sellexa.utils.status import Status

BatchAction = Literal["save", "unsave"]


class SavesSession:
    """Thin action surface over :class:`~sellexa.stores.SavesStore`."""

    def __init__(self, state: AppState) -> None:
        self.state = state
        self.error: Optional[str] = None

    @property
    def store(self):
        return self.state.saves

    @property
    def saved_products(self) -> list[SavedProduct]:
        return self.store.get_saved_products()

    async def mount(self) -> None:
        await self.load_user_saved_products()

    async def unmount(self) -> None:
        pass

    async def __aenter__(self) -> "SavesSession":
        await self.mount()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.unmount()

    async def load_user_saved_products(self) -> None:
        with set_app_context(AppLogger.STORES):
            await self.store.fetch_saved_products()
        self.error = self.store.saved_products_error

    async def toggle_save(self, product_id: str) -> ApiResult[None]:
        if not self.state.user.is_authenticated():
            return create_api_error("Sign in to save products", Status.UNAUTHENTICATED)

        self.error = None
        with set_app_context(AppLogger.STORES):
            toggled = await self.store.toggle_save(product_id)
        if toggled:
            return create_api_result(None)

        self.error = self.store.save_error.get(product_id) or "Failed to save product"
        return create_api_error(self.error)

    async def batch_toggle_saves(self, product_ids: list[str], action: BatchAction) -> dict[str, bool]:
        """
        Bring every product to the saved (``action="save"``) or unsaved state.

        Products already in the target state are left alone and count as
        successful.

        Returns:
            Mapping of product id to whether it ended in the target state
        """
        want_saved = action == "save"
        results: dict[str, bool] = {}
        for product_id in product_ids:
            if self.store.is_saved(product_id) == want_saved:
                results[product_id] = True
                continue
            results[product_id] = (await self.toggle_save(product_id)).success
        return results

    async def load_product_save_count(self, product_id: str) -> int:
        with set_app_context(AppLogger.STORES):
            await self.store.fetch_save_data(product_id)
        return self.store.get_save_count(product_id)

    async def load_products_save_data(self, product_ids: list[str]) -> None:
        with set_app_context(AppLogger.STORES):
            await asyncio.gather(*(self.store.fetch_save_data(pid) for pid in product_ids))

    async def check_product_save_status(self, product_id: str) -> bool:
        with set_app_context(AppLogger.STORES):
            await self.store.fetch_save_data(product_id)
        return self.store.is_saved(product_id)

    def clear_error(self) -> None:
        self.error = None

    def is_product_saved(self, product_id: str) -> bool:
        return self.store.is_saved(product_id)

    def get_save_count(self, product_id: str) -> int:
        return self.store.get_save_count(product_id)
