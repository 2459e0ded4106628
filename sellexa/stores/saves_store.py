"""Per-product save counts and the current user's saved-products list."""

import asyncio
import time
from typing import Any, Callable, Optional

from sellexa.data.cache_keys import TTL, StateKeys
from sellexa.data.models.save import SaveData, SavedProduct
from sellexa.data.repositories.base import SaveRepository
from sellexa.data.request_cache import CacheEntry
from sellexa.stores.base import BaseStore, LoadingFlags, entry_from_dict, entry_to_dict
from sellexa.stores.persistence import StatePersistence
from sellexa.stores.user_store import UserStore
from sellexa.utils.logger import get_current_logger

SAVED_PRODUCTS = "saved-products"


class SavesStore(BaseStore):
    """
    Save state per product.

    Writes are committed locally only once the backend has accepted them, so
    a failed toggle leaves the previous count and flag untouched. The entry
    timestamp only moves on :meth:`fetch_save_data`.
    """

    state_name = StateKeys.SAVES
    ttl = TTL.SAVES

    def __init__(
        self,
        user_store: UserStore,
        repository: SaveRepository,
        persistence: Optional[StatePersistence] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(persistence, clock)
        self.user_store = user_store
        self.repository = repository

        self.save_data: dict[str, CacheEntry[SaveData]] = {}
        self.save_error: dict[str, Optional[str]] = {}
        self.loading = LoadingFlags()

        self.saved_products: Optional[CacheEntry[list[SavedProduct]]] = None
        self.saved_products_error: Optional[str] = None

    def is_loading_save(self, product_id: str) -> bool:
        return self.loading.is_loading(product_id)

    @property
    def is_loading_saved_products(self) -> bool:
        return self.loading.is_loading(SAVED_PRODUCTS)

    async def toggle_save(self, product_id: str) -> bool:
        """
        Save or unsave ``product_id`` for the current user.

        Returns:
            True when the backend accepted the change; False when signed out,
            when a save operation for this product is already in flight, or
            when the backend rejected it
        """
        user_id = self.user_store.get_user_id()
        if not user_id:
            return False

        if not self.loading.try_acquire(product_id):
            return False

        logger = get_current_logger()
        self.save_error[product_id] = None
        entry = self.save_data.get(product_id)
        current = entry.data if entry else None
        was_saved = current.is_saved if current else False

        try:
            if was_saved:
                await self.repository.remove_save(product_id, user_id)
            else:
                await self.repository.add_save(product_id, user_id)
        except Exception as e:
            logger.error(f"Error toggling save for product {product_id}: {e}")
            self.save_error[product_id] = str(e) or "Failed to save product"
            return False
        finally:
            self.loading.release(product_id)

        if was_saved:
            new_count = max(0, (current.save_count if current and current.save_count else 1) - 1)
        else:
            new_count = (current.save_count if current else 0) + 1

        self.save_data[product_id] = CacheEntry(
            data=SaveData(product_id=product_id, save_count=new_count, is_saved=not was_saved),
            timestamp=entry.timestamp if entry else None,
        )

        if was_saved and self.saved_products is not None:
            remaining = [item for item in self.saved_products.data if item.product_id != product_id]
            self.saved_products = CacheEntry(data=remaining, timestamp=self.saved_products.timestamp)

        logger.info(f"Product {product_id} {'unsaved' if was_saved else 'saved'} (count={new_count})")
        await self.save_state()
        return True

    async def fetch_save_data(self, product_id: str) -> None:
        user_id = self.user_store.get_user_id()
        if not user_id:
            return

        if self.entry_is_fresh(self.save_data.get(product_id)):
            return

        if not self.loading.try_acquire(product_id):
            return

        self.save_error[product_id] = None
        try:
            save_count, is_saved = await asyncio.gather(
                self.repository.count_saves(product_id),
                self.repository.is_saved(product_id, user_id),
            )
            self.save_data[product_id] = self.refreshed(
                SaveData(product_id=product_id, save_count=save_count, is_saved=is_saved)
            )
        except Exception as e:
            get_current_logger().error(f"Error fetching save data for {product_id}: {e}")
            self.save_error[product_id] = str(e) or "Failed to fetch save data"
            return
        finally:
            self.loading.release(product_id)

        await self.save_state()

    async def fetch_saved_products(self) -> None:
        user_id = self.user_store.get_user_id()
        if not user_id:
            return

        if self.entry_is_fresh(self.saved_products) or not self.loading.try_acquire(SAVED_PRODUCTS):
            return

        self.saved_products_error = None
        try:
            products = await self.repository.list_saved_products(user_id)
            self.saved_products = self.refreshed(products)
        except Exception as e:
            get_current_logger().error(f"Error fetching saved products: {e}")
            self.saved_products_error = str(e) or "Failed to fetch saved products"
            return
        finally:
            self.loading.release(SAVED_PRODUCTS)

        await self.save_state()

    def clear_save_data(self, product_id: str) -> None:
        self.save_data.pop(product_id, None)
        self.save_error.pop(product_id, None)

    def clear_all_save_data(self) -> None:
        self.save_data = {}
        self.save_error = {}
        self.saved_products = None
        self.saved_products_error = None

    def get_save_data(self, product_id: str) -> Optional[SaveData]:
        entry = self.save_data.get(product_id)
        return entry.data if entry else None

    def is_saved(self, product_id: str) -> bool:
        data = self.get_save_data(product_id)
        return data.is_saved if data else False

    def get_save_count(self, product_id: str) -> int:
        data = self.get_save_data(product_id)
        return data.save_count if data else 0

    def get_saved_products(self) -> list[SavedProduct]:
        return self.saved_products.data if self.saved_products else []

    def is_saved_products_stale(self) -> bool:
        return self.entry_is_stale(self.saved_products)

    def snapshot(self) -> dict[str, Any]:
        return {
            "save_data": {
                pid: entry_to_dict(entry, lambda d: d.model_dump(mode="json"))
                for pid, entry in self.save_data.items()
            },
            "saved_products": entry_to_dict(
                self.saved_products, lambda items: [i.model_dump(mode="json") for i in items]
            ),
        }

    def restore_snapshot(self, state: dict[str, Any]) -> None:
        self.save_data = {
            pid: entry_from_dict(raw, SaveData.model_validate)
            for pid, raw in (state.get("save_data") or {}).items()
            if raw
        }
        self.saved_products = entry_from_dict(
            state.get("saved_products"), lambda items: [SavedProduct.model_validate(i) for i in items]
        )
