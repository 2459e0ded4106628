"""Feed, category, seller and single-product caches."""

import time
from typing import Any, Callable, Optional

from sellexa.data.cache_keys import TTL, StateKeys
from sellexa.data.models.product import FeedSection, Product, ProductFilters, SellerSummary
from sellexa.data.repositories.base import ProductRepository
from sellexa.data.request_cache import CacheEntry
from sellexa.stores.base import BaseStore, LoadingFlags, entry_from_dict, entry_to_dict
from sellexa.stores.persistence import StatePersistence
from sellexa.utils.logger import get_current_logger

FEED_LIMIT = 50
CATEGORY_LIMIT = 40
FEED = "feed"


def group_by_seller(products: list[Product]) -> list[FeedSection]:
    """Group feed products per seller, sellers with the most products first."""
    sections: dict[str, FeedSection] = {}
    for product in products:
        section = sections.get(product.user_id)
        if section is None:
            if product.profiles is not None:
                seller = product.profiles.model_copy(update={"id": product.user_id})
            else:
                seller = SellerSummary(id=product.user_id)
            section = sections[product.user_id] = FeedSection(seller=seller)
        section.products.append(product)
    # sorted() is stable, so equal-sized sections keep feed order
    return sorted(sections.values(), key=lambda s: len(s.products), reverse=True)


def _dump_products(products: list[Product]) -> list[dict[str, Any]]:
    return [p.model_dump(mode="json") for p in products]


def _load_products(raw: list[dict[str, Any]]) -> list[Product]:
    return [Product.model_validate(p) for p in raw]


class ProductsStore(BaseStore):
    state_name = StateKeys.PRODUCTS
    ttl = TTL.PRODUCTS

    def __init__(
        self,
        repository: ProductRepository,
        persistence: Optional[StatePersistence] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(persistence, clock)
        self.repository = repository

        self.feed: Optional[CacheEntry[list[Product]]] = None
        self.feed_sections: list[FeedSection] = []
        self.feed_error: Optional[str] = None

        self.category_products: dict[str, CacheEntry[list[Product]]] = {}
        self.category_error: dict[str, Optional[str]] = {}

        self.product_cache: dict[str, Product] = {}
        self.product_error: dict[str, Optional[str]] = {}

        self.seller_products: dict[str, CacheEntry[list[Product]]] = {}
        self.seller_error: dict[str, Optional[str]] = {}

        self.loading = LoadingFlags()

    @property
    def is_loading_feed(self) -> bool:
        return self.loading.is_loading(FEED)

    def is_loading_category(self, category: str) -> bool:
        return self.loading.is_loading(f"category:{category}")

    def is_loading_product(self, product_id: str) -> bool:
        return self.loading.is_loading(f"product:{product_id}")

    def is_loading_seller(self, seller_id: str) -> bool:
        return self.loading.is_loading(f"seller:{seller_id}")

    async def fetch_feed_products(self) -> None:
        if self.entry_is_fresh(self.feed) or not self.loading.try_acquire(FEED):
            return

        self.feed_error = None
        try:
            products = await self.repository.list_feed(limit=FEED_LIMIT)
            self.feed = self.refreshed(products)
            self.feed_sections = group_by_seller(products)
        except Exception as e:
            get_current_logger().error(f"Error fetching feed products: {e}")
            self.feed_error = str(e) or "Failed to fetch products"
            return
        finally:
            self.loading.release(FEED)

        await self.save_state()

    async def fetch_category_products(self, category: str) -> None:
        key = f"category:{category}"
        if self.entry_is_fresh(self.category_products.get(category)) or not self.loading.try_acquire(key):
            return

        self.category_error[category] = None
        try:
            products = await self.repository.list_by_category(category, limit=CATEGORY_LIMIT)
            self.category_products[category] = self.refreshed(products)
        except Exception as e:
            get_current_logger().error(f"Error fetching {category} products: {e}")
            self.category_error[category] = str(e) or "Failed to fetch products"
            return
        finally:
            self.loading.release(key)

        await self.save_state()

    async def fetch_product(self, product_id: str) -> Optional[Product]:
        """Return a product, fetching it only when it is not cached yet."""
        cached = self.product_cache.get(product_id)
        if cached is not None:
            return cached

        key = f"product:{product_id}"
        if not self.loading.try_acquire(key):
            return None

        self.product_error[product_id] = None
        try:
            product = await self.repository.get_product(product_id)
            self.product_cache[product_id] = product
        except Exception as e:
            get_current_logger().error(f"Error fetching product {product_id}: {e}")
            self.product_error[product_id] = str(e) or "Failed to fetch product"
            return None
        finally:
            self.loading.release(key)

        await self.save_state()
        return product

    async def fetch_seller_products(self, seller_id: str) -> None:
        key = f"seller:{seller_id}"
        if self.entry_is_fresh(self.seller_products.get(seller_id)) or not self.loading.try_acquire(key):
            return

        self.seller_error[seller_id] = None
        try:
            products = await self.repository.list_by_seller(seller_id)
            self.seller_products[seller_id] = self.refreshed(products)
        except Exception as e:
            get_current_logger().error(f"Error fetching seller products for {seller_id}: {e}")
            self.seller_error[seller_id] = str(e) or "Failed to fetch products"
            return
        finally:
            self.loading.release(key)

        await self.save_state()

    async def search_products(self, filters: ProductFilters) -> list[Product]:
        """Uncached product search; failures give an empty list."""
        try:
            return await self.repository.search(filters, limit=FEED_LIMIT)
        except Exception as e:
            get_current_logger().error(f"Error searching products: {e}")
            return []

    def clear_cache(self) -> None:
        self.feed = None
        self.feed_sections = []
        self.category_products = {}
        self.product_cache = {}
        self.seller_products = {}

    def clear_category_cache(self, category: str) -> None:
        self.category_products.pop(category, None)

    def clear_seller_cache(self, seller_id: str) -> None:
        self.seller_products.pop(seller_id, None)

    def get_feed_products(self) -> list[Product]:
        return self.feed.data if self.feed else []

    def get_feed_sections(self) -> list[FeedSection]:
        return self.feed_sections

    def get_category_products(self, category: str) -> list[Product]:
        entry = self.category_products.get(category)
        return entry.data if entry else []

    def get_product(self, product_id: str) -> Optional[Product]:
        return self.product_cache.get(product_id)

    def get_seller_products(self, seller_id: str) -> list[Product]:
        entry = self.seller_products.get(seller_id)
        return entry.data if entry else []

    def is_feed_stale(self) -> bool:
        return self.entry_is_stale(self.feed)

    def is_category_stale(self, category: str) -> bool:
        return self.entry_is_stale(self.category_products.get(category))

    def is_seller_stale(self, seller_id: str) -> bool:
        return self.entry_is_stale(self.seller_products.get(seller_id))

    def snapshot(self) -> dict[str, Any]:
        return {
            "feed": entry_to_dict(self.feed, _dump_products),
            "category_products": {
                category: entry_to_dict(entry, _dump_products)
                for category, entry in self.category_products.items()
            },
            "product_cache": {pid: p.model_dump(mode="json") for pid, p in self.product_cache.items()},
            "seller_products": {
                seller_id: entry_to_dict(entry, _dump_products)
                for seller_id, entry in self.seller_products.items()
            },
        }

    def restore_snapshot(self, state: dict[str, Any]) -> None:
        self.feed = entry_from_dict(state.get("feed"), _load_products)
        self.feed_sections = group_by_seller(self.feed.data) if self.feed else []
        self.category_products = {
            category: entry_from_dict(raw, _load_products)
            for category, raw in (state.get("category_products") or {}).items()
            if raw
        }
        self.product_cache = {
            pid: Product.model_validate(raw) for pid, raw in (state.get("product_cache") or {}).items()
        }
        self.seller_products = {
            seller_id: entry_from_dict(raw, _load_products)
            for seller_id, raw in (state.get("seller_products") or {}).items()
            if raw
        }
