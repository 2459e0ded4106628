"""Backend operations for the ``products`` table."""

from sellexa.data.models.product import (
    DETAIL_COLUMNS,
    FEED_COLUMNS,
    LIST_COLUMNS,
    SELLER_COLUMNS,
    Product,
    ProductFilters,
    ProductStatus,
)
from sellexa.data.supabase.client import SupabaseClient

OR_RESERVED = set(',()"\\')


def or_pattern(term: str) -> str:
    """Wildcard pattern for a PostgREST ``or=(...)`` list, double-quoted when the term has reserved characters."""
    pattern = f"*{term}*"
    if not OR_RESERVED.intersection(term):
        return pattern
    escaped = pattern.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class SupabaseProductRepository:

    def __init__(self, client: SupabaseClient) -> None:
        self._client = client

    async def list_feed(self, limit: int = 50) -> list[Product]:
        rows = await (
            self._client.table("products")
            .select(FEED_COLUMNS)
            .order("created_at", ascending=False)
            .limit(limit)
            .fetch()
        )
        return [Product.model_validate(row) for row in rows]

    async def list_by_category(self, category: str, limit: int = 40) -> list[Product]:
        rows = await (
            self._client.table("products")
            .select(LIST_COLUMNS)
            .eq("category", category.upper())
            .order("created_at", ascending=False)
            .limit(limit)
            .fetch()
        )
        return [Product.model_validate(row) for row in rows]

    async def get_product(self, product_id: str) -> Product:
        row = await self._client.table("products").select(DETAIL_COLUMNS).eq("id", product_id).fetch_one()
        return Product.model_validate(row)

    async def list_by_seller(self, seller_id: str) -> list[Product]:
        rows = await (
            self._client.table("products")
            .select(SELLER_COLUMNS)
            .eq("user_id", seller_id)
            .eq("status", ProductStatus.AVAILABLE.value)
            .order("created_at", ascending=False)
            .fetch()
        )
        return [Product.model_validate(row) for row in rows]

    async def search(self, filters: ProductFilters, limit: int = 50) -> list[Product]:
        query = self._client.table("products").select(LIST_COLUMNS)

        if filters.query:
            pattern = or_pattern(filters.query)
            query = query.or_(f"title.ilike.{pattern},city.ilike.{pattern}")
        if filters.category:
            query = query.eq("category", filters.category.upper())
        if filters.status:
            query = query.eq("status", filters.status.upper())
        if filters.city:
            query = query.ilike("city", f"*{filters.city}*")
        if filters.min_price is not None:
            query = query.gte("price_pence", filters.min_price)
        if filters.max_price is not None:
            query = query.lte("price_pence", filters.max_price)

        rows = await query.order("created_at", ascending=False).limit(limit).fetch()
        return [Product.model_validate(row) for row in rows]

    async def title_suggestions(self, query: str, limit: int = 5) -> list[str]:
        rows = await (
            self._client.table("products")
            .select("title")
            .ilike("title", f"*{query}*")
            .limit(limit)
            .fetch()
        )
        return [row["title"] for row in rows if row.get("title")]
