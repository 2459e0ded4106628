"""Product search, title suggestions and trending terms."""

from sellexa.api.base import run_api_call
from sellexa.data.models.product import Product, ProductFilters
from sellexa.data.repositories.base import ProductRepository
from sellexa.utils.logger import get_current_logger
from sellexa.utils.response_format import ApiResult

SEARCH_LIMIT = 50
SUGGESTION_LIMIT = 5
MIN_SUGGESTION_LENGTH = 2

TRENDING_SEARCHES = ["jollof rice", "ankara fabric", "shea butter", "garri", "african wigs", "spices"]


class SearchApi:

    def __init__(self, repository: ProductRepository):
        self.repository = repository

    async def search_products(self, filters: ProductFilters) -> ApiResult[list[Product]]:
        """
        Search products, newest first.

        ``filters.query`` matches title or city; category and status are
        compared upper-cased; city is a partial match; prices are in pence.
        """
        return await run_api_call(
            "search products",
            lambda: self.repository.search(filters, limit=SEARCH_LIMIT),
        )

    async def get_search_suggestions(self, query: str) -> list[str]:
        """Up to five product titles containing ``query``; empty on short input or error."""
        if len(query) < MIN_SUGGESTION_LENGTH:
            return []

        try:
            return await self.repository.title_suggestions(query, limit=SUGGESTION_LIMIT)
        except Exception as e:
            get_current_logger().error(f"Suggestion error for '{query}': {e}")
            return []

    def get_trending_searches(self) -> list[str]:
        return list(TRENDING_SEARCHES)
