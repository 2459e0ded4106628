"""Debounced product search with suggestions."""

from typing import Optional
from urllib.parse import urlencode

from sellexa.api.search import SearchApi
from sellexa.data.models.product import Product, ProductFilters
from sellexa.hooks.debounce import Debouncer
from sellexa.utils.logger import AppLogger, get_current_logger, set_app_context

SEARCH_DEBOUNCE = 0.3
SUGGESTION_DEBOUNCE = 0.2
MIN_SUGGESTION_LENGTH = 2

QUERY_PARAMS = (("q", "query"), ("category", "category"), ("status", "status"), ("city", "city"))


class SearchSession:
    """
    Query, filter and result state for a search screen.

    Searches are debounced by 300 ms and suggestions by 200 ms; a newer
    input cancels the pending call.
    """

    def __init__(
        self,
        search_api: SearchApi,
        initial: Optional[ProductFilters] = None,
        search_delay: float = SEARCH_DEBOUNCE,
        suggestion_delay: float = SUGGESTION_DEBOUNCE,
    ) -> None:
        self.search_api = search_api
        self.filters = initial.model_copy() if initial is not None else ProductFilters()
        self.query = self.filters.query or ""
        self.results: list[Product] = []
        self.error: Optional[str] = None
        self.is_loading = False
        self.suggestions: list[str] = []
        self.show_suggestions = False

        self.debounced_search = Debouncer(search_delay, self._run_search)
        self.debounced_suggestions = Debouncer(suggestion_delay, self._update_suggestions)

    @classmethod
    def from_query_params(cls, search_api: SearchApi, params: dict[str, str], **kwargs) -> "SearchSession":
        """Start from ``q``/``category``/``status``/``city`` parameters."""
        filters = ProductFilters(**{field: params[name] for name, field in QUERY_PARAMS if params.get(name)})
        return cls(search_api, filters, **kwargs)

    async def mount(self) -> None:
        if self.has_filters:
            self.debounced_search(self.filters)

    async def unmount(self) -> None:
        await self.debounced_search.aclose()
        await self.debounced_suggestions.aclose()

    async def __aenter__(self) -> "SearchSession":
        await self.mount()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.unmount()

    async def wait(self) -> None:
        """Wait until pending debounced calls have run."""
        await self.debounced_suggestions.wait()
        await self.debounced_search.wait()

    async def _run_search(self, filters: ProductFilters) -> None:
        with set_app_context(AppLogger.STORES):
            self.is_loading = True
            self.error = None
            try:
                result = await self.search_api.search_products(filters)
                if result.success and result.data is not None:
                    self.results = result.data
                else:
                    self.error = result.error or "Search failed"
                    self.results = []
            finally:
                self.is_loading = False

    async def _update_suggestions(self, query: str) -> None:
        if len(query) < MIN_SUGGESTION_LENGTH:
            self.suggestions = []
            self.show_suggestions = False
            return
        with set_app_context(AppLogger.STORES):
            self.suggestions = await self.search_api.get_search_suggestions(query)
        self.show_suggestions = True

    def handle_search(self, query: str) -> None:
        self.query = query
        self.filters = self.filters.model_copy(update={"query": query})
        get_current_logger().debug(f"Search requested: {self.to_query_string()}")
        self.debounced_search(self.filters)

    def handle_input_change(self, value: str) -> None:
        self.query = value
        self.debounced_suggestions(value)

    def handle_filter_change(self, key: str, value: Optional[object]) -> None:
        if key not in ProductFilters.model_fields:
            raise ValueError(f"Unknown search filter: {key}")
        self.filters = self.filters.model_copy(update={key: value})
        self.debounced_search(self.filters)

    def clear_filters(self) -> None:
        self.filters = ProductFilters(query="")
        self.query = ""
        self.debounced_search(self.filters)

    def select_suggestion(self, suggestion: str) -> None:
        self.query = suggestion
        self.show_suggestions = False
        self.handle_search(suggestion)

    def set_show_suggestions(self, show: bool) -> None:
        self.show_suggestions = show

    def get_trending_searches(self) -> list[str]:
        return self.search_api.get_trending_searches()

    def to_query_string(self) -> str:
        params = [(name, getattr(self.filters, field)) for name, field in QUERY_PARAMS]
        return urlencode([(name, value) for name, value in params if value])

    @property
    def active_filters_count(self) -> int:
        return sum(1 for value in self.filters.model_dump().values() if value not in (None, ""))

    @property
    def has_results(self) -> bool:
        return len(self.results) > 0

    @property
    def has_filters(self) -> bool:
        return self.active_filters_count > 0
