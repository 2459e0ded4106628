from __future__ import annotations

import json
from typing import Any, Optional

import httpx

import sellexa.config as config
from sellexa.data.supabase.errors import BackendError
from sellexa.utils.logger import AppLogger, get_current_logger, set_app_context


class SupabaseClient:
    """
    Thin async client for the managed backend's REST surface.

    Covers table access (``/rest/v1/<table>``) and RPC calls
    (``/rest/v1/rpc/<function>``). Every failure, transport or HTTP, is raised
    as :class:`BackendError`.
    """

    def __init__(
        self,
        *,
        base_url: str | None = None,
        api_key: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = config.SUPABASE_TIMEOUT,
    ) -> None:
        self._base_url = (base_url or config.SUPABASE_URL or "").rstrip("/")
        if not self._base_url:
            raise ValueError("SUPABASE_URL is not configured")
        self._api_key = api_key if api_key is not None else (config.SUPABASE_ANON_KEY or "")
        self._access_token: Optional[str] = None

        if client is None:
            self._client = httpx.AsyncClient(base_url=self._base_url, timeout=timeout)
            self._owns_client = True
        else:
            self._client = client
            self._owns_client = False

        with set_app_context(AppLogger.GATEWAY):
            get_current_logger().info(
                f"Backend client initialised (base_url={self._base_url}, owns_client={self._owns_client})"
            )

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def api_key(self) -> str:
        return self._api_key

    @property
    def access_token(self) -> Optional[str]:
        return self._access_token

    @property
    def http(self) -> httpx.AsyncClient:
        return self._client

    def set_access_token(self, token: Optional[str]) -> None:
        """Use a user's access token instead of the anon key for row-level security."""
        self._access_token = token

    def headers(self, extra: Optional[dict[str, str]] = None) -> dict[str, str]:
        bearer = self._access_token or self._api_key
        headers = {"apikey": self._api_key, "Authorization": f"Bearer {bearer}"}
        if extra:
            headers.update(extra)
        return headers

    async def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "SupabaseClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def table(self, name: str) -> "Query":
        return Query(self, name)

    async def rpc(self, function: str, params: Optional[dict[str, Any]] = None) -> Any:
        """Call a database function and return its decoded JSON result."""
        response = await self.request("POST", f"/rest/v1/rpc/{function}", json=params or {})
        return self.decode(response)

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Any = None,
        json: Any = None,
        headers: Optional[dict[str, str]] = None,
    ) -> httpx.Response:
        with set_app_context(AppLogger.GATEWAY):
            logger = get_current_logger()
            logger.debug(f"{method} {path} params={params}")
            try:
                response = await self._client.request(
                    method, path, params=params, json=json, headers=self.headers(headers)
                )
            except httpx.RequestError as exc:
                logger.error(f"Backend request failed ({method} {path}): {exc}")
                raise BackendError(f"Network error: {exc}") from exc

            if response.status_code >= 400:
                try:
                    payload = response.json()
                except ValueError:
                    payload = None
                error = BackendError.from_payload(response.status_code, payload)
                logger.warning(f"Backend returned HTTP {response.status_code} for {method} {path}: {error}")
                raise error

            return response

    @staticmethod
    def decode(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except json.JSONDecodeError as exc:
            raise BackendError("Backend returned non-JSON response", status_code=response.status_code) from exc


class Query:
    """
    PostgREST query builder.

    Filters are collected with the chainable methods and the request is sent
    by one of the terminal coroutines (``fetch``, ``fetch_one``,
    ``fetch_maybe_one``, ``count``, ``insert``, ``update``, ``upsert``,
    ``delete``).
    """

    def __init__(self, client: SupabaseClient, table: str) -> None:
        self._client = client
        self._table = table
        self._columns = "*"
        self._filters: list[tuple[str, str]] = []
        self._order: list[str] = []
        self._limit: Optional[int] = None

    @property
    def path(self) -> str:
        return f"/rest/v1/{self._table}"

    def select(self, columns: str = "*") -> "Query":
        # Collapse whitespace so multi-line embed selects stay valid
        self._columns = "".join(columns.split())
        return self

    def eq(self, column: str, value: Any) -> "Query":
        self._filters.append((column, f"eq.{_format_value(value)}"))
        return self

    def neq(self, column: str, value: Any) -> "Query":
        self._filters.append((column, f"neq.{_format_value(value)}"))
        return self

    def gte(self, column: str, value: Any) -> "Query":
        self._filters.append((column, f"gte.{_format_value(value)}"))
        return self

    def lte(self, column: str, value: Any) -> "Query":
        self._filters.append((column, f"lte.{_format_value(value)}"))
        return self

    def ilike(self, column: str, pattern: str) -> "Query":
        self._filters.append((column, f"ilike.{pattern}"))
        return self

    def in_(self, column: str, values: list[Any]) -> "Query":
        joined = ",".join(_format_value(v) for v in values)
        self._filters.append((column, f"in.({joined})"))
        return self

    def or_(self, expression: str) -> "Query":
        self._filters.append(("or", f"({expression})"))
        return self

    def order(self, column: str, ascending: bool = True) -> "Query":
        self._order.append(f"{column}.{'asc' if ascending else 'desc'}")
        return self

    def limit(self, count: int) -> "Query":
        self._limit = count
        return self

    def _params(self, include_select: bool = True) -> list[tuple[str, str]]:
        params: list[tuple[str, str]] = []
        if include_select:
            params.append(("select", self._columns))
        params.extend(self._filters)
        if self._order:
            params.append(("order", ",".join(self._order)))
        if self._limit is not None:
            params.append(("limit", str(self._limit)))
        return params

    async def fetch(self) -> list[dict[str, Any]]:
        response = await self._client.request("GET", self.path, params=self._params())
        return self._client.decode(response) or []

    async def fetch_maybe_one(self) -> Optional[dict[str, Any]]:
        """Return the single matching row, None when nothing matches."""
        rows = await self.fetch()
        if len(rows) > 1:
            raise BackendError(
                f"Expected at most one row from {self._table}, got {len(rows)}",
                status_code=406,
                code="PGRST116",
            )
        return rows[0] if rows else None

    async def fetch_one(self) -> dict[str, Any]:
        """Return exactly one matching row or raise."""
        row = await self.fetch_maybe_one()
        if row is None:
            raise BackendError(
                f"No rows returned from {self._table}",
                status_code=406,
                code="PGRST116",
            )
        return row

    async def count(self) -> int:
        """Exact number of rows matching the filters."""
        response = await self._client.request(
            "GET",
            self.path,
            params=self._params(),
            headers={"Prefer": "count=exact", "Range-Unit": "items", "Range": "0-0"},
        )
        content_range = response.headers.get("content-range", "")
        _, _, total = content_range.partition("/")
        if not total or total == "*":
            return len(self._client.decode(response) or [])
        return int(total)

    async def insert(self, values: dict[str, Any] | list[dict[str, Any]], returning: bool = True) -> list[dict[str, Any]]:
        prefer = "return=representation" if returning else "return=minimal"
        params = [("select", self._columns)] if returning else None
        response = await self._client.request(
            "POST", self.path, params=params, json=values, headers={"Prefer": prefer}
        )
        return self._client.decode(response) or []

    async def upsert(
        self,
        values: dict[str, Any] | list[dict[str, Any]],
        on_conflict: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        params = [("on_conflict", on_conflict)] if on_conflict else None
        response = await self._client.request(
            "POST",
            self.path,
            params=params,
            json=values,
            headers={"Prefer": "resolution=merge-duplicates,return=representation"},
        )
        return self._client.decode(response) or []

    async def update(self, values: dict[str, Any]) -> list[dict[str, Any]]:
        if not self._filters:
            raise ValueError("Refusing to update without filters")
        response = await self._client.request(
            "PATCH",
            self.path,
            params=self._params(include_select=False),
            json=values,
            headers={"Prefer": "return=representation"},
        )
        return self._client.decode(response) or []

    async def delete(self) -> None:
        if not self._filters:
            raise ValueError("Refusing to delete without filters")
        await self._client.request("DELETE", self.path, params=self._params(include_select=False))


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)
