from __future__ import annotations

import json

import httpx
import pytest

from sellexa.api.base import status_for
from sellexa.data.models import AuthEvent, ProductFilters
from sellexa.data.repositories import SupabaseProductRepository, SupabaseSaveRepository
from sellexa.data.repositories.product_ops import or_pattern
from sellexa.data.supabase import BackendError, SupabaseAuth, SupabaseClient
from sellexa.utils.logger import AppLogger, get_current_logger, set_app_context
from sellexa.utils.status import Status

BASE_URL = "https://project.supabase.test"


def _client(handler) -> tuple[SupabaseClient, httpx.AsyncClient]:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=BASE_URL)
    return SupabaseClient(base_url=BASE_URL, api_key="anon-key", client=http_client), http_client


@pytest.mark.asyncio
async def test_product_search_builds_postgrest_filters() -> None:
    captured: dict[str, httpx.Request] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["request"] = request
        return httpx.Response(200, json=[{"id": "p1", "title": "Jollof spice", "price_pence": 450, "user_id": "s1"}])

    client, http_client = _client(handler)
    async with http_client:
        products = await SupabaseProductRepository(client).search(
            ProductFilters(query="jollof", category="food", min_price=100, max_price=500)
        )

    request = captured["request"]
    params = request.url.params
    assert request.method == "GET"
    assert request.url.path == "/rest/v1/products"
    assert params["or"] == "(title.ilike.*jollof*,city.ilike.*jollof*)"
    assert params["category"] == "eq.FOOD"
    assert params.get_list("price_pence") == ["gte.100", "lte.500"]
    assert params["order"] == "created_at.desc"
    assert params["limit"] == "50"
    assert " " not in params["select"] and "\n" not in params["select"]
    assert request.headers["apikey"] == "anon-key"
    assert request.headers["Authorization"] == "Bearer anon-key"
    assert [p.id for p in products] == ["p1"]


@pytest.mark.asyncio
async def test_rpc_posts_named_parameters() -> None:
    captured: dict[str, httpx.Request] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["request"] = request
        return httpx.Response(200, json=7)

    client, http_client = _client(handler)
    async with http_client:
        count = await SupabaseSaveRepository(client).count_saves("p1")

    request = captured["request"]
    assert request.method == "POST"
    assert request.url.path == "/rest/v1/rpc/get_product_save_count"
    assert json.loads(request.content.decode()) == {"product_uuid": "p1"}
    assert count == 7


@pytest.mark.asyncio
async def test_http_error_becomes_backend_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            403,
            json={"code": "42501", "message": "permission denied for table saves", "details": None, "hint": None},
        )

    client, http_client = _client(handler)
    async with http_client:
        with pytest.raises(BackendError) as excinfo:
            await client.table("saves").eq("product_id", "p1").delete()

    assert excinfo.value.status_code == 403
    assert excinfo.value.code == "42501"
    assert str(excinfo.value) == "permission denied for table saves"
    assert status_for(excinfo.value) is Status.FAILURE


@pytest.mark.asyncio
async def test_fetch_one_without_rows_maps_to_not_found() -> None:
    client, http_client = _client(lambda request: httpx.Response(200, json=[]))
    async with http_client:
        with pytest.raises(BackendError) as excinfo:
            await client.table("products").select("*").eq("id", "missing").fetch_one()
        assert await client.table("products").eq("id", "missing").fetch_maybe_one() is None

    assert excinfo.value.code == "PGRST116"
    assert status_for(excinfo.value) is Status.NOT_FOUND


@pytest.mark.asyncio
async def test_transport_error_becomes_backend_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client, http_client = _client(handler)
    async with http_client:
        with pytest.raises(BackendError) as excinfo:
            await client.table("products").fetch()

    assert excinfo.value.message.startswith("Network error")
    assert excinfo.value.status_code is None


@pytest.mark.asyncio
async def test_count_reads_content_range() -> None:
    captured: dict[str, httpx.Request] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["request"] = request
        return httpx.Response(206, json=[{"id": "n1"}], headers={"content-range": "0-0/42"})

    client, http_client = _client(handler)
    async with http_client:
        total = await client.table("notifications").eq("read", False).count()

    assert total == 42
    assert captured["request"].headers["Prefer"] == "count=exact"
    assert captured["request"].url.params["read"] == "eq.false"


@pytest.mark.asyncio
async def test_update_and_delete_refuse_unfiltered_queries() -> None:
    client, http_client = _client(lambda request: httpx.Response(204))
    async with http_client:
        with pytest.raises(ValueError):
            await client.table("notifications").update({"read": True})
        with pytest.raises(ValueError):
            await client.table("notifications").delete()


@pytest.mark.asyncio
async def test_sign_in_switches_bearer_and_notifies_listeners() -> None:
    seen_auth: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen_auth.append(request.headers["Authorization"])
        if request.url.path == "/auth/v1/token":
            return httpx.Response(
                200,
                json={
                    "access_token": "user-token",
                    "refresh_token": "refresh",
                    "user": {"id": "u1", "email": "ada@example.com"},
                },
            )
        return httpx.Response(200, json=[])

    client, http_client = _client(handler)
    auth = SupabaseAuth(client)
    events: list[tuple[AuthEvent, str | None]] = []
    unsubscribe = auth.on_auth_state_change(
        lambda event, session: events.append((event, session.user.id if session and session.user else None))
    )

    async with http_client:
        session = await auth.sign_in_with_password("ada@example.com", "secret")
        await client.table("profiles").fetch()
        unsubscribe()
        await auth.sign_out()

    assert session.user.id == "u1"
    assert events == [(AuthEvent.INITIAL_SESSION, None), (AuthEvent.SIGNED_IN, "u1")]
    assert seen_auth == ["Bearer anon-key", "Bearer user-token", "Bearer user-token"]
    assert auth.session is None


@pytest.mark.asyncio
async def test_sign_in_requires_credentials() -> None:
    client, http_client = _client(lambda request: httpx.Response(200, json={}))
    async with http_client:
        with pytest.raises(BackendError):
            await SupabaseAuth(client).sign_in_with_password("", "")


@pytest.mark.asyncio
async def test_product_search_quotes_reserved_characters() -> None:
    captured: dict[str, httpx.Request] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["request"] = request
        return httpx.Response(200, json=[])

    client, http_client = _client(handler)
    async with http_client:
        await SupabaseProductRepository(client).search(ProductFilters(query="kente (gold), large"))

    assert captured["request"].url.params["or"] == (
        '(title.ilike."*kente (gold), large*",city.ilike."*kente (gold), large*")'
    )


def test_or_pattern_escapes_quotes_and_backslashes() -> None:
    assert or_pattern("jollof") == "*jollof*"
    assert or_pattern('6" frame') == '"*6\\" frame*"'
    assert or_pattern("a\\b,c") == '"*a\\\\b,c*"'


@pytest.mark.asyncio
async def test_backend_requests_log_through_gateway_logger() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(get_current_logger().name)
        return httpx.Response(200, json=[])

    client, http_client = _client(handler)
    async with http_client:
        with set_app_context(AppLogger.STORES):
            await client.table("products").select("id").fetch()
            assert get_current_logger().name == "stores"

    assert seen == ["gateway"]
