import asyncio
import json

import pytest
from websockets.asyncio.server import serve

import sellexa.config as config
from sellexa.data.cache_keys import Topics
from sellexa.data.models import Conversation
from sellexa.data.supabase import SupabaseClient
from sellexa.hooks import ChatSession
from sellexa.realtime import BackendChangeBridge, InMemoryRealtimeFeed
from sellexa.realtime.backend_bridge import CHANNEL_TOPIC, realtime_url
from sellexa.stores.app_state import AppState
from sellexa.tests.fakes import FakeConversationRepository, make_state, make_user


def _insert_frame(table: str, record: dict) -> str:
    return json.dumps({
        "topic": CHANNEL_TOPIC,
        "event": "postgres_changes",
        "payload": {"data": {"schema": "public", "table": table, "type": "INSERT", "record": record}, "ids": [1]},
        "ref": None,
    })


def test_realtime_url_is_derived_from_rest_url() -> None:
    assert realtime_url("https://abc.supabase.co/", "anon") == (
        "wss://abc.supabase.co/realtime/v1/websocket?apikey=anon&vsn=1.0.0"
    )
    assert realtime_url("http://localhost:54321", "k").startswith("ws://localhost:54321/realtime/v1/websocket")


def test_join_frame_lists_routed_tables_and_token() -> None:
    bridge = BackendChangeBridge(InMemoryRealtimeFeed(), "ws://backend.test", access_token="jwt")

    frame = bridge.join_frame()

    assert frame["event"] == "phx_join"
    assert frame["topic"] == CHANNEL_TOPIC
    assert frame["payload"]["access_token"] == "jwt"
    assert frame["payload"]["config"]["postgres_changes"] == [
        {"event": "INSERT", "schema": "public", "table": "messages"}
    ]


@pytest.mark.asyncio
async def test_message_insert_is_published_to_thread_topic() -> None:
    feed = InMemoryRealtimeFeed()
    received: list[dict] = []
    feed.subscribe(Topics.thread_messages("t1"), received.append)
    bridge = BackendChangeBridge(feed, "ws://backend.test")

    topic = await bridge.handle_frame(_insert_frame("messages", {"id": "m1", "thread_id": "t1"}).encode())

    assert topic == "messages:thread_id=eq.t1"
    assert received == [{"new": {"id": "m1", "thread_id": "t1"}, "event_type": "INSERT"}]


@pytest.mark.asyncio
async def test_unrouted_and_malformed_frames_are_dropped() -> None:
    feed = InMemoryRealtimeFeed()
    received: list[dict] = []
    feed.subscribe(Topics.thread_messages("t1"), received.append)
    bridge = BackendChangeBridge(feed, "ws://backend.test")

    assert await bridge.handle_frame("not json") is None
    assert await bridge.handle_frame(_insert_frame("reports", {"id": "r1"})) is None
    assert await bridge.handle_frame(_insert_frame("messages", {"id": "m1"})) is None
    assert await bridge.handle_frame(json.dumps({"event": "phx_reply", "payload": {"status": "ok"}})) is None
    assert received == []


@pytest.mark.asyncio
async def test_backend_insert_reaches_open_chat_thread() -> None:
    repository = FakeConversationRepository([Conversation(thread_id="t1", other_user_id="seller")])
    state = await make_state(make_user("me"), conversations=repository)
    bridge = BackendChangeBridge(state.realtime, "ws://backend.test")

    async with ChatSession(state) as chat:
        await chat.set_current_thread("t1")
        assert chat.realtime_active
        reply = repository.add_remote_message("t1", "seller", "Yes, it ships tomorrow")

        await bridge.handle_frame(_insert_frame("messages", {"id": reply.id, "thread_id": "t1", "sender_id": "seller"}))

        assert chat.messages[-1].body == "Yes, it ships tomorrow"
        assert chat.get_conversation("t1").last_message_body == "Yes, it ships tomorrow"


@pytest.mark.asyncio
async def test_run_joins_and_relays_until_socket_closes() -> None:
    joins: list[dict] = []
    feed = InMemoryRealtimeFeed()
    received: list[dict] = []
    feed.subscribe(Topics.thread_messages("t7"), received.append)

    async def backend(connection) -> None:
        joins.append(json.loads(await connection.recv()))
        await connection.send(json.dumps({
            "topic": CHANNEL_TOPIC, "event": "phx_reply", "payload": {"status": "ok", "response": {}}, "ref": "1",
        }))
        await connection.send(_insert_frame("messages", {"id": "m7", "thread_id": "t7"}))

    async with serve(backend, "127.0.0.1", 0) as server:
        port = server.sockets[0].getsockname()[1]
        bridge = BackendChangeBridge(feed, f"ws://127.0.0.1:{port}", access_token="jwt", heartbeat_interval=60)
        await asyncio.wait_for(bridge.run(), timeout=5)

    assert joins[0]["event"] == "phx_join"
    assert joins[0]["payload"]["access_token"] == "jwt"
    assert [payload["new"]["id"] for payload in received] == ["m7"]
    assert not bridge.is_connected


def test_from_config_builds_bridge_from_backend_url(monkeypatch) -> None:
    monkeypatch.setattr(config, "STATE_PERSISTENCE", "memory")
    monkeypatch.setattr(config, "SUPABASE_REALTIME_URL", None)

    state = AppState.from_config(SupabaseClient(base_url="https://backend.test", api_key="anon-key"))

    assert state.backend_bridge.url == "wss://backend.test/realtime/v1/websocket?apikey=anon-key&vsn=1.0.0"
    assert state.backend_bridge.feed is state.realtime
