"""Relay of the backend's realtime websocket into a :class:`RealtimeFeed`."""

import asyncio
import json
from typing import Any, Callable, Optional
from urllib.parse import urlencode

import websockets
from websockets import ClientConnection
from websockets.exceptions import ConnectionClosed

import sellexa.config as config
from sellexa.data.cache_keys import Topics
from sellexa.realtime.feed import RealtimeFeed
from sellexa.utils.logger import AppLogger, get_current_logger, set_app_context

CHANNEL_TOPIC = "realtime:sellexa"
HEARTBEAT_INTERVAL = 25.0

RecordRouter = Callable[[dict[str, Any]], Optional[str]]


def route_message(record: dict[str, Any]) -> Optional[str]:
    thread_id = record.get("thread_id")
    return Topics.thread_messages(thread_id) if thread_id else None


DEFAULT_ROUTES: dict[str, RecordRouter] = {"messages": route_message}


def realtime_url(base_url: str, api_key: str) -> str:
    """``https://x.supabase.co`` -> ``wss://x.supabase.co/realtime/v1/websocket?...``"""
    ws_base = base_url.rstrip("/").replace("https://", "wss://", 1).replace("http://", "ws://", 1)
    return f"{ws_base}/realtime/v1/websocket?{urlencode({'apikey': api_key, 'vsn': '1.0.0'})}"


class BackendChangeBridge:
    """
    Follows row inserts on the backend's realtime socket and republishes them.

    One channel joins an ``INSERT`` change feed for every routed table. Each
    incoming row is published to the feed topic its router returns, so
    subscribers see the same ``{"new": row}`` payload whichever feed they use.
    Row-level security on the backend limits rows to the signed-in user.

    Usage:
        bridge = BackendChangeBridge(state.realtime, access_token=token)
        bridge.start()
        ...
        await bridge.stop()
    """

    def __init__(
        self,
        feed: RealtimeFeed,
        url: Optional[str] = None,
        *,
        access_token: Optional[str] = None,
        routes: Optional[dict[str, RecordRouter]] = None,
        heartbeat_interval: float = HEARTBEAT_INTERVAL,
    ) -> None:
        if url is None:
            if not config.SUPABASE_URL:
                raise ValueError("SUPABASE_URL is not configured")
            url = config.SUPABASE_REALTIME_URL or realtime_url(config.SUPABASE_URL, config.SUPABASE_ANON_KEY or "")
        self.url = url
        self.feed = feed
        self.access_token = access_token
        self.routes = dict(routes if routes is not None else DEFAULT_ROUTES)
        self.heartbeat_interval = heartbeat_interval
        self.ws: ClientConnection | None = None
        self._ref = 0
        self._heartbeat: Optional[asyncio.Task] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def is_connected(self) -> bool:
        return self.ws is not None

    def _next_ref(self) -> str:
        self._ref += 1
        return str(self._ref)

    def join_frame(self) -> dict[str, Any]:
        ref = self._next_ref()
        changes = [{"event": "INSERT", "schema": "public", "table": table} for table in self.routes]
        payload: dict[str, Any] = {"config": {"postgres_changes": changes}}
        if self.access_token:
            payload["access_token"] = self.access_token
        return {"topic": CHANNEL_TOPIC, "event": "phx_join", "payload": payload, "ref": ref, "join_ref": ref}

    def heartbeat_frame(self) -> dict[str, Any]:
        return {"topic": "phoenix", "event": "heartbeat", "payload": {}, "ref": self._next_ref()}

    async def handle_frame(self, raw: str | bytes) -> Optional[str]:
        """
        Publish one socket frame if it carries a routed insert.

        Returns:
            The feed topic the row was published to, or None
        """
        logger = get_current_logger()
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        try:
            frame = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse realtime frame: {e}")
            return None

        event = frame.get("event")
        if event == "phx_reply" and frame.get("payload", {}).get("status") == "error":
            logger.error(f"Realtime join rejected: {frame['payload'].get('response')}")
            return None
        if event != "postgres_changes":
            return None

        data = frame.get("payload", {}).get("data") or {}
        record = data.get("record")
        router = self.routes.get(data.get("table"))
        if router is None or not isinstance(record, dict):
            return None

        topic = router(record)
        if topic is None:
            logger.warning(f"Dropping {data.get('table')} row without a route: {record.get('id')}")
            return None

        await self.feed.publish(topic, {"new": record, "event_type": data.get("type", "INSERT")})
        logger.debug(f"Relayed {data.get('table')} insert {record.get('id')} to '{topic}'")
        return topic

    async def connect(self) -> None:
        if self.is_connected:
            return
        logger = get_current_logger()
        try:
            self.ws = await websockets.connect(self.url, ping_interval=20, ping_timeout=10)
            await self.ws.send(json.dumps(self.join_frame()))
            logger.info(f"Joined backend realtime channel for {', '.join(self.routes)}")
        except Exception as e:
            self.ws = None
            logger.error(f"Failed to connect to backend realtime: {e}")
            raise
        self._heartbeat = asyncio.create_task(self._send_heartbeats())

    async def disconnect(self) -> None:
        if self._heartbeat is not None:
            self._heartbeat.cancel()
            self._heartbeat = None
        if self.ws is not None:
            try:
                await self.ws.close()
                get_current_logger().info("Disconnected from backend realtime")
            except Exception as e:
                get_current_logger().error(f"Error closing backend realtime connection: {e}")
            finally:
                self.ws = None

    async def _send_heartbeats(self) -> None:
        while self.ws is not None:
            await asyncio.sleep(self.heartbeat_interval)
            try:
                await self.ws.send(json.dumps(self.heartbeat_frame()))
            except ConnectionClosed:
                return

    async def run(self) -> None:
        """Connect and relay frames until the socket closes or the task is cancelled."""
        with set_app_context(AppLogger.REALTIME):
            await self.connect()
            try:
                async for raw in self.ws:
                    await self.handle_frame(raw)
            except ConnectionClosed as e:
                get_current_logger().warning(f"Backend realtime connection closed: {e}")
            finally:
                await self.disconnect()

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        except Exception as e:
            get_current_logger().error(f"Backend realtime bridge ended with error: {e}")
        finally:
            self._task = None
