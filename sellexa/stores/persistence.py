"""Where store slices survive between sessions."""

import json
from typing import Any, Optional, Protocol

from sellexa.config import STATE_KEY_PREFIX
from sellexa.data.redis.cache_ops import clear_pattern, delete_cached_value, get_cached_value, set_cached_value
from sellexa.data.redis.connection import RedisConnection, redis_connection
from sellexa.utils.logger import get_current_logger


class StatePersistence(Protocol):
    async def load(self, name: str) -> Optional[dict[str, Any]]:
        ...

    async def save(self, name: str, state: dict[str, Any]) -> None:
        ...

    async def clear(self, name: str) -> None:
        ...


class InMemoryStatePersistence:
    """Keeps serialised slices in a dict; used in tests and single-process runs."""

    def __init__(self) -> None:
        self._slices: dict[str, str] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._slices

    async def load(self, name: str) -> Optional[dict[str, Any]]:
        raw = self._slices.get(name)
        return json.loads(raw) if raw is not None else None

    async def save(self, name: str, state: dict[str, Any]) -> None:
        self._slices[name] = json.dumps(state)

    async def clear(self, name: str) -> None:
        self._slices.pop(name, None)


class RedisStatePersistence:
    """
    Stores each slice as a JSON string under ``{prefix}:{namespace}:{name}``.

    The namespace identifies one client (device or browser profile) and is
    required; two clients sharing a namespace would read each other's user.
    """

    def __init__(
        self,
        connection: RedisConnection = redis_connection,
        prefix: str = STATE_KEY_PREFIX,
        *,
        namespace: str,
    ) -> None:
        if not namespace:
            raise ValueError("A persistence namespace is required")
        self.connection = connection
        self.prefix = prefix
        self.namespace = namespace

    def key(self, name: str) -> str:
        return f"{self.prefix}:{self.namespace}:{name}"

    async def load(self, name: str) -> Optional[dict[str, Any]]:
        value = await get_cached_value(self.key(name), connection=self.connection)
        if value is None:
            return None
        if not isinstance(value, dict):
            get_current_logger().warning(f"Ignoring malformed state slice at '{self.key(name)}'")
            return None
        return value

    async def save(self, name: str, state: dict[str, Any]) -> None:
        await set_cached_value(self.key(name), state, connection=self.connection)

    async def clear(self, name: str) -> None:
        await delete_cached_value(self.key(name), connection=self.connection)

    async def clear_namespace(self) -> int:
        """Drop every slice stored for this namespace."""
        return await clear_pattern(f"{self.prefix}:{self.namespace}:*", connection=self.connection)
