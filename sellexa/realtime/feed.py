"""Topic-based change feed used to push backend inserts into the client."""

import inspect
from typing import Any, Awaitable, Callable, Optional, Protocol, Union

from sellexa.utils.logger import get_current_logger

ChangeHandler = Callable[[dict[str, Any]], Union[Awaitable[None], None]]


class Subscription:
    """Handle returned by :meth:`RealtimeFeed.subscribe`; close it to stop delivery."""

    def __init__(self, topic: str, on_close: Optional[Callable[[], None]] = None) -> None:
        self.topic = topic
        self._on_close = on_close
        self.active = True
        self.error: Optional[BaseException] = None

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        if self._on_close is not None:
            self._on_close()

    def fail(self, error: BaseException) -> None:
        """Mark the subscription dead after its transport stopped delivering."""
        self.active = False
        self.error = error

    def __repr__(self) -> str:
        return f"Subscription(topic={self.topic!r}, active={self.active})"


class RealtimeFeed(Protocol):
    def subscribe(self, topic: str, handler: ChangeHandler) -> Subscription:
        ...

    async def publish(self, topic: str, payload: dict[str, Any]) -> None:
        ...


async def dispatch(handler: ChangeHandler, topic: str, payload: dict[str, Any]) -> None:
    """Run one handler; a failing handler is logged and does not stop the feed."""
    try:
        result = handler(payload)
        if inspect.isawaitable(result):
            await result
    except Exception as e:
        get_current_logger().exception(f"Realtime handler for '{topic}' failed: {e}")


class InMemoryRealtimeFeed:
    """Process-local feed; :meth:`publish` delivers to subscribers in order."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[ChangeHandler]] = {}

    def subscriber_count(self, topic: str) -> int:
        return len(self._handlers.get(topic, []))

    def subscribe(self, topic: str, handler: ChangeHandler) -> Subscription:
        self._handlers.setdefault(topic, []).append(handler)
        get_current_logger().debug(f"Subscribed to '{topic}'")

        def remove() -> None:
            handlers = self._handlers.get(topic, [])
            if handler in handlers:
                handlers.remove(handler)
            if not handlers:
                self._handlers.pop(topic, None)
            get_current_logger().debug(f"Unsubscribed from '{topic}'")

        return Subscription(topic, remove)

    async def publish(self, topic: str, payload: dict[str, Any]) -> None:
        for handler in list(self._handlers.get(topic, [])):
            await dispatch(handler, topic, payload)
