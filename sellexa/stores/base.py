import time
from typing import Any, Callable, Iterator, Optional
from contextlib import contextmanager

from sellexa.data.request_cache import CacheEntry
from sellexa.stores.persistence import StatePersistence
from sellexa.utils.logger import get_current_logger


class LoadingFlags:
    """
    Per-key in-flight markers.

    :meth:`try_acquire` checks and sets in one synchronous step, so two
    coroutines can never both acquire the same key.
    """

    def __init__(self) -> None:
        self._active: set[str] = set()

    def __contains__(self, key: str) -> bool:
        return key in self._active

    def __len__(self) -> int:
        return len(self._active)

    def is_loading(self, key: str) -> bool:
        return key in self._active

    def try_acquire(self, key: str) -> bool:
        if key in self._active:
            return False
        self._active.add(key)
        return True

    def release(self, key: str) -> None:
        self._active.discard(key)

    def clear(self) -> None:
        self._active.clear()

    @contextmanager
    def hold(self, key: str) -> Iterator[bool]:
        """Yield whether ``key`` was acquired and release it on exit if it was."""
        acquired = self.try_acquire(key)
        try:
            yield acquired
        finally:
            if acquired:
                self.release(key)


class BaseStore:
    """
    Common plumbing for the persisted domain stores.

    Subclasses set ``state_name`` and ``ttl`` and implement
    :meth:`snapshot` / :meth:`restore_snapshot` for the slice that survives a
    reload.
    """

    state_name: str = ""
    ttl: float = 0

    def __init__(
        self,
        persistence: Optional[StatePersistence] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.persistence = persistence
        self.clock = clock

    def entry_is_fresh(self, entry: Optional[CacheEntry[Any]]) -> bool:
        return entry is not None and entry.is_fresh(self.clock(), self.ttl)

    def entry_is_stale(self, entry: Optional[CacheEntry[Any]]) -> bool:
        return not self.entry_is_fresh(entry)

    def refreshed(self, data: Any) -> CacheEntry[Any]:
        """Entry for data that just came back from the backend."""
        return CacheEntry(data=data, timestamp=self.clock())

    def snapshot(self) -> dict[str, Any]:
        raise NotImplementedError

    def restore_snapshot(self, state: dict[str, Any]) -> None:
        raise NotImplementedError

    async def save_state(self) -> None:
        if self.persistence is None:
            return
        try:
            await self.persistence.save(self.state_name, self.snapshot())
        except Exception as e:
            get_current_logger().error(f"Failed to persist {self.state_name}: {e}")

    async def load_state(self) -> bool:
        """Restore the persisted slice; returns True when one was found."""
        if self.persistence is None:
            return False
        try:
            state = await self.persistence.load(self.state_name)
            if not state:
                return False
            self.restore_snapshot(state)
            return True
        except Exception as e:
            get_current_logger().error(f"Failed to restore {self.state_name}: {e}")
            return False


def entry_to_dict(entry: Optional[CacheEntry[Any]], dump: Callable[[Any], Any]) -> Optional[dict[str, Any]]:
    if entry is None:
        return None
    return {"data": dump(entry.data), "timestamp": entry.timestamp}


def entry_from_dict(raw: Optional[dict[str, Any]], load: Callable[[Any], Any]) -> Optional[CacheEntry[Any]]:
    if not raw:
        return None
    return CacheEntry(data=load(raw["data"]), timestamp=raw.get("timestamp"))
