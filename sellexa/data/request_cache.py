"""In-memory request cache with a fixed TTL and a best-effort size bound."""

import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from sellexa.data.cache_keys import TTL
from sellexa.utils.logger import get_current_logger

T = TypeVar("T")

MAX_CACHE_SIZE = 100


@dataclass
class CacheEntry(Generic[T]):
    """Cached payload and the time it was last refreshed from the backend.

    ``timestamp`` is None for entries that only exist through a local
    mutation; such entries are always stale.
    """
    data: T
    timestamp: Optional[float] = None

    def is_fresh(self, now: float, ttl: float) -> bool:
        return self.timestamp is not None and now - self.timestamp < ttl


class RequestCache:
    """
    Time-bound cache for async fetches keyed by string.

    There is no in-flight de-duplication here: two callers racing on the same
    missing key both run their request. Stores guard in-flight work one layer
    up with their per-key loading flags.
    """

    def __init__(
        self,
        ttl: float = TTL.REQUEST,
        max_size: int = MAX_CACHE_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl
        self.max_size = max_size
        self._clock = clock
        self._entries: dict[str, CacheEntry[Any]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def get(self, key: str) -> CacheEntry[Any] | None:
        """Return the live entry for ``key`` or None."""
        entry = self._entries.get(key)
        if entry is not None and entry.is_fresh(self._clock(), self.ttl):
            return entry
        return None

    def set(self, key: str, data: Any) -> None:
        now = self._clock()
        if len(self._entries) >= self.max_size:
            self._sweep(now)
        self._entries[key] = CacheEntry(data=data, timestamp=now)

    def _sweep(self, now: float) -> int:
        expired = [k for k, entry in self._entries.items() if not entry.is_fresh(now, self.ttl)]
        for k in expired:
            del self._entries[k]
        if expired:
            get_current_logger().debug(f"Request cache swept {len(expired)} expired entries")
        return len(expired)

    async def cached_request(
        self,
        key: str,
        request_fn: Callable[[], Awaitable[T]],
        use_cache: bool = True,
    ) -> T:
        """
        Return the cached value for ``key`` or run ``request_fn`` and cache it.

        Args:
            key: Cache key
            request_fn: Zero-argument coroutine function performing the fetch
            use_cache: When False, always run ``request_fn`` and store nothing

        Returns:
            The cached or freshly fetched value. Exceptions from
            ``request_fn`` propagate and nothing is stored.
        """
        logger = get_current_logger()
        if use_cache:
            entry = self.get(key)
            if entry is not None:
                logger.debug(f"Cache HIT: {key}")
                return entry.data

        logger.debug(f"Cache MISS: {key}")
        result = await request_fn()

        if use_cache:
            self.set(key, result)

        return result

    def clear(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear_prefix(self, prefix: str) -> int:
        """Drop every entry whose key starts with ``prefix``; returns how many went."""
        keys = [key for key in self._entries if key.startswith(prefix)]
        for key in keys:
            del self._entries[key]
        return len(keys)

    def clear_all(self) -> None:
        self._entries.clear()


default_request_cache = RequestCache()


async def cached_request(
    key: str,
    request_fn: Callable[[], Awaitable[T]],
    use_cache: bool = True,
) -> T:
    """Module-level shortcut for :meth:`RequestCache.cached_request` on the default cache."""
    return await default_request_cache.cached_request(key, request_fn, use_cache)


def clear_cache(key: str) -> None:
    default_request_cache.clear(key)


def clear_all_cache() -> None:
    default_request_cache.clear_all()
