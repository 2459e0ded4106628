"""Redis access for persisted store state and the realtime bridge."""

from sellexa.data.redis.connection import RedisConnection, redis_connection
from sellexa.data.redis.cache_ops import (
    get_cached_value,
    set_cached_value,
    delete_cached_value,
    clear_pattern
)

__all__ = [
    "RedisConnection",
    "redis_connection",
    "get_cached_value",
    "set_cached_value",
    "delete_cached_value",
    "clear_pattern",
]
