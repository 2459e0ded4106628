import json
from typing import Any

from sellexa.data.redis.connection import RedisConnection, redis_connection
from sellexa.utils.logger import get_current_logger


async def get_cached_value(key: str, connection: RedisConnection = redis_connection) -> Any | None:
    """
    Get a JSON value from Redis.

    Args:
        key: Redis key
        connection: Connection to use (defaults to the shared pool)

    Returns:
        Decoded value, the raw string when it is not JSON, or None when the
        key is missing or Redis is unreachable
    """
    logger = get_current_logger()
    try:
        client = await connection.get_client()
        value = await client.get(key)

        if value is None:
            return None

        try:
            return json.loads(value)
        except (json.JSONDecodeError, TypeError):
            return value

    except Exception as e:
        logger.error(f"Failed to get cached value for key '{key}': {e}")
        return None


async def set_cached_value(
    key: str,
    value: Any,
    ttl: int | None = None,
    connection: RedisConnection = redis_connection,
) -> bool:
    """
    Store a value in Redis, JSON-encoding anything that is not a string.

    Returns:
        True if successful, False otherwise
    """
    logger = get_current_logger()
    try:
        client = await connection.get_client()

        if not isinstance(value, str):
            value = json.dumps(value)

        if ttl:
            await client.setex(key, ttl, value)
        else:
            await client.set(key, value)

        logger.debug(f"Cached value for key '{key}' (TTL: {ttl}s)")
        return True

    except Exception as e:
        logger.error(f"Failed to set cached value for key '{key}': {e}")
        return False


async def delete_cached_value(key: str, connection: RedisConnection = redis_connection) -> bool:
    logger = get_current_logger()
    try:
        client = await connection.get_client()
        result = await client.delete(key)
        return result > 0

    except Exception as e:
        logger.error(f"Failed to delete cached value for key '{key}': {e}")
        return False


async def clear_pattern(pattern: str, connection: RedisConnection = redis_connection) -> int:
    """
    Delete all keys matching a pattern using SCAN.

    Returns:
        Number of keys deleted
    """
    logger = get_current_logger()
    try:
        client = await connection.get_client()
        deleted = 0
        cursor = 0

        while True:
            cursor, keys = await client.scan(cursor, match=pattern, count=100)

            if keys:
                deleted += await client.delete(*keys)

            if cursor == 0:
                break

        logger.info(f"Deleted {deleted} keys matching pattern '{pattern}'")
        return deleted

    except Exception as e:
        logger.error(f"Failed to clear pattern '{pattern}': {e}")
        return 0
