"""Realtime feed bridged over Redis pub/sub."""

import asyncio
import json
from typing import Any

from sellexa.data.redis.connection import RedisConnection, redis_connection
from sellexa.realtime.feed import ChangeHandler, Subscription, dispatch
from sellexa.utils.logger import get_current_logger

CHANNEL_PREFIX = "realtime"


class RedisRealtimeFeed:
    """
    One Redis channel per topic.

    Each subscription runs its own listener task; unsubscribing cancels the
    task, which unsubscribes from the channel on its way out. A listener
    that dies (e.g. Redis unreachable) marks its subscription failed.
    """

    def __init__(self, connection: RedisConnection = redis_connection, prefix: str = CHANNEL_PREFIX) -> None:
        self.connection = connection
        self.prefix = prefix

    def channel(self, topic: str) -> str:
        return f"{self.prefix}:{topic}"

    def subscribe(self, topic: str, handler: ChangeHandler) -> Subscription:
        task = asyncio.create_task(self._listen(topic, handler))
        subscription = Subscription(topic, task.cancel)
        task.add_done_callback(lambda done: self._listener_done(done, subscription))
        return subscription

    def _listener_done(self, task: asyncio.Task, subscription: Subscription) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            get_current_logger().error(f"Realtime listener for '{subscription.topic}' stopped: {error}")
            subscription.fail(error)
        else:
            subscription.active = False

    async def _listen(self, topic: str, handler: ChangeHandler) -> None:
        logger = get_current_logger()
        channel = self.channel(topic)
        pubsub = None

        try:
            client = await self.connection.get_client()
            pubsub = client.pubsub()
            await pubsub.subscribe(channel)
            logger.info(f"Subscribed to Redis channel: {channel}")

            async for message in pubsub.listen():
                if message["type"] != "message":
                    continue
                try:
                    data = message["data"]
                    if isinstance(data, bytes):
                        data = data.decode("utf-8")
                    payload = json.loads(data)
                except json.JSONDecodeError as e:
                    logger.error(f"Failed to parse realtime message on {channel}: {e}")
                    continue
                await dispatch(handler, topic, payload)

        except asyncio.CancelledError:
            logger.info(f"Realtime listener for {channel} cancelled")
            raise
        except Exception as e:
            logger.error(f"Realtime listener error on {channel}: {e}")
            raise
        finally:
            if pubsub is not None:
                await pubsub.unsubscribe(channel)
                await pubsub.aclose()

    async def publish(self, topic: str, payload: dict[str, Any]) -> None:
        client = await self.connection.get_client()
        receivers = await client.publish(self.channel(topic), json.dumps(payload))
        get_current_logger().debug(f"Published to {self.channel(topic)} ({receivers} receivers)")
