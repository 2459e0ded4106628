import logging

from sellexa.realtime.backend_bridge import BackendChangeBridge
from sellexa.realtime.feed import ChangeHandler, InMemoryRealtimeFeed, RealtimeFeed, Subscription
from sellexa.realtime.redis_feed import RedisRealtimeFeed

realtime_logger = None


def get_realtime_logger():
    """Initialize realtime feed logger."""
    global realtime_logger
    if not realtime_logger:
        from sellexa.utils.logger import setup_logger
        realtime_logger = setup_logger(
            name="realtime",
            log_level=logging.DEBUG,
            log_file="realtime.log",
        )
    return realtime_logger


__all__ = [
    "BackendChangeBridge",
    "ChangeHandler",
    "InMemoryRealtimeFeed",
    "RealtimeFeed",
    "RedisRealtimeFeed",
    "Subscription",
    "get_realtime_logger",
]
