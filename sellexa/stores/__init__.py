import logging

from sellexa.stores.base import BaseStore, LoadingFlags
from sellexa.stores.persistence import InMemoryStatePersistence, RedisStatePersistence, StatePersistence
from sellexa.stores.user_store import UserStore
from sellexa.stores.profile_store import ProfileStore
from sellexa.stores.products_store import ProductsStore
from sellexa.stores.saves_store import SavesStore
from sellexa.stores.notifications_store import NotificationsStore
from sellexa.stores.chat_store import ChatStore

stores_logger = None


def get_stores_logger():
    """Initialize domain stores logger."""
    global stores_logger
    if not stores_logger:
        from sellexa.utils.logger import setup_logger
        stores_logger = setup_logger(
            name="stores",
            log_level=logging.DEBUG,
            log_file="stores.log",
        )
    return stores_logger


__all__ = [
    "BaseStore",
    "LoadingFlags",
    "StatePersistence",
    "InMemoryStatePersistence",
    "RedisStatePersistence",
    "UserStore",
    "ProfileStore",
    "ProductsStore",
    "SavesStore",
    "NotificationsStore",
    "ChatStore",
    "get_stores_logger",
]
