"""Session-scoped container that wires the backend, stores and chat services together."""

import time
from dataclasses import dataclass, field
from typing import Callable, Optional

import sellexa.config as config
from sellexa.api.chat import ChatApi
from sellexa.api.conversations import ConversationsApi
from sellexa.api.search import SearchApi
from sellexa.data.redis.connection import RedisConnection
from sellexa.data.repositories import (
    AuthGateway,
    ConversationRepository,
    NotificationRepository,
    ProductRepository,
    ProfileRepository,
    SaveRepository,
    SupabaseConversationRepository,
    SupabaseNotificationRepository,
    SupabaseProductRepository,
    SupabaseProfileRepository,
    SupabaseSaveRepository,
)
from sellexa.data.request_cache import RequestCache
from sellexa.data.supabase import SupabaseAuth, SupabaseClient
from sellexa.realtime.backend_bridge import BackendChangeBridge, realtime_url
from sellexa.realtime.feed import InMemoryRealtimeFeed, RealtimeFeed
from sellexa.realtime.redis_feed import RedisRealtimeFeed
from sellexa.stores.chat_store import ChatStore
from sellexa.stores.notifications_store import NotificationsStore
from sellexa.stores.persistence import InMemoryStatePersistence, RedisStatePersistence, StatePersistence
from sellexa.stores.products_store import ProductsStore
from sellexa.stores.profile_store import ProfileStore
from sellexa.stores.saves_store import SavesStore
from sellexa.stores.user_store import UserStore
from sellexa.utils.logger import get_current_logger


@dataclass
class Repositories:
    auth: AuthGateway
    profiles: ProfileRepository
    products: ProductRepository
    saves: SaveRepository
    notifications: NotificationRepository
    conversations: ConversationRepository


@dataclass
class AppState:
    """
    Every store and service of one client session.

    Build it once per session (:meth:`create` or :meth:`from_config`) and
    pass it by reference; nothing in the package keeps a global store.
    """

    user: UserStore
    profile: ProfileStore
    products: ProductsStore
    saves: SavesStore
    notifications: NotificationsStore
    chat: ChatStore
    chat_api: ChatApi
    conversations_api: ConversationsApi
    search_api: SearchApi
    request_cache: RequestCache
    realtime: RealtimeFeed
    persistence: Optional[StatePersistence] = None
    backend_bridge: Optional[BackendChangeBridge] = None
    _closers: list[Callable] = field(default_factory=list, repr=False)

    @classmethod
    def create(
        cls,
        repositories: Repositories,
        *,
        persistence: Optional[StatePersistence] = None,
        realtime: Optional[RealtimeFeed] = None,
        request_cache: Optional[RequestCache] = None,
        clock: Callable[[], float] = time.time,
    ) -> "AppState":
        """Wire stores around already-built repositories."""
        cache = request_cache if request_cache is not None else RequestCache()
        user = UserStore(repositories.auth, persistence, clock)
        return cls(
            user=user,
            profile=ProfileStore(user, repositories.profiles, persistence, clock),
            products=ProductsStore(repositories.products, persistence, clock),
            saves=SavesStore(user, repositories.saves, persistence, clock),
            notifications=NotificationsStore(user, repositories.notifications, persistence, clock),
            chat=ChatStore(user),
            chat_api=ChatApi(repositories.conversations, cache),
            conversations_api=ConversationsApi(repositories.conversations, cache),
            search_api=SearchApi(repositories.products),
            request_cache=cache,
            realtime=realtime if realtime is not None else InMemoryRealtimeFeed(),
            persistence=persistence,
        )

    @classmethod
    def from_config(
        cls,
        client: Optional[SupabaseClient] = None,
        *,
        client_id: Optional[str] = None,
        connection: Optional[RedisConnection] = None,
    ) -> "AppState":
        """
        Build a session against the configured backend and, if selected, Redis.

        Args:
            client: Backend client; one is created from config when omitted
            client_id: Namespace for this client's persisted slices. Required
                when ``STATE_PERSISTENCE`` is ``redis``
            connection: Redis connection; a new pool is opened when omitted
        """
        logger = get_current_logger()
        if config.STATE_PERSISTENCE == "redis" and not client_id:
            raise ValueError("client_id is required when STATE_PERSISTENCE is 'redis'")
        client = client if client is not None else SupabaseClient()
        repositories = Repositories(
            auth=SupabaseAuth(client),
            profiles=SupabaseProfileRepository(client),
            products=SupabaseProductRepository(client),
            saves=SupabaseSaveRepository(client),
            notifications=SupabaseNotificationRepository(client),
            conversations=SupabaseConversationRepository(client),
        )

        persistence: StatePersistence
        realtime: RealtimeFeed
        closers: list[Callable] = [client.close]
        if config.STATE_PERSISTENCE == "redis":
            if connection is None:
                connection = RedisConnection()
                closers.append(connection.close)
            persistence = RedisStatePersistence(connection, namespace=client_id)
            realtime = RedisRealtimeFeed(connection)
        else:
            persistence = InMemoryStatePersistence()
            realtime = InMemoryRealtimeFeed()

        logger.info(f"App state created (persistence={config.STATE_PERSISTENCE})")
        state = cls.create(repositories, persistence=persistence, realtime=realtime)
        state._closers = closers
        state.backend_bridge = BackendChangeBridge(
            realtime, config.SUPABASE_REALTIME_URL or realtime_url(client.base_url, client.api_key)
        )
        return state

    @property
    def persisted_stores(self):
        return (self.user, self.profile, self.products, self.saves, self.notifications)

    async def restore(self) -> None:
        """Load every persisted slice. Chat state always starts empty."""
        for store in self.persisted_stores:
            await store.load_state()

    async def persist(self) -> None:
        for store in self.persisted_stores:
            await store.save_state()

    def clear_caches(self) -> None:
        """Drop every cached record that belongs to the signed-in user."""
        self.profile.clear_profile_cache()
        self.products.clear_cache()
        self.saves.clear_all_save_data()
        self.notifications.clear_notifications()
        self.chat.reset()
        self.request_cache.clear_all()

    async def sign_out(self) -> bool:
        if not await self.user.sign_out():
            return False
        self.clear_caches()
        await self.persist()
        return True

    def start_realtime(self, access_token: Optional[str] = None) -> None:
        """Start relaying backend inserts into :attr:`realtime`, if a bridge is configured."""
        if self.backend_bridge is None:
            return
        if access_token is not None:
            self.backend_bridge.access_token = access_token
        self.backend_bridge.start()

    async def close(self) -> None:
        self.user.teardown()
        if self.backend_bridge is not None:
            await self.backend_bridge.stop()
        for closer in self._closers:
            await closer()
        self._closers = []

    async def __aenter__(self) -> "AppState":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
