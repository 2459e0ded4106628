"""In-memory stand-ins for the backend used across the test suite."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Optional

from sellexa.data.models import (
    AuthEvent,
    Conversation,
    Message,
    MessageReaction,
    Notification,
    Product,
    ProductFilters,
    Profile,
    SavedProduct,
    Session,
    Thread,
    TypingIndicator,
    User,
)
from sellexa.data.supabase.errors import BackendError
from sellexa.stores.app_state import AppState, Repositories
from sellexa.stores.persistence import InMemoryStatePersistence


class FakeClock:
    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_user(user_id: str = "user-1", email: str = "ada@example.com") -> User:
    return User(id=user_id, email=email)


def make_product(product_id: str, seller_id: str = "seller-1", **overrides: Any) -> Product:
    fields = {
        "id": product_id,
        "title": f"Product {product_id}",
        "price_pence": 1500,
        "user_id": seller_id,
        "profiles": {"handle": f"{seller_id}-shop", "name": seller_id.title()},
    }
    fields.update(overrides)
    return Product.model_validate(fields)


def make_notification(notification_id: str, read: bool = False, user_id: str = "user-1") -> Notification:
    return Notification(
        id=notification_id,
        user_id=user_id,
        type="message_received",
        title="New message",
        message="You have a new message",
        read=read,
        created_at="2024-05-01T10:00:00+00:00",
    )


class FakeAuth:
    def __init__(self, user: Optional[User] = None, fail_get_user: bool = False) -> None:
        self.user = user
        self.fail_get_user = fail_get_user
        self.listeners: list[Callable[[AuthEvent, Optional[Session]], None]] = []
        self.sign_out_calls = 0

    @property
    def session(self) -> Optional[Session]:
        return Session(access_token="token", user=self.user) if self.user else None

    def on_auth_state_change(self, listener):
        self.listeners.append(listener)
        listener(AuthEvent.INITIAL_SESSION, self.session)
        return lambda: self.listeners.remove(listener)

    def emit(self, event: AuthEvent, session: Optional[Session]) -> None:
        for listener in list(self.listeners):
            listener(event, session)

    async def get_user(self) -> Optional[User]:
        if self.fail_get_user:
            raise BackendError("Auth session missing", status_code=401)
        return self.user

    async def sign_out(self) -> None:
        self.sign_out_calls += 1
        self.user = None
        self.emit(AuthEvent.SIGNED_OUT, None)


class FakeProfileRepository:
    def __init__(self, profiles: Optional[dict[str, Profile]] = None) -> None:
        self.profiles = dict(profiles or {})
        self.calls: list[tuple[str, str]] = []

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        self.calls.append(("get_profile", user_id))
        return self.profiles.get(user_id)

    async def get_public_profile(self, user_id: str) -> Optional[Profile]:
        self.calls.append(("get_public_profile", user_id))
        return self.profiles.get(user_id)

    async def update_profile(self, user_id: str, updates: dict[str, Any]) -> None:
        self.calls.append(("update_profile", user_id))
        current = self.profiles[user_id]
        self.profiles[user_id] = current.model_copy(update=updates)


class FakeProductRepository:
    def __init__(self, products: Optional[list[Product]] = None) -> None:
        self.products = list(products or [])
        self.feed_calls = 0
        self.fail = False

    async def list_feed(self, limit: int = 50) -> list[Product]:
        self.feed_calls += 1
        if self.fail:
            raise BackendError("feed unavailable", status_code=503)
        return self.products[:limit]

    async def list_by_category(self, category: str, limit: int = 40) -> list[Product]:
        return [p for p in self.products if p.category.value == category.upper()][:limit]

    async def get_product(self, product_id: str) -> Product:
        for product in self.products:
            if product.id == product_id:
                return product
        raise BackendError("No rows returned from products", status_code=406, code="PGRST116")

    async def list_by_seller(self, seller_id: str) -> list[Product]:
        return [p for p in self.products if p.user_id == seller_id]

    async def search(self, filters: ProductFilters, limit: int = 50) -> list[Product]:
        query = (filters.query or "").lower()
        return [p for p in self.products if query in p.title.lower()][:limit]

    async def title_suggestions(self, query: str, limit: int = 5) -> list[str]:
        return [p.title for p in self.products if query.lower() in p.title.lower()][:limit]


class FakeSaveRepository:
    """Tracks saves per product; ``gate`` lets a test hold a write in flight."""

    def __init__(self, counts: Optional[dict[str, int]] = None) -> None:
        self.counts = dict(counts or {})
        self.saved: set[tuple[str, str]] = set()
        self.saved_products: list[SavedProduct] = []
        self.writes: list[tuple[str, str]] = []
        self.fail_writes = False
        self.gate: Optional[asyncio.Event] = None

    async def _write(self, action: str, product_id: str) -> None:
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_writes:
            raise BackendError("permission denied for table saves", status_code=403, code="42501")
        self.writes.append((action, product_id))

    async def add_save(self, product_id: str, user_id: str) -> None:
        await self._write("add", product_id)
        self.saved.add((product_id, user_id))
        self.counts[product_id] = self.counts.get(product_id, 0) + 1

    async def remove_save(self, product_id: str, user_id: str) -> None:
        await self._write("remove", product_id)
        self.saved.discard((product_id, user_id))
        self.counts[product_id] = max(0, self.counts.get(product_id, 0) - 1)

    async def count_saves(self, product_id: str) -> int:
        return self.counts.get(product_id, 0)

    async def is_saved(self, product_id: str, user_id: str) -> bool:
        return (product_id, user_id) in self.saved

    async def list_saved_products(self, user_id: str) -> list[SavedProduct]:
        return list(self.saved_products)


class FakeNotificationRepository:
    def __init__(self, notifications: Optional[list[Notification]] = None) -> None:
        self.notifications = list(notifications or [])
        self.fail = False

    async def list_notifications(self, user_id: str, limit: int = 50) -> list[Notification]:
        return [n for n in self.notifications if n.user_id == user_id][:limit]

    async def mark_read(self, notification_id: str, user_id: str) -> None:
        if self.fail:
            raise BackendError("update failed", status_code=500)

    async def mark_all_read(self, user_id: str) -> None:
        if self.fail:
            raise BackendError("update failed", status_code=500)

    async def delete(self, notification_id: str, user_id: str) -> None:
        if self.fail:
            raise BackendError("delete failed", status_code=500)


class FakeConversationRepository:
    def __init__(self, conversations: Optional[list[Conversation]] = None) -> None:
        self.conversations = list(conversations or [])
        self.messages: dict[str, list[Message]] = {}
        self.reactions: dict[str, list[MessageReaction]] = {}
        self.metadata: dict[tuple[str, str], dict[str, bool]] = {}
        self.calls: list[str] = []
        self.fail = False
        self._next_id = 0

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if self.fail:
            raise BackendError(f"{name} failed", status_code=500)

    def add_remote_message(self, thread_id: str, sender_id: str, body: str) -> Message:
        """Insert a message as another client would."""
        self._next_id += 1
        message = Message(
            id=f"msg-{self._next_id}",
            thread_id=thread_id,
            sender_id=sender_id,
            body=body,
            created_at=f"2024-05-01T10:00:{self._next_id:02d}+00:00",
            profiles={"handle": sender_id, "name": sender_id.title()},
        )
        self.messages.setdefault(thread_id, []).append(message)
        return message

    async def list_conversations(self, user_id: str) -> list[Conversation]:
        self._record("list_conversations")
        return list(self.conversations)

    async def list_messages(self, thread_id: str) -> list[Message]:
        self._record("list_messages")
        return list(self.messages.get(thread_id, []))

    async def get_message(self, message_id: str) -> Message:
        self._record("get_message")
        for messages in self.messages.values():
            for message in messages:
                if message.id == message_id:
                    return message
        raise BackendError("No rows returned from messages", status_code=406, code="PGRST116")

    async def insert_message(self, thread_id: str, sender_id: str, body: str) -> Message:
        self._record("insert_message")
        return self.add_remote_message(thread_id, sender_id, body)

    async def mark_read(self, thread_id: str, user_id: str) -> None:
        self._record("mark_read")

    async def get_typing(self, thread_id: str, user_id: str) -> list[TypingIndicator]:
        self._record("get_typing")
        return []

    async def set_typing(self, thread_id: str, user_id: str, typing: bool) -> None:
        self._record("set_typing")

    async def add_reaction(self, message_id: str, user_id: str, emoji: str) -> None:
        self._record("add_reaction")
        self.reactions.setdefault(message_id, []).append(MessageReaction(emoji=emoji, count=1, user_reacted=True))

    async def remove_reaction(self, message_id: str, user_id: str, emoji: str) -> None:
        self._record("remove_reaction")
        self.reactions[message_id] = [r for r in self.reactions.get(message_id, []) if r.emoji != emoji]

    async def get_reactions(self, message_id: str) -> list[MessageReaction]:
        self._record("get_reactions")
        return list(self.reactions.get(message_id, []))

    async def create_thread(self, product_id: str, buyer_id: str, seller_id: str) -> Thread:
        self._record("create_thread")
        thread = Thread(id=f"thread-{product_id}", product_id=product_id, buyer_id=buyer_id, seller_id=seller_id)
        self.conversations.append(Conversation(thread_id=thread.id, product_id=product_id, other_user_id=seller_id))
        return thread

    async def upsert_metadata(self, thread_id: str, user_id: str, **flags: bool) -> None:
        self._record("upsert_metadata")
        self.metadata.setdefault((thread_id, user_id), {}).update(flags)


def make_repositories(user: Optional[User] = None, **overrides: Any) -> Repositories:
    repositories = {
        "auth": FakeAuth(user),
        "profiles": FakeProfileRepository(),
        "products": FakeProductRepository(),
        "saves": FakeSaveRepository(),
        "notifications": FakeNotificationRepository(),
        "conversations": FakeConversationRepository(),
    }
    repositories.update(overrides)
    return Repositories(**repositories)


async def make_state(user: Optional[User] = None, clock: Optional[FakeClock] = None, **overrides: Any) -> AppState:
    """AppState over fakes with the user already initialised."""
    state = AppState.create(
        make_repositories(user, **overrides),
        persistence=InMemoryStatePersistence(),
        clock=clock if clock is not None else FakeClock(),
    )
    await state.user.initialize_user()
    return state
