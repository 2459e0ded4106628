"""
Repository contracts for the managed backend.

The backend's own logic (RPC bodies, row-level security, realtime fan-out)
is opaque to this codebase; these protocols only pin down inputs and outputs.
Implementations raise :class:`sellexa.data.supabase.BackendError` on failure.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Protocol

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


class AuthGateway(Protocol):
    def on_auth_state_change(
        self, listener: Callable[[AuthEvent, Optional[Session]], None]
    ) -> Callable[[], None]:
        ...

    async def get_user(self) -> Optional[User]:
        ...

    async def sign_out(self) -> None:
        ...


class ProfileRepository(Protocol):
    async def get_profile(self, user_id: str) -> Optional[Profile]:
        """Full profile row, None when missing."""
        ...

    async def get_public_profile(self, user_id: str) -> Optional[Profile]:
        """Public subset of another user's profile, None when missing."""
        ...

    async def update_profile(self, user_id: str, updates: dict[str, Any]) -> None:
        ...


class ProductRepository(Protocol):
    async def list_feed(self, limit: int = 50) -> list[Product]:
        ...

    async def list_by_category(self, category: str, limit: int = 40) -> list[Product]:
        ...

    async def get_product(self, product_id: str) -> Product:
        ...

    async def list_by_seller(self, seller_id: str) -> list[Product]:
        """Available products of one seller, newest first."""
        ...

    async def search(self, filters: ProductFilters, limit: int = 50) -> list[Product]:
        ...

    async def title_suggestions(self, query: str, limit: int = 5) -> list[str]:
        ...


class SaveRepository(Protocol):
    async def add_save(self, product_id: str, user_id: str) -> None:
        ...

    async def remove_save(self, product_id: str, user_id: str) -> None:
        ...

    async def count_saves(self, product_id: str) -> int:
        ...

    async def is_saved(self, product_id: str, user_id: str) -> bool:
        ...

    async def list_saved_products(self, user_id: str) -> list[SavedProduct]:
        ...


class NotificationRepository(Protocol):
    async def list_notifications(self, user_id: str, limit: int = 50) -> list[Notification]:
        ...

    async def mark_read(self, notification_id: str, user_id: str) -> None:
        ...

    async def mark_all_read(self, user_id: str) -> None:
        ...

    async def delete(self, notification_id: str, user_id: str) -> None:
        ...


class ConversationRepository(Protocol):
    async def list_conversations(self, user_id: str) -> list[Conversation]:
        ...

    async def list_messages(self, thread_id: str) -> list[Message]:
        """Messages of a thread, oldest first, with sender profile joined."""
        ...

    async def get_message(self, message_id: str) -> Message:
        ...

    async def insert_message(self, thread_id: str, sender_id: str, body: str) -> Message:
        ...

    async def mark_read(self, thread_id: str, user_id: str) -> None:
        ...

    async def get_typing(self, thread_id: str, user_id: str) -> list[TypingIndicator]:
        ...

    async def set_typing(self, thread_id: str, user_id: str, typing: bool) -> None:
        ...

    async def add_reaction(self, message_id: str, user_id: str, emoji: str) -> None:
        ...

    async def remove_reaction(self, message_id: str, user_id: str, emoji: str) -> None:
        ...

    async def get_reactions(self, message_id: str) -> list[MessageReaction]:
        ...

    async def create_thread(self, product_id: str, buyer_id: str, seller_id: str) -> Thread:
        ...

    async def upsert_metadata(self, thread_id: str, user_id: str, **flags: bool) -> None:
        """Set per-viewer flags (``is_archived``, ``is_muted``) on a thread."""
        ...
