"""Chat session bound to a mount/unmount lifecycle."""

from datetime import datetime, timezone
from typing import Optional

from sellexa.data.cache_keys import Topics
from sellexa.data.models.chat import Conversation, ConversationStats, Message, Thread, TypingIndicator
from sellexa.realtime.feed import Subscription
from sellexa.realtime.pipeline import MessageInsertPipeline
from sellexa.stores.app_state import AppState
from sellexa.utils.logger import AppLogger, get_current_logger, set_app_context


class ChatSession:
    """
    Drives :class:`~sellexa.stores.ChatStore` for one signed-in user.

    Mounting loads the conversation list. Opening a thread loads its
    messages and subscribes to its inserts; the previous thread's
    subscription is closed first. Actions never raise: failures are logged
    and land on ``chat.error`` where the store tracks one.

    Usage:
        async with ChatSession(state) as chat:
            await chat.set_current_thread(thread_id)
            await chat.send_message("Hello")
    """

    def __init__(self, state: AppState, user_id: Optional[str] = None) -> None:
        self.state = state
        self._user_id = user_id
        self.pipeline = MessageInsertPipeline(state.chat_api, state.chat, on_unknown_thread=self.load_conversations)
        self.subscription: Optional[Subscription] = None
        self.mounted = False

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id if self._user_id is not None else self.state.user.get_user_id()

    @property
    def store(self):
        return self.state.chat

    @property
    def current_thread(self) -> Optional[str]:
        return self.store.current_thread

    @property
    def conversations(self) -> list[Conversation]:
        return self.store.conversations

    @property
    def realtime_active(self) -> bool:
        """False when no thread is open or its change feed has stopped."""
        return self.subscription is not None and self.subscription.active

    @property
    def messages(self) -> list[Message]:
        thread_id = self.store.current_thread
        return self.store.get_messages(thread_id) if thread_id else []

    # Lifecycle

    async def mount(self) -> None:
        self.mounted = True
        if self.user_id:
            await self.load_conversations()

    async def unmount(self) -> None:
        self._close_subscription()
        self.mounted = False

    async def __aenter__(self) -> "ChatSession":
        await self.mount()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.unmount()

    async def set_user_id(self, user_id: Optional[str]) -> None:
        """Switch user; reloads conversations when the id actually changes."""
        if user_id == self._user_id:
            return
        self._user_id = user_id
        if self.mounted and user_id:
            await self.load_conversations()

    # Loading

    async def load_conversations(self) -> None:
        user_id = self.user_id
        if not user_id:
            return

        with set_app_context(AppLogger.CHAT):
            self.store.set_loading(True)
            self.store.set_error(None)
            try:
                result = await self.state.chat_api.get_conversations(user_id)
                if result.success and result.data is not None:
                    self.store.set_conversations(result.data)
                else:
                    self.store.set_error(result.error or "Failed to load conversations")
            finally:
                self.store.set_loading(False)

    async def load_messages(self, thread_id: str) -> None:
        if not thread_id:
            return

        with set_app_context(AppLogger.CHAT):
            self.store.set_loading(True)
            self.store.set_error(None)
            try:
                result = await self.state.chat_api.get_messages(thread_id)
                if result.success and result.data is not None:
                    self.store.set_messages(thread_id, result.data)
                else:
                    self.store.set_error(result.error or "Failed to load messages")
            finally:
                self.store.set_loading(False)

    async def set_current_thread(self, thread_id: Optional[str]) -> None:
        if thread_id == self.store.current_thread:
            return

        self._close_subscription()
        self.store.set_current_thread(thread_id)
        if not thread_id:
            return

        await self.load_messages(thread_id)
        self.subscription = self.state.realtime.subscribe(
            Topics.thread_messages(thread_id), self.pipeline.handle
        )

    def _close_subscription(self) -> None:
        if self.subscription is not None:
            self.subscription.unsubscribe()
            self.subscription = None

    # Actions

    async def send_message(self, body: str) -> Optional[Message]:
        thread_id = self.store.current_thread
        user_id = self.user_id
        if not thread_id or not body.strip() or not user_id:
            return None

        with set_app_context(AppLogger.CHAT):
            self.store.set_sending(True)
            self.store.set_error(None)
            try:
                result = await self.state.chat_api.send_message(thread_id, body, user_id)
                if not result.success or result.data is None:
                    self.store.set_error(result.error or "Failed to send message")
                    return None
                self.store.add_message(thread_id, result.data)
                self.store.update_conversation(thread_id, last_message_body=body)
                return result.data
            finally:
                self.store.set_sending(False)

    async def mark_as_read(self, thread_id: str) -> bool:
        user_id = self.user_id
        if not thread_id or not user_id:
            return False

        with set_app_context(AppLogger.CHAT):
            result = await self.state.chat_api.mark_messages_as_read(thread_id, user_id)
            if result.success:
                self.store.mark_messages_as_read(thread_id)
            return result.success

    async def handle_typing(self, is_typing: bool) -> None:
        thread_id = self.store.current_thread
        user_id = self.user_id
        if not thread_id or not user_id:
            return

        with set_app_context(AppLogger.CHAT):
            result = await self.state.chat_api.set_typing_indicator(thread_id, user_id, is_typing)
            if not result.success:
                return
            if is_typing:
                self.store.add_typing_indicator(thread_id, TypingIndicator(
                    user_id=user_id,
                    is_typing=True,
                    updated_at=datetime.now(timezone.utc).isoformat(),
                ))
            else:
                self.store.remove_typing_indicator(thread_id, user_id)

    async def refresh_typing_indicators(self) -> list[TypingIndicator]:
        """Re-read who else is typing in the open thread."""
        thread_id = self.store.current_thread
        user_id = self.user_id
        if not thread_id or not user_id:
            return []

        with set_app_context(AppLogger.CHAT):
            result = await self.state.chat_api.get_typing_indicators(thread_id, user_id)
            if result.success and result.data is not None:
                self.store.set_typing_indicators(thread_id, result.data)
                return result.data
            return []

    async def _reload_reactions(self, message_id: str) -> None:
        result = await self.state.chat_api.get_message_reactions(message_id)
        if result.success and result.data is not None:
            self.store.set_message_reactions(message_id, result.data)

    async def add_reaction(self, message_id: str, emoji: str) -> bool:
        user_id = self.user_id
        if not user_id:
            return False

        with set_app_context(AppLogger.CHAT):
            result = await self.state.chat_api.add_message_reaction(message_id, user_id, emoji)
            if result.success:
                await self._reload_reactions(message_id)
            return result.success

    async def remove_reaction(self, message_id: str, emoji: str) -> bool:
        user_id = self.user_id
        if not user_id:
            return False

        with set_app_context(AppLogger.CHAT):
            result = await self.state.chat_api.remove_message_reaction(message_id, user_id, emoji)
            if result.success:
                await self._reload_reactions(message_id)
            return result.success

    async def archive_conversation(self, thread_id: str) -> bool:
        user_id = self.user_id
        if not user_id:
            return False
        with set_app_context(AppLogger.CHAT):
            result = await self.state.conversations_api.archive_conversation(thread_id, user_id)
        if result.success:
            self.store.archive_conversation(thread_id)
        return result.success

    async def unarchive_conversation(self, thread_id: str) -> bool:
        user_id = self.user_id
        if not user_id:
            return False
        with set_app_context(AppLogger.CHAT):
            result = await self.state.conversations_api.unarchive_conversation(thread_id, user_id)
        if result.success:
            self.store.unarchive_conversation(thread_id)
        return result.success

    async def mute_conversation(self, thread_id: str) -> bool:
        user_id = self.user_id
        if not user_id:
            return False
        with set_app_context(AppLogger.CHAT):
            result = await self.state.conversations_api.mute_conversation(thread_id, user_id)
        if result.success:
            self.store.mute_conversation(thread_id)
        return result.success

    async def unmute_conversation(self, thread_id: str) -> bool:
        user_id = self.user_id
        if not user_id:
            return False
        with set_app_context(AppLogger.CHAT):
            result = await self.state.conversations_api.unmute_conversation(thread_id, user_id)
        if result.success:
            self.store.unmute_conversation(thread_id)
        return result.success

    async def search_conversations(self, query: str) -> list[Conversation]:
        user_id = self.user_id
        if not user_id:
            return []
        with set_app_context(AppLogger.CHAT):
            result = await self.state.conversations_api.search_conversations(user_id, query)
        return result.data if result.success and result.data is not None else []

    async def get_conversation_stats(self) -> ConversationStats:
        user_id = self.user_id
        if not user_id:
            return ConversationStats()
        with set_app_context(AppLogger.CHAT):
            result = await self.state.conversations_api.get_conversation_stats(user_id)
        return result.data if result.success and result.data is not None else ConversationStats()

    async def create_new_thread(self, product_id: str, seller_id: str) -> Optional[Thread]:
        user_id = self.user_id
        if not user_id:
            return None

        with set_app_context(AppLogger.CHAT):
            result = await self.state.chat_api.create_thread(product_id, user_id, seller_id)
            if not result.success or result.data is None:
                get_current_logger().warning(f"Could not create thread for product {product_id}: {result.error}")
                return None
        await self.load_conversations()
        return result.data

    # Computed values

    def get_conversation(self, thread_id: str) -> Optional[Conversation]:
        return self.store.get_conversation(thread_id)

    def get_unread_count(self, thread_id: str) -> int:
        return self.store.get_unread_count(thread_id)

    def get_total_unread_count(self) -> int:
        return self.store.get_total_unread_count()

    def is_typing(self, thread_id: str, user_id: str) -> bool:
        return self.store.is_typing(thread_id, user_id)
