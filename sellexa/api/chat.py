"""Chat operations over threads and messages, with request caching."""

from typing import Optional

from sellexa.api.base import run_api_call
from sellexa.data.cache_keys import CacheKeys
from sellexa.data.models.chat import Conversation, Message, MessageReaction, Thread, TypingIndicator
from sellexa.data.repositories.base import ConversationRepository
from sellexa.data.request_cache import RequestCache, default_request_cache
from sellexa.utils.response_format import ApiResult


def clear_conversation_lists(cache: RequestCache, user_id: str) -> None:
    """Forget every cached list derived from a user's conversations: the list, stats and searches."""
    cache.clear(CacheKeys.conversations(user_id))
    cache.clear(CacheKeys.conversation_stats(user_id))
    cache.clear_prefix(CacheKeys.search_conversations(user_id, ""))


class ChatApi:
    """
    Message-level chat operations.

    Reads go through the request cache; writes invalidate the keys that the
    next read of the same data would hit.
    """

    def __init__(self, repository: ConversationRepository, cache: Optional[RequestCache] = None):
        self.repository = repository
        self.cache = cache if cache is not None else default_request_cache

    async def get_conversations(self, user_id: str) -> ApiResult[list[Conversation]]:
        return await run_api_call(
            "fetch conversations",
            lambda: self.cache.cached_request(
                CacheKeys.conversations(user_id),
                lambda: self.repository.list_conversations(user_id),
            ),
        )

    async def get_messages(self, thread_id: str) -> ApiResult[list[Message]]:
        return await run_api_call(
            "fetch messages",
            lambda: self.cache.cached_request(
                CacheKeys.messages(thread_id),
                lambda: self.repository.list_messages(thread_id),
            ),
        )

    async def get_message(self, message_id: str) -> ApiResult[Message]:
        """Single message with its sender profile; never cached."""
        return await run_api_call("fetch message", lambda: self.repository.get_message(message_id))

    async def send_message(self, thread_id: str, body: str, sender_id: str) -> ApiResult[Message]:
        async def send() -> Message:
            message = await self.repository.insert_message(thread_id, sender_id, body)
            self.cache.clear(CacheKeys.messages(thread_id))
            self.cache.clear(CacheKeys.conversation(thread_id, sender_id))
            clear_conversation_lists(self.cache, sender_id)
            return message

        return await run_api_call("send message", send)

    async def mark_messages_as_read(self, thread_id: str, user_id: str) -> ApiResult[None]:
        async def mark() -> None:
            await self.repository.mark_read(thread_id, user_id)
            self.cache.clear(CacheKeys.conversation(thread_id, user_id))
            clear_conversation_lists(self.cache, user_id)

        return await run_api_call("mark messages as read", mark)

    async def get_typing_indicators(self, thread_id: str, user_id: str) -> ApiResult[list[TypingIndicator]]:
        return await run_api_call(
            "fetch typing indicators",
            lambda: self.cache.cached_request(
                CacheKeys.typing(thread_id),
                lambda: self.repository.get_typing(thread_id, user_id),
                use_cache=False,
            ),
        )

    async def set_typing_indicator(self, thread_id: str, user_id: str, is_typing: bool) -> ApiResult[None]:
        return await run_api_call(
            "set typing indicator",
            lambda: self.repository.set_typing(thread_id, user_id, is_typing),
        )

    async def add_message_reaction(self, message_id: str, user_id: str, emoji: str) -> ApiResult[None]:
        async def add() -> None:
            await self.repository.add_reaction(message_id, user_id, emoji)
            self.cache.clear(CacheKeys.reactions(message_id))

        return await run_api_call("add reaction", add)

    async def remove_message_reaction(self, message_id: str, user_id: str, emoji: str) -> ApiResult[None]:
        async def remove() -> None:
            await self.repository.remove_reaction(message_id, user_id, emoji)
            self.cache.clear(CacheKeys.reactions(message_id))

        return await run_api_call("remove reaction", remove)

    async def get_message_reactions(self, message_id: str) -> ApiResult[list[MessageReaction]]:
        return await run_api_call(
            "fetch reactions",
            lambda: self.cache.cached_request(
                CacheKeys.reactions(message_id),
                lambda: self.repository.get_reactions(message_id),
            ),
        )

    async def create_thread(self, product_id: str, buyer_id: str, seller_id: str) -> ApiResult[Thread]:
        async def create() -> Thread:
            thread = await self.repository.create_thread(product_id, buyer_id, seller_id)
            clear_conversation_lists(self.cache, buyer_id)
            clear_conversation_lists(self.cache, seller_id)
            return thread

        return await run_api_call("create thread", create)
