"""Conversation-level operations: lookup, search, stats and per-viewer flags."""

from typing import Optional

from sellexa.api.base import run_api_call
from sellexa.api.chat import clear_conversation_lists
from sellexa.data.cache_keys import CacheKeys
from sellexa.data.models.chat import Conversation, ConversationStats
from sellexa.data.repositories.base import ConversationRepository
from sellexa.data.request_cache import RequestCache, default_request_cache
from sellexa.utils.response_format import ApiResult


class ConversationsApi:

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

    async def get_conversation_by_id(self, thread_id: str, user_id: str) -> ApiResult[Optional[Conversation]]:
        async def find() -> Optional[Conversation]:
            conversations = await self.repository.list_conversations(user_id)
            return next((c for c in conversations if c.thread_id == thread_id), None)

        return await run_api_call(
            "fetch conversation",
            lambda: self.cache.cached_request(CacheKeys.conversation(thread_id, user_id), find),
        )

    async def _set_flags(self, action: str, thread_id: str, user_id: str, **flags: bool) -> ApiResult[None]:
        async def upsert() -> None:
            await self.repository.upsert_metadata(thread_id, user_id, **flags)
            self.cache.clear(CacheKeys.conversation(thread_id, user_id))
            clear_conversation_lists(self.cache, user_id)

        return await run_api_call(action, upsert)

    async def archive_conversation(self, thread_id: str, user_id: str) -> ApiResult[None]:
        return await self._set_flags("archive conversation", thread_id, user_id, is_archived=True)

    async def unarchive_conversation(self, thread_id: str, user_id: str) -> ApiResult[None]:
        return await self._set_flags("unarchive conversation", thread_id, user_id, is_archived=False)

    async def mute_conversation(self, thread_id: str, user_id: str) -> ApiResult[None]:
        return await self._set_flags("mute conversation", thread_id, user_id, is_muted=True)

    async def unmute_conversation(self, thread_id: str, user_id: str) -> ApiResult[None]:
        return await self._set_flags("unmute conversation", thread_id, user_id, is_muted=False)

    async def search_conversations(self, user_id: str, query: str) -> ApiResult[list[Conversation]]:
        """Conversations whose counterpart, product title or last message contains ``query``."""

        async def search() -> list[Conversation]:
            conversations = await self.repository.list_conversations(user_id)
            return [c for c in conversations if c.matches(query)]

        return await run_api_call(
            "search conversations",
            lambda: self.cache.cached_request(CacheKeys.search_conversations(user_id, query), search),
        )

    async def get_conversation_stats(self, user_id: str) -> ApiResult[ConversationStats]:
        async def stats() -> ConversationStats:
            conversations = await self.repository.list_conversations(user_id)
            return ConversationStats(
                total=len(conversations),
                unread=sum(c.unread_count for c in conversations),
                archived=sum(1 for c in conversations if c.is_archived),
                muted=sum(1 for c in conversations if c.is_muted),
            )

        return await run_api_call(
            "fetch conversation stats",
            lambda: self.cache.cached_request(CacheKeys.conversation_stats(user_id), stats),
        )
