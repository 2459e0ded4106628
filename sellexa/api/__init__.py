"""Domain API modules returning uniform :class:`~sellexa.utils.ApiResult` envelopes."""

from sellexa.api.base import run_api_call
from sellexa.api.chat import ChatApi
from sellexa.api.conversations import ConversationsApi
from sellexa.api.search import SearchApi, TRENDING_SEARCHES

__all__ = ["run_api_call", "ChatApi", "ConversationsApi", "SearchApi", "TRENDING_SEARCHES"]
