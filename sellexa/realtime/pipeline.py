"""Enrich-then-append stage for message inserts pushed by the realtime feed."""

from typing import Any, Awaitable, Callable, Optional

from sellexa.api.chat import ChatApi
from sellexa.data.models.chat import Message
from sellexa.stores.chat_store import ChatStore
from sellexa.utils.logger import AppLogger, get_current_logger, set_app_context


def extract_record(payload: dict[str, Any]) -> Optional[dict[str, Any]]:
    """Pull the inserted row out of a change event (``new`` or ``record``)."""
    record = payload.get("new") or payload.get("record")
    return record if isinstance(record, dict) else None


class MessageInsertPipeline:
    """
    Turns a raw ``messages`` insert into a fully joined :class:`Message`.

    Stage 1 re-fetches the row by id so the sender profile is attached;
    stage 2 appends it to the chat store, skipping ids already present
    (e.g. the sender's own message, which was appended on send).
    A message for a thread missing from the conversation list calls
    ``on_unknown_thread`` so the list can be reloaded.
    """

    def __init__(
        self,
        chat_api: ChatApi,
        chat_store: ChatStore,
        on_unknown_thread: Optional[Callable[[], Awaitable[None]]] = None,
    ) -> None:
        self.chat_api = chat_api
        self.chat_store = chat_store
        self.on_unknown_thread = on_unknown_thread

    async def enrich(self, record: dict[str, Any]) -> Optional[Message]:
        result = await self.chat_api.get_message(record["id"])
        if not result.success:
            get_current_logger().warning(f"Could not enrich message {record['id']}: {result.error}")
            return None
        return result.data

    def append(self, message: Message) -> bool:
        return self.chat_store.add_message(message.thread_id, message)

    async def handle(self, payload: dict[str, Any]) -> Optional[Message]:
        with set_app_context(AppLogger.REALTIME):
            logger = get_current_logger()
            record = extract_record(payload)
            if record is None or "id" not in record or "thread_id" not in record:
                logger.warning(f"Ignoring malformed message event: {payload}")
                return None

            if self.chat_store.has_message(record["thread_id"], record["id"]):
                logger.debug(f"Message {record['id']} already present, skipping")
                return None

            message = await self.enrich(record)
            if message is None or not self.append(message):
                return None

            logger.info(f"Appended realtime message {message.id} to thread {message.thread_id}")
            if self.chat_store.get_conversation(message.thread_id) is None and self.on_unknown_thread:
                logger.info(f"Thread {message.thread_id} missing from conversations, reloading")
                await self.on_unknown_thread()
            return message

    __call__ = handle
