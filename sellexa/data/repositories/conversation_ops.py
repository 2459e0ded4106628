"""Backend operations for threads, messages, reactions and per-viewer thread metadata."""

from datetime import datetime, timezone

from sellexa.data.models.chat import (
    MESSAGE_COLUMNS,
    Conversation,
    Message,
    MessageReaction,
    MessageStatus,
    Thread,
    TypingIndicator,
)
from sellexa.data.supabase.client import SupabaseClient


class SupabaseConversationRepository:

    def __init__(self, client: SupabaseClient) -> None:
        self._client = client

    async def list_conversations(self, user_id: str) -> list[Conversation]:
        rows = await self._client.rpc("get_user_conversations", {"user_uuid": user_id})
        return [Conversation.model_validate(row) for row in rows or []]

    async def list_messages(self, thread_id: str) -> list[Message]:
        rows = await (
            self._client.table("messages")
            .select(MESSAGE_COLUMNS)
            .eq("thread_id", thread_id)
            .order("created_at", ascending=True)
            .fetch()
        )
        return [Message.model_validate(row) for row in rows]

    async def get_message(self, message_id: str) -> Message:
        row = await self._client.table("messages").select(MESSAGE_COLUMNS).eq("id", message_id).fetch_one()
        return Message.model_validate(row)

    async def insert_message(self, thread_id: str, sender_id: str, body: str) -> Message:
        rows = await (
            self._client.table("messages")
            .select(MESSAGE_COLUMNS)
            .insert({
                "thread_id": thread_id,
                "sender_id": sender_id,
                "body": body,
                "status": MessageStatus.SENT.value,
            })
        )
        return Message.model_validate(rows[0])

    async def mark_read(self, thread_id: str, user_id: str) -> None:
        await self._client.rpc("mark_messages_as_read", {"thread_uuid": thread_id, "user_uuid": user_id})

    async def get_typing(self, thread_id: str, user_id: str) -> list[TypingIndicator]:
        rows = await self._client.rpc(
            "get_typing_indicators", {"thread_uuid": thread_id, "user_uuid": user_id}
        )
        return [TypingIndicator.model_validate(row) for row in rows or []]

    async def set_typing(self, thread_id: str, user_id: str, typing: bool) -> None:
        await self._client.rpc(
            "set_typing_indicator",
            {"thread_uuid": thread_id, "user_uuid": user_id, "typing": typing},
        )

    async def add_reaction(self, message_id: str, user_id: str, emoji: str) -> None:
        await self._client.table("message_reactions").insert(
            {"message_id": message_id, "user_id": user_id, "emoji": emoji}, returning=False
        )

    async def remove_reaction(self, message_id: str, user_id: str, emoji: str) -> None:
        await (
            self._client.table("message_reactions")
            .eq("message_id", message_id)
            .eq("user_id", user_id)
            .eq("emoji", emoji)
            .delete()
        )

    async def get_reactions(self, message_id: str) -> list[MessageReaction]:
        rows = await self._client.rpc("get_message_reactions", {"message_uuid": message_id})
        return [MessageReaction.model_validate(row) for row in rows or []]

    async def create_thread(self, product_id: str, buyer_id: str, seller_id: str) -> Thread:
        rows = await self._client.table("threads").insert({
            "product_id": product_id,
            "buyer_id": buyer_id,
            "seller_id": seller_id,
        })
        return Thread.model_validate(rows[0])

    async def upsert_metadata(self, thread_id: str, user_id: str, **flags: bool) -> None:
        payload = {
            "thread_id": thread_id,
            "user_id": user_id,
            **flags,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        await self._client.table("conversation_metadata").upsert(payload, on_conflict="thread_id,user_id")
