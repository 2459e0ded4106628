"""In-memory chat state. Never persisted."""

from datetime import datetime, timezone
from typing import Any, Optional

from sellexa.data.models.chat import Conversation, Message, MessageReaction, TypingIndicator
from sellexa.stores.user_store import UserStore


class ChatStore:
    """
    Conversations, per-thread messages, typing indicators and reactions.

    Unread counts are kept non-negative by :class:`Conversation` itself;
    every mutation here goes through model copies so that validation runs.
    """

    def __init__(self, user_store: UserStore) -> None:
        self.user_store = user_store
        self.reset()

    def reset(self) -> None:
        self.conversations: list[Conversation] = []
        self.current_thread: Optional[str] = None
        self.messages: dict[str, list[Message]] = {}
        self.typing_indicators: dict[str, list[TypingIndicator]] = {}
        self.message_reactions: dict[str, list[MessageReaction]] = {}
        self.is_loading = False
        self.is_sending = False
        self.error: Optional[str] = None

    # Conversations

    def set_conversations(self, conversations: list[Conversation]) -> None:
        self.conversations = list(conversations)

    def add_conversation(self, conversation: Conversation) -> None:
        for index, existing in enumerate(self.conversations):
            if existing.thread_id == conversation.thread_id:
                self.conversations[index] = conversation
                return
        self.conversations.insert(0, conversation)

    def update_conversation(self, thread_id: str, **updates: Any) -> None:
        self.conversations = [
            Conversation.model_validate({**conv.model_dump(), **updates}) if conv.thread_id == thread_id else conv
            for conv in self.conversations
        ]

    def remove_conversation(self, thread_id: str) -> None:
        self.conversations = [c for c in self.conversations if c.thread_id != thread_id]
        self.messages.pop(thread_id, None)

    # Threads and messages

    def set_current_thread(self, thread_id: Optional[str]) -> None:
        self.current_thread = thread_id

    def set_messages(self, thread_id: str, messages: list[Message]) -> None:
        self.messages[thread_id] = list(messages)

    def has_message(self, thread_id: str, message_id: str) -> bool:
        return any(m.id == message_id for m in self.messages.get(thread_id, []))

    def add_message(self, thread_id: str, message: Message) -> bool:
        """
        Append ``message`` and refresh the conversation preview.

        Messages already present (same id) are ignored. The unread count
        grows only for messages from someone else in a thread that is not
        currently open.

        Returns:
            True if the message was appended
        """
        if self.has_message(thread_id, message.id):
            return False

        self.messages.setdefault(thread_id, []).append(message)

        updates: dict[str, Any] = {
            "last_message_body": message.body,
            "last_message_created_at": message.created_at,
        }
        from_other = message.sender_id != self.user_store.get_user_id()
        if from_other and thread_id != self.current_thread:
            updates["unread_count"] = self.get_unread_count(thread_id) + 1
        self.update_conversation(thread_id, **updates)
        return True

    def update_message(self, thread_id: str, message_id: str, **updates: Any) -> None:
        self.messages[thread_id] = [
            m.model_copy(update=updates) if m.id == message_id else m
            for m in self.messages.get(thread_id, [])
        ]

    def remove_message(self, thread_id: str, message_id: str) -> None:
        self.messages[thread_id] = [m for m in self.messages.get(thread_id, []) if m.id != message_id]

    # Typing indicators

    def set_typing_indicators(self, thread_id: str, indicators: list[TypingIndicator]) -> None:
        self.typing_indicators[thread_id] = list(indicators)

    def add_typing_indicator(self, thread_id: str, indicator: TypingIndicator) -> None:
        indicators = [i for i in self.typing_indicators.get(thread_id, []) if i.user_id != indicator.user_id]
        indicators.append(indicator)
        self.typing_indicators[thread_id] = indicators

    def remove_typing_indicator(self, thread_id: str, user_id: str) -> None:
        self.typing_indicators[thread_id] = [
            i for i in self.typing_indicators.get(thread_id, []) if i.user_id != user_id
        ]

    # Reactions

    def set_message_reactions(self, message_id: str, reactions: list[MessageReaction]) -> None:
        self.message_reactions[message_id] = list(reactions)

    def add_message_reaction(self, message_id: str, reaction: MessageReaction) -> None:
        self.message_reactions.setdefault(message_id, []).append(reaction)

    def remove_message_reaction(self, message_id: str, emoji: str) -> None:
        self.message_reactions[message_id] = [
            r for r in self.message_reactions.get(message_id, []) if r.emoji != emoji
        ]

    # Loading and error state

    def set_loading(self, loading: bool) -> None:
        self.is_loading = loading

    def set_sending(self, sending: bool) -> None:
        self.is_sending = sending

    def set_error(self, error: Optional[str]) -> None:
        self.error = error

    def clear_error(self) -> None:
        self.error = None

    # Getters

    def get_conversation(self, thread_id: str) -> Optional[Conversation]:
        return next((c for c in self.conversations if c.thread_id == thread_id), None)

    def get_messages(self, thread_id: str) -> list[Message]:
        return self.messages.get(thread_id, [])

    def get_unread_count(self, thread_id: str) -> int:
        conversation = self.get_conversation(thread_id)
        return conversation.unread_count if conversation else 0

    def get_total_unread_count(self) -> int:
        return sum(c.unread_count for c in self.conversations)

    def is_typing(self, thread_id: str, user_id: str) -> bool:
        return any(i.user_id == user_id and i.is_typing for i in self.typing_indicators.get(thread_id, []))

    # Local flag updates, applied after the backend confirmed them

    def mark_messages_as_read(self, thread_id: str) -> None:
        self.update_conversation(
            thread_id,
            unread_count=0,
            last_read_at=datetime.now(timezone.utc).isoformat(),
        )

    def archive_conversation(self, thread_id: str) -> None:
        self.update_conversation(thread_id, is_archived=True)

    def unarchive_conversation(self, thread_id: str) -> None:
        self.update_conversation(thread_id, is_archived=False)

    def mute_conversation(self, thread_id: str) -> None:
        self.update_conversation(thread_id, is_muted=True)

    def unmute_conversation(self, thread_id: str) -> None:
        self.update_conversation(thread_id, is_muted=False)
