import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from sellexa.utils.storage_urls import get_product_image_url


class MessageStatus(str, enum.Enum):
    SENDING = "sending"
    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"
    FAILED = "failed"


class Thread(BaseModel):
    """Row of the ``threads`` table: one buyer, one seller, one product."""
    model_config = ConfigDict(extra="ignore")

    id: str
    product_id: str
    buyer_id: str
    seller_id: str
    created_at: Optional[str] = None


class SenderProfile(BaseModel):
    model_config = ConfigDict(extra="ignore")

    handle: Optional[str] = None
    name: Optional[str] = None
    avatar_url: Optional[str] = None


class MessageReaction(BaseModel):
    model_config = ConfigDict(extra="ignore")

    emoji: str
    count: int = 0
    user_reacted: bool = False


class Message(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    thread_id: str
    sender_id: str
    body: str
    attachments: Optional[Any] = None
    created_at: Optional[str] = None
    status: str = MessageStatus.SENT.value
    profiles: Optional[SenderProfile] = None
    reactions: list[MessageReaction] = Field(default_factory=list)


class Conversation(BaseModel):
    """Denormalised, per-viewer projection of a thread and its latest message."""
    model_config = ConfigDict(extra="ignore")

    thread_id: str
    product_id: Optional[str] = None
    product_title: Optional[str] = None
    product_price_pence: Optional[int] = None
    product_image: Optional[str] = None
    other_user_id: Optional[str] = None
    other_user_name: Optional[str] = None
    other_user_handle: Optional[str] = None
    other_user_avatar_url: Optional[str] = None
    last_message_body: Optional[str] = None
    last_message_created_at: Optional[str] = None
    unread_count: int = 0
    is_archived: bool = False
    is_muted: bool = False
    last_read_at: Optional[str] = None

    @field_validator("unread_count", mode="before")
    @classmethod
    def _clamp_unread(cls, value: Any) -> int:
        return max(0, int(value or 0))

    def matches(self, search_term: str) -> bool:
        """Case-insensitive match on counterpart, product title or last message."""
        term = search_term.lower()
        fields = (
            self.other_user_name,
            self.other_user_handle,
            self.product_title,
            self.last_message_body,
        )
        return any(value and term in value.lower() for value in fields)

    def product_image_url(self) -> Optional[str]:
        return get_product_image_url(self.product_image) if self.product_image else None


class TypingIndicator(BaseModel):
    model_config = ConfigDict(extra="ignore")

    user_id: str
    user_name: Optional[str] = ""
    user_handle: Optional[str] = ""
    is_typing: bool = True
    updated_at: Optional[str] = None


class ConversationStats(BaseModel):
    total: int = 0
    unread: int = 0
    archived: int = 0
    muted: int = 0


MESSAGE_COLUMNS = """
    *,
    profiles:sender_id(
        handle,
        name,
        avatar_url
    )
"""
