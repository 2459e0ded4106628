from sellexa.data.models.user import User, Session, AuthEvent
from sellexa.data.models.profile import Profile, KYCStatus
from sellexa.data.models.product import (
    Product,
    ProductStatus,
    ProductCategory,
    SellerSummary,
    FeedSection,
    ProductFilters,
)
from sellexa.data.models.save import SaveData, SavedProduct
from sellexa.data.models.notification import Notification, NotificationType, NewNotification
from sellexa.data.models.chat import (
    Thread,
    Message,
    MessageStatus,
    SenderProfile,
    MessageReaction,
    Conversation,
    TypingIndicator,
    ConversationStats,
)

__all__ = [
    "User", "Session", "AuthEvent",
    "Profile", "KYCStatus",
    "Product", "ProductStatus", "ProductCategory", "SellerSummary", "FeedSection", "ProductFilters",
    "SaveData", "SavedProduct",
    "Notification", "NotificationType", "NewNotification",
    "Thread", "Message", "MessageStatus", "SenderProfile", "MessageReaction",
    "Conversation", "TypingIndicator", "ConversationStats",
]
