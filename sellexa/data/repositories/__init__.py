"""Repository contracts and their backend-backed implementations."""

from sellexa.data.repositories.base import (
    AuthGateway,
    ConversationRepository,
    NotificationRepository,
    ProductRepository,
    ProfileRepository,
    SaveRepository,
)
from sellexa.data.repositories.conversation_ops import SupabaseConversationRepository
from sellexa.data.repositories.notification_ops import SupabaseNotificationRepository
from sellexa.data.repositories.product_ops import SupabaseProductRepository
from sellexa.data.repositories.profile_ops import SupabaseProfileRepository
from sellexa.data.repositories.save_ops import SupabaseSaveRepository

__all__ = [
    "AuthGateway",
    "ConversationRepository",
    "NotificationRepository",
    "ProductRepository",
    "ProfileRepository",
    "SaveRepository",
    "SupabaseConversationRepository",
    "SupabaseNotificationRepository",
    "SupabaseProductRepository",
    "SupabaseProfileRepository",
    "SupabaseSaveRepository",
]
