class TTL:
    """Time-to-Live constants (seconds) for the different cache layers."""
    REQUEST = 30            # 30 seconds - generic request cache
    NOTIFICATIONS = 120     # 2 minutes - notifications list
    PRODUCTS = 300          # 5 minutes - feed, category and seller product lists
    SAVES = 300             # 5 minutes - save counts and saved products
    PROFILE = 600           # 10 minutes - current profile


class CacheKeys:
    """Key generators for the generic request cache."""

    # Conversation-related keys
    @staticmethod
    def conversations(user_id: str) -> str:
        """Cache key for all conversations of a user."""
        return f"conversations-{user_id}"

    @staticmethod
    def conversation(thread_id: str, user_id: str) -> str:
        """Cache key for a single conversation as seen by a user."""
        return f"conversation-{thread_id}-{user_id}"

    @staticmethod
    def search_conversations(user_id: str, query: str) -> str:
        return f"search-conversations-{user_id}-{query}"

    @staticmethod
    def conversation_stats(user_id: str) -> str:
        return f"conversation-stats-{user_id}"

    # Message-related keys
    @staticmethod
    def messages(thread_id: str) -> str:
        """Cache key for the message list of a thread."""
        return f"messages-{thread_id}"

    @staticmethod
    def typing(thread_id: str) -> str:
        """Key for typing indicators (never stored, see get_typing_indicators)."""
        return f"typing-{thread_id}"

    @staticmethod
    def reactions(message_id: str) -> str:
        return f"reactions-{message_id}"


class StateKeys:
    """Names under which store slices are persisted."""
    USER = "user-store"
    PROFILE = "profile-store"
    PRODUCTS = "products-store"
    SAVES = "saves-store"
    NOTIFICATIONS = "notifications-store"


class Topics:
    """Realtime topic generators, in the backend's ``table:column=eq.value`` form."""

    @staticmethod
    def thread_messages(thread_id: str) -> str:
        """Topic carrying inserts into ``messages`` for one thread."""
        return f"messages:thread_id=eq.{thread_id}"
