"""Authenticated identity, the root dependency of every other store."""

import time
from typing import Any, Callable, Optional

from sellexa.data.cache_keys import StateKeys
from sellexa.data.models.user import AuthEvent, Session, User
from sellexa.data.repositories.base import AuthGateway
from sellexa.stores.base import BaseStore
from sellexa.stores.persistence import StatePersistence
from sellexa.utils.logger import get_current_logger

SIGNED_IN_EVENTS = (AuthEvent.SIGNED_IN, AuthEvent.TOKEN_REFRESHED, AuthEvent.INITIAL_SESSION)


class UserStore(BaseStore):
    state_name = StateKeys.USER

    def __init__(
        self,
        auth: AuthGateway,
        persistence: Optional[StatePersistence] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(persistence, clock)
        self.auth = auth
        self.user: Optional[User] = None
        self.is_loading = False
        self.error: Optional[str] = None
        self.is_initialized = False
        self.is_auth_listener_setup = False
        self._unsubscribe: Optional[Callable[[], None]] = None

    def set_user(self, user: Optional[User]) -> None:
        self.user = user
        self.error = None

    def set_error(self, error: Optional[str]) -> None:
        self.error = error

    async def initialize_user(self) -> None:
        """
        Load the current user and start following auth events.

        A user restored from persistence skips the fetch, but the listener
        is still installed so later sign-outs and missing sessions clear it.
        """
        if self.is_initialized and self.user is not None:
            self._setup_auth_listener()
            return

        logger = get_current_logger()
        self.is_loading = True
        self.error = None

        try:
            self.user = await self.auth.get_user()
        except Exception as e:
            logger.error(f"Error initializing user: {e}")
            self.user = None
            self.error = str(e) or "Failed to initialize user"
            return
        finally:
            self.is_loading = False
            self.is_initialized = True
            self._setup_auth_listener()

        await self.save_state()

    def _setup_auth_listener(self) -> None:
        if self.is_auth_listener_setup:
            return
        self.is_auth_listener_setup = True
        self._unsubscribe = self.auth.on_auth_state_change(self.handle_auth_event)
        get_current_logger().debug("Auth listener installed")

    def handle_auth_event(self, event: AuthEvent, session: Optional[Session]) -> None:
        if event == AuthEvent.SIGNED_OUT or session is None:
            self.user = None
        elif event in SIGNED_IN_EVENTS:
            self.user = session.user
        self.is_initialized = True

    def teardown(self) -> None:
        """Stop following auth events."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.is_auth_listener_setup = False

    async def sign_out(self) -> bool:
        self.is_loading = True
        try:
            await self.auth.sign_out()
        except Exception as e:
            get_current_logger().error(f"Error signing out: {e}")
            self.error = str(e) or "Failed to sign out"
            return False
        finally:
            self.is_loading = False

        self.user = None
        self.error = None
        await self.save_state()
        return True

    def clear_user(self) -> None:
        self.user = None
        self.error = None
        self.is_loading = False

    def is_authenticated(self) -> bool:
        return self.user is not None

    def get_user_id(self) -> Optional[str]:
        return self.user.id if self.user else None

    def get_user_email(self) -> Optional[str]:
        return self.user.email if self.user else None

    def snapshot(self) -> dict[str, Any]:
        return {
            "user": self.user.model_dump(mode="json") if self.user else None,
            "is_initialized": self.is_initialized,
        }

    def restore_snapshot(self, state: dict[str, Any]) -> None:
        raw_user = state.get("user")
        self.user = User.model_validate(raw_user) if raw_user else None
        self.is_initialized = bool(state.get("is_initialized"))
