from __future__ import annotations

from typing import Callable, Optional

from sellexa.data.models.user import AuthEvent, Session, User
from sellexa.data.supabase.client import SupabaseClient
from sellexa.data.supabase.errors import BackendError
from sellexa.utils.logger import get_current_logger

AuthListener = Callable[[AuthEvent, Optional[Session]], None]


class SupabaseAuth:
    """
    Auth endpoints (``/auth/v1``) plus a local auth-event stream.

    Listeners registered with :meth:`on_auth_state_change` receive
    ``INITIAL_SESSION`` immediately, then ``SIGNED_IN``, ``TOKEN_REFRESHED``
    and ``SIGNED_OUT`` as the session changes through this object.
    """

    def __init__(self, client: SupabaseClient, session: Optional[Session] = None) -> None:
        self._client = client
        self._session: Optional[Session] = None
        self._listeners: list[AuthListener] = []
        if session is not None:
            self._apply_session(session)

    @property
    def session(self) -> Optional[Session]:
        return self._session

    def _apply_session(self, session: Optional[Session]) -> None:
        self._session = session
        self._client.set_access_token(session.access_token if session else None)

    def _emit(self, event: AuthEvent) -> None:
        logger = get_current_logger()
        logger.info(f"Auth event: {event.value}")
        for listener in list(self._listeners):
            try:
                listener(event, self._session)
            except Exception as e:
                logger.exception(f"Auth listener failed on {event.value}: {e}")

    def on_auth_state_change(self, listener: AuthListener) -> Callable[[], None]:
        """Register ``listener`` and return a function that unregisters it."""
        self._listeners.append(listener)
        try:
            listener(AuthEvent.INITIAL_SESSION, self._session)
        except Exception as e:
            get_current_logger().exception(f"Auth listener failed on INITIAL_SESSION: {e}")

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def get_user(self) -> Optional[User]:
        """Return the user of the current session, None when signed out."""
        if self._session is None:
            return None
        response = await self._client.request("GET", "/auth/v1/user")
        return User.model_validate(self._client.decode(response))

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        if not email or not password:
            raise BackendError("Email and password are required", status_code=400)
        response = await self._client.request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        session = Session.model_validate(self._client.decode(response))
        self._apply_session(session)
        self._emit(AuthEvent.SIGNED_IN)
        return session

    async def refresh_session(self) -> Session:
        if self._session is None or not self._session.refresh_token:
            raise BackendError("Auth session missing", status_code=401)
        response = await self._client.request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": self._session.refresh_token},
        )
        session = Session.model_validate(self._client.decode(response))
        self._apply_session(session)
        self._emit(AuthEvent.TOKEN_REFRESHED)
        return session

    async def sign_out(self) -> None:
        if self._session is not None:
            await self._client.request("POST", "/auth/v1/logout")
        self._apply_session(None)
        self._emit(AuthEvent.SIGNED_OUT)
