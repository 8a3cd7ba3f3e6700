"""
Session Manager

Drives startup synchronization between the auth gateway and the store.

Flow:
1. start() probes the existing session once
2. If a session exists: set the user, then fetch remote data
3. Subscribe to auth changes for the lifetime of the app; every
   login/logout/token-refresh re-applies the user and re-fetches
4. stop() releases the subscription

Sign-in and sign-up failures are returned as messages for the forms to
display. Nothing here raises into the view layer.
"""

import asyncio
from enum import Enum
from typing import Callable, Optional

import structlog

from daily_dime.models.finance import AuthSession
from daily_dime.services.gateway.interface import (
    AuthGatewayInterface,
    GatewayError,
)
from daily_dime.store.state import FinanceStore
from daily_dime.store.sync import RemoteSync


logger = structlog.get_logger(__name__)

SIGN_UP_CONFIRM_MESSAGE = "Check your email to confirm your account, then sign in."


class SessionState(str, Enum):
    """Where the app is in establishing a session."""
    ANONYMOUS = "anonymous"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


class SessionManager:
    """
    Keeps store.user in step with the auth gateway.

    Signing out clears the user only; local transactions, loans and
    preferences stay where they are.
    """

    def __init__(
        self,
        store: FinanceStore,
        auth: AuthGatewayInterface,
        sync: Optional[RemoteSync] = None,
    ):
        self._store = store
        self._auth = auth
        self._sync = sync
        self._state = SessionState.ANONYMOUS
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_authenticated(self) -> bool:
        return self._state == SessionState.AUTHENTICATED

    @property
    def is_listening(self) -> bool:
        return self._unsubscribe is not None

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> SessionState:
        """Probe the current session once and subscribe to auth changes."""
        self._state = SessionState.AUTHENTICATING
        try:
            session = await self._auth.get_session()
        except GatewayError as e:
            logger.warning("session_probe_failed", error=str(e))
            session = None

        await self._apply_session(session)

        if self._unsubscribe is None:
            try:
                self._unsubscribe = self._auth.on_auth_state_change(self._on_auth_change)
            except GatewayError as e:
                logger.warning("auth_subscription_failed", error=str(e))

        return self._state

    def stop(self) -> None:
        """Release the auth-change subscription."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def wait_idle(self) -> None:
        """Wait for auth-change handling that is still in flight."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # -------------------------------------------------------------------------
    # Auth forms
    # -------------------------------------------------------------------------

    async def sign_in(self, email: str, password: str) -> tuple[bool, Optional[str]]:
        """
        Sign in with email and password.

        Returns:
            (success, error_message) - the message is shown on the form
        """
        try:
            session = await self._auth.sign_in(email, password)
        except GatewayError as e:
            logger.info("sign_in_failed", error=str(e))
            return False, str(e)

        await self._apply_session(session)
        return True, None

    async def sign_up(self, email: str, password: str) -> tuple[bool, Optional[str]]:
        """
        Create an account.

        Returns:
            (success, message) - on success the message is set only when
            the backend wants the email confirmed before signing in
        """
        try:
            session = await self._auth.sign_up(email, password)
        except GatewayError as e:
            logger.info("sign_up_failed", error=str(e))
            return False, str(e)

        if session is None:
            return True, SIGN_UP_CONFIRM_MESSAGE

        await self._apply_session(session)
        return True, None

    async def sign_out(self) -> None:
        """Sign out remotely (best effort) and clear the local user."""
        try:
            await self._auth.sign_out()
        except GatewayError as e:
            logger.warning("sign_out_failed", error=str(e))

        await self._apply_session(None)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _apply_session(self, session: Optional[AuthSession]) -> None:
        if session is None:
            if self._store.user is not None:
                self._store.set_user(None)
            self._state = SessionState.ANONYMOUS
            return

        self._state = SessionState.AUTHENTICATING
        self._store.set_user(session.user)
        if self._sync is not None:
            await self._sync.fetch_data()
        self._state = SessionState.AUTHENTICATED

    def _on_auth_change(self, event: str, session: Optional[AuthSession]) -> None:
        logger.debug("auth_state_changed", auth_event=event, signed_in=session is not None)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("auth_change_skipped", auth_event=event, reason="no running event loop")
            return

        task = loop.create_task(self._apply_session(session))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
