"""
Abstract Remote Data Gateway Interface

DESIGN DECISION: The store only talks to the remote backend through
these interfaces. This allows us to:
1. Swap Supabase for another hosted backend later
2. Use an in-memory gateway for testing
3. Keep the store's state logic free of network code

Two surfaces, mirroring what a hosted backend offers:
- Records: three collections (transactions, loans, profiles) owned by a user
- Auth: sign-in, sign-up, sign-out, current session, change notifications
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional

from daily_dime.models.finance import (
    AuthSession,
    Loan,
    LoanStatus,
    Transaction,
    UserPreferences,
)


# (event_name, session_or_None) -> None
AuthChangeListener = Callable[[str, Optional[AuthSession]], None]


class RecordGatewayInterface(ABC):
    """
    Abstract interface for the remote record collections.

    Every call is a single network round trip. Implementations never retry
    and never batch; failures surface as GatewayError.
    """

    @abstractmethod
    async def fetch_transactions(self, user_id: str) -> list[Transaction]:
        """
        Get all transactions owned by a user.

        Raises:
            GatewayError: If the read fails
        """
        pass

    @abstractmethod
    async def fetch_loans(self, user_id: str) -> list[Loan]:
        """Get all loans owned by a user."""
        pass

    @abstractmethod
    async def fetch_preferences(self, user_id: str) -> Optional[UserPreferences]:
        """
        Get the user's profile preferences.

        Returns:
            The preferences, or None if the user has no profile row yet
        """
        pass

    @abstractmethod
    async def insert_transaction(self, user_id: str, transaction: Transaction) -> None:
        pass

    @abstractmethod
    async def delete_transaction(self, transaction_id: str) -> None:
        pass

    @abstractmethod
    async def insert_loan(self, user_id: str, loan: Loan) -> None:
        """Insert a loan row (the person's name goes to the person_name column)."""
        pass

    @abstractmethod
    async def update_loan_status(self, loan_id: str, status: LoanStatus) -> None:
        pass

    @abstractmethod
    async def delete_loan(self, loan_id: str) -> None:
        pass

    @abstractmethod
    async def upsert_preferences(
        self,
        user_id: str,
        preferences: UserPreferences,
    ) -> None:
        """Write the whole preferences object to the profile row keyed by user id."""
        pass


class AuthGatewayInterface(ABC):
    """Abstract interface for the remote authentication surface."""

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> AuthSession:
        """
        Sign in with email and password.

        Raises:
            AuthenticationError: With a message fit to show the user
        """
        pass

    @abstractmethod
    async def sign_up(self, email: str, password: str) -> Optional[AuthSession]:
        """
        Create an account.

        Returns:
            The new session, or None if the backend wants the email confirmed first

        Raises:
            AuthenticationError: With a message fit to show the user
        """
        pass

    @abstractmethod
    async def sign_out(self) -> None:
        pass

    @abstractmethod
    async def get_session(self) -> Optional[AuthSession]:
        """Get the current session, or None when nobody is signed in."""
        pass

    @abstractmethod
    def on_auth_state_change(self, listener: AuthChangeListener) -> Callable[[], None]:
        """
        Subscribe to login/logout/token-refresh notifications.

        Returns:
            A callable that releases the subscription
        """
        pass


class GatewayError(Exception):
    """Base exception for remote gateway operations."""
    pass


class AuthenticationError(GatewayError):
    """Sign-in, sign-up or session lookup was refused."""
    pass


class GatewayConnectionError(GatewayError):
    """Could not connect to the remote backend."""
    pass
