"""
Supabase Gateway Implementation

DESIGN DECISION: Supabase is the hosted backend because:
1. It provides auth and row storage behind one client
2. Rows are keyed by the auth user id, so ownership is enforced server side
3. No server of our own to run

TRADEOFFS:
- Each mirror write is its own request (no multi-table transactions)
- Writes are not retried; local state stays the source of truth

The implementation follows the abstract interfaces, so the store
never imports supabase directly.
"""

from typing import Callable, Optional

import structlog
from supabase import AsyncClient, acreate_client
from tenacity import retry, stop_after_attempt, wait_exponential

from daily_dime.config import get_settings
from daily_dime.config.settings import SupabaseSettings
from daily_dime.models.finance import (
    AuthSession,
    Loan,
    LoanStatus,
    Transaction,
    UserIdentity,
    UserPreferences,
)
from daily_dime.services.gateway.interface import (
    AuthChangeListener,
    AuthenticationError,
    AuthGatewayInterface,
    GatewayConnectionError,
    GatewayError,
    RecordGatewayInterface,
)


logger = structlog.get_logger(__name__)


class SupabaseClient:
    """
    Low-level Supabase client wrapper.

    Creates the async client once and retries only the connection itself.
    """

    def __init__(self, settings: Optional[SupabaseSettings] = None):
        self._client: Optional[AsyncClient] = None
        self._settings = settings or get_settings().supabase

    @property
    def settings(self) -> SupabaseSettings:
        return self._settings

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def connect(self) -> AsyncClient:
        """Establish the client using the project URL and anonymous key."""
        if self._client is None:
            try:
                self._client = await acreate_client(
                    self._settings.url,
                    self._settings.anon_key,
                )
            except Exception as e:
                raise GatewayConnectionError(f"Failed to connect to Supabase: {e}")
        return self._client

    @property
    def client(self) -> AsyncClient:
        """The connected client. connect() must have been awaited first."""
        if self._client is None:
            raise GatewayConnectionError("Supabase client is not connected")
        return self._client


def _session_from_supabase(session) -> Optional[AuthSession]:
    """Convert a supabase Session (or None) into our AuthSession."""
    if session is None or session.user is None:
        return None
    return AuthSession(
        user=UserIdentity(id=session.user.id, email=session.user.email),
        access_token=session.access_token,
        expires_at=session.expires_at,
    )


class SupabaseRecordGateway(RecordGatewayInterface):
    """
    Supabase implementation of the record collections.

    Transactions and loans carry a user_id column; profiles are keyed by id.
    """

    def __init__(self, client: Optional[SupabaseClient] = None):
        self._client = client or SupabaseClient()
        self._settings = self._client.settings

    async def _table(self, name: str):
        client = await self._client.connect()
        return client.table(name)

    def _transaction_to_row(self, user_id: str, transaction: Transaction) -> dict:
        row = transaction.model_dump(mode="json")
        row["user_id"] = user_id
        return row

    def _row_to_transaction(self, row: dict) -> Transaction:
        return Transaction(
            id=row["id"],
            type=row["type"],
            amount=row["amount"],
            category=row.get("category") or "",
            description=row.get("description") or "",
            date=row["date"],
            notes=row.get("notes"),
            tags=row.get("tags"),
        )

    def _loan_to_row(self, user_id: str, loan: Loan) -> dict:
        # Field names (not aliases): person_name is the remote column
        row = loan.model_dump(mode="json")
        row["user_id"] = user_id
        return row

    def _row_to_loan(self, row: dict) -> Loan:
        return Loan(
            id=row["id"],
            person_name=row["person_name"],
            amount=row["amount"],
            date=row["date"],
            status=row.get("status") or LoanStatus.PENDING,
            description=row.get("description"),
        )

    async def fetch_transactions(self, user_id: str) -> list[Transaction]:
        try:
            table = await self._table(self._settings.transactions_table)
            response = await table.select("*").eq("user_id", user_id).execute()
        except GatewayError:
            raise
        except Exception as e:
            raise GatewayError(f"Failed to fetch transactions: {e}")
        return [self._row_to_transaction(row) for row in response.data or []]

    async def fetch_loans(self, user_id: str) -> list[Loan]:
        try:
            table = await self._table(self._settings.loans_table)
            response = await table.select("*").eq("user_id", user_id).execute()
        except GatewayError:
            raise
        except Exception as e:
            raise GatewayError(f"Failed to fetch loans: {e}")
        return [self._row_to_loan(row) for row in response.data or []]

    async def fetch_preferences(self, user_id: str) -> Optional[UserPreferences]:
        try:
            table = await self._table(self._settings.profiles_table)
            response = await table.select("*").eq("id", user_id).limit(1).execute()
        except GatewayError:
            raise
        except Exception as e:
            raise GatewayError(f"Failed to fetch profile: {e}")

        if not response.data:
            return None
        row = response.data[0]
        return UserPreferences(
            currency=row.get("currency") or "INR",
            theme=row.get("theme") or "system",
        )

    async def insert_transaction(self, user_id: str, transaction: Transaction) -> None:
        try:
            table = await self._table(self._settings.transactions_table)
            await table.insert(self._transaction_to_row(user_id, transaction)).execute()
        except GatewayError:
            raise
        except Exception as e:
            raise GatewayError(f"Failed to insert transaction: {e}")

    async def delete_transaction(self, transaction_id: str) -> None:
        try:
            table = await self._table(self._settings.transactions_table)
            await table.delete().eq("id", transaction_id).execute()
        except GatewayError:
            raise
        except Exception as e:
            raise GatewayError(f"Failed to delete transaction: {e}")

    async def insert_loan(self, user_id: str, loan: Loan) -> None:
        try:
            table = await self._table(self._settings.loans_table)
            await table.insert(self._loan_to_row(user_id, loan)).execute()
        except GatewayError:
            raise
        except Exception as e:
            raise GatewayError(f"Failed to insert loan: {e}")

    async def update_loan_status(self, loan_id: str, status: LoanStatus) -> None:
        try:
            table = await self._table(self._settings.loans_table)
            await table.update({"status": status.value}).eq("id", loan_id).execute()
        except GatewayError:
            raise
        except Exception as e:
            raise GatewayError(f"Failed to update loan: {e}")

    async def delete_loan(self, loan_id: str) -> None:
        try:
            table = await self._table(self._settings.loans_table)
            await table.delete().eq("id", loan_id).execute()
        except GatewayError:
            raise
        except Exception as e:
            raise GatewayError(f"Failed to delete loan: {e}")

    async def upsert_preferences(
        self,
        user_id: str,
        preferences: UserPreferences,
    ) -> None:
        row = {"id": user_id, **preferences.model_dump(mode="json")}
        try:
            table = await self._table(self._settings.profiles_table)
            await table.upsert(row).execute()
        except GatewayError:
            raise
        except Exception as e:
            raise GatewayError(f"Failed to upsert profile: {e}")


class SupabaseAuthGateway(AuthGatewayInterface):
    """Supabase implementation of the auth surface (email + password)."""

    def __init__(self, client: Optional[SupabaseClient] = None):
        self._client = client or SupabaseClient()

    async def sign_in(self, email: str, password: str) -> AuthSession:
        client = await self._client.connect()
        try:
            response = await client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except Exception as e:
            raise AuthenticationError(str(e))

        session = _session_from_supabase(response.session)
        if session is None:
            raise AuthenticationError("Sign in did not return a session")
        return session

    async def sign_up(self, email: str, password: str) -> Optional[AuthSession]:
        client = await self._client.connect()
        try:
            response = await client.auth.sign_up(
                {"email": email, "password": password}
            )
        except Exception as e:
            raise AuthenticationError(str(e))
        return _session_from_supabase(response.session)

    async def sign_out(self) -> None:
        client = await self._client.connect()
        try:
            await client.auth.sign_out()
        except Exception as e:
            raise GatewayError(f"Failed to sign out: {e}")

    async def get_session(self) -> Optional[AuthSession]:
        client = await self._client.connect()
        try:
            session = await client.auth.get_session()
        except Exception as e:
            raise AuthenticationError(f"Failed to get session: {e}")
        return _session_from_supabase(session)

    def on_auth_state_change(self, listener: AuthChangeListener) -> Callable[[], None]:
        """Requires connect() to have completed (SessionManager.start does this via get_session)."""

        def _forward(event, session) -> None:
            listener(str(event), _session_from_supabase(session))

        subscription = self._client.client.auth.on_auth_state_change(_forward)
        logger.debug("auth_subscription_opened")
        return subscription.unsubscribe
