"""
Shared fixtures.

The remote backend is replaced by in-memory fakes that implement the
gateway interfaces, record every call, and can be told to fail.
No test makes a network call.
"""

import time
from decimal import Decimal
from typing import Callable, Optional

import pytest

from daily_dime.models.finance import (
    AuthSession,
    Loan,
    LoanDraft,
    LoanStatus,
    Transaction,
    TransactionDraft,
    TransactionType,
    UserIdentity,
    UserPreferences,
)
from daily_dime.services.gateway.interface import (
    AuthChangeListener,
    AuthenticationError,
    AuthGatewayInterface,
    GatewayError,
    RecordGatewayInterface,
)
from daily_dime.store.state import FinanceStore


FIXED_NOW = "2024-03-15T10:30:00.000Z"


class FakeRecordGateway(RecordGatewayInterface):
    """In-memory record collections keyed by user id."""

    def __init__(self):
        self.transactions: dict[str, list[Transaction]] = {}
        self.loans: dict[str, list[Loan]] = {}
        self.profiles: dict[str, UserPreferences] = {}
        self.calls: list[tuple] = []
        self.fail_on: set[str] = set()

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if name in self.fail_on:
            raise GatewayError(f"{name} failed")

    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]

    async def fetch_transactions(self, user_id: str) -> list[Transaction]:
        self._record("fetch_transactions", user_id)
        return list(self.transactions.get(user_id, []))

    async def fetch_loans(self, user_id: str) -> list[Loan]:
        self._record("fetch_loans", user_id)
        return list(self.loans.get(user_id, []))

    async def fetch_preferences(self, user_id: str) -> Optional[UserPreferences]:
        self._record("fetch_preferences", user_id)
        return self.profiles.get(user_id)

    async def insert_transaction(self, user_id: str, transaction: Transaction) -> None:
        self._record("insert_transaction", user_id, transaction)
        self.transactions.setdefault(user_id, []).append(transaction)

    async def delete_transaction(self, transaction_id: str) -> None:
        self._record("delete_transaction", transaction_id)
        for rows in self.transactions.values():
            rows[:] = [t for t in rows if t.id != transaction_id]

    async def insert_loan(self, user_id: str, loan: Loan) -> None:
        self._record("insert_loan", user_id, loan)
        self.loans.setdefault(user_id, []).append(loan)

    async def update_loan_status(self, loan_id: str, status: LoanStatus) -> None:
        self._record("update_loan_status", loan_id, status)
        for rows in self.loans.values():
            rows[:] = [
                l.model_copy(update={"status": status}) if l.id == loan_id else l
                for l in rows
            ]

    async def delete_loan(self, loan_id: str) -> None:
        self._record("delete_loan", loan_id)
        for rows in self.loans.values():
            rows[:] = [l for l in rows if l.id != loan_id]

    async def upsert_preferences(self, user_id: str, preferences: UserPreferences) -> None:
        self._record("upsert_preferences", user_id, preferences)
        self.profiles[user_id] = preferences


def session_for(email: str) -> AuthSession:
    return AuthSession(
        user=UserIdentity(id=f"user-{email}", email=email),
        access_token="token",
    )


class FakeAuthGateway(AuthGatewayInterface):
    """Email/password accounts held in a dict; emits change events like Supabase."""

    def __init__(
        self,
        session: Optional[AuthSession] = None,
        accounts: Optional[dict[str, str]] = None,
    ):
        self.session = session
        self.accounts = dict(accounts or {})
        self.listeners: list[AuthChangeListener] = []
        self.require_confirmation = False
        self.fail_session_probe = False

    def emit(self, event: str) -> None:
        for listener in list(self.listeners):
            listener(event, self.session)

    async def sign_in(self, email: str, password: str) -> AuthSession:
        if self.accounts.get(email) != password:
            raise AuthenticationError("Invalid login credentials")
        self.session = session_for(email)
        self.emit("SIGNED_IN")
        return self.session

    async def sign_up(self, email: str, password: str) -> Optional[AuthSession]:
        if email in self.accounts:
            raise AuthenticationError("User already registered")
        self.accounts[email] = password
        if self.require_confirmation:
            return None
        self.session = session_for(email)
        self.emit("SIGNED_IN")
        return self.session

    async def sign_out(self) -> None:
        self.session = None
        self.emit("SIGNED_OUT")

    async def get_session(self) -> Optional[AuthSession]:
        if self.fail_session_probe:
            raise AuthenticationError("Session lookup refused")
        return self.session

    def on_auth_state_change(self, listener: AuthChangeListener) -> Callable[[], None]:
        self.listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self.listeners:
                self.listeners.remove(listener)

        return unsubscribe


@pytest.fixture
def kolkata_time(monkeypatch):
    """Pin the process time zone to Asia/Kolkata (UTC+05:30)."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")
    monkeypatch.setenv("TZ", "Asia/Kolkata")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


@pytest.fixture
def store() -> FinanceStore:
    return FinanceStore(clock=lambda: FIXED_NOW)


@pytest.fixture
def user() -> UserIdentity:
    return UserIdentity(id="user-1", email="sam@example.com")


@pytest.fixture
def record_gateway() -> FakeRecordGateway:
    return FakeRecordGateway()


@pytest.fixture
def auth_gateway() -> FakeAuthGateway:
    return FakeAuthGateway(accounts={"sam@example.com": "correct-horse"})


@pytest.fixture
def expense_draft() -> TransactionDraft:
    return TransactionDraft(
        type=TransactionType.EXPENSE,
        amount=Decimal("120.50"),
        category="Food",
        description="Lunch",
        date="2024-03-05",
        notes="Team lunch",
        tags=("work",),
    )


@pytest.fixture
def loan_draft() -> LoanDraft:
    return LoanDraft(person_name="Sam", amount=Decimal("50"), date="2024-01-01")
