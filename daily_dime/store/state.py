"""
Finance Store

The canonical in-process view of transactions, loans, preferences
and the signed-in user.

DESIGN DECISION: The store is a plain object holding one immutable
StoreState. Every operation builds the next state and swaps it in with a
single assignment, then publishes a StoreEvent. Persistence, remote
mirroring and logging are observers subscribed to those events; none of
them are called inline from the operations.

The store never validates input. Drafts arrive already validated by the
forms that build them (see TransactionDraft and LoanDraft).
"""

from typing import Callable, Iterable, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field

from daily_dime.models.events import StoreEvent, StoreEventBuilder
from daily_dime.models.finance import (
    Loan,
    LoanDraft,
    LoanStatus,
    PersistedState,
    PreferencesUpdate,
    StoreSnapshot,
    Transaction,
    TransactionDraft,
    TransactionType,
    UserIdentity,
    UserPreferences,
    utc_timestamp,
)


logger = structlog.get_logger(__name__)

LOAN_REPAYMENT_CATEGORY = "Loan Repayment"

StoreListener = Callable[[StoreEvent], None]


class StoreState(BaseModel):
    """One consistent view of everything the store holds."""
    model_config = ConfigDict(frozen=True)

    transactions: tuple[Transaction, ...] = ()
    loans: tuple[Loan, ...] = ()
    preferences: UserPreferences = Field(default_factory=UserPreferences)
    user: Optional[UserIdentity] = None


class FinanceStore:
    """
    State container for the finance tracker.

    All operations are synchronous and apply to local state immediately.
    No-op calls (unknown ids, loans already paid) publish nothing.
    """

    def __init__(
        self,
        state: Optional[StoreState] = None,
        clock: Callable[[], str] = utc_timestamp,
    ):
        """
        Args:
            state: Initial state (defaults to empty collections)
            clock: Produces the ISO timestamp used for loan repayments
        """
        self._state = state or StoreState()
        self._listeners: list[StoreListener] = []
        self._clock = clock

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        return self._state.transactions

    @property
    def loans(self) -> tuple[Loan, ...]:
        return self._state.loans

    @property
    def preferences(self) -> UserPreferences:
        return self._state.preferences

    @property
    def user(self) -> Optional[UserIdentity]:
        return self._state.user

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        for transaction in self._state.transactions:
            if transaction.id == transaction_id:
                return transaction
        return None

    def get_loan(self, loan_id: str) -> Optional[Loan]:
        for loan in self._state.loans:
            if loan.id == loan_id:
                return loan
        return None

    # -------------------------------------------------------------------------
    # Observers
    # -------------------------------------------------------------------------

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """
        Register a listener for every published StoreEvent.

        Returns:
            A callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, state: StoreState, event: StoreEvent) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                # A broken observer must not undo or interrupt the mutation
                logger.error(
                    "store_listener_failed",
                    error=str(e),
                    event_type=event.event_type.value,
                    event_id=str(event.event_id),
                )

    # -------------------------------------------------------------------------
    # Snapshots
    # -------------------------------------------------------------------------

    def snapshot(self) -> StoreSnapshot:
        """The persistable part of the state (never includes the user)."""
        return StoreSnapshot(
            state=PersistedState(
                transactions=list(self._state.transactions),
                loans=list(self._state.loans),
                preferences=self._state.preferences,
            )
        )

    def restore(self, snapshot: StoreSnapshot) -> None:
        """Load a persisted snapshot. Keeps the current user; publishes nothing."""
        self._state = self._state.model_copy(
            update={
                "transactions": tuple(snapshot.state.transactions),
                "loans": tuple(snapshot.state.loans),
                "preferences": snapshot.state.preferences,
            }
        )

    # -------------------------------------------------------------------------
    # Session
    # -------------------------------------------------------------------------

    def set_user(self, user: Optional[UserIdentity]) -> None:
        """Replace the signed-in identity. Local data is left as it is."""
        self._commit(
            self._state.model_copy(update={"user": user}),
            StoreEventBuilder.user_changed(user),
        )

    def replace_data(
        self,
        transactions: Optional[Iterable[Transaction]] = None,
        loans: Optional[Iterable[Loan]] = None,
        preferences: Optional[UserPreferences] = None,
    ) -> None:
        """
        Replace whole collections with data fetched from the remote gateway.

        Slices passed as None are left untouched. Nothing is merged.
        """
        update: dict = {}
        if transactions is not None:
            update["transactions"] = tuple(transactions)
        if loans is not None:
            update["loans"] = tuple(loans)
        if preferences is not None:
            update["preferences"] = preferences
        if not update:
            return

        counts = {
            name: len(value)
            for name, value in update.items()
            if isinstance(value, tuple)
        }
        self._commit(
            self._state.model_copy(update=update),
            StoreEventBuilder.data_replaced(list(update), counts),
        )

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def add_transaction(self, draft: TransactionDraft) -> Transaction:
        """Append a new transaction (with a generated id) to the end of the list."""
        transaction = Transaction.from_draft(draft)
        self._commit(
            self._state.model_copy(
                update={"transactions": (*self._state.transactions, transaction)}
            ),
            StoreEventBuilder.transaction_added(transaction),
        )
        return transaction

    def delete_transaction(self, transaction_id: str) -> bool:
        """Remove a transaction. Returns False (and does nothing) if it isn't there."""
        existing = self.get_transaction(transaction_id)
        if existing is None:
            return False

        remaining = tuple(t for t in self._state.transactions if t.id != transaction_id)
        self._commit(
            self._state.model_copy(update={"transactions": remaining}),
            StoreEventBuilder.transaction_deleted(existing),
        )
        return True

    # -------------------------------------------------------------------------
    # Loans
    # -------------------------------------------------------------------------

    def add_loan(self, draft: LoanDraft) -> Loan:
        """Append a new pending loan (with a generated id)."""
        loan = Loan.from_draft(draft)
        self._commit(
            self._state.model_copy(update={"loans": (*self._state.loans, loan)}),
            StoreEventBuilder.loan_added(loan),
        )
        return loan

    def mark_loan_as_paid(self, loan_id: str) -> Optional[Transaction]:
        """
        Settle a pending loan and record the repayment as income.

        The status flip and the new income transaction land in one state
        write. Unknown ids and loans that are already paid are no-ops.

        Returns:
            The repayment transaction, or None if nothing changed
        """
        loan = self.get_loan(loan_id)
        if loan is None or loan.is_paid:
            return None

        paid_loan = loan.model_copy(update={"status": LoanStatus.PAID})
        repayment = Transaction(
            type=TransactionType.INCOME,
            amount=loan.amount,
            category=LOAN_REPAYMENT_CATEGORY,
            description=f"Repayment from {loan.person_name}",
            date=self._clock(),
        )

        loans = tuple(paid_loan if l.id == loan_id else l for l in self._state.loans)
        self._commit(
            self._state.model_copy(
                update={
                    "loans": loans,
                    "transactions": (*self._state.transactions, repayment),
                }
            ),
            StoreEventBuilder.loan_paid(paid_loan, repayment),
        )
        return repayment

    def delete_loan(self, loan_id: str) -> bool:
        """Remove a loan. Its repayment transaction, if any, is kept."""
        existing = self.get_loan(loan_id)
        if existing is None:
            return False

        remaining = tuple(l for l in self._state.loans if l.id != loan_id)
        self._commit(
            self._state.model_copy(update={"loans": remaining}),
            StoreEventBuilder.loan_deleted(existing),
        )
        return True

    # -------------------------------------------------------------------------
    # Preferences
    # -------------------------------------------------------------------------

    def update_preferences(self, update: PreferencesUpdate) -> UserPreferences:
        """Shallow-merge the fields set on `update` into the preferences."""
        changes = update.changes()
        if not changes:
            return self._state.preferences

        preferences = self._state.preferences.model_copy(update=changes)
        self._commit(
            self._state.model_copy(update={"preferences": preferences}),
            StoreEventBuilder.preferences_updated(preferences, sorted(changes)),
        )
        return preferences
