"""
Store Event Models for Daily Dime

Every state change in the store is announced as a StoreEvent.
Observers (local persistence, remote mirroring, logging) react to
these events instead of being called inline from each mutation.

DESIGN DECISION: Events carry the records they are about, so an observer
never has to read back from the store to find out what changed.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from daily_dime.models.finance import (
    Loan,
    Transaction,
    UserIdentity,
    UserPreferences,
)


class StoreEventType(str, Enum):
    """Kinds of state change the store publishes."""
    # Session
    USER_CHANGED = "user_changed"
    DATA_REPLACED = "data_replaced"

    # Transactions
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_DELETED = "transaction_deleted"

    # Loans
    LOAN_ADDED = "loan_added"
    LOAN_PAID = "loan_paid"
    LOAN_DELETED = "loan_deleted"

    # Preferences
    PREFERENCES_UPDATED = "preferences_updated"


# Events that change what gets persisted locally
CONTENT_EVENTS = frozenset(StoreEventType) - {StoreEventType.USER_CHANGED}


class StoreEvent(BaseModel):
    """A single store state change."""
    model_config = ConfigDict(frozen=True)

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the change was applied (UTC)"
    )
    event_type: StoreEventType

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="'transaction', 'loan', 'preferences' or 'user'"
    )
    entity_id: Optional[str] = None

    # Records involved in the change
    transaction: Optional[Transaction] = None
    loan: Optional[Loan] = None
    preferences: Optional[UserPreferences] = None
    user: Optional[UserIdentity] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
        }


class StoreEventBuilder:
    """
    Helper class to build store events with common patterns.

    Usage:
        event = StoreEventBuilder.transaction_added(transaction)
        event = StoreEventBuilder.loan_paid(loan, repayment)
    """

    @staticmethod
    def user_changed(user: Optional[UserIdentity]) -> StoreEvent:
        return StoreEvent(
            event_type=StoreEventType.USER_CHANGED,
            entity_type="user",
            entity_id=user.id if user else None,
            user=user,
            description="User signed in" if user else "User cleared",
        )

    @staticmethod
    def data_replaced(slices: list[str], counts: dict[str, int]) -> StoreEvent:
        return StoreEvent(
            event_type=StoreEventType.DATA_REPLACED,
            description=f"Replaced {', '.join(slices) or 'nothing'} from remote",
            details={"slices": slices, "counts": counts},
        )

    @staticmethod
    def transaction_added(transaction: Transaction) -> StoreEvent:
        return StoreEvent(
            event_type=StoreEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=transaction.id,
            transaction=transaction,
            description=f"{transaction.type.value.capitalize()} added: {transaction.amount}",
            details={
                "type": transaction.type.value,
                "amount": str(transaction.amount),
                "category": transaction.category,
            },
        )

    @staticmethod
    def transaction_deleted(transaction: Transaction) -> StoreEvent:
        return StoreEvent(
            event_type=StoreEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction.id,
            transaction=transaction,
            description=f"Transaction deleted: {transaction.description}",
        )

    @staticmethod
    def loan_added(loan: Loan) -> StoreEvent:
        return StoreEvent(
            event_type=StoreEventType.LOAN_ADDED,
            entity_type="loan",
            entity_id=loan.id,
            loan=loan,
            description=f"Loan to {loan.person_name}: {loan.amount}",
            details={"amount": str(loan.amount)},
        )

    @staticmethod
    def loan_paid(loan: Loan, repayment: Transaction) -> StoreEvent:
        """The loan is the updated (paid) record; repayment is the new income."""
        return StoreEvent(
            event_type=StoreEventType.LOAN_PAID,
            entity_type="loan",
            entity_id=loan.id,
            loan=loan,
            transaction=repayment,
            description=f"Loan repaid by {loan.person_name}",
            details={
                "amount": str(loan.amount),
                "repayment_id": repayment.id,
            },
        )

    @staticmethod
    def loan_deleted(loan: Loan) -> StoreEvent:
        return StoreEvent(
            event_type=StoreEventType.LOAN_DELETED,
            entity_type="loan",
            entity_id=loan.id,
            loan=loan,
            description=f"Loan deleted: {loan.person_name}",
        )

    @staticmethod
    def preferences_updated(
        preferences: UserPreferences,
        changed: list[str],
    ) -> StoreEvent:
        return StoreEvent(
            event_type=StoreEventType.PREFERENCES_UPDATED,
            entity_type="preferences",
            preferences=preferences,
            description="Preferences updated",
            details={"changed": changed},
        )
