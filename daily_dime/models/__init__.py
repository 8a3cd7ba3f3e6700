"""
Data Models Package

This package contains all Pydantic models used by Daily Dime.
Everything the store holds or publishes conforms to these schemas.
"""

from daily_dime.models.finance import (
    AuthSession,
    Loan,
    LoanDraft,
    LoanStatus,
    PersistedState,
    PreferencesUpdate,
    StoreSnapshot,
    Theme,
    Transaction,
    TransactionDraft,
    TransactionType,
    UserIdentity,
    UserPreferences,
    new_record_id,
    parse_iso_datetime,
    utc_timestamp,
)
from daily_dime.models.events import (
    CONTENT_EVENTS,
    StoreEvent,
    StoreEventBuilder,
    StoreEventType,
)
from daily_dime.models.summary import (
    FinancialSummary,
    LoanSplit,
    MonthlyPoint,
    RangeStatistics,
    TrendPoint,
)

__all__ = [
    # Finance models
    "AuthSession",
    "Loan",
    "LoanDraft",
    "LoanStatus",
    "PersistedState",
    "PreferencesUpdate",
    "StoreSnapshot",
    "Theme",
    "Transaction",
    "TransactionDraft",
    "TransactionType",
    "UserIdentity",
    "UserPreferences",
    "new_record_id",
    "parse_iso_datetime",
    "utc_timestamp",
    # Event models
    "CONTENT_EVENTS",
    "StoreEvent",
    "StoreEventBuilder",
    "StoreEventType",
    # Summary models
    "FinancialSummary",
    "LoanSplit",
    "MonthlyPoint",
    "RangeStatistics",
    "TrendPoint",
]
