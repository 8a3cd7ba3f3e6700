"""
Core Data Models for Daily Dime

These models define the schemas for everything the store holds:
transactions, loans, preferences and the signed-in identity.

DESIGN DECISION: Stored records are frozen. The store never edits a record
in place; it builds a new one and swaps the whole collection. That keeps
every read the view layer does consistent with one state write.

Drafts (TransactionDraft, LoanDraft) are what the input forms produce.
Form-level validation (positive amounts, required description) lives on
the drafts, so the store itself never has to validate anything.
"""

import re
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# Fractional seconds at the end of the time, before any UTC offset
_FRACTION = re.compile(r"\.(\d+)(?=[+-]\d{2}:\d{2}$|$)")


def new_record_id() -> str:
    """Generate a globally unique, opaque record id."""
    return str(uuid4())


def _today_iso() -> str:
    return datetime.now().date().isoformat()


def utc_timestamp() -> str:
    """Current moment as an ISO-8601 UTC timestamp (millisecond precision, 'Z' suffix)."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def parse_iso_datetime(value: str) -> datetime:
    """
    Parse an ISO-8601 date or timestamp into a naive local datetime.

    Plain dates ("2024-01-31") and naive timestamps are already local
    (form dates come from the local calendar) and become midnight or stay
    as they are. Aware timestamps, such as UTC repayment stamps, are
    converted to local time before the tzinfo is dropped, so a repayment
    just after local midnight lands on the local day it happened.

    Fractional seconds of any length are accepted (PostgREST trims
    trailing zeros, e.g. "10:00:00.12+00:00").
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def _check_iso(value: str) -> str:
    try:
        parse_iso_datetime(value)
    except ValueError:
        raise ValueError(f"Not an ISO-8601 date: {value!r}")
    return value


# =============================================================================
# ENUMS
# =============================================================================

class TransactionType(str, Enum):
    """Direction of money flow."""
    INCOME = "income"
    EXPENSE = "expense"


class LoanStatus(str, Enum):
    """
    Loan lifecycle.

    CRITICAL: The only transition is PENDING -> PAID, and it never reverses.
    """
    PENDING = "pending"
    PAID = "paid"


class Theme(str, Enum):
    """UI theme preference."""
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


# =============================================================================
# TRANSACTIONS
# =============================================================================

class TransactionDraft(BaseModel):
    """
    A transaction as entered in the add-transaction form.

    Everything a Transaction has except its id.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    type: TransactionType = Field(
        default=TransactionType.EXPENSE,
        description="Income or expense"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount, in the user's currency"
    )
    category: str = Field(
        default="",
        max_length=100,
        description="Free text category (may be empty)"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="What the money was for"
    )
    date: str = Field(
        default_factory=_today_iso,
        description="ISO-8601 date of the transaction"
    )
    notes: Optional[str] = Field(
        default=None,
        max_length=1000,
    )
    tags: Optional[tuple[str, ...]] = None

    @field_validator('date')
    @classmethod
    def validate_date(cls, v: str) -> str:
        return _check_iso(v)


class Transaction(BaseModel):
    """
    A recorded income or expense event.

    Immutable once created; the only lifecycle step after creation is deletion.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(
        default_factory=new_record_id,
        description="Unique, opaque transaction id"
    )
    type: TransactionType
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Non-negative amount, currency agnostic"
    )
    category: str = ""
    description: str = ""
    date: str = Field(
        ...,
        description="ISO-8601 date or timestamp"
    )
    notes: Optional[str] = None
    tags: Optional[tuple[str, ...]] = None

    @field_validator('date')
    @classmethod
    def validate_date(cls, v: str) -> str:
        return _check_iso(v)

    @property
    def occurred_at(self) -> datetime:
        """The transaction date as a naive local datetime."""
        return parse_iso_datetime(self.date)

    @classmethod
    def from_draft(cls, draft: TransactionDraft) -> "Transaction":
        """Create a new transaction (with a fresh id) from a form draft."""
        return cls(id=new_record_id(), **draft.model_dump())


# =============================================================================
# LOANS
# =============================================================================

class LoanDraft(BaseModel):
    """A loan as entered in the "To Take" form. Status is not user-settable."""
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    person_name: str = Field(
        ...,
        alias="personName",
        min_length=1,
        max_length=100,
        description="Who owes the money"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount lent"
    )
    date: str = Field(
        default_factory=_today_iso,
        description="ISO-8601 date the money was lent"
    )
    description: Optional[str] = Field(
        default=None,
        max_length=500,
    )

    @field_validator('date')
    @classmethod
    def validate_date(cls, v: str) -> str:
        return _check_iso(v)


class Loan(BaseModel):
    """
    Money lent out, tracked until it is paid back.

    Locally the person's name is serialized as "personName"; the remote
    gateway stores it in a "person_name" column. Both names are accepted.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(
        default_factory=new_record_id,
        description="Unique, opaque loan id"
    )
    person_name: str = Field(
        ...,
        alias="personName",
        description="Who owes the money"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
    )
    date: str = Field(
        ...,
        description="ISO-8601 date the money was lent"
    )
    status: LoanStatus = LoanStatus.PENDING
    description: Optional[str] = None

    @field_validator('date')
    @classmethod
    def validate_date(cls, v: str) -> str:
        return _check_iso(v)

    @property
    def is_paid(self) -> bool:
        return self.status == LoanStatus.PAID

    @classmethod
    def from_draft(cls, draft: LoanDraft) -> "Loan":
        """Create a new pending loan (with a fresh id) from a form draft."""
        return cls(
            id=new_record_id(),
            person_name=draft.person_name,
            amount=draft.amount,
            date=draft.date,
            status=LoanStatus.PENDING,
            description=draft.description,
        )


# =============================================================================
# PREFERENCES & IDENTITY
# =============================================================================

class UserPreferences(BaseModel):
    """Per-user display preferences. Replaced wholesale on every change."""
    model_config = ConfigDict(frozen=True)

    currency: str = Field(
        default="INR",
        min_length=1,
        max_length=10,
        description="ISO 4217-like currency code"
    )
    theme: Theme = Theme.SYSTEM


class PreferencesUpdate(BaseModel):
    """A partial preferences change. Only fields that are set get merged."""

    currency: Optional[str] = Field(
        default=None,
        min_length=1,
        max_length=10,
    )
    theme: Optional[Theme] = None

    def changes(self) -> dict:
        """The explicitly provided, non-null fields."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class UserIdentity(BaseModel):
    """The signed-in user as reported by the auth gateway."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(
        ...,
        min_length=1,
        description="Gateway user id; owns every remote row"
    )
    email: Optional[str] = None


class AuthSession(BaseModel):
    """An authenticated session. Only the identity matters to the store."""
    model_config = ConfigDict(frozen=True)

    user: UserIdentity
    access_token: Optional[str] = None
    expires_at: Optional[int] = Field(
        default=None,
        description="Unix timestamp the access token expires at"
    )


# =============================================================================
# PERSISTED SNAPSHOT
# =============================================================================

class PersistedState(BaseModel):
    """The slice of store state that survives a restart. Never includes the user."""

    transactions: list[Transaction] = Field(default_factory=list)
    loans: list[Loan] = Field(default_factory=list)
    preferences: UserPreferences = Field(default_factory=UserPreferences)


class StoreSnapshot(BaseModel):
    """
    Envelope written to local storage.

    Shape: {"state": {"transactions": [...], "loans": [...], "preferences": {...}}, "version": 0}
    """

    state: PersistedState = Field(default_factory=PersistedState)
    version: int = Field(
        default=0,
        ge=0,
        description="Snapshot format version"
    )

    def to_json(self) -> str:
        """Serialize for local storage (loans keep their "personName" key)."""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, raw: str) -> "StoreSnapshot":
        return cls.model_validate_json(raw)
