"""
Summary Models

Read-only aggregates computed from the store for the dashboard,
analytics and loans pages. None of these are persisted.
"""

from decimal import Decimal

from pydantic import BaseModel, Field

from daily_dime.models.finance import Loan


class FinancialSummary(BaseModel):
    """Income vs expenses over one period."""

    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    net_savings: Decimal = Decimal("0")
    period: str = Field(
        ...,
        description="Human-readable period label, e.g. 'January 2024'"
    )


class TrendPoint(BaseModel):
    """One day of activity in the monthly trend chart."""

    date: str = Field(
        ...,
        description="Day label, e.g. 'Jan 05'"
    )
    income: Decimal = Decimal("0")
    expenses: Decimal = Decimal("0")


class MonthlyPoint(BaseModel):
    """One month in the income-vs-expenses comparison."""

    month: str = Field(
        ...,
        description="Month label, e.g. 'Jan 2024'"
    )
    income: Decimal = Decimal("0")
    expenses: Decimal = Decimal("0")
    savings: Decimal = Decimal("0")


class RangeStatistics(BaseModel):
    """Headline numbers for the analytics page."""

    months: int = Field(ge=1)
    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    net_savings: Decimal = Decimal("0")
    avg_monthly_income: Decimal = Decimal("0")
    avg_monthly_expenses: Decimal = Decimal("0")
    savings_rate: float = Field(
        default=0.0,
        description="Net savings as a percentage of income (0 without income)"
    )


class LoanSplit(BaseModel):
    """Loans grouped by status for the "To Take" page."""

    pending: list[Loan] = Field(default_factory=list)
    paid: list[Loan] = Field(default_factory=list)
    pending_total: Decimal = Decimal("0")
    paid_total: Decimal = Decimal("0")
