"""
Dashboard & Analytics Aggregations

DESIGN DECISION: Aggregations are DETERMINISTIC, read-only functions
over the store's collections. They never touch the store itself, so the
view layer can call them on whatever snapshot it is rendering.

All date handling goes through Transaction.occurred_at (naive local time), and
all money stays in Decimal until it is formatted for display.
"""

import calendar
from datetime import date, datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from daily_dime.models.finance import Loan, Transaction, TransactionType
from daily_dime.models.summary import (
    FinancialSummary,
    LoanSplit,
    MonthlyPoint,
    RangeStatistics,
    TrendPoint,
)


ZERO = Decimal("0")

CURRENCY_SYMBOLS = {
    "INR": "₹",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
}

TYPE_FILTERS = ("all", "income", "expense")


# =============================================================================
# DATE HELPERS
# =============================================================================

def month_bounds(day: date) -> tuple[date, date]:
    """First and last calendar day of the month containing `day`."""
    last = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last)


def shift_month(day: date, months: int) -> date:
    """The first day of the month `months` away from `day` (negative = back)."""
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def _day_range(start: date, end: date) -> tuple[datetime, datetime]:
    return datetime.combine(start, time.min), datetime.combine(end, time.max)


def transactions_between(
    transactions: Iterable[Transaction],
    start: date,
    end: date,
) -> list[Transaction]:
    """Transactions dated within [start, end], both days inclusive."""
    low, high = _day_range(start, end)
    return [t for t in transactions if low <= t.occurred_at <= high]


def _totals(transactions: Iterable[Transaction]) -> tuple[Decimal, Decimal]:
    income = ZERO
    expenses = ZERO
    for transaction in transactions:
        if transaction.type == TransactionType.INCOME:
            income += transaction.amount
        else:
            expenses += transaction.amount
    return income, expenses


# =============================================================================
# SUMMARIES
# =============================================================================

def summarize(
    transactions: Iterable[Transaction],
    start: date,
    end: date,
    period: str,
) -> FinancialSummary:
    """Income, expenses and net savings for transactions in [start, end]."""
    income, expenses = _totals(transactions_between(transactions, start, end))
    return FinancialSummary(
        total_income=income,
        total_expenses=expenses,
        net_savings=income - expenses,
        period=period,
    )


def current_month_summary(
    transactions: Iterable[Transaction],
    today: Optional[date] = None,
) -> FinancialSummary:
    """The dashboard's summary cards: this calendar month only."""
    today = today or date.today()
    start, end = month_bounds(today)
    return summarize(transactions, start, end, period=today.strftime("%B %Y"))


def daily_trend(
    transactions: Iterable[Transaction],
    today: Optional[date] = None,
) -> list[TrendPoint]:
    """
    Per-day income and expenses for the current month.

    Days without any activity are left out.
    """
    today = today or date.today()
    start, end = month_bounds(today)

    by_day: dict[date, list[Transaction]] = {}
    for transaction in transactions_between(transactions, start, end):
        by_day.setdefault(transaction.occurred_at.date(), []).append(transaction)

    points = []
    day = start
    while day <= end:
        income, expenses = _totals(by_day.get(day, []))
        if income > 0 or expenses > 0:
            points.append(
                TrendPoint(date=day.strftime("%b %d"), income=income, expenses=expenses)
            )
        day += timedelta(days=1)
    return points


def recent_transactions(
    transactions: Iterable[Transaction],
    limit: int = 5,
) -> list[Transaction]:
    """The newest `limit` transactions, newest first."""
    return sorted(transactions, key=lambda t: t.occurred_at, reverse=True)[:limit]


def filter_transactions(
    transactions: Iterable[Transaction],
    search: str = "",
    kind: str = "all",
) -> list[Transaction]:
    """
    The transactions page list.

    Args:
        search: Case-insensitive substring of the description
        kind: "all", "income" or "expense"

    Returns:
        Matching transactions, newest first
    """
    if kind not in TYPE_FILTERS:
        raise ValueError(f"Unknown type filter: {kind!r}. Allowed: {TYPE_FILTERS}")

    needle = search.lower()
    matches = [
        t for t in transactions
        if needle in t.description.lower()
        and (kind == "all" or t.type.value == kind)
    ]
    return sorted(matches, key=lambda t: t.occurred_at, reverse=True)


# =============================================================================
# ANALYTICS (3 / 6 / 12 month ranges)
# =============================================================================

def _range_months(months: int, today: Optional[date]) -> list[date]:
    if months < 1:
        raise ValueError(f"months must be at least 1, got {months}")
    today = today or date.today()
    return [shift_month(today, offset) for offset in range(-(months - 1), 1)]


def monthly_breakdown(
    transactions: Iterable[Transaction],
    months: int = 6,
    today: Optional[date] = None,
) -> list[MonthlyPoint]:
    """One point per month, oldest first, ending with the current month."""
    transactions = list(transactions)
    points = []
    for month_start in _range_months(months, today):
        start, end = month_bounds(month_start)
        income, expenses = _totals(transactions_between(transactions, start, end))
        points.append(
            MonthlyPoint(
                month=month_start.strftime("%b %Y"),
                income=income,
                expenses=expenses,
                savings=income - expenses,
            )
        )
    return points


def range_statistics(
    transactions: Iterable[Transaction],
    months: int = 6,
    today: Optional[date] = None,
) -> RangeStatistics:
    """Totals, monthly averages and savings rate over the last `months` months."""
    month_starts = _range_months(months, today)
    start = month_starts[0]
    end = month_bounds(month_starts[-1])[1]

    income, expenses = _totals(transactions_between(transactions, start, end))
    net = income - expenses
    savings_rate = float(net / income * 100) if income > 0 else 0.0

    return RangeStatistics(
        months=months,
        total_income=income,
        total_expenses=expenses,
        net_savings=net,
        avg_monthly_income=income / months,
        avg_monthly_expenses=expenses / months,
        savings_rate=savings_rate,
    )


# =============================================================================
# LOANS
# =============================================================================

def split_loans(loans: Iterable[Loan]) -> LoanSplit:
    """Pending and paid loans, each in store order, with their totals."""
    split = LoanSplit()
    for loan in loans:
        if loan.is_paid:
            split.paid.append(loan)
            split.paid_total += loan.amount
        else:
            split.pending.append(loan)
            split.pending_total += loan.amount
    return split


# =============================================================================
# FORMATTING
# =============================================================================

def format_currency(amount: Decimal, currency: str = "INR") -> str:
    """Format an amount for display, e.g. ₹1,234.50 or -$12.00."""
    value = Decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    symbol = CURRENCY_SYMBOLS.get(currency.upper())
    sign = "-" if value < 0 else ""
    digits = f"{abs(value):,.2f}"
    if symbol:
        return f"{sign}{symbol}{digits}"
    return f"{sign}{currency.upper()} {digits}"


def calculate_percentage(value: Decimal, total: Decimal) -> int:
    """value as a whole-number percentage of total (0 when total is 0)."""
    if total == 0:
        return 0
    ratio = Decimal(value) / Decimal(total) * 100
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
