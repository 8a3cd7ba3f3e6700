"""Analytics package: read-only aggregations for the dashboard and reports."""

from daily_dime.analytics.summary import (
    calculate_percentage,
    current_month_summary,
    daily_trend,
    filter_transactions,
    format_currency,
    month_bounds,
    monthly_breakdown,
    range_statistics,
    recent_transactions,
    shift_month,
    split_loans,
    summarize,
    transactions_between,
)

__all__ = [
    "calculate_percentage",
    "current_month_summary",
    "daily_trend",
    "filter_transactions",
    "format_currency",
    "month_bounds",
    "monthly_breakdown",
    "range_statistics",
    "recent_transactions",
    "shift_month",
    "split_loans",
    "summarize",
    "transactions_between",
]
