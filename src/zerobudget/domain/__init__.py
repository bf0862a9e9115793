"""Domain records, periods and repository protocols."""

from .entities import (
    BudgetCategory,
    CategoryKind,
    LedgerBucket,
    LedgerState,
    Settings,
    Transaction,
    TransactionKind,
)
from .periods import PeriodRange, TimeRange, get_period_range, period_key

__all__ = [
    "BudgetCategory",
    "CategoryKind",
    "LedgerBucket",
    "LedgerState",
    "PeriodRange",
    "Settings",
    "TimeRange",
    "Transaction",
    "TransactionKind",
    "get_period_range",
    "period_key",
]
