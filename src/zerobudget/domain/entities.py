"""Plain domain records held by the budget ledger."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Optional

from .periods import TimeRange, visible_month_window

DEFAULT_CATEGORY_ICON = "💰"
DEFAULT_CURRENCY = "USD"


class CategoryKind(str, Enum):
    """How a category contributes to the summary subtotals."""

    FIXED = "Fixed"
    FLEXIBLE = "Flexible"
    NON_MONTHLY = "Non-Monthly"

    @classmethod
    def parse(cls, value: "str | CategoryKind | None") -> "CategoryKind":
        if isinstance(value, CategoryKind):
            return value
        if value is None:
            return cls.FLEXIBLE
        normalized = str(value).strip().lower().replace("_", "-").replace(" ", "-")
        for kind in cls:
            if kind.value.lower() == normalized:
                return kind
        if normalized in {"nonmonthly", "non-monthly"}:
            return cls.NON_MONTHLY
        raise ValueError(f"Unknown category kind: {value!r}")


class TransactionKind(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"

    @classmethod
    def parse(cls, value: "str | TransactionKind | None") -> "TransactionKind":
        if isinstance(value, TransactionKind):
            return value
        if value is None:
            return cls.EXPENSE
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown transaction type: {value!r}") from None


@dataclass(slots=True)
class BudgetCategory:
    """A user defined budget category.

    ``budgeted_amount`` is the category's standing allocation; per-month
    overrides live in the ledger buckets and are joined by ``name``.
    """

    id: int
    name: str
    kind: CategoryKind = CategoryKind.FLEXIBLE
    budgeted_amount: float = 0.0
    rollover_enabled: bool = False
    icon: str = DEFAULT_CATEGORY_ICON

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "kind": self.kind.value,
            "budgetedAmount": self.budgeted_amount,
            "rolloverEnabled": self.rollover_enabled,
            "icon": self.icon,
        }


@dataclass(slots=True)
class Transaction:
    """A dated income or expense.

    ``category`` references a budget category by name; the reference may
    outlive the category it names.
    """

    id: int
    amount: float
    category: str
    date: date
    kind: TransactionKind = TransactionKind.EXPENSE
    description: str = ""
    payee: str = ""
    note: Optional[str] = None

    @property
    def is_expense(self) -> bool:
        return self.kind is TransactionKind.EXPENSE

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "amount": self.amount,
            "category": self.category,
            "date": self.date.isoformat(),
            "type": self.kind.value,
            "description": self.description,
            "payee": self.payee,
            "note": self.note,
        }


@dataclass(slots=True)
class LedgerBucket:
    """Budget allocations and income owned by one period key."""

    budgets: dict[str, float] = field(default_factory=dict)
    income: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"budgets": dict(self.budgets), "income": self.income}


def _default_visible_months() -> list[str]:
    return visible_month_window(date.today())


@dataclass(slots=True)
class Settings:
    """User preferences and the dashboard's current selection."""

    monthly_income: float = 0.0
    currency: str = DEFAULT_CURRENCY
    theme: str = "light"
    notifications: bool = True
    selected_date: date = field(default_factory=date.today)
    time_range: TimeRange = TimeRange.MONTH
    visible_months: list[str] = field(default_factory=_default_visible_months)

    def to_dict(self) -> dict[str, Any]:
        return {
            "monthlyIncome": self.monthly_income,
            "currency": self.currency,
            "theme": self.theme,
            "notifications": self.notifications,
            "selectedDate": self.selected_date.isoformat(),
            "timeRange": self.time_range.value,
            "visibleMonths": list(self.visible_months),
        }


@dataclass(slots=True)
class LedgerState:
    """Everything the ledger owns; the unit of persistence and export."""

    categories: list[BudgetCategory] = field(default_factory=list)
    transactions: list[Transaction] = field(default_factory=list)
    periods: dict[str, LedgerBucket] = field(default_factory=dict)
    settings: Settings = field(default_factory=Settings)

    def budget_data(self) -> dict[str, Any]:
        return {
            "categories": [category.to_dict() for category in self.categories],
            "transactions": [txn.to_dict() for txn in self.transactions],
            "periods": {key: bucket.to_dict() for key, bucket in sorted(self.periods.items())},
        }

    def to_dict(self) -> dict[str, Any]:
        return {"budgetData": self.budget_data(), "settings": self.settings.to_dict()}
