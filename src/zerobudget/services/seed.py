"""Demo data for a fresh ledger."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from ..domain.entities import CategoryKind, TransactionKind
from ..domain.periods import add_months, month_start, period_key
from ..logging_config import get_logger
from .ledger import BudgetLedger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SeedSummary:
    """Aggregate counts returned after demo seeding."""

    categories: int
    transactions: int
    periods: int


_CATEGORIES_SEED = [
    {"name": "Rent", "kind": CategoryKind.FIXED, "budgeted_amount": 1500.0, "icon": "🏠"},
    {"name": "Utilities", "kind": CategoryKind.FIXED, "budgeted_amount": 180.0, "icon": "💡"},
    {"name": "Insurance", "kind": CategoryKind.FIXED, "budgeted_amount": 120.0, "icon": "🩺"},
    {"name": "Groceries", "kind": CategoryKind.FLEXIBLE, "budgeted_amount": 450.0, "icon": "🛒"},
    {"name": "Dining Out", "kind": CategoryKind.FLEXIBLE, "budgeted_amount": 200.0, "icon": "🍽️"},
    {"name": "Gas", "kind": CategoryKind.FLEXIBLE, "budgeted_amount": 150.0, "icon": "🚗"},
    {"name": "Entertainment", "kind": CategoryKind.FLEXIBLE, "budgeted_amount": 100.0, "icon": "🎬"},
    {"name": "Car Repairs", "kind": CategoryKind.NON_MONTHLY, "budgeted_amount": 75.0, "icon": "🔧"},
]

# (day of month, category, amount, payee)
_MONTHLY_EXPENSES = [
    (1, "Rent", 1500.0, "Oak Street Apartments"),
    (4, "Groceries", 132.45, "Fresh Market"),
    (9, "Dining Out", 48.20, "Corner Bistro"),
    (12, "Gas", 41.75, "City Fuel"),
    (15, "Utilities", 176.30, "City Power"),
    (18, "Groceries", 118.90, "Fresh Market"),
    (22, "Entertainment", 32.00, "Cinema Plaza"),
    (25, "Insurance", 120.0, "Safe Mutual"),
]

_MONTHLY_INCOME = 3200.0


def run_demo_seed(ledger: BudgetLedger, *, today: Optional[date] = None, months: int = 3) -> SeedSummary:
    """Populate categories, budgets, income and transactions for recent months.

    Seeding is skipped when the ledger already holds categories or transactions.
    """

    if ledger.categories or ledger.transactions:
        logger.info("Ledger already populated; skipping demo seed")
        return SeedSummary(
            categories=len(ledger.categories),
            transactions=len(ledger.transactions),
            periods=len(ledger.period_keys()),
        )

    today = today or date.today()
    anchor = month_start(today)
    for payload in _CATEGORIES_SEED:
        ledger.add_category(**payload)

    for offset in range(months - 1, -1, -1):
        first_day = add_months(anchor, -offset)
        key = period_key(first_day)
        ledger.set_income(_MONTHLY_INCOME, key)
        for payload in _CATEGORIES_SEED:
            ledger.set_category_budget(payload["name"], payload["budgeted_amount"], key)

        ledger.create_transaction(
            amount=_MONTHLY_INCOME,
            category="Salary",
            occurred_on=first_day,
            kind=TransactionKind.INCOME,
            description="Monthly salary",
            payee="Acme Corp",
        )
        for day, category, amount, payee in _MONTHLY_EXPENSES:
            occurred_on = first_day + timedelta(days=day - 1)
            if occurred_on > today:
                continue
            ledger.create_transaction(
                amount=amount,
                category=category,
                occurred_on=occurred_on,
                description=f"{category} · {payee}",
                payee=payee,
            )

    summary = SeedSummary(
        categories=len(ledger.categories),
        transactions=len(ledger.transactions),
        periods=len(ledger.period_keys()),
    )
    logger.info(
        "Demo seed completed",
        extra={
            "categories": summary.categories,
            "transactions": summary.transactions,
            "periods": summary.periods,
        },
    )
    return summary
