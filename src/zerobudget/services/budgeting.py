"""Budgeting projections: derived category values, summaries and chart series."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Protocol

from ..domain.entities import BudgetCategory, CategoryKind, Transaction

OVERSPENT = "over"
WARNING = "warning"
ON_TRACK = "ok"

WARNING_THRESHOLD = 80.0
OVERSPENT_THRESHOLD = 100.0


class SummarySource(Protocol):
    """Anything exposing the fields ``compute_summary`` reduces over."""

    kind: CategoryKind
    budgeted: float
    spent: float


@dataclass(frozen=True, slots=True)
class CategoryDerived:
    """Remaining amount and progress for one category in one period."""

    remaining: float
    progress: float

    @property
    def display_progress(self) -> float:
        """Progress clamped to 0..100 for progress bars."""
        return max(0.0, min(self.progress, 100.0))

    @property
    def severity(self) -> str:
        return classify_progress(self.progress)


@dataclass(slots=True)
class CategoryRow:
    """A category joined with its period budget and actual spend."""

    name: str
    kind: CategoryKind
    budgeted: float
    spent: float
    category_id: Optional[int] = None
    icon: str = ""
    rollover_enabled: bool = False

    @property
    def derived(self) -> CategoryDerived:
        return derive_for_category(self, self.spent)

    @property
    def remaining(self) -> float:
        return self.derived.remaining

    @property
    def progress(self) -> float:
        return self.derived.progress

    def to_dict(self) -> dict[str, object]:
        derived = self.derived
        return {
            "id": self.category_id,
            "name": self.name,
            "kind": self.kind.value,
            "icon": self.icon,
            "rolloverEnabled": self.rollover_enabled,
            "budgeted": self.budgeted,
            "spent": self.spent,
            "remaining": derived.remaining,
            "progress": derived.progress,
            "displayProgress": derived.display_progress,
            "severity": derived.severity,
            "isFixed": self.kind is CategoryKind.FIXED,
            "isFlexible": self.kind is CategoryKind.FLEXIBLE,
        }


@dataclass(frozen=True, slots=True)
class BudgetSummary:
    """Totals over the active category set."""

    total_budgeted: float = 0.0
    total_spent: float = 0.0
    total_remaining: float = 0.0
    fixed_expense_total: float = 0.0
    flexible_expense_total: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return {
            "totalBudgeted": self.total_budgeted,
            "totalSpent": self.total_spent,
            "totalRemaining": self.total_remaining,
            "fixedExpenses": self.fixed_expense_total,
            "flexibleExpenses": self.flexible_expense_total,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "BudgetSummary":
        def _num(key: str) -> float:
            try:
                return float(data.get(key) or 0.0)  # type: ignore[arg-type]
            except (TypeError, ValueError):
                return 0.0

        return cls(
            total_budgeted=_num("totalBudgeted"),
            total_spent=_num("totalSpent"),
            total_remaining=_num("totalRemaining"),
            fixed_expense_total=_num("fixedExpenses"),
            flexible_expense_total=_num("flexibleExpenses"),
        )


def compute_category_derived(budgeted: float, spent: float) -> CategoryDerived:
    """Return remaining and progress; progress is 0 whenever nothing is budgeted.

    Neither value is clamped: overspend shows as negative remaining and
    progress above 100.
    """

    progress = (spent / budgeted) * 100 if budgeted > 0 else 0.0
    return CategoryDerived(remaining=budgeted - spent, progress=progress)


def derive_for_category(category: BudgetCategory | CategoryRow, spent: float) -> CategoryDerived:
    """Derived values for a category record or a period row.

    A bare ``BudgetCategory`` is measured against its standing
    ``budgeted_amount``; a ``CategoryRow`` against its period budget.
    """

    if isinstance(category, BudgetCategory):
        return compute_category_derived(category.budgeted_amount, spent)
    return compute_category_derived(category.budgeted, spent)


def classify_progress(progress: float) -> str:
    """Map an unclamped progress percentage to a severity bucket."""

    if progress >= OVERSPENT_THRESHOLD:
        return OVERSPENT
    if progress >= WARNING_THRESHOLD:
        return WARNING
    return ON_TRACK


def compute_summary(categories: Iterable[SummarySource]) -> BudgetSummary:
    """Reduce category rows into period totals.

    Non-Monthly categories count toward the overall totals but toward neither
    the fixed nor the flexible subtotal.
    """

    total_budgeted = 0.0
    total_spent = 0.0
    fixed_total = 0.0
    flexible_total = 0.0
    for row in categories:
        total_budgeted += row.budgeted
        total_spent += row.spent
        if row.kind is CategoryKind.FIXED:
            fixed_total += row.budgeted
        elif row.kind is CategoryKind.FLEXIBLE:
            flexible_total += row.budgeted

    return BudgetSummary(
        total_budgeted=total_budgeted,
        total_spent=total_spent,
        total_remaining=total_budgeted - total_spent,
        fixed_expense_total=fixed_total,
        flexible_expense_total=flexible_total,
    )


def spent_by_category(transactions: Iterable[Transaction]) -> dict[str, float]:
    """Sum expense amounts per category name, in first-seen order."""

    totals: dict[str, float] = {}
    for txn in transactions:
        if not txn.is_expense:
            continue
        totals[txn.category] = totals.get(txn.category, 0.0) + txn.amount
    return totals


def expense_distribution(summary: BudgetSummary) -> list[dict[str, object]]:
    """Pie-chart series splitting budgeted money into fixed and flexible."""

    return [
        {"name": CategoryKind.FIXED.value, "value": summary.fixed_expense_total},
        {"name": CategoryKind.FLEXIBLE.value, "value": summary.flexible_expense_total},
    ]


def build_cash_flow(income: float, spending: Mapping[str, float]) -> dict[str, list[dict[str, object]]]:
    """Build Sankey nodes and links: income feeds each category and savings.

    Categories without spend are omitted. A savings node is added only when
    income exceeds total spend.
    """

    nodes: list[dict[str, object]] = [{"name": "Income", "category": "income", "value": income}]
    links: list[dict[str, object]] = []

    for name, amount in spending.items():
        if amount <= 0:
            continue
        nodes.append({"name": name, "category": "expense", "value": amount})
        links.append({"source": 0, "target": len(nodes) - 1, "value": amount})

    unspent = income - sum(amount for amount in spending.values() if amount > 0)
    if unspent > 0:
        nodes.append({"name": "Savings", "category": "savings", "value": unspent})
        links.append({"source": 0, "target": len(nodes) - 1, "value": unspent})

    return {"nodes": nodes, "links": links}
