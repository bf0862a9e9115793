"""The period-bucketed budget ledger.

Budgets and income are period-local state kept in one bucket per ``YYYY-MM``
key. Transactions are global facts kept in insertion order and filtered into a
period by date range whenever a view asks for them. Categories are keyed by
id while budgets are keyed by category name; the two are joined by name only
when rows are built, so neither side ever rejects a dangling reference.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from datetime import date
from typing import Any, Callable, Iterable, Optional

from ..domain.entities import (
    DEFAULT_CATEGORY_ICON,
    BudgetCategory,
    CategoryKind,
    LedgerBucket,
    LedgerState,
    Settings,
    Transaction,
    TransactionKind,
)
from ..domain.periods import (
    PeriodRange,
    TimeRange,
    as_date,
    format_period_label,
    get_period_range,
    iter_month_keys,
    parse_period_key,
    period_key,
    visible_month_window,
)
from ..errors import NotFoundError, ValidationError
from ..logging_config import get_logger
from . import budgeting
from .budgeting import BudgetSummary, CategoryRow

logger = get_logger(__name__)

Listener = Callable[[LedgerState], None]

_CATEGORY_FIELDS = {"name", "kind", "budgeted_amount", "rollover_enabled", "icon"}
_TRANSACTION_FIELDS = {"amount", "category", "date", "kind", "description", "payee", "note"}


@dataclass(frozen=True, slots=True)
class PeriodSummary:
    """Category totals for a period plus its income."""

    totals: BudgetSummary
    income: float

    @property
    def remaining_to_allocate(self) -> float:
        return self.income - self.totals.total_budgeted

    def to_dict(self) -> dict[str, float]:
        payload = self.totals.to_dict()
        payload["income"] = self.income
        payload["remainingToAllocate"] = self.remaining_to_allocate
        return payload


def _month_keys(reference_date: date, time_range: TimeRange) -> list[str]:
    # A week borrows its month's figures instead of splitting them.
    if time_range is TimeRange.WEEK:
        return [period_key(reference_date)]
    return list(iter_month_keys(get_period_range(reference_date, time_range)))


class BudgetLedger:
    """Single authority over period buckets, categories and transactions.

    Every mutation goes through a method on this class and notifies the
    registered listeners afterwards, which is how persistence hooks in.
    """

    def __init__(self, state: Optional[LedgerState] = None):
        self._state = state if state is not None else LedgerState()
        self._listeners: list[Listener] = []

    # ------------------------------------------------------------------
    # State plumbing
    # ------------------------------------------------------------------
    @property
    def state(self) -> LedgerState:
        return self._state

    @property
    def settings(self) -> Settings:
        return self._state.settings

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a callback run after each mutation; returns an unsubscribe."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _changed(self) -> None:
        for listener in list(self._listeners):
            listener(self._state)

    def replace_state(self, state: LedgerState) -> None:
        """Swap in a complete state wholesale (import, reload)."""

        self._state = state
        logger.info(
            "Ledger state replaced",
            extra={
                "categories": len(state.categories),
                "transactions": len(state.transactions),
                "periods": len(state.periods),
            },
        )
        self._changed()

    def reset(self) -> None:
        """Return to a fresh, empty state."""

        self.replace_state(LedgerState())

    # ------------------------------------------------------------------
    # Period buckets
    # ------------------------------------------------------------------
    def bucket(self, key: str) -> LedgerBucket:
        """Return the bucket for ``key``, creating it on first access."""

        parse_period_key(key)
        bucket = self._state.periods.get(key)
        if bucket is None:
            bucket = LedgerBucket()
            self._state.periods[key] = bucket
            logger.debug("Created ledger bucket %s", key)
        return bucket

    def period_keys(self) -> list[str]:
        return sorted(self._state.periods)

    def set_income(self, amount: float, key: str) -> None:
        """Overwrite the income recorded for ``key``."""

        self.bucket(key).income = float(amount)
        self._changed()

    def set_category_budget(self, category_name: str, amount: float, key: str) -> None:
        """Overwrite the budget for ``category_name`` within ``key``.

        The name is not checked against existing categories.
        """

        self.bucket(key).budgets[category_name] = float(amount)
        self._changed()

    def clear_category_budget(self, category_name: str, key: str) -> bool:
        """Drop a per-period budget entry; returns whether one existed."""

        bucket = self._state.periods.get(key)
        if bucket is None or category_name not in bucket.budgets:
            return False
        del bucket.budgets[category_name]
        self._changed()
        return True

    def get_budget_for_period(self, reference_date: date) -> dict[str, float]:
        """Budget map of the month containing ``reference_date``; ``{}`` if untouched."""

        bucket = self._state.periods.get(period_key(as_date(reference_date)))
        return dict(bucket.budgets) if bucket is not None else {}

    def get_income_for_period(
        self, reference_date: date, time_range: TimeRange | str = TimeRange.MONTH
    ) -> float:
        """Sum the monthly incomes of every month the range covers."""

        time_range = TimeRange.parse(time_range)
        total = 0.0
        for key in _month_keys(as_date(reference_date), time_range):
            bucket = self._state.periods.get(key)
            if bucket is not None:
                total += bucket.income
        return total

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------
    @property
    def transactions(self) -> list[Transaction]:
        return list(self._state.transactions)

    def next_transaction_id(self) -> int:
        return max((txn.id for txn in self._state.transactions), default=0) + 1

    def get_transaction(self, transaction_id: int) -> Transaction:
        for txn in self._state.transactions:
            if txn.id == transaction_id:
                return txn
        raise NotFoundError(f"Transaction {transaction_id} was not found")

    def record_transaction(self, transaction: Transaction) -> Transaction:
        """Append ``transaction`` to the global list."""

        if transaction.amount is None or transaction.amount <= 0:
            raise ValidationError(
                "Transaction amount must be greater than zero",
                {"amount": ["Amount must be greater than zero."]},
            )
        if any(txn.id == transaction.id for txn in self._state.transactions):
            raise ValidationError(
                f"Transaction id {transaction.id} already exists",
                {"id": ["Transaction id must be unique."]},
            )
        self._state.transactions.append(transaction)
        logger.debug(
            "Recorded %s of %.2f in %s",
            transaction.kind.value,
            transaction.amount,
            transaction.category,
        )
        self._changed()
        return transaction

    def create_transaction(
        self,
        *,
        amount: float,
        category: str,
        occurred_on: date,
        kind: TransactionKind | str = TransactionKind.EXPENSE,
        description: str = "",
        payee: str = "",
        note: Optional[str] = None,
    ) -> Transaction:
        """Build a transaction with a fresh id and record it."""

        transaction = Transaction(
            id=self.next_transaction_id(),
            amount=float(amount),
            category=category,
            date=as_date(occurred_on),
            kind=TransactionKind.parse(kind),
            description=description,
            payee=payee,
            note=note,
        )
        return self.record_transaction(transaction)

    def update_transaction(self, transaction_id: int, **changes: Any) -> Transaction:
        unknown = set(changes) - _TRANSACTION_FIELDS
        if unknown:
            raise ValidationError(f"Unknown transaction fields: {', '.join(sorted(unknown))}")
        current = self.get_transaction(transaction_id)
        if "kind" in changes:
            changes["kind"] = TransactionKind.parse(changes["kind"])
        if "date" in changes:
            changes["date"] = as_date(changes["date"])
        if "amount" in changes:
            changes["amount"] = float(changes["amount"])
            if changes["amount"] <= 0:
                raise ValidationError(
                    "Transaction amount must be greater than zero",
                    {"amount": ["Amount must be greater than zero."]},
                )
        updated = replace(current, **changes)
        index = self._state.transactions.index(current)
        self._state.transactions[index] = updated
        self._changed()
        return updated

    def delete_transaction(self, transaction_id: int) -> None:
        current = self.get_transaction(transaction_id)
        self._state.transactions.remove(current)
        self._changed()

    def get_transactions_for_period(
        self, reference_date: date, time_range: TimeRange | str = TimeRange.MONTH
    ) -> list[Transaction]:
        """Transactions dated inside the period, in insertion order."""

        period = get_period_range(reference_date, time_range)
        return self.transactions_between(period)

    def transactions_between(self, period: PeriodRange) -> list[Transaction]:
        return [txn for txn in self._state.transactions if txn.date in period]

    def spent_by_category(
        self, reference_date: date, time_range: TimeRange | str = TimeRange.MONTH
    ) -> dict[str, float]:
        return budgeting.spent_by_category(
            self.get_transactions_for_period(reference_date, time_range)
        )

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------
    @property
    def categories(self) -> list[BudgetCategory]:
        return list(self._state.categories)

    def get_category(self, category_id: int) -> BudgetCategory:
        for category in self._state.categories:
            if category.id == category_id:
                return category
        raise NotFoundError(f"Category {category_id} was not found")

    def add_category(
        self,
        name: str,
        *,
        kind: CategoryKind | str = CategoryKind.FLEXIBLE,
        budgeted_amount: float = 0.0,
        rollover_enabled: bool = False,
        icon: str = DEFAULT_CATEGORY_ICON,
    ) -> BudgetCategory:
        """Create a category with a generated id."""

        errors: dict[str, list[str]] = {}
        cleaned_name = (name or "").strip()
        if not cleaned_name:
            errors["name"] = ["Category name is required."]
        if budgeted_amount is None or budgeted_amount < 0:
            errors["budgeted_amount"] = ["Budgeted amount cannot be negative."]
        if errors:
            raise ValidationError("Invalid category", errors)

        category = BudgetCategory(
            id=max((c.id for c in self._state.categories), default=0) + 1,
            name=cleaned_name,
            kind=CategoryKind.parse(kind),
            budgeted_amount=float(budgeted_amount),
            rollover_enabled=bool(rollover_enabled),
            icon=icon or DEFAULT_CATEGORY_ICON,
        )
        self._state.categories.append(category)
        logger.info("Created category %s (#%s)", category.name, category.id)
        self._changed()
        return category

    def update_category(self, category_id: int, **changes: Any) -> BudgetCategory:
        unknown = set(changes) - _CATEGORY_FIELDS
        if unknown:
            raise ValidationError(f"Unknown category fields: {', '.join(sorted(unknown))}")
        current = self.get_category(category_id)
        if "name" in changes:
            changes["name"] = (changes["name"] or "").strip()
            if not changes["name"]:
                raise ValidationError("Invalid category", {"name": ["Category name is required."]})
        if "kind" in changes:
            changes["kind"] = CategoryKind.parse(changes["kind"])
        if "budgeted_amount" in changes:
            changes["budgeted_amount"] = float(changes["budgeted_amount"])
            if changes["budgeted_amount"] < 0:
                raise ValidationError(
                    "Invalid category",
                    {"budgeted_amount": ["Budgeted amount cannot be negative."]},
                )
        updated = replace(current, **changes)
        index = self._state.categories.index(current)
        self._state.categories[index] = updated
        self._changed()
        return updated

    def delete_category(self, category_id: int) -> BudgetCategory:
        """Remove a category; transactions and budgets naming it are kept."""

        current = self.get_category(category_id)
        self._state.categories.remove(current)
        logger.info("Deleted category %s (#%s)", current.name, current.id)
        self._changed()
        return current

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------
    def category_rows(
        self,
        reference_date: date,
        time_range: TimeRange | str = TimeRange.MONTH,
        *,
        include_orphans: bool = True,
    ) -> list[CategoryRow]:
        """Join categories with period budgets and spend by name.

        A category's budget for each covered month is the bucket entry for its
        name when present, otherwise its standing ``budgeted_amount``. Budget
        entries and spend whose name matches no category become orphan rows.
        """

        day = as_date(reference_date)
        time_range = TimeRange.parse(time_range)
        keys = _month_keys(day, time_range)
        buckets = [self._state.periods.get(key) for key in keys]
        spending = self.spent_by_category(day, time_range)

        def _budgeted(name: str, fallback: float) -> float:
            total = 0.0
            for bucket in buckets:
                if bucket is not None and name in bucket.budgets:
                    total += bucket.budgets[name]
                else:
                    total += fallback
            return total

        rows: list[CategoryRow] = []
        seen: set[str] = set()
        for category in self._state.categories:
            seen.add(category.name)
            rows.append(
                CategoryRow(
                    name=category.name,
                    kind=category.kind,
                    budgeted=_budgeted(category.name, category.budgeted_amount),
                    spent=spending.get(category.name, 0.0),
                    category_id=category.id,
                    icon=category.icon,
                    rollover_enabled=category.rollover_enabled,
                )
            )

        if include_orphans:
            orphan_names: list[str] = []
            for bucket in buckets:
                if bucket is not None:
                    orphan_names.extend(n for n in bucket.budgets if n not in seen)
            orphan_names.extend(n for n in spending if n not in seen)
            for name in dict.fromkeys(orphan_names):
                rows.append(
                    CategoryRow(
                        name=name,
                        kind=CategoryKind.FLEXIBLE,
                        budgeted=_budgeted(name, 0.0),
                        spent=spending.get(name, 0.0),
                    )
                )
        return rows

    def summary(
        self, reference_date: date, time_range: TimeRange | str = TimeRange.MONTH
    ) -> PeriodSummary:
        rows = self.category_rows(reference_date, time_range)
        return PeriodSummary(
            totals=budgeting.compute_summary(rows),
            income=self.get_income_for_period(reference_date, time_range),
        )

    def monthly_trend(self, keys: Optional[Iterable[str]] = None) -> list[dict[str, object]]:
        """Per-month income, budgeted and spent figures for trend charts."""

        result: list[dict[str, object]] = []
        for key in keys if keys is not None else self.settings.visible_months:
            first_day = parse_period_key(key)
            bucket = self._state.periods.get(key)
            spent = sum(
                txn.amount
                for txn in self.get_transactions_for_period(first_day, TimeRange.MONTH)
                if txn.is_expense
            )
            result.append(
                {
                    "month": key,
                    "label": format_period_label(first_day, TimeRange.MONTH),
                    "income": bucket.income if bucket is not None else 0.0,
                    "budgeted": sum(bucket.budgets.values()) if bucket is not None else 0.0,
                    "spent": spent,
                }
            )
        return result

    def cash_flow(
        self, reference_date: date, time_range: TimeRange | str = TimeRange.MONTH
    ) -> dict[str, list[dict[str, object]]]:
        return budgeting.build_cash_flow(
            self.get_income_for_period(reference_date, time_range),
            self.spent_by_category(reference_date, time_range),
        )

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------
    def update_settings(self, **changes: Any) -> Settings:
        """Merge ``changes`` into the settings (unknown keys are rejected)."""

        allowed = {f.name for f in fields(Settings)}
        unknown = set(changes) - allowed
        if unknown:
            raise ValidationError(f"Unknown settings: {', '.join(sorted(unknown))}")
        if "time_range" in changes:
            changes["time_range"] = TimeRange.parse(changes["time_range"])
        if "selected_date" in changes:
            changes["selected_date"] = as_date(changes["selected_date"])
        self._state.settings = replace(self._state.settings, **changes)
        self._changed()
        return self._state.settings

    def select_period(
        self,
        reference_date: Optional[date] = None,
        time_range: TimeRange | str | None = None,
    ) -> Settings:
        """Move the dashboard selection and recentre the visible month window."""

        changes: dict[str, Any] = {}
        if reference_date is not None:
            changes["selected_date"] = as_date(reference_date)
            changes["visible_months"] = visible_month_window(changes["selected_date"])
        if time_range is not None:
            changes["time_range"] = TimeRange.parse(time_range)
        return self.update_settings(**changes)
