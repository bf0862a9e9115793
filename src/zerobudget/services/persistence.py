"""Serialize ledger state and rehydrate it defensively.

Everything read back from storage passes through ``sanitize_state`` before
it reaches the ledger; the ledger assumes well-formed records.
"""

from __future__ import annotations

import json
from datetime import date
from typing import Any, Mapping, Optional

from ..domain.entities import (
    DEFAULT_CATEGORY_ICON,
    DEFAULT_CURRENCY,
    BudgetCategory,
    CategoryKind,
    LedgerBucket,
    LedgerState,
    Settings,
    Transaction,
    TransactionKind,
)
from ..domain.periods import TimeRange, is_period_key, visible_month_window
from ..domain.repositories import LedgerStateRepository
from ..logging_config import get_logger
from .ledger import BudgetLedger

logger = get_logger(__name__)

THEMES = ("light", "dark")


def dump_state(state: LedgerState) -> str:
    """Serialize the whole state as the ``{budgetData, settings}`` document."""

    return json.dumps(state.to_dict(), ensure_ascii=False)


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return number


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _as_date(value: Any, fallback: Optional[date] = None) -> date:
    """Parse ISO dates (or datetimes); anything else falls back to today."""

    if isinstance(value, str) and value:
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            pass
    return fallback or date.today()


def _sanitize_settings(raw: Any) -> Settings:
    data = raw if isinstance(raw, Mapping) else {}
    selected = _as_date(data.get("selectedDate"))

    try:
        time_range = TimeRange.parse(data.get("timeRange"), default=TimeRange.MONTH)
    except ValueError:
        time_range = TimeRange.MONTH

    months = data.get("visibleMonths")
    if not isinstance(months, list) or not months or not all(is_period_key(m) for m in months):
        months = visible_month_window(selected)

    theme = data.get("theme")
    currency = data.get("currency")
    notifications = data.get("notifications")
    return Settings(
        monthly_income=max(_as_float(data.get("monthlyIncome")) or 0.0, 0.0),
        currency=currency if isinstance(currency, str) and currency else DEFAULT_CURRENCY,
        theme=theme if theme in THEMES else "light",
        notifications=notifications if isinstance(notifications, bool) else True,
        selected_date=selected,
        time_range=time_range,
        visible_months=list(months),
    )


def _sanitize_categories(raw: Any) -> list[BudgetCategory]:
    categories: list[BudgetCategory] = []
    seen: set[int] = set()
    for entry in raw if isinstance(raw, list) else []:
        if not isinstance(entry, Mapping):
            continue
        category_id = _as_int(entry.get("id"))
        name = entry.get("name")
        if category_id is None or category_id in seen or not isinstance(name, str) or not name.strip():
            logger.warning("Dropping malformed category entry", extra={"entry": entry})
            continue
        try:
            kind = CategoryKind.parse(entry.get("kind"))
        except ValueError:
            kind = CategoryKind.FLEXIBLE
        icon = entry.get("icon")
        seen.add(category_id)
        categories.append(
            BudgetCategory(
                id=category_id,
                name=name,
                kind=kind,
                budgeted_amount=max(_as_float(entry.get("budgetedAmount")) or 0.0, 0.0),
                rollover_enabled=bool(entry.get("rolloverEnabled", False)),
                icon=icon if isinstance(icon, str) and icon else DEFAULT_CATEGORY_ICON,
            )
        )
    return categories


def _sanitize_transactions(raw: Any) -> list[Transaction]:
    transactions: list[Transaction] = []
    seen: set[int] = set()
    for entry in raw if isinstance(raw, list) else []:
        if not isinstance(entry, Mapping):
            continue
        txn_id = _as_int(entry.get("id"))
        amount = _as_float(entry.get("amount"))
        category = entry.get("category")
        if txn_id is None or txn_id in seen or amount is None or amount <= 0 or not isinstance(category, str):
            logger.warning("Dropping malformed transaction entry", extra={"entry": entry})
            continue
        try:
            kind = TransactionKind.parse(entry.get("type"))
        except ValueError:
            kind = TransactionKind.EXPENSE
        note = entry.get("note")
        seen.add(txn_id)
        transactions.append(
            Transaction(
                id=txn_id,
                amount=amount,
                category=category,
                date=_as_date(entry.get("date")),
                kind=kind,
                description=str(entry.get("description") or ""),
                payee=str(entry.get("payee") or ""),
                note=note if isinstance(note, str) else None,
            )
        )
    return transactions


def _sanitize_periods(raw: Any) -> dict[str, LedgerBucket]:
    periods: dict[str, LedgerBucket] = {}
    for key, entry in (raw.items() if isinstance(raw, Mapping) else ()):
        if not is_period_key(key) or not isinstance(entry, Mapping):
            continue
        budgets: dict[str, float] = {}
        raw_budgets = entry.get("budgets")
        for name, amount in (raw_budgets.items() if isinstance(raw_budgets, Mapping) else ()):
            value = _as_float(amount)
            if isinstance(name, str) and value is not None:
                budgets[name] = value
        periods[key] = LedgerBucket(budgets=budgets, income=_as_float(entry.get("income")) or 0.0)
    return periods


def sanitize_state(document: Mapping[str, Any]) -> LedgerState:
    """Build a ``LedgerState`` from a decoded document, defaulting bad fields."""

    budget_data = document.get("budgetData")
    if not isinstance(budget_data, Mapping):
        budget_data = {}
    return LedgerState(
        categories=_sanitize_categories(budget_data.get("categories")),
        transactions=_sanitize_transactions(budget_data.get("transactions")),
        periods=_sanitize_periods(budget_data.get("periods")),
        settings=_sanitize_settings(document.get("settings")),
    )


def load_state(payload: Optional[str]) -> LedgerState:
    """Decode a stored payload; corrupt or missing payloads yield a fresh state."""

    if not payload:
        return LedgerState()
    try:
        document = json.loads(payload)
    except (TypeError, ValueError) as exc:
        logger.warning("Stored ledger is not valid JSON; starting fresh", extra={"error": str(exc)})
        return LedgerState()
    if not isinstance(document, Mapping):
        logger.warning("Stored ledger is not a JSON object; starting fresh")
        return LedgerState()
    return sanitize_state(document)


class LedgerStore:
    """Binds a ``BudgetLedger`` to a repository key and saves after every change."""

    def __init__(self, repository: LedgerStateRepository, key: str):
        self.repository = repository
        self.key = key
        self.ledger = BudgetLedger(load_state(repository.load(key)))
        self.ledger.subscribe(self.save)

    def save(self, state: Optional[LedgerState] = None) -> None:
        self.repository.save(self.key, dump_state(state if state is not None else self.ledger.state))
