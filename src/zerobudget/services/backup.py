"""Full-state export/import and CSV export of transactions."""

from __future__ import annotations

import csv
import json
import math
from datetime import date
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

from ..domain.entities import CategoryKind, LedgerState, Transaction, TransactionKind
from ..domain.periods import TimeRange, is_period_key
from ..errors import BackupFormatError
from ..logging_config import get_logger
from .ledger import BudgetLedger
from .persistence import THEMES, sanitize_state

logger = get_logger(__name__)

_LIST_SECTIONS = ("categories", "transactions")


def backup_filename(today: Optional[date] = None) -> str:
    """Default download name for an export taken on ``today``."""

    return f"zero-budget-backup-{(today or date.today()).isoformat()}.json"


def export_data(state: LedgerState) -> str:
    """Serialize the full state as a ``{budgetData, settings}`` JSON document."""

    return json.dumps(state.to_dict(), ensure_ascii=False, indent=2)


def _is_amount(value: Any, *, positive: bool = False) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    if not math.isfinite(value) or value < 0:
        return False
    return value > 0 if positive else True


def _is_iso_day(value: Any) -> bool:
    if not isinstance(value, str) or not value:
        return False
    try:
        date.fromisoformat(value[:10])
    except ValueError:
        return False
    return True


def _entry_label(section: str, index: int, entry: Any) -> str:
    label = f"{section} #{index}"
    if isinstance(entry, Mapping) and "id" in entry:
        label += f" (id={entry['id']!r})"
    return label


def _check_id(label: str, entry: Mapping[str, Any], seen: set[int]) -> None:
    entry_id = entry.get("id")
    if isinstance(entry_id, bool) or not isinstance(entry_id, int):
        raise BackupFormatError(f"{label}: 'id' must be an integer")
    if entry_id in seen:
        raise BackupFormatError(f"{label}: duplicate id {entry_id}")
    seen.add(entry_id)


def _check_categories(entries: list[Any]) -> None:
    seen: set[int] = set()
    for index, entry in enumerate(entries):
        label = _entry_label("category", index, entry)
        if not isinstance(entry, Mapping):
            raise BackupFormatError(f"{label}: must be an object")
        _check_id(label, entry, seen)
        name = entry.get("name")
        if not isinstance(name, str) or not name.strip():
            raise BackupFormatError(f"{label}: 'name' must be a non-empty string")
        if entry.get("kind") is not None:
            try:
                CategoryKind.parse(entry["kind"])
            except ValueError as exc:
                raise BackupFormatError(f"{label}: {exc}") from exc
        if "budgetedAmount" in entry and not _is_amount(entry["budgetedAmount"]):
            raise BackupFormatError(f"{label}: 'budgetedAmount' must be a non-negative number")
        if "rolloverEnabled" in entry and not isinstance(entry["rolloverEnabled"], bool):
            raise BackupFormatError(f"{label}: 'rolloverEnabled' must be true or false")
        if "icon" in entry and not isinstance(entry["icon"], str):
            raise BackupFormatError(f"{label}: 'icon' must be a string")


def _check_transactions(entries: list[Any]) -> None:
    seen: set[int] = set()
    for index, entry in enumerate(entries):
        label = _entry_label("transaction", index, entry)
        if not isinstance(entry, Mapping):
            raise BackupFormatError(f"{label}: must be an object")
        _check_id(label, entry, seen)
        if not _is_amount(entry.get("amount"), positive=True):
            raise BackupFormatError(f"{label}: 'amount' must be a number greater than zero")
        category = entry.get("category")
        if not isinstance(category, str) or not category.strip():
            raise BackupFormatError(f"{label}: 'category' must be a non-empty string")
        if not _is_iso_day(entry.get("date")):
            raise BackupFormatError(f"{label}: 'date' must be an ISO date, got {entry.get('date')!r}")
        if entry.get("type") is not None:
            try:
                TransactionKind.parse(entry["type"])
            except ValueError as exc:
                raise BackupFormatError(f"{label}: {exc}") from exc
        for key in ("description", "payee", "note"):
            if entry.get(key) is not None and not isinstance(entry[key], str):
                raise BackupFormatError(f"{label}: '{key}' must be a string")


def _check_periods(periods: Mapping[str, Any]) -> None:
    for key, entry in periods.items():
        label = f"period {key!r}"
        if not is_period_key(key):
            raise BackupFormatError(f"{label}: key must look like YYYY-MM")
        if not isinstance(entry, Mapping):
            raise BackupFormatError(f"{label}: must be an object")
        budgets = entry.get("budgets", {})
        if not isinstance(budgets, Mapping):
            raise BackupFormatError(f"{label}: 'budgets' must be an object keyed by category name")
        for name, amount in budgets.items():
            if not isinstance(name, str) or not name:
                raise BackupFormatError(f"{label}: budget names must be non-empty strings")
            if not _is_amount(amount):
                raise BackupFormatError(f"{label}: budget for {name!r} must be a non-negative number")
        if "income" in entry and not _is_amount(entry["income"]):
            raise BackupFormatError(f"{label}: 'income' must be a non-negative number")


def _check_settings(settings: Mapping[str, Any]) -> None:
    if "monthlyIncome" in settings and not _is_amount(settings["monthlyIncome"]):
        raise BackupFormatError("settings: 'monthlyIncome' must be a non-negative number")
    if "theme" in settings and settings["theme"] not in THEMES:
        raise BackupFormatError(f"settings: 'theme' must be one of {', '.join(THEMES)}")
    if "notifications" in settings and not isinstance(settings["notifications"], bool):
        raise BackupFormatError("settings: 'notifications' must be true or false")
    if "currency" in settings and not (isinstance(settings["currency"], str) and settings["currency"].strip()):
        raise BackupFormatError("settings: 'currency' must be a non-empty string")
    if "selectedDate" in settings and not _is_iso_day(settings["selectedDate"]):
        raise BackupFormatError("settings: 'selectedDate' must be an ISO date")
    if "timeRange" in settings:
        try:
            TimeRange.parse(settings["timeRange"])
        except ValueError as exc:
            raise BackupFormatError(f"settings: {exc}") from exc
    months = settings.get("visibleMonths", [])
    if not isinstance(months, list) or not all(is_period_key(month) for month in months):
        raise BackupFormatError("settings: 'visibleMonths' must be a list of YYYY-MM keys")


def parse_backup(text: str) -> LedgerState:
    """Validate an exported document and build the state it describes.

    Raises:
        BackupFormatError: if the text is not JSON, ``budgetData`` is missing or
            not a mapping, a known section has the wrong shape, or any record
            in it is invalid. The message names the offending entry.
    """

    try:
        document = json.loads(text)
    except (TypeError, ValueError) as exc:
        raise BackupFormatError(f"Backup is not valid JSON: {exc}") from exc

    if not isinstance(document, Mapping):
        raise BackupFormatError("Backup must be a JSON object")
    if "budgetData" not in document:
        raise BackupFormatError("Backup is missing 'budgetData'")

    budget_data: Any = document["budgetData"]
    if not isinstance(budget_data, Mapping):
        raise BackupFormatError("'budgetData' must be an object keyed by section")
    for section in _LIST_SECTIONS:
        if section in budget_data and not isinstance(budget_data[section], list):
            raise BackupFormatError(f"'budgetData.{section}' must be a list")
    if "periods" in budget_data and not isinstance(budget_data["periods"], Mapping):
        raise BackupFormatError("'budgetData.periods' must be an object keyed by YYYY-MM")
    if "settings" in document and not isinstance(document["settings"], Mapping):
        raise BackupFormatError("'settings' must be an object")

    _check_categories(budget_data.get("categories", []))
    _check_transactions(budget_data.get("transactions", []))
    _check_periods(budget_data.get("periods", {}))
    _check_settings(document.get("settings", {}))
    return sanitize_state(document)


def import_data(ledger: BudgetLedger, text: str) -> LedgerState:
    """Replace the ledger's state with the document in ``text``.

    The current state is untouched unless the whole document validates.
    """

    try:
        state = parse_backup(text)
    except BackupFormatError:
        logger.warning("Rejected backup import", exc_info=True)
        raise
    ledger.replace_state(state)
    return state


def write_backup(state: LedgerState, output_path: Path) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(export_data(state), encoding="utf-8")
    return output_path


def export_transactions_csv(*, transactions: Iterable[Transaction], output_path: Path) -> Path:
    """Write transactions to CSV at `output_path`.

    Columns are deterministic: id, date, type, amount, category, description, payee, note.
    Returns the path written.
    """

    headers = ["id", "date", "type", "amount", "category", "description", "payee", "note"]
    output_path.parent.mkdir(parents=True, exist_ok=True)

    # Use newline='' for csv on Windows
    with output_path.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(fh, fieldnames=headers, quoting=csv.QUOTE_MINIMAL)
        writer.writeheader()
        for txn in transactions:
            row = txn.to_dict()
            row["note"] = row["note"] or ""
            writer.writerow(row)

    return output_path
