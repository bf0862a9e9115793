"""Request validation helpers for the budgeting API."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

from ...domain.entities import CategoryKind, TransactionKind
from ...domain.periods import TimeRange, is_period_key, period_key
from ...errors import ValidationError


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value.strip() if isinstance(value, str) else str(value).strip()


def check_amount(value: Any, *, label: str = "Amount", allow_zero: bool = True) -> float:
    """Coerce a JSON amount to a finite, non-negative float.

    Raises:
        ValueError: with a message fit for a field error.
    """

    if isinstance(value, bool):
        raise ValueError(f"Enter a valid number for the {label.lower()}.")
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Enter a valid number for the {label.lower()}.") from None
    if not math.isfinite(amount):
        raise ValueError(f"Enter a valid number for the {label.lower()}.")
    if amount < 0 or (amount == 0 and not allow_zero):
        raise ValueError(f"{label} cannot be negative." if allow_zero else f"{label} must be greater than zero.")
    return amount


@dataclass(slots=True)
class _JSONForm:
    """Shared plumbing: raw payload in, typed attributes and errors out."""

    raw_data: dict[str, Any] = field(default_factory=dict, init=False)
    errors: dict[str, list[str]] = field(default_factory=dict, init=False)
    partial: bool = field(default=False, init=False)

    def _add_error(self, field_name: str, message: str) -> None:
        """Accumulate validation errors for a specific field."""

        self.errors.setdefault(field_name, []).append(message)

    def _present(self, key: str) -> bool:
        return key in self.raw_data

    def _amount(self, key: str, *, required: bool, allow_zero: bool, label: str = "Amount") -> Optional[float]:
        if not self._present(key) or self.raw_data[key] in (None, ""):
            if required:
                self._add_error(key, f"{label} is required.")
            return None
        try:
            return check_amount(self.raw_data[key], label=label, allow_zero=allow_zero)
        except ValueError as exc:
            self._add_error(key, str(exc))
            return None

    def _month(self, key: str = "month", *, default: Optional[str] = None) -> Optional[str]:
        raw = _text(self.raw_data.get(key))
        if not raw:
            return default
        if not is_period_key(raw):
            self._add_error(key, "Month must look like YYYY-MM.")
            return None
        return raw

    def raise_for_errors(self, message: str) -> None:
        if self.errors:
            raise ValidationError(message, self.errors)


@dataclass(slots=True)
class CategoryForm(_JSONForm):
    """Category create/update payload."""

    name: Optional[str] = None
    kind: Optional[CategoryKind] = None
    budgeted_amount: Optional[float] = None
    rollover_enabled: Optional[bool] = None
    icon: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, partial: bool = False) -> CategoryForm:
        form = cls()
        form.raw_data = dict(data)
        form.partial = partial
        return form

    def validate(self) -> bool:
        self.errors.clear()

        if self._present("name") or not self.partial:
            self.name = _text(self.raw_data.get("name"))
            if not self.name:
                self._add_error("name", "Category name is required.")
            elif len(self.name) > 64:
                self._add_error("name", "Category name must be 64 characters or fewer.")

        if self._present("kind"):
            try:
                self.kind = CategoryKind.parse(self.raw_data.get("kind"))
            except ValueError:
                self._add_error("kind", "Kind must be Fixed, Flexible or Non-Monthly.")

        self.budgeted_amount = self._amount(
            "budgetedAmount", required=False, allow_zero=True, label="Budgeted amount"
        )

        if self._present("rolloverEnabled"):
            self.rollover_enabled = bool(self.raw_data.get("rolloverEnabled"))

        if self._present("icon"):
            self.icon = _text(self.raw_data.get("icon")) or None

        return not self.errors

    def changes(self) -> dict[str, Any]:
        """Only the fields supplied in the payload, keyed by ledger field name."""

        candidates = {
            "name": self.name,
            "kind": self.kind,
            "budgeted_amount": self.budgeted_amount,
            "rollover_enabled": self.rollover_enabled,
            "icon": self.icon,
        }
        return {key: value for key, value in candidates.items() if value is not None}


@dataclass(slots=True)
class BudgetForm(_JSONForm):
    """Per-month budget payload: ``categoryId``, ``amount`` and ``month``."""

    category_id: Optional[int] = None
    amount: Optional[float] = None
    month: Optional[str] = None
    kind: Optional[CategoryKind] = None

    @classmethod
    def from_mapping(
        cls, data: Mapping[str, Any], *, require_category: bool = True, default_month: Optional[str] = None
    ) -> BudgetForm:
        form = cls()
        form.raw_data = dict(data)
        form.partial = not require_category
        form.month = default_month
        return form

    def validate(self) -> bool:
        self.errors.clear()

        if not self.partial:
            raw = self.raw_data.get("categoryId")
            if raw in (None, "") or isinstance(raw, bool):
                self._add_error("categoryId", "Category ID is required.")
            else:
                try:
                    self.category_id = int(raw)
                except (TypeError, ValueError):
                    self._add_error("categoryId", "Category ID must be a whole number.")
                else:
                    if self.category_id <= 0:
                        self._add_error("categoryId", "Category ID must be greater than zero.")

        self.amount = self._amount("amount", required=True, allow_zero=True)
        self.month = self._month(default=self.month or period_key(date.today()))

        if self._present("kind"):
            try:
                self.kind = CategoryKind.parse(self.raw_data.get("kind"))
            except ValueError:
                self._add_error("kind", "Kind must be Fixed, Flexible or Non-Monthly.")

        return not self.errors


@dataclass(slots=True)
class TransactionForm(_JSONForm):
    """Transaction create/update payload."""

    amount: Optional[float] = None
    category: Optional[str] = None
    occurred_on: Optional[date] = None
    kind: Optional[TransactionKind] = None
    description: Optional[str] = None
    payee: Optional[str] = None
    note: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, partial: bool = False) -> TransactionForm:
        form = cls()
        form.raw_data = dict(data)
        form.partial = partial
        return form

    def validate(self) -> bool:
        self.errors.clear()

        if self._present("amount") or not self.partial:
            self.amount = self._amount("amount", required=True, allow_zero=False)

        if self._present("category") or not self.partial:
            self.category = _text(self.raw_data.get("category"))
            if not self.category:
                self._add_error("category", "Category is required.")

        if self._present("date") or not self.partial:
            raw_date = _text(self.raw_data.get("date"))
            if not raw_date:
                self._add_error("date", "Date is required.")
            else:
                try:
                    self.occurred_on = date.fromisoformat(raw_date[:10])
                except ValueError:
                    self._add_error("date", "Enter a valid date (YYYY-MM-DD).")

        if self._present("type") or not self.partial:
            try:
                self.kind = TransactionKind.parse(self.raw_data.get("type"))
            except ValueError:
                self._add_error("type", "Type must be income or expense.")

        for key in ("description", "payee"):
            if self._present(key):
                value = _text(self.raw_data.get(key))
                if len(value) > 255:
                    self._add_error(key, f"{key.capitalize()} must be 255 characters or fewer.")
                setattr(self, key, value)

        if self._present("note"):
            self.note = _text(self.raw_data.get("note")) or None

        return not self.errors

    def changes(self) -> dict[str, Any]:
        candidates = {
            "amount": self.amount,
            "category": self.category,
            "date": self.occurred_on,
            "kind": self.kind,
            "description": self.description,
            "payee": self.payee,
        }
        result = {key: value for key, value in candidates.items() if value is not None}
        if self._present("note"):
            result["note"] = self.note
        return result


def parse_period_args(args: Mapping[str, Any], *, default_range: TimeRange = TimeRange.MONTH) -> tuple[date, TimeRange]:
    """Read ``date`` and ``range`` query parameters (both optional)."""

    errors: dict[str, list[str]] = {}
    reference = date.today()
    raw_date = _text(args.get("date"))
    if raw_date:
        try:
            reference = date.fromisoformat(raw_date[:10])
        except ValueError:
            errors["date"] = ["Enter a valid date (YYYY-MM-DD)."]

    time_range = default_range
    try:
        time_range = TimeRange.parse(args.get("range"), default=default_range)
    except ValueError:
        errors["range"] = ["Range must be week, month, quarter, year or ytd."]

    if errors:
        raise ValidationError("Invalid period", errors)
    return reference, time_range


def parse_month_arg(args: Mapping[str, Any]) -> str:
    raw = _text(args.get("month"))
    if not raw:
        return period_key(date.today())
    if not is_period_key(raw):
        raise ValidationError("Invalid month", {"month": ["Month must look like YYYY-MM."]})
    return raw
