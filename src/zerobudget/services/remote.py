"""REST-backed budget store.

Mirrors the local ledger through the HTTP API: every write is followed by a
refetch of the summary and category rows. A failed request is logged, surfaced
once through ``error`` and a raised ``TransportError``, and the cached
collections are reset to their empty defaults. Nothing is retried.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

import requests

from ..config import BaseConfig
from ..domain.entities import CategoryKind, TransactionKind
from ..domain.periods import TimeRange, period_key
from ..errors import TransportError, ValidationError
from ..logging_config import get_logger
from .budgeting import BudgetSummary

logger = get_logger(__name__)


def _error_message(response: Any, fallback: str) -> str:
    try:
        payload = response.json()
    except ValueError:
        return fallback
    if isinstance(payload, dict) and payload.get("error"):
        return str(payload["error"])
    return fallback


@dataclass
class RemoteBudgetStore:
    """Client-side cache of categories and summary backed by the REST API."""

    base_url: str
    session: Any = field(default_factory=requests.Session)
    timeout: float = 10.0
    reference_date: date = field(default_factory=date.today)
    time_range: TimeRange = TimeRange.MONTH

    categories: list[dict[str, Any]] = field(default_factory=list, init=False)
    summary: BudgetSummary = field(default_factory=BudgetSummary, init=False)
    error: Optional[str] = field(default=None, init=False)
    is_loading: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        self.base_url = self.base_url.rstrip("/")

    @classmethod
    def from_config(cls, config: BaseConfig, session: Optional[Any] = None) -> RemoteBudgetStore:
        """Build a store pointed at ``config.API_URL`` with the configured timeout."""

        return cls(
            config.API_URL,
            session=session if session is not None else requests.Session(),
            timeout=config.REQUEST_TIMEOUT,
        )

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    def _request(self, method: str, path: str, *, what: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
        except requests.HTTPError as exc:
            response = exc.response
            status = getattr(response, "status_code", None)
            message = _error_message(response, f"Failed to {what}") if response is not None else f"Failed to {what}"
            logger.error(
                "%s %s failed", method, path, extra={"status": status, "error": message}
            )
            raise TransportError(message, status=status) from exc
        except requests.RequestException as exc:
            logger.error("%s %s failed", method, path, extra={"error": str(exc)})
            raise TransportError(f"Failed to {what}: {exc}") from exc

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise TransportError(f"Failed to {what}: response was not JSON") from exc

    def _period_params(self) -> dict[str, str]:
        return {"date": self.reference_date.isoformat(), "range": self.time_range.value}

    def _fail(self, exc: TransportError) -> None:
        self.error = str(exc)
        self.categories = []
        self.summary = BudgetSummary()

    def reset(self) -> None:
        self.categories = []
        self.summary = BudgetSummary()
        self.error = None
        self.is_loading = False

    def select_period(self, reference_date: date, time_range: TimeRange | str | None = None) -> None:
        self.reference_date = reference_date
        if time_range is not None:
            self.time_range = TimeRange.parse(time_range)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def fetch_budget_summary(self) -> BudgetSummary:
        self.is_loading, self.error = True, None
        try:
            payload = self._request(
                "GET", "/api/budgets/summary", what="fetch budget summary", params=self._period_params()
            )
            self.summary = BudgetSummary.from_dict(payload or {})
            return self.summary
        except TransportError as exc:
            self.error = str(exc)
            self.summary = BudgetSummary()
            raise
        finally:
            self.is_loading = False

    def fetch_categories(self) -> list[dict[str, Any]]:
        self.is_loading, self.error = True, None
        try:
            payload = self._request(
                "GET", "/api/budgets/categories", what="fetch categories", params=self._period_params()
            )
            self.categories = payload if isinstance(payload, list) else []
            return self.categories
        except TransportError as exc:
            self.error = str(exc)
            self.categories = []
            raise
        finally:
            self.is_loading = False

    def refresh(self) -> None:
        self.fetch_budget_summary()
        self.fetch_categories()

    def fetch_transactions(self, start: date, end: date) -> list[dict[str, Any]]:
        payload = self._request(
            "GET",
            "/api/transactions",
            what="fetch transactions",
            params={"start_date": start.isoformat(), "end_date": end.isoformat()},
        )
        return payload if isinstance(payload, list) else []

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def create_budget(
        self,
        name: str,
        budgeted: float = 0.0,
        *,
        kind: CategoryKind | str = CategoryKind.FLEXIBLE,
        icon: Optional[str] = None,
        rollover_enabled: bool = False,
    ) -> dict[str, Any]:
        """Create a category, then a budget for it in the selected month.

        When the second request fails the category created by the first one
        stays on the server.
        """

        if not name or not name.strip():
            raise ValidationError("Category name is required", {"name": ["Category name is required."]})
        kind = CategoryKind.parse(kind)

        self.is_loading, self.error = True, None
        try:
            category_body: dict[str, Any] = {
                "name": name.strip(),
                "kind": kind.value,
                "budgetedAmount": float(budgeted or 0),
                "rolloverEnabled": rollover_enabled,
            }
            if icon:
                category_body["icon"] = icon
            category = self._request("POST", "/api/categories", what="create category", json=category_body)
            if not isinstance(category, dict) or category.get("id") is None:
                raise TransportError("Failed to create category: missing id")
            logger.info("Created remote category", extra={"category_id": category["id"]})

            budget = self._request(
                "POST",
                "/api/budgets",
                what="create budget",
                json={
                    "categoryId": category["id"],
                    "amount": float(budgeted or 0),
                    "month": period_key(self.reference_date),
                },
            )
            self.refresh()
            return budget
        except TransportError as exc:
            self._fail(exc)
            raise
        finally:
            self.is_loading = False

    def update_budget_category(
        self,
        category_id: int,
        budgeted: float,
        *,
        kind: CategoryKind | str | None = None,
    ) -> dict[str, Any]:
        try:
            amount = float(budgeted)
        except (TypeError, ValueError):
            raise ValidationError(
                "Budget amount is required and must be a number",
                {"amount": ["Budget amount is required and must be a number."]},
            ) from None

        body: dict[str, Any] = {"amount": amount, "month": period_key(self.reference_date)}
        if kind is not None:
            body["kind"] = CategoryKind.parse(kind).value

        self.is_loading, self.error = True, None
        try:
            budget = self._request("PUT", f"/api/budgets/{category_id}", what="update budget", json=body)
            self.refresh()
            return budget
        except TransportError as exc:
            self._fail(exc)
            raise
        finally:
            self.is_loading = False

    def delete_budget(self, category_id: int) -> None:
        self.is_loading, self.error = True, None
        try:
            self._request(
                "DELETE",
                f"/api/budgets/{category_id}",
                what="delete budget",
                params={"month": period_key(self.reference_date)},
            )
            self.refresh()
        except TransportError as exc:
            self._fail(exc)
            raise
        finally:
            self.is_loading = False

    def record_transaction(
        self,
        *,
        amount: float,
        category: str,
        occurred_on: date,
        kind: TransactionKind | str = TransactionKind.EXPENSE,
        description: str = "",
        payee: str = "",
        note: Optional[str] = None,
    ) -> dict[str, Any]:
        if amount is None or float(amount) <= 0:
            raise ValidationError(
                "Transaction amount must be greater than zero",
                {"amount": ["Amount must be greater than zero."]},
            )
        body = {
            "amount": float(amount),
            "category": category,
            "date": occurred_on.isoformat(),
            "type": TransactionKind.parse(kind).value,
            "description": description,
            "payee": payee,
            "note": note,
        }
        self.is_loading, self.error = True, None
        try:
            created = self._request("POST", "/api/transactions", what="create transaction", json=body)
            self.refresh()
            return created
        except TransportError as exc:
            self._fail(exc)
            raise
        finally:
            self.is_loading = False
