"""Budgeting API routes."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any

from flask import Response, jsonify, request

from ...constants.categories import EMOJI_CATEGORIES, EXPENSE_CATEGORIES, get_all_suggestions
from ...domain.entities import BudgetCategory
from ...domain.periods import PeriodRange, format_period_label, get_period_range, parse_period_key
from ...errors import BackupFormatError, NotFoundError, ValidationError
from ...extensions import get_ledger
from ...logging_config import get_logger
from ...services import budgeting
from ...services.backup import backup_filename, export_data, import_data
from . import bp
from .forms import (
    BudgetForm,
    CategoryForm,
    TransactionForm,
    check_amount,
    parse_month_arg,
    parse_period_args,
)

logger = get_logger(__name__)

_SETTINGS_FIELDS = {
    "monthlyIncome": "monthly_income",
    "currency": "currency",
    "theme": "theme",
    "notifications": "notifications",
    "selectedDate": "selected_date",
    "timeRange": "time_range",
}


@bp.errorhandler(ValidationError)
def _validation_error(exc: ValidationError):
    payload: dict[str, Any] = {"error": str(exc)}
    if exc.errors:
        payload["fields"] = exc.errors
    return jsonify(payload), 400


@bp.errorhandler(BackupFormatError)
def _backup_error(exc: BackupFormatError):
    return jsonify({"error": str(exc)}), 400


@bp.errorhandler(NotFoundError)
def _not_found(exc: NotFoundError):
    return jsonify({"error": str(exc)}), 404


def _json_body() -> dict[str, Any]:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


def _parse_day(raw: str, field_name: str) -> date:
    try:
        return date.fromisoformat(raw.strip()[:10])
    except ValueError:
        raise ValidationError(
            "Invalid date", {field_name: ["Enter a valid date (YYYY-MM-DD)."]}
        ) from None


def _budget_payload(category: BudgetCategory, month: str) -> dict[str, Any]:
    ledger = get_ledger()
    first_day = parse_period_key(month)
    budgets = ledger.get_budget_for_period(first_day)
    amount = budgets.get(category.name, category.budgeted_amount)
    spent = ledger.spent_by_category(first_day).get(category.name, 0.0)
    derived = budgeting.compute_category_derived(amount, spent)
    return {
        "id": category.id,
        "categoryId": category.id,
        "name": category.name,
        "kind": category.kind.value,
        "month": month,
        "amount": amount,
        "spent": spent,
        "remaining": derived.remaining,
        "progress": derived.progress,
        "severity": derived.severity,
        "isSet": category.name in budgets,
    }


# ----------------------------------------------------------------------
# Categories
# ----------------------------------------------------------------------
@bp.get("/categories")
def list_categories():
    return jsonify([category.to_dict() for category in get_ledger().categories])


@bp.get("/categories/suggestions")
def category_suggestions():
    return jsonify(
        {
            "names": get_all_suggestions(),
            "groups": EXPENSE_CATEGORIES,
            "icons": EMOJI_CATEGORIES,
        }
    )


@bp.post("/categories")
def create_category():
    form = CategoryForm.from_mapping(_json_body())
    form.validate()
    form.raise_for_errors("Invalid category")
    changes = form.changes()
    category = get_ledger().add_category(changes.pop("name"), **changes)
    return jsonify(category.to_dict()), 201


@bp.get("/categories/<int:category_id>")
def get_category(category_id: int):
    return jsonify(get_ledger().get_category(category_id).to_dict())


@bp.put("/categories/<int:category_id>")
def update_category(category_id: int):
    form = CategoryForm.from_mapping(_json_body(), partial=True)
    form.validate()
    form.raise_for_errors("Invalid category")
    category = get_ledger().update_category(category_id, **form.changes())
    return jsonify(category.to_dict())


@bp.delete("/categories/<int:category_id>")
def delete_category(category_id: int):
    category = get_ledger().delete_category(category_id)
    return jsonify({"deleted": category.id})


# ----------------------------------------------------------------------
# Budgets
# ----------------------------------------------------------------------
@bp.get("/budgets")
def list_budgets():
    month = parse_month_arg(request.args)
    return jsonify([_budget_payload(category, month) for category in get_ledger().categories])


@bp.post("/budgets")
def create_budget():
    form = BudgetForm.from_mapping(_json_body())
    form.validate()
    form.raise_for_errors("Invalid budget")

    ledger = get_ledger()
    try:
        category = ledger.get_category(form.category_id)
    except NotFoundError:
        raise ValidationError(
            "Category not found. Please create the category first.",
            {"categoryId": ["Category not found."]},
        ) from None

    ledger.set_category_budget(category.name, form.amount, form.month)
    logger.info("Budget set", extra={"category": category.name, "month": form.month, "amount": form.amount})
    return jsonify(_budget_payload(category, form.month)), 201


@bp.get("/budgets/summary")
def budget_summary():
    reference, time_range = parse_period_args(request.args)
    summary = get_ledger().summary(reference, time_range)
    payload = summary.to_dict()
    payload["label"] = format_period_label(reference, time_range)
    payload["range"] = time_range.value
    return jsonify(payload)


@bp.get("/budgets/categories")
def budget_categories():
    reference, time_range = parse_period_args(request.args)
    include_orphans = request.args.get("orphans", "1").lower() not in {"0", "false", "no"}
    rows = get_ledger().category_rows(reference, time_range, include_orphans=include_orphans)
    return jsonify([row.to_dict() for row in rows])


@bp.get("/budgets/<int:category_id>")
def get_budget(category_id: int):
    month = parse_month_arg(request.args)
    category = get_ledger().get_category(category_id)
    return jsonify(_budget_payload(category, month))


@bp.put("/budgets/<int:category_id>")
def update_budget(category_id: int):
    ledger = get_ledger()
    category = ledger.get_category(category_id)

    form = BudgetForm.from_mapping(_json_body(), require_category=False)
    form.validate()
    form.raise_for_errors("Invalid budget")

    if form.kind is not None and form.kind is not category.kind:
        category = ledger.update_category(category_id, kind=form.kind)
    ledger.set_category_budget(category.name, form.amount, form.month)
    return jsonify(_budget_payload(category, form.month))


@bp.delete("/budgets/<int:category_id>")
def delete_budget(category_id: int):
    month = parse_month_arg(request.args)
    ledger = get_ledger()
    category = ledger.get_category(category_id)
    if not ledger.clear_category_budget(category.name, month):
        raise NotFoundError(f"No budget for {category.name} in {month}")
    return jsonify({"deleted": category.id, "month": month})


# ----------------------------------------------------------------------
# Transactions
# ----------------------------------------------------------------------
@bp.get("/transactions")
def list_transactions():
    ledger = get_ledger()
    start_raw = request.args.get("start_date", "")
    end_raw = request.args.get("end_date", "")
    if start_raw or end_raw:
        if not (start_raw and end_raw):
            raise ValidationError(
                "Both start_date and end_date are required",
                {"start_date" if not start_raw else "end_date": ["This field is required."]},
            )
        start = _parse_day(start_raw, "start_date")
        end = _parse_day(end_raw, "end_date")
        # end_date is inclusive on the wire
        period = PeriodRange(start, end + timedelta(days=1))
    else:
        reference, time_range = parse_period_args(request.args)
        period = get_period_range(reference, time_range)
    return jsonify([txn.to_dict() for txn in ledger.transactions_between(period)])


@bp.post("/transactions")
def create_transaction():
    form = TransactionForm.from_mapping(_json_body())
    form.validate()
    form.raise_for_errors("Invalid transaction")
    transaction = get_ledger().create_transaction(
        amount=form.amount,
        category=form.category,
        occurred_on=form.occurred_on,
        kind=form.kind,
        description=form.description or "",
        payee=form.payee or "",
        note=form.note,
    )
    return jsonify(transaction.to_dict()), 201


@bp.get("/transactions/<int:transaction_id>")
def get_transaction(transaction_id: int):
    return jsonify(get_ledger().get_transaction(transaction_id).to_dict())


@bp.put("/transactions/<int:transaction_id>")
def update_transaction(transaction_id: int):
    form = TransactionForm.from_mapping(_json_body(), partial=True)
    form.validate()
    form.raise_for_errors("Invalid transaction")
    transaction = get_ledger().update_transaction(transaction_id, **form.changes())
    return jsonify(transaction.to_dict())


@bp.delete("/transactions/<int:transaction_id>")
def delete_transaction(transaction_id: int):
    get_ledger().delete_transaction(transaction_id)
    return jsonify({"deleted": transaction_id})


# ----------------------------------------------------------------------
# Income
# ----------------------------------------------------------------------
@bp.get("/income")
def get_income():
    reference, time_range = parse_period_args(request.args)
    income = get_ledger().get_income_for_period(reference, time_range)
    return jsonify({"income": income, "range": time_range.value, "date": reference.isoformat()})


@bp.put("/income/<month>")
def set_income(month: str):
    form = BudgetForm.from_mapping(_json_body(), require_category=False, default_month=month)
    form.raw_data["month"] = month
    form.validate()
    form.raise_for_errors("Invalid income")
    get_ledger().set_income(form.amount, form.month)
    return jsonify({"month": form.month, "income": form.amount})


# ----------------------------------------------------------------------
# Reports
# ----------------------------------------------------------------------
@bp.get("/reports/trend")
def monthly_trend():
    raw = request.args.get("months", "")
    keys = [key.strip() for key in raw.split(",") if key.strip()] or None
    try:
        trend = get_ledger().monthly_trend(keys)
    except ValueError as exc:
        raise ValidationError(str(exc), {"months": ["Months must look like YYYY-MM."]}) from exc
    return jsonify(trend)


@bp.get("/reports/cash-flow")
def cash_flow():
    reference, time_range = parse_period_args(request.args)
    return jsonify(get_ledger().cash_flow(reference, time_range))


@bp.get("/reports/distribution")
def expense_distribution():
    reference, time_range = parse_period_args(request.args)
    summary = get_ledger().summary(reference, time_range)
    return jsonify(budgeting.expense_distribution(summary.totals))


# ----------------------------------------------------------------------
# Settings, export and import
# ----------------------------------------------------------------------
@bp.get("/settings")
def get_settings():
    return jsonify(get_ledger().settings.to_dict())


@bp.put("/settings")
def update_settings():
    payload = _json_body()
    unknown = sorted(set(payload) - set(_SETTINGS_FIELDS))
    if unknown:
        raise ValidationError(
            f"Unknown settings: {', '.join(unknown)}", {key: ["Unknown setting."] for key in unknown}
        )

    changes: dict[str, Any] = {}
    errors: dict[str, list[str]] = {}
    for key, value in payload.items():
        if key == "monthlyIncome":
            try:
                changes["monthly_income"] = check_amount(value, label="Monthly income")
            except ValueError as exc:
                errors[key] = [str(exc)]
        elif key == "theme" and value not in ("light", "dark"):
            errors[key] = ["Theme must be light or dark."]
        elif key == "notifications" and not isinstance(value, bool):
            errors[key] = ["Notifications must be true or false."]
        elif key == "currency" and not (isinstance(value, str) and value.strip()):
            errors[key] = ["Currency is required."]
        elif key == "selectedDate":
            try:
                changes["selected_date"] = _parse_day(str(value), key)
            except ValidationError as exc:
                errors.update(exc.errors)
        else:
            changes[_SETTINGS_FIELDS[key]] = value
    if errors:
        raise ValidationError("Invalid settings", errors)

    ledger = get_ledger()
    selected = changes.pop("selected_date", None)
    time_range = changes.pop("time_range", None)
    try:
        if selected is not None or time_range is not None:
            ledger.select_period(selected, time_range)
    except ValueError as exc:
        raise ValidationError(str(exc), {"timeRange": ["Unknown time range."]}) from exc
    settings = ledger.update_settings(**changes) if changes else ledger.settings
    return jsonify(settings.to_dict())


@bp.get("/export")
def export_backup():
    body = export_data(get_ledger().state)
    return Response(
        body,
        mimetype="application/json",
        headers={"Content-Disposition": f"attachment; filename={backup_filename()}"},
    )


@bp.post("/import")
def import_backup():
    state = import_data(get_ledger(), request.get_data(as_text=True))
    return jsonify(
        {
            "categories": len(state.categories),
            "transactions": len(state.transactions),
            "periods": len(state.periods),
        }
    )
