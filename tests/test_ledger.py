"""Tests for the period-bucketed budget ledger."""

from __future__ import annotations

import copy
from datetime import date

import pytest

from zerobudget.domain.entities import CategoryKind, Transaction, TransactionKind
from zerobudget.domain.periods import TimeRange
from zerobudget.errors import NotFoundError, ValidationError
from zerobudget.services.ledger import BudgetLedger


def test_untouched_period_returns_defaults(ledger: BudgetLedger):
    assert ledger.get_budget_for_period(date(2031, 7, 4)) == {}
    for time_range in TimeRange:
        assert ledger.get_income_for_period(date(2031, 7, 4), time_range) == 0
    # Reads never materialize buckets.
    assert ledger.period_keys() == []


def test_set_income_overwrites(ledger: BudgetLedger):
    ledger.set_income(4000, "2024-03")
    ledger.set_income(4200, "2024-03")
    assert ledger.get_income_for_period(date(2024, 3, 15)) == 4200


def test_set_category_budget_is_idempotent(ledger: BudgetLedger):
    ledger.set_category_budget("Rent", 500, "2024-03")
    once = copy.deepcopy(ledger.state)
    ledger.set_category_budget("Rent", 500, "2024-03")
    assert ledger.state == once
    assert ledger.get_budget_for_period(date(2024, 3, 1)) == {"Rent": 500}


def test_budget_for_unknown_category_is_accepted(ledger: BudgetLedger):
    ledger.set_category_budget("Nonexistent", 75, "2024-03")
    assert ledger.get_budget_for_period(date(2024, 3, 9)) == {"Nonexistent": 75}


def test_invalid_period_key_rejected(ledger: BudgetLedger):
    with pytest.raises(ValueError):
        ledger.set_income(100, "March")


def test_budget_map_is_a_copy(ledger: BudgetLedger):
    ledger.set_category_budget("Rent", 500, "2024-03")
    budgets = ledger.get_budget_for_period(date(2024, 3, 1))
    budgets["Rent"] = 1
    assert ledger.get_budget_for_period(date(2024, 3, 1)) == {"Rent": 500}


def test_transactions_for_month_include_last_day(ledger: BudgetLedger):
    ledger.create_transaction(amount=10, category="Food", occurred_on=date(2024, 2, 29))
    ledger.create_transaction(amount=20, category="Food", occurred_on=date(2024, 3, 1))
    ledger.create_transaction(amount=30, category="Food", occurred_on=date(2024, 3, 31))
    ledger.create_transaction(amount=40, category="Food", occurred_on=date(2024, 4, 1))

    march = ledger.get_transactions_for_period(date(2024, 3, 15), TimeRange.MONTH)
    assert [txn.amount for txn in march] == [20, 30]


def test_transactions_keep_insertion_order(ledger: BudgetLedger):
    ledger.create_transaction(amount=1, category="A", occurred_on=date(2024, 3, 20))
    ledger.create_transaction(amount=2, category="B", occurred_on=date(2024, 3, 2))
    ids = [txn.id for txn in ledger.get_transactions_for_period(date(2024, 3, 1))]
    assert ids == [1, 2]


def test_record_transaction_rejects_non_positive_amount(ledger: BudgetLedger):
    with pytest.raises(ValidationError) as excinfo:
        ledger.record_transaction(Transaction(id=1, amount=0, category="Food", date=date(2024, 3, 1)))
    assert "amount" in excinfo.value.errors
    assert ledger.transactions == []


def test_record_transaction_rejects_duplicate_id(ledger: BudgetLedger):
    txn = Transaction(id=7, amount=5, category="Food", date=date(2024, 3, 1))
    ledger.record_transaction(txn)
    with pytest.raises(ValidationError):
        ledger.record_transaction(Transaction(id=7, amount=9, category="Food", date=date(2024, 3, 2)))
    assert len(ledger.transactions) == 1


def test_update_and_delete_transaction(ledger: BudgetLedger):
    txn = ledger.create_transaction(amount=12, category="Food", occurred_on=date(2024, 3, 5))
    updated = ledger.update_transaction(txn.id, amount=15, kind="income", date=date(2024, 4, 1))
    assert updated.amount == 15
    assert updated.kind is TransactionKind.INCOME
    assert ledger.get_transaction(txn.id).date == date(2024, 4, 1)

    with pytest.raises(ValidationError):
        ledger.update_transaction(txn.id, amount=-3)
    with pytest.raises(ValidationError):
        ledger.update_transaction(txn.id, colour="red")

    ledger.delete_transaction(txn.id)
    with pytest.raises(NotFoundError):
        ledger.get_transaction(txn.id)


def test_quarter_income_sums_each_month(ledger: BudgetLedger):
    ledger.set_income(1000, "2024-04")
    ledger.set_income(1200, "2024-05")
    ledger.set_income(900, "2024-06")
    ledger.set_income(5000, "2024-07")
    assert ledger.get_income_for_period(date(2024, 5, 10), TimeRange.QUARTER) == 3100


def test_year_and_ytd_income(ledger: BudgetLedger):
    for month in range(1, 13):
        ledger.set_income(100, f"2024-{month:02d}")
    assert ledger.get_income_for_period(date(2024, 6, 15), TimeRange.YEAR) == 1200
    assert ledger.get_income_for_period(date(2024, 6, 15), TimeRange.YTD) == 600


def test_week_income_uses_reference_month(ledger: BudgetLedger):
    ledger.set_income(3000, "2024-03")
    ledger.set_income(9999, "2024-04")
    # Week of Sunday 2024-03-31 runs into April.
    assert ledger.get_income_for_period(date(2024, 3, 31), TimeRange.WEEK) == 3000


def test_summary_scenario(march_ledger: BudgetLedger):
    summary = march_ledger.summary(date(2024, 3, 15), TimeRange.MONTH)
    assert summary.totals.total_budgeted == 2600
    assert summary.totals.total_spent == 2450
    assert summary.totals.total_remaining == 150
    assert summary.income == 5000
    assert summary.remaining_to_allocate == 2400
    payload = summary.to_dict()
    assert payload["fixedExpenses"] == 2000
    assert payload["flexibleExpenses"] == 600


def test_overspent_row(ledger: BudgetLedger):
    ledger.add_category("Rent", kind=CategoryKind.FIXED)
    ledger.set_category_budget("Rent", 2000, "2024-03")
    ledger.create_transaction(amount=2500, category="Rent", occurred_on=date(2024, 3, 3))

    (row,) = ledger.category_rows(date(2024, 3, 1))
    assert row.progress == 125
    assert row.remaining == -500
    assert row.derived.severity == "over"


def test_category_rows_fall_back_to_standing_amount(ledger: BudgetLedger):
    ledger.add_category("Gas", budgeted_amount=150)
    ledger.set_category_budget("Gas", 120, "2024-03")

    (march,) = ledger.category_rows(date(2024, 3, 1))
    (april,) = ledger.category_rows(date(2024, 4, 1))
    assert march.budgeted == 120
    assert april.budgeted == 150

    (quarter,) = ledger.category_rows(date(2024, 3, 1), TimeRange.QUARTER)
    assert quarter.budgeted == 150 + 150 + 120


def test_orphan_rows_for_dangling_names(ledger: BudgetLedger):
    ledger.add_category("Rent", kind=CategoryKind.FIXED)
    ledger.set_category_budget("Vacation", 300, "2024-03")
    ledger.create_transaction(amount=20, category="Deleted", occurred_on=date(2024, 3, 2))

    rows = ledger.category_rows(date(2024, 3, 1))
    assert [row.name for row in rows] == ["Rent", "Vacation", "Deleted"]
    orphans = {row.name: row for row in rows[1:]}
    assert orphans["Vacation"].category_id is None
    assert orphans["Vacation"].kind is CategoryKind.FLEXIBLE
    assert orphans["Deleted"].budgeted == 0
    assert orphans["Deleted"].progress == 0

    assert [row.name for row in ledger.category_rows(date(2024, 3, 1), include_orphans=False)] == ["Rent"]


def test_income_transactions_do_not_count_as_spent(ledger: BudgetLedger):
    ledger.create_transaction(
        amount=3000, category="Salary", occurred_on=date(2024, 3, 1), kind=TransactionKind.INCOME
    )
    assert ledger.spent_by_category(date(2024, 3, 1)) == {}


def test_category_crud(ledger: BudgetLedger):
    rent = ledger.add_category("  Rent ", kind="fixed", budgeted_amount=1500, icon="🏠")
    food = ledger.add_category("Food")
    assert (rent.id, food.id) == (1, 2)
    assert rent.name == "Rent"
    assert rent.kind is CategoryKind.FIXED

    updated = ledger.update_category(rent.id, kind="Non-Monthly", rollover_enabled=True)
    assert updated.kind is CategoryKind.NON_MONTHLY
    assert ledger.get_category(rent.id).rollover_enabled is True

    ledger.delete_category(rent.id)
    assert [c.name for c in ledger.categories] == ["Food"]
    assert ledger.add_category("Gas").id == 3
    with pytest.raises(NotFoundError):
        ledger.get_category(rent.id)


def test_add_category_validation(ledger: BudgetLedger):
    with pytest.raises(ValidationError) as excinfo:
        ledger.add_category("   ", budgeted_amount=-1)
    assert set(excinfo.value.errors) == {"name", "budgeted_amount"}
    assert ledger.categories == []


def test_deleting_category_keeps_budgets_and_transactions(ledger: BudgetLedger):
    category = ledger.add_category("Gym")
    ledger.set_category_budget("Gym", 40, "2024-03")
    ledger.create_transaction(amount=40, category="Gym", occurred_on=date(2024, 3, 4))
    ledger.delete_category(category.id)

    assert ledger.get_budget_for_period(date(2024, 3, 1)) == {"Gym": 40}
    assert len(ledger.transactions) == 1


def test_clear_category_budget(ledger: BudgetLedger):
    ledger.set_category_budget("Rent", 500, "2024-03")
    assert ledger.clear_category_budget("Rent", "2024-03") is True
    assert ledger.clear_category_budget("Rent", "2024-03") is False
    assert ledger.clear_category_budget("Rent", "2030-01") is False


def test_listeners_run_after_each_mutation(ledger: BudgetLedger):
    calls = []
    unsubscribe = ledger.subscribe(lambda state: calls.append(len(state.periods)))
    ledger.set_income(1, "2024-01")
    ledger.set_category_budget("Rent", 2, "2024-02")
    assert calls == [1, 2]

    unsubscribe()
    ledger.set_income(3, "2024-03")
    assert calls == [1, 2]


def test_monthly_trend(march_ledger: BudgetLedger):
    trend = march_ledger.monthly_trend(["2024-02", "2024-03"])
    assert trend[0] == {"month": "2024-02", "label": "February 2024", "income": 0.0, "budgeted": 0.0, "spent": 0}
    assert trend[1]["income"] == 5000
    assert trend[1]["budgeted"] == 2600
    assert trend[1]["spent"] == 2450


def test_cash_flow(march_ledger: BudgetLedger):
    flow = march_ledger.cash_flow(date(2024, 3, 1))
    assert [node["name"] for node in flow["nodes"]] == ["Income", "Rent", "Groceries", "Savings"]
    assert flow["nodes"][-1]["value"] == 2550


def test_select_period_recentres_window(ledger: BudgetLedger):
    settings = ledger.select_period(date(2025, 1, 15), "quarter")
    assert settings.time_range is TimeRange.QUARTER
    assert settings.selected_date == date(2025, 1, 15)
    assert settings.visible_months[6] == "2025-01"

    with pytest.raises(ValidationError):
        ledger.update_settings(language="fr")


def test_reset_clears_everything(march_ledger: BudgetLedger):
    march_ledger.reset()
    assert march_ledger.categories == []
    assert march_ledger.transactions == []
    assert march_ledger.period_keys() == []
