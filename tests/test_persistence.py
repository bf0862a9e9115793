"""Tests for state serialization, sanitize-on-load and the ledger store."""

from __future__ import annotations

import json
from datetime import date

from zerobudget.domain.entities import CategoryKind, LedgerState, TransactionKind
from zerobudget.domain.periods import TimeRange, visible_month_window
from zerobudget.services.persistence import LedgerStore, dump_state, load_state, sanitize_state


def test_load_state_handles_missing_and_corrupt_payloads():
    assert load_state(None) == LedgerState()
    assert load_state("") == LedgerState()
    assert load_state("{not json").categories == []
    assert load_state("[1, 2, 3]").transactions == []


def test_dump_and_load_round_trip(march_ledger):
    restored = load_state(dump_state(march_ledger.state))
    assert restored == march_ledger.state


def test_sanitize_defaults_bad_settings():
    state = sanitize_state(
        {
            "budgetData": {},
            "settings": {
                "selectedDate": "not a date",
                "timeRange": "fortnight",
                "visibleMonths": ["2024-01", "garbage"],
                "theme": "neon",
                "currency": "",
                "monthlyIncome": "lots",
            },
        }
    )
    settings = state.settings
    assert settings.selected_date == date.today()
    assert settings.time_range is TimeRange.MONTH
    assert settings.visible_months == visible_month_window(date.today())
    assert settings.theme == "light"
    assert settings.currency == "USD"
    assert settings.monthly_income == 0.0


def test_sanitize_keeps_valid_settings():
    state = sanitize_state(
        {
            "settings": {
                "selectedDate": "2024-03-13T10:00:00.000Z",
                "timeRange": "ytd",
                "visibleMonths": ["2024-02", "2024-03"],
                "theme": "dark",
                "notifications": False,
            }
        }
    )
    assert state.settings.selected_date == date(2024, 3, 13)
    assert state.settings.time_range is TimeRange.YTD
    assert state.settings.visible_months == ["2024-02", "2024-03"]
    assert state.settings.theme == "dark"
    assert state.settings.notifications is False


def test_sanitize_drops_malformed_records():
    document = {
        "budgetData": {
            "categories": [
                {"id": 1, "name": "Rent", "kind": "Fixed", "budgetedAmount": "1500"},
                {"id": 1, "name": "Duplicate"},
                {"id": "x", "name": "Bad id"},
                {"id": 2, "name": "Weird kind", "kind": "Sometimes", "budgetedAmount": -5},
                "not a mapping",
            ],
            "transactions": [
                {"id": 1, "amount": 25, "category": "Rent", "date": "2024-03-02", "type": "expense"},
                {"id": 2, "amount": "NaN", "category": "Rent", "date": "2024-03-02"},
                {"id": 3, "amount": -4, "category": "Rent", "date": "2024-03-02"},
                {"id": 4, "amount": 10, "category": "Salary", "date": "garbage", "type": "income"},
            ],
            "periods": {
                "2024-03": {"budgets": {"Rent": 1500, "Food": "abc"}, "income": 4000},
                "March": {"budgets": {}, "income": 1},
            },
        }
    }
    state = sanitize_state(document)

    assert [(c.id, c.name) for c in state.categories] == [(1, "Rent"), (2, "Weird kind")]
    assert state.categories[0].budgeted_amount == 1500
    assert state.categories[1].kind is CategoryKind.FLEXIBLE
    assert state.categories[1].budgeted_amount == 0

    assert [t.id for t in state.transactions] == [1, 4]
    assert state.transactions[1].kind is TransactionKind.INCOME
    assert state.transactions[1].date == date.today()

    assert list(state.periods) == ["2024-03"]
    assert state.periods["2024-03"].budgets == {"Rent": 1500}
    assert state.periods["2024-03"].income == 4000


def test_store_saves_after_every_mutation(state_repository):
    store = LedgerStore(state_repository, "zero-budget-storage")
    store.ledger.set_income(3200, "2024-03")

    payload = json.loads(state_repository.load("zero-budget-storage"))
    assert payload["budgetData"]["periods"]["2024-03"]["income"] == 3200

    reopened = LedgerStore(state_repository, "zero-budget-storage")
    assert reopened.ledger.get_income_for_period(date(2024, 3, 1)) == 3200


def test_store_keys_are_independent(state_repository):
    first = LedgerStore(state_repository, "first")
    first.ledger.add_category("Rent")
    second = LedgerStore(state_repository, "second")
    assert second.ledger.categories == []


def test_store_recovers_from_corrupt_payload(state_repository):
    state_repository.save("zero-budget-storage", "{broken")
    store = LedgerStore(state_repository, "zero-budget-storage")
    assert store.ledger.categories == []
    assert store.ledger.period_keys() == []
