"""Pytest configuration and shared fixtures for ZeroBudget tests.

Fixtures build ledgers in memory, repositories over a throwaway SQLite file,
and a Flask app whose data directory lives under ``tmp_path``.
"""

from __future__ import annotations

from datetime import date

import pytest
from sqlmodel import create_engine

from zerobudget import create_app
from zerobudget.domain.entities import CategoryKind
from zerobudget.infra.database import create_session_factory, init_database
from zerobudget.infra.repositories import SQLModelStateRepository
from zerobudget.services.ledger import BudgetLedger

# =============================================================================
# Environment
# =============================================================================


@pytest.fixture(autouse=True)
def _isolated_data_dir(tmp_path, monkeypatch: pytest.MonkeyPatch):
    """Keep config-created directories and log files under tmp_path."""

    monkeypatch.setenv("ZEROBUDGET_DATA_DIR", str(tmp_path))


# =============================================================================
# Ledger Fixtures
# =============================================================================


@pytest.fixture()
def ledger() -> BudgetLedger:
    """An empty in-memory ledger."""

    return BudgetLedger()


@pytest.fixture()
def march_ledger(ledger: BudgetLedger) -> BudgetLedger:
    """Ledger with Rent and Groceries budgeted and spent in March 2024.

    Income 5000; Rent 2000 budgeted / 2000 spent; Groceries 600 / 450.
    """

    ledger.add_category("Rent", kind=CategoryKind.FIXED, budgeted_amount=2000)
    ledger.add_category("Groceries", kind=CategoryKind.FLEXIBLE, budgeted_amount=600)
    ledger.set_income(5000, "2024-03")
    ledger.set_category_budget("Rent", 2000, "2024-03")
    ledger.set_category_budget("Groceries", 600, "2024-03")
    ledger.create_transaction(amount=2000, category="Rent", occurred_on=date(2024, 3, 1))
    ledger.create_transaction(amount=300, category="Groceries", occurred_on=date(2024, 3, 9))
    ledger.create_transaction(amount=150, category="Groceries", occurred_on=date(2024, 3, 31))
    return ledger


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture()
def db_engine(tmp_path):
    """Create an isolated SQLite database file for each test."""

    engine = create_engine(f"sqlite:///{tmp_path / 'ledger.db'}", echo=False)
    init_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(db_engine):
    return create_session_factory(db_engine)


@pytest.fixture()
def state_repository(session_factory) -> SQLModelStateRepository:
    return SQLModelStateRepository(session_factory)


# =============================================================================
# Flask Fixtures
# =============================================================================


@pytest.fixture()
def app(tmp_path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("ZEROBUDGET_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("ZEROBUDGET_DATABASE_URL", f"sqlite:///{tmp_path / 'api.db'}")
    monkeypatch.delenv("ZEROBUDGET_STORE_KEY", raising=False)
    app = create_app("testing")
    return app


@pytest.fixture()
def client(app):
    with app.test_client() as client:
        yield client
