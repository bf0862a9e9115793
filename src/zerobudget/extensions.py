"""Database and ledger-store wiring for the Flask application."""

from __future__ import annotations

from flask import Flask, current_app

from .config import BaseConfig
from .infra.database import bootstrap_database
from .infra.repositories import SQLModelStateRepository
from .services.ledger import BudgetLedger
from .services.persistence import LedgerStore

_EXTENSION_KEY = "zerobudget"


def init_store(app: Flask) -> LedgerStore:
    """Initialize the engine and bind the app's ledger to its store key."""

    config: BaseConfig = app.config["ZEROBUDGET_CONFIG"]
    engine, session_factory = bootstrap_database(config)
    store = LedgerStore(SQLModelStateRepository(session_factory), config.STORE_KEY)
    app.extensions[_EXTENSION_KEY] = {"engine": engine, "store": store}
    return store


def get_store() -> LedgerStore:
    """Return the ledger store of the current application."""

    state = current_app.extensions.get(_EXTENSION_KEY)
    if state is None:  # pragma: no cover - only reachable with a misconfigured app
        raise RuntimeError("Ledger store not initialized")
    return state["store"]


def get_ledger() -> BudgetLedger:
    return get_store().ledger
