"""Tests for the SQLModel-backed ledger document repository."""

from __future__ import annotations

from sqlmodel import select

from zerobudget.models import LedgerDocument


def test_load_missing_key_returns_none(state_repository):
    assert state_repository.load("absent") is None


def test_save_inserts_then_updates(state_repository, session_factory):
    state_repository.save("zero-budget-storage", '{"a": 1}')
    state_repository.save("zero-budget-storage", '{"a": 2}')

    assert state_repository.load("zero-budget-storage") == '{"a": 2}'
    with session_factory() as session:
        rows = session.exec(select(LedgerDocument)).all()
    assert len(rows) == 1
    assert rows[0].key == "zero-budget-storage"


def test_delete_removes_document(state_repository):
    state_repository.save("k", "{}")
    state_repository.delete("k")
    state_repository.delete("k")
    assert state_repository.load("k") is None
