"""Tests for the Flask CLI commands."""

from __future__ import annotations

import csv
import json

from zerobudget.extensions import get_ledger


def _ledger(app):
    with app.app_context():
        return get_ledger()


def test_seed_command(app):
    runner = app.test_cli_runner()
    result = runner.invoke(args=["zerobudget-seed", "--months", "2"])
    assert result.exit_code == 0, result.output
    assert "Seeded 8 categories" in result.output

    ledger = _ledger(app)
    assert len(ledger.period_keys()) == 2

    again = runner.invoke(args=["zerobudget-seed"])
    assert again.exit_code == 0
    assert len(_ledger(app).categories) == 8


def test_export_and_import_commands(app, tmp_path):
    runner = app.test_cli_runner()
    runner.invoke(args=["zerobudget-seed", "--months", "1"])
    backup = tmp_path / "backup.json"

    result = runner.invoke(args=["zerobudget-export", str(backup)])
    assert result.exit_code == 0, result.output
    document = json.loads(backup.read_text(encoding="utf-8"))
    assert len(document["budgetData"]["categories"]) == 8

    assert runner.invoke(args=["zerobudget-reset", "--yes"]).exit_code == 0
    assert _ledger(app).categories == []

    result = runner.invoke(args=["zerobudget-import", str(backup)])
    assert result.exit_code == 0, result.output
    assert "Imported 8 categories" in result.output
    assert len(_ledger(app).categories) == 8


def test_import_command_rejects_bad_backup(app, tmp_path):
    runner = app.test_cli_runner()
    runner.invoke(args=["zerobudget-seed", "--months", "1"])
    bad = tmp_path / "bad.json"
    bad.write_text('{"notBudgetData": {}}', encoding="utf-8")

    result = runner.invoke(args=["zerobudget-import", str(bad)])
    assert result.exit_code != 0
    assert "budgetData" in result.output
    assert len(_ledger(app).categories) == 8


def test_export_csv_command(app, tmp_path):
    runner = app.test_cli_runner()
    runner.invoke(args=["zerobudget-seed", "--months", "1"])
    output = tmp_path / "out" / "transactions.csv"

    result = runner.invoke(args=["zerobudget-export-csv", str(output)])
    assert result.exit_code == 0, result.output
    with output.open(newline="", encoding="utf-8") as fh:
        rows = list(csv.DictReader(fh))
    assert len(rows) == len(_ledger(app).transactions)
    assert rows[0]["category"] == "Salary"
