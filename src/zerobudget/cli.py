"""Flask CLI commands for ZeroBudget."""

from __future__ import annotations

from pathlib import Path

import click

from .errors import BackupFormatError


def init_app(app) -> None:
    """Register CLI commands on the Flask app."""

    @app.cli.command("zerobudget-seed")
    @click.option("--months", default=3, show_default=True, help="Number of months to seed")
    def zerobudget_seed(months: int) -> None:
        """Seed demo categories, budgets and transactions."""

        from .extensions import get_ledger
        from .services.seed import run_demo_seed

        summary = run_demo_seed(get_ledger(), months=months)
        click.echo(
            f"Seeded {summary.categories} categories, {summary.transactions} transactions "
            f"across {summary.periods} months."
        )

    @app.cli.command("zerobudget-export")
    @click.argument("output", required=False, type=click.Path(dir_okay=False, path_type=Path))
    def zerobudget_export(output: Path | None) -> None:
        """Write a full JSON backup of the ledger."""

        from .extensions import get_ledger
        from .services.backup import backup_filename, write_backup

        path = write_backup(get_ledger().state, output or Path(backup_filename()))
        click.echo(f"Backup written: {path}")

    @app.cli.command("zerobudget-import")
    @click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
    def zerobudget_import(source: Path) -> None:
        """Replace the ledger with the contents of a JSON backup."""

        from .extensions import get_ledger
        from .services.backup import import_data

        try:
            state = import_data(get_ledger(), source.read_text(encoding="utf-8"))
        except BackupFormatError as exc:
            raise click.ClickException(str(exc)) from exc
        click.echo(
            f"Imported {len(state.categories)} categories and {len(state.transactions)} transactions."
        )

    @app.cli.command("zerobudget-export-csv")
    @click.argument("output", type=click.Path(dir_okay=False, path_type=Path))
    def zerobudget_export_csv(output: Path) -> None:
        """Export every transaction to CSV."""

        from .extensions import get_ledger
        from .services.backup import export_transactions_csv

        path = export_transactions_csv(transactions=get_ledger().transactions, output_path=output)
        click.echo(f"CSV written: {path}")

    @app.cli.command("zerobudget-reset")
    @click.confirmation_option(prompt="Erase every category, transaction and budget?")
    def zerobudget_reset() -> None:
        """Clear the ledger back to an empty state."""

        from .extensions import get_ledger

        get_ledger().reset()
        click.echo("Ledger reset.")
