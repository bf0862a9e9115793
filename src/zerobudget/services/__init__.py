"""Service module exports."""

from . import backup, budgeting, ledger, persistence, remote, seed

__all__ = [
    "backup",
    "budgeting",
    "ledger",
    "persistence",
    "remote",
    "seed",
]
