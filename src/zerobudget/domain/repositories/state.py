"""Ledger state repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol


class LedgerStateRepository(Protocol):
    """Durable key-value storage for serialized ledger documents."""

    def load(self, key: str) -> Optional[str]:
        """Return the stored payload for ``key`` or None when absent."""
        ...

    def save(self, key: str, payload: str) -> None:
        """Store ``payload`` under ``key``, replacing any previous value."""
        ...

    def delete(self, key: str) -> None:
        """Remove the payload stored under ``key`` if present."""
        ...
