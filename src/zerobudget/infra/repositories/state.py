"""SQLModel implementation of the ledger state repository."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from ...models.document import LedgerDocument
from ..database import SessionFactory


class SQLModelStateRepository:
    """Stores each ledger document as one row keyed by store key."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def load(self, key: str) -> Optional[str]:
        with self.session_factory() as session:
            document = session.get(LedgerDocument, key)
            return document.payload if document is not None else None

    def save(self, key: str, payload: str) -> None:
        with self.session_factory() as session:
            document = session.get(LedgerDocument, key)
            if document is None:
                document = LedgerDocument(key=key, payload=payload)
            else:
                document.payload = payload
                document.updated_at = datetime.now(timezone.utc)
            session.add(document)

    def delete(self, key: str) -> None:
        with self.session_factory() as session:
            document = session.get(LedgerDocument, key)
            if document is not None:
                session.delete(document)
