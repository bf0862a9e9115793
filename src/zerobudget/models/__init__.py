"""SQLModel table exports."""

from .document import LedgerDocument

__all__ = ["LedgerDocument"]
