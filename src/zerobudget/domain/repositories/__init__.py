"""Repository protocol definitions for domain layer."""

from .state import LedgerStateRepository

__all__ = ["LedgerStateRepository"]
