"""Exception types raised across the budgeting services."""

from __future__ import annotations

from typing import Mapping, Optional


class ZeroBudgetError(Exception):
    """Base class for all application errors."""


class ValidationError(ZeroBudgetError):
    """Input was rejected before any state was mutated."""

    def __init__(self, message: str, errors: Optional[Mapping[str, list[str]]] = None):
        super().__init__(message)
        self.errors: dict[str, list[str]] = {k: list(v) for k, v in (errors or {}).items()}


class NotFoundError(ZeroBudgetError):
    """An entity addressed by id does not exist."""


class TransportError(ZeroBudgetError):
    """A request to the remote budgeting API failed."""

    def __init__(self, message: str, *, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class BackupFormatError(ZeroBudgetError):
    """An exported document could not be parsed or validated."""
