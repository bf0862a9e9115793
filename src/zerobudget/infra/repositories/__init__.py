"""Concrete repository implementations using SQLModel."""

from .state import SQLModelStateRepository

__all__ = ["SQLModelStateRepository"]
