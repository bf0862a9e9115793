"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    """Read a float from the environment, ignoring unparsable values."""

    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        return default


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "ZeroBudget"
    DB_FILENAME = "zerobudget.db"
    DEFAULT_STORE_KEY = "zero-budget-storage"
    DEFAULT_API_URL = "http://localhost:8080"
    TESTING = False

    def __init__(self) -> None:
        self.SECRET_KEY = os.getenv("ZEROBUDGET_SECRET_KEY", "replace-me")
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool("ZEROBUDGET_DEV_MODE", default=True)
        self.DATABASE_URL = os.getenv("ZEROBUDGET_DATABASE_URL", self._build_sqlite_url())
        self.STORE_KEY = os.getenv("ZEROBUDGET_STORE_KEY", self.DEFAULT_STORE_KEY)
        self.API_URL = os.getenv("ZEROBUDGET_API_URL", self.DEFAULT_API_URL).rstrip("/")
        self.REQUEST_TIMEOUT = _env_float("ZEROBUDGET_REQUEST_TIMEOUT", 10.0)
        if not self.DEV_MODE and self.SECRET_KEY == "replace-me":
            raise ValueError("ZEROBUDGET_SECRET_KEY must be set in non-dev mode.")

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite store and logs live."""

        data_root = os.getenv("ZEROBUDGET_DATA_DIR", "instance")
        base_path = Path(data_root).expanduser()
        try:
            path = base_path.resolve()
            path.mkdir(parents=True, exist_ok=True)
            return path
        except PermissionError:
            # Protected install locations fall back to per-user storage.
            fallback_path = Path.home() / ".local" / "share" / self.APP_NAME.lower()
            fallback_path.mkdir(parents=True, exist_ok=True)
            return fallback_path.resolve()

    def _build_sqlite_url(self) -> str:
        """Construct the default SQLite URL inside the data directory."""

        db_path = self.DATA_DIR / self.DB_FILENAME
        return f"sqlite:///{db_path}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        connect_args: dict[str, Any] = {"check_same_thread": False}
        return {"connect_args": connect_args}


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True
    TESTING = False


class TestConfig(BaseConfig):
    """Configuration used by the test-suite and CI."""

    DEBUG = False
    TESTING = True
