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


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return int(value)


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "ledgercron"
    DB_FILENAME = "ledgercron.db"
    CRON_SECRET_ENV = "CRON_SECRET"
    TESTING = False

    def __init__(self) -> None:
        self.SECRET_KEY = os.getenv("LEDGERCRON_SECRET_KEY", "replace-me")
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool("LEDGERCRON_DEV_MODE", default=True)
        self.DATABASE_URL = os.getenv("LEDGERCRON_DATABASE_URL", self._build_sqlite_url())
        # Empty string counts as unset: the cron endpoint then rejects every caller.
        self.CRON_SECRET = os.getenv(self.CRON_SECRET_ENV) or None
        self.SCHEDULER_ENABLED = _env_bool("LEDGERCRON_SCHEDULER_ENABLED", default=False)
        self.SCHEDULER_INTERVAL_MINUTES = _env_int("LEDGERCRON_SCHEDULER_INTERVAL_MINUTES", 15)
        if not self.DEV_MODE and self.SECRET_KEY == "replace-me":
            raise ValueError("LEDGERCRON_SECRET_KEY must be set in non-dev mode.")
        if self.SCHEDULER_INTERVAL_MINUTES < 1:
            raise ValueError("LEDGERCRON_SCHEDULER_INTERVAL_MINUTES must be at least 1.")

    def _resolve_data_dir(self) -> Path:
        """Return the directory holding the SQLite file and logs."""

        data_root = os.getenv("LEDGERCRON_DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        db_path = self.DATA_DIR / self.DB_FILENAME
        return f"sqlite:///{db_path}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        if self.DATABASE_URL.startswith("sqlite"):
            return {"connect_args": {"check_same_thread": False}}
        return {"pool_pre_ping": True}


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True


class TestingConfig(BaseConfig):
    """Configuration used by the test suite; never starts the scheduler."""

    TESTING = True

    def __init__(self) -> None:
        super().__init__()
        self.SCHEDULER_ENABLED = False
