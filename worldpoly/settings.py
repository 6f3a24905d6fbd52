"""
Process configuration using pydantic-settings.

Per-game rule toggles live in `config.GameSettings`; this module covers
how the engine process itself runs: logging, the game store backend and
database connection, and the auction countdown owned by the service.
"""

from __future__ import annotations

from enum import Enum
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreBackend(str, Enum):
    """Supported game store backends."""

    MEMORY = "memory"
    SQL = "sql"


class EngineSettings(BaseSettings):
    """
    Engine configuration loaded from environment variables.

    Environment variables (prefix: WORLDPOLY_):
        WORLDPOLY_LOG_LEVEL                 - Root log level (default: INFO)
        WORLDPOLY_AUCTION_COUNTDOWN_SECONDS - Bidding window (default: 5)
        WORLDPOLY_STORE_BACKEND             - memory | sql (default: memory)
        WORLDPOLY_DATABASE_URL              - Async SQLAlchemy URL
        WORLDPOLY_DB_ECHO                   - Echo SQL statements
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="WORLDPOLY_",
    )

    log_level: str = Field(default="INFO")
    auction_countdown_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Seconds an auction stays open after the last accepted bid.",
    )

    store_backend: StoreBackend = Field(
        default=StoreBackend.MEMORY,
        description="Where game documents are kept (memory | sql).",
    )
    database_url: str = Field(
        default="sqlite+aiosqlite:///./worldpoly.db",
        description="Async database connection URL",
    )

    # Connection pool settings (ignored for SQLite)
    db_pool_size: int = Field(default=20, ge=1, le=100)
    db_max_overflow: int = Field(default=10, ge=0, le=50)
    db_pool_timeout: int = Field(default=30, ge=1, le=120)
    db_pool_recycle: int = Field(default=3600, ge=60)
    db_echo: bool = Field(default=False)

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported log level: {v}")
        return level

    @field_validator("database_url")
    @classmethod
    def validate_async_url(cls, v: str) -> str:
        """Ensure the URL names an async driver."""
        if not v.startswith(("sqlite+aiosqlite://", "postgresql+asyncpg://")):
            raise ValueError("WORLDPOLY_DATABASE_URL must use sqlite+aiosqlite:// or postgresql+asyncpg://")
        return v

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    def get_engine_kwargs(self) -> dict:
        """Return SQLAlchemy engine configuration."""
        if self.is_sqlite:
            return {"echo": self.db_echo}
        return {
            "pool_size": self.db_pool_size,
            "max_overflow": self.db_max_overflow,
            "pool_timeout": self.db_pool_timeout,
            "pool_recycle": self.db_pool_recycle,
            "echo": self.db_echo,
            "pool_pre_ping": True,
        }


@lru_cache
def get_settings() -> EngineSettings:
    """
    Cached settings singleton.

    Returns the same EngineSettings instance across the application.
    """
    return EngineSettings()
