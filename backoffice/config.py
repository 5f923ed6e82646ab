"""Application configuration settings."""
from __future__ import annotations

import os
from decimal import Decimal
from functools import lru_cache

from pydantic import BaseModel, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Runtime toggles -----------------------------------------------------
# Execution environment: "dev" | "test" | "staging" | "prod"
ENV = os.getenv("BACKOFFICE_ENV", "dev").lower()


class Settings(BaseSettings):
    """Environment configuration for the back-office ledger engine."""

    app_env: str = ENV
    database_url: str = "sqlite:///backoffice.db"
    SECRET_KEY: str = "change-me"
    CORS_ALLOW_ORIGINS: list[str] = [
        "http://localhost:3000",
    ]
    SENTRY_DSN: str | None = None
    PROMETHEUS_ENABLED: bool = False
    LOG_LEVEL: str = "INFO"
    ALLOW_DB_CREATE_ALL: bool = False

    # --- Ledger / audit engine -------------------------------------------
    LEDGER_BALANCE_TOLERANCE: Decimal = Decimal("0.001")
    AUDIT_CONTEXT_PLACEHOLDER: str = "N/A"
    SNAPSHOT_FOR_UPDATE: bool = True

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("LEDGER_BALANCE_TOLERANCE")
    @classmethod
    def _non_negative_tolerance(cls, value: Decimal) -> Decimal:
        if value < 0:
            raise ValueError("LEDGER_BALANCE_TOLERANCE must be >= 0")
        return value


class AppInfo(BaseModel):
    name: str = "backoffice-ledger"
    version: str = "0.1.0"


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()


__all__ = ["ENV", "Settings", "AppInfo", "get_settings"]
