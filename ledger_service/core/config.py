from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Ledger Service"
    database_url: str = "sqlite:///ledger.db"
    log_level: str = "INFO"

    # Seconds a SQLite writer waits for the database lock.
    sqlite_busy_timeout: float = 15.0

    max_commit_attempts: int = Field(default=3, ge=1)
    retry_backoff_seconds: float = Field(default=0.05, ge=0)

    system_user_name: str = "System"
    system_user_email: str = "system@ledger.local"
    system_api_token: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="LEDGER_",
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
