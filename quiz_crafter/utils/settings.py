"""Runtime settings, overridable through ``QUIZ_CRAFTER_*`` environment variables."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from quiz_crafter.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from quiz_crafter.constants.storage_constants import DEFAULT_DATABASE_PATH


class Settings(BaseSettings):
    database_path: Path = DEFAULT_DATABASE_PATH
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="QUIZ_CRAFTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


def load_settings() -> Settings:
    return Settings()
