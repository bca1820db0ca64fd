"""Application configuration via Pydantic BaseSettings."""

from __future__ import annotations

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    development = "development"
    staging = "staging"
    production = "production"


class Settings(BaseSettings):
    """Client settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Backend
    API_BASE_URL: str = "http://localhost:8081/api"
    HTTP_TIMEOUT: float = 30.0

    # Environment
    ENVIRONMENT: Environment = Environment.development

    # Logging
    LOG_LEVEL: str = "INFO"

    # Durable client storage (token + cached user survive restarts)
    STATE_DIR: Path = Path.home() / ".dealdesk"
    STORAGE_FILE_NAME: str = "storage.json"

    # Views
    LOGIN_PATH: str = "/login"
    DEFAULT_LANDING_PATH: str = "/deals"

    @property
    def storage_path(self) -> Path:
        """Location of the durable storage file."""
        return self.STATE_DIR.expanduser() / self.STORAGE_FILE_NAME


@lru_cache
def get_settings() -> Settings:
    """Singleton settings instance."""
    return Settings()
