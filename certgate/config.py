"""
Application configuration using pydantic-settings.
Loads from environment variables with .env file support.
"""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./certgate.db"
    sqlite_busy_timeout_ms: int = 5000

    # Application
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR

    # API Settings
    api_v1_prefix: str = "/api/v1"
    project_name: str = "Certification Level Progression Enforcement"
    version: str = "1.0.0"

    # Compare-and-swap retry policy for the progression validator
    max_cas_attempts: int = 5
    cas_retry_backoff_ms: int = 20

    # Coach identity check
    coach_id_pattern: str = r"^[A-Za-z0-9][A-Za-z0-9_.:\-]{0,63}$"
    known_coach_ids: List[str] = []       # non-empty -> static allow-list
    coach_directory_url: str = ""         # non-empty -> ask the identity service
    coach_directory_timeout_seconds: float = 3.0

    # Rate limiting (per client IP)
    rate_limit_api_per_minute: int = 300
    rate_limit_write_per_minute: int = 60  # POST progression requests
    rate_limit_enabled: bool = True


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
