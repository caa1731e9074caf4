"""
Configuration management using pydantic-settings.
All settings loaded from environment variables (12-factor app).

These are process settings only. Rule toggles and thresholds live in the
rule configuration store and are reloaded on every invocation.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    db_type: str = Field(default="duckdb", description="Storage backend (duckdb|memory)")
    db_path: str = Field(default="./data/anticheat.duckdb", description="DuckDB file path")

    # API
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")
    api_reload: bool = Field(default=False, description="Enable hot reload")

    # Logging
    log_level: str = Field(default="info", description="Log level")
    log_format: str = Field(default="json", description="Log format (json|console)")

    # Engine
    recent_log_window: int = Field(
        default=100, ge=1, le=1000, description="Recent log entries loaded per invocation"
    )
    invocation_timeout_seconds: float = Field(
        default=10.0, gt=0.0, description="Overall deadline for one detection invocation"
    )
    risk_score_max_retries: int = Field(
        default=5, ge=1, description="Retries for conflicting risk score increments"
    )

    # Development
    dev_mode: bool = Field(default=False, description="Development mode")
    testing: bool = Field(default=False, description="Testing mode")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to ensure singleton behavior.
    """
    return Settings()
