# File: dispatch_tracker/core/config.py
"""
Configuration settings for the dispatch tracker.

This module defines application settings using Pydantic's BaseSettings,
which supports environment variable loading and validation.
"""

from typing import Any, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Thresholds used by the dashboard and report aggregations live here so
    that a deployment can tune them without touching the services.
    """

    PROJECT_NAME: str = "Order Dispatch Tracker"

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_PATH: str = "dispatch_tracker.db"
    DATABASE_URL: Optional[str] = Field(None, validate_default=True)
    DB_ECHO: bool = False

    # Aggregation policy
    DELAY_THRESHOLD_HOURS: float = 48.0  # Orders idle longer than this are delayed
    TOP_SKU_LIMIT: int = 20
    RECENT_ACTIVITY_LIMIT: int = 5

    # Metrics
    ENABLE_METRICS: bool = True

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        extra="ignore",
    )

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str], info) -> Any:
        """Fall back to a local SQLite file when no URL is configured."""
        if isinstance(v, str) and v:
            return v
        path = info.data.get("DATABASE_PATH", "dispatch_tracker.db")
        return f"sqlite:///{path}"

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid logging level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        return v.upper() if v.upper() in valid_levels else "INFO"

    @field_validator("DELAY_THRESHOLD_HOURS")
    @classmethod
    def validate_delay_threshold(cls, v: float) -> float:
        return max(0.0, v)

    @field_validator("TOP_SKU_LIMIT", "RECENT_ACTIVITY_LIMIT")
    @classmethod
    def validate_limits(cls, v: int) -> int:
        """Keep ranking limits between 1 and 1,000 entries."""
        return max(1, min(v, 1000))


# Create settings instance
settings = Settings()
