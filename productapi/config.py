"""Configuration loading for the Product API.

This module provides centralized configuration management:
- Load settings from environment variables and .env files
- Validate configuration using pydantic
- Apply explicit overrides with the highest precedence
- Provide typed access to the environment session's timing bounds
"""

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment.

    Uses pydantic-settings for environment variable handling with
    .env file support via python-dotenv. One instance is built per
    application host and passed to it explicitly.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database configuration
    db_connection_string: str = Field(
        default="sqlite:///./data/products.db",
        description="Database connection string (postgresql:// or sqlite:///)",
    )
    db_pool_size: int = Field(
        default=5,
        description="Maximum number of pooled database connections",
    )
    run_migrations: bool = Field(
        default=True,
        description="Create the schema when the application host starts",
    )

    # HTTP configuration
    http_host: str = Field(
        default="0.0.0.0",
        description="Host to listen on",
    )
    http_port: int = Field(
        default=8080,
        description="Port to listen on (0 picks a free port)",
    )

    # Logging configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Log level",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Log format",
    )

    @field_validator("db_connection_string")
    @classmethod
    def validate_connection_string(cls, v: str) -> str:
        """Ensure a connection string is configured."""
        v = v.strip()
        if not v:
            raise ValueError("db_connection_string must not be empty")
        return v

    @field_validator("db_pool_size")
    @classmethod
    def validate_pool_size(cls, v: int) -> int:
        """Ensure pool size is positive."""
        if v <= 0:
            raise ValueError("db_pool_size must be positive")
        return v

    @field_validator("http_port")
    @classmethod
    def validate_http_port(cls, v: int) -> int:
        """Ensure port is in valid range. Zero requests an ephemeral port."""
        if v < 0 or v > 65535:
            raise ValueError("http_port must be between 0 and 65535")
        return v


class EnvironmentSettings(BaseSettings):
    """Timing and image settings for test environment sessions.

    Read from TESTENV_* environment variables so CI can loosen bounds
    without code changes.
    """

    model_config = SettingsConfigDict(
        env_prefix="TESTENV_",
        case_sensitive=False,
        extra="ignore",
    )

    ready_timeout_seconds: float = Field(
        default=60.0,
        description="Maximum wait for the database resource to become ready",
    )
    probe_interval_seconds: float = Field(
        default=0.5,
        description="Pause between readiness and settle probes",
    )
    settle_timeout_seconds: float = Field(
        default=5.0,
        description="Upper bound on the settle step after schema creation",
    )
    settle_probes: int = Field(
        default=3,
        description="Consecutive successful pings required to settle",
    )
    start_timeout_seconds: float = Field(
        default=180.0,
        description="Overall deadline for a session to go live",
    )
    postgres_image: str = Field(
        default="postgres:16-alpine",
        description="Container image for the PostgreSQL resource",
    )

    @field_validator("ready_timeout_seconds", "settle_timeout_seconds", "start_timeout_seconds")
    @classmethod
    def validate_positive_timeout(cls, v: float) -> float:
        """Ensure timeouts are positive."""
        if v <= 0:
            raise ValueError("timeouts must be positive")
        return v

    @field_validator("probe_interval_seconds")
    @classmethod
    def validate_probe_interval(cls, v: float) -> float:
        """Ensure probe interval is non-negative."""
        if v < 0:
            raise ValueError("probe_interval_seconds must be non-negative")
        return v

    @field_validator("settle_probes")
    @classmethod
    def validate_settle_probes(cls, v: int) -> int:
        """Ensure at least one settle probe is required."""
        if v < 1:
            raise ValueError("settle_probes must be at least 1")
        return v


def load_settings(
    env_file: str | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> Settings:
    """Load application settings from environment.

    Args:
        env_file: Optional path to .env file. If not provided,
                 uses the default .env in the current directory.
        overrides: Explicit values that take precedence over the
                 environment and the .env file.

    Returns:
        Validated Settings instance.

    Raises:
        ValidationError: If settings validation fails.
    """
    values = dict(overrides or {})
    if env_file:
        return Settings(_env_file=env_file, **values)  # type: ignore[call-arg]
    return Settings(**values)


def load_environment_settings() -> EnvironmentSettings:
    """Load environment session settings from TESTENV_* variables."""
    return EnvironmentSettings()


__all__ = [
    "EnvironmentSettings",
    "Settings",
    "load_environment_settings",
    "load_settings",
]
