"""
Configuration management for resumable polling.

Per-poll-type limits are plain Pydantic models supplied by the caller. The
process-wide defaults, execution limits, state backend and logging options
are read from the environment using Pydantic Settings.
"""

import re
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError

DEFAULT_MAX_ATTEMPTS = 200
DEFAULT_LIFETIME_SECONDS = 600
DEFAULT_INTERVAL_SECONDS = 3

UNLIMITED_MEMORY = -1

_MEMORY_LIMIT_PATTERN = re.compile(r"^(\d+)([KMG])?$", re.IGNORECASE)
_UNIT_POWERS = {"K": 1, "M": 2, "G": 3}


def parse_memory_limit(value: str | int) -> int:
    """
    Convert a memory limit such as '128M' to bytes.

    Args:
        value: Byte count, optionally suffixed with K, M or G

    Returns:
        Limit in bytes, or -1 when unlimited

    Raises:
        ConfigurationError: If the value cannot be parsed
    """
    if isinstance(value, int):
        if value < UNLIMITED_MEMORY:
            raise ConfigurationError(
                f"Invalid memory limit: {value!r}", context={"memory_limit": value}
            )
        return value

    text = value.strip()
    if text == str(UNLIMITED_MEMORY):
        return UNLIMITED_MEMORY

    match = _MEMORY_LIMIT_PATTERN.match(text)
    if not match:
        raise ConfigurationError(
            f"Invalid memory limit: {value!r}", context={"memory_limit": value}
        )

    number, unit = match.groups()
    if unit is None:
        return int(number)
    return int(number) * 1024 ** _UNIT_POWERS[unit.upper()]


def _check_memory_limit(value: str | int) -> str | int:
    try:
        parse_memory_limit(value)
    except ConfigurationError as e:
        raise ValueError(str(e)) from e
    return value


class PollingConfig(BaseModel):
    """Limits for a single poll type."""

    max_attempts: int = Field(
        default=DEFAULT_MAX_ATTEMPTS,
        ge=1,
        description="Maximum number of unresolved attempts before giving up",
    )
    lifetime_seconds: int = Field(
        default=DEFAULT_LIFETIME_SECONDS,
        ge=1,
        description="Maximum age of the logical poll since it first started",
    )
    interval_seconds: int = Field(
        default=DEFAULT_INTERVAL_SECONDS,
        ge=0,
        description="Delay between attempts and before a rescheduled resumption",
    )
    supports_inline_release: bool = Field(
        default=True,
        description="Whether the container can release the current unit back "
        "onto the queue, rather than requiring a new unit to be enqueued",
    )


class ExecutionLimits(BaseModel):
    """Resource budget of the current execution, as reported by the container."""

    max_execution_seconds: float = Field(
        default=0, ge=0, description="Wall-clock budget in seconds (0 = unlimited)"
    )
    memory_limit: str | int = Field(
        default=-1,
        description="Memory budget such as '128M' (-1 = unlimited)",
    )

    @field_validator("memory_limit")
    @classmethod
    def validate_memory_limit(cls, v: str | int) -> str | int:
        """Validate memory limit."""
        return _check_memory_limit(v)


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="POLLING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Poll defaults
    max_attempts: int = Field(
        default=DEFAULT_MAX_ATTEMPTS, description="Default maximum attempts"
    )
    lifetime_seconds: int = Field(
        default=DEFAULT_LIFETIME_SECONDS, description="Default poll lifetime"
    )
    interval_seconds: int = Field(
        default=DEFAULT_INTERVAL_SECONDS, description="Default poll interval"
    )
    supports_inline_release: bool = Field(
        default=True, description="Whether the container supports releasing units"
    )

    # Execution limits
    max_execution_seconds: float = Field(
        default=0, description="Execution time budget in seconds (0 = unlimited)"
    )
    memory_limit: str = Field(
        default="-1", description="Memory budget, e.g. '128M' (-1 = unlimited)"
    )

    # State backend
    state_backend: str = Field(
        default="memory", description="State backend: memory or redis"
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0", description="Redis connection URL"
    )
    state_ttl_seconds: int | None = Field(
        default=None, description="Expiry applied to stored poll state"
    )

    # Logging configuration
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="json", description="Log format")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        if v.lower() not in {"json", "console"}:
            raise ValueError(f"Invalid log format: {v}")
        return v.lower()

    @field_validator("state_backend")
    @classmethod
    def validate_state_backend(cls, v: str) -> str:
        """Validate state backend."""
        if v.lower() not in {"memory", "redis"}:
            raise ValueError(f"Invalid state backend: {v}")
        return v.lower()

    @field_validator("memory_limit")
    @classmethod
    def validate_memory_limit(cls, v: str) -> str:
        """Validate memory limit."""
        return _check_memory_limit(v)

    @model_validator(mode="after")
    def validate_state_ttl(self) -> "Settings":
        """Ensure stored poll state outlives the poll itself."""
        if (
            self.state_ttl_seconds is not None
            and self.state_ttl_seconds <= self.lifetime_seconds
        ):
            raise ValueError(
                f"state_ttl_seconds ({self.state_ttl_seconds}) must exceed "
                f"lifetime_seconds ({self.lifetime_seconds})"
            )
        return self

    @property
    def polling_config(self) -> PollingConfig:
        """Get default polling configuration."""
        return PollingConfig(
            max_attempts=self.max_attempts,
            lifetime_seconds=self.lifetime_seconds,
            interval_seconds=self.interval_seconds,
            supports_inline_release=self.supports_inline_release,
        )

    @property
    def execution_limits(self) -> ExecutionLimits:
        """Get execution limits."""
        return ExecutionLimits(
            max_execution_seconds=self.max_execution_seconds,
            memory_limit=self.memory_limit,
        )


# Global settings instance - initialized lazily to avoid import-time errors
_settings_instance = None


def get_settings() -> Settings:
    """Get the global settings instance, creating it if necessary."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance


def __getattr__(name: str) -> Any:
    """Allow module-level access to settings attributes."""
    if name == "settings":
        return get_settings()
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
