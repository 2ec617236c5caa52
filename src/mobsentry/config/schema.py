"""Configuration schema definitions using Pydantic Settings.

This module defines all configuration models for mobsentry with proper
validation, defaults, and documentation.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from mobsentry.core.cache import DEFAULT_CACHE_FILE
from mobsentry.core.engine import DEFAULT_CONCURRENCY


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class OutputFormatConfig(str, Enum):
    """Supported output formats for configuration."""

    TABLE = "table"
    JSON = "json"


def _parse_string_list(v: Any) -> list[str]:
    if v is None:
        return []
    if isinstance(v, str):
        return [item.strip() for item in v.split(",") if item.strip()]
    return [str(item) for item in v]


class ScanSettings(BaseModel):
    """Settings for scan operations.

    Controls which files are scanned, which rules run and how many files
    are processed at once.
    """

    concurrency: int = Field(
        default=DEFAULT_CONCURRENCY,
        description="Maximum number of files processed at once (values below 1 become 1)",
    )
    exclude: list[str] = Field(
        default_factory=list,
        description="Extra glob patterns to exclude, on top of the built-in exclusions",
    )
    ignored_rules: list[str] = Field(
        default_factory=list,
        description="Rule ids that are never run",
    )

    @field_validator("concurrency", mode="before")
    @classmethod
    def clamp_concurrency(cls, v: Any) -> int:
        """Clamp concurrency to at least 1 instead of rejecting it."""
        if v is None:
            return DEFAULT_CONCURRENCY
        return max(1, int(v))

    @field_validator("exclude", "ignored_rules", mode="before")
    @classmethod
    def parse_list(cls, v: Any) -> list[str]:
        """Parse comma-separated strings as well as lists."""
        return _parse_string_list(v)


class CacheSettings(BaseModel):
    """Settings for the incremental scan cache."""

    enabled: bool = Field(
        default=True,
        description="Whether unchanged files are served from the cache",
    )
    file_name: str = Field(
        default=DEFAULT_CACHE_FILE,
        description="Cache file name, stored at the project root",
    )
    max_age_days: int = Field(
        default=7,
        ge=0,
        description="Cache entries older than this are pruned after a project scan",
    )

    @field_validator("file_name", mode="before")
    @classmethod
    def validate_file_name(cls, v: Any) -> str:
        """Require a bare file name, not a path."""
        if v is None:
            return DEFAULT_CACHE_FILE
        v = str(v).strip()
        if not v or "/" in v or "\\" in v:
            raise ValueError("file_name must be a plain file name")
        return v

    @property
    def max_age_ms(self) -> int:
        return self.max_age_days * 24 * 60 * 60 * 1000


class OutputSettings(BaseModel):
    """Settings for output formatting.

    Controls how scan results are printed.
    """

    format: OutputFormatConfig = Field(
        default=OutputFormatConfig.TABLE,
        description="Output format for scan results",
    )
    quiet: bool = Field(
        default=False,
        description="Suppress non-essential output",
    )
    verbose: bool = Field(
        default=False,
        description="Enable verbose output",
    )

    @field_validator("format", mode="before")
    @classmethod
    def validate_format(cls, v: Any) -> OutputFormatConfig:
        """Validate and normalize output format."""
        if v is None:
            return OutputFormatConfig.TABLE
        if isinstance(v, OutputFormatConfig):
            return v
        v = str(v).lower()
        try:
            return OutputFormatConfig(v)
        except ValueError:
            valid = ", ".join(f.value for f in OutputFormatConfig)
            raise ValueError(f"format must be one of: {valid}")


class MobsentryConfig(BaseSettings):
    """Main configuration for mobsentry.

    Combines all settings sections into a single configuration object.
    This can be loaded from environment variables, config files, or
    constructed programmatically.
    """

    model_config = SettingsConfigDict(
        env_prefix="MOBSENTRY_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    scan: ScanSettings = Field(
        default_factory=ScanSettings,
        description="Scan operation settings",
    )
    cache: CacheSettings = Field(
        default_factory=CacheSettings,
        description="Incremental cache settings",
    )
    output: OutputSettings = Field(
        default_factory=OutputSettings,
        description="Output settings",
    )
    log_level: LogLevel = Field(
        default=LogLevel.WARNING,
        description="Logging level",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: Any) -> LogLevel:
        """Validate and normalize log level."""
        if v is None:
            return LogLevel.WARNING
        if isinstance(v, LogLevel):
            return v
        v = str(v).lower()
        try:
            return LogLevel(v)
        except ValueError:
            valid = ", ".join(level.value for level in LogLevel)
            raise ValueError(f"log_level must be one of: {valid}")
