"""Pydantic models for configuration validation."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class LogLevel(StrEnum):
    """Log level enumeration."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    console_level: LogLevel = LogLevel.INFO
    file_level: LogLevel = LogLevel.DEBUG
    log_file: str | None = None


class NamespaceOverride(BaseModel):
    """Per-namespace cache overrides from the config file.

    Only fields that are present in the file are applied; everything else
    keeps the preset value.
    """

    model_config = ConfigDict(extra="forbid")

    default_ttl_ms: int | None = Field(default=None, ge=1)
    max_entries: int | None = None
    enable_auto_cleanup: bool | None = None
    cleanup_interval_ms: int | None = Field(default=None, ge=1)
    track_access: bool | None = None

    def to_overrides(self) -> dict[str, Any]:
        """Return only the explicitly configured values."""
        return self.model_dump(exclude_none=True)


class CachingConfig(BaseModel):
    """Caching configuration."""

    namespaces: dict[str, NamespaceOverride] = Field(default_factory=dict)


class AppSettings(BaseModel):
    """Top-level application configuration."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    caching: CachingConfig = Field(default_factory=CachingConfig)
