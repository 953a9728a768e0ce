"""Application and logging configuration models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class AppSettings(BaseModel):
    """Application-level settings."""

    name: str = Field(default="DiscShelf", description="Application name")
    version: str = Field(default="0.1.0", description="Application version")
    debug: bool = Field(default=False, description="Enable debug mode")


class LoggingSettings(BaseModel):
    """Logging configuration.

    Controls the log level, the optional JSON log file, and whether console
    output goes through rich or the plain JSON formatter.
    """

    level: str = Field(default="INFO", description="Logging level")
    file: str | None = Field(default=None, description="Optional JSON log file path")
    rich_console: bool = Field(default=True, description="Use rich console output")


__all__ = [
    "AppSettings",
    "LoggingSettings",
]
