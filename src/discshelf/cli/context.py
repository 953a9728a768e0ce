"""
CLI Context Management Module

Holds the global options parsed by the main callback (log level and
config file) in a ContextVar so commands can read them without threading
parameters through every call.
"""

from __future__ import annotations

import contextvars
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class LogLevel(str, Enum):
    """Log level enumeration for type safety."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class CliContext(BaseModel):
    """
    CLI context model for managing global state.

    Attributes:
        log_level: Explicit log level, or None to use the configured one
        config_path: Explicit TOML config file, or None for the default search
    """

    log_level: LogLevel | None = Field(default=None, description="Logging level override")
    config_path: Path | None = Field(default=None, description="Configuration file override")


cli_context_var: contextvars.ContextVar[CliContext | None] = contextvars.ContextVar(
    "cli_context",
    default=None,
)


def get_cli_context() -> CliContext:
    """Get the current CLI context, or defaults if the callback has not run."""
    context = cli_context_var.get()
    if context is None:
        return CliContext()
    return context


def set_cli_context(context: CliContext) -> None:
    """Set the current CLI context."""
    cli_context_var.set(context)


def clear_cli_context() -> None:
    """Clear the current CLI context."""
    cli_context_var.set(None)
