"""Settings loader and singleton manager.

This module handles:
- Environment variable loading from .env files
- Configuration file loading from TOML
- Thread-safe singleton pattern for the CLI's Settings instance

Library components never call get_config() themselves; they receive the
sections they need through their constructors.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from dotenv import load_dotenv

from discshelf.config.models.settings import Settings
from discshelf.shared.errors import ApplicationError, ErrorCode, ErrorContext

logger = logging.getLogger(__name__)

HOME_DIR = ".discshelf"


def default_config_paths() -> list[Path]:
    """Locations searched for a TOML configuration file, in order."""
    return [
        Path("config/config.toml"),
        Path("config.toml"),
        Path.home() / HOME_DIR / "config.toml",
    ]


class SettingsLoader:
    """Thread-safe singleton manager for Settings.

    Uses double-checked locking so repeated reads stay lock-free.
    """

    def __init__(self) -> None:
        self._instance: Settings | None = None
        self._lock = threading.RLock()

    def get_config(self) -> Settings:
        """Get the global settings instance, loading it if necessary."""
        if self._instance is None:
            with self._lock:
                if self._instance is None:
                    self._instance = load_settings()

        return self._instance

    def reload_config(self, config_path: str | Path | None = None) -> Settings:
        """Reload the global settings instance from configuration files."""
        with self._lock:
            self._instance = load_settings(config_path)

        return self._instance


def _load_env_file(env_file: Path = Path(".env")) -> None:
    """Load environment variables from an optional .env file."""
    if env_file.exists():
        load_dotenv(env_file, override=False)
        logger.debug("Loaded environment from %s", env_file)


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from a TOML configuration file or the environment.

    Args:
        config_path: Optional path to a TOML file. If None, the default
            locations are tried before falling back to the environment.

    Returns:
        Settings instance loaded from the first available source

    Raises:
        ApplicationError: If an explicit or discovered file cannot be parsed
    """
    _load_env_file()

    candidates = [Path(config_path)] if config_path else default_config_paths()

    for path in candidates:
        if config_path is None and not path.exists():
            continue
        try:
            settings = Settings.from_toml_file(path)
        except FileNotFoundError as e:
            raise ApplicationError(
                ErrorCode.MISSING_CONFIG,
                f"Configuration file not found: {path}",
                ErrorContext(operation="load_settings", additional_data={"config_path": path}),
                original_error=e,
            ) from e
        except (ValueError, TypeError) as e:
            raise ApplicationError(
                ErrorCode.CONFIGURATION_ERROR,
                f"Invalid configuration in {path}: {e}",
                ErrorContext(operation="load_settings", additional_data={"config_path": path}),
                original_error=e,
            ) from e
        logger.debug("Loaded configuration from %s", path)
        return _warn_on_missing_keys(settings)

    return _warn_on_missing_keys(Settings())


def _warn_on_missing_keys(settings: Settings) -> Settings:
    if not settings.api.metadata.api_key:
        logger.warning(
            "No metadata API key configured; set DISCSHELF_API__METADATA__API_KEY "
            "to enable title matching",
        )
    return settings


_loader = SettingsLoader()


def get_config() -> Settings:
    """Get the global settings instance (thread-safe)."""
    return _loader.get_config()


def reload_config(config_path: str | Path | None = None) -> Settings:
    """Reload the global settings instance from configuration files."""
    return _loader.reload_config(config_path)


__all__ = [
    "SettingsLoader",
    "default_config_paths",
    "get_config",
    "load_settings",
    "reload_config",
]
