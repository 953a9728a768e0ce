"""DiscShelf configuration: pydantic settings models and the TOML/env loader."""

from __future__ import annotations

from .loader import get_config, load_settings, reload_config
from .models import (
    APISettings,
    AppSettings,
    CacheSettings,
    LoggingSettings,
    MatchingSettings,
    MetadataSettings,
    ScannerSettings,
    Settings,
    UPCSettings,
)

__all__ = [
    "APISettings",
    "AppSettings",
    "CacheSettings",
    "LoggingSettings",
    "MatchingSettings",
    "MetadataSettings",
    "ScannerSettings",
    "Settings",
    "UPCSettings",
    "get_config",
    "load_settings",
    "reload_config",
]
