"""Configuration domain models."""

from __future__ import annotations

from .api_settings import APISettings, MetadataSettings, UPCSettings
from .app_settings import AppSettings, LoggingSettings
from .cache_settings import CacheSettings
from .matching_settings import MatchingSettings
from .scanner_settings import ScannerSettings
from .settings import Settings

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
]
