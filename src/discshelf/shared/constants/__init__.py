"""
Shared constants for DiscShelf.

Re-exports the constant classes grouped by domain so callers can import
them from one place.
"""

from .api import APIDefaults, DetailFields, MetadataEndpoints, UPCFields
from .cache import (
    BASE_DAY,
    BASE_HOUR,
    BASE_MINUTE,
    BASE_SECOND,
    BYTES_PER_MB,
    CacheDefaults,
    CacheEntryFields,
    CacheNamespace,
)
from .matching import (
    LEADING_ARTICLES,
    MIN_RELEASE_YEAR,
    YEAR_LOOKAHEAD,
    ConfidenceFallbackWeights,
    MediaType,
    ReviewThresholds,
    ScoringWeights,
)
from .scanner import BARCODE_PATTERN, ScannerDefaults, ScannerMessages

__all__ = [
    "BARCODE_PATTERN",
    "BASE_DAY",
    "BASE_HOUR",
    "BASE_MINUTE",
    "BASE_SECOND",
    "BYTES_PER_MB",
    "LEADING_ARTICLES",
    "MIN_RELEASE_YEAR",
    "YEAR_LOOKAHEAD",
    "APIDefaults",
    "CacheDefaults",
    "CacheEntryFields",
    "CacheNamespace",
    "ConfidenceFallbackWeights",
    "DetailFields",
    "MediaType",
    "MetadataEndpoints",
    "ReviewThresholds",
    "ScannerDefaults",
    "ScannerMessages",
    "ScoringWeights",
    "UPCFields",
]
