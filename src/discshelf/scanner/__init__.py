"""Barcode scanner session: rate limiting, deduplication and dispatch."""

from __future__ import annotations

from .models import DecodeResult, DecodeSource, HapticDevice, ScanOutcome, ScannerMode, ScanStatus
from .session import ScannerSession

__all__ = [
    "DecodeResult",
    "DecodeSource",
    "HapticDevice",
    "ScanOutcome",
    "ScanStatus",
    "ScannerMode",
    "ScannerSession",
]
