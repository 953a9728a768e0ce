"""Scanner session configuration model."""

from __future__ import annotations

from pydantic import BaseModel, Field

from discshelf.shared.constants import ScannerDefaults


class ScannerSettings(BaseModel):
    """Scanner session behaviour."""

    continuous: bool = Field(
        default=ScannerDefaults.CONTINUOUS,
        description="Keep scanning after each successful barcode",
    )
    allow_duplicates: bool = Field(
        default=ScannerDefaults.ALLOW_DUPLICATES,
        description="Accept barcodes that were already processed this session",
    )
    haptic_feedback: bool = Field(
        default=ScannerDefaults.HAPTIC_FEEDBACK,
        description="Vibrate on accepted scans when a device supports it",
    )
    min_scan_interval_ms: int = Field(
        default=ScannerDefaults.MIN_SCAN_INTERVAL_MS,
        ge=0,
        description="Minimum time between accepted scans",
    )
    pause_between_scans_ms: int = Field(
        default=ScannerDefaults.PAUSE_BETWEEN_SCANS_MS,
        ge=0,
        description="Delay before announcing readiness for the next barcode",
    )
    stale_threshold_s: float = Field(
        default=ScannerDefaults.STALE_THRESHOLD_S,
        gt=0,
        description="In-flight scans older than this are purged by the sweep",
    )
    sweep_interval_s: float = Field(
        default=ScannerDefaults.SWEEP_INTERVAL_S,
        gt=0,
        description="How often the stale in-flight sweep runs",
    )


__all__ = [
    "ScannerSettings",
]
