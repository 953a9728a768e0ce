"""
Scanner session constants.
"""

import re


class ScannerDefaults:
    """Default scanner session behaviour."""

    MIN_SCAN_INTERVAL_MS = 2000
    PAUSE_BETWEEN_SCANS_MS = 1500
    STALE_THRESHOLD_S = 30.0
    SWEEP_INTERVAL_S = 30.0
    HAPTIC_DURATION_MS = 100
    CONTINUOUS = True
    ALLOW_DUPLICATES = False
    HAPTIC_FEEDBACK = True


BARCODE_PATTERN = re.compile(r"^\d{8,18}$")


class ScannerMessages:
    """Status messages shown to the person scanning."""

    READY_CONTINUOUS = "Camera ready. Scan barcodes continuously."
    READY_SINGLE = "Camera ready. Position barcode in view."
    READY_NEXT = "Ready for next barcode..."
    PAUSED = "Scanning paused"
    RESUMED = "Scanning resumed"
    STOPPED = "Scanner stopped"
    SCANNED = "Scanned: {barcode}"
    PROCESSING = "Processing: {barcode}"
    DUPLICATE = "Duplicate barcode: {barcode}"
    ALREADY_PROCESSED = "Barcode already processed"
    RATE_LIMITED = "Please wait before scanning again"
    INVALID_FORMAT = "Invalid barcode format (must be 8-18 digits)"
    INVALID_MANUAL = "Please enter a valid barcode (8-18 digits)"
    NOT_SCANNING = "Scanner is not active"
    COMPLETED = "Processed: {barcode}"
    PAUSE_UNSUPPORTED = "Pause is only available in continuous mode"
