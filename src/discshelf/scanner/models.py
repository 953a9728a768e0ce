"""Scanner session types: modes, outcomes and the decode-source boundary."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator, Protocol, Sequence

from discshelf.shared.errors import DiscShelfError


class ScannerMode(str, Enum):
    """Session lifecycle. Only SCANNING accepts decoded barcodes."""

    IDLE = "idle"
    SCANNING = "scanning"
    PAUSED = "paused"


class ScanStatus(str, Enum):
    """Kind of status update produced by a session operation."""

    READY = "ready"
    SCANNED = "scanned"
    PROCESSING = "processing"
    DUPLICATE = "duplicate"
    RATE_LIMITED = "rate_limited"
    INVALID = "invalid"
    IGNORED = "ignored"
    COMPLETED = "completed"
    FAILED = "failed"
    PAUSED = "paused"
    RESUMED = "resumed"
    STOPPED = "stopped"


@dataclass(frozen=True)
class ScanOutcome:
    """Status update returned by a session operation and queued for routing.

    Attributes:
        status: What happened
        message: Short text suitable for showing the person scanning
        barcode: Barcode the update refers to, if any
        error: Failure raised by the handler, for FAILED outcomes
        result: Value returned by the handler, for COMPLETED outcomes
    """

    status: ScanStatus
    message: str
    barcode: str | None = None
    error: DiscShelfError | None = None
    result: Any = None

    @property
    def accepted(self) -> bool:
        return self.status in (ScanStatus.SCANNED, ScanStatus.COMPLETED)


@dataclass(frozen=True)
class DecodeResult:
    """One frame from a decode source.

    A frame carries either decoded ``text``, a decoder ``error``, or
    neither, which is the normal "no barcode in this frame" signal.
    """

    text: str | None = None
    error: Exception | None = None

    @property
    def not_found(self) -> bool:
        return self.text is None and self.error is None


class DecodeSource(Protocol):
    """Barcode decoder bound to a capture device."""

    def list_devices(self) -> Sequence[str]:
        """Available capture device identifiers."""
        ...

    def frames(self) -> AsyncIterator[DecodeResult]:
        """Stream decode results until the source is closed."""
        ...

    def close(self) -> None:
        """Release the capture device."""
        ...


class HapticDevice(Protocol):
    """Vibration motor used to acknowledge an accepted scan."""

    def vibrate(self, duration_ms: int) -> None: ...
