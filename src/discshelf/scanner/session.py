"""Scanner session state machine.

Sequences barcode events from a continuous decode stream: rate-limits
repeated frames, rejects codes that are still being resolved or were
already processed, and hands each admitted barcode to a handler.
Every operation returns a ScanOutcome and also puts it on ``outcomes``.
"""

from __future__ import annotations

import asyncio
import contextlib
import itertools
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from discshelf.config.models import ScannerSettings
from discshelf.scanner.models import (
    DecodeResult,
    DecodeSource,
    HapticDevice,
    ScannerMode,
    ScanOutcome,
    ScanStatus,
)
from discshelf.shared.constants import ScannerDefaults, ScannerMessages
from discshelf.shared.error_messages import get_user_message
from discshelf.shared.errors import (
    ApplicationError,
    DiscShelfError,
    ErrorCode,
    ErrorContext,
    ScannerUnavailableError,
)
from discshelf.shared.logging import log_operation_error
from discshelf.shared.validation import is_valid_barcode

logger = logging.getLogger(__name__)

BarcodeHandler = Callable[[str], Awaitable[Any]]


@dataclass(frozen=True)
class _InFlight:
    admitted_at: float
    token: int


class ScannerSession:
    """Rate-limited, deduplicating barcode intake.

    States are idle, scanning and paused; only scanning accepts decoded
    frames. Manual entry skips the rate limit and the mode check but goes
    through validation and the in-flight and duplicate checks.

    Args:
        handler: Coroutine function resolving one barcode
        settings: Session behaviour, defaults when omitted
        haptics: Optional vibration device
        clock: Monotonic time source in seconds
    """

    def __init__(
        self,
        handler: BarcodeHandler,
        settings: ScannerSettings | None = None,
        *,
        haptics: HapticDevice | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.handler = handler
        self.settings = settings or ScannerSettings()
        self.haptics = haptics
        self._clock = clock

        self.mode = ScannerMode.IDLE
        self.source: DecodeSource | None = None
        self.devices: list[str] = []
        self.outcomes: asyncio.Queue[ScanOutcome] = asyncio.Queue()

        self._in_flight: dict[str, _InFlight] = {}
        self._completed: set[str] = set()
        self._scanned_count = 0
        self._last_accepted_at: float | None = None
        self._tokens = itertools.count(1)

        self._tasks: set[asyncio.Task[ScanOutcome]] = set()
        self._sweep_task: asyncio.Task[None] | None = None
        self._ready_handle: asyncio.TimerHandle | None = None

    @property
    def continuous(self) -> bool:
        return self.settings.continuous

    def is_in_flight(self, barcode: str) -> bool:
        return barcode in self._in_flight

    def is_completed(self, barcode: str) -> bool:
        return barcode in self._completed

    def _emit(self, outcome: ScanOutcome) -> ScanOutcome:
        logger.debug("Scanner %s: %s", outcome.status.value, outcome.message)
        self.outcomes.put_nowait(outcome)
        return outcome

    # Lifecycle

    def initialize(self, source: DecodeSource) -> list[str]:
        """Bind to a decode source.

        Raises:
            ScannerUnavailableError: The source reports no capture devices
        """
        devices = list(source.list_devices())
        if not devices:
            raise ScannerUnavailableError(
                ErrorCode.NO_CAPTURE_DEVICE,
                "No camera devices found",
                ErrorContext(operation="scanner_initialize"),
            )
        self.source = source
        self.devices = devices
        logger.info("Scanner initialized with %d camera(s)", len(devices))
        return devices

    async def start(self) -> ScanOutcome:
        """Enter scanning mode and start the stale in-flight sweep."""
        if self.source is None:
            raise ScannerUnavailableError(
                ErrorCode.SCANNER_NOT_INITIALIZED,
                "Scanner not initialized or no cameras available",
                ErrorContext(operation="scanner_start"),
            )
        if self.mode is ScannerMode.SCANNING:
            logger.warning("Scanner already running")
        self.mode = ScannerMode.SCANNING

        if self._sweep_task is None or self._sweep_task.done():
            self._sweep_task = asyncio.create_task(self._sweep_loop())

        message = ScannerMessages.READY_CONTINUOUS if self.continuous else ScannerMessages.READY_SINGLE
        return self._emit(ScanOutcome(ScanStatus.READY, message))

    def pause(self) -> ScanOutcome:
        if not self.continuous:
            logger.warning("Pause/resume only available in continuous mode")
            return ScanOutcome(ScanStatus.IGNORED, ScannerMessages.PAUSE_UNSUPPORTED)
        if self.mode is not ScannerMode.SCANNING:
            return ScanOutcome(ScanStatus.IGNORED, ScannerMessages.NOT_SCANNING)
        self.mode = ScannerMode.PAUSED
        return self._emit(ScanOutcome(ScanStatus.PAUSED, ScannerMessages.PAUSED))

    def resume(self) -> ScanOutcome:
        if not self.continuous:
            logger.warning("Pause/resume only available in continuous mode")
            return ScanOutcome(ScanStatus.IGNORED, ScannerMessages.PAUSE_UNSUPPORTED)
        if self.mode is not ScannerMode.PAUSED:
            return ScanOutcome(ScanStatus.IGNORED, ScannerMessages.NOT_SCANNING)
        self.mode = ScannerMode.SCANNING
        return self._emit(ScanOutcome(ScanStatus.RESUMED, ScannerMessages.RESUMED))

    async def stop(self) -> ScanOutcome:
        """Return to idle and release the capture source.

        Handlers already running are left to settle.
        """
        self.mode = ScannerMode.IDLE

        if self._ready_handle is not None:
            self._ready_handle.cancel()
            self._ready_handle = None

        sweep, self._sweep_task = self._sweep_task, None
        if sweep is not None and sweep is not asyncio.current_task():
            sweep.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweep

        if self.source is not None:
            try:
                self.source.close()
            except OSError as e:
                logger.warning("Error stopping camera: %s", e)

        logger.info("Scanner stopped")
        return self._emit(ScanOutcome(ScanStatus.STOPPED, ScannerMessages.STOPPED))

    async def reset(self) -> None:
        """Stop and forget every scanned barcode."""
        await self.stop()
        self._in_flight.clear()
        self._completed.clear()
        self._scanned_count = 0
        self._last_accepted_at = None

    # Admission

    def admit(self, barcode: str, *, manual: bool = False) -> ScanOutcome:
        """Run the admission checks and, if they pass, mark the code in flight.

        Checks run in order: mode and rate limit (camera frames only),
        format, in flight, then already processed.
        """
        now = self._clock()

        if not manual:
            if self.mode is not ScannerMode.SCANNING:
                return ScanOutcome(ScanStatus.IGNORED, ScannerMessages.NOT_SCANNING, barcode)
            if self._last_accepted_at is not None:
                elapsed_ms = (now - self._last_accepted_at) * 1000
                if elapsed_ms < self.settings.min_scan_interval_ms:
                    return self._emit(ScanOutcome(ScanStatus.RATE_LIMITED, ScannerMessages.RATE_LIMITED, barcode))

        barcode = (barcode or "").strip()
        if not is_valid_barcode(barcode):
            message = ScannerMessages.INVALID_MANUAL if manual else ScannerMessages.INVALID_FORMAT
            return self._emit(ScanOutcome(ScanStatus.INVALID, message, barcode or None))

        if barcode in self._in_flight:
            return self._emit(
                ScanOutcome(ScanStatus.PROCESSING, ScannerMessages.PROCESSING.format(barcode=barcode), barcode)
            )

        if not self.settings.allow_duplicates and barcode in self._completed:
            message = (
                ScannerMessages.ALREADY_PROCESSED
                if manual
                else ScannerMessages.DUPLICATE.format(barcode=barcode)
            )
            return self._emit(ScanOutcome(ScanStatus.DUPLICATE, message, barcode))

        # A re-scan allowed by allow_duplicates moves the code back into flight
        self._completed.discard(barcode)
        self._in_flight[barcode] = _InFlight(admitted_at=now, token=next(self._tokens))
        self._last_accepted_at = now
        self._scanned_count += 1

        if self.settings.haptic_feedback and self.haptics is not None:
            self.haptics.vibrate(ScannerDefaults.HAPTIC_DURATION_MS)

        return self._emit(ScanOutcome(ScanStatus.SCANNED, ScannerMessages.SCANNED.format(barcode=barcode), barcode))

    # Dispatch

    def _admission_token(self, barcode: str) -> int:
        return self._in_flight[barcode].token

    async def _dispatch(self, barcode: str, token: int) -> ScanOutcome:
        try:
            result = await self.handler(barcode)
        except Exception as e:  # handler failures are reported, never raised
            error = (
                e
                if isinstance(e, DiscShelfError)
                else ApplicationError(
                    ErrorCode.SCANNER_HANDLER_FAILED,
                    f"Barcode handler failed: {e}",
                    ErrorContext(operation="scanner_dispatch", barcode=barcode),
                    original_error=e,
                )
            )
            self._settle(barcode, token, completed=False)
            log_operation_error(logger, error, "scanner_dispatch", {"barcode": barcode})
            outcome = self._emit(ScanOutcome(ScanStatus.FAILED, get_user_message(error), barcode, error=error))
            if self.continuous:
                self._schedule_ready()
            return outcome

        self._settle(barcode, token, completed=True)
        outcome = self._emit(
            ScanOutcome(
                ScanStatus.COMPLETED,
                ScannerMessages.COMPLETED.format(barcode=barcode),
                barcode,
                result=result,
            )
        )
        if self.continuous:
            self._schedule_ready()
        elif self.mode is not ScannerMode.IDLE:
            await self.stop()
        return outcome

    def _settle(self, barcode: str, token: int, *, completed: bool) -> None:
        entry = self._in_flight.get(barcode)
        if entry is not None and entry.token != token:
            # A newer admission of the same code owns the slot after a stale purge
            return
        self._in_flight.pop(barcode, None)
        if completed:
            self._completed.add(barcode)

    def _schedule_ready(self) -> None:
        if self._ready_handle is not None:
            self._ready_handle.cancel()
        loop = asyncio.get_running_loop()
        self._ready_handle = loop.call_later(self.settings.pause_between_scans_ms / 1000, self._announce_ready)

    def _announce_ready(self) -> None:
        self._ready_handle = None
        if self.mode is ScannerMode.SCANNING:
            self._emit(ScanOutcome(ScanStatus.READY, ScannerMessages.READY_NEXT))

    async def scan(self, barcode: str) -> ScanOutcome:
        """Admit a decoded barcode and wait for its handler to settle.

        Returns:
            The rejection outcome, or COMPLETED/FAILED once the handler settles
        """
        outcome = self.admit(barcode)
        if outcome.status is not ScanStatus.SCANNED or outcome.barcode is None:
            return outcome
        return await self._dispatch(outcome.barcode, self._admission_token(outcome.barcode))

    async def submit_manual(self, text: str) -> ScanOutcome:
        """Process a typed barcode, bypassing the decode source and rate limit."""
        outcome = self.admit(text, manual=True)
        if outcome.status is not ScanStatus.SCANNED or outcome.barcode is None:
            return outcome
        return await self._dispatch(outcome.barcode, self._admission_token(outcome.barcode))

    def handle_decode(self, frame: DecodeResult) -> ScanOutcome | None:
        """Admit one decoded frame and dispatch it in the background.

        Empty frames are the normal case and return None. Decoder errors
        are logged and otherwise ignored.
        """
        if frame.error is not None:
            logger.warning("Scanner error: %s", frame.error)
            return None
        if frame.text is None:
            return None

        outcome = self.admit(frame.text)
        if outcome.status is ScanStatus.SCANNED and outcome.barcode:
            task = asyncio.create_task(self._dispatch(outcome.barcode, self._admission_token(outcome.barcode)))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        return outcome

    async def run(self, source: DecodeSource | None = None) -> None:
        """Consume a decode stream until it ends or the session stops.

        Waits for handlers dispatched from the stream before returning.
        """
        source = source or self.source
        if source is None:
            raise ScannerUnavailableError(
                ErrorCode.SCANNER_NOT_INITIALIZED,
                "Scanner not initialized or no cameras available",
                ErrorContext(operation="scanner_run"),
            )

        async for frame in source.frames():
            if self.mode is ScannerMode.IDLE:
                break
            self.handle_decode(frame)

        if self._tasks:
            await asyncio.gather(*list(self._tasks))

    # Stale in-flight recovery

    def purge_stale(self) -> list[str]:
        """Drop in-flight entries older than the stale threshold.

        Only bookkeeping is removed; the handler is never invoked again.

        Returns:
            Barcodes purged
        """
        now = self._clock()
        stale = [
            barcode
            for barcode, entry in self._in_flight.items()
            if now - entry.admitted_at > self.settings.stale_threshold_s
        ]
        for barcode in stale:
            del self._in_flight[barcode]
        if stale:
            logger.warning("Purged %d stale in-flight scan(s): %s", len(stale), ", ".join(stale))
        return stale

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.settings.sweep_interval_s)
            self.purge_stale()

    def stats(self) -> dict[str, Any]:
        """Snapshot of the session for display."""
        return {
            "mode": self.mode.value,
            "is_scanning": self.mode is ScannerMode.SCANNING,
            "is_paused": self.mode is ScannerMode.PAUSED,
            "in_flight": len(self._in_flight),
            "scanned_count": self._scanned_count,
            "scanned_barcodes": sorted(self._completed),
            "has_camera": bool(self.devices),
            "continuous": self.continuous,
        }
