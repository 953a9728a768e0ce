"""Barcode and free-text input validation."""

from __future__ import annotations

import re

from discshelf.shared.constants import BARCODE_PATTERN
from discshelf.shared.errors import BarcodeValidationError, ErrorCode, ErrorContext

MAX_INPUT_LENGTH = 500

_MARKUP_CHARS = re.compile(r"[<>]")


def is_valid_barcode(barcode: str | None) -> bool:
    """Return True for a string of 8 to 18 decimal digits."""
    if not barcode:
        return False
    return BARCODE_PATTERN.fullmatch(barcode) is not None


def validate_barcode(barcode: str | None, *, operation: str = "validate_barcode") -> str:
    """Return the trimmed barcode or raise BarcodeValidationError.

    Args:
        barcode: Raw barcode text
        operation: Operation name recorded on the error context

    Returns:
        The barcode with surrounding whitespace removed

    Raises:
        BarcodeValidationError: If the barcode is not 8-18 digits
    """
    candidate = (barcode or "").strip()
    if not is_valid_barcode(candidate):
        raise BarcodeValidationError(
            ErrorCode.INVALID_BARCODE,
            "Invalid barcode format (must be 8-18 digits)",
            ErrorContext(
                operation=operation,
                additional_data={"length": len(candidate)},
            ),
        )
    return candidate


def sanitize_input(text: str | None, max_length: int = MAX_INPUT_LENGTH) -> str:
    """Trim free text, drop angle brackets and cap its length."""
    if not text:
        return ""
    return _MARKUP_CHARS.sub("", text.strip())[:max_length]
