"""
DiscShelf Error Messages Module

This module provides the short, human-readable messages shown to end users
when a lookup or scan fails. Raw exception text is never shown directly;
callers translate a DiscShelfError (or a free-form failure description)
through the helpers below.

The module follows these principles:
- One Source of Truth: All user-facing error messages are centralized here
- User-friendly: Messages are clear and actionable
- Contextual: Messages can include variable substitution
"""

from __future__ import annotations

from typing import Any

from .errors import DiscShelfError, ErrorCode

DEFAULT_MESSAGE = "Something went wrong. Please try again."

ERROR_MESSAGES: dict[ErrorCode, str] = {
    # Validation Errors
    ErrorCode.VALIDATION_ERROR: "Please check your input and try again.",
    ErrorCode.INVALID_BARCODE: "Please enter a valid barcode (8-18 digits).",
    # Lookup Errors
    ErrorCode.PRODUCT_NOT_FOUND: "No product found for this barcode.",
    ErrorCode.METADATA_NOT_FOUND: "The requested item could not be found.",
    ErrorCode.DETAIL_FETCH_FAILED: "Failed to load full movie details. Please try again.",
    # Network and API Errors
    ErrorCode.NETWORK_ERROR: "Network error - check your internet connection.",
    ErrorCode.API_REQUEST_FAILED: "The lookup service returned an error. Please try again.",
    ErrorCode.API_AUTHENTICATION_FAILED: "Authentication failed. Please check your API key.",
    ErrorCode.API_RATE_LIMIT: "Service temporarily unavailable. Please try again later.",
    ErrorCode.API_INVALID_RESPONSE: "The lookup service sent an unexpected response.",
    # Cache Errors
    ErrorCode.CACHE_CORRUPTED: "Cached data was unreadable and has been discarded.",
    ErrorCode.CACHE_CAPACITY_EXCEEDED: "Local cache is full. Older entries will be removed.",
    ErrorCode.CACHE_WRITE_FAILED: "Could not save to the local cache.",
    # Scanner Errors
    ErrorCode.NO_CAPTURE_DEVICE: "No camera devices found.",
    ErrorCode.SCANNER_NOT_INITIALIZED: "Scanner is not ready. Please initialize it first.",
    ErrorCode.SCANNER_HANDLER_FAILED: "Could not process the scanned barcode.",
    # Configuration Errors
    ErrorCode.CONFIGURATION_ERROR: "Configuration error: {error}",
    ErrorCode.MISSING_CONFIG: "Required configuration is missing: {key}",
    # CLI Errors
    ErrorCode.CLI_OUTPUT_ERROR: "Could not write command output.",
    ErrorCode.APPLICATION_ERROR: DEFAULT_MESSAGE,
}

# Substring patterns for free-form failure text, checked in order.
FRIENDLY_PATTERNS: tuple[tuple[str, str], ...] = (
    ("permission denied", "You don't have permission to perform this action."),
    ("network error", "Please check your internet connection and try again."),
    ("not found", "The requested item could not be found."),
    ("authentication failed", "Please sign in and try again."),
    ("quota exceeded", "Service temporarily unavailable. Please try again later."),
    ("invalid argument", "Invalid input. Please check your data and try again."),
)


def get_error_message(error_code: ErrorCode, **kwargs: Any) -> str:
    """Get the user-friendly message for an error code.

    Args:
        error_code: The error code to get message for
        **kwargs: Variables to substitute in the message template

    Returns:
        User-friendly error message with variable substitution. Missing
        substitution variables leave the template untouched.
    """
    template = ERROR_MESSAGES.get(error_code, DEFAULT_MESSAGE)
    try:
        return template.format(**kwargs)
    except (KeyError, IndexError):
        return template


def get_user_message(error: BaseException) -> str:
    """Translate any exception into a message safe to show an end user."""
    if isinstance(error, DiscShelfError):
        return get_error_message(error.code)
    return friendly_message(str(error))


def friendly_message(text: str | None) -> str:
    """Map free-form failure text onto a short user-facing sentence."""
    if not text:
        return DEFAULT_MESSAGE

    lowered = text.lower()
    for pattern, message in FRIENDLY_PATTERNS:
        if pattern in lowered:
            return message
    return DEFAULT_MESSAGE
