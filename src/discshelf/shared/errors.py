"""DiscShelf Error Handling Module

This module defines the error handling system for DiscShelf, providing
structured error classes with context information and user-friendly messages.

The error hierarchy follows these principles:
- One Source of Truth: All error codes are defined in ErrorCode enum
- Structured Context: ErrorContext provides additional information
- User-friendly Messages: Errors can be converted to user-friendly messages
- Proper Exception Chaining: Original exceptions are preserved
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Union

# Type alias for primitive context values (str, int, float, bool only)
PrimitiveContextValue = Union[str, int, float, bool]


class ErrorCode(str, Enum):
    """Error codes for DiscShelf.

    This enum serves as the single source of truth for all error codes
    used throughout the application.
    """

    # Validation Errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_BARCODE = "INVALID_BARCODE"

    # Lookup Errors
    PRODUCT_NOT_FOUND = "PRODUCT_NOT_FOUND"
    METADATA_NOT_FOUND = "METADATA_NOT_FOUND"
    DETAIL_FETCH_FAILED = "DETAIL_FETCH_FAILED"

    # Network and API Errors
    NETWORK_ERROR = "NETWORK_ERROR"
    API_REQUEST_FAILED = "API_REQUEST_FAILED"
    API_AUTHENTICATION_FAILED = "API_AUTHENTICATION_FAILED"
    API_RATE_LIMIT = "API_RATE_LIMIT"
    API_INVALID_RESPONSE = "API_INVALID_RESPONSE"

    # Cache Errors
    CACHE_CORRUPTED = "CACHE_CORRUPTED"
    CACHE_CAPACITY_EXCEEDED = "CACHE_CAPACITY_EXCEEDED"
    CACHE_WRITE_FAILED = "CACHE_WRITE_FAILED"

    # Scanner Errors
    NO_CAPTURE_DEVICE = "NO_CAPTURE_DEVICE"
    SCANNER_NOT_INITIALIZED = "SCANNER_NOT_INITIALIZED"
    SCANNER_HANDLER_FAILED = "SCANNER_HANDLER_FAILED"

    # Configuration Errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    MISSING_CONFIG = "MISSING_CONFIG"

    # CLI Errors
    CLI_OUTPUT_ERROR = "CLI_OUTPUT_ERROR"
    APPLICATION_ERROR = "APPLICATION_ERROR"


def _coerce_primitives(value: Any | None) -> dict[str, PrimitiveContextValue] | None:
    """Coerce additional_data values to primitives.

    Converts Path, Enum, Decimal to primitive types.

    Args:
        value: Input dictionary or None

    Returns:
        Dictionary with primitive values only, or None

    Raises:
        TypeError: If value is not a dict or contains unconvertible types
    """
    if value is None:
        return None

    if not isinstance(value, dict):
        error_msg = f"additional_data must be dict, got {type(value).__name__}"
        raise TypeError(error_msg)

    coerced: dict[str, PrimitiveContextValue] = {}
    for key, val in value.items():
        if isinstance(val, (str, int, float, bool)):
            coerced[key] = val
        elif isinstance(val, Path):
            coerced[key] = str(val)
        elif isinstance(val, Enum):
            coerced[key] = val.value
        elif isinstance(val, Decimal):
            coerced[key] = float(val)
        elif val is None:
            continue
        else:
            error_msg = (
                f"Cannot coerce {type(val).__name__} to primitive type. "
                f"Only str, int, float, bool, Path, Enum, Decimal are allowed."
            )
            raise TypeError(error_msg)

    return coerced


@dataclass(frozen=True)
class ErrorContextModel:
    """Context information for errors.

    Only primitive types (str, int, float, bool) are allowed in
    additional_data so the context always serialises cleanly into logs.

    Attributes:
        operation: Optional operation name that caused the error
        barcode: Optional barcode the operation was working on
        additional_data: Optional dict with primitive values only
    """

    operation: str | None = None
    barcode: str | None = None
    additional_data: dict[str, PrimitiveContextValue] | None = None

    def __post_init__(self) -> None:
        """Post-initialization validation and coercion."""
        if self.additional_data is not None:
            coerced = _coerce_primitives(self.additional_data)
            object.__setattr__(self, "additional_data", coerced)

    def safe_dict(self) -> dict[str, Any]:
        """Export context as a dict for logging and error reporting.

        Returns:
            Dictionary with the populated fields and a guaranteed
            additional_data key.
        """
        data: dict[str, Any] = {}
        if self.operation is not None:
            data["operation"] = self.operation
        if self.barcode is not None:
            data["barcode"] = self.barcode
        data["additional_data"] = dict(self.additional_data or {})
        return data


ErrorContext = ErrorContextModel


class DiscShelfError(Exception):
    """Base exception class for all DiscShelf errors."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        original_error: Exception | None = None,
    ) -> None:
        """Initialize DiscShelfError.

        Args:
            code: Error code from ErrorCode enum
            message: Human-readable error message
            context: Additional context information
            original_error: Original exception that caused this error
        """
        self.code = code
        self.message = message
        self.context = context or ErrorContext()
        self.original_error = original_error

        super().__init__(f"{code.value}: {message}")

    def __str__(self) -> str:
        """Return string representation of the error."""
        return f"{self.code.value}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging.

        Returns:
            Dictionary representation of the error with code, message,
            context, and original_error (if present)
        """
        return {
            "code": self.code.value,
            "message": self.message,
            "context": self.context.safe_dict(),
            "original_error": str(self.original_error) if self.original_error else None,
        }


class DomainError(DiscShelfError):
    """Domain-specific errors.

    These errors occur when business rules are violated, such as a
    malformed barcode or a product the UPC catalog does not know.
    """


class InfrastructureError(DiscShelfError):
    """Infrastructure-related errors.

    These errors occur when interacting with external systems
    like the network, the metadata API, the cache store or a camera.
    """


class BarcodeValidationError(DomainError):
    """Barcode failed format validation (8-18 digits).

    Raised before any I/O is attempted.
    """


class ProductNotFoundError(DomainError):
    """UPC lookup returned no product for the barcode."""


class NetworkError(InfrastructureError):
    """Transport-level failure talking to an external service."""


class CacheCorruptionError(InfrastructureError):
    """A cached entry or index could not be deserialised."""


class CapacityExceededError(InfrastructureError):
    """The persistent cache store rejected a write because it is full."""


class DetailFetchFailedError(InfrastructureError):
    """Full metadata details could not be loaded for a chosen candidate."""


class ScannerUnavailableError(InfrastructureError):
    """The scanner could not bind to a usable capture device."""


class ApplicationError(DiscShelfError):
    """Application-level errors such as configuration or CLI output failures."""


def create_validation_error(
    message: str,
    field: str | None = None,
    operation: str | None = None,
    original_error: Exception | None = None,
) -> DomainError:
    """Create a validation error with context."""
    additional_data: dict[str, PrimitiveContextValue] | None = (
        {"field": field} if field else None
    )
    context = ErrorContext(
        operation=operation,
        additional_data=additional_data,
    )
    return DomainError(
        ErrorCode.VALIDATION_ERROR,
        message,
        context,
        original_error,
    )


def create_api_error(
    message: str,
    operation: str | None = None,
    status_code: int | None = None,
    original_error: Exception | None = None,
) -> InfrastructureError:
    """Create an API error with context."""
    context = ErrorContext(
        operation=operation,
        additional_data={"status_code": status_code} if status_code else None,
    )
    return InfrastructureError(
        ErrorCode.API_REQUEST_FAILED,
        message,
        context,
        original_error,
    )


def create_network_error(
    message: str,
    operation: str | None = None,
    original_error: Exception | None = None,
) -> NetworkError:
    """Create a network error with context."""
    return NetworkError(
        ErrorCode.NETWORK_ERROR,
        message,
        ErrorContext(operation=operation),
        original_error,
    )
