"""Tests for the error hierarchy, user messages and input validation."""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from enum import Enum
from pathlib import Path

import pytest

from discshelf.shared.error_messages import (
    DEFAULT_MESSAGE,
    friendly_message,
    get_error_message,
    get_user_message,
)
from discshelf.shared.errors import (
    BarcodeValidationError,
    DetailFetchFailedError,
    DiscShelfError,
    DomainError,
    ErrorCode,
    ErrorContext,
    InfrastructureError,
    NetworkError,
    ProductNotFoundError,
    create_api_error,
    create_network_error,
)
from discshelf.shared.logging import StructuredFormatter, log_operation_error
from discshelf.shared.validation import is_valid_barcode, sanitize_input, validate_barcode


class Color(Enum):
    RED = "red"


class TestErrorContext:
    """Context coercion."""

    def test_primitives_are_coerced(self):
        context = ErrorContext(
            operation="op",
            barcode="012345678905",
            additional_data={"path": Path("/tmp/x"), "color": Color.RED, "price": Decimal("1.5")},
        )

        data = context.safe_dict()

        assert data["operation"] == "op"
        assert data["barcode"] == "012345678905"
        assert data["additional_data"] == {"path": str(Path("/tmp/x")), "color": "red", "price": 1.5}

    def test_non_primitive_rejected(self):
        with pytest.raises(TypeError):
            ErrorContext(additional_data={"bad": object()})

    def test_empty_context_has_additional_data_key(self):
        assert ErrorContext().safe_dict() == {"additional_data": {}}


class TestDiscShelfError:
    """Exception hierarchy."""

    def test_str_includes_code(self):
        error = ProductNotFoundError(ErrorCode.PRODUCT_NOT_FOUND, "No product found for this barcode")

        assert str(error) == "PRODUCT_NOT_FOUND: No product found for this barcode"

    def test_hierarchy(self):
        assert issubclass(BarcodeValidationError, DomainError)
        assert issubclass(ProductNotFoundError, DomainError)
        assert issubclass(NetworkError, InfrastructureError)
        assert issubclass(DetailFetchFailedError, InfrastructureError)
        assert issubclass(InfrastructureError, DiscShelfError)

    def test_to_dict(self):
        cause = ValueError("raw detail")
        error = NetworkError(
            ErrorCode.NETWORK_ERROR,
            "offline",
            ErrorContext(operation="fetch"),
            original_error=cause,
        )

        data = error.to_dict()

        assert data["code"] == "NETWORK_ERROR"
        assert data["context"]["operation"] == "fetch"
        assert data["original_error"] == "raw detail"

    def test_factories(self):
        api_error = create_api_error("bad", "search", status_code=500)
        network_error = create_network_error("down", "search")

        assert api_error.code == ErrorCode.API_REQUEST_FAILED
        assert api_error.context.additional_data == {"status_code": 500}
        assert isinstance(network_error, NetworkError)


class TestUserMessages:
    """User-facing message mapping."""

    def test_network_error_message(self):
        error = create_network_error("ConnectionResetError: [Errno 104]", "lookup")

        assert get_user_message(error) == "Network error - check your internet connection."

    def test_raw_exception_text_is_never_shown(self):
        message = get_user_message(RuntimeError("Traceback: secret internals"))

        assert message == DEFAULT_MESSAGE

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("Permission denied for collection", "You don't have permission to perform this action."),
            ("network error while fetching", "Please check your internet connection and try again."),
            ("Document not found", "The requested item could not be found."),
            (None, DEFAULT_MESSAGE),
            ("weird", DEFAULT_MESSAGE),
        ],
    )
    def test_friendly_message(self, text, expected):
        assert friendly_message(text) == expected

    def test_every_code_has_a_message(self):
        for code in ErrorCode:
            assert get_error_message(code)


class TestValidation:
    """Barcode validation."""

    @pytest.mark.parametrize("barcode", ["12345678", "012345678905", "1" * 18])
    def test_valid(self, barcode):
        assert is_valid_barcode(barcode)

    @pytest.mark.parametrize("barcode", ["", None, "1234567", "1" * 19, "12345abc", "0123 4567 8905"])
    def test_invalid(self, barcode):
        assert not is_valid_barcode(barcode)

    def test_validate_trims(self):
        assert validate_barcode("  012345678905\n") == "012345678905"

    def test_validate_raises(self):
        with pytest.raises(BarcodeValidationError) as exc_info:
            validate_barcode("abc", operation="manual_entry")

        assert exc_info.value.code == ErrorCode.INVALID_BARCODE
        assert exc_info.value.context.operation == "manual_entry"

    def test_sanitize_input(self):
        assert sanitize_input("  <b>Heat</b>  ") == "bHeat/b"
        assert sanitize_input("x" * 600) == "x" * 500
        assert sanitize_input(None) == ""


class TestStructuredLogging:
    """JSON log formatting."""

    def test_formatter_includes_error_fields(self):
        logger = logging.getLogger("discshelf.test_structured")
        records: list[logging.LogRecord] = []

        class Collect(logging.Handler):
            def emit(self, record: logging.LogRecord) -> None:
                records.append(record)

        handler = Collect()
        logger.addHandler(handler)
        try:
            error = ProductNotFoundError(
                ErrorCode.PRODUCT_NOT_FOUND,
                "No product found for this barcode",
                ErrorContext(operation="upc_lookup", barcode="012345678905"),
            )
            log_operation_error(logger, error, level=logging.WARNING)
        finally:
            logger.removeHandler(handler)

        payload = json.loads(StructuredFormatter().format(records[0]))
        assert payload["level"] == "WARNING"
        assert payload["error_code"] == "PRODUCT_NOT_FOUND"
        assert payload["operation"] == "upc_lookup"
        assert payload["context"]["barcode"] == "012345678905"
