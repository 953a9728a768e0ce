"""
JSON Output Formatter for the DiscShelf CLI

Produces the machine-readable envelope printed when ``--json`` is used.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import orjson

from discshelf.shared.errors import ApplicationError, ErrorCode, ErrorContext


def format_json_output(
    success: bool,
    command: str,
    data: Any | None = None,
    errors: list[str] | None = None,
    warnings: list[str] | None = None,
) -> bytes:
    """
    Format command output as JSON.

    Args:
        success: Whether the command executed successfully
        command: The command name (e.g., "lookup")
        data: The command's output data
        errors: List of error messages
        warnings: List of warning messages

    Returns:
        JSON-encoded bytes ready for output

    Raises:
        ApplicationError: If ``data`` cannot be serialised
    """
    errors = errors or []
    warnings = warnings or []

    json_data = {
        "success": success and not errors,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "command": command,
        "data": data,
        "errors": errors,
        "warnings": warnings,
    }

    try:
        return orjson.dumps(json_data, option=orjson.OPT_SORT_KEYS | orjson.OPT_INDENT_2)
    except TypeError as e:
        raise ApplicationError(
            ErrorCode.CLI_OUTPUT_ERROR,
            f"Could not serialise output for '{command}'",
            ErrorContext(operation="format_json_output", additional_data={"command": command}),
            original_error=e,
        ) from e
