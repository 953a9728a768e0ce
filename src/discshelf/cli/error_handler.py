"""
CLI Error Handling Utilities

Consistent error output across commands: the error is logged with its
context, and the person at the terminal sees only the short user-facing
message (or a JSON envelope with ``--json``).
"""

from __future__ import annotations

import logging

import typer

from discshelf.cli.json_formatter import format_json_output
from discshelf.shared.error_messages import get_user_message
from discshelf.shared.errors import DiscShelfError
from discshelf.shared.logging import log_operation_error

logger = logging.getLogger(__name__)

EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def handle_cli_error(
    error: BaseException,
    command: str,
    *,
    json_output: bool = False,
) -> int:
    """Report a command failure and return the exit code.

    Args:
        error: The exception that occurred
        command: The CLI command being executed
        json_output: Whether to output JSON format

    Returns:
        Exit code for the CLI command
    """
    if isinstance(error, KeyboardInterrupt):
        logger.warning("Command '%s' interrupted by user", command)
        typer.echo("Interrupted.", err=True)
        return EXIT_INTERRUPTED

    if isinstance(error, DiscShelfError):
        log_operation_error(logger, error, command)
        code = error.code.value
    else:
        logger.exception("Unexpected error in '%s'", command)
        code = "UNEXPECTED_ERROR"

    message = get_user_message(error)
    if json_output:
        payload = format_json_output(
            success=False,
            command=command,
            errors=[message],
            data={"error_code": code},
        )
        typer.echo(payload.decode("utf-8"))
    else:
        typer.echo(f"Error: {message}", err=True)
    return EXIT_FAILURE
