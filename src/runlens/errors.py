"""runlens error codes and exceptions.

Every failure the tool reports carries a code with a human-readable message
and an actionable next step:
- Code: RL-EXXX format
- Message: what went wrong
- Next step: what to run or check
"""
from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """runlens error codes."""

    # Input / configuration errors (E001-E099)
    E001 = "E001"  # Required identifiers or credential missing
    E002 = "E002"  # Invalid .env format
    E003 = "E003"  # Invalid mode specified
    E004 = "E004"  # dev-fixtures mode without a fixture

    # Retrieval errors (E100-E199)
    E100 = "E100"  # Network / transport failure
    E101 = "E101"  # Non-success HTTP status
    E102 = "E102"  # Response body is not JSON

    # Validation errors (E200-E299)
    E200 = "E200"  # Fixture invalid

    # File/IO errors (E300-E399)
    E300 = "E300"  # Output directory not writable
    E301 = "E301"  # Fixture file not found
    E302 = "E302"  # Cannot read file


@dataclass
class RunLensErrorReport:
    """Structured error with code, message, and next step."""

    code: ErrorCode
    message: str
    next_step: str
    details: Optional[str] = None

    def __str__(self) -> str:
        lines = [f"RL-{self.code.value}: {self.message}"]
        if self.details:
            lines.append(f"  Details: {self.details}")
        lines.append(f"  Next step: {self.next_step}")
        return "\n".join(lines)

    def print(self, file=None) -> None:
        """Print the error to stderr (or specified file)."""
        print(str(self), file=file or sys.stderr)


ERROR_TEMPLATES: dict[ErrorCode, tuple[str, str]] = {
    # (message_template, next_step)
    ErrorCode.E001: (
        "Run ID, Thread ID, and API Key are required",
        "Pass --run-id/--thread-id/--api-key or set RUNLENS_* in .env",
    ),
    ErrorCode.E002: (
        "Invalid .env file format",
        "Check .env syntax - each line should be KEY=value",
    ),
    ErrorCode.E003: (
        "Invalid mode: {details}",
        "Use --mode live or --mode dev-fixtures (or set RUNLENS_MODE)",
    ),
    ErrorCode.E004: (
        "dev-fixtures mode needs a fixture file",
        "Pass --fixture or set RUNLENS_FIXTURE",
    ),
    ErrorCode.E100: (
        "Network error: {details}",
        "Check connectivity and RUNLENS_API_BASE",
    ),
    ErrorCode.E101: (
        "API request failed: {details}",
        "Check the identifiers and that the API key can read this thread",
    ),
    ErrorCode.E102: (
        "Response was not valid JSON: {details}",
        "Run with --debug to inspect the raw response",
    ),
    ErrorCode.E200: (
        "Fixture is invalid: {details}",
        "Run 'runlens validate --fixture <file>' to see schema errors",
    ),
    ErrorCode.E300: (
        "Output directory not writable: {details}",
        "Check permissions or use a different --out path",
    ),
    ErrorCode.E301: (
        "Fixture file not found: {details}",
        "Check the path or create one with 'runlens generate-fixture'",
    ),
    ErrorCode.E302: (
        "Cannot read file: {details}",
        "Check file permissions and path",
    ),
}


class RunLensError(Exception):
    """Base class for errors raised while fetching or loading a run."""

    code: ErrorCode = ErrorCode.E100

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InputValidationError(RunLensError):
    """Required inputs are missing; raised before any network call."""

    code = ErrorCode.E001


class TransportError(RunLensError):
    """The request never produced an HTTP response."""

    code = ErrorCode.E100


class ProtocolError(RunLensError):
    """The API answered with a non-success status."""

    code = ErrorCode.E101

    def __init__(self, message: str, status_code: int, body: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class DecodeError(RunLensError):
    """A success response whose body is not JSON. ``raw_text`` keeps the body."""

    code = ErrorCode.E102

    def __init__(self, message: str, raw_text: str) -> None:
        super().__init__(message)
        self.raw_text = raw_text


def make_error(code: ErrorCode, details: Optional[str] = None) -> RunLensErrorReport:
    """Create an error report from a code with optional details."""
    template = ERROR_TEMPLATES.get(code, ("Unknown error", "Run with --verbose"))
    message_template, next_step = template

    if details and "{details}" in message_template:
        message = message_template.format(details=details)
    elif details:
        message = f"{message_template}: {details}"
    else:
        message = message_template.replace(": {details}", "")

    return RunLensErrorReport(
        code=code,
        message=message,
        next_step=next_step,
        details=details if "{details}" not in message_template else None,
    )


def error_exit(code: ErrorCode, details: Optional[str] = None, exit_code: int = 1) -> None:
    """Print an error and exit with the specified code."""
    make_error(code, details).print()
    sys.exit(exit_code)


# Verbose mode flag (set by CLI)
_verbose_mode: bool = False


def set_verbose(verbose: bool) -> None:
    global _verbose_mode
    _verbose_mode = verbose


def is_verbose() -> bool:
    return _verbose_mode


def handle_exception(exc: Exception, code: ErrorCode, details: Optional[str] = None) -> None:
    """Print a formatted error; in verbose mode also the traceback."""
    import traceback

    make_error(code, details or str(exc)).print()

    if _verbose_mode:
        print("\n--- Full Traceback ---", file=sys.stderr)
        traceback.print_exc()
