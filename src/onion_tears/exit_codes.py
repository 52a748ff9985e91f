"""Standardized CLI exit codes for onion-tears.

Exit code scheme:

    0  SUCCESS        -- analysis completed, no threshold errors (or gate not requested)
    1  GENERAL_ERROR  -- unexpected failure, unreadable input, unsupported file
    2  USAGE_ERROR    -- invalid arguments, bad flags, unknown command (Click default)
    5  GATE_FAILURE   -- --fail-on-error was given and a function hit the error threshold

CI jobs can tell "functions are too complex" (5) apart from "the tool crashed" (1).
"""

from __future__ import annotations

import click

# ---------------------------------------------------------------------------
# Exit code constants
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_ERROR: int = 1
EXIT_USAGE: int = 2
EXIT_GATE_FAILURE: int = 5

DESCRIPTIONS: dict[int, str] = {
    EXIT_SUCCESS: "success",
    EXIT_ERROR: "unexpected error",
    EXIT_USAGE: "invalid usage (bad arguments or flags)",
    EXIT_GATE_FAILURE: "complexity gate failed",
}

# ---------------------------------------------------------------------------
# Custom exceptions (caught by the click error handler)
# ---------------------------------------------------------------------------


class OnionTearsError(click.ClickException):
    """Base class for onion-tears errors with exit codes."""

    def __init__(self, message: str, exit_code: int = EXIT_ERROR):
        super().__init__(message)
        self.exit_code = exit_code

    def format_message(self) -> str:
        return self.message


class SourceNotFoundError(OnionTearsError):
    """Raised when a file given on the command line does not exist."""

    def __init__(self, path: str):
        super().__init__(f"File not found at path: {path}")
        self.path = path


class UnsupportedLanguageError(OnionTearsError):
    """Raised when no grammar is known for a file extension."""

    def __init__(self, path: str):
        super().__init__(f"Unsupported file type (expected .js/.jsx/.ts/.tsx): {path}")
        self.path = path


class ConfigError(OnionTearsError):
    """Raised when a configuration file holds invalid threshold values."""

    def __init__(self, message: str):
        super().__init__(f"Invalid configuration: {message}")


class GateFailureError(OnionTearsError):
    """Raised when --fail-on-error is set and a function exceeds the error threshold."""

    def __init__(self, message: str = "Complexity gate failed."):
        super().__init__(message, EXIT_GATE_FAILURE)
