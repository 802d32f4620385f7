"""Failure kinds reported by shell command execution."""

from __future__ import annotations

UNKNOWN_ERROR_MESSAGE = "Unknown error"


class ShellError(Exception):
    """Base class for every failure `Shell.run` can report."""


class EmptyOutputError(ShellError):
    """Raised when a command succeeded but its stdout is not valid UTF-8."""

    def __init__(self) -> None:
        super().__init__("Invalid or empty shell output.")


class NonZeroExitError(ShellError):
    """Raised when a command exits with a non-zero status."""

    def __init__(self, code: int, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(f"{message} (code: {code})")


class NativeFaultError(ShellError):
    """Raised when the process-control layer itself failed."""

    def __init__(self, wrapped: BaseException) -> None:
        self.wrapped = wrapped
        super().__init__(f"Internal error running process: {wrapped}")
