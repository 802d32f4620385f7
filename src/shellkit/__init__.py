"""Run shell commands with live output capture and timeouts."""

from shellkit.lib.exec.errors import (
    EmptyOutputError,
    NativeFaultError,
    NonZeroExitError,
    ShellError,
)
from shellkit.lib.exec.handlers import CallbackHandler, FileDescriptorHandler, StreamHandler
from shellkit.lib.shell import Shell, ShellConfig

__version__ = "0.1.0"

__all__ = [
    "CallbackHandler",
    "EmptyOutputError",
    "FileDescriptorHandler",
    "NativeFaultError",
    "NonZeroExitError",
    "Shell",
    "ShellConfig",
    "ShellError",
    "StreamHandler",
    "__version__",
]
