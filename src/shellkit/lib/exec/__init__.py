"""Execution engine primitives."""

from shellkit.lib.exec.aggregator import OutputAggregator
from shellkit.lib.exec.errors import (
    EmptyOutputError,
    NativeFaultError,
    NonZeroExitError,
    ShellError,
)
from shellkit.lib.exec.handlers import (
    CallbackHandler,
    FileDescriptorHandler,
    StreamHandler,
    notify_end,
)
from shellkit.lib.exec.process import PipeSource, ProcessFault
from shellkit.lib.exec.session import ProcessSession, SessionOutcome, build_child_env
from shellkit.lib.exec.timeout import SupervisorState, TimeoutSupervisor, default_poll_interval

__all__ = [
    "CallbackHandler",
    "EmptyOutputError",
    "FileDescriptorHandler",
    "NativeFaultError",
    "NonZeroExitError",
    "OutputAggregator",
    "PipeSource",
    "ProcessFault",
    "ProcessSession",
    "SessionOutcome",
    "ShellError",
    "StreamHandler",
    "SupervisorState",
    "TimeoutSupervisor",
    "build_child_env",
    "default_poll_interval",
    "notify_end",
]
