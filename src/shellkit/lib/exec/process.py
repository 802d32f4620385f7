"""Process-control boundary used by shell sessions.

Every call here returns a value that can carry a `ProcessFault` instead of
raising, so callers can keep cleaning up after a failed step and report only
the first failure they saw.
"""

from __future__ import annotations

import subprocess
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import IO, Literal

import structlog

logger = structlog.get_logger(__name__)

ProcessStep = Literal["spawn", "wait", "exit_status"]

DEFAULT_READ_SIZE = 64 * 1024


@dataclass(frozen=True, slots=True)
class ProcessFault:
    """A failure raised by one process-control call."""

    step: ProcessStep
    error: BaseException


def _fault(step: ProcessStep, error: BaseException) -> ProcessFault:
    logger.warning("Process control call failed.", step=step, error=str(error), exc_info=error)
    return ProcessFault(step=step, error=error)


def spawn(
    argv: Sequence[str],
    *,
    env: Mapping[str, str],
) -> subprocess.Popen[bytes] | ProcessFault:
    """Launch `argv` with piped stdout/stderr."""

    try:
        return subprocess.Popen(
            list(argv),
            env=dict(env),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
    except (OSError, TypeError, ValueError, subprocess.SubprocessError) as exc:
        return _fault("spawn", exc)


def wait(process: subprocess.Popen[bytes]) -> ProcessFault | None:
    try:
        process.wait()
    except (OSError, subprocess.SubprocessError) as exc:
        return _fault("wait", exc)
    return None


def signal_terminate(process: subprocess.Popen[bytes]) -> None:
    """Send SIGTERM to the process.

    The child may exit between the returncode check and signal delivery, so
    ProcessLookupError is treated as an expected race.
    """

    if process.poll() is not None:
        return
    try:
        process.terminate()
    except ProcessLookupError:
        return


def exit_status(process: subprocess.Popen[bytes]) -> int | ProcessFault:
    try:
        returncode = process.poll()
    except (OSError, subprocess.SubprocessError) as exc:
        return _fault("exit_status", exc)
    if returncode is None:
        return _fault("exit_status", RuntimeError("Process has not exited."))
    return returncode


class PipeSource:
    """Read end of one child output pipe."""

    def __init__(self, stream: IO[bytes], *, read_size: int = DEFAULT_READ_SIZE) -> None:
        self._stream = stream
        self._read_size = read_size

    def read_available(self) -> bytes | None:
        """Return the bytes currently available, or None once the pipe is closed."""

        try:
            chunk = self._stream.read1(self._read_size)  # type: ignore[attr-defined]
        except ValueError:
            # Read end was closed underneath us.
            return None
        if not chunk:
            return None
        return chunk

    def close(self) -> None:
        self._stream.close()
