"""Caller-supplied sinks for live process output."""

from __future__ import annotations

import os
from collections.abc import Callable
from typing import Protocol, runtime_checkable

import structlog

logger = structlog.get_logger(__name__)

STANDARD_FDS = frozenset({0, 1, 2})


@runtime_checkable
class StreamHandler(Protocol):
    """Receives chunks from one child output stream.

    Implementations may also define `end()`; it is called once after the
    stream is fully drained. It is optional and looked up at the call site.
    """

    def handle(self, data: bytes) -> None: ...


class SupportsFileno(Protocol):
    def fileno(self) -> int: ...


def notify_end(handler: StreamHandler | None) -> None:
    """Call `handler.end()` when a handler is registered and defines it."""

    if handler is None:
        return
    end = getattr(handler, "end", None)
    if end is None:
        return
    try:
        end()
    except Exception:
        logger.warning("Stream handler end notification failed.", exc_info=True)


class FileDescriptorHandler:
    """Write chunks straight to an OS-level file descriptor.

    `end()` closes the descriptor unless it is stdin, stdout or stderr.
    """

    def __init__(self, target: int | SupportsFileno) -> None:
        self._fd = target if isinstance(target, int) else target.fileno()
        self._closed = False

    @property
    def fd(self) -> int:
        return self._fd

    @property
    def is_standard(self) -> bool:
        return self._fd in STANDARD_FDS

    def handle(self, data: bytes) -> None:
        view = memoryview(data)
        while view:
            written = os.write(self._fd, view)
            view = view[written:]

    def end(self) -> None:
        if self.is_standard or self._closed:
            return
        self._closed = True
        os.close(self._fd)


class CallbackHandler:
    """Adapt plain callables to the stream handler capability."""

    def __init__(
        self,
        on_data: Callable[[bytes], None],
        on_end: Callable[[], None] | None = None,
    ) -> None:
        self._on_data = on_data
        self._on_end = on_end

    def handle(self, data: bytes) -> None:
        self._on_data(data)

    def end(self) -> None:
        if self._on_end is not None:
            self._on_end()
