"""Thread-safe output accumulation with live handler forwarding."""

from __future__ import annotations

import threading

import structlog

from shellkit.lib.exec.handlers import StreamHandler, notify_end

logger = structlog.get_logger(__name__)


class OutputAggregator:
    """Accumulate one stream's chunks and mirror them to a handler.

    The lock is shared by every aggregator of a session so handler calls for
    stdout and stderr never interleave with each other or with result assembly.
    It must be reentrant: a handler may call back into the session, for
    example to terminate it, while the lock is held.
    """

    def __init__(
        self,
        lock: threading.RLock,
        *,
        name: str,
        handler: StreamHandler | None = None,
    ) -> None:
        self._lock = lock
        self._name = name
        self._handler = handler
        self._buffer = bytearray()
        self._finished = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def data(self) -> bytes:
        """Accumulated bytes; read under the shared lock."""

        return bytes(self._buffer)

    def append(self, chunk: bytes) -> None:
        with self._lock:
            self._buffer.extend(chunk)
            if self._handler is None:
                return
            try:
                self._handler.handle(chunk)
            except Exception:
                logger.warning("Stream handler failed.", stream=self._name, exc_info=True)

    def finish(self) -> None:
        with self._lock:
            if self._finished:
                return
            self._finished = True
            notify_end(self._handler)
