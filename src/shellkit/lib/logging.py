"""Logging setup for the CLI and library callers.

The exec layer logs through structlog while the config loader uses stdlib
`logging`. Both are rendered by the same structlog renderer onto stderr, so
command output on stdout is never mixed with diagnostics.
"""

from __future__ import annotations

import logging as std_logging
import sys

import structlog
from structlog.typing import Processor

_LEVELS_BY_VERBOSITY = (std_logging.WARNING, std_logging.INFO, std_logging.DEBUG)


def level_for_verbosity(verbosity: int) -> int:
    """Map a `-v` count to a log level; anything past `-vv` stays at DEBUG."""

    index = min(max(verbosity, 0), len(_LEVELS_BY_VERBOSITY) - 1)
    return _LEVELS_BY_VERBOSITY[index]


def _shared_processors(json_mode: bool) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if json_mode:
        processors.append(structlog.processors.format_exc_info)
    return processors


def _renderer(json_mode: bool) -> Processor:
    if json_mode:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def configure_logging(json_mode: bool = False, verbosity: int = 0) -> None:
    """Configure structlog and stdlib logging to share one stderr renderer."""

    level = level_for_verbosity(verbosity)
    renderer = _renderer(json_mode)

    handler = std_logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
            foreign_pre_chain=[structlog.stdlib.add_logger_name, *_shared_processors(json_mode)],
        )
    )
    std_logging.basicConfig(level=level, handlers=[handler], force=True)

    structlog.configure(
        processors=[*_shared_processors(json_mode), renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )
