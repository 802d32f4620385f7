"""Logging configuration tests."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator

import pytest
import structlog

from shellkit.lib.logging import configure_logging, level_for_verbosity


@pytest.fixture
def restore_logging() -> Iterator[None]:
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


@pytest.mark.parametrize(
    ("verbosity", "expected"),
    [
        pytest.param(-1, logging.WARNING, id="negative"),
        pytest.param(0, logging.WARNING, id="default"),
        pytest.param(1, logging.INFO, id="verbose"),
        pytest.param(2, logging.DEBUG, id="very-verbose"),
        pytest.param(5, logging.DEBUG, id="capped"),
    ],
)
def test_level_for_verbosity(verbosity: int, expected: int) -> None:
    assert level_for_verbosity(verbosity) == expected


@pytest.mark.usefixtures("restore_logging")
def test_json_mode_renders_stdlib_and_structlog_events(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(json_mode=True)

    logging.getLogger("shellkit.config-check").warning("Ignoring unknown key '%s'.", "extra")
    structlog.get_logger("shellkit.exec-check").warning("Process control call failed.", step="wait")
    structlog.get_logger("shellkit.exec-check").info("Filtered out at default verbosity.")

    lines = [json.loads(line) for line in capsys.readouterr().err.splitlines() if line]
    assert [line["event"] for line in lines] == [
        "Ignoring unknown key 'extra'.",
        "Process control call failed.",
    ]
    assert lines[0]["level"] == "warning"
    assert lines[0]["logger"] == "shellkit.config-check"
    assert lines[1]["step"] == "wait"


@pytest.mark.usefixtures("restore_logging")
def test_console_mode_writes_to_stderr_only(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(verbosity=1)

    structlog.get_logger("shellkit.exec-check").info("Running shell command.")

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "Running shell command." in captured.err
