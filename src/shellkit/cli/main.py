"""Cyclopts CLI entry point for shellkit."""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from dataclasses import dataclass, replace
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

from cyclopts import App, Parameter

from shellkit import __version__
from shellkit.lib.config.settings import load_settings
from shellkit.lib.exec.errors import NonZeroExitError, ShellError
from shellkit.lib.exec.handlers import FileDescriptorHandler
from shellkit.lib.shell import Shell

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

SIGINT_EXIT_CODE = 130


@dataclass(frozen=True, slots=True)
class GlobalOptions:
    """Top-level options that apply to all commands."""

    json_mode: bool = False
    verbosity: int = 0


_GLOBAL_OPTIONS: ContextVar[GlobalOptions | None] = ContextVar("_GLOBAL_OPTIONS", default=None)


def get_global_options() -> GlobalOptions:
    """Return parsed global options for current command."""

    return _GLOBAL_OPTIONS.get() or GlobalOptions()


def _extract_global_options(argv: Sequence[str]) -> tuple[list[str], GlobalOptions]:
    json_mode = False
    verbosity = 0
    cleaned: list[str] = []
    for arg in argv:
        if arg == "--json":
            json_mode = True
            continue
        if arg in {"--verbose", "-v"}:
            verbosity += 1
            continue
        if arg == "-vv":
            verbosity += 2
            continue
        cleaned.append(arg)
    return cleaned, GlobalOptions(json_mode=json_mode, verbosity=verbosity)


def _parse_env_pairs(pairs: Sequence[str]) -> dict[str, str]:
    parsed: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Invalid --env value {pair!r}: expected KEY=VALUE.")
        parsed[key.strip()] = value
    return parsed


def exit_code_for(error: ShellError) -> int:
    """Map a shell error to the CLI's own exit status."""

    if isinstance(error, NonZeroExitError):
        if 0 < error.code <= 255:
            return error.code
        if error.code < 0:
            # Killed by a signal; follow the shell convention.
            return 128 + min(-error.code, 127)
    return 1


def _emit_success(output: str, *, echo: bool) -> None:
    if get_global_options().json_mode:
        print(json.dumps({"status": "succeeded", "output": output}))
        return
    if echo and output:
        print(output)


def _emit_failure(error: ShellError, exit_code: int) -> None:
    if get_global_options().json_mode:
        payload: dict[str, object] = {
            "status": "failed",
            "error": type(error).__name__,
            "message": str(error),
            "exit_code": exit_code,
        }
        print(json.dumps(payload))
        return
    print(f"error: {error}", file=sys.stderr)


app = App(
    name="shellkit",
    help="Run shell commands with timeouts and live output capture.",
    version=__version__,
    help_formatter="plain",
)


@app.command(name="run")
def run_command(
    command: str,
    timeout_secs: Annotated[
        float | None,
        Parameter(name="--timeout-secs", help="Terminate the command after this many seconds."),
    ] = None,
    shell: Annotated[
        str | None,
        Parameter(name="--shell", help="Interpreter used as '<shell> -c <command>'."),
    ] = None,
    env: Annotated[
        tuple[str, ...],
        Parameter(
            name="--env",
            help="Extra environment variables in KEY=VALUE form (repeatable).",
            negative_iterable=(),
        ),
    ] = (),
    stream: Annotated[
        bool,
        Parameter(name="--stream", help="Stream stdout/stderr while the command runs."),
    ] = False,
    config: Annotated[
        Path | None,
        Parameter(name="--config", help="Path to a shellkit.toml config file."),
    ] = None,
) -> None:
    """Run one command and print its trimmed output."""

    settings = load_settings(config)
    if shell is not None:
        settings = replace(settings, shell=shell)

    runner = Shell.from_settings(
        settings,
        output_handler=FileDescriptorHandler(sys.stdout) if stream else None,
        error_handler=FileDescriptorHandler(sys.stderr) if stream else None,
    )
    runner.config.env.update(_parse_env_pairs(env))

    if stream:
        sys.stdout.flush()
        sys.stderr.flush()

    try:
        output = runner.run(command, timeout=timeout_secs)
    except ShellError as exc:
        exit_code = exit_code_for(exc)
        _emit_failure(exc, exit_code)
        raise SystemExit(exit_code) from None

    _emit_success(output, echo=not stream)


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point used by `shellkit` and `python -m shellkit`."""

    from shellkit.lib.logging import configure_logging

    args = list(sys.argv[1:] if argv is None else argv)
    cleaned_args, options = _extract_global_options(args)

    # Configure logging early so structlog warnings go to stderr, not stdout.
    configure_logging(json_mode=options.json_mode, verbosity=options.verbosity)

    token = _GLOBAL_OPTIONS.set(options)
    try:
        try:
            app(cleaned_args)
        except KeyboardInterrupt:
            raise SystemExit(SIGINT_EXIT_CODE) from None
        except (ValueError, FileNotFoundError, OSError) as exc:
            logger.debug("CLI command failed.", exc_info=True)
            print(f"error: {exc}", file=sys.stderr)
            raise SystemExit(1) from None
    finally:
        _GLOBAL_OPTIONS.reset(token)
