"""shellkit configuration loader: TOML file plus environment overrides."""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, fields
from pathlib import Path
from typing import cast

logger = logging.getLogger(__name__)

DEFAULT_SHELL = "/bin/sh"
DEFAULT_CONFIG_FILENAME = "shellkit.toml"


@dataclass(frozen=True, slots=True)
class ShellkitSettings:
    """Resolved configuration for building a `Shell`."""

    shell: str = DEFAULT_SHELL
    timeout_seconds: float | None = None
    poll_interval_seconds: float | None = None
    env: tuple[tuple[str, str], ...] = ()

    @property
    def env_overrides(self) -> dict[str, str]:
        return dict(self.env)


_SECTION_KEY_MAP: dict[str, dict[str, str]] = {
    "shell": {
        "path": "shell",
    },
    "timeouts": {
        "timeout_seconds": "timeout_seconds",
        "poll_interval_seconds": "poll_interval_seconds",
    },
}

_ENV_OVERRIDE_MAP: dict[str, str] = {
    "SHELLKIT_SHELL": "shell",
    "SHELLKIT_TIMEOUT_SECONDS": "timeout_seconds",
    "SHELLKIT_POLL_INTERVAL_SECONDS": "poll_interval_seconds",
}

_FLOAT_FIELDS = frozenset({"timeout_seconds", "poll_interval_seconds"})


def _coerce_file_value(*, field_name: str, raw_value: object, source: str) -> object:
    if field_name in _FLOAT_FIELDS:
        if isinstance(raw_value, bool) or not isinstance(raw_value, int | float):
            raise ValueError(
                f"Invalid value for '{source}': expected float, got "
                f"{type(raw_value).__name__} ({raw_value!r})."
            )
        value = float(raw_value)
        if value <= 0:
            raise ValueError(f"Invalid value for '{source}': expected a positive number.")
        return value

    if not isinstance(raw_value, str):
        raise ValueError(
            f"Invalid value for '{source}': expected str, got "
            f"{type(raw_value).__name__} ({raw_value!r})."
        )
    normalized = raw_value.strip()
    if not normalized:
        raise ValueError(f"Invalid value for '{source}': expected non-empty string.")
    return normalized


def _coerce_env_table(*, raw_value: object, source: str) -> tuple[tuple[str, str], ...]:
    if not isinstance(raw_value, dict):
        raise ValueError(f"Invalid value for '{source}': expected table.")

    parsed: list[tuple[str, str]] = []
    for key, value in cast("dict[str, object]", raw_value).items():
        if not isinstance(value, str):
            raise ValueError(
                f"Invalid value for '{source}.{key}': expected str, got "
                f"{type(value).__name__} ({value!r})."
            )
        parsed.append((key, value))
    return tuple(parsed)


def _coerce_env_value(*, field_name: str, raw_value: str, env_name: str) -> object:
    if field_name in _FLOAT_FIELDS:
        try:
            value = float(raw_value.strip())
        except ValueError as error:
            raise ValueError(
                f"Invalid environment override '{env_name}': expected float, got {raw_value!r}."
            ) from error
        if value <= 0:
            raise ValueError(
                f"Invalid environment override '{env_name}': expected a positive number."
            )
        return value

    normalized = raw_value.strip()
    if not normalized:
        raise ValueError(
            f"Invalid environment override '{env_name}': expected non-empty string."
        )
    return normalized


def _default_values() -> dict[str, object]:
    defaults = ShellkitSettings()
    return {field.name: getattr(defaults, field.name) for field in fields(ShellkitSettings)}


def _apply_toml_payload(
    *,
    values: dict[str, object],
    payload: dict[str, object],
    path: Path,
) -> None:
    for key, raw_value in payload.items():
        if key == "env":
            values["env"] = _coerce_env_table(raw_value=raw_value, source="env")
            continue

        section_map = _SECTION_KEY_MAP.get(key)
        if section_map is None:
            logger.warning("Ignoring unknown shellkit config key '%s'.", key)
            continue
        if not isinstance(raw_value, dict):
            raise ValueError(f"Invalid value for '{key}' in '{path}': expected table.")
        for section_key, section_value in cast("dict[str, object]", raw_value).items():
            field_name = section_map.get(section_key)
            if field_name is None:
                logger.warning(
                    "Ignoring unknown shellkit config key '%s.%s'.",
                    key,
                    section_key,
                )
                continue
            values[field_name] = _coerce_file_value(
                field_name=field_name,
                raw_value=section_value,
                source=f"{key}.{section_key}",
            )


def _apply_env_overrides(values: dict[str, object]) -> None:
    for env_name, field_name in _ENV_OVERRIDE_MAP.items():
        raw_value = os.getenv(env_name)
        if raw_value is None:
            continue
        values[field_name] = _coerce_env_value(
            field_name=field_name,
            raw_value=raw_value,
            env_name=env_name,
        )


def load_settings(path: Path | None = None) -> ShellkitSettings:
    """Load `shellkit.toml` (or `path`) and apply environment overrides."""

    values = _default_values()
    config_path = path if path is not None else Path.cwd() / DEFAULT_CONFIG_FILENAME
    if config_path.is_file():
        payload_obj = tomllib.loads(config_path.read_text(encoding="utf-8"))
        payload = cast("dict[str, object]", payload_obj)
        _apply_toml_payload(values=values, payload=payload, path=config_path)
    elif path is not None:
        raise FileNotFoundError(f"Config file not found: {config_path}")

    _apply_env_overrides(values)
    return ShellkitSettings(
        shell=cast("str", values["shell"]),
        timeout_seconds=cast("float | None", values["timeout_seconds"]),
        poll_interval_seconds=cast("float | None", values["poll_interval_seconds"]),
        env=cast("tuple[tuple[str, str], ...]", values["env"]),
    )
