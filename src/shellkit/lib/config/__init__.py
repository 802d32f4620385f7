"""Configuration discovery and parsing helpers."""

from shellkit.lib.config.settings import (
    DEFAULT_CONFIG_FILENAME,
    DEFAULT_SHELL,
    ShellkitSettings,
    load_settings,
)

__all__ = [
    "DEFAULT_CONFIG_FILENAME",
    "DEFAULT_SHELL",
    "ShellkitSettings",
    "load_settings",
]
