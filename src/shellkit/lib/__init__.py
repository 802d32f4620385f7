"""Core shellkit library exports."""

from shellkit.lib.shell import Shell, ShellConfig

__all__ = ["Shell", "ShellConfig"]
