"""Config settings tests."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from shellkit.lib.config.settings import ShellkitSettings, load_settings


def _install_config(root: Path, content: str) -> Path:
    config_path = root / "shellkit.toml"
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(content, encoding="utf-8")
    return config_path


def test_load_settings_from_toml(tmp_path: Path) -> None:
    config_path = _install_config(
        tmp_path,
        (
            "[shell]\n"
            "path = '/bin/bash'\n"
            "\n"
            "[timeouts]\n"
            "timeout_seconds = 30\n"
            "poll_interval_seconds = 0.25\n"
            "\n"
            "[env]\n"
            "LANG = 'C.UTF-8'\n"
            "MODE = 'ci'\n"
        ),
    )

    loaded = load_settings(config_path)

    assert loaded == ShellkitSettings(
        shell="/bin/bash",
        timeout_seconds=30.0,
        poll_interval_seconds=0.25,
        env=(("LANG", "C.UTF-8"), ("MODE", "ci")),
    )
    assert loaded.env_overrides == {"LANG": "C.UTF-8", "MODE": "ci"}


def test_load_settings_reads_cwd_file_by_default(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    _install_config(tmp_path, "[shell]\npath = '/bin/dash'\n")
    monkeypatch.chdir(tmp_path)

    assert load_settings().shell == "/bin/dash"


def test_load_settings_missing_default_file_returns_defaults(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    monkeypatch.chdir(tmp_path)

    assert load_settings() == ShellkitSettings()


def test_load_settings_missing_explicit_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError, match="Config file not found"):
        load_settings(tmp_path / "absent.toml")


def test_load_settings_env_override(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    config_path = _install_config(
        tmp_path,
        "[shell]\npath = '/bin/bash'\n\n[timeouts]\ntimeout_seconds = 10\n",
    )
    monkeypatch.setenv("SHELLKIT_SHELL", "/bin/zsh")
    monkeypatch.setenv("SHELLKIT_POLL_INTERVAL_SECONDS", "0.5")

    loaded = load_settings(config_path)

    assert loaded.shell == "/bin/zsh"
    assert loaded.poll_interval_seconds == 0.5
    assert loaded.timeout_seconds == 10.0


def test_load_settings_warns_on_unknown_keys(
    caplog: pytest.LogCaptureFixture,
    tmp_path: Path,
) -> None:
    config_path = _install_config(
        tmp_path,
        "retries = 3\n\n[timeouts]\ntimeout_seconds = 5\ngrace = 1\n",
    )

    with caplog.at_level(logging.WARNING):
        loaded = load_settings(config_path)

    assert loaded.timeout_seconds == 5.0
    assert "Ignoring unknown shellkit config key 'retries'." in caplog.text
    assert "Ignoring unknown shellkit config key 'timeouts.grace'." in caplog.text


@pytest.mark.parametrize(
    "content,message",
    [
        pytest.param("[timeouts]\ntimeout_seconds = 'soon'\n", "expected float", id="float-type"),
        pytest.param("[timeouts]\ntimeout_seconds = true\n", "expected float", id="bool-rejected"),
        pytest.param("[timeouts]\npoll_interval_seconds = 0\n", "positive", id="non-positive"),
        pytest.param("[shell]\npath = ''\n", "non-empty", id="empty-shell"),
        pytest.param("[shell]\npath = 3\n", "expected str", id="shell-type"),
        pytest.param("shell = '/bin/sh'\n", "expected table", id="section-type"),
        pytest.param("[env]\nCOUNT = 3\n", "env.COUNT", id="env-value-type"),
    ],
)
def test_load_settings_rejects_invalid_values(
    tmp_path: Path,
    content: str,
    message: str,
) -> None:
    config_path = _install_config(tmp_path, content)

    with pytest.raises(ValueError, match=message):
        load_settings(config_path)


def test_load_settings_rejects_invalid_env_override(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SHELLKIT_TIMEOUT_SECONDS", "later")

    with pytest.raises(ValueError, match="SHELLKIT_TIMEOUT_SECONDS"):
        load_settings()
