"""Tests for configuration discovery."""

from __future__ import annotations

from pathlib import Path

import pytest

from lapsync.configuration import load_config, load_project_config


_PYPROJECT = """
[project]
name = "demo"

[tool.lapsync.playback]
tick_interval = 0.01

[tool.lapsync.logging]
level = "debug"
"""


def test_load_config_from_pyproject_directory(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text(_PYPROJECT, encoding="utf8")

    config = load_config(search_from=tmp_path)

    assert config["playback"] == {"tick_interval": 0.01}
    assert config["logging"] == {"level": "debug"}
    assert config["_config_path"] == str((tmp_path / "pyproject.toml").resolve())


def test_load_config_from_explicit_pyproject(tmp_path: Path) -> None:
    path = tmp_path / "pyproject.toml"
    path.write_text(_PYPROJECT, encoding="utf8")

    assert load_config(path)["playback"]["tick_interval"] == 0.01


def test_standalone_file_is_used_as_is(tmp_path: Path) -> None:
    path = tmp_path / "lapsync.toml"
    path.write_text("[loading]\nstagger_delay = 0.25\n", encoding="utf8")

    config = load_config(path)

    assert config["loading"] == {"stagger_delay": 0.25}
    assert config["_config_path"].endswith("lapsync.toml")


def test_missing_standalone_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "absent.toml")


def test_pyproject_without_section(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text('[project]\nname = "demo"\n', encoding="utf8")

    assert load_config(search_from=tmp_path) == {}
    assert load_project_config(tmp_path) is None
    assert load_config(search_from=tmp_path / "nowhere") == {}


def test_invalid_toml_raises_value_error(tmp_path: Path) -> None:
    path = tmp_path / "broken.toml"
    path.write_text("[playback\n", encoding="utf8")

    with pytest.raises(ValueError):
        load_config(path)


def test_non_table_tool_entries_are_ignored(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text('tool = "lapsync"\n', encoding="utf8")

    assert load_project_config(tmp_path / "pyproject.toml") is None
    assert load_project_config(tmp_path / "settings.ini") is None
