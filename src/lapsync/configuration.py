"""Discovery of the ``[tool.lapsync]`` configuration tables."""

from __future__ import annotations

from pathlib import Path
from typing import Any

try:  # Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # pragma: no cover - Python < 3.11 fallback
    import tomli as tomllib  # type: ignore


PYPROJECT = "pyproject.toml"
CONFIG_PATH_KEY = "_config_path"


def _read_toml(path: Path) -> dict[str, Any] | None:
    """Parse ``path``; ``None`` when the file does not exist."""

    if not path.is_file():
        return None
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _with_source(config: dict[str, Any], source: Path) -> dict[str, Any]:
    config[CONFIG_PATH_KEY] = str(source)
    return config


def load_project_config(path: Path) -> tuple[dict[str, Any], Path] | None:
    """Return the ``[tool.lapsync]`` table of a project and its ``pyproject.toml``.

    ``path`` is either the ``pyproject.toml`` itself or the directory holding
    it.  Returns ``None`` when there is no such file or no lapsync table.
    """

    path = path.expanduser()
    if path.name != PYPROJECT:
        if path.suffix:
            return None
        path = path / PYPROJECT
    path = path.resolve(strict=False)

    tool = (_read_toml(path) or {}).get("tool")
    section = tool.get("lapsync") if isinstance(tool, dict) else None
    if not isinstance(section, dict):
        return None
    return section, path


def load_config(path: Path | None = None, *, search_from: Path | None = None) -> dict[str, Any]:
    """Return the active configuration mapping.

    An explicit ``path`` may point at a ``pyproject.toml`` (its
    ``[tool.lapsync]`` table is used) or at a standalone TOML file whose
    top-level tables are used as-is.  Without a path, ``pyproject.toml`` in
    ``search_from`` (default: the working directory) is consulted.  The
    resolved source is recorded under ``_config_path``; an empty mapping
    means defaults apply.
    """

    if path is not None and path.name != PYPROJECT and path.suffix:
        standalone = path.expanduser()
        payload = _read_toml(standalone)
        if payload is None:
            raise FileNotFoundError(f"Configuration file {standalone} does not exist")
        return _with_source(payload, standalone.resolve(strict=False))

    loaded = load_project_config(path if path is not None else (search_from or Path.cwd()))
    if loaded is None:
        return {}
    section, source = loaded
    return _with_source(section, source)


__all__ = ["load_config", "load_project_config"]
