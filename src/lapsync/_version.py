"""Package version lookup."""

from __future__ import annotations

from importlib import metadata
from pathlib import Path

from packaging.version import InvalidVersion, Version

try:  # Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # pragma: no cover - Python < 3.11 fallback
    import tomli as tomllib  # type: ignore

DISTRIBUTION = "lapsync"


def _checkout_version(root: Path | None = None) -> str:
    """Read ``[project].version`` from the checkout's ``pyproject.toml``.

    Source checkouts run from ``src/`` have no distribution metadata.
    """

    base = root or Path(__file__).resolve().parents[2]
    pyproject = base / "pyproject.toml"
    if not pyproject.is_file():
        raise RuntimeError(f"Cannot determine the {DISTRIBUTION!r} version: no metadata and no {pyproject}")
    with pyproject.open("rb") as handle:
        project = tomllib.load(handle).get("project", {})
    version = project.get("version")
    if not isinstance(version, str):
        raise RuntimeError(f"{pyproject} does not declare a static project version")
    return version


def validate_version(raw_version: str) -> str:
    """Return ``raw_version`` if it is a ``MAJOR.MINOR.PATCH`` release."""

    try:
        release = Version(raw_version).release
    except InvalidVersion as exc:
        raise RuntimeError(f"Invalid {DISTRIBUTION!r} version {raw_version!r}") from exc
    if len(release) != 3:
        raise RuntimeError(
            f"The {DISTRIBUTION!r} version must have three release components, got {raw_version!r}"
        )
    return raw_version


def _load_version() -> str:
    try:
        raw_version = metadata.version(DISTRIBUTION)
    except metadata.PackageNotFoundError:
        raw_version = _checkout_version()
    return validate_version(raw_version)


__version__ = _load_version()

__all__ = ["__version__", "validate_version"]
