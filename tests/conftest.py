from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable

import pytest


ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = ROOT / "src"
for _path in (SRC_ROOT, ROOT):
    if str(_path) not in sys.path:
        sys.path.insert(0, str(_path))

from lapsync.core.lap_data import ProcessedLapData, build_lap_data
from tests.helpers import build_lap_csv, build_samples


@pytest.fixture
def lap_factory() -> Callable[..., ProcessedLapData]:
    """Return a factory building processed laps with ``count`` samples."""

    def _factory(count: int, *, lap_index: int = 0, **kwargs: float) -> ProcessedLapData:
        lap = build_lap_data(build_samples(count, **kwargs), lap_index=lap_index)
        assert lap is not None
        return lap

    return _factory


@pytest.fixture
def reference_lap(lap_factory: Callable[..., ProcessedLapData]) -> ProcessedLapData:
    return lap_factory(1000)


@pytest.fixture
def telemetry_dir(tmp_path: Path) -> Path:
    """Directory holding two well formed exports and one header-only export."""

    (tmp_path / "lap1.csv").write_text(build_lap_csv(200), encoding="utf8")
    (tmp_path / "lap2.csv").write_text(build_lap_csv(160, phase=0.3), encoding="utf8")
    (tmp_path / "empty.csv").write_text(build_lap_csv(0), encoding="utf8")
    return tmp_path
