"""Processed, immutable per-lap telemetry bundles."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
import logging
from typing import Optional, Tuple

import numpy as np

from ..telemetry.models import CHANNEL_KEYS, TelemetrySample
from ..telemetry.parser import parse_telemetry_csv
from .colors import lap_color_scheme
from .geometry import TrackMap, project_track_map
from .normalization import NormalizedSeries, normalize_series
from .search import LapDistanceIndex

__all__ = ["ProcessedLapData", "build_lap_data", "process_lap_telemetry"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True, eq=False)
class ProcessedLapData:
    """Everything derived from one lap's telemetry.

    Instances are created once, when the lap finishes loading, and are never
    patched afterwards; a reload produces a new instance.
    """

    samples: Tuple[TelemetrySample, ...]
    normalized_series: Tuple[NormalizedSeries, ...]
    distance_index: LapDistanceIndex = field(repr=False)
    track_map: Optional[TrackMap] = field(default=None, repr=False)

    @property
    def total_points(self) -> int:
        return len(self.samples)

    @property
    def lap_dist_to_index(self) -> np.ndarray:
        """Each sample's ``lap_dist_pct`` in sample order."""

        return self.distance_index.values

    def series(self, key: str) -> Optional[NormalizedSeries]:
        for series in self.normalized_series:
            if series.key == key:
                return series
        return None


def build_lap_data(
    samples: Sequence[TelemetrySample],
    *,
    lap_index: int = 0,
    keys: Sequence[str] = CHANNEL_KEYS,
) -> Optional[ProcessedLapData]:
    """Normalise, index and project ``samples``; ``None`` when there are none."""

    if not samples:
        return None
    ordered = tuple(samples)
    normalized = normalize_series(ordered, keys, colors=lap_color_scheme(lap_index))
    index = LapDistanceIndex([sample.lap_dist_pct for sample in ordered])
    return ProcessedLapData(
        samples=ordered,
        normalized_series=normalized,
        distance_index=index,
        track_map=project_track_map(ordered),
    )


def process_lap_telemetry(
    text: str | None,
    *,
    lap_index: int = 0,
    keys: Sequence[str] = CHANNEL_KEYS,
) -> Optional[ProcessedLapData]:
    """Run the parse → normalise → index → project pipeline for one lap.

    Returns ``None`` when the export holds no usable sample, which callers
    report as "no data" rather than as a failure.
    """

    samples = parse_telemetry_csv(text)
    if not samples:
        logger.info(
            "Telemetry export produced no usable samples",
            extra={"event": "lap.no_data", "lap_index": lap_index},
        )
        return None
    return build_lap_data(samples, lap_index=lap_index, keys=keys)
