"""Frame-by-frame alignment of several laps onto the reference lap."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import List

import numpy as np

from ..telemetry.models import TelemetrySample
from .lap_data import ProcessedLapData
from .window import VisibleWindow

__all__ = ["AlignedSeries", "align_window", "axis_labels"]


@dataclass(frozen=True, slots=True, eq=False)
class AlignedSeries:
    """Values of one channel of one lap on the reference lap's frames.

    ``indices[i]`` is the sample of this lap displayed at frame ``i`` and
    ``values[i]`` its normalised value.
    """

    lap_id: str
    key: str
    color: str
    is_reference: bool
    indices: np.ndarray = field(repr=False)
    values: np.ndarray = field(repr=False)

    def raw_values(self, lap: ProcessedLapData) -> np.ndarray:
        """Return the values in channel units using ``lap``'s scaling."""

        series = lap.series(self.key)
        if series is None:
            raise KeyError(f"Lap {self.lap_id!r} has no {self.key!r} series")
        return series.min_val + self.values.astype(float) * series.range


def _frame_indices(
    lap_id: str,
    lap: ProcessedLapData,
    reference_id: str,
    window: VisibleWindow[TelemetrySample],
    targets: np.ndarray,
) -> np.ndarray:
    if lap_id == reference_id:
        return np.arange(window.start_idx, window.start_idx + len(window), dtype=np.intp)
    return lap.distance_index.closest_many(targets)


def align_window(
    reference_id: str,
    laps: Mapping[str, ProcessedLapData],
    window: VisibleWindow[TelemetrySample],
    keys: Sequence[str],
) -> List[AlignedSeries]:
    """Resolve every lap's values for the frames of ``window``.

    The reference lap contributes its own samples ``start_idx + i``.  Every
    other lap contributes, for each frame, the sample whose ``lap_dist_pct``
    is closest to the reference sample's, so laps with different sample
    counts line up by track position rather than by index.
    """

    targets = np.fromiter(
        (sample.lap_dist_pct for sample in window.data), dtype=float, count=len(window)
    )
    aligned: List[AlignedSeries] = []
    for lap_id, lap in laps.items():
        indices = _frame_indices(lap_id, lap, reference_id, window, targets)
        for key in keys:
            series = lap.series(key)
            if series is None:
                continue
            aligned.append(
                AlignedSeries(
                    lap_id=lap_id,
                    key=key,
                    color=series.color,
                    is_reference=lap_id == reference_id,
                    indices=indices,
                    values=series.normalized[indices],
                )
            )
    return aligned


def axis_labels(window: VisibleWindow[TelemetrySample], count: int = 5) -> List[str]:
    """Return ``count + 1`` x-axis labels: ``"Now"`` then lap-distance ticks."""

    labels: List[str] = []
    size = len(window)
    for tick in range(count + 1):
        if tick == 0:
            labels.append("Now")
            continue
        index = ((size - 1) * tick) // count if size else -1
        if 0 <= index < size:
            labels.append(f"{window.data[index].lap_dist_pct:.1f}%")
        else:
            labels.append("")
    return labels
