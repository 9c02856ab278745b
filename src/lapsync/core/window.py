"""Zoom-dependent visible window over the reference lap."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
import math
from typing import Generic, Optional, Tuple, TypeVar

__all__ = [
    "DEFAULT_MIN_POINTS",
    "VisibleWindow",
    "VisibleWindowCache",
    "compute_visible_window",
    "visible_percentage",
    "window_size",
]

T = TypeVar("T")

DEFAULT_MIN_POINTS = 50


@dataclass(frozen=True, slots=True)
class VisibleWindow(Generic[T]):
    """Contiguous slice ``data == samples[start_idx:end_idx + 1]``.

    ``start_idx`` is the sample treated as "now"; larger indices lie further
    ahead along the lap.
    """

    data: Tuple[T, ...]
    start_idx: int
    end_idx: int

    def __len__(self) -> int:
        return len(self.data)


def visible_percentage(zoom_level: int) -> float:
    """Share of the lap displayed at ``zoom_level`` (15% at 1, 2% at 5)."""

    return 15.0 - (zoom_level - 1) * 3.25


def window_size(total_points: int, zoom_level: int, *, min_points: int = DEFAULT_MIN_POINTS) -> int:
    """Number of samples requested for ``zoom_level`` before end clamping."""

    return max(min_points, int(math.floor(total_points * visible_percentage(zoom_level) / 100.0)))


def compute_visible_window(
    samples: Sequence[T],
    position: float,
    zoom_level: int,
    *,
    min_points: int = DEFAULT_MIN_POINTS,
) -> VisibleWindow[T]:
    """Return the samples displayed at ``position`` for ``zoom_level``.

    The window never starts past ``total_points - window_size`` so that it
    stays full near the end of the lap; laps shorter than ``min_points`` are
    shown whole.
    """

    total_points = len(samples)
    if total_points == 0:
        return VisibleWindow(data=(), start_idx=0, end_idx=0)

    points_to_show = window_size(total_points, zoom_level, min_points=min_points)
    start_idx = max(0, min(total_points - points_to_show, int(math.floor(position))))
    end_idx = min(total_points - 1, start_idx + points_to_show - 1)
    return VisibleWindow(
        data=tuple(samples[start_idx : end_idx + 1]),
        start_idx=start_idx,
        end_idx=end_idx,
    )


class VisibleWindowCache(Generic[T]):
    """Single-entry memo of :func:`compute_visible_window`.

    The cache key is ``(position, zoom_level, total_points)``; the sample
    count is part of it so that switching to a reference lap with a
    different length invalidates the entry.
    """

    __slots__ = ("_key", "_window", "_min_points", "hits", "misses")

    def __init__(self, *, min_points: int = DEFAULT_MIN_POINTS) -> None:
        self._key: Optional[Tuple[float, int, int]] = None
        self._window: Optional[VisibleWindow[T]] = None
        self._min_points = min_points
        self.hits = 0
        self.misses = 0

    def get(self, samples: Sequence[T], position: float, zoom_level: int) -> VisibleWindow[T]:
        key = (position, zoom_level, len(samples))
        if self._window is not None and self._key == key:
            self.hits += 1
            return self._window
        self.misses += 1
        window = compute_visible_window(samples, position, zoom_level, min_points=self._min_points)
        self._key = key
        self._window = window
        return window

    def invalidate(self) -> None:
        self._key = None
        self._window = None
