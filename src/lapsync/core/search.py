"""Nearest-sample lookup over ascending lap-distance arrays.

Laps recorded at different sample rates are compared frame by frame by
resolving, for each reference sample, the sample of another lap whose
``lap_dist_pct`` is closest.  The lookup is a binary search over the lap's
sorted distance array.  When two samples are equally close the lower index
wins, and repeated values resolve to their first occurrence, so the result
always matches a first-minimum linear scan.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Union

import numpy as np

__all__ = ["LapDistanceIndex", "find_closest_index", "find_closest_indices"]

ArrayLike = Union[Sequence[float], np.ndarray]


def _as_array(values: ArrayLike) -> np.ndarray:
    if isinstance(values, np.ndarray):
        return values
    return np.asarray(values, dtype=float)


def find_closest_index(sorted_values: ArrayLike, target: float) -> int:
    """Return the index of the value closest to ``target``.

    ``sorted_values`` must be in ascending order.  Targets outside the
    covered range clamp to the first or last sample; an empty array yields
    ``0``.
    """

    values = _as_array(sorted_values)
    size = int(values.shape[0])
    if size <= 1:
        return 0

    right = int(np.searchsorted(values, np.float64(target), side="left"))
    if right <= 0:
        return 0
    if right >= size:
        candidate = size - 1
    else:
        left = right - 1
        left_distance = abs(float(values[left]) - target)
        right_distance = abs(float(values[right]) - target)
        candidate = left if left_distance <= right_distance else right
    return int(np.searchsorted(values, values[candidate], side="left"))


def find_closest_indices(sorted_values: ArrayLike, targets: ArrayLike) -> np.ndarray:
    """Vectorised :func:`find_closest_index` over every entry of ``targets``."""

    values = _as_array(sorted_values)
    queries = np.asarray(targets, dtype=float)
    size = int(values.shape[0])
    if size <= 1:
        return np.zeros(queries.shape, dtype=np.intp)

    right = np.searchsorted(values, queries, side="left")
    right_clamped = np.clip(right, 0, size - 1)
    left_clamped = np.clip(right - 1, 0, size - 1)
    left_distance = np.abs(values[left_clamped].astype(float) - queries)
    right_distance = np.abs(values[right_clamped].astype(float) - queries)
    candidates = np.where(left_distance <= right_distance, left_clamped, right_clamped)
    return np.searchsorted(values, values[candidates], side="left").astype(np.intp)


class LapDistanceIndex:
    """Sorted lap-distance index of a single lap."""

    __slots__ = ("_values",)

    def __init__(self, lap_dist_pct: ArrayLike) -> None:
        values = np.array(lap_dist_pct, dtype=np.float32)
        if values.ndim != 1:
            raise ValueError("lap distance index expects a one dimensional array")
        if values.size > 1 and bool(np.any(np.diff(values) < 0)):
            raise ValueError("lap distance values must be sorted in ascending order")
        values.setflags(write=False)
        self._values = values

    def __len__(self) -> int:
        return int(self._values.shape[0])

    @property
    def values(self) -> np.ndarray:
        return self._values

    def closest(self, lap_dist_pct: float) -> int:
        return find_closest_index(self._values, lap_dist_pct)

    def closest_many(self, lap_dist_pcts: ArrayLike) -> np.ndarray:
        return find_closest_indices(self._values, lap_dist_pcts)
