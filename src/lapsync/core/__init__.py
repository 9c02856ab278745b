"""Lap processing, alignment and windowing primitives."""

from __future__ import annotations

from .alignment import AlignedSeries, align_window, axis_labels
from .colors import LAP_COLOR_SCHEMES, SERIES_BASE_COLORS, lap_color_scheme, series_color
from .geometry import (
    TrackBounds,
    TrackCoordinate,
    TrackMap,
    coordinate_at,
    project_track_map,
    scale_to_viewport,
)
from .lap_data import ProcessedLapData, build_lap_data, process_lap_telemetry
from .normalization import NormalizedSeries, normalize_series
from .search import LapDistanceIndex, find_closest_index, find_closest_indices
from .window import (
    VisibleWindow,
    VisibleWindowCache,
    compute_visible_window,
    visible_percentage,
    window_size,
)

__all__ = [
    "AlignedSeries",
    "LAP_COLOR_SCHEMES",
    "LapDistanceIndex",
    "NormalizedSeries",
    "ProcessedLapData",
    "SERIES_BASE_COLORS",
    "TrackBounds",
    "TrackCoordinate",
    "TrackMap",
    "VisibleWindow",
    "VisibleWindowCache",
    "align_window",
    "axis_labels",
    "build_lap_data",
    "compute_visible_window",
    "coordinate_at",
    "find_closest_index",
    "find_closest_indices",
    "lap_color_scheme",
    "normalize_series",
    "process_lap_telemetry",
    "project_track_map",
    "scale_to_viewport",
    "series_color",
    "visible_percentage",
    "window_size",
]
