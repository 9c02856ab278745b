"""Top-level package for lapsync.

lapsync parses per-lap racing telemetry exports, normalises their channels
and aligns several laps on a shared lap-distance frame so they can be
scrubbed and replayed together.
"""

from ._version import __version__
from .configuration import load_config, load_project_config
from .core import (
    AlignedSeries,
    LapDistanceIndex,
    NormalizedSeries,
    ProcessedLapData,
    TrackMap,
    VisibleWindow,
    VisibleWindowCache,
    align_window,
    build_lap_data,
    compute_visible_window,
    find_closest_index,
    lap_color_scheme,
    normalize_series,
    process_lap_telemetry,
    project_track_map,
)
from .loading import (
    FileTelemetrySource,
    LapLoadStatus,
    LapMetadata,
    LoadProgress,
    MultiLapLoadCoordinator,
)
from .playback import PlaybackController, PlaybackState
from .session import MultiLapSession, SessionFrame
from .settings import LapSyncSettings
from .telemetry import CHANNEL_KEYS, TelemetrySample, parse_telemetry_csv

__all__ = [
    "AlignedSeries",
    "CHANNEL_KEYS",
    "FileTelemetrySource",
    "LapDistanceIndex",
    "LapLoadStatus",
    "LapMetadata",
    "LapSyncSettings",
    "LoadProgress",
    "MultiLapLoadCoordinator",
    "MultiLapSession",
    "NormalizedSeries",
    "PlaybackController",
    "PlaybackState",
    "ProcessedLapData",
    "SessionFrame",
    "TelemetrySample",
    "TrackMap",
    "VisibleWindow",
    "VisibleWindowCache",
    "__version__",
    "align_window",
    "build_lap_data",
    "compute_visible_window",
    "find_closest_index",
    "lap_color_scheme",
    "load_config",
    "load_project_config",
    "normalize_series",
    "parse_telemetry_csv",
    "process_lap_telemetry",
    "project_track_map",
]
