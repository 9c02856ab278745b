"""Multi-lap telemetry loading."""

from __future__ import annotations

from .coordinator import LapCompletedCallback, MultiLapLoadCoordinator, TelemetryFetcher
from .models import LapLoadResult, LapLoadStatus, LapMetadata, LoadProgress
from .sources import FileTelemetrySource, laps_from_paths

__all__ = [
    "FileTelemetrySource",
    "LapCompletedCallback",
    "LapLoadResult",
    "LapLoadStatus",
    "LapMetadata",
    "LoadProgress",
    "MultiLapLoadCoordinator",
    "TelemetryFetcher",
    "laps_from_paths",
]
