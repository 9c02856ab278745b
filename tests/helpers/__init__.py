"""Convenience re-exports for test helpers."""

from __future__ import annotations

from .telemetry import (
    HEADER,
    ManualFetcher,
    build_csv,
    build_lap_csv,
    build_row,
    build_samples,
    linear_closest_index,
)

__all__ = [
    "HEADER",
    "ManualFetcher",
    "build_csv",
    "build_lap_csv",
    "build_row",
    "build_samples",
    "linear_closest_index",
]
