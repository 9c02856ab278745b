"""Telemetry samples and CSV ingestion."""

from __future__ import annotations

from .models import CHANNEL_KEYS, CHANNEL_LABELS, CSV_COLUMNS, TelemetrySample
from .parser import iter_telemetry_chunks, parse_telemetry_csv, resolve_columns

__all__ = [
    "CHANNEL_KEYS",
    "CHANNEL_LABELS",
    "CSV_COLUMNS",
    "TelemetrySample",
    "iter_telemetry_chunks",
    "parse_telemetry_csv",
    "resolve_columns",
]
