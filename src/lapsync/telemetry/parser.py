"""Parsing of per-lap telemetry CSV exports into :class:`TelemetrySample` rows."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
import logging
from typing import TYPE_CHECKING, Any, Mapping

import numpy as np

from .models import CSV_COLUMNS, TelemetrySample

if TYPE_CHECKING:  # pragma: no cover - imported for type checking only.
    import pandas as pd

__all__ = ["iter_telemetry_chunks", "parse_telemetry_csv", "resolve_columns"]

logger = logging.getLogger(__name__)

_FIELDS: tuple[str, ...] = tuple(CSV_COLUMNS.values())
_DEFAULT_CHUNK_SIZE = 1000

_PANDAS: Any | None = None


def _get_pandas() -> Any:
    global _PANDAS
    if _PANDAS is None:
        import pandas as _pd

        _PANDAS = _pd
    return _PANDAS


def _clean_lines(text: str) -> list[str]:
    # Spreadsheet exports often start with a UTF-8 byte order mark.
    text = text.removeprefix("\ufeff")
    return [stripped for stripped in (line.strip() for line in text.splitlines()) if stripped]


def resolve_columns(header: str) -> Mapping[str, int] | None:
    """Map sample fields to their column index in ``header``.

    Returns ``None`` when any required column is absent.  Header names are
    matched case-sensitively after trimming surrounding whitespace.
    """

    names = [name.strip() for name in header.split(",")]
    indices: dict[str, int] = {}
    missing: list[str] = []
    for column, field in CSV_COLUMNS.items():
        try:
            indices[field] = names.index(column)
        except ValueError:
            missing.append(column)
    if missing:
        logger.warning(
            "Telemetry export is missing required columns: %s",
            ", ".join(missing),
            extra={"event": "telemetry.missing_columns", "columns": missing},
        )
        return None
    return indices


def _extract_rows(
    lines: Sequence[str],
    indices: Mapping[str, int],
    *,
    sample_rate: int = 1,
) -> list[list[str]]:
    required_width = max(indices.values()) + 1
    rows: list[list[str]] = []
    for line_number, line in enumerate(lines, start=1):
        if sample_rate > 1 and line_number % sample_rate != 0:
            continue
        values = line.split(",")
        if len(values) < required_width:
            continue
        rows.append([values[indices[field]].strip() for field in _FIELDS])
    return rows


def _coerce_rows(rows: Sequence[Sequence[str]]) -> pd.DataFrame:
    """Return ``rows`` as a numeric frame keeping only fully finite rows."""

    pd = _get_pandas()
    frame = pd.DataFrame(list(rows), columns=list(_FIELDS), dtype=object)
    if frame.empty:
        return frame.astype(float)
    numeric = frame.apply(pd.to_numeric, errors="coerce").astype(float)
    values = numeric.to_numpy()
    valid = np.isfinite(values).all(axis=1)
    numeric = numeric.loc[valid].reset_index(drop=True)
    numeric["lap_dist_pct"] = numeric["lap_dist_pct"] * 100.0
    return numeric


def _to_samples(frame: pd.DataFrame) -> tuple[TelemetrySample, ...]:
    return tuple(
        TelemetrySample(
            lap_dist_pct=float(row.lap_dist_pct),
            lat=float(row.lat),
            lon=float(row.lon),
            brake=float(row.brake),
            throttle=float(row.throttle),
            rpm=float(row.rpm),
            steering_wheel_angle=float(row.steering_wheel_angle),
            speed=float(row.speed),
            gear=int(round(row.gear)),
        )
        for row in frame.itertuples(index=False)
    )


def parse_telemetry_csv(
    text: str | None,
    *,
    max_rows: int | None = None,
    sample_rate: int = 1,
) -> tuple[TelemetrySample, ...]:
    """Parse a telemetry export into samples ordered by lap distance.

    Parameters
    ----------
    text:
        Raw comma separated export whose first non-blank line is the header.
    max_rows:
        Optional cap on the number of accepted samples, counted in file order.
    sample_rate:
        Keep only every ``sample_rate``-th data line (``1`` keeps them all).

    Malformed content never raises: rows that are too short or contain a
    non-numeric required field are dropped, and an empty or header-only
    export yields an empty tuple.
    """

    if not text or not isinstance(text, str):
        return ()
    if sample_rate < 1:
        raise ValueError("sample_rate must be >= 1")

    lines = _clean_lines(text)
    if len(lines) < 2:
        return ()

    indices = resolve_columns(lines[0])
    if indices is None:
        return ()

    rows = _extract_rows(lines[1:], indices, sample_rate=sample_rate)
    frame = _coerce_rows(rows)
    if max_rows is not None:
        frame = frame.head(max(0, int(max_rows)))
    if len(frame) > 1:
        frame = frame.sort_values("lap_dist_pct", kind="mergesort")

    samples = _to_samples(frame)
    logger.debug(
        "Parsed %d telemetry samples from %d data lines",
        len(samples),
        len(lines) - 1,
        extra={"event": "telemetry.parsed", "samples": len(samples)},
    )
    return samples


def iter_telemetry_chunks(
    text: str | None,
    chunk_size: int = _DEFAULT_CHUNK_SIZE,
) -> Iterator[tuple[TelemetrySample, ...]]:
    """Yield validated samples in file order, at most ``chunk_size`` at a time.

    Unlike :func:`parse_telemetry_csv` the chunks are not sorted by lap
    distance, which lets callers process large exports incrementally.
    """

    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    if not text or not isinstance(text, str):
        return

    lines = _clean_lines(text)
    if len(lines) < 2:
        return
    indices = resolve_columns(lines[0])
    if indices is None:
        return

    data_lines = lines[1:]
    for offset in range(0, len(data_lines), chunk_size):
        rows = _extract_rows(data_lines[offset : offset + chunk_size], indices)
        samples = _to_samples(_coerce_rows(rows))
        if samples:
            yield samples
