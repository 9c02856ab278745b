"""Command handlers for the lapsync CLI."""

from __future__ import annotations

import argparse
import asyncio
from dataclasses import replace
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence

from ..core.lap_data import ProcessedLapData, process_lap_telemetry
from ..loading.models import LapLoadStatus, LapMetadata
from ..loading.sources import FileTelemetrySource, laps_from_paths
from ..session import MultiLapSession, SessionFrame
from ..settings import LapSyncSettings
from .errors import CliError

__all__ = ["handle_compare", "handle_inspect", "handle_play", "render_json"]

logger = logging.getLogger(__name__)

_VALUE_PRECISION = 4


def render_json(payload: Mapping[str, Any]) -> str:
    return json.dumps(payload, indent=2, sort_keys=False)


def _settings(config: Mapping[str, Any]) -> LapSyncSettings:
    return LapSyncSettings.from_config(config)


def _require_files(paths: Sequence[Path]) -> None:
    for path in paths:
        if not path.is_file():
            raise CliError.missing_file(path)


def _prepare_laps(
    paths: Sequence[Path], lap_time: float | None
) -> tuple[List[LapMetadata], FileTelemetrySource]:
    _require_files(paths)
    laps, source = laps_from_paths(paths)
    if lap_time is not None and laps:
        laps[0] = replace(laps[0], lap_time=lap_time)
    return laps, source


def _lap_summary(lap_id: str, lap: ProcessedLapData) -> Dict[str, Any]:
    distances = lap.lap_dist_to_index
    channels = {
        series.key: {
            "min": series.min_val,
            "max": series.max_val,
            "range": series.range,
            "color": series.color,
        }
        for series in lap.normalized_series
    }
    payload: Dict[str, Any] = {
        "lap_id": lap_id,
        "samples": lap.total_points,
        "lap_dist_pct": [float(distances[0]), float(distances[-1])],
        "channels": channels,
    }
    if lap.track_map is not None:
        bounds = lap.track_map.bounds
        payload["track_bounds"] = {
            "min_lat": bounds.min_lat,
            "max_lat": bounds.max_lat,
            "min_lon": bounds.min_lon,
            "max_lon": bounds.max_lon,
        }
    return payload


def _frame_payload(frame: SessionFrame) -> Dict[str, Any]:
    window = frame.window
    marker = frame.marker
    return {
        "reference": frame.reference_id,
        "window": {
            "start_idx": window.start_idx,
            "end_idx": window.end_idx,
            "size": len(window),
        },
        "labels": list(frame.labels),
        "marker": None if marker is None else {"x": marker.x, "y": marker.y},
        "series": [
            {
                "lap_id": series.lap_id,
                "key": series.key,
                "color": series.color,
                "reference": series.is_reference,
                "indices": [int(index) for index in series.indices],
                "values": [round(float(value), _VALUE_PRECISION) for value in series.values],
            }
            for series in frame.series
        ],
    }


def _load_statuses(session: MultiLapSession) -> Dict[str, Any]:
    statuses: Dict[str, Any] = {}
    for lap in session.laps:
        result = session.coordinator.result(lap.lap_id)
        entry: Dict[str, Any] = {"status": result.status.value}
        if result.error is not None:
            entry["error"] = str(result.error)
        statuses[lap.lap_id] = entry
    return statuses


def _require_reference(session: MultiLapSession) -> str:
    reference_id = session.reference_id
    if reference_id is not None:
        return reference_id
    first = session.laps[0].lap_id
    raise CliError.no_telemetry(first, session.coordinator.error(first))


def handle_inspect(namespace: argparse.Namespace, config: Mapping[str, Any]) -> str:
    path: Path = namespace.telemetry
    _require_files([path])
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise CliError(
            f"Unable to read {path}: {exc}", category="io", context={"path": str(path)}
        ) from exc
    lap = process_lap_telemetry(text)
    if lap is None:
        raise CliError.no_telemetry(path.stem)
    return render_json(_lap_summary(path.stem, lap))


def handle_compare(namespace: argparse.Namespace, config: Mapping[str, Any]) -> str:
    settings = _settings(config)
    laps, source = _prepare_laps(namespace.telemetry, namespace.lap_time)
    session = MultiLapSession(laps, source, settings=settings)
    asyncio.run(session.load())
    _require_reference(session)

    session.controller.set_zoom(namespace.zoom)
    session.controller.seek(namespace.position)
    payload = {
        "laps": _load_statuses(session),
        "summary": dict(session.summary()),
        "frame": _frame_payload(session.frame(namespace.channels)),
    }
    return render_json(payload)


async def _play(session: MultiLapSession, speed: float, zoom: int, duration: float) -> None:
    await session.load()
    _require_reference(session)
    controller = session.controller
    controller.set_zoom(zoom)
    controller.set_speed(speed)
    controller.start()
    try:
        await asyncio.sleep(max(0.0, duration))
    finally:
        controller.stop()


def handle_play(namespace: argparse.Namespace, config: Mapping[str, Any]) -> str:
    settings = _settings(config)
    laps, source = _prepare_laps(namespace.telemetry, namespace.lap_time)
    session = MultiLapSession(laps, source, settings=settings)
    asyncio.run(_play(session, namespace.speed, namespace.zoom, namespace.duration))

    controller = session.controller
    logger.info(
        "Playback finished after %d ticks",
        controller.tick_count,
        extra={"event": "cli.play", "ticks": controller.tick_count},
    )
    payload = {
        "laps": _load_statuses(session),
        "ticks": controller.tick_count,
        "samples_per_frame": controller.samples_per_frame,
        "summary": dict(session.summary()),
    }
    statuses = {entry["status"] for entry in payload["laps"].values()}
    if LapLoadStatus.FAILED.value in statuses:
        logger.warning("Some laps failed to load", extra={"event": "cli.partial_load"})
    return render_json(payload)
