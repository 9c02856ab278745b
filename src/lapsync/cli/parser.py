"""Argument parsing for the lapsync CLI."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any, Mapping, Optional

from ..settings import LapSyncSettings, MAX_SPEED, MAX_ZOOM, MIN_SPEED, MIN_ZOOM
from ..telemetry.models import CHANNEL_KEYS
from .commands import handle_compare, handle_inspect, handle_play


def _zoom(value: str) -> int:
    zoom = int(value)
    if not MIN_ZOOM <= zoom <= MAX_ZOOM:
        raise argparse.ArgumentTypeError(f"zoom must be between {MIN_ZOOM} and {MAX_ZOOM}")
    return zoom


def _speed(value: str) -> float:
    speed = float(value)
    if not MIN_SPEED <= speed <= MAX_SPEED:
        raise argparse.ArgumentTypeError(f"speed must be between {MIN_SPEED} and {MAX_SPEED}")
    return speed


def _add_lap_time(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--lap-time",
        dest="lap_time",
        type=float,
        default=None,
        help="Reference lap duration in seconds; sets the playback rate.",
    )


def build_parser(config: Optional[Mapping[str, Any]] = None) -> argparse.ArgumentParser:
    config = dict(config or {})
    logging_cfg = dict(config.get("logging", {}))
    settings = LapSyncSettings.from_config(config)

    parser = argparse.ArgumentParser(
        prog="lapsync",
        description="Compare and replay racing telemetry laps on a shared lap-distance frame.",
    )
    parser.add_argument(
        "--config",
        dest="config_path",
        type=Path,
        default=None,
        help="Path to a TOML configuration file or pyproject.toml.",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        default=logging_cfg.get("level", "info"),
        help="Logging level (e.g. debug, info, warning).",
    )
    parser.add_argument(
        "--log-output",
        dest="log_output",
        default=logging_cfg.get("output", "stderr"),
        help="Logging destination (stdout, stderr or a file path).",
    )
    parser.add_argument(
        "--log-format",
        dest="log_format",
        choices=("json", "text"),
        default=logging_cfg.get("format", "json"),
        help="Logging formatter (json or text).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    inspect_parser = subparsers.add_parser(
        "inspect", help="Summarise the samples and channel ranges of one export."
    )
    inspect_parser.add_argument("telemetry", type=Path, help="Telemetry CSV export.")
    inspect_parser.set_defaults(handler=handle_inspect)

    compare_parser = subparsers.add_parser(
        "compare", help="Align several laps on the first lap's visible window."
    )
    compare_parser.add_argument(
        "telemetry", type=Path, nargs="+", help="Telemetry exports; the first is the reference."
    )
    compare_parser.add_argument(
        "--zoom", type=_zoom, default=settings.default_zoom, help="Zoom level (1-5)."
    )
    compare_parser.add_argument(
        "--position",
        type=float,
        default=0.0,
        help="Sample index of the reference lap shown as 'now'.",
    )
    compare_parser.add_argument(
        "--channels",
        nargs="+",
        choices=CHANNEL_KEYS,
        default=list(CHANNEL_KEYS),
        help="Channels to include in the output.",
    )
    _add_lap_time(compare_parser)
    compare_parser.set_defaults(handler=handle_compare)

    play_parser = subparsers.add_parser(
        "play", help="Replay the reference lap for a while and report the final state."
    )
    play_parser.add_argument(
        "telemetry", type=Path, nargs="+", help="Telemetry exports; the first is the reference."
    )
    play_parser.add_argument(
        "--speed", type=_speed, default=settings.default_speed, help="Playback speed (-5 to 5)."
    )
    play_parser.add_argument(
        "--zoom", type=_zoom, default=settings.default_zoom, help="Zoom level (1-5)."
    )
    play_parser.add_argument(
        "--duration", type=float, default=1.0, help="Seconds of playback before stopping."
    )
    _add_lap_time(play_parser)
    play_parser.set_defaults(handler=handle_play)

    return parser


__all__ = ["build_parser"]
