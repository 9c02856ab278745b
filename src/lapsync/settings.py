"""Runtime settings models for playback, windowing and loading."""

from __future__ import annotations

from collections.abc import Mapping as ABCMapping
from dataclasses import dataclass
import math
from typing import Any, Mapping


DEFAULT_TICK_INTERVAL = 0.005
DEFAULT_NOMINAL_ADVANCEMENT = 1.767
DEFAULT_SPEED = 1.0
DEFAULT_ZOOM = 3
DEFAULT_MIN_WINDOW_POINTS = 50
DEFAULT_STAGGER_DELAY = 0.1

MIN_SPEED = -5.0
MAX_SPEED = 5.0
MIN_ZOOM = 1
MAX_ZOOM = 5


def clamp_speed(value: float) -> float:
    return max(MIN_SPEED, min(MAX_SPEED, float(value)))


def clamp_zoom(value: int) -> int:
    return max(MIN_ZOOM, min(MAX_ZOOM, int(value)))


@dataclass(frozen=True, slots=True)
class LapSyncSettings:
    """Immutable settings parsed from ``[tool.lapsync]`` tables."""

    tick_interval: float = DEFAULT_TICK_INTERVAL
    nominal_advancement: float = DEFAULT_NOMINAL_ADVANCEMENT
    default_speed: float = DEFAULT_SPEED
    default_zoom: int = DEFAULT_ZOOM
    min_window_points: int = DEFAULT_MIN_WINDOW_POINTS
    stagger_delay: float = DEFAULT_STAGGER_DELAY

    def __post_init__(self) -> None:
        if not (self.tick_interval > 0.0 and math.isfinite(self.tick_interval)):
            raise ValueError("tick_interval must be a positive number of seconds")
        if self.min_window_points < 1:
            raise ValueError("min_window_points must be >= 1")
        if self.stagger_delay < 0.0:
            raise ValueError("stagger_delay must be >= 0")

    @property
    def frames_per_second(self) -> float:
        return 1.0 / self.tick_interval

    @classmethod
    def from_config(cls, config: Mapping[str, Any] | None = None) -> "LapSyncSettings":
        """Coerce a raw ``[tool.lapsync]`` mapping into settings.

        Missing or malformed values fall back to the defaults; speed and zoom
        defaults are clamped into their playable ranges.
        """

        def _as_mapping(value: Any) -> Mapping[str, Any]:
            if isinstance(value, ABCMapping):
                return value
            return {}

        def _coerce_float(value: Any, fallback: float, *, minimum: float | None = None) -> float:
            if isinstance(value, bool):
                return fallback
            try:
                numeric = float(value)
            except (TypeError, ValueError):
                return fallback
            if not math.isfinite(numeric):
                return fallback
            if minimum is not None and numeric < minimum:
                return fallback
            return numeric

        def _coerce_int(value: Any, fallback: int, *, minimum: int | None = None) -> int:
            if isinstance(value, bool):
                return fallback
            try:
                numeric = int(value)
            except (TypeError, ValueError):
                return fallback
            if minimum is not None and numeric < minimum:
                return fallback
            return numeric

        payload = config or {}
        playback_cfg = _as_mapping(payload.get("playback"))
        window_cfg = _as_mapping(payload.get("window"))
        loading_cfg = _as_mapping(payload.get("loading"))

        tick_interval = _coerce_float(playback_cfg.get("tick_interval"), DEFAULT_TICK_INTERVAL)
        if tick_interval <= 0.0:
            tick_interval = DEFAULT_TICK_INTERVAL

        return cls(
            tick_interval=tick_interval,
            nominal_advancement=_coerce_float(
                playback_cfg.get("nominal_advancement"), DEFAULT_NOMINAL_ADVANCEMENT, minimum=0.0
            ),
            default_speed=clamp_speed(
                _coerce_float(playback_cfg.get("default_speed"), DEFAULT_SPEED)
            ),
            default_zoom=clamp_zoom(_coerce_int(playback_cfg.get("default_zoom"), DEFAULT_ZOOM)),
            min_window_points=_coerce_int(
                window_cfg.get("min_points"), DEFAULT_MIN_WINDOW_POINTS, minimum=1
            ),
            stagger_delay=_coerce_float(
                loading_cfg.get("stagger_delay"), DEFAULT_STAGGER_DELAY, minimum=0.0
            ),
        )


__all__ = [
    "DEFAULT_MIN_WINDOW_POINTS",
    "DEFAULT_NOMINAL_ADVANCEMENT",
    "DEFAULT_SPEED",
    "DEFAULT_STAGGER_DELAY",
    "DEFAULT_TICK_INTERVAL",
    "DEFAULT_ZOOM",
    "LapSyncSettings",
    "MAX_SPEED",
    "MAX_ZOOM",
    "MIN_SPEED",
    "MIN_ZOOM",
    "clamp_speed",
    "clamp_zoom",
]
