"""Typed telemetry samples and the channel catalogue."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Tuple

__all__ = [
    "CHANNEL_KEYS",
    "CHANNEL_LABELS",
    "CSV_COLUMNS",
    "TelemetrySample",
]


@dataclass(frozen=True, slots=True)
class TelemetrySample:
    """One measurement instant of a lap.

    ``lap_dist_pct`` is expressed as a percentage of the lap length in the
    ``[0, 100]`` range; the remaining fields keep the units of the source
    export.
    """

    lap_dist_pct: float
    lat: float
    lon: float
    brake: float
    throttle: float
    rpm: float
    steering_wheel_angle: float
    speed: float
    gear: int

    def channel(self, key: str) -> float:
        """Return the value stored for the telemetry channel ``key``."""

        if key not in CHANNEL_LABELS:
            raise KeyError(f"Unknown telemetry channel {key!r}")
        return float(getattr(self, key))


#: Channels plotted and normalised for every lap, in display order.
CHANNEL_KEYS: Tuple[str, ...] = (
    "brake",
    "throttle",
    "rpm",
    "steering_wheel_angle",
    "speed",
    "gear",
)

CHANNEL_LABELS: Mapping[str, str] = {
    "brake": "Brake",
    "throttle": "Throttle",
    "rpm": "RPM",
    "steering_wheel_angle": "Steering",
    "speed": "Speed",
    "gear": "Gear",
}

#: Header names required in telemetry exports mapped to sample fields.
CSV_COLUMNS: Mapping[str, str] = {
    "LapDistPct": "lap_dist_pct",
    "Lat": "lat",
    "Lon": "lon",
    "Brake": "brake",
    "Throttle": "throttle",
    "RPM": "rpm",
    "SteeringWheelAngle": "steering_wheel_angle",
    "Speed": "speed",
    "Gear": "gear",
}
