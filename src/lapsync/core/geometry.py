"""Projection of GPS coordinates into a unit-square track map."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
import math
from typing import List, Optional, Tuple

from ..telemetry.models import TelemetrySample

__all__ = [
    "TrackBounds",
    "TrackCoordinate",
    "TrackMap",
    "coordinate_at",
    "project_track_map",
    "scale_to_viewport",
]


@dataclass(frozen=True, slots=True)
class TrackCoordinate:
    lat: float
    lon: float
    x: float
    y: float


@dataclass(frozen=True, slots=True)
class TrackBounds:
    """Bounding box of a lap's GPS trace; ``width``/``height`` are in degrees."""

    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float
    width: float
    height: float


@dataclass(frozen=True, slots=True)
class TrackMap:
    coordinates: Tuple[TrackCoordinate, ...]
    bounds: TrackBounds

    def __len__(self) -> int:
        return len(self.coordinates)


def project_track_map(samples: Sequence[TelemetrySample]) -> Optional[TrackMap]:
    """Rescale the lap's latitude/longitude into ``[0, 1]`` plot coordinates.

    ``x`` grows eastwards and ``y`` is inverted so that north renders upward
    in screen coordinates.  A constant latitude or longitude collapses that
    axis to ``0.5``.  Returns ``None`` when ``samples`` is empty.
    """

    if not samples:
        return None

    min_lat = min_lon = math.inf
    max_lat = max_lon = -math.inf
    for sample in samples:
        min_lat = min(min_lat, sample.lat)
        max_lat = max(max_lat, sample.lat)
        min_lon = min(min_lon, sample.lon)
        max_lon = max(max_lon, sample.lon)

    lat_range = max_lat - min_lat
    lon_range = max_lon - min_lon

    coordinates = tuple(
        TrackCoordinate(
            lat=sample.lat,
            lon=sample.lon,
            x=(sample.lon - min_lon) / lon_range if lon_range > 0 else 0.5,
            y=1.0 - (sample.lat - min_lat) / lat_range if lat_range > 0 else 0.5,
        )
        for sample in samples
    )
    bounds = TrackBounds(
        min_lat=min_lat,
        max_lat=max_lat,
        min_lon=min_lon,
        max_lon=max_lon,
        width=lon_range,
        height=lat_range,
    )
    return TrackMap(coordinates=coordinates, bounds=bounds)


def coordinate_at(track_map: TrackMap | None, position: float) -> Optional[TrackCoordinate]:
    """Return the coordinate marking the playback ``position`` on the map."""

    if track_map is None or not track_map.coordinates:
        return None
    index = max(0, int(math.floor(position)))
    return track_map.coordinates[min(index, len(track_map.coordinates) - 1)]


def scale_to_viewport(
    track_map: TrackMap | None,
    width: float = 200.0,
    height: float = 150.0,
    *,
    padding: float = 10.0,
) -> List[Tuple[float, float]]:
    """Return the track outline scaled into a ``width`` × ``height`` viewport.

    The outline is closed back to its first point when it has more than two
    coordinates.  Fewer than two coordinates produce an empty outline.
    """

    if track_map is None or len(track_map.coordinates) < 2:
        return []
    inner_width = width - 2.0 * padding
    inner_height = height - 2.0 * padding
    points = [
        (coord.x * inner_width + padding, coord.y * inner_height + padding)
        for coord in track_map.coordinates
    ]
    if len(points) > 2:
        points.append(points[0])
    return points
