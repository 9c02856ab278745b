"""Per-lap colour schemes for telemetry channels."""

from __future__ import annotations

import colorsys
import math
from typing import Dict, List, Mapping

from ..telemetry.models import CHANNEL_KEYS

__all__ = [
    "DEFAULT_SCHEME_COUNT",
    "LAP_COLOR_SCHEMES",
    "SERIES_BASE_COLORS",
    "generate_lap_color_schemes",
    "lap_color_scheme",
    "series_color",
]

#: Base colour of every channel for the reference lap.
SERIES_BASE_COLORS: Mapping[str, str] = {
    "brake": "#FF4444",
    "throttle": "#44FF44",
    "rpm": "#4444FF",
    "steering_wheel_angle": "#FF8844",
    "speed": "#8844FF",
    "gear": "#AAAAAA",
}

DEFAULT_SCHEME_COUNT = 10


def _hex_to_rgb(value: str) -> tuple[float, float, float]:
    return (
        int(value[1:3], 16) / 255.0,
        int(value[3:5], 16) / 255.0,
        int(value[5:7], 16) / 255.0,
    )


def _channel_to_hex(component: float) -> str:
    # Half-up rounding keeps 127.5 -> 128 instead of banker's rounding.
    return f"{int(math.floor(component * 255.0 + 0.5)):02x}"


def _shift_colour(key: str, base: str, lap_index: int) -> str:
    saturation_multiplier = max(0.4, 1.0 - lap_index * 0.08)
    lightness_adjustment = lap_index * 3
    hue_shift = min(1.0, lap_index * 0.2)

    hue, lightness, saturation = colorsys.rgb_to_hls(*_hex_to_rgb(base))
    saturation = max(0.1, min(1.0, saturation * saturation_multiplier))
    lightness = max(0.1, min(0.9, lightness + lightness_adjustment / 100.0))

    if key == "brake":
        hue = (hue + hue_shift * 0.1) % 1.0
    elif key == "throttle":
        hue = max(0.0, hue - hue_shift * 0.1)
    elif key == "gear":
        hue = (hue + hue_shift * 0.05) % 1.0
        saturation = max(0.05, saturation * (1.0 - hue_shift * 0.5))

    red, green, blue = colorsys.hls_to_rgb(hue, lightness, saturation)
    return "#" + "".join(_channel_to_hex(value) for value in (red, green, blue))


def lap_color_scheme(lap_index: int) -> Dict[str, str]:
    """Return the channel colours used for the lap at ``lap_index``.

    Later laps are progressively desaturated, lightened and hue shifted so
    that overlaid laps stay distinguishable while each channel keeps its
    semantic colour family.
    """

    if lap_index < 0:
        raise ValueError("lap_index must be >= 0")
    return {key: _shift_colour(key, SERIES_BASE_COLORS[key], lap_index) for key in CHANNEL_KEYS}


def generate_lap_color_schemes(max_laps: int = DEFAULT_SCHEME_COUNT) -> List[Dict[str, str]]:
    return [lap_color_scheme(index) for index in range(max(0, max_laps))]


LAP_COLOR_SCHEMES: List[Dict[str, str]] = generate_lap_color_schemes()


def series_color(key: str, lap_index: int) -> str:
    """Return the colour for channel ``key`` on the lap at ``lap_index``."""

    if lap_index < len(LAP_COLOR_SCHEMES):
        scheme = LAP_COLOR_SCHEMES[lap_index]
    else:
        scheme = lap_color_scheme(lap_index)
    try:
        return scheme[key]
    except KeyError:
        return SERIES_BASE_COLORS.get(key, "#FFFFFF")
