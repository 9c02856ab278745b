"""Per-channel min/max normalisation of lap telemetry."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
import math

import numpy as np

from ..telemetry.models import CHANNEL_KEYS, TelemetrySample
from .colors import SERIES_BASE_COLORS

__all__ = ["NormalizedSeries", "channel_values", "normalize_channel", "normalize_series"]


@dataclass(frozen=True, slots=True, eq=False)
class NormalizedSeries:
    """Channel values of one lap rescaled to ``[0, 1]``.

    ``normalized`` is aligned index for index with the lap's sample
    sequence.  A constant channel has ``range == 0`` and collapses to an
    all-zero series.
    """

    key: str
    color: str
    min_val: float
    max_val: float
    range: float
    normalized: np.ndarray = field(repr=False)

    def __len__(self) -> int:
        return int(self.normalized.shape[0])

    def denormalize(self, value: float) -> float:
        """Map a normalised ``value`` back into the channel's units."""

        return self.min_val + float(value) * self.range


def channel_values(samples: Sequence[TelemetrySample], key: str) -> np.ndarray:
    """Return the raw values of channel ``key`` as a float array."""

    if key not in SERIES_BASE_COLORS:
        raise KeyError(f"Unknown telemetry channel {key!r}")
    return np.fromiter((getattr(sample, key) for sample in samples), dtype=float, count=len(samples))


def normalize_channel(values: np.ndarray) -> tuple[np.ndarray, float, float]:
    """Return ``(normalized, min, max)`` for a raw channel array."""

    size = int(values.shape[0])
    if size == 0:
        return np.zeros(0, dtype=np.float32), math.nan, math.nan
    min_val = float(values.min())
    max_val = float(values.max())
    span = max_val - min_val
    if span > 0.0:
        normalized = ((values - min_val) / span).astype(np.float32)
        np.clip(normalized, 0.0, 1.0, out=normalized)
    else:
        normalized = np.zeros(size, dtype=np.float32)
    normalized.setflags(write=False)
    return normalized, min_val, max_val


def normalize_series(
    samples: Sequence[TelemetrySample],
    keys: Sequence[str] = CHANNEL_KEYS,
    *,
    colors: Mapping[str, str] | None = None,
) -> tuple[NormalizedSeries, ...]:
    """Normalise every channel in ``keys`` independently.

    The computation is pure: normalising the same samples twice yields equal
    series.  ``colors`` overrides the base colour of each channel.
    """

    palette = colors or SERIES_BASE_COLORS
    result: list[NormalizedSeries] = []
    for key in keys:
        normalized, min_val, max_val = normalize_channel(channel_values(samples, key))
        span = max_val - min_val if normalized.shape[0] else 0.0
        result.append(
            NormalizedSeries(
                key=key,
                color=palette.get(key, SERIES_BASE_COLORS[key]),
                min_val=min_val,
                max_val=max_val,
                range=span,
                normalized=normalized,
            )
        )
    return tuple(result)
