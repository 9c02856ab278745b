"""Lap metadata and load bookkeeping models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..core.lap_data import ProcessedLapData

__all__ = ["LapLoadResult", "LapLoadStatus", "LapMetadata", "LoadProgress"]


@dataclass(frozen=True, slots=True)
class LapMetadata:
    """Lap description supplied by the metadata collaborator.

    ``lap_time`` is the lap duration in seconds when known; it drives the
    playback rate of the lap when it is the reference.
    """

    lap_id: str
    lap_number: Optional[int] = None
    lap_time: Optional[float] = None

    @property
    def label(self) -> str:
        if self.lap_number is not None:
            return f"Lap {self.lap_number}"
        return str(self.lap_id)


class LapLoadStatus(str, Enum):
    PENDING = "pending"
    LOADING = "loading"
    LOADED = "loaded"
    NO_DATA = "no_data"
    FAILED = "failed"

    @property
    def finished(self) -> bool:
        return self in (LapLoadStatus.LOADED, LapLoadStatus.NO_DATA, LapLoadStatus.FAILED)


@dataclass(frozen=True, slots=True, eq=False)
class LapLoadResult:
    lap_id: str
    status: LapLoadStatus
    data: Optional[ProcessedLapData] = None
    error: Optional[BaseException] = None


@dataclass(frozen=True, slots=True)
class LoadProgress:
    """Aggregate progress: ``loaded`` laps finished out of ``total``.

    ``with_data`` counts the finished laps that produced telemetry.
    """

    loaded: int
    total: int
    with_data: int = 0

    @property
    def fraction(self) -> float:
        if self.total <= 0:
            return 1.0
        return self.loaded / self.total

    @property
    def is_complete(self) -> bool:
        return self.loaded >= self.total

    def __str__(self) -> str:
        return f"{self.loaded}/{self.total}"
