"""Multi-lap comparison session tying loading, playback and alignment together."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
import logging
from typing import Any, Dict, List, Optional

from .core.alignment import AlignedSeries, align_window, axis_labels
from .core.geometry import TrackCoordinate, coordinate_at
from .core.lap_data import ProcessedLapData
from .core.window import VisibleWindow
from .loading.coordinator import MultiLapLoadCoordinator, TelemetryFetcher
from .loading.models import LapLoadResult, LapMetadata, LoadProgress
from .playback.controller import PlaybackController
from .settings import LapSyncSettings
from .telemetry.models import CHANNEL_KEYS, TelemetrySample

__all__ = ["MultiLapSession", "SessionFrame"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True, eq=False)
class SessionFrame:
    """Everything needed to draw one frame of the comparison."""

    reference_id: Optional[str]
    window: VisibleWindow[TelemetrySample]
    series: List[AlignedSeries] = field(default_factory=list)
    labels: List[str] = field(default_factory=list)
    marker: Optional[TrackCoordinate] = None

    @property
    def is_empty(self) -> bool:
        return not self.window.data


class MultiLapSession:
    """Coordinating view-model for a set of selected laps.

    The reference lap is the first lap of the selection, in selection order,
    whose telemetry loaded; it is re-resolved whenever a lap completes.
    """

    def __init__(
        self,
        laps: Sequence[LapMetadata],
        fetcher: TelemetryFetcher,
        *,
        settings: LapSyncSettings | None = None,
        controller: PlaybackController | None = None,
    ) -> None:
        self._settings = settings or LapSyncSettings()
        self._laps: List[LapMetadata] = list(laps)
        self.controller = controller or PlaybackController(settings=self._settings)
        self.coordinator = MultiLapLoadCoordinator(
            fetcher,
            on_lap_completed=self._on_lap_completed,
            settings=self._settings,
        )
        self._reference_id: Optional[str] = None

    @property
    def laps(self) -> tuple[LapMetadata, ...]:
        return tuple(self._laps)

    @property
    def reference_id(self) -> Optional[str]:
        return self._reference_id

    @property
    def progress(self) -> LoadProgress:
        return self.coordinator.progress

    @property
    def is_loading(self) -> bool:
        return not self.progress.is_complete

    def loaded_laps(self) -> Dict[str, ProcessedLapData]:
        """Loaded laps of the current selection in selection order."""

        data = self.coordinator.lap_data
        return {lap.lap_id: data[lap.lap_id] for lap in self._laps if lap.lap_id in data}

    async def load(self) -> Dict[str, LapLoadResult]:
        return await self.coordinator.load(self._laps)

    async def select(self, laps: Sequence[LapMetadata]) -> Dict[str, LapLoadResult]:
        """Replace the selection, reusing telemetry that is already loaded."""

        self._laps = list(laps)
        self._resolve_reference()
        return await self.load()

    def frame(self, keys: Sequence[str] = CHANNEL_KEYS) -> SessionFrame:
        """Return the aligned values of every loaded lap for the visible window."""

        window = self.controller.window
        reference_id = self._reference_id
        if reference_id is None or not window.data:
            return SessionFrame(reference_id=reference_id, window=window)

        laps = self.loaded_laps()
        reference = laps[reference_id]
        return SessionFrame(
            reference_id=reference_id,
            window=window,
            series=align_window(reference_id, laps, window, keys),
            labels=axis_labels(window),
            marker=coordinate_at(reference.track_map, self.controller.state.position),
        )

    def summary(self) -> Mapping[str, Any]:
        window = self.controller.window
        state = self.controller.state
        return {
            "reference": self._reference_id,
            "position_pct": window.data[0].lap_dist_pct if window.data else 0.0,
            "position": state.position,
            "speed": state.speed,
            "zoom_level": state.zoom_level,
            "is_playing": state.is_playing,
            "progress": str(self.progress),
            "points": {lap_id: lap.total_points for lap_id, lap in self.loaded_laps().items()},
        }

    def _metadata(self, lap_id: str) -> Optional[LapMetadata]:
        for lap in self._laps:
            if lap.lap_id == lap_id:
                return lap
        return None

    def _resolve_reference(self) -> None:
        laps = self.loaded_laps()
        reference_id = next(iter(laps), None)
        if reference_id == self._reference_id and (
            reference_id is None or self.controller.reference is laps[reference_id]
        ):
            return
        self._reference_id = reference_id
        if reference_id is None:
            self.controller.set_reference(None)
            return
        metadata = self._metadata(reference_id)
        self.controller.set_reference(
            laps[reference_id], metadata.lap_time if metadata is not None else None
        )
        logger.debug(
            "Reference lap set to %s",
            reference_id,
            extra={"event": "session.reference", "lap_id": reference_id},
        )

    def _on_lap_completed(
        self,
        lap_id: str,
        data: ProcessedLapData | None,
        error: BaseException | None,
    ) -> None:
        if data is not None:
            self._resolve_reference()
