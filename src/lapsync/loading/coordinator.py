"""Staggered, independent loading of several laps' telemetry."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping, Sequence
import logging
from types import MappingProxyType
from typing import Dict, List, Optional

from ..core.lap_data import ProcessedLapData, process_lap_telemetry
from ..settings import LapSyncSettings
from ..telemetry.models import CHANNEL_KEYS
from .models import LapLoadResult, LapLoadStatus, LapMetadata, LoadProgress

__all__ = [
    "LapCompletedCallback",
    "MultiLapLoadCoordinator",
    "TelemetryFetcher",
]

logger = logging.getLogger(__name__)

TelemetryFetcher = Callable[[LapMetadata], Awaitable[Optional[str]]]
LapCompletedCallback = Callable[[str, Optional[ProcessedLapData], Optional[BaseException]], None]


class MultiLapLoadCoordinator:
    """Run one fetch-and-process pipeline per selected lap.

    Pipeline starts are staggered by ``stagger_delay × position`` to avoid
    issuing every request at once.  Pipelines complete in any order; each
    writes only its own slot of the shared lap mapping, and a slot is written
    at most once.  A failing lap never aborts the others: fetch errors are
    recorded on the lap and reported through the completion callback.
    """

    def __init__(
        self,
        fetcher: TelemetryFetcher,
        *,
        on_lap_completed: LapCompletedCallback | None = None,
        settings: LapSyncSettings | None = None,
        keys: Sequence[str] = CHANNEL_KEYS,
        lap_data: Mapping[str, ProcessedLapData] | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._callbacks: List[LapCompletedCallback] = []
        if on_lap_completed is not None:
            self._callbacks.append(on_lap_completed)
        self._settings = settings or LapSyncSettings()
        self._keys = tuple(keys)
        self._lap_data: Dict[str, ProcessedLapData] = dict(lap_data or {})
        self._status: Dict[str, LapLoadStatus] = {
            lap_id: LapLoadStatus.LOADED for lap_id in self._lap_data
        }
        self._errors: Dict[str, BaseException] = {}
        self._selection: List[str] = []

    @property
    def lap_data(self) -> Mapping[str, ProcessedLapData]:
        """Read-only view of the lap-id → processed data mapping."""

        return MappingProxyType(self._lap_data)

    @property
    def selection(self) -> tuple[str, ...]:
        return tuple(self._selection)

    @property
    def progress(self) -> LoadProgress:
        statuses = [self.status(lap_id) for lap_id in self._selection]
        return LoadProgress(
            loaded=sum(1 for status in statuses if status.finished),
            total=len(statuses),
            with_data=sum(1 for status in statuses if status is LapLoadStatus.LOADED),
        )

    def add_listener(self, callback: LapCompletedCallback) -> None:
        self._callbacks.append(callback)

    def status(self, lap_id: str) -> LapLoadStatus:
        return self._status.get(lap_id, LapLoadStatus.PENDING)

    def error(self, lap_id: str) -> Optional[BaseException]:
        return self._errors.get(lap_id)

    def result(self, lap_id: str) -> LapLoadResult:
        return LapLoadResult(
            lap_id=lap_id,
            status=self.status(lap_id),
            data=self._lap_data.get(lap_id),
            error=self._errors.get(lap_id),
        )

    def complete(
        self,
        lap_id: str,
        data: ProcessedLapData | None,
        error: BaseException | None = None,
    ) -> bool:
        """Record the outcome of ``lap_id``; later signals for it are ignored.

        Returns ``True`` when the outcome was recorded.
        """

        if self.status(lap_id).finished:
            logger.debug(
                "Ignoring duplicate completion",
                extra={"event": "lap.duplicate_completion", "lap_id": lap_id},
            )
            return False

        if data is not None:
            self._lap_data[lap_id] = data
            self._status[lap_id] = LapLoadStatus.LOADED
        elif error is not None:
            self._errors[lap_id] = error
            self._status[lap_id] = LapLoadStatus.FAILED
        else:
            self._status[lap_id] = LapLoadStatus.NO_DATA

        logger.info(
            "Lap telemetry %s",
            self._status[lap_id].value,
            extra={
                "event": "lap.completed",
                "lap_id": lap_id,
                "status": self._status[lap_id].value,
                "samples": data.total_points if data is not None else 0,
                "progress": str(self.progress),
            },
        )
        for callback in list(self._callbacks):
            try:
                callback(lap_id, data, error)
            except Exception:
                logger.exception(
                    "Lap completion callback failed for lap %s",
                    lap_id,
                    extra={"event": "lap.callback_failed", "lap_id": lap_id},
                )
        return True

    async def load(self, laps: Sequence[LapMetadata]) -> Dict[str, LapLoadResult]:
        """Load every lap of ``laps`` and return the per-lap outcome.

        Laps already present in the mapping are reused without fetching.
        Laps that previously finished without data are attempted again.
        """

        unique: List[LapMetadata] = []
        seen: set[str] = set()
        for lap in laps:
            if lap.lap_id in seen:
                continue
            seen.add(lap.lap_id)
            unique.append(lap)
        self._selection = [lap.lap_id for lap in unique]

        tasks: List[asyncio.Task[None]] = []
        pending_ids: List[str] = []
        for index, lap in enumerate(unique):
            if lap.lap_id in self._lap_data:
                self._status[lap.lap_id] = LapLoadStatus.LOADED
                continue
            self._status[lap.lap_id] = LapLoadStatus.PENDING
            self._errors.pop(lap.lap_id, None)
            pending_ids.append(lap.lap_id)
            tasks.append(
                asyncio.create_task(
                    self._run_pipeline(lap, index), name=f"lapsync-load-{lap.lap_id}"
                )
            )

        logger.debug(
            "Loading %d of %d laps",
            len(tasks),
            len(unique),
            extra={"event": "laps.load", "pending": len(tasks), "total": len(unique)},
        )
        if tasks:
            outcomes = await asyncio.gather(*tasks, return_exceptions=True)
            for lap_id, outcome in zip(pending_ids, outcomes):
                if isinstance(outcome, Exception) and not self.status(lap_id).finished:
                    self.complete(lap_id, None, outcome)
        return {lap_id: self.result(lap_id) for lap_id in self._selection}

    async def _run_pipeline(self, lap: LapMetadata, index: int) -> None:
        delay = self._settings.stagger_delay * index
        if delay > 0.0:
            await asyncio.sleep(delay)
        self._status[lap.lap_id] = LapLoadStatus.LOADING

        try:
            text = await self._fetcher(lap)
        except Exception as exc:
            logger.warning(
                "Telemetry fetch failed for lap %s",
                lap.lap_id,
                extra={"event": "lap.fetch_failed", "lap_id": lap.lap_id},
                exc_info=exc,
            )
            self.complete(lap.lap_id, None, exc)
            return

        try:
            data = process_lap_telemetry(text, lap_index=index, keys=self._keys)
        except Exception as exc:
            logger.warning(
                "Telemetry processing failed for lap %s",
                lap.lap_id,
                extra={"event": "lap.processing_failed", "lap_id": lap.lap_id},
                exc_info=exc,
            )
            self.complete(lap.lap_id, None, exc)
            return

        self.complete(lap.lap_id, data)
