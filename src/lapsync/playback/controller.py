"""Timer-driven playback of the reference lap.

The controller owns the scrub position and the single recurring tick that
advances it.  Ticks are scheduled with :meth:`asyncio.AbstractEventLoop.call_later`
and at most one handle is pending at any time: parameter changes while
playing cancel the pending handle before scheduling the next one, and
:meth:`PlaybackController.stop` cancels it before returning, so no tick can
mutate the position after playback stopped.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
import math
from typing import Callable, List, Optional

from ..core.lap_data import ProcessedLapData
from ..core.window import VisibleWindow, VisibleWindowCache
from ..settings import LapSyncSettings, clamp_speed, clamp_zoom
from ..telemetry.models import TelemetrySample

__all__ = ["PlaybackController", "PlaybackState", "StateListener"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PlaybackState:
    """Snapshot of the playback parameters.

    ``position`` is a fractional sample index into the reference lap;
    consumers floor it when indexing.
    """

    position: float
    is_playing: bool
    speed: float
    zoom_level: int

    @property
    def index(self) -> int:
        return int(math.floor(self.position))


StateListener = Callable[[PlaybackState], None]


class PlaybackController:
    """State machine with ``stopped`` and ``playing`` states."""

    def __init__(
        self,
        *,
        settings: LapSyncSettings | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._settings = settings or LapSyncSettings()
        self._loop = loop
        self._reference: Optional[ProcessedLapData] = None
        self._lap_time: Optional[float] = None
        self._position = 0.0
        self._is_playing = False
        self._speed = clamp_speed(self._settings.default_speed)
        self._zoom = clamp_zoom(self._settings.default_zoom)
        self._handle: Optional[asyncio.TimerHandle] = None
        self._window_cache: VisibleWindowCache[TelemetrySample] = VisibleWindowCache(
            min_points=self._settings.min_window_points
        )
        self._listeners: List[StateListener] = []
        self.tick_count = 0

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------
    @property
    def state(self) -> PlaybackState:
        return PlaybackState(
            position=self._position,
            is_playing=self._is_playing,
            speed=self._speed,
            zoom_level=self._zoom,
        )

    @property
    def reference(self) -> Optional[ProcessedLapData]:
        return self._reference

    @property
    def window(self) -> VisibleWindow[TelemetrySample]:
        """Visible window of the reference lap for the current position and zoom."""

        samples = self._reference.samples if self._reference is not None else ()
        return self._window_cache.get(samples, self._position, self._zoom)

    @property
    def has_pending_tick(self) -> bool:
        return self._handle is not None

    @property
    def samples_per_frame(self) -> float:
        """Samples advanced per tick at speed ``1``.

        Derived from the reference lap's sample rate when its lap time is
        known, otherwise the nominal rate from the settings.
        """

        reference = self._reference
        lap_time = self._lap_time
        if reference is None or lap_time is None or lap_time <= 0.0:
            return self._settings.nominal_advancement
        samples_per_second = reference.total_points / lap_time
        return samples_per_second / self._settings.frames_per_second

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register ``listener`` for state changes and return an unsubscriber."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return _unsubscribe

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def set_reference(self, lap: ProcessedLapData | None, lap_time: float | None = None) -> None:
        """Switch the lap whose samples define the playback frame."""

        if lap is None:
            self.stop()
            self._reference = None
            self._lap_time = None
            self._position = 0.0
            self._window_cache.invalidate()
            self._notify()
            return
        if lap is not self._reference:
            self._window_cache.invalidate()
        self._reference = lap
        self._lap_time = lap_time if lap_time is not None and lap_time > 0.0 else None
        self._position = self._clamp_position(self._position)
        self._notify()

    def start(self) -> bool:
        """Begin playback; returns ``False`` when nothing can be played."""

        if self._is_playing or self._reference is None or self._reference.total_points == 0:
            return False
        loop = self._loop or asyncio.get_running_loop()
        self._loop = loop
        self._is_playing = True
        self._schedule()
        logger.debug(
            "Playback started",
            extra={"event": "playback.start", "speed": self._speed, "position": self._position},
        )
        self._notify()
        return True

    def stop(self) -> None:
        if not self._is_playing and self._handle is None:
            return
        self._is_playing = False
        self._cancel()
        logger.debug(
            "Playback stopped",
            extra={"event": "playback.stop", "position": self._position},
        )
        self._notify()

    def reset(self) -> None:
        self._is_playing = False
        self._cancel()
        self._position = 0.0
        self._notify()

    def set_speed(self, speed: float) -> None:
        """Set the signed playback speed; negative values play backwards."""

        self._speed = clamp_speed(speed)
        if self._is_playing:
            self._restart()
        self._notify()

    def set_zoom(self, zoom_level: int) -> None:
        self._zoom = clamp_zoom(zoom_level)
        if self._is_playing:
            self._restart()
        self._notify()

    def seek(self, position: float) -> None:
        self._position = self._clamp_position(position)
        self._notify()

    def tick(self) -> float:
        """Advance the position by one frame and return the new position.

        Advancing past the end wraps to the first sample, and moving before
        the start wraps to the last one.
        """

        reference = self._reference
        if reference is None or reference.total_points == 0:
            return self._position
        total_points = reference.total_points
        next_position = self._position + self.samples_per_frame * self._speed
        if next_position >= total_points:
            next_position = 0.0
        elif next_position < 0.0:
            next_position = float(total_points - 1)
        self._position = next_position
        self.tick_count += 1
        self._notify()
        return next_position

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------
    def _schedule(self) -> None:
        assert self._loop is not None
        assert self._handle is None, "a playback tick is already scheduled"
        self._handle = self._loop.call_later(self._settings.tick_interval, self._on_tick)

    def _cancel(self) -> None:
        handle = self._handle
        self._handle = None
        if handle is not None:
            handle.cancel()

    def _restart(self) -> None:
        self._cancel()
        self._schedule()

    def _on_tick(self) -> None:
        self._handle = None
        if not self._is_playing:
            return
        try:
            self.tick()
        finally:
            if self._is_playing and self._handle is None:
                self._schedule()

    def _clamp_position(self, position: float) -> float:
        reference = self._reference
        if reference is None or reference.total_points == 0:
            return 0.0
        return max(0.0, min(float(position), float(reference.total_points - 1)))

    def _notify(self) -> None:
        if not self._listeners:
            return
        state = self.state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception(
                    "Playback listener failed", extra={"event": "playback.listener_failed"}
                )
