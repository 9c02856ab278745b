"""Playback of the reference lap."""

from __future__ import annotations

from .controller import PlaybackController, PlaybackState, StateListener

__all__ = ["PlaybackController", "PlaybackState", "StateListener"]
