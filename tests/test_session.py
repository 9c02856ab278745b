"""Tests for the multi-lap comparison session."""

from __future__ import annotations

import asyncio

import pytest

from lapsync.loading import LapMetadata
from lapsync.session import MultiLapSession
from lapsync.settings import LapSyncSettings
from tests.helpers import ManualFetcher, build_lap_csv

_SETTINGS = LapSyncSettings(stagger_delay=0.0)


def _laps(*lap_ids: str, lap_time: float | None = None) -> list[LapMetadata]:
    return [LapMetadata(lap_id=lap_id, lap_time=lap_time) for lap_id in lap_ids]


def test_reference_is_first_selected_lap_with_data() -> None:
    async def runner() -> None:
        fetcher = ManualFetcher()
        session = MultiLapSession(_laps("a", "b", "c"), fetcher, settings=_SETTINGS)
        task = asyncio.create_task(session.load())
        await asyncio.sleep(0)
        assert session.is_loading
        assert session.reference_id is None

        fetcher.resolve("c", build_lap_csv(300))
        await asyncio.sleep(0)
        assert session.reference_id == "c"
        assert session.controller.reference is session.loaded_laps()["c"]

        fetcher.resolve("b", build_lap_csv(200))
        await asyncio.sleep(0)
        assert session.reference_id == "b"

        fetcher.resolve("a", None)
        await task
        assert session.reference_id == "b"
        assert not session.is_loading
        assert list(session.loaded_laps()) == ["b", "c"]

    asyncio.run(runner())


def test_frame_aligns_all_loaded_laps() -> None:
    async def runner() -> None:
        payloads = {"ref": build_lap_csv(1000), "other": build_lap_csv(800, phase=0.2)}

        async def fetcher(lap: LapMetadata) -> str:
            return payloads[lap.lap_id]

        session = MultiLapSession(_laps("ref", "other"), fetcher, settings=_SETTINGS)
        await session.load()
        session.controller.seek(500.0)

        frame = session.frame(["speed", "brake"])

        assert not frame.is_empty
        assert frame.reference_id == "ref"
        assert (frame.window.start_idx, frame.window.end_idx) == (500, 584)
        assert [(series.lap_id, series.key) for series in frame.series] == [
            ("ref", "speed"),
            ("ref", "brake"),
            ("other", "speed"),
            ("other", "brake"),
        ]
        assert all(len(series.values) == 85 for series in frame.series)
        assert frame.labels[0] == "Now"
        reference = session.loaded_laps()["ref"]
        assert frame.marker == reference.track_map.coordinates[500]

        summary = session.summary()
        assert summary["reference"] == "ref"
        assert summary["position_pct"] == pytest.approx(50.05, abs=0.01)
        assert summary["progress"] == "2/2"
        assert summary["points"] == {"ref": 1000, "other": 800}

    asyncio.run(runner())


def test_lap_time_drives_playback_rate() -> None:
    async def runner() -> None:
        async def fetcher(lap: LapMetadata) -> str:
            return build_lap_csv(400)

        session = MultiLapSession(_laps("a", lap_time=80.0), fetcher, settings=_SETTINGS)
        await session.load()

        # 400 samples over 80 s at 200 ticks per second.
        assert session.controller.samples_per_frame == pytest.approx(0.025)

    asyncio.run(runner())


def test_empty_session_has_empty_frame() -> None:
    async def runner() -> None:
        async def fetcher(lap: LapMetadata) -> None:
            return None

        session = MultiLapSession(_laps("a"), fetcher, settings=_SETTINGS)
        await session.load()

        frame = session.frame()
        assert frame.is_empty
        assert frame.reference_id is None
        assert frame.series == []
        assert session.controller.start() is False
        assert session.summary()["position_pct"] == 0.0

    asyncio.run(runner())


def test_select_reuses_loaded_laps_and_moves_reference() -> None:
    async def runner() -> None:
        calls: list[str] = []

        async def fetcher(lap: LapMetadata) -> str:
            calls.append(lap.lap_id)
            return build_lap_csv(100 + len(calls))

        session = MultiLapSession(_laps("a", "b"), fetcher, settings=_SETTINGS)
        await session.load()
        assert session.reference_id == "a"

        await session.select(_laps("b", "c"))

        assert calls == ["a", "b", "c"]
        assert session.reference_id == "b"
        assert list(session.loaded_laps()) == ["b", "c"]
        assert session.progress.total == 2

    asyncio.run(runner())
