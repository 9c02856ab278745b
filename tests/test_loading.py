"""Tests for staggered multi-lap loading."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from lapsync.loading import (
    FileTelemetrySource,
    LapLoadStatus,
    LapMetadata,
    LoadProgress,
    MultiLapLoadCoordinator,
    laps_from_paths,
)
from lapsync.settings import LapSyncSettings
from tests.helpers import ManualFetcher, build_lap_csv


class _RecordingFetcher:
    def __init__(self, payloads: Dict[str, object]) -> None:
        self.payloads = payloads
        self.calls: List[str] = []

    async def __call__(self, lap: LapMetadata) -> Optional[str]:
        self.calls.append(lap.lap_id)
        payload = self.payloads[lap.lap_id]
        if isinstance(payload, BaseException):
            raise payload
        return payload  # type: ignore[return-value]


def _laps(*lap_ids: str) -> List[LapMetadata]:
    return [LapMetadata(lap_id=lap_id, lap_number=index) for index, lap_id in enumerate(lap_ids, 1)]


_NO_STAGGER = LapSyncSettings(stagger_delay=0.0)


def test_pipeline_starts_are_staggered() -> None:
    async def runner() -> None:
        fetcher = ManualFetcher()
        coordinator = MultiLapLoadCoordinator(fetcher, settings=LapSyncSettings(stagger_delay=0.05))
        task = asyncio.create_task(coordinator.load(_laps("a", "b", "c")))

        await asyncio.sleep(0.01)
        assert fetcher.started == ["a"]
        assert coordinator.status("a") is LapLoadStatus.LOADING
        assert coordinator.status("c") is LapLoadStatus.PENDING

        await asyncio.sleep(0.15)
        assert fetcher.started == ["a", "b", "c"]

        # Completion order is independent of start order.
        fetcher.resolve("c", build_lap_csv(60))
        fetcher.resolve("a", build_lap_csv(80))
        fetcher.resolve("b", build_lap_csv(70))
        results = await task

        assert list(results) == ["a", "b", "c"]
        assert {lap_id: result.data.total_points for lap_id, result in results.items()} == {
            "a": 80,
            "b": 70,
            "c": 60,
        }

    asyncio.run(runner())


def test_outcomes_are_recorded_independently() -> None:
    async def runner() -> None:
        error = ConnectionError("telemetry host unreachable")
        fetcher = _RecordingFetcher(
            {"ok": build_lap_csv(50), "broken": error, "empty": build_lap_csv(0), "none": None}
        )
        completed: List[tuple] = []
        coordinator = MultiLapLoadCoordinator(
            fetcher,
            settings=_NO_STAGGER,
            on_lap_completed=lambda lap_id, data, exc: completed.append((lap_id, data, exc)),
        )

        results = await coordinator.load(_laps("ok", "broken", "empty", "none"))

        assert results["ok"].status is LapLoadStatus.LOADED
        assert results["broken"].status is LapLoadStatus.FAILED
        assert results["broken"].error is error
        assert coordinator.error("broken") is error
        assert results["empty"].status is LapLoadStatus.NO_DATA
        assert results["empty"].error is None
        assert results["none"].status is LapLoadStatus.NO_DATA
        assert set(coordinator.lap_data) == {"ok"}

        assert sorted(lap_id for lap_id, _, _ in completed) == ["broken", "empty", "none", "ok"]
        by_lap = {lap_id: (data, exc) for lap_id, data, exc in completed}
        assert by_lap["broken"] == (None, error)
        assert by_lap["ok"][0] is coordinator.lap_data["ok"]

    asyncio.run(runner())


def test_processing_errors_fail_only_that_lap(monkeypatch) -> None:
    from lapsync.loading import coordinator as coordinator_module

    original = coordinator_module.process_lap_telemetry

    def _process(text, **kwargs):
        if text == "explode":
            raise ValueError("corrupt export")
        return original(text, **kwargs)

    monkeypatch.setattr(coordinator_module, "process_lap_telemetry", _process)

    async def runner() -> None:
        fetcher = _RecordingFetcher({"bad": "explode", "good": build_lap_csv(30)})
        coordinator = MultiLapLoadCoordinator(fetcher, settings=_NO_STAGGER)

        results = await coordinator.load(_laps("bad", "good"))

        assert results["bad"].status is LapLoadStatus.FAILED
        assert isinstance(results["bad"].error, ValueError)
        assert results["good"].status is LapLoadStatus.LOADED

    asyncio.run(runner())


def test_completion_is_recorded_once(lap_factory) -> None:
    calls: List[str] = []
    coordinator = MultiLapLoadCoordinator(
        _RecordingFetcher({}), on_lap_completed=lambda lap_id, data, exc: calls.append(lap_id)
    )
    lap = lap_factory(20)

    assert coordinator.complete("x", lap) is True
    assert coordinator.complete("x", None, RuntimeError("late failure")) is False
    assert coordinator.complete("x", lap_factory(10)) is False

    assert calls == ["x"]
    assert coordinator.lap_data["x"] is lap
    assert coordinator.status("x") is LapLoadStatus.LOADED
    assert coordinator.error("x") is None


def test_lap_data_view_is_read_only(lap_factory) -> None:
    coordinator = MultiLapLoadCoordinator(_RecordingFetcher({}), lap_data={"seed": lap_factory(5)})

    assert coordinator.status("seed") is LapLoadStatus.LOADED
    with pytest.raises(TypeError):
        coordinator.lap_data["other"] = lap_factory(5)  # type: ignore[index]


def test_progress_counts_finished_laps() -> None:
    async def runner() -> None:
        fetcher = ManualFetcher()
        progress_seen: List[LoadProgress] = []
        coordinator = MultiLapLoadCoordinator(fetcher, settings=_NO_STAGGER)
        coordinator.add_listener(lambda *_: progress_seen.append(coordinator.progress))

        task = asyncio.create_task(coordinator.load(_laps("a", "b", "c")))
        await asyncio.sleep(0)
        assert coordinator.progress == LoadProgress(loaded=0, total=3, with_data=0)

        fetcher.resolve("b", build_lap_csv(40))
        fetcher.fail("a", OSError("disk error"))
        fetcher.resolve("c", None)
        await task

        assert [str(progress) for progress in progress_seen] == ["1/3", "2/3", "3/3"]
        final = coordinator.progress
        assert final.is_complete
        assert final.fraction == 1.0
        assert final.with_data == 1

    asyncio.run(runner())


def test_reload_reuses_loaded_laps_and_retries_others() -> None:
    async def runner() -> None:
        fetcher = _RecordingFetcher({"a": build_lap_csv(40), "b": OSError("offline"), "c": None})
        coordinator = MultiLapLoadCoordinator(fetcher, settings=_NO_STAGGER)

        await coordinator.load(_laps("a", "b", "c"))
        first_a = coordinator.lap_data["a"]
        fetcher.payloads["b"] = build_lap_csv(30)
        results = await coordinator.load(_laps("a", "b", "c", "a"))

        assert sorted(fetcher.calls) == ["a", "b", "b", "c", "c"]
        assert coordinator.lap_data["a"] is first_a
        assert results["b"].status is LapLoadStatus.LOADED
        assert coordinator.error("b") is None
        assert coordinator.selection == ("a", "b", "c")

    asyncio.run(runner())


def test_empty_selection() -> None:
    async def runner() -> None:
        coordinator = MultiLapLoadCoordinator(_RecordingFetcher({}))

        assert await coordinator.load([]) == {}
        assert coordinator.progress.is_complete

    asyncio.run(runner())


def test_file_source_reads_exports(telemetry_dir: Path) -> None:
    laps, source = laps_from_paths(
        [telemetry_dir / "lap1.csv", telemetry_dir / "empty.csv", telemetry_dir / "gone.csv"],
        lap_times={"lap1": 92.5},
    )

    assert [lap.lap_id for lap in laps] == ["lap1", "empty", "gone"]
    assert laps[0].lap_time == 92.5
    assert laps[0].label == "Lap 1"

    async def runner() -> None:
        text = await source(laps[0])
        assert text is not None and text.startswith("LapDistPct,")
        with pytest.raises(FileNotFoundError):
            await source(laps[2])
        with pytest.raises(FileNotFoundError):
            await source(LapMetadata(lap_id="unknown"))

    asyncio.run(runner())


def test_file_source_returns_none_for_empty_file(tmp_path: Path) -> None:
    (tmp_path / "blank.csv").write_text("", encoding="utf8")
    source = FileTelemetrySource({"blank": tmp_path / "blank.csv"})

    assert asyncio.run(source(LapMetadata(lap_id="blank"))) is None


def test_duplicate_stems_get_distinct_ids(tmp_path: Path) -> None:
    laps, _ = laps_from_paths([tmp_path / "a" / "lap.csv", tmp_path / "b" / "lap.csv"])

    assert [lap.lap_id for lap in laps] == ["lap", "lap-2"]
    assert LapMetadata(lap_id="x").label == "x"


def test_failing_callback_does_not_abort_other_laps(caplog) -> None:
    async def fetcher(lap: LapMetadata) -> str:
        await asyncio.sleep(0.01 if lap.lap_id == "a" else 0.05)
        return build_lap_csv(40)

    def _callback(lap_id, data, exc) -> None:
        if lap_id == "a":
            raise RuntimeError("listener exploded")

    async def runner() -> None:
        coordinator = MultiLapLoadCoordinator(
            fetcher, settings=_NO_STAGGER, on_lap_completed=_callback
        )

        results = await coordinator.load(_laps("a", "b"))

        assert results["a"].status is LapLoadStatus.LOADED
        assert results["b"].status is LapLoadStatus.LOADED
        assert coordinator.progress.is_complete

    with caplog.at_level(logging.ERROR, logger="lapsync.loading.coordinator"):
        asyncio.run(runner())

    assert any(getattr(record, "event", None) == "lap.callback_failed" for record in caplog.records)


def test_file_source_strips_byte_order_mark(tmp_path: Path) -> None:
    path = tmp_path / "bom.csv"
    path.write_text(build_lap_csv(12), encoding="utf-8-sig")
    laps, source = laps_from_paths([path])

    async def runner() -> None:
        coordinator = MultiLapLoadCoordinator(source, settings=_NO_STAGGER)
        results = await coordinator.load(laps)
        assert results["bom"].data.total_points == 12

    asyncio.run(runner())
