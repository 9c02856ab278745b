"""Tests for cross-lap frame alignment."""

from __future__ import annotations

import numpy as np
import pytest

from lapsync.core.alignment import align_window, axis_labels
from lapsync.core.window import compute_visible_window
from tests.helpers import linear_closest_index


def test_reference_lap_uses_its_own_samples(lap_factory) -> None:
    reference = lap_factory(1000)
    window = compute_visible_window(reference.samples, 500.0, 3)

    (series,) = align_window("ref", {"ref": reference}, window, ["speed"])

    assert series.is_reference
    assert series.indices.tolist() == list(range(500, 585))
    np.testing.assert_array_equal(series.values, reference.series("speed").normalized[500:585])


def test_other_laps_align_by_lap_distance(lap_factory) -> None:
    reference = lap_factory(1000)
    other = lap_factory(800, lap_index=1, phase=0.4)
    window = compute_visible_window(reference.samples, 420.0, 2)

    aligned = align_window("ref", {"ref": reference, "other": other}, window, ["throttle", "rpm"])

    assert [(series.lap_id, series.key) for series in aligned] == [
        ("ref", "throttle"),
        ("ref", "rpm"),
        ("other", "throttle"),
        ("other", "rpm"),
    ]
    other_throttle = aligned[2]
    assert not other_throttle.is_reference
    assert len(other_throttle.indices) == len(window)
    for frame, sample in enumerate(window.data):
        expected = linear_closest_index(other.lap_dist_to_index, sample.lap_dist_pct)
        assert other_throttle.indices[frame] == expected
    assert other_throttle.color == other.series("throttle").color


def test_raw_values_restore_channel_units(lap_factory) -> None:
    reference = lap_factory(200)
    window = compute_visible_window(reference.samples, 10.0, 1)

    (series,) = align_window("ref", {"ref": reference}, window, ["rpm"])

    expected = [sample.rpm for sample in window.data]
    assert series.raw_values(reference) == pytest.approx(expected, rel=1e-5)


def test_axis_labels(lap_factory) -> None:
    reference = lap_factory(1000)
    window = compute_visible_window(reference.samples, 500.0, 3)

    labels = axis_labels(window)

    assert len(labels) == 6
    assert labels[0] == "Now"
    last = window.data[len(window) - 1].lap_dist_pct
    assert labels[-1] == f"{last:.1f}%"
    assert axis_labels(compute_visible_window([], 0.0, 3)) == ["Now", "", "", "", "", ""]
