"""
Tests for the sequential sample-point fetch loop.
"""

from __future__ import annotations

import asyncio

import pytest

from traveling_birder.datasources.ebird import Hotspot, Observation
from traveling_birder.orchestrator import (
    Snapshot,
    collect_observations,
    dedupe_hotspots,
    default_snapshot_stride,
    is_checkpoint,
)
from traveling_birder.schemas import Coordinate


def _points(n: int) -> list[Coordinate]:
    return [Coordinate(lat=40.0 + i * 0.1, lng=-120.0) for i in range(n)]


def _obs_at(point: Coordinate, name: str = "Robin") -> Observation:
    return Observation(
        species_code=name.lower(),
        common_name=name,
        lat=point.lat,
        lng=point.lng,
        obs_dt="2024-05-01 08:00",
        sub_id=f"S{point.lat}",
    )


class RecordingFetcher:
    """Synchronous fetcher that records calls and fails on chosen indexes."""

    def __init__(self, points: list[Coordinate], fail: set[int] | None = None) -> None:
        self.points = points
        self.fail = fail or set()
        self.calls: list[Coordinate] = []

    def __call__(self, point: Coordinate, radius_km: float, lookback_days: int) -> list[Observation]:
        self.calls.append(point)
        if self.points.index(point) in self.fail:
            raise RuntimeError("boom")
        return [_obs_at(point)]


class TestHelpers:
    """Checkpoint and stride rules."""

    def test_default_stride(self) -> None:
        assert default_snapshot_stride(1) == 1
        assert default_snapshot_stride(5) == 1
        assert default_snapshot_stride(6) == 3
        assert default_snapshot_stride(30) == 3
        assert default_snapshot_stride(31) == 5

    def test_checkpoints(self) -> None:
        hits = [i for i in range(10) if is_checkpoint(i, 10, 3)]
        assert hits == [0, 2, 5, 8, 9]

    def test_dedupe_hotspots_first_wins(self) -> None:
        a1 = Hotspot(loc_id="L1", name="first")
        a2 = Hotspot(loc_id="L1", name="second")
        b = Hotspot(loc_id="L2", name="other")
        assert dedupe_hotspots([a1, b, a2]) == [a1, b]


class TestCollectObservations:
    """Fetch loop behaviour."""

    def test_fetches_in_order(self) -> None:
        points = _points(4)
        fetcher = RecordingFetcher(points)
        result = asyncio.run(collect_observations(points, fetcher, radius_km=10, lookback_days=7))
        assert fetcher.calls == points
        assert len(result.raw_log) == 4
        assert result.points_succeeded == 4

    def test_failed_point_is_skipped(self) -> None:
        points = _points(3)
        fetcher = RecordingFetcher(points, fail={1})
        result = asyncio.run(collect_observations(points, fetcher, radius_km=10, lookback_days=7))
        assert fetcher.calls == points
        assert [o.lat for o in result.raw_log] == [points[0].lat, points[2].lat]
        assert [f.index for f in result.failures] == [1]
        assert result.failures[0].error == "boom"
        assert result.points_succeeded == 2

    def test_all_points_failing_gives_empty_log(self) -> None:
        points = _points(3)
        fetcher = RecordingFetcher(points, fail={0, 1, 2})
        result = asyncio.run(collect_observations(points, fetcher, radius_km=10, lookback_days=7))
        assert result.raw_log == []
        assert result.points_succeeded == 0

    def test_async_fetcher(self) -> None:
        points = _points(2)

        async def fetch(point: Coordinate, radius_km: float, lookback_days: int) -> list[Observation]:
            await asyncio.sleep(0)
            return [_obs_at(point)]

        result = asyncio.run(collect_observations(points, fetch, radius_km=10, lookback_days=7))
        assert len(result.raw_log) == 2

    def test_passes_radius_and_lookback(self) -> None:
        seen: list[tuple[float, int]] = []

        def fetch(point: Coordinate, radius_km: float, lookback_days: int) -> list[Observation]:
            seen.append((radius_km, lookback_days))
            return []

        asyncio.run(collect_observations(_points(2), fetch, radius_km=12.5, lookback_days=3))
        assert seen == [(12.5, 3), (12.5, 3)]

    def test_empty_plan(self) -> None:
        result = asyncio.run(
            collect_observations([], RecordingFetcher([]), radius_km=10, lookback_days=7)
        )
        assert result.raw_log == []
        assert result.points_total == 0


class TestSnapshots:
    """Progress callbacks."""

    def test_snapshots_at_checkpoints(self) -> None:
        points = _points(10)
        snapshots: list[Snapshot] = []
        asyncio.run(
            collect_observations(
                points,
                RecordingFetcher(points),
                radius_km=10,
                lookback_days=7,
                snapshot_stride=3,
                on_snapshot=snapshots.append,
            )
        )
        assert [s.completed for s in snapshots] == [1, 3, 6, 9, 10]
        assert snapshots[-1].percent == 100

    def test_snapshot_reflects_prefix(self) -> None:
        points = _points(4)
        snapshots: list[Snapshot] = []
        asyncio.run(
            collect_observations(
                points,
                RecordingFetcher(points),
                radius_km=10,
                lookback_days=7,
                snapshot_stride=1,
                on_snapshot=snapshots.append,
            )
        )
        for snap in snapshots:
            assert len(snap.raw_log) == snap.completed
            assert len(snap.unique_sightings) == snap.completed

    def test_snapshot_raw_log_is_a_copy(self) -> None:
        points = _points(3)
        snapshots: list[Snapshot] = []
        asyncio.run(
            collect_observations(
                points,
                RecordingFetcher(points),
                radius_km=10,
                lookback_days=7,
                snapshot_stride=1,
                on_snapshot=snapshots.append,
            )
        )
        assert len(snapshots[0].raw_log) == 1

    def test_snapshot_after_failed_checkpoint(self) -> None:
        points = _points(2)
        snapshots: list[Snapshot] = []
        asyncio.run(
            collect_observations(
                points,
                RecordingFetcher(points, fail={1}),
                radius_km=10,
                lookback_days=7,
                on_snapshot=snapshots.append,
            )
        )
        assert [s.completed for s in snapshots] == [1, 2]
        assert len(snapshots[-1].raw_log) == 1


class TestSnapshotAggregation:
    """Snapshot sightings and checklists come from the same raw-log prefix."""

    def test_checklists_match_raw_prefix(self) -> None:
        points = _points(4)
        snapshots: list[Snapshot] = []
        asyncio.run(
            collect_observations(
                points,
                RecordingFetcher(points),
                radius_km=10,
                lookback_days=7,
                snapshot_stride=1,
                on_snapshot=snapshots.append,
            )
        )
        for snap in snapshots:
            assert {c.sub_id for c in snap.checklists} == {o.sub_id for o in snap.raw_log}
            assert sum(c.species_count for c in snap.checklists) == len(snap.raw_log)

    def test_filter_applies_to_snapshot_sightings(self) -> None:
        points = _points(2)

        def fetch(point: Coordinate, radius_km: float, lookback_days: int) -> list[Observation]:
            return [_obs_at(point, "Robin"), _obs_at(point, "Jay")]

        snapshots: list[Snapshot] = []
        asyncio.run(
            collect_observations(
                points,
                fetch,
                radius_km=10,
                lookback_days=7,
                on_snapshot=snapshots.append,
                sighting_filter=lambda o: o.species_code == "jay",
            )
        )
        for snap in snapshots:
            assert {o.species_code for o in snap.unique_sightings} == {"jay"}
            assert len(snap.raw_log) == 2 * snap.completed
            assert all(c.species_count == 2 for c in snap.checklists)


class TestHotspots:
    """Hotspot fetch stride and deduplication."""

    def test_stride_and_dedup(self) -> None:
        points = _points(7)
        hotspot_calls: list[int] = []

        def fetch_hotspots(point: Coordinate, radius_km: float) -> list[Hotspot]:
            hotspot_calls.append(points.index(point))
            return [Hotspot(loc_id="L1", name="Shared"), Hotspot(loc_id=f"P{len(hotspot_calls)}", name="x")]

        result = asyncio.run(
            collect_observations(
                points,
                RecordingFetcher(points),
                radius_km=10,
                lookback_days=7,
                fetch_hotspots=fetch_hotspots,
                hotspot_stride=3,
            )
        )
        assert hotspot_calls == [0, 3, 6]
        assert [h.loc_id for h in result.hotspots] == ["L1", "P1", "P2", "P3"]

    def test_hotspot_failure_does_not_drop_observations(self) -> None:
        points = _points(2)

        def fetch_hotspots(point: Coordinate, radius_km: float) -> list[Hotspot]:
            raise ConnectionError("down")

        result = asyncio.run(
            collect_observations(
                points,
                RecordingFetcher(points),
                radius_km=10,
                lookback_days=7,
                fetch_hotspots=fetch_hotspots,
                hotspot_stride=1,
            )
        )
        assert len(result.raw_log) == 2
        assert {f.kind for f in result.failures} == {"hotspots"}
        assert result.points_succeeded == 2


@pytest.mark.parametrize("n", [1, 5, 12, 40])
def test_last_point_always_snapshots(n: int) -> None:
    points = _points(n)
    snapshots: list[Snapshot] = []
    asyncio.run(
        collect_observations(
            points, RecordingFetcher(points), radius_km=5, lookback_days=1, on_snapshot=snapshots.append
        )
    )
    assert snapshots[0].completed == 1
    assert snapshots[-1].completed == n
