"""
Tests for the end-to-end search pipeline with fake fetchers.
"""

from __future__ import annotations

import asyncio

import pytest

from traveling_birder.analysis.sampling import PlanningError
from traveling_birder.analysis.targets import ReferenceLists
from traveling_birder.datasources.ebird import Hotspot, Observation
from traveling_birder.orchestrator import Snapshot
from traveling_birder.schemas import (
    BoundingBox,
    BoxShape,
    Coordinate,
    ListMode,
    PointShape,
    RegionShape,
    RouteShape,
    SearchRequest,
)
from traveling_birder.search import search
from traveling_birder.services.routing import Route


def _obs(
    name: str,
    sub_id: str = "S1",
    lat: float = 45.0,
    lng: float = -122.0,
    obs_dt: str = "2024-05-01 08:00",
) -> Observation:
    return Observation(
        species_code=name.lower()[:6],
        common_name=name,
        lat=lat,
        lng=lng,
        obs_dt=obs_dt,
        sub_id=sub_id,
        loc_name="Somewhere",
    )


def _point_request(**kwargs: object) -> SearchRequest:
    return SearchRequest(shape=PointShape(center=Coordinate(lat=45.0, lng=-122.0)), **kwargs)


class TestPointSearch:
    """Single-point searches."""

    def test_life_targets(self) -> None:
        robin, jay = _obs("Robin"), _obs("Jay")

        def fetch(point: Coordinate, radius_km: float, days: int) -> list[Observation]:
            return [robin, jay]

        result = asyncio.run(
            search(
                _point_request(list_mode=ListMode.LIFE),
                fetch_observations=fetch,
                reference=ReferenceLists(life=frozenset({"Robin"})),
            )
        )
        assert [t.common_name for t in result.target_species] == ["Jay"]
        assert len(result.sample_points) == 1
        assert result.checklists[0].species == {"Robin", "Jay"}
        summary = result.summary()
        assert summary["targets"] == 1
        assert summary["expected_targets"] == 1
        assert (summary["notable_targets"], summary["regular_targets"]) == (0, 0)

    def test_dedup_by_location_and_species(self) -> None:
        older = _obs("Jay", sub_id="S1", obs_dt="2024-01-01")
        newer = _obs("Jay", sub_id="S2", obs_dt="2024-01-05")

        def fetch(point: Coordinate, radius_km: float, days: int) -> list[Observation]:
            return [older, newer]

        result = asyncio.run(search(_point_request(), fetch_observations=fetch))
        assert result.unique_sightings == [newer]
        assert len(result.raw_log) == 2
        assert {c.sub_id for c in result.checklists} == {"S1", "S2"}

    def test_radius_and_lookback_clamped(self) -> None:
        seen: list[tuple[float, int]] = []

        def fetch(point: Coordinate, radius_km: float, days: int) -> list[Observation]:
            seen.append((radius_km, days))
            return []

        asyncio.run(
            search(_point_request(radius_km=120, lookback_days=90), fetch_observations=fetch)
        )
        assert seen == [(50.0, 30)]

    def test_species_filter(self) -> None:
        def fetch(point: Coordinate, radius_km: float, days: int) -> list[Observation]:
            return [_obs("Robin"), _obs("Jay")]

        result = asyncio.run(
            search(_point_request(species_code="jay"), fetch_observations=fetch)
        )
        assert [o.common_name for o in result.unique_sightings] == ["Jay"]
        assert result.checklists[0].species_count == 2

    def test_species_filter_applies_to_progress(self) -> None:
        def fetch(point: Coordinate, radius_km: float, days: int) -> list[Observation]:
            return [_obs("Blue Jay"), _obs("American Robin")]

        snapshots: list[Snapshot] = []
        result = asyncio.run(
            search(
                _point_request(species_code="blue j"),
                fetch_observations=fetch,
                on_progress=snapshots.append,
            )
        )
        final_codes = [o.species_code for o in result.unique_sightings]
        assert final_codes == ["blue j"]
        assert [o.species_code for o in snapshots[-1].unique_sightings] == final_codes
        assert snapshots[-1].checklists[0].species_count == 2

    def test_failure_gives_empty_result(self) -> None:
        def fetch(point: Coordinate, radius_km: float, days: int) -> list[Observation]:
            raise ConnectionError("offline")

        result = asyncio.run(search(_point_request(), fetch_observations=fetch))
        assert result.is_empty
        assert result.unique_sightings == []
        assert result.summary()["failed_points"] == 1

    def test_progress_callback(self) -> None:
        snapshots: list[Snapshot] = []

        def fetch(point: Coordinate, radius_km: float, days: int) -> list[Observation]:
            return [_obs("Robin")]

        asyncio.run(
            search(_point_request(), fetch_observations=fetch, on_progress=snapshots.append)
        )
        assert [s.completed for s in snapshots] == [1]

    def test_hotspots_ranked(self) -> None:
        def fetch(point: Coordinate, radius_km: float, days: int) -> list[Observation]:
            return []

        def hotspots(point: Coordinate, radius_km: float) -> list[Hotspot]:
            return [
                Hotspot(loc_id="A", name="A", num_species_all_time=50),
                Hotspot(loc_id="B", name="B", num_species_all_time=80),
                Hotspot(loc_id="C", name="C", num_species_all_time=30),
            ]

        result = asyncio.run(
            search(_point_request(top_n=2), fetch_observations=fetch, fetch_hotspots=hotspots)
        )
        assert [h.loc_id for h in result.hotspots] == ["B", "A"]


class TestBoxSearch:
    """Grid searches."""

    def test_visits_every_grid_point(self) -> None:
        calls: list[Coordinate] = []

        async def fetch(point: Coordinate, radius_km: float, days: int) -> list[Observation]:
            calls.append(point)
            return [_obs("Robin", sub_id=f"S{len(calls)}", lat=point.lat, lng=point.lng)]

        bounds = BoundingBox(south=44.0, west=-123.0, north=45.0, east=-122.0)
        result = asyncio.run(
            search(SearchRequest(shape=BoxShape(bounds=bounds)), fetch_observations=fetch)
        )
        assert calls == result.sample_points
        assert len(calls) > 1
        assert len(result.unique_sightings) == len(calls)

    def test_same_report_from_two_cells_collapses(self) -> None:
        shared = _obs("Robin")

        def fetch(point: Coordinate, radius_km: float, days: int) -> list[Observation]:
            return [shared]

        bounds = BoundingBox(south=44.0, west=-123.0, north=45.0, east=-122.0)
        result = asyncio.run(
            search(SearchRequest(shape=BoxShape(bounds=bounds)), fetch_observations=fetch)
        )
        assert len(result.raw_log) == len(result.sample_points)
        assert len(result.unique_sightings) == 1

    def test_invalid_spacing_fails_before_fetching(self) -> None:
        calls: list[Coordinate] = []

        def fetch(point: Coordinate, radius_km: float, days: int) -> list[Observation]:
            calls.append(point)
            return []

        bounds = BoundingBox(south=44.0, west=-123.0, north=45.0, east=-122.0)
        with pytest.raises(PlanningError):
            asyncio.run(
                search(
                    SearchRequest(shape=BoxShape(bounds=bounds)),
                    fetch_observations=fetch,
                    spacing_miles=0,
                )
            )
        assert calls == []


class TestRouteSearch:
    """Route searches resolve the route first."""

    def _route(self) -> Route:
        path = [Coordinate(lat=45.0 + i * 0.05, lng=-122.0) for i in range(40)]
        return Route(path=path, total_distance_miles=135.0)

    def test_samples_along_route(self) -> None:
        route = self._route()
        calls: list[Coordinate] = []

        def fetch_route(
            origin: Coordinate, destination: Coordinate, waypoints: list[Coordinate]
        ) -> Route:
            return route

        def fetch(point: Coordinate, radius_km: float, days: int) -> list[Observation]:
            calls.append(point)
            return []

        shape = RouteShape(origin=route.path[0], destination=route.path[-1])
        result = asyncio.run(
            search(SearchRequest(shape=shape), fetch_observations=fetch, fetch_route=fetch_route)
        )
        assert result.route is route
        assert calls[0] == route.path[0]
        assert calls[-1] == route.path[-1]
        assert calls == result.sample_points

    def test_missing_route_fetcher(self) -> None:
        shape = RouteShape(
            origin=Coordinate(lat=45.0, lng=-122.0), destination=Coordinate(lat=46.0, lng=-122.0)
        )
        with pytest.raises(PlanningError):
            asyncio.run(search(SearchRequest(shape=shape), fetch_observations=lambda *a: []))


class TestRegionSearch:
    """Whole-region searches."""

    def test_single_fetch_and_hotspots_near_first_sighting(self) -> None:
        region_calls: list[tuple[str, int]] = []
        hotspot_points: list[Coordinate] = []

        def fetch_region(code: str, days: int) -> list[Observation]:
            region_calls.append((code, days))
            return [_obs("Robin", lat=44.1, lng=-121.3), _obs("Jay")]

        def fetch_hotspots(point: Coordinate, radius_km: float) -> list[Hotspot]:
            hotspot_points.append(point)
            return [Hotspot(loc_id="L1", name="Park")]

        def fetch(point: Coordinate, radius_km: float, days: int) -> list[Observation]:
            raise AssertionError("point fetcher must not be used for regions")

        result = asyncio.run(
            search(
                SearchRequest(shape=RegionShape(region_code="US-OR"), lookback_days=14),
                fetch_observations=fetch,
                fetch_region=fetch_region,
                fetch_hotspots=fetch_hotspots,
            )
        )
        assert region_calls == [("US-OR", 14)]
        assert hotspot_points == [Coordinate(lat=44.1, lng=-121.3)]
        assert len(result.unique_sightings) == 2
        assert [h.loc_id for h in result.hotspots] == ["L1"]

    def test_region_failure_is_isolated(self) -> None:
        def fetch_region(code: str, days: int) -> list[Observation]:
            raise TimeoutError("slow")

        result = asyncio.run(
            search(
                SearchRequest(shape=RegionShape(region_code="US-OR")),
                fetch_observations=lambda *a: [],
                fetch_region=fetch_region,
            )
        )
        assert result.is_empty
        assert len(result.failures) == 1
