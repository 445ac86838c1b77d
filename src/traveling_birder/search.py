"""
The search pipeline: plan -> fetch -> aggregate -> classify.

``search()`` owns all state for one invocation. Nothing is stored at module
level; two concurrent searches never share a raw log. Callers that re-trigger
a search are responsible for discarding the stale one.

Every aggregation in a ``SearchResult`` is derived from the same final raw
log, so checklist species counts and displayed sightings always agree.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from traveling_birder.analysis.checklists import Checklist, build_checklists
from traveling_birder.analysis.dedup import composite_key, deduplicate, location_species_key
from traveling_birder.analysis.ranking import rank_checklists, rank_hotspots
from traveling_birder.analysis.sampling import PlanningError, plan_sample_points
from traveling_birder.analysis.targets import (
    Classification,
    ReferenceLists,
    classify_sightings,
    target_statistics,
)
from traveling_birder.datasources.ebird import Hotspot, Observation
from traveling_birder.orchestrator import (
    Collection,
    HotspotFetcher,
    ObservationFetcher,
    PointFailure,
    SightingFilter,
    SnapshotCallback,
    collect_observations,
    dedupe_hotspots,
)
from traveling_birder.reference.search import (
    GRID_HOTSPOT_STRIDE,
    GRID_SPACING_MILES,
    MAX_SAMPLE_POINTS,
    ROUTE_HOTSPOT_STRIDE,
)
from traveling_birder.schemas import (
    BoxShape,
    Coordinate,
    PathShape,
    PointShape,
    RegionShape,
    RouteShape,
    SearchRequest,
)
from traveling_birder.services.routing import Route

logger = logging.getLogger(__name__)

RouteFetcher = Callable[
    [Coordinate, Coordinate, list[Coordinate]], Awaitable[Route] | Route
]
RegionFetcher = Callable[[str, int], Awaitable[list[Observation]] | list[Observation]]


@dataclass
class SearchResult:
    """Terminal output of one search."""

    request: SearchRequest
    raw_log: list[Observation] = field(default_factory=list)
    unique_sightings: list[Observation] = field(default_factory=list)
    checklists: list[Checklist] = field(default_factory=list)
    hotspots: list[Hotspot] = field(default_factory=list)
    target_species: list[Observation] = field(default_factory=list)
    classification: Classification = field(default_factory=Classification)
    sample_points: list[Coordinate] = field(default_factory=list)
    failures: list[PointFailure] = field(default_factory=list)
    route: Route | None = None

    @property
    def is_empty(self) -> bool:
        """True when nothing came back (every point failed or no birds)."""
        return not self.raw_log

    def summary(self) -> dict[str, Any]:
        """Counts for logging and the CLI."""
        stats = target_statistics(self.classification)
        return {
            "sample_points": len(self.sample_points),
            "failed_points": len({f.index for f in self.failures if f.kind == "observations"}),
            "observations": len(self.raw_log),
            "unique_sightings": len(self.unique_sightings),
            "species": len({o.species_name for o in self.unique_sightings}),
            "checklists": len(self.checklists),
            "hotspots": len(self.hotspots),
            "targets": len(self.target_species),
            "expected_targets": stats.expected,
            "notable_targets": stats.notable,
            "regular_targets": stats.regular,
        }


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def _species_filter(species_code: str | None) -> SightingFilter | None:
    """Predicate keeping one species, shared by snapshots and the final result."""
    if not species_code:
        return None
    return lambda obs: obs.species_code == species_code


async def _resolve_route(shape: RouteShape, fetch_route: RouteFetcher | None) -> tuple[PathShape, Route]:
    if fetch_route is None:
        msg = "route search needs a route fetcher"
        raise PlanningError(msg)
    route: Route = await _maybe_await(
        fetch_route(shape.origin, shape.destination, list(shape.waypoints))
    )
    logger.info("Total route distance: %.1f miles", route.total_distance_miles)
    path = PathShape(path=route.path, total_distance_miles=route.total_distance_miles)
    return path, route


async def _collect_region(
    shape: RegionShape,
    request: SearchRequest,
    fetch_region: RegionFetcher | None,
    fetch_hotspots: HotspotFetcher | None,
) -> Collection:
    """One region-wide fetch, plus hotspots around the first sighting."""
    if fetch_region is None:
        msg = "region search needs a region fetcher"
        raise PlanningError(msg)

    collection = Collection(points_total=1)
    try:
        collection.raw_log = list(
            await _maybe_await(fetch_region(shape.region_code, request.effective_lookback_days))
        )
    except Exception as exc:
        logger.warning("Error searching region %s: %s", shape.region_code, exc)
        collection.failures.append(PointFailure(index=0, point=None, error=str(exc)))
        return collection

    anchor = next((o for o in collection.raw_log if o.lat is not None and o.lng is not None), None)
    if fetch_hotspots is not None and anchor is not None:
        point = Coordinate(lat=anchor.lat, lng=anchor.lng)
        try:
            hotspots = await _maybe_await(fetch_hotspots(point, request.effective_radius_km))
            collection.hotspots = dedupe_hotspots(hotspots)
        except Exception as exc:
            logger.warning("Could not load hotspots for region %s: %s", shape.region_code, exc)
            collection.failures.append(
                PointFailure(index=0, point=point, error=str(exc), kind="hotspots")
            )
    return collection


async def search(
    request: SearchRequest,
    *,
    fetch_observations: ObservationFetcher,
    fetch_hotspots: HotspotFetcher | None = None,
    fetch_route: RouteFetcher | None = None,
    fetch_region: RegionFetcher | None = None,
    reference: ReferenceLists | None = None,
    on_progress: SnapshotCallback | None = None,
    spacing_miles: float = GRID_SPACING_MILES,
    max_points: int | None = MAX_SAMPLE_POINTS,
) -> SearchResult:
    """
    Run one search end to end.

    Args:
        request: Validated search request.
        fetch_observations: Per-point observation fetcher.
        fetch_hotspots: Per-point hotspot fetcher (optional).
        fetch_route: Resolves a ``RouteShape`` into a path (route searches only).
        fetch_region: Region-wide observation fetcher (region searches only).
        reference: The user's life/year/month lists. Empty when omitted.
        on_progress: Receives a ``Snapshot`` at each checkpoint.
        spacing_miles: Distance between sample points.
        max_points: Cap on sample points per search.

    Returns:
        SearchResult. An all-failed search returns an empty result, not an error.

    Raises:
        PlanningError: The shape can't be planned. Raised before any
            observation fetch.
    """
    shape = request.shape
    route: Route | None = None
    points: list[Coordinate] = []
    sighting_filter = _species_filter(request.species_code)

    if isinstance(shape, RegionShape):
        key = location_species_key
        collection = await _collect_region(shape, request, fetch_region, fetch_hotspots)
    else:
        if isinstance(shape, RouteShape):
            shape, route = await _resolve_route(shape, fetch_route)

        points = plan_sample_points(shape, spacing_miles, max_points=max_points)
        if isinstance(shape, PointShape):
            key, hotspot_stride = location_species_key, 1
        elif isinstance(shape, BoxShape):
            key, hotspot_stride = composite_key, GRID_HOTSPOT_STRIDE
        else:
            key, hotspot_stride = composite_key, ROUTE_HOTSPOT_STRIDE

        logger.info("Searching %d overlapping areas", len(points))
        collection = await collect_observations(
            points,
            fetch_observations,
            radius_km=request.effective_radius_km,
            lookback_days=request.effective_lookback_days,
            fetch_hotspots=fetch_hotspots,
            hotspot_stride=hotspot_stride,
            on_snapshot=on_progress,
            key=key,
            sighting_filter=sighting_filter,
        )

    raw_log = collection.raw_log
    unique = deduplicate(raw_log, key)
    if sighting_filter is not None:
        unique = [o for o in unique if sighting_filter(o)]

    classification = classify_sightings(
        unique, raw_log, reference or ReferenceLists(), request.list_mode
    )
    result = SearchResult(
        request=request,
        raw_log=raw_log,
        unique_sightings=unique,
        checklists=rank_checklists(build_checklists(raw_log), request.top_n),
        hotspots=rank_hotspots(collection.hotspots, request.top_n),
        target_species=classification.targets,
        classification=classification,
        sample_points=points,
        failures=collection.failures,
        route=route,
    )
    logger.info("Search complete: %s", result.summary())
    return result
