"""
Prefect flow wiring eBird and routing into ``search()``.

The blocking ``requests`` calls in ``datasources/ebird`` run in a worker
thread (``asyncio.to_thread``) so the search loop stays a single coroutine
awaiting one request at a time.

Run locally:
    BIRDER_EBIRD_API_KEY=... python -m traveling_birder.flows.search
"""

from __future__ import annotations

import asyncio
from dataclasses import asdict
from datetime import date
from pathlib import Path
from typing import Any

from prefect import flow, task
from prefect.cache_policies import NONE

from traveling_birder.analysis.targets import ReferenceLists, display_sort, unique_species
from traveling_birder.config import get_settings
from traveling_birder.datasources import ebird
from traveling_birder.datasources.ebird import Hotspot, Observation
from traveling_birder.orchestrator import HotspotFetcher, ObservationFetcher, Snapshot
from traveling_birder.reference.rarity import aba_label
from traveling_birder.reference.search import GRID_SPACING_MILES, MAX_SAMPLE_POINTS
from traveling_birder.schemas import Coordinate, PointShape, SearchRequest
from traveling_birder.search import RegionFetcher, RouteFetcher, SearchResult, search
from traveling_birder.services import routing
from traveling_birder.store import DataStore

# Pinned store; None builds one under Settings.data_dir on each call.
store: DataStore | None = None

REFERENCE_PATH = Path("reference/species_last_seen.json")
RESULTS_PATH = Path("live/search_results.json")


def get_store() -> DataStore:
    """The pinned ``store``, or one rooted at ``Settings.data_dir``."""
    return store if store is not None else DataStore(get_settings().data_dir)


# =============================================================================
# Fetch adapters
# =============================================================================


def make_observation_fetcher(api_key: str | None) -> ObservationFetcher:
    """Async ``(point, radius_km, lookback_days)`` fetcher backed by eBird."""

    async def fetch(point: Coordinate, radius_km: float, lookback_days: int) -> list[Observation]:
        return await asyncio.to_thread(
            ebird.fetch_recent_observations,
            point.lat,
            point.lng,
            radius_km,
            lookback_days,
            api_key=api_key,
        )

    return fetch


def make_hotspot_fetcher(api_key: str | None) -> HotspotFetcher:
    """Async ``(point, radius_km)`` hotspot fetcher backed by eBird."""

    async def fetch(point: Coordinate, radius_km: float) -> list[Hotspot]:
        return await asyncio.to_thread(
            ebird.fetch_hotspots, point.lat, point.lng, radius_km, api_key=api_key
        )

    return fetch


def make_region_fetcher(api_key: str | None) -> RegionFetcher:
    """Async ``(region_code, lookback_days)`` fetcher backed by eBird."""

    async def fetch(region_code: str, lookback_days: int) -> list[Observation]:
        return await asyncio.to_thread(
            ebird.fetch_region_observations, region_code, lookback_days, api_key=api_key
        )

    return fetch


def make_route_fetcher(api_key: str | None) -> RouteFetcher:
    """Async route resolver backed by OpenRouteService."""

    async def fetch(
        origin: Coordinate, destination: Coordinate, waypoints: list[Coordinate]
    ) -> routing.Route:
        return await asyncio.to_thread(
            routing.fetch_route, origin, destination, waypoints, api_key=api_key
        )

    return fetch


# =============================================================================
# Serialization
# =============================================================================


def _observation_dict(obs: Observation) -> dict[str, Any]:
    return {**asdict(obs), "checklist_url": obs.checklist_url}


def result_to_dict(result: SearchResult) -> dict[str, Any]:
    """JSON-ready view of a search result (targets in display order)."""
    tiers = {name: f.tier.value for name, f in result.classification.frequencies.items()}
    return {
        "request": result.request.model_dump(mode="json"),
        "summary": result.summary(),
        "targets": [
            {
                **_observation_dict(o),
                "tier": tiers.get(o.species_name),
                "rarity": aba_label(o.aba_code),
            }
            for o in display_sort(unique_species(result.target_species))
        ],
        "sightings": [_observation_dict(o) for o in result.unique_sightings],
        "checklists": [
            {
                "sub_id": c.sub_id,
                "loc_name": c.loc_name,
                "loc_id": c.loc_id,
                "lat": c.lat,
                "lng": c.lng,
                "obs_dt": c.obs_dt,
                "observer": c.observer,
                "species_count": c.species_count,
                "species": sorted(c.species),
                "url": c.url,
            }
            for c in result.checklists
        ],
        "hotspots": [{**asdict(h), "url": h.url} for h in result.hotspots],
        "failures": [
            {"index": f.index, "kind": f.kind, "error": f.error} for f in result.failures
        ],
    }


# =============================================================================
# Tasks
# =============================================================================


@task(name="load-reference-lists")
def load_reference_lists(today: date | None = None) -> ReferenceLists:
    """Load species last-seen dates from the store and derive target lists.

    Expects ``{"species": {"<common name>": "YYYY-MM-DD" | null, ...}}``.
    """
    data = get_store().read(REFERENCE_PATH) or {}
    raw = data.get("species") if isinstance(data, dict) else None
    if not isinstance(raw, dict):
        if raw is not None:
            print(f"Ignoring malformed reference list in {REFERENCE_PATH}")
        raw = {}
    last_seen: dict[str, date | None] = {}
    for name, value in raw.items():
        try:
            last_seen[str(name)] = date.fromisoformat(value) if value else None
        except (TypeError, ValueError):
            last_seen[str(name)] = None
    return ReferenceLists.from_last_seen(last_seen, today)


@task(name="fetch-life-list", retries=2, retry_delay_seconds=5)
def fetch_life_list(region_code: str, api_key: str | None) -> ReferenceLists:
    """Life list from the species eBird has on record for ``region_code``."""
    codes = ebird.fetch_species_list(region_code, api_key=api_key)
    print(f"Loaded {len(codes)} species codes for {region_code} as the life list")
    return ReferenceLists.from_species_codes(codes)


@task(name="save-search-results", cache_policy=NONE)
def save_search_results(result: SearchResult) -> Path:
    """Save search results via store."""
    summary = result.summary()
    return get_store().write(
        RESULTS_PATH,
        result_to_dict(result),
        source="ebird.org",
        observations=summary["observations"],
    )


# =============================================================================
# Flow
# =============================================================================


def _print_progress(snapshot: Snapshot) -> None:
    print(
        f"Searched area {snapshot.completed}/{snapshot.total} ({snapshot.percent}%): "
        f"{len(snapshot.unique_sightings)} birds on {len(snapshot.checklists)} checklists so far"
    )


@flow(name="search-observations", log_prints=True)
async def search_observations(
    request: SearchRequest,
    ebird_api_key: str | None = None,
    ors_api_key: str | None = None,
    spacing_miles: float = GRID_SPACING_MILES,
    max_points: int = MAX_SAMPLE_POINTS,
    life_list_region: str | None = None,
) -> dict[str, Any]:
    """
    Run a search against eBird and save the results.

    When no life list has been imported and ``life_list_region`` is set, the
    region's eBird species list is used as the life list instead.

    Returns the result summary (counts per output).
    """
    reference = load_reference_lists()
    if not reference.life and life_list_region and ebird_api_key:
        reference = fetch_life_list(life_list_region, ebird_api_key)

    result = await search(
        request,
        fetch_observations=make_observation_fetcher(ebird_api_key),
        fetch_hotspots=make_hotspot_fetcher(ebird_api_key),
        fetch_route=make_route_fetcher(ors_api_key),
        fetch_region=make_region_fetcher(ebird_api_key),
        reference=reference,
        on_progress=_print_progress,
        spacing_miles=spacing_miles,
        max_points=max_points,
    )

    summary = result.summary()
    if result.is_empty:
        print("No observations found.")
    output_path = save_search_results(result)
    print(f"Saved {summary['unique_sightings']} sightings to {output_path}")
    return summary


if __name__ == "__main__":
    settings = get_settings()
    req = SearchRequest(
        shape=PointShape(center=Coordinate(lat=settings.lat, lng=settings.lon)),
        radius_km=settings.default_radius_km,
        lookback_days=settings.default_lookback_days,
    )
    summary = asyncio.run(search_observations(req, ebird_api_key=settings.ebird_api_key))
    print(f"Flow complete: {summary}")
