"""
Sequential fetch loop over planned sample points.

One eBird request per sample point, strictly in planner order and one at a
time: the API is rate limited, and progress snapshots must always describe
a prefix of the plan. A failed point is logged and skipped; everything
accumulated so far is kept. If every point fails the raw log is simply
empty.

Fetchers may be plain functions or coroutine functions::

    async def fetch_observations(point, radius_km, lookback_days) -> list[Observation]
    def fetch_hotspots(point, radius_km) -> list[Hotspot]

The orchestrator adds no retries or timeouts of its own. A fetcher that never
returns stalls the search; wrap it (``asyncio.wait_for``) if that matters.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from traveling_birder.analysis.checklists import Checklist, build_checklists
from traveling_birder.analysis.dedup import IdentityKey, composite_key, deduplicate
from traveling_birder.datasources.ebird import Hotspot, Observation
from traveling_birder.reference.search import GRID_HOTSPOT_STRIDE
from traveling_birder.schemas import Coordinate

logger = logging.getLogger(__name__)

ObservationFetcher = Callable[
    [Coordinate, float, int], Awaitable[list[Observation]] | list[Observation]
]
HotspotFetcher = Callable[[Coordinate, float], Awaitable[list[Hotspot]] | list[Hotspot]]


# =============================================================================
# Data Model
# =============================================================================


@dataclass(frozen=True)
class Snapshot:
    """Progress after ``completed`` of ``total`` sample points.

    ``raw_log`` is an immutable copy; ``unique_sightings`` and ``checklists``
    were both derived from exactly that copy.
    """

    completed: int
    total: int
    raw_log: tuple[Observation, ...]
    unique_sightings: list[Observation]
    checklists: list[Checklist] = field(default_factory=list)

    @property
    def percent(self) -> int:
        return round(self.completed / self.total * 100) if self.total else 100


SnapshotCallback = Callable[[Snapshot], Any]
SightingFilter = Callable[[Observation], bool]


@dataclass(frozen=True)
class PointFailure:
    """A sample point whose fetch raised."""

    index: int
    point: Coordinate | None
    error: str
    kind: str = "observations"


@dataclass
class Collection:
    """Everything gathered for one search invocation."""

    raw_log: list[Observation] = field(default_factory=list)
    hotspots: list[Hotspot] = field(default_factory=list)
    failures: list[PointFailure] = field(default_factory=list)
    points_total: int = 0

    @property
    def points_succeeded(self) -> int:
        failed = {f.index for f in self.failures if f.kind == "observations"}
        return self.points_total - len(failed)


# =============================================================================
# Helpers
# =============================================================================


def default_snapshot_stride(total: int) -> int:
    """Snapshot every point for short plans, every 3rd or 5th for longer ones."""
    if total <= 5:
        return 1
    if total <= 30:
        return 3
    return 5


def is_checkpoint(index: int, total: int, stride: int) -> bool:
    """First point, every ``stride``-th point, and the last point."""
    return index == 0 or (index + 1) % stride == 0 or index == total - 1


async def _call(fn: Callable[..., Any], *args: Any) -> Any:
    result = fn(*args)
    if inspect.isawaitable(result):
        return await result
    return result


def dedupe_hotspots(hotspots: Sequence[Hotspot]) -> list[Hotspot]:
    """First hotspot per ``loc_id``."""
    by_id: dict[str, Hotspot] = {}
    for h in hotspots:
        by_id.setdefault(h.loc_id, h)
    return list(by_id.values())


# =============================================================================
# Orchestrator
# =============================================================================


async def collect_observations(
    points: Sequence[Coordinate],
    fetch_observations: ObservationFetcher,
    *,
    radius_km: float,
    lookback_days: int,
    fetch_hotspots: HotspotFetcher | None = None,
    hotspot_stride: int = GRID_HOTSPOT_STRIDE,
    snapshot_stride: int | None = None,
    on_snapshot: SnapshotCallback | None = None,
    key: IdentityKey = composite_key,
    sighting_filter: SightingFilter | None = None,
) -> Collection:
    """
    Fetch every sample point in order and accumulate the raw log.

    Args:
        points: Planned sample points, visited in order.
        fetch_observations: ``(point, radius_km, lookback_days) -> observations``.
        radius_km: Radius passed to every observation/hotspot fetch.
        lookback_days: Days of history passed to every observation fetch.
        fetch_hotspots: Optional ``(point, radius_km) -> hotspots``, called on
            points ``0, stride, 2*stride, ...``.
        hotspot_stride: Stride for hotspot fetches.
        snapshot_stride: Emit snapshots every N points (plus first and last).
            Defaults to ``default_snapshot_stride(len(points))``.
        on_snapshot: Called synchronously with a ``Snapshot`` at each checkpoint.
        key: Identity key used to dedupe snapshot sightings.
        sighting_filter: Predicate applied to snapshot sightings after dedup,
            so partial results narrow the same way the final result does.

    Returns:
        Collection with the raw log, deduplicated hotspots, and failures.
    """
    total = len(points)
    stride = snapshot_stride or default_snapshot_stride(total)
    collection = Collection(points_total=total)
    hotspots: list[Hotspot] = []

    for i, point in enumerate(points):
        logger.debug("Searching area %d/%d at (%.4f, %.4f)", i + 1, total, point.lat, point.lng)
        try:
            observations = await _call(fetch_observations, point, radius_km, lookback_days)
        except Exception as exc:
            logger.warning(
                "Error searching point %d/%d (%.4f, %.4f): %s",
                i + 1,
                total,
                point.lat,
                point.lng,
                exc,
            )
            collection.failures.append(PointFailure(index=i, point=point, error=str(exc)))
        else:
            collection.raw_log.extend(observations)

        if fetch_hotspots is not None and hotspot_stride > 0 and i % hotspot_stride == 0:
            try:
                hotspots.extend(await _call(fetch_hotspots, point, radius_km))
            except Exception as exc:
                logger.warning("Could not load hotspots at point %d/%d: %s", i + 1, total, exc)
                collection.failures.append(
                    PointFailure(index=i, point=point, error=str(exc), kind="hotspots")
                )

        if on_snapshot is not None and is_checkpoint(i, total, stride):
            raw = tuple(collection.raw_log)
            unique = deduplicate(raw, key)
            if sighting_filter is not None:
                unique = [o for o in unique if sighting_filter(o)]
            snapshot = Snapshot(
                completed=i + 1,
                total=total,
                raw_log=raw,
                unique_sightings=unique,
                checklists=build_checklists(raw),
            )
            logger.debug(
                "Snapshot %d/%d: %d observations, %d unique, %d checklists",
                snapshot.completed,
                total,
                len(raw),
                len(snapshot.unique_sightings),
                len(snapshot.checklists),
            )
            on_snapshot(snapshot)

    collection.hotspots = dedupe_hotspots(hotspots)
    if total and not collection.points_succeeded:
        logger.warning("All %d sample points failed; returning empty results", total)
    return collection
