"""
Sample-point planning.

Turns a search shape into the ordered list of coordinates the orchestrator
queries, one eBird request per point. Spacing is fixed (20 miles by default)
and independent of the search radius, so circles overlap for any radius
above ~10 miles.

  - point: exactly one sample
  - box:   row-major grid from the south-west corner
  - path:  polyline resampled every ``spacing`` miles, endpoints kept

Planning is deterministic and never returns an empty list. Oversized
boxes are re-planned at the narrowest spacing that fits ``max_points``;
long paths are resampled down to ``max_points``.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

from traveling_birder.geometry import grid_points, grid_steps, miles_to_degrees, path_length_miles
from traveling_birder.reference.search import GRID_SPACING_MILES, MILES_PER_DEGREE
from traveling_birder.schemas import BoundingBox, BoxShape, Coordinate, PathShape, PointShape

logger = logging.getLogger(__name__)

# Bisection steps when fitting an oversized box to the point cap.
_FIT_ITERATIONS = 60


class PlanningError(ValueError):
    """The search shape can't be planned (non-finite or empty input)."""


def _check_finite(*coords: Coordinate) -> None:
    for c in coords:
        if not (math.isfinite(c.lat) and math.isfinite(c.lng)):
            msg = f"non-finite coordinate: ({c.lat}, {c.lng})"
            raise PlanningError(msg)


# =============================================================================
# Per-shape planners
# =============================================================================


def plan_point(center: Coordinate) -> list[Coordinate]:
    """A single-point search samples exactly that point."""
    _check_finite(center)
    return [center]


def _grid_size(bounds: BoundingBox, spacing_miles: float) -> int:
    step = miles_to_degrees(spacing_miles)
    return len(grid_steps(bounds.south, bounds.north, step)) * len(
        grid_steps(bounds.west, bounds.east, step)
    )


def _fit_spacing(bounds: BoundingBox, spacing_miles: float, max_points: int) -> float:
    """
    Smallest spacing whose grid over ``bounds`` has at most ``max_points``.

    Grid size only shrinks as spacing grows, so bisect between the requested
    spacing (too many points) and one wider than the box (a single point).
    The result is the densest grid that still fits, which keeps capped
    counts from dropping as the box grows.
    """
    extent = max(bounds.north - bounds.south, bounds.east - bounds.west)
    lo = spacing_miles
    hi = spacing_miles + 2 * extent * MILES_PER_DEGREE
    for _ in range(_FIT_ITERATIONS):
        mid = (lo + hi) / 2
        if _grid_size(bounds, mid) <= max_points:
            hi = mid
        else:
            lo = mid
    return hi


def plan_grid(
    bounds: BoundingBox,
    spacing_miles: float = GRID_SPACING_MILES,
    *,
    max_points: int | None = None,
) -> list[Coordinate]:
    """
    Grid of sample points covering ``bounds``.

    Starts at the south-west corner and steps ``spacing_miles`` (converted to
    degrees) north and east, including the north-east edge when it falls on
    a step. If the grid would exceed ``max_points``, spacing is widened to the
    smallest value that fits; the south-west corner stays the first point.
    """
    _check_finite(bounds.south_west, bounds.north_east)
    if spacing_miles <= 0 or not math.isfinite(spacing_miles):
        msg = f"spacing must be a positive number of miles, got {spacing_miles}"
        raise PlanningError(msg)

    if max_points is not None and max_points < 1:
        msg = f"max_points must be at least 1, got {max_points}"
        raise PlanningError(msg)

    requested = _grid_size(bounds, spacing_miles)
    if max_points is None or requested <= max_points:
        return grid_points(bounds, miles_to_degrees(spacing_miles))

    spacing = _fit_spacing(bounds, spacing_miles, max_points)
    points = grid_points(bounds, miles_to_degrees(spacing))
    logger.warning(
        "Grid of %d points exceeds cap of %d; spacing widened from %.1f to %.1f miles (%d points)",
        requested,
        max_points,
        spacing_miles,
        spacing,
        len(points),
    )
    return points


def plan_path(
    path: Sequence[Coordinate],
    total_distance_miles: float | None = None,
    spacing_miles: float = GRID_SPACING_MILES,
    *,
    max_points: int | None = None,
) -> list[Coordinate]:
    """
    Resample a polyline into evenly strided sample points.

    The target count is ``ceil(distance / spacing) + 1`` (at least 2), taken
    as every k-th vertex. The exact first and last vertices are always
    included even when the stride would skip the last one.

    Args:
        path: Route vertices in travel order.
        total_distance_miles: Route length from the routing service. Computed
            from the vertices when omitted.
        spacing_miles: Target distance between samples.
        max_points: Optional cap on the number of samples.
    """
    if not path:
        msg = "cannot plan an empty path"
        raise PlanningError(msg)
    _check_finite(*path)
    if spacing_miles <= 0 or not math.isfinite(spacing_miles):
        msg = f"spacing must be a positive number of miles, got {spacing_miles}"
        raise PlanningError(msg)

    last = path[-1]
    if len(path) == 1:
        return [path[0]]

    distance = total_distance_miles
    if distance is None or not math.isfinite(distance):
        distance = path_length_miles(path)

    target = max(2, math.ceil(distance / spacing_miles) + 1)
    if max_points is not None:
        target = max(2, min(target, max_points))

    stride = max(1, math.ceil((len(path) - 1) / (target - 1)))
    samples = list(path[::stride])
    if samples[-1] != last:
        samples.append(last)

    # ceil stride keeps us at or under target, but endpoint append can add one
    if max_points is not None and len(samples) > max(2, max_points):
        samples = samples[: max(2, max_points) - 1] + [last]

    return samples


# =============================================================================
# Dispatcher
# =============================================================================


def plan_sample_points(
    shape: PointShape | BoxShape | PathShape,
    spacing_miles: float = GRID_SPACING_MILES,
    *,
    max_points: int | None = None,
) -> list[Coordinate]:
    """Plan sample points for any concrete search shape."""
    if isinstance(shape, PointShape):
        return plan_point(shape.center)
    if isinstance(shape, BoxShape):
        return plan_grid(shape.bounds, spacing_miles, max_points=max_points)
    if isinstance(shape, PathShape):
        return plan_path(
            shape.path,
            shape.total_distance_miles,
            spacing_miles,
            max_points=max_points,
        )
    msg = f"shape {type(shape).__name__} has no sample-point plan"
    raise PlanningError(msg)
