"""
Geometry helpers for planning searches.

Great-circle distance, degree/radian conversion, bounding boxes around a
centre point, and regular lat/lng grids. All functions are pure.

The grid uses a flat degrees-per-mile approximation (``MILES_PER_DEGREE``)
for both axes, same as the search radius math eBird users are used to.
Longitude spacing therefore shrinks in real distance toward the poles; sample
circles overlap more, never less.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from traveling_birder.reference.search import KM_PER_MILE, MILES_PER_DEGREE
from traveling_birder.schemas import BoundingBox, Coordinate

EARTH_RADIUS_KM = 6371.0088
EARTH_RADIUS_MILES = EARTH_RADIUS_KM / KM_PER_MILE

# Guard against float drift when checking if the last grid row/column still fits.
_GRID_EPSILON = 1e-9


def to_radians(degrees: float) -> float:
    """Degrees -> radians."""
    return degrees * math.pi / 180.0


def to_degrees(radians: float) -> float:
    """Radians -> degrees."""
    return radians * 180.0 / math.pi


def miles_to_km(miles: float) -> float:
    return miles * KM_PER_MILE


def km_to_miles(km: float) -> float:
    return km / KM_PER_MILE


def miles_to_degrees(miles: float) -> float:
    """Approximate span in degrees covered by ``miles``."""
    return miles / MILES_PER_DEGREE


def haversine_km(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance between two coordinates in kilometres."""
    lat1, lat2 = to_radians(a.lat), to_radians(b.lat)
    dlat = lat2 - lat1
    dlng = to_radians(b.lng - a.lng)
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(h)))


def haversine_miles(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance between two coordinates in miles."""
    return km_to_miles(haversine_km(a, b))


def path_length_miles(path: Sequence[Coordinate]) -> float:
    """Sum of great-circle segment lengths along a polyline."""
    return sum(haversine_miles(p, q) for p, q in zip(path, path[1:], strict=False))


def bounding_box_around(center: Coordinate, radius_km: float) -> BoundingBox:
    """
    Square box extending ``radius_km`` from ``center`` in each direction.

    Uses the same flat degrees-per-mile approximation as the grid and clamps
    to valid lat/lng ranges.
    """
    span = miles_to_degrees(km_to_miles(radius_km))
    return BoundingBox(
        south=max(-90.0, center.lat - span),
        west=max(-180.0, center.lng - span),
        north=min(90.0, center.lat + span),
        east=min(180.0, center.lng + span),
    )


def grid_steps(start: float, stop: float, step: float) -> list[float]:
    """
    Values ``start, start + step, ...`` up to and including ``stop``.

    Computed by index rather than repeated addition so long rows don't drift.
    Always returns at least ``[start]``.
    """
    if step <= 0:
        msg = f"step must be positive, got {step}"
        raise ValueError(msg)
    count = int(math.floor((stop - start) / step + _GRID_EPSILON)) + 1
    return [start + i * step for i in range(max(1, count))]


def grid_points(bounds: BoundingBox, spacing_degrees: float) -> list[Coordinate]:
    """
    Row-major grid over ``bounds``, starting at the south-west corner.

    Rows advance north, columns advance east. The north/east edges are
    included when they land exactly on a step.
    """
    lats = grid_steps(bounds.south, bounds.north, spacing_degrees)
    lngs = grid_steps(bounds.west, bounds.east, spacing_degrees)
    return [Coordinate(lat=lat, lng=lng) for lat in lats for lng in lngs]
