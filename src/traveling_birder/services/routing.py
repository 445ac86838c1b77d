"""
Driving routes for route searches.

Uses OpenRouteService directions: https://openrouteservice.org/
Free tier: 2000 requests/day
Requires API key: BIRDER_ORS_API_KEY env var

Example:
    from traveling_birder.services import routing
    route = routing.fetch_route(origin, destination, [], api_key="...")
    route.path[0], route.total_distance_miles
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import requests

from traveling_birder.geometry import km_to_miles
from traveling_birder.schemas import Coordinate
from traveling_birder.services.http import session

ORS_API = "https://api.openrouteservice.org/v2"
DEFAULT_PROFILE = "driving-car"


class RoutingError(RuntimeError):
    """Raised when no route can be produced."""


@dataclass
class Route:
    """A resolved route: polyline plus total driving distance."""

    path: list[Coordinate]
    total_distance_miles: float
    duration_seconds: float | None = None


def _parse_route(data: dict[str, Any]) -> Route:
    features = data.get("features") or []
    if not features:
        msg = "routing service returned no route"
        raise RoutingError(msg)

    feature = features[0]
    coords = (feature.get("geometry") or {}).get("coordinates") or []
    if not coords:
        msg = "route has no geometry"
        raise RoutingError(msg)

    summary = (feature.get("properties") or {}).get("summary") or {}
    # GeoJSON is lng,lat; distance is metres with units=m (the default)
    path = [Coordinate(lat=c[1], lng=c[0]) for c in coords]
    return Route(
        path=path,
        total_distance_miles=km_to_miles(float(summary.get("distance", 0.0)) / 1000.0),
        duration_seconds=summary.get("duration"),
    )


def fetch_route(
    origin: Coordinate,
    destination: Coordinate,
    waypoints: list[Coordinate] | None = None,
    *,
    api_key: str | None,
    profile: str = DEFAULT_PROFILE,
) -> Route:
    """
    Fetch a driving route through optional intermediate waypoints.

    Args:
        origin: Start of the trip.
        destination: End of the trip.
        waypoints: Stops in visiting order.
        api_key: OpenRouteService API key.
        profile: ORS routing profile.

    Returns:
        Route with the full polyline and total distance in miles.
    """
    if not api_key:
        msg = "OpenRouteService API key not configured (set BIRDER_ORS_API_KEY)"
        raise RoutingError(msg)

    stops = [origin, *(waypoints or []), destination]
    body = {"coordinates": [[c.lng, c.lat] for c in stops]}
    try:
        resp = session.post(
            f"{ORS_API}/directions/{profile}/geojson",
            json=body,
            headers={"Authorization": api_key},
        )
        resp.raise_for_status()
    except requests.RequestException as exc:
        msg = f"OpenRouteService request failed: {exc}"
        raise RoutingError(msg) from exc
    return _parse_route(resp.json())
