"""eBird hotspots: named birding locations with all-time species counts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from traveling_birder.datasources.ebird import client


@dataclass(frozen=True)
class Hotspot:
    """An eBird hotspot."""

    loc_id: str
    name: str
    lat: float | None = None
    lng: float | None = None
    num_species_all_time: int | None = None
    country_code: str | None = None
    subnational1_code: str | None = None
    latest_obs_dt: str | None = None

    @property
    def species_count(self) -> int:
        """All-time species count, 0 when eBird doesn't report one."""
        return self.num_species_all_time or 0

    @property
    def url(self) -> str:
        return client.HOTSPOT_URL.format(loc_id=self.loc_id)


def parse_hotspot(raw: dict[str, Any]) -> Hotspot:
    """Parse one hotspot dict from ``ref/hotspot/geo?fmt=json``."""
    count = raw.get("numSpeciesAllTime")
    return Hotspot(
        loc_id=raw.get("locId", ""),
        name=raw.get("locName", ""),
        lat=raw.get("lat"),
        lng=raw.get("lng"),
        num_species_all_time=int(count) if count is not None else None,
        country_code=raw.get("countryCode"),
        subnational1_code=raw.get("subnational1Code"),
        latest_obs_dt=raw.get("latestObsDt"),
    )


def fetch_hotspots(
    lat: float,
    lng: float,
    radius_km: float,
    *,
    api_key: str | None,
) -> list[Hotspot]:
    """Fetch hotspots within ``radius_km`` of a point."""
    params: dict[str, Any] = {
        "lat": round(lat, 4),
        "lng": round(lng, 4),
        "dist": round(radius_km),
        "fmt": "json",
    }
    data = client.get("ref/hotspot/geo", api_key, params)
    if not isinstance(data, list):
        return []
    return [parse_hotspot(r) for r in data if isinstance(r, dict) and r.get("locId")]
