"""Recent eBird observations: parsing and fetching."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from traveling_birder.datasources.ebird import client

# eBird sends "2024-05-01 07:30" for timed checklists and "2024-05-01" otherwise.
_OBS_DT_FORMATS = ("%Y-%m-%d %H:%M", "%Y-%m-%d %H:%M:%S", "%Y-%m-%d")

UNKNOWN_OBSERVER = "Unknown"


# =============================================================================
# Data Model
# =============================================================================


@dataclass(frozen=True)
class Observation:
    """A single sighting as reported by eBird.

    The same sighting can come back from several overlapping queries, so
    instances are not unique within a search's raw log.
    """

    species_code: str
    common_name: str
    scientific_name: str = ""
    loc_id: str | None = None
    loc_name: str | None = None
    lat: float | None = None
    lng: float | None = None
    obs_dt: str | None = None
    sub_id: str | None = None
    observer: str | None = None
    how_many: int | None = None
    aba_code: int | None = None

    @property
    def observed_at(self) -> datetime | None:
        """Parsed ``obs_dt``, or None if missing or unparseable."""
        return parse_obs_datetime(self.obs_dt)

    @property
    def species_name(self) -> str:
        """Name used for list membership: common name, else species code."""
        return self.common_name or self.species_code

    @property
    def checklist_url(self) -> str | None:
        if not self.sub_id:
            return None
        return client.CHECKLIST_URL.format(sub_id=self.sub_id)


# =============================================================================
# Parsing
# =============================================================================


def parse_obs_datetime(value: str | None) -> datetime | None:
    """Parse an eBird ``obsDt`` string. Returns None instead of raising."""
    if not value:
        return None
    text = value.strip()
    for fmt in _OBS_DT_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _optional_float(value: Any) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _optional_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_observation(raw: dict[str, Any]) -> Observation:
    """Parse one eBird observation dict.

    Missing or malformed fields become None rather than rejecting the
    record; ``howMany`` is absent when the observer only reported "X".
    """
    return Observation(
        species_code=raw.get("speciesCode", ""),
        common_name=raw.get("comName", ""),
        scientific_name=raw.get("sciName", ""),
        loc_id=raw.get("locId"),
        loc_name=raw.get("locName"),
        lat=_optional_float(raw.get("lat")),
        lng=_optional_float(raw.get("lng")),
        obs_dt=raw.get("obsDt"),
        sub_id=raw.get("subId") or None,
        observer=raw.get("userDisplayName"),
        how_many=_optional_int(raw.get("howMany")),
        aba_code=_optional_int(raw.get("abaCode")),
    )


def _parse_all(data: Any) -> list[Observation]:
    if not isinstance(data, list):
        return []
    return [parse_observation(r) for r in data if isinstance(r, dict)]


# =============================================================================
# API Fetching
# =============================================================================


def fetch_recent_observations(
    lat: float,
    lng: float,
    radius_km: float,
    back_days: int,
    *,
    api_key: str | None,
) -> list[Observation]:
    """
    Fetch recent observations within ``radius_km`` of a point.

    Args:
        lat: Latitude of the search centre.
        lng: Longitude of the search centre.
        radius_km: Search radius (eBird caps at 50).
        back_days: Days to look back (1-30).
        api_key: eBird API token.

    Returns:
        List of Observation, one per species per location, most recent first.
    """
    params: dict[str, Any] = {
        "lat": round(lat, 4),
        "lng": round(lng, 4),
        "dist": round(radius_km),
        "back": back_days,
        "detail": "full",
    }
    return _parse_all(client.get("data/obs/geo/recent", api_key, params))


def fetch_region_observations(
    region_code: str,
    back_days: int,
    *,
    api_key: str | None,
    max_results: int = client.MAX_REGION_RESULTS,
) -> list[Observation]:
    """Fetch recent observations for a whole region (e.g. ``US-OR``)."""
    params: dict[str, Any] = {
        "back": back_days,
        "maxResults": max_results,
        "detail": "full",
    }
    return _parse_all(client.get(f"data/obs/{region_code}/recent", api_key, params))


def fetch_notable_observations(
    region_code: str,
    back_days: int = 30,
    *,
    api_key: str | None,
) -> list[Observation]:
    """Fetch recent notable (locally rare) observations for a region."""
    params: dict[str, Any] = {"back": back_days, "detail": "full"}
    return _parse_all(client.get(f"data/obs/{region_code}/recent/notable", api_key, params))
