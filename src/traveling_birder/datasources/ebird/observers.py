"""Top observers for a region (``product/top100``)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any

from traveling_birder.datasources.ebird import client

UNKNOWN_BIRDER = "Unknown Birder"


@dataclass(frozen=True)
class TopObserver:
    """One row of eBird's regional top-100 leaderboard."""

    user_id: str | None
    display_name: str
    num_species: int = 0
    num_checklists: int = 0
    rank: int | None = None


def _int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def parse_top_observer(raw: dict[str, Any]) -> TopObserver:
    rank = raw.get("rowNum")
    return TopObserver(
        user_id=raw.get("userId"),
        display_name=raw.get("userDisplayName") or UNKNOWN_BIRDER,
        num_species=_int(raw.get("numSpecies")),
        num_checklists=_int(raw.get("numCompleteChecklists")),
        rank=_int(rank) if rank is not None else None,
    )


def fetch_top_observers(
    region_code: str,
    year: int | None = None,
    *,
    api_key: str | None,
    month: int = 1,
    day: int = 1,
) -> list[TopObserver]:
    """
    Observers with the most species in a region since ``year-month-day``.

    Args:
        region_code: eBird region, e.g. ``US-OR``.
        year: Leaderboard year (defaults to the current year).
        api_key: eBird API token.
        month: Start month of the leaderboard window.
        day: Start day of the leaderboard window.
    """
    year = year or date.today().year
    params: dict[str, Any] = {"rankedBy": "spp"}
    data = client.get(f"product/top100/{region_code}/{year}/{month}/{day}", api_key, params)
    if not isinstance(data, list):
        return []
    return [parse_top_observer(r) for r in data if isinstance(r, dict)]
