"""Regional species lists (``product/spplist``)."""

from __future__ import annotations

from traveling_birder.datasources.ebird import client


def fetch_species_list(region_code: str, *, api_key: str | None) -> list[str]:
    """
    Species codes ever reported in a region.

    Used as an API-derived life list when no last-seen file has been
    imported.
    """
    data = client.get(f"product/spplist/{region_code}", api_key)
    if not isinstance(data, list):
        return []
    return [code for code in data if isinstance(code, str) and code]
