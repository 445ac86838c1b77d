"""eBird API 2.0 data source.

Fetches recent sightings and hotspot reference data from eBird.
Every call needs an API token (https://ebird.org/api/keygen).

Public API:
  - client: Low-level HTTP (token header)
  - observations: Observation, fetch_recent_observations,
    fetch_region_observations, fetch_notable_observations
  - hotspots: Hotspot, fetch_hotspots
  - observers: TopObserver, fetch_top_observers (regional leaderboard)
  - species: fetch_species_list (API-derived life list)
"""

from traveling_birder.datasources.ebird.client import MissingAPIKeyError
from traveling_birder.datasources.ebird.hotspots import Hotspot, fetch_hotspots
from traveling_birder.datasources.ebird.observations import (
    Observation,
    fetch_notable_observations,
    fetch_recent_observations,
    fetch_region_observations,
    parse_obs_datetime,
)
from traveling_birder.datasources.ebird.observers import TopObserver, fetch_top_observers
from traveling_birder.datasources.ebird.species import fetch_species_list

__all__ = [
    "Hotspot",
    "MissingAPIKeyError",
    "Observation",
    "TopObserver",
    "fetch_hotspots",
    "fetch_notable_observations",
    "fetch_recent_observations",
    "fetch_region_observations",
    "fetch_species_list",
    "fetch_top_observers",
    "parse_obs_datetime",
]
