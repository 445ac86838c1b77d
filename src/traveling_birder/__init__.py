"""Traveling Birder - aggregate eBird sightings along a trip or across an area.

Architecture::

    datasources/   External APIs (eBird observations, notable sightings, hotspots)
    services/      Shared utilities (HTTP client with retry, routing, logging setup)
    reference/     Static constants (search defaults, rarity codes, frequency tiers)
    geometry.py    Great-circle distance, bounding boxes, grid generation
    analysis/      Pure logic: sample planning, dedup, checklists, ranking, targets
    orchestrator.py  Sequential fetch loop with per-point failure isolation
    search.py      search(request): plan -> fetch -> aggregate -> classify
    flows/         Prefect orchestration wiring eBird + routing into search()
    store.py       JSON envelope store used by the CLI

Data flow: planner -> orchestrator (raw log) -> dedup / checklists / ranking /
targets -> SearchResult
"""

__version__ = "0.1.0"

from traveling_birder.config import Settings
from traveling_birder.search import SearchResult, search

__all__ = ["SearchResult", "Settings", "__version__", "search"]
