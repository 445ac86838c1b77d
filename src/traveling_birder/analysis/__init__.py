"""Pure aggregation logic over a search's raw observation log.

Dependency rule: analysis/ imports datasource *models* only. It never
fetches data or touches the store.

Modules:
  - sampling: search shape -> ordered sample points
  - dedup: raw log -> unique sightings (identity key + recency tie-break)
  - checklists: raw log -> checklists grouped by submission id
  - ranking: stable top-N for checklists and hotspots
  - targets: reference lists, target partition, frequency tiers, display order

Adding an analysis module
-------------------------
1. Create ``analysis/{name}.py`` with pure functions over ``Observation``.
2. No I/O, no HTTP, no Prefect decorators.
3. Call it from ``search.py`` and expose the output on ``SearchResult``.
4. Re-export here and add tests in ``tests/test_{name}.py``.
"""

from traveling_birder.analysis.checklists import Checklist, build_checklists
from traveling_birder.analysis.dedup import composite_key, deduplicate, location_species_key
from traveling_birder.analysis.ranking import rank_checklists, rank_hotspots, top_n
from traveling_birder.analysis.sampling import PlanningError, plan_sample_points
from traveling_birder.analysis.targets import (
    Classification,
    ClassifiedSighting,
    ReferenceLists,
    SpeciesFrequency,
    classify_frequency,
    classify_sightings,
    display_sort,
    identify_targets,
    species_frequencies,
    unique_species,
)

__all__ = [
    "Checklist",
    "Classification",
    "ClassifiedSighting",
    "PlanningError",
    "ReferenceLists",
    "SpeciesFrequency",
    "build_checklists",
    "classify_frequency",
    "classify_sightings",
    "composite_key",
    "deduplicate",
    "display_sort",
    "identify_targets",
    "location_species_key",
    "plan_sample_points",
    "rank_checklists",
    "rank_hotspots",
    "species_frequencies",
    "top_n",
    "unique_species",
]
