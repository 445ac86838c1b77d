"""Group raw observations into eBird checklists.

Checklists are always built from the unfiltered raw log, never from the
deduplicated sightings: a checklist's species count must include every
species reported on it, even ones deduplicated away in favour of a report
from another checklist.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from traveling_birder.datasources.ebird import Observation
from traveling_birder.datasources.ebird.client import CHECKLIST_URL
from traveling_birder.datasources.ebird.observations import UNKNOWN_OBSERVER

logger = logging.getLogger(__name__)


@dataclass
class Checklist:
    """One eBird submission and the species reported on it."""

    sub_id: str
    loc_name: str | None
    loc_id: str | None
    lat: float | None
    lng: float | None
    obs_dt: str | None
    observer: str = UNKNOWN_OBSERVER
    species: set[str] = field(default_factory=set)

    @property
    def species_count(self) -> int:
        return len(self.species)

    @property
    def url(self) -> str:
        return CHECKLIST_URL.format(sub_id=self.sub_id)


def build_checklists(observations: Iterable[Observation]) -> list[Checklist]:
    """
    Build checklists keyed by submission id.

    Location, date, and observer come from the first observation seen for a
    submission. Observations without a ``sub_id`` can't be attributed and
    are skipped.

    Returns:
        Checklists in order of first appearance.
    """
    by_sub: dict[str, Checklist] = {}
    seen = 0
    for obs in observations:
        seen += 1
        if not obs.sub_id:
            continue
        checklist = by_sub.get(obs.sub_id)
        if checklist is None:
            checklist = Checklist(
                sub_id=obs.sub_id,
                loc_name=obs.loc_name,
                loc_id=obs.loc_id,
                lat=obs.lat,
                lng=obs.lng,
                obs_dt=obs.obs_dt,
                observer=obs.observer or UNKNOWN_OBSERVER,
            )
            by_sub[obs.sub_id] = checklist
        checklist.species.add(obs.species_name)

    logger.debug("Built %d checklists from %d observations", len(by_sub), seen)
    return list(by_sub.values())
