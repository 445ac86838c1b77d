"""Collapse a raw observation log into unique sightings.

Overlapping sample circles return the same sighting more than once. Two
identity keys are supported:

  - ``location_species_key``: (lat, lng, species) for single-fetch searches,
    where the newest report at a location represents the species there.
  - ``composite_key``: (species, lat, lng, obs_dt) for multi-point searches,
    where adjacent grid cells legitimately return the same report.

When two observations share a key, the later parsed ``obs_dt`` wins. If
either timestamp can't be parsed, the first-seen observation is kept.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable

from traveling_birder.datasources.ebird import Observation

IdentityKey = Callable[[Observation], Hashable]


def location_species_key(obs: Observation) -> Hashable:
    """(lat, lng, species code)."""
    return (obs.lat, obs.lng, obs.species_code)


def composite_key(obs: Observation) -> Hashable:
    """(species code, lat, lng, observation timestamp)."""
    return (obs.species_code, obs.lat, obs.lng, obs.obs_dt)


def _is_newer(candidate: Observation, current: Observation) -> bool:
    new_dt = candidate.observed_at
    old_dt = current.observed_at
    if new_dt is None or old_dt is None:
        return False
    return new_dt > old_dt


def deduplicate(
    observations: Iterable[Observation],
    key: IdentityKey = location_species_key,
) -> list[Observation]:
    """
    Keep one observation per identity key.

    Args:
        observations: Raw log, in fetch order.
        key: Identity function (see module docstring).

    Returns:
        Unique sightings. Callers must not rely on the ordering.
    """
    unique: dict[Hashable, Observation] = {}
    for obs in observations:
        k = key(obs)
        current = unique.get(k)
        if current is None or _is_newer(obs, current):
            unique[k] = obs
    return list(unique.values())
