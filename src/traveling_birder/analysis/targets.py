"""Target species and frequency tiers.

Two independent classifications of a search's unique sightings:

  - **target vs regular**: a sighting is a target when its species is missing
    from the user's reference list for the active ``ListMode``. ``ALL``
    mode never produces targets (everything displays as regular).
  - **frequency tier**: share of raw-log observations belonging to the
    species, bucketed into expected / uncommon / notable / rare.

Reference lists for year and month modes are precomputed from last-seen
dates (``ReferenceLists.from_last_seen``). They are never substituted with
the life list: a species seen last year is still a year target. A list
built from eBird species codes (``ReferenceLists.from_species_codes``)
matches by code; imported lists match by common name.
"""

from __future__ import annotations

import functools
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime

from traveling_birder.datasources.ebird import Observation
from traveling_birder.reference.rarity import (
    EXPECTED_MIN_PCT,
    NOTABLE_MIN_PCT,
    UNCOMMON_MIN_PCT,
)
from traveling_birder.schemas import FrequencyTier, ListMode

# =============================================================================
# Reference lists
# =============================================================================


@dataclass(frozen=True)
class ReferenceLists:
    """Species the user has already recorded, per list mode."""

    life: frozenset[str] = frozenset()
    year: frozenset[str] = frozenset()
    month: frozenset[str] = frozenset()

    def for_mode(self, mode: ListMode) -> frozenset[str]:
        """Reference set for a mode. ``ALL`` has nothing to compare against."""
        if mode is ListMode.LIFE:
            return self.life
        if mode is ListMode.YEAR:
            return self.year
        if mode is ListMode.MONTH:
            return self.month
        return frozenset()

    @classmethod
    def from_last_seen(
        cls,
        last_seen: Mapping[str, date | datetime | None],
        today: date | None = None,
    ) -> ReferenceLists:
        """
        Derive life/year/month lists from each species' last-seen date.

        Every species goes on the life list. Species last seen in the current
        year go on the year list, and in the current year and month on the
        month list. Species without a date count for life only.
        """
        today = today or date.today()
        year: set[str] = set()
        month: set[str] = set()
        for name, seen in last_seen.items():
            if seen is None:
                continue
            if seen.year == today.year:
                year.add(name)
                if seen.month == today.month:
                    month.add(name)
        return cls(life=frozenset(last_seen), year=frozenset(year), month=frozenset(month))

    @classmethod
    def from_species_codes(cls, codes: Iterable[str]) -> ReferenceLists:
        """Life list from eBird species codes; year and month stay empty."""
        return cls(life=frozenset(codes))

    def has_recorded(self, obs: Observation, mode: ListMode) -> bool:
        """Whether ``obs``'s species is on the ``mode`` list, by name or code."""
        seen = self.for_mode(mode)
        return obs.species_name in seen or obs.species_code in seen


# =============================================================================
# Targets
# =============================================================================


def identify_targets(
    sightings: Iterable[Observation],
    reference: ReferenceLists,
    mode: ListMode,
) -> list[Observation]:
    """Sightings whose species isn't on the reference list for ``mode``."""
    if mode is ListMode.ALL:
        return []
    return [obs for obs in sightings if not reference.has_recorded(obs, mode)]


def unique_species(observations: Iterable[Observation]) -> list[Observation]:
    """First observation per species name (one card per target species)."""
    by_name: dict[str, Observation] = {}
    for obs in observations:
        by_name.setdefault(obs.species_name, obs)
    return list(by_name.values())


# =============================================================================
# Frequency tiers
# =============================================================================


@dataclass(frozen=True)
class SpeciesFrequency:
    """How often one species appears in a raw log."""

    count: int
    percent: float
    tier: FrequencyTier


def classify_frequency(percent: float) -> FrequencyTier:
    """Bucket a raw-log share (0-100) into a tier."""
    if percent >= EXPECTED_MIN_PCT:
        return FrequencyTier.EXPECTED
    if percent >= UNCOMMON_MIN_PCT:
        return FrequencyTier.UNCOMMON
    if percent >= NOTABLE_MIN_PCT:
        return FrequencyTier.NOTABLE
    return FrequencyTier.RARE


def species_frequencies(raw_log: Sequence[Observation]) -> dict[str, SpeciesFrequency]:
    """Per-species observation count and percentage of the whole raw log."""
    total = len(raw_log)
    if total == 0:
        return {}
    counts = Counter(obs.species_name for obs in raw_log)
    result: dict[str, SpeciesFrequency] = {}
    for name, count in counts.items():
        percent = count / total * 100
        result[name] = SpeciesFrequency(count=count, percent=percent, tier=classify_frequency(percent))
    return result


# =============================================================================
# Combined classification
# =============================================================================


@dataclass(frozen=True)
class ClassifiedSighting:
    """A unique sighting with both classifications attached."""

    observation: Observation
    is_target: bool
    frequency: SpeciesFrequency


@dataclass
class Classification:
    """Targets plus every sighting annotated with target flag and tier."""

    targets: list[Observation] = field(default_factory=list)
    sightings: list[ClassifiedSighting] = field(default_factory=list)
    frequencies: dict[str, SpeciesFrequency] = field(default_factory=dict)


def classify_sightings(
    sightings: Sequence[Observation],
    raw_log: Sequence[Observation],
    reference: ReferenceLists,
    mode: ListMode,
) -> Classification:
    """
    Partition sightings into targets and attach frequency tiers.

    Frequencies are computed against the raw log, not the deduplicated
    sightings, so a species reported at many locations ranks as expected.
    """
    frequencies = species_frequencies(raw_log)
    targets = identify_targets(sightings, reference, mode)
    missing = SpeciesFrequency(count=0, percent=0.0, tier=FrequencyTier.RARE)

    classified = [
        ClassifiedSighting(
            observation=obs,
            is_target=mode is not ListMode.ALL and not reference.has_recorded(obs, mode),
            frequency=frequencies.get(obs.species_name, missing),
        )
        for obs in sightings
    ]
    return Classification(targets=targets, sightings=classified, frequencies=frequencies)


@dataclass(frozen=True)
class TargetStatistics:
    """Target species counted by how likely they are to turn up."""

    total: int = 0
    expected: int = 0
    notable: int = 0
    regular: int = 0


def target_statistics(classification: Classification) -> TargetStatistics:
    """
    Count distinct target species by frequency tier.

    ``expected`` is the expected tier, ``notable`` covers notable and rare,
    and ``regular`` is whatever remains (uncommon).
    """
    names = {obs.species_name for obs in classification.targets}
    missing = SpeciesFrequency(count=0, percent=0.0, tier=FrequencyTier.RARE)
    tiers = [classification.frequencies.get(n, missing).tier for n in names]
    expected = sum(t is FrequencyTier.EXPECTED for t in tiers)
    notable = sum(t in (FrequencyTier.NOTABLE, FrequencyTier.RARE) for t in tiers)
    return TargetStatistics(
        total=len(names),
        expected=expected,
        notable=notable,
        regular=len(names) - expected - notable,
    )


# =============================================================================
# Display order
# =============================================================================


def _compare_for_display(a: Observation, b: Observation) -> int:
    # Higher ABA code is rarer; only compare when both sides have one.
    if a.aba_code is not None and b.aba_code is not None and a.aba_code != b.aba_code:
        return b.aba_code - a.aba_code
    name_a, name_b = a.species_name.casefold(), b.species_name.casefold()
    return (name_a > name_b) - (name_a < name_b)


def display_sort(observations: Iterable[Observation]) -> list[Observation]:
    """
    Rarest first (by ABA code when both have one), then name A-Z.

    The ordering is pairwise, not total: once some sightings lack an ABA
    code the comparison can cycle (5/"Z" before 1/"A" by code, "A" before
    None/"M" and "M" before "Z" by name). Cyclic groups come out in an
    order that depends on the input order. Lists where every sighting has
    a code, or none does, sort deterministically.
    """
    return sorted(observations, key=functools.cmp_to_key(_compare_for_display))
