"""Top-N ranking of checklists, hotspots and observers by species count."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TypeVar

from traveling_birder.analysis.checklists import Checklist
from traveling_birder.datasources.ebird import Hotspot, TopObserver
from traveling_birder.reference.search import DEFAULT_TOP_N

T = TypeVar("T")


def top_n(items: Iterable[T], metric: Callable[[T], int], n: int = DEFAULT_TOP_N) -> list[T]:
    """
    Highest ``metric`` first, truncated to ``n``.

    ``sorted`` is stable with ``reverse=True`` too, so items with equal
    metrics keep their input order.
    """
    if n <= 0:
        return []
    return sorted(items, key=metric, reverse=True)[:n]


def rank_checklists(checklists: Iterable[Checklist], n: int = DEFAULT_TOP_N) -> list[Checklist]:
    """Checklists with the most species."""
    return top_n(checklists, lambda c: c.species_count, n)


def rank_hotspots(hotspots: Iterable[Hotspot], n: int = DEFAULT_TOP_N) -> list[Hotspot]:
    """Hotspots with the highest all-time species count."""
    return top_n(hotspots, lambda h: h.species_count, n)


def rank_observers(observers: Iterable[TopObserver], n: int = DEFAULT_TOP_N) -> list[TopObserver]:
    """Leaderboard observers with the most species."""
    return top_n(observers, lambda o: o.num_species, n)
