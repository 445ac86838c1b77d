"""
Tests for top-N ranking.
"""

from __future__ import annotations

from traveling_birder.analysis.checklists import Checklist
from traveling_birder.analysis.ranking import rank_checklists, rank_hotspots, rank_observers, top_n
from traveling_birder.datasources.ebird import Hotspot, TopObserver


def _checklist(sub_id: str, n_species: int) -> Checklist:
    return Checklist(
        sub_id=sub_id,
        loc_name=None,
        loc_id=None,
        lat=None,
        lng=None,
        obs_dt=None,
        species={f"sp{i}" for i in range(n_species)},
    )


class TestRankHotspots:
    """Hotspots by all-time species count."""

    def test_top_two(self) -> None:
        hotspots = [
            Hotspot(loc_id="A", name="A", num_species_all_time=50),
            Hotspot(loc_id="B", name="B", num_species_all_time=80),
            Hotspot(loc_id="C", name="C", num_species_all_time=30),
        ]
        ranked = rank_hotspots(hotspots, 2)
        assert [h.loc_id for h in ranked] == ["B", "A"]

    def test_missing_count_sorts_last(self) -> None:
        hotspots = [
            Hotspot(loc_id="A", name="A"),
            Hotspot(loc_id="B", name="B", num_species_all_time=5),
        ]
        assert [h.loc_id for h in rank_hotspots(hotspots)] == ["B", "A"]

    def test_default_is_ten(self) -> None:
        hotspots = [Hotspot(loc_id=str(i), name=str(i), num_species_all_time=i) for i in range(25)]
        assert len(rank_hotspots(hotspots)) == 10


class TestRankChecklists:
    """Checklists by species-set size."""

    def test_descending(self) -> None:
        ranked = rank_checklists([_checklist("S1", 3), _checklist("S2", 9), _checklist("S3", 5)])
        assert [c.sub_id for c in ranked] == ["S2", "S3", "S1"]

    def test_ties_keep_input_order(self) -> None:
        lists = [_checklist("S1", 4), _checklist("S2", 7), _checklist("S3", 4), _checklist("S4", 4)]
        ranked = rank_checklists(lists)
        assert [c.sub_id for c in ranked] == ["S2", "S1", "S3", "S4"]

    def test_empty(self) -> None:
        assert rank_checklists([]) == []


class TestTopN:
    """Generic helper."""

    def test_never_more_than_n(self) -> None:
        for n in range(0, 8):
            assert len(top_n(range(5), lambda x: x, n)) == min(n, 5)

    def test_non_positive_n(self) -> None:
        assert top_n([1, 2, 3], lambda x: x, 0) == []
        assert top_n([1, 2, 3], lambda x: x, -1) == []


class TestRankObservers:
    """Leaderboard rows by species count."""

    def test_descending_and_truncated(self) -> None:
        observers = [
            TopObserver(user_id="a", display_name="A", num_species=120),
            TopObserver(user_id="b", display_name="B", num_species=300),
            TopObserver(user_id="c", display_name="C", num_species=120),
        ]
        ranked = rank_observers(observers, 2)
        assert [o.user_id for o in ranked] == ["b", "a"]
