"""
Tests for geometry helpers.
"""

from __future__ import annotations

import math

import pytest

from traveling_birder import geometry
from traveling_birder.schemas import BoundingBox, Coordinate


class TestConversions:
    """Degree/radian and unit conversions."""

    def test_radians_round_trip(self) -> None:
        assert geometry.to_degrees(geometry.to_radians(123.4)) == pytest.approx(123.4)

    def test_half_turn(self) -> None:
        assert geometry.to_radians(180) == pytest.approx(math.pi)

    def test_miles_to_degrees_uses_69_miles(self) -> None:
        assert geometry.miles_to_degrees(69) == pytest.approx(1.0)

    def test_km_miles(self) -> None:
        assert geometry.miles_to_km(10) == pytest.approx(16.0934)
        assert geometry.km_to_miles(16.0934) == pytest.approx(10)


class TestHaversine:
    """Great-circle distance."""

    def test_zero_distance(self) -> None:
        p = Coordinate(lat=45.5, lng=-122.6)
        assert geometry.haversine_km(p, p) == 0

    def test_one_degree_latitude(self) -> None:
        a = Coordinate(lat=45.0, lng=-122.0)
        b = Coordinate(lat=46.0, lng=-122.0)
        assert geometry.haversine_km(a, b) == pytest.approx(111.2, abs=0.2)

    def test_portland_to_seattle(self) -> None:
        portland = Coordinate(lat=45.5152, lng=-122.6784)
        seattle = Coordinate(lat=47.6062, lng=-122.3321)
        assert geometry.haversine_miles(portland, seattle) == pytest.approx(145, abs=3)

    def test_symmetric(self) -> None:
        a = Coordinate(lat=10, lng=20)
        b = Coordinate(lat=-30, lng=100)
        assert geometry.haversine_km(a, b) == pytest.approx(geometry.haversine_km(b, a))

    def test_path_length_sums_segments(self) -> None:
        a = Coordinate(lat=45.0, lng=-122.0)
        b = Coordinate(lat=46.0, lng=-122.0)
        c = Coordinate(lat=47.0, lng=-122.0)
        expected = geometry.haversine_miles(a, b) + geometry.haversine_miles(b, c)
        assert geometry.path_length_miles([a, b, c]) == pytest.approx(expected)

    def test_path_length_single_vertex(self) -> None:
        assert geometry.path_length_miles([Coordinate(lat=1, lng=1)]) == 0


class TestBoundingBoxAround:
    """Square box around a centre point."""

    def test_symmetric_box(self) -> None:
        box = geometry.bounding_box_around(Coordinate(lat=45, lng=-122), radius_km=geometry.miles_to_km(69))
        assert box.south == pytest.approx(44)
        assert box.north == pytest.approx(46)
        assert box.west == pytest.approx(-123)
        assert box.east == pytest.approx(-121)

    def test_clamped_at_pole(self) -> None:
        box = geometry.bounding_box_around(Coordinate(lat=89.9, lng=0), radius_km=200)
        assert box.north == 90.0


class TestGrid:
    """Row-major grid generation."""

    def test_grid_steps_inclusive_end(self) -> None:
        assert geometry.grid_steps(0.0, 1.0, 0.5) == pytest.approx([0.0, 0.5, 1.0])

    def test_grid_steps_no_float_drift(self) -> None:
        steps = geometry.grid_steps(0.0, 1.0, 0.1)
        assert len(steps) == 11
        assert steps[-1] == pytest.approx(1.0)

    def test_grid_steps_zero_span(self) -> None:
        assert geometry.grid_steps(5.0, 5.0, 1.0) == [5.0]

    def test_grid_steps_rejects_bad_step(self) -> None:
        with pytest.raises(ValueError, match="positive"):
            geometry.grid_steps(0.0, 1.0, 0.0)

    def test_row_major_from_south_west(self) -> None:
        box = BoundingBox(south=0, west=0, north=1, east=2)
        points = geometry.grid_points(box, 1.0)
        assert [p.as_tuple() for p in points] == [
            (0, 0),
            (0, 1),
            (0, 2),
            (1, 0),
            (1, 1),
            (1, 2),
        ]
