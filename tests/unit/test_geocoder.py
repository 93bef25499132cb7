"""
Continent geocoder tests.
"""

import pytest

from trajectories.geocoder import UNKNOWN, ContinentRegion, ContinentRegistry, point_in_ring

SQUARE = ((0.0, 0.0), (0.0, 10.0), (10.0, 10.0), (10.0, 0.0), (0.0, 0.0))


class TestPointInRing:

    def test_inside(self):
        assert point_in_ring(5, 5, SQUARE) is True

    def test_outside(self):
        assert point_in_ring(15, 5, SQUARE) is False

    @pytest.mark.parametrize("x,y", [(0, 5), (10, 10), (5, 0)])
    def test_boundary_is_outside(self, x, y):
        assert point_in_ring(x, y, SQUARE) is False

    def test_concave_ring(self):
        ring = ((0, 0), (0, 10), (5, 5), (10, 10), (10, 0), (0, 0))
        assert point_in_ring(5, 8, ring) is False
        assert point_in_ring(5, 2, ring) is True


class TestContinentRegistry:

    @pytest.mark.parametrize("lon,lat,expected", [
        (2.0, 45.0, "Europe"),
        (20.0, 0.0, "Africa"),
        (134.0, -25.0, "Oceania"),
        (-60.0, -10.0, "America"),
        (0.0, 0.0, UNKNOWN),
    ])
    def test_default_regions(self, lon, lat, expected):
        assert ContinentRegistry().locate(lon, lat) == expected

    def test_europe_edge_is_unknown(self):
        assert ContinentRegistry().locate(-11.25, 50.0) == UNKNOWN

    def test_last_registered_region_wins(self):
        registry = ContinentRegistry([
            ContinentRegion("First", (SQUARE,)),
            ContinentRegion("Second", (SQUARE,)),
        ])
        assert registry.locate(5, 5) == "Second"

    def test_any_ring_matches(self):
        island = ((20, 20), (20, 30), (30, 30), (30, 20), (20, 20))
        registry = ContinentRegistry([ContinentRegion("Islands", (SQUARE, island))])
        assert registry.locate(25, 25) == "Islands"
        assert registry.locate(15, 15) == UNKNOWN
