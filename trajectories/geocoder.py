"""
Continent reverse-geocoder.

Coarse point-in-polygon classification against a fixed registry of five
regions. Each region is a set of independent closed rings (lon, lat); a
point is in a region when it is strictly inside any of its rings. Rings
are tested in reverse registration order and the first match wins.

Holes are not modelled: a point inside a ring drawn around an enclosed sea
is classified as the surrounding continent.

Exports:
    ContinentRegion: Named set of rings
    ContinentRegistry: locate(lon, lat) -> region name
    point_in_ring: Even-odd ray casting, boundary counts as outside
    DEFAULT_REGIONS: Africa, America, Asia, Europe, Oceania
    UNKNOWN: Name returned when no ring matches
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

Coordinate = Tuple[float, float]
Ring = Tuple[Coordinate, ...]

UNKNOWN = "Unknown"


@dataclass(frozen=True)
class ContinentRegion:
    name: str
    rings: Tuple[Ring, ...]


def _on_segment(x: float, y: float, a: Coordinate, b: Coordinate) -> bool:
    (x1, y1), (x2, y2) = a, b
    cross = (x2 - x1) * (y - y1) - (y2 - y1) * (x - x1)
    if cross != 0:
        return False
    return min(x1, x2) <= x <= max(x1, x2) and min(y1, y2) <= y <= max(y1, y2)


def point_in_ring(x: float, y: float, ring: Sequence[Coordinate]) -> bool:
    """
    Even-odd ray casting test.

    Points on an edge or vertex are outside. O(len(ring)).
    """
    n = len(ring)
    inside = False
    j = n - 1
    for i in range(n):
        xi, yi = ring[i]
        xj, yj = ring[j]
        if _on_segment(x, y, ring[j], ring[i]):
            return False
        if (yi > y) != (yj > y):
            x_cross = (xj - xi) * (y - yi) / (yj - yi) + xi
            if x < x_cross:
                inside = not inside
        j = i
    return inside


class ContinentRegistry:
    """
    Immutable region registry.

    Usage:
        registry = ContinentRegistry()
        registry.locate(2.0, 45.0)   # 'Europe'
        registry.locate(0.0, 0.0)    # 'Unknown'
    """

    def __init__(self, regions: Optional[Sequence[ContinentRegion]] = None):
        self.regions: Tuple[ContinentRegion, ...] = tuple(DEFAULT_REGIONS if regions is None else regions)
        # Flattened once; searched last-registered first
        self._search_order: Tuple[Tuple[str, Ring], ...] = tuple(
            (region.name, ring)
            for region in reversed(self.regions)
            for ring in reversed(region.rings)
        )

    def locate(self, lon: float, lat: float) -> str:
        for name, ring in self._search_order:
            if point_in_ring(lon, lat, ring):
                return name
        return UNKNOWN


def _ring(*points: Coordinate) -> Ring:
    if points[0] != points[-1]:
        points = points + (points[0],)
    return tuple(points)


# ============================================================================
# REGION REGISTRY
# ============================================================================
# Coarse outlines in (lon, lat). Good enough for continent labels of ocean
# drift particles near coasts, not for land/sea masks.

DEFAULT_REGIONS: Tuple[ContinentRegion, ...] = (
    ContinentRegion("Africa", (
        # North and West Africa, south to 5N
        _ring((-17.5, 5.0), (-17.5, 35.9), (-5.6, 35.9), (10.5, 37.5), (32.0, 31.8),
              (34.5, 31.5), (43.5, 12.5), (51.5, 12.0), (51.5, 5.0)),
        # Central and Southern Africa, east of 8.5E
        _ring((8.5, 5.0), (51.5, 5.0), (41.0, -15.0), (33.0, -35.0), (17.0, -35.0),
              (11.5, -17.0), (8.5, -1.0)),
        # Madagascar
        _ring((43.0, -25.7), (43.2, -12.0), (50.5, -12.0), (50.5, -25.7)),
    )),
    ContinentRegion("America", (
        # North and Central America
        _ring((-168.0, 65.5), (-140.0, 70.0), (-95.0, 72.0), (-60.0, 60.0), (-52.0, 47.0),
              (-80.0, 25.0), (-77.0, 7.0), (-87.0, 13.0), (-105.0, 20.0), (-125.0, 40.0),
              (-125.0, 50.0), (-168.0, 55.0)),
        # South America
        _ring((-81.5, -5.0), (-77.0, 8.0), (-60.0, 11.0), (-50.0, 0.0), (-34.8, -7.0),
              (-40.0, -22.5), (-58.0, -38.0), (-66.0, -55.5), (-75.5, -52.0), (-71.0, -18.0)),
        # Greenland
        _ring((-73.0, 78.0), (-60.0, 82.5), (-20.0, 83.5), (-18.0, 75.0), (-43.0, 59.7),
              (-55.0, 64.0)),
    )),
    ContinentRegion("Asia", (
        # Mainland Asia
        _ring((26.0, 41.0), (36.0, 36.5), (35.0, 30.0), (43.0, 12.5), (52.0, 16.0),
              (59.0, 22.5), (57.0, 25.5), (67.0, 24.5), (77.0, 8.0), (80.0, 15.0),
              (89.0, 22.0), (94.0, 16.0), (98.0, 8.0), (103.5, 1.3), (105.0, 10.0),
              (108.0, 21.5), (122.0, 31.0), (121.0, 40.0), (129.0, 35.0), (131.0, 43.0),
              (141.0, 52.0), (163.0, 60.0), (180.0, 65.0), (180.0, 72.0), (105.0, 78.0),
              (68.0, 73.0), (60.0, 68.0), (60.0, 55.0), (50.0, 45.0), (40.0, 43.0)),
        # Japan
        _ring((129.5, 31.0), (141.9, 45.5), (146.0, 44.0), (141.0, 35.0)),
        # Maritime Southeast Asia
        _ring((95.0, 6.0), (119.0, 6.5), (127.0, 5.0), (141.0, -2.5), (141.0, -9.0),
              (114.0, -8.8), (105.0, -6.0)),
    )),
    ContinentRegion("Europe", (
        # Western and Central Europe
        _ring((-11.25, 43.33), (-11.25, 59.36), (27.07, 59.36), (27.07, 43.33)),
        # Iberian Peninsula
        _ring((-9.8, 36.0), (-9.8, 43.8), (3.3, 43.8), (3.3, 36.0)),
        # Italy, Balkans and Greece
        _ring((7.0, 37.5), (7.0, 44.0), (29.0, 44.0), (29.0, 35.0), (19.0, 36.5)),
        # Eastern Europe to the Urals
        _ring((27.07, 43.33), (27.07, 70.0), (60.0, 70.0), (60.0, 45.0), (40.0, 43.0)),
        # Scandinavia
        _ring((4.5, 57.5), (4.5, 71.5), (27.07, 71.5), (27.07, 57.5)),
        # Iceland
        _ring((-24.6, 63.2), (-24.6, 66.6), (-13.4, 66.6), (-13.4, 63.2)),
    )),
    ContinentRegion("Oceania", (
        # Australia
        _ring((113.0, -22.0), (114.0, -35.0), (135.0, -35.5), (150.0, -38.5), (153.7, -28.0),
              (145.5, -14.5), (142.5, -10.5), (136.5, -12.0), (130.0, -11.0), (122.0, -17.0)),
        # New Zealand
        _ring((166.0, -46.8), (172.5, -34.3), (178.6, -37.5), (174.0, -41.6), (168.5, -47.3)),
    )),
)
