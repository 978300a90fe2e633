"""
Domain: geographic coordinates and great-circle distance.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

EARTH_RADIUS_MILES: float = 3959.0


@dataclass(frozen=True, slots=True)
class Coordinate:
    """A resolved point on the globe. Immutable once resolved."""

    lat: float
    lon: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.lat <= 90.0:
            raise ValueError(f"lat must be within [-90, 90], got {self.lat}")
        if not -180.0 <= self.lon <= 180.0:
            raise ValueError(f"lon must be within [-180, 180], got {self.lon}")


def haversine_miles(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance between two coordinates, in miles."""

    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)
    d_lat = math.radians(b.lat - a.lat)
    d_lon = math.radians(b.lon - a.lon)

    h = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
    return EARTH_RADIUS_MILES * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
