"""
Geo index: zip code -> coordinate resolution and distance.

`StaticGeoIndex` answers from a small hardcoded reference table. A remote
geocoding provider can replace it by implementing the same `GeoIndex`
interface; wrap it in `CachedGeoIndex` to avoid repeat lookups.

Fails closed: an unknown zip code raises InvalidZipCode. There is no default
coordinate.
"""

from __future__ import annotations

import logging
import re
import threading
from collections import OrderedDict
from typing import Mapping, Optional, Protocol

from domain.errors import InvalidZipCode
from domain.geo import Coordinate, haversine_miles

logger = logging.getLogger(__name__)

_ZIP_RE = re.compile(r"^(\d{5})(?:-\d{4})?$")

ZIP_COORDINATES: Mapping[str, Coordinate] = {
    # Arizona
    "85001": Coordinate(33.4484, -112.0740),
    "85002": Coordinate(33.4734, -112.0876),
    "85003": Coordinate(33.4455, -112.0952),
    "85004": Coordinate(33.4734, -112.0550),
    "85005": Coordinate(33.4269, -112.0740),
    "85006": Coordinate(33.4019, -112.0740),
    "85007": Coordinate(33.3953, -112.0740),
    "85008": Coordinate(33.3684, -112.0740),
    "85009": Coordinate(33.4019, -112.1206),
    "85010": Coordinate(33.3953, -112.1206),
    "85251": Coordinate(33.4990, -111.9193),
    "85281": Coordinate(33.4200, -111.9300),
    "85301": Coordinate(33.5387, -112.1859),
    "85336": Coordinate(33.1931, -111.6537),
    "86001": Coordinate(35.1983, -111.6513),
    "86004": Coordinate(35.2100, -111.8200),
    "86301": Coordinate(34.5400, -112.4700),
    # California
    "90024": Coordinate(34.0628, -118.4426),
    "90210": Coordinate(34.0901, -118.4065),
    "90211": Coordinate(34.0823, -118.4009),
    "91101": Coordinate(34.1478, -118.1445),
    "92101": Coordinate(32.7157, -117.1611),
    "94102": Coordinate(37.7749, -122.4194),
    # Colorado
    "80202": Coordinate(39.7547, -105.0178),
    "80301": Coordinate(40.0150, -105.2705),
    "80904": Coordinate(38.8339, -104.8214),
    "81620": Coordinate(39.1911, -106.8175),
    # Florida
    "32801": Coordinate(28.5383, -81.3792),
    "33101": Coordinate(25.7617, -80.1918),
    "33102": Coordinate(25.7814, -80.1398),
    "33139": Coordinate(25.7907, -80.1300),
    "33301": Coordinate(26.1224, -80.1373),
    # Texas
    "75201": Coordinate(32.7811, -96.7972),
    "75202": Coordinate(32.7767, -96.8089),
    "77001": Coordinate(29.7604, -95.3698),
    "78701": Coordinate(30.2672, -97.7431),
    # New York
    "10001": Coordinate(40.7505, -73.9980),
    "10002": Coordinate(40.7157, -73.9862),
    "11201": Coordinate(40.6928, -73.9903),
    # Illinois
    "60601": Coordinate(41.8781, -87.6298),
    "60602": Coordinate(41.8794, -87.6392),
    "60611": Coordinate(41.8918, -87.6224),
    # Georgia
    "30301": Coordinate(33.7490, -84.3880),
    "30302": Coordinate(33.7751, -84.3963),
    "30303": Coordinate(33.7490, -84.3880),
    "30309": Coordinate(33.7901, -84.3902),
    # Washington
    "98101": Coordinate(47.6062, -122.3321),
    "98102": Coordinate(47.6205, -122.3212),
    # Massachusetts
    "02101": Coordinate(42.3584, -71.0598),
    "02108": Coordinate(42.3751, -71.0603),
}


def normalize_zip(zip_code: str) -> str:
    """
    Normalize a US zip code to its 5-digit form.

    Raises InvalidZipCode for anything that is not ZIP or ZIP+4 shaped.
    """

    match = _ZIP_RE.match((zip_code or "").strip())
    if not match:
        raise InvalidZipCode(zip_code)
    return match.group(1)


class GeoIndex(Protocol):
    def resolve(self, zip_code: str) -> Coordinate: ...

    def distance(self, a: Coordinate, b: Coordinate) -> float: ...


class StaticGeoIndex:
    """GeoIndex backed by a fixed zip -> coordinate table."""

    def __init__(self, table: Optional[Mapping[str, Coordinate]] = None):
        self._table = dict(table if table is not None else ZIP_COORDINATES)

    def resolve(self, zip_code: str) -> Coordinate:
        key = normalize_zip(zip_code)
        coordinate = self._table.get(key)
        if coordinate is None:
            logger.warning("Unresolvable zip code", extra={"zip_code": key})
            raise InvalidZipCode(zip_code)
        return coordinate

    def distance(self, a: Coordinate, b: Coordinate) -> float:
        return haversine_miles(a, b)


class CachedGeoIndex:
    """
    LRU cache in front of another GeoIndex.

    Only successful lookups are cached so a zip code that starts resolving
    (e.g. after a provider update) is picked up immediately.
    """

    def __init__(self, inner: GeoIndex, max_size: int = 1024):
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        self._inner = inner
        self._max_size = max_size
        self._cache: "OrderedDict[str, Coordinate]" = OrderedDict()
        self._lock = threading.Lock()

    def resolve(self, zip_code: str) -> Coordinate:
        key = normalize_zip(zip_code)
        with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                self._cache.move_to_end(key)
                return cached

        coordinate = self._inner.resolve(key)

        with self._lock:
            self._cache[key] = coordinate
            self._cache.move_to_end(key)
            while len(self._cache) > self._max_size:
                self._cache.popitem(last=False)
        return coordinate

    def distance(self, a: Coordinate, b: Coordinate) -> float:
        return self._inner.distance(a, b)

    def cache_size(self) -> int:
        with self._lock:
            return len(self._cache)
