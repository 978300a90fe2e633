"""
Tests for `services/geo_index.py` and `domain/geo.py`.

Covers:
- Known zip codes resolve to their table coordinate (ZIP+4 accepted).
- Unknown or malformed zip codes fail closed with InvalidZipCode.
- Haversine distance in miles.
- CachedGeoIndex caches successes only and evicts least recently used entries.
"""

from __future__ import annotations

import pytest

from domain.errors import InvalidZipCode
from domain.geo import Coordinate, haversine_miles
from services.geo_index import CachedGeoIndex, StaticGeoIndex, normalize_zip


def test_resolve_known_zip() -> None:
    geo = StaticGeoIndex()

    assert geo.resolve("90210") == Coordinate(lat=34.0901, lon=-118.4065)


def test_resolve_accepts_zip_plus_four_and_whitespace() -> None:
    geo = StaticGeoIndex()

    assert geo.resolve(" 90210-1234 ") == geo.resolve("90210")


@pytest.mark.parametrize("zip_code", ["00000", "99999"])
def test_resolve_unknown_zip_fails_closed(zip_code: str) -> None:
    with pytest.raises(InvalidZipCode) as exc_info:
        StaticGeoIndex().resolve(zip_code)

    assert exc_info.value.zip_code == zip_code


@pytest.mark.parametrize("zip_code", ["", "9021", "ABCDE", "902100"])
def test_normalize_rejects_malformed_zip(zip_code: str) -> None:
    with pytest.raises(InvalidZipCode):
        normalize_zip(zip_code)


def test_distance_is_zero_for_same_point_and_symmetric() -> None:
    geo = StaticGeoIndex()
    beverly_hills = geo.resolve("90210")
    flagstaff = geo.resolve("86001")

    assert geo.distance(beverly_hills, beverly_hills) == pytest.approx(0.0)
    assert geo.distance(beverly_hills, flagstaff) == pytest.approx(geo.distance(flagstaff, beverly_hills))


def test_distance_beverly_hills_to_flagstaff() -> None:
    geo = StaticGeoIndex()

    miles = geo.distance(geo.resolve("90210"), geo.resolve("86001"))

    assert 380 < miles < 400


def test_haversine_one_degree_of_latitude() -> None:
    miles = haversine_miles(Coordinate(0.0, 0.0), Coordinate(1.0, 0.0))

    assert miles == pytest.approx(69.1, abs=0.1)


def test_coordinate_rejects_out_of_range_values() -> None:
    with pytest.raises(ValueError):
        Coordinate(lat=91.0, lon=0.0)
    with pytest.raises(ValueError):
        Coordinate(lat=0.0, lon=-181.0)


class _CountingGeoIndex:
    def __init__(self) -> None:
        self.inner = StaticGeoIndex({"90210": Coordinate(34.0901, -118.4065), "10001": Coordinate(40.7505, -73.998)})
        self.calls = 0

    def resolve(self, zip_code: str) -> Coordinate:
        self.calls += 1
        return self.inner.resolve(zip_code)

    def distance(self, a: Coordinate, b: Coordinate) -> float:
        return self.inner.distance(a, b)


def test_cached_geo_index_reuses_successful_lookups() -> None:
    inner = _CountingGeoIndex()
    geo = CachedGeoIndex(inner, max_size=8)

    first = geo.resolve("90210")
    second = geo.resolve("90210-0001")

    assert first == second
    assert inner.calls == 1


def test_cached_geo_index_does_not_cache_failures() -> None:
    inner = _CountingGeoIndex()
    geo = CachedGeoIndex(inner, max_size=8)

    for _ in range(2):
        with pytest.raises(InvalidZipCode):
            geo.resolve("30301")

    assert inner.calls == 2
    assert geo.cache_size() == 0


def test_cached_geo_index_evicts_least_recently_used() -> None:
    inner = _CountingGeoIndex()
    geo = CachedGeoIndex(inner, max_size=1)

    geo.resolve("90210")
    geo.resolve("10001")
    geo.resolve("90210")

    assert inner.calls == 3
    assert geo.cache_size() == 1
