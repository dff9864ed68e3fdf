"""
Shared pytest fixtures for the EV Route Planner test suite.

Test routes run due north along the 80°E meridian from (20°N, 80°E), so a
point ``k`` km along the route sits exactly ``k`` km from the origin on the
haversine sphere.
"""

import math

import pytest

from ev_route_planner.config import PlannerConfig
from ev_route_planner.errors import GeocodeUnavailable, RouteUnavailable
from ev_route_planner.geometry.geo_utils import EARTH_RADIUS_KM, Coordinate
from ev_route_planner.geometry.route_path import RoutePath
from ev_route_planner.providers.base import (
    ForwardGeocodeResult,
    ReverseGeocodeResult,
    RouteGeometry,
    RouteLeg,
    StationRecord,
)

ROUTE_START = Coordinate(20.0, 80.0)
KM_PER_DEG_LAT = EARTH_RADIUS_KM * math.pi / 180.0


def point_at_km(km, offset_km=0.0):
    """Point ``km`` along the test meridian, shifted ``offset_km`` east."""
    lat = ROUTE_START.lat + km / KM_PER_DEG_LAT
    lng = ROUTE_START.lng + offset_km / (KM_PER_DEG_LAT * math.cos(math.radians(lat)))
    return Coordinate(lat, lng)


def km_of(point):
    """Inverse of point_at_km for on-route points."""
    return (point[0] - ROUTE_START.lat) * KM_PER_DEG_LAT


def straight_route(length_km, step_km=1.0):
    n = int(round(length_km / step_km))
    return [point_at_km(i * step_km) for i in range(n + 1)]


def make_geometry(length_km=300.0, distance_m=None, start_address="Start Town",
                  end_address="End City", distance_text=None, duration_text="4 hours"):
    points = straight_route(length_km)
    return RouteGeometry(
        legs=(RouteLeg(
            distance_m=distance_m if distance_m is not None else length_km * 1000.0,
            distance_text=distance_text or f"{length_km:.0f} km",
            duration_text=duration_text,
            start_address=start_address,
            end_address=end_address,
        ),),
        path_points=tuple(points),
    )


def make_station(station_id, km, offset_km=0.0, name=None, **kwargs):
    return StationRecord(
        id=station_id,
        name=name or f"Station {station_id}",
        coordinate=point_at_km(km, offset_km),
        **kwargs,
    )


# ---------------------------------------------------------------------------
# Fake collaborators
# ---------------------------------------------------------------------------

class FakeRouteProvider:
    """
    Returns a fixed geometry per (avoid_highways, avoid_tolls) variant.

    A variant mapped to an exception raises it; unmapped variants use
    ``default`` (or raise RouteUnavailable when there is none).
    """

    def __init__(self, routes=None, default=None):
        self.routes = dict(routes or {})
        self.default = default
        self.calls = []

    def route(self, origin, destination, avoid_highways=False, avoid_tolls=False):
        self.calls.append((avoid_highways, avoid_tolls))
        result = self.routes.get((avoid_highways, avoid_tolls), self.default)
        if isinstance(result, Exception):
            raise result
        if result is None:
            raise RouteUnavailable("no route for this variant")
        return result


class FakeGeocoder:
    """
    Reverse geocodes by route kilometre, forward geocodes by exact text.

    ``by_km`` maps a route kilometre to a ReverseGeocodeResult or an
    exception; lookups match the nearest key within 2 km.
    """

    def __init__(self, by_km=None, default=None, places=None):
        self.by_km = dict(by_km or {})
        self.default = default
        self.places = dict(places or {})
        self.reverse_calls = []

    def reverse_geocode(self, coordinate):
        km = km_of(coordinate)
        self.reverse_calls.append(km)
        result = self.default
        for key, value in self.by_km.items():
            if abs(key - km) <= 2.0:
                result = value
                break
        if isinstance(result, Exception):
            raise result
        if result is None:
            raise GeocodeUnavailable(f"nothing at km {km:.1f}")
        return result

    def forward_geocode(self, text):
        if text not in self.places:
            raise GeocodeUnavailable(f"no results for {text!r}")
        coordinate, address = self.places[text]
        return ForwardGeocodeResult(coordinate=coordinate, formatted_address=address)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def route_300km():
    """A straight 300 km route with a vertex every kilometre."""
    return RoutePath(straight_route(300.0))


@pytest.fixture
def geometry_300km():
    return make_geometry(300.0)


@pytest.fixture
def no_landmark_config():
    """Default thresholds without the built-in landmarks."""
    return PlannerConfig(landmarks=[])


@pytest.fixture
def named_geocoder():
    """Names the 120 km and 240 km samples of a 300 km route."""
    return FakeGeocoder(by_km={
        120: ReverseGeocodeResult("Ramgarh", "Madhya Pradesh"),
        240: ReverseGeocodeResult("Sitapur", "Madhya Pradesh"),
    })
