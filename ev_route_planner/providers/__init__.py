"""providers – collaborator contracts and their adapters.

The Google Maps adapters are not imported eagerly so the core engine can be
used (and tested) without the googlemaps package configured:
    from ev_route_planner.providers.google_maps import GoogleMapsRouteProvider
"""

from .base import (
    ForwardGeocodeResult,
    Geocoder,
    ReverseGeocodeResult,
    RouteGeometry,
    RouteGeometryProvider,
    RouteLeg,
    StationRecord,
    StationRegistry,
)
from .registries import CompositeStationRegistry, CsvStationRegistry, InMemoryStationRegistry
from .overpass import OverpassStationRegistry

__all__ = [
    "RouteLeg", "RouteGeometry", "ReverseGeocodeResult", "ForwardGeocodeResult",
    "StationRecord", "RouteGeometryProvider", "Geocoder", "StationRegistry",
    "InMemoryStationRegistry", "CsvStationRegistry", "CompositeStationRegistry",
    "OverpassStationRegistry",
]
