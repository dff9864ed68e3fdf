"""
Google Maps adapters for the route geometry and geocoding contracts.

Both adapters wrap a ``googlemaps.Client``.  The client is created once by
the caller (see ``create_client``) and passed in, so its HTTP session can be
closed explicitly when the caller is done planning.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import googlemaps
from googlemaps import convert
from googlemaps import exceptions as gm_exceptions

from ev_route_planner.config import get_google_maps_config
from ev_route_planner.errors import GeocodeUnavailable, RouteUnavailable
from ev_route_planner.geometry.geo_utils import Coordinate

from .base import ForwardGeocodeResult, ReverseGeocodeResult, RouteGeometry, RouteLeg

logger = logging.getLogger(__name__)

_CLIENT_ERRORS = (gm_exceptions.ApiError, gm_exceptions.TransportError, gm_exceptions.Timeout)

# Address component types tried in order when naming a reverse-geocoded point
LOCALITY_TYPES = (
    "locality",
    "sublocality",
    "postal_town",
    "administrative_area_level_3",
    "administrative_area_level_2",
)
ADMIN_AREA_TYPE = "administrative_area_level_1"


def create_client(api_key: Optional[str] = None, timeout_sec: int = 10) -> googlemaps.Client:
    """
    Build a googlemaps.Client from an explicit key or ``GOOGLE_MAPS_API_KEY``.

    Raises:
        ValueError: If no API key is available.
    """
    key = api_key or get_google_maps_config().get("api_key", "")
    if not key:
        raise ValueError("Google Maps API key not set. Please set GOOGLE_MAPS_API_KEY.")
    return googlemaps.Client(key=key, timeout=timeout_sec)


def close_client(client: googlemaps.Client) -> None:
    """Release the client's HTTP session."""
    session = getattr(client, "session", None)
    if session is not None:
        session.close()


class GoogleMapsRouteProvider:
    """RouteGeometryProvider backed by the Directions API."""

    def __init__(self, client: googlemaps.Client, language: Optional[str] = None) -> None:
        self.client = client
        self.language = language or get_google_maps_config()["language"]

    def route(
        self,
        origin: Coordinate,
        destination: Coordinate,
        avoid_highways: bool = False,
        avoid_tolls: bool = False,
    ) -> RouteGeometry:
        avoid: List[str] = []
        if avoid_highways:
            avoid.append("highways")
        if avoid_tolls:
            avoid.append("tolls")

        try:
            routes = self.client.directions(
                (origin.lat, origin.lng),
                (destination.lat, destination.lng),
                mode="driving",
                avoid=avoid or None,
                language=self.language,
            )
        except _CLIENT_ERRORS as exc:
            raise RouteUnavailable(f"Directions request failed: {exc}") from exc

        if not routes:
            raise RouteUnavailable("Directions API returned no route.")
        return parse_directions_route(routes[0])


class GoogleMapsGeocoder:
    """Geocoder backed by the Geocoding API."""

    def __init__(self, client: googlemaps.Client, language: Optional[str] = None,
                 region: Optional[str] = None) -> None:
        cfg = get_google_maps_config()
        self.client = client
        self.language = language or cfg["language"]
        self.region = region or cfg["region"]

    def reverse_geocode(self, coordinate: Coordinate) -> ReverseGeocodeResult:
        try:
            results = self.client.reverse_geocode(
                (coordinate.lat, coordinate.lng), language=self.language
            )
        except _CLIENT_ERRORS as exc:
            raise GeocodeUnavailable(f"Reverse geocoding failed: {exc}") from exc

        if not results:
            raise GeocodeUnavailable(
                f"No address found at {coordinate.lat:.5f},{coordinate.lng:.5f}"
            )
        return parse_reverse_geocode(results)

    def forward_geocode(self, text: str) -> ForwardGeocodeResult:
        try:
            results = self.client.geocode(text, language=self.language, region=self.region)
        except _CLIENT_ERRORS as exc:
            raise GeocodeUnavailable(f"Geocoding failed for {text!r}: {exc}") from exc

        if not results:
            raise GeocodeUnavailable(f"No results found for {text!r}")
        loc = results[0]["geometry"]["location"]
        return ForwardGeocodeResult(
            coordinate=Coordinate(float(loc["lat"]), float(loc["lng"])),
            formatted_address=results[0].get("formatted_address", text),
        )


# ---------------------------------------------------------------------------
# Response parsers
# ---------------------------------------------------------------------------

def parse_directions_route(route: Dict[str, Any]) -> RouteGeometry:
    """
    Convert one Directions API route into a RouteGeometry.

    Step-level polylines follow the road more closely than the overview
    polyline, so they are preferred; the overview is used when no step
    carries a polyline.
    """
    legs = tuple(
        RouteLeg(
            distance_m=float(leg.get("distance", {}).get("value", 0.0)),
            distance_text=leg.get("distance", {}).get("text", ""),
            duration_text=leg.get("duration", {}).get("text", ""),
            start_address=leg.get("start_address", ""),
            end_address=leg.get("end_address", ""),
            duration_s=leg.get("duration", {}).get("value"),
        )
        for leg in route.get("legs", [])
    )

    points: List[Coordinate] = []
    for leg in route.get("legs", []):
        for step in leg.get("steps", []):
            encoded = step.get("polyline", {}).get("points", "")
            if not encoded:
                continue
            for p in convert.decode_polyline(encoded):
                coord = Coordinate(float(p["lat"]), float(p["lng"]))
                # Consecutive steps share their junction point
                if not points or points[-1] != coord:
                    points.append(coord)

    if not points:
        overview = route.get("overview_polyline", {}).get("points", "")
        if overview:
            points = [
                Coordinate(float(p["lat"]), float(p["lng"]))
                for p in convert.decode_polyline(overview)
            ]

    if not legs or not points:
        raise RouteUnavailable("Directions API route has no legs or geometry.")
    return RouteGeometry(legs=legs, path_points=tuple(points))


def parse_reverse_geocode(results: Sequence[Dict[str, Any]]) -> ReverseGeocodeResult:
    """Pick the most specific locality name and the state-level area from results."""
    place_name = ""
    admin_area = ""

    components = [c for r in results for c in r.get("address_components", [])]
    for wanted in LOCALITY_TYPES:
        match = next((c for c in components if wanted in c.get("types", [])), None)
        if match is not None:
            place_name = match.get("long_name", "")
            break

    admin = next((c for c in components if ADMIN_AREA_TYPE in c.get("types", [])), None)
    if admin is not None:
        admin_area = admin.get("long_name", "")

    return ReverseGeocodeResult(place_name=place_name, admin_area_name=admin_area)
