"""
Collaborator contracts consumed by the planner.

The planner talks to three external services - a route geometry provider,
a geocoder and a station registry - only through the protocols below.
Concrete adapters live alongside this module.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Tuple

from ev_route_planner.geometry.geo_utils import BoundingBox, Coordinate

# Station statuses that count as open for charging
AVAILABLE_STATUSES = frozenset({"available", "active", "open", "operational"})


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RouteLeg:
    """One leg of a provider route."""
    distance_m: float
    distance_text: str
    duration_text: str
    start_address: str = ""
    end_address: str = ""
    duration_s: Optional[float] = None


@dataclass(frozen=True)
class RouteGeometry:
    """A provider route: its legs and the decoded path points."""
    legs: Tuple[RouteLeg, ...]
    path_points: Tuple[Coordinate, ...]

    @property
    def total_distance_m(self) -> float:
        """Sum of per-leg distances in metres."""
        return float(sum(leg.distance_m for leg in self.legs))

    @property
    def start_address(self) -> str:
        return self.legs[0].start_address if self.legs else ""

    @property
    def end_address(self) -> str:
        return self.legs[-1].end_address if self.legs else ""


@dataclass(frozen=True)
class ReverseGeocodeResult:
    place_name: str
    admin_area_name: str = ""


@dataclass(frozen=True)
class ForwardGeocodeResult:
    coordinate: Coordinate
    formatted_address: str


@dataclass(frozen=True)
class StationRecord:
    """A registered charging station as listed by a StationRegistry."""
    id: str
    name: str
    coordinate: Coordinate
    address: str = ""
    price_per_hour: Optional[float] = None
    available_slots: Optional[int] = None
    total_ports: Optional[int] = None
    status: str = "available"
    amenities: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_available(self) -> bool:
        """Open for charging with at least one free slot (unknown slots count as free)."""
        if self.status.strip().lower() not in AVAILABLE_STATUSES:
            return False
        return self.available_slots is None or self.available_slots > 0

    def attributes(self) -> Dict[str, Any]:
        """Passthrough attributes carried onto the candidate waypoint."""
        return {
            "address": self.address,
            "price_per_hour": self.price_per_hour,
            "available_slots": self.available_slots,
            "total_ports": self.total_ports,
            "status": self.status,
            "amenities": list(self.amenities),
        }


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------

class RouteGeometryProvider(Protocol):
    def route(
        self,
        origin: Coordinate,
        destination: Coordinate,
        avoid_highways: bool = False,
        avoid_tolls: bool = False,
    ) -> RouteGeometry:
        """Return a route or raise RouteUnavailable."""
        ...


class Geocoder(Protocol):
    def reverse_geocode(self, coordinate: Coordinate) -> ReverseGeocodeResult:
        """Return the place at a coordinate or raise GeocodeUnavailable."""
        ...

    def forward_geocode(self, text: str) -> ForwardGeocodeResult:
        """Resolve free text to a coordinate or raise GeocodeUnavailable."""
        ...


class StationRegistry(Protocol):
    def list_stations(self, bounds: Optional[BoundingBox] = None) -> List[StationRecord]:
        """
        Return a read-only snapshot of stations, in no particular order.

        ``bounds`` is a hint; registries that can query by area use it,
        others may ignore it and return everything.
        """
        ...
