"""
Itinerary Assembler - shapes evaluated waypoints for presentation.

Builds ``[origin] + stops (in distance order) + [destination]`` and the
matching map overlay points.  No filtering happens here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ev_route_planner.geometry.geo_utils import Coordinate
from ev_route_planner.providers.base import RouteGeometry
from ev_route_planner.selection.candidates import SourceKind
from ev_route_planner.vehicle.range_model import EvaluatedWaypoint, Recommendation


class StepKind(Enum):
    ORIGIN = "origin"
    STOP = "stop"
    DESTINATION = "destination"


@dataclass(frozen=True)
class ItineraryStep:
    """
    One row of the itinerary.

    The range fields are only set for ``StepKind.STOP`` rows.
    """
    kind: StepKind
    name: str
    address: str
    is_registered: bool
    coordinate: Coordinate
    source_kind: Optional[SourceKind] = None
    distance_along_route_km: Optional[float] = None
    is_reachable: Optional[bool] = None
    remaining_range_after_stop_km: Optional[float] = None
    needs_charging_to_reach_destination: Optional[bool] = None
    recommendation: Optional[Recommendation] = None
    estimated_arrival: Optional[datetime] = None
    charge_duration_min: Optional[int] = None
    attributes: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "kind": self.kind.value,
            "name": self.name,
            "address": self.address,
            "is_registered": self.is_registered,
            "lat": self.coordinate.lat,
            "lng": self.coordinate.lng,
        }
        if self.kind is StepKind.STOP:
            data.update({
                "source_kind": self.source_kind.value if self.source_kind else None,
                "distance_along_route_km": round(self.distance_along_route_km, 3),
                "is_reachable": self.is_reachable,
                "remaining_range_after_stop_km": round(self.remaining_range_after_stop_km, 3),
                "needs_charging_to_reach_destination": self.needs_charging_to_reach_destination,
                "recommendation": self.recommendation.value,
                "estimated_arrival": (
                    self.estimated_arrival.isoformat() if self.estimated_arrival else None
                ),
                "charge_duration_min": self.charge_duration_min,
                "attributes": dict(self.attributes),
            })
        return data


@dataclass(frozen=True)
class OverlayPoint:
    """A marker for the map layer."""
    coordinate: Coordinate
    kind: str


def _stop_step(evaluated: EvaluatedWaypoint) -> ItineraryStep:
    waypoint = evaluated.waypoint
    address = str(waypoint.attributes.get("address", "") or "")
    if not address and waypoint.source_kind is SourceKind.GEOCODED_SETTLEMENT:
        address = str(waypoint.attributes.get("admin_area", "") or "")
    return ItineraryStep(
        kind=StepKind.STOP,
        name=waypoint.name,
        address=address,
        is_registered=waypoint.is_registered,
        coordinate=waypoint.coordinate,
        source_kind=waypoint.source_kind,
        distance_along_route_km=waypoint.distance_along_route_km,
        is_reachable=evaluated.is_reachable,
        remaining_range_after_stop_km=evaluated.remaining_range_after_stop_km,
        needs_charging_to_reach_destination=evaluated.needs_charging,
        recommendation=evaluated.recommendation,
        estimated_arrival=evaluated.estimated_arrival,
        charge_duration_min=evaluated.charge_duration_min,
        attributes=dict(waypoint.attributes),
    )


def build_itinerary(
    geometry: RouteGeometry,
    evaluated: Sequence[EvaluatedWaypoint],
    origin: Coordinate,
    destination: Coordinate,
    origin_name: Optional[str] = None,
    destination_name: Optional[str] = None,
) -> List[ItineraryStep]:
    """
    Assemble origin, stops and destination.

    Endpoint names default to the route's start/end addresses; a caller
    supplied display name takes precedence.
    """
    start_address = geometry.start_address
    end_address = geometry.end_address

    steps = [ItineraryStep(
        kind=StepKind.ORIGIN,
        name=origin_name or start_address or "Origin",
        address=start_address,
        is_registered=False,
        coordinate=origin,
    )]
    ordered = sorted(evaluated, key=lambda e: e.waypoint.distance_along_route_km)
    steps.extend(_stop_step(e) for e in ordered)
    steps.append(ItineraryStep(
        kind=StepKind.DESTINATION,
        name=destination_name or end_address or "Destination",
        address=end_address,
        is_registered=False,
        coordinate=destination,
    ))
    return steps


def overlay_points(steps: Sequence[ItineraryStep]) -> List[OverlayPoint]:
    """Map markers: endpoints by step kind, stops by their source kind."""
    points: List[OverlayPoint] = []
    for step in steps:
        if step.kind is StepKind.STOP and step.source_kind is not None:
            kind = step.source_kind.value
        else:
            kind = step.kind.value
        points.append(OverlayPoint(coordinate=step.coordinate, kind=kind))
    return points
