"""
Range Evaluator - reachability and charging recommendations per waypoint.

Range scales linearly with state of charge, and every waypoint is judged
against the range available at the origin.  Registered stations get a
charging recommendation; other waypoints are informational only.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import List, Optional, Sequence

from ev_route_planner.errors import InvalidVehicleConfig
from ev_route_planner.selection.candidates import CandidateWaypoint


class Recommendation(Enum):
    """Charging recommendation shown for a stop."""
    UNREACHABLE = "unreachable"
    REQUIRED = "recommended — required to reach destination"
    LOW_RANGE = "recommended — low remaining range"
    OPTIONAL = "optional"
    INFORMATIONAL = "informational, no charging"

    @property
    def is_recommended(self) -> bool:
        return self in (Recommendation.REQUIRED, Recommendation.LOW_RANGE)


@dataclass(frozen=True)
class VehicleConfig:
    """
    Vehicle parameters for one trip.

    Attributes:
        current_charge_pct: State of charge at departure, 0-100.
        final_charge_pct: Charge the driver wants left on arrival, 0-100.
        max_range_km: Range on a full battery.
    """
    current_charge_pct: float
    final_charge_pct: float
    max_range_km: float

    def validate(self) -> None:
        """
        Raises:
            InvalidVehicleConfig: If max range is not positive or a percentage
                                  lies outside [0, 100].
        """
        if not (_is_number(self.max_range_km) and self.max_range_km > 0):
            raise InvalidVehicleConfig(
                f"max_range_km must be positive, got {self.max_range_km!r}."
            )
        for label, value in (
            ("current_charge_pct", self.current_charge_pct),
            ("final_charge_pct", self.final_charge_pct),
        ):
            if not (_is_number(value) and 0.0 <= value <= 100.0):
                raise InvalidVehicleConfig(f"{label} must be within [0, 100], got {value!r}.")

    @property
    def current_range_km(self) -> float:
        return self.current_charge_pct / 100.0 * self.max_range_km

    @property
    def final_range_km(self) -> float:
        return self.final_charge_pct / 100.0 * self.max_range_km


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class EvaluatedWaypoint:
    """A downsampled waypoint with its range assessment."""
    waypoint: CandidateWaypoint
    distance_to_destination_km: float
    is_reachable: bool
    remaining_range_after_stop_km: float
    needs_charging: bool
    recommendation: Recommendation
    estimated_arrival: Optional[datetime] = None
    charge_duration_min: Optional[int] = None


def recommend(
    is_registered: bool,
    is_reachable: bool,
    needs_charging: bool,
    remaining_range_km: float,
    low_range_threshold_km: float = 50.0,
) -> Recommendation:
    if not is_registered:
        return Recommendation.INFORMATIONAL
    if not is_reachable:
        return Recommendation.UNREACHABLE
    if needs_charging:
        return Recommendation.REQUIRED
    if remaining_range_km < low_range_threshold_km:
        return Recommendation.LOW_RANGE
    return Recommendation.OPTIONAL


def estimate_charge_minutes(
    remaining_range_km: float,
    distance_to_destination_km: float,
    vehicle: VehicleConfig,
    low_range_threshold_km: float = 50.0,
    charge_rate_km_per_hour: float = 50.0,
) -> int:
    """
    Minutes of charging to finish the trip with the requested final charge.

    The range to add is whatever is missing to reach the destination with
    ``final_range_km`` left (or, failing that, to climb back above the low
    range threshold), capped by the battery's remaining headroom.

    This does not top the battery up to a fixed target percentage.
    ``VehicleConfig`` carries no charge target, so the estimate covers the
    rest of the trip only.  Drivers who always charge to e.g. 80 % will
    spend longer at the stop than shown.
    """
    remaining = max(0.0, remaining_range_km)
    needed = distance_to_destination_km + vehicle.final_range_km - remaining
    needed = max(needed, low_range_threshold_km - remaining, 0.0)
    needed = min(needed, vehicle.max_range_km - remaining)
    if needed <= 0:
        return 0
    return int(math.ceil(needed * 60.0 / charge_rate_km_per_hour))


def evaluate_waypoints(
    waypoints: Sequence[CandidateWaypoint],
    vehicle: VehicleConfig,
    total_route_km: float,
    low_range_threshold_km: float = 50.0,
    start_time: Optional[datetime] = None,
    average_speed_kmh: float = 80.0,
    charge_rate_km_per_hour: float = 50.0,
) -> List[EvaluatedWaypoint]:
    """
    Classify every waypoint as reachable or not and attach a recommendation.

    Waypoints must already be projected.  Arrival estimates are only
    produced when ``start_time`` is given and count driving time only.
    """
    vehicle.validate()
    current_range = vehicle.current_range_km
    final_range = vehicle.final_range_km

    evaluated: List[EvaluatedWaypoint] = []
    for waypoint in waypoints:
        if not waypoint.is_projected:
            raise ValueError(f"Waypoint {waypoint.id!r} has not been projected onto the route.")

        along = waypoint.distance_along_route_km
        to_destination = total_route_km - along
        is_reachable = along <= current_range
        remaining = current_range - along
        needs_charging = to_destination > final_range

        recommendation = recommend(
            waypoint.is_registered, is_reachable, needs_charging,
            remaining, low_range_threshold_km,
        )

        arrival = None
        if start_time is not None:
            arrival = start_time + timedelta(hours=along / average_speed_kmh)

        charge_minutes = None
        if recommendation.is_recommended:
            charge_minutes = estimate_charge_minutes(
                remaining, to_destination, vehicle,
                low_range_threshold_km, charge_rate_km_per_hour,
            )

        evaluated.append(EvaluatedWaypoint(
            waypoint=waypoint,
            distance_to_destination_km=to_destination,
            is_reachable=is_reachable,
            remaining_range_after_stop_km=remaining,
            needs_charging=needs_charging,
            recommendation=recommendation,
            estimated_arrival=arrival,
            charge_duration_min=charge_minutes,
        ))

    return evaluated
