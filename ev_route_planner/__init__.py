"""
EV Route Planner
================
Range-aware route planning and stop selection for long-distance
electric-vehicle trips.

Package layout
--------------
ev_route_planner/
    geometry/   – coordinates, cumulative-distance paths, projection, corridor filter
    routing/    – route strategy selection (fastest vs. shortest distance)
    selection/  – candidate waypoints, landmarks, deduplication, downsampling
    vehicle/    – vehicle parameters, reachability and charging recommendations
    planner/    – pipeline orchestration, itinerary assembly, plan results
    providers/  – collaborator contracts, Google Maps / Overpass / CSV adapters
    config.py   – PlannerConfig thresholds and environment settings
    cli.py      – command-line entry point
"""

from ev_route_planner.config import PlannerConfig
from ev_route_planner.errors import (
    GeocodeFallbackWarning,
    GeocodeUnavailable,
    InvalidVehicleConfig,
    NoViableStopsWarning,
    PlanCancelled,
    PlannerError,
    RouteUnavailable,
)
from ev_route_planner.geometry import Coordinate
from ev_route_planner.planner import PlanResult, RoutePlanner
from ev_route_planner.providers import (
    CompositeStationRegistry,
    CsvStationRegistry,
    InMemoryStationRegistry,
    OverpassStationRegistry,
)
from ev_route_planner.routing import RouteFamily, RouteOptions
from ev_route_planner.vehicle import Recommendation, VehicleConfig

__version__ = "1.0.0"

__all__ = [
    "RoutePlanner", "PlanResult", "PlannerConfig",
    "VehicleConfig", "Recommendation", "RouteOptions", "RouteFamily", "Coordinate",
    "InMemoryStationRegistry", "CsvStationRegistry", "CompositeStationRegistry",
    "OverpassStationRegistry",
    "PlannerError", "RouteUnavailable", "GeocodeUnavailable", "InvalidVehicleConfig",
    "PlanCancelled", "GeocodeFallbackWarning", "NoViableStopsWarning",
]
