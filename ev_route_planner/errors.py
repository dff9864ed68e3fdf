"""
Error taxonomy for the route planner.

Fatal failures derive from ``PlannerError`` and abort a planning call.
Degraded-but-valid outcomes are reported as ``RuntimeWarning`` subclasses
so callers can filter or escalate them with the ``warnings`` machinery.
"""

from __future__ import annotations

from typing import List, Optional


class PlannerError(Exception):
    """Base class for every error surfaced by the planner."""
    pass


class RouteUnavailable(PlannerError):
    """No route geometry could be obtained for the requested endpoints."""

    def __init__(self, message: str, attempts: Optional[List[str]] = None):
        super().__init__(message)
        self.attempts = list(attempts or [])


class GeocodeUnavailable(PlannerError):
    """A forward or reverse geocoding lookup failed."""
    pass


class InvalidVehicleConfig(PlannerError, ValueError):
    """Vehicle parameters are outside their valid ranges."""
    pass


class PlanCancelled(PlannerError):
    """The caller abandoned the planning request before it completed."""
    pass


class GeocodeFallbackWarning(RuntimeWarning):
    """One or more settlement names were synthesized after a geocoding failure."""
    pass


class NoViableStopsWarning(RuntimeWarning):
    """The pipeline completed but no waypoint passed strict corridor acceptance."""
    pass
