"""vehicle – vehicle parameters and the range/recommendation model."""

from .range_model import (
    EvaluatedWaypoint,
    Recommendation,
    VehicleConfig,
    estimate_charge_minutes,
    evaluate_waypoints,
    recommend,
)

__all__ = [
    "VehicleConfig", "Recommendation", "EvaluatedWaypoint",
    "recommend", "estimate_charge_minutes", "evaluate_waypoints",
]
