"""planner – pipeline orchestration and itinerary assembly."""

from .itinerary import ItineraryStep, OverlayPoint, StepKind, build_itinerary, overlay_points
from .planner import LegSummary, PlanDiagnostics, PlanResult, RoutePlanner

__all__ = [
    "RoutePlanner", "PlanResult", "PlanDiagnostics", "LegSummary",
    "ItineraryStep", "OverlayPoint", "StepKind", "build_itinerary", "overlay_points",
]
