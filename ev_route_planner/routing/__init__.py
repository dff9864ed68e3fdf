"""routing – route strategy selection over a route geometry provider."""

from .strategy import (
    SHORTEST_DISTANCE_VARIANTS,
    RouteFamily,
    RouteOptions,
    StrategyAttempt,
    StrategyResult,
    select_route,
)

__all__ = [
    "RouteFamily", "RouteOptions", "StrategyAttempt", "StrategyResult",
    "SHORTEST_DISTANCE_VARIANTS", "select_route",
]
