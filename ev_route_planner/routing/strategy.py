"""
Route Strategy Selector.

FASTEST issues a single geometry request.  SHORTEST_DISTANCE issues one
request per highway/toll avoidance combination, concurrently, and keeps the
route with the smallest total leg distance.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from ev_route_planner.concurrency import run_bounded
from ev_route_planner.errors import RouteUnavailable
from ev_route_planner.geometry.geo_utils import Coordinate
from ev_route_planner.providers.base import RouteGeometry, RouteGeometryProvider

logger = logging.getLogger(__name__)


class RouteFamily(Enum):
    FASTEST = "fastest"
    SHORTEST_DISTANCE = "shortest_distance"


# (avoid_highways, avoid_tolls) in the order they are tried; ties keep the earliest
SHORTEST_DISTANCE_VARIANTS: Tuple[Tuple[bool, bool], ...] = (
    (True, False),
    (True, True),
    (False, True),
    (False, False),
)


@dataclass(frozen=True)
class RouteOptions:
    avoid_highways: bool = False
    avoid_tolls: bool = False
    route_family: RouteFamily = RouteFamily.FASTEST


@dataclass(frozen=True)
class StrategyAttempt:
    """One geometry request made by the selector."""
    avoid_highways: bool
    avoid_tolls: bool
    total_distance_m: Optional[float] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class StrategyResult:
    """The chosen route and how it was chosen."""
    geometry: RouteGeometry
    avoid_highways: bool
    avoid_tolls: bool
    attempts: List[StrategyAttempt] = field(default_factory=list)
    used_fallback: bool = False

    @property
    def leg_texts(self) -> List[Tuple[str, str]]:
        """(distance text, duration text) per leg for display."""
        return [(leg.distance_text, leg.duration_text) for leg in self.geometry.legs]


def _request(
    provider: RouteGeometryProvider,
    origin: Coordinate,
    destination: Coordinate,
    avoid_highways: bool,
    avoid_tolls: bool,
) -> RouteGeometry:
    geometry = provider.route(
        origin, destination, avoid_highways=avoid_highways, avoid_tolls=avoid_tolls
    )
    if not geometry.path_points:
        raise RouteUnavailable("Provider returned a route without path points.")
    return geometry


def select_route(
    provider: RouteGeometryProvider,
    origin: Coordinate,
    destination: Coordinate,
    options: RouteOptions,
    max_workers: int = 4,
    cancel_event: Optional[threading.Event] = None,
) -> StrategyResult:
    """
    Pick the route geometry for a planning run.

    Raises:
        RouteUnavailable: If no request (including the plain fallback) succeeds.
        PlanCancelled: If the cancellation token is set while requests are in flight.
    """
    if options.route_family is RouteFamily.FASTEST:
        geometry = _single(provider, origin, destination, options, cancel_event)
        return StrategyResult(
            geometry=geometry,
            avoid_highways=options.avoid_highways,
            avoid_tolls=options.avoid_tolls,
            attempts=[StrategyAttempt(
                options.avoid_highways, options.avoid_tolls, geometry.total_distance_m
            )],
        )

    tasks = [
        lambda h=h, t=t: _request(provider, origin, destination, h, t)
        for h, t in SHORTEST_DISTANCE_VARIANTS
    ]
    outcomes = run_bounded(
        tasks, max_workers, cancel_event=cancel_event, stage="route selection"
    )

    attempts: List[StrategyAttempt] = []
    best: Optional[RouteGeometry] = None
    best_variant: Tuple[bool, bool] = SHORTEST_DISTANCE_VARIANTS[-1]

    for (avoid_highways, avoid_tolls), outcome in zip(SHORTEST_DISTANCE_VARIANTS, outcomes):
        if not outcome.ok:
            if not isinstance(outcome.error, RouteUnavailable):
                raise outcome.error
            logger.warning(
                "Route request (avoid_highways=%s, avoid_tolls=%s) failed: %s",
                avoid_highways, avoid_tolls, outcome.error,
            )
            attempts.append(StrategyAttempt(avoid_highways, avoid_tolls, error=str(outcome.error)))
            continue

        geometry = outcome.value
        distance = geometry.total_distance_m
        attempts.append(StrategyAttempt(avoid_highways, avoid_tolls, distance))
        if best is None or distance < best.total_distance_m:
            best = geometry
            best_variant = (avoid_highways, avoid_tolls)

    if best is not None:
        logger.info(
            "Shortest-distance route: avoid_highways=%s, avoid_tolls=%s, %.0f m",
            best_variant[0], best_variant[1], best.total_distance_m,
        )
        return StrategyResult(
            geometry=best,
            avoid_highways=best_variant[0],
            avoid_tolls=best_variant[1],
            attempts=attempts,
        )

    logger.warning("All shortest-distance variants failed; trying a plain request")
    try:
        geometry = _single(provider, origin, destination, options, cancel_event)
    except RouteUnavailable as exc:
        attempts.append(StrategyAttempt(
            options.avoid_highways, options.avoid_tolls, error=str(exc)
        ))
        raise RouteUnavailable(
            "No route found between origin and destination.",
            attempts=[a.error or "" for a in attempts],
        ) from exc

    attempts.append(StrategyAttempt(
        options.avoid_highways, options.avoid_tolls, geometry.total_distance_m
    ))
    return StrategyResult(
        geometry=geometry,
        avoid_highways=options.avoid_highways,
        avoid_tolls=options.avoid_tolls,
        attempts=attempts,
        used_fallback=True,
    )


def _single(
    provider: RouteGeometryProvider,
    origin: Coordinate,
    destination: Coordinate,
    options: RouteOptions,
    cancel_event: Optional[threading.Event],
) -> RouteGeometry:
    outcome = run_bounded(
        [lambda: _request(provider, origin, destination,
                          options.avoid_highways, options.avoid_tolls)],
        1, cancel_event=cancel_event, stage="route request",
    )[0]
    if not outcome.ok:
        raise outcome.error
    return outcome.value
