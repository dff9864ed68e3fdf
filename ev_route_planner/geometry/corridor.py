"""
Corridor Filter - decides which external points count as "near the route".

Phase 1 rejects points outside the path's bounding box (inflated by a buffer)
before any projection is done.  Phase 2 projects the survivors and keeps those
within the loose tolerance.  The strict tolerance is exposed separately and is
applied at aggregation time to decide itinerary eligibility.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Generic, Iterable, List, Optional, Sequence, TypeVar

from .geo_utils import BoundingBox, KM_PER_DEGREE, expand_bbox_km
from .route_path import Projection, RoutePath

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class CorridorMatch(Generic[T]):
    """An item that passed phases 1-2, with its projection onto the path."""
    item: T
    projection: Projection
    within_strict: bool


class CorridorFilter:
    """
    Two-phase spatial filter around a RoutePath.

    Args:
        path: The route to filter against.
        buffer_km: Bounding-box inflation on every side.
        loose_tolerance_km: Max perpendicular distance for corridor membership.
        strict_tolerance_km: Max perpendicular distance for itinerary eligibility.
        km_per_degree: Degree-to-km conversion used for the box inflation.
    """

    def __init__(
        self,
        path: RoutePath,
        buffer_km: float = 50.0,
        loose_tolerance_km: float = 50.0,
        strict_tolerance_km: float = 10.0,
        km_per_degree: float = KM_PER_DEGREE,
    ) -> None:
        self.path = path
        self.loose_tolerance_km = loose_tolerance_km
        self.strict_tolerance_km = strict_tolerance_km
        self.bounds: BoundingBox = expand_bbox_km(
            path.bounding_box(), buffer_km, km_per_degree
        )

    def in_bounds(self, point: Sequence[float]) -> bool:
        """Phase 1: cheap bounding-box test."""
        return self.bounds.contains(point)

    def match(self, point: Sequence[float]) -> Optional[Projection]:
        """Phases 1-2 for a single point; None if the point is outside the corridor."""
        if not self.in_bounds(point):
            return None
        projection = self.path.project(point)
        if projection.perpendicular_km > self.loose_tolerance_km:
            return None
        return projection

    def is_strict(self, projection: Projection) -> bool:
        """Phase 3: itinerary eligibility."""
        return projection.perpendicular_km <= self.strict_tolerance_km

    def filter(
        self,
        items: Iterable[T],
        coordinate_of: Callable[[T], Sequence[float]],
    ) -> List[CorridorMatch[T]]:
        """
        Run phases 1-2 over a collection, preserving input order.

        Each surviving item is returned with its projection and the result of
        the strict test, so callers can report corridor membership and
        itinerary eligibility from one pass.
        """
        matches: List[CorridorMatch[T]] = []
        outside_box = 0
        too_far = 0

        for item in items:
            point = coordinate_of(item)
            if not self.in_bounds(point):
                outside_box += 1
                continue
            projection = self.match(point)
            if projection is None:
                too_far += 1
                continue
            matches.append(CorridorMatch(
                item=item,
                projection=projection,
                within_strict=self.is_strict(projection),
            ))

        logger.debug(
            "Corridor filter: %d in corridor, %d outside box, %d beyond %.1f km",
            len(matches), outside_box, too_far, self.loose_tolerance_km,
        )
        return matches
