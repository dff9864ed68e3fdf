"""geometry – coordinates, cumulative distance index, projection and corridor filter."""

from .geo_utils import (
    BoundingBox,
    Coordinate,
    build_cumulative_m,
    expand_bbox_km,
    haversine_km,
)
from .route_path import Projection, RoutePath
from .corridor import CorridorFilter, CorridorMatch

__all__ = [
    "Coordinate", "BoundingBox",
    "haversine_km", "build_cumulative_m", "expand_bbox_km",
    "RoutePath", "Projection",
    "CorridorFilter", "CorridorMatch",
]
