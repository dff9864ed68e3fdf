"""
RoutePath - decoded route geometry with a cumulative distance index.

A RoutePath is built once per planning run from the provider's point list
and is read-only afterwards.  Projection uses flat lat/lng interpolation to
find the foot point on each segment and the haversine formula for the final
point-to-foot distance.
"""

from __future__ import annotations

from typing import NamedTuple, Sequence, Tuple

import numpy as np

from .geo_utils import (
    BoundingBox,
    Coordinate,
    bounding_box,
    build_cumulative_m,
    haversine_m_array,
    to_lat_lng_arrays,
)


class Projection(NamedTuple):
    """Result of projecting a point onto a RoutePath."""
    closest_index: int          # Nearest vertex of the closest segment
    perpendicular_m: float      # Geodesic distance from the point to the path
    distance_along_m: float     # Cumulative distance at closest_index

    @property
    def perpendicular_km(self) -> float:
        return self.perpendicular_m / 1000.0

    @property
    def distance_along_km(self) -> float:
        return self.distance_along_m / 1000.0


class RoutePath:
    """
    Ordered route vertices plus a parallel cumulative-distance array.

    Args:
        points: Ordered (lat, lng) vertices of the decoded route geometry.

    Raises:
        ValueError: If ``points`` is empty.
    """

    def __init__(self, points: Sequence[Sequence[float]]) -> None:
        if len(points) == 0:
            raise ValueError("A route path needs at least one point.")

        self._points: Tuple[Coordinate, ...] = tuple(
            Coordinate(float(p[0]), float(p[1])) for p in points
        )
        self._lats, self._lngs = to_lat_lng_arrays(self._points)
        self._cumulative_m = build_cumulative_m(self._points)

        for arr in (self._lats, self._lngs, self._cumulative_m):
            arr.setflags(write=False)

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def points(self) -> Tuple[Coordinate, ...]:
        return self._points

    @property
    def cumulative_m(self) -> np.ndarray:
        return self._cumulative_m

    @property
    def total_length_m(self) -> float:
        return float(self._cumulative_m[-1])

    @property
    def total_length_km(self) -> float:
        return self.total_length_m / 1000.0

    def __len__(self) -> int:
        return len(self._points)

    def bounding_box(self) -> BoundingBox:
        return bounding_box(self._points)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def project(self, point: Sequence[float]) -> Projection:
        """
        Project a point onto the path.

        For every segment the foot point is interpolated in flat lat/lng
        space (clamped to the segment ends), then the distance from ``point``
        to that foot is measured with the haversine formula.  The segment with
        the smallest distance wins; ties keep the earliest segment.  The
        reported vertex is whichever end of the winning segment the foot lies
        closer to.
        """
        q_lat, q_lng = float(point[0]), float(point[1])

        if len(self._points) == 1:
            d = haversine_m_array(
                np.array([q_lat]), np.array([q_lng]), self._lats, self._lngs
            )
            return Projection(0, float(d[0]), 0.0)

        a_lat, a_lng = self._lats[:-1], self._lngs[:-1]
        d_lat = self._lats[1:] - a_lat
        d_lng = self._lngs[1:] - a_lng
        seg_len_sq = d_lat ** 2 + d_lng ** 2

        with np.errstate(divide="ignore", invalid="ignore"):
            t = ((q_lat - a_lat) * d_lat + (q_lng - a_lng) * d_lng) / seg_len_sq
        # Zero-length segments collapse onto their start vertex
        t = np.clip(np.where(seg_len_sq > 0, t, 0.0), 0.0, 1.0)

        foot_lat = a_lat + t * d_lat
        foot_lng = a_lng + t * d_lng
        distances = haversine_m_array(
            np.full_like(foot_lat, q_lat), np.full_like(foot_lng, q_lng),
            foot_lat, foot_lng,
        )

        best = int(np.argmin(distances))
        closest = best if t[best] <= 0.5 else best + 1
        return Projection(
            closest_index=closest,
            perpendicular_m=float(distances[best]),
            distance_along_m=float(self._cumulative_m[closest]),
        )

    def vertex_at_distance(self, distance_m: float) -> int:
        """Index of the first vertex whose cumulative distance is >= ``distance_m``."""
        idx = int(np.searchsorted(self._cumulative_m, distance_m, side="left"))
        return min(idx, len(self._points) - 1)
