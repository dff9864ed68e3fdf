"""
Geographic utilities for the route planner.

Scalar helpers use the haversine formula on plain floats; the ``*_array``
variants do the same on numpy arrays so a whole polyline can be measured in
one call.
"""

from __future__ import annotations

import math
from typing import Iterable, List, NamedTuple, Sequence, Tuple

import numpy as np

EARTH_RADIUS_KM = 6371.0
EARTH_RADIUS_M = EARTH_RADIUS_KM * 1000.0

# Rough conversion used for bounding-box inflation
KM_PER_DEGREE = 111.0


class Coordinate(NamedTuple):
    """Immutable (latitude, longitude) pair in decimal degrees, WGS84."""
    lat: float
    lng: float

    @classmethod
    def parse(cls, text: str) -> "Coordinate":
        """
        Parse a ``"lat,lng"`` string.

        Raises:
            ValueError: If the text is not two comma-separated floats or the
                        values are outside the valid latitude/longitude ranges.
        """
        parts = [p.strip() for p in text.split(",")]
        if len(parts) != 2:
            raise ValueError(f"Expected 'lat,lng', got {text!r}")
        coord = cls(float(parts[0]), float(parts[1]))
        if not is_valid_coordinate(coord):
            raise ValueError(f"Coordinate out of range: {text!r}")
        return coord


class BoundingBox(NamedTuple):
    """Axis-aligned box in degrees: (south, west, north, east)."""
    south: float
    west: float
    north: float
    east: float

    def contains(self, point: Coordinate) -> bool:
        return (self.south <= point[0] <= self.north
                and self.west <= point[1] <= self.east)


def is_valid_coordinate(point: Sequence[float]) -> bool:
    """True if latitude is in [-90, 90] and longitude in [-180, 180]."""
    return -90.0 <= point[0] <= 90.0 and -180.0 <= point[1] <= 180.0


def haversine_km(point_a: Sequence[float], point_b: Sequence[float]) -> float:
    """
    Compute the great-circle distance in kilometres between two (lat, lng) points.

    Args:
        point_a: (latitude, longitude) in decimal degrees
        point_b: (latitude, longitude) in decimal degrees

    Returns:
        Distance in kilometres.
    """
    lat1, lon1 = math.radians(point_a[0]), math.radians(point_a[1])
    lat2, lon2 = math.radians(point_b[0]), math.radians(point_b[1])

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    c = 2 * math.asin(min(1.0, math.sqrt(a)))
    return EARTH_RADIUS_KM * c


def haversine_m_array(
    lat1: np.ndarray,
    lng1: np.ndarray,
    lat2: np.ndarray,
    lng2: np.ndarray,
) -> np.ndarray:
    """Element-wise great-circle distance in metres between two sets of points."""
    lat1, lng1 = np.radians(lat1), np.radians(lng1)
    lat2, lng2 = np.radians(lat2), np.radians(lng2)

    dlat = lat2 - lat1
    dlng = lng2 - lng1

    a = np.sin(dlat / 2) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin(dlng / 2) ** 2
    c = 2 * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0)))
    return EARTH_RADIUS_M * c


def build_cumulative_m(points: Sequence[Sequence[float]]) -> np.ndarray:
    """
    Convert an ordered list of (lat, lng) points into a cumulative metre index.

    Returns:
        Array of the same length as ``points``; element 0 is 0.0 and the last
        element is the total polyline length.  Empty input gives an empty array.
    """
    if len(points) == 0:
        return np.zeros(0, dtype=float)

    arr = np.asarray(points, dtype=float).reshape(-1, 2)
    steps = haversine_m_array(arr[:-1, 0], arr[:-1, 1], arr[1:, 0], arr[1:, 1])
    return np.concatenate(([0.0], np.cumsum(steps)))


def bounding_box(points: Iterable[Sequence[float]]) -> BoundingBox:
    """
    Minimal box enclosing all points.

    Raises:
        ValueError: If ``points`` is empty.
    """
    lats: List[float] = []
    lngs: List[float] = []
    for p in points:
        lats.append(p[0])
        lngs.append(p[1])
    if not lats:
        raise ValueError("Cannot compute the bounding box of an empty point set.")
    return BoundingBox(min(lats), min(lngs), max(lats), max(lngs))


def expand_bbox_km(
    bbox: BoundingBox,
    buffer_km: float,
    km_per_degree: float = KM_PER_DEGREE,
) -> BoundingBox:
    """Inflate a bounding box by ``buffer_km`` on every side (1 degree ~ 111 km)."""
    delta = buffer_km / km_per_degree
    return BoundingBox(
        bbox.south - delta,
        bbox.west - delta,
        bbox.north + delta,
        bbox.east + delta,
    )


def to_lat_lng_arrays(points: Sequence[Sequence[float]]) -> Tuple[np.ndarray, np.ndarray]:
    """Split a point list into separate latitude and longitude arrays."""
    arr = np.asarray(points, dtype=float).reshape(-1, 2)
    return arr[:, 0].copy(), arr[:, 1].copy()
