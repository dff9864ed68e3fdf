"""
Unit tests for the geometry model.

Covers:
- Coordinate.parse(): valid text, malformed text, out-of-range values
- haversine_km / build_cumulative_m: known distances, monotonic table
- RoutePath: construction, read-only arrays, project(), vertex_at_distance()
- expand_bbox_km / BoundingBox.contains
"""

import numpy as np
import pytest

from conftest import KM_PER_DEG_LAT, point_at_km, straight_route
from ev_route_planner.geometry import (
    BoundingBox,
    Coordinate,
    RoutePath,
    build_cumulative_m,
    expand_bbox_km,
    haversine_km,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def zigzag_points():
    return [(20.0, 80.0), (20.5, 80.3), (20.7, 79.9), (21.2, 80.1), (21.2, 80.6)]


# ---------------------------------------------------------------------------
# Coordinate / distance helpers
# ---------------------------------------------------------------------------

class TestCoordinate:
    def test_parse_valid_text(self):
        assert Coordinate.parse(" 28.6139, 77.2090 ") == Coordinate(28.6139, 77.2090)

    def test_parse_place_name_raises(self):
        with pytest.raises(ValueError):
            Coordinate.parse("New Delhi")

    def test_parse_out_of_range_raises(self):
        with pytest.raises(ValueError):
            Coordinate.parse("95.0,77.0")


class TestHaversine:
    def test_one_degree_of_latitude(self):
        assert haversine_km((20.0, 80.0), (21.0, 80.0)) == pytest.approx(KM_PER_DEG_LAT)

    def test_same_point_is_zero(self):
        assert haversine_km((12.97, 77.59), (12.97, 77.59)) == pytest.approx(0.0)

    def test_symmetric(self):
        a, b = (28.6139, 77.2090), (27.1767, 78.0081)
        assert haversine_km(a, b) == pytest.approx(haversine_km(b, a))


class TestCumulativeTable:
    def test_starts_at_zero_and_is_non_decreasing(self):
        table = build_cumulative_m(zigzag_points())
        assert table[0] == 0.0
        assert np.all(np.diff(table) >= 0)

    def test_last_entry_equals_total_length(self):
        points = zigzag_points()
        expected = sum(
            haversine_km(points[i], points[i + 1]) for i in range(len(points) - 1)
        ) * 1000.0
        assert build_cumulative_m(points)[-1] == pytest.approx(expected)

    def test_repeated_point_adds_nothing(self):
        table = build_cumulative_m([(20.0, 80.0), (20.0, 80.0), (20.1, 80.0)])
        assert table[1] == pytest.approx(0.0)

    def test_empty_input(self):
        assert len(build_cumulative_m([])) == 0


# ---------------------------------------------------------------------------
# RoutePath
# ---------------------------------------------------------------------------

class TestRoutePath:
    def test_empty_path_raises(self):
        with pytest.raises(ValueError):
            RoutePath([])

    def test_total_length(self, route_300km):
        assert route_300km.total_length_km == pytest.approx(300.0)
        assert len(route_300km) == 301

    def test_arrays_are_read_only(self, route_300km):
        with pytest.raises(ValueError):
            route_300km.cumulative_m[0] = 5.0

    def test_bounding_box(self):
        path = RoutePath(zigzag_points())
        assert path.bounding_box() == BoundingBox(20.0, 79.9, 21.2, 80.6)


class TestProject:
    def test_point_on_vertex(self):
        path = RoutePath(zigzag_points())
        for i, point in enumerate(path.points):
            projection = path.project(point)
            assert projection.perpendicular_m == pytest.approx(0.0, abs=1e-6)
            assert projection.distance_along_m == pytest.approx(path.cumulative_m[i])

    def test_point_east_of_route(self, route_300km):
        projection = route_300km.project(point_at_km(100.0, offset_km=20.0))
        assert projection.closest_index == 100
        assert projection.perpendicular_km == pytest.approx(20.0, abs=0.05)
        assert projection.distance_along_km == pytest.approx(100.0)

    def test_foot_snaps_to_nearer_segment_end(self):
        path = RoutePath(straight_route(10.0, step_km=10.0))
        near_start = path.project(point_at_km(3.0, offset_km=1.0))
        near_end = path.project(point_at_km(7.0, offset_km=1.0))
        assert near_start.closest_index == 0
        assert near_end.closest_index == 1
        assert near_start.perpendicular_km == pytest.approx(1.0, abs=0.01)

    def test_point_beyond_end_clamps_to_last_vertex(self, route_300km):
        projection = route_300km.project(point_at_km(310.0))
        assert projection.closest_index == 300
        assert projection.perpendicular_km == pytest.approx(10.0, abs=0.01)

    def test_single_point_path(self):
        path = RoutePath([(20.0, 80.0)])
        projection = path.project((21.0, 80.0))
        assert projection.closest_index == 0
        assert projection.distance_along_m == 0.0
        assert projection.perpendicular_km == pytest.approx(KM_PER_DEG_LAT)


class TestVertexAtDistance:
    def test_first_vertex_at_or_beyond_distance(self, route_300km):
        assert route_300km.vertex_at_distance(0.0) == 0
        assert route_300km.vertex_at_distance(99_500.0) == 100

    def test_past_the_end_clamps(self, route_300km):
        assert route_300km.vertex_at_distance(1e9) == 300


class TestBoundingBox:
    def test_expand_by_buffer(self):
        box = expand_bbox_km(BoundingBox(20.0, 80.0, 21.0, 80.0), 111.0, km_per_degree=111.0)
        assert box == BoundingBox(19.0, 79.0, 22.0, 81.0)

    def test_contains_is_inclusive(self):
        box = BoundingBox(20.0, 80.0, 21.0, 81.0)
        assert box.contains((20.0, 81.0))
        assert not box.contains((21.01, 80.5))
