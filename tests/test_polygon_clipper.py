"""
Unit tests for coverage circle clipping.

Tests cover:
- Full-circle short circuit
- Empty results for disjoint and degenerate input
- Partial clipping against straddled edges
- Winding independence
"""
import pytest

from irrigation_planner.domain.models import ClipKind, Sprinkler
from irrigation_planner.services.domain.polygon_clipper import ClipConfig, PolygonClipper
from irrigation_planner.utils.geo_math import distance, point_in_polygon


@pytest.fixture
def clipper() -> PolygonClipper:
    return PolygonClipper()


# ============================================================
# Classification Tests
# ============================================================

class TestClassification:
    """Tests for full / empty classification."""

    def test_contained_circle_is_full(self, clipper, at, lawn_coords):
        result = clipper.clip_circle_to_polygon(at(10, 5), 2.0, lawn_coords)
        assert result.kind == ClipKind.FULL_CIRCLE
        assert result.points == []

    def test_disjoint_circle_is_empty(self, clipper, at, lawn_coords):
        result = clipper.clip_circle_to_polygon(at(100, 100), 3.0, lawn_coords)
        assert result.is_empty

    def test_mostly_inside_circle_is_full(self, clipper, at, lawn_coords):
        """A circle barely crossing the boundary is reported whole."""
        result = clipper.clip_circle_to_polygon(at(10, 1.99), 2.0, lawn_coords)
        assert result.kind == ClipKind.FULL_CIRCLE

    def test_non_positive_radius_is_empty(self, clipper, at, lawn_coords):
        assert clipper.clip_circle_to_polygon(at(10, 5), 0.0, lawn_coords).is_empty
        assert clipper.clip_circle_to_polygon(at(10, 5), -1.0, lawn_coords).is_empty

    def test_degenerate_polygon_is_empty(self, clipper, at):
        assert clipper.clip_circle_to_polygon(at(0, 0), 2.0, [at(0, 0), at(5, 0)]).is_empty


# ============================================================
# Partial Clipping Tests
# ============================================================

class TestPartialClipping:
    """Tests for Sutherland-Hodgman output."""

    def test_circle_on_edge_is_clipped(self, clipper, at, lawn_coords):
        result = clipper.clip_circle_to_polygon(at(10, 0), 3.0, lawn_coords)
        assert result.kind == ClipKind.POLYGON
        assert len(result.points) >= 3

    def test_vertex_count_is_bounded(self, clipper, at, lawn_coords):
        samples = 72
        result = clipper.clip_circle_to_polygon(at(10, 0), 3.0, lawn_coords, samples=samples)
        assert len(result.points) <= samples + len(lawn_coords)

    def test_vertices_stay_inside_or_on_boundary(self, clipper, at, lawn_coords):
        result = clipper.clip_circle_to_polygon(at(10, 0), 3.0, lawn_coords)
        bottom_lat = lawn_coords[0].lat
        for point in result.points:
            on_boundary = abs(point.lat - bottom_lat) < 1e-9
            assert on_boundary or point_in_polygon(point, lawn_coords)

    def test_vertices_stay_within_radius(self, clipper, at, lawn_coords):
        center = at(10, 0)
        result = clipper.clip_circle_to_polygon(center, 3.0, lawn_coords)
        assert all(distance(center, p) <= 3.0 * 1.01 for p in result.points)

    def test_corner_circle_keeps_a_quarter(self, clipper, at, lawn_coords):
        result = clipper.clip_circle_to_polygon(at(0, 0), 3.0, lawn_coords)
        assert result.kind == ClipKind.POLYGON
        # Quarter arc plus the corner itself
        assert any(distance(p, at(0, 0)) < 0.01 for p in result.points)

    def test_clockwise_polygon_gives_same_result(self, clipper, at, lawn_coords):
        ccw = clipper.clip_circle_to_polygon(at(10, 0), 3.0, lawn_coords)
        cw = clipper.clip_circle_to_polygon(at(10, 0), 3.0, lawn_coords[::-1])
        assert cw.kind == ccw.kind
        assert len(cw.points) == len(ccw.points)

    def test_no_consecutive_duplicates(self, clipper, at, lawn_coords):
        result = clipper.clip_circle_to_polygon(at(0, 0), 3.0, lawn_coords)
        points = result.points
        for a, b in zip(points, points[1:] + points[:1]):
            assert abs(a.lat - b.lat) >= 1e-8 or abs(a.lng - b.lng) >= 1e-8


# ============================================================
# Configuration Tests
# ============================================================

class TestConfiguration:
    """Tests for configurable thresholds."""

    def test_stricter_full_circle_ratio(self, at, lawn_coords):
        clipper = PolygonClipper(ClipConfig(full_circle_ratio=1.0))
        result = clipper.clip_circle_to_polygon(at(10, 1.99), 2.0, lawn_coords)
        assert result.kind == ClipKind.POLYGON

    def test_clip_sprinkler_to_zone(self, clipper, lawn_zone, make_sprinkler):
        sprinkler: Sprinkler = make_sprinkler("s", 10, 5)
        assert clipper.clip_sprinkler_to_zone(sprinkler, lawn_zone).kind == ClipKind.FULL_CIRCLE
