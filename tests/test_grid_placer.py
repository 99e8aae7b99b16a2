"""
Unit tests for automatic sprinkler placement.

Tests cover:
- Dominant edge orientation
- Corner placement and avoidance
- Rotated lattice sampling with corner priority
- Zone selection for placing every zone
- Manual placement rules
- Determinism
"""
import math
from itertools import combinations

import pytest

from irrigation_planner.domain.models import (
    UNASSIGNED_ZONE_ID,
    SprinklerConfig,
    Zone,
    ZoneType,
)
from irrigation_planner.services.domain.grid_placer import GridPlacer, PlacementConfig
from irrigation_planner.utils.geo_math import distance, point_in_polygon


@pytest.fixture
def placer(catalog) -> GridPlacer:
    return GridPlacer(catalog=catalog)


@pytest.fixture
def forbidden_corner(make_rectangle) -> Zone:
    """Top-level forbidden square over the lawn's south-west corner."""
    return Zone(id="patio", type=ZoneType.FORBIDDEN, coordinates=make_rectangle(-2, -2, 4, 4))


@pytest.fixture
def rotated_coords(at):
    """20m x 10m rectangle whose long edge points 30 degrees north of east."""
    angle = math.radians(30)
    ux, uy = math.cos(angle), math.sin(angle)
    vx, vy = -math.sin(angle), math.cos(angle)
    return [
        at(0, 0),
        at(20 * ux, 20 * uy),
        at(20 * ux + 10 * vx, 20 * uy + 10 * vy),
        at(10 * vx, 10 * vy),
    ]


def _split(sprinklers):
    corners = [s for s in sprinklers if "_corner_" in s.id]
    grid = [s for s in sprinklers if "_sprinkler_" in s.id]
    return corners, grid


# ============================================================
# Orientation Tests
# ============================================================

class TestDominantEdgeAngle:
    """Tests for longest-edge orientation."""

    def test_axis_aligned_rectangle(self, placer, lawn_coords):
        assert math.isclose(placer.dominant_edge_angle(lawn_coords), 0.0, abs_tol=1e-6)

    def test_rotated_rectangle(self, placer, rotated_coords):
        assert math.isclose(placer.dominant_edge_angle(rotated_coords), 30.0, abs_tol=0.05)

    def test_first_longest_edge_wins(self, placer, make_rectangle):
        """The east and west edges of a tall rectangle tie exactly; the first (northward) one is kept."""
        tall = make_rectangle(0, 0, 10, 20)
        assert math.isclose(placer.dominant_edge_angle(tall), 90.0, abs_tol=1e-6)

    def test_degenerate_polygon(self, placer, at):
        assert placer.dominant_edge_angle([at(0, 0), at(10, 10)]) == 0.0


# ============================================================
# Corner Placement Tests
# ============================================================

class TestCornerPlacement:
    """Tests for one-sprinkler-per-vertex placement."""

    def test_one_sprinkler_per_vertex(self, placer, lawn_zone, pop_up):
        corners = placer.place_corners(lawn_zone, pop_up)

        assert len(corners) == 4
        assert [c.position for c in corners] == lawn_zone.coordinates
        assert [c.id for c in corners] == [f"lawn_corner_{i}" for i in range(4)]
        assert all(c.zone_id == "lawn" for c in corners)

    def test_corner_orientation_follows_dominant_edge(self, placer, rotated_coords, pop_up):
        zone = Zone(id="slope", type=ZoneType.GRASS, coordinates=rotated_coords)
        corners = placer.place_corners(zone, pop_up)
        assert all(math.isclose(c.orientation, 30.0, abs_tol=0.05) for c in corners)

    def test_corner_inside_avoidance_zone_is_skipped(self, placer, lawn_coords, pop_up, forbidden_corner):
        beds = Zone(id="beds", type=ZoneType.FLOWERS, coordinates=lawn_coords)
        corners = placer.place_corners(beds, pop_up, [forbidden_corner])

        assert len(corners) == 3
        assert "beds_corner_0" not in {c.id for c in corners}


# ============================================================
# Grid Placement Tests
# ============================================================

class TestGridPlacement:
    """Tests for the rotated lattice."""

    def test_rectangle_scenario(self, placer, lawn_zone):
        """20m x 10m lawn, radius 4m: 4 corners plus an interior grid ~4m apart."""
        sprinklers = placer.auto_place_zone(lawn_zone)
        corners, grid = _split(sprinklers)

        assert len(corners) == 4
        assert len(grid) >= 8
        assert all(s.radius == 4.0 for s in sprinklers)

        spacing = min(distance(a.position, b.position) for a, b in combinations(grid, 2))
        assert math.isclose(spacing, 4.0, rel_tol=1e-2)

    def test_grid_points_are_inside_zone(self, placer, lawn_zone):
        _, grid = _split(placer.auto_place_zone(lawn_zone))
        assert all(point_in_polygon(s.position, lawn_zone.coordinates) for s in grid)

    def test_grid_keeps_clear_of_corners(self, placer, lawn_zone):
        corners, grid = _split(placer.auto_place_zone(lawn_zone))
        clearance = 0.9 * 4.0
        for s in grid:
            assert all(distance(s.position, c.position) >= clearance * 0.99 for c in corners)

    def test_grid_without_corners_fills_corner_cells(self, placer, lawn_zone, pop_up):
        with_corners = placer.place_grid(lawn_zone, pop_up, corners=placer.place_corners(lawn_zone, pop_up))
        without_corners = placer.place_grid(lawn_zone, pop_up)
        assert len(without_corners) > len(with_corners)

    def test_rotated_zone_grid_inside(self, placer, rotated_coords):
        zone = Zone(
            id="slope",
            type=ZoneType.GRASS,
            coordinates=rotated_coords,
            sprinkler_config=SprinklerConfig(sprinkler_type_id="pop-up-sprinkler", radius_meters=3.0),
        )
        _, grid = _split(placer.auto_place_zone(zone))

        assert len(grid) > 0
        assert all(point_in_polygon(s.position, rotated_coords) for s in grid)

    def test_nested_zone_is_avoided(self, placer, lawn_zone, flower_bed):
        avoid = placer.avoidance_zones_for(lawn_zone, [lawn_zone, flower_bed])
        with_bed = placer.auto_place_zone(lawn_zone, avoid)
        without_bed = placer.auto_place_zone(lawn_zone)

        assert avoid == [flower_bed]
        assert len(with_bed) < len(without_bed)
        assert not any(point_in_polygon(s.position, flower_bed.coordinates) for s in with_bed)

    def test_sub_meter_radius_still_places(self, placer, make_rectangle):
        zone = Zone(
            id="strip",
            type=ZoneType.FLOWERS,
            coordinates=make_rectangle(0, 0, 2, 1),
            sprinkler_config=SprinklerConfig(sprinkler_type_id="drip-spray-tape", radius_meters=0.3),
        )
        _, grid = _split(placer.auto_place_zone(zone))
        assert len(grid) > 0

    def test_placement_is_deterministic(self, placer, lawn_zone, flower_bed):
        avoid = [flower_bed]
        assert placer.auto_place_zone(lawn_zone, avoid) == placer.auto_place_zone(lawn_zone, avoid)

    def test_forbidden_zone_gets_nothing(self, placer, forbidden_corner):
        assert placer.auto_place_zone(forbidden_corner) == []

    def test_unconfigured_zone_gets_nothing(self, placer, lawn_coords):
        zone = Zone(id="bare", type=ZoneType.GRASS, coordinates=lawn_coords)
        assert placer.auto_place_zone(zone) == []


# ============================================================
# Avoidance Selection Tests
# ============================================================

class TestAvoidanceZones:
    """Tests for which zones a zone must avoid."""

    def test_grass_avoids_only_its_sub_zones(self, placer, lawn_zone, flower_bed, forbidden_corner):
        zones = [lawn_zone, flower_bed, forbidden_corner]
        assert placer.avoidance_zones_for(lawn_zone, zones) == [flower_bed]

    def test_other_zones_avoid_top_level_forbidden(self, placer, lawn_coords, flower_bed, forbidden_corner):
        beds = Zone(id="beds", type=ZoneType.TREES, coordinates=lawn_coords)
        zones = [beds, flower_bed, forbidden_corner]
        assert placer.avoidance_zones_for(beds, zones) == [forbidden_corner]


# ============================================================
# Place All Tests
# ============================================================

class TestAutoPlaceAll:
    """Tests for placing every eligible zone."""

    def test_only_configured_top_level_zones(self, placer, lawn_zone, flower_bed, forbidden_corner, make_rectangle):
        trees = Zone(id="trees", type=ZoneType.TREES, coordinates=make_rectangle(30, 0, 10, 10))
        shrubs = Zone(
            id="shrubs",
            type=ZoneType.FLOWERS,
            coordinates=make_rectangle(50, 0, 6, 6),
            sprinkler_config=SprinklerConfig(sprinkler_type_id="mini-sprinkler", radius_meters=2.0),
        )
        placements = placer.auto_place_all([lawn_zone, flower_bed, forbidden_corner, trees, shrubs])

        assert list(placements) == ["lawn", "shrubs"]
        assert all(s.zone_id == "shrubs" for s in placements["shrubs"])
        assert not any(point_in_polygon(s.position, flower_bed.coordinates) for s in placements["lawn"])

    def test_nested_zone_with_config_is_not_a_target(self, placer, lawn_zone, flower_bed):
        configured_bed = flower_bed.model_copy(
            update={"sprinkler_config": SprinklerConfig(sprinkler_type_id="mist-nozzle", radius_meters=1.0)}
        )
        assert list(placer.auto_place_all([lawn_zone, configured_bed])) == ["lawn"]


# ============================================================
# Manual Placement Tests
# ============================================================

class TestManualPlacement:
    """Tests for single sprinkler placement."""

    def test_assigned_to_containing_zone(self, placer, at, lawn_zone, flower_bed, pop_up):
        sprinkler = placer.place_manual(at(2, 5), [lawn_zone, flower_bed], pop_up)
        assert sprinkler is not None
        assert sprinkler.zone_id == "lawn"

    def test_outside_every_zone_is_unassigned(self, placer, at, lawn_zone, pop_up):
        sprinkler = placer.place_manual(at(50, 50), [lawn_zone], pop_up)
        assert sprinkler is not None
        assert sprinkler.zone_id == UNASSIGNED_ZONE_ID

    def test_rejected_inside_sub_zone(self, placer, at, lawn_zone, flower_bed, pop_up):
        zones = [lawn_zone, flower_bed]
        assert placer.place_manual(at(10, 5), zones, pop_up) is None
        assert "sub-zone" in placer.manual_rejection_reason(at(10, 5), zones)

    def test_rejected_inside_forbidden_zone(self, placer, at, lawn_zone, forbidden_corner, pop_up):
        zones = [lawn_zone, forbidden_corner]
        assert placer.place_manual(at(-1, -1), zones, pop_up) is None
        assert "forbidden" in placer.manual_rejection_reason(at(-1, -1), zones)

    def test_manual_ids_are_unique(self, placer, at, lawn_zone, pop_up):
        a = placer.place_manual(at(2, 5), [lawn_zone], pop_up)
        b = placer.place_manual(at(2, 5), [lawn_zone], pop_up)
        assert a.id != b.id


# ============================================================
# Corner Query Tests
# ============================================================

class TestCornerQuery:
    """Tests for corner sprinkler detection."""

    def test_near_vertex(self, placer, at, lawn_zone):
        assert placer.is_corner_sprinkler(at(0, 0), lawn_zone)
        assert placer.is_corner_sprinkler(at(3, 3), lawn_zone)

    def test_zone_centre(self, placer, at, lawn_zone):
        assert not placer.is_corner_sprinkler(at(10, 5), lawn_zone)


class TestPlacementConfig:
    """Tests for corner clearance configuration."""

    def test_zero_clearance_keeps_every_grid_point(self, catalog, lawn_zone, pop_up):
        loose = GridPlacer(PlacementConfig(corner_clearance_ratio=0.0), catalog)
        strict = GridPlacer(PlacementConfig(corner_clearance_ratio=0.9), catalog)
        corners = strict.place_corners(lawn_zone, pop_up)

        assert len(loose.place_grid(lawn_zone, pop_up, corners=corners)) == \
            len(strict.place_grid(lawn_zone, pop_up))
