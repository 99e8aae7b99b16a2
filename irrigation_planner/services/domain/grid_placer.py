"""
Domain service: Automatic sprinkler placement in garden zones.

Placement combines:
- One sprinkler per polygon corner (unless the corner is in an avoidance region)
- A regular lattice aligned with the zone's longest edge
- Corner priority: lattice points too close to a corner sprinkler are skipped
- Avoidance of nested sub-zones (grass) or top-level forbidden zones (others)
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence
import logging
import math
import uuid

import numpy as np

from irrigation_planner.config import settings
from irrigation_planner.domain.models import (
    UNASSIGNED_ZONE_ID,
    Coordinate,
    Sprinkler,
    SprinklerType,
    Zone,
    ZoneType,
)
from irrigation_planner.infrastructure.sprinkler_catalog import (
    SprinklerCatalog,
    get_sprinkler_catalog,
)
from irrigation_planner.utils.geo_math import (
    AREA_METERS_PER_DEGREE,
    centroid,
    distance,
    edge_angle,
    from_local_meters,
    point_in_any_polygon,
    point_in_polygon,
    rotate_xy,
    to_local_meters,
)
from irrigation_planner.utils.spatial_helpers import build_kdtree, has_neighbor_within

logger = logging.getLogger(__name__)

# A sprinkler within this many degrees of a vertex is a corner sprinkler.
CORNER_TOLERANCE_DEG = 0.00008


@dataclass
class PlacementConfig:
    """Configuration for sprinkler placement."""

    corner_clearance_ratio: float = 0.9
    """Grid points closer than ratio x spacing to a corner sprinkler are skipped"""

    @classmethod
    def from_settings(cls) -> "PlacementConfig":
        return cls(corner_clearance_ratio=settings.corner_clearance_ratio)


class GridPlacer:
    """
    Domain service that populates zones with sprinklers.

    Every result is a new list; identifiers are derived from the zone id and
    placement order, so placing the same zone twice yields identical output.
    """

    def __init__(
        self,
        config: Optional[PlacementConfig] = None,
        catalog: Optional[SprinklerCatalog] = None,
    ):
        self.config = config or PlacementConfig()
        self.catalog = catalog or get_sprinkler_catalog()

    def dominant_edge_angle(self, polygon: Sequence[Coordinate]) -> float:
        """
        Bearing of the polygon's longest edge.

        Args:
            polygon: Polygon vertices, closed implicitly

        Returns:
            Angle in degrees counter-clockwise from east; 0 for fewer than 3 vertices.
            Ties keep the first longest edge.
        """
        if len(polygon) < 3:
            return 0.0

        longest = 0.0
        angle = 0.0
        for i in range(len(polygon)):
            start = polygon[i]
            end = polygon[(i + 1) % len(polygon)]
            length = distance(start, end)
            if length > longest:
                longest = length
                angle = edge_angle(start, end)
        return angle

    def avoidance_zones_for(self, zone: Zone, zones: Sequence[Zone]) -> List[Zone]:
        """
        Regions a zone's sprinklers must stay out of.

        Grass zones avoid their nested sub-zones; every other zone avoids the
        top-level forbidden zones.
        """
        if zone.type == ZoneType.GRASS:
            return [z for z in zones if z.parent_zone_id == zone.id]
        return [
            z for z in zones
            if z.type == ZoneType.FORBIDDEN and not z.is_nested and z.id != zone.id
        ]

    def resolve_sprinkler_type(self, zone: Zone) -> Optional[SprinklerType]:
        if zone.sprinkler_config is None:
            return None
        return self.catalog.resolve(
            zone.sprinkler_config.sprinkler_type_id,
            zone.sprinkler_config.radius_meters,
        )

    def place_corners(
        self,
        zone: Zone,
        sprinkler_type: SprinklerType,
        avoidance_zones: Sequence[Zone] = (),
    ) -> List[Sprinkler]:
        """
        Place one sprinkler on each polygon vertex outside avoidance regions.

        Args:
            zone: Zone to place into
            sprinkler_type: Sprinkler type (radius already resolved)
            avoidance_zones: Regions whose vertices are skipped

        Returns:
            Corner sprinklers oriented along the dominant edge
        """
        orientation = self.dominant_edge_angle(zone.coordinates)
        avoid = [z.coordinates for z in avoidance_zones]

        corners = []
        for index, corner in enumerate(zone.coordinates):
            if point_in_any_polygon(corner, avoid):
                logger.debug(f"Zone {zone.id}: corner {index} lies in an avoidance region")
                continue
            corners.append(Sprinkler(
                id=f"{zone.id}_corner_{index}",
                position=corner,
                type=sprinkler_type,
                zone_id=zone.id,
                orientation=orientation,
            ))
        return corners

    def place_grid(
        self,
        zone: Zone,
        sprinkler_type: SprinklerType,
        avoidance_zones: Sequence[Zone] = (),
        corners: Sequence[Sprinkler] = (),
    ) -> List[Sprinkler]:
        """
        Sample a lattice aligned with the dominant edge.

        The zone is projected into a metric frame around its vertex centroid
        and rotated so the longest edge lies on the u axis. Lattice points are
        spaced by the sprinkler radius and offset by half a spacing from the
        rotated bounding box.

        Args:
            zone: Zone to place into
            sprinkler_type: Sprinkler type (radius already resolved)
            avoidance_zones: Regions lattice points must avoid
            corners: Already-placed corner sprinklers that take priority

        Returns:
            Accepted lattice sprinklers in row-major order
        """
        spacing = sprinkler_type.radius
        if spacing <= 0:
            logger.warning(f"Zone {zone.id}: non-positive sprinkler radius, no grid placed")
            return []

        orientation = self.dominant_edge_angle(zone.coordinates)
        theta = math.radians(orientation)
        origin = centroid(zone.coordinates)

        aligned = rotate_xy(to_local_meters(zone.coordinates, origin), -theta)
        min_u, min_v = aligned.min(axis=0)
        max_u, max_v = aligned.max(axis=0)

        # Upper bound is inclusive: lattice rows landing exactly on the far edge
        # are sampled and left to the containment test
        us = np.arange(min_u + spacing / 2, max_u + 1e-9, spacing)
        vs = np.arange(min_v + spacing / 2, max_v + 1e-9, spacing)

        corner_tree = build_kdtree(to_local_meters([c.position for c in corners], origin))
        clearance = spacing * self.config.corner_clearance_ratio
        avoid = [z.coordinates for z in avoidance_zones]

        placed = []
        rejected_outside = 0
        rejected_corner = 0
        rejected_avoid = 0

        for v in vs:
            for u in us:
                local = rotate_xy(np.array([[u, v]]), theta)
                point = from_local_meters(local, origin)[0]

                if not point_in_polygon(point, zone.coordinates):
                    rejected_outside += 1
                    continue

                if has_neighbor_within(corner_tree, tuple(local[0]), clearance):
                    rejected_corner += 1
                    continue

                if point_in_any_polygon(point, avoid):
                    rejected_avoid += 1
                    continue

                placed.append(Sprinkler(
                    id=f"{zone.id}_sprinkler_{len(placed)}",
                    position=point,
                    type=sprinkler_type,
                    zone_id=zone.id,
                    orientation=orientation,
                ))

        logger.debug(f"Zone {zone.id} grid: {len(us)}x{len(vs)} lattice, "
                     f"rejected outside={rejected_outside}, corner={rejected_corner}, "
                     f"avoidance={rejected_avoid}")
        return placed

    def auto_place_zone(
        self,
        zone: Zone,
        avoidance_zones: Sequence[Zone] = (),
    ) -> List[Sprinkler]:
        """
        Compute the full sprinkler set for one zone.

        Args:
            zone: Zone with a sprinkler config
            avoidance_zones: Regions to keep clear

        Returns:
            Corner sprinklers followed by grid sprinklers; empty for forbidden
            zones and zones without a resolvable sprinkler config
        """
        if zone.type == ZoneType.FORBIDDEN:
            return []

        sprinkler_type = self.resolve_sprinkler_type(zone)
        if sprinkler_type is None:
            logger.warning(f"Zone {zone.id} has no usable sprinkler config, skipping")
            return []

        corners = self.place_corners(zone, sprinkler_type, avoidance_zones)
        grid = self.place_grid(zone, sprinkler_type, avoidance_zones, corners)

        logger.info(f"Placed {len(corners) + len(grid)} sprinklers in zone {zone.id} "
                    f"({len(corners)} corners, {len(grid)} grid, radius={sprinkler_type.radius}m)")
        return corners + grid

    def auto_place_all(self, zones: Sequence[Zone]) -> Dict[str, List[Sprinkler]]:
        """
        Place sprinklers in every top-level, non-forbidden, configured zone.

        Zones are processed in their stored order.

        Args:
            zones: All project zones

        Returns:
            Mapping of zone id to its sprinklers
        """
        placements: Dict[str, List[Sprinkler]] = {}
        for zone in zones:
            if zone.is_nested or zone.type == ZoneType.FORBIDDEN or zone.sprinkler_config is None:
                continue
            placements[zone.id] = self.auto_place_zone(
                zone, self.avoidance_zones_for(zone, zones)
            )

        total = sum(len(s) for s in placements.values())
        logger.info(f"Auto-placed {total} sprinklers across {len(placements)} zones")
        return placements

    def manual_rejection_reason(
        self,
        position: Coordinate,
        zones: Sequence[Zone],
    ) -> Optional[str]:
        """Why a manual position is refused, or None if it is acceptable."""
        for zone in zones:
            if zone.type == ZoneType.FORBIDDEN and not zone.is_nested \
                    and point_in_polygon(position, zone.coordinates):
                return f"Position is inside forbidden zone '{zone.name or zone.id}'"
        for zone in zones:
            if zone.is_nested and point_in_polygon(position, zone.coordinates):
                return f"Position is inside sub-zone '{zone.name or zone.id}'"
        return None

    def place_manual(
        self,
        position: Coordinate,
        zones: Sequence[Zone],
        sprinkler_type: SprinklerType,
    ) -> Optional[Sprinkler]:
        """
        Place a single sprinkler, bypassing grid logic.

        Args:
            position: Requested position
            zones: All project zones
            sprinkler_type: Sprinkler type to place

        Returns:
            The new sprinkler assigned to the first top-level zone containing
            it (or the unassigned bucket), or None if the position is rejected
        """
        reason = self.manual_rejection_reason(position, zones)
        if reason is not None:
            logger.info(f"Manual placement rejected: {reason}")
            return None

        target = next(
            (
                z for z in zones
                if not z.is_nested and z.type != ZoneType.FORBIDDEN
                and point_in_polygon(position, z.coordinates)
            ),
            None,
        )
        return Sprinkler(
            id=f"sprinkler_{uuid.uuid4().hex[:12]}",
            position=position,
            type=sprinkler_type,
            zone_id=target.id if target else UNASSIGNED_ZONE_ID,
            orientation=0.0,
        )

    def is_corner_sprinkler(self, position: Coordinate, zone: Zone) -> bool:
        tolerance_m = CORNER_TOLERANCE_DEG * AREA_METERS_PER_DEGREE
        return any(distance(position, corner) < tolerance_m for corner in zone.coordinates)
