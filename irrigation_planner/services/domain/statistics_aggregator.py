"""
Domain service: Read-only reduction of a plan into summary figures.

Everything is recomputed on every call; no state is cached between calls.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence
import logging
import math

import numpy as np
from shapely.ops import unary_union

from irrigation_planner.config import settings
from irrigation_planner.domain.models import (
    UNASSIGNED_ZONE_ID,
    Coordinate,
    JunctionStatistics,
    MainPipe,
    Pipe,
    PipeType,
    ProjectSummary,
    Sprinkler,
    WaterSource,
    Zone,
    ZoneStatistics,
    ZoneType,
)
from irrigation_planner.utils.geo_math import centroid, polygon_area, to_local_meters
from irrigation_planner.utils.spatial_helpers import (
    PipeNetworkGraph,
    build_pipe_network,
    coverage_union_area,
    local_polygon,
)

logger = logging.getLogger(__name__)


@dataclass
class StatisticsConfig:
    """Configuration for statistics."""

    node_tolerance_m: float = 0.5
    """Pipe endpoints closer than this are one node of the network graph"""

    @classmethod
    def from_settings(cls) -> "StatisticsConfig":
        return cls(node_tolerance_m=settings.network_node_tolerance_m)


def coverage_percentage(coverage_area: float, usable_area: float) -> float:
    """Coverage share clamped to [0, 100]; 0 when there is no usable area."""
    if usable_area <= 0:
        return 0.0
    return float(np.clip(coverage_area / usable_area * 100, 0.0, 100.0))


def _circle_area(sprinkler: Sprinkler) -> float:
    return math.pi * sprinkler.radius ** 2


def _is_irrigable(zone: Zone) -> bool:
    return not zone.is_nested and zone.type != ZoneType.FORBIDDEN


class StatisticsAggregator:
    """
    Domain service computing per-zone and project totals.

    The headline coverage percentage is the upper-bound estimate
    sum(pi r^2) / usable area, ignoring overlap and clipping. An
    overlap-aware figure from the union of coverage discs is reported
    alongside it.
    """

    def __init__(self, config: Optional[StatisticsConfig] = None):
        self.config = config or StatisticsConfig()

    def usable_area(self, zone: Zone, zones: Sequence[Zone]) -> float:
        """Zone area minus its nested sub-zones, floored at 0; 0 for non-irrigable zones."""
        if not _is_irrigable(zone):
            return 0.0
        nested = sum(polygon_area(z.coordinates) for z in zones if z.parent_zone_id == zone.id)
        return max(0.0, polygon_area(zone.coordinates) - nested)

    def zone_statistics(
        self,
        zone: Zone,
        zones: Sequence[Zone],
        sprinklers: Sequence[Sprinkler],
        pipes: Sequence[Pipe],
    ) -> ZoneStatistics:
        """
        Figures for a single zone.

        Args:
            zone: Zone to summarize
            zones: All zones (for nested sub-zone lookup)
            sprinklers: Sprinklers owned by the zone
            pipes: Pipes owned by the zone

        Returns:
            ZoneStatistics
        """
        usable = self.usable_area(zone, zones)
        submains = [p.length for p in pipes if p.type == PipeType.SUBMAIN]
        laterals = [p.length for p in pipes if p.type == PipeType.LATERAL]

        type_names: List[str] = []
        for sprinkler in sprinklers:
            if sprinkler.type.name not in type_names:
                type_names.append(sprinkler.type.name)

        return ZoneStatistics(
            zone_id=zone.id,
            zone_name=zone.name,
            zone_type=zone.type,
            area_m2=polygon_area(zone.coordinates),
            usable_area_m2=usable,
            sprinkler_count=len(sprinklers),
            sprinkler_types=type_names,
            average_radius_m=float(np.mean([s.radius for s in sprinklers])) if sprinklers else 0.0,
            submain_length_m=sum(submains),
            lateral_length_m=sum(laterals),
            longest_submain_m=max(submains, default=0.0),
            longest_lateral_m=max(laterals, default=0.0),
            coverage_percentage=coverage_percentage(sum(_circle_area(s) for s in sprinklers), usable),
        )

    def union_coverage_percentage(self, zones: Sequence[Zone], sprinklers: Sequence[Sprinkler]) -> float:
        """Coverage with overlaps counted once and discs clipped to usable area."""
        irrigable = [z for z in zones if _is_irrigable(z)]
        if not irrigable:
            return 0.0

        origin = centroid([c for z in irrigable for c in z.coordinates])
        usable_polygons = []
        for zone in irrigable:
            polygon = local_polygon(zone.coordinates, origin)
            nested = [local_polygon(z.coordinates, origin) for z in zones if z.parent_zone_id == zone.id]
            if nested:
                polygon = polygon.difference(unary_union(nested))
            usable_polygons.append(polygon)

        positions = to_local_meters([s.position for s in sprinklers], origin)
        discs = [(float(x), float(y), s.radius) for (x, y), s in zip(positions, sprinklers)]

        covered, usable = coverage_union_area(usable_polygons, discs)
        return coverage_percentage(covered, usable)

    def longest_path_from_source(
        self,
        graph: PipeNetworkGraph,
        source: Optional[Coordinate],
        sprinklers: Sequence[Sprinkler],
    ) -> float:
        """
        Longest shortest-path distance from the source to any reachable sprinkler.

        Args:
            graph: Pipe network
            source: Water source position (or main pipe start)
            sprinklers: All sprinklers

        Returns:
            Distance in meters; 0 when the source is not on the network
        """
        if source is None or not graph.edges or not sprinklers:
            return 0.0

        source_index = graph.find_node(source)
        if source_index < 0:
            logger.debug("Water source is not connected to the pipe network")
            return 0.0

        distances = graph.shortest_distances(source_index)
        reach = 0.0
        for sprinkler in sprinklers:
            index = graph.find_node(sprinkler.position)
            if index >= 0 and np.isfinite(distances[index]):
                reach = max(reach, float(distances[index]))
        return reach

    def junction_statistics(self, graph: PipeNetworkGraph) -> JunctionStatistics:
        degrees = graph.degrees()
        by_ways: Dict[int, int] = {}
        for degree in degrees[degrees >= 3]:
            by_ways[int(degree)] = by_ways.get(int(degree), 0) + 1
        return JunctionStatistics(
            total_junctions=int(np.sum(degrees >= 3)),
            junctions_by_ways=dict(sorted(by_ways.items())),
        )

    def compute_statistics(
        self,
        zones: Sequence[Zone],
        sprinklers: Sequence[Sprinkler],
        pipes: Sequence[Pipe],
        main_pipe: Optional[MainPipe] = None,
        water_source: Optional[WaterSource] = None,
    ) -> ProjectSummary:
        """
        Summarize a plan.

        Args:
            zones: All zones
            sprinklers: All sprinklers
            pipes: Sub-main and lateral pipes
            main_pipe: Optional main pipe
            water_source: Optional water source; the main pipe start is used without one

        Returns:
            ProjectSummary with per-zone breakdown in zone order
        """
        zone_stats = [
            self.zone_statistics(
                zone,
                zones,
                [s for s in sprinklers if s.zone_id == zone.id],
                [p for p in pipes if p.zone_id == zone.id],
            )
            for zone in zones
        ]

        total_area = sum(z.area_m2 for z, zone in zip(zone_stats, zones) if not zone.is_nested)
        usable_area = sum(z.usable_area_m2 for z in zone_stats)

        submains = [p.length for p in pipes if p.type == PipeType.SUBMAIN]
        laterals = [p.length for p in pipes if p.type == PipeType.LATERAL]
        main_length = main_pipe.length if main_pipe else 0.0

        # Network graph over every pipe plus the main pipe as trunk
        trunk = main_pipe.coordinates if main_pipe else []
        graph = build_pipe_network(
            [(p.start, p.end, p.length) for p in pipes],
            trunk,
            self.config.node_tolerance_m,
        )
        if water_source is not None:
            source = water_source.position
        else:
            source = trunk[0] if trunk else None

        summary = ProjectSummary(
            total_area_m2=total_area,
            usable_area_m2=usable_area,
            total_zones=sum(1 for z in zones if _is_irrigable(z)),
            total_sprinklers=len(sprinklers),
            unassigned_sprinklers=sum(1 for s in sprinklers if s.zone_id == UNASSIGNED_ZONE_ID),
            main_pipe_length_m=main_length,
            submain_length_m=sum(submains),
            lateral_length_m=sum(laterals),
            total_pipe_length_m=main_length + sum(submains) + sum(laterals),
            longest_submain_m=max(submains, default=0.0),
            longest_lateral_m=max(laterals, default=0.0),
            longest_path_from_source_m=self.longest_path_from_source(graph, source, sprinklers),
            total_flow_rate_lpm=sum(s.type.flow_rate for s in sprinklers),
            coverage_percentage=coverage_percentage(sum(_circle_area(s) for s in sprinklers), usable_area),
            union_coverage_percentage=self.union_coverage_percentage(zones, sprinklers),
            junctions=self.junction_statistics(graph),
            zones=zone_stats,
        )

        logger.info(f"Statistics: {summary.total_zones} zones, {summary.total_sprinklers} sprinklers, "
                    f"{summary.total_pipe_length_m:.1f}m pipe, coverage {summary.coverage_percentage:.1f}%")
        return summary
