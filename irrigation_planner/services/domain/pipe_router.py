"""
Domain service: Heuristic sub-main / lateral pipe routing.

Each zone gets a single sub-main from the main pipe to the sprinkler closest
to it. Sprinklers are grouped into rows by latitude; the attachment row is
chained outward from the attachment sprinkler, every other row is joined by
a connector from its nearest attachment-row sprinkler and chained outward
from there. Zones without multi-sprinkler rows fall back to a star.

The router is greedy by design and makes no optimality claim.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple
import logging

from irrigation_planner.config import settings
from irrigation_planner.domain.models import (
    Coordinate,
    MainPipe,
    Pipe,
    PipeType,
    Sprinkler,
)
from irrigation_planner.utils.geo_math import closest_point_on_polyline, distance

logger = logging.getLogger(__name__)


@dataclass
class RoutingConfig:
    """Configuration for pipe routing."""

    row_tolerance_deg: float = 0.00008
    """Sprinklers whose latitude differs from the row reference by less than this share a row.
    Degrees of latitude, independent of where on the globe the garden is."""

    @classmethod
    def from_settings(cls) -> "RoutingConfig":
        return cls(row_tolerance_deg=settings.row_tolerance_deg)


class _ZoneRoute:
    """Accumulates the pipes of one zone with sequential ids."""

    def __init__(self, zone_id: str):
        self.zone_id = zone_id
        self.pipes: List[Pipe] = []
        self._lateral_count = 0

    def submain(self, start: Coordinate, sprinkler: Sprinkler) -> None:
        self.pipes.append(Pipe(
            id=f"{self.zone_id}_submain",
            start=start,
            end=sprinkler.position,
            type=PipeType.SUBMAIN,
            length=distance(start, sprinkler.position),
            zone_id=self.zone_id,
            connected_sprinklers=[sprinkler.id],
        ))

    def lateral(self, a: Sprinkler, b: Sprinkler) -> None:
        self.pipes.append(Pipe(
            id=f"{self.zone_id}_lateral_{self._lateral_count}",
            start=a.position,
            end=b.position,
            type=PipeType.LATERAL,
            length=distance(a.position, b.position),
            zone_id=self.zone_id,
            connected_sprinklers=[a.id, b.id],
        ))
        self._lateral_count += 1

    def chain_outward(self, row: Sequence[Sprinkler], index: int) -> None:
        """Chain a row as a path, walking left then right from row[index]."""
        for i in range(index, 0, -1):
            self.lateral(row[i], row[i - 1])
        for i in range(index, len(row) - 1):
            self.lateral(row[i], row[i + 1])


class PipeRouter:
    """
    Domain service generating the branch network below the main pipe.

    Output depends only on the main pipe and the ordered sprinkler groups,
    so routing the same state twice yields identical pipes (ids included).
    """

    def __init__(self, config: Optional[RoutingConfig] = None):
        self.config = config or RoutingConfig()

    def closest_point_on_main_pipe(self, point: Coordinate, main_pipe: MainPipe) -> Coordinate:
        return closest_point_on_polyline(point, main_pipe.coordinates)

    def find_closest_sprinkler_to_main_pipe(
        self,
        sprinklers: Sequence[Sprinkler],
        main_pipe: MainPipe,
    ) -> Optional[Tuple[Sprinkler, Coordinate]]:
        """
        Find a zone's sub-main attachment sprinkler.

        Args:
            sprinklers: Sprinklers of one zone
            main_pipe: Main pipe polyline

        Returns:
            (sprinkler, projection on the main pipe) with the smallest gap,
            first minimum winning ties; None for no sprinklers
        """
        best: Optional[Tuple[Sprinkler, Coordinate]] = None
        best_distance = float("inf")
        for sprinkler in sprinklers:
            projection = self.closest_point_on_main_pipe(sprinkler.position, main_pipe)
            d = distance(sprinkler.position, projection)
            if d < best_distance:
                best, best_distance = (sprinkler, projection), d
        return best

    def detect_grid_layout(self, sprinklers: Sequence[Sprinkler]) -> List[List[Sprinkler]]:
        """
        Group sprinklers into rows by latitude.

        Sprinklers are visited by descending latitude; each joins the current
        row while its latitude is within tolerance of the row's first member,
        otherwise it starts a new row. Rows are sorted west to east.

        Args:
            sprinklers: Sprinklers of one zone

        Returns:
            Rows from north to south; singletons are one-element rows
        """
        ordered = sorted(sprinklers, key=lambda s: s.position.lat, reverse=True)

        rows: List[List[Sprinkler]] = []
        reference_lat = 0.0
        for sprinkler in ordered:
            if rows and abs(sprinkler.position.lat - reference_lat) < self.config.row_tolerance_deg:
                rows[-1].append(sprinkler)
            else:
                rows.append([sprinkler])
                reference_lat = sprinkler.position.lat

        return [sorted(row, key=lambda s: s.position.lng) for row in rows]

    def route_zone(
        self,
        zone_id: str,
        sprinklers: Sequence[Sprinkler],
        main_pipe: MainPipe,
    ) -> List[Pipe]:
        """
        Route one zone: a sub-main plus its laterals.

        Args:
            zone_id: Owning zone id recorded on every pipe
            sprinklers: Sprinklers of the zone
            main_pipe: Main pipe polyline

        Returns:
            Sub-main first, then laterals in emission order
        """
        attachment = self.find_closest_sprinkler_to_main_pipe(sprinklers, main_pipe)
        if attachment is None:
            return []

        anchor, projection = attachment
        route = _ZoneRoute(zone_id)
        route.submain(projection, anchor)

        rows = self.detect_grid_layout(sprinklers)
        if all(len(row) < 2 for row in rows):
            # Star fallback
            for sprinkler in sprinklers:
                if sprinkler.id != anchor.id:
                    route.lateral(anchor, sprinkler)
            logger.debug(f"Zone {zone_id}: no multi-sprinkler rows, star with "
                         f"{len(route.pipes) - 1} laterals")
            return route.pipes

        anchor_row = next(row for row in rows if any(s.id == anchor.id for s in row))
        route.chain_outward(anchor_row, next(i for i, s in enumerate(anchor_row) if s.id == anchor.id))

        for row in rows:
            if row is anchor_row:
                continue
            source, target_index = self._nearest_cross_row_pair(anchor_row, row)
            route.lateral(source, row[target_index])
            route.chain_outward(row, target_index)

        logger.debug(f"Zone {zone_id}: {len(rows)} rows, {len(route.pipes) - 1} laterals")
        return route.pipes

    def route_network(
        self,
        main_pipe: Optional[MainPipe],
        sprinklers_by_zone: Dict[str, List[Sprinkler]],
    ) -> List[Pipe]:
        """
        Route sub-main and lateral pipes for every zone with sprinklers.

        Args:
            main_pipe: Main pipe polyline; routing is a no-op without one
            sprinklers_by_zone: Sprinklers grouped by owning zone, in zone order

        Returns:
            New sub-main and lateral pipes
        """
        if main_pipe is None or len(main_pipe.coordinates) < 2:
            logger.info("No main pipe, skipping pipe routing")
            return []

        pipes: List[Pipe] = []
        for zone_id, sprinklers in sprinklers_by_zone.items():
            pipes.extend(self.route_zone(zone_id, sprinklers, main_pipe))

        submains = sum(1 for p in pipes if p.type == PipeType.SUBMAIN)
        total_length = sum(p.length for p in pipes)
        logger.info(f"Routed {submains} sub-mains and {len(pipes) - submains} laterals "
                    f"({total_length:.1f}m total)")
        return pipes

    @staticmethod
    def _nearest_cross_row_pair(
        anchor_row: Sequence[Sprinkler],
        row: Sequence[Sprinkler],
    ) -> Tuple[Sprinkler, int]:
        """Closest (anchor-row sprinkler, index in row) pair; first minimum wins."""
        best_source = anchor_row[0]
        best_index = 0
        best_distance = float("inf")
        for source in anchor_row:
            for index, target in enumerate(row):
                d = distance(source.position, target.position)
                if d < best_distance:
                    best_source, best_index, best_distance = source, index, d
        return best_source, best_index
