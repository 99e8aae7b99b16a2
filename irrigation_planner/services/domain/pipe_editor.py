"""
Domain service: Manual edits overlaid on the pipe collection.

These edits bypass the router's row/attachment model entirely. They are
discarded the next time the network is regenerated.
"""
from typing import Iterable, List, Sequence
import logging
import math
import uuid

from irrigation_planner.domain.models import Coordinate, Pipe, PipeType, Sprinkler
from irrigation_planner.utils.geo_math import closest_point_on_segment, distance

logger = logging.getLogger(__name__)

# Endpoint match tolerance (degrees, per axis) when looking up a connection.
ENDPOINT_MATCH_DEG = 1e-7

# Endpoint tolerance (degrees) when detecting duplicated or overlapping pipes.
DUPLICATE_TOLERANCE_DEG = 0.00001


def _same_point(a: Coordinate, b: Coordinate, tolerance: float) -> bool:
    return abs(a.lat - b.lat) < tolerance and abs(a.lng - b.lng) < tolerance


def _point_on_segment(point: Coordinate, start: Coordinate, end: Coordinate, tolerance: float) -> bool:
    """True if point projects inside [start, end] and lies within tolerance of it."""
    dx, dy = end.lng - start.lng, end.lat - start.lat
    px, py = point.lng - start.lng, point.lat - start.lat
    length_sq = dx * dx + dy * dy
    if length_sq == 0:
        return math.hypot(px, py) < tolerance

    t = (px * dx + py * dy) / length_sq
    if t < 0 or t > 1:
        return False
    return math.hypot(px - t * dx, py - t * dy) < tolerance


def pipes_overlap(a: Pipe, b: Pipe, tolerance: float = DUPLICATE_TOLERANCE_DEG) -> bool:
    """Same endpoints in either direction, or one pipe lying along the other."""
    if _same_point(a.start, b.start, tolerance) and _same_point(a.end, b.end, tolerance):
        return True
    if _same_point(a.start, b.end, tolerance) and _same_point(a.end, b.start, tolerance):
        return True
    if _point_on_segment(a.start, b.start, b.end, tolerance) and \
            _point_on_segment(a.end, b.start, b.end, tolerance):
        return True
    return _point_on_segment(b.start, a.start, a.end, tolerance) and \
        _point_on_segment(b.end, a.start, a.end, tolerance)


class PipeEditor:
    """Builds and filters manually edited pipes."""

    def connect_sprinklers(self, a: Sprinkler, b: Sprinkler) -> Pipe:
        """
        Lateral segment between two sprinklers.

        Args:
            a: Start sprinkler
            b: End sprinkler, whose zone owns the pipe

        Returns:
            New pipe with a random id
        """
        return Pipe(
            id=f"custom_{uuid.uuid4().hex[:12]}",
            start=a.position,
            end=b.position,
            type=PipeType.LATERAL,
            length=distance(a.position, b.position),
            zone_id=b.zone_id,
            connected_sprinklers=[a.id, b.id],
        )

    def connect_sprinkler_to_pipe(self, sprinkler: Sprinkler, pipe: Pipe) -> Pipe:
        """
        Lateral segment from a sprinkler to the closest point of an existing pipe.

        Args:
            sprinkler: Sprinkler to connect
            pipe: Target pipe

        Returns:
            New pipe owned by the sprinkler's zone
        """
        tap = closest_point_on_segment(sprinkler.position, pipe.start, pipe.end)
        return Pipe(
            id=f"custom_{uuid.uuid4().hex[:12]}",
            start=sprinkler.position,
            end=tap,
            type=PipeType.LATERAL,
            length=distance(sprinkler.position, tap),
            zone_id=sprinkler.zone_id,
            connected_sprinklers=[sprinkler.id],
        )

    def add_pipe(self, pipes: Sequence[Pipe], pipe: Pipe) -> List[Pipe]:
        """Append a pipe unless it duplicates or lies along an existing one."""
        if any(pipes_overlap(pipe, existing) for existing in pipes):
            logger.info(f"Pipe {pipe.id} overlaps an existing pipe, not added")
            return list(pipes)
        return [*pipes, pipe]

    def delete_pipes(self, pipes: Sequence[Pipe], pipe_ids: Iterable[str]) -> List[Pipe]:
        doomed = set(pipe_ids)
        remaining = [p for p in pipes if p.id not in doomed]
        logger.info(f"Deleted {len(pipes) - len(remaining)} pipes")
        return remaining

    def find_pipes_between(self, a: Sprinkler, b: Sprinkler, pipes: Sequence[Pipe]) -> List[Pipe]:
        """Pipes running between two sprinklers in either direction."""
        p1, p2 = a.position, b.position
        return [
            pipe for pipe in pipes
            if (_same_point(pipe.start, p1, ENDPOINT_MATCH_DEG) and _same_point(pipe.end, p2, ENDPOINT_MATCH_DEG))
            or (_same_point(pipe.start, p2, ENDPOINT_MATCH_DEG) and _same_point(pipe.end, p1, ENDPOINT_MATCH_DEG))
        ]

    def remove_duplicate_pipes(
        self,
        pipes: Sequence[Pipe],
        tolerance: float = DUPLICATE_TOLERANCE_DEG,
    ) -> List[Pipe]:
        """
        Drop pipes that repeat or lie along an earlier pipe.

        Args:
            pipes: Pipes in priority order; the first of each duplicate group survives
            tolerance: Endpoint tolerance in degrees

        Returns:
            Filtered pipes in original order
        """
        unique: List[Pipe] = []
        for pipe in pipes:
            if any(pipes_overlap(pipe, kept, tolerance) for kept in unique):
                logger.debug(f"Dropping duplicate pipe {pipe.id}")
                continue
            unique.append(pipe)
        return unique
