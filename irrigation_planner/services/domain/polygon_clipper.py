"""
Domain service: Clip sprinkler coverage circles to zone boundaries.

The circle is discretized into a polygon in degree space using the
latitude-corrected meter/degree factors, then clipped against the zone with
Sutherland-Hodgman. Near-complete coverage short-circuits to a full circle
so rendering is not disturbed by near-tangent boundaries.
"""
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple
import logging
import math

import numpy as np

from irrigation_planner.config import settings
from irrigation_planner.domain.models import ClipResult, Coordinate, Sprinkler, Zone
from irrigation_planner.utils.geo_math import meters_to_degrees, point_in_polygon

logger = logging.getLogger(__name__)

Point2D = Tuple[float, float]


@dataclass
class ClipConfig:
    """Configuration for coverage clipping."""

    sample_count: int = 72
    """Number of points used to discretize the circle"""

    full_circle_ratio: float = 0.95
    """Share of samples inside the polygon reported as a full circle"""

    dedup_epsilon: float = 1e-8
    """Vertices closer than this (degrees, per axis) are collapsed"""

    @classmethod
    def from_settings(cls) -> "ClipConfig":
        return cls(
            sample_count=settings.clip_sample_count,
            full_circle_ratio=settings.clip_full_circle_ratio,
            dedup_epsilon=settings.clip_dedup_epsilon_deg,
        )


def _cross(origin: Point2D, a: Point2D, b: Point2D) -> float:
    """z-component of (a - origin) x (b - origin)."""
    return (a[0] - origin[0]) * (b[1] - origin[1]) - (a[1] - origin[1]) * (b[0] - origin[0])


def _signed_area(points: Sequence[Point2D]) -> float:
    area = 0.0
    for i in range(len(points)):
        x1, y1 = points[i]
        x2, y2 = points[(i + 1) % len(points)]
        area += x1 * y2 - x2 * y1
    return area / 2


class PolygonClipper:
    """
    Domain service computing the part of a coverage circle inside a zone.

    Stateless and side-effect free; safe to call concurrently for
    different sprinklers.
    """

    def __init__(self, config: Optional[ClipConfig] = None):
        self.config = config or ClipConfig()

    def discretize_circle(
        self,
        center: Coordinate,
        radius: float,
        samples: int,
    ) -> List[Point2D]:
        """
        Approximate a metric circle with a counter-clockwise ring.

        Args:
            center: Circle center
            radius: Radius in meters
            samples: Number of ring points

        Returns:
            List of (lng, lat) tuples
        """
        radius_lat, radius_lng = meters_to_degrees(radius, center.lat)
        angles = np.linspace(0.0, 2 * math.pi, samples, endpoint=False)
        lngs = center.lng + radius_lng * np.cos(angles)
        lats = center.lat + radius_lat * np.sin(angles)
        return [(float(x), float(y)) for x, y in zip(lngs, lats)]

    def clip_circle_to_polygon(
        self,
        center: Coordinate,
        radius: float,
        polygon: Sequence[Coordinate],
        samples: Optional[int] = None,
    ) -> ClipResult:
        """
        Clip a coverage circle to a polygon.

        Args:
            center: Circle center
            radius: Radius in meters
            polygon: Zone boundary (either winding)
            samples: Circle discretization, defaults to the configured count

        Returns:
            ClipResult that is FULL_CIRCLE, POLYGON with clipped vertices, or EMPTY.
            Malformed input (radius <= 0, fewer than 3 vertices) yields EMPTY.
        """
        samples = samples or self.config.sample_count
        if radius <= 0 or len(polygon) < 3 or samples < 3:
            logger.debug(f"Degenerate clip input: radius={radius}, vertices={len(polygon)}")
            return ClipResult.empty()

        ring = self.discretize_circle(center, radius, samples)
        inside = sum(
            1 for lng, lat in ring
            if point_in_polygon(Coordinate(lat=lat, lng=lng), polygon)
        )

        if inside >= self.config.full_circle_ratio * samples:
            return ClipResult.full_circle()
        if inside == 0:
            return ClipResult.empty()

        clip_ring = [(c.lng, c.lat) for c in polygon]
        if _signed_area(clip_ring) < 0:
            clip_ring.reverse()

        clipped = self._sutherland_hodgman(ring, clip_ring)
        clipped = self._collapse_duplicates(clipped)

        if len(clipped) < 3:
            return ClipResult.empty()

        logger.debug(f"Clipped circle: {inside}/{samples} samples inside, {len(clipped)} vertices")
        return ClipResult.polygon([Coordinate(lat=y, lng=x) for x, y in clipped])

    def clip_sprinkler_to_zone(self, sprinkler: Sprinkler, zone: Zone) -> ClipResult:
        """Clip a placed sprinkler's coverage to its zone."""
        return self.clip_circle_to_polygon(sprinkler.position, sprinkler.radius, zone.coordinates)

    def _sutherland_hodgman(
        self,
        subject: List[Point2D],
        clip_ring: List[Point2D],
    ) -> List[Point2D]:
        """
        Clip subject against each edge of a counter-clockwise clip ring.

        A point is inside an edge when it lies on or left of it.
        """
        output = subject
        for i in range(len(clip_ring)):
            if not output:
                break
            edge_start = clip_ring[i]
            edge_end = clip_ring[(i + 1) % len(clip_ring)]

            candidates = output
            output = []
            previous = candidates[-1]
            previous_side = _cross(edge_start, edge_end, previous)

            for current in candidates:
                current_side = _cross(edge_start, edge_end, current)
                if current_side >= 0:
                    if previous_side < 0:
                        output.append(self._intersect(previous, current, previous_side, current_side))
                    output.append(current)
                elif previous_side >= 0:
                    output.append(self._intersect(previous, current, previous_side, current_side))
                previous, previous_side = current, current_side

        return output

    @staticmethod
    def _intersect(p: Point2D, q: Point2D, side_p: float, side_q: float) -> Point2D:
        t = side_p / (side_p - side_q)
        return (p[0] + t * (q[0] - p[0]), p[1] + t * (q[1] - p[1]))

    def _collapse_duplicates(self, points: List[Point2D]) -> List[Point2D]:
        eps = self.config.dedup_epsilon
        unique: List[Point2D] = []
        for point in points:
            if unique and abs(point[0] - unique[-1][0]) < eps and abs(point[1] - unique[-1][1]) < eps:
                continue
            unique.append(point)

        while (
            len(unique) > 1
            and abs(unique[0][0] - unique[-1][0]) < eps
            and abs(unique[0][1] - unique[-1][1]) < eps
        ):
            unique.pop()

        return unique
