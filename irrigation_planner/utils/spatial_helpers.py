"""
Spatial analysis helper functions.

Provides utilities for:
- KD-Tree spatial indexing in a local metric frame
- Polygon validity and overlap-aware coverage (shapely)
- Pipe network graphs and shortest paths (scipy.sparse.csgraph)
"""
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple
import logging

import numpy as np
from scipy.sparse import csr_matrix
from scipy.sparse.csgraph import dijkstra
from scipy.spatial import KDTree
from shapely.geometry import Point, Polygon
from shapely.ops import unary_union

from irrigation_planner.domain.models import Coordinate
from irrigation_planner.utils.geo_math import (
    closest_point_on_segment,
    distance,
    to_local_meters,
)

logger = logging.getLogger(__name__)

# Keeps zero-length pipes as real edges in the sparse graph.
MIN_EDGE_WEIGHT_M = 1e-9


def build_kdtree(coordinates: np.ndarray) -> KDTree:
    """
    Build a KD-Tree for efficient spatial queries.

    Args:
        coordinates: (n, 2) array of planar points in meters

    Returns:
        KDTree instance
    """
    return KDTree(np.asarray(coordinates).reshape(-1, 2))


def has_neighbor_within(kdtree: KDTree, point: Tuple[float, float], radius: float) -> bool:
    """True if any indexed point lies strictly closer than radius."""
    if kdtree.n == 0:
        return False
    nearest, _ = kdtree.query(point)
    return float(nearest) < radius


def is_simple_polygon(coordinates: Sequence[Coordinate]) -> bool:
    """
    Check that a ring does not self-intersect.

    Args:
        coordinates: Polygon vertices in degrees

    Returns:
        True if the outline is a valid simple polygon
    """
    if len(coordinates) < 3:
        return False
    polygon = Polygon([(c.lng, c.lat) for c in coordinates])
    return polygon.exterior.is_simple and polygon.is_valid


def local_polygon(coordinates: Sequence[Coordinate], origin: Coordinate) -> Polygon:
    """Shapely polygon in the metric frame around origin."""
    xy = to_local_meters(coordinates, origin)
    return Polygon(xy).buffer(0)


def coverage_union_area(
    usable_polygons: Sequence[Polygon],
    discs: Sequence[Tuple[float, float, float]],
) -> Tuple[float, float]:
    """
    Compute covered and usable area with overlaps counted once.

    Args:
        usable_polygons: Usable zone areas in a shared metric frame
        discs: (x, y, radius) coverage discs in the same frame

    Returns:
        Tuple of (covered area m², usable area m²)
    """
    if not usable_polygons:
        return 0.0, 0.0

    usable = unary_union(list(usable_polygons))
    if usable.is_empty or not discs:
        return 0.0, float(usable.area)

    coverage = unary_union([Point(x, y).buffer(r) for x, y, r in discs if r > 0])
    covered = coverage.intersection(usable).area
    logger.debug(f"Union coverage: {covered:.1f}m² of {usable.area:.1f}m² usable")
    return float(covered), float(usable.area)


@dataclass
class PipeNetworkGraph:
    """Undirected pipe network with endpoints merged within a tolerance."""
    tolerance_m: float
    nodes: List[Coordinate] = field(default_factory=list)
    edges: Dict[Tuple[int, int], float] = field(default_factory=dict)

    def node_index(self, coordinate: Coordinate) -> int:
        """Return the node within tolerance, creating one if none exists."""
        for i, node in enumerate(self.nodes):
            if distance(coordinate, node) <= self.tolerance_m:
                return i
        self.nodes.append(coordinate)
        return len(self.nodes) - 1

    def find_node(self, coordinate: Coordinate) -> int:
        """Return the node within tolerance or -1."""
        for i, node in enumerate(self.nodes):
            if distance(coordinate, node) <= self.tolerance_m:
                return i
        return -1

    def add_edge(self, a: int, b: int, weight: float) -> None:
        if a == b:
            return
        key = (min(a, b), max(a, b))
        weight = max(weight, MIN_EDGE_WEIGHT_M)
        if key not in self.edges or weight < self.edges[key]:
            self.edges[key] = weight

    def degrees(self) -> np.ndarray:
        degree = np.zeros(len(self.nodes), dtype=int)
        for a, b in self.edges:
            degree[a] += 1
            degree[b] += 1
        return degree

    def to_sparse(self) -> csr_matrix:
        n = len(self.nodes)
        if not self.edges:
            return csr_matrix((n, n))
        keys = list(self.edges)
        rows = [a for a, _ in keys]
        cols = [b for _, b in keys]
        weights = [self.edges[k] for k in keys]
        return csr_matrix((weights, (rows, cols)), shape=(n, n))

    def shortest_distances(self, source: int) -> np.ndarray:
        """Dijkstra distances from source; unreachable nodes are inf."""
        if not self.nodes:
            return np.array([])
        return dijkstra(self.to_sparse(), directed=False, indices=source)


def build_pipe_network(
    segments: Sequence[Tuple[Coordinate, Coordinate, float]],
    trunk: Sequence[Coordinate],
    tolerance_m: float,
) -> PipeNetworkGraph:
    """
    Build a network graph from pipe segments and an optional trunk polyline.

    Segment endpoints lying on the trunk (within tolerance) split the trunk
    so that branches attached mid-segment are reachable along it.

    Args:
        segments: (start, end, length) pipe segments
        trunk: Main pipe polyline, may be empty
        tolerance_m: Endpoint merge distance in meters

    Returns:
        PipeNetworkGraph
    """
    graph = PipeNetworkGraph(tolerance_m=tolerance_m)

    for start, end, length in segments:
        graph.add_edge(graph.node_index(start), graph.node_index(end), length)

    endpoints = [p for start, end, _ in segments for p in (start, end)]
    for i in range(len(trunk) - 1):
        a, b = trunk[i], trunk[i + 1]
        stops: List[Tuple[float, Coordinate]] = [(0.0, a), (distance(a, b), b)]
        for point in endpoints:
            on_trunk = closest_point_on_segment(point, a, b)
            if distance(point, on_trunk) <= tolerance_m:
                stops.append((distance(a, on_trunk), on_trunk))
        stops.sort(key=lambda stop: stop[0])
        for (d0, p0), (d1, p1) in zip(stops, stops[1:]):
            graph.add_edge(graph.node_index(p0), graph.node_index(p1), d1 - d0)

    logger.debug(f"Pipe network: {len(graph.nodes)} nodes, {len(graph.edges)} edges")
    return graph
