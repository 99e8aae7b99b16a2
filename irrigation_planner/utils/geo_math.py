"""
Planar geodesy helpers for small garden extents.

All functions work on WGS84 degrees with planar approximations; they are
accurate for areas of a few hectares and make no attempt at ellipsoidal
correctness beyond the per-axis meter/degree factors.
"""
import math
from typing import List, Sequence, Tuple

import numpy as np

from irrigation_planner.domain.models import Coordinate

EARTH_RADIUS_M = 6371000.0

# Flat meters-per-degree used by the shoelace area approximation.
AREA_METERS_PER_DEGREE = 111000.0


def distance(a: Coordinate, b: Coordinate) -> float:
    """
    Haversine great-circle distance.

    Args:
        a: First coordinate
        b: Second coordinate

    Returns:
        Distance in meters
    """
    d_lat = math.radians(b.lat - a.lat)
    d_lng = math.radians(b.lng - a.lng)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def polyline_length(points: Sequence[Coordinate]) -> float:
    """Sum of segment lengths in meters."""
    return sum(distance(points[i], points[i + 1]) for i in range(len(points) - 1))


def polygon_area(points: Sequence[Coordinate]) -> float:
    """
    Approximate polygon area with the shoelace formula.

    The degree-space area is scaled by 111000² · cos(mean latitude). Only
    valid for small extents.

    Args:
        points: Polygon vertices (implicitly closed)

    Returns:
        Area in square meters, 0 for fewer than 3 vertices
    """
    if len(points) < 3:
        return 0.0

    lats = np.array([p.lat for p in points])
    lngs = np.array([p.lng for p in points])
    lat_correction = math.cos(math.radians(float(lats.mean())))

    # Shoelace over offsets from the first vertex
    lats = lats - lats[0]
    lngs = lngs - lngs[0]
    shoelace = np.dot(lats, np.roll(lngs, -1)) - np.dot(np.roll(lats, -1), lngs)
    area_deg = abs(float(shoelace)) / 2
    return area_deg * AREA_METERS_PER_DEGREE * AREA_METERS_PER_DEGREE * lat_correction


def point_in_polygon(point: Coordinate, polygon: Sequence[Coordinate]) -> bool:
    """
    Even-odd ray casting test with lng as x and lat as y.

    Args:
        point: Coordinate to test
        polygon: Polygon vertices, closed implicitly

    Returns:
        True if the point is inside; always False for fewer than 3 vertices
    """
    if len(polygon) < 3:
        return False

    x, y = point.lng, point.lat
    inside = False
    j = len(polygon) - 1
    for i in range(len(polygon)):
        xi, yi = polygon[i].lng, polygon[i].lat
        xj, yj = polygon[j].lng, polygon[j].lat
        if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside


def point_in_any_polygon(point: Coordinate, polygons: Sequence[Sequence[Coordinate]]) -> bool:
    return any(point_in_polygon(point, polygon) for polygon in polygons)


def meters_per_degree_lat(latitude: float) -> float:
    """North-south meters per degree with the WGS84 ellipsoid series."""
    phi = math.radians(latitude)
    return 111132.92 - 559.82 * math.cos(2 * phi) + 1.175 * math.cos(4 * phi)


def meters_per_degree_lng(latitude: float) -> float:
    """East-west meters per degree at the given latitude."""
    phi = math.radians(latitude)
    return 111412.84 * math.cos(phi) - 93.5 * math.cos(3 * phi)


def meters_to_degrees(meters: float, latitude: float) -> Tuple[float, float]:
    """
    Convert a metric length to per-axis degree spans.

    Args:
        meters: Length in meters
        latitude: Representative latitude of the area

    Returns:
        Tuple of (latitude degrees, longitude degrees)
    """
    return meters / meters_per_degree_lat(latitude), meters / meters_per_degree_lng(latitude)


def offset_coordinate(origin: Coordinate, east_m: float, north_m: float) -> Coordinate:
    """Move a coordinate by a metric offset using the origin's latitude."""
    return Coordinate(
        lat=origin.lat + north_m / meters_per_degree_lat(origin.lat),
        lng=origin.lng + east_m / meters_per_degree_lng(origin.lat),
    )


def centroid(points: Sequence[Coordinate]) -> Coordinate:
    """Vertex mean, the representative point used for local frames."""
    return Coordinate(
        lat=sum(p.lat for p in points) / len(points),
        lng=sum(p.lng for p in points) / len(points),
    )


def to_local_meters(points: Sequence[Coordinate], origin: Coordinate) -> np.ndarray:
    """
    Project coordinates into a tangent-plane frame centred on origin.

    Args:
        points: Coordinates to project
        origin: Frame origin; its latitude sets both scale factors

    Returns:
        (n, 2) array of (east, north) offsets in meters
    """
    m_lat = meters_per_degree_lat(origin.lat)
    m_lng = meters_per_degree_lng(origin.lat)
    if not points:
        return np.empty((0, 2))
    return np.array([
        ((p.lng - origin.lng) * m_lng, (p.lat - origin.lat) * m_lat)
        for p in points
    ])


def from_local_meters(xy: np.ndarray, origin: Coordinate) -> List[Coordinate]:
    """Inverse of to_local_meters."""
    m_lat = meters_per_degree_lat(origin.lat)
    m_lng = meters_per_degree_lng(origin.lat)
    return [
        Coordinate(lat=origin.lat + float(y) / m_lat, lng=origin.lng + float(x) / m_lng)
        for x, y in np.asarray(xy).reshape(-1, 2)
    ]


def edge_angle(start: Coordinate, end: Coordinate) -> float:
    """
    Bearing of an edge measured counter-clockwise from east.

    The deltas are meter-corrected at the edge's mid latitude.

    Returns:
        Angle in degrees in (-180, 180]
    """
    mid_lat = (start.lat + end.lat) / 2
    d_north = (end.lat - start.lat) * meters_per_degree_lat(mid_lat)
    d_east = (end.lng - start.lng) * meters_per_degree_lng(mid_lat)
    return math.degrees(math.atan2(d_north, d_east))


def closest_point_on_segment(
    point: Coordinate,
    seg_start: Coordinate,
    seg_end: Coordinate,
) -> Coordinate:
    """
    Project a point onto a segment, clamped to the segment's endpoints.

    Longitude deltas are scaled by cos(latitude) so the projection is
    orthogonal in meters rather than in raw degrees.

    Args:
        point: Point to project
        seg_start: Segment start
        seg_end: Segment end

    Returns:
        Closest coordinate on the segment; seg_start for a zero-length segment
    """
    lng_scale = math.cos(math.radians(seg_start.lat))
    dx = (seg_end.lng - seg_start.lng) * lng_scale
    dy = seg_end.lat - seg_start.lat
    length_sq = dx * dx + dy * dy
    if length_sq == 0:
        return seg_start

    px = (point.lng - seg_start.lng) * lng_scale
    py = point.lat - seg_start.lat
    t = max(0.0, min(1.0, (px * dx + py * dy) / length_sq))
    return Coordinate(
        lat=seg_start.lat + t * (seg_end.lat - seg_start.lat),
        lng=seg_start.lng + t * (seg_end.lng - seg_start.lng),
    )


def closest_point_on_polyline(point: Coordinate, polyline: Sequence[Coordinate]) -> Coordinate:
    """
    Closest point over all vertices and all segment projections.

    Ties keep the first candidate encountered (vertices in order, then
    segments in order), so the result is deterministic.

    Args:
        point: Point to project
        polyline: Ordered polyline vertices

    Returns:
        Closest coordinate; the point itself for an empty polyline
    """
    if not polyline:
        return point

    best = polyline[0]
    best_distance = distance(point, best)

    for vertex in polyline[1:]:
        d = distance(point, vertex)
        if d < best_distance:
            best, best_distance = vertex, d

    for i in range(len(polyline) - 1):
        candidate = closest_point_on_segment(point, polyline[i], polyline[i + 1])
        d = distance(point, candidate)
        if d < best_distance:
            best, best_distance = candidate, d

    return best


def rotate_xy(xy: np.ndarray, angle_rad: float) -> np.ndarray:
    """Rotate (n, 2) planar points counter-clockwise by angle_rad."""
    cos_a, sin_a = math.cos(angle_rad), math.sin(angle_rad)
    rotation = np.array([[cos_a, -sin_a], [sin_a, cos_a]])
    return np.asarray(xy).reshape(-1, 2) @ rotation.T
