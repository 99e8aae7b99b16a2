"""
Shared pytest fixtures for all tests.

This module provides common fixtures including:
- Metric-offset geometry builders around a fixed origin
- Sample zones (lawn with a nested flower bed)
- Sprinkler factories and a two-row sprinkler layout
- Fully wired planner service
- FastAPI test client
"""
import pytest
from typing import Callable, List
from fastapi.testclient import TestClient

from irrigation_planner.main import app, limiter
from irrigation_planner.domain.models import (
    Coordinate,
    MainPipe,
    Sprinkler,
    SprinklerConfig,
    SprinklerType,
    Zone,
    ZoneType,
)
from irrigation_planner.infrastructure.sprinkler_catalog import SprinklerCatalog
from irrigation_planner.services.application.planner_service import PlannerService
from irrigation_planner.services.domain.grid_placer import GridPlacer
from irrigation_planner.services.domain.pipe_editor import PipeEditor
from irrigation_planner.services.domain.pipe_router import PipeRouter
from irrigation_planner.services.domain.polygon_clipper import PolygonClipper
from irrigation_planner.services.domain.statistics_aggregator import StatisticsAggregator
from irrigation_planner.utils.geo_math import offset_coordinate


ORIGIN = Coordinate(lat=13.58, lng=100.83)


# ============================================================
# Geometry Fixtures
# ============================================================

@pytest.fixture
def origin() -> Coordinate:
    return ORIGIN


@pytest.fixture
def at() -> Callable[[float, float], Coordinate]:
    """Coordinate at (east, north) meters from the origin."""
    def _at(east: float, north: float) -> Coordinate:
        return offset_coordinate(ORIGIN, east, north)
    return _at


@pytest.fixture
def make_rectangle(at) -> Callable[..., List[Coordinate]]:
    """Counter-clockwise rectangle from its south-west corner, in meters."""
    def _make(east: float, north: float, width: float, height: float) -> List[Coordinate]:
        return [
            at(east, north),
            at(east + width, north),
            at(east + width, north + height),
            at(east, north + height),
        ]
    return _make


@pytest.fixture
def lawn_coords(make_rectangle) -> List[Coordinate]:
    """20m x 10m rectangle, long edge running east."""
    return make_rectangle(0, 0, 20, 10)


@pytest.fixture
def lawn_zone(lawn_coords) -> Zone:
    return Zone(
        id="lawn",
        name="Front lawn",
        type=ZoneType.GRASS,
        coordinates=lawn_coords,
        sprinkler_config=SprinklerConfig(sprinkler_type_id="pop-up-sprinkler", radius_meters=4.0),
    )


@pytest.fixture
def flower_bed(make_rectangle) -> Zone:
    """8m x 6m flower bed nested in the middle of the lawn."""
    return Zone(
        id="flowers",
        name="Flower bed",
        type=ZoneType.FLOWERS,
        coordinates=make_rectangle(6, 2, 8, 6),
        parent_zone_id="lawn",
    )


# ============================================================
# Sprinkler Fixtures
# ============================================================

@pytest.fixture
def catalog() -> SprinklerCatalog:
    return SprinklerCatalog()


@pytest.fixture
def pop_up(catalog) -> SprinklerType:
    return catalog.get("pop-up-sprinkler")


@pytest.fixture
def make_sprinkler(at, pop_up) -> Callable[..., Sprinkler]:
    """Sprinkler at (east, north) meters from the origin."""
    def _make(sprinkler_id: str, east: float, north: float, zone_id: str = "lawn") -> Sprinkler:
        return Sprinkler(id=sprinkler_id, position=at(east, north), type=pop_up, zone_id=zone_id)
    return _make


@pytest.fixture
def two_rows(make_sprinkler) -> List[Sprinkler]:
    """Two rows of 3 sprinklers, 5m apart within a row and 12m between rows."""
    return [
        make_sprinkler("n0", 0, 12), make_sprinkler("n1", 5, 12), make_sprinkler("n2", 10, 12),
        make_sprinkler("s0", 0, 0), make_sprinkler("s1", 5, 0), make_sprinkler("s2", 10, 0),
    ]


@pytest.fixture
def main_pipe_north(at) -> MainPipe:
    """North-south main pipe ending 5m north of the middle sprinkler of the northern row."""
    return MainPipe(coordinates=[at(5, 22), at(5, 17)])


# ============================================================
# Service Fixtures
# ============================================================

@pytest.fixture
def planner_service(catalog) -> PlannerService:
    return PlannerService(
        placer=GridPlacer(catalog=catalog),
        router=PipeRouter(),
        editor=PipeEditor(),
        aggregator=StatisticsAggregator(),
        catalog=catalog,
        clipper=PolygonClipper(),
    )


# ============================================================
# FastAPI Test Client Fixtures
# ============================================================

@pytest.fixture
def test_client():
    """Synchronous test client with rate limiting switched off."""
    limiter.enabled = False
    try:
        yield TestClient(app)
    finally:
        limiter.enabled = True
