"""
Dependency injection for FastAPI.
"""
from typing import Annotated
from fastapi import Depends

from irrigation_planner.infrastructure.sprinkler_catalog import (
    SprinklerCatalog,
    get_sprinkler_catalog,
)
from irrigation_planner.services.application.planner_service import PlannerService
from irrigation_planner.services.application.report_exporter import ReportExporter
from irrigation_planner.services.domain.grid_placer import GridPlacer, PlacementConfig
from irrigation_planner.services.domain.pipe_editor import PipeEditor
from irrigation_planner.services.domain.pipe_router import PipeRouter, RoutingConfig
from irrigation_planner.services.domain.polygon_clipper import ClipConfig, PolygonClipper
from irrigation_planner.services.domain.statistics_aggregator import (
    StatisticsAggregator,
    StatisticsConfig,
)


def get_polygon_clipper() -> PolygonClipper:
    """
    Dependency factory for PolygonClipper.

    Returns:
        PolygonClipper configured from settings
    """
    return PolygonClipper(ClipConfig.from_settings())


def get_grid_placer(
    catalog: Annotated[SprinklerCatalog, Depends(get_sprinkler_catalog)],
) -> GridPlacer:
    return GridPlacer(PlacementConfig.from_settings(), catalog)


def get_pipe_router() -> PipeRouter:
    return PipeRouter(RoutingConfig.from_settings())


def get_statistics_aggregator() -> StatisticsAggregator:
    return StatisticsAggregator(StatisticsConfig.from_settings())


def get_report_exporter() -> ReportExporter:
    return ReportExporter()


def get_planner_service(
    placer: Annotated[GridPlacer, Depends(get_grid_placer)],
    router: Annotated[PipeRouter, Depends(get_pipe_router)],
    aggregator: Annotated[StatisticsAggregator, Depends(get_statistics_aggregator)],
    catalog: Annotated[SprinklerCatalog, Depends(get_sprinkler_catalog)],
    clipper: Annotated[PolygonClipper, Depends(get_polygon_clipper)],
) -> PlannerService:
    """
    Dependency factory for PlannerService.

    Args:
        placer: Sprinkler placement service (injected)
        router: Pipe routing service (injected)
        aggregator: Statistics service (injected)
        catalog: Sprinkler catalog (injected)
        clipper: Coverage clipping service (injected)

    Returns:
        PlannerService instance
    """
    return PlannerService(
        placer=placer,
        router=router,
        editor=PipeEditor(),
        aggregator=aggregator,
        catalog=catalog,
        clipper=clipper,
    )


# Type aliases for cleaner route signatures
CatalogDep = Annotated[SprinklerCatalog, Depends(get_sprinkler_catalog)]
ClipperDep = Annotated[PolygonClipper, Depends(get_polygon_clipper)]
GridPlacerDep = Annotated[GridPlacer, Depends(get_grid_placer)]
PlannerServiceDep = Annotated[PlannerService, Depends(get_planner_service)]
ReportExporterDep = Annotated[ReportExporter, Depends(get_report_exporter)]
