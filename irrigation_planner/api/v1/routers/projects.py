"""
API router for project endpoints.

Every endpoint receives the current project in the request body and
returns the updated project; no state is kept on the server. Planner
errors propagate to the error handling middleware.
"""
from typing import Annotated
from fastapi import APIRouter, Path

from irrigation_planner.api.dependencies import PlannerServiceDep, ReportExporterDep
from irrigation_planner.api.v1.models.requests import (
    ConnectSprinklersRequest,
    ConnectToPipeRequest,
    CreateZoneRequest,
    DeletePipesRequest,
    MainPipeRequest,
    ManualSprinklerRequest,
    PipesBetweenRequest,
    ProjectRequest,
    WaterSourceRequest,
)
from irrigation_planner.api.v1.models.responses import (
    JsonReportResponse,
    ProjectResponse,
    SprinklerCoverageResponse,
    StatisticsResponse,
    TextReportResponse,
)


router = APIRouter(
    prefix="/projects",
    tags=["projects"],
)

ZoneId = Annotated[str, Path(description="Zone identifier")]


# ----------------------------------------------------------------------
# Zones
# ----------------------------------------------------------------------

@router.post(
    "/zones",
    response_model=ProjectResponse,
    summary="Add a zone",
    description="""
    Validate a drawn zone and add it to the project.

    The outline is rejected (422) when it has fewer than 3 points, intersects
    itself, exceeds the maximum zone area, references a missing or non-grass
    parent, nests a grass zone, or names an unknown sprinkler type.
    """,
    responses={
        422: {"description": "Zone validation failed"},
    }
)
async def create_zone(request: CreateZoneRequest, service: PlannerServiceDep) -> ProjectResponse:
    project = service.create_zone(
        request.project,
        zone_type=request.type,
        coordinates=request.coordinates,
        name=request.name,
        parent_zone_id=request.parent_zone_id,
        sprinkler_config=request.sprinkler_config,
        zone_id=request.zone_id,
        max_area_m2=request.max_area_m2,
    )
    return ProjectResponse(project=project)


@router.post(
    "/zones/{zone_id}/delete",
    response_model=ProjectResponse,
    summary="Delete a zone with its sub-zones and sprinklers",
    responses={404: {"description": "Zone not found"}},
)
async def delete_zone(zone_id: ZoneId, request: ProjectRequest, service: PlannerServiceDep) -> ProjectResponse:
    return ProjectResponse(project=service.delete_zone(request.project, zone_id))


@router.post(
    "/zones/{zone_id}/clear",
    response_model=ProjectResponse,
    summary="Remove every sprinkler of a zone",
    responses={404: {"description": "Zone not found"}},
)
async def clear_zone(zone_id: ZoneId, request: ProjectRequest, service: PlannerServiceDep) -> ProjectResponse:
    return ProjectResponse(project=service.clear_zone_sprinklers(request.project, zone_id))


@router.post(
    "/zones/{zone_id}/auto-place",
    response_model=ProjectResponse,
    summary="Auto-place sprinklers in one zone",
    responses={
        404: {"description": "Zone not found"},
        409: {"description": "Zone has no sprinkler configuration"},
    }
)
async def auto_place_zone(zone_id: ZoneId, request: ProjectRequest, service: PlannerServiceDep) -> ProjectResponse:
    return ProjectResponse(project=service.auto_place_zone(request.project, zone_id))


@router.post(
    "/auto-place-all",
    response_model=ProjectResponse,
    summary="Auto-place sprinklers in every configured zone",
)
async def auto_place_all(request: ProjectRequest, service: PlannerServiceDep) -> ProjectResponse:
    return ProjectResponse(project=service.auto_place_all(request.project))


# ----------------------------------------------------------------------
# Sprinklers
# ----------------------------------------------------------------------

@router.post(
    "/sprinklers/manual",
    response_model=ProjectResponse,
    summary="Place a single sprinkler",
    responses={
        404: {"description": "Sprinkler type not found"},
        422: {"description": "Position is inside a forbidden zone or sub-zone"},
    }
)
async def place_manual_sprinkler(
    request: ManualSprinklerRequest,
    service: PlannerServiceDep,
) -> ProjectResponse:
    project = service.place_manual_sprinkler(
        request.project,
        position=request.position,
        sprinkler_type_id=request.sprinkler_type_id,
        radius_meters=request.radius_meters,
    )
    return ProjectResponse(project=project)


@router.post(
    "/sprinklers/{sprinkler_id}/remove",
    response_model=ProjectResponse,
    summary="Remove a sprinkler",
    responses={404: {"description": "Sprinkler not found"}},
)
async def remove_sprinkler(
    sprinkler_id: Annotated[str, Path(description="Sprinkler identifier")],
    request: ProjectRequest,
    service: PlannerServiceDep,
) -> ProjectResponse:
    return ProjectResponse(project=service.remove_sprinkler(request.project, sprinkler_id))


@router.post(
    "/sprinklers/{sprinkler_id}/coverage",
    response_model=SprinklerCoverageResponse,
    summary="Coverage of a sprinkler clipped to its zone",
    responses={
        404: {"description": "Sprinkler not found"},
        409: {"description": "Sprinkler is not assigned to a zone"},
    }
)
async def sprinkler_coverage(
    sprinkler_id: Annotated[str, Path(description="Sprinkler identifier")],
    request: ProjectRequest,
    service: PlannerServiceDep,
) -> SprinklerCoverageResponse:
    return SprinklerCoverageResponse(coverage=service.sprinkler_coverage(request.project, sprinkler_id))


# ----------------------------------------------------------------------
# Water supply
# ----------------------------------------------------------------------

@router.post(
    "/main-pipe",
    response_model=ProjectResponse,
    summary="Draw the main pipe",
    responses={409: {"description": "A main pipe already exists"}},
)
async def set_main_pipe(request: MainPipeRequest, service: PlannerServiceDep) -> ProjectResponse:
    return ProjectResponse(project=service.set_main_pipe(request.project, request.coordinates))


@router.post(
    "/water-source",
    response_model=ProjectResponse,
    summary="Set the water source",
)
async def set_water_source(request: WaterSourceRequest, service: PlannerServiceDep) -> ProjectResponse:
    return ProjectResponse(
        project=service.set_water_source(request.project, request.position, request.type)
    )


@router.post(
    "/reset",
    response_model=ProjectResponse,
    summary="Clear the whole project",
)
async def reset(request: ProjectRequest, service: PlannerServiceDep) -> ProjectResponse:
    return ProjectResponse(project=service.reset(request.project))


# ----------------------------------------------------------------------
# Pipes
# ----------------------------------------------------------------------

@router.post(
    "/pipes/route",
    response_model=ProjectResponse,
    summary="Regenerate sub-main and lateral pipes",
    description="""
    Discard every sub-main and lateral pipe (manual edits included) and route
    the network again from the main pipe. Without a main pipe the result has
    no pipes.
    """,
)
async def route_pipes(request: ProjectRequest, service: PlannerServiceDep) -> ProjectResponse:
    return ProjectResponse(project=service.create_smart_pipe_layout(request.project))


@router.post(
    "/pipes/connect",
    response_model=ProjectResponse,
    summary="Connect two sprinklers with a lateral",
    responses={404: {"description": "Sprinkler not found"}},
)
async def connect_sprinklers(request: ConnectSprinklersRequest, service: PlannerServiceDep) -> ProjectResponse:
    project = service.connect_sprinklers(
        request.project, request.from_sprinkler_id, request.to_sprinkler_id
    )
    return ProjectResponse(project=project)


@router.post(
    "/pipes/connect-to-pipe",
    response_model=ProjectResponse,
    summary="Connect a sprinkler to the closest point of a pipe",
    responses={404: {"description": "Sprinkler or pipe not found"}},
)
async def connect_sprinkler_to_pipe(request: ConnectToPipeRequest, service: PlannerServiceDep) -> ProjectResponse:
    project = service.connect_sprinkler_to_pipe(request.project, request.sprinkler_id, request.pipe_id)
    return ProjectResponse(project=project)


@router.post(
    "/pipes/delete",
    response_model=ProjectResponse,
    summary="Delete pipes by id",
)
async def delete_pipes(request: DeletePipesRequest, service: PlannerServiceDep) -> ProjectResponse:
    return ProjectResponse(project=service.delete_pipes(request.project, request.pipe_ids))


@router.post(
    "/pipes/delete-between",
    response_model=ProjectResponse,
    summary="Delete the pipes joining two sprinklers",
    responses={404: {"description": "Sprinkler not found or no pipe between them"}},
)
async def delete_pipes_between(request: PipesBetweenRequest, service: PlannerServiceDep) -> ProjectResponse:
    project = service.delete_pipes_between(
        request.project, request.from_sprinkler_id, request.to_sprinkler_id
    )
    return ProjectResponse(project=project)


@router.post(
    "/pipes/deduplicate",
    response_model=ProjectResponse,
    summary="Drop repeated or overlapping pipes",
)
async def deduplicate_pipes(request: ProjectRequest, service: PlannerServiceDep) -> ProjectResponse:
    return ProjectResponse(project=service.remove_duplicate_pipes(request.project))


# ----------------------------------------------------------------------
# Reporting
# ----------------------------------------------------------------------

@router.post(
    "/statistics",
    response_model=StatisticsResponse,
    summary="Compute plan statistics",
)
async def compute_statistics(request: ProjectRequest, service: PlannerServiceDep) -> StatisticsResponse:
    return StatisticsResponse(statistics=service.compute_statistics(request.project))


@router.post(
    "/report/text",
    response_model=TextReportResponse,
    summary="Plain-text summary report",
)
async def text_report(
    request: ProjectRequest,
    service: PlannerServiceDep,
    exporter: ReportExporterDep,
) -> TextReportResponse:
    summary = service.compute_statistics(request.project)
    return TextReportResponse(report=exporter.to_text(request.project, summary))


@router.post(
    "/report/json",
    response_model=JsonReportResponse,
    summary="JSON export of project and statistics",
)
async def json_report(
    request: ProjectRequest,
    service: PlannerServiceDep,
    exporter: ReportExporterDep,
) -> JsonReportResponse:
    summary = service.compute_statistics(request.project)
    return JsonReportResponse(**exporter.to_dict(request.project, summary))
