"""
API router for stateless geometry queries.
"""
from fastapi import APIRouter

from irrigation_planner.api.dependencies import ClipperDep, GridPlacerDep
from irrigation_planner.api.v1.models.requests import ClipRequest, PolygonRequest
from irrigation_planner.api.v1.models.responses import ClipResponse, DominantEdgeResponse


router = APIRouter(
    prefix="/geometry",
    tags=["geometry"],
)


@router.post(
    "/clip",
    response_model=ClipResponse,
    summary="Clip a coverage circle to a zone",
    description="""
    Compute the part of a sprinkler's coverage circle inside a polygon.

    The result is one of:
    - `full_circle`: at least 95% of the discretized circle lies inside
    - `polygon`: the clipped outline (Sutherland-Hodgman)
    - `empty`: no overlap, or degenerate input (radius <= 0, fewer than 3 vertices)
    """,
)
async def clip_circle(request: ClipRequest, clipper: ClipperDep) -> ClipResponse:
    result = clipper.clip_circle_to_polygon(
        center=request.center,
        radius=request.radius_meters,
        polygon=request.polygon,
        samples=request.samples,
    )
    return ClipResponse(result=result)


@router.post(
    "/dominant-edge-angle",
    response_model=DominantEdgeResponse,
    summary="Bearing of a polygon's longest edge",
)
async def dominant_edge_angle(request: PolygonRequest, placer: GridPlacerDep) -> DominantEdgeResponse:
    return DominantEdgeResponse(angle_degrees=placer.dominant_edge_angle(request.polygon))
