"""
API router for the sprinkler and zone type catalog.
"""
from typing import Annotated, Optional
from fastapi import APIRouter, Query

from irrigation_planner.api.dependencies import CatalogDep
from irrigation_planner.api.v1.models.responses import (
    SprinklerTypesResponse,
    ZoneTypeInfo,
    ZoneTypesResponse,
)
from irrigation_planner.domain.models import ZoneType
from irrigation_planner.infrastructure.sprinkler_catalog import ZoneTypes


router = APIRouter(
    prefix="/catalog",
    tags=["catalog"],
)


@router.get(
    "/sprinkler-types",
    response_model=SprinklerTypesResponse,
    summary="List sprinkler types",
)
async def list_sprinkler_types(
    catalog: CatalogDep,
    zone_type: Annotated[
        Optional[ZoneType],
        Query(description="Only return types suitable for this zone type"),
    ] = None,
) -> SprinklerTypesResponse:
    if zone_type is None:
        return SprinklerTypesResponse(sprinkler_types=catalog.all())
    return SprinklerTypesResponse(sprinkler_types=catalog.compatible_with(zone_type))


@router.get(
    "/zone-types",
    response_model=ZoneTypesResponse,
    summary="List zone types",
)
async def list_zone_types() -> ZoneTypesResponse:
    return ZoneTypesResponse(zone_types=[
        ZoneTypeInfo(id=z["id"].value, name=z["name"], color=z["color"])
        for z in ZoneTypes.all()
    ])
