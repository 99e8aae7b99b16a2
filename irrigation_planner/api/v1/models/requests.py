"""
API request models using Pydantic.

Every project endpoint is stateless: the caller sends the current Project
and receives the updated one.
"""
from typing import List, Optional
from pydantic import BaseModel, Field

from irrigation_planner.domain.models import (
    Coordinate,
    Project,
    SprinklerConfig,
    WaterSourceType,
    ZoneType,
)


class ProjectRequest(BaseModel):
    """Request carrying only the project state."""
    project: Project = Field(default_factory=Project, description="Current project state")


class ClipRequest(BaseModel):
    center: Coordinate
    radius_meters: float = Field(description="Coverage radius in meters")
    polygon: List[Coordinate] = Field(description="Zone boundary")
    samples: Optional[int] = Field(
        default=None,
        ge=3,
        description="Circle discretization, defaults to the configured sample count"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "center": {"lat": 13.58, "lng": 100.83},
                "radius_meters": 4.0,
                "polygon": [
                    {"lat": 13.5799, "lng": 100.8299},
                    {"lat": 13.5799, "lng": 100.8301},
                    {"lat": 13.5801, "lng": 100.8301},
                    {"lat": 13.5801, "lng": 100.8299},
                ],
            }
        }


class PolygonRequest(BaseModel):
    polygon: List[Coordinate]


class CreateZoneRequest(ProjectRequest):
    """
    A drawn zone. Coordinates are unconstrained here so that short or
    oversized outlines reach the zone validator instead of failing schema
    validation.
    """
    type: ZoneType
    coordinates: List[Coordinate]
    name: str = ""
    zone_id: Optional[str] = None
    parent_zone_id: Optional[str] = None
    sprinkler_config: Optional[SprinklerConfig] = None
    max_area_m2: Optional[float] = Field(
        default=None,
        gt=0,
        description="Overrides the configured maximum zone area"
    )


class ManualSprinklerRequest(ProjectRequest):
    position: Coordinate
    sprinkler_type_id: Optional[str] = None
    radius_meters: Optional[float] = Field(default=None, gt=0)


class MainPipeRequest(ProjectRequest):
    coordinates: List[Coordinate]


class WaterSourceRequest(ProjectRequest):
    position: Coordinate
    type: WaterSourceType = WaterSourceType.MAIN


class ConnectSprinklersRequest(ProjectRequest):
    from_sprinkler_id: str
    to_sprinkler_id: str


class ConnectToPipeRequest(ProjectRequest):
    sprinkler_id: str
    pipe_id: str


class DeletePipesRequest(ProjectRequest):
    pipe_ids: List[str] = Field(min_length=1)


class PipesBetweenRequest(ProjectRequest):
    """Two sprinklers whose connecting pipes are deleted."""
    from_sprinkler_id: str
    to_sprinkler_id: str
