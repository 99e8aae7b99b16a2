"""
API response models using Pydantic.
"""
from typing import Any, Dict, List
from pydantic import BaseModel, Field

from irrigation_planner.domain.models import (
    ClipResult,
    Project,
    ProjectSummary,
    SprinklerCoverage,
    SprinklerType,
)


class ProjectResponse(BaseModel):
    """Updated project state."""
    project: Project


class SprinklerTypesResponse(BaseModel):
    sprinkler_types: List[SprinklerType]


class ZoneTypeInfo(BaseModel):
    id: str
    name: str
    color: str


class ZoneTypesResponse(BaseModel):
    zone_types: List[ZoneTypeInfo]


class ClipResponse(BaseModel):
    result: ClipResult


class SprinklerCoverageResponse(BaseModel):
    coverage: SprinklerCoverage


class DominantEdgeResponse(BaseModel):
    angle_degrees: float = Field(
        description="Bearing of the longest edge, counter-clockwise from east",
        examples=[0.0]
    )


class StatisticsResponse(BaseModel):
    statistics: ProjectSummary


class TextReportResponse(BaseModel):
    report: str


class JsonReportResponse(BaseModel):
    project: Dict[str, Any]
    statistics: Dict[str, Any]
    export_date: str

    class Config:
        json_schema_extra = {
            "example": {
                "project": {"zones": [], "sprinklers": [], "pipes": [], "main_pipe": None,
                            "water_source": None},
                "statistics": {"total_zones": 0, "total_sprinklers": 0},
                "export_date": "2024-01-01T00:00:00+00:00",
            }
        }
