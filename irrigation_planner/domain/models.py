"""
Domain models for garden zones, sprinklers and pipes.

These models represent the core domain entities and should be independent
of any infrastructure concerns (HTTP, storage, rendering). All models are
frozen: an "update" always builds a new object or a new collection.
"""
from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, computed_field

UNASSIGNED_ZONE_ID = "unassigned"


class Coordinate(BaseModel):
    """A WGS84 position in degrees."""
    model_config = ConfigDict(frozen=True)

    lat: float = Field(description="Latitude in degrees")
    lng: float = Field(description="Longitude in degrees")


class ZoneType(str, Enum):
    GRASS = "grass"
    FLOWERS = "flowers"
    TREES = "trees"
    FORBIDDEN = "forbidden"


class SprinklerConfig(BaseModel):
    """Sprinkler selection attached to a zone for auto-placement."""
    model_config = ConfigDict(frozen=True)

    sprinkler_type_id: str
    radius_meters: float = Field(gt=0, description="Coverage radius in meters")


class Zone(BaseModel):
    """A user-drawn polygon region with a planting type."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    type: ZoneType
    coordinates: List[Coordinate] = Field(min_length=3)
    parent_zone_id: Optional[str] = None
    sprinkler_config: Optional[SprinklerConfig] = None

    @property
    def is_nested(self) -> bool:
        return self.parent_zone_id is not None


class SprinklerType(BaseModel):
    """Catalog entry describing a sprinkler head."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    radius: float = Field(description="Coverage radius in meters")
    pressure: float = Field(description="Operating pressure in bar")
    flow_rate: float = Field(description="Flow rate in L/min")
    suitable_for: List[ZoneType] = Field(default_factory=list)
    color: str = "#33CCFF"


class Sprinkler(BaseModel):
    """A placed sprinkler head."""
    model_config = ConfigDict(frozen=True)

    id: str
    position: Coordinate
    type: SprinklerType
    zone_id: str
    orientation: Optional[float] = Field(
        default=None,
        description="Display rotation in degrees, inherited from the zone's dominant edge"
    )

    @property
    def radius(self) -> float:
        return self.type.radius


class WaterSourceType(str, Enum):
    MAIN = "main"
    PUMP = "pump"


class WaterSource(BaseModel):
    model_config = ConfigDict(frozen=True)

    position: Coordinate
    type: WaterSourceType = WaterSourceType.MAIN


class MainPipe(BaseModel):
    """User-drawn main pipe polyline."""
    model_config = ConfigDict(frozen=True)

    coordinates: List[Coordinate] = Field(min_length=2)

    @computed_field
    @property
    def length(self) -> float:
        # Imported lazily: geo_math depends on this module.
        from irrigation_planner.utils.geo_math import polyline_length
        return polyline_length(self.coordinates)


class PipeType(str, Enum):
    SUBMAIN = "submain"
    LATERAL = "lateral"


class Pipe(BaseModel):
    """A single straight pipe segment."""
    model_config = ConfigDict(frozen=True)

    id: str
    start: Coordinate
    end: Coordinate
    type: PipeType
    length: float = Field(description="Segment length in meters")
    zone_id: Optional[str] = None
    connected_sprinklers: List[str] = Field(default_factory=list)


class ClipKind(str, Enum):
    FULL_CIRCLE = "full_circle"
    POLYGON = "polygon"
    EMPTY = "empty"


class ClipResult(BaseModel):
    """Outcome of intersecting a coverage circle with a zone boundary."""
    model_config = ConfigDict(frozen=True)

    kind: ClipKind
    points: List[Coordinate] = Field(default_factory=list)

    @classmethod
    def full_circle(cls) -> "ClipResult":
        return cls(kind=ClipKind.FULL_CIRCLE)

    @classmethod
    def empty(cls) -> "ClipResult":
        return cls(kind=ClipKind.EMPTY)

    @classmethod
    def polygon(cls, points: List[Coordinate]) -> "ClipResult":
        return cls(kind=ClipKind.POLYGON, points=points)

    @property
    def is_empty(self) -> bool:
        return self.kind == ClipKind.EMPTY


class SprinklerCoverage(BaseModel):
    """A placed sprinkler's coverage clipped to its own zone."""
    model_config = ConfigDict(frozen=True)

    sprinkler_id: str
    zone_id: str
    is_corner: bool = Field(description="Sprinkler sits on one of the zone's vertices")
    coverage: ClipResult


class Project(BaseModel):
    """Complete planner state handed to and returned from every operation."""
    model_config = ConfigDict(frozen=True)

    zones: List[Zone] = Field(default_factory=list)
    sprinklers: List[Sprinkler] = Field(default_factory=list)
    pipes: List[Pipe] = Field(default_factory=list)
    main_pipe: Optional[MainPipe] = None
    water_source: Optional[WaterSource] = None

    def get_zone(self, zone_id: str) -> Optional[Zone]:
        return next((z for z in self.zones if z.id == zone_id), None)

    def get_sprinkler(self, sprinkler_id: str) -> Optional[Sprinkler]:
        return next((s for s in self.sprinklers if s.id == sprinkler_id), None)

    def get_pipe(self, pipe_id: str) -> Optional[Pipe]:
        return next((p for p in self.pipes if p.id == pipe_id), None)

    def sprinklers_by_zone(self) -> Dict[str, List[Sprinkler]]:
        """Group sprinklers by zone, keyed in first-seen order."""
        grouped: Dict[str, List[Sprinkler]] = {}
        for sprinkler in self.sprinklers:
            grouped.setdefault(sprinkler.zone_id, []).append(sprinkler)
        return grouped


class ZoneStatistics(BaseModel):
    """Per-zone figures."""
    zone_id: str
    zone_name: str
    zone_type: ZoneType
    area_m2: float
    usable_area_m2: float
    sprinkler_count: int
    sprinkler_types: List[str]
    average_radius_m: float
    submain_length_m: float
    lateral_length_m: float
    longest_submain_m: float
    longest_lateral_m: float
    coverage_percentage: float


class JunctionStatistics(BaseModel):
    """Pipe network nodes where three or more segments meet."""
    total_junctions: int = 0
    junctions_by_ways: Dict[int, int] = Field(default_factory=dict)


class ProjectSummary(BaseModel):
    """Whole-project totals."""
    total_area_m2: float
    usable_area_m2: float
    total_zones: int
    total_sprinklers: int
    unassigned_sprinklers: int
    main_pipe_length_m: float
    submain_length_m: float
    lateral_length_m: float
    total_pipe_length_m: float
    longest_submain_m: float
    longest_lateral_m: float
    longest_path_from_source_m: float
    total_flow_rate_lpm: float
    coverage_percentage: float = Field(
        description="Upper-bound estimate: sum of πr² over usable area, ignoring overlap"
    )
    union_coverage_percentage: float = Field(
        description="Overlap-aware estimate from the union of coverage discs"
    )
    junctions: JunctionStatistics
    zones: List[ZoneStatistics]
