"""
Application service: Orchestration layer for planner operations.

Every operation takes a Project and returns a new Project; nothing is
mutated in place. Whenever the sprinkler set or the main pipe changes, the
sub-main and lateral pipes are regenerated wholesale.
"""
from typing import Iterable, List, Optional
import logging
import uuid

from irrigation_planner.config import settings
from irrigation_planner.domain.errors import (
    NotFoundError,
    PlacementRejectedError,
    ProjectStateError,
    ZoneValidationError,
)
from irrigation_planner.domain.models import (
    Coordinate,
    MainPipe,
    Project,
    ProjectSummary,
    Sprinkler,
    SprinklerConfig,
    SprinklerCoverage,
    WaterSource,
    WaterSourceType,
    Zone,
    ZoneType,
)
from irrigation_planner.infrastructure.sprinkler_catalog import SprinklerCatalog
from irrigation_planner.services.domain.grid_placer import GridPlacer
from irrigation_planner.services.domain.pipe_editor import PipeEditor
from irrigation_planner.services.domain.pipe_router import PipeRouter
from irrigation_planner.services.domain.polygon_clipper import PolygonClipper
from irrigation_planner.services.domain.statistics_aggregator import StatisticsAggregator
from irrigation_planner.utils.geo_math import polygon_area
from irrigation_planner.utils.spatial_helpers import is_simple_polygon

logger = logging.getLogger(__name__)


class PlannerService:
    """
    Application service for planner operations.

    No geometry lives here, only validation at the zone-creation boundary
    and coordination between the domain services.
    """

    def __init__(
        self,
        placer: GridPlacer,
        router: PipeRouter,
        editor: PipeEditor,
        aggregator: StatisticsAggregator,
        catalog: SprinklerCatalog,
        max_zone_area_m2: Optional[float] = None,
        clipper: Optional[PolygonClipper] = None,
    ):
        """
        Initialize the service with dependencies.

        Args:
            placer: Sprinkler placement service
            router: Pipe routing service
            editor: Manual pipe editing service
            aggregator: Statistics service
            catalog: Sprinkler type catalog
            max_zone_area_m2: Largest accepted zone area, defaults to settings
            clipper: Coverage clipping service
        """
        self.placer = placer
        self.router = router
        self.editor = editor
        self.aggregator = aggregator
        self.catalog = catalog
        self.clipper = clipper or PolygonClipper()
        self.max_zone_area_m2 = (
            max_zone_area_m2 if max_zone_area_m2 is not None else settings.max_zone_area_m2
        )

    # ------------------------------------------------------------------
    # Zones
    # ------------------------------------------------------------------

    def validate_zone(
        self,
        project: Project,
        zone_type: ZoneType,
        coordinates: List[Coordinate],
        parent_zone_id: Optional[str] = None,
        sprinkler_config: Optional[SprinklerConfig] = None,
        max_area_m2: Optional[float] = None,
    ) -> float:
        """
        Check a drawn zone before a Zone is constructed.

        Args:
            project: Current project
            zone_type: Planting type
            coordinates: Drawn outline
            parent_zone_id: Optional enclosing grass zone
            sprinkler_config: Optional sprinkler selection
            max_area_m2: Overrides the configured maximum area

        Returns:
            The polygon area in m²

        Raises:
            ZoneValidationError: If the outline or its references are invalid
        """
        if len(coordinates) < 3:
            raise ZoneValidationError("A zone needs at least 3 points")

        if not is_simple_polygon(coordinates):
            raise ZoneValidationError("Zone outline must not intersect itself")

        limit = max_area_m2 if max_area_m2 is not None else self.max_zone_area_m2
        area = polygon_area(coordinates)
        if area > limit:
            raise ZoneValidationError(
                f"Zone area {area:.1f}m² exceeds the maximum of {limit:.1f}m²"
            )

        if parent_zone_id is not None:
            if zone_type == ZoneType.GRASS:
                raise ZoneValidationError("Grass zones cannot be nested")
            parent = project.get_zone(parent_zone_id)
            if parent is None:
                raise ZoneValidationError(f"Parent zone {parent_zone_id} does not exist")
            if parent.type != ZoneType.GRASS:
                raise ZoneValidationError("Only grass zones can contain sub-zones")

        if sprinkler_config is not None and self.catalog.get(sprinkler_config.sprinkler_type_id) is None:
            raise ZoneValidationError(
                f"Unknown sprinkler type {sprinkler_config.sprinkler_type_id}"
            )

        return area

    def create_zone(
        self,
        project: Project,
        zone_type: ZoneType,
        coordinates: List[Coordinate],
        name: str = "",
        parent_zone_id: Optional[str] = None,
        sprinkler_config: Optional[SprinklerConfig] = None,
        zone_id: Optional[str] = None,
        max_area_m2: Optional[float] = None,
    ) -> Project:
        """Validate and append a zone."""
        area = self.validate_zone(
            project, zone_type, coordinates, parent_zone_id, sprinkler_config, max_area_m2
        )

        zone_id = zone_id or f"zone_{uuid.uuid4().hex[:12]}"
        if project.get_zone(zone_id) is not None:
            raise ZoneValidationError(f"Zone {zone_id} already exists")

        zone = Zone(
            id=zone_id,
            name=name,
            type=zone_type,
            coordinates=coordinates,
            parent_zone_id=parent_zone_id,
            sprinkler_config=sprinkler_config,
        )
        logger.info(f"Created {zone_type.value} zone {zone_id} ({area:.1f}m²)")
        return project.model_copy(update={"zones": [*project.zones, zone]})

    def delete_zone(self, project: Project, zone_id: str) -> Project:
        """Delete a zone, its nested sub-zones and every sprinkler they own."""
        zone = self._require_zone(project, zone_id)

        doomed = {zone.id}
        if zone.type == ZoneType.GRASS:
            doomed.update(z.id for z in project.zones if z.parent_zone_id == zone.id)

        zones = [z for z in project.zones if z.id not in doomed]
        sprinklers = [s for s in project.sprinklers if s.zone_id not in doomed]
        logger.info(f"Deleted {len(doomed)} zones and "
                    f"{len(project.sprinklers) - len(sprinklers)} sprinklers")
        return self._with_sprinklers(project.model_copy(update={"zones": zones}), sprinklers)

    def clear_zone_sprinklers(self, project: Project, zone_id: str) -> Project:
        self._require_zone(project, zone_id)
        return self._with_sprinklers(
            project, [s for s in project.sprinklers if s.zone_id != zone_id]
        )

    # ------------------------------------------------------------------
    # Sprinklers
    # ------------------------------------------------------------------

    def remove_sprinkler(self, project: Project, sprinkler_id: str) -> Project:
        if project.get_sprinkler(sprinkler_id) is None:
            raise NotFoundError(f"Sprinkler {sprinkler_id} not found")
        return self._with_sprinklers(
            project, [s for s in project.sprinklers if s.id != sprinkler_id]
        )

    def auto_place_zone(self, project: Project, zone_id: str) -> Project:
        """
        Replace a zone's sprinklers with a fresh automatic placement.

        Raises:
            NotFoundError: If the zone does not exist
            ProjectStateError: If the zone has no sprinkler configuration
        """
        zone = self._require_zone(project, zone_id)
        if zone.sprinkler_config is None:
            raise ProjectStateError(f"Zone {zone_id} has no sprinkler configuration")

        placed = self.placer.auto_place_zone(
            zone, self.placer.avoidance_zones_for(zone, project.zones)
        )
        others = [s for s in project.sprinklers if s.zone_id != zone_id]
        return self._with_sprinklers(project, others + placed)

    def auto_place_all(self, project: Project) -> Project:
        """Clear every sprinkler, then auto-place every configured top-level zone."""
        placements = self.placer.auto_place_all(project.zones)
        sprinklers = [s for placed in placements.values() for s in placed]
        return self._with_sprinklers(project, sprinklers)

    def place_manual_sprinkler(
        self,
        project: Project,
        position: Coordinate,
        sprinkler_type_id: Optional[str] = None,
        radius_meters: Optional[float] = None,
    ) -> Project:
        """
        Place one sprinkler at a user-chosen position.

        Raises:
            NotFoundError: If the sprinkler type is unknown
            PlacementRejectedError: If the position is inside an avoidance region
        """
        type_id = sprinkler_type_id or settings.default_sprinkler_type_id
        sprinkler_type = self.catalog.resolve(type_id, radius_meters)
        if sprinkler_type is None:
            raise NotFoundError(f"Sprinkler type {type_id} not found")

        sprinkler = self.placer.place_manual(position, project.zones, sprinkler_type)
        if sprinkler is None:
            raise PlacementRejectedError(
                self.placer.manual_rejection_reason(position, project.zones)
                or "Position rejected"
            )

        logger.info(f"Manually placed sprinkler {sprinkler.id} in zone {sprinkler.zone_id}")
        return self._with_sprinklers(project, [*project.sprinklers, sprinkler])

    def sprinkler_coverage(self, project: Project, sprinkler_id: str) -> SprinklerCoverage:
        """
        Clip a sprinkler's coverage circle to the zone it belongs to.

        Raises:
            NotFoundError: If the sprinkler does not exist
            ProjectStateError: If the sprinkler is not assigned to a zone
        """
        sprinkler = self._require_sprinkler(project, sprinkler_id)
        zone = project.get_zone(sprinkler.zone_id)
        if zone is None:
            raise ProjectStateError(f"Sprinkler {sprinkler_id} is not assigned to a zone")

        return SprinklerCoverage(
            sprinkler_id=sprinkler.id,
            zone_id=zone.id,
            is_corner=self.placer.is_corner_sprinkler(sprinkler.position, zone),
            coverage=self.clipper.clip_sprinkler_to_zone(sprinkler, zone),
        )

    # ------------------------------------------------------------------
    # Water supply
    # ------------------------------------------------------------------

    def set_water_source(
        self,
        project: Project,
        position: Coordinate,
        source_type: WaterSourceType = WaterSourceType.MAIN,
    ) -> Project:
        return project.model_copy(
            update={"water_source": WaterSource(position=position, type=source_type)}
        )

    def set_main_pipe(self, project: Project, coordinates: List[Coordinate]) -> Project:
        """
        Draw the project's single main pipe and route the network to it.

        Raises:
            ProjectStateError: If a main pipe already exists
            ValueError: If fewer than 2 points are given
        """
        if project.main_pipe is not None:
            raise ProjectStateError("A main pipe already exists; reset the project to redraw it")
        if len(coordinates) < 2:
            raise ValueError("A main pipe needs at least 2 points")

        main_pipe = MainPipe(coordinates=coordinates)
        logger.info(f"Main pipe set ({main_pipe.length:.1f}m, {len(coordinates)} points)")
        return self.create_smart_pipe_layout(project.model_copy(update={"main_pipe": main_pipe}))

    # ------------------------------------------------------------------
    # Pipes
    # ------------------------------------------------------------------

    def create_smart_pipe_layout(self, project: Project) -> Project:
        """Discard every sub-main and lateral pipe and route from scratch."""
        pipes = self.router.route_network(project.main_pipe, project.sprinklers_by_zone())
        return project.model_copy(update={"pipes": pipes})

    def connect_sprinklers(self, project: Project, from_id: str, to_id: str) -> Project:
        if from_id == to_id:
            raise ValueError("Cannot connect a sprinkler to itself")
        a = self._require_sprinkler(project, from_id)
        b = self._require_sprinkler(project, to_id)

        pipe = self.editor.connect_sprinklers(a, b)
        return project.model_copy(update={"pipes": self.editor.add_pipe(project.pipes, pipe)})

    def connect_sprinkler_to_pipe(self, project: Project, sprinkler_id: str, pipe_id: str) -> Project:
        sprinkler = self._require_sprinkler(project, sprinkler_id)
        target = project.get_pipe(pipe_id)
        if target is None:
            raise NotFoundError(f"Pipe {pipe_id} not found")

        pipe = self.editor.connect_sprinkler_to_pipe(sprinkler, target)
        return project.model_copy(update={"pipes": self.editor.add_pipe(project.pipes, pipe)})

    def delete_pipes(self, project: Project, pipe_ids: Iterable[str]) -> Project:
        return project.model_copy(update={"pipes": self.editor.delete_pipes(project.pipes, pipe_ids)})

    def delete_pipes_between(self, project: Project, from_id: str, to_id: str) -> Project:
        """
        Delete every pipe running directly between two sprinklers.

        Raises:
            NotFoundError: If either sprinkler is missing or no pipe joins them
        """
        a = self._require_sprinkler(project, from_id)
        b = self._require_sprinkler(project, to_id)

        between = self.editor.find_pipes_between(a, b, project.pipes)
        if not between:
            raise NotFoundError(f"No pipe between {from_id} and {to_id}")
        return self.delete_pipes(project, [p.id for p in between])

    def remove_duplicate_pipes(self, project: Project) -> Project:
        return project.model_copy(update={"pipes": self.editor.remove_duplicate_pipes(project.pipes)})

    # ------------------------------------------------------------------
    # Project
    # ------------------------------------------------------------------

    def reset(self, project: Project) -> Project:
        logger.info(f"Reset project with {len(project.zones)} zones and "
                    f"{len(project.sprinklers)} sprinklers")
        return Project()

    def compute_statistics(self, project: Project) -> ProjectSummary:
        return self.aggregator.compute_statistics(
            zones=project.zones,
            sprinklers=project.sprinklers,
            pipes=project.pipes,
            main_pipe=project.main_pipe,
            water_source=project.water_source,
        )

    def _with_sprinklers(self, project: Project, sprinklers: List[Sprinkler]) -> Project:
        return self.create_smart_pipe_layout(project.model_copy(update={"sprinklers": sprinklers}))

    @staticmethod
    def _require_zone(project: Project, zone_id: str) -> Zone:
        zone = project.get_zone(zone_id)
        if zone is None:
            raise NotFoundError(f"Zone {zone_id} not found")
        return zone

    @staticmethod
    def _require_sprinkler(project: Project, sprinkler_id: str) -> Sprinkler:
        sprinkler = project.get_sprinkler(sprinkler_id)
        if sprinkler is None:
            raise NotFoundError(f"Sprinkler {sprinkler_id} not found")
        return sprinkler
