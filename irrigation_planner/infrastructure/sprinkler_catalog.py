"""
Static sprinkler and zone type catalog.

This module contains the sprinkler heads the planner can place and the zone
types a user can draw. Centralizing these values makes it easy to swap the
catalog for a product database later.
"""
from typing import Dict, List, Optional

from irrigation_planner.domain.models import SprinklerType, ZoneType


class ZoneTypes:
    """Display metadata for drawable zone types."""

    GRASS = {"id": ZoneType.GRASS, "name": "Lawn", "color": "#22C55E"}
    FLOWERS = {"id": ZoneType.FLOWERS, "name": "Flower bed", "color": "#F472B6"}
    TREES = {"id": ZoneType.TREES, "name": "Trees", "color": "#16A34A"}
    FORBIDDEN = {"id": ZoneType.FORBIDDEN, "name": "No-sprinkler area", "color": "#EF4444"}

    @classmethod
    def all(cls) -> List[Dict]:
        return [cls.GRASS, cls.FLOWERS, cls.TREES, cls.FORBIDDEN]


_G, _F, _T = ZoneType.GRASS, ZoneType.FLOWERS, ZoneType.TREES

SPRINKLER_TYPES: List[SprinklerType] = [
    SprinklerType(id="pop-up-sprinkler", name="Pop-up Sprinkler",
                  radius=5, pressure=2.5, flow_rate=18, suitable_for=[_G, _F]),
    SprinklerType(id="mini-sprinkler", name="Mini-sprinkler",
                  radius=2, pressure=2.0, flow_rate=8, suitable_for=[_F, _T]),
    SprinklerType(id="sprinkler", name="Rotary Sprinkler",
                  radius=12, pressure=3.5, flow_rate=35, suitable_for=[_T, _G]),
    SprinklerType(id="single-side", name="Single-side Sprinkler",
                  radius=4, pressure=2.2, flow_rate=12, suitable_for=[_G, _F]),
    SprinklerType(id="butterfly", name="Butterfly Sprinkler",
                  radius=1, pressure=1.5, flow_rate=4, suitable_for=[_F]),
    SprinklerType(id="mist-nozzle", name="Mist Nozzle",
                  radius=1, pressure=1.8, flow_rate=6, suitable_for=[_F]),
    SprinklerType(id="impact-sprinkler", name="Impact Sprinkler",
                  radius=15, pressure=4.0, flow_rate=45, suitable_for=[_T, _G]),
    SprinklerType(id="gear-drive-nozzle", name="Gear-Drive Nozzle",
                  radius=10, pressure=3.0, flow_rate=28, suitable_for=[_G, _T]),
    SprinklerType(id="drip-spray-tape", name="Drip/Spray Tape",
                  radius=0.3, pressure=1.2, flow_rate=2, suitable_for=[_F, _T]),
]


class SprinklerCatalog:
    """Read-only lookup over the sprinkler types."""

    def __init__(self, sprinkler_types: Optional[List[SprinklerType]] = None):
        self._types = list(sprinkler_types if sprinkler_types is not None else SPRINKLER_TYPES)
        self._by_id = {t.id: t for t in self._types}

    def all(self) -> List[SprinklerType]:
        return list(self._types)

    def get(self, type_id: str) -> Optional[SprinklerType]:
        return self._by_id.get(type_id)

    def compatible_with(self, zone_type: ZoneType) -> List[SprinklerType]:
        """
        Sprinkler types suitable for a zone type.

        Args:
            zone_type: Zone type to filter by

        Returns:
            Matching catalog entries in catalog order; empty for forbidden zones
        """
        return [t for t in self._types if zone_type in t.suitable_for]

    def resolve(self, type_id: str, radius: Optional[float] = None) -> Optional[SprinklerType]:
        """Catalog entry with its radius optionally overridden by a zone config."""
        sprinkler_type = self.get(type_id)
        if sprinkler_type is None or radius is None:
            return sprinkler_type
        return sprinkler_type.model_copy(update={"radius": radius})


# Singleton instance
_catalog: Optional[SprinklerCatalog] = None


def get_sprinkler_catalog() -> SprinklerCatalog:
    """
    Get or create the singleton catalog instance.

    Returns:
        SprinklerCatalog instance
    """
    global _catalog
    if _catalog is None:
        _catalog = SprinklerCatalog()
    return _catalog
