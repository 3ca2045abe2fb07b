"""
Zone records and the shared zone table.

A generation run owns exactly one ZoneTable. Placement inserts and removes
zones while rendering and selection read it, all from the same event loop.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional

import numpy as np

from .tessellation import Cell
from ..utils.random import random_suffix


class ZoneKind(str, Enum):
    """Zone discriminator used in identifiers."""

    SPECIAL = "special"
    GENERIC = "generic"


@dataclass
class WorldSettings:
    """Caller-supplied world description plus the lore produced for it."""

    description: str
    forced_entropy: Optional[float] = None
    lore: Optional[str] = None

    def __post_init__(self):
        if self.forced_entropy is not None and not 0 <= self.forced_entropy <= 10:
            raise ValueError("forced_entropy must be within [0, 10]")

    def set_lore(self, lore: str) -> None:
        """Store the world lore; it can only be set once."""
        if self.lore is not None:
            raise ValueError("World lore has already been set")
        self.lore = lore


@dataclass
class Zone:
    """An attributed polygonal region of the map.

    Special and generic zones share this record; ``kind`` decides which of
    ``where_to_place`` / ``placement_entropy`` is meaningful.
    """
    id: str
    kind: ZoneKind
    boundary: Cell
    type: str

    elevation_min: float
    elevation_max: float
    elevation: float
    temperature_min: float
    temperature_max: float
    temperature: float
    moisture_min: float
    moisture_max: float
    moisture: float

    resources: List[str] = field(default_factory=list)
    lore: str = ""
    danger_level: float = 0.0

    placement_entropy: float = 0.0
    where_to_place: Optional[str] = None
    name: Optional[str] = None
    display_color: str = "#888888"
    biome: str = ""
    population: Optional[float] = None
    development: Optional[float] = None
    world_wonder: Optional[bool] = None
    probability: Optional[float] = None

    @property
    def is_special(self) -> bool:
        return self.kind is ZoneKind.SPECIAL

    def to_dict(self) -> dict:
        """Plain JSON-friendly representation."""
        data = asdict(self)
        data["kind"] = self.kind.value
        data["is_special"] = self.is_special
        data["boundary"] = [list(point) for point in self.boundary]
        return data


def type_slug(zone_type: str) -> str:
    """Lower-case a zone type and replace spaces with underscores."""
    return zone_type.lower().replace(" ", "_")


def make_zone_id(kind: ZoneKind, zone_type: str, rng: np.random.Generator) -> str:
    """Build ``<kind>.<type-slug>.<suffix>``."""
    return f"{kind.value}.{type_slug(zone_type)}.{random_suffix(rng)}"


class ZoneTable:
    """Mapping from zone id to Zone for one generation run."""

    def __init__(self):
        self._zones: Dict[str, Zone] = {}

    def __len__(self) -> int:
        return len(self._zones)

    def __contains__(self, zone_id: str) -> bool:
        return zone_id in self._zones

    def __iter__(self) -> Iterator[Zone]:
        # Snapshot so callers may mutate the table while iterating
        return iter(list(self._zones.values()))

    def get(self, zone_id: str) -> Optional[Zone]:
        return self._zones.get(zone_id)

    def insert(self, zone: Zone) -> None:
        if zone.id in self._zones:
            raise ValueError(f"Zone id already present: {zone.id}")
        self._zones[zone.id] = zone

    def remove(self, zone_id: str) -> Zone:
        return self._zones.pop(zone_id)

    def new_id(self, kind: ZoneKind, zone_type: str, rng: np.random.Generator) -> str:
        """Generate an id that is not yet used in this table."""
        zone_id = make_zone_id(kind, zone_type, rng)
        while zone_id in self._zones:
            zone_id = make_zone_id(kind, zone_type, rng)
        return zone_id

    def zones_of_type(self, zone_type: str, kind: Optional[ZoneKind] = None) -> List[Zone]:
        """All zones of a type, optionally restricted to one kind."""
        return [
            zone for zone in self._zones.values()
            if zone.type == zone_type and (kind is None or zone.kind is kind)
        ]

    def to_dict(self) -> Dict[str, dict]:
        return {zone_id: zone.to_dict() for zone_id, zone in self._zones.items()}
