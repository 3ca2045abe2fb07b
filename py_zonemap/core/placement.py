"""
Zone placement onto tessellation cells.

Filler (generic) zones take cells from the pool, either next to existing
zones of the same type or at random depending on their placement entropy.
Special zones take over the cell of an existing zone.
"""

import math
import threading
from typing import Callable, List, Optional, Sequence

import structlog

from .geometry import touches_vertices, vertex_set
from .tessellation import Cell
from .zones import WorldSettings, Zone, ZoneKind, ZoneTable
from ..content.models import ZoneTemplate
from ..utils.random import Seed, create_rng, uniform_in_range

logger = structlog.get_logger()

MAX_ENTROPY = 10.0


class PlacementEngine:
    """Assigns tessellation cells to zones for one generation run."""

    def __init__(self, cells: Sequence[Cell], table: ZoneTable,
                 world_settings: WorldSettings, rng: Seed = None):
        """
        Initialize placement engine.

        Args:
            cells: Unassigned cells; the engine keeps its own pool list
            table: Zone table shared with the rest of the run
            world_settings: Supplies the optional forced entropy
            rng: Random seed or generator
        """
        self.pool: List[Cell] = list(cells)
        self.base_cell_count = len(self.pool)
        self.table = table
        self.world_settings = world_settings
        self.rng = create_rng(rng)
        self._lock = threading.Lock()

    @property
    def pool_size(self) -> int:
        return len(self.pool)

    def filler_placement_count(self, probability: Optional[float]) -> int:
        """Number of cells a filler type should claim."""
        if probability is None or probability <= 0:
            return 0
        return math.ceil(self.base_cell_count * probability)

    def should_place_randomly(self, template_entropy: float) -> bool:
        """
        Decide between clustering and random placement.

        A forced entropy on the world settings replaces the template's own
        value. Entropy 0 always clusters, 10 never does.
        """
        forced = self.world_settings.forced_entropy
        entropy = forced if forced is not None else template_entropy
        return self.rng.random() * MAX_ENTROPY < entropy

    def place_filler(self, template: ZoneTemplate) -> Optional[Zone]:
        """
        Place one filler zone of the template's type.

        Returns:
            The inserted zone, or None when the pool is empty
        """
        with self._lock:
            if not self.pool:
                return None

            index = None
            if not self.should_place_randomly(template.placement_entropy):
                index = self._pick_adjacent_cell(template.type)
            if index is None:
                index = int(self.rng.integers(len(self.pool)))

            cell = self.pool.pop(index)
            zone = self.build_zone(template, ZoneKind.GENERIC, cell)
            self.table.insert(zone)

        logger.debug("Placed filler zone", zone_id=zone.id, pool_left=len(self.pool))
        return zone

    def place_fillers(self, template: ZoneTemplate,
                      probability: Optional[float] = None,
                      on_placed: Optional[Callable[[Zone], None]] = None) -> List[Zone]:
        """
        Place every filler zone of one type.

        Args:
            template: Filler zone template
            probability: Share of the base cell count; defaults to the
                         template's own probability
            on_placed: Called with each zone right after it is inserted

        Returns:
            Zones placed, possibly fewer than requested if the pool ran out
        """
        if probability is None:
            probability = template.probability

        placed = []
        for _ in range(self.filler_placement_count(probability)):
            zone = self.place_filler(template)
            if zone is None:
                break
            placed.append(zone)
            if on_placed is not None:
                on_placed(zone)

        logger.info("Filler type placed", type=template.type,
                    placed=len(placed), pool_left=len(self.pool))
        return placed

    def place_special(self, template: ZoneTemplate) -> Optional[Zone]:
        """
        Place a special zone by displacing an existing zone.

        Generic zones of the template's ``where_to_place`` type are preferred;
        without any, every zone in the table is a candidate. The displaced
        zone's cell goes to the special zone and never back to the pool.

        Returns:
            The inserted zone, or None when the table is empty
        """
        with self._lock:
            candidates = []
            if template.where_to_place:
                candidates = self.table.zones_of_type(template.where_to_place,
                                                      kind=ZoneKind.GENERIC)
            if not candidates:
                logger.info("No matching host zones, falling back to all zones",
                            type=template.type, where_to_place=template.where_to_place)
                candidates = list(self.table)
            if not candidates:
                logger.warning("No zones to displace for special zone", type=template.type)
                return None

            host = candidates[int(self.rng.integers(len(candidates)))]
            self.table.remove(host.id)

            zone = self.build_zone(template, ZoneKind.SPECIAL, tuple(host.boundary))
            self.table.insert(zone)

        logger.info("Placed special zone", zone_id=zone.id, displaced=host.id)
        return zone

    def build_zone(self, template: ZoneTemplate, kind: ZoneKind, boundary: Cell) -> Zone:
        """Create a zone from a template, sampling its range attributes."""
        return Zone(
            id=self.table.new_id(kind, template.type, self.rng),
            kind=kind,
            boundary=boundary,
            type=template.type,
            elevation_min=template.elevation_min,
            elevation_max=template.elevation_max,
            elevation=uniform_in_range(self.rng, template.elevation_min, template.elevation_max),
            temperature_min=template.temperature_min,
            temperature_max=template.temperature_max,
            temperature=uniform_in_range(self.rng, template.temperature_min, template.temperature_max),
            moisture_min=template.moisture_min,
            moisture_max=template.moisture_max,
            moisture=uniform_in_range(self.rng, template.moisture_min, template.moisture_max),
            resources=list(template.resources),
            lore=template.lore,
            danger_level=template.danger_level,
            placement_entropy=template.placement_entropy,
            where_to_place=template.where_to_place if kind is ZoneKind.SPECIAL else None,
            name=template.name,
            display_color=template.display_color,
            biome=template.biome,
            population=template.population,
            development=template.development,
            world_wonder=template.world_wonder,
            probability=template.probability,
        )

    def _pick_adjacent_cell(self, zone_type: str) -> Optional[int]:
        """Pool index of a random cell touching a same-type zone, if any."""
        same_type = self.table.zones_of_type(zone_type)
        if not same_type:
            return None

        occupied = vertex_set(zone.boundary for zone in same_type)
        adjacent = [i for i, cell in enumerate(self.pool) if touches_vertices(cell, occupied)]
        if not adjacent:
            return None
        return adjacent[int(self.rng.integers(len(adjacent)))]
