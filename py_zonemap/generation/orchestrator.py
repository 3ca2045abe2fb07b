"""
Generation pipeline for one map.

The pipeline is a chain of content-generation calls that fans out per zone
type. Placement runs synchronously inside whichever task's call just
completed, so the zone table is mutated from one thread in no fixed order.
"""

import asyncio
from enum import Enum
from typing import Callable, List, Optional, Sequence

import structlog

from ..config import settings
from ..content.base import ContentGenerator
from ..content.models import FillerProposal, SpecialProposal
from ..core.geometry import Point
from ..core.placement import PlacementEngine
from ..core.selection import find_zone_at
from ..core.tessellation import TessellationConfig, generate_tessellation_from_config
from ..core.zones import WorldSettings, Zone, ZoneTable
from ..render.renderer import ZoneRenderer
from ..utils.random import Seed, create_rng

logger = structlog.get_logger()


class SpecialPlacementPolicy(str, Enum):
    """Ordering between filler and special placement."""

    WEAK = "weak"      # place specials as soon as their details arrive
    STRICT = "strict"  # wait until every filler type has been placed


class RunStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"


def default_tessellation_config() -> TessellationConfig:
    """Tessellation parameters from settings."""
    return TessellationConfig(
        width=settings.map_width,
        height=settings.map_height,
        target_count=settings.target_cell_count,
        distortion_power=settings.distortion_power,
        randomness=settings.randomness,
    )


class GenerationRun:
    """Owns the zone table and cell pool of one map generation."""

    def __init__(self, world_settings: WorldSettings, generator: ContentGenerator,
                 renderer: Optional[ZoneRenderer] = None,
                 on_log: Optional[Callable[[str], None]] = None,
                 tessellation: Optional[TessellationConfig] = None,
                 special_policy: SpecialPlacementPolicy = SpecialPlacementPolicy.WEAK,
                 seed: Seed = None):
        """
        Initialize a generation run.

        Args:
            world_settings: World description and optional forced entropy
            generator: Content generator collaborator
            renderer: Receives every zone right after insertion
            on_log: Receives human-readable progress messages
            tessellation: Tessellation parameters, defaults from settings
            special_policy: Whether specials wait for filler placement
            seed: Random seed for tessellation and placement
        """
        self.world_settings = world_settings
        self.generator = generator
        self.renderer = renderer
        self.on_log = on_log
        self.tessellation = tessellation or default_tessellation_config()
        self.special_policy = SpecialPlacementPolicy(special_policy)
        self.rng = create_rng(seed)

        self.table = ZoneTable()
        self.engine: Optional[PlacementEngine] = None
        self.logs: List[str] = []
        self.status = RunStatus.PENDING

        self._pending_filler_types = 0
        self._fillers_done: Optional[asyncio.Event] = None

    def log(self, message: str) -> None:
        """Record a progress message for the host."""
        self.logs.append(message)
        logger.info("World log", message=message)
        if self.on_log is not None:
            self.on_log(message)

    def find_zone_at(self, point: Point) -> Optional[Zone]:
        """Selection query for the host UI."""
        return find_zone_at(point, self.table)

    async def run(self) -> ZoneTable:
        """Run the whole pipeline and return the zone table."""
        self.status = RunStatus.RUNNING
        self._fillers_done = asyncio.Event()
        logger.info("Starting generation run", description=self.world_settings.description,
                    special_policy=self.special_policy.value)

        try:
            tessellation_seed = int(self.rng.integers(2**32))
            lore, cells = await asyncio.gather(
                self._generate_lore(),
                asyncio.to_thread(generate_tessellation_from_config,
                                  self.tessellation, tessellation_seed),
            )
            self.engine = PlacementEngine(cells, self.table, self.world_settings, self.rng)

            if lore is None:
                return self.table

            try:
                fillers = await self.generator.generate_filler_templates(lore)
            except Exception as e:
                logger.error("Filler template generation failed", error=str(e))
                fillers = None
            if fillers is None:
                self.log("No filler location ideas could be generated.")
                return self.table

            self.log(f"{len(fillers)} filler location ideas have been thought of: "
                     f"{', '.join(f.type for f in fillers)}.")

            filler_names = [f.type for f in fillers]
            self._pending_filler_types = len(fillers)
            if not fillers:
                self._fillers_done.set()

            await asyncio.gather(
                *(self._place_filler_type(lore, proposal) for proposal in fillers),
                self._place_special_types(lore, filler_names),
            )
            return self.table
        finally:
            self.status = RunStatus.COMPLETED
            self.log(f"Map generation finished with {len(self.table)} zones.")

    async def _generate_lore(self) -> Optional[str]:
        try:
            lore = await self.generator.generate_lore(self.world_settings.description)
        except Exception as e:
            logger.error("World lore generation failed", error=str(e))
            self.log("The world lore could not be generated.")
            return None

        if not lore:
            self.log("The world lore could not be generated.")
            return None

        self.world_settings.set_lore(lore)
        self.log(lore)
        return lore

    async def _place_filler_type(self, lore: str, proposal: FillerProposal) -> None:
        try:
            template = await self.generator.generate_filler_detail(lore, proposal.type)
            if template is None:
                self.log(f"Skipped filler location {proposal.type}: no data could be generated.")
                return

            self.log(f"Generated full data for filler location {template.type}. "
                     f"Biome: {template.biome}, Resources: {template.resources}, "
                     f"Placement-entropy: {template.placement_entropy}, "
                     f"Lore: \"{template.lore}\"")

            template = template.model_copy(update={"probability": proposal.probability})
            self.engine.place_fillers(template, on_placed=self._draw)
        except Exception as e:
            logger.error("Filler placement failed", type=proposal.type, error=str(e))
        finally:
            self._pending_filler_types -= 1
            if self._pending_filler_types <= 0:
                self._fillers_done.set()

    async def _place_special_types(self, lore: str, filler_names: Sequence[str]) -> None:
        try:
            specials = await self.generator.generate_special_templates(lore)
        except Exception as e:
            logger.error("Special template generation failed", error=str(e))
            specials = None
        if specials is None:
            self.log("No special location ideas could be generated.")
            return

        self.log(f"{len(specials)} special location ideas have been thought of: "
                 f"{', '.join(s.type for s in specials)}.")

        await asyncio.gather(
            *(self._place_special(lore, filler_names, proposal) for proposal in specials)
        )

    async def _place_special(self, lore: str, filler_names: Sequence[str],
                             proposal: SpecialProposal) -> None:
        try:
            template = await self.generator.generate_special_detail(
                lore, filler_names, proposal.type, proposal.name, proposal.short_lore
            )
            if template is None:
                self.log(f"Skipped special location {proposal.name}: no data could be generated.")
                return

            self.log(f"Generated full data for special location {template.type}. "
                     f"Name: {template.name}, Biome: {template.biome}, "
                     f"Resources: {template.resources}, "
                     f"Where-to-place: {template.where_to_place}, Lore: \"{template.lore}\"")

            if self.special_policy is SpecialPlacementPolicy.STRICT:
                await self._fillers_done.wait()
            elif not self._fillers_done.is_set():
                logger.warning("Placing special zone before filler placement finished",
                               name=template.name, pool_left=self.engine.pool_size)

            zone = self.engine.place_special(template)
            if zone is not None:
                self._draw(zone)
        except Exception as e:
            logger.error("Special placement failed", name=proposal.name, error=str(e))

    def _draw(self, zone: Zone) -> None:
        if self.renderer is None:
            return
        try:
            self.renderer.draw_zone(zone)
        except Exception as e:
            logger.error("Zone rendering failed", zone_id=zone.id, error=str(e))


async def generate_world_zone_table(world_settings: WorldSettings,
                                    generator: ContentGenerator,
                                    **kwargs) -> ZoneTable:
    """Convenience wrapper: run a GenerationRun and return its table."""
    return await GenerationRun(world_settings, generator, **kwargs).run()
