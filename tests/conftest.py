"""Shared fixtures."""

import asyncio
from typing import Dict, List, Optional, Sequence

import pytest

from py_zonemap.content.models import FillerProposal, SpecialProposal, ZoneTemplate


class FakeContentGenerator:
    """Canned content generator with optional per-type failures and delays."""

    def __init__(self, failing_types: Sequence[str] = (), lore: str = "An old land of mist.",
                 filler_delay: float = 0.0, fail_lore: bool = False):
        self.failing_types = set(failing_types)
        self.lore = lore
        self.filler_delay = filler_delay
        self.fail_lore = fail_lore
        self.calls: Dict[str, int] = {}

    def _count(self, name: str) -> None:
        self.calls[name] = self.calls.get(name, 0) + 1

    async def generate_lore(self, description: str) -> str:
        self._count("lore")
        if self.fail_lore:
            raise RuntimeError("backend unavailable")
        return self.lore

    async def generate_filler_templates(self, lore: str) -> Optional[List[FillerProposal]]:
        self._count("filler_templates")
        return [
            FillerProposal(type="forest", probability=0.5),
            FillerProposal(type="plain", probability=0.3),
            FillerProposal(type="swamp", probability=0.2),
        ]

    async def generate_special_templates(self, lore: str) -> Optional[List[SpecialProposal]]:
        self._count("special_templates")
        return [
            SpecialProposal(type="city", name="Orario", short_lore="A city of gods."),
            SpecialProposal(type="temple", name="Mistfane", short_lore="A forgotten shrine."),
        ]

    async def generate_filler_detail(self, lore: str, zone_type: str) -> Optional[ZoneTemplate]:
        self._count(f"filler:{zone_type}")
        if self.filler_delay:
            await asyncio.sleep(self.filler_delay)
        if zone_type in self.failing_types:
            return None
        return ZoneTemplate(
            type=zone_type,
            placement_entropy=2.0,
            display_color="#228b22",
            biome="temperate",
            elevation_min=0, elevation_max=2,
            temperature_min=5, temperature_max=20,
            moisture_min=0.2, moisture_max=0.8,
            resources=["wood"],
            lore=f"Common {zone_type} lands.",
            danger_level=2,
            probability=0.0,
        )

    async def generate_special_detail(self, lore: str, filler_type_names: Sequence[str],
                                      zone_type: str, name: str,
                                      short_lore: str) -> Optional[ZoneTemplate]:
        self._count(f"special:{name}")
        if zone_type in self.failing_types:
            return None
        return ZoneTemplate(
            type=zone_type,
            name=name,
            where_to_place=filler_type_names[0] if filler_type_names else None,
            display_color="#aa0000",
            elevation_min=1, elevation_max=3,
            temperature_min=10, temperature_max=15,
            moisture_min=0.1, moisture_max=0.3,
            resources=["gold"],
            lore=short_lore,
            danger_level=1,
            population=5000,
            development=6,
            world_wonder=False,
        )


@pytest.fixture
def fake_generator():
    return FakeContentGenerator()


def square(x: float, y: float, size: float = 1.0):
    """Axis-aligned square cell with its lower-left corner at (x, y)."""
    return ((x, y), (x + size, y), (x + size, y + size), (x, y + size))
