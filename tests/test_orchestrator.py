"""Tests for the generation pipeline."""

import pytest

from conftest import FakeContentGenerator
from py_zonemap.content.base import with_retries
from py_zonemap.core.geometry import centroid
from py_zonemap.core.placement import PlacementEngine
from py_zonemap.core.tessellation import TessellationConfig
from py_zonemap.core.zones import WorldSettings, ZoneKind
from py_zonemap.generation.orchestrator import (
    GenerationRun, RunStatus, SpecialPlacementPolicy, generate_world_zone_table
)
from py_zonemap.render.renderer import RecordingRenderer

SMALL_MAP = TessellationConfig(width=300, height=300, target_count=60,
                               distortion_power=2, randomness=0)


def make_run(generator, **kwargs):
    kwargs.setdefault("tessellation", SMALL_MAP)
    kwargs.setdefault("seed", "pipeline")
    world = kwargs.pop("world", None) or WorldSettings(description="misty isles")
    return GenerationRun(world, generator, **kwargs)


class TestGenerationRun:
    """Test the full pipeline against a canned generator."""

    @pytest.mark.asyncio
    async def test_full_run(self, fake_generator):
        renderer = RecordingRenderer()
        messages = []
        run = make_run(fake_generator, renderer=renderer, on_log=messages.append)

        table = await run.run()

        assert run.status is RunStatus.COMPLETED
        assert run.world_settings.lore == "An old land of mist."
        assert len(table) > 0
        assert {z.type for z in table if z.kind is ZoneKind.GENERIC} <= {"forest", "plain", "swamp"}
        assert {z.name for z in table if z.is_special} == {"Orario", "Mistfane"}
        assert messages == run.logs
        assert messages[0] == "An old land of mist."
        assert any(m.startswith("3 filler location ideas") for m in messages)
        assert any(m.startswith("2 special location ideas") for m in messages)

        drawn_ids = {zone.id for zone in renderer.drawn}
        assert all(zone.id in drawn_ids for zone in table)

    @pytest.mark.asyncio
    async def test_cells_owned_once(self, fake_generator):
        run = make_run(fake_generator)

        table = await run.run()

        boundaries = [zone.boundary for zone in table]
        assert len(boundaries) == len(set(boundaries))
        assert len(table) + run.engine.pool_size == run.engine.base_cell_count

    @pytest.mark.asyncio
    async def test_failed_detail_skips_type(self):
        generator = FakeContentGenerator(failing_types=["swamp"])
        run = make_run(generator)

        table = await run.run()

        assert not table.zones_of_type("swamp")
        assert table.zones_of_type("forest")
        assert any("Skipped filler location swamp" in m for m in run.logs)

    @pytest.mark.asyncio
    async def test_exhausted_retries_produce_no_zones(self):
        """A detail call failing all ten attempts leaves its type off the map."""
        attempts = []

        class ExhaustingGenerator(FakeContentGenerator):
            async def generate_filler_detail(self, lore, zone_type):
                if zone_type != "plain":
                    return await super().generate_filler_detail(lore, zone_type)

                async def attempt():
                    attempts.append(zone_type)
                    raise ValueError("malformed output")

                return await with_retries(attempt, max_attempts=10)

        run = make_run(ExhaustingGenerator())

        table = await run.run()

        assert len(attempts) == 10
        assert not table.zones_of_type("plain")
        assert run.status is RunStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_lore_failure_ends_run(self):
        generator = FakeContentGenerator(fail_lore=True)
        run = make_run(generator)

        table = await run.run()

        assert len(table) == 0
        assert run.status is RunStatus.COMPLETED
        assert "filler_templates" not in generator.calls
        assert "The world lore could not be generated." in run.logs

    @pytest.mark.asyncio
    async def test_strict_policy_places_specials_last(self):
        generator = FakeContentGenerator(filler_delay=0.05)
        renderer = RecordingRenderer()
        run = make_run(generator, renderer=renderer,
                       special_policy=SpecialPlacementPolicy.STRICT)

        await run.run()

        kinds = [zone.is_special for zone in renderer.drawn]
        assert kinds[-2:] == [True, True]
        assert kinds.count(True) == 2
        assert kinds.index(True) == len(kinds) - 2
        assert run.engine.pool_size == 0

    @pytest.mark.asyncio
    async def test_weak_policy_places_specials_early(self):
        generator = FakeContentGenerator(filler_delay=0.05)
        renderer = RecordingRenderer()
        run = make_run(generator, renderer=renderer)

        await run.run()

        # Specials arrive while the table is still empty: nothing to displace
        assert not any(zone.is_special for zone in renderer.drawn)
        assert not any(zone.is_special for zone in run.table)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("forced_entropy,clusters", [(10, False), (0, True)])
    async def test_forced_entropy_controls_clustering(self, fake_generator, monkeypatch,
                                                      forced_entropy, clusters):
        """Entropy 10 never looks for neighbours; entropy 0 always does."""
        lookups = []
        pick_adjacent = PlacementEngine._pick_adjacent_cell

        def record(engine, zone_type):
            lookups.append(zone_type)
            return pick_adjacent(engine, zone_type)

        monkeypatch.setattr(PlacementEngine, "_pick_adjacent_cell", record)
        world = WorldSettings(description="misty isles", forced_entropy=forced_entropy)
        run = make_run(fake_generator, world=world)

        table = await run.run()

        assert len(table) > 0
        assert bool(lookups) is clusters

    @pytest.mark.asyncio
    async def test_selection_after_run(self, fake_generator):
        run = make_run(fake_generator)
        await run.run()

        for zone in list(run.table)[:10]:
            assert run.find_zone_at(centroid(zone.boundary)) is zone

    @pytest.mark.asyncio
    async def test_convenience_wrapper(self, fake_generator):
        table = await generate_world_zone_table(
            WorldSettings(description="misty isles"), fake_generator,
            tessellation=SMALL_MAP, seed="wrapper",
        )

        assert len(table) > 0
