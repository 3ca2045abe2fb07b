"""Tests for filler and special zone placement."""

import re

import pytest

from conftest import square
from py_zonemap.content.models import ZoneTemplate
from py_zonemap.core.placement import PlacementEngine
from py_zonemap.core.tessellation import generate_tessellation
from py_zonemap.core.zones import WorldSettings, ZoneKind, ZoneTable


def filler(zone_type="forest", entropy=0.0, probability=None, **extra):
    return ZoneTemplate(
        type=zone_type, placement_entropy=entropy, probability=probability,
        elevation_min=-1, elevation_max=1,
        temperature_min=10, temperature_max=30,
        moisture_min=0.25, moisture_max=0.75,
        resources=["wood"], lore="Trees.", danger_level=3, **extra,
    )


def special(where_to_place="forest", zone_type="city"):
    return ZoneTemplate(
        type=zone_type, name="Orario", where_to_place=where_to_place,
        elevation_min=0, elevation_max=0, temperature_min=0, temperature_max=0,
        moisture_min=0, moisture_max=0, population=1000, world_wonder=True,
    )


def make_engine(cells, forced_entropy=None, seed="placement"):
    table = ZoneTable()
    settings = WorldSettings(description="test world", forced_entropy=forced_entropy)
    return PlacementEngine(cells, table, settings, rng=seed)


class TestFillerPlacement:
    """Test clustering vs random filler placement."""

    def test_placement_count(self):
        engine = make_engine([square(i, 0) for i in range(10)])

        assert engine.base_cell_count == 10
        assert engine.filler_placement_count(0.25) == 3
        assert engine.filler_placement_count(1.0) == 10
        assert engine.filler_placement_count(0) == 0
        assert engine.filler_placement_count(None) == 0

    def test_zone_fields(self):
        engine = make_engine([square(0, 0)])
        zone = engine.place_filler(filler("Dark Forest"))

        assert re.fullmatch(r"generic\.dark_forest\.[a-z0-9]{6}", zone.id)
        assert zone.kind is ZoneKind.GENERIC
        assert not zone.is_special
        assert zone.where_to_place is None
        assert zone.boundary == square(0, 0)
        assert -1 <= zone.elevation <= 1
        assert 10 <= zone.temperature <= 30
        assert 0.25 <= zone.moisture <= 0.75
        assert round(zone.temperature, 3) == zone.temperature
        assert zone.resources == ["wood"]
        assert engine.table.get(zone.id) is zone

    def test_cell_leaves_pool(self):
        cells = [square(i, 0) for i in range(3)]
        engine = make_engine(cells)

        zone = engine.place_filler(filler())

        assert engine.pool_size == 2
        assert zone.boundary not in engine.pool

    def test_empty_pool_is_noop(self):
        engine = make_engine([])

        assert engine.place_filler(filler()) is None
        assert len(engine.table) == 0

    def test_place_fillers_stops_at_exhaustion(self):
        engine = make_engine([square(i, 0) for i in range(3)])
        drawn = []

        placed = engine.place_fillers(filler(), probability=1.0, on_placed=drawn.append)
        more = engine.place_fillers(filler("plain"), probability=0.5)

        assert len(placed) == 3
        assert drawn == placed
        assert more == []
        assert engine.pool_size == 0

    def test_place_fillers_uses_template_probability(self):
        engine = make_engine([square(i, 0) for i in range(10)])

        placed = engine.place_fillers(filler(probability=0.35))

        assert len(placed) == 4

    def test_zero_entropy_picks_only_adjacent_cell(self):
        """Two forests in a row; the only touching free cell must be taken."""
        a, b, c = square(0, 0), square(1, 0), square(2, 0)
        far = square(10, 10)
        engine = make_engine([c, far])
        for cell in (a, b):
            engine.table.insert(engine.build_zone(filler(), ZoneKind.GENERIC, cell))

        for _ in range(5):
            assert engine._pick_adjacent_cell("forest") == 0

        zone = engine.place_filler(filler(entropy=0))

        assert zone.boundary == c
        assert engine.pool == [far]

    def test_zero_entropy_ignores_other_types(self):
        engine = make_engine([square(1, 0), square(10, 10)])
        engine.table.insert(engine.build_zone(filler("plain"), ZoneKind.GENERIC, square(0, 0)))

        assert engine._pick_adjacent_cell("forest") is None
        assert engine._pick_adjacent_cell("plain") == 0

    def test_zero_entropy_grows_contiguous_region(self):
        cells = generate_tessellation(300, 300, 80, seed="cluster")
        engine = make_engine(cells, seed="cluster")

        placed = engine.place_fillers(filler(entropy=0), probability=0.25)

        for zone in placed[1:]:
            others = [z.boundary for z in placed if z is not zone]
            assert any(set(zone.boundary) & set(other) for other in others)

    def test_forced_entropy_always_random(self):
        engine = make_engine([square(i, 0) for i in range(20)], forced_entropy=10)
        engine.table.insert(engine.build_zone(filler(), ZoneKind.GENERIC, square(-1, 0)))

        def fail(zone_type):
            raise AssertionError("clustering must not be attempted")

        engine._pick_adjacent_cell = fail

        for _ in range(50):
            assert engine.should_place_randomly(0.0)
        placed = engine.place_fillers(filler(entropy=0), probability=1.0)
        assert len(placed) == 20

    def test_forced_zero_entropy_always_clusters(self):
        engine = make_engine([square(0, 0)], forced_entropy=0)

        for _ in range(50):
            assert not engine.should_place_randomly(10.0)

    def test_template_entropy_extremes(self):
        engine = make_engine([square(0, 0)])

        for _ in range(50):
            assert not engine.should_place_randomly(0.0)
            assert engine.should_place_randomly(10.0)


class TestSpecialPlacement:
    """Test special zones displacing existing zones."""

    def test_takes_over_matching_host(self):
        engine = make_engine([square(i, 0) for i in range(4)])
        forest = engine.place_filler(filler("forest"))
        for _ in range(3):
            engine.place_filler(filler("plain"))

        zone = engine.place_special(special("forest"))

        assert zone.is_special
        assert zone.kind is ZoneKind.SPECIAL
        assert re.fullmatch(r"special\.city\.[a-z0-9]{6}", zone.id)
        assert zone.boundary == forest.boundary
        assert forest.id not in engine.table
        assert zone.where_to_place == "forest"
        assert zone.population == 1000
        assert len(engine.table) == 4

    def test_falls_back_to_any_zone(self):
        engine = make_engine([square(i, 0) for i in range(3)])
        plains = engine.place_fillers(filler("plain"), probability=1.0)
        before = {zone.id: zone.boundary for zone in plains}

        zone = engine.place_special(special("forest"))

        assert zone.boundary in before.values()
        displaced = [zone_id for zone_id, boundary in before.items() if boundary == zone.boundary]
        assert len(displaced) == 1
        assert displaced[0] not in engine.table
        assert len(engine.table) == 3

    def test_ignores_special_hosts_of_matching_type(self):
        engine = make_engine([square(0, 0), square(1, 0)])
        engine.table.insert(engine.build_zone(special(zone_type="forest"), ZoneKind.SPECIAL, square(5, 5)))
        plain = engine.place_filler(filler("plain"))

        zone = engine.place_special(special("forest"))

        # Only special "forest" zones exist, so every zone becomes a candidate
        assert zone.boundary in (plain.boundary, square(5, 5))

    def test_cell_not_returned_to_pool(self):
        engine = make_engine([square(0, 0), square(1, 0)])
        engine.place_filler(filler())

        engine.place_special(special())

        assert engine.pool_size == 1

    def test_empty_table(self):
        engine = make_engine([square(0, 0)])

        assert engine.place_special(special()) is None
        assert len(engine.table) == 0

    def test_one_owner_per_cell(self):
        cells = generate_tessellation(200, 200, 40, seed="owners")
        engine = make_engine(cells)
        engine.place_fillers(filler("forest", entropy=3), probability=0.6)
        engine.place_fillers(filler("plain", entropy=8), probability=0.6)
        for _ in range(5):
            engine.place_special(special("forest"))

        boundaries = [zone.boundary for zone in engine.table]
        assert len(boundaries) == len(set(boundaries))
        assert all(boundary in cells for boundary in boundaries)
        assert len(engine.table) + engine.pool_size == len(cells)
