"""Tests for room placement."""

import itertools

import numpy as np
import pytest

from floorplan_builder.config import PlacementSettings
from floorplan_builder.generators.placer import (
    PackingStrategy,
    PlacementStrategy,
    RoomPlacer,
)
from floorplan_builder.generators.templates import CirculationPattern
from floorplan_builder.models.geometry import Bounds
from floorplan_builder.models.placement import PlacedRoom
from floorplan_builder.models.spec import FloorPlanSpecification
from floorplan_builder.queries.spatial import are_adjacent, rects_overlap

from conftest import room


def assert_no_overlap(rooms, margin=0.0):
    for a, b in itertools.combinations(rooms, 2):
        assert not rects_overlap(a, b, margin), f"{a.id} overlaps {b.id}"


def positions(result):
    return [(r.id, r.x, r.y, r.width, r.height) for r in result.rooms]


class TestZoneClustered:
    def test_places_every_room(self, two_bedroom_spec):
        result = RoomPlacer().place(two_bedroom_spec)
        assert [r.id for r in result.rooms] == two_bedroom_spec.room_ids
        assert result.strategy == PlacementStrategy.ZONE_CLUSTERED
        assert result.template is None

    def test_no_overlap(self, two_bedroom_spec):
        result = RoomPlacer().place(two_bedroom_spec)
        assert_no_overlap(result.rooms, margin=0.05)

    def test_rooms_meet_minimum_area(self, two_bedroom_spec):
        for r in RoomPlacer().place(two_bedroom_spec).rooms:
            assert r.area >= r.spec.min_area

    def test_studio_anchor_centred(self, studio_spec):
        result = RoomPlacer().place(studio_spec)
        living = result.rooms[0]
        assert result.solved
        assert living.cx == pytest.approx(result.width / 2)
        assert living.cy == pytest.approx(result.height / 2)

    def test_hallway_beside_living(self, extreme_spec):
        result = RoomPlacer().place(extreme_spec)
        living, hallway = result.get("living"), result.get("hallway")
        assert are_adjacent(living, hallway, 0.2)
        assert hallway.aspect < 1

    def test_deterministic_without_rng(self, two_bedroom_spec):
        assert positions(RoomPlacer().place(two_bedroom_spec)) == positions(RoomPlacer().place(two_bedroom_spec))

    def test_seeded_rng_is_reproducible(self, two_bedroom_spec):
        a = RoomPlacer(rng=np.random.default_rng(7)).place(two_bedroom_spec)
        b = RoomPlacer(rng=np.random.default_rng(7)).place(two_bedroom_spec)
        assert positions(a) == positions(b)


class TestForcedPlacement:
    @pytest.fixture
    def crowded_spec(self) -> FloorPlanSpecification:
        return FloorPlanSpecification.model_validate({
            "totalArea": 20,
            "rooms": [
                room("a", "study", 9, 11, "public", aspect=(1.0, 1.0)),
                room("b", "study", 9, 11, "public", aspect=(1.0, 1.0)),
            ],
        })

    def test_relaxation_recorded(self, crowded_spec):
        """Second room finds no slot in a footprint sized without slack → forced."""
        settings = PlacementSettings(circulation_factor=0.0, search_slack=1.0)
        result = RoomPlacer(settings).place(crowded_spec)
        assert not result.solved
        assert [r.room_id for r in result.relaxations] == ["b"]
        assert "could not be placed" in result.relaxations[0].reason
        assert len(result.rooms) == 2

    def test_forced_room_still_clear(self, crowded_spec):
        settings = PlacementSettings(circulation_factor=0.0, search_slack=1.0)
        result = RoomPlacer(settings).place(crowded_spec)
        forced = result.get("b")
        assert forced.area >= forced.spec.min_area
        assert_no_overlap(result.rooms, margin=0.05)


class TestTemplateGuided:
    def test_places_every_room(self, two_bedroom_spec):
        result = RoomPlacer().place(two_bedroom_spec, PlacementStrategy.TEMPLATE_GUIDED)
        assert sorted(r.id for r in result.rooms) == sorted(two_bedroom_spec.room_ids)
        assert result.template is not None
        assert_no_overlap(result.rooms, margin=0.05)

    def test_variation_changes_template(self, two_bedroom_spec):
        placer = RoomPlacer()
        first = placer.place(two_bedroom_spec, PlacementStrategy.TEMPLATE_GUIDED, variation=0)
        second = placer.place(two_bedroom_spec, PlacementStrategy.TEMPLATE_GUIDED, variation=1)
        assert first.template.id != second.template.id

    def test_same_variation_same_layout(self, two_bedroom_spec):
        a = RoomPlacer().place(two_bedroom_spec, PlacementStrategy.TEMPLATE_GUIDED, variation=2)
        b = RoomPlacer().place(two_bedroom_spec, PlacementStrategy.TEMPLATE_GUIDED, variation=2)
        assert positions(a) == positions(b)

    def test_variation_zero_matches_default(self, two_bedroom_spec):
        """Variation 0 uses the best template with unperturbed proportions."""
        plain = RoomPlacer().place(two_bedroom_spec, PlacementStrategy.TEMPLATE_GUIDED)
        first = RoomPlacer().place(two_bedroom_spec, PlacementStrategy.TEMPLATE_GUIDED, variation=0)
        assert first.template.id == plain.template.id
        assert positions(first) == positions(plain)

    @pytest.mark.parametrize("variation", range(5))
    def test_hallway_placed_against_living(self, two_bedroom_spec, variation):
        """Living goes down first; the hallway joins it across its must edge."""
        result = RoomPlacer().place(
            two_bedroom_spec, PlacementStrategy.TEMPLATE_GUIDED, variation=variation,
        )
        assert are_adjacent(result.get("hallway"), result.get("living"))
        assert_no_overlap(result.rooms, margin=0.1)

    def test_rooms_in_separate_zones_touch(self):
        """Public and private template zones need not touch; the must edge still holds."""
        spec = FloorPlanSpecification.model_validate({
            "totalArea": 60,
            "rooms": [
                room("living", "living", 18, 22, "public"),
                room("bedroom", "bedroom", 10, 14, "private"),
            ],
            "adjacencyGraph": [{"from": "living", "to": "bedroom", "weight": 9, "type": "must"}],
        })
        result = RoomPlacer().place(spec, PlacementStrategy.TEMPLATE_GUIDED)
        assert are_adjacent(result.get("living"), result.get("bedroom"))

    @pytest.mark.parametrize("pattern, packing", [
        (CirculationPattern.SINGLE_CORRIDOR, PackingStrategy.LINEAR),
        (CirculationPattern.DOUBLE_CORRIDOR, PackingStrategy.DOUBLE_SIDED),
        (CirculationPattern.CENTRAL_HALL, PackingStrategy.RADIAL),
        (CirculationPattern.RADIAL, PackingStrategy.RADIAL),
        (CirculationPattern.OPEN_PLAN, PackingStrategy.GRID),
    ])
    def test_packing_for_circulation(self, pattern, packing):
        assert PackingStrategy.for_circulation(pattern) == packing


class TestSlots:
    def test_order_rooms(self, two_bedroom_spec):
        """Priority first, then adjacency degree, then target area."""
        ordered = RoomPlacer().order_rooms(two_bedroom_spec.rooms, two_bedroom_spec)
        assert [r.id for r in ordered] == ["living", "hallway", "bedroom1", "kitchen", "bedroom2", "bathroom"]

    def test_room_size_respects_minimum(self, two_bedroom_spec):
        bedroom = two_bedroom_spec.get_room("bedroom1")
        width, height = RoomPlacer().room_size(bedroom, Bounds(width=3, height=3), 0.6)
        assert width * height >= bedroom.min_area

    def test_grid_search_finds_free_slot(self, two_bedroom_spec):
        placer = RoomPlacer()
        blocker = PlacedRoom.from_spec(two_bedroom_spec.get_room("bathroom"), 0, 0, 2, 2)
        slot = placer.grid_search(2, 2, Bounds(width=6, height=2), [blocker])
        assert slot == (2.5, 0)
