"""Tests for door and window placement."""

import itertools

import pytest

from floorplan_builder.config import OpeningSettings
from floorplan_builder.generators.openings import (
    EntranceType,
    determine_entrance_strategy,
    entrance_wall,
    fit_position,
    place_openings,
)
from floorplan_builder.generators.walls import synthesize_walls
from floorplan_builder.models.placement import PlacedRoom
from floorplan_builder.models.spec import EntranceDirection, FloorPlanSpecification, RoomType

from conftest import edge, room


def layout(spec: FloorPlanSpecification, boxes: dict) -> list[PlacedRoom]:
    return [PlacedRoom.from_spec(spec.get_room(rid), *box) for rid, box in boxes.items()]


@pytest.fixture
def small_spec() -> FloorPlanSpecification:
    return FloorPlanSpecification.model_validate({
        "totalArea": 40,
        "rooms": [
            room("living", "living", 18, 22, "public", requiresWindow=True),
            room("bedroom", "bedroom", 10, 14, "private", requiresWindow=True),
        ],
        "adjacencyGraph": [edge("living", "bedroom", 6)],
    })


@pytest.fixture
def small_plan(small_spec):
    rooms = layout(small_spec, {"living": (0, 0, 4.8, 4.2), "bedroom": (4.9, 0, 3, 4.2)})
    walls = synthesize_walls(rooms)
    return rooms, walls, place_openings(rooms, walls, small_spec)


class TestEntrance:
    def test_on_south_wall(self, small_plan):
        _, walls, plan = small_plan
        door = plan.entrance
        assert door.id == "door_entry"
        assert door.wall_id == "wall_ext_1"
        assert door.width == 1.2
        assert door.properties.opens_into == "living"

    def test_centred_on_living_room_stretch(self, small_plan):
        """Living room spans 0.1–4.9 m along the 8.1 m south wall."""
        door = small_plan[2].entrance
        assert door.position == pytest.approx(2.5 / 8.1)

    def test_swings_into_building(self, small_plan):
        assert small_plan[2].entrance.properties.swing_direction == 90.0

    def test_entrance_wall_by_direction(self, small_plan):
        walls = small_plan[1]
        assert entrance_wall(walls, EntranceDirection.NORTH).id == "wall_ext_3"
        assert entrance_wall(walls, EntranceDirection.EAST).id == "wall_ext_2"
        assert entrance_wall(walls, EntranceDirection.WEST).id == "wall_ext_4"


class TestInteriorDoors:
    def test_door_on_shared_wall(self, small_plan):
        _, walls, plan = small_plan
        doors = [o for o in plan.openings if o.is_door and not o.properties.is_entry]
        assert len(doors) == 1
        door = doors[0]
        assert door.id == "door_1"
        assert door.position == 0.5
        assert door.width == 1.0
        shared = next(w for w in walls if w.id == door.wall_id)
        assert shared.adjacent_rooms == ["bedroom", "living"]

    def test_opens_into_private_room(self, small_plan):
        door = next(o for o in small_plan[2].openings if o.id == "door_1")
        assert door.properties.opens_into == "bedroom"
        assert door.properties.swing_direction == 270.0

    def test_avoid_edge_gets_no_door(self):
        spec = FloorPlanSpecification.model_validate({
            "totalArea": 40,
            "rooms": [
                room("living", "living", 18, 22, "public"),
                room("bedroom", "bedroom", 10, 14, "private"),
            ],
            "adjacencyGraph": [edge("living", "bedroom", 3, "avoid")],
        })
        rooms = layout(spec, {"living": (0, 0, 4.8, 4.2), "bedroom": (4.9, 0, 3, 4.2)})
        plan = place_openings(rooms, synthesize_walls(rooms), spec)
        assert [o.id for o in plan.openings if o.is_door] == ["door_entry"]

    def test_unrelated_rooms_get_no_door(self):
        """Two bedrooms, no hub between them and no edge → no door."""
        spec = FloorPlanSpecification.model_validate({
            "totalArea": 30,
            "rooms": [
                room("bed1", "bedroom", 10, 14, "private"),
                room("bed2", "bedroom", 10, 14, "private"),
            ],
        })
        rooms = layout(spec, {"bed1": (0, 0, 3, 4), "bed2": (3.1, 0, 3, 4)})
        plan = place_openings(rooms, synthesize_walls(rooms), spec)
        assert [o.id for o in plan.openings if o.is_door] == ["door_entry"]

    def test_short_wall_skipped(self, small_spec):
        """1.2 m of contact cannot host a 1.0 m door with clearance."""
        rooms = layout(small_spec, {"living": (0, 0, 4.8, 4.2), "bedroom": (4.9, 3.0, 3, 4.2)})
        plan = place_openings(rooms, synthesize_walls(rooms), small_spec)
        assert not any(o.id.startswith("door_") and o.id != "door_entry" for o in plan.openings)
        assert any("too short" in note for note in plan.skipped)


class TestWindows:
    def test_window_per_room(self, small_plan):
        windows = [o for o in small_plan[2].openings if not o.is_door]
        assert len(windows) == 2
        assert all(w.properties.sill_height == 0.9 for w in windows)

    def test_window_width_from_floor_area(self, small_plan):
        """Bedroom 12.6 m² × 0.15 / 1.5 m height → 1.26 m, on its 4.2 m east facade."""
        windows = {o.wall_id: o for o in small_plan[2].openings if not o.is_door}
        assert windows["wall_ext_2"].width == pytest.approx(1.26)
        assert windows["wall_ext_2"].position == pytest.approx(0.5)

    def test_window_avoids_entrance(self, small_plan):
        """The south facade is taken by the entrance, so the living room window goes north."""
        windows = {o.wall_id: o for o in small_plan[2].openings if not o.is_door}
        assert "wall_ext_1" not in windows
        assert windows["wall_ext_3"].width == pytest.approx(20.16 * 0.15 / 1.5)

    def test_long_facade_split(self):
        spec = FloorPlanSpecification.model_validate({
            "totalArea": 40,
            "rooms": [room("living", "living", 30, 40, "public", aspect=(2.0, 3.0), requiresWindow=True)],
            "metadata": {"entrance": "west"},
        })
        rooms = layout(spec, {"living": (0, 0, 9, 4)})
        plan = place_openings(rooms, synthesize_walls(rooms), spec)
        windows = [o for o in plan.openings if not o.is_door]
        assert len(windows) == 2
        assert windows[0].wall_id == windows[1].wall_id == "wall_ext_1"
        assert windows[0].width == pytest.approx(windows[1].width)

    def test_no_window_when_not_required(self):
        spec = FloorPlanSpecification.model_validate({
            "totalArea": 10,
            "rooms": [room("bath", "bathroom", 4, 6, "private")],
        })
        rooms = layout(spec, {"bath": (0, 0, 2.5, 2)})
        plan = place_openings(rooms, synthesize_walls(rooms), spec)
        assert not [o for o in plan.openings if not o.is_door]


class TestInvariants:
    def test_openings_fit_their_walls(self, small_plan):
        _, walls, plan = small_plan
        by_id = {w.id: w for w in walls}
        clearance = OpeningSettings().min_clearance
        for opening in plan.openings:
            wall = by_id[opening.wall_id]
            assert 0 <= opening.position <= 1
            assert opening.width + 2 * clearance <= wall.length + 1e-9
            center = opening.position * wall.length
            assert center - opening.width / 2 >= clearance - 1e-9
            assert center + opening.width / 2 <= wall.length - clearance + 1e-9

    def test_openings_on_same_wall_do_not_collide(self, small_plan):
        _, walls, plan = small_plan
        by_id = {w.id: w for w in walls}
        for a, b in itertools.combinations(plan.openings, 2):
            if a.wall_id != b.wall_id:
                continue
            length = by_id[a.wall_id].length
            assert abs(a.position - b.position) * length >= (a.width + b.width) / 2


class TestHelpers:
    def test_fit_position(self):
        assert fit_position(4.0, 1.0, 0.3, 0.0) == pytest.approx(0.2)
        assert fit_position(4.0, 1.0, 0.3, 2.0) == pytest.approx(0.5)
        assert fit_position(1.5, 1.0, 0.3, 0.75) is None

    def test_strategy_studio(self, studio_spec):
        strategy = determine_entrance_strategy(studio_spec)
        assert strategy.entrance_type == EntranceType.DIRECT_TO_LIVING
        assert strategy.preferred_room_types == [RoomType.LIVING]
        assert strategy.clearance_required == 1.5

    def test_strategy_townhouse(self, two_bedroom_spec):
        strategy = determine_entrance_strategy(two_bedroom_spec)
        assert strategy.entrance_type == EntranceType.MUDROOM
        assert strategy.preferred_room_types == [RoomType.LIVING, RoomType.HALLWAY]

    def test_strategy_apartment_with_hallway(self):
        spec = FloorPlanSpecification.model_validate({
            "totalArea": 70,
            "rooms": [
                room("living", "living", 20, 25, "public"),
                room("bed", "bedroom", 10, 14, "private"),
                room("bath", "bathroom", 4, 6, "private"),
                room("hall", "hallway", 4, 6, "public"),
            ],
        })
        strategy = determine_entrance_strategy(spec)
        assert strategy.entrance_type == EntranceType.HALLWAY
        assert strategy.preferred_room_types == [RoomType.HALLWAY, RoomType.LIVING]
