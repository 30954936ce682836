"""Tests for simulated annealing refinement."""

import numpy as np
import pytest

from floorplan_builder.config import AnnealingSettings
from floorplan_builder.generators.annealing import SimulatedAnnealingOptimizer
from floorplan_builder.generators.placer import RoomPlacer
from floorplan_builder.models.geometry import Bounds
from floorplan_builder.models.placement import PlacedRoom
from floorplan_builder.models.spec import RoomSpec


def optimizer(seed=0, **settings) -> SimulatedAnnealingOptimizer:
    return SimulatedAnnealingOptimizer(
        settings=AnnealingSettings(**settings),
        rng=np.random.default_rng(seed),
    )


def snapshot(rooms):
    return [(r.id, r.x, r.y, r.width, r.height) for r in rooms]


@pytest.fixture
def placement(two_bedroom_spec):
    return RoomPlacer().place(two_bedroom_spec)


class TestOptimize:
    def test_never_worse_than_input(self, two_bedroom_spec, placement):
        result = optimizer(max_iterations=60).optimize(
            placement.rooms, two_bedroom_spec, placement.search_bounds,
        )
        assert result.best_score.total >= result.initial_score
        assert result.improvement >= 0

    def test_best_history_monotonic(self, two_bedroom_spec, placement):
        result = optimizer(max_iterations=60).optimize(
            placement.rooms, two_bedroom_spec, placement.search_bounds,
        )
        history = result.best_history
        assert len(history) == result.iterations
        assert all(b >= a for a, b in zip(history, history[1:]))

    def test_input_untouched(self, two_bedroom_spec, placement):
        before = snapshot(placement.rooms)
        optimizer(max_iterations=30).optimize(placement.rooms, two_bedroom_spec, placement.search_bounds)
        assert snapshot(placement.rooms) == before

    def test_same_seed_same_result(self, two_bedroom_spec, placement):
        a = optimizer(seed=3, max_iterations=40).optimize(
            placement.rooms, two_bedroom_spec, placement.search_bounds,
        )
        b = optimizer(seed=3, max_iterations=40).optimize(
            placement.rooms, two_bedroom_spec, placement.search_bounds,
        )
        assert snapshot(a.best_placement) == snapshot(b.best_placement)
        assert a.score_history == b.score_history

    def test_best_placement_is_valid(self, two_bedroom_spec, placement):
        result = optimizer(max_iterations=60).optimize(
            placement.rooms, two_bedroom_spec, placement.search_bounds,
        )
        rooms = result.best_placement
        for i, a in enumerate(rooms):
            for b in rooms[i + 1:]:
                assert not (a.x < b.right and b.x < a.right and a.y < b.top and b.y < a.top)

    def test_stagnation_converges(self, two_bedroom_spec, placement):
        result = optimizer(max_iterations=500, max_no_improvement=3).optimize(
            placement.rooms, two_bedroom_spec, placement.search_bounds,
        )
        assert result.converged
        assert result.iterations < 500

    def test_iteration_cap(self, two_bedroom_spec, placement):
        result = optimizer(max_iterations=5, max_no_improvement=100).optimize(
            placement.rooms, two_bedroom_spec, placement.search_bounds,
        )
        assert result.iterations == 5
        assert not result.converged

    def test_cold_start_converges_immediately(self, two_bedroom_spec, placement):
        result = optimizer(initial_temperature=0.05, min_temperature=0.1).optimize(
            placement.rooms, two_bedroom_spec, placement.search_bounds,
        )
        assert result.converged
        assert result.iterations == 0

    def test_empty_placement(self, two_bedroom_spec):
        result = optimizer().optimize([], two_bedroom_spec, Bounds(width=10, height=10))
        assert result.converged
        assert result.best_placement == []


class TestOperators:
    @staticmethod
    def make(aspect=(0.4, 2.5), width=4, height=2) -> PlacedRoom:
        spec = RoomSpec(
            id="r", type="study", min_area=6, max_area=10, zone="public",
            aspect_ratio={"min": aspect[0], "max": aspect[1]},
        )
        return PlacedRoom.from_spec(spec, 1, 1, width, height)

    def test_swap_needs_two_rooms(self):
        assert optimizer().swap([self.make()]) is None

    def test_swap_exchanges_origins(self):
        a, b = self.make(), self.make()
        b.x, b.y = 10, 20
        rooms = optimizer().swap([a, b])
        assert (rooms[0].x, rooms[0].y) == (10, 20)
        assert (rooms[1].x, rooms[1].y) == (1, 1)

    def test_resize_keeps_area(self):
        room = self.make()
        rooms = optimizer().resize([room])
        assert rooms is not None
        assert rooms[0].area == pytest.approx(8)

    def test_resize_rejects_aspect(self):
        """A square-only room cannot change shape."""
        assert optimizer().resize([self.make(aspect=(1.0, 1.0), width=3, height=3)]) is None

    def test_shift_bounded(self):
        rooms = optimizer().shift([self.make()])
        assert abs(rooms[0].x - 1) <= 0.5
        assert abs(rooms[0].y - 1) <= 0.5

    def test_rotate_single_room_in_place(self):
        rooms = optimizer().rotate_cluster([self.make()])
        r = rooms[0]
        assert (r.width, r.height) == (2, 4)
        assert (r.cx, r.cy) == pytest.approx((3, 2))

    def test_rotate_rejects_aspect(self):
        assert optimizer().rotate_cluster([self.make(aspect=(1.5, 2.5))]) is None
