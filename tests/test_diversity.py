"""Tests for layout diversity scoring and selection."""

import pytest

from floorplan_builder.models.placement import PlacedRoom
from floorplan_builder.models.spec import FloorPlanSpecification, ZoneType
from floorplan_builder.queries.diversity import (
    average_diversity,
    compare_layouts,
    filter_for_diversity,
    structural_similarity,
    zone_distribution,
)

from conftest import room

SPEC = FloorPlanSpecification.model_validate({
    "totalArea": 40,
    "rooms": [
        room("a", "living", 8, 10, "public"),
        room("b", "bedroom", 8, 10, "private"),
        room("c", "study", 8, 10, "private"),
    ],
})


def layout(**boxes) -> list[PlacedRoom]:
    return [PlacedRoom.from_spec(SPEC.get_room(rid), *box) for rid, box in boxes.items()]


SIDE_BY_SIDE = dict(a=(0, 0, 3, 3), b=(3.1, 0, 3, 3))
SWAPPED = dict(a=(3.1, 0, 3, 3), b=(0, 0, 3, 3))


class TestCompare:
    def test_identical_layouts(self):
        score = compare_layouts(layout(**SIDE_BY_SIDE), layout(**SIDE_BY_SIDE))
        assert score.structural_similarity == 1
        assert score.spatial_similarity == pytest.approx(1)
        assert score.layout_similarity == pytest.approx(1)
        assert score.overall_diversity == pytest.approx(0)

    def test_swapped_rooms(self):
        """Same adjacency and footprint, rooms traded places → only spatial similarity drops."""
        score = compare_layouts(layout(**SIDE_BY_SIDE), layout(**SWAPPED))
        assert score.structural_similarity == 1
        assert score.layout_similarity == pytest.approx(1)
        assert score.spatial_similarity < 0.7
        assert 0 < score.overall_diversity < 30

    def test_different_room_counts(self):
        score = compare_layouts(layout(**SIDE_BY_SIDE), layout(a=(0, 0, 3, 3)))
        assert score.structural_similarity == 0
        assert score.spatial_similarity == 0

    def test_adjacency_disagreement(self):
        """a–b touch in one layout and not in the other; a–c and b–c agree."""
        touching = layout(a=(0, 0, 3, 3), b=(3.1, 0, 3, 3), c=(20, 0, 3, 3))
        apart = layout(a=(0, 0, 3, 3), b=(10, 0, 3, 3), c=(20, 0, 3, 3))
        assert structural_similarity(touching, apart) == pytest.approx(2 / 3)

    def test_to_dict(self):
        data = compare_layouts(layout(**SIDE_BY_SIDE), layout(**SWAPPED)).to_dict()
        assert set(data) == {
            "structural_similarity", "spatial_similarity", "layout_similarity", "overall_diversity",
        }


class TestZones:
    def test_shares(self):
        shares = zone_distribution(layout(**SIDE_BY_SIDE))
        assert shares[ZoneType.PUBLIC] == pytest.approx(0.5)
        assert shares[ZoneType.PRIVATE] == pytest.approx(0.5)
        assert shares[ZoneType.SERVICE] == 0

    def test_empty(self):
        assert all(v == 0 for v in zone_distribution([]).values())


class TestSelection:
    def test_average_needs_two(self):
        assert average_diversity([layout(**SIDE_BY_SIDE)]) == 0

    def test_duplicates_dropped(self):
        layouts = [layout(**SIDE_BY_SIDE), layout(**SIDE_BY_SIDE), layout(**SIDE_BY_SIDE)]
        assert len(filter_for_diversity(layouts, 3)) == 1

    def test_first_always_kept(self):
        first = layout(**SWAPPED)
        kept = filter_for_diversity([first, layout(**SIDE_BY_SIDE)], 2)
        assert kept[0] is first

    def test_zero_threshold_keeps_target_count(self):
        layouts = [layout(**SIDE_BY_SIDE), layout(**SWAPPED), layout(**SIDE_BY_SIDE)]
        assert len(filter_for_diversity(layouts, 2, min_diversity=0)) == 2

    def test_key_extracts_placement(self):
        items = [("x", layout(**SIDE_BY_SIDE)), ("y", layout(**SIDE_BY_SIDE))]
        kept = filter_for_diversity(items, 2, key=lambda item: item[1])
        assert [name for name, _ in kept] == ["x"]

    def test_nothing_requested(self):
        assert filter_for_diversity([layout(**SIDE_BY_SIDE)], 0) == []
        assert filter_for_diversity([], 3) == []
