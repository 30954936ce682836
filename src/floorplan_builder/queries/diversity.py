"""Diversity between layout variations.

Two placements of the same specification are compared on three axes:
- structural: share of room pairs whose adjacency (touching or not) agrees
- spatial: closeness of room centres after normalising each layout to its
  own bounding box
- layout: zone area distribution and overall footprint proportions

Rooms are matched by id. Similarities are 0–1; overall diversity is
100 × (1 − mean similarity).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Sequence, TypeVar

import numpy as np

from floorplan_builder.models.placement import PlacedRoom
from floorplan_builder.models.spec import ZoneType
from floorplan_builder.queries.spatial import are_adjacent, bounding_box

T = TypeVar("T")

ADJACENCY_TOLERANCE = 0.3


@dataclass
class DiversityScore:
    structural_similarity: float
    spatial_similarity: float
    layout_similarity: float
    overall_diversity: float

    def to_dict(self) -> dict:
        return {
            "structural_similarity": round(self.structural_similarity, 3),
            "spatial_similarity": round(self.spatial_similarity, 3),
            "layout_similarity": round(self.layout_similarity, 3),
            "overall_diversity": round(self.overall_diversity, 1),
        }


def compare_layouts(a: Sequence[PlacedRoom], b: Sequence[PlacedRoom]) -> DiversityScore:
    """Score how different two placements are."""
    structural = structural_similarity(a, b)
    spatial = spatial_similarity(a, b)
    layout = layout_similarity(a, b)
    mean = (structural + spatial + layout) / 3
    return DiversityScore(structural, spatial, layout, (1 - mean) * 100)


def _matched(a: Sequence[PlacedRoom], b: Sequence[PlacedRoom]) -> tuple[list[PlacedRoom], list[PlacedRoom]]:
    by_id = {r.id: r for r in b}
    left = [r for r in a if r.id in by_id]
    return left, [by_id[r.id] for r in left]


def adjacency_matrix(rooms: Sequence[PlacedRoom]) -> np.ndarray:
    n = len(rooms)
    matrix = np.zeros((n, n), dtype=bool)
    for i in range(n):
        for j in range(i + 1, n):
            if are_adjacent(rooms[i], rooms[j], ADJACENCY_TOLERANCE):
                matrix[i, j] = matrix[j, i] = True
    return matrix


def structural_similarity(a: Sequence[PlacedRoom], b: Sequence[PlacedRoom]) -> float:
    """Share of room pairs that are adjacent in both or in neither layout.

    Layouts with different room counts are structurally unrelated (0).
    """
    if len(a) != len(b):
        return 0.0
    left, right = _matched(a, b)
    n = len(left)
    if n < 2:
        return 1.0 if n == len(a) else 0.0
    upper = np.triu_indices(n, k=1)
    agree = adjacency_matrix(left)[upper] == adjacency_matrix(right)[upper]
    return float(agree.mean())


def normalized_centers(rooms: Sequence[PlacedRoom]) -> np.ndarray:
    """Room centres mapped into the unit square of the layout's bounding box."""
    box = bounding_box(rooms)
    centers = np.array([[r.cx, r.cy] for r in rooms], dtype=float)
    scale = np.array([box.width or 1.0, box.height or 1.0])
    return (centers - np.array([box.x, box.y])) / scale


def spatial_similarity(a: Sequence[PlacedRoom], b: Sequence[PlacedRoom]) -> float:
    if len(a) != len(b):
        return 0.0
    left, right = _matched(a, b)
    if not left:
        return 0.0
    distances = np.linalg.norm(normalized_centers(left) - normalized_centers(right), axis=1)
    mean = distances.sum() / len(a)
    return max(0.0, 1 - mean / math.sqrt(2))


def zone_distribution(rooms: Sequence[PlacedRoom]) -> dict[ZoneType, float]:
    total = sum(r.area for r in rooms)
    shares = {zone: 0.0 for zone in ZoneType}
    if total <= 0:
        return shares
    for room in rooms:
        shares[room.zone] += room.area / total
    return shares


def layout_similarity(a: Sequence[PlacedRoom], b: Sequence[PlacedRoom]) -> float:
    """Mean of zone-share agreement and footprint proportion agreement."""
    if not a or not b:
        return 0.0
    da = zone_distribution(a)
    db = zone_distribution(b)
    zones = sum(1 - abs(da[z] - db[z]) for z in ZoneType) / len(ZoneType)

    box_a = bounding_box(a)
    box_b = bounding_box(b)
    ra = box_a.width / box_a.height if box_a.height > 0 else 1.0
    rb = box_b.width / box_b.height if box_b.height > 0 else 1.0
    proportions = min(ra, rb) / max(ra, rb) if max(ra, rb) > 0 else 1.0
    return (zones + proportions) / 2


def average_diversity(layouts: Sequence[Sequence[PlacedRoom]]) -> float:
    """Mean pairwise overall diversity; 0 for fewer than two layouts."""
    scores = [
        compare_layouts(layouts[i], layouts[j]).overall_diversity
        for i in range(len(layouts))
        for j in range(i + 1, len(layouts))
    ]
    return sum(scores) / len(scores) if scores else 0.0


def filter_for_diversity(
    items: Sequence[T],
    target_count: int,
    min_diversity: float = 30.0,
    key: Callable[[T], Sequence[PlacedRoom]] = lambda item: item,  # type: ignore[assignment,return-value]
) -> list[T]:
    """Greedy max-min selection of mutually diverse variations.

    The first item is always kept (callers pass items best first). Each
    further pick is the candidate whose smallest diversity to the picks
    so far is largest; selection stops once that falls below
    min_diversity.

    Args:
        items: Candidates, best first.
        target_count: Maximum number of items to return.
        min_diversity: Required diversity (0–100) to every kept item.
        key: Extracts the placement from an item.

    Returns:
        Selected items in pick order.
    """
    if not items or target_count < 1:
        return []
    selected = [0]
    while len(selected) < min(target_count, len(items)):
        best_index = -1
        best_score = -math.inf
        for i, candidate in enumerate(items):
            if i in selected:
                continue
            closest = min(
                compare_layouts(key(candidate), key(items[j])).overall_diversity
                for j in selected
            )
            if closest > best_score:
                best_score = closest
                best_index = i
        if best_index < 0 or best_score < min_diversity:
            break
        selected.append(best_index)
    return [items[i] for i in selected]
