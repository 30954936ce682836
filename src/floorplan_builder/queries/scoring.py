"""Multi-objective layout scoring.

A placement is scored on five criteria, each normalised to 0–1 and
combined with configurable weights into a 0–100 total:

- area compliance: rooms close to their target area, inside [min, max]
- adjacency satisfaction: weighted adjacency edges realised as touching rooms
- compactness: near-square, isoperimetrically efficient overall footprint
- alignment: room edges lining up on a common grid
- natural light: window-requiring rooms on the building perimeter

The scorer is pure. It ranks placer candidates and drives the annealing
acceptance rule, so it must stay cheap: no pydantic objects are built on
the scoring path.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional, Sequence

from floorplan_builder.config import ScoringSettings
from floorplan_builder.models.placement import PlacedRoom
from floorplan_builder.models.spec import FloorPlanSpecification
from floorplan_builder.queries.spatial import center_distance, shared_edge


@dataclass
class ScoreBreakdown:
    """Sub-scores, each 0–100."""

    area_compliance: float
    adjacency_satisfaction: float
    compactness: float
    alignment: float
    natural_light: float

    def to_dict(self) -> dict:
        return {
            "area_compliance": round(self.area_compliance, 2),
            "adjacency_satisfaction": round(self.adjacency_satisfaction, 2),
            "compactness": round(self.compactness, 2),
            "alignment": round(self.alignment, 2),
            "natural_light": round(self.natural_light, 2),
        }


@dataclass
class ScoreDetails:
    area_deviations: dict[str, float] = field(default_factory=dict)
    satisfied_adjacencies: int = 0
    total_adjacencies: int = 0
    compactness_ratio: float = 0.0
    exterior_wall_rooms: int = 0
    aligned_edges: int = 0
    total_edges: int = 0


@dataclass
class LayoutScore:
    """Weighted total (0–100) with its sub-scores and supporting detail."""

    total: float
    breakdown: ScoreBreakdown
    details: ScoreDetails

    def to_dict(self) -> dict:
        return {
            "total": round(self.total, 2),
            "breakdown": self.breakdown.to_dict(),
            "satisfied_adjacencies": self.details.satisfied_adjacencies,
            "total_adjacencies": self.details.total_adjacencies,
            "compactness_ratio": round(self.details.compactness_ratio, 4),
            "exterior_wall_rooms": self.details.exterior_wall_rooms,
        }


class MultiObjectiveScorer:
    """Scores complete placements against a specification."""

    def __init__(self, settings: Optional[ScoringSettings] = None):
        self.settings = settings or ScoringSettings()

    def score(self, rooms: Sequence[PlacedRoom], spec: FloorPlanSpecification) -> LayoutScore:
        details = ScoreDetails()
        by_id = {room.id: room for room in rooms}
        box = _box(rooms)

        area = self._area_compliance(rooms, details)
        adjacency = self._adjacency_satisfaction(by_id, spec, details)
        compactness = self._compactness(rooms, box, details)
        alignment = self._alignment(rooms, details)
        light = self._natural_light(rooms, box, details)

        w = self.settings.weights
        total = (
            area * w.area
            + adjacency * w.adjacency
            + compactness * w.compactness
            + alignment * w.alignment
            + light * w.natural_light
        ) / w.total * 100

        return LayoutScore(
            total=total,
            breakdown=ScoreBreakdown(
                area_compliance=area * 100,
                adjacency_satisfaction=adjacency * 100,
                compactness=compactness * 100,
                alignment=alignment * 100,
                natural_light=light * 100,
            ),
            details=details,
        )

    # ── Sub-scores (0–1) ─────────────────────────────────────────────

    def _area_compliance(self, rooms: Sequence[PlacedRoom], details: ScoreDetails) -> float:
        if not rooms:
            return 0.0
        total_deviation = 0.0
        for room in rooms:
            spec = room.spec
            actual = room.area
            target = spec.target_area
            deviation = abs(actual - target) / target
            if actual < spec.min_area:
                deviation += self.settings.area_bound_penalty * (spec.min_area - actual) / spec.min_area
            elif actual > spec.max_area:
                deviation += self.settings.area_bound_penalty * (actual - spec.max_area) / spec.max_area
            details.area_deviations[room.id] = deviation
            total_deviation += deviation
        return max(0.0, 1.0 - total_deviation / len(rooms))

    def _adjacency_satisfaction(
        self,
        by_id: dict[str, PlacedRoom],
        spec: FloorPlanSpecification,
        details: ScoreDetails,
    ) -> float:
        s = self.settings
        total_weight = 0.0
        earned = 0.0
        for edge in spec.adjacency_graph:
            a = by_id.get(edge.source)
            b = by_id.get(edge.target)
            if a is None or b is None:
                continue
            details.total_adjacencies += 1
            total_weight += edge.weight
            contact = shared_edge(a, b, s.adjacency_tolerance)
            if contact is not None:
                details.satisfied_adjacencies += 1
                earned += edge.weight
                if contact.axis == "vertical":
                    extent = min(a.height, b.height)
                else:
                    extent = min(a.width, b.width)
                if extent > 0:
                    earned += edge.weight * s.adjacency_bonus * contact.length / extent
            elif edge.weight >= s.heavy_edge_weight:
                distance = center_distance(a, b)
                earned -= edge.weight * min(1.0, distance / s.penalty_distance) * s.unmet_penalty
        if total_weight <= 0:
            return 1.0
        return min(1.0, max(0.0, earned / total_weight))

    def _compactness(self, rooms: Sequence[PlacedRoom], box: tuple, details: ScoreDetails) -> float:
        x0, y0, x1, y1 = box
        width = x1 - x0
        height = y1 - y0
        if width <= 0 or height <= 0:
            return 0.0
        perimeter = 2 * (width + height)
        ratio = 4 * math.pi * width * height / perimeter ** 2
        details.compactness_ratio = ratio
        aspect = max(width, height) / min(width, height)
        penalty = 1.0 / (1.0 + (aspect - 1.0) * self.settings.aspect_penalty)
        # 4πA/P² peaks at π/4 for a square; rescale so a square scores 1
        return min(1.0, ratio / (math.pi / 4) * penalty)

    def _alignment(self, rooms: Sequence[PlacedRoom], details: ScoreDetails) -> float:
        if len(rooms) < 2:
            details.total_edges = 4 * len(rooms)
            details.aligned_edges = details.total_edges
            return 1.0
        grid = self.settings.alignment_grid
        xs = [(round(r.x / grid), round(r.right / grid)) for r in rooms]
        ys = [(round(r.y / grid), round(r.top / grid)) for r in rooms]
        aligned = 0
        total = 0
        for i in range(len(rooms)):
            for own, cells in ((xs[i], xs), (ys[i], ys)):
                for value in own:
                    total += 1
                    if any(
                        abs(value - other) <= 1
                        for j, pair in enumerate(cells) if j != i
                        for other in pair
                    ):
                        aligned += 1
        details.aligned_edges = aligned
        details.total_edges = total
        return aligned / total if total else 0.0

    def _natural_light(self, rooms: Sequence[PlacedRoom], box: tuple, details: ScoreDetails) -> float:
        x0, y0, x1, y1 = box
        tol = self.settings.light_tolerance
        needing = 0
        lit = 0
        for room in rooms:
            on_perimeter = (
                abs(room.x - x0) <= tol
                or abs(room.y - y0) <= tol
                or abs(room.right - x1) <= tol
                or abs(room.top - y1) <= tol
            )
            if on_perimeter:
                details.exterior_wall_rooms += 1
            if room.spec.requires_window:
                needing += 1
                if on_perimeter:
                    lit += 1
        if not needing:
            return 1.0
        return lit / needing


def _box(rooms: Sequence[PlacedRoom]) -> tuple[float, float, float, float]:
    if not rooms:
        return 0.0, 0.0, 0.0, 0.0
    return (
        min(r.x for r in rooms),
        min(r.y for r in rooms),
        max(r.right for r in rooms),
        max(r.top for r in rooms),
    )
