"""Simulated annealing refinement of a complete placement.

The optimizer perturbs a value copy of the current placement with one of
four operators (swap, resize, shift, rotate-cluster), discards candidates
that leave the search area or break the no-overlap margin, and accepts
the rest by the Metropolis rule on the scorer's total. The best placement
ever seen is kept apart from the current state, so the result never
scores below the input.

All randomness comes from the injected numpy Generator.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from floorplan_builder.config import AnnealingSettings
from floorplan_builder.models.geometry import Bounds
from floorplan_builder.models.placement import PlacedRoom, copy_placement
from floorplan_builder.models.spec import FloorPlanSpecification
from floorplan_builder.queries.scoring import LayoutScore, MultiObjectiveScorer
from floorplan_builder.queries.spatial import are_adjacent, bounding_box

logger = logging.getLogger(__name__)

OPERATORS = ("swap", "resize", "shift", "rotate")


@dataclass
class OptimizationResult:
    best_placement: list[PlacedRoom]
    best_score: LayoutScore
    initial_score: float
    iterations: int
    converged: bool
    score_history: list[float] = field(default_factory=list)
    best_history: list[float] = field(default_factory=list)
    accepted: int = 0
    rejected: int = 0
    invalid: int = 0

    @property
    def improvement(self) -> float:
        return self.best_score.total - self.initial_score

    def to_dict(self) -> dict:
        return {
            "iterations": self.iterations,
            "converged": self.converged,
            "initial_score": round(self.initial_score, 2),
            "best_score": round(self.best_score.total, 2),
            "accepted": self.accepted,
            "rejected": self.rejected,
            "invalid": self.invalid,
        }


class SimulatedAnnealingOptimizer:
    """Refines placements against a scorer.

    Args:
        scorer: Scorer whose total drives acceptance.
        settings: Cooling schedule and move sizes.
        rng: Random generator; a fresh unseeded one when omitted.
    """

    def __init__(
        self,
        scorer: Optional[MultiObjectiveScorer] = None,
        settings: Optional[AnnealingSettings] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.scorer = scorer or MultiObjectiveScorer()
        self.settings = settings or AnnealingSettings()
        self.rng = rng if rng is not None else np.random.default_rng()

    def optimize(
        self,
        rooms: list[PlacedRoom],
        spec: FloorPlanSpecification,
        bounds: Bounds,
    ) -> OptimizationResult:
        """Anneal a placement inside bounds.

        The effective bounds also cover the initial placement, so rooms
        the placer had to put outside the search area stay movable.

        Args:
            rooms: Complete initial placement (not modified).
            spec: Specification the placement was built from.
            bounds: Area every room must stay within.

        Returns:
            OptimizationResult with the best placement found.
        """
        s = self.settings
        if rooms:
            bounds = bounds.union(bounding_box(rooms))

        current = copy_placement(rooms)
        current_score = self.scorer.score(current, spec)
        best = copy_placement(current)
        best_score = current_score
        result = OptimizationResult(
            best_placement=best,
            best_score=best_score,
            initial_score=current_score.total,
            iterations=0,
            converged=False,
        )
        if len(rooms) == 0:
            result.converged = True
            return result

        temperature = s.initial_temperature
        stale = 0
        iteration = 0
        while iteration < s.max_iterations:
            if temperature < s.min_temperature:
                result.converged = True
                break
            iteration += 1
            improved = False

            for _ in range(s.perturbations_per_iteration):
                candidate = self._perturb(current)
                if candidate is None or not self._valid(candidate, bounds):
                    result.invalid += 1
                    continue
                candidate_score = self.scorer.score(candidate, spec)
                delta = candidate_score.total - current_score.total
                if delta > 0 or self.rng.random() < math.exp(delta / temperature):
                    current = candidate
                    current_score = candidate_score
                    result.accepted += 1
                    if current_score.total > best_score.total:
                        best = copy_placement(current)
                        best_score = current_score
                        improved = True
                else:
                    result.rejected += 1

            result.score_history.append(current_score.total)
            result.best_history.append(best_score.total)
            temperature *= s.cooling_rate

            if improved:
                stale = 0
            else:
                stale += 1
                if stale >= s.max_no_improvement:
                    result.converged = True
                    break

        result.iterations = iteration
        result.best_placement = best
        result.best_score = best_score
        logger.debug(
            "annealing: %d iterations, score %.2f -> %.2f (%d accepted, %d rejected, %d invalid)",
            iteration, result.initial_score, best_score.total,
            result.accepted, result.rejected, result.invalid,
        )
        return result

    # ── Perturbations ────────────────────────────────────────────────

    def _perturb(self, rooms: list[PlacedRoom]) -> Optional[list[PlacedRoom]]:
        """Apply one uniformly chosen operator to a copy of rooms."""
        operator = OPERATORS[int(self.rng.integers(len(OPERATORS)))]
        candidate = copy_placement(rooms)
        if operator == "swap":
            return self.swap(candidate)
        if operator == "resize":
            return self.resize(candidate)
        if operator == "shift":
            return self.shift(candidate)
        return self.rotate_cluster(candidate)

    def swap(self, rooms: list[PlacedRoom]) -> Optional[list[PlacedRoom]]:
        """Exchange the origins of two rooms."""
        if len(rooms) < 2:
            return None
        i, j = (int(k) for k in self.rng.choice(len(rooms), size=2, replace=False))
        a, b = rooms[i], rooms[j]
        a.x, b.x = b.x, a.x
        a.y, b.y = b.y, a.y
        return rooms

    def resize(self, rooms: list[PlacedRoom]) -> Optional[list[PlacedRoom]]:
        """Scale one room's width by f and its height by 1/f."""
        room = rooms[int(self.rng.integers(len(rooms)))]
        r = self.settings.resize_range
        factor = float(self.rng.uniform(1 - r, 1 + r))
        width = room.width * factor
        height = room.height / factor
        spec = room.spec
        area = width * height
        if not (spec.min_area <= area <= spec.max_area):
            return None
        if not spec.aspect_ratio.contains(width / height):
            return None
        room.width = width
        room.height = height
        return rooms

    def shift(self, rooms: list[PlacedRoom]) -> Optional[list[PlacedRoom]]:
        """Translate one room by up to shift_distance on each axis."""
        room = rooms[int(self.rng.integers(len(rooms)))]
        d = self.settings.shift_distance
        room.x += float(self.rng.uniform(-d, d))
        room.y += float(self.rng.uniform(-d, d))
        return rooms

    def rotate_cluster(self, rooms: list[PlacedRoom]) -> Optional[list[PlacedRoom]]:
        """Rotate a room and up to two rooms adjacent to it by 90° about their centroid.

        Each member keeps its centre's position relative to the cluster
        centroid (rotated) and swaps width and height. Rejected when a
        member's new aspect ratio leaves its allowed range.
        """
        seed_index = int(self.rng.integers(len(rooms)))
        seed = rooms[seed_index]
        cluster = [seed]
        for room in rooms:
            if room is not seed and are_adjacent(seed, room, 0.3):
                cluster.append(room)
                if len(cluster) == 3:
                    break

        cx = sum(r.cx for r in cluster) / len(cluster)
        cy = sum(r.cy for r in cluster) / len(cluster)
        for room in cluster:
            if not room.spec.aspect_ratio.contains(room.height / room.width):
                return None
        for room in cluster:
            dx = room.cx - cx
            dy = room.cy - cy
            new_cx = cx - dy
            new_cy = cy + dx
            room.width, room.height = room.height, room.width
            room.x = new_cx - room.width / 2
            room.y = new_cy - room.height / 2
        return rooms

    # ── Validity ─────────────────────────────────────────────────────

    def _valid(self, rooms: list[PlacedRoom], bounds: Bounds) -> bool:
        m = self.settings.margin
        for room in rooms:
            if not bounds.contains_rect(room.x, room.y, room.width, room.height):
                return False
        n = len(rooms)
        for i in range(n):
            a = rooms[i]
            for j in range(i + 1, n):
                b = rooms[j]
                if (
                    a.x - m < b.right
                    and b.x < a.right + m
                    and a.y - m < b.top
                    and b.y < a.top + m
                ):
                    return False
        return True
